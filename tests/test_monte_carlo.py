"""
Sanity checks for the Monte Carlo driver.

Tests:
    1. Channel statistics and conservation for a fixed seed
    2. Threshold validation of the incoming pair
    3. CSV export layout
    4. Closed channels reported without a traceback
"""
import csv
import sys

import pytest

from monte_carlo import export_to_csv, main, make_pair, simulate_scatterings
from scatterx import ScatterConfig


def test_simulate_pion_nucleon():
    config = ScatterConfig(strings_switch=False)
    results = simulate_scatterings("π+", "p", 1.232, 200, config, seed=7)
    assert sum(results["channels"].values()) == 200
    assert results["violations"] == 0
    assert results["total_cross_section"] > 0.0
    assert any(label.startswith("TWO_TO_ONE") for label in results["channels"])
    print("✓ Driver produces conserved scatterings")


def test_same_seed_same_channels():
    config = ScatterConfig(strings_switch=False)
    first = simulate_scatterings("p", "p", 2.3, 50, config, seed=11)
    second = simulate_scatterings("p", "p", 2.3, 50, config, seed=11)
    assert first["channels"] == second["channels"]


def test_pair_below_threshold():
    with pytest.raises(ValueError):
        make_pair("p", "p", 1.5)


def test_export_to_csv(tmp_path):
    results = simulate_scatterings("p", "n", 2.1, 5, ScatterConfig(strings_switch=False), seed=3)
    out = tmp_path / "events.csv"
    export_to_csv(results["rows"], out)
    with open(out, newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == len(results["rows"])
    assert set(rows[0]) >= {"event_id", "process", "pdg", "E", "formation_time"}


def test_no_open_channels():
    with pytest.raises(ValueError, match="No open channels"):
        simulate_scatterings("p", "p", 1.95, 5, ScatterConfig(), seed=1)


def test_main_reports_closed_channels(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["monte_carlo.py", "--pair", "p", "p", "--sqrts", "1.95"])
    assert main() == 1
    out = capsys.readouterr().out
    assert "No open channels for p + p" in out
    assert "Traceback" not in out
