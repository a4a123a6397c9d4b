#!/usr/bin/env python3
"""
Monte Carlo driver script for ScatterX

Collides two particles head-on in their centre-of-mass frame at a fixed
sqrt(s), repeatedly, and reports which channels were chosen.

Examples:
    python monte_carlo.py --pair p p --sqrts 2.3 --events 1000
    python monte_carlo.py --pair "π+" p --sqrts 1.232 --events 500 --seed 42 --output pip.csv
"""

import argparse
import csv
import logging
import sys
from collections import Counter

import numpy as np

from scatterx import ParticleData, ParticleType, ScatterAction, ScatterConfig
from scatterx.conservation import check_energy_momentum
from scatterx.kinematics import pcm


def make_pair(name_a: str, name_b: str, sqrt_s: float):
    """Two on-shell particles back to back along z with total energy sqrt_s."""
    type_a = ParticleType.lookup(name_a)
    type_b = ParticleType.lookup(name_b)
    if sqrt_s <= type_a.mass + type_b.mass:
        raise ValueError(
            f"sqrt(s) = {sqrt_s} GeV is below the {type_a.name} {type_b.name} threshold "
            f"{type_a.mass + type_b.mass:.3f} GeV"
        )
    p = pcm(sqrt_s, type_a.mass, type_b.mass)
    a = ParticleData(type_a)
    a.set_4momentum(type_a.mass, 0.0, 0.0, p)
    b = ParticleData(type_b)
    b.set_4momentum(type_b.mass, 0.0, 0.0, -p)
    return a, b


def simulate_scatterings(name_a, name_b, sqrt_s, n_events, config, seed=None, verbose=False):
    rng = np.random.default_rng(seed)
    a, b = make_pair(name_a, name_b, sqrt_s)
    channels = Counter()
    rows = []
    violations = 0
    total_xs = 0.0

    for i in range(n_events):
        action = ScatterAction.from_config(a, b, 0.0, config, rng=rng)
        action.add_all_processes(config)
        if len(action.branches) == 0:
            raise ValueError(
                f"❌ No open channels for {a.type.name} + {b.type.name} at sqrt(s) = {sqrt_s} GeV"
            )
        total_xs = action.cross_section()
        outgoing = action.generate_final_state()

        label = f"{action.process_type.name}: " + " ".join(p.type.name for p in outgoing)
        channels[label] += 1
        check = check_energy_momentum([a.momentum, b.momentum], [p.momentum for p in outgoing])
        if not check["conserved"]:
            violations += 1
        for p in outgoing:
            rows.append([i, action.process_type.name, p.pdgcode, p.type.name,
                         p.momentum.E, p.momentum.px, p.momentum.py, p.momentum.pz,
                         p.formation_time, p.cross_section_scaling_factor])
        if verbose and (i + 1) % max(1, n_events // 10) == 0:
            print(f"  {i + 1}/{n_events} scatterings")

    return {
        "channels": channels,
        "rows": rows,
        "violations": violations,
        "total_cross_section": total_xs,
    }


def export_to_csv(rows, filename):
    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["event_id", "process", "pdg", "particle", "E", "px", "py", "pz",
                         "formation_time", "xs_scaling"])
        writer.writerows(rows)
    print(f"📄 Exported {len(rows)} outgoing particles to {filename}")


def build_parser():
    return argparse.ArgumentParser(
        description="ScatterX two-body scattering Monte Carlo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  python monte_carlo.py --pair p p --sqrts 2.3 --events 1000
  python monte_carlo.py --pair "π+" p --sqrts 1.232 --events 500 --seed 42
  python monte_carlo.py --pair p n --sqrts 2.5 --isotropic --output pn.csv"""
    )


def main():
    parser = build_parser()
    parser.add_argument("--pair", nargs=2, required=True, metavar=("A", "B"),
                        help='Incoming particles by name or PDG code (e.g. p p, "π+" 2212)')
    parser.add_argument("--sqrts", type=float, required=True, help="Collision energy sqrt(s) [GeV]")
    parser.add_argument("--events", type=int, default=100, help="Number of scatterings (default 100)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    parser.add_argument("--elastic-parameter", type=float, default=None,
                        help="Constant elastic cross section [mb] (default: parametrized)")
    parser.add_argument("--low-snn-cut", type=float, default=None, help="NN elastic cutoff [GeV]")
    parser.add_argument("--isotropic", action="store_true", help="Isotropic angular distributions")
    parser.add_argument("--verbose", action="store_true", help="Show progress and debug logging")
    parser.add_argument("--output", type=str, help="Export outgoing particles to CSV file")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    # No string collaborators are available from the command line.
    config = ScatterConfig.from_env()
    config.strings_switch = False
    if args.elastic_parameter is not None:
        config.elastic_parameter = args.elastic_parameter
    if args.low_snn_cut is not None:
        config.low_snn_cut = args.low_snn_cut
    if args.isotropic:
        config.isotropic = True

    print("\n" + "=" * 60)
    print("🔥 ScatterX Two-Body Scattering")
    print("=" * 60)
    print(f"Incoming pair    : {args.pair[0]} + {args.pair[1]}")
    print(f"sqrt(s)          : {args.sqrts:.4f} GeV")
    print(f"Number of Events : {args.events}")
    print(f"Random Seed      : {args.seed if args.seed is not None else 'None'}")
    if args.output:
        print(f"CSV Output       : {args.output}")
    print("=" * 60 + "\n")

    try:
        results = simulate_scatterings(args.pair[0], args.pair[1], args.sqrts, args.events,
                                       config, seed=args.seed, verbose=args.verbose)
    except ValueError as e:
        print(e)
        return 1

    print("\n" + "=" * 60)
    print("✅ Generation Complete")
    print("=" * 60)
    print(f"Total cross section : {results['total_cross_section']:.3f} mb")
    print("\nChosen channels:")
    for label, count in results["channels"].most_common():
        print(f"  • {label:40s}: {count:6d} ({count / args.events:.2%})")
    print("\nFour-momentum conservation:")
    print(f"  Violations: {results['violations']}/{args.events} (tolerance 1e-6 GeV)")
    print("=" * 60 + "\n")

    if args.output:
        export_to_csv(results["rows"], args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
