"""
Particle species catalog and the mutable particle record used by actions.

The species table lives in SQLite (``particles`` and ``decays`` tables). By
default an in-memory database is filled from the CSV files bundled in
``scatterx/data``; ``load_particle_table(path)`` switches to an existing
database file with the same schema.
"""

from __future__ import annotations

import copy
import csv
import logging
import math
import sqlite3
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np

from .constants import HBARC, INTERACTION_RADIUS, STABLE_WIDTH_CUTOFF
from .kinematics import FourVector, pcm

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
PARTICLES_CSV = DATA_DIR / "particles.csv"
DECAYS_CSV = DATA_DIR / "decays.csv"

_NUCLEONS = {2212, 2112}
_PIONS = {211, 111, -211}
_DELTAS = {2224, 2214, 2114, 1114}
_NSTARS = {12212, 12112, 2124, 1214, 22212, 22112}
_NSTARS_1535 = {22212, 22112}

_db_conn: Optional[sqlite3.Connection] = None


# -------------------- Database --------------------

def _create_tables(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS particles (
            "PDG ID" INTEGER PRIMARY KEY,
            "Name" TEXT,
            "Mass (GeV)" REAL,
            "Width (GeV)" REAL,
            "Spin" REAL,
            "Charge (e)" INTEGER,
            "Baryon Number" INTEGER,
            "Strangeness" INTEGER,
            "Isospin (2I)" INTEGER,
            "Self Conjugate" INTEGER
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS decays (
            pdg_id INTEGER,
            decay_mode TEXT,
            branching_fraction REAL,
            angular_momentum INTEGER,
            UNIQUE(pdg_id, decay_mode)
        )
    """)


def import_particle_csv(conn: sqlite3.Connection,
                        particles_csv: Path = PARTICLES_CSV,
                        decays_csv: Path = DECAYS_CSV) -> Tuple[int, int]:
    """Fill the ``particles`` and ``decays`` tables from CSV files.

    Rows flagged "Has Antiparticle" also produce the antiparticle, with its
    decay modes charge-conjugated.

    Returns:
        (number of species inserted, number of decay modes inserted)
    """
    _create_tables(conn)
    self_conjugate = set()
    species_rows = []
    with open(particles_csv, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            pdg = int(row["PDG ID"])
            has_anti = int(row["Has Antiparticle"]) == 1
            if not has_anti:
                self_conjugate.add(pdg)
            values = (
                pdg, row["Name"].strip(), float(row["Mass (GeV)"]), float(row["Width (GeV)"]),
                float(row["Spin"]), int(row["Charge (e)"]), int(row["Baryon Number"]),
                int(row["Strangeness"]), int(row["Isospin (2I)"]), int(not has_anti),
            )
            species_rows.append(values)
            if has_anti:
                anti_name = row["Antiparticle Name"].strip() or f"anti-{values[1]}"
                species_rows.append((
                    -pdg, anti_name, values[2], values[3], values[4],
                    -values[5], -values[6], -values[7], values[8], 0,
                ))
    conn.executemany("INSERT OR REPLACE INTO particles VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                     species_rows)

    def conjugate(code: int) -> int:
        return code if code in self_conjugate else -code

    decay_rows = []
    with open(decays_csv, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            pdg = int(row["PDG ID"])
            products = [int(tok) for tok in row["Decay mode"].split()]
            br = float(row["Branching fraction"])
            L = int(row["Angular momentum"])
            decay_rows.append((pdg, " ".join(map(str, products)), br, L))
            if pdg not in self_conjugate:
                anti_products = " ".join(str(conjugate(c)) for c in products)
                decay_rows.append((-pdg, anti_products, br, L))
    conn.executemany("INSERT OR IGNORE INTO decays VALUES (?, ?, ?, ?)", decay_rows)
    conn.commit()
    return len(species_rows), len(decay_rows)


def load_particle_table(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """(Re)load the species catalog and drop all cached types.

    Args:
        db_path: SQLite database with ``particles`` and ``decays`` tables.
            If None, an in-memory database is built from the bundled CSVs.
    """
    global _db_conn
    if _db_conn is not None:
        _db_conn.close()
    if db_path is None:
        conn = sqlite3.connect(":memory:")
        n_species, n_modes = import_particle_csv(conn)
        logger.debug(f"Loaded {n_species} species and {n_modes} decay modes from bundled tables")
    else:
        conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    _db_conn = conn
    ParticleType._cache.clear()
    ParticleType._all = None
    return conn


def _connection() -> sqlite3.Connection:
    if _db_conn is None:
        load_particle_table()
    return _db_conn


# -------------------- Species --------------------

@dataclass(frozen=True)
class DecayMode:
    products: Tuple[int, ...]
    branching_ratio: float
    angular_momentum: int

    def product_types(self) -> List["ParticleType"]:
        return [ParticleType.find(code) for code in self.products]

    def matches(self, pdg_a: int, pdg_b: int) -> bool:
        return sorted(self.products) == sorted((pdg_a, pdg_b))


def blatt_weisskopf(p: float, L: int) -> float:
    x = p * INTERACTION_RADIUS / HBARC
    return (1.0 + x * x) ** L


class ParticleType:
    """
    Read-only hadron species: pole properties, decay modes and the
    mass-dependent quantities derived from them.
    Instances are shared through a per-process cache; use ``find``.
    """

    _cache: Dict[int, "ParticleType"] = {}
    _all: Optional[List["ParticleType"]] = None

    def __init__(self, pdg: int, name: str, mass: float, width: float = 0.0,
                 spin: float = 0.0, charge: int = 0, baryon_number: int = 0,
                 strangeness: int = 0, isospin2: int = 0, self_conjugate: bool = False,
                 decay_modes: Tuple[DecayMode, ...] = ()):
        self.pdg = pdg
        self.name = name
        self.mass = mass
        self.width = width
        self.spin = spin
        self.charge = charge
        self.baryon_number = baryon_number
        self.strangeness = strangeness
        self.isospin2 = isospin2
        self.self_conjugate = self_conjugate
        self.decay_modes = tuple(decay_modes)
        self._min_mass: Optional[float] = None
        self._norm: Optional[float] = None

    # -------------------- Database Lookup --------------------

    @classmethod
    def find(cls, pdg: int) -> "ParticleType":
        """Fetch a species from cache or DB by PDG code."""
        if pdg in cls._cache:
            return cls._cache[pdg]

        cur = _connection().cursor()
        cur.execute('SELECT * FROM particles WHERE "PDG ID" = ?', (pdg,))
        row = cur.fetchone()
        if not row:
            raise ValueError(f"Particle with PDG code {pdg} not found in the particle table")
        ptype = cls._from_row(row)
        cls._cache[pdg] = ptype
        return ptype

    @classmethod
    def lookup(cls, name: str) -> "ParticleType":
        """Fetch a species by name (case-insensitive) or by a PDG code string."""
        try:
            return cls.find(int(name))
        except ValueError:
            pass
        cur = _connection().cursor()
        cur.execute('SELECT "PDG ID" FROM particles WHERE LOWER("Name") = LOWER(?)', (name,))
        row = cur.fetchone()
        if not row:
            raise ValueError(f"Particle '{name}' not found in the particle table")
        return cls.find(int(row["PDG ID"]))

    @classmethod
    def list_all(cls) -> List["ParticleType"]:
        if cls._all is None:
            cur = _connection().cursor()
            cur.execute('SELECT "PDG ID" FROM particles ORDER BY "PDG ID"')
            cls._all = [cls.find(int(row["PDG ID"])) for row in cur.fetchall()]
        return cls._all

    @classmethod
    def _from_row(cls, row: sqlite3.Row) -> "ParticleType":
        pdg = int(row["PDG ID"])
        cur = _connection().cursor()
        cur.execute(
            "SELECT decay_mode, branching_fraction, angular_momentum FROM decays WHERE pdg_id = ?",
            (pdg,),
        )
        modes = tuple(
            DecayMode(tuple(int(tok) for tok in r["decay_mode"].split()),
                      float(r["branching_fraction"]), int(r["angular_momentum"]))
            for r in cur.fetchall()
        )
        return cls(
            pdg=pdg,
            name=row["Name"],
            mass=float(row["Mass (GeV)"]),
            width=float(row["Width (GeV)"]),
            spin=float(row["Spin"]),
            charge=int(row["Charge (e)"]),
            baryon_number=int(row["Baryon Number"]),
            strangeness=int(row["Strangeness"]),
            isospin2=int(row["Isospin (2I)"]),
            self_conjugate=bool(row["Self Conjugate"]),
            decay_modes=modes,
        )

    # -------------------- Classification --------------------

    @property
    def is_stable(self) -> bool:
        return self.width < STABLE_WIDTH_CUTOFF

    @property
    def is_nucleon(self) -> bool:
        return abs(self.pdg) in _NUCLEONS

    @property
    def is_pion(self) -> bool:
        return self.pdg in _PIONS

    @property
    def is_delta(self) -> bool:
        return abs(self.pdg) in _DELTAS

    @property
    def is_nstar(self) -> bool:
        return abs(self.pdg) in _NSTARS

    @property
    def is_nstar1535(self) -> bool:
        return abs(self.pdg) in _NSTARS_1535

    @property
    def is_baryon(self) -> bool:
        return self.baryon_number != 0

    @property
    def spin_degeneracy(self) -> int:
        return int(round(2 * self.spin + 1))

    @property
    def isospin3_2(self) -> int:
        """Twice the isospin projection (Gell-Mann-Nishijima, no heavy flavour)."""
        return 2 * self.charge - self.baryon_number - self.strangeness

    @property
    def antiparticle_sign(self) -> int:
        if self.self_conjugate:
            return 1
        return 1 if self.pdg > 0 else -1

    def get_antiparticle(self) -> "ParticleType":
        return self if self.self_conjugate else ParticleType.find(-self.pdg)

    # -------------------- Widths & Spectral Function --------------------

    @property
    def min_mass(self) -> float:
        """Lowest mass at which any decay channel is open."""
        if self._min_mass is None:
            if self.is_stable or not self.decay_modes:
                self._min_mass = self.mass
            else:
                self._min_mass = min(
                    sum(t.min_mass for t in mode.product_types()) for mode in self.decay_modes
                )
        return self._min_mass

    def partial_width(self, m: float, mode: DecayMode,
                      m1: Optional[float] = None, m2: Optional[float] = None) -> float:
        """Mass-dependent width of a two-body decay mode.

        Product masses default to their pole masses.
        """
        if self.is_stable or len(mode.products) != 2:
            return 0.0
        t1, t2 = mode.product_types()
        m1 = t1.mass if m1 is None else m1
        m2 = t2.mass if m2 is None else m2
        if m <= m1 + m2:
            return 0.0
        gamma0 = self.width * mode.branching_ratio
        p_pole = pcm(self.mass, t1.mass, t2.mass)
        if p_pole <= 0.0:
            # pole below the nominal threshold
            return gamma0
        p_m = pcm(m, m1, m2)
        L = mode.angular_momentum
        ratio = (p_m / p_pole) ** (2 * L + 1) * blatt_weisskopf(p_pole, L) / blatt_weisskopf(p_m, L)
        return gamma0 * self.mass / m * ratio

    def total_width(self, m: float) -> float:
        if self.is_stable:
            return self.width
        return sum(self.partial_width(m, mode) for mode in self.decay_modes)

    def get_partial_in_width(self, m: float, data_a: "ParticleData", data_b: "ParticleData") -> float:
        """Width for forming this resonance from the two given particles."""
        width = 0.0
        for mode in self.decay_modes:
            if not mode.matches(data_a.type.pdg, data_b.type.pdg):
                continue
            if mode.products[0] == data_a.type.pdg:
                m1, m2 = data_a.effective_mass, data_b.effective_mass
            else:
                m1, m2 = data_b.effective_mass, data_a.effective_mass
            width += self.partial_width(m, mode, m1, m2)
        return width

    def _breit_wigner(self, m: float) -> float:
        if m <= self.min_mass:
            return 0.0
        gamma = self.total_width(m)
        m2 = m * m
        return 2.0 / math.pi * m2 * gamma / ((m2 - self.mass ** 2) ** 2 + m2 * gamma * gamma)

    def _normalization(self) -> float:
        if self._norm is None:
            lo = self.min_mass
            mid = self.mass + 10.0 * self.width
            grid = np.unique(np.concatenate([
                np.linspace(lo, mid, 2000),
                np.geomspace(mid, 50.0, 600),
            ]))
            values = np.array([self._breit_wigner(float(m)) for m in grid])
            self._norm = float(np.sum(0.5 * (values[1:] + values[:-1]) * np.diff(grid)))
        return self._norm

    def spectral_function(self, m: float) -> float:
        """Normalized spectral function A(m) [1/GeV]; zero for stable species."""
        if self.is_stable:
            return 0.0
        norm = self._normalization()
        return self._breit_wigner(m) / norm if norm > 0.0 else 0.0

    def integral_nr(self, srts: float, other_mass: float, n_points: int = 400) -> float:
        """Integral of A(m) * p_cm(srts, other_mass, m) over the open mass range."""
        upper = srts - other_mass
        if upper <= self.min_mass:
            return 0.0
        grid = np.linspace(self.min_mass, upper, n_points)
        values = np.array([self.spectral_function(float(m)) * pcm(srts, other_mass, float(m))
                           for m in grid])
        return float(np.sum(0.5 * (values[1:] + values[:-1]) * np.diff(grid)))

    def integral_rr(self, other: "ParticleType", srts: float, n_points: int = 150) -> float:
        """Double integral of A_1(m1) A_2(m2) p_cm(srts, m1, m2) for two resonances."""
        lo1, lo2 = self.min_mass, other.min_mass
        if srts <= lo1 + lo2:
            return 0.0
        m1_grid = np.linspace(lo1, srts - lo2, n_points)
        m2_grid = np.linspace(lo2, srts - lo1, n_points)
        a1 = np.array([self.spectral_function(float(m)) for m in m1_grid])
        a2 = np.array([other.spectral_function(float(m)) for m in m2_grid])
        p = np.array([[pcm(srts, float(m1), float(m2)) if m1 + m2 < srts else 0.0
                       for m2 in m2_grid] for m1 in m1_grid])
        integrand = a1[:, None] * a2[None, :] * p
        inner = np.sum(0.5 * (integrand[:, 1:] + integrand[:, :-1]) * np.diff(m2_grid)[None, :], axis=1)
        return float(np.sum(0.5 * (inner[1:] + inner[:-1]) * np.diff(m1_grid)))

    def sample_resonance_mass(self, other_mass: float, srts: float,
                              rng: Optional[np.random.Generator] = None) -> float:
        """Sample a mass from A(m) * p_cm(srts, other_mass, m) by rejection."""
        rng = rng or np.random.default_rng()
        lo, hi = self.min_mass, srts - other_mass
        if hi <= lo:
            raise ValueError(f"No phase space for {self.name} at sqrt(s) = {srts:.4f} GeV")

        def weight(m: float) -> float:
            return self.spectral_function(m) * pcm(srts, other_mass, m)

        grid = np.linspace(lo, hi, 200)
        w_max = 1.2 * max(weight(float(m)) for m in grid)
        if w_max <= 0.0:
            raise ValueError(f"Vanishing mass distribution for {self.name} at sqrt(s) = {srts:.4f} GeV")
        while True:
            m = rng.uniform(lo, hi)
            if rng.random() * w_max < weight(m):
                return m

    # -------------------- Representation --------------------

    def __eq__(self, other) -> bool:
        return isinstance(other, ParticleType) and other.pdg == self.pdg

    def __hash__(self) -> int:
        return hash(self.pdg)

    def __repr__(self) -> str:
        return (f"ParticleType(pdg={self.pdg}, name={self.name}, mass={self.mass:.3f} GeV, "
                f"width={self.width:.3f} GeV, J={self.spin}, Q={self.charge:+d}, B={self.baryon_number})")


def sample_resonance_masses(type_a: ParticleType, type_b: ParticleType, srts: float,
                            rng: Optional[np.random.Generator] = None) -> Tuple[float, float]:
    """Sample both masses of a two-resonance final state from A_a A_b p_cm."""
    rng = rng or np.random.default_rng()
    lo_a, lo_b = type_a.min_mass, type_b.min_mass
    if srts <= lo_a + lo_b:
        raise ValueError(f"No phase space for {type_a.name} {type_b.name} at sqrt(s) = {srts:.4f} GeV")

    def weight(m_a: float, m_b: float) -> float:
        if m_a + m_b >= srts:
            return 0.0
        return type_a.spectral_function(m_a) * type_b.spectral_function(m_b) * pcm(srts, m_a, m_b)

    grid_a = np.linspace(lo_a, srts - lo_b, 60)
    grid_b = np.linspace(lo_b, srts - lo_a, 60)
    w_max = 1.5 * max(weight(float(a), float(b)) for a in grid_a for b in grid_b)
    if w_max <= 0.0:
        raise ValueError(f"Vanishing mass distribution for {type_a.name} {type_b.name}")
    while True:
        m_a = rng.uniform(lo_a, srts - lo_b)
        m_b = rng.uniform(lo_b, srts - lo_a)
        if rng.random() * w_max < weight(m_a, m_b):
            return m_a, m_b


# -------------------- Particle record --------------------

class ParticleData:
    """
    One particle of the transport: species plus four-momentum, four-position,
    formation time and cross-section scaling factor.
    """

    def __init__(self, ptype: ParticleType, momentum: Optional[FourVector] = None,
                 position: Optional[FourVector] = None, formation_time: float = 0.0,
                 cross_section_scaling_factor: float = 1.0):
        self.type = ptype
        self.momentum = momentum if momentum is not None else FourVector(ptype.mass, 0.0, 0.0, 0.0)
        self.position = position if position is not None else FourVector(0.0, 0.0, 0.0, 0.0)
        self.formation_time = formation_time
        self.cross_section_scaling_factor = cross_section_scaling_factor

    @property
    def pdgcode(self) -> int:
        return self.type.pdg

    @property
    def is_baryon(self) -> bool:
        return self.type.is_baryon

    @property
    def effective_mass(self) -> float:
        return self.momentum.mass

    def set_4momentum(self, mass_or_vector, px: float = 0.0, py: float = 0.0, pz: float = 0.0) -> None:
        """Set the momentum from a FourVector, or from a mass and a three-momentum."""
        if isinstance(mass_or_vector, FourVector):
            self.momentum = mass_or_vector
        else:
            self.momentum = FourVector.on_shell(float(mass_or_vector), (px, py, pz))

    def set_4position(self, position: FourVector) -> None:
        self.position = replace(position)

    def boost_momentum(self, beta) -> None:
        self.momentum = self.momentum.boost(beta)

    def velocity(self) -> np.ndarray:
        return self.momentum.velocity()

    def copy(self) -> "ParticleData":
        """Copy that owns its own momentum and position vectors."""
        clone = copy.copy(self)
        clone.momentum = replace(self.momentum)
        clone.position = replace(self.position)
        return clone

    def __repr__(self) -> str:
        return (f"ParticleData({self.type.name}, p={self.momentum}, x={self.position}, "
                f"t_form={self.formation_time:.3f}, xs_scale={self.cross_section_scaling_factor:.3f})")
