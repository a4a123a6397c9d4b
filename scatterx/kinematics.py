"""
Kinematics helpers for ScatterX.

Units: GeV for momenta, fm for positions (natural units c = 1).

Boost convention: ``v.boost(beta)`` takes a four-vector given in a frame S'
that moves with velocity ``beta`` relative to S and returns it in S. Going
into the rest frame of a system with velocity ``beta`` is ``v.boost(-beta)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


# -----------------------------
# FourVector
# -----------------------------
@dataclass
class FourVector:
    """Minkowski four-vector (x0, x1, x2, x3) with metric (+, -, -, -).

    Used for both four-momenta (E, px, py, pz) and four-positions (t, x, y, z).
    """

    x0: float
    x1: float
    x2: float
    x3: float

    @classmethod
    def from_threevec(cls, x0: float, vec) -> "FourVector":
        v = np.asarray(vec, dtype=float)
        return cls(float(x0), float(v[0]), float(v[1]), float(v[2]))

    @classmethod
    def on_shell(cls, mass: float, vec) -> "FourVector":
        """Four-momentum with the given mass and three-momentum."""
        v = np.asarray(vec, dtype=float)
        return cls.from_threevec(math.sqrt(mass * mass + float(np.dot(v, v))), v)

    # momentum-style aliases
    @property
    def E(self) -> float:
        return self.x0

    @property
    def px(self) -> float:
        return self.x1

    @property
    def py(self) -> float:
        return self.x2

    @property
    def pz(self) -> float:
        return self.x3

    @property
    def threevec(self) -> np.ndarray:
        return np.array([self.x1, self.x2, self.x3], dtype=float)

    @property
    def magnitude(self) -> float:
        return float(np.linalg.norm(self.threevec))

    def sqr(self) -> float:
        """Minkowski square x0^2 - |x|^2."""
        return self.x0 * self.x0 - (self.x1 * self.x1 + self.x2 * self.x2 + self.x3 * self.x3)

    @property
    def mass(self) -> float:
        return math.sqrt(max(self.sqr(), 0.0))

    def velocity(self) -> np.ndarray:
        if self.x0 == 0.0:
            return np.zeros(3, dtype=float)
        return self.threevec / self.x0

    def boost(self, beta) -> "FourVector":
        p4 = np.array([self.x0, self.x1, self.x2, self.x3], dtype=float)
        boosted = lorentz_boost_array(p4, np.asarray(beta, dtype=float))
        return FourVector(float(boosted[0]), float(boosted[1]), float(boosted[2]), float(boosted[3]))

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x0, self.x1, self.x2, self.x3)

    def __add__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.x0 + other.x0, self.x1 + other.x1, self.x2 + other.x2, self.x3 + other.x3)

    def __sub__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.x0 - other.x0, self.x1 - other.x1, self.x2 - other.x2, self.x3 - other.x3)

    def __mul__(self, factor: float) -> "FourVector":
        return FourVector(self.x0 * factor, self.x1 * factor, self.x2 * factor, self.x3 * factor)

    __rmul__ = __mul__

    def __repr__(self) -> str:
        return f"FourVector({self.x0:.6f}, {self.x1:.6f}, {self.x2:.6f}, {self.x3:.6f})"


def sum_four_vectors(vectors) -> FourVector:
    total = FourVector(0.0, 0.0, 0.0, 0.0)
    for v in vectors:
        total = total + v
    return total


# -----------------------------
# Lorentz boost
# -----------------------------
def lorentz_boost_array(p4: np.ndarray, beta: np.ndarray) -> np.ndarray:
    beta = np.asarray(beta, dtype=float)
    p4 = np.asarray(p4, dtype=float)
    beta2 = float(np.dot(beta, beta))
    if beta2 >= 1.0:
        raise ValueError("beta^2 < 1 required.")
    if beta2 <= 1e-18:
        return p4.copy()
    gamma = 1.0 / math.sqrt(1.0 - beta2)
    bp = float(np.dot(beta, p4[1:]))
    Eprime = gamma * (p4[0] + bp)
    factor = ((gamma - 1.0) * bp / beta2) + gamma * p4[0]
    pprime = p4[1:] + factor * beta
    return np.array([Eprime, pprime[0], pprime[1], pprime[2]], dtype=float)


def gamma_factor(beta) -> float:
    b = np.asarray(beta, dtype=float)
    beta2 = float(np.dot(b, b))
    if beta2 >= 1.0:
        raise ValueError("beta^2 < 1 required.")
    return 1.0 / math.sqrt(1.0 - beta2)


# -----------------------------
# Directions
# -----------------------------
def direction_from_angles(cos_theta: float, phi: float) -> np.ndarray:
    cos_theta = max(-1.0, min(1.0, cos_theta))
    sint = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
    return np.array([sint * math.cos(phi), sint * math.sin(phi), cos_theta], dtype=float)


def isotropic_direction(rng: Optional[np.random.Generator] = None) -> np.ndarray:
    rng = rng or np.random.default_rng()
    u = rng.uniform(-1.0, 1.0)
    phi = rng.uniform(0.0, 2.0 * math.pi)
    return direction_from_angles(u, phi)


def rotate_z_axis_to(vec, axis) -> np.ndarray:
    """Express ``vec`` (given with z along ``axis``) in the frame of ``axis``."""
    v = np.asarray(vec, dtype=float)
    a = np.asarray(axis, dtype=float)
    norm = float(np.linalg.norm(a))
    if norm < 1e-12:
        return v.copy()
    ez = a / norm
    # any vector not parallel to ez seeds the transverse basis
    seed = np.array([1.0, 0.0, 0.0]) if abs(ez[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    ex = np.cross(seed, ez)
    ex /= np.linalg.norm(ex)
    ey = np.cross(ez, ex)
    return v[0] * ex + v[1] * ey + v[2] * ez


# -----------------------------
# Two-body kinematics
# -----------------------------
def pcm_sqr(srts: float, m1: float, m2: float) -> float:
    """Squared centre-of-mass momentum of two particles; may be negative below threshold."""
    s = srts * srts
    return (s - (m1 + m2) ** 2) * (s - (m1 - m2) ** 2) / (4.0 * s)


def pcm(srts: float, m1: float, m2: float) -> float:
    return math.sqrt(max(pcm_sqr(srts, m1, m2), 0.0))


def plab_from_s(mandelstam_s: float, m_projectile: float, m_target: float) -> float:
    """Projectile momentum in the target rest frame."""
    m_sum = m_projectile + m_target
    m_diff = m_projectile - m_target
    radicand = (mandelstam_s - m_sum * m_sum) * (mandelstam_s - m_diff * m_diff)
    return math.sqrt(max(radicand, 0.0)) / (2.0 * m_target)


def get_t_range(srts: float, m1: float, m2: float, m3: float, m4: float) -> Tuple[float, float]:
    """Mandelstam-t interval for 1 + 2 -> 3 + 4.

    Returns ``(t_forward, t_backward)``; the first value belongs to
    cos(theta) = 1 and is the larger of the two.
    """
    p_i = pcm(srts, m1, m2)
    p_f = pcm(srts, m3, m4)
    sqrt_t0 = (m1 * m1 - m2 * m2 - m3 * m3 + m4 * m4) / (2.0 * srts)
    t0 = sqrt_t0 * sqrt_t0
    return t0 - (p_i - p_f) ** 2, t0 - (p_i + p_f) ** 2


def sample_exponential(slope: float, x1: float, x2: float,
                       rng: Optional[np.random.Generator] = None) -> float:
    """Sample x in [x1, x2] with density proportional to exp(slope * x)."""
    rng = rng or np.random.default_rng()
    a1 = math.exp(slope * x1)
    a2 = math.exp(slope * x2)
    return math.log(a1 + rng.random() * (a2 - a1)) / slope


def two_body_momenta(srts: float, m_a: float, m_b: float,
                     direction) -> Tuple[FourVector, FourVector]:
    """Back-to-back momenta in the centre-of-mass frame along ``direction``.

    At threshold both particles are at rest.
    """
    if srts + 1e-12 < m_a + m_b:
        raise ValueError(f"Two-body final state kinematically forbidden: {srts:.6f} < {m_a + m_b:.6f}")
    p_mag = pcm(srts, m_a, m_b)
    p_vec = p_mag * np.asarray(direction, dtype=float)
    return FourVector.on_shell(m_a, p_vec), FourVector.on_shell(m_b, -p_vec)
