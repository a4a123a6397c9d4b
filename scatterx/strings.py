"""
String fragmentation collaborators and the post-processing applied to the
hadrons they produce.

The event generators themselves are external; this module only fixes the
interfaces an implementation must provide. Instances are owned by the caller
and passed into each ScatterAction; an instance must not be driven by two
actions at the same time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .constants import BARYON_RANK_FRACTIONS, MESON_RANK_FRACTIONS, STRING_SUPPRESSION_FACTOR
from .kinematics import FourVector
from .particles import ParticleData

logger = logging.getLogger(__name__)

PDG_K_SHORT = 310
PDG_K_LONG = 130
PDG_K_ZERO = 311


class HardEventGenerator(ABC):
    """
    Hard (perturbative) string excitation, e.g. a Pythia wrapper.

    Final hadrons are given in the centre-of-mass frame of the collision with
    beam A along +z.
    """

    name: str = "abstract"

    @abstractmethod
    def init(self, pdg_a: int, pdg_b: int, sqrt_s: float, seed: int) -> bool:
        """Configure beams, energy and seed. Returns False on failure."""

    @abstractmethod
    def next(self) -> bool:
        """Generate one event. Returns False if it has to be repeated."""

    @abstractmethod
    def final_hadrons(self) -> List[Tuple[int, FourVector]]:
        """(pdg code, four-momentum) of every final-state hadron of the last event."""


class StringProcess(ABC):
    """Soft string excitation (diffractive and soft non-diffractive)."""

    name: str = "abstract"

    @abstractmethod
    def cross_sections_diffractive(self, pdg_a: int, pdg_b: int,
                                   sqrt_s: float) -> Tuple[float, float, float]:
        """(AB->AX, AB->XB, AB->XX) cross sections [mb]."""

    @abstractmethod
    def init(self, incoming: Sequence[ParticleData], time: float, gamma_cm: float) -> None:
        """Prepare for one collision of ``incoming`` at ``time``."""

    @abstractmethod
    def next_sdiff(self, is_ax: bool) -> bool:
        """Single-diffractive event, A+X if ``is_ax`` else X+B. False if rejected."""

    @abstractmethod
    def next_ddiff(self) -> bool:
        """Double-diffractive event. False if rejected."""

    @abstractmethod
    def next_ndiff_soft(self) -> bool:
        """Soft non-diffractive event. False if rejected."""

    @abstractmethod
    def final_state(self) -> List[ParticleData]:
        """Outgoing particles of the last successful event, in the centre-of-mass frame."""


# -----------------------------
# Post-processing of string hadrons
# -----------------------------
def convert_neutral_kaon(pdg: int, rng: Optional[np.random.Generator] = None) -> int:
    """K_S and K_L become K0 or anti-K0 with equal probability."""
    if pdg not in (PDG_K_SHORT, PDG_K_LONG):
        return pdg
    rng = rng or np.random.default_rng()
    return PDG_K_ZERO if rng.uniform(0.0, 1.0) <= 0.5 else -PDG_K_ZERO


def sort_by_longitudinal_momentum(particles: List[ParticleData]) -> List[ParticleData]:
    """Leading particles first: descending |p_z| along the beam axis."""
    return sorted(particles, key=lambda p: abs(p.momentum.pz), reverse=True)


def rank_suppression(rank: int, baryonic_collision: bool) -> float:
    fractions = BARYON_RANK_FRACTIONS if baryonic_collision else MESON_RANK_FRACTIONS
    if rank < len(fractions):
        return STRING_SUPPRESSION_FACTOR * fractions[rank]
    return 0.0


def assign_rank_suppression(particles: List[ParticleData], baryonic_collision: bool) -> None:
    """Cross-section scaling factors by rank; ``particles`` must already be sorted."""
    for rank, particle in enumerate(particles):
        particle.cross_section_scaling_factor = rank_suppression(rank, baryonic_collision)


def assign_formation_times(particles: List[ParticleData], time: float,
                           formation_time: float, beta_cm) -> None:
    """
    Formation time = ``time`` + ``formation_time`` dilated by the particle's
    Lorentz factor in the lab. Momenta are in the centre-of-mass frame.
    """
    for particle in particles:
        lab = particle.momentum.boost(beta_cm)
        gamma = lab.E / lab.mass if lab.mass > 0.0 else 1.0
        particle.formation_time = time + formation_time * gamma


def inherit_formation(outgoing: List[ParticleData], incoming: Sequence[ParticleData],
                      time: float) -> None:
    """
    Pass the formation state of a still-forming incoming particle on.

    The scaling factor of the later-forming incoming particle multiplies each
    outgoing factor; outgoing formation times are raised to at least the later
    incoming formation time.
    """
    first, second = incoming[0], incoming[1]
    latest = first if first.formation_time > second.formation_time else second
    if latest.formation_time <= time:
        return
    for particle in outgoing:
        particle.cross_section_scaling_factor *= latest.cross_section_scaling_factor
        if latest.formation_time > particle.formation_time:
            particle.formation_time = latest.formation_time
