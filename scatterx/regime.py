"""
Choice between resonance physics and string fragmentation.

Nucleon-nucleon and pion-nucleon pairs switch to strings above a window
around a pair-specific energy; inside the window the probability rises as
``0.5 + 0.5 sin(pi/2 (sqrt_s - center) / half_width)``. The decision is made
once per action.
"""

import logging
import math
from typing import Optional, Tuple

import numpy as np

from .constants import NN_MIX_ENERGY, NN_MIX_WINDOW, PIN_MIX_ENERGY, PIN_MIX_WINDOW
from .particles import ParticleType

logger = logging.getLogger(__name__)


def string_probability(sqrt_s: float, center: float, half_width: float) -> float:
    """Probability of string fragmentation; 0 below and 1 above the window."""
    if sqrt_s >= center + half_width:
        return 1.0
    if sqrt_s <= center - half_width:
        return 0.0
    return 0.5 + 0.5 * math.sin(0.5 * math.pi * (sqrt_s - center) / half_width)


def mixing_window(type_a: ParticleType, type_b: ParticleType) -> Optional[Tuple[float, float]]:
    """(center, half width) of the transition window, or None if the pair never forms strings."""
    if type_a.is_nucleon and type_b.is_nucleon:
        return NN_MIX_ENERGY, NN_MIX_WINDOW
    if (type_a.is_pion and type_b.is_nucleon) or (type_a.is_nucleon and type_b.is_pion):
        return PIN_MIX_ENERGY, PIN_MIX_WINDOW
    return None


def use_string_fragmentation(type_a: ParticleType, type_b: ParticleType, sqrt_s: float,
                             strings_switch: bool = True,
                             rng: Optional[np.random.Generator] = None) -> bool:
    """Decide whether this collision goes through strings; draws at most one random number."""
    if not strings_switch:
        return False
    window = mixing_window(type_a, type_b)
    if window is None:
        return False
    center, half_width = window
    if sqrt_s > center + half_width:
        return True
    if sqrt_s <= center - half_width:
        return False
    rng = rng or np.random.default_rng()
    probability = string_probability(sqrt_s, center, half_width)
    is_string = probability > rng.uniform(0.0, 1.0)
    logger.debug(f"sqrt(s) = {sqrt_s:.4f} GeV in mixing window, p_string = {probability:.3f} -> {is_string}")
    return is_string


def reject_by_nucleon_elastic_cutoff(type_a: ParticleType, type_b: ParticleType,
                                     sqrt_s: float, low_snn_cut: float) -> bool:
    """True for same-sign nucleon pairs below the elastic cutoff."""
    return (type_a.is_nucleon and type_b.is_nucleon
            and type_a.antiparticle_sign == type_b.antiparticle_sign
            and sqrt_s < low_snn_cut)
