"""
Energy-dependent cross-section fits and angular-distribution slopes.

Cross sections are in mb and take the Mandelstam s [GeV^2]; the fits
themselves are expressed in the projectile momentum in the target rest
frame, p_lab [GeV].

References: PDG total/elastic fits for the high-energy region, Cugnon et
al. (1996) for the nucleon-nucleon elastic slopes.
"""

import math

from .constants import MINIMUM_SQRTS_HARD_STRING, NUCLEON_MASS
from .kinematics import plab_from_s

# Keeps the threshold pieces of the NN elastic fits finite at s = 4 m_N^2
_LOW_ENERGY_S_FLOOR = 0.01


def _nn_plab(mandelstam_s: float) -> float:
    return plab_from_s(mandelstam_s, NUCLEON_MASS, NUCLEON_MASS)


def _nn_threshold_excess(mandelstam_s: float) -> float:
    return max(mandelstam_s - 4.0 * NUCLEON_MASS * NUCLEON_MASS, _LOW_ENERGY_S_FLOOR)


def _pp_np_high_elastic(p_lab: float) -> float:
    logp = math.log(p_lab)
    return 11.9 + 26.9 * p_lab ** -1.21 + 0.169 * logp * logp - 1.85 * logp


# -----------------------------
# Nucleon-nucleon
# -----------------------------
def pp_elastic(mandelstam_s: float) -> float:
    """pp (and nn) elastic cross section."""
    p_lab = _nn_plab(mandelstam_s)
    if p_lab < 0.435:
        return 5.12 * NUCLEON_MASS / _nn_threshold_excess(mandelstam_s) + 1.67
    if p_lab < 0.8:
        return 23.5 + 1000.0 * (p_lab - 0.7) ** 4
    if p_lab < 2.0:
        return 1250.0 / (p_lab + 50.0) - 4.0 * (p_lab - 1.3) ** 2
    if p_lab < 2.776:
        return 77.0 / (p_lab + 1.5)
    return _pp_np_high_elastic(p_lab)


def np_elastic(mandelstam_s: float) -> float:
    """np elastic cross section."""
    p_lab = _nn_plab(mandelstam_s)
    if p_lab < 0.525:
        return 17.05 * NUCLEON_MASS / _nn_threshold_excess(mandelstam_s) - 6.83
    if p_lab < 0.8:
        return 33.0 + 196.0 * abs(p_lab - 0.95) ** 2.5
    if p_lab < 2.0:
        return 31.0 / math.sqrt(p_lab)
    if p_lab < 2.776:
        return 77.0 / (p_lab + 1.5)
    return _pp_np_high_elastic(p_lab)


def pp_high_energy(mandelstam_s: float) -> float:
    """pp (and nn) total cross section."""
    p_lab = max(_nn_plab(mandelstam_s), 1e-3)
    logp = math.log(p_lab)
    return 48.0 + 0.522 * logp * logp - 4.51 * logp


def np_high_energy(mandelstam_s: float) -> float:
    """np total cross section."""
    p_lab = max(_nn_plab(mandelstam_s), 1e-3)
    logp = math.log(p_lab)
    return 47.3 + 0.513 * logp * logp - 4.27 * logp


# -----------------------------
# Nucleon-antinucleon
# -----------------------------
def ppbar_elastic(mandelstam_s: float) -> float:
    p_lab = _nn_plab(mandelstam_s)
    if p_lab < 0.3:
        return 78.6
    if p_lab < 5.0:
        return 31.6 + 18.3 / p_lab - 1.1 / (p_lab * p_lab) - 3.8 * p_lab
    logp = math.log(p_lab)
    return 10.2 + 52.7 * p_lab ** -1.16 + 0.125 * logp * logp - 1.28 * logp


def ppbar_high_energy(mandelstam_s: float) -> float:
    p_lab = max(_nn_plab(mandelstam_s), 1e-3)
    logp = math.log(p_lab)
    return 38.4 + 77.6 * p_lab ** -0.64 + 0.26 * logp * logp - 1.2 * logp


def ppbar_total(mandelstam_s: float) -> float:
    """p-pbar total cross section, including the low-energy annihilation peak."""
    p_lab = _nn_plab(mandelstam_s)
    if p_lab < 0.3:
        return 271.6 * math.exp(-1.1 * p_lab * p_lab)
    if p_lab < 5.0:
        return 75.0 + 43.1 / p_lab + 2.6 / (p_lab * p_lab) - 3.9 * p_lab
    return ppbar_high_energy(mandelstam_s)


# -----------------------------
# Pion-nucleon
# -----------------------------
def piplusp_high_energy(p_lab: float) -> float:
    p_lab = max(p_lab, 1e-3)
    logp = math.log(p_lab)
    return 16.4 + 19.3 * p_lab ** -0.42 + 0.19 * logp * logp


def piminusp_high_energy(p_lab: float) -> float:
    p_lab = max(p_lab, 1e-3)
    logp = math.log(p_lab)
    return 33.0 + 14.0 * p_lab ** -1.36 + 0.456 * logp * logp - 4.03 * logp


def piplusp_elastic(p_lab: float) -> float:
    p_lab = max(p_lab, 1e-3)
    logp = math.log(p_lab)
    return 11.4 * p_lab ** -0.4 + 0.079 * logp * logp


def piminusp_elastic(p_lab: float) -> float:
    p_lab = max(p_lab, 1e-3)
    logp = math.log(p_lab)
    return 1.76 + 11.2 * p_lab ** -0.64 + 0.043 * logp * logp


# -----------------------------
# Hard (perturbative) string cross section
# -----------------------------
_HARD_STRING_PARAMS = {
    # (sigma_0 [mb], E_0 [GeV], exponent)
    "baryon-baryon": (0.087, 4.1, 3.8),
    "baryon-meson": (0.042, 3.5, 3.8),
    "meson-meson": (0.013, 2.3, 4.7),
}


def string_hard_cross_section(sqrt_s: float, n_baryons: int) -> float:
    """
    Parton-parton cross section for hard string excitation.

    Args:
        sqrt_s: Collision energy [GeV].
        n_baryons: Number of (anti)baryons among the two incoming particles.
    """
    if sqrt_s <= MINIMUM_SQRTS_HARD_STRING:
        return 0.0
    key = ("meson-meson", "baryon-meson", "baryon-baryon")[n_baryons]
    sigma0, e0, power = _HARD_STRING_PARAMS[key]
    return sigma0 * math.log(sqrt_s / e0) ** power


# -----------------------------
# Angular distributions
# -----------------------------
def cugnon_bpp(p_lab: float) -> float:
    """Slope [GeV^-2] of the pp elastic t distribution."""
    if p_lab < 2.0:
        p8 = p_lab ** 8
        return 5.5 * p8 / (7.7 + p8)
    return min(9.0, 5.334 + 0.67 * (p_lab - 2.0))


def cugnon_bnp(p_lab: float) -> float:
    """Slope [GeV^-2] of the np elastic t distribution."""
    if p_lab < 0.225:
        return 0.0
    if p_lab < 0.6:
        return 16.53 * (p_lab - 0.225)
    if p_lab < 1.6:
        return -1.63 * p_lab + 7.16
    return cugnon_bpp(p_lab)


def np_forward_backward_asymmetry(p_lab: float) -> float:
    """Relative weight of the backward peak in np elastic scattering."""
    return 1.0 if p_lab < 0.8 else 0.64 / (p_lab * p_lab)
