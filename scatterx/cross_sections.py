"""
Cross-section catalog: weights [mb] for every channel family of a two-body
collision, returned as CollisionBranch objects.

Apart from the string partition, which asks the StringProcess collaborator
for its diffractive cross sections, everything here is a pure function of
the incoming species (or particles) and the collision energy.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import IncludedReactions
from .constants import FM2_MB, HBARC, REALLY_SMALL, STRING_PARTITION_TOLERANCE
from .conservation import conserves_quantum_numbers
from .exceptions import InvalidScatterAction, StringPartitionError
from .isospin import i_tot_range, isospin_clebsch_gordan_sqr_2to2
from .kinematics import pcm_sqr, plab_from_s
from .parametrizations import (
    np_elastic,
    np_high_energy,
    piminusp_elastic,
    piminusp_high_energy,
    piplusp_elastic,
    piplusp_high_energy,
    pp_elastic,
    pp_high_energy,
    ppbar_elastic,
    ppbar_high_energy,
    ppbar_total,
    string_hard_cross_section,
)
from .particles import ParticleData, ParticleType
from .process import CollisionBranch, ProcessType

logger = logging.getLogger(__name__)

PDG_PROTON = 2212
PDG_NEUTRON = 2112
PDG_PI_PLUS = 211
PDG_RHO_ZERO = 113
PDG_H1 = 10223


# -------------------- Pair classification --------------------

def _nucleon_pair(type_a: ParticleType, type_b: ParticleType) -> bool:
    return type_a.is_nucleon and type_b.is_nucleon


def _pion_nucleon(type_a: ParticleType, type_b: ParticleType) -> Optional[Tuple[ParticleType, ParticleType]]:
    """(pion, nucleon) if the pair is a pion-(anti)nucleon pair, else None."""
    if type_a.is_pion and type_b.is_nucleon:
        return type_a, type_b
    if type_b.is_pion and type_a.is_nucleon:
        return type_b, type_a
    return None


def _pion_nucleon_fit(type_a: ParticleType, type_b: ParticleType, sqrt_s: float,
                      fit_plus, fit_minus) -> float:
    pion, nucleon = _pion_nucleon(type_a, type_b)
    p_lab = plab_from_s(sqrt_s * sqrt_s, pion.mass, nucleon.mass)
    if pion.charge == 0:
        return 0.5 * (fit_plus(p_lab) + fit_minus(p_lab))
    # pi+ p, pi- n and their conjugates sit at maximal |I3|
    if abs(pion.isospin3_2 + nucleon.isospin3_2) == 3:
        return fit_plus(p_lab)
    return fit_minus(p_lab)


# -------------------- Elastic --------------------

def elastic_parametrization(type_a: ParticleType, type_b: ParticleType, sqrt_s: float) -> float:
    """Energy-dependent elastic cross section; 0 for pairs without a fit."""
    s = sqrt_s * sqrt_s
    if _nucleon_pair(type_a, type_b):
        if type_a.antiparticle_sign != type_b.antiparticle_sign:
            return ppbar_elastic(s)
        if type_a.pdg == type_b.pdg:
            return pp_elastic(s)
        return np_elastic(s)
    if _pion_nucleon(type_a, type_b):
        return _pion_nucleon_fit(type_a, type_b, sqrt_s, piplusp_elastic, piminusp_elastic)
    return 0.0


def elastic_cross_section(elastic_parameter: float, type_a: ParticleType,
                          type_b: ParticleType, sqrt_s: float) -> CollisionBranch:
    """Elastic branch: the configured constant if non-negative, else the parametrization."""
    if elastic_parameter >= 0.0:
        weight = elastic_parameter
    else:
        weight = elastic_parametrization(type_a, type_b, sqrt_s)
    return CollisionBranch(ProcessType.ELASTIC, weight, (type_a, type_b))


# -------------------- High-energy total --------------------

def high_energy_cross_section(type_a: ParticleType, type_b: ParticleType, sqrt_s: float) -> float:
    """Total cross section from the high-energy fits; 0 for pairs without a fit."""
    s = sqrt_s * sqrt_s
    if _nucleon_pair(type_a, type_b):
        if type_a.antiparticle_sign != type_b.antiparticle_sign:
            return ppbar_high_energy(s)
        if type_a.pdg == type_b.pdg:
            return pp_high_energy(s)
        return np_high_energy(s)
    if _pion_nucleon(type_a, type_b):
        return _pion_nucleon_fit(type_a, type_b, sqrt_s, piplusp_high_energy, piminusp_high_energy)
    return 0.0


# -------------------- Resonance formation (2->1) --------------------

def two_to_one_formation(data_a: ParticleData, data_b: ParticleData, type_r: ParticleType,
                         sqrt_s: float, cm_momentum_sqr: float) -> float:
    """
    Breit-Wigner cross section for a + b -> R.

    Parameters
    ----------
    data_a, data_b : ParticleData
        Incoming particles; their effective masses enter the in-width.
    type_r : ParticleType
        Resonance to form.
    sqrt_s : float
        Collision energy [GeV].
    cm_momentum_sqr : float
        Squared centre-of-mass momentum of the incoming pair [GeV^2].

    Returns
    -------
    float
        Cross section in mb; 0 if charge or baryon number is violated or
        the resonance has no open in-channel.
    """
    type_a, type_b = data_a.type, data_b.type
    if not conserves_quantum_numbers((type_a, type_b), (type_r,)):
        return 0.0
    if cm_momentum_sqr <= 0.0:
        return 0.0

    partial_width = type_r.get_partial_in_width(sqrt_s, data_a, data_b)
    if partial_width <= 0.0:
        return 0.0

    spin_factor = type_r.spin_degeneracy / (type_a.spin_degeneracy * type_b.spin_degeneracy)
    sym_factor = 2 if type_a.pdg == type_b.pdg else 1
    return (spin_factor * sym_factor * 2.0 * math.pi * math.pi / cm_momentum_sqr
            * type_r.spectral_function(sqrt_s) * partial_width * HBARC * HBARC / FM2_MB)


def resonance_cross_sections(data_a: ParticleData, data_b: ParticleData,
                             sqrt_s: float, cm_momentum_sqr: float) -> List[CollisionBranch]:
    """2->1 branches for every resonance the pair can form."""
    type_a, type_b = data_a.type, data_b.type
    branches = []
    for type_r in ParticleType.list_all():
        if type_r.is_stable:
            continue
        # an unstable incoming particle does not re-form itself
        if (not type_a.is_stable and type_r == type_a) or (not type_b.is_stable and type_r == type_b):
            continue
        xs = two_to_one_formation(data_a, data_b, type_r, sqrt_s, cm_momentum_sqr)
        if xs > REALLY_SMALL:
            logger.debug(f"Found 2->1 resonance {type_r.name} with {xs:.6g} mb")
            branches.append(CollisionBranch(ProcessType.TWO_TO_ONE, xs, (type_r,)))
    return branches


# -------------------- 2->2 inelastic: NN -> NR --------------------

def nn_to_resonance_matrix_element(sqrt_s: float, type_c: ParticleType,
                                   type_d: ParticleType, twoI: int) -> float:
    """
    Squared matrix element for N N -> c d.

    N N -> N Delta follows a fit to the one-boson-exchange model of
    Dmitriev et al.; N N -> N N* is a constant tuned to exclusive data.
    """
    m_c, m_d = type_c.mass, type_d.mass
    msqr = 2.0 * (m_c * m_c + m_d * m_d)
    if sqrt_s > m_c + m_d + 3.0 * (type_c.width + type_d.width) + 3.0:
        return 0.0
    if type_c.antiparticle_sign != type_d.antiparticle_sign:
        return 0.0
    if (type_c.is_delta and type_d.is_nucleon) or (type_d.is_delta and type_c.is_nucleon):
        return 68.0 / (sqrt_s - 1.104) ** 1.951
    if (type_c.is_nstar and type_d.is_nucleon) or (type_d.is_nstar and type_c.is_nucleon):
        if twoI == 2:
            return 7.0 / msqr
        if twoI == 0:
            matrix_element = 14.0 / msqr
            if type_c.is_nstar1535 or type_d.is_nstar1535:
                return 6.5 * matrix_element
            return matrix_element
    return 0.0


def nn_to_resonance_cross_sections(data_a: ParticleData, data_b: ParticleData,
                                   sqrt_s: float, cm_momentum: float) -> List[CollisionBranch]:
    """N N -> N R branches for every unstable baryon R with the pair's baryon sign."""
    type_a, type_b = data_a.type, data_b.type
    if not (_nucleon_pair(type_a, type_b) and type_a.antiparticle_sign == type_b.antiparticle_sign):
        return []
    if cm_momentum <= 0.0:
        return []
    sign = type_a.antiparticle_sign
    s = sqrt_s * sqrt_s
    nucleons = [t for t in ParticleType.list_all() if t.is_nucleon and t.antiparticle_sign == sign]
    resonances = [t for t in ParticleType.list_all()
                  if not t.is_stable and t.baryon_number == sign and (t.is_delta or t.is_nstar)]
    sym_in = 2 if type_a.isospin2 == type_b.isospin2 else 1

    branches = []
    for type_res in resonances:
        for type_n in nucleons:
            if not conserves_quantum_numbers((type_a, type_b), (type_res, type_n)):
                continue
            if sqrt_s - type_n.mass - type_res.min_mass < 1e-3:
                continue
            xs = 0.0
            integral = None
            for twoI in i_tot_range(type_a, type_b):
                isospin_factor = isospin_clebsch_gordan_sqr_2to2(type_a, type_b, type_res, type_n, twoI)
                if abs(isospin_factor) < REALLY_SMALL:
                    continue
                matrix_element = nn_to_resonance_matrix_element(sqrt_s, type_res, type_n, twoI)
                if matrix_element <= 0.0:
                    continue
                if integral is None:
                    integral = type_res.integral_nr(sqrt_s, type_n.mass)
                spin_factor = type_res.spin_degeneracy * type_n.spin_degeneracy
                xs += (isospin_factor * spin_factor * sym_in * matrix_element * integral
                       / (s * cm_momentum))
            if xs > REALLY_SMALL:
                logger.debug(f"Found 2->2 channel {type_res.name} {type_n.name} with {xs:.6g} mb")
                branches.append(CollisionBranch(ProcessType.TWO_TO_TWO, xs, (type_res, type_n)))
    return branches


def two_to_two_cross_sections(data_a: ParticleData, data_b: ParticleData, sqrt_s: float,
                              cm_momentum: float, included_2to2) -> List[CollisionBranch]:
    """Inelastic 2->2 branches of the reaction families enabled in ``included_2to2``."""
    branches: List[CollisionBranch] = []
    if IncludedReactions.NN_TO_NR in included_2to2:
        branches.extend(nn_to_resonance_cross_sections(data_a, data_b, sqrt_s, cm_momentum))
    return branches


# -------------------- Strings --------------------

def string_excitation_cross_section(type_a: ParticleType, type_b: ParticleType,
                                    sqrt_s: float) -> CollisionBranch:
    """Single aggregate string branch: total minus elastic, never negative."""
    sig_string = max(0.0, high_energy_cross_section(type_a, type_b, sqrt_s)
                     - elastic_parametrization(type_a, type_b, sqrt_s))
    logger.debug(f"String cross section is {sig_string:.6g} mb")
    return CollisionBranch(ProcessType.STRING_HARD, sig_string)


@dataclass(frozen=True)
class StringPartition:
    """The five string sub-cross-sections [mb] of one action."""

    single_diffr_ax: float
    single_diffr_xb: float
    double_diffr: float
    nondiffractive_soft: float
    nondiffractive_hard: float

    def as_array(self) -> np.ndarray:
        return np.array([self.single_diffr_ax, self.single_diffr_xb, self.double_diffr,
                         self.nondiffractive_soft, self.nondiffractive_hard], dtype=float)

    @property
    def cumulative(self) -> np.ndarray:
        return np.cumsum(self.as_array())

    @property
    def total(self) -> float:
        return float(self.cumulative[-1])

    @property
    def soft(self) -> float:
        """Sum of the subprocesses handled by the soft-string collaborator."""
        return float(self.cumulative[3])

    def select_soft_subprocess(self, draw: float) -> int:
        """Map a draw in [0, soft) to 0 (AX), 1 (XB), 2 (double diffractive) or 3 (non-diffractive)."""
        cumulative = self.cumulative
        for i in range(4):
            if draw < cumulative[i]:
                return i
        return 3


def partition_string_cross_section(sig_string_all: float,
                                   diffractive: Sequence[float],
                                   hard_xsec: float) -> StringPartition:
    """
    Reconcile the diffractive cross sections of the string collaborator with
    the parametrized string cross section.

    If the diffractive pieces exceed ``sig_string_all``, the non-diffractive
    part vanishes; double-diffractive keeps what the single-diffractive pieces
    leave, and those are scaled down proportionally. Otherwise the remainder is
    non-diffractive. That remainder is split into a soft and a hard part with
    ``hard = nondiff * (1 - exp(-hard_xsec / nondiff))``.

    Raises
    ------
    ValueError
        If any diffractive input is negative.
    StringPartitionError
        If the five pieces do not add up to ``sig_string_all``.
    """
    single_ax, single_xb, double_diffr = (float(x) for x in diffractive)
    if min(single_ax, single_xb, double_diffr) < 0.0:
        raise ValueError(f"Negative diffractive cross sections: {tuple(diffractive)}")

    single_diffr = single_ax + single_xb
    diffr = single_diffr + double_diffr
    nondiffractive_all = max(0.0, sig_string_all - diffr)
    diffr = sig_string_all - nondiffractive_all
    double_diffr = max(0.0, diffr - single_diffr)
    if single_diffr > 0.0:
        scale = (diffr - double_diffr) / single_diffr
        single_ax *= scale
        single_xb *= scale

    if nondiffractive_all > 0.0:
        nondiffractive_soft = nondiffractive_all * math.exp(-hard_xsec / nondiffractive_all)
    else:
        nondiffractive_soft = 0.0
    nondiffractive_hard = nondiffractive_all - nondiffractive_soft

    partition = StringPartition(single_ax, single_xb, double_diffr,
                                nondiffractive_soft, nondiffractive_hard)
    if abs(partition.total - sig_string_all) >= STRING_PARTITION_TOLERANCE:
        raise StringPartitionError(
            f"String sub-cross-sections sum to {partition.total:.9g} mb, expected {sig_string_all:.9g} mb"
        )
    return partition


def representative_pdg(ptype: ParticleType) -> int:
    """Stand-in species for diffractive cross sections: (anti)proton or pi+."""
    if ptype.baryon_number > 0:
        return PDG_PROTON
    if ptype.baryon_number < 0:
        return -PDG_PROTON
    return PDG_PI_PLUS


def string_excitation_cross_sections(type_a: ParticleType, type_b: ParticleType, sqrt_s: float,
                                     string_process) -> Tuple[List[CollisionBranch], Optional[StringPartition]]:
    """
    Soft and hard string branches plus the partition used to pick the soft
    subprocess later. Returns ``([], None)`` if there is no string cross section.

    Raises
    ------
    InvalidScatterAction
        If no StringProcess is available.
    """
    sig_string_all = max(0.0, high_energy_cross_section(type_a, type_b, sqrt_s)
                         - elastic_parametrization(type_a, type_b, sqrt_s))
    if sig_string_all <= 0.0:
        return [], None
    if string_process is None:
        raise InvalidScatterAction("A StringProcess is required for string excitation cross sections")

    diffractive = string_process.cross_sections_diffractive(
        representative_pdg(type_a), representative_pdg(type_b), sqrt_s
    )
    n_baryons = int(type_a.is_baryon) + int(type_b.is_baryon)
    partition = partition_string_cross_section(
        sig_string_all, diffractive, string_hard_cross_section(sqrt_s, n_baryons)
    )
    logger.debug(
        "String cross sections [mb]: "
        f"AX={partition.single_diffr_ax:.6g}, XB={partition.single_diffr_xb:.6g}, "
        f"XX={partition.double_diffr:.6g}, soft ND={partition.nondiffractive_soft:.6g}, "
        f"hard ND={partition.nondiffractive_hard:.6g}"
    )

    branches = []
    sig_string_soft = sig_string_all - partition.nondiffractive_hard
    if sig_string_soft > 0.0:
        branches.append(CollisionBranch(ProcessType.STRING_SOFT, sig_string_soft))
    if partition.nondiffractive_hard > 0.0:
        branches.append(CollisionBranch(ProcessType.STRING_HARD, partition.nondiffractive_hard))
    return branches, partition


# -------------------- Nucleon-antinucleon --------------------

def nnbar_annihilation_cross_section(sqrt_s: float, other_channels: float) -> CollisionBranch:
    """
    N Nbar -> h1(1170) rho0 as the remainder of the p-pbar total cross
    section after all other channels of the pair.
    """
    xs = max(0.0, ppbar_total(sqrt_s * sqrt_s) - other_channels)
    logger.debug(f"NNbar annihilation cross section is {xs:.6g} mb")
    return CollisionBranch(ProcessType.TWO_TO_TWO, xs,
                           (ParticleType.find(PDG_H1), ParticleType.find(PDG_RHO_ZERO)))


def detailed_balance_factor_rr(sqrt_s: float, cm_momentum: float,
                               type_a: ParticleType, type_b: ParticleType,
                               type_c: ParticleType, type_d: ParticleType) -> float:
    """
    Ratio sigma(a b -> c d) / sigma(c d -> a b) for two incoming resonances
    and two stable outgoing particles.
    """
    spin_factor = type_c.spin_degeneracy * type_d.spin_degeneracy
    symmetry_factor = 2 if type_a == type_b else 1
    integral = type_a.integral_rr(type_b, sqrt_s)
    if cm_momentum <= 0.0 or integral <= 0.0:
        return 0.0
    momentum_factor = pcm_sqr(sqrt_s, type_c.mass, type_d.mass) / (cm_momentum * integral)
    return spin_factor * symmetry_factor * momentum_factor


def nnbar_creation_cross_sections(type_a: ParticleType, type_b: ParticleType, sqrt_s: float,
                                  cm_momentum: float) -> List[CollisionBranch]:
    """rho0 h1(1170) -> p pbar and n nbar by detailed balance; empty below 2 m_N."""
    type_n = ParticleType.find(PDG_PROTON)
    type_nbar = ParticleType.find(-PDG_PROTON)
    if sqrt_s - 2.0 * type_n.mass < 0.0:
        return []

    s = sqrt_s * sqrt_s
    xs = (detailed_balance_factor_rr(sqrt_s, cm_momentum, type_a, type_b, type_n, type_nbar)
          * max(0.0, ppbar_total(s) - ppbar_elastic(s)))
    logger.debug(f"NNbar creation cross section is {xs:.6g} mb")
    return [
        CollisionBranch(ProcessType.TWO_TO_TWO, xs, (type_n, type_nbar)),
        CollisionBranch(ProcessType.TWO_TO_TWO, xs,
                        (ParticleType.find(PDG_NEUTRON), ParticleType.find(-PDG_NEUTRON))),
    ]


def is_nnbar_pair(type_a: ParticleType, type_b: ParticleType) -> bool:
    return type_a.is_nucleon and type_b == type_a.get_antiparticle()


def is_rho_h1_pair(type_a: ParticleType, type_b: ParticleType) -> bool:
    return {type_a.pdg, type_b.pdg} == {PDG_RHO_ZERO, PDG_H1}
