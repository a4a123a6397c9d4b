"""
Outgoing particles for a selected collision branch.

Every generator works in the centre-of-mass frame of the incoming pair and
returns the outgoing particles there; ScatterAction places them at the
interaction point and boosts them into the lab afterwards.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, List

import numpy as np

from .constants import NUCLEON_MASS, REALLY_SMALL, SOFT_STRING_MAX_TRIES
from .exceptions import InvalidResonanceFormation, InvalidScatterAction, StringExcitationError
from .kinematics import (
    FourVector,
    direction_from_angles,
    get_t_range,
    isotropic_direction,
    plab_from_s,
    rotate_z_axis_to,
    sample_exponential,
    two_body_momenta,
)
from .parametrizations import cugnon_bnp, cugnon_bpp, np_forward_backward_asymmetry
from .particles import ParticleData, ParticleType, sample_resonance_masses
from .process import CollisionBranch, ProcessType
from .strings import (
    assign_formation_times,
    assign_rank_suppression,
    convert_neutral_kaon,
    inherit_formation,
    sort_by_longitudinal_momentum,
)

if TYPE_CHECKING:
    from .scatter_action import ScatterAction

logger = logging.getLogger(__name__)


def generate_outgoing(action: "ScatterAction", branch: CollisionBranch) -> List[ParticleData]:
    """Dispatch on the branch's process type."""
    process = branch.process_type
    if process is ProcessType.ELASTIC:
        return elastic_scattering(action)
    elif process is ProcessType.TWO_TO_ONE:
        return resonance_formation(action, branch)
    elif process is ProcessType.TWO_TO_TWO:
        return inelastic_scattering(action, branch)
    elif process is ProcessType.STRING_SOFT:
        return string_excitation_soft(action)
    elif process is ProcessType.STRING_HARD:
        return string_excitation_hard(action)
    raise InvalidScatterAction(
        f"Invalid process type {process!r} requested "
        f"(PDG codes {action.incoming_particles[0].pdgcode}, {action.incoming_particles[1].pdgcode})"
    )


# -------------------- Angular distributions --------------------

def _cos_theta_from_t(t: float, t_forward: float, t_backward: float) -> float:
    if abs(t_backward - t_forward) < REALLY_SMALL * REALLY_SMALL:
        return 1.0
    return 1.0 - 2.0 * (t - t_forward) / (t_backward - t_forward)


def _sample_t_direction(action: "ScatterAction", masses, slope: float,
                        backward_weight: float) -> np.ndarray:
    """Direction from exp(slope * t); the backward peak gets relative weight ``backward_weight``."""
    rng = action.rng
    a, b = action.incoming_particles
    t_forward, t_backward = get_t_range(action.sqrt_s(), a.effective_mass, b.effective_mass,
                                        masses[0], masses[1])
    t = sample_exponential(max(slope, REALLY_SMALL), t_forward, t_backward, rng)
    if rng.random() > 1.0 / (1.0 + backward_weight):
        t = t_forward + t_backward - t
    cos_theta = _cos_theta_from_t(t, t_forward, t_backward)
    return direction_from_angles(cos_theta, rng.uniform(0.0, 2.0 * math.pi))


def _sample_direction(action: "ScatterAction", outgoing: List[ParticleData], masses,
                      elastic: bool) -> np.ndarray:
    """Direction of the first outgoing particle relative to incoming particle A."""
    type_a, type_b = (p.type for p in action.incoming_particles)
    same_sign_nn = (type_a.is_nucleon and type_b.is_nucleon
                    and type_a.antiparticle_sign == type_b.antiparticle_sign)
    if action.isotropic or not same_sign_nn:
        return isotropic_direction(action.rng)

    p_lab = plab_from_s(action.mandelstam_s(), NUCLEON_MASS, NUCLEON_MASS)
    if elastic:
        if type_a.pdg == type_b.pdg:
            return _sample_t_direction(action, masses, cugnon_bpp(p_lab), 1.0)
        return _sample_t_direction(action, masses, cugnon_bnp(p_lab),
                                   np_forward_backward_asymmetry(p_lab))
    if any(p.type.is_delta for p in outgoing):
        return _sample_t_direction(action, masses, cugnon_bpp(p_lab), 1.0)
    return isotropic_direction(action.rng)


def _sample_angles(action: "ScatterAction", outgoing: List[ParticleData], masses,
                   elastic: bool = False) -> None:
    """Back-to-back CM momenta at the given masses, angles measured from A's CM direction."""
    direction = _sample_direction(action, outgoing, masses, elastic)
    axis = action.incoming_particles[0].momentum.boost(-action.beta_cm()).threevec
    p_c, p_d = two_body_momenta(action.sqrt_s(), masses[0], masses[1],
                                rotate_z_axis_to(direction, axis))
    outgoing[0].set_4momentum(p_c)
    outgoing[1].set_4momentum(p_d)


def _set_formation_from_incoming(action: "ScatterAction", outgoing: List[ParticleData]) -> None:
    """Later incoming formation time and its scaling factor if still forming, else the execution time."""
    a, b = action.incoming_particles
    time = action.time_of_execution
    later = a if a.formation_time > b.formation_time else b
    if a.formation_time > time or b.formation_time > time:
        for particle in outgoing:
            particle.formation_time = later.formation_time
            particle.cross_section_scaling_factor = later.cross_section_scaling_factor
    else:
        for particle in outgoing:
            particle.formation_time = time


# -------------------- Elastic / 2->1 / 2->2 --------------------

def elastic_scattering(action: "ScatterAction") -> List[ParticleData]:
    """Copies of the incoming pair with resampled CM momenta at fixed effective masses."""
    outgoing = [p.copy() for p in action.incoming_particles]
    masses = (outgoing[0].effective_mass, outgoing[1].effective_mass)
    _sample_angles(action, outgoing, masses, elastic=True)
    return outgoing


def resonance_formation(action: "ScatterAction", branch: CollisionBranch) -> List[ParticleData]:
    """The resonance at rest in the CM frame, carrying the full collision energy."""
    if branch.particle_number != 1:
        a, b = action.incoming_particles
        raise InvalidResonanceFormation(
            f"Incorrect number of particles in final state: {branch.particle_number} "
            f"({a.pdgcode} + {b.pdgcode})"
        )
    outgoing = branch.particle_list()
    outgoing[0].set_4momentum(FourVector(action.kinetic_energy_cms(), 0.0, 0.0, 0.0))
    _set_formation_from_incoming(action, outgoing)
    logger.debug(f"Momentum of the new particle: {outgoing[0].momentum}")
    return outgoing


def _outgoing_masses(types: List[ParticleType], sqrt_s: float, rng) -> tuple:
    type_c, type_d = types
    if type_c.is_stable and type_d.is_stable:
        return type_c.mass, type_d.mass
    if not type_c.is_stable and type_d.is_stable:
        return type_c.sample_resonance_mass(type_d.mass, sqrt_s, rng), type_d.mass
    if type_c.is_stable and not type_d.is_stable:
        return type_c.mass, type_d.sample_resonance_mass(type_c.mass, sqrt_s, rng)
    return sample_resonance_masses(type_c, type_d, sqrt_s, rng)


def inelastic_scattering(action: "ScatterAction", branch: CollisionBranch) -> List[ParticleData]:
    """Two-body final state; resonance masses are sampled from their spectral functions."""
    if branch.particle_number != 2:
        raise InvalidScatterAction(
            f"2->2 branch with {branch.particle_number} outgoing particles: {branch!r}"
        )
    outgoing = branch.particle_list()
    masses = _outgoing_masses(list(branch.particle_types), action.sqrt_s(), action.rng)
    _sample_angles(action, outgoing, masses)
    _set_formation_from_incoming(action, outgoing)
    return outgoing


# -------------------- Strings --------------------

def string_excitation_hard(action: "ScatterAction") -> List[ParticleData]:
    """
    Hard string excitation through the action's HardEventGenerator.

    Events are generated until one succeeds. The hadrons are sorted by
    leading-ness (|p_z| along the beam), get rank-dependent cross-section
    scaling factors and a dilated formation time, and are rotated from the
    generator frame onto the collision axis.
    """
    generator = action.hard_generator
    if generator is None:
        raise InvalidScatterAction("A HardEventGenerator is required for hard string excitation")
    a, b = action.incoming_particles
    rng = action.rng
    seed = int(rng.integers(0, 2**31 - 1))
    logger.debug(f"Hard string of {a.pdgcode} + {b.pdgcode} at sqrt(s) = {action.sqrt_s():.4f} GeV, seed {seed}")
    if not generator.init(a.pdgcode, b.pdgcode, action.sqrt_s(), seed):
        raise StringExcitationError(f"{generator.name} failed to initialize")

    while not generator.next():
        pass

    hadrons = []
    for pdg, momentum in generator.final_hadrons():
        ptype = ParticleType.find(convert_neutral_kaon(pdg, rng))
        hadrons.append(ParticleData(ptype, momentum=momentum))

    hadrons = sort_by_longitudinal_momentum(hadrons)
    assign_rank_suppression(hadrons, a.is_baryon or b.is_baryon)

    axis = a.momentum.boost(-action.beta_cm()).threevec
    for hadron in hadrons:
        hadron.set_4momentum(FourVector.from_threevec(
            hadron.momentum.E, rotate_z_axis_to(hadron.momentum.threevec, axis)))

    assign_formation_times(hadrons, action.time_of_execution,
                           action.string_formation_time, action.beta_cm())
    inherit_formation(hadrons, action.incoming_particles, action.time_of_execution)
    return hadrons


def string_excitation_soft(action: "ScatterAction") -> List[ParticleData]:
    """
    Soft string excitation through the action's StringProcess.

    The subprocess is drawn from the action's string partition; the
    collaborator gets up to SOFT_STRING_MAX_TRIES attempts to produce it.
    """
    process = action.string_process
    if process is None:
        raise InvalidScatterAction("A StringProcess is required for soft string excitation")
    partition = action.string_partition
    if partition is None or partition.soft <= 0.0:
        raise InvalidScatterAction("Soft string excitation without string sub-cross-sections")

    process.init(action.incoming_particles, action.time_of_execution, action.gamma_cm())
    iproc = partition.select_soft_subprocess(action.rng.uniform(0.0, partition.soft))
    attempts = {
        0: lambda: process.next_sdiff(True),
        1: lambda: process.next_sdiff(False),
        2: process.next_ddiff,
        3: process.next_ndiff_soft,
    }[iproc]

    for ntry in range(1, SOFT_STRING_MAX_TRIES + 1):
        if attempts():
            break
    else:
        raise StringExcitationError(
            f"Soft string subprocess {iproc} failed {SOFT_STRING_MAX_TRIES} times"
        )
    logger.debug(f"Soft string subprocess {iproc} succeeded after {ntry} tries")

    outgoing = list(process.final_state())
    inherit_formation(outgoing, action.incoming_particles, action.time_of_execution)
    return outgoing
