"""
ScatterAction: one two-body collision from channel enumeration to the
outgoing particles in the lab frame.

    action = ScatterAction(p_a, p_b, time=1.0, rng=rng)
    action.add_all_processes(ScatterConfig())
    action.generate_final_state()
    action.outgoing_particles
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .channel_selector import choose_channel
from .config import IncludedReactions, NNbarTreatment, ScatterConfig
from .conservation import four_momentum_difference
from .constants import REALLY_SMALL
from .cross_sections import (
    StringPartition,
    elastic_cross_section,
    is_nnbar_pair,
    is_rho_h1_pair,
    nnbar_annihilation_cross_section,
    nnbar_creation_cross_sections,
    resonance_cross_sections,
    string_excitation_cross_sections,
    two_to_two_cross_sections,
)
from .exceptions import InvalidScatterAction
from .final_state import generate_outgoing
from .kinematics import FourVector, gamma_factor, pcm, pcm_sqr, sum_four_vectors
from .particles import ParticleData
from .process import BranchList, CollisionBranch, ProcessType
from .regime import reject_by_nucleon_elastic_cutoff, use_string_fragmentation
from .strings import HardEventGenerator, StringProcess

logger = logging.getLogger(__name__)


class ScatterAction:
    """
    Collision of two particles at a given time.

    The incoming particles are copied on construction and never modified.
    Candidate branches are added with ``add_collision(s)`` or
    ``add_all_processes``; ``generate_final_state`` then selects one branch and
    fills ``outgoing_particles``. It may be called only once per action.

    Args:
        particle_a, particle_b: Incoming particles (lab frame).
        time: Execution time of the collision [fm].
        isotropic: Use isotropic angular distributions for 2->2 processes.
        string_formation_time: Rest-frame formation time of string hadrons [fm].
        string_process: Soft string collaborator, needed for string channels.
        hard_generator: Hard string collaborator, needed for hard string channels.
        rng: Random generator for every draw of this action.
    """

    def __init__(self, particle_a: ParticleData, particle_b: ParticleData, time: float,
                 isotropic: bool = False, string_formation_time: float = 1.0,
                 string_process: Optional[StringProcess] = None,
                 hard_generator: Optional[HardEventGenerator] = None,
                 rng: Optional[np.random.Generator] = None):
        self._incoming: Tuple[ParticleData, ParticleData] = (particle_a.copy(), particle_b.copy())
        self.time_of_execution = time
        self.isotropic = isotropic
        self.string_formation_time = string_formation_time
        self.string_process = string_process
        self.hard_generator = hard_generator
        self.rng = rng or np.random.default_rng()

        self._branches = BranchList()
        self.string_partition: Optional[StringPartition] = None
        self.outgoing_particles: List[ParticleData] = []
        self.process_type: Optional[ProcessType] = None
        self._partial_cross_section = 0.0
        self._finalized = False

    @classmethod
    def from_config(cls, particle_a: ParticleData, particle_b: ParticleData, time: float,
                    config: ScatterConfig, **collaborators) -> "ScatterAction":
        """Action using the angular and formation-time settings of ``config``."""
        return cls(particle_a, particle_b, time, isotropic=config.isotropic,
                   string_formation_time=config.string_formation_time, **collaborators)

    # -------------------- Branches --------------------

    @property
    def incoming_particles(self) -> Tuple[ParticleData, ParticleData]:
        return self._incoming

    @property
    def branches(self) -> BranchList:
        return self._branches

    def add_collision(self, branch: CollisionBranch) -> None:
        self._branches.add(branch)

    def add_collisions(self, branches: Iterable[CollisionBranch]) -> None:
        self._branches.extend(branches)

    def add_all_processes(self, config: ScatterConfig) -> None:
        """
        Add every channel allowed by ``config``.

        Elastic scattering is always considered (subject to the nucleon
        cutoff); then either string excitation or resonance formation plus
        2->2 channels, as decided once by the regime mixer. N-Nbar
        annihilation comes last since it closes the gap to the total cross
        section.
        """
        type_a, type_b = (p.type for p in self._incoming)
        srts = self.sqrt_s()
        is_string = use_string_fragmentation(type_a, type_b, srts, config.strings_switch, self.rng)

        if (IncludedReactions.ELASTIC in config.included_2to2
                and not reject_by_nucleon_elastic_cutoff(type_a, type_b, srts, config.low_snn_cut)):
            self.add_collision(elastic_cross_section(config.elastic_parameter, type_a, type_b, srts))

        if is_string:
            branches, partition = string_excitation_cross_sections(
                type_a, type_b, srts, self.string_process
            )
            self.string_partition = partition
            self.add_collisions(branches)
        else:
            if config.two_to_one:
                self.add_collisions(resonance_cross_sections(
                    self._incoming[0], self._incoming[1], srts, self.cm_momentum_squared()
                ))
            if config.included_2to2 != IncludedReactions.NONE:
                self.add_collisions(two_to_two_cross_sections(
                    self._incoming[0], self._incoming[1], srts, self.cm_momentum(),
                    config.included_2to2,
                ))

        # STRINGS adds nothing here; NNbar pairs annihilate through string excitation
        if config.nnbar_treatment is NNbarTreatment.RESONANCES:
            if is_nnbar_pair(type_a, type_b):
                self.add_collision(nnbar_annihilation_cross_section(srts, self.cross_section()))
            if is_rho_h1_pair(type_a, type_b):
                self.add_collisions(nnbar_creation_cross_sections(
                    type_a, type_b, srts, self.cm_momentum()
                ))

        logger.debug(f"{type_a.name} + {type_b.name} at sqrt(s) = {srts:.4f} GeV: "
                     f"{len(self._branches)} channels, {self.cross_section():.6g} mb")

    # -------------------- Final state --------------------

    def generate_final_state(self) -> List[ParticleData]:
        """
        Select a branch and produce the outgoing particles in the lab frame.

        Raises:
            InvalidScatterAction: On a second call, an empty channel list or a
                branch that cannot be realized. Nothing is stored on failure.
        """
        if self._finalized:
            raise InvalidScatterAction(f"Final state of {self!r} was already generated")
        self._finalized = True
        logger.debug(f"Incoming particles: {list(self._incoming)}")

        branch = choose_channel(self._branches, self._branches.total, self.rng)
        outgoing = generate_outgoing(self, branch)

        middle_point = self.get_interaction_point()
        beta = self.beta_cm()
        for particle in outgoing:
            if branch.process_type is not ProcessType.ELASTIC:
                particle.set_4position(middle_point)
            particle.boost_momentum(beta)

        if branch.process_type.is_string and logger.isEnabledFor(logging.DEBUG):
            delta = four_momentum_difference([p.momentum for p in self._incoming],
                                             [p.momentum for p in outgoing])
            logger.debug(f"Four-momentum difference after string fragmentation: {delta}")

        self.process_type = branch.process_type
        self._partial_cross_section = branch.weight
        self.outgoing_particles = outgoing
        logger.debug(f"Chosen channel: {branch.process_type.name} -> "
                     f"{[p.type.name for p in outgoing]}")
        return outgoing

    # -------------------- Weights --------------------

    def raw_weight_value(self) -> float:
        """Total cross section of all branches [mb]."""
        return self._branches.total

    def cross_section(self) -> float:
        return self._branches.total

    def partial_weight(self) -> float:
        """Cross section of the selected branch [mb]; 0 before finalization."""
        return self._partial_cross_section

    # -------------------- Kinematics --------------------

    def total_momentum(self) -> FourVector:
        return sum_four_vectors(p.momentum for p in self._incoming)

    def mandelstam_s(self) -> float:
        return self.total_momentum().sqr()

    def sqrt_s(self) -> float:
        return self.total_momentum().mass

    def beta_cm(self) -> np.ndarray:
        return self.total_momentum().velocity()

    def gamma_cm(self) -> float:
        return gamma_factor(self.beta_cm())

    def cm_momentum(self) -> float:
        a, b = self._incoming
        return pcm(self.sqrt_s(), a.effective_mass, b.effective_mass)

    def cm_momentum_squared(self) -> float:
        a, b = self._incoming
        return pcm_sqr(self.sqrt_s(), a.effective_mass, b.effective_mass)

    def kinetic_energy_cms(self) -> float:
        """Total energy in the centre-of-mass frame."""
        return self.sqrt_s()

    def transverse_distance_sqr(self) -> float:
        """
        Squared transverse distance of the pair in the CM frame (UrQMD
        criterion): dr^2 - (dr . dp)^2 / dp^2. Returns dr^2 if the relative
        momentum vanishes.
        """
        beta = self.beta_cm()
        a, b = self._incoming
        pos_diff = a.position.boost(-beta).threevec - b.position.boost(-beta).threevec
        mom_diff = a.momentum.boost(-beta).threevec - b.momentum.boost(-beta).threevec
        dp2 = float(np.dot(mom_diff, mom_diff))
        dr2 = float(np.dot(pos_diff, pos_diff))
        logger.debug(f"Position difference [fm]: {pos_diff}, momentum difference [GeV]: {mom_diff}")
        if dp2 < REALLY_SMALL:
            return dr2
        dpdr = float(np.dot(pos_diff, mom_diff))
        return dr2 - dpdr * dpdr / dp2

    def get_interaction_point(self) -> FourVector:
        """Mean position of the incoming particles at the execution time."""
        a, b = self._incoming
        middle = 0.5 * (a.position.threevec + b.position.threevec)
        return FourVector.from_threevec(self.time_of_execution, middle)

    # -------------------- Ordering / display --------------------

    def __lt__(self, other: "ScatterAction") -> bool:
        return self.time_of_execution < other.time_of_execution

    def __repr__(self) -> str:
        incoming = ", ".join(p.type.name for p in self._incoming)
        if not self.outgoing_particles:
            return f"Scatter of [{incoming}] (not performed)"
        outgoing = ", ".join(p.type.name for p in self.outgoing_particles)
        return f"Scatter of [{incoming}] to [{outgoing}]"
