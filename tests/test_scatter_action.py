"""
ScatterAction end to end: channel enumeration, selection and lab-frame
final states.
"""
import logging

import numpy as np
import pytest

from scatterx import (
    ChannelSelectionError,
    InvalidScatterAction,
    NNbarTreatment,
    ParticleType,
    ProcessType,
    ScatterAction,
    ScatterConfig,
)
from scatterx.config import IncludedReactions
from scatterx.conservation import check_conservation, conserves_quantum_numbers
from scatterx.kinematics import FourVector, pcm
from scatterx.parametrizations import ppbar_total
from scatterx.particles import ParticleData
from scatterx.process import CollisionBranch


def _t(pdg):
    return ParticleType.find(pdg)


def _momenta(particles):
    return [p.momentum for p in particles]


# ------------------------------ End to end --------------------------------
def test_proton_proton_below_resonance_threshold(make_pair, rng):
    """pp at 2 GeV: elastic only, no strings, four-momentum conserved in the lab."""
    a, b = make_pair(2212, 2212, 2.0, beta=(0.0, 0.0, 0.3))
    action = ScatterAction(a, b, 0.5, rng=rng)
    action.add_all_processes(ScatterConfig(low_snn_cut=1.9))

    kinds = {br.process_type for br in action.branches}
    assert ProcessType.ELASTIC in kinds
    assert not any(kind.is_string for kind in kinds)
    assert action.string_partition is None

    outgoing = action.generate_final_state()
    assert len(outgoing) == 2
    assert action.process_type is ProcessType.ELASTIC
    assert check_conservation(_momenta([a, b]), _momenta(outgoing), tol=1e-9)
    assert action.partial_weight() == pytest.approx(action.cross_section())
    print("✓ pp elastic conserves four-momentum")


def test_elastic_cutoff_removes_only_branch(make_pair, rng):
    a, b = make_pair(2212, 2212, 1.95)
    action = ScatterAction(a, b, 0.0, rng=rng)
    action.add_all_processes(ScatterConfig())
    assert len(action.branches) == 0
    with pytest.raises(ChannelSelectionError):
        action.generate_final_state()


def test_resonance_channels_open_above_threshold(make_pair, rng):
    a, b = make_pair(2212, 2212, 2.3, beta=(0.0, 0.0, 0.4))
    action = ScatterAction(a, b, 0.0, rng=rng)
    action.add_all_processes(ScatterConfig(strings_switch=False,
                                           included_2to2=IncludedReactions.NN_TO_NR))
    inelastic = action.branches.of_type(ProcessType.TWO_TO_TWO)
    assert inelastic
    assert len(inelastic) == len(action.branches)
    for branch in inelastic:
        assert conserves_quantum_numbers((a.type, b.type), branch.particle_types)
        assert any(t.is_delta or t.is_nstar for t in branch.particle_types)

    outgoing = action.generate_final_state()
    assert action.process_type is ProcessType.TWO_TO_TWO
    resonance = next(p for p in outgoing if not p.type.is_stable)
    assert resonance.effective_mass >= resonance.type.min_mass
    assert check_conservation(_momenta([a, b]), _momenta(outgoing), tol=1e-9)
    print("✓ NN -> NR conserves four-momentum in the lab")


def test_pion_nucleon_forms_delta(make_pair, rng):
    a, b = make_pair(211, 2212, 1.232, beta=(0.1, 0.0, -0.2), offset=(0.0, 0.0, 1.0))
    action = ScatterAction(a, b, 1.5, rng=rng)
    action.add_all_processes(ScatterConfig(included_2to2=IncludedReactions.NONE))
    assert [br.process_type for br in action.branches] == [ProcessType.TWO_TO_ONE]

    outgoing = action.generate_final_state()
    assert len(outgoing) == 1
    assert outgoing[0].pdgcode == 2224
    assert check_conservation(_momenta([a, b]), _momenta(outgoing), tol=1e-9)
    assert outgoing[0].position.to_tuple() == pytest.approx((1.5, 0.0, 0.0, 0.0))
    assert outgoing[0].formation_time == 1.5


def test_string_regime_at_high_energy(make_pair, make_string_process, make_hard_generator, rng):
    a, b = make_pair(2212, 2212, 20.0)
    action = ScatterAction(a, b, 0.0, string_process=make_string_process(),
                           hard_generator=make_hard_generator(), rng=rng)
    action.add_all_processes(ScatterConfig())
    kinds = [br.process_type for br in action.branches]
    assert kinds == [ProcessType.ELASTIC, ProcessType.STRING_SOFT, ProcessType.STRING_HARD]
    assert action.string_partition is not None

    outgoing = action.generate_final_state()
    assert len(outgoing) >= 2
    assert check_conservation(_momenta([a, b]), _momenta(outgoing), tol=1e-8)


def test_string_final_state_logs_momentum_difference(make_pair, make_hard_generator, rng, caplog):
    a, b = make_pair(2212, 2212, 20.0)
    action = ScatterAction(a, b, 0.0, hard_generator=make_hard_generator(), rng=rng)
    action.add_collision(CollisionBranch(ProcessType.STRING_HARD, 1.0))
    with caplog.at_level(logging.DEBUG, logger="scatterx.scatter_action"):
        action.generate_final_state()
    assert any("Four-momentum difference after string fragmentation" in r.getMessage()
               for r in caplog.records)


def test_nnbar_annihilation_closes_total(make_pair, rng):
    a, b = make_pair(2212, -2212, 2.2)
    action = ScatterAction(a, b, 0.0, rng=rng)
    action.add_all_processes(ScatterConfig(nnbar_treatment=NNbarTreatment.RESONANCES))
    assert action.cross_section() == pytest.approx(ppbar_total(action.mandelstam_s()), rel=1e-9)
    last = action.branches[len(action.branches) - 1]
    assert {t.pdg for t in last.particle_types} == {113, 10223}


def test_nnbar_without_treatment_has_no_annihilation(make_pair, rng):
    a, b = make_pair(2212, -2212, 2.2)
    action = ScatterAction(a, b, 0.0, rng=rng)
    action.add_all_processes(ScatterConfig())
    assert [br.process_type for br in action.branches] == [ProcessType.ELASTIC]


def test_nnbar_string_treatment_adds_no_explicit_channel(make_pair, rng):
    a, b = make_pair(2212, -2212, 2.2)
    action = ScatterAction(a, b, 0.0, rng=rng)
    action.add_all_processes(ScatterConfig(nnbar_treatment=NNbarTreatment.STRINGS))
    assert [br.process_type for br in action.branches] == [ProcessType.ELASTIC]


def test_rho_h1_creates_nucleon_pairs(make_pair, rng):
    a, b = make_pair(113, 10223, 2.2, offset=(2.0, 0.0, 0.0))
    action = ScatterAction(a, b, 3.0, rng=rng)
    action.add_all_processes(ScatterConfig(nnbar_treatment=NNbarTreatment.RESONANCES))
    assert len(action.branches) == 2

    outgoing = action.generate_final_state()
    assert sorted(p.pdgcode for p in outgoing) in ([-2212, 2212], [-2112, 2112])
    assert check_conservation(_momenta([a, b]), _momenta(outgoing), tol=1e-9)
    for particle in outgoing:
        assert particle.position.to_tuple() == pytest.approx((3.0, 0.0, 0.0, 0.0))


# ----------------------------- Life cycle ---------------------------------
def test_final_state_only_once(make_pair, rng):
    a, b = make_pair(2212, 2212, 2.0)
    action = ScatterAction(a, b, 0.0, rng=rng)
    action.add_all_processes(ScatterConfig())
    action.generate_final_state()
    with pytest.raises(InvalidScatterAction):
        action.generate_final_state()


def test_incoming_particles_untouched(make_pair, rng):
    a, b = make_pair(2212, 2212, 2.0, offset=(0.0, 1.0, 0.0))
    before = (a.momentum.to_tuple(), b.momentum.to_tuple())
    action = ScatterAction(a, b, 0.0, rng=rng)
    action.add_all_processes(ScatterConfig())
    outgoing = action.generate_final_state()
    assert (a.momentum.to_tuple(), b.momentum.to_tuple()) == before
    assert all(p is not a and p is not b for p in outgoing)
    # elastic keeps the incoming positions
    assert outgoing[0].position.to_tuple() == a.position.to_tuple()
    assert outgoing[1].position.to_tuple() == b.position.to_tuple()


def test_action_owns_incoming_copies(make_pair, rng):
    a, b = make_pair(2212, 2212, 2.5, offset=(0.0, 1.0, 0.0))
    action = ScatterAction(a, b, 0.0, rng=rng)
    a.momentum.x3 = 0.0
    b.position.x2 = 7.0
    assert action.sqrt_s() == pytest.approx(2.5, rel=1e-9)
    assert action.incoming_particles[1].position.x2 == pytest.approx(-0.5)


def test_outgoing_particles_own_their_vectors(make_pair, rng):
    a, b = make_pair(2212, 2212, 2.3)
    action = ScatterAction(a, b, 0.0, rng=rng)
    action.add_collision(CollisionBranch(ProcessType.TWO_TO_TWO, 1.0, (_t(2214), _t(2212))))
    first, second = action.generate_final_state()
    first.position.x1 = 5.0
    assert second.position.x1 == pytest.approx(0.0)

    a, b = make_pair(2212, 2212, 2.0, offset=(0.0, 1.0, 0.0))
    elastic = ScatterAction(a, b, 0.0, rng=rng)
    elastic.add_all_processes(ScatterConfig(low_snn_cut=1.9))
    outgoing = elastic.generate_final_state()
    outgoing[0].position.x2 = 9.0
    assert a.position.x2 == pytest.approx(0.5)
    assert elastic.incoming_particles[0].position.x2 == pytest.approx(0.5)


def test_manual_branches(make_pair, rng):
    a, b = make_pair(2212, 2212, 2.3)
    action = ScatterAction(a, b, 0.0, rng=rng)
    action.add_collisions([
        CollisionBranch(ProcessType.TWO_TO_TWO, 0.0, (_t(2224), _t(2112))),
        CollisionBranch(ProcessType.TWO_TO_TWO, 2.0, (_t(2214), _t(2212))),
    ])
    assert len(action.branches) == 1
    assert action.raw_weight_value() == 2.0
    outgoing = action.generate_final_state()
    assert [p.pdgcode for p in outgoing] == [2214, 2212]


def test_from_config_copies_settings(make_pair):
    a, b = make_pair(2212, 2212, 2.0)
    config = ScatterConfig(isotropic=True, string_formation_time=0.8)
    action = ScatterAction.from_config(a, b, 1.0, config)
    assert action.isotropic
    assert action.string_formation_time == 0.8
    assert action.time_of_execution == 1.0


# ------------------------------ Kinematics --------------------------------
def test_kinematic_accessors(make_pair):
    beta = (0.0, 0.0, 0.6)
    a, b = make_pair(2212, 2112, 2.5, beta=beta)
    action = ScatterAction(a, b, 0.0)
    assert action.sqrt_s() == pytest.approx(2.5)
    assert action.mandelstam_s() == pytest.approx(6.25)
    assert action.kinetic_energy_cms() == pytest.approx(2.5)
    assert action.beta_cm() == pytest.approx(np.array(beta))
    assert action.gamma_cm() == pytest.approx(1.25)
    assert action.cm_momentum() == pytest.approx(pcm(2.5, 0.938, 0.938))
    assert action.cm_momentum_squared() == pytest.approx(pcm(2.5, 0.938, 0.938) ** 2)


def test_transverse_distance(make_pair):
    a, b = make_pair(2212, 2212, 2.5, offset=(1.0, 0.0, 0.0))
    assert ScatterAction(a, b, 0.0).transverse_distance_sqr() == pytest.approx(1.0)
    # separation along the collision axis does not count
    a, b = make_pair(2212, 2212, 2.5, offset=(0.0, 0.0, 3.0))
    assert ScatterAction(a, b, 0.0).transverse_distance_sqr() == pytest.approx(0.0, abs=1e-12)


def test_transverse_distance_without_relative_momentum():
    proton = _t(2212)
    a = ParticleData(proton, position=FourVector(0.0, 1.0, 2.0, 0.0))
    b = ParticleData(proton, position=FourVector(0.0, 0.0, 0.0, 2.0))
    assert ScatterAction(a, b, 0.0).transverse_distance_sqr() == pytest.approx(9.0)


def test_interaction_point(make_pair):
    a, b = make_pair(2212, 2212, 2.5, offset=(2.0, 0.0, 0.0))
    a.set_4position(FourVector(0.0, 3.0, 1.0, 0.0))
    b.set_4position(FourVector(0.0, 1.0, -1.0, 4.0))
    point = ScatterAction(a, b, 7.0).get_interaction_point()
    assert point.to_tuple() == pytest.approx((7.0, 2.0, 0.0, 2.0))


# --------------------------- Ordering / display ---------------------------
def test_ordering_and_repr(make_pair, rng):
    a, b = make_pair(2212, 2212, 2.0)
    early = ScatterAction(a, b, 0.5, rng=rng)
    late = ScatterAction(a, b, 1.5, rng=rng)
    assert early < late and not late < early
    assert sorted([late, early])[0] is early
    assert repr(early) == "Scatter of [p, p] (not performed)"
    early.add_all_processes(ScatterConfig())
    early.generate_final_state()
    assert repr(early) == "Scatter of [p, p] to [p, p]"
