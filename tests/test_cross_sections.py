import math

import pytest

from scatterx.config import IncludedReactions
from scatterx.cross_sections import (
    StringPartition,
    detailed_balance_factor_rr,
    elastic_cross_section,
    elastic_parametrization,
    high_energy_cross_section,
    is_nnbar_pair,
    is_rho_h1_pair,
    nn_to_resonance_cross_sections,
    nnbar_annihilation_cross_section,
    nnbar_creation_cross_sections,
    partition_string_cross_section,
    representative_pdg,
    resonance_cross_sections,
    string_excitation_cross_section,
    string_excitation_cross_sections,
    two_to_one_formation,
    two_to_two_cross_sections,
)
from scatterx.exceptions import InvalidScatterAction, StringPartitionError
from scatterx.kinematics import pcm, pcm_sqr, plab_from_s
from scatterx.parametrizations import (
    piminusp_elastic,
    piplusp_elastic,
    pp_elastic,
    ppbar_elastic,
    ppbar_total,
    string_hard_cross_section,
)
from scatterx.particles import ParticleType
from scatterx.process import ProcessType


def _t(pdg):
    return ParticleType.find(pdg)


def _assert_partition(partition, sig_all):
    values = partition.as_array()
    assert (values >= 0.0).all()
    assert partition.total == pytest.approx(sig_all, abs=1e-9)


# ------------------------------- Elastic ----------------------------------
def test_elastic_constant_overrides_parametrization():
    p = _t(2212)
    branch = elastic_cross_section(5.0, p, p, 2.0)
    assert branch.process_type is ProcessType.ELASTIC
    assert branch.weight == 5.0
    assert branch.particle_types == (p, p)


def test_elastic_nucleon_parametrizations():
    p, n, pbar = _t(2212), _t(2112), _t(-2212)
    assert elastic_cross_section(-1.0, p, p, 2.0).weight == pytest.approx(23.5, abs=0.05)
    assert elastic_parametrization(n, n, 2.0) == pytest.approx(pp_elastic(4.0))
    assert elastic_parametrization(p, pbar, 2.2) == pytest.approx(ppbar_elastic(2.2 ** 2))
    assert elastic_parametrization(p, n, 2.5) > 0.0


def test_elastic_pion_nucleon_isospin():
    p, n = _t(2212), _t(2112)
    pip, pim, pi0 = _t(211), _t(-211), _t(111)
    p_lab = plab_from_s(1.5 ** 2, pip.mass, p.mass)
    assert elastic_parametrization(pip, p, 1.5) == pytest.approx(piplusp_elastic(p_lab))
    assert elastic_parametrization(p, pim, 1.5) == pytest.approx(piminusp_elastic(p_lab))
    # pi- n mirrors pi+ p
    assert elastic_parametrization(pim, n, 1.5) == pytest.approx(piplusp_elastic(p_lab))
    assert elastic_parametrization(pi0, p, 1.5) == pytest.approx(
        0.5 * (piplusp_elastic(p_lab) + piminusp_elastic(p_lab)))


def test_no_fit_gives_zero():
    assert elastic_parametrization(_t(211), _t(-211), 1.0) == 0.0
    assert high_energy_cross_section(_t(113), _t(10223), 2.2) == 0.0
    assert elastic_cross_section(-1.0, _t(113), _t(10223), 2.2).weight == 0.0


# --------------------------------- 2->1 -----------------------------------
def test_delta_formation_near_pole(make_pair):
    a, b = make_pair(211, 2212, 1.232)
    p2 = pcm_sqr(1.232, a.effective_mass, b.effective_mass)
    xs = two_to_one_formation(a, b, _t(2224), 1.232, p2)
    assert 100.0 < xs < 400.0


def test_formation_needs_conserved_quantum_numbers(make_pair):
    a, b = make_pair(-211, 2212, 1.232)
    p2 = pcm_sqr(1.232, a.effective_mass, b.effective_mass)
    assert two_to_one_formation(a, b, _t(2224), 1.232, p2) == 0.0
    assert two_to_one_formation(a, b, _t(2214), 1.232, p2) == 0.0
    assert two_to_one_formation(a, b, _t(2114), 1.232, p2) > 0.0


def test_resonance_branches_of_pi_plus_p(make_pair):
    a, b = make_pair(211, 2212, 1.232)
    branches = resonance_cross_sections(a, b, 1.232, pcm_sqr(1.232, a.effective_mass, b.effective_mass))
    assert [br.particle_types[0].pdg for br in branches] == [2224]
    assert branches[0].process_type is ProcessType.TWO_TO_ONE


def test_nucleon_pair_forms_no_resonance(make_pair):
    a, b = make_pair(2212, 2212, 2.3)
    assert resonance_cross_sections(a, b, 2.3, pcm_sqr(2.3, a.effective_mass, b.effective_mass)) == []


# --------------------------------- 2->2 -----------------------------------
def test_nn_to_nr_isospin_ratio(make_pair):
    a, b = make_pair(2212, 2212, 2.3)
    branches = nn_to_resonance_cross_sections(a, b, 2.3, pcm(2.3, a.effective_mass, b.effective_mass))
    weights = {tuple(t.pdg for t in br.particle_types): br.weight for br in branches}
    assert weights[(2224, 2112)] / weights[(2214, 2212)] == pytest.approx(3.0)
    assert all(br.process_type is ProcessType.TWO_TO_TWO for br in branches)
    # every branch keeps charge 2 and baryon number 2
    for br in branches:
        assert sum(t.charge for t in br.particle_types) == 2
        assert sum(t.baryon_number for t in br.particle_types) == 2


def test_nn_to_nr_closed_below_threshold(make_pair):
    a, b = make_pair(2212, 2212, 2.0)
    assert nn_to_resonance_cross_sections(a, b, 2.0, pcm(2.0, 0.938, 0.938)) == []


def test_two_to_two_respects_included_reactions(make_pair):
    a, b = make_pair(2212, 2112, 2.3)
    p = pcm(2.3, a.effective_mass, b.effective_mass)
    assert two_to_two_cross_sections(a, b, 2.3, p, IncludedReactions.ELASTIC) == []
    assert len(two_to_two_cross_sections(a, b, 2.3, p, IncludedReactions.ALL)) > 0


# -------------------------------- Strings ---------------------------------
@pytest.mark.parametrize("sig_all, diffractive, hard", [
    (30.0, (2.0, 2.0, 1.0), 0.5),
    (4.0, (2.0, 2.0, 1.0), 0.5),
    (3.0, (2.0, 2.0, 1.0), 0.0),
    (5.0, (0.0, 0.0, 1.0), 1.0),
    (5.0, (3.0, 1.0, 1.0), 2.0),
    (0.0, (1.0, 1.0, 1.0), 1.0),
])
def test_partition_sums_to_string_cross_section(sig_all, diffractive, hard):
    partition = partition_string_cross_section(sig_all, diffractive, hard)
    _assert_partition(partition, sig_all)


def test_partition_excess_diffraction_scales_single_diffractive():
    partition = partition_string_cross_section(3.0, (2.0, 2.0, 1.0), 0.5)
    assert partition.double_diffr == 0.0
    assert partition.single_diffr_ax == pytest.approx(1.5)
    assert partition.single_diffr_xb == pytest.approx(1.5)
    assert partition.nondiffractive_soft == 0.0 and partition.nondiffractive_hard == 0.0


def test_partition_soft_hard_split():
    partition = partition_string_cross_section(30.0, (2.0, 2.0, 1.0), 5.0)
    nondiff = 25.0
    assert partition.nondiffractive_soft == pytest.approx(nondiff * math.exp(-5.0 / nondiff))
    assert partition.soft == pytest.approx(30.0 - partition.nondiffractive_hard)


def test_partition_rejects_negative_input():
    with pytest.raises(ValueError):
        partition_string_cross_section(10.0, (-1.0, 2.0, 1.0), 0.0)


def test_partition_error_type():
    assert issubclass(StringPartitionError, ArithmeticError)


def test_soft_subprocess_selection():
    partition = StringPartition(1.0, 2.0, 3.0, 4.0, 5.0)
    assert partition.soft == pytest.approx(10.0)
    assert partition.select_soft_subprocess(0.5) == 0
    assert partition.select_soft_subprocess(1.0) == 1
    assert partition.select_soft_subprocess(5.9) == 2
    assert partition.select_soft_subprocess(9.99) == 3
    assert partition.select_soft_subprocess(10.0) == 3


def test_string_branches_need_process():
    p = _t(2212)
    with pytest.raises(InvalidScatterAction):
        string_excitation_cross_sections(p, p, 20.0, None)


def test_string_branches_at_high_energy(make_string_process):
    p = _t(2212)
    process = make_string_process()
    branches, partition = string_excitation_cross_sections(p, p, 20.0, process)
    sig_all = string_excitation_cross_section(p, p, 20.0).weight
    assert sig_all > 5.0
    _assert_partition(partition, sig_all)
    kinds = [br.process_type for br in branches]
    assert kinds == [ProcessType.STRING_SOFT, ProcessType.STRING_HARD]
    assert sum(br.weight for br in branches) == pytest.approx(sig_all)
    assert process.calls[0] == ("diffractive", 2212, 2212, 20.0)


def test_representative_species():
    assert representative_pdg(_t(2214)) == 2212
    assert representative_pdg(_t(-2112)) == -2212
    assert representative_pdg(_t(-211)) == 211


def test_hard_string_cross_section_threshold():
    assert string_hard_cross_section(9.0, 2) == 0.0
    assert string_hard_cross_section(20.0, 2) > 0.0


# --------------------------- Nucleon-antinucleon --------------------------
def test_annihilation_closes_total():
    s = 2.2 ** 2
    branch = nnbar_annihilation_cross_section(2.2, ppbar_elastic(s))
    assert branch.weight + ppbar_elastic(s) == pytest.approx(ppbar_total(s))
    assert {t.pdg for t in branch.particle_types} == {113, 10223}


def test_annihilation_never_negative():
    assert nnbar_annihilation_cross_section(2.2, 1e4).weight == 0.0


def test_creation_threshold_and_branches():
    rho, h1 = _t(113), _t(10223)
    assert nnbar_creation_cross_sections(rho, h1, 1.8, pcm(1.8, rho.mass, h1.mass)) == []
    branches = nnbar_creation_cross_sections(rho, h1, 2.2, pcm(2.2, rho.mass, h1.mass))
    assert [tuple(t.pdg for t in br.particle_types) for br in branches] == [(2212, -2212), (2112, -2112)]
    assert branches[0].weight > 0.0
    assert branches[0].weight == branches[1].weight


def test_detailed_balance_factor_vanishes_without_momentum():
    rho, h1, p, pbar = _t(113), _t(10223), _t(2212), _t(-2212)
    assert detailed_balance_factor_rr(2.2, 0.0, rho, h1, p, pbar) == 0.0
    assert detailed_balance_factor_rr(2.2, 0.5, rho, h1, p, pbar) > 0.0


def test_pair_predicates():
    assert is_nnbar_pair(_t(2212), _t(-2212))
    assert is_nnbar_pair(_t(-2112), _t(2112))
    assert not is_nnbar_pair(_t(2212), _t(-2112))
    assert is_rho_h1_pair(_t(10223), _t(113))
    assert not is_rho_h1_pair(_t(113), _t(113))
