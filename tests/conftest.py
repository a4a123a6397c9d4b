"""Shared fixtures: seeded generators, particle pairs and fake string collaborators."""
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import numpy as np
import pytest

from scatterx.kinematics import FourVector, pcm
from scatterx.particles import ParticleData, ParticleType
from scatterx.strings import HardEventGenerator, StringProcess


def _make_pair(pdg_a, pdg_b, sqrt_s, beta=(0.0, 0.0, 0.0), offset=(0.0, 0.0, 0.0),
               time=0.0):
    """Head-on pair with total energy sqrt_s in its CM frame, then boosted by ``beta``.

    Particle A moves along +z and sits at ``+offset/2``; B at ``-offset/2``.
    """
    type_a = ParticleType.find(pdg_a)
    type_b = ParticleType.find(pdg_b)
    p = pcm(sqrt_s, type_a.mass, type_b.mass)
    half = 0.5 * np.asarray(offset, dtype=float)
    a = ParticleData(type_a,
                     momentum=FourVector.on_shell(type_a.mass, (0.0, 0.0, p)).boost(beta),
                     position=FourVector.from_threevec(time, half))
    b = ParticleData(type_b,
                     momentum=FourVector.on_shell(type_b.mass, (0.0, 0.0, -p)).boost(beta),
                     position=FourVector.from_threevec(time, -half))
    return a, b


@pytest.fixture
def make_pair():
    return _make_pair


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)


class FakeHardGenerator(HardEventGenerator):
    """
    Produces p, p, pi+, pi-, K_S in the CM frame: pions along x, the kaon at
    rest and the protons sharing the remaining energy along z.
    """

    name = "fake hard generator"

    def __init__(self, init_ok=True, failures=0):
        self.init_ok = init_ok
        self.failures = failures
        self.next_calls = 0
        self.init_args = None
        self._sqrt_s = None

    def init(self, pdg_a, pdg_b, sqrt_s, seed):
        self.init_args = (pdg_a, pdg_b, sqrt_s, seed)
        self._sqrt_s = sqrt_s
        return self.init_ok

    def next(self):
        self.next_calls += 1
        return self.next_calls > self.failures

    def final_hadrons(self):
        m_p = ParticleType.find(2212).mass
        m_pi = ParticleType.find(211).mass
        m_k = ParticleType.find(311).mass
        pion = FourVector.on_shell(m_pi, (0.3, 0.0, 0.0))
        e_p = 0.5 * (self._sqrt_s - 2.0 * pion.E - m_k)
        pz = float(np.sqrt(e_p * e_p - m_p * m_p))
        return [
            (211, pion),
            (-211, FourVector.on_shell(m_pi, (-0.3, 0.0, 0.0))),
            (2212, FourVector.on_shell(m_p, (0.0, 0.0, -pz))),
            (310, FourVector(m_k, 0.0, 0.0, 0.0)),
            (2212, FourVector.on_shell(m_p, (0.0, 0.0, pz))),
        ]


class FakeStringProcess(StringProcess):
    """
    Returns the incoming species back to back along z in the CM frame after
    ``failures`` rejected attempts; never succeeds if ``failures`` is None.
    """

    name = "fake string process"

    def __init__(self, diffractive=(2.0, 2.0, 1.0), failures=0, formation_offset=0.5):
        self.diffractive = tuple(diffractive)
        self.failures = failures
        self.formation_offset = formation_offset
        self.attempts = 0
        self.calls = []
        self._incoming = None
        self._time = None

    def cross_sections_diffractive(self, pdg_a, pdg_b, sqrt_s):
        self.calls.append(("diffractive", pdg_a, pdg_b, sqrt_s))
        return self.diffractive

    def init(self, incoming, time, gamma_cm):
        self.calls.append(("init", time, gamma_cm))
        self._incoming = list(incoming)
        self._time = time

    def _attempt(self, label):
        self.calls.append((label,))
        self.attempts += 1
        return self.failures is not None and self.attempts > self.failures

    def next_sdiff(self, is_ax):
        return self._attempt("sdiff_ax" if is_ax else "sdiff_xb")

    def next_ddiff(self):
        return self._attempt("ddiff")

    def next_ndiff_soft(self):
        return self._attempt("ndiff_soft")

    def final_state(self):
        a, b = self._incoming
        srts = (a.momentum + b.momentum).mass
        p = pcm(srts, a.type.mass, b.type.mass)
        return [
            ParticleData(a.type, momentum=FourVector.on_shell(a.type.mass, (0.0, 0.0, p)),
                         formation_time=self._time + self.formation_offset,
                         cross_section_scaling_factor=0.5),
            ParticleData(b.type, momentum=FourVector.on_shell(b.type.mass, (0.0, 0.0, -p)),
                         formation_time=self._time + self.formation_offset,
                         cross_section_scaling_factor=0.5),
        ]


@pytest.fixture
def make_hard_generator():
    return FakeHardGenerator


@pytest.fixture
def make_string_process():
    return FakeStringProcess
