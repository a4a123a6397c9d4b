"""
ScatterX: two-body scattering actions for hadronic transport.

Usage:
    from scatterx import ParticleData, ParticleType, ScatterAction, ScatterConfig

    p = ParticleType.find(2212)
    a = ParticleData(p); a.set_4momentum(p.mass, 0.0, 0.0, 0.7)
    b = ParticleData(p); b.set_4momentum(p.mass, 0.0, 0.0, -0.7)
    action = ScatterAction(a, b, time=0.0)
    action.add_all_processes(ScatterConfig(strings_switch=False))
    outgoing = action.generate_final_state()
"""
from .config import IncludedReactions, NNbarTreatment, ScatterConfig
from .exceptions import (
    ChannelSelectionError,
    InvalidResonanceFormation,
    InvalidScatterAction,
    ScatterXError,
    StringExcitationError,
    StringPartitionError,
)
from .kinematics import FourVector
from .particles import DecayMode, ParticleData, ParticleType, load_particle_table
from .process import BranchList, CollisionBranch, ProcessType
from .scatter_action import ScatterAction
from .strings import HardEventGenerator, StringProcess

__all__ = [
    "BranchList",
    "ChannelSelectionError",
    "CollisionBranch",
    "DecayMode",
    "FourVector",
    "HardEventGenerator",
    "IncludedReactions",
    "InvalidResonanceFormation",
    "InvalidScatterAction",
    "NNbarTreatment",
    "ParticleData",
    "ParticleType",
    "ProcessType",
    "ScatterAction",
    "ScatterConfig",
    "ScatterXError",
    "StringExcitationError",
    "StringPartitionError",
    "StringProcess",
    "load_particle_table",
]
