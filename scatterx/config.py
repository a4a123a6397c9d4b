"""
Configuration for scattering actions.

Defaults can be overridden through environment variables, e.g.

    SCATTERX_LOW_SNN_CUT=1.9 SCATTERX_STRINGS=0 python monte_carlo.py ...
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass


class IncludedReactions(enum.Flag):
    """2->2 reaction families that may be added to an action."""

    NONE = 0
    ELASTIC = enum.auto()
    NN_TO_NR = enum.auto()
    ALL = ELASTIC | NN_TO_NR


class NNbarTreatment(enum.Enum):
    """How nucleon-antinucleon annihilation is handled."""

    NO_ANNIHILATION = "no annihilation"
    # NNbar <-> rho h1(1170), only for boxes where detailed balance must hold
    RESONANCES = "resonances"
    # no explicit channel; annihilation is left to the string collaborator
    STRINGS = "strings"


_TRUE = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _env_reactions(name: str, default: IncludedReactions) -> IncludedReactions:
    value = os.getenv(name)
    if not value:
        return default
    flags = IncludedReactions.NONE
    for token in value.replace(",", " ").split():
        try:
            flags |= IncludedReactions[token.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown reaction family '{token}' in {name}") from None
    return flags


@dataclass
class ScatterConfig:
    """Collision-term settings shared by all actions of a run.

    Attributes:
        elastic_parameter: Constant elastic cross section [mb]; a negative
            value selects the energy-dependent parametrization.
        two_to_one: Include resonance formation (2->1).
        included_2to2: 2->2 reaction families to include.
        low_snn_cut: Elastic NN collisions below this sqrt(s) [GeV] are
            excluded (same baryon sign only).
        strings_switch: Allow string fragmentation.
        nnbar_treatment: Nucleon-antinucleon annihilation treatment.
        isotropic: Use isotropic angular distributions everywhere.
        string_formation_time: Hadron formation time in its rest frame [fm].
    """

    elastic_parameter: float = -1.0
    two_to_one: bool = True
    included_2to2: IncludedReactions = IncludedReactions.ALL
    low_snn_cut: float = 1.98
    strings_switch: bool = True
    nnbar_treatment: NNbarTreatment = NNbarTreatment.NO_ANNIHILATION
    isotropic: bool = False
    string_formation_time: float = 1.0

    @classmethod
    def from_env(cls, prefix: str = "SCATTERX_") -> "ScatterConfig":
        """Build a configuration from defaults overridden by environment variables."""
        defaults = cls()
        nnbar = os.getenv(f"{prefix}NNBAR_TREATMENT")
        return cls(
            elastic_parameter=_env_float(f"{prefix}ELASTIC_PARAMETER", defaults.elastic_parameter),
            two_to_one=_env_bool(f"{prefix}TWO_TO_ONE", defaults.two_to_one),
            included_2to2=_env_reactions(f"{prefix}INCLUDED_2TO2", defaults.included_2to2),
            low_snn_cut=_env_float(f"{prefix}LOW_SNN_CUT", defaults.low_snn_cut),
            strings_switch=_env_bool(f"{prefix}STRINGS", defaults.strings_switch),
            nnbar_treatment=NNbarTreatment(nnbar) if nnbar else defaults.nnbar_treatment,
            isotropic=_env_bool(f"{prefix}ISOTROPIC", defaults.isotropic),
            string_formation_time=_env_float(
                f"{prefix}STRING_FORMATION_TIME", defaults.string_formation_time
            ),
        )
