"""
Collision branches: candidate reaction channels and the ordered list they are
collected in before one of them is selected.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Tuple

import numpy as np

from .particles import ParticleData, ParticleType

logger = logging.getLogger(__name__)


class ProcessType(enum.Enum):
    """Kind of a collision branch. Closed: the final-state generator handles every member."""

    ELASTIC = "elastic"
    TWO_TO_ONE = "resonance formation"
    TWO_TO_TWO = "2->2 inelastic"
    STRING_SOFT = "soft string"
    STRING_HARD = "hard string"

    @property
    def is_string(self) -> bool:
        return self in (ProcessType.STRING_SOFT, ProcessType.STRING_HARD)


@dataclass(frozen=True)
class CollisionBranch:
    """One candidate reaction: process kind, cross section [mb] and outgoing species."""

    process_type: ProcessType
    weight: float
    particle_types: Tuple[ParticleType, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "particle_types", tuple(self.particle_types))
        if not math.isfinite(self.weight) or self.weight < 0.0:
            raise ValueError(f"Branch weight must be finite and non-negative, got {self.weight}")

    @property
    def particle_number(self) -> int:
        return len(self.particle_types)

    def particle_list(self) -> List[ParticleData]:
        """Fresh particles (at rest, pole mass) for each outgoing species."""
        return [ParticleData(t) for t in self.particle_types]

    def __repr__(self) -> str:
        names = " ".join(t.name for t in self.particle_types) or "-"
        return f"CollisionBranch({self.process_type.name}, {self.weight:.6g} mb, [{names}])"


class BranchList:
    """
    Append-only ordered branches with the running total of their weights.
    Branches with non-positive weight are dropped on insertion.
    """

    def __init__(self, branches: Iterable[CollisionBranch] = ()):
        self._branches: List[CollisionBranch] = []
        self._total = 0.0
        self.extend(branches)

    def add(self, branch: CollisionBranch) -> bool:
        if branch.weight <= 0.0:
            logger.debug(f"Dropping zero-weight branch {branch!r}")
            return False
        self._branches.append(branch)
        self._total += branch.weight
        return True

    def extend(self, branches: Iterable[CollisionBranch]) -> int:
        return sum(1 for b in branches if self.add(b))

    @property
    def total(self) -> float:
        return self._total

    def weights(self) -> np.ndarray:
        return np.array([b.weight for b in self._branches], dtype=float)

    def cumulative(self) -> np.ndarray:
        return np.cumsum(self.weights())

    def of_type(self, process_type: ProcessType) -> List[CollisionBranch]:
        return [b for b in self._branches if b.process_type is process_type]

    def __iter__(self) -> Iterator[CollisionBranch]:
        return iter(self._branches)

    def __len__(self) -> int:
        return len(self._branches)

    def __getitem__(self, index: int) -> CollisionBranch:
        return self._branches[index]

    def __repr__(self) -> str:
        return f"BranchList({len(self)} branches, total={self._total:.6g} mb)"
