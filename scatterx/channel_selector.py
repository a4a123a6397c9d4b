import logging
from typing import Iterable, Optional

import numpy as np

from .exceptions import ChannelSelectionError
from .process import CollisionBranch

logger = logging.getLogger(__name__)


def select_branch(branches: Iterable[CollisionBranch], total_weight: float,
                  draw: float) -> CollisionBranch:
    """
    Return the first branch whose cumulative upper bound exceeds ``draw``.

    Zero-weight branches are never returned. A draw at or beyond the last
    bound (round-off) gives the last non-zero branch.
    """
    branches = list(branches)
    if not branches or total_weight <= 0.0:
        raise ChannelSelectionError(
            f"Cannot select a channel from {len(branches)} branches with total weight {total_weight}"
        )
    upper = 0.0
    last_nonzero: Optional[CollisionBranch] = None
    for branch in branches:
        if branch.weight <= 0.0:
            continue
        upper += branch.weight
        last_nonzero = branch
        if draw < upper:
            return branch
    if last_nonzero is None:
        raise ChannelSelectionError("All branches have zero weight")
    return last_nonzero


def choose_channel(branches: Iterable[CollisionBranch], total_weight: float,
                   rng: Optional[np.random.Generator] = None) -> CollisionBranch:
    """Weighted-random choice of one branch with a single uniform draw in [0, total)."""
    rng = rng or np.random.default_rng()
    if total_weight <= 0.0:
        raise ChannelSelectionError(f"Total weight must be positive, got {total_weight}")
    draw = rng.uniform(0.0, total_weight)
    branch = select_branch(branches, total_weight, draw)
    logger.debug(f"Selected {branch!r} with draw {draw:.6g} of {total_weight:.6g} mb")
    return branch
