import logging
from typing import Optional, Sequence

import numpy as np

from linbandit.bandit.errors import NoViableArm

logger = logging.getLogger(__name__)


def viable_arms(payoffs: Sequence[float]) -> np.ndarray:
    """Indices of all arms whose payoff equals the maximum, ascending."""
    p = np.asarray(payoffs, dtype=float).reshape(-1)
    if p.size == 0 or np.all(np.isnan(p)):
        raise NoViableArm("No viable arm!")
    best = np.nanmax(p)
    return np.flatnonzero(p == best)


def choose_arm(payoffs: Sequence[float], rng: Optional[np.random.Generator] = None) -> int:
    """
    Return the arm with the highest payoff.
    Ties (exact float equality) are broken uniformly at random with `rng`.
    A unique maximum is returned without drawing from `rng`.
    """
    tied = viable_arms(payoffs)
    if tied.size == 1:
        return int(tied[0])
    if rng is None:
        rng = np.random.default_rng()
    arm = int(tied[rng.integers(tied.size)])
    logger.debug("tie between arms %s, picked %d", tied.tolist(), arm)
    return arm
