import logging
from dataclasses import dataclass
from numbers import Integral
from typing import Iterator, List, Protocol, Tuple, Union

import numpy as np

from linbandit.bandit.errors import (
    ArmOutOfRange,
    DimensionMismatch,
    InvalidConfiguration,
    LengthMismatch,
)
from linbandit.bandit.selection import choose_arm

logger = logging.getLogger(__name__)

RngLike = Union[np.random.Generator, int, None]


def as_rng(rng: RngLike) -> np.random.Generator:
    """Accept a Generator, a seed, or None (fresh OS entropy)."""
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def check_size(name: str, value) -> int:
    """Sizes must be positive integers; bools are rejected."""
    if isinstance(value, bool) or not isinstance(value, Integral) or value <= 0:
        raise InvalidConfiguration(f"{name} must be a positive integer, got {value!r}")
    return int(value)


def as_context(context, size: int) -> np.ndarray:
    """Convert a context to a flat float vector of length `size`."""
    x = np.asarray(context, dtype=float)
    if x.ndim == 2 and min(x.shape) == 1:
        x = x.reshape(-1)  # column / row vectors
    if x.ndim != 1:
        raise DimensionMismatch(size, x.size)
    if x.shape[0] != size:
        raise DimensionMismatch(size, x.shape[0])
    return x


def check_batch(contexts, arms, rewards) -> Tuple[list, list, list]:
    contexts, arms, rewards = list(contexts), list(arms), list(rewards)
    if not (len(contexts) == len(arms) == len(rewards)):
        raise LengthMismatch(
            "Must give the same number of contexts, arms and rewards "
            f"(got {len(contexts)}, {len(arms)}, {len(rewards)})"
        )
    return contexts, arms, rewards


@dataclass
class ArmState:
    """
    Ridge-regression state of one arm.
    A starts at the identity (ridge prior) and b at zero; A_inv and theta
    are derived and must be refreshed after A or b change.
    """
    A: np.ndarray
    b: np.ndarray
    A_inv: np.ndarray
    theta: np.ndarray

    @classmethod
    def fresh(cls, d: int) -> "ArmState":
        A = np.eye(d)
        b = np.zeros(d)
        return cls(A=A, b=b, A_inv=np.eye(d), theta=np.zeros(d))

    def refresh(self) -> None:
        self.A_inv = np.linalg.inv(self.A)
        self.theta = self.A_inv @ self.b

    def observe(self, x: np.ndarray, reward: float) -> None:
        self.A += np.outer(x, x)
        self.b += reward * x


class ArmModels:
    """Fixed-size, integer-indexed collection of per-arm private states."""

    def __init__(self, d: int, n_arms: int):
        self.d = d
        self.n_arms = n_arms
        self._states: List[ArmState] = [ArmState.fresh(d) for _ in range(n_arms)]

    def __len__(self) -> int:
        return self.n_arms

    def __iter__(self) -> Iterator[ArmState]:
        return iter(self._states)

    def __getitem__(self, arm: int) -> ArmState:
        return self._states[self.check_arm(arm)]

    def check_arm(self, arm) -> int:
        if isinstance(arm, bool) or not isinstance(arm, Integral) or not 0 <= arm < self.n_arms:
            raise ArmOutOfRange(arm, self.n_arms)
        return int(arm)

    def refresh_all(self) -> None:
        for state in self._states:
            state.refresh()


class ContextualPolicy(Protocol):
    """What callers of either model rely on."""
    n_arms: int

    def predict(self, context) -> np.ndarray: ...

    def select(self, context, rng: RngLike = None) -> int: ...

    def update(self, context, arm: int, reward: float) -> None: ...

    def update_batch(self, contexts, arms, rewards) -> None: ...


class LinUCB:
    """
    LinUCB with disjoint linear models (Li, Chu, Langford & Schapire, 2010).
    Each arm has its own ridge regression over the d context features:

        payoff_a = theta_a . x + alpha * sqrt(x^T A_a^-1 x)

    Not thread-safe; serialize calls externally if several callers share a model.
    """

    def __init__(self, d: int, n_arms: int, alpha: float = 1.0, rng: RngLike = None):
        self.d = check_size("d", d)
        self.n_arms = check_size("n_arms", n_arms)
        self.alpha = float(alpha)
        self.rng = as_rng(rng)
        self._arms = ArmModels(self.d, self.n_arms)
        logger.info("LinUCB ready: d=%d, n_arms=%d, alpha=%g", self.d, self.n_arms, self.alpha)

    # -- read-only views ------------------------------------------------
    def A(self, arm: int) -> np.ndarray:
        return self._arms[arm].A.copy()

    def b(self, arm: int) -> np.ndarray:
        return self._arms[arm].b.copy()

    def A_inv(self, arm: int) -> np.ndarray:
        return self._arms[arm].A_inv.copy()

    def theta(self, arm: int) -> np.ndarray:
        return self._arms[arm].theta.copy()

    # -- policy ---------------------------------------------------------
    def predict(self, context) -> np.ndarray:
        """Upper confidence bound of the payoff of every arm for `context`."""
        x = as_context(context, self.d)
        payoffs = np.empty(self.n_arms)
        for i, state in enumerate(self._arms):
            mu = float(state.theta @ x)
            var = float(x @ state.A_inv @ x)
            # var >= 0 mathematically; abs() absorbs rounding
            payoffs[i] = mu + self.alpha * np.sqrt(abs(var))
        return payoffs

    def select(self, context, rng: RngLike = None) -> int:
        """Select arm using UCB criterion given context x."""
        payoffs = self.predict(context)
        return choose_arm(payoffs, self.rng if rng is None else as_rng(rng))

    def update(self, context, arm: int, reward: float) -> None:
        """Update linear model for chosen arm."""
        self.update_batch([context], [arm], [reward])

    def update_batch(self, contexts, arms, rewards) -> None:
        """
        Apply (context, arm, reward) samples in order.
        A bad sample raises; samples before it in the batch stay applied.
        """
        contexts, arms, rewards = check_batch(contexts, arms, rewards)
        for i, (context, arm, reward) in enumerate(zip(contexts, arms, rewards)):
            try:
                x = as_context(context, self.d)
                state = self._arms[arm]
            except (DimensionMismatch, ArmOutOfRange) as exc:
                logger.warning("rejecting sample %d of %d: %s", i, len(contexts), exc)
                raise
            state.observe(x, float(reward))
            state.refresh()
            logger.debug("arm %d updated with reward %g", arm, reward)
