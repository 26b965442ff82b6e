import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from linbandit.bandit.errors import ArmOutOfRange, DimensionMismatch
from linbandit.bandit.linucb import (
    ArmModels,
    RngLike,
    as_context,
    as_rng,
    check_batch,
    check_size,
)
from linbandit.bandit.selection import choose_arm

logger = logging.getLogger(__name__)


@dataclass
class SharedState:
    """
    Shared ridge model over the k shared features plus the per-arm
    d x k cross terms B linking it to each arm's private model.
    """
    A0: np.ndarray
    b0: np.ndarray
    beta: np.ndarray
    B: List[np.ndarray]

    @classmethod
    def fresh(cls, k: int, d: int, n_arms: int) -> "SharedState":
        return cls(
            A0=np.eye(k),
            b0=np.zeros(k),
            beta=np.zeros(k),
            B=[np.zeros((d, k)) for _ in range(n_arms)],
        )

    def refresh(self) -> None:
        self.beta = np.linalg.inv(self.A0) @ self.b0


class HybridLinUCB:
    """
    LinUCB with hybrid linear models (Li et al., 2010, Algorithm 2).

    Contexts are laid out as [shared (k), private (d)]. The shared part feeds
    one regression common to all arms; the private part feeds a per-arm
    regression held in the same ArmModels collection LinUCB uses.

    Every update re-inverts every arm's A, so one sample costs n_arms
    inversions instead of one.
    """

    def __init__(self, d: int, k: int, n_arms: int, alpha: float = 1.0, rng: RngLike = None):
        self.d = check_size("d", d)
        self.n_arms = check_size("n_arms", n_arms)
        self.k = check_size("k", k)
        self.alpha = float(alpha)
        self.rng = as_rng(rng)
        self._arms = ArmModels(self.d, self.n_arms)
        self._shared = SharedState.fresh(self.k, self.d, self.n_arms)
        logger.info(
            "HybridLinUCB ready: d=%d, k=%d, n_arms=%d, alpha=%g",
            self.d, self.k, self.n_arms, self.alpha,
        )

    # -- read-only views ------------------------------------------------
    def A(self, arm: int) -> np.ndarray:
        return self._arms[arm].A.copy()

    def b(self, arm: int) -> np.ndarray:
        return self._arms[arm].b.copy()

    def A_inv(self, arm: int) -> np.ndarray:
        return self._arms[arm].A_inv.copy()

    def theta(self, arm: int) -> np.ndarray:
        return self._arms[arm].theta.copy()

    def B(self, arm: int) -> np.ndarray:
        return self._shared.B[self._arms.check_arm(arm)].copy()

    def A0(self) -> np.ndarray:
        return self._shared.A0.copy()

    def b0(self) -> np.ndarray:
        return self._shared.b0.copy()

    def beta(self) -> np.ndarray:
        return self._shared.beta.copy()

    # -- policy ---------------------------------------------------------
    def split(self, context) -> Tuple[np.ndarray, np.ndarray]:
        """Split a combined context into (shared z, private x)."""
        combined = as_context(context, self.k + self.d)
        return combined[: self.k], combined[self.k:]

    def predict(self, context) -> np.ndarray:
        z, x = self.split(context)
        shared = self._shared
        A0_inv = np.linalg.inv(shared.A0)
        shared_point = float(z @ shared.beta)
        z_var = float(z @ A0_inv @ z)

        payoffs = np.empty(self.n_arms)
        for i, state in enumerate(self._arms):
            B = shared.B[i]
            Ax = state.A_inv @ x
            # Known discrepancy: with k == d the cross term weights z by the
            # arm's A_inv, not A0^-1 as in Li et al. Kept as-is. For k != d
            # that product is undefined and A0^-1 is used.
            z_weight = state.A_inv if self.k == self.d else A0_inv
            s = (
                z_var
                - 2.0 * float(z @ z_weight @ B.T @ Ax)
                + float(x @ Ax)
                + float(Ax @ B @ A0_inv @ B.T @ Ax)
            )
            point = shared_point + float(x @ state.theta)
            # No exploration bonus while the shared estimate is exactly zero.
            # Kept as-is; LinUCB.predict has no such branch.
            if shared_point != 0:
                payoffs[i] = point + self.alpha * np.sqrt(abs(s))
            else:
                payoffs[i] = point
        return payoffs

    def predict_split(self, shared, private) -> np.ndarray:
        z = as_context(shared, self.k)
        x = as_context(private, self.d)
        return self.predict(np.concatenate([z, x]))

    def select(self, context, rng: RngLike = None) -> int:
        payoffs = self.predict(context)
        return choose_arm(payoffs, self.rng if rng is None else as_rng(rng))

    def update(self, context, arm: int, reward: float) -> None:
        self.update_batch([context], [arm], [reward])

    def update_batch(self, contexts, arms, rewards) -> None:
        """
        Apply combined-context samples in order.
        A bad sample raises; samples before it in the batch stay applied.
        """
        contexts, arms, rewards = check_batch(contexts, arms, rewards)
        for i, (context, arm, reward) in enumerate(zip(contexts, arms, rewards)):
            try:
                z, x = self.split(context)
                a = self._arms.check_arm(arm)
            except (DimensionMismatch, ArmOutOfRange) as exc:
                logger.warning("rejecting sample %d of %d: %s", i, len(contexts), exc)
                raise
            self._apply(z, x, a, float(reward))
            logger.debug("arm %d updated with reward %g", a, reward)

    def _apply(self, z: np.ndarray, x: np.ndarray, arm: int, reward: float) -> None:
        shared = self._shared
        state = self._arms[arm]

        # take the arm's old contribution out of the shared model
        B = shared.B[arm]
        shared.A0 += B.T @ state.A_inv @ B
        shared.b0 += B.T @ state.A_inv @ state.b

        state.observe(x, reward)
        shared.B[arm] = B + np.outer(x, z)
        state.refresh()

        # and put the new one back in
        B = shared.B[arm]
        shared.A0 += np.outer(z, z) - B.T @ state.A_inv @ B
        shared.b0 += reward * z - B.T @ state.A_inv @ state.b

        self._arms.refresh_all()
        shared.refresh()
