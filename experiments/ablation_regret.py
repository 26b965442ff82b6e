import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from linbandit.bandit.hybrid import HybridLinUCB
from linbandit.bandit.linucb import LinUCB
from linbandit.sim.user_models import SyntheticUser, oracle_reward


class UniformRandom:
    """Ignores context and pulls arms uniformly at random."""
    def __init__(self, n_arms: int, seed: int = 0):
        self.n_arms = n_arms
        self.rng = np.random.default_rng(seed)

    def select(self, _x):
        return int(self.rng.integers(self.n_arms))

    def update(self, _x, arm: int, r: float):
        pass


# -------- Experiment harness -------- #

def run_once(T=2000, d=6, k=3, n_arms=5, alpha=1.0, seed=0):
    """
    Contexts are d features drawn by the user model. The hybrid model sees the
    first k of them as shared features and all d as private ones.
    """
    user = SyntheticUser(d=d, n_arms=n_arms, seed=seed, noise_sd=0.05)

    policies = {
        "LinUCB (disjoint)": (LinUCB(d=d, n_arms=n_arms, alpha=alpha, rng=seed), lambda x: x),
        "LinUCB (hybrid)": (
            HybridLinUCB(d=d, k=k, n_arms=n_arms, alpha=alpha, rng=seed),
            lambda x: np.concatenate([x[:k], x]),
        ),
        "Uniform random": (UniformRandom(n_arms, seed=seed), lambda x: x),
    }
    regrets = {label: [] for label in policies}

    for t in range(T):
        x = user.sample_context()
        orw = oracle_reward(user, x)
        for label, (policy, featurize) in policies.items():
            ctx = featurize(x)
            a = policy.select(ctx)
            r = user.reward(a, x)
            policy.update(ctx, a, r)
            regrets[label].append(orw - r)

    return {label: np.array(v) for label, v in regrets.items()}


def tail_avg(per_step: np.ndarray, frac: float = 0.1) -> float:
    """Mean over the last `frac` of the steps."""
    return float(np.mean(per_step[int((1.0 - frac) * len(per_step)):]))


def mean_cumulative(T: int, seeds) -> dict:
    """Cumulative regret per policy, averaged across seeds."""
    runs = [run_once(T=T, seed=s) for s in seeds]
    return {
        label: np.mean([np.cumsum(run[label]) for run in runs], axis=0)
        for label in runs[0]
    }


def plot_regret(curves: dict, path: str) -> None:
    xs = np.arange(1, len(next(iter(curves.values()))) + 1)
    fig, ax = plt.subplots()
    for label, curve in curves.items():
        ax.plot(xs, curve, label=label)
    ax.set_xlabel("Steps")
    ax.set_ylabel("Cumulative Regret")
    ax.set_title("Disjoint vs Hybrid LinUCB (Synthetic Users)")
    ax.legend()
    fig.tight_layout()
    fig.savefig(path, dpi=160)
    plt.close(fig)


def main(T: int = 2000, seeds=(0, 1, 2), out: str = "experiments/fig_regret.png"):
    curves = mean_cumulative(T, seeds)
    plot_regret(curves, out)
    print(f"Saved plot to {out}")
    for label, curve in curves.items():
        per_step = np.diff(curve, prepend=0.0)
        print(f"{label:20s}  tail avg per-step regret: {tail_avg(per_step):.4f}")


if __name__ == "__main__":
    main()
