import argparse
import itertools
import os

import numpy as np

from linbandit.bandit.errors import InvalidConfiguration
from linbandit.config import BanditConfig, load_config, policy_from_config
from linbandit.sim.user_models import NewsVisitors


def main(cfg: BanditConfig, T: int = 10000):
    visitors = NewsVisitors(seed=7 if cfg.seed is None else cfg.seed)
    if cfg.d != visitors.d or cfg.n_arms != visitors.n_arms or cfg.k not in (0, visitors.d):
        raise InvalidConfiguration(
            f"news visitors need d={visitors.d}, n_arms={visitors.n_arms}, k in (0, {visitors.d}); got {cfg}"
        )
    bandit = policy_from_config(cfg)
    hybrid = bool(cfg.k)
    next_context = visitors.hybrid_context if hybrid else visitors.context

    for sports, politics in itertools.product((0, 1), repeat=2):
        x = np.array([sports, politics], dtype=float)
        means = [visitors.mean(a, x) for a in range(visitors.n_arms)]
        print(f"Context ({sports}, {politics}) site means: {np.round(means, 3).tolist()}")

    counts = np.zeros((visitors.n_arms, 2, 2), dtype=int)
    rewards = []
    for t in range(T):
        x = next_context()
        a = bandit.select(x)
        r = visitors.reward(a, x)
        bandit.update(x, a, r)

        rewards.append(r)
        counts[a, int(x[-2]), int(x[-1])] += 1

    print(f"T={T}, model={'hybrid' if hybrid else 'disjoint'}, alpha={cfg.alpha}")
    print(f"Max reward {max(rewards):.4f}, min {min(rewards):.4f}")
    for sports, politics in itertools.product((0, 1), repeat=2):
        best = visitors.best_arm(np.array([sports, politics], dtype=float))
        print(
            f"Chosen arm counts for context ({sports}, {politics}): "
            f"{counts[:, sports, politics].tolist()} (best arm {best})"
        )
    print(f"Avg reward (last 10%): {np.mean(rewards[int(0.9*T):]):.4f}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="LinUCB on simulated news-site visitors")
    parser.add_argument("--config", help="YAML model config; LINBANDIT_* env vars when omitted")
    parser.add_argument("--steps", type=int, default=10000)
    args = parser.parse_args()
    if args.config:
        cfg = load_config(args.config)
    else:
        cfg = BanditConfig.from_env(environ={"LINBANDIT_D": "2", "LINBANDIT_N_ARMS": "3", "LINBANDIT_ALPHA": "5", **os.environ})
    main(cfg, T=args.steps)
