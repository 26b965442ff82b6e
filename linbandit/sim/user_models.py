import numpy as np


class SyntheticUser:
    """
    Toy simulator:
    - Context x ~ N(0, I_d)
    - Each arm a has hidden linear weights theta_a
    - Reward r = sigmoid(theta_a^T x) + noise, then clipped to [0,1]
    """
    def __init__(self, d: int, n_arms: int, seed: int = 0, noise_sd: float = 0.05):
        self.d = d
        self.n_arms = n_arms
        self.rng = np.random.default_rng(seed)
        self.noise_sd = noise_sd
        # latent linear weights per arm
        self.theta = self.rng.normal(0, 1, (n_arms, d))

    def sample_context(self) -> np.ndarray:
        return self.rng.normal(0, 1, (self.d,))

    def expected_reward(self, arm: int, x: np.ndarray) -> float:
        return float(1.0 / (1.0 + np.exp(-float(self.theta[arm] @ x))))

    def reward(self, arm: int, x: np.ndarray) -> float:
        noise = self.rng.normal(0, self.noise_sd)
        return float(np.clip(self.expected_reward(arm, x) + noise, 0.0, 1.0))


def oracle_reward(user: SyntheticUser, x: np.ndarray) -> float:
    """Best achievable expected reward for context x across all arms (with noise suppressed)."""
    return max(user.expected_reward(a, x) for a in range(user.n_arms))


class NewsVisitors:
    """
    News-site visitors who like sports and/or politics (two binary features).
    Three sites, each with its own appeal for sports, politics and a baseline.
    Rewards are the site's mean plus bounded Gaussian noise, rescaled into [0, 1].
    """
    # (sports, politics, baseline) per site
    SITES = np.array([
        [0.25, 0.05, 0.025],
        [0.05, 0.025, 0.05],
        [0.05, 0.2, 0.075],
    ])
    n_arms = 3
    d = 2

    def __init__(self, seed: int = 7):
        self.rng = np.random.default_rng(seed)

    def context(self) -> np.ndarray:
        return self.rng.integers(0, 2, size=2).astype(float)

    def hybrid_context(self) -> np.ndarray:
        """[shared, private] layout: the same two features on both sides."""
        x = self.context()
        return np.concatenate([x, x])

    def mean(self, arm: int, x: np.ndarray) -> float:
        sports, politics, baseline = self.SITES[arm]
        return float(baseline + x[0] * sports + x[1] * politics)

    def bounded_noise(self) -> float:
        """Standard normal clipped to [-4, 4], scaled into [-1, 1]."""
        return float(np.clip(self.rng.normal(), -4.0, 4.0) / 4.0)

    def reward(self, arm: int, x: np.ndarray) -> float:
        # private features are the last two entries in either layout
        return (self.bounded_noise() + self.mean(arm, x[-2:]) + 1.0) / 2.25

    def best_arm(self, x: np.ndarray) -> int:
        return int(np.argmax([self.mean(a, x[-2:]) for a in range(self.n_arms)]))
