"""Errors raised by the LinUCB models."""


class BanditError(Exception):
    """Base class for every error raised by a bandit model."""


class InvalidConfiguration(BanditError, ValueError):
    """Bad constructor arguments (non-positive sizes, unknown config keys)."""


class DimensionMismatch(BanditError, ValueError):
    """A context vector does not have the length the model was built with."""

    def __init__(self, expected: int, got: int, what: str = "context"):
        super().__init__(f"{what} must have length {expected}, got {got}")
        self.expected = expected
        self.got = got


class LengthMismatch(BanditError, ValueError):
    """Contexts, arms and rewards of a batch differ in length."""


class ArmOutOfRange(BanditError, IndexError):
    def __init__(self, arm, n_arms: int):
        super().__init__(f"arm must be in [0, {n_arms}), got {arm}")
        self.arm = arm
        self.n_arms = n_arms


class NoViableArm(BanditError, RuntimeError):
    """No arm could be selected. Only reachable with an empty or all-NaN payoff vector."""
