from __future__ import annotations

import numpy as np
import pytest

from linbandit.bandit.errors import NoViableArm
from linbandit.bandit.selection import choose_arm, viable_arms


def test_unique_maximum_is_chosen_without_randomness() -> None:
    class NoDraws:
        def integers(self, *args, **kwargs):
            raise AssertionError("rng must not be used")

    assert choose_arm([0.1, 0.7, 0.3], rng=NoDraws()) == 1


def test_viable_arms_lists_all_tied_maxima() -> None:
    assert viable_arms([1.0, 3.0, 3.0, 2.0, 3.0]).tolist() == [1, 2, 4]


def test_ties_are_broken_uniformly() -> None:
    rng = np.random.default_rng(123)
    picks = [choose_arm([0.5, 0.2, 0.5, 0.5], rng=rng) for _ in range(6000)]
    counts = np.bincount(picks, minlength=4)
    assert counts[1] == 0
    for arm in (0, 2, 3):
        assert abs(counts[arm] / 6000 - 1 / 3) < 0.03


def test_same_seed_same_tie_breaks() -> None:
    a = [choose_arm([1.0, 1.0, 1.0], rng=np.random.default_rng(5)) for _ in range(3)]
    b = [choose_arm([1.0, 1.0, 1.0], rng=np.random.default_rng(5)) for _ in range(3)]
    assert a == b


def test_nan_payoffs_are_skipped() -> None:
    assert choose_arm([np.nan, 0.2, 0.1]) == 1


@pytest.mark.parametrize("payoffs", [[], [np.nan, np.nan]])
def test_no_viable_arm(payoffs) -> None:
    with pytest.raises(NoViableArm):
        choose_arm(payoffs)
