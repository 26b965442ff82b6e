from __future__ import annotations

import numpy as np
import pytest

from linbandit.bandit.errors import (
    ArmOutOfRange,
    BanditError,
    DimensionMismatch,
    InvalidConfiguration,
    LengthMismatch,
)
from linbandit.bandit.linucb import LinUCB


def _snapshot(model: LinUCB) -> list:
    return [
        (model.A(a), model.b(a), model.A_inv(a), model.theta(a))
        for a in range(model.n_arms)
    ]


def _assert_same_state(before: list, after: list) -> None:
    for old, new in zip(before, after):
        for x, y in zip(old, new):
            assert np.array_equal(x, y)


@pytest.mark.parametrize("d, n", [(0, 2), (2, 0), (-1, 3), (3, -2), (2.5, 2), (True, 2)])
def test_invalid_configuration(d, n) -> None:
    with pytest.raises(InvalidConfiguration):
        LinUCB(d=d, n_arms=n, alpha=1.0)


def test_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        LinUCB(d=0, n_arms=1)
    assert issubclass(DimensionMismatch, BanditError)


def test_cold_start_zero_context() -> None:
    model = LinUCB(d=2, n_arms=2, alpha=0.0)
    assert np.array_equal(model.predict([0.0, 0.0]), [0.0, 0.0])


def test_cold_start_confidence_term() -> None:
    model = LinUCB(d=2, n_arms=3, alpha=2.0)
    # A_inv = I, theta = 0 -> payoff = alpha * |x|
    assert np.allclose(model.predict([3.0, 4.0]), [10.0, 10.0, 10.0])


def test_known_value_update() -> None:
    model = LinUCB(d=2, n_arms=2, alpha=0.0)
    model.update([1.0, 0.0], 0, 1.0)

    assert np.allclose(model.A(0), [[2.0, 0.0], [0.0, 1.0]])
    assert np.allclose(model.b(0), [1.0, 0.0])
    assert np.allclose(model.A_inv(0), [[0.5, 0.0], [0.0, 1.0]])
    assert np.allclose(model.theta(0), [0.5, 0.0])
    assert np.allclose(model.predict([1.0, 0.0]), [0.5, 0.0])

    # the other arm is untouched
    assert np.array_equal(model.A(1), np.eye(2))
    assert np.array_equal(model.b(1), np.zeros(2))


def test_context_with_leading_zero_uses_later_features() -> None:
    model = LinUCB(d=2, n_arms=2, alpha=0.0)
    model.update([0.0, 1.0], 1, 1.0)
    payoffs = model.predict([0.0, 1.0])
    assert payoffs[1] == pytest.approx(0.5)
    assert payoffs[0] == 0.0


def test_column_vector_context_is_accepted() -> None:
    model = LinUCB(d=3, n_arms=2, alpha=1.0)
    x = np.array([1.0, 2.0, 3.0])
    assert np.allclose(model.predict(x.reshape(-1, 1)), model.predict(x))


def test_dimension_mismatch_leaves_state_untouched() -> None:
    model = LinUCB(d=2, n_arms=2, alpha=1.0)
    model.update([1.0, 1.0], 0, 0.5)
    before = _snapshot(model)

    with pytest.raises(DimensionMismatch):
        model.predict([1.0, 2.0, 3.0])
    with pytest.raises(DimensionMismatch):
        model.update([1.0, 2.0, 3.0], 0, 1.0)

    _assert_same_state(before, _snapshot(model))


def test_batch_length_mismatch_is_rejected_before_any_update() -> None:
    model = LinUCB(d=2, n_arms=2, alpha=1.0)
    before = _snapshot(model)
    with pytest.raises(LengthMismatch):
        model.update_batch([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]], [0, 1, 0], [1.0, 0.0])
    _assert_same_state(before, _snapshot(model))


def test_bad_sample_mid_batch_keeps_earlier_samples() -> None:
    model = LinUCB(d=2, n_arms=2, alpha=0.0)
    with pytest.raises(DimensionMismatch):
        model.update_batch([[1.0, 0.0], [1.0, 0.0, 0.0]], [0, 1], [1.0, 1.0])

    assert np.allclose(model.A(0), [[2.0, 0.0], [0.0, 1.0]])
    assert np.allclose(model.theta(0), [0.5, 0.0])
    assert np.array_equal(model.A(1), np.eye(2))


@pytest.mark.parametrize("arm", [-1, 2, 7])
def test_arm_out_of_range(arm) -> None:
    model = LinUCB(d=2, n_arms=2)
    before = _snapshot(model)
    with pytest.raises(ArmOutOfRange):
        model.update([1.0, 0.0], arm, 1.0)
    _assert_same_state(before, _snapshot(model))


def test_batch_matches_sequential_updates() -> None:
    rng = np.random.default_rng(0)
    contexts = rng.normal(size=(20, 4))
    arms = rng.integers(0, 3, size=20)
    rewards = rng.random(20)

    batched = LinUCB(d=4, n_arms=3, alpha=0.7)
    batched.update_batch(contexts, arms, rewards)
    single = LinUCB(d=4, n_arms=3, alpha=0.7)
    for x, a, r in zip(contexts, arms, rewards):
        single.update(x, a, r)

    probe = rng.normal(size=4)
    assert np.allclose(batched.predict(probe), single.predict(probe))


def test_matches_ridge_regression() -> None:
    rng = np.random.default_rng(1)
    X = rng.normal(size=(30, 3))
    y = X @ np.array([0.5, -1.0, 2.0]) + rng.normal(scale=0.1, size=30)

    model = LinUCB(d=3, n_arms=1, alpha=0.0)
    model.update_batch(X, [0] * 30, y)

    expected = np.linalg.solve(X.T @ X + np.eye(3), X.T @ y)
    assert np.allclose(model.theta(0), expected)
    assert np.allclose(model.A(0), model.A(0).T)


def test_accessors_return_copies() -> None:
    model = LinUCB(d=2, n_arms=1)
    A = model.A(0)
    A[0, 0] = 100.0
    assert model.A(0)[0, 0] == 1.0


def test_tie_break_on_fresh_model_is_uniform() -> None:
    model = LinUCB(d=2, n_arms=4, alpha=1.0, rng=42)
    picks = [model.select([1.0, 1.0]) for _ in range(8000)]
    freqs = np.bincount(picks, minlength=4) / 8000
    assert np.allclose(freqs, 0.25, atol=0.03)


def test_select_is_reproducible_with_seed() -> None:
    a = LinUCB(d=2, n_arms=3, rng=9)
    b = LinUCB(d=2, n_arms=3, rng=9)
    assert [a.select([1.0, 0.0]) for _ in range(20)] == [b.select([1.0, 0.0]) for _ in range(20)]


def test_select_learns_best_arm() -> None:
    model = LinUCB(d=2, n_arms=3, alpha=0.1, rng=0)
    x = np.array([1.0, 0.0])
    for _ in range(50):
        for arm, reward in enumerate([0.1, 0.9, 0.3]):
            model.update(x, arm, reward)
    assert model.select(x) == 1


def test_select_per_call_seed_is_reproducible() -> None:
    model = LinUCB(d=2, n_arms=3, rng=0)
    other = LinUCB(d=2, n_arms=3, rng=12345)
    picks = [model.select([1.0, 1.0], rng=np.random.default_rng(3)) for _ in range(5)]
    assert picks == [other.select([1.0, 1.0], rng=np.random.default_rng(3)) for _ in range(5)]
    # the model's own generator is left untouched by per-call overrides
    assert model.rng.bit_generator.state == np.random.default_rng(0).bit_generator.state
