import random

import pytest

from clutchline_backend.core.chance import AUTO, pluck, roll, roll_d2, sample, weighted_choice


def test_weighted_choice_rejects_bad_distributions():
    with pytest.raises(ValueError):
        weighted_choice({})
    with pytest.raises(ValueError):
        weighted_choice({"a": 0, "b": 0})
    with pytest.raises(ValueError):
        weighted_choice({"a": 5, "b": -1})


def test_weighted_choice_never_picks_zero_weight(rng):
    picks = {weighted_choice({"a": 0, "b": 3, "c": 1}, rng) for _ in range(200)}
    assert "a" not in picks
    assert picks == {"b", "c"}


def test_weighted_choice_normalizes_weights():
    # same seed, same relative weights -> same picks
    first = [weighted_choice({"x": 1, "y": 3}, random.Random(5)) for _ in range(20)]
    second = [weighted_choice({"x": 25, "y": 75}, random.Random(5)) for _ in range(20)]
    assert first == second


def test_roll_splits_remainder_between_auto_entries(rng):
    picks = [roll({"fixed": 100, "a": AUTO, "b": AUTO}, rng) for _ in range(50)]
    assert set(picks) == {"fixed"}

    picks = {roll({"fixed": 0, "a": AUTO, "b": AUTO}, rng) for _ in range(200)}
    assert picks == {"a", "b"}


def test_roll_d2_edges(rng):
    assert not any(roll_d2(0, rng) for _ in range(50))
    assert all(roll_d2(100, rng) for _ in range(50))
    assert all(roll_d2(250, rng) for _ in range(10))
    assert not any(roll_d2(-5, rng) for _ in range(10))


def test_pluck_and_sample(rng):
    assert pluck(["only"], rng=rng) == "only"
    assert pluck(["a", "b"], weights=[0, 1], rng=rng) == "b"
    with pytest.raises(ValueError):
        pluck([], rng=rng)
    with pytest.raises(ValueError):
        pluck(["a", "b"], weights=[1], rng=rng)

    picked = sample(range(10), 4, rng)
    assert len(picked) == len(set(picked)) == 4
    assert sorted(sample([1, 2], 5, rng)) == [1, 2]
