# clutchline_backend/core/chance.py
# Weighted random selection shared by every probabilistic decision in the game.

import random
from typing import Dict, Hashable, List, Mapping, Optional, Sequence, TypeVar, Union

K = TypeVar("K", bound=Hashable)

# Marker for distribution entries that share whatever percentage is left over.
AUTO = "auto"


def weighted_choice(weights: Mapping[K, float], rng: Optional[random.Random] = None) -> K:
    """
    Pick one key from a {key: weight} mapping.

    Weights are normalized to their total, so {a: 1, b: 3} and {a: 25, b: 75}
    behave the same. Negative weights and an empty or zero total are rejected.
    """
    if not weights:
        raise ValueError("cannot choose from an empty distribution")

    keys = list(weights.keys())
    values = [float(weights[key]) for key in keys]
    if any(value < 0 for value in values):
        raise ValueError(f"negative weight in distribution: {dict(weights)}")

    total = sum(values)
    if total <= 0:
        raise ValueError(f"distribution weights must sum to a positive value: {dict(weights)}")

    return (rng or random).choices(keys, weights=[value / total for value in values], k=1)[0]


def roll(distribution: Mapping[K, Union[float, str]], rng: Optional[random.Random] = None) -> K:
    """
    Roll a percentage distribution.

    Entries set to AUTO split the remainder of 100 evenly, e.g.
    {5: 20, 6: "auto", 0: "auto"} becomes {5: 20, 6: 40, 0: 40}.
    """
    fixed = {key: float(value) for key, value in distribution.items() if value != AUTO}
    auto_keys = [key for key, value in distribution.items() if value == AUTO]

    resolved: Dict[K, float] = dict(fixed)
    if auto_keys:
        remainder = max(0.0, 100.0 - sum(fixed.values()))
        for key in auto_keys:
            resolved[key] = remainder / len(auto_keys)

    # keep the caller's key order so seeded runs are reproducible
    ordered = {key: resolved[key] for key in distribution.keys()}
    return weighted_choice(ordered, rng)


def roll_d2(goal: float, rng: Optional[random.Random] = None) -> bool:
    """True with `goal` percent probability, clamped to 0..100."""
    goal = min(100.0, max(0.0, float(goal)))
    if goal == 0:
        return False
    if goal == 100:
        return True
    return weighted_choice({True: goal, False: 100.0 - goal}, rng)


def pluck(items: Sequence[K], weights: Optional[Sequence[float]] = None, rng: Optional[random.Random] = None) -> K:
    """Pick one element of a sequence, uniformly unless weights are given."""
    if not items:
        raise ValueError("cannot pluck from an empty sequence")
    if weights is None:
        weights = [1.0] * len(items)
    if len(weights) != len(items):
        raise ValueError("items and weights must have the same length")
    index = weighted_choice({i: w for i, w in enumerate(weights)}, rng)
    return items[index]


def sample(items: Sequence[K], count: int, rng: Optional[random.Random] = None) -> List[K]:
    """Up to `count` distinct elements, in random order."""
    return (rng or random).sample(list(items), min(count, len(items)))
