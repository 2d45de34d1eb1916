"""
Shared fixtures for the scheduler tests.
"""

from datetime import datetime
from itertools import count

import pytest

from mise.domain.entities import Equipment, Ingredient, Recipe, Step

OVEN = Equipment(id="oven-1", name="Oven", type="oven", capacity=1)
STOVE = Equipment(id="stovetop-1", name="Stovetop", type="stovetop", capacity=1)
MIXER = Equipment(id="mixer-1", name="Mixer", type="mixer", capacity=1)


@pytest.fixture
def target_time():
    """Serving time used across most scheduling tests."""
    return datetime(2030, 1, 1, 18, 0)


@pytest.fixture
def kitchen():
    return [OVEN, STOVE, MIXER]


@pytest.fixture
def make_recipe():
    """Factory for recipes; steps are (type, minutes, [equipment]) tuples."""
    ids = count(1)

    def _make(name, steps, priority="medium", servings=4, ingredients=None):
        return Recipe(
            id=f"r{next(ids)}",
            name=name,
            servings=servings,
            priority=priority,
            ingredients=tuple(
                Ingredient(id=f"i{next(ids)}", name=n, amount=a, unit="g", category="other")
                for n, a in (ingredients or [("salt", 5.0)])
            ),
            steps=tuple(
                Step(
                    id=f"s{next(ids)}",
                    instruction=f"{name} {kind} {minutes}",
                    duration=minutes,
                    type=kind,
                    equipment=tuple(eq),
                )
                for kind, minutes, eq in steps
            ),
        )

    return _make


@pytest.fixture
def sequential_ids():
    ids = count(1)
    return lambda: f"t{next(ids)}"
