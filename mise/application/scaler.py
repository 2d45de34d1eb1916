# mise/application/scaler.py
from __future__ import annotations

import math
from dataclasses import replace
from fractions import Fraction

from mise.core.errors import ValidationError
from mise.domain.entities import Recipe


def scale_factor(recipe: Recipe, target_servings: int) -> Fraction:
    if not recipe.servings or recipe.servings <= 0:
        raise ValidationError(f"Recipe '{recipe.name}' has no usable servings count: {recipe.servings!r}")
    if target_servings is None or int(target_servings) < 1:
        raise ValidationError(f"diners must be at least 1, got {target_servings!r}")
    return Fraction(int(target_servings), int(recipe.servings))


def scale_recipe(recipe: Recipe, target_servings: int) -> Recipe:
    """
    Return a copy of ``recipe`` sized for ``target_servings``.

    Ingredient amounts scale linearly. Only prep steps get longer or shorter
    (rounded up to whole minutes); cook/rest/serve times are treated as fixed.
    """
    factor = scale_factor(recipe, target_servings)
    if factor == 1:
        return recipe

    ingredients = tuple(replace(i, amount=float(i.amount * factor)) for i in recipe.ingredients)
    steps = tuple(
        replace(s, duration=int(math.ceil(s.duration * factor))) if s.type == "prep" else s
        for s in recipe.steps
    )
    return replace(recipe, servings=int(target_servings), ingredients=ingredients, steps=steps)
