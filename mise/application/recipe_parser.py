# =========================
# FILE: mise/application/recipe_parser.py
# (heuristic free-text recipe -> structured Recipe; keyword rules, not NLP)
# =========================
from __future__ import annotations

import re
import uuid
from typing import List, Optional, Tuple

from mise.domain.entities import Equipment, Ingredient, Recipe, Step

DEFAULT_SERVINGS = 4

_RE_INGREDIENT_HEADER = re.compile(r"ingredient|you\s+need", re.IGNORECASE)
_RE_MEASURED_LINE = re.compile(r"^\d+\s+(cup|tbsp|tsp|lb|oz)", re.IGNORECASE)
_RE_STEP_HEADER = re.compile(r"instruction|step", re.IGNORECASE)
_RE_NUMBERED = re.compile(r"^\d+\.")
_RE_SECTION_TITLE = re.compile(r"^(ingredients?|steps?|instructions?|method|directions)\s*:?$", re.IGNORECASE)
_RE_NUMBER_PREFIX = re.compile(r"^\d+\.\s*")
_RE_AMOUNT = re.compile(r"(\d+(?:\.\d+)?)\s*([a-zA-Z]+)?\s+(.+)")
_RE_LEADING_JUNK = re.compile(r"^[\d.\s*\-]*")
_RE_TIME = re.compile(r"(\d+)\s*(minute|min|hour|hr)", re.IGNORECASE)

# first match wins
_DURATION_RULES: List[Tuple[re.Pattern, int]] = [
    (re.compile(r"bake|roast"), 30),
    (re.compile(r"simmer|braise"), 20),
    (re.compile(r"sauté|saute|fry"), 10),
    (re.compile(r"boil"), 15),
    (re.compile(r"chop|dice|slice"), 5),
    (re.compile(r"mix|stir|combine"), 3),
    (re.compile(r"preheat"), 10),
    (re.compile(r"rest|cool|chill"), 15),
]
DEFAULT_STEP_MINUTES = 5

_RE_SERVE = re.compile(r"serve|plate|garnish")
_RE_REST = re.compile(r"rest|cool|chill|stand")
_RE_COOK = re.compile(r"cook|bake|fry|sauté|saute|boil|simmer|roast|grill")

_EQUIPMENT_RULES: List[Tuple[re.Pattern, Equipment]] = [
    (re.compile(r"oven|bake|roast"), Equipment(id="oven-1", name="Oven", type="oven", capacity=1)),
    (re.compile(r"pan|skillet|sauté|saute|fry"), Equipment(id="stovetop-1", name="Stovetop", type="stovetop", capacity=1)),
    (re.compile(r"pot|boil|simmer"), Equipment(id="stovetop-2", name="Stovetop", type="stovetop", capacity=1)),
    (re.compile(r"mixer|whip|beat"), Equipment(id="mixer-1", name="Mixer", type="mixer", capacity=1)),
]

_CATEGORY_RULES: List[Tuple[str, re.Pattern]] = [
    ("protein", re.compile(r"chicken|beef|pork|fish|egg")),
    ("vegetable", re.compile(r"onion|carrot|potato|pepper|tomato")),
    ("grain", re.compile(r"rice|pasta|bread|flour")),
    ("dairy", re.compile(r"milk|cheese|butter|cream")),
    ("spice", re.compile(r"salt|herb|spice")),
]

_RE_FRESHNESS = re.compile(r"fry|crispy|fresh|immediately")


def categorize_ingredient(name: str) -> str:
    low = (name or "").lower()
    for category, rx in _CATEGORY_RULES:
        if rx.search(low):
            return category
    return "other"


def estimate_duration(instruction: str) -> int:
    low = (instruction or "").lower()
    m = _RE_TIME.search(low)
    if m:
        value = int(m.group(1))
        minutes = value * 60 if m.group(2).startswith(("hour", "hr")) else value
        return max(1, minutes)
    for rx, minutes in _DURATION_RULES:
        if rx.search(low):
            return minutes
    return DEFAULT_STEP_MINUTES


def classify_step(instruction: str) -> str:
    low = (instruction or "").lower()
    if _RE_SERVE.search(low):
        return "serve"
    if _RE_REST.search(low):
        return "rest"
    if _RE_COOK.search(low):
        return "cook"
    return "prep"


def extract_equipment(instruction: str) -> Tuple[Equipment, ...]:
    low = (instruction or "").lower()
    return tuple(eq for rx, eq in _EQUIPMENT_RULES if rx.search(low))


def infer_priority(steps: List[Step]) -> str:
    if any(_RE_FRESHNESS.search(s.instruction.lower()) for s in steps):
        return "high"
    return "medium" if any(s.type == "cook" for s in steps) else "low"


class RecipeTextParser:
    """Split pasted recipe text into ingredient and step sections line by line."""

    def __init__(self, id_factory=lambda: str(uuid.uuid4())) -> None:
        self._new_id = id_factory

    def parse(self, text: str, name: str, servings: Optional[int] = None) -> Recipe:
        ingredients: List[Ingredient] = []
        steps: List[Step] = []
        section = "none"

        for raw in (text or "").splitlines():
            line = raw.strip()
            if not line:
                continue
            low = line.lower()

            if _RE_INGREDIENT_HEADER.search(low) or low.startswith("*") or _RE_MEASURED_LINE.match(low):
                section = "ingredients"
                if "ingredient" not in low:
                    ingredients.append(self._ingredient(line))
            elif _RE_STEP_HEADER.search(low) or _RE_NUMBERED.match(low) or _RE_SECTION_TITLE.match(low):
                section = "steps"
                if "instruction" not in low and not _RE_SECTION_TITLE.match(low):
                    steps.append(self._step(line))
            elif section == "ingredients":
                ingredients.append(self._ingredient(line))
            elif section == "steps":
                steps.append(self._step(line))

        return Recipe(
            id=self._new_id(),
            name=(name or "").strip() or "Untitled recipe",
            servings=servings or DEFAULT_SERVINGS,
            ingredients=tuple(ingredients),
            steps=tuple(steps),
            priority=infer_priority(steps),
        )

    def _ingredient(self, line: str) -> Ingredient:
        text = line.lstrip("*-• ").strip()
        m = _RE_AMOUNT.search(text)
        if m:
            return Ingredient(
                id=self._new_id(),
                name=m.group(3).strip(),
                amount=float(m.group(1)),
                unit=m.group(2) or "unit",
                category=categorize_ingredient(m.group(3)),
            )
        name = _RE_LEADING_JUNK.sub("", text).strip()
        return Ingredient(id=self._new_id(), name=name, amount=1.0, unit="unit", category="other")

    def _step(self, line: str) -> Step:
        clean = _RE_NUMBER_PREFIX.sub("", line).strip()
        return Step(
            id=self._new_id(),
            instruction=clean,
            duration=estimate_duration(clean),
            type=classify_step(clean),
            equipment=extract_equipment(clean),
        )
