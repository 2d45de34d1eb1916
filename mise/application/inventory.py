# mise/application/inventory.py
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping

from mise.core.errors import ValidationError
from mise.domain.entities import Equipment, Step

# capacity key -> (id prefix, display name, equipment type)
_UNIT_KINDS = (
    ("oven", "oven", "Oven", "oven"),
    ("stovetop", "stovetop", "Stovetop", "stovetop"),
    ("prep_space", "prep-space", "Prep Space", "prep-space"),
    ("mixer", "mixer", "Mixer", "mixer"),
)


def expand_inventory(capacity: Mapping[str, int]) -> List[Equipment]:
    """``{"oven": 2, "mixer": 1}`` -> oven-1, oven-2, mixer-1; every unit schedules as capacity 1."""
    units: List[Equipment] = []
    for key, prefix, name, eq_type in _UNIT_KINDS:
        count = int(capacity.get(key) or 0)
        if count < 0:
            raise ValidationError(f"Equipment count for {key} cannot be negative")
        units.extend(Equipment(id=f"{prefix}-{n}", name=name, type=eq_type, capacity=1) for n in range(1, count + 1))
    return units


def resolve_equipment(refs: Iterable[str], inventory: Dict[str, Equipment], where: str) -> tuple:
    out = []
    for ref in refs:
        key = (ref or "").strip()
        if key not in inventory:
            raise ValidationError(f"{where} needs equipment '{key}' which is not in the kitchen inventory")
        out.append(inventory[key])
    return tuple(out)


def check_steps_against_inventory(steps: Iterable[Step], inventory: Iterable[Equipment]) -> None:
    known = {e.id for e in inventory}
    for step in steps:
        for eq in step.equipment:
            if eq.id not in known:
                raise ValidationError(f"Step '{step.instruction}' needs equipment '{eq.id}' which is not in the kitchen inventory")
