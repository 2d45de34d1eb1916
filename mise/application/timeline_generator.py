# mise/application/timeline_generator.py
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, List, Sequence

from mise.application.equipment_ledger import EquipmentLedger
from mise.application.scaler import scale_recipe
from mise.application.step_scheduler import _new_task_id, schedule_recipe
from mise.core.config import PRIORITY_RANK, SLOT_ROUNDING_MINUTES, STAGGER_MINUTES
from mise.core.errors import ValidationError
from mise.domain.entities import Equipment, Recipe, Task

log = logging.getLogger("app.timeline")


def round_down(moment: datetime, step_minutes: int = SLOT_ROUNDING_MINUTES) -> datetime:
    """Truncate to the previous ``step_minutes`` boundary (12:03:59 -> 12:00:00)."""
    return moment.replace(minute=moment.minute - moment.minute % step_minutes, second=0, microsecond=0)


def priority_order(recipes: Sequence[Recipe]) -> List[Recipe]:
    # sorted() is stable: equal priorities keep their input order
    return sorted(recipes, key=lambda r: -PRIORITY_RANK.get(r.priority, 0))


class TimelineGenerator:
    """
    Multi-recipe backward scheduler.

    Recipes are scaled to the diner count, then scheduled highest priority
    first against one shared equipment ledger. The freshest dish is anchored
    on the target time and every following recipe aims ``stagger_minutes``
    earlier than the one before it.
    """

    def __init__(
        self,
        stagger_minutes: int = STAGGER_MINUTES,
        rounding_minutes: int = SLOT_ROUNDING_MINUTES,
        task_id_factory: Callable[[], str] = _new_task_id,
    ) -> None:
        self.stagger = timedelta(minutes=stagger_minutes)
        self.rounding_minutes = rounding_minutes
        self.task_id_factory = task_id_factory

    def generate(
        self,
        recipes: Sequence[Recipe],
        target_time: datetime,
        diners: int,
        equipment: Sequence[Equipment],
    ) -> List[Task]:
        if not recipes:
            raise ValidationError("At least one recipe is required")

        scaled = [scale_recipe(r, diners) for r in recipes]
        ledger = EquipmentLedger(e.id for e in equipment)

        timeline: List[Task] = []
        recipe_target = target_time
        for idx, recipe in enumerate(priority_order(scaled)):
            if idx > 0:
                recipe_target = recipe_target - self.stagger
            tasks = schedule_recipe(recipe, recipe_target, ledger, task_id_factory=self.task_id_factory)
            if tasks and tasks[-1].end_time < recipe_target:
                log.warning(
                    "Recipe '%s' (%s) finishes %s before its slot because of equipment contention",
                    recipe.name, recipe.priority, recipe_target - tasks[-1].end_time,
                )
            timeline.extend(tasks)

        timeline.sort(key=lambda t: t.start_time)
        return [
            replace(
                t,
                start_time=round_down(t.start_time, self.rounding_minutes),
                end_time=round_down(t.end_time, self.rounding_minutes),
            )
            for t in timeline
        ]


def generate_timeline(
    recipes: Sequence[Recipe],
    target_time: datetime,
    diners: int,
    equipment: Sequence[Equipment],
) -> List[Task]:
    return TimelineGenerator().generate(recipes, target_time, diners, equipment)
