# mise/application/step_scheduler.py
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import List

from mise.application.equipment_ledger import EquipmentLedger
from mise.core.errors import InternalError
from mise.domain.entities import TASK_PENDING, Recipe, Step, Task

log = logging.getLogger("app.step_scheduler")


def _new_task_id() -> str:
    return str(uuid.uuid4())


def _unique_equipment_ids(step: Step) -> List[str]:
    return list(dict.fromkeys(e.id for e in step.equipment))


def feasible_end(step: Step, required_end: datetime, ledger: EquipmentLedger) -> datetime:
    """
    Latest end time <= required_end at which every unit the step needs is free.

    The most constraining unit wins; we loop until no unit pulls the slot any
    further, so a slot taken from one unit is also checked against the others.
    """
    eq_ids = _unique_equipment_ids(step)
    if not eq_ids:
        return required_end

    end = required_end
    while True:
        candidate = min(ledger.find_next_free_slot_backward(eq_id, step.duration, end) for eq_id in eq_ids)
        if candidate == end:
            return end
        end = candidate


def schedule_recipe(
    recipe: Recipe,
    target_end: datetime,
    ledger: EquipmentLedger,
    task_id_factory=_new_task_id,
) -> List[Task]:
    """Place one recipe's steps backwards from ``target_end`` against a shared ledger."""
    placed: List[Task] = []
    cursor = target_end

    for step in reversed(recipe.steps):
        end = feasible_end(step, cursor, ledger)
        start = end - timedelta(minutes=step.duration)

        for eq_id in _unique_equipment_ids(step):
            if ledger.conflict(eq_id, start, end):
                raise InternalError(f"Ledger still reports {eq_id} busy for step '{step.id}' after slot search")
            ledger.reserve(eq_id, start, end)

        if end != cursor:
            log.debug("Recipe %s step %s pushed %s earlier by equipment", recipe.name, step.id, cursor - end)

        placed.append(
            Task(
                id=task_id_factory(),
                recipe_id=recipe.id,
                recipe_name=recipe.name,
                step_id=step.id,
                instruction=step.instruction,
                start_time=start,
                end_time=end,
                duration=step.duration,
                type=step.type,
                equipment=step.equipment,
                status=TASK_PENDING,
                priority=recipe.priority,
            )
        )
        cursor = start

    placed.reverse()
    # every step waits on the one before it in the recipe
    chained: List[Task] = []
    prev_id: str | None = None
    for task in placed:
        if prev_id is not None:
            task = replace(task, dependencies=(prev_id,))
        chained.append(task)
        prev_id = task.id
    return chained
