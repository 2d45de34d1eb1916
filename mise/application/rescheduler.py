# mise/application/rescheduler.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List

from mise.core.errors import NotFoundError, ValidationError
from mise.domain.entities import (
    MEAL_ACTIVE,
    MEAL_COMPLETED,
    MEAL_PENDING,
    TASK_COMPLETED,
    TASK_PENDING,
    Meal,
    Task,
    TaskAdjustment,
)

log = logging.getLogger("app.rescheduler")

REASON_LATE = "completed late"
REASON_EARLY = "completed early"


@dataclass(frozen=True)
class Reschedule:
    timeline: List[Task]
    status: str
    adjustments: List[TaskAdjustment]


def plan_completion(meal: Meal, task_id: str, completed_at: datetime) -> Reschedule:
    """
    Work out the effect of completing ``task_id`` at ``completed_at`` without touching ``meal``.

    Pending tasks that start strictly after the completed task's scheduled end
    move by the same delta. Equipment overlaps introduced by the shift are not
    re-checked.
    """
    done = meal.find_task(task_id)
    if done is None:
        raise NotFoundError(f"Task not found: {task_id}")
    if done.status == TASK_COMPLETED:
        raise ValidationError(f"Task already completed: {task_id}")

    delta = completed_at - done.end_time
    reason = REASON_LATE if delta.total_seconds() > 0 else REASON_EARLY

    timeline: List[Task] = []
    adjustments: List[TaskAdjustment] = []
    for t in meal.timeline:
        if t.id == task_id:
            t = replace(t, status=TASK_COMPLETED)
        elif delta and t.status == TASK_PENDING and t.start_time > done.end_time:
            moved = replace(t, start_time=t.start_time + delta, end_time=t.end_time + delta)
            adjustments.append(
                TaskAdjustment(
                    task_id=t.id,
                    old_start=t.start_time,
                    new_start=moved.start_time,
                    old_end=t.end_time,
                    new_end=moved.end_time,
                    reason=reason,
                )
            )
            t = moved
        timeline.append(t)

    if all(t.status == TASK_COMPLETED for t in timeline):
        status = MEAL_COMPLETED
    elif meal.status == MEAL_PENDING:
        status = MEAL_ACTIVE
    else:
        status = meal.status
    return Reschedule(timeline=timeline, status=status, adjustments=adjustments)


def complete_task(meal: Meal, task_id: str, completed_at: datetime) -> List[TaskAdjustment]:
    """Apply a completion to ``meal`` in place; timeline and status change together."""
    result = plan_completion(meal, task_id, completed_at)
    meal.timeline = result.timeline
    meal.status = result.status
    log.info(
        "Meal %s: task %s completed, %d task(s) shifted, status=%s",
        meal.id, task_id, len(result.adjustments), meal.status,
    )
    return result.adjustments
