# =========================
# FILE: mise/application/usecases.py
# (create / fetch / complete / current-task use cases over the injected stores)
# =========================
from __future__ import annotations

import logging
import math
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Sequence

from mise.application.inventory import check_steps_against_inventory
from mise.application.rescheduler import complete_task
from mise.application.timeline_generator import TimelineGenerator
from mise.core.config import UPCOMING_LIMIT
from mise.core.errors import NotFoundError, ValidationError
from mise.domain.entities import (
    MEAL_PENDING,
    TASK_COMPLETED,
    TASK_PENDING,
    Equipment,
    Meal,
    Recipe,
    Task,
    TaskAdjustment,
)
from mise.domain.repositories import MealStore, TaskIndex

log = logging.getLogger("app.usecases")


def now_like(reference: datetime) -> datetime:
    """Current time, aware or naive to match ``reference`` so the two compare."""
    if reference.tzinfo is not None:
        return datetime.now(timezone.utc).astimezone(reference.tzinfo)
    return datetime.now()


def _same_clock(value: datetime, reference: datetime, what: str) -> datetime:
    if (value.tzinfo is None) != (reference.tzinfo is None):
        raise ValidationError(f"{what} must carry a UTC offset exactly when the meal target_time does")
    return value


def _load_meal(meals: MealStore, meal_id: str) -> Meal:
    meal = meals.get(meal_id)
    if meal is None:
        raise NotFoundError(f"Meal not found: {meal_id}")
    return meal


def touch_task_index(task_index: Optional[TaskIndex], meal: Meal) -> None:
    """Re-put every task -> meal entry so the index lives exactly as long as the meal is in use."""
    if task_index is None:
        return
    for t in meal.timeline:
        task_index.put(t.id, meal.id)


class MealLocks:
    """
    One lock per meal id; completions for the same meal run one at a time.

    An entry is dropped as soon as nobody holds or waits on it, so ids of
    finished or expired meals do not pile up.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # meal_id -> [lock, holders and waiters]
        self._locks: Dict[str, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, meal_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(meal_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[meal_id]


@dataclass(frozen=True)
class CreateMeal:
    meals: MealStore
    task_index: TaskIndex
    generator: TimelineGenerator = field(default_factory=TimelineGenerator)

    def __call__(
        self,
        recipes: Sequence[Recipe],
        diners: int,
        target_time: datetime,
        equipment: Sequence[Equipment],
    ) -> Meal:
        if not recipes:
            raise ValidationError("At least one recipe is required")
        if diners is None or int(diners) < 1:
            raise ValidationError("diners must be at least 1")
        for r in recipes:
            check_steps_against_inventory(r.steps, equipment)

        # all-or-nothing: nothing is stored until the whole timeline exists
        timeline = self.generator.generate(recipes, target_time, int(diners), equipment)
        meal = Meal(
            id=str(uuid.uuid4()),
            timeline=timeline,
            created_at=now_like(target_time),
            target_time=target_time,
            diners=int(diners),
            status=MEAL_PENDING,
            recipes=list(recipes),
            equipment=list(equipment),
        )
        self.meals.put(meal.id, meal)
        for t in timeline:
            self.task_index.put(t.id, meal.id)
        log.info(
            "Meal %s created: %d recipe(s), %d task(s), first start %s",
            meal.id, len(recipes), len(timeline),
            timeline[0].start_time.isoformat() if timeline else "-",
        )
        return meal


@dataclass(frozen=True)
class Progress:
    completed_count: int
    total_count: int
    percentage: int


@dataclass(frozen=True)
class TimelineView:
    meal: Meal
    current_time: datetime
    progress: Progress


def progress_of(meal: Meal) -> Progress:
    total = len(meal.timeline)
    done = meal.completed_count()
    # half-up, so 2/8 -> 25 and 1/8 -> 13
    pct = int(math.floor(100.0 * done / total + 0.5)) if total else 0
    return Progress(completed_count=done, total_count=total, percentage=pct)


@dataclass(frozen=True)
class GetTimeline:
    meals: MealStore
    task_index: Optional[TaskIndex] = None

    def __call__(self, meal_id: str, now: Optional[datetime] = None) -> TimelineView:
        meal = _load_meal(self.meals, meal_id)
        touch_task_index(self.task_index, meal)
        return TimelineView(
            meal=meal,
            current_time=now or now_like(meal.target_time),
            progress=progress_of(meal),
        )


@dataclass(frozen=True)
class CompletionResult:
    task_id: str
    completed_at: datetime
    adjustments: List[TaskAdjustment]


@dataclass(frozen=True)
class CompleteTask:
    meals: MealStore
    task_index: TaskIndex
    locks: MealLocks = field(default_factory=MealLocks)

    def __call__(self, task_id: str, completed_at: datetime) -> CompletionResult:
        meal_id = self.task_index.get(task_id)
        if meal_id is None:
            raise NotFoundError(f"Task not found: {task_id}")

        with self.locks.hold(meal_id):
            meal = self.meals.get(meal_id)
            if meal is None:
                raise NotFoundError(f"Meal {meal_id} for task {task_id} is no longer available")
            _same_clock(completed_at, meal.target_time, "completed_at")
            adjustments = complete_task(meal, task_id, completed_at)
            self.meals.put(meal.id, meal)
            touch_task_index(self.task_index, meal)
        return CompletionResult(task_id=task_id, completed_at=completed_at, adjustments=adjustments)


@dataclass(frozen=True)
class CurrentTasksView:
    task: Optional[Task]
    upcoming_tasks: List[Task]
    time_until_next: Optional[int]
    active_tasks_count: int


def current_tasks(timeline: Sequence[Task], now: datetime, limit: int = UPCOMING_LIMIT) -> CurrentTasksView:
    running = [t for t in timeline if t.status != TASK_COMPLETED and t.contains(now)]
    upcoming = sorted(
        (t for t in timeline if t.status == TASK_PENDING and t.start_time > now),
        key=lambda t: t.start_time,
    )[:limit]
    until_next = None
    if upcoming:
        until_next = int(math.ceil((upcoming[0].start_time - now).total_seconds() / 60.0))
    return CurrentTasksView(
        task=running[0] if running else None,
        upcoming_tasks=upcoming,
        time_until_next=until_next,
        active_tasks_count=len(running),
    )


@dataclass(frozen=True)
class GetCurrentTasks:
    meals: MealStore
    limit: int = UPCOMING_LIMIT
    task_index: Optional[TaskIndex] = None

    def __call__(self, meal_id: str, now: Optional[datetime] = None) -> CurrentTasksView:
        meal = _load_meal(self.meals, meal_id)
        touch_task_index(self.task_index, meal)
        now = _same_clock(now, meal.target_time, "now") if now else now_like(meal.target_time)
        return current_tasks(meal.timeline, now, limit=self.limit)
