# mise/domain/entities.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Tuple

EQUIPMENT_TYPES = ("oven", "stovetop", "prep-space", "mixer", "other")
INGREDIENT_CATEGORIES = ("protein", "vegetable", "grain", "dairy", "spice", "other")
STEP_TYPES = ("prep", "cook", "rest", "serve")
PRIORITIES = ("high", "medium", "low")

TASK_PENDING = "pending"
TASK_ACTIVE = "active"
TASK_COMPLETED = "completed"
TASK_STATUSES = (TASK_PENDING, TASK_ACTIVE, TASK_COMPLETED)

MEAL_PENDING = "pending"
MEAL_ACTIVE = "active"
MEAL_COMPLETED = "completed"


@dataclass(frozen=True)
class Equipment:
    id: str
    name: str
    type: str
    capacity: int = 1  # advisory only; each id is one exclusive unit


@dataclass(frozen=True)
class Ingredient:
    id: str
    name: str
    amount: float
    unit: str
    category: str = "other"


@dataclass(frozen=True)
class Step:
    id: str
    instruction: str
    duration: int  # minutes
    type: str
    equipment: Tuple[Equipment, ...] = ()
    temperature: float | None = None


@dataclass(frozen=True)
class Recipe:
    id: str
    name: str
    servings: int | None
    ingredients: Tuple[Ingredient, ...]
    steps: Tuple[Step, ...]
    priority: str = "medium"

    @property
    def total_time(self) -> int:
        return sum(s.duration for s in self.steps)


@dataclass(frozen=True)
class Task:
    id: str
    recipe_id: str
    recipe_name: str
    step_id: str
    instruction: str
    start_time: datetime
    end_time: datetime
    duration: int
    type: str
    equipment: Tuple[Equipment, ...]
    status: str
    priority: str
    dependencies: Tuple[str, ...] = ()

    @property
    def equipment_ids(self) -> List[str]:
        return [e.id for e in self.equipment]

    def contains(self, moment: datetime) -> bool:
        return self.start_time <= moment < self.end_time


@dataclass(frozen=True)
class TaskAdjustment:
    task_id: str
    old_start: datetime
    new_start: datetime
    old_end: datetime
    new_end: datetime
    reason: str


@dataclass
class Meal:
    """Aggregate root of one scheduling run; mutated by task completions."""

    id: str
    timeline: List[Task]
    created_at: datetime
    target_time: datetime
    diners: int
    status: str = MEAL_PENDING
    recipes: List[Recipe] = field(default_factory=list)
    equipment: List[Equipment] = field(default_factory=list)

    def find_task(self, task_id: str) -> Task | None:
        for t in self.timeline:
            if t.id == task_id:
                return t
        return None

    def completed_count(self) -> int:
        return sum(1 for t in self.timeline if t.status == TASK_COMPLETED)
