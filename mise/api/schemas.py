# =========================
# FILE: mise/api/schemas.py
# (request/response contracts; requests become frozen domain objects before scheduling)
# =========================
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Literal, Optional, Tuple

from pydantic import AliasChoices, BaseModel, Field

from mise.application.inventory import expand_inventory, resolve_equipment
from mise.domain.entities import Equipment, Ingredient, Recipe, Step, Task, TaskAdjustment

Priority = Literal["high", "medium", "low"]
StepType = Literal["prep", "cook", "rest", "serve"]
Category = Literal["protein", "vegetable", "grain", "dairy", "spice", "other"]
Status = Literal["pending", "active", "completed"]


def _new_id() -> str:
    return str(uuid.uuid4())


class IngredientInput(BaseModel):
    name: str = Field(..., min_length=1)
    amount: float = Field(ge=0)
    unit: str = "unit"
    category: Category = "other"


class StepInput(BaseModel):
    instruction: str = Field(..., min_length=1)
    duration: int = Field(..., gt=0, description="Minutes")
    type: StepType
    equipment: List[str] = Field(default_factory=list, description="Equipment unit ids, e.g. 'oven-1'")
    temperature: Optional[float] = None


class RecipeInput(BaseModel):
    name: str = Field(..., min_length=1)
    servings: int = Field(..., ge=1)
    priority: Priority = "medium"
    ingredients: List[IngredientInput] = Field(default_factory=list)
    steps: List[StepInput] = Field(..., min_length=1)

    def to_domain(self, inventory: dict) -> Recipe:
        return Recipe(
            id=_new_id(),
            name=self.name.strip(),
            servings=self.servings,
            priority=self.priority,
            ingredients=tuple(
                Ingredient(id=_new_id(), name=i.name.strip(), amount=i.amount, unit=i.unit, category=i.category)
                for i in self.ingredients
            ),
            steps=tuple(
                Step(
                    id=_new_id(),
                    instruction=s.instruction.strip(),
                    duration=s.duration,
                    type=s.type,
                    equipment=resolve_equipment(s.equipment, inventory, f"Step '{s.instruction}' of '{self.name}'"),
                    temperature=s.temperature,
                )
                for s in self.steps
            ),
        )

    @classmethod
    def from_domain(cls, recipe: Recipe) -> "RecipeInput":
        return cls(
            name=recipe.name,
            servings=recipe.servings or 1,
            priority=recipe.priority,
            ingredients=[
                IngredientInput(name=i.name, amount=i.amount, unit=i.unit, category=i.category)
                for i in recipe.ingredients
            ],
            steps=[
                StepInput(
                    instruction=s.instruction,
                    duration=s.duration,
                    type=s.type,
                    equipment=[e.id for e in s.equipment],
                    temperature=s.temperature,
                )
                for s in recipe.steps
            ],
        )


class EquipmentCapacity(BaseModel):
    oven: int = Field(default=0, ge=0)
    stovetop: int = Field(default=0, ge=0)
    prep_space: int = Field(default=0, ge=0, validation_alias=AliasChoices("prep_space", "prepSpace", "prep-space"))
    mixer: int = Field(default=0, ge=0)


class MealRequest(BaseModel):
    recipes: List[RecipeInput] = Field(..., min_length=1)
    diners: int = Field(..., ge=1)
    target_time: datetime = Field(..., validation_alias=AliasChoices("target_time", "targetTime"))
    capacity: EquipmentCapacity = Field(..., validation_alias=AliasChoices("capacity", "equipment"))

    def to_domain(self) -> Tuple[List[Recipe], List[Equipment]]:
        equipment = expand_inventory(self.capacity.model_dump())
        inventory = {e.id: e for e in equipment}
        return [r.to_domain(inventory) for r in self.recipes], equipment


class TaskOut(BaseModel):
    task_id: str
    meal_id: str
    recipe_id: str
    recipe_name: str
    step_id: str
    instruction: str
    start_time: datetime
    end_time: datetime
    duration: int
    type: StepType
    equipment: List[str]
    status: Status
    priority: Priority
    dependencies: List[str]

    @classmethod
    def from_task(cls, task: Task, meal_id: str) -> "TaskOut":
        return cls(
            task_id=task.id,
            meal_id=meal_id,
            recipe_id=task.recipe_id,
            recipe_name=task.recipe_name,
            step_id=task.step_id,
            instruction=task.instruction,
            start_time=task.start_time,
            end_time=task.end_time,
            duration=task.duration,
            type=task.type,
            equipment=task.equipment_ids,
            status=task.status,
            priority=task.priority,
            dependencies=list(task.dependencies),
        )


class MealResponse(BaseModel):
    meal_id: str
    timeline: List[TaskOut]
    created_at: datetime
    target_time: datetime
    diners: int
    status: Status


class ProgressOut(BaseModel):
    completed_tasks: int
    total_tasks: int
    percentage: int


class TimelineResponse(BaseModel):
    meal_id: str
    timeline: List[TaskOut]
    current_time: datetime
    status: Status
    progress: ProgressOut


class TaskCompletionRequest(BaseModel):
    completed_at: datetime = Field(..., validation_alias=AliasChoices("completed_at", "completedAt"))


class AdjustmentOut(BaseModel):
    task_id: str
    old_start_time: datetime
    new_start_time: datetime
    old_end_time: datetime
    new_end_time: datetime
    reason: str

    @classmethod
    def from_adjustment(cls, a: TaskAdjustment) -> "AdjustmentOut":
        return cls(
            task_id=a.task_id,
            old_start_time=a.old_start,
            new_start_time=a.new_start,
            old_end_time=a.old_end,
            new_end_time=a.new_end,
            reason=a.reason,
        )


class TaskCompletionResponse(BaseModel):
    task_id: str
    status: Literal["completed"] = "completed"
    completed_at: datetime
    timeline_adjustments: List[AdjustmentOut]


class CurrentTaskResponse(BaseModel):
    task: Optional[TaskOut] = None
    upcoming_tasks: List[TaskOut]
    time_until_next: Optional[int] = None
    active_tasks_count: int


class ParseRecipeRequest(BaseModel):
    name: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1, examples=["Ingredients\n2 cups flour\nInstructions\n1. Bake 25 minutes"])
    servings: Optional[int] = Field(default=None, ge=1)


class ErrorResponse(BaseModel):
    error: str
    message: str
    code: int
    timestamp: datetime
