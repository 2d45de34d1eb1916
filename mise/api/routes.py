# mise/api/routes.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import anyio
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from mise.api.schemas import (
    AdjustmentOut,
    CurrentTaskResponse,
    MealRequest,
    MealResponse,
    ParseRecipeRequest,
    ProgressOut,
    RecipeInput,
    TaskCompletionRequest,
    TaskCompletionResponse,
    TaskOut,
    TimelineResponse,
)
from mise.core.errors import SchedulingError

log = logging.getLogger("api.routes")
router = APIRouter()


def error_body(status: int, code: str, message: str) -> dict:
    return {
        "error": code,
        "message": message,
        "code": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _http_error(status: int, e: Exception) -> HTTPException:
    code = e.code if isinstance(e, SchedulingError) else ("VALIDATION" if status == 400 else "INTERNAL")
    return HTTPException(status_code=status, detail=error_body(status, code, str(e)))


# -------------------------
# Dependencies via app.state
# -------------------------
def _from_state(request: Request, name: str):
    uc = getattr(request.app.state, name, None)
    if uc is None:
        raise RuntimeError(f"{name} not initialized. Check app startup wiring.")
    return uc


def get_create_meal(request: Request):
    return _from_state(request, "create_meal")


def get_timeline_uc(request: Request):
    return _from_state(request, "get_timeline")


def get_complete_task(request: Request):
    return _from_state(request, "complete_task")


def get_current_tasks(request: Request):
    return _from_state(request, "get_current_tasks")


def get_recipe_parser(request: Request):
    return _from_state(request, "recipe_parser")


# -------------------------
# /meal
# -------------------------
@router.post("/meal", response_model=MealResponse, status_code=201)
async def create_meal(req: MealRequest, create=Depends(get_create_meal)) -> Any:
    try:
        recipes, equipment = req.to_domain()
        # scheduling is CPU-only but can be long for big menus; keep the loop free
        meal = await anyio.to_thread.run_sync(create, recipes, req.diners, req.target_time, equipment)
    except ValueError as e:
        raise _http_error(400, e)
    except Exception as e:
        log.exception("Processing /meal error")
        raise _http_error(500, e)

    return MealResponse(
        meal_id=meal.id,
        timeline=[TaskOut.from_task(t, meal.id) for t in meal.timeline],
        created_at=meal.created_at,
        target_time=meal.target_time,
        diners=meal.diners,
        status=meal.status,
    )


@router.get("/timeline/{meal_id}", response_model=TimelineResponse)
def get_timeline(meal_id: str, uc=Depends(get_timeline_uc)) -> Any:
    try:
        view = uc(meal_id)
    except LookupError as e:
        raise _http_error(404, e)
    except Exception as e:
        log.exception("Processing /timeline error")
        raise _http_error(500, e)

    meal = view.meal
    return TimelineResponse(
        meal_id=meal.id,
        timeline=[TaskOut.from_task(t, meal.id) for t in meal.timeline],
        current_time=view.current_time,
        status=meal.status,
        progress=ProgressOut(
            completed_tasks=view.progress.completed_count,
            total_tasks=view.progress.total_count,
            percentage=view.progress.percentage,
        ),
    )


@router.put("/task/{task_id}/complete", response_model=TaskCompletionResponse)
def complete_task(task_id: str, req: TaskCompletionRequest, uc=Depends(get_complete_task)) -> Any:
    try:
        result = uc(task_id, req.completed_at)
    except LookupError as e:
        raise _http_error(404, e)
    except ValueError as e:
        raise _http_error(400, e)
    except Exception as e:
        log.exception("Processing /task/complete error")
        raise _http_error(500, e)

    return TaskCompletionResponse(
        task_id=result.task_id,
        completed_at=result.completed_at,
        timeline_adjustments=[AdjustmentOut.from_adjustment(a) for a in result.adjustments],
    )


@router.get("/current-task/{meal_id}", response_model=CurrentTaskResponse)
def current_task(
    meal_id: str,
    now: Optional[datetime] = Query(default=None, description="Defaults to the server clock"),
    uc=Depends(get_current_tasks),
) -> Any:
    try:
        view = uc(meal_id, now)
    except LookupError as e:
        raise _http_error(404, e)
    except ValueError as e:
        raise _http_error(400, e)
    except Exception as e:
        log.exception("Processing /current-task error")
        raise _http_error(500, e)

    return CurrentTaskResponse(
        task=TaskOut.from_task(view.task, meal_id) if view.task else None,
        upcoming_tasks=[TaskOut.from_task(t, meal_id) for t in view.upcoming_tasks],
        time_until_next=view.time_until_next,
        active_tasks_count=view.active_tasks_count,
    )


# -------------------------
# /recipes/parse (free text -> RecipeInput, ready to post to /meal)
# -------------------------
@router.post("/recipes/parse", response_model=RecipeInput)
def parse_recipe(req: ParseRecipeRequest, parser=Depends(get_recipe_parser)) -> Any:
    recipe = parser.parse(req.text, req.name, servings=req.servings)
    if not recipe.steps:
        raise HTTPException(status_code=400, detail=error_body(400, "VALIDATION", "No steps found in recipe text"))
    return RecipeInput.from_domain(recipe)


@router.get("/health")
def health() -> Any:
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
