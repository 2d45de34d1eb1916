from __future__ import annotations

import logging
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from pymongo import MongoClient
from dotenv import load_dotenv
load_dotenv()
from mise.api.routes import error_body, router
from mise.core.config import (
    API_HOST, API_PORT, MEAL_STORE, MEAL_TTL_SECONDS,
    MONGO_URI, MONGO_DB, MONGO_MEALS_COL, MONGO_TASKS_COL,
)

from mise.application.recipe_parser import RecipeTextParser
from mise.application.timeline_generator import TimelineGenerator
from mise.application.usecases import CreateMeal, GetTimeline, CompleteTask, GetCurrentTasks, MealLocks
from mise.infrastructure.meal_store import InMemoryStore
from mise.infrastructure.mongo_repositories import mongo_meal_store, mongo_task_index

log = logging.getLogger("app")
app = FastAPI(title="Mise Timeline Scheduler")
app.include_router(router)

_mongo_client: MongoClient | None = None


@app.exception_handler(RequestValidationError)
async def on_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg', 'invalid request')}" if where else first.get("msg", "invalid request")
    return JSONResponse(status_code=400, content=error_body(400, "VALIDATION", message))


@app.exception_handler(StarletteHTTPException)
async def on_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # routes raise with a ready error body; anything else (unknown path, wrong method) gets one here
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        code = "NOT_FOUND" if exc.status_code == 404 else ("INTERNAL" if exc.status_code >= 500 else "VALIDATION")
        content = error_body(exc.status_code, code, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


def build_stores():
    global _mongo_client

    if MEAL_STORE == "mongo":
        _mongo_client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=3000)
        db = _mongo_client[MONGO_DB]
        return mongo_meal_store(db[MONGO_MEALS_COL]), mongo_task_index(db[MONGO_TASKS_COL])
    if MEAL_STORE != "memory":
        log.warning("Unknown MEAL_STORE=%r, falling back to in-memory storage", MEAL_STORE)
    return InMemoryStore(ttl_seconds=MEAL_TTL_SECONDS), InMemoryStore(ttl_seconds=MEAL_TTL_SECONDS)


def wire(target: FastAPI, meals, task_index) -> None:
    generator = TimelineGenerator()

    # DI for routes.py
    target.state.create_meal = CreateMeal(meals=meals, task_index=task_index, generator=generator)
    # an index with its own TTL is refreshed whenever its meal is read
    refresh = task_index if getattr(task_index, "ttl_seconds", 0) else None
    target.state.get_timeline = GetTimeline(meals=meals, task_index=refresh)
    target.state.complete_task = CompleteTask(meals=meals, task_index=task_index, locks=MealLocks())
    target.state.get_current_tasks = GetCurrentTasks(meals=meals, task_index=refresh)
    target.state.recipe_parser = RecipeTextParser()


@app.on_event("startup")
def on_startup() -> None:
    meals, task_index = build_stores()
    wire(app, meals, task_index)
    log.info("Startup complete (meal store: %s)", MEAL_STORE)


@app.on_event("shutdown")
def on_shutdown() -> None:
    global _mongo_client
    if _mongo_client:
        _mongo_client.close()


if __name__ == "__main__":
    uvicorn.run("main:app", host=API_HOST, port=API_PORT, reload=False)
