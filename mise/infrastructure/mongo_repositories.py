# mise/infrastructure/mongo_repositories.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Optional, TypeVar
import logging
from pymongo.collection import Collection
from mise.core.errors import InternalError
from mise.domain.entities import Equipment, Ingredient, Meal, Recipe, Step, Task
from mise.domain.repositories import KeyValueStore

log = logging.getLogger("infra.mongo_repo")

T = TypeVar("T")

# datetimes are kept as ISO strings so a UTC offset survives the round trip
def _dt(v: Any) -> datetime:
    if isinstance(v, datetime):
        return v
    return datetime.fromisoformat(str(v))


def _equipment_doc(e: Equipment) -> Dict[str, Any]:
    return {"id": e.id, "name": e.name, "type": e.type, "capacity": e.capacity}


def _parse_equipment(d: Dict[str, Any]) -> Equipment:
    return Equipment(
        id=str(d.get("id") or ""),
        name=str(d.get("name") or d.get("id") or ""),
        type=str(d.get("type") or "other"),
        capacity=int(d.get("capacity") or 1),
    )


def _recipe_doc(r: Recipe) -> Dict[str, Any]:
    return {
        "id": r.id,
        "name": r.name,
        "servings": r.servings,
        "priority": r.priority,
        "ingredients": [
            {"id": i.id, "name": i.name, "amount": i.amount, "unit": i.unit, "category": i.category}
            for i in r.ingredients
        ],
        "steps": [
            {
                "id": s.id,
                "instruction": s.instruction,
                "duration": s.duration,
                "type": s.type,
                "equipment": [_equipment_doc(e) for e in s.equipment],
                "temperature": s.temperature,
            }
            for s in r.steps
        ],
    }


def _parse_recipe(d: Dict[str, Any]) -> Recipe:
    return Recipe(
        id=str(d.get("id")),
        name=(d.get("name") or "").strip(),
        servings=d.get("servings"),
        priority=d.get("priority") or "medium",
        ingredients=tuple(
            Ingredient(
                id=str(i.get("id")),
                name=(i.get("name") or "").strip(),
                amount=float(i.get("amount") or 0),
                unit=i.get("unit") or "unit",
                category=i.get("category") or "other",
            )
            for i in (d.get("ingredients") or [])
        ),
        steps=tuple(
            Step(
                id=str(s.get("id")),
                instruction=s.get("instruction") or "",
                duration=int(s.get("duration")),
                type=s.get("type") or "prep",
                equipment=tuple(_parse_equipment(e) for e in (s.get("equipment") or [])),
                temperature=s.get("temperature"),
            )
            for s in (d.get("steps") or [])
        ),
    )


def _task_doc(t: Task) -> Dict[str, Any]:
    return {
        "id": t.id,
        "recipe_id": t.recipe_id,
        "recipe_name": t.recipe_name,
        "step_id": t.step_id,
        "instruction": t.instruction,
        "start_time": t.start_time.isoformat(),
        "end_time": t.end_time.isoformat(),
        "duration": t.duration,
        "type": t.type,
        "equipment": [_equipment_doc(e) for e in t.equipment],
        "status": t.status,
        "priority": t.priority,
        "dependencies": list(t.dependencies),
    }


def _parse_task(d: Dict[str, Any]) -> Task:
    return Task(
        id=str(d.get("id")),
        recipe_id=str(d.get("recipe_id")),
        recipe_name=d.get("recipe_name") or "",
        step_id=str(d.get("step_id")),
        instruction=d.get("instruction") or "",
        start_time=_dt(d.get("start_time")),
        end_time=_dt(d.get("end_time")),
        duration=int(d.get("duration")),
        type=d.get("type") or "prep",
        equipment=tuple(_parse_equipment(e) for e in (d.get("equipment") or [])),
        status=d.get("status") or "pending",
        priority=d.get("priority") or "medium",
        dependencies=tuple(d.get("dependencies") or ()),
    )


def meal_to_doc(meal: Meal) -> Dict[str, Any]:
    return {
        "timeline": [_task_doc(t) for t in meal.timeline],
        "created_at": meal.created_at.isoformat(),
        "target_time": meal.target_time.isoformat(),
        "diners": meal.diners,
        "status": meal.status,
        "recipes": [_recipe_doc(r) for r in meal.recipes],
        "equipment": [_equipment_doc(e) for e in meal.equipment],
    }


def meal_from_doc(doc: Dict[str, Any]) -> Meal:
    try:
        return Meal(
            id=str(doc.get("_id")),
            timeline=[_parse_task(t) for t in (doc.get("timeline") or [])],
            created_at=_dt(doc.get("created_at")),
            target_time=_dt(doc.get("target_time")),
            diners=int(doc.get("diners")),
            status=doc.get("status") or "pending",
            recipes=[_parse_recipe(r) for r in (doc.get("recipes") or [])],
            equipment=[_parse_equipment(e) for e in (doc.get("equipment") or [])],
        )
    except Exception as e:
        log.exception("Invalid meal document: %s", doc.get("_id"))
        raise InternalError(f"Invalid meal document: {e}") from e


class MongoStore(KeyValueStore[T], Generic[T]):
    """
    Key-value store over one MongoDB collection; the key is the document ``_id``.
    ``encode``/``decode`` translate between values and documents.
    """

    def __init__(
        self,
        col: Collection,
        encode: Callable[[T], Dict[str, Any]],
        decode: Callable[[Dict[str, Any]], T],
    ) -> None:
        self._col = col
        self._encode = encode
        self._decode = decode

    def get(self, key: str) -> Optional[T]:
        doc = self._col.find_one({"_id": str(key)})
        if doc is None:
            return None
        return self._decode(doc)

    def put(self, key: str, value: T) -> None:
        doc = self._encode(value)
        doc["_id"] = str(key)
        self._col.replace_one({"_id": str(key)}, doc, upsert=True)

    def exists(self, key: str) -> bool:
        return self._col.count_documents({"_id": str(key)}, limit=1) > 0


def mongo_meal_store(col: Collection) -> MongoStore[Meal]:
    log.info("Meal store backed by Mongo collection %s", col.name)
    return MongoStore(col, encode=meal_to_doc, decode=meal_from_doc)


def mongo_task_index(col: Collection) -> MongoStore[str]:
    return MongoStore(col, encode=lambda meal_id: {"meal_id": meal_id}, decode=lambda doc: str(doc["meal_id"]))
