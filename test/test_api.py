"""
HTTP contract tests for the FastAPI surface (in-memory storage).
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from main import app


def _ts(s):
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _meal_payload(**overrides):
    payload = {
        "recipes": [
            {
                "name": "Roast chicken",
                "servings": 4,
                "priority": "medium",
                "ingredients": [{"name": "chicken", "amount": 1.5, "unit": "kg", "category": "protein"}],
                "steps": [
                    {"instruction": "Season the chicken", "duration": 10, "type": "prep"},
                    {"instruction": "Roast", "duration": 20, "type": "cook", "equipment": ["oven-1"], "temperature": 200},
                ],
            }
        ],
        "diners": 4,
        "target_time": "2030-01-01T18:00:00Z",
        "capacity": {"oven": 1, "stovetop": 0, "prep_space": 0, "mixer": 0},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_create_meal(client):
    r = client.post("/meal", json=_meal_payload())
    assert r.status_code == 201, r.text
    data = r.json()

    assert data["status"] == "pending"
    assert data["diners"] == 4
    prep, cook = data["timeline"]
    assert (_ts(prep["start_time"]), _ts(prep["end_time"])) == (
        _ts("2030-01-01T17:30:00Z"),
        _ts("2030-01-01T17:40:00Z"),
    )
    assert (_ts(cook["start_time"]), _ts(cook["end_time"])) == (
        _ts("2030-01-01T17:40:00Z"),
        _ts("2030-01-01T18:00:00Z"),
    )
    assert cook["equipment"] == ["oven-1"]
    assert cook["dependencies"] == [prep["task_id"]]
    assert {t["meal_id"] for t in data["timeline"]} == {data["meal_id"]}


def test_legacy_field_names_accepted(client):
    payload = _meal_payload()
    payload["targetTime"] = payload.pop("target_time")
    payload["equipment"] = {"oven": 1, "prepSpace": 1}
    payload.pop("capacity")
    r = client.post("/meal", json=payload)
    assert r.status_code == 201, r.text


@pytest.mark.parametrize(
    "overrides",
    [
        {"recipes": []},
        {"target_time": "tomorrow at six"},
        {"diners": 0},
        {"capacity": {"oven": 0}},
    ],
)
def test_create_meal_rejects_bad_input(client, overrides):
    r = client.post("/meal", json=_meal_payload(**overrides))
    assert r.status_code == 400, r.text
    body = r.json()
    assert body["error"] == "VALIDATION"
    assert body["code"] == 400
    assert "detail" not in body


def test_zero_servings_rejected(client):
    payload = _meal_payload()
    payload["recipes"][0]["servings"] = 0
    assert client.post("/meal", json=payload).status_code == 400


def test_timeline_and_completion_flow(client):
    payload = _meal_payload()
    payload["recipes"].append(
        {
            "name": "Side salad",
            "servings": 4,
            "priority": "low",
            "steps": [{"instruction": "Toss the salad", "duration": 5, "type": "prep"}],
        }
    )
    meal = client.post("/meal", json=payload).json()
    meal_id = meal["meal_id"]
    # roast prep 17:30-17:40, roast 17:40-18:00, salad 17:50-17:55
    prep, cook, salad = meal["timeline"]

    r = client.put(f"/task/{prep['task_id']}/complete", json={"completed_at": "2030-01-01T17:45:00Z"})
    assert r.status_code == 200, r.text
    done = r.json()
    assert done["status"] == "completed"
    # the roast starts exactly when prep was due to end, so only the salad moves
    (adj,) = done["timeline_adjustments"]
    assert adj["task_id"] == salad["task_id"]
    assert adj["reason"] == "completed late"
    assert _ts(adj["new_start_time"]) - _ts(adj["old_start_time"]) == timedelta(minutes=5)

    r = client.get(f"/timeline/{meal_id}")
    assert r.status_code == 200
    timeline = r.json()
    assert timeline["status"] == "active"
    assert timeline["progress"] == {"completed_tasks": 1, "total_tasks": 3, "percentage": 33}
    by_id = {t["task_id"]: t for t in timeline["timeline"]}
    assert _ts(by_id[salad["task_id"]]["start_time"]) == _ts("2030-01-01T17:55:00Z")
    assert _ts(by_id[cook["task_id"]]["start_time"]) == _ts("2030-01-01T17:40:00Z")

    r = client.put(f"/task/{prep['task_id']}/complete", json={"completed_at": "2030-01-01T17:50:00Z"})
    assert r.status_code == 400


def test_current_task(client):
    meal = client.post("/meal", json=_meal_payload()).json()
    r = client.get(f"/current-task/{meal['meal_id']}", params={"now": "2030-01-01T17:35:00Z"})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["task"]["instruction"] == "Season the chicken"
    assert data["active_tasks_count"] == 1
    assert [t["instruction"] for t in data["upcoming_tasks"]] == ["Roast"]
    assert data["time_until_next"] == 5


def test_not_found(client):
    for r in (
        client.get("/timeline/missing"),
        client.get("/current-task/missing"),
        client.put("/task/missing/complete", json={"completed_at": "2030-01-01T17:45:00Z"}),
    ):
        assert r.status_code == 404
        body = r.json()
        assert set(body) == {"error", "message", "code", "timestamp"}
        assert body["error"] == "NOT_FOUND"
        assert body["code"] == 404


def test_unknown_route_uses_error_body(client):
    r = client.get("/no-such-route")
    assert r.status_code == 404
    assert r.json()["error"] == "NOT_FOUND"


def test_parse_recipe_feeds_create_meal(client):
    r = client.post(
        "/recipes/parse",
        json={"name": "Tart", "text": "Ingredients\n2 cups flour\nInstructions\n1. Chop onions\n2. Bake 25 minutes"},
    )
    assert r.status_code == 200, r.text
    recipe = r.json()
    assert [s["equipment"] for s in recipe["steps"]] == [[], ["oven-1"]]

    r = client.post("/meal", json=_meal_payload(recipes=[recipe]))
    assert r.status_code == 201, r.text


def test_parse_recipe_without_steps(client):
    r = client.post("/recipes/parse", json={"name": "Nothing", "text": "just some words"})
    assert r.status_code == 400
    assert r.json()["error"] == "VALIDATION"
