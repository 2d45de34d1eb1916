# mise/domain/repositories.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from mise.domain.entities import Meal

T = TypeVar("T")


class KeyValueStore(ABC, Generic[T]):
    """Storage capability injected into the use cases, keyed by opaque ids."""

    @abstractmethod
    def get(self, key: str) -> T | None: ...

    @abstractmethod
    def put(self, key: str, value: T) -> None: ...

    @abstractmethod
    def exists(self, key: str) -> bool: ...


# meal_id -> Meal
MealStore = KeyValueStore[Meal]
# task_id -> meal_id
TaskIndex = KeyValueStore[str]
