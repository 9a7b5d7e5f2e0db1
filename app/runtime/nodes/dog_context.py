# app/runtime/nodes/dog_context.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

from pocketflow import AsyncNode

from app.core.errors import NotFoundError


def age_in_years(birth_date: Optional[date], today: date) -> Optional[int]:
    """Whole years since birth, truncated (2 years 11 months -> 2)."""
    if birth_date is None:
        return None
    if isinstance(birth_date, datetime):
        birth_date = birth_date.date()
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return max(years, 0)


class DogContextNode(AsyncNode):
    """
    Load the dog and shape the context every prompt starts with.
    - prep_async: I/O to repo
    - exec_async: pure compute (not-found check, age, weight)
    - post_async: write dog_info to shared
    """

    def __init__(self, *, today: Callable[[], date] = date.today, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.today = today

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        repo = shared["repo"]
        dog_id = shared["dog_id"]
        dog = await repo.get_dog(dog_id)
        return {"dog_id": dog_id, "dog": dog}

    async def exec_async(self, prep: Dict[str, Any]) -> Dict[str, Any]:
        dog = prep["dog"]
        if dog is None:
            raise NotFoundError(f"Dog not found: {prep['dog_id']}")
        weight = getattr(dog, "weight", None)
        return {
            "name": getattr(dog, "name", None),
            "breed": dog.breed,
            "age": age_in_years(getattr(dog, "birth_date", None), self.today()),
            "weight": float(weight) if weight is not None else None,
        }

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: Dict[str, Any]) -> str:
        shared["dog_info"] = exec_res
        return "ok"
