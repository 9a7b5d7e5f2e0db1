# app/runtime/nodes/history.py
from __future__ import annotations

from typing import Any, Dict, List

from pocketflow import AsyncNode


def format_history_entry(record: Any) -> str:
    return f"{record.type}: {record.title}"


class HistoryLookupNode(AsyncNode):
    """
    Pull the dog's most recent health records as medical-history context.
    - prep_async: I/O to repo (most recent first), shape data for exec
    - exec_async: pure compute (format lines, decide routing token)
    - post_async: write results back to shared, return routing token

    With ``detailed=True`` the full records are kept for the health summary prompt.
    """

    def __init__(self, *, limit: int = 5, detailed: bool = False, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.limit = limit
        self.detailed = detailed

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        repo = shared["repo"]
        dog_id = shared["dog_id"]
        records = await repo.get_recent_health_records(dog_id, limit=self.limit)
        return {"records": list(records or [])[: self.limit]}

    async def exec_async(self, prep: Dict[str, Any]) -> Dict[str, Any]:
        records = prep["records"]
        history: List[str] = [format_history_entry(r) for r in records]
        detailed: List[Dict[str, Any]] = []
        if self.detailed:
            detailed = [
                {
                    "type": r.type,
                    "title": r.title,
                    "description": getattr(r, "description", None),
                    "severity": getattr(r, "severity", None),
                    "recorded_at": getattr(r, "recorded_at", None),
                }
                for r in records
            ]
        route = "has_history" if history else "no_history"
        return {"history": history, "records": detailed, "route": route}

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: Dict[str, Any]) -> str:
        shared["medical_history"] = exec_res["history"]
        if self.detailed:
            shared["recent_records"] = exec_res["records"]
        return exec_res["route"]
