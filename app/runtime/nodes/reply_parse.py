# app/runtime/nodes/reply_parse.py
from __future__ import annotations

import logging
from typing import Any, Dict

from pocketflow import AsyncNode
from pydantic import ValidationError as ShapeError

from app.core.errors import ExternalServiceError
from app.schemas.assessment import EmergencyAssessment, HealthSummary, PhotoAnalysis, SymptomAnalysis

logger = logging.getLogger(__name__)

RESULT_MODELS = {
    "symptom": SymptomAnalysis,
    "emergency": EmergencyAssessment,
    "photo": PhotoAnalysis,
}


class ReplyParseNode(AsyncNode):
    """Turn the raw model reply into a validated result, or fail.
    - prep_async: gather the raw reply
    - exec_async: pure parse + shape validation (no coercion, no partial objects)
    - post_async: commit the result to shared
    """

    def __init__(self, kind: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if kind not in (*RESULT_MODELS, "summary"):
            raise ValueError(f"unknown assessment kind: {kind}")
        self.kind = kind

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        return {"raw_reply": shared.get("raw_reply") or ""}

    async def exec_async(self, prep: Dict[str, Any]) -> Dict[str, Any]:
        raw: str = prep["raw_reply"]
        if not raw.strip():
            raise ExternalServiceError("Empty response from Gemini model")

        if self.kind == "summary":
            return {"result": HealthSummary(summary=raw.strip())}

        model = RESULT_MODELS[self.kind]
        try:
            result = model.model_validate_json(raw)
        except ShapeError as e:
            logger.error("Gemini %s reply failed shape validation: %s", self.kind, e.errors()[:3])
            raise ExternalServiceError(f"Invalid {self.kind} response from Gemini") from e
        return {"result": result}

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: Dict[str, Any]) -> str:
        shared["result"] = exec_res["result"]
        return "ok"
