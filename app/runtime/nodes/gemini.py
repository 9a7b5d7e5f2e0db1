# app/runtime/nodes/gemini.py
from __future__ import annotations

import logging
from typing import Any, Dict

from pocketflow import AsyncNode

from app.config import settings
from app.core.errors import ExternalServiceError
from app.runtime import prompts
from app.schemas.assessment import (
    EMERGENCY_ASSESSMENT_SCHEMA,
    PHOTO_ANALYSIS_SCHEMA,
    SYMPTOM_ANALYSIS_SCHEMA,
)
from app.services.gemini_client import GeminiClient, GeminiError

logger = logging.getLogger(__name__)

SYSTEM_PROMPTS = {
    "symptom": prompts.SYMPTOM_SYSTEM_PROMPT,
    "emergency": prompts.EMERGENCY_SYSTEM_PROMPT,
    "photo": prompts.PHOTO_SYSTEM_PROMPT,
    "summary": prompts.SUMMARY_SYSTEM_PROMPT,
}

RESPONSE_SCHEMAS = {
    "symptom": SYMPTOM_ANALYSIS_SCHEMA,
    "emergency": EMERGENCY_ASSESSMENT_SCHEMA,
    "photo": PHOTO_ANALYSIS_SCHEMA,
    "summary": None,
}


def _resolve_client(shared: Dict[str, Any]) -> Any:
    client = shared.get("llm_client")
    if client is None:
        factory = shared.get("llm_factory", GeminiClient)
        try:
            client = factory()
        except GeminiError as e:
            logger.error("Gemini client unavailable: %s", e)
            raise ExternalServiceError(f"AI service unavailable: {e}") from e
        shared["llm_client"] = client
    return client


class GeminiNode(AsyncNode):
    """One structured generateContent call.
    - prep_async: build system instruction + prompt for this kind, resolve client
    - exec_async: call the model (no side-effects); no automatic retry
    - exec_fallback_async: turn transport failures into ExternalServiceError
    - post_async: store the raw reply text for ReplyParseNode
    """

    def __init__(self, kind: str, *, model: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if kind not in SYSTEM_PROMPTS:
            raise ValueError(f"unknown assessment kind: {kind}")
        self.kind = kind
        if model is None and kind == "summary":
            model = settings.gemini_summary_model
        self.model = model

    def _prompt(self, shared: Dict[str, Any]) -> str:
        if self.kind == "symptom":
            return prompts.symptom_prompt(shared["symptom_data"], shared["dog_info"])
        if self.kind == "emergency":
            return prompts.emergency_prompt(
                shared["assessment_data"], shared["dog_info"], shared.get("medical_history") or []
            )
        if self.kind == "photo":
            return prompts.photo_prompt(shared["photo"].context)
        return prompts.summary_prompt(shared["dog_info"], shared.get("recent_records") or [])

    async def prep_async(self, shared: Dict[str, Any]) -> Dict[str, Any]:
        prep: Dict[str, Any] = {
            "system_instruction": SYSTEM_PROMPTS[self.kind],
            "prompt": self._prompt(shared),
            "response_schema": RESPONSE_SCHEMAS[self.kind],
            "image": None,
            "mime_type": None,
        }
        if self.kind == "photo":
            prep["image"] = shared["photo"].content
            prep["mime_type"] = shared["photo"].mime_type
        prep["client"] = _resolve_client(shared)
        return prep

    async def exec_async(self, prep: Dict[str, Any]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "response_schema": prep["response_schema"],
            "image": prep["image"],
            "mime_type": prep["mime_type"],
        }
        if self.model:
            kwargs["model"] = self.model
        reply = await prep["client"].generate(prep["system_instruction"], prep["prompt"], **kwargs)
        return {"reply": reply}

    async def exec_fallback_async(self, prep: Dict[str, Any], exc: Exception) -> Dict[str, Any]:
        if isinstance(exc, ExternalServiceError):
            raise exc
        if isinstance(exc, GeminiError):
            logger.error("Gemini %s call failed: %s", self.kind, exc)
            raise ExternalServiceError(f"AI service call failed: {exc}") from exc
        raise exc

    async def post_async(self, shared: Dict[str, Any], prep: Dict[str, Any], exec_res: Dict[str, Any]) -> str:
        shared["raw_reply"] = exec_res["reply"]
        return "ok"
