# app/runtime/flow.py
from __future__ import annotations

from pocketflow import AsyncFlow

from app.config import settings
from app.runtime.nodes.dog_context import DogContextNode
from app.runtime.nodes.gemini import GeminiNode
from app.runtime.nodes.history import HistoryLookupNode
from app.runtime.nodes.reply_parse import ReplyParseNode
from app.runtime.nodes.validate import RequestValidateNode


def make_symptom_analysis_flow() -> AsyncFlow:
    """Symptom analysis:
    validate → dog_context → gemini(symptom) → reply_parse
    """

    validate = RequestValidateNode("symptom")
    dog_context = DogContextNode()
    gemini = GeminiNode("symptom")
    reply_parse = ReplyParseNode("symptom")

    validate.successors = {"ok": dog_context}
    dog_context.successors = {"ok": gemini}
    gemini.successors = {"ok": reply_parse}

    return AsyncFlow(start=validate)


def make_emergency_assessment_flow(*, history_limit: int | None = None) -> AsyncFlow:
    """Emergency triage:
    validate → dog_context → history_lookup → gemini(emergency) → reply_parse
    """

    validate = RequestValidateNode("emergency")
    dog_context = DogContextNode()
    history_lookup = HistoryLookupNode(limit=history_limit or settings.emergency_history_limit)
    gemini = GeminiNode("emergency")
    reply_parse = ReplyParseNode("emergency")

    validate.successors = {"ok": dog_context}
    dog_context.successors = {"ok": history_lookup}
    history_lookup.successors = {
        "has_history": gemini,
        "no_history": gemini,
    }
    gemini.successors = {"ok": reply_parse}

    return AsyncFlow(start=validate)


def make_photo_analysis_flow(*, max_photo_bytes: int | None = None) -> AsyncFlow:
    """Single photo analysis (one image per run):
    validate(photo) → gemini(photo) → reply_parse
    """

    validate = RequestValidateNode("photo", max_photo_bytes=max_photo_bytes)
    gemini = GeminiNode("photo")
    reply_parse = ReplyParseNode("photo")

    validate.successors = {"ok": gemini}
    gemini.successors = {"ok": reply_parse}

    return AsyncFlow(start=validate)


def make_health_summary_flow(*, history_limit: int | None = None) -> AsyncFlow:
    """Free-text health summary:
    validate → dog_context → history_lookup(detailed) → gemini(summary) → reply_parse
    """

    validate = RequestValidateNode("summary")
    dog_context = DogContextNode()
    history_lookup = HistoryLookupNode(
        limit=history_limit or settings.summary_history_limit, detailed=True
    )
    gemini = GeminiNode("summary")
    reply_parse = ReplyParseNode("summary")

    validate.successors = {"ok": dog_context}
    dog_context.successors = {"ok": history_lookup}
    history_lookup.successors = {
        "has_history": gemini,
        "no_history": gemini,
    }
    gemini.successors = {"ok": reply_parse}

    return AsyncFlow(start=validate)
