# app/core/session.py
from __future__ import annotations

import asyncio
import logging
from enum import IntEnum
from typing import Any, Dict, List, Optional

from app.core.classifier import aggregate, classify
from app.core.errors import (
    AssessmentCancelledError,
    AssessmentError,
    SessionStateError,
    ValidationError,
)
from app.core.recommendation import RecommendationDescriptor, describe
from app.core.taxonomy import Urgency, bucket_of
from app.schemas.assessment import AssessmentData, EmergencyAssessment, VitalSigns

logger = logging.getLogger(__name__)

VITAL_SIGN_FIELDS = ("breathing", "heart_rate", "temperature", "gum_color")


class Step(IntEnum):
    CLOSED = -1
    INTRO = 0
    SYMPTOM_PICKER = 1
    LOCAL_RESULT = 2
    AI_RESULT = 3


def _empty_details() -> Dict[str, Any]:
    return {
        "duration": "",
        "severity": "",
        "current_behavior": "",
        "vital_signs": {k: "" for k in VITAL_SIGN_FIELDS},
    }


class AssessmentSession:
    """
    State of one open emergency-assessment wizard.

    Intro → SymptomPicker → LocalResult → AIResult, plus Closed. The first
    canned symptom picked moves straight to the local result; the AI result is
    only reachable through ``request_ai_assessment``. Nothing here is
    persisted: the session lives exactly as long as the UI that owns it.

    Every reset, close or superseding request bumps ``generation``; a reply
    that comes back for an older generation is dropped, never applied.
    """

    def __init__(self, dog_id: Optional[str] = None) -> None:
        self.step = Step.INTRO
        self.dog_id = dog_id
        self.selected_symptoms: List[str] = []
        self.derived_urgency: Optional[Urgency] = None
        self.details: Dict[str, Any] = _empty_details()
        self.ai_result: Optional[EmergencyAssessment] = None
        self.last_error: Optional[AssessmentError] = None
        self.generation = 0
        self._inflight: Optional[asyncio.Future] = None

    # ---------------------------
    # Guards
    # ---------------------------
    @property
    def is_open(self) -> bool:
        return self.step is not Step.CLOSED

    @property
    def is_analyzing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def _require_open(self) -> None:
        if not self.is_open:
            raise SessionStateError("Assessment session is closed")

    def _require_step(self, *steps: Step) -> None:
        self._require_open()
        if self.step not in steps:
            names = ", ".join(s.name for s in steps)
            raise SessionStateError(f"Not allowed in step {self.step.name} (expected {names})")

    # ---------------------------
    # Navigation
    # ---------------------------
    def continue_(self) -> None:
        self._require_step(Step.INTRO)
        self.step = Step.SYMPTOM_PICKER

    def back(self) -> None:
        self._require_step(Step.SYMPTOM_PICKER)
        self.step = Step.INTRO

    # ---------------------------
    # Editing
    # ---------------------------
    def select_dog(self, dog_id: Optional[str]) -> None:
        self._require_open()
        self.dog_id = dog_id

    def update_details(
        self,
        *,
        duration: Optional[str] = None,
        severity: Optional[str] = None,
        current_behavior: Optional[str] = None,
        vital_signs: Optional[Dict[str, str]] = None,
    ) -> None:
        self._require_open()
        if duration is not None:
            self.details["duration"] = duration
        if severity is not None:
            self.details["severity"] = severity
        if current_behavior is not None:
            self.details["current_behavior"] = current_behavior
        for key, value in (vital_signs or {}).items():
            if key not in VITAL_SIGN_FIELDS:
                raise ValidationError(f"Unknown vital sign: {key}")
            self.details["vital_signs"][key] = value or ""

    def toggle_symptom(self, phrase: str) -> Optional[Urgency]:
        """Select or deselect a symptom and return the resulting urgency.

        Adding folds the symptom's bucket into the current urgency, so a
        sequence of additions never downgrades. Removing recomputes from the
        remaining selection. Free text is kept for the AI request only.
        """
        self._require_step(Step.SYMPTOM_PICKER, Step.LOCAL_RESULT, Step.AI_RESULT)
        phrase = (phrase or "").strip()
        if not phrase:
            raise ValidationError("Symptom must not be empty")

        if phrase in self.selected_symptoms:
            self.selected_symptoms.remove(phrase)
            self.derived_urgency = aggregate(self.selected_symptoms)
        else:
            self.selected_symptoms.append(phrase)
            bucket = bucket_of(phrase)
            if bucket is not None:
                self.derived_urgency = classify(self.derived_urgency, bucket)

        if self.step is Step.AI_RESULT:
            # the AI result described a different selection
            self.ai_result = None
        self.step = Step.LOCAL_RESULT if self.derived_urgency is not None else Step.SYMPTOM_PICKER
        return self.derived_urgency

    # ---------------------------
    # Results
    # ---------------------------
    def recommendation(self) -> Optional[RecommendationDescriptor]:
        if self.derived_urgency is None:
            return None
        return describe(self.derived_urgency)

    def snapshot(self) -> AssessmentData:
        """Request payload for the AI assessment; blank fields fall back to "Unknown" or "Not specified"."""
        vitals = {k: v for k, v in self.details["vital_signs"].items() if v and v.strip()}
        return AssessmentData(
            symptoms=list(self.selected_symptoms),
            duration=self.details["duration"].strip() or "Unknown",
            severity=self.details["severity"].strip() or "Not specified",
            current_behavior=self.details["current_behavior"].strip() or "Not specified",
            vital_signs=VitalSigns(**vitals) if vitals else None,
        )

    async def request_ai_assessment(self, orchestrator: Any) -> EmergencyAssessment:
        """Run the AI emergency assessment for the current selection.

        Success stores the result and moves to AI_RESULT. Failure leaves the
        step and the local result untouched, records ``last_error`` and
        re-raises. A newer request, ``reset`` or ``close`` cancels this one;
        its caller then gets AssessmentCancelledError.
        """
        self._require_step(Step.SYMPTOM_PICKER, Step.LOCAL_RESULT, Step.AI_RESULT)
        if not self.dog_id:
            raise ValidationError("Please select a dog before requesting an AI assessment")
        if not self.selected_symptoms:
            raise ValidationError("Please select symptoms before requesting an AI assessment")

        self._supersede()
        generation = self.generation
        task = asyncio.ensure_future(
            orchestrator.emergency_assessment(self.dog_id, self.snapshot())
        )
        self._inflight = task
        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self.generation:
                raise AssessmentCancelledError("Assessment was cancelled") from None
            raise
        except AssessmentError as e:
            if generation != self.generation:
                raise AssessmentCancelledError("Assessment was cancelled") from e
            logger.info("AI assessment failed in step %s: %s", self.step.name, e.message)
            self.last_error = e
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

        if generation != self.generation:
            raise AssessmentCancelledError("Assessment was cancelled")
        self.ai_result = result
        self.last_error = None
        self.step = Step.AI_RESULT
        return result

    # ---------------------------
    # Lifecycle
    # ---------------------------
    def _supersede(self) -> None:
        self.generation += 1
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None

    def reset(self) -> None:
        """Start over: clear everything except the chosen dog, back to the symptom picker."""
        self._require_open()
        self._supersede()
        self.selected_symptoms = []
        self.derived_urgency = None
        self.details = _empty_details()
        self.ai_result = None
        self.last_error = None
        self.step = Step.SYMPTOM_PICKER

    def close(self) -> None:
        if not self.is_open:
            return
        self._supersede()
        self.step = Step.CLOSED
