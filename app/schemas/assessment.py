# app/schemas/assessment.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AIResult(CamelModel):
    # Model output is only trusted once it matches the shape exactly.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        extra="forbid",
    )


# -------------------------
# AI result shapes
# -------------------------

class SymptomAnalysis(AIResult):
    severity: Literal["mild", "moderate", "severe"]
    urgency: Literal["non-urgent", "same-day", "emergency"]
    insights: str
    recommendations: List[str]
    vet_required: bool
    emergency_warning: Optional[str] = None


class EmergencyAssessment(AIResult):
    urgency_level: Literal["non-urgent", "urgent", "emergency"]
    time_frame: str
    reasoning: str
    immediate_actions: List[str]
    red_flags: List[str]
    vet_required: bool


class PhotoAnalysis(AIResult):
    findings: str
    concerns: List[str]
    recommendations: List[str]
    urgency_level: Literal["low", "medium", "high"]
    suggested_actions: List[str]


class HealthSummary(CamelModel):
    summary: str


# -------------------------
# Requests
# -------------------------

class SymptomData(CamelModel):
    type: str = ""
    title: str = ""
    description: Optional[str] = None
    severity: Optional[str] = None


class SymptomAnalysisRequest(CamelModel):
    dog_id: Optional[str] = None
    symptom_data: Optional[SymptomData] = None


class VitalSigns(CamelModel):
    breathing: Optional[str] = None
    heart_rate: Optional[str] = None
    temperature: Optional[str] = None
    gum_color: Optional[str] = None

    def provided(self) -> Dict[str, str]:
        """Only the vitals the owner actually filled in, keyed by wire name."""
        return {
            k: v
            for k, v in self.model_dump(by_alias=True).items()
            if v is not None and str(v).strip()
        }


class AssessmentData(CamelModel):
    symptoms: List[str] = Field(default_factory=list)
    duration: str = "Unknown"
    severity: str = "Not specified"
    current_behavior: str = "Not specified"
    vital_signs: Optional[VitalSigns] = None


class EmergencyAssessmentRequest(CamelModel):
    dog_id: Optional[str] = None
    assessment_data: Optional[AssessmentData] = None


class HealthSummaryRequest(CamelModel):
    dog_id: Optional[str] = None


class PhotoInput(BaseModel):
    """One uploaded image plus the owner's optional note."""
    content: bytes
    mime_type: str
    filename: Optional[str] = None
    context: Optional[str] = None


# -------------------------
# Photo batch
# -------------------------

class PhotoBatchItem(CamelModel):
    index: int
    filename: Optional[str] = None
    analysis: PhotoAnalysis


class PhotoBatchFailure(CamelModel):
    index: int
    filename: Optional[str] = None
    error: str
    kind: str


class PhotoBatchResult(CamelModel):
    succeeded: List[PhotoBatchItem] = Field(default_factory=list)
    failed: List[PhotoBatchFailure] = Field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)


# -------------------------
# Response schemas sent to Gemini (generationConfig.responseSchema)
# -------------------------

def _str_list() -> Dict[str, Any]:
    return {"type": "ARRAY", "items": {"type": "STRING"}}


SYMPTOM_ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "severity": {"type": "STRING", "enum": ["mild", "moderate", "severe"]},
        "urgency": {"type": "STRING", "enum": ["non-urgent", "same-day", "emergency"]},
        "insights": {"type": "STRING"},
        "recommendations": _str_list(),
        "vetRequired": {"type": "BOOLEAN"},
        "emergencyWarning": {"type": "STRING"},
    },
    "required": ["severity", "urgency", "insights", "recommendations", "vetRequired"],
}

EMERGENCY_ASSESSMENT_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "urgencyLevel": {"type": "STRING", "enum": ["non-urgent", "urgent", "emergency"]},
        "timeFrame": {"type": "STRING"},
        "reasoning": {"type": "STRING"},
        "immediateActions": _str_list(),
        "redFlags": _str_list(),
        "vetRequired": {"type": "BOOLEAN"},
    },
    "required": ["urgencyLevel", "timeFrame", "reasoning", "immediateActions", "redFlags", "vetRequired"],
}

PHOTO_ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "findings": {"type": "STRING"},
        "concerns": _str_list(),
        "recommendations": _str_list(),
        "urgencyLevel": {"type": "STRING", "enum": ["low", "medium", "high"]},
        "suggestedActions": _str_list(),
    },
    "required": ["findings", "concerns", "recommendations", "urgencyLevel", "suggestedActions"],
}
