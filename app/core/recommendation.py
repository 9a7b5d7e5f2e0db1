# app/core/recommendation.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from app.core.taxonomy import Urgency


@dataclass(frozen=True)
class RecommendationDescriptor:
    title: str
    description: str
    action_label: str
    severity_class: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_DESCRIPTORS = {
    Urgency.EMERGENCY: RecommendationDescriptor(
        title="Emergency care needed",
        description=(
            "Contact your emergency vet or animal hospital immediately. "
            "These symptoms require immediate professional attention."
        ),
        action_label="Call emergency vet now",
        severity_class="danger",
    ),
    Urgency.URGENT: RecommendationDescriptor(
        title="Urgent veterinary care",
        description=(
            "Schedule an appointment with your vet within the next 24-48 hours. "
            "Monitor symptoms closely."
        ),
        action_label="Schedule vet visit",
        severity_class="warning",
    ),
    Urgency.ROUTINE: RecommendationDescriptor(
        title="Routine care",
        description=(
            "These concerns can typically wait for your next routine appointment. "
            "Continue monitoring and note any changes."
        ),
        action_label="Schedule routine visit",
        severity_class="info",
    ),
}


def describe(urgency: Urgency) -> RecommendationDescriptor:
    return _DESCRIPTORS[Urgency(urgency)]
