# app/core/taxonomy.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class Urgency(str, Enum):
    """Urgency buckets, ordered by decreasing severity."""

    EMERGENCY = "emergency"
    URGENT = "urgent"
    ROUTINE = "routine"

    @property
    def rank(self) -> int:
        return _RANK[self]


_RANK = {Urgency.EMERGENCY: 3, Urgency.URGENT: 2, Urgency.ROUTINE: 1}


@dataclass(frozen=True)
class SymptomCatalogEntry:
    text: str
    bucket: Urgency


EMERGENCY_SYMPTOMS: Tuple[str, ...] = (
    "Difficulty breathing or gasping",
    "Seizures or convulsions",
    "Loss of consciousness or collapse",
    "Severe bleeding",
    "Suspected poisoning",
    "Severe vomiting or diarrhea",
    "Unable to urinate or defecate",
    "Signs of severe pain",
    "Pale or blue gums",
    "Severe lethargy or unresponsiveness",
)

URGENT_SYMPTOMS: Tuple[str, ...] = (
    "Persistent vomiting",
    "Loss of appetite for 24+ hours",
    "Unusual lethargy",
    "Limping or difficulty moving",
    "Excessive thirst or urination",
    "Coughing or breathing changes",
    "Skin irritation or rash",
    "Behavioral changes",
    "Eye discharge or redness",
    "Minor wounds or cuts",
)

ROUTINE_SYMPTOMS: Tuple[str, ...] = (
    "Minor scratching",
    "Slight change in appetite",
    "Mild lethargy after exercise",
    "Minor behavioral quirks",
    "Regular grooming needs",
    "Routine check-up items",
    "Preventive care questions",
    "Diet or exercise concerns",
    "Training or behavior tips",
    "General wellness questions",
)


def _build_catalog() -> Tuple[Tuple[SymptomCatalogEntry, ...], Dict[str, Urgency]]:
    entries = []
    index: Dict[str, Urgency] = {}
    for bucket, phrases in (
        (Urgency.EMERGENCY, EMERGENCY_SYMPTOMS),
        (Urgency.URGENT, URGENT_SYMPTOMS),
        (Urgency.ROUTINE, ROUTINE_SYMPTOMS),
    ):
        for phrase in phrases:
            if phrase in index:
                raise ValueError(
                    f"symptom {phrase!r} listed under both {index[phrase].value} and {bucket.value}"
                )
            index[phrase] = bucket
            entries.append(SymptomCatalogEntry(phrase, bucket))
    return tuple(entries), index


CATALOG, _BUCKET_BY_PHRASE = _build_catalog()


def bucket_of(phrase: str) -> Optional[Urgency]:
    """Bucket of a canned phrase, or None for free text."""
    return _BUCKET_BY_PHRASE.get(phrase)


def entries_for(bucket: Urgency) -> Tuple[SymptomCatalogEntry, ...]:
    return tuple(e for e in CATALOG if e.bucket is bucket)
