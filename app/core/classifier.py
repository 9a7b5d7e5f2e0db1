# app/core/classifier.py
from __future__ import annotations

from typing import Iterable, Optional

from app.core.taxonomy import Urgency, bucket_of


def classify(current: Optional[Urgency], new_bucket: Urgency) -> Urgency:
    """Fold one newly selected bucket into the running urgency.

    emergency absorbs everything, urgent only lifts routine, and nothing
    ever downgrades.
    """
    if current is None:
        return new_bucket
    if new_bucket is Urgency.EMERGENCY:
        return Urgency.EMERGENCY
    if new_bucket is Urgency.URGENT and current is Urgency.ROUTINE:
        return Urgency.URGENT
    return current


def aggregate(symptoms: Iterable[str]) -> Optional[Urgency]:
    """Urgency of a whole selection; free-text symptoms are skipped."""
    urgency: Optional[Urgency] = None
    for phrase in symptoms:
        bucket = bucket_of(phrase)
        if bucket is not None:
            urgency = classify(urgency, bucket)
    return urgency
