# app/api/triage.py
from fastapi import APIRouter

from app.core.classifier import aggregate
from app.core.recommendation import describe
from app.core.taxonomy import Urgency, bucket_of, entries_for
from app.schemas.triage import CatalogOut, ClassifyIn, ClassifyOut, RecommendationOut

router = APIRouter(prefix="/api/triage", tags=["triage"])


@router.get("/catalog", response_model=CatalogOut)
async def get_catalog():
    """Quick-select symptom lists, one per urgency bucket, in display order."""
    return CatalogOut(
        buckets={u.value: [e.text for e in entries_for(u)] for u in Urgency}
    )


@router.post("/classify", response_model=ClassifyOut)
async def classify_symptoms(payload: ClassifyIn):
    """Rule-based urgency for a selection; no AI, no storage."""
    symptoms = list(dict.fromkeys(s.strip() for s in payload.symptoms if s and s.strip()))
    urgency = aggregate(symptoms)
    return ClassifyOut(
        urgency=urgency.value if urgency else None,
        recommendation=RecommendationOut(**describe(urgency).to_dict()) if urgency else None,
        unclassified=[s for s in symptoms if bucket_of(s) is None],
    )
