# app/api/ai.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.config import settings
from app.core.errors import ValidationError
from app.schemas.assessment import (
    EmergencyAssessment,
    EmergencyAssessmentRequest,
    HealthSummary,
    HealthSummaryRequest,
    PhotoAnalysis,
    PhotoBatchResult,
    PhotoInput,
    SymptomAnalysis,
    SymptomAnalysisRequest,
)
from app.api.deps import get_orchestrator
from app.services.orchestrator import AssessmentOrchestrator

router = APIRouter(prefix="/api/ai", tags=["ai"])


async def _photo_input(upload: UploadFile, context: Optional[str]) -> PhotoInput:
    # one byte past the limit is enough for RequestValidateNode to reject it
    return PhotoInput(
        content=await upload.read(settings.max_photo_bytes + 1),
        mime_type=upload.content_type or "",
        filename=upload.filename,
        context=context or None,
    )


@router.post("/analyze-symptoms", response_model=SymptomAnalysis, response_model_exclude_none=True)
async def analyze_symptoms(
    payload: SymptomAnalysisRequest,
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.analyze_symptoms(payload.dog_id, payload.symptom_data)


@router.post("/emergency-assessment", response_model=EmergencyAssessment)
async def emergency_assessment(
    payload: EmergencyAssessmentRequest,
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.emergency_assessment(payload.dog_id, payload.assessment_data)


@router.post("/analyze-photo", response_model=PhotoAnalysis)
async def analyze_photo(
    photo: UploadFile = File(...),
    context: Optional[str] = Form(None),
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.analyze_photo(await _photo_input(photo, context))


@router.post("/analyze-photos", response_model=PhotoBatchResult)
async def analyze_photos(
    photos: List[UploadFile] = File(...),
    context: Optional[str] = Form(None),
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    """One analysis per image; failures are reported next to the successes."""
    if len(photos) > settings.max_photos_per_batch:
        raise ValidationError(f"At most {settings.max_photos_per_batch} photos per request")
    inputs = [await _photo_input(p, context) for p in photos]
    return await orchestrator.analyze_photos(inputs)


@router.post("/generate-health-summary", response_model=HealthSummary)
async def generate_health_summary(
    payload: HealthSummaryRequest,
    orchestrator: AssessmentOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.health_summary(payload.dog_id)
