# app/services/orchestrator.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, Optional

from app.config import settings
from app.core.errors import AssessmentError, ExternalServiceError
from app.runtime.flow import (
    make_emergency_assessment_flow,
    make_health_summary_flow,
    make_photo_analysis_flow,
    make_symptom_analysis_flow,
)
from app.schemas.assessment import (
    AssessmentData,
    EmergencyAssessment,
    HealthSummary,
    PhotoAnalysis,
    PhotoBatchFailure,
    PhotoBatchItem,
    PhotoBatchResult,
    PhotoInput,
    SymptomAnalysis,
    SymptomData,
)
from app.services.gemini_client import GeminiClient

logger = logging.getLogger(__name__)


class AssessmentOrchestrator:
    """
    Entry point for every AI operation. Each call runs one flow over a fresh
    shared dict and returns the validated result, or raises an AssessmentError.

    The Gemini client is created lazily so that validation failures never
    need an API key; a client passed in is borrowed, one created here is
    closed by ``aclose``.
    """

    def __init__(
        self,
        repo: Any,
        llm_client: Any = None,
        *,
        client_factory: Callable[[], Any] = GeminiClient,
        batch_concurrency: Optional[int] = None,
    ) -> None:
        self.repo = repo
        self._llm = llm_client
        self._owns_llm = False
        self._client_factory = client_factory
        self.batch_concurrency = batch_concurrency or settings.photo_batch_concurrency

    def _get_client(self) -> Any:
        if self._llm is None:
            self._llm = self._client_factory()
            self._owns_llm = True
        return self._llm

    async def aclose(self) -> None:
        if self._owns_llm and self._llm is not None:
            await self._llm.aclose()
        self._llm = None
        self._owns_llm = False

    def _shared(self, **fields: Any) -> Dict[str, Any]:
        shared: Dict[str, Any] = {"repo": self.repo, "llm_factory": self._get_client}
        if self._llm is not None:
            shared["llm_client"] = self._llm
        shared.update(fields)
        return shared

    @staticmethod
    async def _run(flow: Any, shared: Dict[str, Any]) -> Any:
        await flow.run_async(shared)
        result = shared.get("result")
        if result is None:
            # every flow ends in ReplyParseNode; reaching here means it was skipped
            raise ExternalServiceError("Assessment flow finished without a result")
        return result

    # ---------------------------
    # Operations
    # ---------------------------
    async def analyze_symptoms(
        self, dog_id: Optional[str], symptom_data: Optional[SymptomData]
    ) -> SymptomAnalysis:
        shared = self._shared(dog_id=dog_id, symptom_data=symptom_data)
        return await self._run(make_symptom_analysis_flow(), shared)

    async def emergency_assessment(
        self, dog_id: Optional[str], assessment_data: Optional[AssessmentData]
    ) -> EmergencyAssessment:
        shared = self._shared(dog_id=dog_id, assessment_data=assessment_data)
        return await self._run(make_emergency_assessment_flow(), shared)

    async def analyze_photo(self, photo: Optional[PhotoInput]) -> PhotoAnalysis:
        shared = self._shared(photo=photo)
        return await self._run(make_photo_analysis_flow(), shared)

    async def health_summary(self, dog_id: Optional[str]) -> HealthSummary:
        shared = self._shared(dog_id=dog_id)
        return await self._run(make_health_summary_flow(), shared)

    async def analyze_photos(self, photos: Iterable[PhotoInput]) -> PhotoBatchResult:
        """Analyze each image independently; one failure never discards the others."""
        photos = list(photos)
        semaphore = asyncio.Semaphore(max(1, self.batch_concurrency))

        async def one(index: int, photo: PhotoInput) -> PhotoBatchItem | PhotoBatchFailure:
            async with semaphore:
                try:
                    analysis = await self.analyze_photo(photo)
                except AssessmentError as e:
                    logger.info("Photo %d (%s) failed: %s", index, photo.filename, e.message)
                    return PhotoBatchFailure(
                        index=index, filename=photo.filename, error=e.message, kind=e.kind
                    )
                except Exception as e:
                    logger.exception("Photo %d (%s) failed unexpectedly", index, photo.filename)
                    return PhotoBatchFailure(
                        index=index,
                        filename=photo.filename,
                        error=f"AI service call failed: {e}",
                        kind=ExternalServiceError.kind,
                    )
            return PhotoBatchItem(index=index, filename=photo.filename, analysis=analysis)

        outcomes = await asyncio.gather(*(one(i, p) for i, p in enumerate(photos)))

        batch = PhotoBatchResult()
        for outcome in outcomes:
            if isinstance(outcome, PhotoBatchItem):
                batch.succeeded.append(outcome)
            else:
                batch.failed.append(outcome)
        logger.info(
            "Photo batch finished: %d analyzed, %d failed", len(batch.succeeded), len(batch.failed)
        )
        return batch
