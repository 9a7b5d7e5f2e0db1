# tests/test_orchestrator.py
import asyncio
import json
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
import pytest

from app.core.errors import ExternalServiceError, NotFoundError, ValidationError
from app.schemas.assessment import AssessmentData, PhotoAnalysis, PhotoInput
from app.services.gemini_client import GeminiClient, GeminiError
from app.services.orchestrator import AssessmentOrchestrator

PHOTO_REPLY = {
    "findings": "Small red patch on the left ear flap",
    "concerns": ["Possible hot spot"],
    "recommendations": ["Keep the area dry"],
    "urgencyLevel": "low",
    "suggestedActions": ["Monitor for spreading"],
}


# -----------------------------
# Fakes
# -----------------------------
@dataclass
class FakeDog:
    id: str
    name: str
    breed: str
    birth_date: Optional[date] = None
    weight: Optional[float] = None


class FakeRepo:
    def __init__(self) -> None:
        self.dogs = {"dog-1": FakeDog("dog-1", "Rex", "Beagle", date(2020, 1, 1), 24.5)}

    async def get_dog(self, dog_id: str, *, session=None):
        return self.dogs.get(dog_id)

    async def get_recent_health_records(self, dog_id: str, *, limit: int = 5, session=None):
        return []


class FakeGeminiClient:
    def __init__(self, reply: str = json.dumps(PHOTO_REPLY)) -> None:
        self.reply = reply
        self.calls: List[Dict[str, Any]] = []
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate(self, system_instruction, prompt, **kwargs) -> str:
        self.calls.append({"prompt": prompt, **kwargs})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if kwargs.get("image") == b"broken":
                raise GeminiError("HTTP 400: Unable to process input image")
            return self.reply
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True


def _photo(content: bytes = b"\xff\xd8jpeg", mime_type: str = "image/jpeg", filename: str = "ear.jpg") -> PhotoInput:
    return PhotoInput(content=content, mime_type=mime_type, filename=filename)


# -----------------------------
# Client lifecycle
# -----------------------------
@pytest.mark.asyncio
async def test_validation_error_never_creates_client():
    created: List[Any] = []

    def factory():
        created.append(1)
        return FakeGeminiClient()

    orch = AssessmentOrchestrator(FakeRepo(), client_factory=factory)
    with pytest.raises(ValidationError):
        await orch.emergency_assessment("dog-1", AssessmentData(symptoms=[]))
    with pytest.raises(ValidationError):
        await orch.emergency_assessment(None, AssessmentData(symptoms=["Severe bleeding"]))
    assert created == []


@pytest.mark.asyncio
async def test_owned_client_is_closed_borrowed_is_not():
    owned = FakeGeminiClient()
    orch = AssessmentOrchestrator(FakeRepo(), client_factory=lambda: owned)
    await orch.analyze_photo(_photo())
    await orch.aclose()
    assert owned.closed

    borrowed = FakeGeminiClient()
    orch = AssessmentOrchestrator(FakeRepo(), borrowed)
    await orch.analyze_photo(_photo())
    await orch.aclose()
    assert not borrowed.closed


@pytest.mark.asyncio
async def test_missing_api_key_surfaces_as_external_service_error():
    def factory():
        raise GeminiError("GEMINI_API_KEY is not configured")

    orch = AssessmentOrchestrator(FakeRepo(), client_factory=factory)
    with pytest.raises(ExternalServiceError, match="AI service unavailable"):
        await orch.analyze_photo(_photo())


@pytest.mark.asyncio
async def test_unknown_dog_is_not_found():
    orch = AssessmentOrchestrator(FakeRepo(), FakeGeminiClient())
    with pytest.raises(NotFoundError):
        await orch.health_summary("dog-404")


# -----------------------------
# Photo batch
# -----------------------------
@pytest.mark.asyncio
async def test_photo_batch_reports_partial_failure():
    client = FakeGeminiClient()
    orch = AssessmentOrchestrator(FakeRepo(), client)

    batch = await orch.analyze_photos(
        [
            _photo(filename="ear.jpg"),
            _photo(content=b"%PDF-1.4", mime_type="application/pdf", filename="report.pdf"),
            _photo(filename="paw.png", mime_type="image/png"),
        ]
    )

    assert [item.index for item in batch.succeeded] == [0, 2]
    assert [item.filename for item in batch.succeeded] == ["ear.jpg", "paw.png"]
    assert all(isinstance(item.analysis, PhotoAnalysis) for item in batch.succeeded)
    assert len(batch.failed) == 1
    failure = batch.failed[0]
    assert failure.index == 1
    assert failure.filename == "report.pdf"
    assert failure.kind == "validation_error"
    assert batch.partial
    # the rejected file never reached the model
    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_photo_batch_model_failure_is_per_image():
    orch = AssessmentOrchestrator(FakeRepo(), FakeGeminiClient())

    batch = await orch.analyze_photos([_photo(content=b"broken"), _photo()])

    assert [item.index for item in batch.succeeded] == [1]
    assert batch.failed[0].index == 0
    assert batch.failed[0].kind == "external_service_error"


@pytest.mark.asyncio
async def test_photo_batch_respects_concurrency_limit():
    client = FakeGeminiClient()
    orch = AssessmentOrchestrator(FakeRepo(), client, batch_concurrency=2)

    batch = await orch.analyze_photos([_photo(filename=f"{i}.jpg") for i in range(5)])

    assert len(batch.succeeded) == 5
    assert not batch.partial
    assert client.max_in_flight <= 2


@pytest.mark.asyncio
async def test_empty_photo_batch():
    batch = await AssessmentOrchestrator(FakeRepo(), FakeGeminiClient()).analyze_photos([])
    assert batch.succeeded == [] and batch.failed == []


@pytest.mark.asyncio
async def test_malformed_gemini_body_fails_only_that_photo():
    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        image = payload["contents"][0]["parts"][0]["inlineData"]["data"]
        if image == "YnJva2Vu":  # base64 of b"broken"
            return httpx.Response(200, json={"candidates": ["oops"]})
        text = json.dumps(PHOTO_REPLY)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})

    client = GeminiClient(
        base_url="https://gemini.test/v1beta",
        api_key="test-key",
        model="gemini-test",
        backoff_factor=0,
        transport=httpx.MockTransport(handler),
    )
    orch = AssessmentOrchestrator(FakeRepo(), client)

    batch = await orch.analyze_photos([_photo(), _photo(content=b"broken"), _photo()])
    await client.aclose()

    assert [item.index for item in batch.succeeded] == [0, 2]
    assert [f.index for f in batch.failed] == [1]
    assert batch.failed[0].kind == "external_service_error"


@pytest.mark.asyncio
async def test_null_reply_text_is_external_service_error():
    body = {"candidates": [{"content": {"parts": [{"text": None}]}}]}
    client = GeminiClient(
        base_url="https://gemini.test/v1beta",
        api_key="test-key",
        backoff_factor=0,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)),
    )
    orch = AssessmentOrchestrator(FakeRepo(), client)

    with pytest.raises(ExternalServiceError):
        await orch.analyze_photo(_photo())
    await client.aclose()


class ExplodingClient(FakeGeminiClient):
    async def generate(self, system_instruction, prompt, **kwargs) -> str:
        if kwargs.get("image") == b"broken":
            raise RuntimeError("unexpected client bug")
        return await super().generate(system_instruction, prompt, **kwargs)


@pytest.mark.asyncio
async def test_unexpected_exception_is_recorded_per_image():
    orch = AssessmentOrchestrator(FakeRepo(), ExplodingClient())

    batch = await orch.analyze_photos([_photo(content=b"broken"), _photo()])

    assert [item.index for item in batch.succeeded] == [1]
    assert batch.failed[0].index == 0
    assert batch.failed[0].kind == "external_service_error"
    assert "unexpected client bug" in batch.failed[0].error
