# tests/test_api.py
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_orchestrator, get_repo
from app.main import app
from app.services.orchestrator import AssessmentOrchestrator

EMERGENCY_REPLY = {
    "urgencyLevel": "urgent",
    "timeFrame": "Within 24 hours",
    "reasoning": "Vomiting for two days",
    "immediateActions": ["Offer small amounts of water"],
    "redFlags": ["Blood in vomit"],
    "vetRequired": True,
}

PHOTO_REPLY = {
    "findings": "Mild redness",
    "concerns": [],
    "recommendations": ["Monitor"],
    "urgencyLevel": "low",
    "suggestedActions": ["Take another photo tomorrow"],
}


# -----------------------------
# Fakes
# -----------------------------
@dataclass
class FakeDog:
    name: str
    breed: str
    birth_date: Optional[date] = None
    weight: Optional[float] = None
    id: str = field(default_factory=lambda: str(uuid4()))


@dataclass
class FakeRecord:
    dog_id: str
    type: str
    title: str
    description: Optional[str] = None
    severity: Optional[str] = None
    vet_notes: Optional[str] = None
    recorded_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid4()))


class FakeRepo:
    def __init__(self) -> None:
        self.dogs: Dict[str, FakeDog] = {}
        self.records: List[FakeRecord] = []

    async def get_dog(self, dog_id, *, session=None):
        return self.dogs.get(dog_id)

    async def create_dog(self, name, breed, *, birth_date=None, weight=None, session=None):
        dog = FakeDog(name, breed, birth_date, weight)
        self.dogs[dog.id] = dog
        return dog

    async def get_recent_health_records(self, dog_id, *, limit=5, session=None):
        mine = [r for r in self.records if r.dog_id == dog_id]
        mine.sort(key=lambda r: r.recorded_at, reverse=True)
        return mine[:limit]

    async def create_health_record(self, dog_id, type, title, *, description=None, severity=None,
                                   vet_notes=None, recorded_at=None, session=None):
        record = FakeRecord(dog_id, type, title, description, severity, vet_notes)
        if recorded_at is not None:
            record.recorded_at = recorded_at
        self.records.append(record)
        return record


class FakeGeminiClient:
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, system_instruction, prompt, **kwargs) -> str:
        self.calls.append({"prompt": prompt, **kwargs})
        if kwargs.get("image") is not None:
            return json.dumps(PHOTO_REPLY)
        if kwargs.get("response_schema") is None:
            return "Healthy overall."
        return json.dumps(EMERGENCY_REPLY)


@pytest.fixture()
def repo():
    return FakeRepo()


@pytest.fixture()
def llm():
    return FakeGeminiClient()


@pytest.fixture()
def client(repo, llm):
    app.dependency_overrides[get_repo] = lambda: repo
    app.dependency_overrides[get_orchestrator] = lambda: AssessmentOrchestrator(repo, llm)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# -----------------------------
# Triage (no AI)
# -----------------------------
def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_catalog_lists_three_buckets(client):
    buckets = client.get("/api/triage/catalog").json()["buckets"]
    assert set(buckets) == {"emergency", "urgent", "routine"}
    assert "Seizures or convulsions" in buckets["emergency"]
    assert all(len(v) == 10 for v in buckets.values())


def test_classify_takes_highest_bucket(client):
    res = client.post(
        "/api/triage/classify",
        json={"symptoms": ["Minor scratching", "Persistent vomiting", "chewed a sock"]},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["urgency"] == "urgent"
    assert body["recommendation"]["title"] == "Urgent veterinary care"
    assert body["recommendation"]["action_label"] == "Schedule vet visit"
    assert body["unclassified"] == ["chewed a sock"]


def test_classify_free_text_only(client):
    body = client.post("/api/triage/classify", json={"symptoms": ["chewed a sock"]}).json()
    assert body["urgency"] is None
    assert body["recommendation"] is None


# -----------------------------
# Dogs & health records
# -----------------------------
def test_dog_and_health_record_roundtrip(client):
    dog = client.post("/api/dogs", json={"name": "Rex", "breed": "Beagle", "weight": 24.5}).json()
    assert client.get(f"/api/dogs/{dog['id']}").json()["name"] == "Rex"

    res = client.post(
        f"/api/dogs/{dog['id']}/health-records",
        json={"type": "symptom", "title": "Persistent vomiting", "severity": "moderate"},
    )
    assert res.status_code == 200
    records = client.get(f"/api/dogs/{dog['id']}/health-records").json()
    assert [r["title"] for r in records] == ["Persistent vomiting"]


def test_unknown_dog_is_404(client):
    res = client.get("/api/dogs/nope")
    assert res.status_code == 404
    assert res.json()["error"] == "not_found"


# -----------------------------
# AI endpoints
# -----------------------------
def test_emergency_assessment_endpoint(client, repo, llm):
    dog = client.post("/api/dogs", json={"name": "Rex", "breed": "Beagle"}).json()

    res = client.post(
        "/api/ai/emergency-assessment",
        json={
            "dogId": dog["id"],
            "assessmentData": {
                "symptoms": ["Persistent vomiting"],
                "duration": "2 days",
                "vitalSigns": {"heartRate": "120"},
            },
        },
    )

    assert res.status_code == 200
    body = res.json()
    assert body["urgencyLevel"] == "urgent"
    assert body["vetRequired"] is True
    assert "- heartRate: 120" in llm.calls[0]["prompt"]
    # assessments never log records on their own
    assert repo.records == []


def test_emergency_assessment_requires_dog(client, llm):
    res = client.post(
        "/api/ai/emergency-assessment",
        json={"assessmentData": {"symptoms": ["Persistent vomiting"]}},
    )
    assert res.status_code == 400
    assert res.json() == {"detail": "Missing required field: dogId", "error": "validation_error"}
    assert llm.calls == []


def test_health_summary_endpoint(client):
    dog = client.post("/api/dogs", json={"name": "Rex", "breed": "Beagle"}).json()
    res = client.post("/api/ai/generate-health-summary", json={"dogId": dog["id"]})
    assert res.status_code == 200
    assert res.json() == {"summary": "Healthy overall."}


def test_analyze_photo_rejects_non_image(client, llm):
    res = client.post(
        "/api/ai/analyze-photo",
        files={"photo": ("notes.txt", b"hello", "text/plain")},
    )
    assert res.status_code == 400
    assert llm.calls == []


def test_analyze_photos_partial_batch(client):
    res = client.post(
        "/api/ai/analyze-photos",
        files=[
            ("photos", ("ear.jpg", b"\xff\xd8", "image/jpeg")),
            ("photos", ("notes.txt", b"hello", "text/plain")),
        ],
        data={"context": "scratching the ear"},
    )
    assert res.status_code == 200
    body = res.json()
    assert [s["filename"] for s in body["succeeded"]] == ["ear.jpg"]
    assert body["succeeded"][0]["analysis"]["urgencyLevel"] == "low"
    assert body["failed"][0]["index"] == 1
    assert body["failed"][0]["kind"] == "validation_error"


def test_analyze_photos_batch_limit(client):
    files = [("photos", (f"{i}.jpg", b"\xff\xd8", "image/jpeg")) for i in range(6)]
    res = client.post("/api/ai/analyze-photos", files=files)
    assert res.status_code == 400


def test_naive_recorded_at_is_treated_as_utc(client, repo):
    dog = client.post("/api/dogs", json={"name": "Rex", "breed": "Beagle"}).json()

    res = client.post(
        f"/api/dogs/{dog['id']}/health-records",
        json={"type": "checkup", "title": "Annual exam", "recorded_at": "2025-01-01T12:00:00"},
    )

    assert res.status_code == 200
    assert res.json()["recorded_at"] == "2025-01-01T12:00:00Z"
    assert repo.records[0].recorded_at.tzinfo is not None


def test_oversized_upload_is_rejected(client, llm, monkeypatch):
    from app.config import settings

    monkeypatch.setattr(settings, "max_photo_bytes", 10)
    res = client.post(
        "/api/ai/analyze-photos",
        files=[
            ("photos", ("big.jpg", b"\xff\xd8" + b"0" * 100, "image/jpeg")),
            ("photos", ("small.jpg", b"\xff\xd8", "image/jpeg")),
        ],
    )

    assert res.status_code == 200
    body = res.json()
    assert [s["filename"] for s in body["succeeded"]] == ["small.jpg"]
    assert body["failed"][0]["filename"] == "big.jpg"
    assert body["failed"][0]["kind"] == "validation_error"
    assert len(llm.calls) == 1
