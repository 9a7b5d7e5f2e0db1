from fastapi import APIRouter, Depends, Query
from typing import List

from app.api.deps import get_repo
from app.core.errors import NotFoundError
from app.schemas.dog import DogCreate, DogView, HealthRecordCreate, HealthRecordView
from app.services.repo import Repo

router = APIRouter(prefix="/api/dogs", tags=["dogs"])


async def _existing_dog(repo: Repo, dog_id: str):
    dog = await repo.get_dog(dog_id)
    if dog is None:
        raise NotFoundError(f"Dog not found: {dog_id}")
    return dog


@router.post("", response_model=DogView)
async def create_dog(payload: DogCreate, repo: Repo = Depends(get_repo)):
    dog = await repo.create_dog(
        payload.name, payload.breed, birth_date=payload.birth_date, weight=payload.weight
    )
    return DogView.model_validate(dog, from_attributes=True)


@router.get("/{dog_id}", response_model=DogView)
async def get_dog(dog_id: str, repo: Repo = Depends(get_repo)):
    dog = await _existing_dog(repo, dog_id)
    return DogView.model_validate(dog, from_attributes=True)


@router.get("/{dog_id}/health-records", response_model=List[HealthRecordView])
async def list_health_records(
    dog_id: str,
    limit: int = Query(20, ge=1, le=200),
    repo: Repo = Depends(get_repo),
):
    await _existing_dog(repo, dog_id)
    records = await repo.get_recent_health_records(dog_id, limit=limit)
    return [HealthRecordView.model_validate(r, from_attributes=True) for r in records]


@router.post("/{dog_id}/health-records", response_model=HealthRecordView)
async def log_health_record(
    dog_id: str,
    payload: HealthRecordCreate,
    repo: Repo = Depends(get_repo),
):
    """Explicitly log an entry (for example the outcome of an assessment)."""
    await _existing_dog(repo, dog_id)
    record = await repo.create_health_record(
        dog_id,
        payload.type,
        payload.title,
        description=payload.description,
        severity=payload.severity,
        vet_notes=payload.vet_notes,
        recorded_at=payload.recorded_at,
    )
    return HealthRecordView.model_validate(record, from_attributes=True)
