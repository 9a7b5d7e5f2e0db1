from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import date, datetime

from app.db.models import as_utc


class DogCreate(BaseModel):
    name: str
    breed: str
    birth_date: Optional[date] = None
    weight: Optional[float] = None


class DogView(BaseModel):
    id: str
    name: str
    breed: str
    birth_date: Optional[date] = None
    weight: Optional[float] = None


class HealthRecordCreate(BaseModel):
    type: str
    title: str
    description: Optional[str] = None
    severity: Optional[str] = None
    vet_notes: Optional[str] = None
    recorded_at: Optional[datetime] = None

    @field_validator("recorded_at")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None


class HealthRecordView(BaseModel):
    id: str
    dog_id: str
    type: str
    title: str
    description: Optional[str] = None
    severity: Optional[str] = None
    vet_notes: Optional[str] = None
    recorded_at: datetime
