# app/db/models.py
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Index
from sqlmodel import Field, SQLModel


# -------------------------
# Helpers
# -------------------------

def utcnow() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_id() -> str:
    return str(uuid4())


# -------------------------
# Core entities
# -------------------------

class DogBase(SQLModel):
    name: str = Field(nullable=False)
    breed: str = Field(nullable=False)
    birth_date: Optional[date] = Field(default=None, nullable=True)
    weight: Optional[float] = Field(default=None, nullable=True, description="Pounds")


class Dog(DogBase, table=True):
    """Dog profile; only the fields the triage prompts read."""
    __tablename__ = "dog"

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


class HealthRecordBase(SQLModel):
    dog_id: str = Field(foreign_key="dog.id", index=True, nullable=False)
    type: str = Field(description="symptom|weight|vaccination|checkup")
    title: str
    description: Optional[str] = None
    severity: Optional[str] = Field(default=None, description="mild|moderate|severe")
    vet_notes: Optional[str] = None
    recorded_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)


class HealthRecord(HealthRecordBase, table=True):
    __tablename__ = "health_record"

    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


# -------------------------
# Table indexes
# -------------------------

# recent-history lookups read newest records of one dog first
Index(
    "ix_health_record_dog_recorded",
    HealthRecord.__table__.c.dog_id,
    HealthRecord.__table__.c.recorded_at,
)
