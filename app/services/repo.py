# app/services/repo.py
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Dog, HealthRecord, as_utc


class Repo:
    """
    Data access for the two tables the triage flows read.

    Usage patterns:
      - Simple read/write (auto session/commit):
          await repo.create_health_record(...)

      - Composed writes with atomicity:
          async with repo.transaction() as s:
              dog = await repo.create_dog(..., session=s)
              await repo.create_health_record(dog.id, ..., session=s)
              # any error -> full rollback
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    # ---------------------------
    # Transactions
    # ---------------------------
    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session with an active transaction. Rollbacks on exception."""
        async with self._session_factory() as session:
            async with session.begin():
                yield session

    # ---------------------------
    # Dogs
    # ---------------------------
    async def get_dog(
        self,
        dog_id: str,
        *,
        session: Optional[AsyncSession] = None,
    ) -> Optional[Dog]:
        close_session = False
        if session is None:
            session = self._session_factory()
            close_session = True

        try:
            return await session.get(Dog, dog_id)
        finally:
            if close_session:
                await session.close()

    async def create_dog(
        self,
        name: str,
        breed: str,
        *,
        birth_date: Optional[date] = None,
        weight: Optional[float] = None,
        session: Optional[AsyncSession] = None,
    ) -> Dog:
        """Create a dog profile. If no session provided, autocommits."""
        close_session = False
        created_here = False
        if session is None:
            session = self._session_factory()
            close_session = True
            created_here = True

        try:
            dog = Dog(name=name, breed=breed, birth_date=birth_date, weight=weight)
            session.add(dog)
            await session.flush()
            if created_here:
                await session.commit()
            await session.refresh(dog)
            return dog
        except Exception:
            if created_here:
                await session.rollback()
            raise
        finally:
            if close_session:
                await session.close()

    # ---------------------------
    # Health records
    # ---------------------------
    async def get_recent_health_records(
        self,
        dog_id: str,
        *,
        limit: Optional[int] = 5,
        session: Optional[AsyncSession] = None,
    ) -> list[HealthRecord]:
        """Health records of one dog, most recently recorded first."""
        close_session = False
        if session is None:
            session = self._session_factory()
            close_session = True

        try:
            stmt = (
                select(HealthRecord)
                .where(HealthRecord.dog_id == dog_id)
                .order_by(HealthRecord.recorded_at.desc(), HealthRecord.created_at.desc())
            )
            if limit:
                stmt = stmt.limit(limit)
            result = await session.execute(stmt)
            return list(result.scalars().all())
        finally:
            if close_session:
                await session.close()

    async def create_health_record(
        self,
        dog_id: str,
        type: str,
        title: str,
        *,
        description: Optional[str] = None,
        severity: Optional[str] = None,
        vet_notes: Optional[str] = None,
        recorded_at: Optional[datetime] = None,
        session: Optional[AsyncSession] = None,
    ) -> HealthRecord:
        """Log one health entry. If no session provided, autocommits."""
        close_session = False
        created_here = False
        if session is None:
            session = self._session_factory()
            close_session = True
            created_here = True

        try:
            record = HealthRecord(
                dog_id=dog_id,
                type=type,
                title=title,
                description=description,
                severity=severity,
                vet_notes=vet_notes,
            )
            if recorded_at is not None:
                record.recorded_at = as_utc(recorded_at)
            session.add(record)
            await session.flush()
            if created_here:
                await session.commit()
            await session.refresh(record)
            return record
        except Exception:
            if created_here:
                await session.rollback()
            raise
        finally:
            if close_session:
                await session.close()
