# app/api/deps.py
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session
from app.services.orchestrator import AssessmentOrchestrator
from app.services.repo import Repo


async def get_repo(session: AsyncSession = Depends(get_session)) -> Repo:
    return Repo(lambda: session)


async def get_orchestrator(
    repo: Repo = Depends(get_repo),
) -> AsyncGenerator[AssessmentOrchestrator, None]:
    """One orchestrator per request; its Gemini client is closed afterwards."""
    orchestrator = AssessmentOrchestrator(repo)
    try:
        yield orchestrator
    finally:
        await orchestrator.aclose()
