import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api import ai, dogs, triage
from app.config import settings
from app.core.errors import AssessmentError
from app.db.session import init_db

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("%s started", settings.app_name)
    yield


app = FastAPI(title="PawTriage API", lifespan=lifespan)

app.include_router(triage.router)
app.include_router(ai.router)
app.include_router(dogs.router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.exception_handler(AssessmentError)
async def assessment_error_handler(request: Request, exc: AssessmentError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )
