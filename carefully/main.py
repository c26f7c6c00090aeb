"""Carefully - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from carefully.core.config import get_settings
from carefully.core.errors import CarefullyError
from carefully.core.log import setup_logging
from carefully.db.base import Base
from carefully.db.session import engine, AsyncSessionLocal
from carefully.routers import api
from carefully.services.seeding import seed_demo_user, seed_scenarios

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.seed_on_startup:
        async with AsyncSessionLocal() as db:
            await seed_scenarios(db)
            await seed_demo_user(db)

    logger.info("%s started", settings.app_name)
    yield
    await engine.dispose()


app = FastAPI(
    title="Carefully",
    description="Roleplay training for care workers",
    lifespan=lifespan,
)


@app.exception_handler(CarefullyError)
async def carefully_error_handler(request: Request, exc: CarefullyError):
    if exc.status_code >= 500:
        logger.warning("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _describe_validation_errors(errors) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(p) for p in err["loc"] if p != "body") or "body"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts) or "Invalid request"


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are client input errors, reported like an empty message
    return JSONResponse(status_code=400, content={"detail": _describe_validation_errors(exc.errors())})


app.include_router(api.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
