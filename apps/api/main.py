"""DriveFlow API: dashboard and storage event ingress."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.asyncio import Redis

from driveflow import __version__
from driveflow.config import Settings
from driveflow.pipeline.factory import build_pipeline
from driveflow.utils.logging_setup import setup_logging
from routes.dashboard import router as dashboard_router
from routes.events import router as events_router
from routes.health import router as health_router

settings = Settings()
setup_logging(settings)
logger = logging.getLogger("driveflow.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.redis = Redis.from_url(settings.redis_url, decode_responses=True)
    app.state.settings = settings
    app.state.pipeline = build_pipeline(settings, redis=app.state.redis)
    logger.info(
        "API starting (redis=%s, input_bucket=%s, transcript_bucket=%s)",
        settings.redis_url,
        settings.storage.input_bucket,
        settings.storage.transcript_bucket,
    )
    try:
        yield
    finally:
        await app.state.pipeline.close()
        redis: Redis | None = getattr(app.state, "redis", None)
        if redis is not None:
            await redis.aclose()


app = FastAPI(
    title="DriveFlow API",
    description="Drive video transcription dashboard",
    version=__version__,
    lifespan=lifespan,
)


app.include_router(health_router)
app.include_router(events_router)
app.include_router(dashboard_router)
