from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from .database import init_db
from .routes import router
from .scheduler import canonical_pair_key, generate_schedule
from .stats import compute_stats

logger = logging.getLogger(__name__)

__all__ = ["app", "canonical_pair_key", "compute_stats", "create_app", "generate_schedule"]


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    init_db()
    logger.info("Match builder started")
    yield


def create_app() -> FastAPI:
    """Application factory for the doubles match builder API."""
    app = FastAPI(title="Match Builder", lifespan=lifespan)
    app.include_router(router)
    return app


app = create_app()
