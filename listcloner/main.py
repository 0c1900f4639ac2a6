"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from listcloner.core.job_queue import start_worker, stop_worker
from listcloner.database import init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    logger.info("Initializing database...")
    await init_db()

    await _purge_expired_records()

    logger.info("Starting job queue workers...")
    await start_worker()

    yield

    # --- Shutdown ---
    logger.info("Stopping job queue workers...")
    await stop_worker()

    from listcloner.services.atproto_client import close_atproto_http
    await close_atproto_http()


async def _purge_expired_records():
    """Drop key-value entries whose retention has lapsed."""
    from listcloner.database import AsyncSessionLocal
    from listcloner.services.kv_store import KeyValueStore

    async with AsyncSessionLocal() as db:
        removed = await KeyValueStore(db).purge_expired()
    if removed:
        logger.info(f"Purged {removed} expired records")


def create_app() -> FastAPI:
    from listcloner.routers import clone, jobs

    app = FastAPI(
        title="ListCloner",
        description=(
            "Clone a Bluesky list into your own account, optionally skipping "
            "accounts you already follow, mutuals, or members of other lists."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(clone.router, prefix="/api/clone", tags=["Clone"])
    app.include_router(jobs.router, prefix="/api/jobs", tags=["Jobs"])

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
