"""asyncio-based job queue workers."""

import asyncio
import logging

from listcloner.config import settings
from listcloner.core.errors import JobNotFoundError
from listcloner.database import AsyncSessionLocal

logger = logging.getLogger(__name__)

_worker_tasks: list[asyncio.Task] = []
_job_queue: asyncio.Queue[str] = asyncio.Queue()


async def enqueue_job(job_id: str) -> None:
    await _job_queue.put(job_id)


async def _run_job(job_id: str) -> None:
    # Import here to avoid circular imports
    from listcloner.services.atproto_client import get_atproto_http
    from listcloner.services.job_service import process_job
    from listcloner.services.job_store import JobStore
    from listcloner.services.kv_store import KeyValueStore

    async with AsyncSessionLocal() as db:
        store = JobStore(KeyValueStore(db))
        result = await process_job(job_id, store, get_atproto_http())
    logger.info(
        f"Job {job_id} finished with status={result.status.value} "
        f"({result.progress.current}/{result.progress.total})"
    )


async def _worker_loop(worker_id: int) -> None:
    while True:
        try:
            job_id = await _job_queue.get()
            logger.info(f"Worker {worker_id} processing job {job_id}")
            try:
                await _run_job(job_id)
            except JobNotFoundError:
                logger.warning(f"Job {job_id} not found in store")
            except Exception as e:
                logger.exception(f"Unhandled error processing job {job_id}: {e}")
            finally:
                _job_queue.task_done()

        except asyncio.CancelledError:
            logger.info(f"Worker {worker_id} cancelled")
            break


async def start_worker() -> None:
    for worker_id in range(max(settings.worker_count, 1)):
        _worker_tasks.append(asyncio.create_task(_worker_loop(worker_id)))
    logger.info(f"Job queue started with {len(_worker_tasks)} worker(s)")


async def stop_worker() -> None:
    for task in _worker_tasks:
        task.cancel()
    for task in _worker_tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass
    _worker_tasks.clear()
    logger.info("Job queue workers stopped")
