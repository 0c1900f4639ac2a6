"""Clone job execution: fetch, filter, create, insert."""

import logging
from datetime import UTC, datetime

import httpx

from listcloner.config import settings
from listcloner.core.errors import JobNotFoundError
from listcloner.schemas.job import JobProgress, JobStatus, ProcessResponse
from listcloner.services.atproto_client import AtprotoClient
from listcloner.services.filters import apply_filters
from listcloner.services.graph import fetch_list_members
from listcloner.services.job_store import JobStore
from listcloner.services.list_mutator import add_members, create_list

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


async def process_job(job_id: str, store: JobStore, http: httpx.AsyncClient) -> ProcessResponse:
    """
    Drive a pending job through the clone pipeline.

    Raises JobNotFoundError for an unknown id. Every other failure ends the
    job as ``failed`` and is reported through the returned status.
    """
    job = await store.get(job_id)
    if job is None:
        raise JobNotFoundError(job_id)

    claimed = await store.claim(job_id)
    if claimed is None:
        current = await store.get(job_id) or job
        logger.warning(f"Job {job_id} is not pending (status={current.status.value})")
        return ProcessResponse(status=current.status, progress=current.progress)

    try:
        client = AtprotoClient.resume(http, job.session)

        source_members = await fetch_list_members(client, job.source_list_uri)
        total = len(source_members)
        await store.update(job_id, progress=JobProgress(current=0, total=total))
        logger.info(f"Job {job_id}: fetched {total} members from {job.source_list_uri}")

        members = await apply_filters(client, source_members, job.filters, job.session.did)

        try:
            dest_list_uri = await create_list(client, job.dest_list_name)
        except Exception as e:
            logger.error(f"Job {job_id}: failed to create list '{job.dest_list_name}': {e}")
            await store.update(job_id, status=JobStatus.FAILED, completed_at=_now())
            return ProcessResponse(status=JobStatus.FAILED, progress=job.progress)

        await store.update(job_id, dest_list_uri=dest_list_uri)

        result = await add_members(
            client, dest_list_uri, members, batch_size=settings.insert_batch_size
        )
        if result.errors:
            await store.update(job_id, errors=[*job.errors, *result.errors])

        # total stays the pre-filter source size; current counts inserted members
        progress = JobProgress(current=result.successful, total=total)
        await store.update(
            job_id, status=JobStatus.COMPLETED, progress=progress, completed_at=_now()
        )
        logger.info(f"Job {job_id} completed: {result.successful} added, {result.failed} failed")
        return ProcessResponse(status=JobStatus.COMPLETED, progress=progress)

    except Exception as e:
        logger.exception(f"Job {job_id} failed: {e}")
        # Progress recorded earlier in this run is discarded
        progress = JobProgress(current=0, total=0)
        await store.update(
            job_id, status=JobStatus.FAILED, progress=progress, completed_at=_now()
        )
        return ProcessResponse(status=JobStatus.FAILED, progress=progress)
