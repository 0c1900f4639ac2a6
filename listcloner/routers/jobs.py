"""Job API: trigger processing, poll status."""

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from listcloner.core.errors import JobNotFoundError
from listcloner.database import get_db
from listcloner.schemas.job import Job, JobStatusResponse, ProcessResponse
from listcloner.services.atproto_client import get_atproto_http
from listcloner.services.job_service import process_job
from listcloner.services.job_store import JobStore
from listcloner.services.kv_store import KeyValueStore

router = APIRouter()


def _job_to_schema(job: Job) -> JobStatusResponse:
    return JobStatusResponse(
        id=job.id,
        status=job.status,
        progress=job.progress,
        errors=job.errors,
        created_at=job.created_at,
        dest_list_uri=job.dest_list_uri,
        completed_at=job.completed_at,
    )


@router.post("/{job_id}/process", response_model=ProcessResponse)
async def trigger_processing(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    http: httpx.AsyncClient = Depends(get_atproto_http),
):
    """Run the clone pipeline for a pending job and report how it ended."""
    try:
        return await process_job(job_id, JobStore(KeyValueStore(db)), http)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")


@router.get(
    "/{job_id}/status",
    response_model=JobStatusResponse,
    response_model_exclude_none=True,
)
async def get_job_status(job_id: str, db: AsyncSession = Depends(get_db)):
    job = await JobStore(KeyValueStore(db)).get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return _job_to_schema(job)
