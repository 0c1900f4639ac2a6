"""POST /api/clone: start cloning a list into the caller's account."""

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from listcloner.core.errors import AuthError, ResolutionError, ValidationError
from listcloner.core.job_queue import enqueue_job
from listcloner.database import get_db
from listcloner.schemas.job import CloneRequest, CloneResponse
from listcloner.services.atproto_client import AtprotoClient, get_atproto_http
from listcloner.services.clone_service import create_clone_job
from listcloner.services.job_store import JobStore
from listcloner.services.kv_store import KeyValueStore

router = APIRouter()


@router.post("", response_model=CloneResponse, status_code=202)
async def submit_clone_job(
    request: CloneRequest,
    db: AsyncSession = Depends(get_db),
    http: httpx.AsyncClient = Depends(get_atproto_http),
):
    try:
        job = await create_clone_job(request, JobStore(KeyValueStore(db)), AtprotoClient(http))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuthError:
        raise HTTPException(status_code=401, detail="Authentication failed")
    except ResolutionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await enqueue_job(job.id)
    return CloneResponse(job_id=job.id)
