"""Clone job records persisted as JSON documents in the key-value store."""

import uuid
from datetime import UTC, datetime

from listcloner.config import settings
from listcloner.core.errors import JobNotFoundError
from listcloner.schemas.job import Job, JobFilters, JobSession, JobStatus, JobUpdate
from listcloner.services.kv_store import KeyValueStore


def _job_key(job_id: str) -> str:
    return f"job:{job_id}"


class JobStore:
    def __init__(self, kv: KeyValueStore, ttl_seconds: int | None = None):
        self._kv = kv
        self._ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.job_ttl_seconds

    async def create(
        self,
        session: JobSession,
        source_list_uri: str,
        dest_list_name: str,
        filters: JobFilters,
    ) -> Job:
        job = Job(
            id=str(uuid.uuid4()),
            session=session,
            source_list_uri=source_list_uri,
            dest_list_name=dest_list_name,
            filters=filters,
            created_at=datetime.now(UTC),
        )
        await self._kv.set(_job_key(job.id), job.model_dump(mode="json"), self._ttl_seconds)
        return job

    async def get(self, job_id: str) -> Job | None:
        data = await self._kv.get(_job_key(job_id))
        return Job.model_validate(data) if data is not None else None

    async def update(self, job_id: str, **fields) -> Job:
        """
        Merge only the given fields into the stored job. Not serialized
        against concurrent writers: the last write wins.
        """
        partial = JobUpdate(**fields).model_dump(mode="json", exclude_unset=True)
        data = await self._kv.merge(_job_key(job_id), partial)
        if data is None:
            raise JobNotFoundError(job_id)
        return Job.model_validate(data)

    async def claim(self, job_id: str) -> Job | None:
        """
        Move a pending job to processing. Returns the claimed job, or None if
        the job is gone or another runner already moved it out of pending.
        """
        data = await self._kv.merge_if(
            _job_key(job_id),
            {"status": JobStatus.PENDING.value},
            {"status": JobStatus.PROCESSING.value},
        )
        return Job.model_validate(data) if data is not None else None
