"""Job record and clone API schemas.

Attributes are snake_case in Python; JSON bodies use camelCase aliases.
"""

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class JobSession(CamelModel):
    """Bearer credentials captured at login."""

    model_config = ConfigDict(frozen=True)

    did: str
    handle: str
    access_jwt: str
    refresh_jwt: str


class JobFilters(CamelModel):
    model_config = ConfigDict(frozen=True)

    exclude_follows: bool = False
    exclude_mutuals: bool = False
    exclude_list_uris: list[str] = Field(default_factory=list)

    @property
    def enabled(self) -> bool:
        return self.exclude_follows or self.exclude_mutuals or bool(self.exclude_list_uris)


class JobProgress(CamelModel):
    current: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class JobError(CamelModel):
    member_id: str
    message: str


class Job(CamelModel):
    id: str
    status: JobStatus = JobStatus.PENDING
    session: JobSession
    source_list_uri: str
    dest_list_uri: str | None = None
    dest_list_name: str
    filters: JobFilters
    progress: JobProgress = Field(default_factory=JobProgress)
    errors: list[JobError] = Field(default_factory=list)
    created_at: datetime
    completed_at: datetime | None = None


class JobUpdate(CamelModel):
    """Partial job fields; only explicitly set fields are merged."""

    status: JobStatus | None = None
    dest_list_uri: str | None = None
    progress: JobProgress | None = None
    errors: list[JobError] | None = None
    completed_at: datetime | None = None


# --- API ---

class CloneRequest(CamelModel):
    # Optional here so missing fields get a named 400 instead of a 422
    source_list_url: str | None = None
    dest_list_name: str | None = None
    handle: str | None = None
    password: str | None = None
    filters: JobFilters | None = None


class CloneResponse(CamelModel):
    job_id: str


class ProcessResponse(CamelModel):
    status: JobStatus
    progress: JobProgress


class JobStatusResponse(CamelModel):
    id: str
    status: JobStatus
    progress: JobProgress
    errors: list[JobError]
    created_at: datetime
    dest_list_uri: str | None = None
    completed_at: datetime | None = None
