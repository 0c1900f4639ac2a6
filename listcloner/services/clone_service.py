"""Clone job creation: request validation, login, identity resolution."""

import logging

from pydantic.alias_generators import to_camel

from listcloner.core.errors import ValidationError
from listcloner.schemas.job import CloneRequest, Job, JobFilters
from listcloner.services.atproto_client import AtprotoClient
from listcloner.services.job_store import JobStore
from listcloner.services.list_urls import build_list_uri, is_list_uri, parse_list_url
from listcloner.services.resolver import resolve_actor

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("source_list_url", "dest_list_name", "handle", "password", "filters")


def validate_clone_request(request: CloneRequest) -> None:
    for name in REQUIRED_FIELDS:
        if not getattr(request, name):
            raise ValidationError(f"Missing required field: {to_camel(name)}")


async def resolve_list_reference(client: AtprotoClient, reference: str) -> str:
    """Turn an at:// list URI or a bsky.app list URL into an at:// list URI."""
    if is_list_uri(reference):
        return reference
    parsed = parse_list_url(reference)
    owner_did = await resolve_actor(client, parsed.owner)
    return build_list_uri(owner_did, parsed.rkey)


async def create_clone_job(
    request: CloneRequest, store: JobStore, client: AtprotoClient
) -> Job:
    """
    Validate the request, log in with the supplied credentials and persist a
    pending job. Raises ValidationError, AuthError or ResolutionError.
    """
    validate_clone_request(request)
    source = parse_list_url(request.source_list_url)

    session = await client.login(request.handle, request.password)

    owner_did = await resolve_actor(client, source.owner)
    source_list_uri = build_list_uri(owner_did, source.rkey)

    exclude_list_uris = [
        await resolve_list_reference(client, ref)
        for ref in request.filters.exclude_list_uris
    ]
    filters = JobFilters(
        exclude_follows=request.filters.exclude_follows,
        exclude_mutuals=request.filters.exclude_mutuals,
        exclude_list_uris=exclude_list_uris,
    )

    job = await store.create(
        session=session,
        source_list_uri=source_list_uri,
        dest_list_name=request.dest_list_name,
        filters=filters,
    )
    logger.info(f"Created clone job {job.id} for {session.handle}: {source_list_uri}")
    return job
