"""Destination list creation and member insertion."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from listcloner.core.errors import AuthError
from listcloner.schemas.job import JobError
from listcloner.services.atproto_client import AtprotoClient
from listcloner.services.list_urls import LIST_COLLECTION

logger = logging.getLogger(__name__)

LIST_ITEM_COLLECTION = "app.bsky.graph.listitem"
CURATELIST = "app.bsky.graph.defs#curatelist"


@dataclass
class AddMembersResult:
    successful: int = 0
    failed: int = 0
    errors: list[JobError] = field(default_factory=list)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


async def create_list(
    client: AtprotoClient,
    name: str,
    description: str | None = None,
    purpose: str = CURATELIST,
) -> str:
    if client.session is None:
        raise AuthError("Client must be authenticated to create lists")

    record = {
        "$type": LIST_COLLECTION,
        "purpose": purpose,
        "name": name,
        "createdAt": _now_iso(),
    }
    if description:
        record["description"] = description

    uri = await client.create_record(LIST_COLLECTION, record)
    logger.info(f"Created list '{name}': {uri}")
    return uri


async def _add_member(client: AtprotoClient, list_uri: str, member_id: str) -> JobError | None:
    record = {
        "$type": LIST_ITEM_COLLECTION,
        "subject": member_id,
        "list": list_uri,
        "createdAt": _now_iso(),
    }
    try:
        await client.create_record(LIST_ITEM_COLLECTION, record)
    except Exception as e:
        logger.warning(f"Failed to add {member_id} to {list_uri}: {e}")
        return JobError(member_id=member_id, message=str(e) or type(e).__name__)
    return None


async def add_members(
    client: AtprotoClient,
    list_uri: str,
    member_ids: list[str],
    batch_size: int = 25,
) -> AddMembersResult:
    """
    Add each member to the list. Insertions in a batch run concurrently;
    a failed insertion is recorded in the result and never raised.
    """
    if client.session is None:
        raise AuthError("Client must be authenticated to add list members")
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    result = AddMembersResult()
    for start in range(0, len(member_ids), batch_size):
        batch = member_ids[start:start + batch_size]
        outcomes = await asyncio.gather(
            *(_add_member(client, list_uri, member_id) for member_id in batch)
        )
        for error in outcomes:
            if error is None:
                result.successful += 1
            else:
                result.failed += 1
                result.errors.append(error)

    logger.info(
        f"Added {result.successful}/{len(member_ids)} members to {list_uri} "
        f"({result.failed} failed)"
    )
    return result
