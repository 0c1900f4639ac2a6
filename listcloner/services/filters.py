"""Exclusion filtering of candidate list members."""

import logging

from listcloner.core.errors import AuthError
from listcloner.schemas.job import JobFilters
from listcloner.services.atproto_client import AtprotoClient
from listcloner.services.graph import fetch_list_members, get_follows, get_mutuals

logger = logging.getLogger(__name__)


async def build_exclusion_set(
    client: AtprotoClient, filters: JobFilters, actor_id: str
) -> set[str]:
    excluded: set[str] = set()
    follows: list[str] | None = None

    if filters.exclude_follows:
        follows = await get_follows(client, actor_id)
        excluded.update(follows)

    if filters.exclude_mutuals:
        excluded.update(await get_mutuals(client, actor_id, follows=follows))

    for list_uri in filters.exclude_list_uris:
        excluded.update(await fetch_list_members(client, list_uri))

    return excluded


async def apply_filters(
    client: AtprotoClient,
    candidates: list[str],
    filters: JobFilters,
    actor_id: str | None = None,
) -> list[str]:
    """
    Drop every candidate found in the actor's follows, mutuals or the given
    exclusion lists, for whichever of those the filters enable. Order is kept.
    """
    if client.session is None:
        raise AuthError("Client must be authenticated to apply filters")

    if not filters.enabled:
        return candidates

    excluded = await build_exclusion_set(client, filters, actor_id or client.did)
    kept = [did for did in candidates if did not in excluded]
    logger.info(
        f"Filtered {len(candidates)} candidates to {len(kept)} "
        f"({len(excluded)} accounts excluded)"
    )
    return kept
