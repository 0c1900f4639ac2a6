import logging

import httpx

from listcloner.core.errors import AtprotoError, ResolutionError
from listcloner.services.atproto_client import AtprotoClient
from listcloner.services.list_urls import is_did

logger = logging.getLogger(__name__)


async def resolve_actor(client: AtprotoClient, handle_or_did: str) -> str:
    """Return the DID for a handle; DIDs pass through without a lookup."""
    if is_did(handle_or_did):
        return handle_or_did
    try:
        did = await client.resolve_handle(handle_or_did)
    except (AtprotoError, httpx.HTTPError, KeyError) as e:
        logger.warning(f"Could not resolve handle {handle_or_did}: {e}")
        raise ResolutionError(f"Could not resolve handle: {handle_or_did}")
    logger.info(f"Resolved {handle_or_did} -> {did}")
    return did
