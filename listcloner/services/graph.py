"""Full remote collections: list members, follows, followers, mutuals."""

from listcloner.services.atproto_client import AtprotoClient
from listcloner.services.pagination import PAGE_SIZE, fetch_all


async def fetch_list_members(client: AtprotoClient, list_uri: str) -> list[str]:
    return await fetch_all(
        lambda cursor: client.get_list_page(list_uri, cursor, limit=PAGE_SIZE)
    )


async def get_follows(client: AtprotoClient, actor: str) -> list[str]:
    return await fetch_all(
        lambda cursor: client.get_follows_page(actor, cursor, limit=PAGE_SIZE)
    )


async def get_followers(client: AtprotoClient, actor: str) -> list[str]:
    return await fetch_all(
        lambda cursor: client.get_followers_page(actor, cursor, limit=PAGE_SIZE)
    )


async def get_mutuals(
    client: AtprotoClient, actor: str, follows: list[str] | None = None
) -> list[str]:
    """Accounts the actor follows that also follow the actor back."""
    if follows is None:
        follows = await get_follows(client, actor)
    followed = set(follows)
    return [did for did in await get_followers(client, actor) if did in followed]
