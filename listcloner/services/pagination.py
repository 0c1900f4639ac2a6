"""Cursor pagination accumulator."""

from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")

PAGE_SIZE = 100

PageFetcher = Callable[[str | None], Awaitable[tuple[list[T], str | None]]]


async def fetch_all(fetch_page: PageFetcher) -> list[T]:
    """
    Call ``fetch_page`` with the cursor from the previous page until no
    cursor comes back, or the same cursor comes back twice in a row, and
    return every item in page order.

    A failing page propagates; callers never see a partial collection.
    """
    items: list[T] = []
    cursor: str | None = None
    while True:
        page, next_cursor = await fetch_page(cursor)
        items.extend(page)
        if not next_cursor or next_cursor == cursor:
            return items
        cursor = next_cursor
