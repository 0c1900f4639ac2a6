"""Key-value persistence with expiry on top of the async database session."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from listcloner.models.kv import KeyValueEntry


def _now() -> datetime:
    return datetime.now(UTC)


class KeyValueStore:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def _get_row(self, key: str) -> KeyValueEntry | None:
        result = await self._db.execute(
            select(KeyValueEntry)
            .where(
                KeyValueEntry.key == key,
                or_(KeyValueEntry.expires_at.is_(None), KeyValueEntry.expires_at > _now()),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, key: str) -> dict | None:
        row = await self._get_row(key)
        return dict(row.value) if row else None

    async def set(self, key: str, value: dict, ttl_seconds: int | None = None) -> None:
        expires_at = _now() + timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
        await self._db.merge(KeyValueEntry(key=key, value=value, expires_at=expires_at))
        await self._db.commit()

    async def merge(self, key: str, partial: dict) -> dict | None:
        """Shallow-merge ``partial`` into the stored document, keeping its expiry."""
        row = await self._get_row(key)
        if row is None:
            return None
        row.value = {**row.value, **partial}
        row.version += 1
        await self._db.commit()
        return dict(row.value)

    async def merge_if(self, key: str, expected: dict, partial: dict) -> dict | None:
        """
        Merge ``partial`` only if the stored document still holds every
        ``expected`` field value. The write is guarded on the row version, so
        of several concurrent callers at most one succeeds. Returns the merged
        document, or None if the key is absent or the condition did not hold.
        """
        row = await self._get_row(key)
        if row is None:
            return None
        if any(row.value.get(field) != value for field, value in expected.items()):
            return None

        merged = {**row.value, **partial}
        result = await self._db.execute(
            update(KeyValueEntry)
            .where(KeyValueEntry.key == key, KeyValueEntry.version == row.version)
            .values(value=merged, version=row.version + 1, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        await self._db.commit()
        if result.rowcount != 1:
            return None
        return merged

    async def purge_expired(self) -> int:
        result = await self._db.execute(
            delete(KeyValueEntry)
            .where(KeyValueEntry.expires_at <= _now())
            .execution_options(synchronize_session=False)
        )
        await self._db.commit()
        return result.rowcount
