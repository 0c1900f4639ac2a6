import itertools
import json

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from listcloner.database import Base, get_db
from listcloner.main import app
from listcloner.models import kv  # noqa: F401
from listcloner.schemas.job import JobSession
from listcloner.services.atproto_client import AtprotoClient, get_atproto_http
from listcloner.services.job_store import JobStore
from listcloner.services.kv_store import KeyValueStore

ALICE = JobSession(
    did="did:plc:alice",
    handle="alice.test",
    access_jwt="access-did:plc:alice",
    refresh_jwt="refresh-did:plc:alice",
)


def _error(status: int, error: str, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": error, "message": message})


class FakeBluesky:
    """In-memory AT Protocol service covering the XRPC methods the cloner calls."""

    def __init__(self):
        self.passwords = {"alice.test": "hunter2"}
        self.handles = {"alice.test": "did:plc:alice", "owner.test": "did:plc:owner"}
        self.lists: dict[str, list[str]] = {}
        self.list_records: dict[str, dict] = {}
        self.follows: dict[str, list[str]] = {}
        self.followers: dict[str, list[str]] = {}
        # member DID -> error message returned when adding it to a list
        self.failing_members: dict[str, str] = {}
        # nsid -> cursor value whose page answers with an error
        self.failing_cursors: dict[str, str] = {}
        self.fail_list_creation = False
        self.max_page_size = 100
        self.calls: list[str] = []
        self.limits: list[int] = []
        self._rkeys = itertools.count(1)

    def add_list(self, owner_did: str, rkey: str, members: list[str]) -> str:
        uri = f"at://{owner_did}/app.bsky.graph.list/{rkey}"
        self.lists[uri] = list(members)
        return uri

    def count(self, nsid: str) -> int:
        return self.calls.count(nsid)

    def handler(self, request: httpx.Request) -> httpx.Response:
        nsid = request.url.path.removeprefix("/xrpc/")
        self.calls.append(nsid)

        if nsid == "com.atproto.server.createSession":
            return self._create_session(json.loads(request.content))
        if nsid == "com.atproto.identity.resolveHandle":
            did = self.handles.get(request.url.params.get("handle"))
            if did is None:
                return _error(400, "InvalidRequest", "Unable to resolve handle")
            return httpx.Response(200, json={"did": did})

        viewer = self._viewer(request)
        if viewer is None:
            return _error(401, "AuthenticationRequired", "Authentication Required")

        params = request.url.params
        if nsid == "app.bsky.graph.getList":
            members = self.lists.get(params.get("list"))
            if members is None:
                return _error(400, "InvalidRequest", "List not found")
            return self._page(
                nsid, request, members, "items",
                lambda did: {"uri": f"at://x/app.bsky.graph.listitem/{did}", "subject": {"did": did}},
            )
        if nsid == "app.bsky.graph.getFollows":
            return self._page(
                nsid, request, self.follows.get(params.get("actor"), []), "follows",
                lambda did: {"did": did},
            )
        if nsid == "app.bsky.graph.getFollowers":
            return self._page(
                nsid, request, self.followers.get(params.get("actor"), []), "followers",
                lambda did: {"did": did},
            )
        if nsid == "com.atproto.repo.createRecord":
            return self._create_record(viewer, json.loads(request.content))
        return _error(501, "MethodNotImplemented", nsid)

    def _create_session(self, body: dict) -> httpx.Response:
        identifier = body.get("identifier")
        if self.passwords.get(identifier) != body.get("password"):
            return _error(401, "AuthenticationRequired", "Invalid identifier or password")
        did = self.handles[identifier]
        return httpx.Response(
            200,
            json={
                "did": did,
                "handle": identifier,
                "accessJwt": f"access-{did}",
                "refreshJwt": f"refresh-{did}",
            },
        )

    def _viewer(self, request: httpx.Request) -> str | None:
        auth = request.headers.get("Authorization", "")
        token = auth.removeprefix("Bearer ")
        if token.startswith("access-did:"):
            return token.removeprefix("access-")
        return None

    def _page(self, nsid, request, items, key, wrap) -> httpx.Response:
        params = request.url.params
        cursor = params.get("cursor")
        if cursor is not None and self.failing_cursors.get(nsid) == cursor:
            return _error(502, "UpstreamFailure", "Page fetch failed")
        limit = int(params.get("limit", 50))
        self.limits.append(limit)
        start = int(cursor or 0)
        end = start + min(limit, self.max_page_size)
        body = {key: [wrap(did) for did in items[start:end]]}
        if end < len(items):
            body["cursor"] = str(end)
        return httpx.Response(200, json=body)

    def _create_record(self, viewer: str, body: dict) -> httpx.Response:
        if body.get("repo") != viewer:
            return _error(401, "AuthenticationRequired", "Repo does not match session")
        record = body["record"]
        rkey = f"rk{next(self._rkeys)}"

        if body["collection"] == "app.bsky.graph.list":
            if self.fail_list_creation:
                return _error(500, "InternalServerError", "Failed to create list")
            uri = self.add_list(viewer, rkey, [])
            self.list_records[uri] = record
            return httpx.Response(200, json={"uri": uri, "cid": f"cid-{rkey}"})

        if body["collection"] == "app.bsky.graph.listitem":
            subject = record["subject"]
            if subject in self.failing_members:
                return _error(400, "InvalidRequest", self.failing_members[subject])
            if record["list"] not in self.lists:
                return _error(400, "InvalidRequest", "List not found")
            self.lists[record["list"]].append(subject)
            uri = f"at://{viewer}/app.bsky.graph.listitem/{rkey}"
            return httpx.Response(200, json={"uri": uri, "cid": f"cid-{rkey}"})

        return _error(400, "InvalidRequest", "Unsupported collection")


@pytest.fixture
def alice() -> JobSession:
    return ALICE


@pytest.fixture
def bsky() -> FakeBluesky:
    return FakeBluesky()


@pytest_asyncio.fixture
async def http(bsky):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(bsky.handler), base_url="https://pds.test"
    ) as c:
        yield c


@pytest.fixture
def atproto(http) -> AtprotoClient:
    """Client resumed from alice's stored session."""
    return AtprotoClient.resume(http, ALICE)


@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite for tests."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def job_store(db) -> JobStore:
    return JobStore(KeyValueStore(db))


@pytest_asyncio.fixture
async def client(session_factory, http):
    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_atproto_http] = lambda: http
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c
    app.dependency_overrides.clear()
