"""AT Protocol XRPC client for the graph and repo endpoints the cloner uses."""

import logging
from typing import Any

import httpx

from listcloner.config import settings
from listcloner.core.errors import AtprotoError, AuthError
from listcloner.schemas.job import JobSession

logger = logging.getLogger(__name__)

Page = tuple[list[str], str | None]


class AtprotoClient:
    """
    XRPC calls over a shared ``httpx.AsyncClient``.

    A client without a session can only log in and resolve handles. Use
    ``login`` for a fresh session or ``resume`` to rebuild an authenticated
    client from stored tokens.
    """

    def __init__(self, http: httpx.AsyncClient, session: JobSession | None = None):
        self._http = http
        self.session = session

    @classmethod
    def resume(cls, http: httpx.AsyncClient, session: JobSession) -> "AtprotoClient":
        return cls(http, session=session)

    @property
    def did(self) -> str:
        if self.session is None:
            raise AuthError("Client is not authenticated")
        return self.session.did

    def _auth_headers(self) -> dict[str, str]:
        if self.session is None:
            raise AuthError("Client is not authenticated")
        return {"Authorization": f"Bearer {self.session.access_jwt}"}

    async def _xrpc(
        self,
        method: str,
        nsid: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        auth: bool = True,
    ) -> dict:
        headers = self._auth_headers() if auth else {}
        response = await self._http.request(
            method,
            f"/xrpc/{nsid}",
            params={k: v for k, v in (params or {}).items() if v is not None},
            json=body,
            headers=headers,
        )
        if response.is_success:
            return response.json() if response.content else {}

        try:
            data = response.json()
        except ValueError:
            data = {}
        raise AtprotoError(response.status_code, data.get("error"), data.get("message"))

    # --- Session ---

    async def login(self, identifier: str, password: str) -> JobSession:
        try:
            data = await self._xrpc(
                "POST",
                "com.atproto.server.createSession",
                body={"identifier": identifier, "password": password},
                auth=False,
            )
        except (AtprotoError, httpx.HTTPError) as e:
            logger.info(f"Login failed for {identifier}: {e}")
            raise AuthError("Authentication failed")

        try:
            self.session = JobSession(
                did=data["did"],
                handle=data.get("handle") or identifier,
                access_jwt=data["accessJwt"],
                refresh_jwt=data["refreshJwt"],
            )
        except KeyError:
            raise AuthError("Login succeeded but returned no session tokens")
        return self.session

    # --- Identity ---

    async def resolve_handle(self, handle: str) -> str:
        data = await self._xrpc(
            "GET", "com.atproto.identity.resolveHandle", params={"handle": handle}, auth=False
        )
        return data["did"]

    # --- Graph pages ---

    async def get_list_page(self, list_uri: str, cursor: str | None = None, limit: int = 100) -> Page:
        data = await self._xrpc(
            "GET",
            "app.bsky.graph.getList",
            params={"list": list_uri, "limit": limit, "cursor": cursor},
        )
        return [item["subject"]["did"] for item in data.get("items", [])], data.get("cursor")

    async def get_follows_page(self, actor: str, cursor: str | None = None, limit: int = 100) -> Page:
        data = await self._xrpc(
            "GET",
            "app.bsky.graph.getFollows",
            params={"actor": actor, "limit": limit, "cursor": cursor},
        )
        return [profile["did"] for profile in data.get("follows", [])], data.get("cursor")

    async def get_followers_page(self, actor: str, cursor: str | None = None, limit: int = 100) -> Page:
        data = await self._xrpc(
            "GET",
            "app.bsky.graph.getFollowers",
            params={"actor": actor, "limit": limit, "cursor": cursor},
        )
        return [profile["did"] for profile in data.get("followers", [])], data.get("cursor")

    # --- Repo ---

    async def create_record(self, collection: str, record: dict) -> str:
        """Create a record in the session owner's repo and return its at:// URI."""
        data = await self._xrpc(
            "POST",
            "com.atproto.repo.createRecord",
            body={"repo": self.did, "collection": collection, "record": record},
        )
        return data["uri"]


# Module-level shared HTTP client
_http_client: httpx.AsyncClient | None = None


def get_atproto_http() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(
            base_url=settings.atproto_service_url.rstrip("/"),
            timeout=settings.atproto_timeout,
        )
    return _http_client


async def close_atproto_http() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
