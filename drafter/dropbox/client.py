"""Dropbox HTTP API client.

Uses httpx for async HTTP calls. Every file operation takes an explicit
access token; obtaining and refreshing that token is the CredentialBroker's
job, not this module's.

Operations:
1. exchange_refresh_token: OAuth2 refresh-token grant
2. list_folder: /files/list_folder (+ /continue pages)
3. download_file: /files/download, always returns bytes
4. upload_file: /files/upload, overwrite mode by default

A 401 from any file operation raises AuthorizationExpired. All other non-2xx
responses and transport failures raise RemoteStoreError, so callers never
handle httpx exceptions directly.
"""

import json
import logging
from typing import Optional

import httpx

from drafter.core.config import Settings
from drafter.dropbox.errors import AuthorizationExpired, RemoteStoreError

logger = logging.getLogger(__name__)

DROPBOX_TOKEN_URL = "https://api.dropboxapi.com/oauth2/token"
DROPBOX_API_URL = "https://api.dropboxapi.com/2"
DROPBOX_CONTENT_URL = "https://content.dropboxapi.com/2"

# Error bodies are echoed into exception messages; keep them short.
_MAX_ERROR_BODY = 300


class DropboxClient:
    """Thin async wrapper over the Dropbox v2 HTTP endpoints.

    A new httpx.AsyncClient is opened per call. `transport` is forwarded to
    it so tests can substitute an httpx.MockTransport.
    """

    def __init__(
        self,
        api_url: str = DROPBOX_API_URL,
        content_url: str = DROPBOX_CONTENT_URL,
        token_url: str = DROPBOX_TOKEN_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.content_url = content_url.rstrip("/")
        self.token_url = token_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "DropboxClient":
        return cls(
            api_url=settings.dropbox_api_url,
            content_url=settings.dropbox_content_url,
            token_url=settings.dropbox_token_url,
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    async def exchange_refresh_token(
        self,
        refresh_token: str,
        client_id: str,
        client_secret: str,
    ) -> str:
        """Exchange the long-lived refresh token for a short-lived access token."""
        try:
            async with self._http() as client:
                response = await client.post(
                    self.token_url,
                    data={
                        "grant_type": "refresh_token",
                        "refresh_token": refresh_token,
                        "client_id": client_id,
                        "client_secret": client_secret,
                    },
                )
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"Token endpoint unreachable: {exc}", cause=exc)

        if response.status_code >= 400:
            raise RemoteStoreError(
                f"Token refresh failed: {response.status_code} {_error_body(response)}",
                status_code=response.status_code,
            )

        try:
            return response.json()["access_token"]
        except (ValueError, KeyError) as exc:
            raise RemoteStoreError(
                "Token endpoint returned no access_token",
                status_code=response.status_code,
                cause=exc,
            )

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def list_folder(self, path: str, access_token: str) -> list[dict]:
        """Return every raw entry directly under `path`.

        Follows `has_more` / `cursor` pagination until the listing is
        exhausted. Entries of every kind are returned; filtering is the
        caller's concern.
        """
        entries: list[dict] = []
        async with self._http() as client:
            data = await self._rpc(
                client,
                "/files/list_folder",
                {"path": _api_path(path), "recursive": False},
                access_token,
            )
            entries.extend(data.get("entries", []))

            while data.get("has_more"):
                cursor = data.get("cursor")
                if not cursor:
                    raise RemoteStoreError("Listing reported has_more without a cursor")
                data = await self._rpc(
                    client,
                    "/files/list_folder/continue",
                    {"cursor": cursor},
                    access_token,
                )
                entries.extend(data.get("entries", []))

        logger.debug("Listed %d entries under %s", len(entries), path)
        return entries

    async def download_file(self, remote_path: str, access_token: str) -> bytes:
        """Download one file and return its raw bytes."""
        async with self._http() as client:
            response = await self._send(
                client,
                f"{self.content_url}/files/download",
                headers={
                    **_auth_headers(access_token),
                    "Dropbox-API-Arg": json.dumps({"path": remote_path}),
                },
            )
        return response.content

    async def upload_file(
        self,
        dest_path: str,
        content: bytes,
        access_token: str,
        overwrite: bool = True,
    ) -> dict:
        """Upload `content` to `dest_path`. Returns Dropbox's file metadata.

        overwrite=True replaces an existing file in place; autorename is
        always off so a second upload never creates a "(1)" sibling.
        """
        arg = {
            "path": dest_path,
            "mode": "overwrite" if overwrite else "add",
            "autorename": False,
            "mute": True,
        }
        async with self._http() as client:
            response = await self._send(
                client,
                f"{self.content_url}/files/upload",
                headers={
                    **_auth_headers(access_token),
                    "Dropbox-API-Arg": json.dumps(arg),
                    "Content-Type": "application/octet-stream",
                },
                content=content,
            )
        return _json_body(response)

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    async def _rpc(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        payload: dict,
        access_token: str,
    ) -> dict:
        response = await self._send(
            client,
            f"{self.api_url}{endpoint}",
            headers=_auth_headers(access_token),
            json=payload,
        )
        return _json_body(response)

    async def _send(
        self,
        client: httpx.AsyncClient,
        url: str,
        headers: dict[str, str],
        **kwargs,
    ) -> httpx.Response:
        try:
            response = await client.post(url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"Dropbox request failed: {exc}", cause=exc)

        if response.status_code == 401:
            raise AuthorizationExpired()
        if response.status_code >= 400:
            raise RemoteStoreError(
                f"Dropbox returned {response.status_code}: {_error_body(response)}",
                status_code=response.status_code,
            )
        return response


def _api_path(path: str) -> str:
    """Dropbox addresses the root folder as "" rather than "/"."""
    path = path.strip()
    if path in ("", "/"):
        return ""
    if not path.startswith("/"):
        path = "/" + path
    return path.rstrip("/")


def _json_body(response: httpx.Response) -> dict:
    """Decode a 2xx JSON object body; anything else is a store error."""
    try:
        data = response.json()
    except ValueError as exc:
        raise RemoteStoreError(
            f"Dropbox returned a non-JSON body ({response.status_code}): "
            f"{response.text[:_MAX_ERROR_BODY]}",
            status_code=response.status_code,
            cause=exc,
        )
    if not isinstance(data, dict):
        raise RemoteStoreError(
            f"Dropbox returned unexpected JSON ({response.status_code})",
            status_code=response.status_code,
        )
    return data


def _error_body(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:_MAX_ERROR_BODY]
    if isinstance(data, dict) and "error_summary" in data:
        return str(data["error_summary"])
    return json.dumps(data)[:_MAX_ERROR_BODY]


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
