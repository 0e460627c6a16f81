"""Dropbox credential broker.

Holds the one cached access token shared by every pipeline run in the
process and refreshes it through the OAuth2 refresh-token grant:

1. The refresh token, client id and client secret come from settings
2. They are exchanged for a short-lived access token
3. The token is cached until a caller asks for a refresh

There is no expiry timer. Callers detect staleness reactively (a 401 from
Dropbox) and call force_refresh(); long batches also refresh proactively
before they start.

Refreshes are serialized by an asyncio.Lock. A caller that passes the
credential it saw rejected as `stale` is handed the replacement if another
caller already refreshed while it waited, so a burst of concurrent 401s
costs one token exchange rather than one per file.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from drafter.core.config import Settings
from drafter.dropbox.client import DropboxClient
from drafter.dropbox.errors import CredentialUnavailable, RemoteStoreError
from drafter.dropbox.types import Credential

logger = logging.getLogger(__name__)


class CredentialBroker:
    """Obtains, caches and refreshes the Dropbox bearer credential."""

    def __init__(
        self,
        client: DropboxClient,
        refresh_token: str,
        client_id: str,
        client_secret: str,
    ):
        self._client = client
        self._refresh_token = refresh_token
        self._client_id = client_id
        self._client_secret = client_secret
        self._credential: Optional[Credential] = None
        self._lock = asyncio.Lock()
        self.refresh_count = 0

    @classmethod
    def from_settings(cls, client: DropboxClient, settings: Settings) -> "CredentialBroker":
        return cls(
            client=client,
            refresh_token=settings.dropbox_refresh_token,
            client_id=settings.dropbox_client_id,
            client_secret=settings.dropbox_client_secret,
        )

    @property
    def current(self) -> Optional[Credential]:
        """The cached credential, or None if none has been obtained yet."""
        return self._credential

    async def ensure_valid(self) -> Credential:
        """Return the cached credential, fetching one first if none exists.

        Raises:
            CredentialUnavailable: If secrets are missing or the exchange fails.
                Nothing is cached in that case.
        """
        credential = self._credential
        if credential is not None:
            return credential

        async with self._lock:
            if self._credential is None:
                self._credential = await self._exchange()
            return self._credential

    async def force_refresh(self, stale: Optional[Credential] = None) -> Credential:
        """Exchange for a fresh credential and replace the cached one.

        The exchange is skipped when a refresh completed while this caller
        waited for the lock. Without `stale` that means the cache changed
        after the call started; with `stale`, that the cache no longer holds
        the credential the caller saw rejected.

        Raises:
            CredentialUnavailable: If secrets are missing or the exchange fails.
                The previously cached credential is left untouched.
        """
        observed = self._credential
        async with self._lock:
            current = self._credential
            if current is not None:
                if stale is not None and current is not stale:
                    logger.debug("Credential already refreshed by a concurrent caller")
                    return current
                if stale is None and current is not observed:
                    logger.debug("Credential refreshed while waiting for the lock")
                    return current

            self._credential = await self._exchange()
            return self._credential

    async def _exchange(self) -> Credential:
        missing = [
            name
            for name, value in (
                ("DROPBOX_REFRESH_TOKEN", self._refresh_token),
                ("DROPBOX_CLIENT_ID", self._client_id),
                ("DROPBOX_CLIENT_SECRET", self._client_secret),
            )
            if not value
        ]
        if missing:
            raise CredentialUnavailable(
                "Missing required environment variables: " + ", ".join(missing)
            )

        try:
            access_token = await self._client.exchange_refresh_token(
                self._refresh_token,
                self._client_id,
                self._client_secret,
            )
        except RemoteStoreError as exc:
            logger.error("Dropbox token refresh failed: %s", exc)
            raise CredentialUnavailable(str(exc)) from exc

        self.refresh_count += 1
        logger.info("Dropbox access token refreshed (refresh #%d)", self.refresh_count)
        return Credential(access_token=access_token, obtained_at=datetime.now(timezone.utc))
