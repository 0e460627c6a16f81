"""Property tokens: opaque strings that stand in for a Dropbox folder path.

A token is handed to a customer instead of the folder path. The draft
endpoint resolves it back to the path before running the pipeline.

Token format: first four characters of the path followed by the UTC issue
time as YYYYMMDDHHMMSS, e.g. "/PRO20250114093000". A second token for a
different path in the same second gets a "-2", "-3", ... suffix.

Only the in-memory store lives here; durable storage is the deployment's
concern and plugs in through the PropertyTokenStore protocol.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = timedelta(days=7)


class FolderPathNotFound(Exception):
    """No live folder path is mapped to the given token."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"No folder path found for token {token!r}")


@dataclass
class PropertyToken:
    token: str
    file_path: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


class PropertyTokenStore(Protocol):
    def issue(self, path: str) -> PropertyToken:
        """Create and remember a token for `path`."""
        ...

    def resolve(self, token: str) -> str:
        """Return the folder path for `token`.

        Raises:
            FolderPathNotFound: If the token is unknown or expired.
        """
        ...


def make_token(path: str, now: datetime) -> str:
    return f"{path[:4]}{now.strftime('%Y%m%d%H%M%S')}"


class InMemoryPropertyTokenStore:
    """Process-local token store. Tokens are lost on restart.

    Expired tokens are dropped on every issue(), so the store only holds
    tokens issued within the last TTL.
    """

    def __init__(self, ttl: timedelta = DEFAULT_TOKEN_TTL):
        self.ttl = ttl
        self._tokens: dict[str, PropertyToken] = {}

    def __len__(self) -> int:
        return len(self._tokens)

    def issue(self, path: str, now: Optional[datetime] = None) -> PropertyToken:
        if not path:
            raise ValueError("Folder path must not be empty")

        now = now or datetime.now(timezone.utc)
        self.purge_expired(now)
        base = make_token(path, now)
        token = base
        suffix = 2
        while token in self._tokens and self._tokens[token].file_path != path:
            token = f"{base}-{suffix}"
            suffix += 1

        record = PropertyToken(
            token=token,
            file_path=path,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self._tokens[token] = record
        logger.info("Issued property token %s (expires %s)", token, record.expires_at.isoformat())
        return record

    def resolve(self, token: str, now: Optional[datetime] = None) -> str:
        record = self._tokens.get(token)
        if record is None or record.is_expired(now):
            raise FolderPathNotFound(token)
        return record.file_path

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop expired tokens. Returns how many were removed."""
        expired = [t for t, r in self._tokens.items() if r.is_expired(now)]
        for token in expired:
            del self._tokens[token]
        if expired:
            logger.info("Purged %d expired property tokens", len(expired))
        return len(expired)
