"""Error kinds raised by the Dropbox layer.

AuthorizationExpired is the only error that triggers a credential refresh;
every other RemoteStoreError is treated as a plain failure of that call.
"""

from typing import Optional


class DropboxError(Exception):
    """Base class for Dropbox-layer failures."""


class RemoteStoreError(DropboxError):
    """A Dropbox API call failed.

    status_code is None for transport-level failures (DNS, timeouts, resets).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)


class AuthorizationExpired(RemoteStoreError):
    """Dropbox rejected the access token (HTTP 401)."""

    def __init__(self, message: str = "Dropbox access token rejected (401)"):
        super().__init__(message, status_code=401)


class CredentialUnavailable(DropboxError):
    """No access token could be obtained: missing secrets or token endpoint failure."""


class RemoteFolderListingFailed(DropboxError):
    """Listing a remote folder failed, including after one refresh-and-retry."""

    def __init__(self, remote_path: str, reason: str):
        self.remote_path = remote_path
        self.reason = reason
        super().__init__(f"Failed to list {remote_path!r}: {reason}")
