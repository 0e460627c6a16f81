"""Dropbox remote file store.

Public API:
    DropboxClient: list / download / upload / token exchange
    CredentialBroker: cached bearer token with serialized refresh
    RemoteDirectoryLister: file-only folder listing, one retry on 401
    Credential, RemoteFile, EntryKind
"""

from drafter.dropbox.auth import CredentialBroker
from drafter.dropbox.client import DropboxClient
from drafter.dropbox.errors import (
    AuthorizationExpired,
    CredentialUnavailable,
    DropboxError,
    RemoteFolderListingFailed,
    RemoteStoreError,
)
from drafter.dropbox.lister import RemoteDirectoryLister
from drafter.dropbox.types import Credential, EntryKind, RemoteFile

__all__ = [
    "DropboxClient",
    "CredentialBroker",
    "RemoteDirectoryLister",
    "Credential",
    "EntryKind",
    "RemoteFile",
    "DropboxError",
    "RemoteStoreError",
    "AuthorizationExpired",
    "CredentialUnavailable",
    "RemoteFolderListingFailed",
]
