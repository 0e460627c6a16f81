"""Remote folder listing with one refresh-and-retry on 401."""

import logging

from drafter.dropbox.auth import CredentialBroker
from drafter.dropbox.client import DropboxClient
from drafter.dropbox.errors import (
    AuthorizationExpired,
    RemoteFolderListingFailed,
    RemoteStoreError,
)
from drafter.dropbox.types import RemoteFile

logger = logging.getLogger(__name__)


class RemoteDirectoryLister:
    """Lists the files directly under a Dropbox folder.

    Folder (and deleted) entries are dropped silently. An empty result is
    returned as an empty list; whether that is fatal is the caller's call.
    """

    def __init__(self, client: DropboxClient, broker: CredentialBroker):
        self._client = client
        self._broker = broker

    async def list_files(self, remote_path: str) -> list[RemoteFile]:
        """Return the file entries under `remote_path`, in listing order.

        Raises:
            CredentialUnavailable: If no credential can be obtained.
            RemoteFolderListingFailed: If the listing fails, or fails again
                after a single refresh following a 401.
        """
        credential = await self._broker.ensure_valid()
        try:
            entries = await self._client.list_folder(remote_path, credential.access_token)
        except AuthorizationExpired:
            logger.info("Listing %s got 401; refreshing token and retrying once", remote_path)
            credential = await self._broker.force_refresh(stale=credential)
            try:
                entries = await self._client.list_folder(remote_path, credential.access_token)
            except RemoteStoreError as exc:
                raise RemoteFolderListingFailed(remote_path, str(exc)) from exc
        except RemoteStoreError as exc:
            raise RemoteFolderListingFailed(remote_path, str(exc)) from exc

        files = [f for f in map(RemoteFile.from_entry, entries) if f.is_file]
        logger.info(
            "Listed %s: %d files (%d entries total)",
            remote_path, len(files), len(entries),
        )
        return files
