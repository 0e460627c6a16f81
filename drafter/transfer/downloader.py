"""Batch downloader: transfers listed files into a workspace.

Per-file isolation: every file yields a DownloadOutcome. A failure on one
file (missing path, 401 twice, any other Dropbox error, a local write error)
becomes a SKIPPED outcome and the rest of the batch carries on. The only
error that escapes download_all() is WorkspaceError, when the workspace
itself is unusable.

401 handling: the first 401 for a file triggers one credential refresh and
one retry of that file. A second 401 skips the file.

Downloads run concurrently, bounded by an asyncio.Semaphore. Outcomes are
returned in listing order regardless of completion order.
"""

import asyncio
import logging

from drafter.dropbox.auth import CredentialBroker
from drafter.dropbox.client import DropboxClient
from drafter.dropbox.errors import (
    AuthorizationExpired,
    CredentialUnavailable,
    RemoteStoreError,
)
from drafter.dropbox.types import RemoteFile
from drafter.sandbox.workspace import Workspace, WorkspaceError
from drafter.transfer.types import DownloadOutcome, written_count

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4


class FileDownloader:
    def __init__(
        self,
        client: DropboxClient,
        broker: CredentialBroker,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self._client = client
        self._broker = broker
        self._max_concurrency = max(1, max_concurrency)

    async def download_all(
        self,
        files: list[RemoteFile],
        workspace: Workspace,
    ) -> list[DownloadOutcome]:
        """Download every file into `workspace`, one outcome per input file.

        Raises:
            WorkspaceError: If the workspace is released or its directory is gone.
        """
        if not workspace.is_live:
            raise WorkspaceError(f"Workspace is not usable: {workspace.root_dir}")

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(file: RemoteFile) -> DownloadOutcome:
            async with semaphore:
                return await self._download_one(file, workspace)

        outcomes = list(await asyncio.gather(*(_bounded(f) for f in files)))

        logger.info(
            "Downloaded %d/%d files into %s",
            written_count(outcomes), len(files), workspace.root_dir,
        )
        return outcomes

    async def _download_one(self, file: RemoteFile, workspace: Workspace) -> DownloadOutcome:
        if not file.remote_path:
            logger.warning("Skipping %s: listing returned no path", file.name)
            return DownloadOutcome.skipped(file, "no remote path")

        try:
            local_path = workspace.path_for(file.name)
        except WorkspaceError as exc:
            logger.warning("Skipping %s: %s", file.remote_path, exc)
            return DownloadOutcome.skipped(file, str(exc))

        try:
            content = await self._fetch_with_refresh(file.remote_path)
        except CredentialUnavailable as exc:
            logger.error("Skipping %s: credential refresh failed: %s", file.remote_path, exc)
            return DownloadOutcome.skipped(file, f"credential refresh failed: {exc}")
        except RemoteStoreError as exc:
            logger.error("Failed to download %s: %s", file.remote_path, exc)
            return DownloadOutcome.skipped(file, str(exc))

        try:
            local_path.write_bytes(content)
        except OSError as exc:
            logger.error("Failed to write %s to %s: %s", file.remote_path, local_path, exc)
            return DownloadOutcome.skipped(file, f"write failed: {exc}")

        logger.debug("Downloaded %s (%d bytes)", file.remote_path, len(content))
        return DownloadOutcome.written(file, local_path)

    async def _fetch_with_refresh(self, remote_path: str) -> bytes:
        """Download one file, refreshing the credential at most once on 401."""
        credential = await self._broker.ensure_valid()
        try:
            return await self._client.download_file(remote_path, credential.access_token)
        except AuthorizationExpired:
            logger.info("Download of %s got 401; refreshing token and retrying once", remote_path)

        credential = await self._broker.force_refresh(stale=credential)
        return await self._client.download_file(remote_path, credential.access_token)
