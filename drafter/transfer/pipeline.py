"""Transfer pipeline: list a Dropbox folder and download it into a workspace.

Pipeline:
  1. force_refresh() the credential so a long batch starts on a fresh token
  2. list_files(): NoFilesFound if the folder holds no files
  3. acquire a workspace and download_all() into it
  4. return a TransferManifest; the caller now owns the workspace

Nothing is created on disk before step 3. If step 3 fails structurally the
workspace is released here before re-raising, since no caller holds it yet.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from drafter.dropbox.auth import CredentialBroker
from drafter.dropbox.lister import RemoteDirectoryLister
from drafter.sandbox.workspace import acquire_workspace, release_quietly
from drafter.transfer.downloader import FileDownloader
from drafter.transfer.types import TransferManifest

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, str, dict], None]


class NoFilesFound(Exception):
    """The listed folder contains no file entries."""

    def __init__(self, remote_path: str):
        self.remote_path = remote_path
        super().__init__(f"No files found in {remote_path!r}")


class TransferPipeline:
    def __init__(
        self,
        broker: CredentialBroker,
        lister: RemoteDirectoryLister,
        downloader: FileDownloader,
        workspace_root: Optional[Path] = None,
    ):
        self._broker = broker
        self._lister = lister
        self._downloader = downloader
        self._workspace_root = workspace_root

    async def run(
        self,
        remote_path: str,
        on_event: Optional[EventCallback] = None,
    ) -> TransferManifest:
        """Run list → download for `remote_path`.

        Args:
            remote_path: Dropbox folder holding the property photos.
            on_event: Optional callback invoked as on_event(event_type, phase, data).

        Raises:
            CredentialUnavailable: If the proactive refresh fails.
            RemoteFolderListingFailed: If listing fails after one retry.
            NoFilesFound: If listing succeeds with zero files.
            WorkspaceError: If the workspace cannot be created or used.
        """
        def _emit(event_type: str, phase: str, data: dict) -> None:
            if on_event:
                try:
                    on_event(event_type, phase, data)
                except Exception:
                    logger.debug("on_event callback failed for %s", event_type, exc_info=True)

        await self._broker.force_refresh()

        _emit("transfer.listing", "listing", {"remote_path": remote_path})
        files = await self._lister.list_files(remote_path)
        if not files:
            raise NoFilesFound(remote_path)

        _emit("transfer.listed", "downloading", {"count": len(files)})

        workspace = acquire_workspace(self._workspace_root)
        try:
            outcomes = await self._downloader.download_all(files, workspace)
        except BaseException:
            release_quietly(workspace)
            raise

        manifest = TransferManifest(workspace=workspace, files=files, outcomes=outcomes)
        _emit("transfer.completed", "downloading", {
            "listed": manifest.count,
            "written": manifest.written_count,
            "skipped": [o.file.name for o in manifest.skipped],
        })
        return manifest
