"""Transfer module: folder listing plus batch download into a workspace.

Public API:
    TransferPipeline(broker, lister, downloader).run(remote_path) -> TransferManifest
    FileDownloader(client, broker).download_all(files, workspace) -> list[DownloadOutcome]
"""

from drafter.transfer.downloader import FileDownloader
from drafter.transfer.pipeline import NoFilesFound, TransferPipeline
from drafter.transfer.types import (
    DownloadOutcome,
    DownloadStatus,
    TransferManifest,
    written_count,
)

__all__ = [
    "FileDownloader",
    "TransferPipeline",
    "NoFilesFound",
    "DownloadOutcome",
    "DownloadStatus",
    "TransferManifest",
    "written_count",
]
