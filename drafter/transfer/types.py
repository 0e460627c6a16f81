"""Types for the transfer module."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from drafter.dropbox.types import RemoteFile
from drafter.sandbox.workspace import Workspace


class DownloadStatus(str, Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"


@dataclass
class DownloadOutcome:
    """Result of transferring one RemoteFile into a workspace.

    A skip is a normal outcome, not an error: reason says why the file was
    left out (no remote path, 401 twice, 5xx, write failure, ...).
    """

    file: RemoteFile
    status: DownloadStatus
    local_path: Optional[Path] = None
    reason: str = ""

    @property
    def is_written(self) -> bool:
        return self.status == DownloadStatus.WRITTEN

    @classmethod
    def written(cls, file: RemoteFile, local_path: Path) -> "DownloadOutcome":
        return cls(file=file, status=DownloadStatus.WRITTEN, local_path=local_path)

    @classmethod
    def skipped(cls, file: RemoteFile, reason: str) -> "DownloadOutcome":
        return cls(file=file, status=DownloadStatus.SKIPPED, reason=reason)


@dataclass
class TransferManifest:
    """Outcome of one TransferPipeline run.

    count is the number of files listed; written_count is how many of them
    actually landed in the workspace.
    """

    workspace: Workspace
    files: list[RemoteFile]
    outcomes: list[DownloadOutcome] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.files)

    @property
    def written_count(self) -> int:
        return written_count(self.outcomes)

    @property
    def local_paths(self) -> list[Path]:
        return [o.local_path for o in self.outcomes if o.is_written and o.local_path]

    @property
    def skipped(self) -> list[DownloadOutcome]:
        return [o for o in self.outcomes if not o.is_written]


def written_count(outcomes: list[DownloadOutcome]) -> int:
    return sum(1 for o in outcomes if o.is_written)
