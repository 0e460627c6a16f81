"""Types for the pipeline engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PipelineState(str, Enum):
    IDLE = "idle"
    LISTING = "listing"
    DOWNLOADING = "downloading"
    ANALYZING = "analyzing"
    UPLOADING = "uploading"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    ERRORED = "errored"


class RunStatus(str, Enum):
    COMPLETED = "completed"                  # analysis attempted, artifact produced
    NO_FILES = "no_files"                    # folder listed, nothing in it
    NOTHING_TRANSFERRED = "nothing_transferred"  # files listed, none downloaded
    FAILED = "failed"


@dataclass
class RunResult:
    """Everything the entry point needs to answer one draft request.

    result_text may be the analysis-failed placeholder on a COMPLETED run;
    status says whether the pipeline ran, not whether the analysis succeeded.
    """

    remote_path: str
    status: RunStatus = RunStatus.FAILED
    result_text: Optional[str] = None
    files_listed: int = 0
    files_written: int = 0
    uploaded: bool = False
    remote_destination: Optional[str] = None
    error: Optional[str] = None
    analysis_error: Optional[str] = None
    upload_error: Optional[str] = None
    states: list[PipelineState] = field(default_factory=list)

    @property
    def transfer_failed(self) -> bool:
        """True when the run failed before any workspace was handed over."""
        return (
            self.status == RunStatus.FAILED
            and PipelineState.CLEANING_UP not in self.states
        )

    def to_dict(self) -> dict:
        return {
            "remote_path": self.remote_path,
            "status": self.status.value,
            "result_text": self.result_text,
            "files_listed": self.files_listed,
            "files_written": self.files_written,
            "uploaded": self.uploaded,
            "remote_destination": self.remote_destination,
            "error": self.error,
            "analysis_error": self.analysis_error,
            "upload_error": self.upload_error,
            "states": [s.value for s in self.states],
        }
