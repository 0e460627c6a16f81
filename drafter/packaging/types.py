"""Types for the packaging module."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class AnalysisArtifact:
    """The draft file written into the workspace.

    content is the analyzer text without the disclaimer header; path points
    at the file that holds header + content.
    """

    path: Path
    content: str

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass
class UploadResult:
    """Outcome of writing an artifact back to Dropbox.

    destination follows the convention:
        {property folder}/{draft subfolder}/{filename}
    """

    destination: str
    uploaded: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "destination": self.destination,
            "uploaded": self.uploaded,
            "error": self.error,
        }
