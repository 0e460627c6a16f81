"""Packaging module for the draft artifact and its write-back.

Public API:
    write_artifact(workspace, text, filename) -> AnalysisArtifact
    ResultUploader(client, broker, subfolder).upload(local_file, folder) -> UploadResult
"""

from drafter.packaging.artifact import DISCLAIMER, render_artifact, write_artifact
from drafter.packaging.types import AnalysisArtifact, UploadResult
from drafter.packaging.uploader import ResultUploader, UploadFailed

__all__ = [
    "DISCLAIMER",
    "render_artifact",
    "write_artifact",
    "AnalysisArtifact",
    "UploadResult",
    "ResultUploader",
    "UploadFailed",
]
