"""Draft artifact writer.

The artifact is plain UTF-8 text: a fixed disclaimer block, a blank line,
then the analyzer output.
"""

import logging

from drafter.packaging.types import AnalysisArtifact
from drafter.sandbox.workspace import Workspace, WorkspaceError

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT_FILENAME = "portal-draft.txt"

DISCLAIMER = (
    "DISCLAIMER: This property description was generated automatically from\n"
    "the listing photographs. It has not been checked by an agent. Verify all\n"
    "details (rooms, features, measurements, condition) before publishing."
)


def render_artifact(text: str) -> str:
    return f"{DISCLAIMER}\n\n{text}\n"


def write_artifact(
    workspace: Workspace,
    text: str,
    filename: str = DEFAULT_ARTIFACT_FILENAME,
) -> AnalysisArtifact:
    """Write the draft into the workspace and return a handle to it.

    Raises:
        WorkspaceError: If the workspace is gone or the file cannot be written.
    """
    if not workspace.is_live:
        raise WorkspaceError(f"Workspace is not usable: {workspace.root_dir}")

    path = workspace.path_for(filename)
    try:
        path.write_text(render_artifact(text), encoding="utf-8")
    except OSError as exc:
        raise WorkspaceError(f"Cannot write artifact {path}: {exc}") from exc

    logger.info("Wrote draft artifact %s (%d chars)", path, len(text))
    return AnalysisArtifact(path=path, content=text)
