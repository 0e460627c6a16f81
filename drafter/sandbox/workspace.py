"""Ephemeral local workspaces for downloaded files.

A workspace is a uniquely named temp directory holding one run's downloads
and its draft artifact. Lifecycle:

  acquire_workspace(): mkdtemp, collision-free across concurrent runs
  release_workspace(): rmtree; idempotent, safe on None
  workspace_scope(): context manager that releases on every exit path

Release is reachable from several exit paths (transfer failure, analysis
failure, success), so calling it twice on the same workspace is a no-op.
"""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "drafter-"


class WorkspaceError(Exception):
    """Raised when a workspace cannot be created or used at all."""


class CleanupFailed(WorkspaceError):
    """Raised when removing a workspace directory fails."""


@dataclass
class Workspace:
    root_dir: Path
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    released: bool = False

    @property
    def is_live(self) -> bool:
        return not self.released and self.root_dir.is_dir()

    def path_for(self, filename: str) -> Path:
        """Return the local path for `filename` inside the workspace.

        Only the final path component is used, so a remote name can never
        place a file outside root_dir.

        Raises:
            WorkspaceError: If nothing usable is left of the name.
        """
        name = Path(filename.replace("\\", "/")).name
        if name in ("", ".", "..") or "\x00" in name:
            raise WorkspaceError(f"Unusable file name: {filename!r}")
        return self.root_dir / name

    def files(self) -> list[Path]:
        """Regular files currently in the workspace, sorted by name."""
        if not self.is_live:
            return []
        return sorted(p for p in self.root_dir.iterdir() if p.is_file())


def acquire_workspace(
    base_dir: Optional[Path] = None,
    prefix: str = WORKSPACE_PREFIX,
) -> Workspace:
    """Create a fresh, uniquely named workspace directory.

    If base_dir is None the system temp directory is used.

    Raises:
        WorkspaceError: If the directory cannot be created.
    """
    try:
        if base_dir is not None:
            Path(base_dir).mkdir(parents=True, exist_ok=True)
        root = Path(tempfile.mkdtemp(prefix=prefix, dir=base_dir))
    except OSError as exc:
        raise WorkspaceError(f"Cannot create workspace under {base_dir}: {exc}") from exc

    logger.info("Workspace acquired: %s", root)
    return Workspace(root_dir=root)


def release_workspace(workspace: Optional[Workspace]) -> None:
    """Remove the workspace directory and everything under it.

    A None workspace, an already-released workspace, or a directory that no
    longer exists is a no-op.

    Raises:
        CleanupFailed: If the directory exists but cannot be removed.
    """
    if workspace is None or workspace.released:
        return

    if workspace.root_dir.exists():
        try:
            shutil.rmtree(workspace.root_dir)
        except OSError as exc:
            raise CleanupFailed(
                f"Failed to remove workspace {workspace.root_dir}: {exc}"
            ) from exc

    workspace.released = True
    logger.info("Workspace released: %s", workspace.root_dir)


def release_quietly(workspace: Optional[Workspace]) -> None:
    """release_workspace(), logging CleanupFailed instead of raising it."""
    try:
        release_workspace(workspace)
    except CleanupFailed as exc:
        logger.warning("%s", exc)


@contextmanager
def workspace_scope(workspace: Optional[Workspace]) -> Iterator[Optional[Workspace]]:
    """Yield `workspace` and release it when the block exits, however it exits."""
    try:
        yield workspace
    finally:
        release_quietly(workspace)
