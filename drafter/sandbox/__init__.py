"""Sandbox module for ephemeral local workspaces."""

from drafter.sandbox.workspace import (
    CleanupFailed,
    Workspace,
    WorkspaceError,
    acquire_workspace,
    release_quietly,
    release_workspace,
    workspace_scope,
)

__all__ = [
    "Workspace",
    "WorkspaceError",
    "CleanupFailed",
    "acquire_workspace",
    "release_workspace",
    "release_quietly",
    "workspace_scope",
]
