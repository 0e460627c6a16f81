"""Tests for workspace acquisition and release."""

import pytest

from drafter.sandbox.workspace import (
    CleanupFailed,
    Workspace,
    WorkspaceError,
    acquire_workspace,
    release_quietly,
    release_workspace,
    workspace_scope,
)


class TestAcquireWorkspace:
    def test_creates_empty_directory(self, workspace_root) -> None:
        ws = acquire_workspace(workspace_root)

        assert ws.root_dir.is_dir()
        assert ws.root_dir.parent == workspace_root
        assert ws.root_dir.name.startswith("drafter-")
        assert ws.is_live
        assert ws.files() == []

    def test_repeated_acquires_are_distinct(self, workspace_root) -> None:
        dirs = {acquire_workspace(workspace_root).root_dir for _ in range(10)}
        assert len(dirs) == 10

    def test_creates_missing_base_dir(self, tmp_path) -> None:
        base = tmp_path / "not" / "yet"
        ws = acquire_workspace(base)
        assert ws.root_dir.parent == base

    def test_unusable_base_raises(self, tmp_path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(WorkspaceError):
            acquire_workspace(blocker)


class TestReleaseWorkspace:
    def test_removes_directory_and_contents(self, workspace_root) -> None:
        ws = acquire_workspace(workspace_root)
        (ws.root_dir / "a.jpg").write_bytes(b"x")

        release_workspace(ws)

        assert not ws.root_dir.exists()
        assert ws.released
        assert not ws.is_live

    def test_second_release_is_noop(self, workspace_root) -> None:
        ws = acquire_workspace(workspace_root)
        release_workspace(ws)
        release_workspace(ws)
        assert ws.released

    def test_none_is_noop(self) -> None:
        release_workspace(None)

    def test_directory_already_gone_is_noop(self, tmp_path) -> None:
        ws = Workspace(root_dir=tmp_path / "vanished")
        release_workspace(ws)
        assert ws.released

    def test_rmtree_failure_raises_cleanup_failed(self, workspace_root, monkeypatch) -> None:
        ws = acquire_workspace(workspace_root)

        def _boom(path):
            raise PermissionError("denied")

        monkeypatch.setattr("drafter.sandbox.workspace.shutil.rmtree", _boom)

        with pytest.raises(CleanupFailed):
            release_workspace(ws)
        assert not ws.released

    def test_release_quietly_swallows_cleanup_failure(self, workspace_root, monkeypatch) -> None:
        ws = acquire_workspace(workspace_root)

        def _busy(path):
            raise OSError("busy")

        monkeypatch.setattr("drafter.sandbox.workspace.shutil.rmtree", _busy)

        release_quietly(ws)
        assert not ws.released


class TestPathFor:
    def test_plain_name(self, workspace_root) -> None:
        ws = acquire_workspace(workspace_root)
        assert ws.path_for("front.jpg") == ws.root_dir / "front.jpg"

    @pytest.mark.parametrize("name", ["../escape.jpg", "/etc/escape.jpg", "a\\b\\escape.jpg"])
    def test_directory_components_are_dropped(self, workspace_root, name) -> None:
        ws = acquire_workspace(workspace_root)
        assert ws.path_for(name) == ws.root_dir / "escape.jpg"

    @pytest.mark.parametrize("name", ["", ".", "..", "bad\x00name"])
    def test_unusable_names_raise(self, workspace_root, name) -> None:
        ws = acquire_workspace(workspace_root)
        with pytest.raises(WorkspaceError):
            ws.path_for(name)


class TestWorkspaceScope:
    def test_releases_on_normal_exit(self, workspace_root) -> None:
        ws = acquire_workspace(workspace_root)
        with workspace_scope(ws) as scoped:
            assert scoped is ws
            assert ws.is_live
        assert not ws.root_dir.exists()

    def test_releases_on_exception(self, workspace_root) -> None:
        ws = acquire_workspace(workspace_root)
        with pytest.raises(RuntimeError):
            with workspace_scope(ws):
                raise RuntimeError("analysis blew up")
        assert not ws.root_dir.exists()

    def test_accepts_none(self) -> None:
        with workspace_scope(None) as scoped:
            assert scoped is None
