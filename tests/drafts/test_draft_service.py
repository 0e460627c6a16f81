"""Tests for DraftService path resolution, run IDs and the run timeout."""

import asyncio

import pytest

from drafter.core.logging import get_run_id
from drafter.drafts.schemas import DraftRequest
from drafter.drafts.service import DraftService, PipelineTimeout
from drafter.drafts.tokens import FolderPathNotFound, InMemoryPropertyTokenStore
from drafter.engine.types import RunResult, RunStatus


class RecordingOrchestrator:
    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.paths: list[str] = []
        self.run_ids: list[str] = []
        self.cancelled = False

    async def run(self, remote_path: str) -> RunResult:
        self.paths.append(remote_path)
        self.run_ids.append(get_run_id())
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return RunResult(remote_path=remote_path, status=RunStatus.COMPLETED)


@pytest.fixture
def token_store() -> InMemoryPropertyTokenStore:
    return InMemoryPropertyTokenStore()


class TestDraftService:
    async def test_path_request_runs_that_path(self, token_store) -> None:
        orchestrator = RecordingOrchestrator()
        service = DraftService(orchestrator, token_store)

        result = await service.generate(DraftRequest(path="/P/Edited/X"))

        assert result.status == RunStatus.COMPLETED
        assert orchestrator.paths == ["/P/Edited/X"]

    async def test_token_request_resolves_path(self, token_store) -> None:
        orchestrator = RecordingOrchestrator()
        record = token_store.issue("/Properties/12 High St")
        service = DraftService(orchestrator, token_store)

        await service.generate(DraftRequest(token=record.token))

        assert orchestrator.paths == ["/Properties/12 High St"]

    async def test_unknown_token_raises_before_running(self, token_store) -> None:
        orchestrator = RecordingOrchestrator()
        service = DraftService(orchestrator, token_store)

        with pytest.raises(FolderPathNotFound):
            await service.generate(DraftRequest(token="missing"))
        assert orchestrator.paths == []

    async def test_run_id_bound_during_run_only(self, token_store) -> None:
        orchestrator = RecordingOrchestrator()
        service = DraftService(orchestrator, token_store)

        await service.generate(DraftRequest(path="/P"))

        assert len(orchestrator.run_ids[0]) == 12
        assert get_run_id() == ""

    async def test_timeout_cancels_run(self, token_store) -> None:
        orchestrator = RecordingOrchestrator(delay=5)
        service = DraftService(orchestrator, token_store, timeout=0.05)

        with pytest.raises(PipelineTimeout) as exc_info:
            await service.generate(DraftRequest(path="/P"))

        assert exc_info.value.remote_path == "/P"
        assert orchestrator.cancelled
        assert get_run_id() == ""


class TestDraftRequest:
    def test_requires_one_source(self) -> None:
        with pytest.raises(ValueError):
            DraftRequest()

    def test_rejects_both_sources(self) -> None:
        with pytest.raises(ValueError):
            DraftRequest(path="/P", token="tok")
