"""Tests for the /drafts endpoints.

The app is built with create_app(); a DraftService wired to FakeDropbox and
a stub analyzer is placed on app.state so no real credentials are needed.
"""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from drafter.drafts.service import DraftService
from drafter.engine.orchestrator import ANALYSIS_FAILED_TEXT, PipelineOrchestrator
from drafter.main import create_app


@pytest.fixture
def app(transfer_pipeline, stub_analyzer, uploader):
    _app = create_app()
    orchestrator = PipelineOrchestrator(transfer_pipeline, stub_analyzer, uploader)
    _app.state.draft_service = DraftService(orchestrator, _app.state.token_store, timeout=5)
    return _app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


class TestCreateDraft:
    async def test_completed_draft(self, client, fake_dropbox, stub_analyzer) -> None:
        fake_dropbox.add_folder("/P/Edited/X", ["a.jpg", "b.jpg"])

        res = await client.post("/drafts", json={"path": "/P/Edited/X"})

        assert res.status_code == 200
        body = res.json()
        assert body["status"] == "completed"
        assert body["result_text"] == stub_analyzer.text
        assert body["files_listed"] == 2
        assert body["uploaded"] is True
        assert body["remote_destination"] == "/P/Edited/X/Portal Draft/portal-draft.txt"

    async def test_analysis_failure_is_still_200(self, client, fake_dropbox, stub_analyzer) -> None:
        fake_dropbox.add_folder("/P", ["a.jpg"])
        stub_analyzer.error = RuntimeError("model down")

        res = await client.post("/drafts", json={"path": "/P"})

        assert res.status_code == 200
        assert res.json()["result_text"] == ANALYSIS_FAILED_TEXT

    async def test_empty_folder_is_200_no_files(self, client, fake_dropbox) -> None:
        fake_dropbox.add_folder("/Empty", [])

        res = await client.post("/drafts", json={"path": "/Empty"})

        assert res.status_code == 200
        assert res.json()["status"] == "no_files"

    async def test_listing_failure_is_502(self, client) -> None:
        res = await client.post("/drafts", json={"path": "/missing"})
        assert res.status_code == 502
        assert "not_found" in res.json()["detail"]

    async def test_unknown_token_is_404(self, client) -> None:
        res = await client.post("/drafts", json={"token": "/Pro20250101000000"})
        assert res.status_code == 404

    async def test_path_and_token_together_is_422(self, client) -> None:
        res = await client.post("/drafts", json={"path": "/P", "token": "t"})
        assert res.status_code == 422

    async def test_timeout_is_504(self, app, client) -> None:
        class SlowOrchestrator:
            async def run(self, remote_path):
                await asyncio.sleep(5)

        app.state.draft_service = DraftService(SlowOrchestrator(), app.state.token_store, timeout=0.05)

        res = await client.post("/drafts", json={"path": "/P"})

        assert res.status_code == 504

    async def test_missing_openai_key_is_503(self, monkeypatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "")
        _app = create_app()

        async with AsyncClient(transport=ASGITransport(app=_app), base_url="http://test") as c:
            res = await c.post("/drafts", json={"path": "/P"})

        assert res.status_code == 503
        assert "OPENAI_API_KEY" in res.json()["detail"]


class TestTokens:
    async def test_issue_then_draft_by_token(self, client, fake_dropbox) -> None:
        fake_dropbox.add_folder("/Properties/12 High St", ["front.jpg"])

        issued = await client.post("/drafts/tokens", json={"path": "/Properties/12 High St"})
        assert issued.status_code == 201
        token = issued.json()["token"]
        assert token.startswith("/Pro")

        res = await client.post("/drafts", json={"token": token})
        assert res.status_code == 200
        assert res.json()["remote_destination"].startswith("/Properties/12 High St/")

    async def test_empty_path_rejected(self, client) -> None:
        res = await client.post("/drafts/tokens", json={"path": ""})
        assert res.status_code == 422


class TestHealth:
    async def test_health(self, client) -> None:
        res = await client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok"}
        assert "x-request-id" in res.headers
