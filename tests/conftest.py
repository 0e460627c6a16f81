"""Shared test fixtures for the drafter test suite.

Dropbox is faked at the HTTP transport level: FakeDropbox is an
httpx.MockTransport handler holding folders, file bytes, uploads and
call counters, so the real DropboxClient code path is exercised end to end
without network access. Failure injection is per path.
"""

import json
from pathlib import Path
from typing import Optional

import httpx
import pytest

from drafter.dropbox.auth import CredentialBroker
from drafter.dropbox.client import DropboxClient
from drafter.dropbox.lister import RemoteDirectoryLister
from drafter.packaging.uploader import ResultUploader
from drafter.transfer.downloader import FileDownloader
from drafter.transfer.pipeline import TransferPipeline


class FakeDropbox:
    def __init__(self) -> None:
        self.folders: dict[str, list[dict]] = {}
        self.files: dict[str, bytes] = {}
        self.uploads: dict[str, bytes] = {}
        self.upload_args: list[dict] = []
        self.page_size: Optional[int] = None

        # Failure injection
        self.token_status = 200
        self.list_unauthorized = 0                 # 401s left for listing calls
        self.list_status: Optional[int] = None     # non-401 listing failure
        self.download_unauthorized: dict[str, int] = {}   # path -> 401s left
        self.download_status: dict[str, int] = {}         # path -> error status
        self.upload_status: Optional[int] = None
        self.revoked_tokens: set[str] = set()            # bearer values answered with 401
        self.html_endpoints: set[str] = set()            # endpoint suffixes answered 200 text/html

        # Call records
        self.token_calls = 0
        self.list_calls = 0
        self.download_calls: list[str] = []
        self.bearer_tokens: list[str] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def add_folder(
        self,
        path: str,
        file_names: list[str],
        subfolders: tuple[str, ...] = (),
    ) -> None:
        entries: list[dict] = []
        for name in file_names:
            file_path = f"{path}/{name}".lower()
            entries.append({
                ".tag": "file",
                "name": name,
                "path_lower": file_path,
                "path_display": f"{path}/{name}",
                "size": len(name),
            })
            self.files[file_path] = f"bytes-of-{name}".encode()
        for name in subfolders:
            entries.append({
                ".tag": "folder",
                "name": name,
                "path_lower": f"{path}/{name}".lower(),
                "path_display": f"{path}/{name}",
            })
        self.folders[path] = entries

    # ------------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/oauth2/token"):
            return self._token()

        bearer = request.headers.get("Authorization", "")
        self.bearer_tokens.append(bearer)
        if bearer.removeprefix("Bearer ") in self.revoked_tokens:
            return httpx.Response(401, json={"error_summary": "expired_access_token/"})
        if any(path.endswith(suffix) for suffix in self.html_endpoints):
            return httpx.Response(200, text="<html>proxy error</html>")

        if path.endswith("/files/list_folder"):
            return self._list(json.loads(request.content))
        if path.endswith("/files/list_folder/continue"):
            return self._list_continue(json.loads(request.content))
        if path.endswith("/files/download"):
            return self._download(json.loads(request.headers["Dropbox-API-Arg"]))
        if path.endswith("/files/upload"):
            return self._upload(json.loads(request.headers["Dropbox-API-Arg"]), request.content)
        return httpx.Response(404, text="unknown endpoint")

    def _token(self) -> httpx.Response:
        self.token_calls += 1
        if self.token_status != 200:
            return httpx.Response(self.token_status, json={"error": "invalid_grant"})
        return httpx.Response(200, json={
            "access_token": f"token-{self.token_calls}",
            "token_type": "bearer",
            "expires_in": 14400,
        })

    def _list(self, body: dict) -> httpx.Response:
        self.list_calls += 1
        if self.list_unauthorized > 0:
            self.list_unauthorized -= 1
            return httpx.Response(401, json={"error_summary": "expired_access_token/"})
        if self.list_status is not None:
            return httpx.Response(self.list_status, text="server error")
        entries = self.folders.get(body["path"])
        if entries is None:
            return httpx.Response(409, json={"error_summary": "path/not_found/"})
        return self._page(body["path"], 0)

    def _list_continue(self, body: dict) -> httpx.Response:
        self.list_calls += 1
        _, folder, offset = body["cursor"].split("|")
        return self._page(folder, int(offset))

    def _page(self, folder: str, offset: int) -> httpx.Response:
        entries = self.folders[folder]
        size = self.page_size or len(entries) or 1
        page = entries[offset:offset + size]
        next_offset = offset + size
        has_more = next_offset < len(entries)
        return httpx.Response(200, json={
            "entries": page,
            "cursor": f"c|{folder}|{next_offset}",
            "has_more": has_more,
        })

    def _download(self, arg: dict) -> httpx.Response:
        path = arg["path"]
        self.download_calls.append(path)
        if self.download_unauthorized.get(path, 0) > 0:
            self.download_unauthorized[path] -= 1
            return httpx.Response(401, json={"error_summary": "expired_access_token/"})
        if path in self.download_status:
            return httpx.Response(self.download_status[path], text="download failed")
        if path not in self.files:
            return httpx.Response(409, json={"error_summary": "path/not_found/"})
        return httpx.Response(200, content=self.files[path])

    def _upload(self, arg: dict, content: bytes) -> httpx.Response:
        self.upload_args.append(arg)
        if self.upload_status is not None:
            return httpx.Response(self.upload_status, text="upload failed")
        self.uploads[arg["path"]] = content
        return httpx.Response(200, json={
            "name": arg["path"].rsplit("/", 1)[-1],
            "path_lower": arg["path"].lower(),
            "size": len(content),
        })


class StubAnalyzer:
    """Analyzer double: returns `text` or raises `error`, recording inputs."""

    def __init__(self, text: str = "A bright two-bedroom flat.", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[list[Path]] = []
        self.seen_existing: list[bool] = []

    async def analyze(self, local_paths: list[Path]) -> str:
        self.calls.append(list(local_paths))
        self.seen_existing.append(all(p.exists() for p in local_paths))
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def fake_dropbox() -> FakeDropbox:
    return FakeDropbox()


@pytest.fixture
def dropbox_client(fake_dropbox: FakeDropbox) -> DropboxClient:
    return DropboxClient(transport=fake_dropbox.transport)


@pytest.fixture
def broker(dropbox_client: DropboxClient) -> CredentialBroker:
    return CredentialBroker(
        dropbox_client,
        refresh_token="refresh-abc",
        client_id="client-id",
        client_secret="client-secret",
    )


@pytest.fixture
def lister(dropbox_client, broker) -> RemoteDirectoryLister:
    return RemoteDirectoryLister(dropbox_client, broker)


@pytest.fixture
def downloader(dropbox_client, broker) -> FileDownloader:
    return FileDownloader(dropbox_client, broker, max_concurrency=2)


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def transfer_pipeline(broker, lister, downloader, workspace_root) -> TransferPipeline:
    return TransferPipeline(broker, lister, downloader, workspace_root=workspace_root)


@pytest.fixture
def uploader(dropbox_client, broker) -> ResultUploader:
    return ResultUploader(dropbox_client, broker, subfolder="Portal Draft")


@pytest.fixture
def stub_analyzer() -> StubAnalyzer:
    return StubAnalyzer()
