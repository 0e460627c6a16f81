"""Result uploader: writes the draft artifact back to the property folder.

The upload flow:
1. Read the artifact bytes from the workspace
2. Refresh the Dropbox credential proactively
3. Upload to {folder}/{subfolder}/{filename} in overwrite mode

A failed upload is reported in the returned UploadResult rather than
raised: the draft text is already produced and the caller still returns it.
"""

import logging
from pathlib import Path

from drafter.dropbox.auth import CredentialBroker
from drafter.dropbox.client import DropboxClient
from drafter.dropbox.errors import DropboxError
from drafter.packaging.types import UploadResult

logger = logging.getLogger(__name__)

DEFAULT_DRAFT_SUBFOLDER = "Portal Draft"


class UploadFailed(Exception):
    """Writing the artifact back to Dropbox failed."""

    def __init__(self, destination: str, reason: str):
        self.destination = destination
        self.reason = reason
        super().__init__(f"Upload to {destination!r} failed: {reason}")


class ResultUploader:
    def __init__(
        self,
        client: DropboxClient,
        broker: CredentialBroker,
        subfolder: str = DEFAULT_DRAFT_SUBFOLDER,
    ):
        self._client = client
        self._broker = broker
        self.subfolder = subfolder.strip("/")

    def destination_for(self, remote_folder: str, filename: str) -> str:
        """Return the Dropbox path the artifact for `remote_folder` is written to."""
        folder = remote_folder.rstrip("/")
        if not folder.startswith("/"):
            folder = "/" + folder
        if self.subfolder:
            return f"{folder}/{self.subfolder}/{filename}"
        return f"{folder}/{filename}"

    async def upload(self, local_file: Path, remote_destination_folder: str) -> UploadResult:
        """Upload `local_file` under `remote_destination_folder`.

        Never raises for upload failures; see UploadResult.error.
        """
        destination = self.destination_for(remote_destination_folder, local_file.name)
        try:
            await self._upload_single(local_file, destination)
        except UploadFailed as exc:
            logger.error("%s", exc)
            return UploadResult(destination=destination, uploaded=False, error=exc.reason)

        logger.info("Uploaded %s to %s", local_file.name, destination)
        return UploadResult(destination=destination, uploaded=True)

    async def _upload_single(self, local_file: Path, destination: str) -> None:
        try:
            content = local_file.read_bytes()
        except OSError as exc:
            raise UploadFailed(destination, f"cannot read {local_file}: {exc}") from exc

        try:
            credential = await self._broker.force_refresh()
            await self._client.upload_file(
                destination,
                content,
                credential.access_token,
                overwrite=True,
            )
        except DropboxError as exc:
            raise UploadFailed(destination, str(exc)) from exc
