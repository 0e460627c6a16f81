"""Draft service: the entry point the HTTP layer calls.

Resolves the request to a folder path, binds a run ID for logging, and
bounds the whole orchestrator run with a timeout. On timeout the run task
is cancelled; its cleanup blocks still remove the workspace as the
cancellation unwinds.
"""

import asyncio
import logging
import uuid

from drafter.core.logging import bind_run_id, reset_run_id
from drafter.drafts.schemas import DraftRequest
from drafter.drafts.tokens import PropertyTokenStore
from drafter.engine.orchestrator import PipelineOrchestrator
from drafter.engine.types import RunResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 300.0


class PipelineTimeout(Exception):
    def __init__(self, remote_path: str, timeout: float):
        self.remote_path = remote_path
        self.timeout = timeout
        super().__init__(f"Draft run for {remote_path!r} exceeded {timeout:.0f}s")


class DraftService:
    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        token_store: PropertyTokenStore,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._orchestrator = orchestrator
        self._tokens = token_store
        self.timeout = timeout

    def resolve_path(self, request: DraftRequest) -> str:
        """Return the folder path for the request.

        Raises:
            FolderPathNotFound: If a token was given and maps to nothing.
        """
        if request.path:
            return request.path
        return self._tokens.resolve(request.token)

    async def generate(self, request: DraftRequest) -> RunResult:
        """Run the draft pipeline for the request.

        Raises:
            FolderPathNotFound: If the token does not resolve.
            PipelineTimeout: If the run exceeds the configured timeout.
        """
        remote_path = self.resolve_path(request)
        run_id = uuid.uuid4().hex[:12]
        token = bind_run_id(run_id)
        logger.info("Draft run %s starting for %s", run_id, remote_path)
        try:
            result = await asyncio.wait_for(
                self._orchestrator.run(remote_path),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Draft run %s timed out after %.0fs", run_id, self.timeout)
            raise PipelineTimeout(remote_path, self.timeout)
        finally:
            reset_run_id(token)

        logger.info("Draft run %s finished: %s", run_id, result.status.value)
        return result
