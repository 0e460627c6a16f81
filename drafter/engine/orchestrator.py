"""Pipeline orchestrator: one draft request, end to end.

State machine:
    idle -> listing -> downloading -> analyzing -> uploading -> cleaning_up -> done
    listing -> done                      (folder has no files)
    downloading -> cleaning_up           (files listed, none downloaded)
    listing | downloading | analyzing | uploading -> errored
    errored -> done                      (before a workspace exists)
    errored -> cleaning_up               (after)

Once the transfer pipeline hands over its workspace, the rest of the run
sits inside a single workspace_scope(), so cleaning_up is reached exactly
once whichever way the analyze/upload span exits.

Failure policy:
  - Credential and listing failures end the run with status=failed.
  - An analyzer failure is replaced by ANALYSIS_FAILED_TEXT and the run
    continues to write-back and cleanup.
  - An upload failure is recorded on the result; the text is still returned.
"""

import logging
from typing import Callable, Optional

from drafter.engine.types import PipelineState, RunResult, RunStatus
from drafter.llm.provider import AnalysisFailed, Analyzer
from drafter.packaging.artifact import DEFAULT_ARTIFACT_FILENAME, write_artifact
from drafter.packaging.uploader import ResultUploader
from drafter.sandbox.workspace import WorkspaceError, workspace_scope
from drafter.transfer.pipeline import NoFilesFound, TransferPipeline
from drafter.transfer.types import TransferManifest

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_TEXT = "Failed to analyze images"

EventCallback = Callable[[str, str, dict], None]

_S = PipelineState

VALID_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    _S.IDLE: {_S.LISTING},
    _S.LISTING: {_S.DOWNLOADING, _S.ERRORED, _S.DONE},
    _S.DOWNLOADING: {_S.ANALYZING, _S.CLEANING_UP, _S.ERRORED},
    _S.ANALYZING: {_S.UPLOADING, _S.CLEANING_UP, _S.ERRORED},
    _S.UPLOADING: {_S.CLEANING_UP, _S.ERRORED},
    _S.ERRORED: {_S.CLEANING_UP, _S.DONE},
    _S.CLEANING_UP: {_S.DONE},
}


def validate_transition(current: PipelineState, target: PipelineState) -> None:
    """Enforce the run state machine.

    Raises ValueError if the transition is not allowed.
    """
    allowed = VALID_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise ValueError(
            f"Invalid pipeline state transition: {current.value} -> {target.value}. "
            f"Allowed transitions from '{current.value}': "
            f"{sorted(s.value for s in allowed) or 'none (terminal state)'}"
        )


class RunStateMachine:
    """Tracks one run's state and the path it took."""

    def __init__(self) -> None:
        self.state = PipelineState.IDLE
        self.history: list[PipelineState] = [PipelineState.IDLE]

    def advance(self, target: PipelineState) -> None:
        validate_transition(self.state, target)
        logger.debug("Pipeline state: %s -> %s", self.state.value, target.value)
        self.state = target
        self.history.append(target)


class PipelineOrchestrator:
    def __init__(
        self,
        pipeline: TransferPipeline,
        analyzer: Analyzer,
        uploader: ResultUploader,
        draft_filename: str = DEFAULT_ARTIFACT_FILENAME,
        on_event: Optional[EventCallback] = None,
    ):
        self._pipeline = pipeline
        self._analyzer = analyzer
        self._uploader = uploader
        self._draft_filename = draft_filename
        self._on_event = on_event

    def _emit(self, event_type: str, phase: str, data: dict) -> None:
        if self._on_event:
            try:
                self._on_event(event_type, phase, data)
            except Exception:
                logger.debug("on_event callback failed for %s", event_type, exc_info=True)

    async def run(self, remote_path: str) -> RunResult:
        """Run transfer → analyze → upload → cleanup for one property folder.

        Returns a RunResult for every outcome the pipeline knows about;
        only cancellation propagates.
        """
        machine = RunStateMachine()
        result = RunResult(remote_path=remote_path, states=machine.history)

        self._emit("run.started", "run", {"remote_path": remote_path})
        machine.advance(PipelineState.LISTING)

        def _on_transfer_event(event_type: str, phase: str, data: dict) -> None:
            if event_type == "transfer.listed":
                machine.advance(PipelineState.DOWNLOADING)
            self._emit(event_type, phase, data)

        try:
            manifest = await self._pipeline.run(remote_path, on_event=_on_transfer_event)
        except NoFilesFound as exc:
            logger.info("%s", exc)
            machine.advance(PipelineState.DONE)
            result.status = RunStatus.NO_FILES
            self._emit("run.completed", "run", result.to_dict())
            return result
        except Exception as exc:
            logger.error(
                "Transfer failed for %s (%s): %s",
                remote_path, type(exc).__name__, exc,
            )
            machine.advance(PipelineState.ERRORED)
            machine.advance(PipelineState.DONE)
            result.status = RunStatus.FAILED
            result.error = str(exc)
            self._emit("run.failed", "run", {"error": str(exc)[:500]})
            return result

        result.files_listed = manifest.count
        result.files_written = manifest.written_count

        with workspace_scope(manifest.workspace):
            try:
                if manifest.written_count == 0:
                    logger.warning(
                        "None of the %d listed files under %s could be downloaded",
                        manifest.count, remote_path,
                    )
                    result.status = RunStatus.NOTHING_TRANSFERRED
                else:
                    await self._analyze_and_upload(manifest, machine, result)
                    result.status = RunStatus.COMPLETED
            except Exception as exc:
                logger.error(
                    "Run for %s failed after transfer (%s): %s",
                    remote_path, type(exc).__name__, exc,
                    exc_info=True,
                )
                machine.advance(PipelineState.ERRORED)
                result.status = RunStatus.FAILED
                result.error = str(exc)
            finally:
                machine.advance(PipelineState.CLEANING_UP)

        machine.advance(PipelineState.DONE)
        self._emit("run.completed", "run", result.to_dict())
        return result

    async def _analyze_and_upload(
        self,
        manifest: TransferManifest,
        machine: RunStateMachine,
        result: RunResult,
    ) -> None:
        machine.advance(PipelineState.ANALYZING)
        result.result_text = await self._analyze(manifest, result)
        self._emit("analysis.completed", "analyzing", {
            "images": manifest.written_count,
            "failed": result.analysis_error is not None,
        })

        machine.advance(PipelineState.UPLOADING)
        try:
            artifact = write_artifact(
                manifest.workspace, result.result_text, self._draft_filename
            )
        except WorkspaceError as exc:
            logger.error("Could not write draft artifact: %s", exc)
            result.upload_error = str(exc)
            return

        upload = await self._uploader.upload(artifact.path, result.remote_path)
        result.uploaded = upload.uploaded
        result.remote_destination = upload.destination
        result.upload_error = upload.error
        self._emit("upload.completed", "uploading", upload.to_dict())

    async def _analyze(self, manifest: TransferManifest, result: RunResult) -> str:
        try:
            return await self._analyzer.analyze(manifest.local_paths)
        except AnalysisFailed as exc:
            logger.error("Analysis failed for %s: %s", result.remote_path, exc)
            result.analysis_error = str(exc)
        except Exception as exc:
            logger.error(
                "Analyzer raised unexpectedly for %s: %s",
                result.remote_path, exc,
                exc_info=True,
            )
            result.analysis_error = str(exc)
        return ANALYSIS_FAILED_TEXT
