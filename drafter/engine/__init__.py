"""Pipeline engine: the end-to-end draft run and its wiring.

Public API:
    PipelineOrchestrator(pipeline, analyzer, uploader).run(remote_path) -> RunResult
    build_orchestrator(settings) -> PipelineOrchestrator
"""

from drafter.engine.factory import ConfigurationError, build_analyzer, build_orchestrator
from drafter.engine.orchestrator import (
    ANALYSIS_FAILED_TEXT,
    PipelineOrchestrator,
    RunStateMachine,
    validate_transition,
)
from drafter.engine.types import PipelineState, RunResult, RunStatus

__all__ = [
    "ANALYSIS_FAILED_TEXT",
    "PipelineOrchestrator",
    "RunStateMachine",
    "validate_transition",
    "PipelineState",
    "RunResult",
    "RunStatus",
    "ConfigurationError",
    "build_analyzer",
    "build_orchestrator",
]
