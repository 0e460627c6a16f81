"""Analyzer protocol.

The orchestrator only sees this interface. Any implementation (OpenAI
vision, a local model, a stub in tests) turns a set of local files into
descriptive text.
"""

from pathlib import Path
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Analyzer(Protocol):
    async def analyze(self, local_paths: list[Path]) -> str:
        """Describe the given local files.

        Raises:
            AnalysisFailed: On API failure, auth error, or unusable input.
        """
        ...  # noqa: PLR6301


class AnalysisFailed(Exception):
    """Raised by analyzer implementations when no description could be produced.

    Carries the provider name and original error for upstream logging.
    """

    def __init__(self, provider: str, message: str, cause: Optional[Exception] = None):
        self.provider = provider
        self.cause = cause
        super().__init__(f"[{provider}] {message}")
