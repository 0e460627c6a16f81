"""Wires settings into a ready PipelineOrchestrator.

The DropboxClient and CredentialBroker built here are meant to live for the
whole process: every run shares the one cached credential.
"""

import logging
from pathlib import Path
from typing import Optional

import httpx

from drafter.core.config import Settings
from drafter.dropbox.auth import CredentialBroker
from drafter.dropbox.client import DropboxClient
from drafter.dropbox.lister import RemoteDirectoryLister
from drafter.engine.orchestrator import EventCallback, PipelineOrchestrator
from drafter.llm.openai_analyzer import AnalyzerConfig, OpenAIAnalyzer
from drafter.llm.provider import Analyzer
from drafter.packaging.uploader import ResultUploader
from drafter.transfer.downloader import FileDownloader
from drafter.transfer.pipeline import TransferPipeline

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """A required setting is missing; not retryable."""


def build_analyzer(settings: Settings) -> OpenAIAnalyzer:
    if not settings.openai_api_key:
        raise ConfigurationError(
            "OpenAI API key not configured. Set OPENAI_API_KEY."
        )
    return OpenAIAnalyzer(AnalyzerConfig(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        max_completion_tokens=settings.openai_max_completion_tokens,
    ))


def build_orchestrator(
    settings: Settings,
    analyzer: Optional[Analyzer] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    on_event: Optional[EventCallback] = None,
) -> PipelineOrchestrator:
    """Build the full object graph for draft runs.

    Args:
        settings: Loaded application settings.
        analyzer: Overrides the OpenAI analyzer (tests, alternative backends).
        transport: httpx transport for every Dropbox call (tests).
        on_event: Optional progress callback, see PipelineOrchestrator.

    Raises:
        ConfigurationError: If no analyzer is given and OPENAI_API_KEY is blank.
    """
    if analyzer is None:
        analyzer = build_analyzer(settings)

    client = DropboxClient.from_settings(settings, transport=transport)
    broker = CredentialBroker.from_settings(client, settings)

    pipeline = TransferPipeline(
        broker=broker,
        lister=RemoteDirectoryLister(client, broker),
        downloader=FileDownloader(client, broker, settings.download_concurrency),
        workspace_root=Path(settings.workspace_root) if settings.workspace_root else None,
    )
    uploader = ResultUploader(client, broker, subfolder=settings.draft_subfolder)

    missing = settings.missing_secrets()
    if missing:
        logger.warning("Missing secrets (runs will fail on first use): %s", ", ".join(missing))

    return PipelineOrchestrator(
        pipeline=pipeline,
        analyzer=analyzer,
        uploader=uploader,
        draft_filename=settings.draft_filename,
        on_event=on_event,
    )
