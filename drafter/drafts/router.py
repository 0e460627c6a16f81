"""Draft endpoints.

POST /drafts: run the pipeline for a folder path or property token
POST /drafts/tokens: issue a property token for a folder path

Runs are long (minutes); hosts must configure request timeouts above
PIPELINE_TIMEOUT_SECONDS.
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status

from drafter.core.config import get_settings
from drafter.drafts.schemas import (
    DraftRequest,
    DraftResponse,
    TokenCreateRequest,
    TokenResponse,
)
from drafter.drafts.service import DraftService, PipelineTimeout
from drafter.drafts.tokens import FolderPathNotFound, InMemoryPropertyTokenStore
from drafter.engine.factory import ConfigurationError, build_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["drafts"])


def get_token_store(request: Request) -> InMemoryPropertyTokenStore:
    store = getattr(request.app.state, "token_store", None)
    if store is None:
        settings = get_settings()
        store = InMemoryPropertyTokenStore(ttl=timedelta(days=settings.token_ttl_days))
        request.app.state.token_store = store
    return store


def get_draft_service(
    request: Request,
    token_store: InMemoryPropertyTokenStore = Depends(get_token_store),
) -> DraftService:
    """Return the process-wide DraftService, building it on first use."""
    service = getattr(request.app.state, "draft_service", None)
    if service is not None:
        return service

    settings = get_settings()
    try:
        orchestrator = build_orchestrator(settings)
    except ConfigurationError as exc:
        logger.error("Draft service unavailable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        )

    service = DraftService(
        orchestrator,
        token_store,
        timeout=settings.pipeline_timeout_seconds,
    )
    request.app.state.draft_service = service
    return service


@router.post("", response_model=DraftResponse)
async def create_draft(
    body: DraftRequest,
    service: DraftService = Depends(get_draft_service),
) -> DraftResponse:
    """Generate a portal draft for a property folder and write it back to Dropbox."""
    try:
        result = await service.generate(body)
    except FolderPathNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except PipelineTimeout as exc:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc))

    if result.transfer_failed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.error or "Failed to fetch files from Dropbox",
        )

    return DraftResponse.from_result(result)


@router.post(
    "/tokens",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_token(
    body: TokenCreateRequest,
    token_store: InMemoryPropertyTokenStore = Depends(get_token_store),
) -> TokenResponse:
    """Issue a property token that resolves to `path`."""
    record = token_store.issue(body.path)
    return TokenResponse(token=record.token, expires_at=record.expires_at)
