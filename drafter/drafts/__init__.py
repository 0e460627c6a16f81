"""Draft request handling: schemas, property tokens, service and router."""

from drafter.drafts.service import DraftService, PipelineTimeout
from drafter.drafts.tokens import (
    FolderPathNotFound,
    InMemoryPropertyTokenStore,
    PropertyToken,
    PropertyTokenStore,
)

__all__ = [
    "DraftService",
    "PipelineTimeout",
    "FolderPathNotFound",
    "InMemoryPropertyTokenStore",
    "PropertyToken",
    "PropertyTokenStore",
]
