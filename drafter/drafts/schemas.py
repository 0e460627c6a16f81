"""Pydantic schemas for draft endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from drafter.engine.types import RunResult


class DraftRequest(BaseModel):
    """Payload for generating a draft. Give exactly one of path or token."""

    path: Optional[str] = Field(
        default=None,
        description="Dropbox folder holding the property photos.",
    )
    token: Optional[str] = Field(
        default=None,
        description="Property token issued by POST /drafts/tokens.",
    )

    @model_validator(mode="after")
    def exactly_one_source(self) -> "DraftRequest":
        if bool(self.path) == bool(self.token):
            raise ValueError("Provide exactly one of 'path' or 'token'")
        return self


class DraftResponse(BaseModel):
    """Result of one draft run.

    status="completed" with the analysis-failed placeholder in result_text
    is a normal response: transport success does not imply the analysis
    succeeded.
    """

    status: str
    result_text: Optional[str] = None
    files_listed: int
    files_written: int
    uploaded: bool
    remote_destination: Optional[str] = None

    @classmethod
    def from_result(cls, result: RunResult) -> "DraftResponse":
        return cls(
            status=result.status.value,
            result_text=result.result_text,
            files_listed=result.files_listed,
            files_written=result.files_written,
            uploaded=result.uploaded,
            remote_destination=result.remote_destination,
        )


class TokenCreateRequest(BaseModel):
    path: str = Field(min_length=1)


class TokenResponse(BaseModel):
    token: str
    expires_at: datetime
