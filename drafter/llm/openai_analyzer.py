"""OpenAI vision analyzer.

Sends every image in the workspace to one chat-completions call as base64
data URLs, after the property description prompt. Files that are not images
the API accepts are left out; if none remain the call is not made.

Reasoning models (gpt-5, o-series) reject `max_tokens`, so the completion
cap is always sent as `max_completion_tokens`.
"""

import base64
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path

import openai

from drafter.llm.prompts import EMPTY_DESCRIPTION_TEXT, PROPERTY_DESCRIPTION_PROMPT
from drafter.llm.provider import AnalysisFailed

logger = logging.getLogger(__name__)

# MIME types accepted by the vision endpoint
SUPPORTED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


@dataclass
class AnalyzerConfig:
    """Per-process analyzer configuration.

    api_key is read from settings at startup; never logged.
    """

    api_key: str
    model: str = "gpt-5"
    max_completion_tokens: int = 1000
    prompt: str = PROPERTY_DESCRIPTION_PROMPT


class OpenAIAnalyzer:
    """Analyzer backed by the openai SDK (>=1.0)."""

    provider = "openai"

    def __init__(self, config: AnalyzerConfig):
        self.config = config

    async def analyze(self, local_paths: list[Path]) -> str:
        """Return a portal-ready property description for the given images."""
        images = [p for p in local_paths if image_mime_type(p)]
        if not images:
            raise AnalysisFailed(self.provider, "No supported images to analyze")

        if len(images) < len(local_paths):
            logger.info(
                "Ignoring %d non-image files", len(local_paths) - len(images)
            )

        try:
            content = [{"type": "text", "text": self.config.prompt}]
            content.extend(_image_part(p) for p in images)
        except OSError as exc:
            raise AnalysisFailed(self.provider, f"Cannot read image: {exc}", cause=exc)

        client = openai.AsyncOpenAI(api_key=self.config.api_key)

        try:
            response = await client.chat.completions.create(
                model=self.config.model,
                messages=[{"role": "user", "content": content}],
                max_completion_tokens=self.config.max_completion_tokens,
            )
        except openai.AuthenticationError as exc:
            raise AnalysisFailed(self.provider, f"Auth failed: {exc}", cause=exc)
        except openai.RateLimitError as exc:
            raise AnalysisFailed(self.provider, f"Rate limit: {exc}", cause=exc)
        except openai.APIError as exc:
            raise AnalysisFailed(self.provider, f"API error: {exc}", cause=exc)

        if not response.choices:
            return EMPTY_DESCRIPTION_TEXT

        text = response.choices[0].message.content or ""
        usage = response.usage
        logger.info(
            "Analyzed %d images with %s (prompt_tokens=%s completion_tokens=%s)",
            len(images),
            self.config.model,
            usage.prompt_tokens if usage else 0,
            usage.completion_tokens if usage else 0,
        )
        return text.strip() or EMPTY_DESCRIPTION_TEXT


def image_mime_type(path: Path) -> str:
    """Return the MIME type for `path` if the vision API accepts it, else ""."""
    mime, _ = mimetypes.guess_type(path.name)
    return mime if mime in SUPPORTED_IMAGE_TYPES else ""


def _image_part(path: Path) -> dict:
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return {
        "type": "image_url",
        "image_url": {"url": f"data:{image_mime_type(path)};base64,{encoded}"},
    }
