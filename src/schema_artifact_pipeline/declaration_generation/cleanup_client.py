"""Text-generation cleanup of draft declarations through the Anthropic Messages API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Protocol

import anthropic

from schema_artifact_pipeline.configuration.loader import ConfigurationError
from schema_artifact_pipeline.configuration.runtime_settings import GenerationSettings

from .generation_models import GenerationError

logger = logging.getLogger(__name__)


class MessagesEndpoint(Protocol):  # pylint: disable=too-few-public-methods
    """Subset of the Messages API used for cleanup."""

    def create(self, **kwargs: Any) -> Any: ...


class MessagesClient(Protocol):  # pylint: disable=too-few-public-methods
    """Protocol implemented by both the real SDK client and test fakes."""

    @property
    def messages(self) -> MessagesEndpoint: ...


def create_message_client(api_key: str) -> MessagesClient:
    """Build the SDK client with automatic retries disabled."""
    return anthropic.Anthropic(api_key=api_key, max_retries=0)


def load_prompt_template(prompt_path: Path) -> str:
    """Read the per-schema instruction template."""
    try:
        return prompt_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read prompt template {prompt_path}: {exc}") from exc


def compose_prompt(template: str, draft: str, placeholder: str) -> str:
    """Substitute the draft declaration into the first placeholder span of the template."""
    if placeholder not in template:
        raise ConfigurationError(f"Prompt template does not contain the {placeholder} placeholder.")
    opening, closing = _split_placeholder(placeholder)
    return template.replace(placeholder, f"{opening}\n{draft}\n{closing}", 1)


def request_cleanup(client: MessagesClient, prompt: str, settings: GenerationSettings) -> str:
    """Submit the composed prompt and return the text of the first text block."""
    try:
        message = client.messages.create(
            model=settings.model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            messages=[
                {
                    "role": "user",
                    "content": [{"type": "text", "text": prompt}],
                }
            ],
            thinking={
                "type": "enabled",
                "budget_tokens": settings.thinking_budget_tokens,
            },
        )
    except anthropic.APIError as exc:
        raise GenerationError(f"Generation request failed: {exc}") from exc

    text = _first_text_block(getattr(message, "content", None) or ())
    logger.debug("Generation response preview: %s", text[:200])
    return text


def _first_text_block(blocks: Any) -> str:
    for block in blocks:
        if getattr(block, "type", None) == "text":
            return getattr(block, "text", "") or ""
    return ""


def _split_placeholder(placeholder: str) -> tuple[str, str]:
    """Split `<tag></tag>` into its opening and closing halves."""
    boundary = placeholder.find("></")
    if boundary == -1:
        return placeholder, ""
    return placeholder[: boundary + 1], placeholder[boundary + 1 :]
