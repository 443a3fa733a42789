"""Delimited result extraction from generation responses."""

from __future__ import annotations

import re

from .generation_models import GenerationError

RESULT_PATTERN = re.compile(r"<result>(.*?)</result>", re.DOTALL)


def extract_result(response_text: str) -> str:
    """Return the stripped content of the first `<result>` span.

    A response without the span is a failed generation; the undelimited text is
    never used as a fallback.
    """
    match = RESULT_PATTERN.search(response_text)
    if match is None:
        raise GenerationError("No <result> tag found in the generation response.")
    return match.group(1).strip()
