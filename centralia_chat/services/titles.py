"""Auto-generated session titles."""

from __future__ import annotations

import re

TITLE_MAX_LENGTH = 50
ELLIPSIS = "..."
# Word-boundary cuts that would leave fewer characters than this fall back to a hard cut.
MIN_WORD_CUT = 20

_WHITESPACE = re.compile(r"\s+")


def generate_title(text: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """Derive a session title from the first message.

    Whitespace is collapsed; text longer than ``max_length`` is cut at the last
    word boundary that fits and suffixed with ``...``.
    """
    cleaned = _WHITESPACE.sub(" ", text).strip()
    if len(cleaned) <= max_length:
        return cleaned

    truncated = cleaned[: max_length - len(ELLIPSIS)]
    last_space = truncated.rfind(" ")
    if last_space > MIN_WORD_CUT:
        return truncated[:last_space] + ELLIPSIS
    return truncated + ELLIPSIS
