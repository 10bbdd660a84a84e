"""Validation and sanitization for text typed into the chat composer."""

import logging
import re

from insightguru.config import settings
from insightguru.errors import ValidationError

logger = logging.getLogger(__name__)

# Dangerous invisible/control characters to strip.
_DANGEROUS_CHARS_RE = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f"
    r"\u200b-\u200f\u2028-\u202f\u2060\ufeff]"
)


def validate_question(question: str, max_length: int | None = None) -> str:
    """Validate and sanitize a question before it is sent."""
    limit = max_length or settings.max_question_length
    question = _strip_dangerous_chars(question)
    if not question.strip():
        raise ValidationError("Question cannot be empty")
    if len(question) > limit:
        logger.info("Rejected question of %d characters (limit %d)", len(question), limit)
        raise ValidationError(f"Question too long (max {limit} characters)")
    return question


def sanitize_schema_hint(hint: str | None) -> str:
    """Schema hints come from another page; keep them printable and trimmed."""
    if not hint:
        return ""
    return _strip_dangerous_chars(hint).strip()


def _strip_dangerous_chars(text: str) -> str:
    return _DANGEROUS_CHARS_RE.sub("", text)
