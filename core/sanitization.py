"""
Input Sanitization Utilities

Customer-supplied text (names, contact messages, review comments) is shown
in the professional dashboard, so HTML is stripped before it is stored.
"""

import bleach
from typing import Optional
from core.logger import get_logger

logger = get_logger(__name__)

MAX_NAME_LENGTH = 150
MAX_MESSAGE_LENGTH = 2000


def sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """
    Strip HTML tags and control characters from user input.

    Args:
        text: Input text (None passes through)
        max_length: Maximum allowed length (truncates if longer)

    Returns:
        Sanitized text, or None for None / blank input
    """
    if text is None:
        return None

    # Keep newlines and tabs, drop other control characters
    text = ''.join(char for char in text if ord(char) >= 32 or char in '\n\t')

    if max_length and len(text) > max_length:
        text = text[:max_length]
        logger.warning(f"Input truncated to {max_length} characters")

    cleaned = bleach.clean(text.strip(), tags=[], attributes={}, strip=True)
    return cleaned or None


def sanitize_name(name: Optional[str]) -> Optional[str]:
    return sanitize_text(name, max_length=MAX_NAME_LENGTH)


def sanitize_message(message: Optional[str]) -> Optional[str]:
    """Sanitize a contact message or review comment."""
    return sanitize_text(message, max_length=MAX_MESSAGE_LENGTH)
