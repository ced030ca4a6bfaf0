"""
Cleanup for free-text profile and feedback fields before prompt interpolation.

Athletes type equipment, dislikes and session notes by hand. Those strings
are flattened onto one line and capped so they cannot break out of the
prompt section they are placed in.
"""

import re
from typing import Optional

from core.constants import MAX_PROFILE_TEXT_LENGTH

_CONTROL_CHARS = re.compile(r"[\n\r\t\x00-\x1f\x7f-\x9f]")
_SPACE_RUNS = re.compile(r" +")


def sanitize_user_input(value: str, max_length: int = MAX_PROFILE_TEXT_LENGTH) -> str:
    """
    Flatten a free-text field to a single capped line.

    Control characters (newlines included) become spaces, runs of spaces
    collapse, and the result is stripped and truncated.

    Args:
        value: Text as entered by the athlete
        max_length: Character cap applied after cleanup

    Returns:
        The cleaned text, possibly empty
    """
    flattened = _SPACE_RUNS.sub(" ", _CONTROL_CHARS.sub(" ", value)).strip()
    return flattened[:max_length]


def sanitize_optional(
    value: Optional[str],
    default: str,
    max_length: int = MAX_PROFILE_TEXT_LENGTH,
) -> str:
    """Sanitize an optional profile field, substituting ``default`` when blank."""
    if not value:
        return default
    return sanitize_user_input(value, max_length=max_length) or default
