"""
Input sanitization for free text that ends up in the shared sheet, the feed and the map.
"""

import html
import logging
import re
from typing import Optional

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')


def sanitize_string(input_str: str, max_length: Optional[int] = None) -> str:
    """
    Strips whitespace, HTML-escapes, drops control characters (tab, newline and
    carriage return are kept) and truncates to max_length when given.
    """
    if not isinstance(input_str, str):
        if input_str is None:
            return ""
        return str(input_str)

    sanitized = html.escape(input_str.strip())
    sanitized = _CONTROL_CHARS.sub('', sanitized)

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]
        logging.warning(f"Input truncated from {len(input_str)} to {max_length} characters")

    return sanitized


def sanitize_school_id(school_id: str) -> str:
    """School ids look like SM-2024-889 or ADMIN-01: uppercase letters, digits and hyphens."""
    if not school_id:
        return ""
    cleaned = re.sub(r'[^A-Z0-9-]', '', school_id.strip().upper())
    if cleaned != school_id.strip().upper():
        logging.warning(f"School id contained unsupported characters: {school_id!r}")
    return cleaned[:64]


def sanitize_display_name(name: str) -> str:
    return sanitize_string(name, max_length=80)


def sanitize_filename(filename: Optional[str]) -> Optional[str]:
    if not filename:
        return None
    name = filename.replace('\\', '/').rsplit('/', 1)[-1]
    name = re.sub(r'[^\w.\- ]', '', name).strip()
    return name[:100] or None
