"""Shared formatting utilities for the DonutSMP bot.

Provides number grouping, duration reduction, identifier prettification and
the body-length cap used by every normalizer and by the presentation layer.
"""

import html
import re
from typing import Any, Final

# Hard cap for a message body and the length it is cut back to
MAX_BODY_LENGTH: Final[int] = 4000
TRUNCATED_BODY_LENGTH: Final[int] = 3950
DEFAULT_TRUNCATION_MARKER: Final[str] = "\n\n<i>... and more entries</i>"

_TRACKED_TAGS: Final[tuple[str, ...]] = ("b", "i", "u", "s", "code", "pre")
_TAG_RE = re.compile(r"<(/?)([a-z]+)(?:\s[^<>]*)?>")
_PARTIAL_TAG_RE = re.compile(r"<[^<>]*$")
_PARTIAL_ENTITY_RE = re.compile(r"&[#a-zA-Z0-9]*$")


def escape_html(text: Any) -> str:
    """Escape HTML special characters for Telegram's HTML parse mode.

    Args:
        text: The value to escape, or None.

    Returns:
        Text with HTML special characters escaped, or empty string if None.
    """
    if text is None:
        return ""
    return (
        str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    )


def strip_html(text: str) -> str:
    """Turn Telegram HTML into plain text for a document attachment."""
    return html.unescape(_TAG_RE.sub("", text))


def format_number(number: int) -> str:
    """Group an integer in triples from the right using a literal '.'.

    Args:
        number: The integer to format. Negative values keep their sign and
            only the magnitude is grouped.

    Returns:
        Grouped digit string (e.g., 1234567 -> "1.234.567").
    """
    sign = "-" if number < 0 else ""
    return sign + f"{abs(number):,}".replace(",", ".")


def parse_int(value: Any) -> int | None:
    """Read an integer from a JSON value that may be a number or a string.

    Args:
        value: JSON value (int, integral float, numeric string, or anything else).

    Returns:
        The integer, or None when the value is not integral.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def format_duration_minutes(minutes: int) -> str:
    """Format a duration given in minutes.

    Args:
        minutes: Total minutes.

    Returns:
        "{d}d {h}h", "{h}h {m}m" or "{m}m" depending on the leading unit.
    """
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"


def format_duration_ms(milliseconds: int) -> str:
    """Format a duration given in milliseconds.

    Args:
        milliseconds: Total milliseconds.

    Returns:
        "{d}d {h}h", "{h}h {m}m", "{m}m {s}s" or "{s}s" depending on the
        leading unit.
    """
    seconds = milliseconds // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def prettify_identifier(identifier: str, *, spaces: bool = False) -> str:
    """Make a namespaced identifier readable.

    Args:
        identifier: Identifier such as "minecraft:diamond_sword".
        spaces: Replace underscores even when there is no namespace.

    Returns:
        The identifier without its namespace and with underscores as spaces
        (e.g., "minecraft:diamond_sword" -> "diamond sword").
    """
    if ":" in identifier:
        return identifier.split(":", 1)[1].replace("_", " ")
    if spaces:
        return identifier.replace("_", " ")
    return identifier


def _repair_html(text: str) -> str:
    """Drop a dangling tag or entity and close tags left open by a cut."""
    text = _PARTIAL_TAG_RE.sub("", text)
    text = _PARTIAL_ENTITY_RE.sub("", text)

    open_tags: list[str] = []
    for match in _TAG_RE.finditer(text):
        closing, name = match.group(1), match.group(2)
        if name not in _TRACKED_TAGS:
            continue
        if not closing:
            open_tags.append(name)
        elif open_tags and open_tags[-1] == name:
            open_tags.pop()

    return text + "".join(f"</{name}>" for name in reversed(open_tags))


def cap_body(text: str, marker: str = DEFAULT_TRUNCATION_MARKER) -> str:
    """Enforce the body-length cap on fully assembled body text.

    Bodies longer than MAX_BODY_LENGTH are cut to TRUNCATED_BODY_LENGTH and
    the marker is appended. Markup broken by the cut is repaired.

    Args:
        text: Assembled body (Telegram HTML).
        marker: Text appended after a cut.

    Returns:
        The body, unchanged when within the cap.
    """
    if len(text) <= MAX_BODY_LENGTH:
        return text
    return _repair_html(text[:TRUNCATED_BODY_LENGTH]) + marker
