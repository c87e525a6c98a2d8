"""Low-level parsing helpers for computed CSS strings.

Computed values arrive as strings (``"12.5px"``, ``"matrix(1, 0, 0, 1, 0,
0)"``).  These helpers never raise on malformed input; they return the
supplied default so an unparseable value behaves as if it were absent.
"""

from __future__ import annotations

import logging
import math
import re

logger = logging.getLogger("slidekit_html")

_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_MATRIX_RE = re.compile(r"^matrix(?:3d)?\((.*)\)$")
_WHITESPACE_RUN_RE = re.compile(r"[\n\r\t]+")
_MULTI_SPACE_RE = re.compile(r"\s{2,}")


def parse_px(value: str | None, default: float = 0.0) -> float:
    """Parse the leading number of a CSS length, like ``parseFloat``."""
    if not value:
        return default
    match = _NUMBER_RE.match(value)
    if match is None:
        return default
    number = float(match.group(1))
    if math.isnan(number):
        return default
    return number


def parse_int(value: str | None, default: int | None = None) -> int | None:
    if not value:
        return default
    match = _NUMBER_RE.match(value)
    if match is None:
        return default
    return int(float(match.group(1)))


def parse_opacity(value: str | None) -> float:
    return parse_px(value, default=1.0)


def split_top_level(value: str, separator: str = ",") -> list[str]:
    """Split *value* on *separator* outside of any parentheses."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    for ch in value:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def strip_quotes(value: str) -> str:
    return value.strip().strip("'\"")


def first_font_family(font_family: str) -> str:
    """First family of a font stack with quotes removed."""
    return font_family.split(",")[0].replace('"', "").replace("'", "").strip()


def rotation_degrees(transform: str | None) -> float:
    """Rotation encoded in a computed ``matrix(a, b, c, d, e, f)`` transform."""
    if not transform or transform == "none":
        return 0.0
    match = _MATRIX_RE.match(transform.strip())
    if match is None:
        logger.debug("slidekit_html | css | unparseable transform=%s", transform)
        return 0.0
    values = [v.strip() for v in match.group(1).split(",")]
    if len(values) < 4:
        return 0.0
    a = parse_px(values[0])
    b = parse_px(values[1])
    return float(round(math.degrees(math.atan2(b, a))))


def pseudo_content(content: str | None) -> str | None:
    """Text generated by a ``::before``/``::after`` rule, or None."""
    if not content or content in ("none", "normal", '""', "''"):
        return None
    return re.sub(r"^['\"]|['\"]$", "", content)


def collapse_whitespace(text: str) -> str:
    """Collapse tabs and newlines to spaces and runs of spaces to one."""
    return _MULTI_SPACE_RE.sub(" ", _WHITESPACE_RUN_RE.sub(" ", text))


def apply_text_transform(text: str, transform: str) -> str:
    if transform == "uppercase":
        return text.upper()
    if transform == "lowercase":
        return text.lower()
    if transform == "capitalize":
        return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)
    return text
