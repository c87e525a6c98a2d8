"""Color normalization to ``(hex, opacity)`` pairs.

Hex and ``rgb()``/``rgba()`` strings are parsed directly.  Every other
syntax (``oklch()``, ``lab()``, ``color(display-p3 ...)``, keywords) is
resolved by the rendering backend's pixel readback when a backend is
available, otherwise by Pillow's ``ImageColor`` for the syntaxes it knows.
Unresolvable or fully transparent colors yield ``hex=None``.
"""

from __future__ import annotations

import logging
import re

from PIL import ImageColor

from slidekit_html.css import split_top_level
from slidekit_html.models import ColorValue
from slidekit_html.protocols import RenderingBackend

logger = logging.getLogger("slidekit_html")

_TRANSPARENT = ColorValue(hex=None, opacity=0.0)
_RGB_RE = re.compile(r"^rgba?\((.*)\)$", re.IGNORECASE)
_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3,8})$")
_GRADIENT_RE = re.compile(r"gradient\((.*)\)")
_DIRECTION_RE = re.compile(r"^(to\s|-?[\d.]+(deg|rad|turn|grad))")
_STOP_POSITION_RE = re.compile(r"\s+(-?[\d.]+(%|px|em|rem|ch|vh|vw)?)$")


def _to_hex(r: int, g: int, b: int) -> str:
    return f"{r:02X}{g:02X}{b:02X}"


def _clamp_channel(value: float) -> int:
    return max(0, min(255, int(round(value))))


def _parse_hex(digits: str) -> ColorValue | None:
    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) not in (6, 8):
        return None
    opacity = 1.0
    if len(digits) == 8:
        opacity = int(digits[6:], 16) / 255
        digits = digits[:6]
    if opacity == 0:
        return _TRANSPARENT
    return ColorValue(hex=digits.upper(), opacity=opacity)


def _parse_rgb(body: str) -> ColorValue | None:
    # Accepts both "r, g, b, a" and "r g b / a" syntaxes.
    tokens = [t for t in re.split(r"[\s,/]+", body.strip()) if t]
    if len(tokens) < 3:
        return None
    try:
        channels = []
        for token in tokens[:3]:
            if token.endswith("%"):
                channels.append(_clamp_channel(float(token[:-1]) * 2.55))
            else:
                channels.append(_clamp_channel(float(token)))
        opacity = 1.0
        if len(tokens) > 3:
            alpha = tokens[3]
            opacity = float(alpha[:-1]) / 100 if alpha.endswith("%") else float(alpha)
    except ValueError:
        return None
    opacity = max(0.0, min(1.0, opacity))
    if opacity == 0:
        return _TRANSPARENT
    return ColorValue(hex=_to_hex(*channels), opacity=opacity)


def _from_pixel(pixel: tuple[int, ...]) -> ColorValue:
    r, g, b = pixel[:3]
    alpha = pixel[3] / 255 if len(pixel) > 3 else 1.0
    if alpha == 0:
        return _TRANSPARENT
    return ColorValue(hex=_to_hex(r, g, b), opacity=alpha)


def parse_color(
    value: str | None, backend: RenderingBackend | None = None
) -> ColorValue:
    """Parse any CSS color string into a :class:`ColorValue`.

    ``hex`` is always six upper-case characters without ``#``; it is None
    for transparent input or when the color cannot be resolved.
    """
    if not value:
        return _TRANSPARENT
    text = value.strip()
    if text.lower() == "transparent" or text == "rgba(0, 0, 0, 0)":
        return _TRANSPARENT

    hex_match = _HEX_RE.match(text)
    if hex_match is not None:
        parsed = _parse_hex(hex_match.group(1))
        if parsed is not None:
            return parsed

    rgb_match = _RGB_RE.match(text)
    if rgb_match is not None:
        parsed = _parse_rgb(rgb_match.group(1))
        if parsed is not None:
            return parsed

    if backend is not None:
        pixel = backend.resolve_color(text)
        if pixel is not None:
            return _from_pixel(pixel)
        return _TRANSPARENT

    try:
        return _from_pixel(ImageColor.getcolor(text, "RGBA"))
    except ValueError:
        logger.debug("slidekit_html | color | unresolved value=%s", text)
        return _TRANSPARENT


def gradient_fallback_color(background_image: str | None) -> str | None:
    """First color stop of a CSS gradient, used for gradient-clipped text."""
    if not background_image or background_image == "none":
        return None
    match = _GRADIENT_RE.search(background_image)
    if match is None:
        return None
    for part in split_top_level(match.group(1)):
        if _DIRECTION_RE.match(part):
            continue
        color_part = _STOP_POSITION_RE.sub("", part)
        if color_part:
            return color_part
    return None


class ColorResolver:
    """Caching color parser bound to one rendering backend."""

    def __init__(self, backend: RenderingBackend | None = None) -> None:
        self._backend = backend
        self._cache: dict[str, ColorValue] = {}

    def resolve(self, value: str | None) -> ColorValue:
        key = value or ""
        cached = self._cache.get(key)
        if cached is None:
            cached = parse_color(value, self._backend)
            self._cache[key] = cached
        return cached

    def hex(self, value: str | None) -> str | None:
        return self.resolve(value).hex
