"""Vector fallback synthesis.

Generates self-contained SVG documents, returned as base64 ``data:`` URIs,
for effects preset shapes cannot express: non-uniform corner radii,
per-side borders, linear gradients and Gaussian blur.  Also prepares SVG
markup serialized from vector-graphic nodes for embedding.

All generators are pure: identical arguments yield byte-identical output.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import math
import re
import xml.etree.ElementTree as ET

from slidekit_html.css import split_top_level
from slidekit_html.models import BorderSide
from slidekit_html.style import legalize_radii

logger = logging.getLogger("slidekit_html")

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)

_LINEAR_GRADIENT_RE = re.compile(r"linear-gradient\((.*)\)")
_ANGLE_RE = re.compile(r"^(-?[\d.]+)(deg|rad|turn|grad)$")
_STOP_RE = re.compile(r"^(.*?)\s+(-?[\d.]+(?:%|px)?)$")
_RGBA_RE = re.compile(r"rgba\(([^)]*)\)")

# (x1, y1, x2, y2) per ``to <side-or-corner>`` keyword.
_DIRECTIONS = {
    "top": ("0%", "100%", "0%", "0%"),
    "bottom": ("0%", "0%", "0%", "100%"),
    "left": ("100%", "0%", "0%", "0%"),
    "right": ("0%", "0%", "100%", "0%"),
    "top right": ("0%", "100%", "100%", "0%"),
    "top left": ("100%", "100%", "0%", "0%"),
    "bottom right": ("0%", "0%", "100%", "100%"),
    "bottom left": ("100%", "0%", "0%", "100%"),
}

_ANGLE_TO_DEGREES = {
    "deg": 1.0,
    "rad": 180.0 / math.pi,
    "turn": 360.0,
    "grad": 0.9,
}


def _fmt(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def to_data_uri(svg: str) -> str:
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def _document(width: float, height: float, body: str) -> str:
    return (
        f'<svg xmlns="{SVG_NS}" width="{_fmt(width)}" height="{_fmt(height)}" '
        f'viewBox="0 0 {_fmt(width)} {_fmt(height)}">{body}</svg>'
    )


# ---------------------------------------------------------------------------
# Non-uniform rounded rectangle
# ---------------------------------------------------------------------------


def custom_shape_svg(
    width: float,
    height: float,
    color: str,
    opacity: float,
    radii: tuple[float, float, float, float],
) -> str:
    """Solid fill with per-corner radii ``(tl, tr, br, bl)`` as an arc path."""
    tl, tr, br, bl = legalize_radii(width, height, *radii)
    w, h = width, height
    path = (
        f"M {_fmt(tl)} 0 L {_fmt(w - tr)} 0 "
        f"A {_fmt(tr)} {_fmt(tr)} 0 0 1 {_fmt(w)} {_fmt(tr)} "
        f"L {_fmt(w)} {_fmt(h - br)} "
        f"A {_fmt(br)} {_fmt(br)} 0 0 1 {_fmt(w - br)} {_fmt(h)} "
        f"L {_fmt(bl)} {_fmt(h)} "
        f"A {_fmt(bl)} {_fmt(bl)} 0 0 1 0 {_fmt(h - bl)} "
        f"L 0 {_fmt(tl)} "
        f"A {_fmt(tl)} {_fmt(tl)} 0 0 1 {_fmt(tl)} 0 Z"
    )
    body = f'<path d="{path}" fill="#{color}" fill-opacity="{_fmt(opacity)}"/>'
    return to_data_uri(_document(width, height, body))


# ---------------------------------------------------------------------------
# Composite border
# ---------------------------------------------------------------------------


def composite_border_svg(
    width: float,
    height: float,
    radius: float,
    sides: dict[str, BorderSide],
) -> str | None:
    """Four per-side rectangles clipped to the element's rounded box.

    Side colors are resolved hex strings.  The clip radius is half the
    element radius so the bars sit inside the rounded corner.
    """
    w, h = width, height
    clip_radius = radius / 2
    rects: list[str] = []

    def bar(side: str, x: float, y: float, bw: float, bh: float) -> None:
        info = sides.get(side)
        if info is None or info.width <= 0 or not info.color:
            return
        rects.append(
            f'<rect x="{_fmt(x)}" y="{_fmt(y)}" width="{_fmt(bw)}" '
            f'height="{_fmt(bh)}" fill="#{info.color}"/>'
        )

    top = sides.get("top", BorderSide()).width
    right = sides.get("right", BorderSide()).width
    bottom = sides.get("bottom", BorderSide()).width
    left = sides.get("left", BorderSide()).width
    bar("top", 0, 0, w, top)
    bar("right", w - right, 0, right, h)
    bar("bottom", 0, h - bottom, w, bottom)
    bar("left", 0, 0, left, h)
    if not rects:
        return None

    content = "".join(rects)
    clip_id = "clip_" + hashlib.sha1(
        f"{_fmt(w)}x{_fmt(h)}r{_fmt(clip_radius)}{content}".encode("utf-8")
    ).hexdigest()[:9]
    body = (
        f'<defs><clipPath id="{clip_id}"><rect x="0" y="0" width="{_fmt(w)}" '
        f'height="{_fmt(h)}" rx="{_fmt(clip_radius)}" ry="{_fmt(clip_radius)}"/>'
        f"</clipPath></defs>"
        f'<g clip-path="url(#{clip_id})">{content}</g>'
    )
    return to_data_uri(_document(width, height, body))


# ---------------------------------------------------------------------------
# Linear gradient
# ---------------------------------------------------------------------------


def gradient_vector(direction: str) -> tuple[str, str, str, str] | None:
    """Map a gradient direction to SVG ``(x1, y1, x2, y2)`` percentages.

    Returns None when *direction* is not a direction but the first stop.
    """
    first = direction.strip().lower()
    if first.startswith("to "):
        words = first[3:].split()
        # "right top" and "top right" name the same corner.
        words.sort(key=lambda word: 0 if word in ("top", "bottom") else 1)
        return _DIRECTIONS.get(" ".join(words), _DIRECTIONS["bottom"])

    match = _ANGLE_RE.match(first)
    if match is None:
        return None
    degrees = float(match.group(1)) * _ANGLE_TO_DEGREES[match.group(2)]
    # 0deg points up, 90deg points right.
    rad = math.radians(degrees)
    sin = math.sin(rad) * 50
    cos = math.cos(rad) * 50
    return (
        f"{50 - sin:.1f}%",
        f"{50 + cos:.1f}%",
        f"{50 + sin:.1f}%",
        f"{50 - cos:.1f}%",
    )


def _gradient_stop(part: str, index: int, count: int) -> str:
    color = part
    offset = f"{round(index / (count - 1) * 100)}%" if count > 1 else "0%"
    position = _STOP_RE.match(part)
    if position is not None:
        color, offset = position.group(1), position.group(2)

    opacity = "1"
    rgba = _RGBA_RE.search(color)
    if rgba is not None:
        channels = [c for c in re.split(r"[\s,/]+", rgba.group(1).strip()) if c]
        if len(channels) >= 4:
            opacity = channels[3]
            color = f"rgb({channels[0]},{channels[1]},{channels[2]})"
    return (
        f'<stop offset="{offset}" stop-color="{color.strip()}" '
        f'stop-opacity="{opacity}"/>'
    )


def gradient_svg(
    width: float,
    height: float,
    background_image: str,
    radius: float = 0.0,
    border: tuple[str, float] | None = None,
) -> str | None:
    """Render a CSS ``linear-gradient()`` as an SVG rounded rectangle.

    *border* is an optional ``(hex_color, width_px)`` stroke.  Returns None
    for anything that is not a parseable linear gradient.
    """
    match = _LINEAR_GRADIENT_RE.search(background_image or "")
    if match is None:
        return None
    parts = split_top_level(match.group(1))
    if len(parts) < 2:
        return None

    x1, y1, x2, y2 = _DIRECTIONS["bottom"]
    stops = parts
    vector = gradient_vector(parts[0])
    if vector is not None:
        x1, y1, x2, y2 = vector
        stops = parts[1:]
    if not stops:
        logger.debug(
            "slidekit_html | svg | gradient without stops=%s", background_image
        )
        return None

    stops_xml = "".join(
        _gradient_stop(part, index, len(stops)) for index, part in enumerate(stops)
    )
    stroke = ""
    if border is not None:
        stroke = f' stroke="#{border[0]}" stroke-width="{_fmt(border[1])}"'
    body = (
        f'<defs><linearGradient id="grad" x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}">'
        f"{stops_xml}</linearGradient></defs>"
        f'<rect x="0" y="0" width="{_fmt(width)}" height="{_fmt(height)}" '
        f'rx="{_fmt(radius)}" ry="{_fmt(radius)}" fill="url(#grad)"{stroke}/>'
    )
    return to_data_uri(_document(width, height, body))


# ---------------------------------------------------------------------------
# Gaussian blur
# ---------------------------------------------------------------------------


def blurred_svg(
    width: float,
    height: float,
    color: str,
    radius: float,
    blur: float,
) -> tuple[str, float]:
    """Blurred solid shape; returns ``(data_uri, padding_px)``.

    The canvas grows by three blur radii on every side so the blur is not
    clipped.  Near-square shapes rounded to at least half their size are
    drawn as ellipses.
    """
    padding = blur * 3
    full_w = width + padding * 2
    full_h = height + padding * 2
    is_circle = radius >= min(width, height) / 2 - 1 and abs(width - height) < 2

    if is_circle:
        shape = (
            f'<ellipse cx="{_fmt(padding + width / 2)}" cy="{_fmt(padding + height / 2)}" '
            f'rx="{_fmt(width / 2)}" ry="{_fmt(height / 2)}" fill="#{color}" '
            f'filter="url(#f1)"/>'
        )
    else:
        shape = (
            f'<rect x="{_fmt(padding)}" y="{_fmt(padding)}" width="{_fmt(width)}" '
            f'height="{_fmt(height)}" rx="{_fmt(radius)}" ry="{_fmt(radius)}" '
            f'fill="#{color}" filter="url(#f1)"/>'
        )
    body = (
        '<defs><filter id="f1" x="-50%" y="-50%" width="200%" height="200%">'
        f'<feGaussianBlur in="SourceGraphic" stdDeviation="{_fmt(blur)}"/>'
        f"</filter></defs>{shape}"
    )
    return to_data_uri(_document(full_w, full_h, body)), padding


# ---------------------------------------------------------------------------
# Serialized vector-graphic nodes
# ---------------------------------------------------------------------------


def prepare_node_svg(markup: str, width: float, height: float) -> str:
    """Pin the root ``<svg>`` of serialized markup to its rendered size.

    Raises ``xml.etree.ElementTree.ParseError`` for malformed markup.
    """
    root = ET.fromstring(markup)
    for element in root.iter():
        if isinstance(element.tag, str) and not element.tag.startswith("{"):
            element.tag = f"{{{SVG_NS}}}{element.tag}"
    root.set("width", _fmt(width or 300))
    root.set("height", _fmt(height or 150))
    return ET.tostring(root, encoding="unicode")
