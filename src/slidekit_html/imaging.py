"""Raster processing for deferred image jobs.

Uses Pillow for decoding, ``object-fit``/``object-position`` placement and
per-corner rounded masks, and cairosvg to rasterize SVG markup.  Every
function is synchronous and CPU-bound; the scheduler runs them in worker
threads.  Results are PNG ``data:`` URIs.
"""

from __future__ import annotations

import base64
import io
import logging

from PIL import Image, ImageDraw

from slidekit_html.css import parse_px
from slidekit_html.style import legalize_radii

logger = logging.getLogger("slidekit_html")

Radii = tuple[float, float, float, float]

_POSITION_KEYWORDS = {
    "left": "0%",
    "top": "0%",
    "center": "50%",
    "right": "100%",
    "bottom": "100%",
}


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def png_data_uri(image: Image.Image) -> str:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def open_image(data: bytes) -> Image.Image:
    """Decode image bytes to RGBA.  Raises ``PIL.UnidentifiedImageError``."""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image.convert("RGBA")


# ---------------------------------------------------------------------------
# Masks
# ---------------------------------------------------------------------------


def rounded_mask(size: tuple[int, int], radii: Radii) -> Image.Image:
    """L-mode mask of *size* with per-corner radii ``(tl, tr, br, bl)`` in mask pixels."""
    width, height = size
    mask = Image.new("L", size, 255)
    draw = ImageDraw.Draw(mask)
    tl, tr, br, bl = radii

    corners = (
        (tl, (0, 0), 180, 270),
        (tr, (width - 2 * tr, 0), 270, 360),
        (br, (width - 2 * br, height - 2 * br), 0, 90),
        (bl, (0, height - 2 * bl), 90, 180),
    )
    for radius, (left, top), start, end in corners:
        if radius <= 0:
            continue
        # Square corner cut, then the quarter disc added back.
        corner_x = left if start in (180, 90) else width - radius
        corner_y = top if start in (180, 270) else height - radius
        draw.rectangle(
            [corner_x, corner_y, corner_x + radius, corner_y + radius], fill=0
        )
        draw.pieslice(
            [left, top, left + 2 * radius, top + 2 * radius], start, end, fill=255
        )
    return mask


def apply_radii(image: Image.Image, width: float, height: float, radii: Radii) -> Image.Image:
    """Clip *image* to rounded corners given in source pixels of a ``width`` x ``height`` box."""
    if not any(r > 0 for r in radii):
        return image
    tl, tr, br, bl = legalize_radii(width, height, *radii)
    factor = image.width / width if width else 1.0
    mask = rounded_mask(image.size, (tl * factor, tr * factor, br * factor, bl * factor))
    alpha = image.getchannel("A")
    clipped = Image.new("L", image.size, 0)
    clipped.paste(alpha, (0, 0), mask)
    result = image.copy()
    result.putalpha(clipped)
    return result


# ---------------------------------------------------------------------------
# object-fit / object-position
# ---------------------------------------------------------------------------


def _position_offset(token: str, free_space: float) -> float:
    token = _POSITION_KEYWORDS.get(token, token)
    if token.endswith("%"):
        return free_space * parse_px(token[:-1]) / 100
    return parse_px(token)


def parse_object_position(value: str | None) -> tuple[str, str]:
    tokens = (value or "50% 50%").split()
    if not tokens:
        return ("50%", "50%")
    if len(tokens) == 1:
        tokens.append("center")
    horizontal, vertical = tokens[0], tokens[1]
    if horizontal in ("top", "bottom") or vertical in ("left", "right"):
        horizontal, vertical = vertical, horizontal
    return horizontal, vertical


def fitted_size(
    image_size: tuple[int, int], box: tuple[float, float], object_fit: str
) -> tuple[float, float]:
    """Rendered size of content for a CSS ``object-fit`` value."""
    image_w, image_h = image_size
    box_w, box_h = box
    if object_fit == "fill" or image_w == 0 or image_h == 0:
        return box_w, box_h
    contain = min(box_w / image_w, box_h / image_h)
    if object_fit == "contain":
        ratio = contain
    elif object_fit == "cover":
        ratio = max(box_w / image_w, box_h / image_h)
    elif object_fit == "none":
        ratio = 1.0
    elif object_fit == "scale-down":
        ratio = min(1.0, contain)
    else:
        return box_w, box_h
    return image_w * ratio, image_h * ratio


def fit_image(
    image: Image.Image,
    width: float,
    height: float,
    object_fit: str = "fill",
    object_position: str = "50% 50%",
    supersample: int = 2,
) -> Image.Image:
    """Place *image* in a ``width`` x ``height`` box the way CSS would paint it.

    The result is a transparent RGBA canvas at *supersample* times the box
    size; content overflowing the box is cropped.
    """
    canvas_w = max(1, round(width * supersample))
    canvas_h = max(1, round(height * supersample))
    render_w, render_h = fitted_size(image.size, (width, height), object_fit)
    pos_x, pos_y = parse_object_position(object_position)
    offset_x = _position_offset(pos_x, width - render_w)
    offset_y = _position_offset(pos_y, height - render_h)

    resized = image.resize(
        (max(1, round(render_w * supersample)), max(1, round(render_h * supersample))),
        Image.Resampling.LANCZOS,
    )
    canvas = Image.new("RGBA", (canvas_w, canvas_h), (0, 0, 0, 0))
    canvas.paste(
        resized,
        (round(offset_x * supersample), round(offset_y * supersample)),
        resized,
    )
    return canvas


# ---------------------------------------------------------------------------
# Job entry points
# ---------------------------------------------------------------------------


def process_image(
    data: bytes,
    width: float,
    height: float,
    radii: Radii = (0.0, 0.0, 0.0, 0.0),
    object_fit: str = "fill",
    object_position: str = "50% 50%",
    supersample: int = 2,
) -> str:
    """Fit, mask and encode an ``<img>`` source."""
    image = open_image(data)
    logger.debug(
        "slidekit_html | imaging | source=%dx%d | box=%.1fx%.1f | fit=%s",
        image.width,
        image.height,
        width,
        height,
        object_fit,
    )
    fitted = fit_image(image, width, height, object_fit, object_position, supersample)
    return png_data_uri(apply_radii(fitted, width, height, radii))


def process_capture(data: bytes, width: float, height: float, radii: Radii) -> str:
    """Mask and encode an element snapshot returned by the rendering backend."""
    return png_data_uri(apply_radii(open_image(data), width, height, radii))


def rasterize_svg(markup: str, width: float, height: float, supersample: int = 3) -> str:
    """Rasterize SVG markup at *supersample* times its rendered size."""
    import cairosvg

    png = cairosvg.svg2png(
        bytestring=markup.encode("utf-8"),
        output_width=max(1, round((width or 300) * supersample)),
        output_height=max(1, round((height or 150) * supersample)),
    )
    return png_data_uri(open_image(png))
