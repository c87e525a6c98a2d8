"""Style resolution: borders, shadows, radii, blur and typography.

Pure helpers (:func:`legalize_radii`, :func:`parse_shadow`,
:func:`soft_edge_px`, :func:`classify_border`) operate on plain values and
are the unit-tested core.  :class:`StyleResolver` binds them to one page's
scale factor and color resolver so classifier rules can ask for
ready-to-draw option objects.
"""

from __future__ import annotations

import logging
import math
import re

from slidekit_html.color import ColorResolver, gradient_fallback_color
from slidekit_html.css import (
    first_font_family,
    parse_px,
    split_top_level,
)
from slidekit_html.models import (
    FONT_SCALE_FACTOR,
    PX_TO_INCH,
    PX_TO_POINT,
    BorderClassification,
    BorderKind,
    BorderSide,
    ComputedStyle,
    LineSpec,
    ShadowSpec,
    TextRunOptions,
)

logger = logging.getLogger("slidekit_html")

SIDES = ("top", "right", "bottom", "left")

_SHADOW_RE = re.compile(
    r"(rgba?\([^)]+\)|#[0-9a-fA-F]+)\s+(-?[\d.]+)px\s+(-?[\d.]+)px\s+([\d.]+)px"
)
_BLUR_RE = re.compile(r"blur\(([\d.]+)px\)")


# ---------------------------------------------------------------------------
# Borders
# ---------------------------------------------------------------------------


def dash_type(border_style: str) -> str:
    if border_style == "dashed":
        return "dash"
    if border_style == "dotted":
        return "dot"
    return "solid"


def read_border_sides(style: ComputedStyle) -> dict[str, BorderSide]:
    """Return the four computed border sides keyed by side name."""
    return {
        side: BorderSide(
            width=parse_px(getattr(style, f"border_{side}_width")),
            style=getattr(style, f"border_{side}_style"),
            color=getattr(style, f"border_{side}_color"),
        )
        for side in SIDES
    }


def classify_border(
    style: ComputedStyle, scale: float, colors: ColorResolver | None = None
) -> BorderClassification:
    """Classify the four border sides as ``none``, ``uniform`` or ``composite``.

    Sides compare by width, style and resolved hex color.  A uniform border
    carries a ready line style (width in points, dash mapping, transparency
    from the color alpha).  Composite sides keep source-pixel widths and
    resolved hex colors for per-side synthesis.
    """
    colors = colors or ColorResolver()
    sides = read_border_sides(style)
    if all(side.width == 0 for side in sides.values()):
        return BorderClassification(kind=BorderKind.NONE)

    resolved = {name: colors.resolve(side.color) for name, side in sides.items()}
    signatures = {
        (side.width, side.style, resolved[name].hex) for name, side in sides.items()
    }

    if len(signatures) == 1:
        top = sides["top"]
        top_color = resolved["top"]
        return BorderClassification(
            kind=BorderKind.UNIFORM,
            line=LineSpec(
                color=top_color.hex or "000000",
                width=top.width * PX_TO_POINT * scale,
                dash_type=dash_type(top.style),
                transparency=(1 - top_color.opacity) * 100,
            ),
        )

    return BorderClassification(
        kind=BorderKind.COMPOSITE,
        sides={
            name: BorderSide(
                width=side.width,
                style=side.style,
                color=resolved[name].hex or "000000",
            )
            for name, side in sides.items()
        },
    )


# ---------------------------------------------------------------------------
# Shadow
# ---------------------------------------------------------------------------


def parse_shadow(
    box_shadow: str | None, colors: ColorResolver | None = None
) -> ShadowSpec | None:
    """Convert the first visible ``box-shadow`` layer to polar form.

    Layers whose color is fully transparent are skipped; later layers are
    ignored once one matches.  Blur and distance stay in source pixels.
    """
    if not box_shadow or box_shadow == "none":
        return None
    colors = colors or ColorResolver()
    for layer in split_top_level(box_shadow):
        match = _SHADOW_RE.search(layer)
        if match is None:
            continue
        color = colors.resolve(match.group(1))
        if color.opacity == 0:
            continue
        dx = float(match.group(2))
        dy = float(match.group(3))
        blur = float(match.group(4))
        angle = math.degrees(math.atan2(dy, dx))
        if angle < 0:
            angle += 360
        return ShadowSpec(
            angle=angle,
            blur=blur,
            distance=math.hypot(dx, dy),
            color=color.hex or "000000",
            opacity=color.opacity,
        )
    logger.debug("slidekit_html | style | unparseable box-shadow=%s", box_shadow)
    return None


# ---------------------------------------------------------------------------
# Radii
# ---------------------------------------------------------------------------


def legalize_radii(
    width: float,
    height: float,
    tl: float,
    tr: float,
    br: float,
    bl: float,
) -> tuple[float, float, float, float]:
    """Scale corner radii down so adjacent corners never overlap.

    Returns ``(tl, tr, br, bl)``.  A side whose two radii sum to zero does
    not constrain the factor.
    """

    def ratio(length: float, a: float, b: float) -> float:
        total = a + b
        return length / total if total else math.inf

    factor = min(
        ratio(width, tl, tr),
        ratio(height, tr, br),
        ratio(width, br, bl),
        ratio(height, bl, tl),
    )
    if factor < 1:
        return (tl * factor, tr * factor, br * factor, bl * factor)
    return (tl, tr, br, bl)


def _radius_px(value: str, min_dimension: float) -> float:
    radius = parse_px(value)
    if value.strip().endswith("%"):
        return radius / 100 * min_dimension
    return radius


def corner_radii(
    style: ComputedStyle, width: float = 0.0, height: float = 0.0
) -> tuple[float, float, float, float]:
    """Raw ``(tl, tr, br, bl)`` radii in pixels; percentages use the shorter side."""
    min_dimension = min(width, height)
    return (
        _radius_px(style.border_top_left_radius, min_dimension),
        _radius_px(style.border_top_right_radius, min_dimension),
        _radius_px(style.border_bottom_right_radius, min_dimension),
        _radius_px(style.border_bottom_left_radius, min_dimension),
    )


def _corner_token(value: str) -> tuple[float, bool]:
    radius = parse_px(value)
    if radius <= 0:
        return (0.0, False)
    return (radius, value.strip().endswith("%"))


def has_partial_radius(style: ComputedStyle) -> bool:
    """True when some corner is rounded and the corners are not all equal.

    Corners are compared by their declared value and unit, so percentage
    radii need no box size.
    """
    corners = [
        _corner_token(style.border_top_left_radius),
        _corner_token(style.border_top_right_radius),
        _corner_token(style.border_bottom_right_radius),
        _corner_token(style.border_bottom_left_radius),
    ]
    return any(radius > 0 for radius, _ in corners) and len(set(corners)) > 1


def uniform_radius(style: ComputedStyle) -> tuple[float, bool]:
    """Return the ``border-radius`` shorthand value and whether it is a percentage."""
    value = style.border_top_left_radius.strip()
    return parse_px(value), value.endswith("%")


# ---------------------------------------------------------------------------
# Filters, transforms, box model
# ---------------------------------------------------------------------------


def soft_edge_px(filter_value: str | None) -> float | None:
    """Blur radius in pixels from ``filter: blur(Npx)``, or None."""
    if not filter_value or filter_value == "none":
        return None
    match = _BLUR_RE.search(filter_value)
    if match is None:
        return None
    return float(match.group(1))


def padding_inches(style: ComputedStyle, scale: float) -> list[float]:
    """Padding as ``[top, right, bottom, left]`` in target inches."""
    return [
        parse_px(getattr(style, f"padding_{side}")) * PX_TO_INCH * scale
        for side in SIDES
    ]


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class StyleResolver:
    """Style Resolution Engine bound to one page's scale and color resolver."""

    def __init__(self, scale: float, colors: ColorResolver | None = None) -> None:
        self.scale = scale
        self.colors = colors or ColorResolver()

    def border(self, style: ComputedStyle) -> BorderClassification:
        return classify_border(style, self.scale, self.colors)

    def shadow(self, style: ComputedStyle) -> ShadowSpec | None:
        shadow = parse_shadow(style.box_shadow, self.colors)
        return shadow.to_points(self.scale) if shadow is not None else None

    def padding(self, style: ComputedStyle) -> list[float]:
        return padding_inches(style, self.scale)

    def font_size(self, style: ComputedStyle) -> float:
        return parse_px(style.font_size, default=math.nan) * FONT_SCALE_FACTOR * self.scale

    def text_options(self, style: ComputedStyle) -> TextRunOptions:
        """Run options for text painted with *style*.

        Gradient-clipped text is fully transparent; it takes the first stop
        of the background gradient instead.
        """
        color = self.colors.resolve(style.color)
        if color.opacity == 0 and style.effective_background_clip == "text":
            fallback = gradient_fallback_color(style.background_image)
            if fallback:
                color = self.colors.resolve(fallback)

        margin_top = parse_px(style.margin_top)
        margin_bottom = parse_px(style.margin_bottom)
        font_size = self.font_size(style)
        weight = style.font_weight.strip()

        return TextRunOptions(
            color=color.hex or "000000",
            font_face=first_font_family(style.font_family),
            font_size=font_size if math.isfinite(font_size) else None,
            bold=weight in ("bold", "bolder") or (parse_px(weight) >= 600),
            italic=style.font_style in ("italic", "oblique"),
            underline="underline" in style.text_decoration,
            para_space_before=(
                margin_top * FONT_SCALE_FACTOR * self.scale if margin_top > 0 else None
            ),
            para_space_after=(
                margin_bottom * FONT_SCALE_FACTOR * self.scale
                if margin_bottom > 0
                else None
            ),
            highlight=self.colors.hex(style.background_color),
        )
