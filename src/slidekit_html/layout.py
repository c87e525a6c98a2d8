"""Coordinate Mapper: fit the source root onto the output page.

One uniform scale preserves the aspect ratio; the content is centered on
the page along the axis with slack.
"""

from __future__ import annotations

from slidekit_html.css import rotation_degrees
from slidekit_html.models import (
    PAGE_HEIGHT_IN,
    PAGE_WIDTH_IN,
    PX_TO_INCH,
    ItemGeometry,
    LayoutConfig,
    Rect,
    VisualNode,
)


def compute_layout(
    root_rect: Rect,
    page_width: float = PAGE_WIDTH_IN,
    page_height: float = PAGE_HEIGHT_IN,
) -> LayoutConfig:
    """Compute scale and centering offsets for *root_rect* on the page."""
    content_w = root_rect.width * PX_TO_INCH
    content_h = root_rect.height * PX_TO_INCH
    if content_w <= 0 or content_h <= 0:
        return LayoutConfig(
            root_x=root_rect.x,
            root_y=root_rect.y,
            page_width=page_width,
            page_height=page_height,
        )

    scale = min(page_width / content_w, page_height / content_h)
    return LayoutConfig(
        root_x=root_rect.x,
        root_y=root_rect.y,
        scale=scale,
        offset_x=(page_width - content_w * scale) / 2,
        offset_y=(page_height - content_h * scale) / 2,
        page_width=page_width,
        page_height=page_height,
    )


def element_geometry(node: VisualNode, layout: LayoutConfig) -> ItemGeometry:
    """Target geometry of an element box.

    Rotated elements report an enlarged bounding rect; the unrotated layout
    box is centered on the bounding rect's center and rotation is applied by
    the builder.
    """
    rect = node.rect
    width_px = node.offset_width or rect.width
    height_px = node.offset_height or rect.height
    w = layout.length(width_px)
    h = layout.length(height_px)
    center_x = rect.x + rect.width / 2
    center_y = rect.y + rect.height / 2
    return ItemGeometry(
        x=layout.to_x(center_x) - w / 2,
        y=layout.to_y(center_y) - h / 2,
        w=w,
        h=h,
        rotation=rotation_degrees(node.style.transform),
    )


def rect_geometry(rect: Rect, layout: LayoutConfig) -> ItemGeometry:
    """Target geometry of an unrotated measured rect, such as a text range."""
    return ItemGeometry(
        x=layout.to_x(rect.x),
        y=layout.to_y(rect.y),
        w=layout.length(rect.width),
        h=layout.length(rect.height),
    )
