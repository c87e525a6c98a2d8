"""Node predicates and upward searches over a :class:`VisualNode` tree.

Every helper reads the snapshot only.  Ancestor lookups go through
:func:`find_ancestor`, which takes an explicit stop condition.
"""

from __future__ import annotations

from collections.abc import Callable

from slidekit_html.color import ColorResolver
from slidekit_html.css import parse_opacity, parse_px, pseudo_content
from slidekit_html.models import NodeKind, VisualNode

MEDIA_TAGS = frozenset({"IMG", "SVG", "CANVAS", "VIDEO", "IFRAME", "OBJECT", "EMBED"})
COMPLEX_LIST_MEDIA_TAGS = frozenset({"IMG", "SVG", "CANVAS", "VIDEO", "IFRAME"})
LIST_TAGS = frozenset({"UL", "OL"})
INLINE_TAGS = frozenset({"SPAN", "B", "STRONG", "EM", "I", "A", "SMALL", "MARK"})
ICON_TAGS = frozenset(
    {
        "MATERIAL-ICON",
        "ICONIFY-ICON",
        "REMIX-ICON",
        "ION-ICON",
        "EVA-ICON",
        "BOX-ICON",
        "FA-ICON",
    }
)
ICON_CLASS_MARKERS = ("fa-", "fas", "far", "fab", "bi-", "material-icons", "icon")
BLOCKING_ANCESTOR_TAGS = frozenset({"TABLE", "BODY", "HTML"})


# ---------------------------------------------------------------------------
# Tree search
# ---------------------------------------------------------------------------


def find_ancestor(
    node: VisualNode,
    predicate: Callable[[VisualNode], bool],
    stop: Callable[[VisualNode], bool] | None = None,
) -> VisualNode | None:
    """Return the nearest proper ancestor satisfying *predicate*.

    The search ends without a match at the first ancestor satisfying
    *stop*; that ancestor itself is not tested.
    """
    current = node.parent
    while current is not None:
        if stop is not None and stop(current):
            return None
        if predicate(current):
            return current
        current = current.parent
    return None


def find_descendants(
    node: VisualNode, predicate: Callable[[VisualNode], bool]
) -> list[VisualNode]:
    """All descendants satisfying *predicate*, in document order."""
    return [child for child in node.iter_descendants() if predicate(child)]


def find_first_descendant(
    node: VisualNode, predicate: Callable[[VisualNode], bool]
) -> VisualNode | None:
    for child in node.iter_descendants():
        if predicate(child):
            return child
    return None


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_hidden(node: VisualNode) -> bool:
    """True for ``display:none``, ``visibility:hidden`` or zero opacity."""
    if not node.is_element:
        return False
    style = node.style
    return (
        style.display == "none"
        or style.visibility == "hidden"
        or parse_opacity(style.opacity) == 0
    )


def has_zero_extent(node: VisualNode) -> bool:
    return node.rect.width < 0.5 or node.rect.height < 0.5


def has_icon_class(node: VisualNode) -> bool:
    classes = node.attributes.get("class", "")
    return any(marker in classes for marker in ICON_CLASS_MARKERS)


def is_icon(node: VisualNode) -> bool:
    """True for custom icon tags and icon-font glyph elements."""
    if not node.is_element:
        return False
    tag = node.tag
    if "-" in tag or tag in ICON_TAGS:
        return True
    if tag in ("I", "SPAN") and has_icon_class(node):
        for name in ("before", "after"):
            pseudo = node.pseudo_style(name)
            if pseudo is not None and pseudo_content(pseudo.content) is not None:
                return True
    return False


def has_content(node: VisualNode) -> bool:
    return bool(node.text_content.strip()) or bool(node.element_children)


def _is_safe_inline(child: VisualNode, colors: ColorResolver) -> bool:
    tag = child.tag
    if "-" in tag or tag in ("IMG", "SVG"):
        return False
    if tag in ("I", "SPAN") and has_icon_class(child):
        return False

    style = child.style
    if tag not in INLINE_TAGS and "inline" not in style.display:
        return False

    # Empty decorative boxes (dot separators, badges) are not text.
    has_background = colors.resolve(style.background_color).visible
    has_border = (
        parse_px(style.border_top_width) > 0
        and colors.resolve(style.border_top_color).opacity > 0
    )
    if not child.text_content.strip() and (has_background or has_border):
        return False
    return True


def is_text_container(node: VisualNode, colors: ColorResolver | None = None) -> bool:
    """True if *node* holds text and only inline, text-like element children."""
    if not node.is_element or not node.text_content.strip():
        return False
    colors = colors or ColorResolver()
    return all(_is_safe_inline(child, colors) for child in node.element_children)


def is_clipped_by_parent(node: VisualNode) -> bool:
    """True if some ancestor clips with ``overflow: hidden`` or ``clip``."""
    return (
        find_ancestor(
            node,
            lambda ancestor: ancestor.style.overflow in ("hidden", "clip"),
            stop=lambda ancestor: ancestor.tag == "BODY",
        )
        is not None
    )


def is_complex_list(node: VisualNode) -> bool:
    """True if a list holds flex/grid items, media, or icons anywhere below it."""
    for element in [node, *node.iter_descendants()]:
        if not element.is_element:
            continue
        if element.tag == "LI" and element.style.display in (
            "flex",
            "grid",
            "inline-flex",
        ):
            return True
        if element.tag in COMPLEX_LIST_MEDIA_TAGS or is_icon(element):
            return True
    return False


def is_image_wrapper(node: VisualNode) -> bool:
    """True if a direct IMG child covers the node's box (within 2 px)."""
    width = node.offset_width or node.rect.width
    height = node.offset_height or node.rect.height
    for child in node.element_children:
        if child.tag != "IMG":
            continue
        child_w = child.offset_width or child.rect.width
        child_h = child.offset_height or child.rect.height
        return child_w >= width - 2 and child_h >= height - 2
    return False


def node_kind(node: VisualNode) -> NodeKind:
    if node.is_text:
        return NodeKind.TEXT
    if node.parent is None:
        return NodeKind.ROOT
    if node.tag == "TABLE":
        return NodeKind.TABLE
    if node.tag in LIST_TAGS:
        return NodeKind.LIST
    if node.tag in MEDIA_TAGS:
        return NodeKind.MEDIA
    if is_icon(node):
        return NodeKind.ICON
    return NodeKind.ELEMENT
