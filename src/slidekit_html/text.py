"""Text payload construction for text-container elements.

Flattens the inline children of a text container into styled runs with
explicit line breaks, and derives paragraph alignment and inset from the
container's box.
"""

from __future__ import annotations

import math

from slidekit_html.css import apply_text_transform, collapse_whitespace, parse_px
from slidekit_html.models import (
    PX_TO_INCH,
    ParagraphOptions,
    TextPayload,
    TextRun,
    TextRunOptions,
    VisualNode,
)
from slidekit_html.style import StyleResolver

DEFAULT_FONT_SIZE_PT = 12.0

_ALIGN_MAP = {
    "start": "left",
    "left": "left",
    "end": "right",
    "right": "right",
    "center": "center",
    "-webkit-center": "center",
    "justify": "justify",
}

_MARKERS = {"circle": "○", "square": "■"}


def _inline_children(node: VisualNode) -> list[VisualNode]:
    if node.children:
        return node.children
    return [VisualNode(node_type="text", text=node.text)]


def collect_text_runs(node: VisualNode, resolver: StyleResolver) -> list[TextRun]:
    """Build runs for every inline child of *node*.

    ``<br>`` becomes an empty break run.  Element children are trimmed, the
    container's first and last runs lose boundary whitespace, and bare
    text nodes never carry a highlight so the container fill is not
    painted twice.
    """
    runs: list[TextRun] = []
    children = _inline_children(node)
    last_index = len(children) - 1
    trim_next_leading = False

    for index, child in enumerate(children):
        if child.is_element and child.tag == "BR":
            if runs:
                runs[-1].text = runs[-1].text.rstrip()
            runs.append(TextRun(text="", options=TextRunOptions(break_line=True)))
            trim_next_leading = True
            continue

        style = child.style if child.is_element else node.style
        value = collapse_whitespace(child.text_content)
        if child.is_element:
            value = value.strip()
        if index == 0:
            value = value.lstrip()
        if trim_next_leading:
            value = value.lstrip()
            trim_next_leading = False
        if index == last_index:
            value = value.rstrip()
        value = apply_text_transform(value, style.text_transform)

        if value:
            options = resolver.text_options(style)
            if child.is_text:
                options.highlight = None
            runs.append(TextRun(text=value, options=options))

    if runs and not runs[0].options.break_line:
        runs[0].text = runs[0].text.lstrip()
        if not runs[0].text:
            runs.pop(0)
    if runs and not runs[-1].options.break_line:
        runs[-1].text = runs[-1].text.rstrip()
        if not runs[-1].text:
            runs.pop()
    return runs


def paragraph_options(node: VisualNode, resolver: StyleResolver) -> ParagraphOptions:
    style = node.style
    align = _ALIGN_MAP.get(style.text_align, "left")

    # A first element child may override the container's alignment.
    first_element = next(iter(node.element_children), None)
    if first_element is not None and first_element.style.text_align in (
        "center",
        "right",
    ):
        align = first_element.style.text_align

    valign = "middle" if style.align_items == "center" else "top"
    if style.justify_content == "center" and "flex" in style.display:
        align = "center"
    padding_top = parse_px(style.padding_top)
    padding_bottom = parse_px(style.padding_bottom)
    if abs(padding_top - padding_bottom) < 2 and resolver.colors.hex(
        style.background_color
    ):
        valign = "middle"

    inset = resolver.padding(style)
    if align == "center" and valign == "middle":
        inset = [0.0, 0.0, 0.0, 0.0]
    return ParagraphOptions(align=align, valign=valign, inset=inset)


def build_text_payload(
    node: VisualNode, resolver: StyleResolver
) -> TextPayload | None:
    """Runs plus paragraph options for a text container, or None if empty."""
    runs = collect_text_runs(node, resolver)
    if not runs:
        return None
    first = runs[0].options
    if first.font_size is None or not math.isfinite(first.font_size):
        first.font_size = DEFAULT_FONT_SIZE_PT
    return TextPayload(runs=runs, paragraph=paragraph_options(node, resolver))


def list_item_marker(
    node: VisualNode, resolver: StyleResolver
) -> tuple[TextRun | None, float]:
    """Marker run for a ``display: list-item`` text container.

    Returns the run and how far (in inches) the text box must grow to the
    left to make room for an outside marker.
    """
    style = node.style
    if style.display != "list-item" or style.list_style_type == "none":
        return None, 0.0

    if style.list_style_type == "decimal":
        siblings = node.parent.element_children if node.parent else [node]
        position = next(i for i, sibling in enumerate(siblings) if sibling is node)
        marker = f"{position + 1}."
    else:
        marker = _MARKERS.get(style.list_style_type, "•")

    font_size = resolver.font_size(style)
    run = TextRun(
        text=marker + "   ",
        options=TextRunOptions(
            color=resolver.colors.hex(style.color) or "000000",
            font_size=font_size if math.isfinite(font_size) else None,
        ),
    )
    shift = 0.0
    if style.list_style_position == "outside":
        font_px = parse_px(style.font_size) or 16.0
        shift = font_px * PX_TO_INCH * resolver.scale * 1.5
    return run, shift
