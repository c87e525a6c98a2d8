"""List Sub-Extractor: flatten nested UL/OL structures into bulleted runs.

Each list item becomes one paragraph.  Bullet glyphs cycle disc, circle,
square by nesting depth; ordered lists and ``list-style-type: decimal``
number their items.  The bullet definition, including the marker color and
size, is attached to the first run of its paragraph.
"""

from __future__ import annotations

from slidekit_html.config import ListConfig
from slidekit_html.css import collapse_whitespace, parse_px, pseudo_content
from slidekit_html.dom import LIST_TAGS
from slidekit_html.models import (
    FONT_SCALE_FACTOR,
    BulletSpec,
    ComputedStyle,
    TextRun,
    VisualNode,
)
from slidekit_html.style import StyleResolver

BULLET_CODES = ("2022", "25E6", "25A0")  # disc, circle, square


def _before_run(node: VisualNode, resolver: StyleResolver) -> TextRun | None:
    before = node.pseudo_style("before")
    if before is None:
        return None
    content = pseudo_content(before.content)
    if content is None or not content.strip():
        return None
    return TextRun(text=content + " ", options=resolver.text_options(node.style))


def collect_inline_runs(
    node: VisualNode, parent_style: ComputedStyle, resolver: StyleResolver
) -> list[TextRun]:
    """Runs for all inline content below *node*, including ``::before`` text."""
    runs: list[TextRun] = []
    if node.is_element:
        before = _before_run(node, resolver)
        if before is not None:
            runs.append(before)

    style = node.style if node.is_element else parent_style
    for child in node.children:
        if child.is_text:
            value = collapse_whitespace(child.text)
            if value:
                runs.append(TextRun(text=value, options=resolver.text_options(style)))
        else:
            runs.extend(collect_inline_runs(child, parent_style, resolver))
    return runs


def collect_item_runs(item: VisualNode, resolver: StyleResolver) -> list[TextRun]:
    """Direct runs of one list item; nested lists are left to the caller."""
    runs: list[TextRun] = []
    before = _before_run(item, resolver)
    if before is not None:
        runs.append(before)

    children = item.children or [VisualNode(node_type="text", text=item.text)]
    for child in children:
        if child.is_element and child.tag in LIST_TAGS:
            continue
        if child.is_text:
            value = collapse_whitespace(child.text)
            if value.strip():
                runs.append(
                    TextRun(text=value, options=resolver.text_options(item.style))
                )
        else:
            runs.extend(collect_inline_runs(child, item.style, resolver))

    if runs:
        runs[0].text = runs[0].text.lstrip() or runs[0].text
        runs[-1].text = runs[-1].text.rstrip() or runs[-1].text
    return runs


def item_bullet(
    list_node: VisualNode,
    item: VisualNode,
    depth: int,
    resolver: StyleResolver,
    list_config: ListConfig,
) -> BulletSpec | None:
    style = item.style
    list_style_type = style.list_style_type or "disc"

    if list_node.tag == "OL" or list_style_type == "decimal":
        bullet = BulletSpec(kind="number")
    elif list_style_type == "none":
        return None
    else:
        color = "000000"
        font_size = None
        if list_config.color:
            color = resolver.colors.hex(list_config.color) or "000000"
        else:
            marker = item.pseudo_style("marker")
            marker_hex = resolver.colors.hex(marker.color) if marker else None
            color = marker_hex or resolver.colors.hex(style.color) or "000000"
            marker_px = parse_px(marker.font_size) if marker else 0.0
            if marker_px > 0:
                font_size = marker_px * FONT_SCALE_FACTOR * resolver.scale
        bullet = BulletSpec(
            kind="bullet",
            character_code=BULLET_CODES[depth % len(BULLET_CODES)],
            color=color,
            font_size=font_size,
        )

    indent = (item.rect.left - list_node.rect.left) * FONT_SCALE_FACTOR * resolver.scale
    if indent > 0:
        bullet.indent = indent
    return bullet


def _paragraph_spacing(
    item: VisualNode, resolver: StyleResolver, list_config: ListConfig
) -> tuple[float, float]:
    if list_config.spacing_before is not None or list_config.spacing_after is not None:
        return (list_config.spacing_before or 0.0, list_config.spacing_after or 0.0)
    factor = FONT_SCALE_FACTOR * resolver.scale
    margin_top = parse_px(item.style.margin_top)
    margin_bottom = parse_px(item.style.margin_bottom)
    return (
        margin_top * factor if margin_top > 0 else 0.0,
        margin_bottom * factor if margin_bottom > 0 else 0.0,
    )


def extract_list_level(
    list_node: VisualNode,
    depth: int,
    resolver: StyleResolver,
    list_config: ListConfig,
    out: list[TextRun],
) -> None:
    """Append the runs of every item of *list_node*, recursing into sublists."""
    for item in list_node.element_children:
        if item.tag != "LI":
            continue

        bullet = item_bullet(list_node, item, depth, resolver, list_config)
        runs = collect_item_runs(item, resolver)

        if runs:
            if depth > 0:
                for run in runs:
                    run.options.indent_level = depth

            if bullet is not None:
                runs[0].options.bullet = bullet

            before, after = _paragraph_spacing(item, resolver, list_config)
            if before > 0:
                runs[0].options.para_space_before = before
            if after > 0:
                runs[0].options.para_space_after = after

            runs[-1].options.break_line = True
            out.extend(runs)

        for child in item.element_children:
            if child.tag in LIST_TAGS:
                extract_list_level(child, depth + 1, resolver, list_config, out)


def extract_list(
    list_node: VisualNode, resolver: StyleResolver, list_config: ListConfig
) -> list[TextRun]:
    """All runs of a simple list; the final run carries no trailing break."""
    runs: list[TextRun] = []
    extract_list_level(list_node, 0, resolver, list_config, runs)
    if runs:
        runs[-1].options.break_line = False
    return runs
