"""Table Sub-Extractor: flatten an HTML table into a native table payload."""

from __future__ import annotations

import logging

from slidekit_html.css import collapse_whitespace, parse_int, parse_px
from slidekit_html.dom import find_ancestor, find_descendants, find_first_descendant
from slidekit_html.models import (
    PX_TO_INCH,
    PX_TO_POINT,
    ComputedStyle,
    FillSpec,
    TableBorder,
    TableCell,
    TablePayload,
    TextRun,
    VisualNode,
)
from slidekit_html.style import SIDES, StyleResolver, dash_type

logger = logging.getLogger("slidekit_html")

CELL_TAGS = ("TD", "TH")


def table_rows(table: VisualNode) -> list[VisualNode]:
    """Rows owned by *table*, skipping rows of nested tables."""
    return find_descendants(
        table,
        lambda node: node.tag == "TR"
        and find_ancestor(node, lambda ancestor: ancestor.tag == "TABLE") is table,
    )


def _cells(row: VisualNode) -> list[VisualNode]:
    return [child for child in row.element_children if child.tag in CELL_TAGS]


def table_border(
    style: ComputedStyle, side: str, resolver: StyleResolver
) -> TableBorder | None:
    """One cell border side, or None when it is effectively absent."""
    width = parse_px(getattr(style, f"border_{side}_width"))
    border_style = getattr(style, f"border_{side}_style")
    if width == 0 or border_style in ("none", "hidden"):
        return None
    color = resolver.colors.resolve(getattr(style, f"border_{side}_color"))
    if not color.visible:
        return None
    return TableBorder(
        type=dash_type(border_style),
        width=width * PX_TO_POINT * resolver.scale,
        color=color.hex,
    )


def _cell_fill(cell: VisualNode, table: VisualNode, resolver: StyleResolver) -> FillSpec | None:
    def has_fill(node: VisualNode) -> bool:
        return resolver.colors.resolve(node.style.background_color).visible

    source: VisualNode | None = cell
    if not has_fill(cell):
        source = find_ancestor(cell, has_fill, stop=lambda node: node is table.parent)
    if source is None:
        return None
    color = resolver.colors.resolve(source.style.background_color)
    return FillSpec(color=color.hex)


def _cell_align(style: ComputedStyle) -> str:
    if style.text_align == "center":
        return "center"
    if style.text_align in ("right", "end"):
        return "right"
    return "left"


def _cell_valign(style: ComputedStyle) -> str:
    if style.vertical_align in ("middle", "bottom"):
        return style.vertical_align
    return "top"


def extract_cell(
    cell: VisualNode, table: VisualNode, resolver: StyleResolver
) -> TableCell:
    style = cell.style
    anchor = find_first_descendant(
        cell, lambda node: node.tag == "A" and bool(node.attributes.get("href"))
    )
    style_source = anchor or find_first_descendant(
        cell, lambda node: node.tag == "SPAN"
    ) or cell
    options = resolver.text_options(style_source.style)
    options.highlight = None
    options.para_space_before = None
    options.para_space_after = None

    text = collapse_whitespace(cell.text_content).strip()
    run_options = options.model_copy()
    if anchor is not None:
        anchor_color = resolver.colors.hex(anchor.style.color)
        if anchor_color:
            options.color = anchor_color
        options.underline = options.underline or "underline" in anchor.style.text_decoration
        run_options = options.model_copy(update={"hyperlink": anchor.attributes["href"]})
        anchor_text = collapse_whitespace(anchor.text_content).strip()
        if anchor_text:
            text = anchor_text

    row = cell.parent
    borders = []
    for side in SIDES:
        border = table_border(style, side, resolver)
        if border is None and row is not None:
            border = table_border(row.style, side, resolver)
        borders.append(border or TableBorder(type="none"))

    return TableCell(
        runs=[TextRun(text=text, options=run_options)] if text else [],
        text_options=options,
        fill=_cell_fill(cell, table, resolver),
        align=_cell_align(style),
        valign=_cell_valign(style),
        margin=[value * 72 for value in resolver.padding(style)],
        rowspan=parse_int(cell.attributes.get("rowspan")) or None,
        colspan=parse_int(cell.attributes.get("colspan")) or None,
        borders=borders,
    )


def extract_table(table: VisualNode, resolver: StyleResolver) -> TablePayload:
    """Rows, column widths and row heights of *table*.

    Column widths come from the first row's cells, a spanning cell split
    evenly over its columns; row heights are measured per row.  Rows without
    cells are dropped.
    """
    rows = table_rows(table)
    column_widths: list[float] = []
    if rows:
        for cell in _cells(rows[0]):
            span = max(1, parse_int(cell.attributes.get("colspan")) or 1)
            width = cell.rect.width * PX_TO_INCH * resolver.scale
            column_widths.extend([width / span] * span)

    payload_rows: list[list[TableCell]] = []
    row_heights: list[float] = []
    for row in rows:
        cells = [extract_cell(cell, table, resolver) for cell in _cells(row)]
        if cells:
            payload_rows.append(cells)
            row_heights.append(row.rect.height * PX_TO_INCH * resolver.scale)

    logger.debug(
        "slidekit_html | table | rows=%d | columns=%d",
        len(payload_rows),
        len(column_widths),
    )
    return TablePayload(
        rows=payload_rows, column_widths=column_widths, row_heights=row_heights
    )
