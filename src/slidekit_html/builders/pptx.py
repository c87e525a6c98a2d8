"""PptxDocumentBuilder -- reference :class:`DocumentBuilder` using python-pptx.

Writes one slide per page.  DrawingML features python-pptx does not expose
(fill alpha, outer shadows, bullets, run highlights, table cell borders) are
written directly as OXML elements.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import pathlib

from pptx import Presentation
from pptx.chart.data import CategoryChartData
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE, XL_LEGEND_POSITION
from pptx.enum.dml import MSO_LINE_DASH_STYLE
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.oxml.ns import qn
from pptx.oxml.xmlchemy import OxmlElement
from pptx.util import Emu, Inches, Pt

from slidekit_html.config import SlideExportConfig
from slidekit_html.imaging import rasterize_svg
from slidekit_html.models import (
    PX_TO_INCH,
    ChartPayload,
    FillSpec,
    ItemGeometry,
    LineSpec,
    ParagraphOptions,
    ShadowSpec,
    ShapePayload,
    ShapeType,
    TableBorder,
    TableCell,
    TextRun,
    TextRunOptions,
)

logger = logging.getLogger("slidekit_html")

BLANK_LAYOUT_INDEX = 6
SVG_RASTER_SUPERSAMPLE = 2

_SHAPES = {
    ShapeType.RECT: MSO_SHAPE.RECTANGLE,
    ShapeType.ROUND_RECT: MSO_SHAPE.ROUNDED_RECTANGLE,
    ShapeType.ELLIPSE: MSO_SHAPE.OVAL,
}
_DASHES = {
    "dash": MSO_LINE_DASH_STYLE.DASH,
    "dot": MSO_LINE_DASH_STYLE.ROUND_DOT,
}
_PRESET_DASHES = {"solid": "solid", "dash": "dash", "dot": "sysDot"}
_ALIGN = {
    "left": PP_ALIGN.LEFT,
    "center": PP_ALIGN.CENTER,
    "right": PP_ALIGN.RIGHT,
    "justify": PP_ALIGN.JUSTIFY,
}
_ANCHOR = {
    "top": MSO_ANCHOR.TOP,
    "middle": MSO_ANCHOR.MIDDLE,
    "bottom": MSO_ANCHOR.BOTTOM,
}
_CHART_TYPES = {
    "bar": XL_CHART_TYPE.COLUMN_CLUSTERED,
    "horizontalBar": XL_CHART_TYPE.BAR_CLUSTERED,
    "line": XL_CHART_TYPE.LINE_MARKERS,
    "area": XL_CHART_TYPE.AREA,
    "pie": XL_CHART_TYPE.PIE,
    "doughnut": XL_CHART_TYPE.DOUGHNUT,
    "radar": XL_CHART_TYPE.RADAR,
}
# Table cell border elements, in schema order.
_CELL_BORDER_TAGS = ("a:lnL", "a:lnR", "a:lnT", "a:lnB")
# ``borders`` on a TableCell are ordered top, right, bottom, left.
_CELL_BORDER_SIDES = {"a:lnL": 3, "a:lnR": 1, "a:lnT": 0, "a:lnB": 2}


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a ``data:`` URI into ``(mime_type, payload_bytes)``."""
    if not uri.startswith("data:") or "," not in uri:
        raise ValueError("not a data URI")
    header, _, body = uri[5:].partition(",")
    mime_type, _, encoding = header.partition(";")
    if encoding == "base64":
        try:
            return mime_type, base64.b64decode(body)
        except binascii.Error as exc:
            raise ValueError(f"invalid base64 payload: {exc}") from exc
    return mime_type, body.encode("utf-8")


# ---------------------------------------------------------------------------
# DrawingML helpers
# ---------------------------------------------------------------------------


def _srgb(color: str, alpha: float = 1.0):
    clr = OxmlElement("a:srgbClr")
    clr.set("val", color.upper())
    if alpha < 1.0:
        alpha_el = OxmlElement("a:alpha")
        alpha_el.set("val", str(int(round(max(alpha, 0.0) * 100000))))
        clr.append(alpha_el)
    return clr


def _apply_fill(shape, fill: FillSpec | None) -> None:
    if fill is None:
        shape.fill.background()
        return
    shape.fill.solid()
    shape.fill.fore_color.rgb = RGBColor.from_string(fill.color.upper())
    if fill.transparency > 0:
        srgb = shape._element.spPr.find(qn("a:solidFill")).find(qn("a:srgbClr"))
        alpha = OxmlElement("a:alpha")
        alpha.set("val", str(int(round((100 - fill.transparency) * 1000))))
        srgb.append(alpha)


def _apply_line(shape, line: LineSpec | None) -> None:
    if line is None or line.width <= 0:
        shape.line.fill.background()
        return
    shape.line.color.rgb = RGBColor.from_string(line.color.upper())
    shape.line.width = Pt(line.width)
    if line.dash_type in _DASHES:
        shape.line.dash_style = _DASHES[line.dash_type]


def _apply_shadow(shape, shadow: ShadowSpec | None) -> None:
    if shadow is None:
        return
    sp_pr = shape._element.spPr
    existing = sp_pr.find(qn("a:effectLst"))
    if existing is not None:
        sp_pr.remove(existing)

    outer = OxmlElement("a:outerShdw")
    outer.set("blurRad", str(int(Pt(shadow.blur))))
    outer.set("dist", str(int(Pt(shadow.distance))))
    outer.set("dir", str(int(round(shadow.angle * 60000)) % 21600000))
    outer.set("algn", "ctr")
    outer.set("rotWithShape", "0")
    outer.append(_srgb(shadow.color, shadow.opacity))
    effects = OxmlElement("a:effectLst")
    effects.append(outer)
    # effectLst follows the outline in spPr.
    line = sp_pr.find(qn("a:ln"))
    if line is not None:
        line.addnext(effects)
    else:
        sp_pr.append(effects)


def _set_bullet(paragraph, bullet, default_size: float | None) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    if bullet.indent:
        p_pr.set("marL", str(int(Pt(bullet.indent))))
        p_pr.set("indent", str(-int(Pt(default_size or 12) * 1.2)))

    if bullet.kind == "number":
        auto = OxmlElement("a:buAutoNum")
        auto.set("type", "arabicPeriod")
        p_pr.append(auto)
        return
    if bullet.color:
        bu_clr = OxmlElement("a:buClr")
        bu_clr.append(_srgb(bullet.color))
        p_pr.append(bu_clr)
    if bullet.font_size:
        bu_size = OxmlElement("a:buSzPts")
        bu_size.set("val", str(int(round(bullet.font_size * 100))))
        p_pr.append(bu_size)
    bu_char = OxmlElement("a:buChar")
    bu_char.set("char", chr(int(bullet.character_code or "2022", 16)))
    p_pr.append(bu_char)


def _set_highlight(run, color: str) -> None:
    r_pr = run._r.get_or_add_rPr()
    highlight = OxmlElement("a:highlight")
    highlight.append(_srgb(color))
    r_pr.insert_element_before(
        highlight,
        "a:uLnTx",
        "a:uLn",
        "a:uFillTx",
        "a:uFill",
        "a:latin",
        "a:ea",
        "a:cs",
        "a:sym",
        "a:hlinkClick",
        "a:hlinkMouseOver",
        "a:rtl",
        "a:extLst",
    )


def _style_run(run, options: TextRunOptions, default_size: float | None) -> None:
    font = run.font
    font.color.rgb = RGBColor.from_string((options.color or "000000").upper())
    font_size = options.font_size or default_size
    if font_size:
        font.size = Pt(font_size)
    if options.font_face:
        font.name = options.font_face
    font.bold = options.bold
    font.italic = options.italic
    font.underline = options.underline
    if options.highlight:
        _set_highlight(run, options.highlight)
    if options.hyperlink:
        run.hyperlink.address = options.hyperlink


def write_runs(
    text_frame,
    runs: list[TextRun],
    align: str = "left",
    default_size: float | None = None,
) -> None:
    """Write *runs* into *text_frame*; a ``break_line`` run ends its paragraph."""
    paragraph = text_frame.paragraphs[0]
    paragraph.alignment = _ALIGN.get(align, PP_ALIGN.LEFT)
    starts_paragraph = True

    for run in runs:
        if starts_paragraph:
            options = run.options
            if options.indent_level:
                paragraph.level = min(options.indent_level, 8)
            if options.para_space_before:
                paragraph.space_before = Pt(options.para_space_before)
            if options.para_space_after:
                paragraph.space_after = Pt(options.para_space_after)
            if options.bullet is not None:
                _set_bullet(paragraph, options.bullet, options.font_size or default_size)
            starts_paragraph = False

        text_run = paragraph.add_run()
        text_run.text = run.text
        _style_run(text_run, run.options, default_size)

        if run.options.break_line:
            paragraph = text_frame.add_paragraph()
            paragraph.alignment = _ALIGN.get(align, PP_ALIGN.LEFT)
            starts_paragraph = True


def _cell_border(tag: str, border: TableBorder):
    line = OxmlElement(tag)
    if border.type == "none" or not border.width:
        line.set("w", "0")
        line.append(OxmlElement("a:noFill"))
        return line
    line.set("w", str(int(Pt(border.width))))
    solid = OxmlElement("a:solidFill")
    solid.append(_srgb(border.color or "000000"))
    line.append(solid)
    dash = OxmlElement("a:prstDash")
    dash.set("val", _PRESET_DASHES.get(border.type, "solid"))
    line.append(dash)
    return line


def _apply_cell(cell, source: TableCell) -> None:
    cell.margin_top = Pt(source.margin[0])
    cell.margin_right = Pt(source.margin[1])
    cell.margin_bottom = Pt(source.margin[2])
    cell.margin_left = Pt(source.margin[3])
    cell.vertical_anchor = _ANCHOR.get(source.valign, MSO_ANCHOR.TOP)

    if source.fill is not None:
        cell.fill.solid()
        cell.fill.fore_color.rgb = RGBColor.from_string(source.fill.color.upper())
    else:
        cell.fill.background()

    text_frame = cell.text_frame
    text_frame.word_wrap = True
    write_runs(text_frame, source.runs, source.align, source.text_options.font_size)

    tc_pr = cell._tc.get_or_add_tcPr()
    for position, tag in enumerate(_CELL_BORDER_TAGS):
        existing = tc_pr.find(qn(tag))
        if existing is not None:
            tc_pr.remove(existing)
        tc_pr.insert(position, _cell_border(tag, source.borders[_CELL_BORDER_SIDES[tag]]))


def place_cells(
    rows: list[list[TableCell]],
) -> tuple[list[tuple[int, int, TableCell]], int]:
    """Grid positions for HTML-ordered cells, honoring row and column spans.

    Returns ``[(row, column, cell), ...]`` and the number of grid columns.
    """
    occupied: set[tuple[int, int]] = set()
    placed = []
    columns = 0
    for r, row in enumerate(rows):
        c = 0
        for cell in row:
            while (r, c) in occupied:
                c += 1
            rowspan = min(cell.rowspan or 1, len(rows) - r)
            colspan = cell.colspan or 1
            for dr in range(rowspan):
                for dc in range(colspan):
                    occupied.add((r + dr, c + dc))
            placed.append((r, c, cell))
            c += colspan
            columns = max(columns, c)
    return placed, columns


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class PptxDocumentBuilder:
    """Write draw commands to a ``.pptx`` presentation, one slide per page."""

    def __init__(self, config: SlideExportConfig | None = None) -> None:
        self._config = config or SlideExportConfig()
        self.presentation = Presentation()
        self.presentation.slide_width = Inches(self._config.page_width_in)
        self.presentation.slide_height = Inches(self._config.page_height_in)
        self._slide = None

    @property
    def slide(self):
        if self._slide is None:
            self.new_page()
        return self._slide

    def new_page(self) -> None:
        layout = self.presentation.slide_layouts[BLANK_LAYOUT_INDEX]
        self._slide = self.presentation.slides.add_slide(layout)

    @staticmethod
    def _box(geometry: ItemGeometry) -> tuple[Emu, Emu, Emu, Emu]:
        return (
            Inches(geometry.x),
            Inches(geometry.y),
            Inches(max(geometry.w, 0.0)),
            Inches(max(geometry.h, 0.0)),
        )

    def _add_autoshape(
        self,
        shape_type: ShapeType,
        geometry: ItemGeometry,
        fill: FillSpec | None,
        line: LineSpec | None,
        shadow: ShadowSpec | None,
        rect_radius: float | None,
    ):
        shape = self.slide.shapes.add_shape(_SHAPES[shape_type], *self._box(geometry))
        if shape_type == ShapeType.ROUND_RECT and rect_radius is not None:
            shape.adjustments[0] = rect_radius
        _apply_fill(shape, fill)
        _apply_line(shape, line)
        _apply_shadow(shape, shadow)
        if geometry.rotation:
            shape.rotation = geometry.rotation
        return shape

    def add_shape(
        self,
        shape_type: ShapeType,
        geometry: ItemGeometry,
        fill: FillSpec | None = None,
        line: LineSpec | None = None,
        shadow: ShadowSpec | None = None,
        rect_radius: float | None = None,
    ) -> None:
        self._add_autoshape(shape_type, geometry, fill, line, shadow, rect_radius)

    def add_image(self, geometry: ItemGeometry, data: str) -> None:
        mime_type, payload = decode_data_uri(data)
        if mime_type == "image/svg+xml":
            raster = rasterize_svg(
                payload.decode("utf-8"),
                geometry.w / PX_TO_INCH,
                geometry.h / PX_TO_INCH,
                SVG_RASTER_SUPERSAMPLE,
            )
            _, payload = decode_data_uri(raster)
        picture = self.slide.shapes.add_picture(io.BytesIO(payload), *self._box(geometry))
        if geometry.rotation:
            picture.rotation = geometry.rotation

    def add_text(
        self,
        geometry: ItemGeometry,
        runs: list[TextRun],
        paragraph: ParagraphOptions,
        shape: ShapePayload | None = None,
    ) -> None:
        if shape is not None:
            box = self._add_autoshape(
                shape.shape_type,
                geometry,
                shape.fill,
                shape.line,
                shape.shadow,
                shape.rect_radius,
            )
        else:
            box = self.slide.shapes.add_textbox(*self._box(geometry))
            if geometry.rotation:
                box.rotation = geometry.rotation

        text_frame = box.text_frame
        text_frame.word_wrap = paragraph.wrap
        text_frame.vertical_anchor = _ANCHOR.get(paragraph.valign, MSO_ANCHOR.TOP)
        top, right, bottom, left = paragraph.inset
        text_frame.margin_top = Inches(top)
        text_frame.margin_right = Inches(right)
        text_frame.margin_bottom = Inches(bottom)
        text_frame.margin_left = Inches(left)
        write_runs(text_frame, runs, paragraph.align, paragraph.font_size)

    def add_table(
        self,
        geometry: ItemGeometry,
        rows: list[list[TableCell]],
        column_widths: list[float],
        row_heights: list[float],
    ) -> None:
        placed, columns = place_cells(rows)
        if not placed:
            return
        frame = self.slide.shapes.add_table(len(rows), columns, *self._box(geometry))
        table = frame.table

        for index, column in enumerate(table.columns):
            if index < len(column_widths):
                column.width = Inches(column_widths[index])
        for index, row in enumerate(table.rows):
            if index < len(row_heights):
                row.height = Inches(row_heights[index])

        for r, c, source in placed:
            cell = table.cell(r, c)
            rowspan = min(source.rowspan or 1, len(rows) - r)
            colspan = min(source.colspan or 1, columns - c)
            if rowspan > 1 or colspan > 1:
                cell.merge(table.cell(r + rowspan - 1, c + colspan - 1))
            _apply_cell(cell, source)

    def add_chart(self, geometry: ItemGeometry, chart: ChartPayload) -> None:
        chart_type = _CHART_TYPES.get(chart.chart_type)
        if chart_type is None or not chart.data:
            logger.warning(
                "slidekit_html | builder=pptx | unsupported chart_type=%s",
                chart.chart_type,
            )
            return

        chart_data = CategoryChartData()
        chart_data.categories = chart.data[0].get("labels", [])
        for series in chart.data:
            chart_data.add_series(series.get("name", ""), series.get("values", []))

        frame = self.slide.shapes.add_chart(chart_type, *self._box(geometry), chart_data)
        native = frame.chart
        title = chart.options.get("title")
        if title:
            native.has_title = True
            native.chart_title.text_frame.text = str(title)
        native.has_legend = bool(chart.options.get("show_legend", len(chart.data) > 1))
        if native.has_legend:
            native.legend.position = XL_LEGEND_POSITION.BOTTOM
            native.legend.include_in_layout = False

    def save(self, path: str | None = None) -> pathlib.Path:
        """Write the presentation; defaults to the configured file name."""
        target = pathlib.Path(path or self._config.file_name)
        self.presentation.save(str(target))
        logger.info(
            "slidekit_html | builder=pptx | slides=%d | path=%s",
            len(self.presentation.slides),
            target,
        )
        return target

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.presentation.save(buffer)
        return buffer.getvalue()
