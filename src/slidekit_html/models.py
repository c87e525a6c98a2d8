"""Pydantic models for the slidekit-html conversion pipeline.

Input side: ``Rect``, ``ComputedStyle`` and ``VisualNode`` describe one
already-rendered node snapshot as supplied by the rendering engine.
Field names accept both the engine's camelCase keys (``backgroundColor``)
and snake_case.

Output side: ``RenderItem`` is the queue unit produced by the walk, with
one payload model per drawable kind.  ``LayoutConfig`` maps source pixels
to target inches.  ``ConversionResult`` is the public result of
:class:`~slidekit_html.router.SlideRouter`.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic.alias_generators import to_camel

from slidekit_html.errors import ConversionError

PX_TO_INCH = 1.0 / 96.0
PX_TO_POINT = 0.75
FONT_SCALE_FACTOR = 0.733275
PAGE_WIDTH_IN = 10.0
PAGE_HEIGHT_IN = 5.625


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class NodeKind(str, Enum):
    """Structural kind of a visual node."""

    ROOT = "root"
    TEXT = "text"
    TABLE = "table"
    LIST = "list"
    MEDIA = "media"
    ICON = "icon"
    ELEMENT = "element"


class RenderItemKind(str, Enum):
    """Drawable kind of a queued item."""

    SHAPE = "shape"
    IMAGE = "image"
    TEXT = "text"
    TABLE = "table"
    CHART = "chart"


class ShapeType(str, Enum):
    """Preset shape geometries understood by document builders."""

    RECT = "rect"
    ROUND_RECT = "roundRect"
    ELLIPSE = "ellipse"


class BorderKind(str, Enum):
    """Aggregate classification of the four border sides."""

    NONE = "none"
    UNIFORM = "uniform"
    COMPOSITE = "composite"


# ---------------------------------------------------------------------------
# Input snapshot
# ---------------------------------------------------------------------------


class _SnapshotModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Rect(_SnapshotModel):
    """Bounding box in source pixels."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


class ComputedStyle(_SnapshotModel):
    """Cascade-resolved CSS values for one node, as raw computed strings.

    Defaults are the CSS initial values so partial snapshots stay usable.
    """

    # --- Visibility / stacking ---
    display: str = "block"
    visibility: str = "visible"
    opacity: str = "1"
    z_index: str = "auto"
    position: str = "static"
    overflow: str = "visible"

    # --- Color / background ---
    color: str = "rgb(0, 0, 0)"
    background_color: str = "rgba(0, 0, 0, 0)"
    background_image: str = "none"
    background_clip: str = "border-box"
    webkit_background_clip: str | None = None

    # --- Border ---
    border_top_width: str = "0px"
    border_right_width: str = "0px"
    border_bottom_width: str = "0px"
    border_left_width: str = "0px"
    border_top_style: str = "none"
    border_right_style: str = "none"
    border_bottom_style: str = "none"
    border_left_style: str = "none"
    border_top_color: str = "rgb(0, 0, 0)"
    border_right_color: str = "rgb(0, 0, 0)"
    border_bottom_color: str = "rgb(0, 0, 0)"
    border_left_color: str = "rgb(0, 0, 0)"
    border_top_left_radius: str = "0px"
    border_top_right_radius: str = "0px"
    border_bottom_right_radius: str = "0px"
    border_bottom_left_radius: str = "0px"

    # --- Effects ---
    box_shadow: str = "none"
    filter: str = "none"
    transform: str = "none"

    # --- Typography ---
    font_family: str = "Arial"
    font_size: str = "16px"
    font_weight: str = "400"
    font_style: str = "normal"
    text_decoration: str = "none"
    text_align: str = "start"
    text_transform: str = "none"
    vertical_align: str = "baseline"

    # --- Box model ---
    padding_top: str = "0px"
    padding_right: str = "0px"
    padding_bottom: str = "0px"
    padding_left: str = "0px"
    margin_top: str = "0px"
    margin_right: str = "0px"
    margin_bottom: str = "0px"
    margin_left: str = "0px"

    # --- Flex ---
    justify_content: str = "normal"
    align_items: str = "normal"

    # --- Lists ---
    list_style_type: str = "disc"
    list_style_position: str = "outside"

    # --- Replaced content ---
    object_fit: str = "fill"
    object_position: str = "50% 50%"

    # --- Pseudo-elements ---
    content: str = "normal"

    @property
    def effective_background_clip(self) -> str:
        return self.webkit_background_clip or self.background_clip


class VisualNode(_SnapshotModel):
    """One node of the rendered tree.

    The pipeline only reads nodes.  ``parent`` links are filled in when the
    tree is constructed so upward searches never need shared state.
    """

    node_type: Literal["element", "text"] = "element"
    tag: str = ""
    text: str = ""
    rect: Rect = Field(default_factory=Rect)
    offset_width: float | None = None
    offset_height: float | None = None
    style: ComputedStyle = Field(default_factory=ComputedStyle)
    pseudo: dict[str, ComputedStyle] = Field(default_factory=dict)
    attributes: dict[str, str] = Field(default_factory=dict)
    children: list[VisualNode] = Field(default_factory=list)

    _parent: VisualNode | None = PrivateAttr(default=None)

    @field_validator("tag")
    @classmethod
    def _upper_tag(cls, value: str) -> str:
        return value.upper()

    @field_validator("pseudo", mode="before")
    @classmethod
    def _strip_pseudo_colons(cls, value: dict) -> dict:
        if isinstance(value, dict):
            return {str(key).lstrip(":"): style for key, style in value.items()}
        return value

    def model_post_init(self, context: object, /) -> None:
        for child in self.children:
            child._parent = self

    @property
    def parent(self) -> VisualNode | None:
        return self._parent

    @property
    def is_text(self) -> bool:
        return self.node_type == "text"

    @property
    def is_element(self) -> bool:
        return self.node_type == "element"

    @property
    def kind(self) -> NodeKind:
        from slidekit_html.dom import node_kind

        return node_kind(self)

    @property
    def element_children(self) -> list[VisualNode]:
        return [child for child in self.children if child.is_element]

    @property
    def text_content(self) -> str:
        """Concatenated text of this node and all descendants."""
        if self.is_text or not self.children:
            return self.text
        return "".join(child.text_content for child in self.children)

    @property
    def class_list(self) -> list[str]:
        return self.attributes.get("class", "").split()

    def pseudo_style(self, name: str) -> ComputedStyle | None:
        """Return the computed style of ``::before``, ``::after`` or ``::marker``."""
        return self.pseudo.get(name.lstrip(":"))

    def iter_descendants(self):
        """Yield every descendant in document order, excluding self."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


class LayoutConfig(BaseModel):
    """Source-pixel to target-inch mapping for one page."""

    model_config = ConfigDict(frozen=True)

    root_x: float = 0.0
    root_y: float = 0.0
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    page_width: float = PAGE_WIDTH_IN
    page_height: float = PAGE_HEIGHT_IN

    def to_x(self, px: float) -> float:
        return self.offset_x + (px - self.root_x) * PX_TO_INCH * self.scale

    def to_y(self, px: float) -> float:
        return self.offset_y + (px - self.root_y) * PX_TO_INCH * self.scale

    def length(self, px: float) -> float:
        """Convert a source-pixel distance to target inches."""
        return px * PX_TO_INCH * self.scale


class ItemGeometry(BaseModel):
    """Target-space placement in inches; rotation in degrees."""

    x: float
    y: float
    w: float
    h: float
    rotation: float = 0.0


# ---------------------------------------------------------------------------
# Style value objects
# ---------------------------------------------------------------------------


class ColorValue(BaseModel):
    """Resolved color: six-digit upper-case hex without ``#``, and alpha."""

    hex: str | None = None
    opacity: float = 0.0

    @property
    def visible(self) -> bool:
        return self.hex is not None and self.opacity > 0


class FillSpec(BaseModel):
    color: str
    transparency: float = 0.0  # percent


class LineSpec(BaseModel):
    color: str
    width: float  # points
    dash_type: Literal["solid", "dash", "dot"] = "solid"
    transparency: float = 0.0


class ShadowSpec(BaseModel):
    """Outer shadow in polar form.

    ``blur`` and ``distance`` are source pixels straight out of
    :func:`~slidekit_html.style.parse_shadow`; :meth:`to_points` converts
    them for the target document.
    """

    type: Literal["outer"] = "outer"
    angle: float
    blur: float
    distance: float
    color: str = "000000"
    opacity: float = 1.0

    def to_points(self, scale: float) -> ShadowSpec:
        return self.model_copy(
            update={
                "blur": self.blur * PX_TO_POINT * scale,
                "distance": self.distance * PX_TO_POINT * scale,
            }
        )


class BorderSide(BaseModel):
    width: float = 0.0  # source pixels
    style: str = "none"
    color: str = "rgb(0, 0, 0)"


class BorderClassification(BaseModel):
    """``none``, ``uniform`` with a line style, or ``composite`` per side."""

    kind: BorderKind = BorderKind.NONE
    line: LineSpec | None = None
    sides: dict[str, BorderSide] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


class BulletSpec(BaseModel):
    """Per-paragraph bullet definition."""

    kind: Literal["bullet", "number"] = "bullet"
    character_code: str | None = None  # hex code point, e.g. "2022"
    color: str | None = None
    font_size: float | None = None
    indent: float | None = None  # points


class TextRunOptions(BaseModel):
    color: str | None = None
    font_face: str | None = None
    font_size: float | None = None  # points
    bold: bool = False
    italic: bool = False
    underline: bool = False
    highlight: str | None = None
    para_space_before: float | None = None
    para_space_after: float | None = None
    break_line: bool = False
    bullet: BulletSpec | None = None
    indent_level: int | None = None
    hyperlink: str | None = None


class TextRun(BaseModel):
    text: str
    options: TextRunOptions = Field(default_factory=TextRunOptions)


class ParagraphOptions(BaseModel):
    """Text-box level options shared by every run in a text item."""

    align: Literal["left", "center", "right", "justify"] = "left"
    valign: Literal["top", "middle", "bottom"] = "top"
    inset: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])  # inches, t r b l
    wrap: bool = True
    font_size: float | None = None  # default points for the box


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class ShapePayload(BaseModel):
    shape_type: ShapeType = ShapeType.RECT
    fill: FillSpec | None = None
    line: LineSpec | None = None
    shadow: ShadowSpec | None = None
    rect_radius: float | None = None  # fraction of the shorter side


class ImagePayload(BaseModel):
    """Image data as a ``data:`` URI; ``None`` until a deferred job fills it."""

    data: str | None = None
    source: str | None = None


class TextPayload(BaseModel):
    runs: list[TextRun] = Field(default_factory=list)
    paragraph: ParagraphOptions = Field(default_factory=ParagraphOptions)
    shape: ShapePayload | None = None


class TableBorder(BaseModel):
    type: Literal["solid", "dash", "dot", "none"] = "none"
    width: float | None = None  # points
    color: str | None = None


class TableCell(BaseModel):
    runs: list[TextRun] = Field(default_factory=list)
    text_options: TextRunOptions = Field(default_factory=TextRunOptions)
    fill: FillSpec | None = None
    align: Literal["left", "center", "right"] = "left"
    valign: Literal["top", "middle", "bottom"] = "top"
    margin: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])
    rowspan: int | None = None
    colspan: int | None = None
    borders: list[TableBorder] = Field(
        default_factory=lambda: [TableBorder() for _ in range(4)]
    )  # top, right, bottom, left

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


class TablePayload(BaseModel):
    rows: list[list[TableCell]] = Field(default_factory=list)
    column_widths: list[float] = Field(default_factory=list)  # inches
    row_heights: list[float] = Field(default_factory=list)  # inches


class ChartPayload(BaseModel):
    """Native chart produced by a :class:`ChartTranslator`.

    ``chart_type`` is a chart-library type name (``bar``, ``line``, ``pie``,
    ...).  Each ``data`` entry is one series:
    ``{"name": str, "labels": [...], "values": [...]}``.  ``options`` may
    carry ``title`` and ``show_legend``.
    """

    chart_type: str
    data: list[dict] = Field(default_factory=list)
    options: dict = Field(default_factory=dict)


Payload = Union[ShapePayload, ImagePayload, TextPayload, TablePayload, ChartPayload]


# ---------------------------------------------------------------------------
# Queue and results
# ---------------------------------------------------------------------------


class RenderItem(BaseModel):
    """One queued draw command with its ordering keys."""

    kind: RenderItemKind
    stack_order: int = 0
    traversal_index: float = 0.0
    geometry: ItemGeometry
    payload: Payload
    failed: bool = False

    @property
    def sort_key(self) -> tuple[int, float]:
        return (self.stack_order, self.traversal_index)

    @property
    def is_drawable(self) -> bool:
        """True if the item may be handed to a document builder."""
        if self.failed:
            return False
        if self.kind == RenderItemKind.IMAGE:
            return isinstance(self.payload, ImagePayload) and bool(self.payload.data)
        return True


class ConversionResult(BaseModel):
    """Result of converting one root node into one page of draw commands."""

    conversion_key: str
    page_index: int = 0
    layout: LayoutConfig
    items_queued: int = 0
    items_drawn: int = 0
    items_dropped: int = 0
    jobs_run: int = 0
    jobs_failed: int = 0
    draw_commands: list[RenderItem] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error_details: list[ConversionError] = Field(default_factory=list)
    processing_time_seconds: float = 0.0


VisualNode.model_rebuild()
