"""Node Classifier: ordered rule cascade from visual node to render items.

Each :class:`Rule` pairs a predicate with a handler.  Rules are evaluated in
order and the first whose predicate matches handles the node; a handler may
return None to pass the node on to the next rule.  Handlers return a
:class:`ClassificationResult` with queued items, deferred jobs, and whether
the walker should skip the node's children.

Cascade:

1. ``table`` -- native table plus media found inside cells.
2. ``simple_list`` -- UL/OL without flex/grid items, media or icons.
3. ``canvas`` -- native chart from ``data-chart``, else raster readback.
4. ``vector_graphic`` -- SVG embedded as vector or raster.
5. ``image`` -- IMG with object-fit and rounded-corner masking.
6. ``icon`` -- icon-font glyphs and icon components, captured as images.
7. ``partial_radius_solid`` -- empty box with mixed radii and a solid fill.
8. ``partial_radius_clipped`` -- empty box with mixed radii under a clip.
9. ``generic`` -- background, border, shadow and text of any element.
10. ``text_node`` -- bare text outside a text container.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from slidekit_html.color import ColorResolver
from slidekit_html.config import SlideExportConfig
from slidekit_html.css import parse_opacity, parse_px
from slidekit_html.dom import (
    LIST_TAGS,
    MEDIA_TAGS,
    find_descendants,
    has_content,
    has_zero_extent,
    is_clipped_by_parent,
    is_complex_list,
    is_hidden,
    is_icon,
    is_image_wrapper,
    is_text_container,
)
from slidekit_html.errors import ConversionError, ErrorCode
from slidekit_html.jobs import CanvasJob, CaptureJob, DeferredJob, ImageJob, SvgJob
from slidekit_html.layout import element_geometry, rect_geometry
from slidekit_html.lists import extract_list
from slidekit_html.models import (
    BorderKind,
    BorderSide,
    FillSpec,
    ImagePayload,
    ItemGeometry,
    LayoutConfig,
    ParagraphOptions,
    Payload,
    RenderItem,
    RenderItemKind,
    ShapePayload,
    ShapeType,
    TextPayload,
    TextRun,
    VisualNode,
)
from slidekit_html.protocols import ChartTranslator, RenderingBackend
from slidekit_html.style import (
    StyleResolver,
    corner_radii,
    has_partial_radius,
    soft_edge_px,
    uniform_radius,
)
from slidekit_html.svg import (
    blurred_svg,
    composite_border_svg,
    custom_shape_svg,
    gradient_svg,
)
from slidekit_html.tables import extract_table
from slidekit_html.text import build_text_payload, list_item_marker

logger = logging.getLogger("slidekit_html")

# Radius fraction is shrunk on small shapes, where preset corners read larger.
SMALL_SHAPE_PX = 100
SMALL_SHAPE_RADIUS_FACTOR = 0.25
IMAGE_RADIUS_MATCH_PX = 5


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


@dataclass
class Visit:
    """One node visit with the ordering keys assigned by the walker."""

    node: VisualNode
    traversal_index: float
    stack_order: int


@dataclass
class ClassificationResult:
    items: list[RenderItem] = field(default_factory=list)
    jobs: list[DeferredJob] = field(default_factory=list)
    stop_recursion: bool = False
    rule: str | None = None
    warnings: list[ConversionError] = field(default_factory=list)


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Callable[[NodeClassifier, Visit], bool]
    handler: Callable[[NodeClassifier, Visit], ClassificationResult | None]


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


class NodeClassifier:
    """Classify nodes of one page against the rule cascade."""

    def __init__(
        self,
        layout: LayoutConfig,
        backend: RenderingBackend,
        config: SlideExportConfig | None = None,
        chart_translator: ChartTranslator | None = None,
        root: VisualNode | None = None,
        rules: list[Rule] | None = None,
    ) -> None:
        self._config = config or SlideExportConfig()
        self.layout = layout
        self.backend = backend
        self.charts = chart_translator
        self.root = root
        self.colors = ColorResolver(backend)
        self.styles = StyleResolver(layout.scale, self.colors)
        self.rules = rules if rules is not None else default_rules()

    @property
    def config(self) -> SlideExportConfig:
        return self._config

    def classify(
        self, node: VisualNode, traversal_index: float, stack_order: int
    ) -> ClassificationResult:
        """Run the cascade for *node*; the root and zero-size boxes yield nothing."""
        if node is self.root:
            return ClassificationResult()
        if node.is_element and has_zero_extent(node):
            return ClassificationResult()

        visit = Visit(node, traversal_index, stack_order)
        for rule in self.rules:
            if not rule.predicate(self, visit):
                continue
            result = rule.handler(self, visit)
            if result is not None:
                result.rule = rule.name
                return result
        return ClassificationResult()

    # -- item factories ----------------------------------------------------

    def geometry(self, node: VisualNode) -> ItemGeometry:
        return element_geometry(node, self.layout)

    def item(
        self,
        visit: Visit,
        kind: RenderItemKind,
        geometry: ItemGeometry,
        payload: Payload,
        stack_offset: int = 0,
    ) -> RenderItem:
        return RenderItem(
            kind=kind,
            stack_order=visit.stack_order + stack_offset,
            traversal_index=visit.traversal_index,
            geometry=geometry,
            payload=payload,
        )

    def image_item(
        self,
        visit: Visit,
        geometry: ItemGeometry,
        data: str | None = None,
        stack_offset: int = 0,
    ) -> RenderItem:
        return self.item(
            visit,
            RenderItemKind.IMAGE,
            geometry,
            ImagePayload(data=data, source=visit.node.tag),
            stack_offset,
        )


def box_size(node: VisualNode) -> tuple[float, float]:
    """Unrotated layout size in source pixels."""
    return (
        node.offset_width or node.rect.width,
        node.offset_height or node.rect.height,
    )


# ---------------------------------------------------------------------------
# 1. Table
# ---------------------------------------------------------------------------


def _is_table(classifier: NodeClassifier, visit: Visit) -> bool:
    return visit.node.is_element and visit.node.tag == "TABLE"


def _handle_table(classifier: NodeClassifier, visit: Visit) -> ClassificationResult:
    node = visit.node
    geometry = classifier.geometry(node).model_copy(update={"rotation": 0.0})
    table_item = classifier.item(
        visit,
        RenderItemKind.TABLE,
        geometry,
        extract_table(node, classifier.styles),
    )
    result = ClassificationResult(items=[table_item], stop_recursion=True)

    media = find_descendants(
        node, lambda child: child.is_element and child.tag in MEDIA_TAGS
    )
    for position, element in enumerate(media):
        if is_hidden(element):
            continue
        sub = classifier.classify(
            element,
            visit.traversal_index + (position + 1) / (len(media) + 1),
            visit.stack_order,
        )
        result.items.extend(sub.items)
        result.jobs.extend(sub.jobs)
        result.warnings.extend(sub.warnings)
    return result


# ---------------------------------------------------------------------------
# 2. Simple list
# ---------------------------------------------------------------------------


def _is_simple_list(classifier: NodeClassifier, visit: Visit) -> bool:
    node = visit.node
    return node.is_element and node.tag in LIST_TAGS and not is_complex_list(node)


def _handle_simple_list(
    classifier: NodeClassifier, visit: Visit
) -> ClassificationResult | None:
    node = visit.node
    runs = extract_list(node, classifier.styles, classifier.config.list_config)
    if not runs:
        return None

    geometry = classifier.geometry(node)
    result = ClassificationResult(stop_recursion=True)
    background = classifier.colors.resolve(node.style.background_color)
    if background.visible:
        result.items.append(
            classifier.item(
                visit,
                RenderItemKind.SHAPE,
                geometry,
                ShapePayload(fill=FillSpec(color=background.hex)),
            )
        )
    result.items.append(
        classifier.item(
            visit,
            RenderItemKind.TEXT,
            geometry,
            TextPayload(runs=runs, paragraph=ParagraphOptions(align="left", valign="top")),
            stack_offset=1,
        )
    )
    return result


# ---------------------------------------------------------------------------
# 3. Canvas
# ---------------------------------------------------------------------------


def _is_canvas(classifier: NodeClassifier, visit: Visit) -> bool:
    return visit.node.is_element and visit.node.tag == "CANVAS"


def _warning(visit: Visit, code: ErrorCode, message: str) -> ConversionError:
    logger.warning(
        "slidekit_html | stage=classify | index=%s | code=%s | detail=%s",
        visit.traversal_index,
        code.value,
        message,
    )
    return ConversionError(
        code=code.value,
        message=message,
        stage="classify",
        recoverable=True,
        traversal_index=visit.traversal_index,
        tag=visit.node.tag,
    )


def _handle_canvas(classifier: NodeClassifier, visit: Visit) -> ClassificationResult:
    node = visit.node
    geometry = classifier.geometry(node)
    result = ClassificationResult(stop_recursion=True)

    chart_json = node.attributes.get("data-chart")
    if chart_json:
        try:
            chart_config = json.loads(chart_json)
        except json.JSONDecodeError as exc:
            result.warnings.append(
                _warning(
                    visit,
                    ErrorCode.W_CHART_CONFIG_INVALID,
                    f"data-chart is not valid JSON: {exc}",
                )
            )
        else:
            chart = None
            if classifier.charts is not None and isinstance(chart_config, dict):
                chart = classifier.charts.translate(chart_config, geometry)
            if chart is not None:
                result.items.append(
                    classifier.item(visit, RenderItemKind.CHART, geometry, chart)
                )
                return result
            result.warnings.append(
                _warning(
                    visit,
                    ErrorCode.W_CHART_UNTRANSLATED,
                    "chart not translated; falling back to canvas raster",
                )
            )

    item = classifier.image_item(visit, geometry)
    result.items.append(item)
    result.jobs.append(CanvasJob(item=item, node=node, backend=classifier.backend))
    return result


# ---------------------------------------------------------------------------
# 4. Vector graphic
# ---------------------------------------------------------------------------


def _is_vector_graphic(classifier: NodeClassifier, visit: Visit) -> bool:
    return visit.node.is_element and visit.node.tag == "SVG"


def _handle_vector_graphic(
    classifier: NodeClassifier, visit: Visit
) -> ClassificationResult:
    node = visit.node
    item = classifier.image_item(visit, classifier.geometry(node))
    job = SvgJob(
        item=item,
        node=node,
        backend=classifier.backend,
        width=node.rect.width,
        height=node.rect.height,
        as_vector=classifier.config.svg_as_vector,
        supersample=classifier.config.capture_supersample,
    )
    return ClassificationResult(items=[item], jobs=[job], stop_recursion=True)


# ---------------------------------------------------------------------------
# 5. Image
# ---------------------------------------------------------------------------


def _is_image(classifier: NodeClassifier, visit: Visit) -> bool:
    return visit.node.is_element and visit.node.tag == "IMG"


def image_radii(node: VisualNode) -> tuple[float, float, float, float]:
    """Own corner radii, or those of a clipping parent that hugs the image."""
    width, height = box_size(node)
    radii = corner_radii(node.style, width, height)
    if any(r > 0 for r in radii):
        return radii

    parent = node.parent
    if parent is None or parent.style.overflow == "visible":
        return radii
    if (
        abs(parent.rect.width - node.rect.width) < IMAGE_RADIUS_MATCH_PX
        and abs(parent.rect.height - node.rect.height) < IMAGE_RADIUS_MATCH_PX
    ):
        return corner_radii(parent.style, *box_size(parent))
    return radii


def _handle_image(classifier: NodeClassifier, visit: Visit) -> ClassificationResult:
    node = visit.node
    width, height = box_size(node)
    item = classifier.image_item(visit, classifier.geometry(node))
    job = ImageJob(
        item=item,
        node=node,
        backend=classifier.backend,
        width=width,
        height=height,
        radii=image_radii(node),
        object_fit=node.style.object_fit or "fill",
        object_position=node.style.object_position or "50% 50%",
        supersample=classifier.config.image_supersample,
    )
    return ClassificationResult(items=[item], jobs=[job], stop_recursion=True)


# ---------------------------------------------------------------------------
# 6. Icon
# ---------------------------------------------------------------------------


def _is_icon(classifier: NodeClassifier, visit: Visit) -> bool:
    return is_icon(visit.node)


def _capture(
    classifier: NodeClassifier, visit: Visit, geometry: ItemGeometry
) -> ClassificationResult:
    node = visit.node
    width, height = box_size(node)
    item = classifier.image_item(visit, geometry)
    job = CaptureJob(
        item=item,
        node=node,
        backend=classifier.backend,
        width=width,
        height=height,
        radii=corner_radii(node.style, width, height),
    )
    return ClassificationResult(items=[item], jobs=[job], stop_recursion=True)


def _handle_icon(classifier: NodeClassifier, visit: Visit) -> ClassificationResult:
    return _capture(classifier, visit, classifier.geometry(visit.node))


# ---------------------------------------------------------------------------
# 7-8. Partial radius leaves
# ---------------------------------------------------------------------------


def _is_partial_radius_solid(classifier: NodeClassifier, visit: Visit) -> bool:
    node = visit.node
    return (
        node.is_element
        and has_partial_radius(node.style)
        and classifier.colors.hex(node.style.background_color) is not None
        and not is_text_container(node, classifier.colors)
        and not has_content(node)
    )


def _handle_partial_radius_solid(
    classifier: NodeClassifier, visit: Visit
) -> ClassificationResult:
    node = visit.node
    width, height = box_size(node)
    background = classifier.colors.resolve(node.style.background_color)
    data = custom_shape_svg(
        width,
        height,
        background.hex,
        background.opacity,
        corner_radii(node.style, width, height),
    )
    item = classifier.image_item(visit, classifier.geometry(node), data=data)
    return ClassificationResult(items=[item], stop_recursion=True)


def _is_partial_radius_clipped(classifier: NodeClassifier, visit: Visit) -> bool:
    node = visit.node
    return (
        node.is_element
        and has_partial_radius(node.style)
        and is_clipped_by_parent(node)
        and not has_content(node)
    )


def _handle_partial_radius_clipped(
    classifier: NodeClassifier, visit: Visit
) -> ClassificationResult:
    node = visit.node
    geometry = classifier.geometry(node)
    geometry = geometry.model_copy(
        update={
            "x": geometry.x + classifier.layout.length(parse_px(node.style.margin_left)),
            "y": geometry.y + classifier.layout.length(parse_px(node.style.margin_top)),
        }
    )
    return _capture(classifier, visit, geometry)


# ---------------------------------------------------------------------------
# 9. Generic element
# ---------------------------------------------------------------------------


def _is_element(classifier: NodeClassifier, visit: Visit) -> bool:
    return visit.node.is_element


def composite_border_items(
    classifier: NodeClassifier,
    visit: Visit,
    sides: dict[str, BorderSide],
    geometry: ItemGeometry,
) -> list[RenderItem]:
    """Thin filled rectangles, one per visible border side, above the element."""
    length = classifier.layout.length
    x, y, w, h = geometry.x, geometry.y, geometry.w, geometry.h
    boxes = {
        "top": lambda t: (x, y, w, t),
        "right": lambda t: (x + w - t, y, t, h),
        "bottom": lambda t: (x, y + h - t, w, t),
        "left": lambda t: (x, y, t, h),
    }
    items = []
    for name, box in boxes.items():
        side = sides.get(name)
        if side is None or side.width <= 0:
            continue
        bx, by, bw, bh = box(length(side.width))
        items.append(
            classifier.item(
                visit,
                RenderItemKind.SHAPE,
                ItemGeometry(x=bx, y=by, w=bw, h=bh),
                ShapePayload(fill=FillSpec(color=side.color)),
                stack_offset=1,
            )
        )
    return items


def shape_type_for(
    width: float, height: float, radius: float, is_percentage: bool
) -> tuple[ShapeType, float | None]:
    """Preset shape and rounded-corner fraction for a uniform radius."""
    min_dimension = min(width, height)
    radius_px = radius / 100 * min_dimension if is_percentage else radius
    is_square = abs(width - height) < 1
    if min_dimension > 0 and radius_px >= min_dimension / 2 and (is_percentage or is_square):
        return ShapeType.ELLIPSE, None
    if radius_px > 0 and min_dimension > 0:
        fraction = min(radius_px / min_dimension, 0.5)
        if min_dimension < SMALL_SHAPE_PX:
            fraction *= SMALL_SHAPE_RADIUS_FACTOR
        return ShapeType.ROUND_RECT, fraction
    return ShapeType.RECT, None


def _handle_element(classifier: NodeClassifier, visit: Visit) -> ClassificationResult:
    node = visit.node
    style = node.style
    colors = classifier.colors
    width, height = box_size(node)
    geometry = classifier.geometry(node)
    result = ClassificationResult()

    partial_radius = has_partial_radius(style)
    radius, is_percentage = uniform_radius(style)
    radius_px = radius / 100 * min(width, height) if is_percentage else radius

    background = colors.resolve(style.background_color)
    border = classifier.styles.border(style)
    has_shadow = bool(style.box_shadow) and style.box_shadow != "none"
    blur = soft_edge_px(style.filter)
    image_wrapper = is_image_wrapper(node)

    text_payload = None
    text_geometry = geometry
    if is_text_container(node, colors):
        text_payload = build_text_payload(node, classifier.styles)
        if text_payload is not None:
            marker, shift = list_item_marker(node, classifier.styles)
            if marker is not None:
                text_payload.runs.insert(0, marker)
                text_geometry = geometry.model_copy(
                    update={"x": geometry.x - shift, "w": geometry.w + shift}
                )

    # Vector background: gradient or blurred solid fill.
    background_svg = None
    padding_in = 0.0
    if blur and background.hex and not image_wrapper:
        background_svg, padding_px = blurred_svg(
            width, height, background.hex, radius_px, blur
        )
        padding_in = classifier.layout.length(padding_px)
    elif (
        style.effective_background_clip != "text"
        and "linear-gradient" in style.background_image
    ):
        stroke = None
        top_width = parse_px(style.border_top_width)
        top_color = colors.hex(style.border_top_color)
        if top_width > 0 and top_color:
            stroke = (top_color, top_width)
        background_svg = gradient_svg(
            width, height, style.background_image, radius_px, stroke
        )
        if background_svg is None:
            logger.debug(
                "slidekit_html | stage=classify | index=%s | unparseable gradient=%s",
                visit.traversal_index,
                style.background_image,
            )

    if background_svg is not None:
        result.items.append(
            classifier.image_item(
                visit,
                geometry.model_copy(
                    update={
                        "x": geometry.x - padding_in,
                        "y": geometry.y - padding_in,
                        "w": geometry.w + padding_in * 2,
                        "h": geometry.h + padding_in * 2,
                    }
                ),
                data=background_svg,
            )
        )
        if text_payload is not None:
            result.items.append(
                classifier.item(
                    visit,
                    RenderItemKind.TEXT,
                    text_geometry,
                    text_payload,
                    stack_offset=1,
                )
            )
        if border.kind == BorderKind.COMPOSITE:
            result.items.extend(
                composite_border_items(classifier, visit, border.sides, geometry)
            )

    elif (
        (background.hex and not image_wrapper)
        or border.kind != BorderKind.NONE
        or has_shadow
        or text_payload is not None
    ):
        use_solid_fill = bool(background.hex) and not image_wrapper
        opacity = parse_opacity(style.opacity)

        if partial_radius and use_solid_fill and text_payload is None:
            data = custom_shape_svg(
                width,
                height,
                background.hex,
                background.opacity * opacity,
                corner_radii(style, width, height),
            )
            result.items.append(classifier.image_item(visit, geometry, data=data))
        else:
            shape_type, rect_radius = shape_type_for(
                width, height, radius, is_percentage
            )
            shape = ShapePayload(
                shape_type=shape_type,
                fill=(
                    FillSpec(
                        color=background.hex,
                        transparency=(1 - opacity * background.opacity) * 100,
                    )
                    if use_solid_fill
                    else None
                ),
                line=border.line if border.kind == BorderKind.UNIFORM else None,
                shadow=classifier.styles.shadow(style) if has_shadow else None,
                rect_radius=rect_radius,
            )
            if text_payload is not None:
                text_payload.shape = shape
                result.items.append(
                    classifier.item(
                        visit, RenderItemKind.TEXT, text_geometry, text_payload
                    )
                )
            elif not partial_radius:
                result.items.append(
                    classifier.item(visit, RenderItemKind.SHAPE, geometry, shape)
                )

        if border.kind == BorderKind.COMPOSITE:
            data = composite_border_svg(width, height, radius_px, border.sides)
            if data is not None:
                result.items.append(
                    classifier.image_item(visit, geometry, data=data, stack_offset=1)
                )

    result.stop_recursion = text_payload is not None
    return result


# ---------------------------------------------------------------------------
# 10. Bare text node
# ---------------------------------------------------------------------------


def _is_text_node(classifier: NodeClassifier, visit: Visit) -> bool:
    return visit.node.is_text


def _handle_text_node(
    classifier: NodeClassifier, visit: Visit
) -> ClassificationResult | None:
    node = visit.node
    text = node.text.strip()
    parent = node.parent
    if not text or parent is None or is_text_container(parent, classifier.colors):
        return None

    options = classifier.styles.text_options(parent.style)
    options.highlight = None
    item = classifier.item(
        visit,
        RenderItemKind.TEXT,
        rect_geometry(node.rect, classifier.layout),
        TextPayload(runs=[TextRun(text=text, options=options)]),
    )
    return ClassificationResult(items=[item])


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------


def default_rules() -> list[Rule]:
    """The classification cascade in precedence order."""
    return [
        Rule("table", _is_table, _handle_table),
        Rule("simple_list", _is_simple_list, _handle_simple_list),
        Rule("canvas", _is_canvas, _handle_canvas),
        Rule("vector_graphic", _is_vector_graphic, _handle_vector_graphic),
        Rule("image", _is_image, _handle_image),
        Rule("icon", _is_icon, _handle_icon),
        Rule("partial_radius_solid", _is_partial_radius_solid, _handle_partial_radius_solid),
        Rule("partial_radius_clipped", _is_partial_radius_clipped, _handle_partial_radius_clipped),
        Rule("generic", _is_element, _handle_element),
        Rule("text_node", _is_text_node, _handle_text_node),
    ]
