"""Collaborator protocols for the slidekit-html package.

Defines ``RenderingBackend`` for the engine that produced the node tree
(color readback, element capture, canvas and image access),
``DocumentBuilder`` for the writer that turns draw commands into a file,
and ``ChartTranslator`` for native chart construction.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from slidekit_html.models import (
    ChartPayload,
    FillSpec,
    ItemGeometry,
    LineSpec,
    ParagraphOptions,
    ShadowSpec,
    ShapePayload,
    ShapeType,
    TableCell,
    TextRun,
    VisualNode,
)


# ---------------------------------------------------------------------------
# Rendering Backend Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class RenderingBackend(Protocol):
    """Interface to the rendering engine that laid out the node tree.

    Every method is synchronous and may block; the pipeline calls them from
    worker threads during the enrichment phase.
    """

    def resolve_color(self, value: str) -> tuple[int, int, int, int] | None:
        """Paint *value* onto a 1x1 surface and return the ``(r, g, b, a)`` pixel."""
        ...

    def capture_element(
        self, node: VisualNode, width: float, height: float
    ) -> bytes | None:
        """Snapshot the subtree rooted at *node* as PNG bytes."""
        ...

    def read_canvas(self, node: VisualNode) -> bytes | None:
        """Return the current raster contents of a canvas node as PNG bytes."""
        ...

    def load_image(self, src: str) -> bytes:
        """Fetch the bytes of an image source (URL or ``data:`` URI)."""
        ...

    def serialize_svg(self, node: VisualNode) -> str:
        """Return standalone SVG markup for a vector-graphic node."""
        ...


# ---------------------------------------------------------------------------
# Document Builder Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class DocumentBuilder(Protocol):
    """Interface for the target-document writer.

    Receives draw commands in final paint order for one page.  Geometry is in
    target inches, line widths and font sizes in points.
    """

    def new_page(self) -> None:
        """Start a new output page; later commands draw onto it."""
        ...

    def add_shape(
        self,
        shape_type: ShapeType,
        geometry: ItemGeometry,
        fill: FillSpec | None = None,
        line: LineSpec | None = None,
        shadow: ShadowSpec | None = None,
        rect_radius: float | None = None,
    ) -> None:
        """Draw a preset shape."""
        ...

    def add_image(self, geometry: ItemGeometry, data: str) -> None:
        """Draw an image from a ``data:`` URI."""
        ...

    def add_text(
        self,
        geometry: ItemGeometry,
        runs: list[TextRun],
        paragraph: ParagraphOptions,
        shape: ShapePayload | None = None,
    ) -> None:
        """Draw a text box, optionally inside its own shape (fill, outline, shadow)."""
        ...

    def add_table(
        self,
        geometry: ItemGeometry,
        rows: list[list[TableCell]],
        column_widths: list[float],
        row_heights: list[float],
    ) -> None:
        """Draw a native table."""
        ...

    def add_chart(self, geometry: ItemGeometry, chart: ChartPayload) -> None:
        """Draw a native chart."""
        ...


# ---------------------------------------------------------------------------
# Chart Translator Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class ChartTranslator(Protocol):
    """Interface for translating a chart library configuration."""

    def translate(
        self, chart_config: dict, geometry: ItemGeometry
    ) -> ChartPayload | None:
        """Return a native chart payload, or None if the chart is unsupported."""
        ...
