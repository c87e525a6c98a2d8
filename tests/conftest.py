"""Shared fixtures for slidekit-html tests."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from slidekit_html.color import ColorResolver
from slidekit_html.config import SlideExportConfig
from slidekit_html.models import (
    ChartPayload,
    ComputedStyle,
    ItemGeometry,
    LayoutConfig,
    Rect,
    VisualNode,
)
from slidekit_html.style import StyleResolver


# ---------------------------------------------------------------------------
# Node factories
# ---------------------------------------------------------------------------


def element(
    tag: str = "div",
    x: float = 0.0,
    y: float = 0.0,
    width: float = 100.0,
    height: float = 50.0,
    children: list[VisualNode] | None = None,
    attributes: dict[str, str] | None = None,
    pseudo: dict[str, ComputedStyle] | None = None,
    **style: str,
) -> VisualNode:
    """Build an element node; extra keyword arguments are computed styles."""
    return VisualNode(
        node_type="element",
        tag=tag,
        rect=Rect(x=x, y=y, width=width, height=height),
        style=ComputedStyle(**style),
        attributes=attributes or {},
        pseudo=pseudo or {},
        children=children or [],
    )


def text_node(
    text: str,
    x: float = 0.0,
    y: float = 0.0,
    width: float = 60.0,
    height: float = 20.0,
) -> VisualNode:
    return VisualNode(
        node_type="text",
        text=text,
        rect=Rect(x=x, y=y, width=width, height=height),
    )


def page_root(*children: VisualNode, **style: str) -> VisualNode:
    """A 960x540 root; maps onto a 10in x 5.625in page at scale 1."""
    return element("body", 0, 0, 960, 540, children=list(children), **style)


def png_bytes(width: int = 8, height: int = 8, color=(255, 0, 0, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Mock collaborators
# ---------------------------------------------------------------------------


class MockRenderingBackend:
    """Mock backend satisfying the RenderingBackend protocol."""

    def __init__(
        self,
        colors: dict[str, tuple[int, int, int, int]] | None = None,
        failing_sources: set[str] | None = None,
        raise_on_capture: Exception | None = None,
        svg_markup: str = '<svg><rect width="10" height="10" fill="red"/></svg>',
    ) -> None:
        self._colors = colors or {}
        self._failing_sources = failing_sources or set()
        self._raise_on_capture = raise_on_capture
        self._svg_markup = svg_markup
        self.loaded: list[str] = []
        self.captured: list[str] = []

    def resolve_color(self, value: str) -> tuple[int, int, int, int] | None:
        return self._colors.get(value)

    def capture_element(self, node: VisualNode, width: float, height: float) -> bytes | None:
        self.captured.append(node.tag)
        if self._raise_on_capture is not None:
            raise self._raise_on_capture
        return png_bytes(max(1, int(width)), max(1, int(height)))

    def read_canvas(self, node: VisualNode) -> bytes | None:
        return png_bytes(16, 16, (0, 0, 255, 255))

    def load_image(self, src: str) -> bytes:
        self.loaded.append(src)
        if src in self._failing_sources:
            raise OSError(f"cannot load {src}")
        return png_bytes(20, 10)

    def serialize_svg(self, node: VisualNode) -> str:
        return self._svg_markup


class RecordingBuilder:
    """DocumentBuilder that records every call in order."""

    def __init__(self, raise_on: str | None = None) -> None:
        self.calls: list[tuple[str, dict]] = []
        self._raise_on = raise_on

    def _record(self, name: str, **kwargs) -> None:
        if name == self._raise_on:
            raise RuntimeError(f"{name} failed")
        self.calls.append((name, kwargs))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def new_page(self) -> None:
        self._record("new_page")

    def add_shape(self, shape_type, geometry, fill=None, line=None, shadow=None, rect_radius=None):
        self._record(
            "add_shape",
            shape_type=shape_type,
            geometry=geometry,
            fill=fill,
            line=line,
            shadow=shadow,
            rect_radius=rect_radius,
        )

    def add_image(self, geometry, data):
        self._record("add_image", geometry=geometry, data=data)

    def add_text(self, geometry, runs, paragraph, shape=None):
        self._record("add_text", geometry=geometry, runs=runs, paragraph=paragraph, shape=shape)

    def add_table(self, geometry, rows, column_widths, row_heights):
        self._record(
            "add_table",
            geometry=geometry,
            rows=rows,
            column_widths=column_widths,
            row_heights=row_heights,
        )

    def add_chart(self, geometry, chart):
        self._record("add_chart", geometry=geometry, chart=chart)


class MockChartTranslator:
    """Translates ``{"type": ..., "data": {...}}`` configs of known types."""

    def __init__(self, supported: tuple[str, ...] = ("bar", "line", "pie")) -> None:
        self._supported = supported
        self.calls: list[dict] = []

    def translate(self, chart_config: dict, geometry: ItemGeometry) -> ChartPayload | None:
        self.calls.append(chart_config)
        chart_type = chart_config.get("type")
        if chart_type not in self._supported:
            return None
        data = chart_config.get("data", {})
        return ChartPayload(
            chart_type=chart_type,
            data=[
                {
                    "name": dataset.get("label", ""),
                    "labels": data.get("labels", []),
                    "values": dataset.get("data", []),
                }
                for dataset in data.get("datasets", [])
            ],
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> SlideExportConfig:
    return SlideExportConfig()


@pytest.fixture()
def backend() -> MockRenderingBackend:
    return MockRenderingBackend()


@pytest.fixture()
def builder() -> RecordingBuilder:
    return RecordingBuilder()


@pytest.fixture()
def chart_translator() -> MockChartTranslator:
    return MockChartTranslator()


@pytest.fixture()
def layout() -> LayoutConfig:
    """Identity layout: 96 source pixels per target inch, no offset."""
    return LayoutConfig()


@pytest.fixture()
def resolver() -> StyleResolver:
    return StyleResolver(1.0, ColorResolver())
