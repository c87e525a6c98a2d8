"""Deferred jobs: per-item asset production run after the tree walk.

Each job is a plain value object bound to exactly one image
:class:`~slidekit_html.models.RenderItem`.  ``run()`` performs the blocking
work in a worker thread and writes only to its own item: the image data on
success, the ``failed`` flag otherwise.  Jobs never raise.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from pydantic import BaseModel

from slidekit_html.errors import AssetError, ConversionError, ErrorCode
from slidekit_html.imaging import (
    open_image,
    png_data_uri,
    process_capture,
    process_image,
    rasterize_svg,
)
from slidekit_html.models import ImagePayload, RenderItem, VisualNode
from slidekit_html.protocols import RenderingBackend
from slidekit_html.svg import prepare_node_svg, to_data_uri

Radii = tuple[float, float, float, float]


class JobOutcome(BaseModel):
    """Result of one deferred job."""

    traversal_index: float
    ok: bool
    error: ConversionError | None = None


@dataclass
class DeferredJob:
    """Base job; subclasses implement :meth:`produce`."""

    item: RenderItem
    node: VisualNode
    backend: RenderingBackend
    error_code: ErrorCode = field(default=ErrorCode.W_ASSET_IMAGE_FAILED, init=False)

    def produce(self) -> str | None:
        """Return a ``data:`` URI for the item, or None if nothing was produced."""
        raise NotImplementedError

    async def run(self) -> JobOutcome:
        try:
            data = await asyncio.to_thread(self.produce)
        except AssetError as exc:
            return self._fail(exc.code, str(exc))
        except Exception as exc:
            return self._fail(self.error_code, f"{type(exc).__name__}: {exc}")

        if not data:
            return self._fail(ErrorCode.W_ASSET_EMPTY, "job produced no image data")

        assert isinstance(self.item.payload, ImagePayload)
        self.item.payload.data = data
        return JobOutcome(traversal_index=self.item.traversal_index, ok=True)

    def _fail(self, code: ErrorCode, message: str) -> JobOutcome:
        self.item.failed = True
        return JobOutcome(
            traversal_index=self.item.traversal_index,
            ok=False,
            error=ConversionError(
                code=code.value,
                message=message,
                stage="enrich",
                recoverable=True,
                traversal_index=self.item.traversal_index,
                tag=self.node.tag,
            ),
        )


# ---------------------------------------------------------------------------
# Concrete jobs
# ---------------------------------------------------------------------------


@dataclass
class ImageJob(DeferredJob):
    """Decode an ``<img>`` source, apply object-fit and rounded corners."""

    width: float = 0.0
    height: float = 0.0
    radii: Radii = (0.0, 0.0, 0.0, 0.0)
    object_fit: str = "fill"
    object_position: str = "50% 50%"
    supersample: int = 2

    def __post_init__(self) -> None:
        self.error_code = ErrorCode.W_ASSET_IMAGE_FAILED

    def produce(self) -> str | None:
        src = self.node.attributes.get("src")
        if not src:
            raise AssetError(ErrorCode.W_ASSET_IMAGE_FAILED, "image has no src")
        data = self.backend.load_image(src)
        return process_image(
            data,
            self.width,
            self.height,
            self.radii,
            self.object_fit,
            self.object_position,
            self.supersample,
        )


@dataclass
class CaptureJob(DeferredJob):
    """Snapshot an element through the rendering backend and round its corners."""

    width: float = 0.0
    height: float = 0.0
    radii: Radii = (0.0, 0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        self.error_code = ErrorCode.W_ASSET_CAPTURE_FAILED

    def produce(self) -> str | None:
        data = self.backend.capture_element(self.node, self.width, self.height)
        if not data:
            return None
        return process_capture(data, self.width, self.height, self.radii)


@dataclass
class CanvasJob(DeferredJob):
    """Read the current raster contents of a canvas."""

    def __post_init__(self) -> None:
        self.error_code = ErrorCode.W_ASSET_CANVAS_FAILED

    def produce(self) -> str | None:
        data = self.backend.read_canvas(self.node)
        if not data:
            return None
        return png_data_uri(open_image(data))


@dataclass
class SvgJob(DeferredJob):
    """Serialize a vector-graphic node, embedding it as SVG or as a PNG raster."""

    width: float = 0.0
    height: float = 0.0
    as_vector: bool = False
    supersample: int = 3

    def __post_init__(self) -> None:
        self.error_code = ErrorCode.W_ASSET_SVG_FAILED

    def produce(self) -> str | None:
        markup = self.backend.serialize_svg(self.node)
        if not markup:
            return None
        markup = prepare_node_svg(markup, self.width, self.height)
        if self.as_vector:
            return to_data_uri(markup)
        return rasterize_svg(markup, self.width, self.height, self.supersample)
