"""Tests for deferred jobs, the enrichment scheduler and compositing."""

from __future__ import annotations

import logging

import pytest

from conftest import MockRenderingBackend, element

from slidekit_html.errors import ErrorCode
from slidekit_html.jobs import CanvasJob, CaptureJob, ImageJob, SvgJob
from slidekit_html.models import (
    ImagePayload,
    ItemGeometry,
    RenderItem,
    RenderItemKind,
    ShapePayload,
)
from slidekit_html.scheduler import EnrichmentScheduler, composite


def _image_item(index: float = 1, stack_order: int = 0) -> RenderItem:
    return RenderItem(
        kind=RenderItemKind.IMAGE,
        stack_order=stack_order,
        traversal_index=index,
        geometry=ItemGeometry(x=0, y=0, w=1, h=1),
        payload=ImagePayload(),
    )


def _shape_item(index: float, stack_order: int = 0) -> RenderItem:
    return RenderItem(
        kind=RenderItemKind.SHAPE,
        stack_order=stack_order,
        traversal_index=index,
        geometry=ItemGeometry(x=0, y=0, w=1, h=1),
        payload=ShapePayload(),
    )


class EmptyCaptureBackend(MockRenderingBackend):
    def capture_element(self, node, width, height):
        return None


@pytest.mark.unit
class TestJobs:
    """Test that each job writes only to its own item."""

    @pytest.mark.asyncio
    async def test_image_job_fills_item(self, backend):
        item = _image_item()
        node = element("img", attributes={"src": "a.png"})
        outcome = await ImageJob(item, node, backend, width=20, height=10).run()
        assert outcome.ok is True
        assert item.payload.data.startswith("data:image/png;base64,")
        assert backend.loaded == ["a.png"]

    @pytest.mark.asyncio
    async def test_image_load_failure_marks_item(self):
        backend = MockRenderingBackend(failing_sources={"missing.png"})
        item = _image_item(index=4)
        node = element("img", attributes={"src": "missing.png"})
        outcome = await ImageJob(item, node, backend, width=20, height=10).run()
        assert outcome.ok is False
        assert item.failed is True
        assert item.payload.data is None
        assert outcome.error.code == ErrorCode.W_ASSET_IMAGE_FAILED.value
        assert outcome.error.traversal_index == 4
        assert outcome.error.tag == "IMG"
        assert outcome.error.recoverable is True

    @pytest.mark.asyncio
    async def test_image_without_src(self, backend):
        item = _image_item()
        outcome = await ImageJob(item, element("img"), backend, width=5, height=5).run()
        assert outcome.error.code == ErrorCode.W_ASSET_IMAGE_FAILED.value
        assert backend.loaded == []

    @pytest.mark.asyncio
    async def test_capture_failure_code(self):
        backend = MockRenderingBackend(raise_on_capture=RuntimeError("boom"))
        item = _image_item()
        outcome = await CaptureJob(item, element("material-icon"), backend, width=8, height=8).run()
        assert outcome.error.code == ErrorCode.W_ASSET_CAPTURE_FAILED.value
        assert "boom" in outcome.error.message

    @pytest.mark.asyncio
    async def test_empty_capture(self):
        item = _image_item()
        outcome = await CaptureJob(
            item, element("material-icon"), EmptyCaptureBackend(), width=8, height=8
        ).run()
        assert outcome.error.code == ErrorCode.W_ASSET_EMPTY.value
        assert item.failed is True

    @pytest.mark.asyncio
    async def test_canvas_job(self, backend):
        item = _image_item()
        outcome = await CanvasJob(item, element("canvas"), backend).run()
        assert outcome.ok is True
        assert item.payload.data.startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_svg_job_as_vector(self, backend):
        item = _image_item()
        job = SvgJob(item, element("svg"), backend, width=10, height=10, as_vector=True)
        outcome = await job.run()
        assert outcome.ok is True
        assert item.payload.data.startswith("data:image/svg+xml;base64,")

    @pytest.mark.asyncio
    async def test_svg_job_malformed_markup(self):
        backend = MockRenderingBackend(svg_markup="<svg><g></svg>")
        item = _image_item()
        job = SvgJob(item, element("svg"), backend, width=10, height=10, as_vector=True)
        outcome = await job.run()
        assert outcome.error.code == ErrorCode.W_ASSET_SVG_FAILED.value


@pytest.mark.unit
class TestEnrichmentScheduler:
    @pytest.mark.asyncio
    async def test_no_jobs(self):
        assert await EnrichmentScheduler().run([]) == []

    @pytest.mark.asyncio
    async def test_failure_isolated(self, caplog):
        backend = MockRenderingBackend(failing_sources={"bad.png"})
        good, bad = _image_item(1), _image_item(2)
        jobs = [
            ImageJob(good, element("img", attributes={"src": "ok.png"}), backend, width=4, height=4),
            ImageJob(bad, element("img", attributes={"src": "bad.png"}), backend, width=4, height=4),
        ]
        with caplog.at_level(logging.WARNING, logger="slidekit_html"):
            outcomes = await EnrichmentScheduler().run(jobs)

        assert [outcome.ok for outcome in outcomes] == [True, False]
        assert good.payload.data is not None
        assert bad.failed is True
        assert "W_ASSET_IMAGE_FAILED" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_logging_disabled(self, caplog, config):
        config.log_asset_failures = False
        backend = MockRenderingBackend(failing_sources={"bad.png"})
        job = ImageJob(
            _image_item(), element("img", attributes={"src": "bad.png"}), backend, width=4, height=4
        )
        with caplog.at_level(logging.WARNING, logger="slidekit_html"):
            await EnrichmentScheduler(config).run([job])
        assert "W_ASSET_IMAGE_FAILED" not in caplog.text


@pytest.mark.unit
class TestComposite:
    """Test final paint ordering."""

    def test_sorted_by_stack_order_then_index(self):
        items = [_shape_item(3), _shape_item(1, stack_order=5), _shape_item(2)]
        ordered = composite(items)
        assert [(i.stack_order, i.traversal_index) for i in ordered] == [
            (0, 2),
            (0, 3),
            (5, 1),
        ]

    def test_fractional_index_between_neighbors(self):
        items = [_shape_item(2), _shape_item(1.5), _shape_item(1)]
        assert [i.traversal_index for i in composite(items)] == [1, 1.5, 2]

    def test_drops_failed_and_empty_images(self):
        failed = _image_item(1)
        failed.payload.data = "data:image/png;base64,AA=="
        failed.failed = True
        empty = _image_item(2)
        filled = _image_item(3)
        filled.payload.data = "data:image/png;base64,AA=="
        assert composite([failed, empty, filled]) == [filled]
