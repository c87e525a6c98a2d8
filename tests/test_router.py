"""Tests for SlideRouter orchestration."""

from __future__ import annotations

import logging

import pytest

from conftest import MockRenderingBackend, RecordingBuilder, element, page_root, text_node

from slidekit_html.config import SlideExportConfig
from slidekit_html.errors import ConversionException, ErrorCode
from slidekit_html.models import RenderItemKind
from slidekit_html.router import SlideRouter


def _slide():
    return page_root(
        element("div", x=0, y=0, width=960, height=80, background_color="rgb(20, 40, 80)"),
        element("h1", x=40, y=10, width=600, height=60, children=[text_node("Quarterly review")]),
        element("img", x=40, y=100, width=200, height=120, attributes={"src": "chart.png"}),
        element("div", x=300, y=100, width=100, height=100, z_index="10",
                background_color="rgb(255, 0, 0)"),
        background_color="rgb(255, 255, 255)",
    )


@pytest.fixture()
def router(backend, chart_translator):
    return SlideRouter(backend, chart_translator, SlideExportConfig(svg_as_vector=True))


@pytest.mark.unit
class TestCanHandle:
    def test_element_root(self, router):
        assert router.can_handle(page_root()) is True

    def test_rejects_text_and_empty(self, router):
        assert router.can_handle(None) is False
        assert router.can_handle(text_node("x")) is False
        assert router.can_handle(element(width=0, height=0)) is False


@pytest.mark.unit
class TestProcess:
    """Test the full validate -> emit pipeline with mock collaborators."""

    def test_draw_order(self, router, builder):
        result = router.process(_slide(), builder)
        assert builder.names == [
            "new_page",
            "add_shape",
            "add_text",
            "add_image",
            "add_shape",
        ]
        # The z-indexed box paints last.
        assert result.draw_commands[-1].stack_order == 10
        assert result.items_queued == 4
        assert result.items_drawn == 4
        assert result.jobs_run == 1
        assert result.errors == []

    def test_root_background_not_drawn(self, router):
        result = router.process(page_root(background_color="rgb(255, 0, 0)"))
        assert result.draw_commands == []

    def test_without_builder(self, router):
        result = router.process(_slide())
        assert [item.kind for item in result.draw_commands] == [
            RenderItemKind.SHAPE,
            RenderItemKind.TEXT,
            RenderItemKind.IMAGE,
            RenderItemKind.SHAPE,
        ]

    def test_layout_on_result(self, router):
        result = router.process(_slide())
        assert result.layout.scale == pytest.approx(1.0)

    def test_idempotent(self, router):
        first = router.process(_slide())
        second = router.process(_slide())
        assert first.conversion_key == second.conversion_key
        assert [c.model_dump() for c in first.draw_commands] == [
            c.model_dump() for c in second.draw_commands
        ]

    def test_failed_image_dropped(self, chart_translator, builder, caplog):
        backend = MockRenderingBackend(failing_sources={"chart.png"})
        router = SlideRouter(backend, chart_translator)
        with caplog.at_level(logging.WARNING, logger="slidekit_html"):
            result = router.process(_slide(), builder)

        assert "add_image" not in builder.names
        assert builder.names.count("add_shape") == 2
        assert result.items_dropped == 1
        assert result.jobs_failed == 1
        assert result.warnings == [ErrorCode.W_ASSET_IMAGE_FAILED.value]
        assert result.error_details[0].tag == "IMG"
        assert "W_ASSET_IMAGE_FAILED" in caplog.text

    def test_no_root_raises(self, router):
        with pytest.raises(ConversionException) as exc_info:
            router.process(None)
        assert exc_info.value.error.code == ErrorCode.E_INPUT_NO_ROOT.value

    def test_text_root_raises(self, router):
        with pytest.raises(ConversionException) as exc_info:
            router.process(text_node("x"))
        assert exc_info.value.error.code == ErrorCode.E_INPUT_INVALID_TREE.value

    def test_builder_failure_recorded(self, router):
        builder = RecordingBuilder(raise_on="add_text")
        result = router.process(_slide(), builder)
        assert result.errors == [ErrorCode.E_BUILDER_FAILED.value]
        assert result.error_details[-1].stage == "emit"
        assert builder.names == ["new_page", "add_shape"]

    def test_summary_logged(self, router, caplog):
        with caplog.at_level(logging.INFO, logger="slidekit_html"):
            router.process(_slide())
        assert "page=0 | items=4 | drawn=4" in caplog.text


@pytest.mark.unit
class TestAsyncAndBatch:
    @pytest.mark.asyncio
    async def test_aprocess(self, router, builder):
        result = await router.aprocess(_slide(), builder, page_index=3)
        assert result.page_index == 3
        assert builder.names[0] == "new_page"

    def test_process_many(self, router, builder):
        results = router.process_many([_slide(), page_root(element(background_color="rgb(1, 2, 3)"))], builder)
        assert [r.page_index for r in results] == [0, 1]
        assert builder.names.count("new_page") == 2
        assert results[0].conversion_key != results[1].conversion_key

    def test_page_index_changes_key(self, router):
        slide = _slide()
        assert (
            router.process(slide, page_index=0).conversion_key
            != router.process(slide, page_index=1).conversion_key
        )
