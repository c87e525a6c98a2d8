"""SlideRouter -- orchestrator and public API for the slidekit-html pipeline.

Converts one rendered node tree into one page of draw commands:

1. Validate the root node.
2. Compute the deterministic conversion key.
3. Fit the root onto the page (:func:`compute_layout`).
4. Walk the tree and classify every visible node (:class:`TreeWalker`).
5. Run all deferred asset jobs concurrently (:class:`EnrichmentScheduler`).
6. Composite: drop failed items and sort by paint order.
7. Emit the draw commands to a :class:`DocumentBuilder`.

Asset failures never abort a conversion; they drop the affected item and
are reported as ``W_ASSET_*`` warnings on the :class:`ConversionResult`.
"""

from __future__ import annotations

import asyncio
import logging
import time

from slidekit_html.classifier import NodeClassifier
from slidekit_html.config import SlideExportConfig
from slidekit_html.dom import has_zero_extent
from slidekit_html.errors import ConversionError, ConversionException, ErrorCode
from slidekit_html.idempotency import compute_conversion_key
from slidekit_html.layout import compute_layout
from slidekit_html.models import (
    ChartPayload,
    ConversionResult,
    ImagePayload,
    RenderItem,
    RenderItemKind,
    ShapePayload,
    TablePayload,
    TextPayload,
    VisualNode,
)
from slidekit_html.protocols import ChartTranslator, DocumentBuilder, RenderingBackend
from slidekit_html.scheduler import EnrichmentScheduler, composite
from slidekit_html.walker import TreeWalker

logger = logging.getLogger("slidekit_html")


class SlideRouter:
    """Orchestrator for the HTML-to-slide pipeline.

    Pipeline: validate -> key -> layout -> walk -> enrich -> composite -> emit
    """

    def __init__(
        self,
        backend: RenderingBackend,
        chart_translator: ChartTranslator | None = None,
        config: SlideExportConfig | None = None,
    ) -> None:
        self._config = config or SlideExportConfig()
        self._backend = backend
        self._charts = chart_translator
        self._scheduler = EnrichmentScheduler(self._config)

    def can_handle(self, node: VisualNode | None) -> bool:
        """Return True if *node* can serve as the root of a page."""
        return (
            isinstance(node, VisualNode)
            and node.is_element
            and not has_zero_extent(node)
        )

    def process(
        self,
        root: VisualNode | None,
        builder: DocumentBuilder | None = None,
        page_index: int = 0,
    ) -> ConversionResult:
        """Convert a single root node to one page. Synchronous.

        Drives an event loop for the concurrent enrichment phase; use
        :meth:`aprocess` from inside a running loop.

        Parameters
        ----------
        root:
            Root of the rendered node tree.
        builder:
            Optional target document; when omitted the ordered draw
            commands are only returned on the result.
        page_index:
            Position of the page in a multi-page export.

        Returns
        -------
        ConversionResult
            The fully-assembled result.

        Raises
        ------
        ConversionException
            If *root* is missing or is not an element.
        """
        return asyncio.run(self._aconvert(root, builder, page_index))

    async def aprocess(
        self,
        root: VisualNode | None,
        builder: DocumentBuilder | None = None,
        page_index: int = 0,
    ) -> ConversionResult:
        """Async variant of :meth:`process` for callers with a running loop."""
        return await self._aconvert(root, builder, page_index)

    def process_many(
        self,
        roots: list[VisualNode],
        builder: DocumentBuilder | None = None,
    ) -> list[ConversionResult]:
        """Convert several roots, one page each, in order."""

        async def convert_all() -> list[ConversionResult]:
            results = []
            for page_index, root in enumerate(roots):
                results.append(await self._aconvert(root, builder, page_index))
            return results

        return asyncio.run(convert_all())

    async def _aconvert(
        self,
        root: VisualNode | None,
        builder: DocumentBuilder | None,
        page_index: int,
    ) -> ConversionResult:
        overall_start = time.monotonic()
        config = self._config
        all_errors: list[str] = []
        all_warnings: list[str] = []
        all_error_details: list[ConversionError] = []

        # ==============================================================
        # Step 1: Validate Root
        # ==============================================================
        if root is None:
            raise ConversionException(
                ConversionError(
                    code=ErrorCode.E_INPUT_NO_ROOT.value,
                    message="No root node to convert",
                    stage="validate",
                )
            )
        if not root.is_element:
            raise ConversionException(
                ConversionError(
                    code=ErrorCode.E_INPUT_INVALID_TREE.value,
                    message="Root node must be an element, got a text node",
                    stage="validate",
                )
            )

        # ==============================================================
        # Step 2: Compute Conversion Key
        # ==============================================================
        conversion_key = compute_conversion_key(root, config, page_index)

        # ==============================================================
        # Step 3: Layout
        # ==============================================================
        layout = compute_layout(root.rect, config.page_width_in, config.page_height_in)

        # ==============================================================
        # Step 4: Walk and Classify
        # ==============================================================
        classifier = NodeClassifier(
            layout,
            self._backend,
            config=config,
            chart_translator=self._charts,
            root=root,
        )
        walked = TreeWalker(classifier, config.log_draw_commands).walk(root)
        for warning in walked.warnings:
            all_warnings.append(warning.code)
            all_error_details.append(warning)

        # ==============================================================
        # Step 5: Enrich (deferred jobs, concurrently)
        # ==============================================================
        outcomes = await self._scheduler.run(walked.jobs)
        failed = [outcome for outcome in outcomes if not outcome.ok]
        for outcome in failed:
            assert outcome.error is not None
            all_warnings.append(outcome.error.code)
            all_error_details.append(outcome.error)

        # ==============================================================
        # Step 6: Composite
        # ==============================================================
        draw_commands = composite(walked.items)

        # ==============================================================
        # Step 7: Emit
        # ==============================================================
        if builder is not None:
            try:
                emit(builder, draw_commands)
            except Exception as exc:
                error = ConversionError(
                    code=ErrorCode.E_BUILDER_FAILED.value,
                    message=f"Document builder error: {type(exc).__name__}: {exc}",
                    stage="emit",
                )
                all_errors.append(error.code)
                all_error_details.append(error)
                logger.error(
                    "slidekit_html | page=%d | code=%s | detail=%s",
                    page_index,
                    error.code,
                    error.message,
                )

        elapsed = time.monotonic() - overall_start
        logger.info(
            "slidekit_html | page=%d | items=%d | drawn=%d | dropped=%d | "
            "jobs=%d | failed=%d | time=%.3fs",
            page_index,
            len(walked.items),
            len(draw_commands),
            len(walked.items) - len(draw_commands),
            len(walked.jobs),
            len(failed),
            elapsed,
        )

        return ConversionResult(
            conversion_key=conversion_key,
            page_index=page_index,
            layout=layout,
            items_queued=len(walked.items),
            items_drawn=len(draw_commands),
            items_dropped=len(walked.items) - len(draw_commands),
            jobs_run=len(walked.jobs),
            jobs_failed=len(failed),
            draw_commands=draw_commands,
            errors=all_errors,
            warnings=all_warnings,
            error_details=all_error_details,
            processing_time_seconds=elapsed,
        )


def emit(builder: DocumentBuilder, items: list[RenderItem]) -> None:
    """Start a page on *builder* and draw *items* in the given order."""
    builder.new_page()
    for item in items:
        payload = item.payload
        geometry = item.geometry
        if item.kind == RenderItemKind.SHAPE:
            assert isinstance(payload, ShapePayload)
            builder.add_shape(
                payload.shape_type,
                geometry,
                fill=payload.fill,
                line=payload.line,
                shadow=payload.shadow,
                rect_radius=payload.rect_radius,
            )
        elif item.kind == RenderItemKind.IMAGE:
            assert isinstance(payload, ImagePayload) and payload.data
            builder.add_image(geometry, payload.data)
        elif item.kind == RenderItemKind.TEXT:
            assert isinstance(payload, TextPayload)
            builder.add_text(
                geometry, payload.runs, payload.paragraph, shape=payload.shape
            )
        elif item.kind == RenderItemKind.TABLE:
            assert isinstance(payload, TablePayload)
            builder.add_table(
                geometry, payload.rows, payload.column_widths, payload.row_heights
            )
        elif item.kind == RenderItemKind.CHART:
            assert isinstance(payload, ChartPayload)
            builder.add_chart(geometry, payload)
