"""Enrichment Scheduler and final compositing.

All deferred jobs of a page run concurrently in one scatter/gather phase
after the walk.  Ordering of the final draw list depends only on keys
assigned during the walk, so job completion order never matters.
"""

from __future__ import annotations

import asyncio
import logging

from slidekit_html.config import SlideExportConfig
from slidekit_html.jobs import DeferredJob, JobOutcome
from slidekit_html.models import RenderItem

logger = logging.getLogger("slidekit_html")


class EnrichmentScheduler:
    """Run every deferred job of a page at once; no retries, no limits."""

    def __init__(self, config: SlideExportConfig | None = None) -> None:
        self._config = config or SlideExportConfig()

    async def run(self, jobs: list[DeferredJob]) -> list[JobOutcome]:
        if not jobs:
            return []
        outcomes = await asyncio.gather(*(job.run() for job in jobs))

        if self._config.log_asset_failures:
            for outcome in outcomes:
                if outcome.error is not None:
                    logger.warning(
                        "slidekit_html | stage=enrich | index=%s | tag=%s | code=%s | detail=%s",
                        outcome.traversal_index,
                        outcome.error.tag,
                        outcome.error.code,
                        outcome.error.message,
                    )
        return list(outcomes)


def composite(items: list[RenderItem]) -> list[RenderItem]:
    """Drop undrawable items and order the rest by paint order.

    Sorting is stable on ``(stack_order, traversal_index)``.
    """
    drawable = [item for item in items if item.is_drawable]
    return sorted(drawable, key=lambda item: item.sort_key)
