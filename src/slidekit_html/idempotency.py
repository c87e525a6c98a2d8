"""Deterministic conversion-key computation.

This module provides :func:`compute_conversion_key`, which digests a node
tree snapshot together with the export configuration.  Identical trees and
configuration always yield the same key, and the pipeline guarantees the
same ordered draw-command sequence for the same key.

The package **provides** the key but does **not** cache results -- that
responsibility belongs to the caller.
"""

from __future__ import annotations

import hashlib
import json

from slidekit_html.config import SlideExportConfig
from slidekit_html.models import VisualNode


def compute_conversion_key(
    root: VisualNode,
    config: SlideExportConfig,
    page_index: int = 0,
) -> str:
    """Compute a deterministic key for one page conversion.

    Parameters
    ----------
    root:
        Root of the rendered node tree for the page.
    config:
        Export configuration; page size, vector preference and list
        overrides all influence the output and are part of the key.
    page_index:
        Position of the page in a multi-page export.

    Returns
    -------
    str
        SHA-256 hex digest.
    """
    # 1. Canonical JSON of the snapshot; parent links are private and skipped.
    snapshot = json.dumps(
        root.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
    )
    settings = json.dumps(
        config.model_dump(mode="json", exclude={"file_name"}),
        sort_keys=True,
        separators=(",", ":"),
    )

    # 2. Combine with the parser version so format changes invalidate keys.
    composite = "|".join(
        [
            hashlib.sha256(snapshot.encode("utf-8")).hexdigest(),
            hashlib.sha256(settings.encode("utf-8")).hexdigest(),
            config.parser_version,
            str(page_index),
        ]
    )
    return hashlib.sha256(composite.encode("utf-8")).hexdigest()
