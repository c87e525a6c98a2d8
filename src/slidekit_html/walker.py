"""Tree Walker: depth-first, pre-order visit of the visual tree.

Every visited node receives a unique, strictly increasing traversal index
(hidden nodes consume one too).  The stacking order is inherited from the
parent unless the node sets a numeric ``z-index``.  Hidden subtrees are
pruned; a node whose rule consumed its subtree stops the descent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from slidekit_html.classifier import NodeClassifier
from slidekit_html.css import parse_int
from slidekit_html.dom import is_hidden
from slidekit_html.errors import ConversionError
from slidekit_html.jobs import DeferredJob
from slidekit_html.models import RenderItem, VisualNode

logger = logging.getLogger("slidekit_html")


@dataclass
class WalkResult:
    items: list[RenderItem] = field(default_factory=list)
    jobs: list[DeferredJob] = field(default_factory=list)
    warnings: list[ConversionError] = field(default_factory=list)
    nodes_visited: int = 0


class TreeWalker:
    """Collect render items and deferred jobs for one root."""

    def __init__(self, classifier: NodeClassifier, log_draw_commands: bool = False) -> None:
        self.classifier = classifier
        self.log_draw_commands = log_draw_commands

    def walk(self, root: VisualNode) -> WalkResult:
        result = WalkResult()
        # Explicit stack; children are pushed reversed to keep pre-order.
        stack: list[tuple[VisualNode, int]] = [(root, 0)]
        while stack:
            node, inherited_order = stack.pop()
            traversal_index = result.nodes_visited
            result.nodes_visited += 1

            if is_hidden(node):
                continue

            stack_order = inherited_order
            if node.is_element and node.style.z_index != "auto":
                z_index = parse_int(node.style.z_index)
                if z_index is not None:
                    stack_order = z_index

            classified = self.classifier.classify(node, traversal_index, stack_order)
            result.items.extend(classified.items)
            result.jobs.extend(classified.jobs)
            result.warnings.extend(classified.warnings)

            if self.log_draw_commands and classified.items:
                logger.debug(
                    "slidekit_html | stage=walk | index=%d | tag=%s | rule=%s | items=%d",
                    traversal_index,
                    node.tag or "#text",
                    classified.rule,
                    len(classified.items),
                )

            if classified.stop_recursion:
                continue
            for child in reversed(node.children):
                stack.append((child, stack_order))
        return result
