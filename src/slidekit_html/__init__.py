"""slidekit-html -- convert rendered HTML node trees into editable slides."""

from slidekit_html.builders import PptxDocumentBuilder
from slidekit_html.classifier import ClassificationResult, NodeClassifier, Rule
from slidekit_html.config import ListConfig, SlideExportConfig
from slidekit_html.errors import (
    AssetError,
    ConversionError,
    ConversionException,
    ErrorCode,
)
from slidekit_html.idempotency import compute_conversion_key
from slidekit_html.layout import compute_layout
from slidekit_html.models import (
    BorderKind,
    ChartPayload,
    ComputedStyle,
    ConversionResult,
    ItemGeometry,
    LayoutConfig,
    NodeKind,
    Rect,
    RenderItem,
    RenderItemKind,
    ShapeType,
    TextRun,
    TextRunOptions,
    VisualNode,
)
from slidekit_html.protocols import (
    ChartTranslator,
    DocumentBuilder,
    RenderingBackend,
)
from slidekit_html.router import SlideRouter
from slidekit_html.scheduler import EnrichmentScheduler
from slidekit_html.walker import TreeWalker

__all__ = [
    # Router
    "SlideRouter",
    # Config
    "SlideExportConfig",
    "ListConfig",
    # Pipeline stages
    "compute_layout",
    "TreeWalker",
    "NodeClassifier",
    "Rule",
    "ClassificationResult",
    "EnrichmentScheduler",
    "compute_conversion_key",
    # Builders
    "PptxDocumentBuilder",
    # Models -- enums
    "NodeKind",
    "RenderItemKind",
    "ShapeType",
    "BorderKind",
    "ErrorCode",
    # Models -- data
    "VisualNode",
    "ComputedStyle",
    "Rect",
    "LayoutConfig",
    "ItemGeometry",
    "RenderItem",
    "TextRun",
    "TextRunOptions",
    "ChartPayload",
    "ConversionResult",
    # Errors
    "ConversionError",
    "ConversionException",
    "AssetError",
    # Protocols
    "RenderingBackend",
    "DocumentBuilder",
    "ChartTranslator",
]
