"""Document builders that consume ordered draw commands."""

from slidekit_html.builders.pptx import PptxDocumentBuilder

__all__ = ["PptxDocumentBuilder"]
