"""Exporters that turn a nest into other formats."""

from .markdown import MarkdownExporter

__all__ = [
    "MarkdownExporter",
]
