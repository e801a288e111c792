"""Ingestion module - turn externally proposed rectangles into layout blocks."""

from dashgrid.templates.ingestion import LayoutIngester, infer_hierarchy, normalize_proposal

__all__ = [
    "LayoutIngester",
    "infer_hierarchy",
    "normalize_proposal",
]
