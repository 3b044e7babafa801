"""Analyzers for scene document structure."""

from mobile_glb.analyzers.structure import StructuralStats, analyze_document

__all__ = [
    "StructuralStats",
    "analyze_document",
]
