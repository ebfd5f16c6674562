"""
PDF Extractors Package
"""
from .base_extractor import (
    BasePDFExtractor,
    ExtractionResult,
    PositionedFragment,
    ScorecardReadError
)

__all__ = [
    'BasePDFExtractor',
    'ExtractionResult',
    'PositionedFragment',
    'ScorecardReadError'
]
