"""
Base classes and interfaces for PDF extraction
Defines abstract base class for the engines that turn a PDF into positioned text fragments
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Tuple, Dict, Any


class ScorecardReadError(Exception):
    """Raised when a document cannot be read at all (corrupt or unreadable input)"""


@dataclass
class PositionedFragment:
    """
    One atomic text run on a page.
    Coordinates use a bottom-left origin: larger y is higher on the page.
    """
    text: str
    x: float
    y: float
    page_number: int = 1


@dataclass
class ExtractionResult:
    """
    Result from PDF extraction: per-page fragments plus the reconstructed text
    """
    text: str
    pages: List[Dict[str, Any]]
    fragments: List[PositionedFragment] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    extractor_name: str = "unknown"

    @property
    def num_pages(self) -> int:
        return len(self.pages)

    @property
    def total_chars(self) -> int:
        return len(self.text)

    def page_fragments(self) -> List[List[PositionedFragment]]:
        """Fragments grouped by page, in page order"""
        return [page.get("fragments", []) for page in self.pages]


class BasePDFExtractor(ABC):
    """
    Abstract base class for PDF extraction engines
    All extractors (pdfplumber, pdfminer.six) implement this interface
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this extractor"""
        pass

    @abstractmethod
    def extract(self, filepath: str) -> ExtractionResult:
        """
        Extract all fragments from a PDF file

        Args:
            filepath: Path to the PDF file

        Returns:
            ExtractionResult containing per-page fragments and text
        """
        pass

    @abstractmethod
    def extract_fragments(self, page) -> List[PositionedFragment]:
        """
        Extract positioned text fragments from a single page

        Args:
            page: Page object (type depends on extractor implementation)

        Returns:
            List of PositionedFragment with bottom-left origin coordinates
        """
        pass

    @abstractmethod
    def get_page_dimensions(self, page) -> Tuple[float, float]:
        """Return (width, height) of a page in points"""
        pass

    def validate_file(self, filepath: str) -> bool:
        """
        Validate that the file exists and can be processed

        Args:
            filepath: Path to the PDF file

        Returns:
            True if valid, raises exception otherwise
        """
        import os
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"File not found: {filepath}")

        if not filepath.lower().endswith('.pdf'):
            raise ValueError(f"File must be a PDF: {filepath}")

        return True
