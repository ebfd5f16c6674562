"""
PDFPlumber-based PDF extraction implementation
Produces positioned fragments from pdfplumber word runs
"""
import pdfplumber
from typing import List, Tuple
import logging

from .base_extractor import BasePDFExtractor, ExtractionResult, PositionedFragment, ScorecardReadError
from services.line_normalizer import LineNormalizer, lines_to_text

logger = logging.getLogger(__name__)


class PDFPlumberExtractor(BasePDFExtractor):
    """
    PDF extractor using pdfplumber library
    Best for clean digital PDFs such as generated scorecards
    """

    def __init__(self, y_tolerance: float = 5.0):
        """
        Initialize pdfplumber extractor

        Args:
            y_tolerance: Y-coordinate tolerance for grouping fragments on same line
        """
        self.y_tolerance = y_tolerance
        self.normalizer = LineNormalizer(y_tolerance=y_tolerance)

    @property
    def name(self) -> str:
        return "pdfplumber"

    def extract(self, filepath: str) -> ExtractionResult:
        """Extract all fragments from PDF using pdfplumber"""
        self.validate_file(filepath)

        full_text = ""
        pages_data = []
        all_fragments = []

        try:
            with pdfplumber.open(filepath) as pdf:
                for page_num, page in enumerate(pdf.pages, 1):
                    fragments = self.extract_fragments(page)
                    all_fragments.extend(fragments)

                    page_text = lines_to_text(self.normalizer.normalize(fragments))
                    width, height = self.get_page_dimensions(page)

                    pages_data.append({
                        "page_number": page_num,
                        "text": page_text,
                        "fragments": fragments,
                        "width": width,
                        "height": height,
                    })
                    full_text += f"{page_text}\n"

        except Exception as e:
            logger.error(f"PDFPlumber extraction failed: {e}")
            raise ScorecardReadError(f"pdfplumber could not read {filepath}: {e}") from e

        logger.info(f"PDFPlumber extracted {len(pages_data)} pages, "
                    f"{len(all_fragments)} fragments")

        return ExtractionResult(
            text=full_text,
            pages=pages_data,
            fragments=all_fragments,
            metadata={
                "y_tolerance": self.y_tolerance,
                "num_pages": len(pages_data)
            },
            extractor_name=self.name
        )

    def extract_fragments(self, page) -> List[PositionedFragment]:
        """
        Extract word runs with coordinates.
        pdfplumber measures 'top' from the top edge, so y is flipped to a bottom-left origin.
        """
        fragments = []
        raw_words = page.extract_words(keep_blank_chars=True)
        page_num = page.page_number
        height = float(page.height)

        for w in raw_words:
            text = w['text'].strip()
            if not text:
                continue
            fragments.append(PositionedFragment(
                text=text,
                x=float(w['x0']),
                y=height - float(w['top']),
                page_number=page_num
            ))

        return fragments

    def get_page_dimensions(self, page) -> Tuple[float, float]:
        """Get page dimensions"""
        return (page.width, page.height)
