"""
PDFMiner.six-based PDF extraction implementation
Better for documents whose text runs pdfplumber splits or merges badly
"""
from pdfminer.high_level import extract_pages
from pdfminer.layout import LAParams, LTTextLine, LTPage
from typing import List, Tuple
import logging

from .base_extractor import BasePDFExtractor, ExtractionResult, PositionedFragment, ScorecardReadError
from services.line_normalizer import LineNormalizer, lines_to_text

logger = logging.getLogger(__name__)


class PDFMinerExtractor(BasePDFExtractor):
    """
    PDF extractor using pdfminer.six library
    Emits one fragment per LTTextLine
    """

    def __init__(self, line_overlap: float = 0.5, char_margin: float = 2.0,
                 word_margin: float = 0.1, y_tolerance: float = 5.0):
        """
        Initialize pdfminer.six extractor with LAParams

        Args:
            line_overlap: Min overlap for line detection (0-1)
            char_margin: Max space between chars in same word
            word_margin: Max space between words in same line
            y_tolerance: Y-coordinate tolerance for grouping fragments on same line
        """
        self.laparams = LAParams(
            line_overlap=line_overlap,
            char_margin=char_margin,
            word_margin=word_margin,
            boxes_flow=0.5
        )
        self.normalizer = LineNormalizer(y_tolerance=y_tolerance)

    @property
    def name(self) -> str:
        return "pdfminer"

    def extract(self, filepath: str) -> ExtractionResult:
        """Extract all fragments from PDF using pdfminer.six"""
        self.validate_file(filepath)

        full_text = ""
        pages_data = []
        all_fragments = []

        try:
            page_num = 0
            for page_layout in extract_pages(filepath, laparams=self.laparams):
                page_num += 1

                fragments = self.extract_fragments(page_layout, page_num)
                all_fragments.extend(fragments)

                page_text = lines_to_text(self.normalizer.normalize(fragments))
                width, height = self.get_page_dimensions(page_layout)

                pages_data.append({
                    "page_number": page_num,
                    "text": page_text,
                    "fragments": fragments,
                    "width": width,
                    "height": height,
                })
                full_text += f"{page_text}\n"

        except Exception as e:
            logger.error(f"PDFMiner extraction failed: {e}")
            raise ScorecardReadError(f"pdfminer could not read {filepath}: {e}") from e

        logger.info(f"PDFMiner extracted {len(pages_data)} pages, "
                    f"{len(all_fragments)} fragments")

        return ExtractionResult(
            text=full_text,
            pages=pages_data,
            fragments=all_fragments,
            metadata={
                "laparams": {
                    "line_overlap": self.laparams.line_overlap,
                    "char_margin": self.laparams.char_margin
                },
                "num_pages": len(pages_data)
            },
            extractor_name=self.name
        )

    def extract_fragments(self, page_layout: LTPage, page_number: int = 1) -> List[PositionedFragment]:
        """Extract one fragment per text line; pdfminer already uses a bottom-left origin"""
        fragments = []

        def walk(element):
            if isinstance(element, LTTextLine):
                text = element.get_text().strip()
                if text:
                    fragments.append(PositionedFragment(
                        text=text,
                        x=float(element.x0),
                        y=float(element.y0),
                        page_number=page_number
                    ))
            elif hasattr(element, '__iter__'):
                for child in element:
                    walk(child)

        walk(page_layout)
        return fragments

    def get_page_dimensions(self, page_layout: LTPage) -> Tuple[float, float]:
        """Get page dimensions"""
        return (page_layout.width, page_layout.height)
