"""
PDF Processing Service
Validates uploaded scorecards and turns them into per-page positioned fragments
using both pdfplumber and pdfminer.six, keeping the better result
"""
import os
import logging
from typing import List, Optional

from config.extraction_config import ScorecardConfig, DEFAULT_SCORECARD_CONFIG
from services.extractors.base_extractor import BasePDFExtractor, ExtractionResult
from services.extractors.extractor_combiner import ExtractorCombiner
from services.extractors.pdfminer_extractor import PDFMinerExtractor
from services.extractors.pdfplumber_extractor import PDFPlumberExtractor

logger = logging.getLogger(__name__)


class ScorecardPDFProcessor:
    """
    Document-rendering collaborator for the extraction pipeline.
    process_pdf() raises ScorecardReadError when no extractor can read the file.
    """

    def __init__(self, config: Optional[ScorecardConfig] = None,
                 extractors: Optional[List[BasePDFExtractor]] = None):
        self.config = config or DEFAULT_SCORECARD_CONFIG
        self.supported_extensions = ['.pdf']
        self.extractors = extractors or [
            PDFPlumberExtractor(y_tolerance=self.config.line_y_tolerance),
            PDFMinerExtractor(y_tolerance=self.config.line_y_tolerance),
        ]
        self.combiner = ExtractorCombiner(self.config)

    def validate_file(self, filepath: str) -> bool:
        """Validate that the file exists and is a PDF"""
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"File not found: {filepath}")

        ext = os.path.splitext(filepath)[1].lower()
        if ext not in self.supported_extensions:
            raise ValueError(f"Unsupported file type: {ext}")

        return True

    def process_pdf(self, filepath: str) -> ExtractionResult:
        """Run all extractors and return the best per-page fragment set"""
        self.validate_file(filepath)
        result = self.combiner.extract_with_best_method(filepath, self.extractors)
        logger.info(f"Processed {os.path.basename(filepath)}: {result.num_pages} pages "
                    f"via {result.extractor_name}")
        return result
