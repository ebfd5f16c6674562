"""
Document Intelligence Layer
Detects scorecard pages, the sections and locations they mention, and text quality
"""
import re
import logging
from typing import List, Dict, Any, Optional
from dataclasses import dataclass

from config.extraction_config import ScorecardConfig, DEFAULT_SCORECARD_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class PageMetadata:
    """Metadata about a PDF page"""
    page_number: int
    is_scorecard: bool
    sections_detected: List[str]
    locations_mentioned: List[str]
    text_quality_score: float


class DocumentAnalyzer:
    """
    Analyzes document structure and identifies scorecard pages
    """

    SCORECARD_PATTERNS = [
        r'Service\s+Scorecard',
        r'Individual\s+Dealer\s+Metrics',
        r'Campaign\s+Completion',
    ]

    def __init__(self, config: Optional[ScorecardConfig] = None):
        self.config = config or DEFAULT_SCORECARD_CONFIG

    def analyze_page(self, page: Dict[str, Any]) -> PageMetadata:
        """
        Analyze a single page and return metadata

        Args:
            page: Page data dictionary with 'page_number' and 'text'

        Returns:
            PageMetadata with analysis results
        """
        page_num = page.get('page_number', 1)
        text = page.get('text', '')
        lowered = text.lower()

        sections = [
            section.name
            for section in (self.config.dealer_metrics_section, self.config.campaign_section)
            if section.anchor in lowered
        ]
        locations = [
            loc.location_id for loc in self.config.locations
            if loc.name.lower() in lowered
        ]

        return PageMetadata(
            page_number=page_num,
            is_scorecard=self._is_scorecard(text) or bool(sections),
            sections_detected=sections,
            locations_mentioned=locations,
            text_quality_score=self.analyze_text_quality(text)
        )

    def analyze_document(self, pages: List[Dict[str, Any]]) -> List[PageMetadata]:
        metadata = [self.analyze_page(p) for p in pages]
        for meta in metadata:
            logger.debug(f"Page {meta.page_number}: scorecard={meta.is_scorecard}, "
                         f"sections={meta.sections_detected}, "
                         f"locations={meta.locations_mentioned}")
        return metadata

    def is_scorecard_document(self, pages: List[Dict[str, Any]]) -> bool:
        return any(meta.is_scorecard or meta.locations_mentioned
                   for meta in self.analyze_document(pages))

    def analyze_text_quality(self, text: str) -> float:
        """
        Analyze text quality based on artifact patterns

        Args:
            text: Page text

        Returns:
            Score from 0.0 (poor) to 1.0 (excellent)
        """
        if not text:
            return 0.0

        artifact_count = 0
        for pattern in self.config.artifact_patterns:
            artifact_count += len(re.findall(pattern, text))

        # Artifacts per 1000 chars; 10+ per 1000 chars scores 0.0
        artifact_density = (artifact_count / len(text)) * 1000
        return max(0.0, 1.0 - (artifact_density / 10))

    def _is_scorecard(self, text: str) -> bool:
        """Check if text contains scorecard indicators"""
        if not text:
            return False
        return any(re.search(p, text, re.IGNORECASE) for p in self.SCORECARD_PATTERNS)
