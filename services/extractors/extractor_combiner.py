"""
Extractor Combiner - Compares and selects best extraction result
"""
import logging
from typing import List, Optional
from dataclasses import dataclass

from config.extraction_config import ScorecardConfig, DEFAULT_SCORECARD_CONFIG
from services.document_analyzer import DocumentAnalyzer
from .base_extractor import BasePDFExtractor, ExtractionResult, ScorecardReadError

logger = logging.getLogger(__name__)


@dataclass
class ComparisonMetrics:
    """Metrics for comparing extraction results"""
    extractor_name: str
    text_length: int
    num_fragments: int
    text_quality_score: float
    anchor_score: float
    overall_score: float


class ExtractorCombiner:
    """
    Runs multiple extractors and selects the best result
    """

    def __init__(self, config: Optional[ScorecardConfig] = None):
        self.config = config or DEFAULT_SCORECARD_CONFIG
        self.analyzer = DocumentAnalyzer(self.config)

    def extract_with_best_method(
        self,
        filepath: str,
        extractors: List[BasePDFExtractor]
    ) -> ExtractionResult:
        """
        Extract using multiple extractors and return the best result

        Args:
            filepath: Path to PDF file
            extractors: List of extractors to try, in order of preference

        Returns:
            Best extraction result
        """
        if not extractors:
            raise ValueError("At least one extractor must be provided")

        results = []
        metrics = []
        failures = []

        for extractor in extractors:
            try:
                logger.info(f"Extracting with {extractor.name}...")
                result = extractor.extract(filepath)
            except ScorecardReadError as e:
                logger.error(f"{extractor.name} extraction failed: {e}")
                failures.append(str(e))
                continue

            metric = self.calculate_metrics(result)
            results.append(result)
            metrics.append(metric)

            logger.info(f"{extractor.name} metrics: "
                        f"text_len={metric.text_length}, "
                        f"fragments={metric.num_fragments}, "
                        f"quality={metric.text_quality_score:.2f}, "
                        f"anchors={metric.anchor_score:.2f}, "
                        f"overall={metric.overall_score:.2f}")

        if not results:
            raise ScorecardReadError("All extractors failed: " + "; ".join(failures))

        best_result = self._select_best(results, metrics)
        logger.info(f"Selected {best_result.extractor_name} as best extractor")

        best_quality = self.analyzer.analyze_text_quality(best_result.text)
        if best_quality < self.config.text_quality_threshold:
            logger.warning(f"Text quality {best_quality:.2f} below "
                           f"{self.config.text_quality_threshold}; values may be garbled")
        best_result.metadata["text_quality"] = best_quality
        return best_result

    def calculate_metrics(self, result: ExtractionResult) -> ComparisonMetrics:
        """Calculate quality metrics for an extraction result"""
        text_length = len(result.text)
        num_fragments = len(result.fragments)
        quality = self.analyzer.analyze_text_quality(result.text)

        # Share of known anchors and location names the text contains
        lowered = result.text.lower()
        needles = [self.config.dealer_metrics_section.anchor, self.config.campaign_section.anchor]
        needles += [name.lower() for name in self.config.location_names]
        anchor_score = sum(1 for n in needles if n in lowered) / len(needles) if needles else 0.0

        completeness = min(1.0, (text_length / 5000) * 0.5 + (num_fragments / 500) * 0.5)

        overall_score = (
            anchor_score * 0.5 +
            quality * 0.3 +
            completeness * 0.2
        )

        return ComparisonMetrics(
            extractor_name=result.extractor_name,
            text_length=text_length,
            num_fragments=num_fragments,
            text_quality_score=quality,
            anchor_score=anchor_score,
            overall_score=overall_score
        )

    def _select_best(
        self,
        results: List[ExtractionResult],
        metrics: List[ComparisonMetrics]
    ) -> ExtractionResult:
        """Highest overall score wins; ties keep the earlier extractor"""
        best_idx = 0
        for idx, metric in enumerate(metrics[1:], 1):
            if metric.overall_score > metrics[best_idx].overall_score:
                best_idx = idx
        return results[best_idx]
