"""Individual Dealer Metrics extractor"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from models import NOT_AVAILABLE, ExtractionIssue, IssueKind, LocationMetricRecord
from services.line_normalizer import TextLine
from services.section_locator import Section
from .base_field_extractor import BaseSectionExtractor, is_metric_token

logger = logging.getLogger(__name__)


@dataclass
class LocationExtraction:
    """
    Records that passed the all-or-nothing rule, plus the ids of locations
    that were skipped so the aggregator can fall back to earlier values.
    """
    records: List[LocationMetricRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    issues: List[ExtractionIssue] = field(default_factory=list)


class LocationRecordExtractor(BaseSectionExtractor):
    """Maps the 11 metric tokens in each location window onto named fields"""

    def extract(self, lines: List[TextLine], section: Optional[Section]) -> LocationExtraction:
        """
        Extract one record per configured location, in canonical order

        Args:
            lines: Normalized document lines
            section: Dealer metrics section, or None when the anchor was absent

        Returns:
            LocationExtraction with records, skipped ids and issues
        """
        result = LocationExtraction()
        section_name = self.config.dealer_metrics_section.name

        if section is None:
            result.skipped = [loc.location_id for loc in self.config.locations]
            result.issues.append(ExtractionIssue(
                kind=IssueKind.SECTION_NOT_FOUND,
                detail=f"Anchor '{self.config.dealer_metrics_section.anchor}' not found",
                section=section_name
            ))
            return result

        tokens = self.section_tokens(lines, section)
        windows = self.partition_windows(tokens)
        expected = self.config.expected_metric_count

        for location, window in self.ordered_windows(windows):
            if window is None:
                logger.info(f"Location not found in section: {location.name}")
                result.skipped.append(location.location_id)
                result.issues.append(ExtractionIssue(
                    kind=IssueKind.LOCATION_NOT_FOUND,
                    detail=f"'{location.name}' not found",
                    section=section_name,
                    location_id=location.location_id
                ))
                continue

            values = [t for t in self.window_tokens(tokens, window) if is_metric_token(t)]
            if len(values) < expected:
                logger.warning(f"{location.name}: found {len(values)} of {expected} values, skipping")
                result.skipped.append(location.location_id)
                result.issues.append(ExtractionIssue(
                    kind=IssueKind.INSUFFICIENT_TOKENS,
                    detail=f"Found {len(values)} of {expected} values",
                    section=section_name,
                    location_id=location.location_id
                ))
                continue

            record = self._build_record(location.name, location.location_id, values[:expected])
            logger.info(f"Extracted metrics for {location.name}")
            result.records.append(record)

        return result

    def _build_record(self, name: str, location_id: str, values: List[str]) -> LocationMetricRecord:
        # N/A is normalized to the canonical spelling; everything else is kept verbatim
        cleaned = [NOT_AVAILABLE if v.upper() == NOT_AVAILABLE else v for v in values]
        fields = dict(zip(self.config.metric_fields, cleaned))
        return LocationMetricRecord(name=name, location_id=location_id, **fields)
