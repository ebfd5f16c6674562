"""
Metrics Aggregator
Merges dealership heuristics, location records and campaign data into one MetricsSnapshot
"""
import os
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from config.extraction_config import ScorecardConfig, DEFAULT_SCORECARD_CONFIG
from models import ExtractionIssue, IssueKind, MetricsSnapshot
from services.document_analyzer import DocumentAnalyzer
from services.extractors.base_extractor import ExtractionResult, PositionedFragment, ScorecardReadError
from services.field_extractors.campaign_extractor import CampaignTableExtractor
from services.field_extractors.dealership_extractor import DealershipExtractor
from services.field_extractors.location_extractor import LocationRecordExtractor
from services.line_normalizer import LineNormalizer, TextLine, lines_to_text
from services.pdf_processor import ScorecardPDFProcessor
from services.section_locator import SectionLocator

logger = logging.getLogger(__name__)


class MetricsAggregator:
    """
    Runs the extraction pipeline over one document and returns one snapshot.

    No state is shared between calls; given the same pages, previous snapshot
    and extracted_at, the result is identical.
    """

    def __init__(self, config: Optional[ScorecardConfig] = None,
                 processor: Optional[ScorecardPDFProcessor] = None):
        self.config = config or DEFAULT_SCORECARD_CONFIG
        self.processor = processor or ScorecardPDFProcessor(self.config)
        self.normalizer = LineNormalizer(self.config.line_y_tolerance)
        self.locator = SectionLocator()
        self.location_extractor = LocationRecordExtractor(self.config)
        self.campaign_extractor = CampaignTableExtractor(self.config)
        self.dealership_extractor = DealershipExtractor()
        self.analyzer = DocumentAnalyzer(self.config)

    def build_snapshot(
        self,
        pages: Iterable[Iterable[PositionedFragment]],
        previous: Optional[MetricsSnapshot] = None,
        extracted_at: Optional[datetime] = None,
        source_filename: Optional[str] = None,
        extractor_name: Optional[str] = None
    ) -> MetricsSnapshot:
        """
        Build a snapshot from per-page fragments

        Args:
            pages: Fragments for each page, in page order
            previous: Last stored snapshot, used for locations skipped in this document
            extracted_at: Timestamp to stamp; defaults to now (UTC)
            source_filename: Original upload name, recorded on the snapshot
            extractor_name: Engine that produced the fragments

        Returns:
            MetricsSnapshot; a shell with raw_text and error when no location was extracted
        """
        lines = self.normalizer.normalize_pages(pages)
        return self.build_snapshot_from_lines(
            lines,
            previous=previous,
            extracted_at=extracted_at,
            source_filename=source_filename,
            extractor_name=extractor_name
        )

    def build_snapshot_from_lines(
        self,
        lines: List[TextLine],
        previous: Optional[MetricsSnapshot] = None,
        extracted_at: Optional[datetime] = None,
        source_filename: Optional[str] = None,
        extractor_name: Optional[str] = None
    ) -> MetricsSnapshot:
        extracted_at = extracted_at or datetime.now(timezone.utc)
        text = lines_to_text(lines)
        issues: List[ExtractionIssue] = []

        dealer_section = self.locator.locate_spec(lines, self.config.dealer_metrics_section)
        if dealer_section is None:
            logger.warning("Individual dealer metrics section not found")
        location_result = self.location_extractor.extract(lines, dealer_section)
        issues.extend(location_result.issues)

        campaign_section = self.locator.locate_spec(lines, self.config.campaign_section)
        if campaign_section is None:
            issues.append(ExtractionIssue(
                kind=IssueKind.SECTION_NOT_FOUND,
                detail=f"Anchor '{self.config.campaign_section.anchor}' not found",
                section=self.config.campaign_section.name
            ))
        campaigns = self.campaign_extractor.extract(lines, campaign_section)

        dealership = self.dealership_extractor.extract(text)

        records = list(location_result.records)
        carried_forward = []
        if previous is not None:
            for location_id in location_result.skipped:
                prior = previous.location(location_id)
                if prior is not None:
                    records.append(prior.model_copy(deep=True))
                    carried_forward.append(location_id)
            if carried_forward:
                logger.info(f"Carried forward previous values for: {', '.join(carried_forward)}")
            order = {loc.location_id: idx for idx, loc in enumerate(self.config.locations)}
            records.sort(key=lambda r: order.get(r.location_id, len(order)))

        if not location_result.records and not self.analyzer.is_scorecard_document([{"text": text}]):
            issues.append(ExtractionIssue(
                kind=IssueKind.NOT_A_SCORECARD,
                detail="No scorecard headings or known locations found"
            ))

        snapshot = MetricsSnapshot(
            dealership=dealership,
            locations=records,
            campaigns=campaigns,
            extracted_at=extracted_at,
            source_filename=source_filename,
            extractor_name=extractor_name,
            carried_forward=carried_forward,
            issues=issues
        )

        if not snapshot.has_data:
            logger.warning("No location records extracted; returning snapshot shell")
            snapshot.raw_text = text
            snapshot.error = "No location metrics could be extracted from the document"
            return snapshot

        logger.info(f"Snapshot built: {len(records)} locations "
                    f"({len(carried_forward)} carried forward), "
                    f"{campaigns.aggregate.total_campaigns} campaigns, "
                    f"{len(issues)} issues")
        return snapshot

    def build_from_result(
        self,
        result: ExtractionResult,
        previous: Optional[MetricsSnapshot] = None,
        extracted_at: Optional[datetime] = None,
        source_filename: Optional[str] = None
    ) -> MetricsSnapshot:
        return self.build_snapshot(
            result.page_fragments(),
            previous=previous,
            extracted_at=extracted_at,
            source_filename=source_filename,
            extractor_name=result.extractor_name
        )

    def extract_file(
        self,
        filepath: str,
        previous: Optional[MetricsSnapshot] = None,
        extracted_at: Optional[datetime] = None,
        source_filename: Optional[str] = None
    ) -> MetricsSnapshot:
        """
        Read a PDF and build its snapshot.
        Unreadable documents yield a shell with error set instead of raising;
        missing files and non-PDF paths still raise FileNotFoundError / ValueError.
        """
        source_filename = source_filename or os.path.basename(filepath)
        try:
            result = self.processor.process_pdf(filepath)
        except ScorecardReadError as e:
            logger.error(f"Could not read {source_filename}: {e}")
            return MetricsSnapshot(
                extracted_at=extracted_at or datetime.now(timezone.utc),
                source_filename=source_filename,
                issues=[ExtractionIssue(kind=IssueKind.EXTRACTION_FAILED, detail=str(e))],
                raw_text="",
                error=f"Document could not be read: {e}"
            )

        return self.build_from_result(
            result,
            previous=previous,
            extracted_at=extracted_at,
            source_filename=source_filename
        )
