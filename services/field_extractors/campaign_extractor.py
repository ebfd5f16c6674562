"""Campaign Completion extractor and cross-location aggregation"""
import logging
from statistics import mean
from typing import Dict, List, Optional, Tuple

from models import (
    CampaignAcrossLocations,
    CampaignAggregate,
    CampaignRecord,
    CampaignSummary,
    LocationCampaigns,
)
from services.line_normalizer import TextLine
from services.section_locator import Section
from .base_field_extractor import (
    BaseSectionExtractor,
    TokenKind,
    classify_token,
    is_numeric_token,
    parse_metric_value,
)

logger = logging.getLogger(__name__)


MIN_NUMERIC_CODE_LENGTH = 4


def is_campaign_code(token: str) -> bool:
    """
    Codes look like 24KWL, E123 or K25A (uppercase alphanumerics with a digit
    and a letter), or are plain recall numbers like 23123. A bare number needs
    at least four digits so page numbers and counts are not read as codes.
    """
    if not (token.isascii() and token.isalnum()):
        return False
    if token.isdigit():
        return len(token) >= MIN_NUMERIC_CODE_LENGTH
    if token != token.upper():
        return False
    return any(c.isdigit() for c in token) and any(c.isalpha() for c in token)


class CampaignTableExtractor(BaseSectionExtractor):
    """
    Reads repeating (code, name, close%, national%, goal%) records per location
    and builds the per-location map, the per-campaign map and the aggregate in one pass.
    """

    def extract(self, lines: List[TextLine], section: Optional[Section]) -> CampaignSummary:
        if section is None:
            logger.info("Campaign section not found, returning empty summary")
            return CampaignSummary()

        tokens = self.section_tokens(lines, section)
        windows = self.partition_windows(tokens)
        per_location: List[LocationCampaigns] = []
        per_campaign: Dict[str, CampaignAcrossLocations] = {}

        for location, window in self.ordered_windows(windows):
            if window is None:
                continue

            records = self.parse_records(self.window_tokens(tokens, window))
            if not records:
                continue

            logger.info(f"Found {len(records)} campaigns for {location.name}")
            per_location.append(LocationCampaigns(
                location_name=location.name,
                location_id=location.location_id,
                campaigns=records,
                average_close_rate=self._average([r.close_rate for r in records])
            ))

            for record in records:
                entry = per_campaign.get(record.campaign_code)
                if entry is None:
                    entry = CampaignAcrossLocations(
                        campaign_code=record.campaign_code,
                        campaign_name=record.campaign_name,
                        national_rate=record.national_rate,
                        goal=record.goal
                    )
                    per_campaign[record.campaign_code] = entry
                # First record for a location wins if a code repeats in its window
                entry.close_rates.setdefault(location.location_id, record.close_rate)

        for entry in per_campaign.values():
            entry.average_close_rate = self._average(list(entry.close_rates.values()))

        campaigns = list(per_campaign.values())
        return CampaignSummary(
            locations=per_location,
            campaigns=campaigns,
            aggregate=self.aggregate(per_location, campaigns)
        )

    def parse_records(self, tokens: List[str]) -> List[CampaignRecord]:
        """Scan a token stream for campaign records; unmatched tokens are skipped one at a time"""
        records = []
        cursor = 0
        while cursor < len(tokens):
            match = self._match_record(tokens, cursor)
            if match is None:
                cursor += 1
                continue
            record, cursor = match
            records.append(record)
        return records

    def _match_record(self, tokens: List[str], start: int) -> Optional[Tuple[CampaignRecord, int]]:
        if not is_campaign_code(tokens[start]):
            return None

        idx = start + 1
        name_tokens = []
        while idx < len(tokens) and not is_numeric_token(tokens[idx]):
            name_tokens.append(tokens[idx])
            idx += 1

        if not name_tokens:
            return None

        rates = tokens[idx:idx + 3]
        if len(rates) < 3 or any(classify_token(t) is not TokenKind.PERCENTAGE for t in rates):
            return None

        record = CampaignRecord(
            campaign_code=tokens[start],
            campaign_name=' '.join(name_tokens),
            close_rate=rates[0],
            national_rate=rates[1],
            goal=rates[2]
        )
        return record, idx + 3

    def aggregate(
        self,
        per_location: List[LocationCampaigns],
        campaigns: List[CampaignAcrossLocations]
    ) -> CampaignAggregate:
        """
        Overall close rate is the mean of per-location averages, so a location
        with many campaigns does not outweigh one with few.
        """
        if not per_location:
            return CampaignAggregate()

        averages = {loc.location_id: loc.average_close_rate for loc in per_location}

        # max/min return the first extreme, which is canonical order
        top = max(per_location, key=lambda loc: loc.average_close_rate)
        bottom = min(per_location, key=lambda loc: loc.average_close_rate)

        goal = self.config.campaign_goal_rate
        at_goal = sum(1 for c in campaigns if c.average_close_rate >= goal)

        return CampaignAggregate(
            total_campaigns=len(campaigns),
            total_locations=len(per_location),
            overall_close_rate=mean(averages.values()),
            location_averages=averages,
            top_location=top.location_id,
            bottom_location=bottom.location_id,
            campaigns_at_goal=at_goal
        )

    @staticmethod
    def _average(rates: List[str]) -> float:
        values = [v for v in (parse_metric_value(r) for r in rates) if v is not None]
        return mean(values) if values else 0.0
