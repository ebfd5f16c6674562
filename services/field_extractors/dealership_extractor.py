"""Dealership-level summary fields, read with best-effort patterns over free text"""
import re
import logging
from typing import Optional, Tuple

from models import DealershipMetrics

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class DealershipExtractor:
    """
    Independent of the table extractors: every field is optional and
    a missing pattern leaves it as None.
    """

    MONTH_YEAR_PATTERN = re.compile(r'\b(' + '|'.join(MONTH_NAMES) + r')\s+(\d{4})\b', re.IGNORECASE)
    DEALER_CODE_PATTERN = re.compile(r'\b(\w+)\s+Service\s+Scorecard', re.IGNORECASE)
    TOTAL_CASES_PATTERN = re.compile(r'total\s+cases[:\s]*(\d+)', re.IGNORECASE)
    REPAIR_TIME_PATTERN = re.compile(
        r'(?:average\s+repair\s+time|avg\s+repair)[:\s]*(\d+(?:\.\d+)?)', re.IGNORECASE
    )

    def extract(self, text: str) -> DealershipMetrics:
        month, year = self._extract_period(text)
        return DealershipMetrics(
            dealer_code=self._extract_dealer_code(text),
            month=month,
            year=year,
            total_cases=self._extract_total_cases(text),
            average_repair_time=self._extract_repair_time(text)
        )

    def _extract_period(self, text: str) -> Tuple[Optional[str], Optional[int]]:
        """
        Reporting period, e.g. "July 2025" in the report title.
        The month is returned with canonical capitalization.
        """
        match = self.MONTH_YEAR_PATTERN.search(text)
        if not match:
            return None, None
        month = match.group(1).capitalize()
        year = int(match.group(2))
        logger.info(f"Found reporting period: {month} {year}")
        return month, year

    def _extract_dealer_code(self, text: str) -> Optional[str]:
        # "W370 Service Scorecard July 2025"
        match = self.DEALER_CODE_PATTERN.search(text)
        if match:
            logger.info(f"Found dealer code: {match.group(1)}")
            return match.group(1)
        return None

    def _extract_total_cases(self, text: str) -> Optional[int]:
        match = self.TOTAL_CASES_PATTERN.search(text)
        if match:
            return int(match.group(1))
        return None

    def _extract_repair_time(self, text: str) -> Optional[float]:
        match = self.REPAIR_TIME_PATTERN.search(text)
        if match:
            return float(match.group(1))
        return None
