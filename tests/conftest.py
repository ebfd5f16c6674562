"""
Pytest configuration and fixtures for the scorecard pipeline tests.

Provides:
- Builders that turn plain text lines into positioned fragments (one per word)
- A synthetic July 2025 scorecard document (dealer metrics + campaign completion)
- Synthetic configurations with small location sets
"""
from datetime import datetime, timezone
from typing import Callable, List, Sequence

import pytest

from config.extraction_config import EXTRACTION_CONFIG, ScorecardConfig
from services.extractors.base_extractor import ExtractionResult, PositionedFragment
from services.line_normalizer import LineNormalizer, TextLine

LINE_STEP = 20.0
TOP_Y = 780.0

SCORECARD_LINES = [
    "W370 Service Scorecard July 2025",
    "Total Cases: 142",
    "Average Repair Time: 3.4",
    "Individual Dealer Metrics",
    "Location VSC Case Requirements VSC Closed Correctly TT+ Activation",
    "Wichita Kenworth",
    "96% 92% 99% 2.7 1.9 87.9% 1.8 1.3% 10.1% 5.8 5.6",
    "Dodge City Kenworth 100% 95% 97% 3.1 2.2 80.0% 2.0 5.0% 12.5% 6.1 5.9",
    "Liberal Kenworth 90% N/A 85%",
    "Emporia Kenworth",
    "88% 91% 93% 4.0 2.5 75.5% 1.2 2.2% 9.9% 6.6 N/A",
    "Campaign Completion",
    "Wichita Kenworth",
    "24KWL Bendix EC80 ABS ECU Incorrect Signal Processing 59% 56% 100%",
    "E123 Steering Gear Inspection 100% 90% 100%",
    "Emporia Kenworth",
    "24KWL Bendix EC80 ABS ECU Incorrect Signal Processing 80% 56% 100%",
]


def line_fragments(text: str, y: float, page_number: int = 1) -> List[PositionedFragment]:
    """One fragment per word, left to right, all on baseline y"""
    return [
        PositionedFragment(text=word, x=50.0 + 40.0 * i, y=y, page_number=page_number)
        for i, word in enumerate(text.split())
    ]


def page_fragments(lines: Sequence[str], page_number: int = 1) -> List[PositionedFragment]:
    fragments = []
    for idx, text in enumerate(lines):
        fragments.extend(line_fragments(text, TOP_Y - idx * LINE_STEP, page_number))
    return fragments


def make_lines(texts: Sequence[str]) -> List[TextLine]:
    return LineNormalizer().normalize(page_fragments(texts))


def make_config(locations: Sequence[tuple], **overrides) -> ScorecardConfig:
    """ScorecardConfig with a synthetic location list: [(name, location_id), ...]"""
    config = dict(EXTRACTION_CONFIG)
    config["locations"] = [{"name": n, "location_id": i} for n, i in locations]
    config.update(overrides)
    return ScorecardConfig.from_dict(config)


class StaticProcessor:
    """Stands in for ScorecardPDFProcessor: returns the same pages for any path"""

    def __init__(self, lines: Sequence[str]):
        self.lines = list(lines)
        self.calls = []

    def process_pdf(self, filepath: str) -> ExtractionResult:
        self.calls.append(filepath)
        fragments = page_fragments(self.lines)
        return ExtractionResult(
            text="\n".join(self.lines),
            pages=[{"page_number": 1, "text": "\n".join(self.lines), "fragments": fragments}],
            fragments=fragments,
            extractor_name="static"
        )


@pytest.fixture
def scorecard_lines() -> List[str]:
    return list(SCORECARD_LINES)


@pytest.fixture
def scorecard_pages() -> List[List[PositionedFragment]]:
    return [page_fragments(SCORECARD_LINES)]


@pytest.fixture
def text_lines() -> Callable[[Sequence[str]], List[TextLine]]:
    """Builder: list of strings -> normalized TextLines"""
    return make_lines


@pytest.fixture
def config_factory() -> Callable[..., ScorecardConfig]:
    return make_config


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2025, 8, 4, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def static_processor() -> StaticProcessor:
    return StaticProcessor(SCORECARD_LINES)
