"""
Base classes for section-level extraction
Token classification and location windowing shared by the location and campaign extractors
"""
import string
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from config.extraction_config import LocationSpec, ScorecardConfig, DEFAULT_SCORECARD_CONFIG
from models import NOT_AVAILABLE
from services.line_normalizer import TextLine
from services.section_locator import Section


class TokenKind(Enum):
    PERCENTAGE = "percentage"
    DECIMAL = "decimal"
    NOT_AVAILABLE = "not_available"
    OTHER = "other"


def _is_number(body: str) -> bool:
    """digits with an optional fractional part: '5', '5.6', not '5.' or '.6'"""
    int_part, sep, frac = body.partition('.')
    if not (int_part.isascii() and int_part.isdigit()):
        return False
    return not sep or (frac.isascii() and frac.isdigit())


def classify_token(token: str) -> TokenKind:
    """Classify one whitespace-delimited token"""
    if token.upper() == NOT_AVAILABLE:
        return TokenKind.NOT_AVAILABLE
    if token.endswith('%') and _is_number(token[:-1]):
        return TokenKind.PERCENTAGE
    if _is_number(token):
        return TokenKind.DECIMAL
    return TokenKind.OTHER


def is_metric_token(token: str) -> bool:
    """Percentage, decimal or N/A"""
    return classify_token(token) is not TokenKind.OTHER


def is_numeric_token(token: str) -> bool:
    return classify_token(token) in (TokenKind.PERCENTAGE, TokenKind.DECIMAL)


def parse_metric_value(value: Optional[str]) -> Optional[float]:
    """'96%' -> 96.0, '2.7' -> 2.7, 'N/A' or garbage -> None"""
    if value is None:
        return None
    value = value.strip()
    kind = classify_token(value)
    if kind is TokenKind.PERCENTAGE:
        return float(value[:-1])
    if kind is TokenKind.DECIMAL:
        return float(value)
    return None


@dataclass(frozen=True)
class LocationWindow:
    """
    Tokens [start, end) of the section token stream attributed to one location.
    name_start..start is the location name itself.
    """
    location: LocationSpec
    name_start: int
    start: int
    end: int


def _name_key(token: str) -> str:
    return token.lower().strip(string.punctuation)


class BaseSectionExtractor(ABC):
    """
    Shared machinery for extractors that read per-location data inside a section.

    Windowing is a greedy interval partition over the section's flattened token
    stream. Each location, in canonical order, claims the first unclaimed
    occurrence of its name; a window runs from the token after that name to the
    next claimed name, even when both names share a line. An occurrence nested
    inside a longer known name ('Salina' in 'North Salina') is never claimed.
    """

    def __init__(self, config: Optional[ScorecardConfig] = None):
        self.config = config or DEFAULT_SCORECARD_CONFIG

    @staticmethod
    def section_tokens(lines: List[TextLine], section: Section) -> List[str]:
        """Whitespace tokens of the section's lines in reading order"""
        tokens: List[str] = []
        for line in section.lines(lines):
            tokens.extend(line.line_text.split())
        return tokens

    def partition_windows(self, tokens: List[str]) -> Dict[str, LocationWindow]:
        """Return windows keyed by location_id; locations whose name never appears are absent"""
        keys = [_name_key(t) for t in tokens]
        occurrences = {
            loc.location_id: self._find_name(keys, loc.name) for loc in self.config.locations
        }
        all_spans = [span for spans in occurrences.values() for span in spans]

        claimed: List[Tuple[int, int, LocationSpec]] = []
        taken = set()
        for location in self.config.locations:
            for start, end in occurrences[location.location_id]:
                if any(idx in taken for idx in range(start, end)):
                    continue
                if self._nested(start, end, all_spans):
                    continue
                taken.update(range(start, end))
                claimed.append((start, end, location))
                break

        claimed.sort(key=lambda c: c[0])
        windows = {}
        for pos, (name_start, name_end, location) in enumerate(claimed):
            end = claimed[pos + 1][0] if pos + 1 < len(claimed) else len(tokens)
            windows[location.location_id] = LocationWindow(
                location=location, name_start=name_start, start=name_end, end=end
            )
        return windows

    @staticmethod
    def window_tokens(tokens: List[str], window: LocationWindow) -> List[str]:
        return tokens[window.start:window.end]

    def ordered_windows(self, windows: Dict[str, LocationWindow]) -> List[Tuple[LocationSpec, Optional[LocationWindow]]]:
        """Pair every configured location (canonical order) with its window or None"""
        return [(loc, windows.get(loc.location_id)) for loc in self.config.locations]

    @staticmethod
    def _find_name(keys: List[str], name: str) -> List[Tuple[int, int]]:
        """Every [start, end) token span spelling out name, case-insensitive"""
        needle = [_name_key(t) for t in name.split()]
        if not needle:
            return []
        width = len(needle)
        return [
            (idx, idx + width)
            for idx in range(len(keys) - width + 1)
            if keys[idx:idx + width] == needle
        ]

    @staticmethod
    def _nested(start: int, end: int, spans: List[Tuple[int, int]]) -> bool:
        return any(
            s <= start and end <= e and (e - s) > (end - start)
            for s, e in spans
        )
