"""
Section Locator
Finds the slice of normalized lines that belongs to an anchored document section
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from config.extraction_config import SectionSpec
from services.line_normalizer import TextLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Section:
    """Lines [start_line_index, end_line_index) of a page or document"""
    name: str
    start_line_index: int
    end_line_index: int

    def __len__(self) -> int:
        return max(0, self.end_line_index - self.start_line_index)

    def lines(self, lines: List[TextLine]) -> List[TextLine]:
        return lines[self.start_line_index:self.end_line_index]


class SectionLocator:
    """
    Linear scan for an anchor phrase (case-insensitive substring).
    Returns None when the anchor is absent; callers fall back to cached data.
    """

    def locate(
        self,
        lines: List[TextLine],
        anchor: str,
        terminators: Iterable[str] = (),
        name: Optional[str] = None
    ) -> Optional[Section]:
        anchor_lower = anchor.lower()
        terminators_lower = [t.lower() for t in terminators if t]

        anchor_idx = None
        for idx, line in enumerate(lines):
            if anchor_lower in line.line_text.lower():
                anchor_idx = idx
                break

        if anchor_idx is None:
            logger.info(f"Section anchor not found: '{anchor}'")
            return None

        start = anchor_idx + 1
        end = len(lines)
        for idx in range(start, len(lines)):
            text = lines[idx].line_text.lower()
            if any(t in text for t in terminators_lower):
                end = idx
                break

        section = Section(name=name or anchor, start_line_index=start, end_line_index=end)
        logger.debug(f"Section '{section.name}' spans lines {start}-{end}")
        return section

    def locate_spec(self, lines: List[TextLine], spec: SectionSpec) -> Optional[Section]:
        return self.locate(lines, spec.anchor, spec.terminators, name=spec.name)
