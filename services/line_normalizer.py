"""
Line Normalization
Groups positioned fragments from one page into reading-order text lines
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from services.extractors.base_extractor import PositionedFragment

logger = logging.getLogger(__name__)

DEFAULT_Y_TOLERANCE = 5.0


@dataclass
class TextLine:
    """Fragments believed to share a visual row, ordered left to right"""
    fragments: List[PositionedFragment] = field(default_factory=list)

    @property
    def y(self) -> float:
        """Representative y: the topmost fragment of the line"""
        return max(f.y for f in self.fragments) if self.fragments else 0.0

    @property
    def line_text(self) -> str:
        return ' '.join(f.text for f in self.fragments)


class LineNormalizer:
    """
    Turns the fragments of a page into ordered TextLines.

    Fragments are sorted top-to-bottom (descending y) then left-to-right.
    A new line starts when a fragment's y differs from the running line
    reference by more than y_tolerance.
    """

    def __init__(self, y_tolerance: float = DEFAULT_Y_TOLERANCE):
        self.y_tolerance = y_tolerance

    def normalize(self, fragments: Iterable[PositionedFragment]) -> List[TextLine]:
        ordered = sorted(fragments, key=lambda f: (-f.y, f.x))
        if not ordered:
            return []

        lines: List[TextLine] = []
        current: List[PositionedFragment] = []
        reference_y = None

        for fragment in ordered:
            if reference_y is not None and abs(fragment.y - reference_y) > self.y_tolerance:
                lines.append(self._finish_line(current))
                current = []
            current.append(fragment)
            reference_y = fragment.y

        if current:
            lines.append(self._finish_line(current))

        logger.debug(f"Normalized {len(ordered)} fragments into {len(lines)} lines")
        return lines

    def normalize_pages(self, pages: Iterable[Iterable[PositionedFragment]]) -> List[TextLine]:
        """Normalize each page separately and concatenate lines in page order"""
        document_lines: List[TextLine] = []
        for page_fragments in pages:
            document_lines.extend(self.normalize(page_fragments))
        return document_lines

    @staticmethod
    def _finish_line(fragments: List[PositionedFragment]) -> TextLine:
        # sorted() is stable, so equal-x fragments keep reading order
        return TextLine(fragments=sorted(fragments, key=lambda f: f.x))


def lines_to_text(lines: Iterable[TextLine]) -> str:
    return '\n'.join(line.line_text for line in lines)
