"""Tests for the document-rendering layer: fragment extraction and extractor selection"""
from typing import List, Tuple

import pytest

from services.document_analyzer import DocumentAnalyzer
from services.extractors.base_extractor import (
    BasePDFExtractor,
    ExtractionResult,
    PositionedFragment,
    ScorecardReadError,
)
from services.extractors.extractor_combiner import ExtractorCombiner
from services.extractors.pdfplumber_extractor import PDFPlumberExtractor
from services.pdf_processor import ScorecardPDFProcessor


class FakePlumberPage:
    """Minimal stand-in for a pdfplumber Page"""

    def __init__(self, words, page_number=1, width=612.0, height=792.0):
        self.words = words
        self.page_number = page_number
        self.width = width
        self.height = height

    def extract_words(self, keep_blank_chars=False):
        return self.words


class FakeExtractor(BasePDFExtractor):

    def __init__(self, name, text="", fail=False):
        self._name = name
        self.text = text
        self.fail = fail

    @property
    def name(self) -> str:
        return self._name

    def extract(self, filepath: str) -> ExtractionResult:
        if self.fail:
            raise ScorecardReadError(f"{self._name} broke")
        fragments = [PositionedFragment(text=w, x=i * 10.0, y=700.0) for i, w in enumerate(self.text.split())]
        return ExtractionResult(
            text=self.text,
            pages=[{"page_number": 1, "text": self.text, "fragments": fragments}],
            fragments=fragments,
            extractor_name=self._name
        )

    def extract_fragments(self, page) -> List[PositionedFragment]:
        return []

    def get_page_dimensions(self, page) -> Tuple[float, float]:
        return (612.0, 792.0)


class TestPDFPlumberExtractor:

    def test_fragments_use_bottom_left_origin(self):
        page = FakePlumberPage([
            {"text": "Wichita", "x0": 50.0, "top": 100.0},
            {"text": "Kenworth", "x0": 110.0, "top": 100.5},
        ])
        fragments = PDFPlumberExtractor().extract_fragments(page)

        assert [f.text for f in fragments] == ["Wichita", "Kenworth"]
        assert fragments[0].y == pytest.approx(692.0)
        assert fragments[0].x == 50.0

    def test_blank_words_dropped(self):
        page = FakePlumberPage([{"text": "  ", "x0": 1.0, "top": 1.0}, {"text": " 96% ", "x0": 2.0, "top": 1.0}])
        fragments = PDFPlumberExtractor().extract_fragments(page)
        assert [f.text for f in fragments] == ["96%"]

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            PDFPlumberExtractor().extract("/nonexistent/file.pdf")


class TestExtractorCombiner:

    def test_prefers_result_with_anchors(self):
        plain = FakeExtractor("plain", "lorem ipsum dolor sit amet")
        scorecard = FakeExtractor("scorecard", "Individual Dealer Metrics Wichita Kenworth 96% Campaign Completion")
        best = ExtractorCombiner().extract_with_best_method("x.pdf", [plain, scorecard])
        assert best.extractor_name == "scorecard"
        assert "text_quality" in best.metadata

    def test_tie_keeps_first(self):
        first = FakeExtractor("first", "Wichita Kenworth")
        second = FakeExtractor("second", "Wichita Kenworth")
        assert ExtractorCombiner().extract_with_best_method("x.pdf", [first, second]).extractor_name == "first"

    def test_failed_extractor_skipped(self):
        broken = FakeExtractor("broken", fail=True)
        working = FakeExtractor("working", "Wichita Kenworth")
        assert ExtractorCombiner().extract_with_best_method("x.pdf", [broken, working]).extractor_name == "working"

    def test_all_failed_raises(self):
        with pytest.raises(ScorecardReadError, match="All extractors failed"):
            ExtractorCombiner().extract_with_best_method("x.pdf", [FakeExtractor("a", fail=True)])

    def test_requires_extractors(self):
        with pytest.raises(ValueError):
            ExtractorCombiner().extract_with_best_method("x.pdf", [])


class TestDocumentAnalyzer:

    def test_scorecard_page(self):
        meta = DocumentAnalyzer().analyze_page({
            "page_number": 2,
            "text": "W370 Service Scorecard\nIndividual Dealer Metrics\nWichita Kenworth 96%"
        })
        assert meta.page_number == 2
        assert meta.is_scorecard
        assert meta.sections_detected == ["dealer_metrics"]
        assert meta.locations_mentioned == ["wichita"]

    def test_foreign_document(self):
        assert not DocumentAnalyzer().is_scorecard_document([{"text": "Parts newsletter"}])

    def test_text_quality(self):
        analyzer = DocumentAnalyzer()
        assert analyzer.analyze_text_quality("") == 0.0
        assert analyzer.analyze_text_quality("Wichita Kenworth 96% 92%") == 1.0
        assert analyzer.analyze_text_quality("���") == 0.0


class TestScorecardPDFProcessor:

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            ScorecardPDFProcessor().validate_file("/nonexistent/scorecard.pdf")

    def test_wrong_extension(self, tmp_path):
        path = tmp_path / "scorecard.txt"
        path.write_text("hello")
        with pytest.raises(ValueError):
            ScorecardPDFProcessor().validate_file(str(path))

    def test_uses_supplied_extractors(self, tmp_path):
        path = tmp_path / "scorecard.pdf"
        path.write_bytes(b"%PDF-1.4")
        processor = ScorecardPDFProcessor(extractors=[FakeExtractor("fake", "Wichita Kenworth")])
        result = processor.process_pdf(str(path))
        assert result.extractor_name == "fake"
        assert result.page_fragments()[0][0].text == "Wichita"
