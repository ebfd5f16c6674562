"""Tests for token classification and Individual Dealer Metrics extraction"""
import pytest

from models import IssueKind
from services.field_extractors.base_field_extractor import (
    BaseSectionExtractor,
    TokenKind,
    classify_token,
    parse_metric_value,
)
from services.field_extractors.location_extractor import LocationRecordExtractor
from services.section_locator import SectionLocator

VALUES = "96% 92% 99% 2.7 1.9 87.9% 1.8 1.3% 10.1% 5.8 5.6"


def extract(lines, config=None):
    extractor = LocationRecordExtractor(config)
    section = SectionLocator().locate_spec(lines, extractor.config.dealer_metrics_section)
    return extractor.extract(lines, section)


class TestTokenClassifier:

    @pytest.mark.parametrize("token,kind", [
        ("96%", TokenKind.PERCENTAGE),
        ("87.9%", TokenKind.PERCENTAGE),
        ("2.7", TokenKind.DECIMAL),
        ("5", TokenKind.DECIMAL),
        ("N/A", TokenKind.NOT_AVAILABLE),
        ("n/a", TokenKind.NOT_AVAILABLE),
        ("EC80", TokenKind.OTHER),
        ("5.", TokenKind.OTHER),
        (".5", TokenKind.OTHER),
        ("%", TokenKind.OTHER),
        ("1,000", TokenKind.OTHER),
        ("-3", TokenKind.OTHER),
        ("Kenworth", TokenKind.OTHER),
    ])
    def test_classify(self, token, kind):
        assert classify_token(token) is kind

    def test_parse_metric_value(self):
        assert parse_metric_value("96%") == 96.0
        assert parse_metric_value("2.7") == 2.7
        assert parse_metric_value("N/A") is None
        assert parse_metric_value(None) is None
        assert parse_metric_value("abc") is None


class TestLocationRecordExtractor:

    def test_record_from_following_line(self, text_lines):
        """Location name on its own line, values on the next"""
        lines = text_lines(["Individual Dealer Metrics", "Wichita Kenworth", VALUES])
        result = extract(lines)

        assert len(result.records) == 1
        record = result.records[0]
        assert record.name == "Wichita Kenworth"
        assert record.location_id == "wichita"
        assert record.vsc_case_requirements == "96%"
        assert record.tt_activation == "99%"
        assert record.rds_ytd_dwell_avg_days == "5.6"

    def test_camel_case_serialization(self, text_lines):
        lines = text_lines(["Individual Dealer Metrics", "Wichita Kenworth", VALUES])
        data = extract(lines).records[0].model_dump(by_alias=True)
        assert data["vscCaseRequirements"] == "96%"
        assert data["ttActivation"] == "99%"
        assert data["rdsYtdDwellAvgDays"] == "5.6"
        assert data["locationId"] == "wichita"

    def test_values_on_same_line_as_name(self, text_lines):
        lines = text_lines(["Individual Dealer Metrics", f"Dodge City Kenworth {VALUES}"])
        record = extract(lines).records[0]
        assert record.location_id == "dodge-city"
        assert record.vsc_closed_correctly == "92%"

    def test_extra_values_take_first_eleven(self, text_lines):
        lines = text_lines(["Individual Dealer Metrics", "Wichita Kenworth", VALUES + " 77% 88%"])
        record = extract(lines).records[0]
        assert record.rds_ytd_dwell_avg_days == "5.6"

    def test_na_tokens_kept_as_na(self, text_lines):
        values = "96% n/a 99% 2.7 1.9 87.9% 1.8 1.3% 10.1% 5.8 N/A"
        lines = text_lines(["Individual Dealer Metrics", "Wichita Kenworth", values])
        record = extract(lines).records[0]
        assert record.vsc_closed_correctly == "N/A"
        assert record.rds_ytd_dwell_avg_days == "N/A"

    def test_non_metric_tokens_ignored(self, text_lines):
        lines = text_lines(["Individual Dealer Metrics", "Wichita Kenworth (W370)", f"Goal: {VALUES}"])
        record = extract(lines).records[0]
        assert record.vsc_case_requirements == "96%"

    def test_insufficient_tokens_skips_location(self, text_lines):
        lines = text_lines([
            "Individual Dealer Metrics",
            "Wichita Kenworth 96% 92% 99%",
            f"Emporia Kenworth {VALUES}",
        ])
        result = extract(lines)

        assert [r.location_id for r in result.records] == ["emporia"]
        assert "wichita" in result.skipped
        issue = next(i for i in result.issues if i.location_id == "wichita")
        assert issue.kind == IssueKind.INSUFFICIENT_TOKENS
        assert "3 of 11" in issue.detail

    def test_locations_absent_from_section(self, text_lines):
        lines = text_lines(["Individual Dealer Metrics", "Wichita Kenworth", VALUES])
        result = extract(lines)
        assert result.skipped == ["dodge-city", "liberal", "emporia"]
        assert all(i.kind == IssueKind.LOCATION_NOT_FOUND for i in result.issues)

    def test_missing_section_skips_every_location(self):
        extractor = LocationRecordExtractor()
        result = extractor.extract([], None)
        assert result.records == []
        assert result.skipped == ["wichita", "dodge-city", "liberal", "emporia"]
        assert result.issues[0].kind == IssueKind.SECTION_NOT_FOUND

    def test_arbitrary_document_order(self, text_lines):
        """Output follows canonical order whatever order the document uses"""
        emporia_values = "88% 91% 93% 4.0 2.5 75.5% 1.2 2.2% 9.9% 6.6 6.0"
        lines = text_lines([
            "Individual Dealer Metrics",
            f"Emporia Kenworth {emporia_values}",
            f"Wichita Kenworth {VALUES}",
        ])
        result = extract(lines)
        assert [r.location_id for r in result.records] == ["wichita", "emporia"]
        assert result.records[0].vsc_case_requirements == "96%"
        assert result.records[1].vsc_case_requirements == "88%"

    def test_text_outside_section_ignored(self, text_lines):
        lines = text_lines([
            f"Wichita Kenworth {VALUES}",
            "Individual Dealer Metrics",
            "Campaign Completion",
        ])
        result = extract(lines)
        assert result.records == []
        assert "wichita" in result.skipped

    def test_synthetic_location_set(self, text_lines, config_factory):
        config = config_factory([("North Salina", "north-salina"), ("Salina", "salina")])
        other = "1% 2% 3% 4 5 6% 7 8% 9% 10 11"
        lines = text_lines([
            "Individual Dealer Metrics",
            f"North Salina {VALUES}",
            f"Salina {other}",
        ])
        result = extract(lines, config)
        assert [r.location_id for r in result.records] == ["north-salina", "salina"]
        assert result.records[0].vsc_case_requirements == "96%"
        assert result.records[1].vsc_case_requirements == "1%"


class TestRecordCompleteness:
    """A record exists iff its window holds at least 11 metric tokens"""

    @pytest.mark.parametrize("count", range(0, 15))
    def test_record_present_iff_eleven_tokens(self, text_lines, count):
        tokens = " ".join(f"{i}%" for i in range(count))
        lines = text_lines(["Individual Dealer Metrics", f"Wichita Kenworth {tokens}"])
        result = extract(lines)

        if count >= 11:
            assert len(result.records) == 1
            record = result.records[0].model_dump()
            values = [record[f] for f in LocationRecordExtractor().config.metric_fields]
            assert values == [f"{i}%" for i in range(11)]
        else:
            assert result.records == []
            assert "wichita" in result.skipped


class TestSharedLine:
    """Two locations whose rows were merged into one line"""

    def test_second_location_on_same_line_is_extracted(self, text_lines):
        wichita_values = "96% 92% 99% 2.7 1.9 87.9% 1.8 1.3% 10.1% 5.8 5.6"
        dodge_values = "67% 70% 71% 3.3 2.0 60.0% 1.5 4.0% 8.0% 6.2 5.7"
        lines = text_lines([
            "Individual Dealer Metrics",
            f"Wichita Kenworth {wichita_values} Dodge City Kenworth {dodge_values}",
        ])
        result = extract(lines)

        assert [r.location_id for r in result.records] == ["wichita", "dodge-city"]
        assert result.records[0].rds_ytd_dwell_avg_days == "5.6"
        assert result.records[1].vsc_case_requirements == "67%"
        assert result.records[1].rds_ytd_dwell_avg_days == "5.7"

    def test_short_row_does_not_borrow_next_location_values(self, text_lines):
        """Ten Wichita values: Wichita is skipped instead of taking Dodge City's first value"""
        ten_values = "96% 92% 99% 2.7 1.9 87.9% 1.8 1.3% 10.1% 5.8"
        dodge_values = "67% 70% 71% 3.3 2.0 60.0% 1.5 4.0% 8.0% 6.2 5.7"
        lines = text_lines([
            "Individual Dealer Metrics",
            f"Wichita Kenworth {ten_values} Dodge City Kenworth {dodge_values}",
        ])
        result = extract(lines)

        assert [r.location_id for r in result.records] == ["dodge-city"]
        assert "wichita" in result.skipped
        issue = next(i for i in result.issues if i.location_id == "wichita")
        assert issue.kind == IssueKind.INSUFFICIENT_TOKENS
        assert "10 of 11" in issue.detail
        assert result.records[0].vsc_case_requirements == "67%"


class TestWindowPartition:

    @staticmethod
    def windows_for(config, texts, text_lines):
        lines = text_lines(["Individual Dealer Metrics"] + texts)
        extractor = LocationRecordExtractor(config)
        section = SectionLocator().locate_spec(lines, config.dealer_metrics_section)
        tokens = extractor.section_tokens(lines, section)
        return tokens, extractor.partition_windows(tokens)

    def test_windows_do_not_overlap(self, text_lines, config_factory):
        config = config_factory([("Salina", "salina"), ("North Salina", "north-salina"), ("Hays", "hays")])
        tokens, windows = self.windows_for(
            config, ["Hays 1 2", "North Salina 3 4", "Salina 5 6", "trailing"], text_lines
        )

        spans = sorted((w.name_start, w.end) for w in windows.values())
        for (_, end), (start, _) in zip(spans, spans[1:]):
            assert end <= start
        assert spans[-1][1] == len(tokens)

    def test_name_inside_longer_name_is_not_claimed(self, text_lines, config_factory):
        """'Salina' comes first in canonical order but must not take 'North Salina'"""
        config = config_factory([("Salina", "salina"), ("North Salina", "north-salina")])
        tokens, windows = self.windows_for(config, ["North Salina 3 4", "Salina 5 6"], text_lines)

        assert BaseSectionExtractor.window_tokens(tokens, windows["north-salina"]) == ["3", "4"]
        assert BaseSectionExtractor.window_tokens(tokens, windows["salina"]) == ["5", "6"]

    def test_windows_split_mid_line(self, text_lines, config_factory):
        config = config_factory([("North Salina", "north-salina"), ("Salina", "salina")])
        tokens, windows = self.windows_for(config, ["North Salina 1 2 Salina 3", "4"], text_lines)

        assert BaseSectionExtractor.window_tokens(tokens, windows["north-salina"]) == ["1", "2"]
        assert BaseSectionExtractor.window_tokens(tokens, windows["salina"]) == ["3", "4"]

    def test_name_match_ignores_case_and_punctuation(self, text_lines, config_factory):
        config = config_factory([("Wichita Kenworth", "wichita")])
        tokens, windows = self.windows_for(config, ["WICHITA Kenworth: 96% 92%"], text_lines)

        window = windows["wichita"]
        assert (window.name_start, window.start) == (0, 2)
        assert BaseSectionExtractor.window_tokens(tokens, window) == ["96%", "92%"]

    def test_missing_name_has_no_window(self, text_lines, config_factory):
        config = config_factory([("Hays", "hays"), ("Salina", "salina")])
        _, windows = self.windows_for(config, ["Hays 1 2"], text_lines)
        assert list(windows) == ["hays"]
