"""
Extraction Configuration
Centralized configuration for scorecard extraction, campaign aggregation and trend analysis
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

EXTRACTION_CONFIG = {
    # Canonical location order (extraction and comparison output follow this order)
    "locations": [
        {"name": "Wichita Kenworth", "location_id": "wichita"},
        {"name": "Dodge City Kenworth", "location_id": "dodge-city"},
        {"name": "Liberal Kenworth", "location_id": "liberal"},
        {"name": "Emporia Kenworth", "location_id": "emporia"},
    ],

    # Positional field order of the 11 values in an Individual Dealer Metrics row
    "location_metric_fields": [
        "vsc_case_requirements",        # VSC Case Requirements
        "vsc_closed_correctly",         # VSC Closed Correctly
        "tt_activation",                # TT+ Activation
        "sm_monthly_dwell_avg",         # SM Monthly Dwell Avg
        "triage_hours",                 # Triage Hours
        "triage_percent_less_4_hours",  # Triage % of Cases <4 Hours
        "etr_percent_cases",            # ETR % of Cases
        "percent_cases_with_3_notes",   # % Cases with 3+ Notes
        "rds_monthly_avg_days",         # RDS Dwell Monthly Avg Days
        "sm_ytd_dwell_avg_days",        # SM YTD Dwell Average Days
        "rds_ytd_dwell_avg_days",       # RDS YTD Dwell Average Days
    ],

    # Section anchors (case-insensitive substring match)
    "sections": {
        "dealer_metrics": {
            "anchor": "individual dealer metrics",
            "terminators": ["campaign completion", "open campaigns"],
        },
        "campaigns": {
            "anchor": "campaign completion",
            "terminators": [],
        },
    },

    # Line grouping and record rules
    "line_y_tolerance": 5.0,
    "expected_metric_count": 11,
    "campaign_goal_rate": 100.0,

    # Trend classification (fixed constants, not tuned per metric)
    "trend_thresholds": {
        "min_abs_slope": 0.1,
        "min_r_squared": 0.3,
    },

    # Metric polarity: True = higher is better, False = lower is better.
    # Left empty on purpose; polarity is a product decision supplied by callers.
    "metric_polarity": {},

    # Metrics shown in the cross-location comparison view
    "comparison_metrics": [
        "vsc_case_requirements",
        "vsc_closed_correctly",
        "tt_activation",
        "sm_monthly_dwell_avg",
        "triage_hours",
        "triage_percent_less_4_hours",
    ],

    # Extractor selection rules
    "extractor_selection": {
        "text_quality_threshold": 0.6,  # Below this, text is considered garbled
    },

    # Text artifact patterns (used for text quality scoring)
    "artifact_patterns": [
        r'[<>(){}/\\]{3,}',  # Multiple special chars
        r'\s{5,}',           # Excessive spacing
        r'\.{10,}',          # Dot leaders
        r'�',           # Replacement characters from broken font maps
    ],
}


@dataclass(frozen=True)
class LocationSpec:
    """One known dealership location"""
    name: str
    location_id: str


@dataclass(frozen=True)
class SectionSpec:
    """Anchor phrase and terminator phrases for one document section"""
    name: str
    anchor: str
    terminators: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScorecardConfig:
    """
    Immutable extraction configuration passed into every extractor call.
    Build it from a dict with from_dict(); the default instance mirrors EXTRACTION_CONFIG.
    """
    locations: Tuple[LocationSpec, ...]
    metric_fields: Tuple[str, ...]
    dealer_metrics_section: SectionSpec
    campaign_section: SectionSpec
    line_y_tolerance: float = 5.0
    expected_metric_count: int = 11
    campaign_goal_rate: float = 100.0
    min_abs_slope: float = 0.1
    min_r_squared: float = 0.3
    metric_polarity: Tuple[Tuple[str, bool], ...] = ()
    comparison_metrics: Tuple[str, ...] = ()
    text_quality_threshold: float = 0.6
    artifact_patterns: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ScorecardConfig":
        sections = config["sections"]
        thresholds = config.get("trend_thresholds", {})
        return cls(
            locations=tuple(
                LocationSpec(name=loc["name"], location_id=loc["location_id"])
                for loc in config["locations"]
            ),
            metric_fields=tuple(config["location_metric_fields"]),
            dealer_metrics_section=SectionSpec(
                name="dealer_metrics",
                anchor=sections["dealer_metrics"]["anchor"],
                terminators=tuple(sections["dealer_metrics"].get("terminators", [])),
            ),
            campaign_section=SectionSpec(
                name="campaigns",
                anchor=sections["campaigns"]["anchor"],
                terminators=tuple(sections["campaigns"].get("terminators", [])),
            ),
            line_y_tolerance=float(config.get("line_y_tolerance", 5.0)),
            expected_metric_count=int(config.get("expected_metric_count", 11)),
            campaign_goal_rate=float(config.get("campaign_goal_rate", 100.0)),
            min_abs_slope=float(thresholds.get("min_abs_slope", 0.1)),
            min_r_squared=float(thresholds.get("min_r_squared", 0.3)),
            metric_polarity=tuple(sorted(config.get("metric_polarity", {}).items())),
            comparison_metrics=tuple(config.get("comparison_metrics", [])),
            text_quality_threshold=float(
                config.get("extractor_selection", {}).get("text_quality_threshold", 0.6)
            ),
            artifact_patterns=tuple(config.get("artifact_patterns", [])),
        )

    @property
    def location_names(self) -> Tuple[str, ...]:
        return tuple(loc.name for loc in self.locations)

    def location_by_id(self, location_id: str) -> Optional[LocationSpec]:
        for loc in self.locations:
            if loc.location_id == location_id:
                return loc
        return None

    def polarity_for(self, metric: str) -> Optional[bool]:
        """Return configured polarity for a metric, or None when unknown"""
        return dict(self.metric_polarity).get(metric)


DEFAULT_SCORECARD_CONFIG = ScorecardConfig.from_dict(EXTRACTION_CONFIG)
