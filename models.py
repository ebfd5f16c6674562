"""
Pydantic models for the Dealer Scorecard API
All models serialize with camelCase aliases so the dashboard consumes plain JSON
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ScorecardModel(BaseModel):
    """Base model: camelCase JSON, snake_case attributes"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


NOT_AVAILABLE = "N/A"


# Extraction records

class LocationMetricRecord(ScorecardModel):
    """Individual Dealer Metrics row for one location (values kept as raw strings)"""
    name: str
    location_id: str
    vsc_case_requirements: str = Field(NOT_AVAILABLE, description="VSC Case Requirements")
    vsc_closed_correctly: str = Field(NOT_AVAILABLE, description="VSC Closed Correctly")
    tt_activation: str = Field(NOT_AVAILABLE, description="TT+ Activation")
    sm_monthly_dwell_avg: str = Field(NOT_AVAILABLE, description="SM Monthly Dwell Avg")
    triage_hours: str = Field(NOT_AVAILABLE, description="Triage Hours")
    triage_percent_less_4_hours: str = Field(NOT_AVAILABLE, description="Triage % of Cases <4 Hours")
    etr_percent_cases: str = Field(NOT_AVAILABLE, description="ETR % of Cases")
    percent_cases_with_3_notes: str = Field(NOT_AVAILABLE, description="% Cases with 3+ Notes")
    rds_monthly_avg_days: str = Field(NOT_AVAILABLE, description="RDS Dwell Monthly Avg Days")
    sm_ytd_dwell_avg_days: str = Field(NOT_AVAILABLE, description="SM YTD Dwell Average Days")
    rds_ytd_dwell_avg_days: str = Field(NOT_AVAILABLE, description="RDS YTD Dwell Average Days")


class CampaignRecord(ScorecardModel):
    """One campaign row under a location"""
    campaign_code: str
    campaign_name: str
    close_rate: str
    national_rate: str
    goal: str


class LocationCampaigns(ScorecardModel):
    """Per-location campaign view"""
    location_name: str
    location_id: str
    campaigns: List[CampaignRecord] = Field(default_factory=list)
    average_close_rate: float = 0.0


class CampaignAcrossLocations(ScorecardModel):
    """Per-campaign view across locations"""
    campaign_code: str
    campaign_name: str
    national_rate: str
    goal: str
    close_rates: Dict[str, str] = Field(default_factory=dict, description="locationId -> close rate")
    average_close_rate: float = 0.0


class CampaignAggregate(ScorecardModel):
    """Cross-location campaign summary statistics"""
    total_campaigns: int = 0
    total_locations: int = 0
    overall_close_rate: float = Field(0.0, description="Mean of per-location averages")
    location_averages: Dict[str, float] = Field(default_factory=dict)
    top_location: Optional[str] = None
    bottom_location: Optional[str] = None
    campaigns_at_goal: int = 0


class CampaignSummary(ScorecardModel):
    """Campaign extraction result: per-location map, per-campaign map and aggregate"""
    locations: List[LocationCampaigns] = Field(default_factory=list)
    campaigns: List[CampaignAcrossLocations] = Field(default_factory=list)
    aggregate: CampaignAggregate = Field(default_factory=CampaignAggregate)


class DealershipMetrics(ScorecardModel):
    """Best-effort dealership-level summary fields"""
    dealer_code: Optional[str] = None
    month: Optional[str] = None
    year: Optional[int] = None
    total_cases: Optional[int] = None
    average_repair_time: Optional[float] = None


class IssueKind(str, Enum):
    """Recoverable extraction conditions recorded on a snapshot"""
    SECTION_NOT_FOUND = "section_not_found"
    LOCATION_NOT_FOUND = "location_not_found"
    INSUFFICIENT_TOKENS = "insufficient_tokens"
    EXTRACTION_FAILED = "extraction_failed"
    NOT_A_SCORECARD = "not_a_scorecard"


class ExtractionIssue(ScorecardModel):
    kind: IssueKind
    detail: str = ""
    section: Optional[str] = None
    location_id: Optional[str] = None


class MetricsSnapshot(ScorecardModel):
    """One extracted reporting period; the unit persisted by the metrics store"""
    dealership: DealershipMetrics = Field(default_factory=DealershipMetrics)
    locations: List[LocationMetricRecord] = Field(default_factory=list)
    campaigns: CampaignSummary = Field(default_factory=CampaignSummary)
    extracted_at: datetime
    source_filename: Optional[str] = None
    extractor_name: Optional[str] = None
    carried_forward: List[str] = Field(default_factory=list)
    issues: List[ExtractionIssue] = Field(default_factory=list)

    # Shell fields for documents without structured data
    raw_text: Optional[str] = None
    error: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return len(self.locations) > 0

    def location(self, location_id: str) -> Optional[LocationMetricRecord]:
        for record in self.locations:
            if record.location_id == location_id:
                return record
        return None


# Trend analysis

class TrendClass(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class TrendDataPoint(ScorecardModel):
    """One numeric observation of a metric at a location"""
    month: str
    year: int
    value: float
    upload_date: str = ""


class TrendStatistics(ScorecardModel):
    average_change: float = 0.0
    volatility: float = 0.0
    best_month: Optional[TrendDataPoint] = None
    worst_month: Optional[TrendDataPoint] = None
    current_vs_previous: float = 0.0


class TrendAnalysis(ScorecardModel):
    """Derived per-request trend for one (location, metric) pair"""
    metric: str
    location_id: str
    trend: TrendClass = TrendClass.STABLE
    trend_direction: float = Field(0.0, description="Regression slope per period")
    confidence: float = Field(0.0, description="Coefficient of determination (R²)")
    data_points: List[TrendDataPoint] = Field(default_factory=list)
    months_of_data: int = 0
    insufficient_data: bool = True
    current_value: Optional[float] = None
    higher_is_better: Optional[bool] = None
    favorable: Optional[bool] = None
    analysis: TrendStatistics = Field(default_factory=TrendStatistics)


class LocationTrend(ScorecardModel):
    location_id: str
    location_name: str
    trend_data: List[TrendDataPoint] = Field(default_factory=list)
    current_value: Optional[float] = None
    trend: TrendClass = TrendClass.STABLE
    trend_direction: float = 0.0
    error: Optional[str] = None


class MetricComparison(ScorecardModel):
    metric: str
    locations: List[LocationTrend] = Field(default_factory=list)


class ComparisonView(ScorecardModel):
    metrics: List[MetricComparison] = Field(default_factory=list)


# API envelopes

class SnapshotResponse(ScorecardModel):
    """API response for upload / latest metrics endpoints"""
    success: bool
    message: str
    data: Optional[MetricsSnapshot] = None


class CampaignResponse(ScorecardModel):
    success: bool
    data: CampaignSummary = Field(default_factory=CampaignSummary)


class TrendResponse(ScorecardModel):
    success: bool
    message: str = ""
    data: TrendAnalysis


class ComparisonResponse(ScorecardModel):
    success: bool
    data: ComparisonView = Field(default_factory=ComparisonView)


class HealthResponse(ScorecardModel):
    """API health check response"""
    status: str
    version: str
    timestamp: datetime = Field(default_factory=datetime.now)
    has_snapshot: Optional[bool] = None
