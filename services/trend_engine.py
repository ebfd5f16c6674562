"""
Trend Engine
Linear-trend classification and summary statistics for one (location, metric) series
"""
import math
import logging
from typing import List, Optional, Sequence, Tuple

from config.extraction_config import ScorecardConfig, DEFAULT_SCORECARD_CONFIG
from models import TrendAnalysis, TrendClass, TrendDataPoint, TrendStatistics

logger = logging.getLogger(__name__)

_MONTH_ABBREVIATIONS = ["jan", "feb", "mar", "apr", "may", "jun",
                        "jul", "aug", "sep", "oct", "nov", "dec"]


def month_index(month: str) -> int:
    """'January', 'Jan' or '1' -> 1; unrecognized -> 0"""
    value = (month or "").strip().lower()
    if value.isdigit():
        number = int(value)
        return number if 1 <= number <= 12 else 0
    prefix = value[:3]
    if prefix in _MONTH_ABBREVIATIONS:
        return _MONTH_ABBREVIATIONS.index(prefix) + 1
    return 0


def sort_points(points: Sequence[TrendDataPoint]) -> List[TrendDataPoint]:
    """Ascending by (year, month); stable for points in the same period"""
    return sorted(points, key=lambda p: (p.year, month_index(p.month)))


def linear_regression(values: Sequence[float]) -> Tuple[float, float]:
    """
    Ordinary least squares of values against their index 0..n-1

    Returns:
        (slope, r_squared); r_squared is 0.0 when the values have no variance
    """
    n = len(values)
    if n < 2:
        return 0.0, 0.0

    x_mean = (n - 1) / 2
    y_mean = sum(values) / n

    sxx = sum((i - x_mean) ** 2 for i in range(n))
    sxy = sum((i - x_mean) * (v - y_mean) for i, v in enumerate(values))
    slope = sxy / sxx
    intercept = y_mean - slope * x_mean

    ss_tot = sum((v - y_mean) ** 2 for v in values)
    if ss_tot == 0:
        return slope, 0.0
    ss_res = sum((v - (intercept + slope * i)) ** 2 for i, v in enumerate(values))
    r_squared = 1 - ss_res / ss_tot
    return slope, min(1.0, max(0.0, r_squared))


def population_std_dev(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    avg = sum(values) / len(values)
    return math.sqrt(sum((v - avg) ** 2 for v in values) / len(values))


class TrendEngine:
    """
    Classifies a series as improving, declining or stable.

    A series is stable when |slope| is below min_abs_slope or the fit's R²
    is below min_r_squared; otherwise the sign of the slope decides.
    Fewer than two points is a valid result: stable with zeroed statistics.
    """

    def __init__(self, config: Optional[ScorecardConfig] = None):
        self.config = config or DEFAULT_SCORECARD_CONFIG

    def analyze(
        self,
        points: Sequence[TrendDataPoint],
        metric: str = "",
        location_id: str = "",
        higher_is_better: Optional[bool] = None
    ) -> TrendAnalysis:
        """
        Compute the trend for one series

        Args:
            points: Observations in any order; they are sorted by period first
            metric: Metric name, used for configured polarity
            location_id: Location the series belongs to
            higher_is_better: Caller-supplied polarity; falls back to configuration

        Returns:
            TrendAnalysis
        """
        ordered = sort_points(points)
        if higher_is_better is None:
            higher_is_better = self.config.polarity_for(metric)

        analysis = TrendAnalysis(
            metric=metric,
            location_id=location_id,
            data_points=ordered,
            months_of_data=len(ordered),
            current_value=ordered[-1].value if ordered else None,
            higher_is_better=higher_is_better
        )

        if len(ordered) < 2:
            logger.debug(f"Insufficient data for {location_id}/{metric}: {len(ordered)} points")
            return analysis

        values = [p.value for p in ordered]
        slope, r_squared = linear_regression(values)
        trend = self.classify(slope, r_squared)

        previous = values[-2]
        current_vs_previous = (values[-1] - previous) / previous if previous != 0 else 0.0

        analysis.insufficient_data = False
        analysis.trend = trend
        analysis.trend_direction = slope
        analysis.confidence = r_squared
        analysis.favorable = self._favorable(trend, higher_is_better)
        analysis.analysis = TrendStatistics(
            average_change=(values[-1] - values[0]) / (len(values) - 1),
            volatility=population_std_dev(values),
            # max()/min() keep the earliest point on ties
            best_month=max(ordered, key=lambda p: p.value),
            worst_month=min(ordered, key=lambda p: p.value),
            current_vs_previous=current_vs_previous
        )

        logger.debug(f"{location_id}/{metric}: slope={slope:.3f} r2={r_squared:.3f} -> {trend.value}")
        return analysis

    def classify(self, slope: float, r_squared: float) -> TrendClass:
        if abs(slope) < self.config.min_abs_slope or r_squared < self.config.min_r_squared:
            return TrendClass.STABLE
        return TrendClass.IMPROVING if slope > 0 else TrendClass.DECLINING

    @staticmethod
    def _favorable(trend: TrendClass, higher_is_better: Optional[bool]) -> Optional[bool]:
        if higher_is_better is None or trend == TrendClass.STABLE:
            return None
        return (trend == TrendClass.IMPROVING) == higher_is_better

    @staticmethod
    def describe(analysis: TrendAnalysis) -> str:
        """Dashboard sentence for a trend"""
        months = analysis.months_of_data
        if months < 2:
            return "Insufficient data for trend analysis"

        change = analysis.analysis.current_vs_previous
        change_text = "increased" if change > 0 else "decreased"
        change_pct = f"{abs(change * 100):.1f}"

        if analysis.trend == TrendClass.IMPROVING:
            return f"Improving trend over {months} months. {change_text} {change_pct}% from previous month."
        if analysis.trend == TrendClass.DECLINING:
            return f"Declining trend over {months} months. {change_text} {change_pct}% from previous month."
        return f"Stable performance over {months} months with minimal variation."
