"""
Comparison Builder
Fans the trend engine out over metrics x locations for the dashboard comparison view
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from config.extraction_config import LocationSpec, ScorecardConfig, DEFAULT_SCORECARD_CONFIG
from models import ComparisonView, LocationMetricRecord, LocationTrend, MetricComparison, TrendDataPoint
from services.trend_engine import TrendEngine

logger = logging.getLogger(__name__)

HistoryProvider = Callable[[str, str, Optional[int]], List[TrendDataPoint]]


def metric_alias(field_name: str) -> str:
    """JSON name of a metric field, e.g. vsc_case_requirements -> vscCaseRequirements"""
    field_info = LocationMetricRecord.model_fields.get(field_name)
    return field_info.alias if field_info is not None and field_info.alias else field_name


class ComparisonBuilder:
    """
    Every (metric, location) pair is independent, so pairs run on a thread pool.
    Output order is always metrics in configured order, locations in canonical order.
    A pair whose history lookup fails becomes an empty stable entry with error set.
    """

    def __init__(
        self,
        history: HistoryProvider,
        engine: Optional[TrendEngine] = None,
        config: Optional[ScorecardConfig] = None,
        max_workers: int = 4
    ):
        self.history = history
        self.config = config or DEFAULT_SCORECARD_CONFIG
        self.engine = engine or TrendEngine(self.config)
        self.max_workers = max_workers

    def build(
        self,
        months: Optional[int] = None,
        location_id: Optional[str] = None,
        metrics: Optional[Sequence[str]] = None
    ) -> ComparisonView:
        """
        Args:
            months: Most recent N months of history per pair
            location_id: Restrict to one location; all configured locations when None
            metrics: Metric field names; defaults to the configured comparison metrics

        Returns:
            ComparisonView
        """
        metrics = list(metrics) if metrics is not None else list(self.config.comparison_metrics)
        locations = [
            loc for loc in self.config.locations
            if location_id is None or loc.location_id == location_id
        ]

        pairs = [(metric, loc) for metric in metrics for loc in locations]
        results: Dict[Tuple[str, str], LocationTrend] = {}

        if pairs:
            with ThreadPoolExecutor(max_workers=max(1, self.max_workers)) as executor:
                futures = {
                    executor.submit(self._trend_for, metric, loc, months): (metric, loc)
                    for metric, loc in pairs
                }
                for future in as_completed(futures):
                    metric, loc = futures[future]
                    try:
                        results[(metric, loc.location_id)] = future.result()
                    except Exception as e:
                        logger.error(f"Comparison failed for {loc.location_id}/{metric}: {e}")
                        results[(metric, loc.location_id)] = LocationTrend(
                            location_id=loc.location_id,
                            location_name=loc.name,
                            error=str(e)
                        )

        view = ComparisonView(metrics=[
            MetricComparison(
                metric=metric_alias(metric),
                locations=[results[(metric, loc.location_id)] for loc in locations]
            )
            for metric in metrics
        ])
        logger.info(f"Built comparison for {len(metrics)} metrics x {len(locations)} locations")
        return view

    def _trend_for(self, metric: str, location: LocationSpec, months: Optional[int]) -> LocationTrend:
        points = self.history(location.location_id, metric, months)
        analysis = self.engine.analyze(points, metric=metric, location_id=location.location_id)
        return LocationTrend(
            location_id=location.location_id,
            location_name=location.name,
            trend_data=analysis.data_points,
            current_value=analysis.current_value,
            trend=analysis.trend,
            trend_direction=analysis.trend_direction
        )
