"""
Metrics Store
Single "current snapshot" document plus an append-only upload log used to rebuild history
"""
import os
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from models import LocationMetricRecord, MetricsSnapshot, TrendDataPoint
from services.field_extractors.base_field_extractor import parse_metric_value
from services.field_extractors.dealership_extractor import MONTH_NAMES
from services.trend_engine import month_index, sort_points

logger = logging.getLogger(__name__)

CURRENT_FILENAME = "current.json"
UPLOAD_LOG_FILENAME = "uploads.jsonl"


def resolve_metric(metric: str) -> Optional[str]:
    """Accept 'vscCaseRequirements' or 'vsc_case_requirements'; None for anything else"""
    for name, field_info in LocationMetricRecord.model_fields.items():
        if name in ("name", "location_id"):
            continue
        if metric == name or metric == field_info.alias:
            return name
    return None


class JsonMetricsStore:
    """
    File-backed store. replace_current() overwrites the current snapshot
    (last write wins) and appends it to the upload log; writes are serialized
    by a lock.
    """

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.current_path = self.data_dir / CURRENT_FILENAME
        self.log_path = self.data_dir / UPLOAD_LOG_FILENAME
        self._lock = threading.Lock()

    def replace_current(self, snapshot: MetricsSnapshot) -> None:
        payload = snapshot.model_dump_json(by_alias=True)
        with self._lock:
            # Log first: a failed append leaves the previous current snapshot in place
            with self.log_path.open("a", encoding="utf-8", newline="\n") as f:
                f.write(payload + "\n")
                f.flush()
                os.fsync(f.fileno())

            tmp_path = self.current_path.with_suffix(".tmp")
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.current_path)

        logger.info(f"Stored snapshot from {snapshot.source_filename or 'upload'} "
                    f"({len(snapshot.locations)} locations)")

    def get_current(self) -> Optional[MetricsSnapshot]:
        with self._lock:
            if not self.current_path.exists():
                return None
            payload = self.current_path.read_text(encoding="utf-8")
        return MetricsSnapshot.model_validate_json(payload)

    def list_uploads(self) -> List[MetricsSnapshot]:
        """All logged snapshots, oldest first; malformed lines are logged and skipped"""
        with self._lock:
            if not self.log_path.exists():
                return []
            raw_lines = self.log_path.read_text(encoding="utf-8").splitlines()

        snapshots = []
        for line_no, line in enumerate(raw_lines, 1):
            if not line.strip():
                continue
            try:
                snapshots.append(MetricsSnapshot.model_validate_json(line))
            except ValidationError as e:
                logger.warning(f"Skipping malformed upload log line {line_no}: {e.error_count()} errors")
        return snapshots


class SnapshotHistory:
    """
    History provider for the trend engine.

    Builds one data point per reporting month from the upload log, the latest
    upload for a month winning. When nothing is logged, the current snapshot
    supplies a single point.
    """

    def __init__(self, store: JsonMetricsStore):
        self.store = store

    def get_history(self, location_id: str, metric: str, months: Optional[int] = None) -> List[TrendDataPoint]:
        """
        Args:
            location_id: Location to read
            metric: Metric field name (camelCase alias or snake_case)
            months: Keep only the most recent N reporting months

        Returns:
            TrendDataPoints sorted ascending by period

        Raises:
            ValueError: for an unknown metric
        """
        field_name = resolve_metric(metric)
        if field_name is None:
            raise ValueError(f"Unknown metric: {metric}")

        snapshots = self.store.list_uploads()
        if not snapshots:
            current = self.store.get_current()
            snapshots = [current] if current is not None else []

        by_period: Dict[Tuple[int, int], TrendDataPoint] = {}
        for snapshot in snapshots:
            point = self._point_for(snapshot, location_id, field_name)
            if point is not None:
                by_period[(point.year, month_index(point.month))] = point

        points = sort_points(by_period.values())
        if months is not None and months > 0:
            points = points[-months:]
        return points

    @staticmethod
    def _point_for(snapshot: MetricsSnapshot, location_id: str, field_name: str) -> Optional[TrendDataPoint]:
        # Carried-forward records repeat an earlier month's values
        if location_id in snapshot.carried_forward:
            return None
        record = snapshot.location(location_id)
        if record is None:
            return None
        value = parse_metric_value(getattr(record, field_name))
        if value is None:
            return None

        month = snapshot.dealership.month
        year = snapshot.dealership.year
        if not month or not year:
            # Reporting period not printed on the document: use the upload month
            month = MONTH_NAMES[snapshot.extracted_at.month - 1]
            year = snapshot.extracted_at.year

        return TrendDataPoint(
            month=month,
            year=year,
            value=value,
            upload_date=snapshot.extracted_at.isoformat()
        )
