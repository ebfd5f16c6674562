"""
Dealer Scorecard Metrics API
FastAPI application for extracting location metrics from scorecard PDFs and serving trends
"""
from fastapi import FastAPI, UploadFile, File, HTTPException, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
import os
import uuid
from functools import lru_cache
from typing import Optional
import logging

from config.extraction_config import DEFAULT_SCORECARD_CONFIG
from config.settings import Settings, get_settings
from models import (
    CampaignResponse,
    CampaignSummary,
    ComparisonResponse,
    HealthResponse,
    SnapshotResponse,
    TrendResponse,
)
from services.comparison_builder import ComparisonBuilder
from services.metrics_aggregator import MetricsAggregator
from services.metrics_store import JsonMetricsStore, SnapshotHistory, resolve_metric
from services.trend_engine import TrendEngine
import aiofiles

VERSION = "1.0.0"

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Dealer Scorecard Metrics",
    description="API for extracting per-location service metrics from scorecard PDFs and analyzing trends",
    version=VERSION
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache()
def _store_for(data_dir: str) -> JsonMetricsStore:
    return JsonMetricsStore(data_dir)


def get_store(settings: Settings = Depends(get_settings)) -> JsonMetricsStore:
    """Metrics store dependency (one instance per data directory)"""
    return _store_for(settings.data_dir)


@lru_cache()
def get_aggregator() -> MetricsAggregator:
    """Extraction pipeline dependency"""
    return MetricsAggregator(DEFAULT_SCORECARD_CONFIG)


def get_trend_engine() -> TrendEngine:
    return TrendEngine(DEFAULT_SCORECARD_CONFIG)


@app.get("/", response_model=HealthResponse)
async def root():
    """Root endpoint - health check"""
    return HealthResponse(
        status="healthy",
        version=VERSION
    )


@app.get("/api/health", response_model=HealthResponse)
async def health_check(store: JsonMetricsStore = Depends(get_store)):
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        has_snapshot=store.get_current() is not None
    )


@app.post("/api/locationMetrics/upload", response_model=SnapshotResponse)
async def upload_scorecard(
    file: UploadFile = File(...),
    store: JsonMetricsStore = Depends(get_store),
    aggregator: MetricsAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_settings)
):
    """
    Extract location metrics from a scorecard PDF and make it the current snapshot

    Args:
        file: Scorecard PDF

    Returns:
        SnapshotResponse; success is False (and nothing is stored) when no
        location metrics could be extracted
    """
    # Validate file type
    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(
            status_code=400,
            detail="Only PDF files are supported"
        )

    upload_dir = settings.upload_path
    upload_dir.mkdir(parents=True, exist_ok=True)
    temp_path = os.path.join(upload_dir, f"{uuid.uuid4()}.pdf")

    try:
        # Save uploaded file
        async with aiofiles.open(temp_path, 'wb') as f:
            content = await file.read()
            await f.write(content)

        logger.info(f"Processing scorecard: {file.filename}")

        snapshot = aggregator.extract_file(
            temp_path,
            previous=store.get_current(),
            source_filename=file.filename
        )

        if not snapshot.has_data:
            logger.warning(f"No location metrics in {file.filename}: {snapshot.error}")
            return SnapshotResponse(
                success=False,
                message=snapshot.error or "No location metrics found",
                data=snapshot
            )

        store.replace_current(snapshot)
        logger.info(f"Successfully extracted {len(snapshot.locations)} locations from {file.filename}")

        return SnapshotResponse(
            success=True,
            message=f"Successfully extracted metrics for {len(snapshot.locations)} locations",
            data=snapshot
        )

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        raise HTTPException(status_code=404, detail=str(e))

    except ValueError as e:
        logger.error(f"Validation error: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        logger.error(f"Error processing file: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Error processing file: {str(e)}"
        )

    finally:
        # Clean up temp file
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e:
                logger.warning(f"Failed to remove temp file: {e}")


@app.get("/api/locationMetrics", response_model=SnapshotResponse)
async def get_location_metrics(store: JsonMetricsStore = Depends(get_store)):
    """Current snapshot"""
    snapshot = store.get_current()
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No scorecard has been uploaded yet")
    return SnapshotResponse(success=True, message="Current location metrics", data=snapshot)


@app.get("/api/locationMetrics/campaigns", response_model=CampaignResponse)
async def get_campaigns(store: JsonMetricsStore = Depends(get_store)):
    """Campaign completion view of the current snapshot (empty when none)"""
    snapshot = store.get_current()
    if snapshot is None:
        return CampaignResponse(success=True, data=CampaignSummary())
    return CampaignResponse(success=True, data=snapshot.campaigns)


@app.get("/api/locationMetrics/trends/{location_id}/{metric}", response_model=TrendResponse)
async def get_trend(
    location_id: str,
    metric: str,
    months: Optional[int] = Query(None, ge=1),
    higher_is_better: Optional[bool] = Query(None, alias="higherIsBetter"),
    store: JsonMetricsStore = Depends(get_store),
    engine: TrendEngine = Depends(get_trend_engine),
    settings: Settings = Depends(get_settings)
):
    """
    Trend for one location and metric

    Args:
        location_id: Location id, e.g. "wichita"
        metric: Metric name (camelCase or snake_case)
        months: Most recent N months (defaults to settings)
        higherIsBetter: Metric polarity; overrides configuration

    Returns:
        TrendResponse with the analysis and its dashboard sentence
    """
    if DEFAULT_SCORECARD_CONFIG.location_by_id(location_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown location: {location_id}")

    field_name = resolve_metric(metric)
    if field_name is None:
        raise HTTPException(status_code=400, detail=f"Unknown metric: {metric}")

    history = SnapshotHistory(store)
    points = history.get_history(location_id, field_name, months or settings.default_trend_months)
    analysis = engine.analyze(
        points,
        metric=field_name,
        location_id=location_id,
        higher_is_better=higher_is_better
    )

    return TrendResponse(
        success=True,
        message=engine.describe(analysis),
        data=analysis
    )


@app.get("/api/locationMetrics/compare", response_model=ComparisonResponse)
async def compare_locations(
    months: Optional[int] = Query(None, ge=1),
    location_id: Optional[str] = Query(None, alias="locationId"),
    store: JsonMetricsStore = Depends(get_store),
    engine: TrendEngine = Depends(get_trend_engine),
    settings: Settings = Depends(get_settings)
):
    """Trend series for the comparison metrics across locations"""
    if location_id is not None and DEFAULT_SCORECARD_CONFIG.location_by_id(location_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown location: {location_id}")

    builder = ComparisonBuilder(
        SnapshotHistory(store).get_history,
        engine=engine,
        config=DEFAULT_SCORECARD_CONFIG,
        max_workers=settings.comparison_workers
    )
    view = builder.build(months=months or settings.default_comparison_months, location_id=location_id)
    return ComparisonResponse(success=True, data=view)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
