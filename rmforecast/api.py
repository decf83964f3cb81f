import logging
import time
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from rmforecast.config import ForecastSettings
from rmforecast.cors_config import combine_regex_patterns, get_cors_settings
from rmforecast.forecast_service import (
    AnalysisError,
    SuggestionRequest,
    forecast_rows,
    suggestion_rows,
    upload_snapshot,
)
from rmforecast.logging_setup import setup_logging
from rmforecast.security import RateLimiter, max_upload_bytes
from rmforecast.snapshot_store import SnapshotStore

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Booking Curve Forecast",
    description="Seat and revenue forecasts for upcoming departures from historical reservations.",
    version="0.1.0",
)

explicit_origins, regex_origins = get_cors_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=explicit_origins,
    allow_origin_regex=combine_regex_patterns(regex_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

settings = ForecastSettings.from_env()
snapshot_store = SnapshotStore(settings.snapshot_path)
rate_limiter = RateLimiter.from_env()


@app.middleware("http")
async def add_timing_and_rate_limit(request: Request, call_next):
    client_host = request.client.host if request.client else "unknown"
    if not rate_limiter.is_allowed(client_host):
        return JSONResponse({"detail": "Too many requests"}, status_code=429)

    start = time.perf_counter()
    response: Response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-Latency-ms"] = f"{latency_ms:.2f}"

    logger.info(
        "request",
        extra={
            "request_path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "latency_ms": round(latency_ms, 2),
            "client": client_host,
        },
    )
    return response


class ForecastRow(BaseModel):
    flight: str
    flight_date: date
    weekday: int
    weekday_label: str
    days_to_departure: int
    current_bookings: int
    expected_passengers: int
    expected_revenue: int
    load_factor: int
    upgrade_suggestion: bool
    upgrade_message: str
    note: str
    strategy: str
    confidence: Optional[str] = None
    warning: bool = False


class SuggestionRow(BaseModel):
    flight: str
    weekday: int
    weekday_label: str
    bookings_this_year: int
    bookings_last_year: int
    days_to_departure: int
    ratio: float
    recommendation: str


@app.get("/ping", response_class=PlainTextResponse)
async def ping() -> str:
    return "pong"


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/upload")
async def upload(request: Request) -> Dict[str, Any]:
    body = await request.body()
    try:
        return await run_in_threadpool(
            upload_snapshot,
            snapshot_store,
            body.decode("utf-8", errors="replace"),
            max_upload_bytes(),
        )
    except AnalysisError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@app.get("/api/forecast", response_model=List[ForecastRow])
async def get_forecast(
    as_of: Optional[date] = Query(default=None, description="Reference date; defaults to today."),
) -> List[Dict[str, Any]]:
    try:
        return await run_in_threadpool(forecast_rows, snapshot_store, as_of, settings)
    except AnalysisError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@app.get("/api/suggestions", response_model=List[SuggestionRow])
async def get_suggestions(
    threshold: Optional[float] = Query(default=None, ge=0, le=500),
    as_of: Optional[date] = Query(default=None),
) -> List[Dict[str, Any]]:
    payload = SuggestionRequest(threshold=threshold, as_of=as_of)
    try:
        return await run_in_threadpool(suggestion_rows, snapshot_store, payload, settings)
    except AnalysisError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
