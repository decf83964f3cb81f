"""Request-level orchestration: snapshot in, forecast or suggestion rows out."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from rmforecast.booking_index import BookingIndex
from rmforecast.config import ForecastSettings
from rmforecast.forecast_assembler import ForecastAssembler
from rmforecast.models import ForecastRecord, ReservationRecord, SuggestionRecord
from rmforecast.price_trend import suggest
from rmforecast.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Raised when a user request cannot be satisfied."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class ForecastError(AnalysisError):
    """An unexpected failure while computing a whole batch."""

    def __init__(self, message: str):
        super().__init__(500, message)


class SuggestionRequest(BaseModel):
    threshold: Optional[float] = Field(
        None, ge=0, le=500, description="Percent ahead of last year required to suggest a fare increase."
    )
    as_of: Optional[date] = Field(None, description="Reference date; defaults to today.")


def run_forecast(
    records: Sequence[ReservationRecord],
    today: date,
    settings: Optional[ForecastSettings] = None,
) -> List[ForecastRecord]:
    settings = settings or ForecastSettings()
    try:
        index = BookingIndex.build(records, as_of=today, max_lead_days=settings.max_lead_days)
        upcoming = index.upcoming_flights(today, settings.forecast_horizon_months)
        return ForecastAssembler(settings).assemble(upcoming, index, today)
    except Exception as exc:
        logger.exception("forecast failed", extra={"records": len(records), "as_of": today.isoformat()})
        raise ForecastError(f"Forecast computation failed: {exc}") from exc


def run_suggestions(
    records: Sequence[ReservationRecord],
    today: date,
    threshold_percent: Optional[float] = None,
    settings: Optional[ForecastSettings] = None,
) -> List[SuggestionRecord]:
    settings = settings or ForecastSettings()
    threshold = settings.suggestion_threshold_percent if threshold_percent is None else float(threshold_percent)
    try:
        index = BookingIndex.build(records, as_of=today, max_lead_days=settings.max_lead_days)
        return suggest(index, threshold, today=today, min_days=settings.suggestion_min_days)
    except Exception as exc:
        logger.exception("suggestions failed", extra={"records": len(records), "as_of": today.isoformat()})
        raise ForecastError(f"Suggestion computation failed: {exc}") from exc


def _snapshot_records(store: SnapshotStore) -> Sequence[ReservationRecord]:
    try:
        return store.records()
    except FileNotFoundError as exc:
        raise AnalysisError(404, str(exc)) from exc
    except ValueError as exc:
        raise AnalysisError(422, f"Snapshot could not be parsed: {exc}") from exc


def forecast_rows(
    store: SnapshotStore,
    today: Optional[date] = None,
    settings: Optional[ForecastSettings] = None,
) -> List[Dict[str, Any]]:
    records = _snapshot_records(store)
    return [record.to_dict() for record in run_forecast(records, today or date.today(), settings)]


def suggestion_rows(
    store: SnapshotStore,
    payload: SuggestionRequest,
    settings: Optional[ForecastSettings] = None,
) -> List[Dict[str, Any]]:
    records = _snapshot_records(store)
    suggestions = run_suggestions(records, payload.as_of or date.today(), payload.threshold, settings)
    return [row.to_dict() for row in suggestions]


def upload_snapshot(store: SnapshotStore, raw_text: str, max_bytes: Optional[int] = None) -> Dict[str, Any]:
    if max_bytes is not None and len(raw_text.encode("utf-8")) > max_bytes:
        raise AnalysisError(413, f"Upload exceeds {max_bytes} bytes.")
    try:
        written = store.write(raw_text)
    except ValueError as exc:
        raise AnalysisError(400, str(exc)) from exc
    except OSError as exc:
        logger.exception("snapshot write failed")
        raise AnalysisError(500, "Upload could not be stored.") from exc
    return {"status": "uploaded", "bytes": written}
