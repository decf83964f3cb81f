"""Read the uploaded reservation export into ``ReservationRecord`` rows."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import IO, Iterable, List, Union

import pandas as pd

from rmforecast.models import ReservationRecord

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("FlightDate", "BookingDate")
FLIGHT_COLUMNS = ("FlightNumber", "str_Flight_Nmbrs")
FARE_CLASS_COLUMNS = ("RBD", "str_Fare_Class_Short")
PRICE_COLUMN = "TotalChargeAmount"

Source = Union[str, Path, IO[str]]


def _require_columns(df: pd.DataFrame, required: Iterable[str]) -> None:
    missing = sorted(set(required) - set(df.columns))
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")


def _clean_text(series: pd.Series) -> pd.Series:
    cleaned = series.astype("string").str.strip()
    return cleaned.where(cleaned.notna() & cleaned.ne(""), pd.NA)


def _first_present(df: pd.DataFrame, columns: Iterable[str]) -> pd.Series:
    """Coalesce ``columns`` left to right: a blank primary falls back to the next."""
    result = pd.Series(pd.NA, index=df.index, dtype="string")
    for column in columns:
        if column in df.columns:
            result = result.fillna(_clean_text(df[column]))
    return result


def _parse_dates(series: pd.Series) -> pd.Series:
    parsed = pd.to_datetime(series, errors="coerce", format="mixed")
    # Timestamps carry no meaning here; only the calendar day is kept.
    return parsed.dt.normalize()


def read_frame(source: Source) -> pd.DataFrame:
    if isinstance(source, str) and "\n" in source:
        source = io.StringIO(source)
    return pd.read_csv(source, dtype=str, keep_default_na=False)


def normalize_reservations(raw: pd.DataFrame) -> pd.DataFrame:
    _require_columns(raw, REQUIRED_COLUMNS)

    df = pd.DataFrame(index=raw.index)
    df["flight_date"] = _parse_dates(raw["FlightDate"])
    df["booking_date"] = _parse_dates(raw["BookingDate"])
    df["flight"] = _first_present(raw, FLIGHT_COLUMNS)
    df["fare_class"] = _first_present(raw, FARE_CLASS_COLUMNS).str.slice(0, 1)
    if PRICE_COLUMN in raw.columns:
        price = pd.to_numeric(raw[PRICE_COLUMN], errors="coerce").fillna(0.0)
    else:
        price = pd.Series(0.0, index=raw.index)
    df["price"] = price.clip(lower=0.0)

    mask = df["flight_date"].notna() & df["booking_date"].notna() & df["flight"].notna()
    mask &= df["booking_date"] <= df["flight_date"]
    dropped = int((~mask).sum())
    if dropped:
        logger.info("dropped malformed reservation rows", extra={"records": dropped})
    return df[mask].reset_index(drop=True)


def read_reservations(source: Source) -> List[ReservationRecord]:
    """Parse a reservation CSV (path, text or file object) into records in file order.

    Rows without a usable flight date, booking date or flight number, and rows
    booked after departure, are dropped. Prices that do not parse become 0.
    """
    df = normalize_reservations(read_frame(source))
    records = [
        ReservationRecord(
            flight=str(row.flight),
            flight_date=row.flight_date.date(),
            booking_date=row.booking_date.date(),
            fare_class=None if pd.isna(row.fare_class) else str(row.fare_class),
            price=float(row.price),
        )
        for row in df.itertuples(index=False)
    ]
    logger.info("reservations loaded", extra={"records": len(records)})
    return records
