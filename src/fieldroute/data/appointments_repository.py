"""Load scheduled appointments as routable locations."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import Location, TimeWindow

APPOINTMENT_COLUMNS = (
    "id, scheduled_date, scheduled_time_start, scheduled_time_end, estimated_duration, "
    "priority, status, technician_id, service_address, "
    "customers(name, address, latitude, longitude)"
)

EXCLUDED_STATUSES = ("cancelled", "completed", "no_show")

_PRIORITY_MAP = {
    "urgent": "urgent",
    "high": "high",
    "emergency": "urgent",
    "low": "low",
}


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _clock(value: Optional[str]) -> Optional[str]:
    """Postgres ``time`` values arrive as HH:MM:SS; keep HH:MM."""
    if not value:
        return None
    return str(value)[:5]


def _row_to_location(row: dict) -> Optional[Location]:
    customer = row.get("customers") or {}
    lat = _coerce_float(customer.get("latitude"))
    lon = _coerce_float(customer.get("longitude"))
    if lat is None or lon is None:
        logging.warning(f"Appointment {row.get('id')} has no customer coordinates; skipping")
        return None

    start, end = _clock(row.get("scheduled_time_start")), _clock(row.get("scheduled_time_end"))
    window = TimeWindow(start=start, end=end) if start and end else None

    duration = row.get("estimated_duration")
    return Location(
        id=str(row["id"]),
        latitude=lat,
        longitude=lon,
        address=row.get("service_address") or customer.get("address") or "",
        name=customer.get("name"),
        priority=_PRIORITY_MAP.get(str(row.get("priority") or "").lower(), "medium"),
        estimated_service_time=int(duration) if duration is not None else None,
        time_window=window,
    )


def get_locations_for_date(service_date: date, technician_id: str | None = None) -> tuple[Location, ...]:
    """Appointments scheduled on ``service_date`` that still need a visit.

    Geocoding happens upstream; rows without coordinates are skipped.
    """
    supabase = get_supabase_client()
    if not supabase:
        logging.warning("Database not configured - cannot fetch appointments for routing")
        return tuple()

    try:
        query = (
            supabase.table(settings.appointments_table)
            .select(APPOINTMENT_COLUMNS)
            .eq("scheduled_date", service_date.isoformat())
        )
        if technician_id:
            query = query.eq("technician_id", technician_id)
        response = query.order("scheduled_time_start").execute()
    except Exception as e:
        logging.warning(f"Failed to retrieve appointments for {service_date}: {e}")
        return tuple()

    locations: list[Location] = []
    for row in response.data or []:
        if str(row.get("status") or "").lower() in EXCLUDED_STATUSES:
            continue
        location = _row_to_location(row)
        if location is not None:
            locations.append(location)
    return tuple(locations)
