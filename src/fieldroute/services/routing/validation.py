"""Request validation for the route optimizer.

Everything here runs before any routing work so that a malformed request
fails with a single ``RouteValidationError`` and never yields a partial
result.
"""

from __future__ import annotations

import math
import re
from typing import Sequence

from ...models.domain import PRIORITY_RANK, Location, RouteOptimizationParams
from ..geospatial import valid_coordinate

_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})$")


class RouteValidationError(ValueError):
    """Raised when optimization parameters are malformed or incomplete."""


def parse_clock(value: str) -> int:
    """Convert an ``HH:MM`` string into minutes since midnight."""

    match = _CLOCK.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise RouteValidationError(f"Invalid time '{value}'. Expected HH:MM.")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise RouteValidationError(f"Invalid time '{value}'. Expected HH:MM.")
    return hours * 60 + minutes


def format_clock(minutes: float) -> str:
    whole = int(round(minutes))
    return f"{(whole // 60) % 24:02d}:{whole % 60:02d}"


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_location(location: Location, role: str) -> None:
    if not location.id or not str(location.id).strip():
        raise RouteValidationError(f"{role} is missing an id.")
    if not (_is_number(location.latitude) and _is_number(location.longitude)):
        raise RouteValidationError(f"{role} '{location.id}' has non-numeric coordinates.")
    if not valid_coordinate(location.latitude, location.longitude):
        raise RouteValidationError(
            f"{role} '{location.id}' has invalid coordinates ({location.latitude}, {location.longitude})."
        )
    if location.priority not in PRIORITY_RANK:
        raise RouteValidationError(f"{role} '{location.id}' has unknown priority '{location.priority}'.")
    service = location.estimated_service_time
    if service is not None:
        if not _is_number(service) or not math.isfinite(service):
            raise RouteValidationError(f"{role} '{location.id}' has a non-numeric service time.")
        if service < 0:
            raise RouteValidationError(f"{role} '{location.id}' has a negative service time.")
    if location.time_window is not None:
        start = parse_clock(location.time_window.start)
        end = parse_clock(location.time_window.end)
        if end < start:
            raise RouteValidationError(
                f"{role} '{location.id}' time window ends ({location.time_window.end}) "
                f"before it starts ({location.time_window.start})."
            )


def validate_params(params: RouteOptimizationParams) -> None:
    if params.start_location is None:
        raise RouteValidationError("startLocation is required.")
    if not params.destinations:
        raise RouteValidationError("destinations must contain at least one location.")
    _validate_location(params.start_location, "startLocation")
    for destination in params.destinations:
        _validate_location(destination, "destination")
    if params.max_route_time is None or params.max_route_time <= 0:
        raise RouteValidationError("maxRouteTime must be a positive number of minutes.")
    if params.vehicle_capacity is not None and params.vehicle_capacity < 1:
        raise RouteValidationError("vehicleCapacity must be at least 1 when provided.")
    if params.max_routes is not None and params.max_routes < 1:
        raise RouteValidationError("maxRoutes must be at least 1 when provided.")
    if params.route_start_time is not None:
        parse_clock(params.route_start_time)


def dedupe_destinations(destinations: Sequence[Location]) -> tuple[list[Location], int]:
    """Drop repeated ids, keeping the first occurrence in input order."""

    seen: set[str] = set()
    unique: list[Location] = []
    for destination in destinations:
        if destination.id in seen:
            continue
        seen.add(destination.id)
        unique.append(destination)
    return unique, len(destinations) - len(unique)
