"""Domain models for locations and optimization requests."""

from dataclasses import dataclass, field
from typing import Literal, Optional

Priority = Literal["urgent", "high", "medium", "low"]

PRIORITY_RANK: dict[str, int] = {"urgent": 0, "high": 1, "medium": 2, "low": 3}


@dataclass(slots=True)
class TimeWindow:
    """Clock interval (HH:MM) in which service at a location must start."""

    start: str
    end: str


@dataclass(slots=True)
class Location:
    """A point to visit, or the technician's origin."""

    id: str
    latitude: float
    longitude: float
    address: str = ""
    name: Optional[str] = None
    priority: Priority = "medium"
    estimated_service_time: Optional[int] = None
    time_window: Optional[TimeWindow] = None


@dataclass(slots=True)
class RouteOptimizationParams:
    """Input to a single optimization run."""

    start_location: Location
    destinations: list[Location] = field(default_factory=list)
    vehicle_capacity: Optional[int] = None
    max_route_time: int = 480
    traffic_consideration: bool = True
    prioritize_time_windows: bool = True
    route_start_time: Optional[str] = None
    max_routes: Optional[int] = None
    refine_sequences: Optional[bool] = None
