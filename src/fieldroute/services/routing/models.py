"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(slots=True)
class RouteStop:
    location_id: str
    sequence: int
    arrival_min: float
    arrival_time: str
    wait_min: float
    travel_min: float
    distance_from_prev_km: float
    service_min: float


@dataclass(slots=True)
class RoutePlan:
    route_id: str
    stops: List[RouteStop]
    total_distance_km: float
    total_time_min: float
    service_time_min: float
    travel_time_min: float
    wait_time_min: float
    efficiency: float = 0.0
    estimated_fuel_cost: float = 0.0

    @property
    def location_ids(self) -> list[str]:
        return [stop.location_id for stop in self.stops]


@dataclass(slots=True)
class InfeasibleDestination:
    location_id: str
    reason: str
    detail: str


@dataclass(slots=True)
class OptimizationResult:
    routes: List[RoutePlan]
    infeasible: List[InfeasibleDestination]
    total_distance_km: float
    total_time_min: float
    total_fuel_cost: float
    recommendations: List[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)
