"""Straight-line distance and travel time estimation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ...config import settings
from ...models.domain import Location
from ..geospatial import haversine_km


@dataclass(frozen=True, slots=True)
class TravelEstimate:
    distance_km: float
    travel_minutes: float


class TravelEstimator:
    """Converts great-circle distance into drive time at a fixed average speed.

    Coordinates are assumed valid; callers validate before estimating.
    """

    def __init__(
        self,
        *,
        traffic_consideration: bool = True,
        average_speed_kmh: float | None = None,
        traffic_multiplier: float | None = None,
    ) -> None:
        self.average_speed_kmh = average_speed_kmh or settings.average_speed_kmh
        multiplier = traffic_multiplier if traffic_multiplier is not None else settings.traffic_multiplier
        self.multiplier = multiplier if traffic_consideration else 1.0

    def estimate(self, origin: Location, destination: Location) -> TravelEstimate:
        distance_km = haversine_km(origin.latitude, origin.longitude, destination.latitude, destination.longitude)
        return TravelEstimate(
            distance_km=distance_km,
            travel_minutes=distance_km / self.average_speed_kmh * 60.0 * self.multiplier,
        )

    def matrix(self, points: Sequence[Location]) -> list[list[TravelEstimate]]:
        """Pairwise estimates; each pair is computed once and mirrored."""

        count = len(points)
        zero = TravelEstimate(distance_km=0.0, travel_minutes=0.0)
        table = [[zero] * count for _ in range(count)]
        for i in range(count):
            for j in range(i + 1, count):
                estimate = self.estimate(points[i], points[j])
                table[i][j] = estimate
                table[j][i] = estimate
        return table
