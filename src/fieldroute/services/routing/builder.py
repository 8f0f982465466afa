"""Nearest-neighbour route construction with time windows and capacity.

Routes are built greedily: from the current position the builder takes the
closest destination that can still be served on time and within the route
time budget, and opens a new route from the start location when nothing else
fits. With window prioritisation on, a windowed destination whose window is
already open on arrival is taken ahead of unconstrained ones. Destinations that cannot be served even by a fresh route are reported
instead of dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from ...models.domain import PRIORITY_RANK, Location
from .estimator import TravelEstimate
from .models import InfeasibleDestination, RoutePlan, RouteStop
from .validation import format_clock, parse_clock

INFEASIBLE_TIME_WINDOW = "time_window"
INFEASIBLE_ROUTE_TIME = "max_route_time"
INFEASIBLE_ROUTE_LIMIT = "route_limit"

_EPSILON = 1e-9


@dataclass(slots=True)
class Candidate:
    location: Location
    node: int  # index into the travel matrix; 0 is the start location
    service_min: float
    window: Optional[tuple[int, int]]
    rank: int


@dataclass(slots=True)
class RoutingContext:
    matrix: list[list[TravelEstimate]]
    candidates: list[Candidate]
    start_clock: int
    max_route_time: float
    prioritize_time_windows: bool = False

    def candidate(self, node: int) -> Candidate:
        return self.candidates[node - 1]


@dataclass(slots=True)
class StepProjection:
    travel: TravelEstimate
    arrival: float
    wait: float
    finish: float
    violation: Optional[str]


@dataclass(slots=True)
class BuildResult:
    routes: list[list[int]] = field(default_factory=list)
    infeasible: list[InfeasibleDestination] = field(default_factory=list)


def order_candidates(destinations: Sequence[Location], prioritize_time_windows: bool) -> list[Location]:
    """Stable ordering of the candidate pool.

    Windowed destinations come first, then priority urgent to low. Without
    window prioritisation the input order is kept and priority only breaks
    ties during selection.
    """

    if not prioritize_time_windows:
        return list(destinations)
    return sorted(
        destinations,
        key=lambda location: (location.time_window is None, PRIORITY_RANK[location.priority]),
    )


def build_context(
    pool: Sequence[Location],
    matrix: list[list[TravelEstimate]],
    *,
    start_time: str,
    max_route_time: float,
    default_service_time: int,
    prioritize_time_windows: bool = False,
) -> RoutingContext:
    candidates = []
    for node, location in enumerate(pool, start=1):
        window = None
        if location.time_window is not None:
            window = (parse_clock(location.time_window.start), parse_clock(location.time_window.end))
        service = location.estimated_service_time
        candidates.append(
            Candidate(
                location=location,
                node=node,
                service_min=float(default_service_time if service is None else service),
                window=window,
                rank=PRIORITY_RANK[location.priority],
            )
        )
    return RoutingContext(
        matrix=matrix,
        candidates=candidates,
        start_clock=parse_clock(start_time),
        max_route_time=float(max_route_time),
        prioritize_time_windows=prioritize_time_windows,
    )


def project_step(context: RoutingContext, from_node: int, elapsed: float, to_node: int) -> StepProjection:
    """Project travelling from ``from_node`` to ``to_node`` at ``elapsed`` route minutes."""

    candidate = context.candidate(to_node)
    travel = context.matrix[from_node][to_node]
    arrival = elapsed + travel.travel_minutes
    wait = 0.0
    violation = None
    if candidate.window is not None:
        window_start, window_end = candidate.window
        clock = context.start_clock + arrival
        wait = max(0.0, window_start - clock)
        if clock > window_end + _EPSILON:
            violation = INFEASIBLE_TIME_WINDOW
    finish = arrival + wait + candidate.service_min
    if violation is None and finish > context.max_route_time + _EPSILON:
        violation = INFEASIBLE_ROUTE_TIME
    return StepProjection(travel=travel, arrival=arrival, wait=wait, finish=finish, violation=violation)


def schedule_route(context: RoutingContext, nodes: Sequence[int], route_id: str) -> Optional[RoutePlan]:
    """Replay a visiting order; None when any stop breaks a constraint."""

    stops: list[RouteStop] = []
    position = 0
    elapsed = distance = travel_total = wait_total = service_total = 0.0
    for sequence, node in enumerate(nodes, start=1):
        step = project_step(context, position, elapsed, node)
        if step.violation is not None:
            return None
        candidate = context.candidate(node)
        stops.append(
            RouteStop(
                location_id=candidate.location.id,
                sequence=sequence,
                arrival_min=step.arrival,
                arrival_time=format_clock(context.start_clock + step.arrival),
                wait_min=step.wait,
                travel_min=step.travel.travel_minutes,
                distance_from_prev_km=step.travel.distance_km,
                service_min=candidate.service_min,
            )
        )
        distance += step.travel.distance_km
        travel_total += step.travel.travel_minutes
        wait_total += step.wait
        service_total += candidate.service_min
        elapsed = step.finish
        position = node
    return RoutePlan(
        route_id=route_id,
        stops=stops,
        total_distance_km=distance,
        total_time_min=elapsed,
        service_time_min=service_total,
        travel_time_min=travel_total,
        wait_time_min=wait_total,
    )


def _infeasible_detail(reason: str, candidate: Candidate, context: RoutingContext) -> str:
    if reason == INFEASIBLE_TIME_WINDOW:
        window = candidate.location.time_window
        earliest = format_clock(context.start_clock + context.matrix[0][candidate.node].travel_minutes)
        return f"Earliest arrival {earliest} is after the time window {window.start}-{window.end}."
    if reason == INFEASIBLE_ROUTE_TIME:
        return f"Cannot be completed within the maximum route time of {context.max_route_time:g} minutes."
    return "All available routes are already in use."


class RouteBuilder:
    """Greedy nearest-neighbour construction over a prepared ``RoutingContext``."""

    def __init__(
        self,
        context: RoutingContext,
        *,
        vehicle_capacity: Optional[int] = None,
        max_routes: Optional[int] = None,
    ) -> None:
        self.context = context
        self.vehicle_capacity = vehicle_capacity
        self.max_routes = max_routes

    def _select(self, position: int, elapsed: float, remaining: Sequence[int]) -> Optional[tuple[int, StepProjection]]:
        best: Optional[tuple[tuple[int, float, int, int], int, StepProjection]] = None
        for order, node in enumerate(remaining):
            step = project_step(self.context, position, elapsed, node)
            if step.violation is not None:
                continue
            candidate = self.context.candidate(node)
            # windows already open on arrival jump the queue; future ones still compete on travel + wait
            deferred = not (self.context.prioritize_time_windows and candidate.window is not None and step.wait == 0)
            key = (int(deferred), step.travel.travel_minutes + step.wait, candidate.rank, order)
            if best is None or key < best[0]:
                best = (key, node, step)
        if best is None:
            return None
        return best[1], best[2]

    def _reject(self, result: BuildResult, nodes: Sequence[int], reason: str | None = None) -> None:
        for node in nodes:
            candidate = self.context.candidate(node)
            node_reason = reason or project_step(self.context, 0, 0.0, node).violation or INFEASIBLE_ROUTE_TIME
            result.infeasible.append(
                InfeasibleDestination(
                    location_id=candidate.location.id,
                    reason=node_reason,
                    detail=_infeasible_detail(node_reason, candidate, self.context),
                )
            )

    def build(self) -> BuildResult:
        result = BuildResult()
        remaining = [candidate.node for candidate in self.context.candidates]
        current: list[int] = []
        position = 0
        elapsed = 0.0

        while remaining:
            if not current and self.max_routes is not None and len(result.routes) >= self.max_routes:
                self._reject(result, remaining, INFEASIBLE_ROUTE_LIMIT)
                break

            choice = self._select(position, elapsed, remaining)
            if choice is None:
                if not current:
                    # a fresh route could not take any of them
                    self._reject(result, remaining)
                    break
                result.routes.append(current)
                current, position, elapsed = [], 0, 0.0
                continue

            node, step = choice
            current.append(node)
            remaining.remove(node)
            position, elapsed = node, step.finish

            if self.vehicle_capacity is not None and len(current) >= self.vehicle_capacity:
                result.routes.append(current)
                current, position, elapsed = [], 0, 0.0

        if current:
            result.routes.append(current)
        return result
