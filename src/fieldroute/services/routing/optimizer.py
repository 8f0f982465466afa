"""Route optimizer entry point."""

from __future__ import annotations

import logging
import time

from ...config import settings
from ...models.domain import RouteOptimizationParams
from .builder import RouteBuilder, build_context, order_candidates, schedule_route
from .estimator import TravelEstimator
from .metrics import build_recommendations, mean_efficiency, score_route
from .models import OptimizationResult, RoutePlan
from .solver import refine_sequence
from .validation import dedupe_destinations, validate_params

logger = logging.getLogger(__name__)

ALGORITHM_NEAREST_NEIGHBOR = "Nearest Neighbor"
ALGORITHM_REFINED = "Nearest Neighbor + OR-Tools local search"


def _route_id(position: int) -> str:
    return f"R{position:02d}"


def optimize_route(params: RouteOptimizationParams) -> OptimizationResult:
    """Partition and order destinations into technician routes.

    Raises ``RouteValidationError`` for malformed input. Destinations that
    cannot be placed are returned in ``OptimizationResult.infeasible``.
    """

    started = time.perf_counter()
    validate_params(params)

    destinations, duplicates_removed = dedupe_destinations(params.destinations)
    if duplicates_removed:
        logger.info("Collapsed %d duplicate destination id(s)", duplicates_removed)

    pool = order_candidates(destinations, params.prioritize_time_windows)
    estimator = TravelEstimator(traffic_consideration=params.traffic_consideration)
    matrix = estimator.matrix([params.start_location, *pool])
    context = build_context(
        pool,
        matrix,
        start_time=params.route_start_time or settings.route_start_time,
        max_route_time=params.max_route_time,
        default_service_time=settings.default_service_time_minutes,
        prioritize_time_windows=params.prioritize_time_windows,
    )

    built = RouteBuilder(
        context,
        vehicle_capacity=params.vehicle_capacity,
        max_routes=params.max_routes,
    ).build()

    refine = settings.sequence_refinement_enabled if params.refine_sequences is None else params.refine_sequences
    refined_routes = 0
    plans: list[RoutePlan] = []
    for position, nodes in enumerate(built.routes, start=1):
        route_id = _route_id(position)
        plan = schedule_route(context, nodes, route_id)
        if plan is None:
            raise RuntimeError(f"Constructed route {route_id} failed its own feasibility replay.")
        if refine:
            proposal = refine_sequence(context, nodes)
            if proposal is not None and proposal != list(nodes):
                candidate = schedule_route(context, proposal, route_id)
                if candidate is not None and candidate.total_distance_km < plan.total_distance_km - 1e-9:
                    plan = candidate
                    refined_routes += 1
        plans.append(score_route(plan))

    total_distance = sum(plan.total_distance_km for plan in plans)
    total_time = sum(plan.total_time_min for plan in plans)
    total_fuel = sum(plan.estimated_fuel_cost for plan in plans)
    processing_ms = (time.perf_counter() - started) * 1000.0

    metadata = {
        "algorithm": ALGORITHM_REFINED if refined_routes else ALGORITHM_NEAREST_NEIGHBOR,
        "processing_time_ms": round(processing_ms, 3),
        "route_count": len(plans),
        "destination_count": len(destinations),
        "duplicates_removed": duplicates_removed,
        "refined_routes": refined_routes,
        "mean_efficiency": mean_efficiency(plans),
    }

    logger.info(
        "Optimized %d destination(s) into %d route(s): %.2f km, %.1f min, %d infeasible (%.1f ms)",
        len(destinations),
        len(plans),
        total_distance,
        total_time,
        len(built.infeasible),
        processing_ms,
    )

    return OptimizationResult(
        routes=plans,
        infeasible=built.infeasible,
        total_distance_km=total_distance,
        total_time_min=total_time,
        total_fuel_cost=total_fuel,
        recommendations=build_recommendations(
            plans,
            built.infeasible,
            max_route_time=params.max_route_time,
            urgent_count=sum(1 for destination in destinations if destination.priority == "urgent"),
        ),
        metadata=metadata,
    )
