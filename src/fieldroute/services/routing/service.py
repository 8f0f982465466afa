"""Routing orchestration service for the admin API."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Sequence

from ...data.appointments_repository import get_locations_for_date
from ...models.domain import Location, RouteOptimizationParams, TimeWindow
from ...persistence.audit import record_optimization_run
from ...persistence.filesystem import FileStorage
from ...schemas.routing import (
    AppointmentRouteRequest,
    InfeasibleDestinationModel,
    LocationModel,
    OptimizationMetadataModel,
    OptimizationResponse,
    RouteModel,
    RouteOptimizationOptions,
    RouteOptimizationRequest,
    RouteStopModel,
    TimeWindowModel,
)
from ..outputs.routing_formatter import optimization_result_to_csv, optimization_result_to_json
from .models import OptimizationResult
from .optimizer import optimize_route


def location_from_model(model: LocationModel) -> Location:
    window = model.time_window
    return Location(
        id=model.id,
        latitude=model.latitude,
        longitude=model.longitude,
        address=model.address,
        name=model.name,
        priority=model.priority,
        estimated_service_time=model.estimated_service_time,
        time_window=TimeWindow(start=window.start, end=window.end) if window else None,
    )


def location_to_model(location: Location) -> LocationModel:
    window = location.time_window
    return LocationModel(
        id=location.id,
        latitude=location.latitude,
        longitude=location.longitude,
        address=location.address,
        name=location.name,
        priority=location.priority,
        estimated_service_time=location.estimated_service_time,
        time_window=TimeWindowModel(start=window.start, end=window.end) if window else None,
    )


def _build_params(
    options: RouteOptimizationOptions,
    start_location: LocationModel,
    destinations: Sequence[Location],
) -> RouteOptimizationParams:
    return RouteOptimizationParams(
        start_location=location_from_model(start_location),
        destinations=list(destinations),
        vehicle_capacity=options.vehicle_capacity,
        max_route_time=options.max_route_time,
        traffic_consideration=options.traffic_consideration,
        prioritize_time_windows=options.prioritize_time_windows,
        route_start_time=options.route_start_time,
        max_routes=options.max_routes,
        refine_sequences=options.refine_sequences,
    )


def result_to_response(result: OptimizationResult, run_directory: str | None = None) -> OptimizationResponse:
    metadata = result.metadata
    return OptimizationResponse(
        routes=[
            RouteModel(
                route_id=plan.route_id,
                location_ids=plan.location_ids,
                stops=[RouteStopModel(**asdict(stop)) for stop in plan.stops],
                total_distance=plan.total_distance_km,
                total_time=plan.total_time_min,
                service_time=plan.service_time_min,
                travel_time=plan.travel_time_min,
                efficiency=plan.efficiency,
                estimated_fuel_cost=plan.estimated_fuel_cost,
            )
            for plan in result.routes
        ],
        infeasible=[InfeasibleDestinationModel(**asdict(item)) for item in result.infeasible],
        total_distance=result.total_distance_km,
        total_time=result.total_time_min,
        total_fuel_cost=result.total_fuel_cost,
        recommendations=result.recommendations,
        metadata=OptimizationMetadataModel(
            algorithm=metadata["algorithm"],
            processing_time=metadata["processing_time_ms"],
            route_count=metadata["route_count"],
            destination_count=metadata["destination_count"],
            duplicates_removed=metadata["duplicates_removed"],
            refined_routes=metadata["refined_routes"],
            run_directory=run_directory,
        ),
    )


def _run(params: RouteOptimizationParams, options: RouteOptimizationOptions) -> OptimizationResponse:
    result = optimize_route(params)

    record_optimization_run(result, requested_by=options.requested_by)

    run_directory = None
    if options.persist:
        storage = FileStorage()
        run_dir = storage.make_run_directory(prefix="routes")
        storage.write_json(run_dir / "summary.json", optimization_result_to_json(result))
        storage.write_csv(run_dir / "routes.csv", optimization_result_to_csv(result))
        run_directory = str(run_dir)
        logging.info(f"Optimization outputs written to {run_dir}")

    return result_to_response(result, run_directory=run_directory)


def optimize_routes(payload: RouteOptimizationRequest) -> OptimizationResponse:
    destinations = [location_from_model(model) for model in payload.destinations]
    return _run(_build_params(payload, payload.start_location, destinations), payload)


def optimize_appointments(payload: AppointmentRouteRequest) -> OptimizationResponse:
    locations = get_locations_for_date(payload.service_date, technician_id=payload.technician_id)
    if not locations:
        raise ValueError(f"No routable appointments found for {payload.service_date.isoformat()}.")
    logging.info(f"Optimizing {len(locations)} appointment(s) for {payload.service_date.isoformat()}")
    return _run(_build_params(payload, payload.start_location, locations), payload)


def list_locations(service_date, technician_id: str | None = None) -> list[LocationModel]:
    return [location_to_model(location) for location in get_locations_for_date(service_date, technician_id)]
