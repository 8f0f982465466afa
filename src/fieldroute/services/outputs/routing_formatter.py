"""Serializers for optimization run artifacts."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ..routing.models import OptimizationResult


def optimization_result_to_json(result: OptimizationResult) -> dict:
    return {
        "total_distance_km": result.total_distance_km,
        "total_time_min": result.total_time_min,
        "total_fuel_cost": result.total_fuel_cost,
        "metadata": result.metadata,
        "recommendations": list(result.recommendations),
        "infeasible": [asdict(item) for item in result.infeasible],
        "routes": [
            {
                "route_id": plan.route_id,
                "location_ids": plan.location_ids,
                "total_distance_km": plan.total_distance_km,
                "total_time_min": plan.total_time_min,
                "service_time_min": plan.service_time_min,
                "travel_time_min": plan.travel_time_min,
                "wait_time_min": plan.wait_time_min,
                "efficiency": plan.efficiency,
                "estimated_fuel_cost": plan.estimated_fuel_cost,
                "stops": [asdict(stop) for stop in plan.stops],
            }
            for plan in result.routes
        ],
    }


def optimization_result_to_csv(result: OptimizationResult) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "route_id",
        "sequence",
        "location_id",
        "arrival_time",
        "wait_min",
        "travel_min",
        "distance_from_prev_km",
        "service_min",
        "status",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    for plan in result.routes:
        for stop in plan.stops:
            writer.writerow(
                {
                    "route_id": plan.route_id,
                    "sequence": stop.sequence,
                    "location_id": stop.location_id,
                    "arrival_time": stop.arrival_time,
                    "wait_min": round(stop.wait_min, 2),
                    "travel_min": round(stop.travel_min, 2),
                    "distance_from_prev_km": round(stop.distance_from_prev_km, 3),
                    "service_min": stop.service_min,
                    "status": "scheduled",
                }
            )
    for item in result.infeasible:
        writer.writerow({"location_id": item.location_id, "status": f"infeasible:{item.reason}"})
    return buffer.getvalue()
