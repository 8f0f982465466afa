"""Admin route optimization endpoints."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, HTTPException, Query, status

from ...schemas.routing import (
    AppointmentRouteRequest,
    LocationListResponse,
    OptimizationResponse,
    RouteOptimizationRequest,
)
from ...services.routing.service import list_locations, optimize_appointments, optimize_routes

router = APIRouter(prefix="/admin/route-optimization", tags=["route-optimization"])


@router.post("", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
def optimize(payload: RouteOptimizationRequest) -> OptimizationResponse:
    try:
        return optimize_routes(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing routes: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize routes: {str(exc)}",
        ) from exc


@router.post("/from-appointments", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
def optimize_from_appointments(payload: AppointmentRouteRequest) -> OptimizationResponse:
    """Optimize the appointments scheduled on a given day."""
    try:
        return optimize_appointments(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing appointments for {payload.service_date}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize appointments: {str(exc)}",
        ) from exc


@router.get("/locations", response_model=LocationListResponse, status_code=status.HTTP_200_OK)
def get_locations(
    service_date: date = Query(..., alias="date", description="Appointment date (YYYY-MM-DD)."),
    technician_id: str | None = Query(default=None, alias="technicianId"),
) -> LocationListResponse:
    """Candidate stops for a day, as the optimizer would receive them."""
    items = list_locations(service_date, technician_id)
    return LocationListResponse(service_date=service_date, count=len(items), items=items)
