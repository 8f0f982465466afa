"""Route optimization request/response schemas.

Wire names are camelCase to match the admin dashboard; Python attributes stay
snake_case.
"""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class TimeWindowModel(BaseModel):
    start: str = Field(..., description="Window opening time, HH:MM.")
    end: str = Field(..., description="Window closing time, HH:MM.")


class LocationModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    address: str = ""
    name: Optional[str] = None
    latitude: float
    longitude: float
    priority: Literal["urgent", "high", "medium", "low"] = "medium"
    estimated_service_time: Optional[int] = Field(None, alias="estimatedServiceTime")
    time_window: Optional[TimeWindowModel] = Field(None, alias="timeWindow")


class RouteOptimizationOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vehicle_capacity: Optional[int] = Field(None, ge=1, alias="vehicleCapacity")
    max_route_time: int = Field(480, ge=1, alias="maxRouteTime")
    traffic_consideration: bool = Field(True, alias="trafficConsideration")
    prioritize_time_windows: bool = Field(True, alias="prioritizeTimeWindows")
    route_start_time: Optional[str] = Field(
        None,
        alias="routeStartTime",
        description="Clock time (HH:MM) technicians leave the start location.",
    )
    max_routes: Optional[int] = Field(None, ge=1, alias="maxRoutes", description="Number of technicians available.")
    refine_sequences: Optional[bool] = Field(None, alias="refineSequences")
    persist: bool = Field(False, description="Write summary.json/routes.csv for this run.")
    requested_by: Optional[str] = Field(None, alias="requestedBy", description="User or system requesting the run.")


class RouteOptimizationRequest(RouteOptimizationOptions):
    start_location: LocationModel = Field(..., alias="startLocation")
    destinations: List[LocationModel] = Field(default_factory=list)


class AppointmentRouteRequest(RouteOptimizationOptions):
    service_date: date = Field(..., alias="date")
    technician_id: Optional[str] = Field(None, alias="technicianId")
    start_location: LocationModel = Field(..., alias="startLocation")


class RouteStopModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location_id: str = Field(..., alias="locationId")
    sequence: int
    arrival_time: str = Field(..., alias="arrivalTime")
    arrival_min: float = Field(..., alias="arrivalMin")
    wait_min: float = Field(..., alias="waitMin")
    travel_min: float = Field(..., alias="travelMin")
    distance_from_prev_km: float = Field(..., alias="distanceFromPrevKm")
    service_min: float = Field(..., alias="serviceMin")


class RouteModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    route_id: str = Field(..., alias="routeId")
    location_ids: List[str] = Field(..., alias="locationIds")
    stops: List[RouteStopModel]
    total_distance: float = Field(..., alias="totalDistance")
    total_time: float = Field(..., alias="totalTime")
    service_time: float = Field(..., alias="serviceTime")
    travel_time: float = Field(..., alias="travelTime")
    efficiency: float
    estimated_fuel_cost: float = Field(..., alias="estimatedFuelCost")


class InfeasibleDestinationModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location_id: str = Field(..., alias="locationId")
    reason: str
    detail: str


class OptimizationMetadataModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    algorithm: str
    processing_time: float = Field(..., alias="processingTime", description="Milliseconds.")
    route_count: int = Field(..., alias="routeCount")
    destination_count: int = Field(..., alias="destinationCount")
    duplicates_removed: int = Field(0, alias="duplicatesRemoved")
    refined_routes: int = Field(0, alias="refinedRoutes")
    run_directory: Optional[str] = Field(None, alias="runDirectory")


class OptimizationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    routes: List[RouteModel]
    infeasible: List[InfeasibleDestinationModel]
    total_distance: float = Field(..., alias="totalDistance")
    total_time: float = Field(..., alias="totalTime")
    total_fuel_cost: float = Field(..., alias="totalFuelCost")
    recommendations: List[str]
    metadata: OptimizationMetadataModel


class LocationListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    service_date: date = Field(..., alias="date")
    count: int
    items: List[LocationModel]
