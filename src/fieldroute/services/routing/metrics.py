"""Route scoring and run recommendations."""

from __future__ import annotations

from typing import Sequence

from ...config import settings
from .models import InfeasibleDestination, RoutePlan


def efficiency_score(service_time_min: float, total_time_min: float) -> float:
    """Fraction of route time spent servicing, clamped to [0, 1]."""

    if total_time_min <= 0:
        return 0.0
    return max(0.0, min(1.0, service_time_min / total_time_min))


def score_route(plan: RoutePlan) -> RoutePlan:
    plan.efficiency = efficiency_score(plan.service_time_min, plan.total_time_min)
    plan.estimated_fuel_cost = plan.total_distance_km * settings.fuel_cost_per_km
    return plan


def mean_efficiency(plans: Sequence[RoutePlan]) -> float:
    if not plans:
        return 0.0
    return sum(plan.efficiency for plan in plans) / len(plans)


def build_recommendations(
    plans: Sequence[RoutePlan],
    infeasible: Sequence[InfeasibleDestination],
    *,
    max_route_time: float,
    urgent_count: int = 0,
) -> list[str]:
    recommendations: list[str] = []

    if urgent_count:
        recommendations.append(f"{urgent_count} urgent stop(s) detected. Prioritized in route.")

    threshold = settings.efficiency_warning_threshold
    if plans and mean_efficiency(plans) < threshold:
        recommendations.append(
            f"Average route efficiency is below {threshold:.0%}. "
            "Consider grouping nearby appointments on the same day."
        )

    if infeasible:
        recommendations.append(
            f"{len(infeasible)} destination(s) could not be scheduled. "
            "Consider rescheduling them or extending working hours."
        )

    ratio = settings.route_time_warning_ratio
    long_routes = [plan.route_id for plan in plans if plan.total_time_min > max_route_time * ratio]
    if long_routes:
        recommendations.append(
            f"Route(s) {', '.join(long_routes)} use more than {ratio:.0%} of the maximum route time."
        )

    waiting = sum(plan.wait_time_min for plan in plans)
    if waiting >= 60:
        recommendations.append(
            f"Technicians wait {waiting:.0f} minutes in total for time windows to open. "
            "Consider widening appointment windows."
        )
    return recommendations
