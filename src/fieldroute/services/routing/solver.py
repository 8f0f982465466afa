"""OR-Tools sequence refinement for constructed routes.

Each route is treated as a single-vehicle open path from the start location.
The solver only proposes a new visiting order; the caller replays it with
``schedule_route`` and keeps whichever order is feasible and shorter.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ortools.constraint_solver import pywrapcp, routing_enums_pb2

from ...config import settings
from .builder import RoutingContext

logger = logging.getLogger(__name__)


def _seconds_from_minutes(minutes: float) -> int:
    return int(round(minutes * 60))


def _search_parameters():
    search_parameters = pywrapcp.DefaultRoutingSearchParameters()
    search_parameters.first_solution_strategy = getattr(
        routing_enums_pb2.FirstSolutionStrategy, settings.solver_first_solution_strategy
    )
    search_parameters.local_search_metaheuristic = getattr(
        routing_enums_pb2.LocalSearchMetaheuristic, settings.solver_local_search_metaheuristic
    )
    search_parameters.time_limit.FromSeconds(settings.solver_time_limit_seconds)
    return search_parameters


def refine_sequence(context: RoutingContext, route: Sequence[int]) -> Optional[list[int]]:
    """Propose a shorter visiting order for ``route`` (matrix node ids).

    Returns None when the route is too short to reorder or the solver finds
    no assignment.
    """

    if len(route) < 3:
        return None

    # local node 0 is the start location, local node k is route[k - 1]
    nodes = [0, *route]
    size = len(nodes)
    horizon = _seconds_from_minutes(context.max_route_time)

    distance_matrix = [
        [int(round(context.matrix[a][b].distance_km * 1000)) for b in nodes]
        for a in nodes
    ]
    travel_matrix = [
        [_seconds_from_minutes(context.matrix[a][b].travel_minutes) for b in nodes]
        for a in nodes
    ]
    service = [0] + [_seconds_from_minutes(context.candidate(node).service_min) for node in route]

    manager = pywrapcp.RoutingIndexManager(size, 1, 0)
    routing = pywrapcp.RoutingModel(manager)

    def distance_callback(from_index: int, to_index: int) -> int:
        from_node = manager.IndexToNode(from_index)
        to_node = manager.IndexToNode(to_index)
        if to_node == 0:
            return 0  # open route, no return leg
        return distance_matrix[from_node][to_node]

    transit_callback_index = routing.RegisterTransitCallback(distance_callback)
    routing.SetArcCostEvaluatorOfAllVehicles(transit_callback_index)

    def time_callback(from_index: int, to_index: int) -> int:
        from_node = manager.IndexToNode(from_index)
        to_node = manager.IndexToNode(to_index)
        travel = 0 if to_node == 0 else travel_matrix[from_node][to_node]
        return service[from_node] + travel

    time_callback_index = routing.RegisterTransitCallback(time_callback)
    routing.AddDimension(
        time_callback_index,
        horizon,  # waiting for a window to open
        horizon,
        True,
        "Time",
    )
    time_dimension = routing.GetDimensionOrDie("Time")

    for local_node, node in enumerate(route, start=1):
        window = context.candidate(node).window
        if window is None:
            continue
        earliest = max(0, (window[0] - context.start_clock) * 60)
        latest = min(horizon, (window[1] - context.start_clock) * 60)
        if latest < earliest:
            return None
        time_dimension.CumulVar(manager.NodeToIndex(local_node)).SetRange(earliest, latest)

    assignment = routing.SolveWithParameters(_search_parameters())
    if not assignment:
        logger.info("No refined sequence found for a %d-stop route; keeping constructed order", len(route))
        return None

    order: list[int] = []
    index = routing.Start(0)
    while not routing.IsEnd(index):
        local_node = manager.IndexToNode(index)
        if local_node != 0:
            order.append(nodes[local_node])
        index = assignment.Value(routing.NextVar(index))
    return order
