"""Audit trail for optimization runs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..config import settings
from ..db.supabase import get_supabase_client
from ..services.routing.metrics import mean_efficiency
from ..services.routing.models import OptimizationResult


def build_audit_record(result: OptimizationResult, requested_by: str | None = None) -> dict:
    metadata = result.metadata
    return {
        "event_type": "route_optimization",
        "entity_type": "route_optimization",
        "user_id": requested_by,
        "severity": "low",
        "success": True,
        "metadata": {
            "destination_count": metadata.get("destination_count"),
            "route_count": len(result.routes),
            "infeasible_count": len(result.infeasible),
            "total_distance_km": round(result.total_distance_km, 3),
            "total_time_min": round(result.total_time_min, 1),
            "average_efficiency": round(mean_efficiency(result.routes), 4),
            "algorithm": metadata.get("algorithm"),
            "processing_time_ms": metadata.get("processing_time_ms"),
        },
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


def record_optimization_run(result: OptimizationResult, requested_by: str | None = None) -> bool:
    """Insert an audit row for a run. Returns False when nothing was written."""
    supabase = get_supabase_client()
    if not supabase:
        logging.info("Supabase not configured - optimization run not audited")
        return False

    try:
        supabase.table(settings.audit_table).insert(build_audit_record(result, requested_by)).execute()
        return True
    except Exception as exc:
        # the computed routes are still valid; a logging failure must not fail the request
        logging.error(f"Failed to record optimization audit log: {exc}")
        return False
