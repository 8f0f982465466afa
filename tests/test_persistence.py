from pathlib import Path

from conftest import KM_LAT, START, FakeSupabase, make_location, start_location
from fieldroute.models.domain import RouteOptimizationParams
from fieldroute.persistence import audit
from fieldroute.persistence.filesystem import FileStorage
from fieldroute.services.outputs.routing_formatter import optimization_result_to_csv, optimization_result_to_json
from fieldroute.services.routing.optimizer import optimize_route


def _result():
    params = RouteOptimizationParams(
        start_location=start_location(),
        destinations=[
            make_location("A", START[0] + 2 * KM_LAT, START[1]),
            make_location("B", START[0] + 4 * KM_LAT, START[1], window=("06:00", "07:00")),
        ],
        refine_sequences=False,
    )
    return optimize_route(params)


def test_file_storage_creates_distinct_run_directories(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    first = storage.make_run_directory(prefix="routes_test")
    second = storage.make_run_directory(prefix="routes_test")

    assert first.is_dir() and second.is_dir()
    assert first != second
    assert first.parent == tmp_path / "outputs"


def test_file_storage_writes_json_and_csv(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    run_dir = storage.make_run_directory(prefix="routes_test")

    storage.write_json(run_dir / "summary.json", {"hello": "world"})
    storage.write_csv(run_dir / "routes.csv", "a,b\n1,2\n")

    assert (run_dir / "summary.json").read_text(encoding="utf-8") == '{\n  "hello": "world"\n}'
    assert (run_dir / "routes.csv").read_text(encoding="utf-8") == "a,b\n1,2\n"


def test_formatters_include_infeasible_destinations():
    result = _result()

    summary = optimization_result_to_json(result)
    csv_text = optimization_result_to_csv(result)

    assert summary["infeasible"] == [
        {"location_id": "B", "reason": "time_window", "detail": summary["infeasible"][0]["detail"]}
    ]
    assert summary["routes"][0]["location_ids"] == ["A"]
    assert csv_text.splitlines()[-1].endswith("infeasible:time_window")


def test_audit_record_summarises_run(monkeypatch):
    client = FakeSupabase()
    monkeypatch.setattr(audit, "get_supabase_client", lambda: client)

    assert audit.record_optimization_run(_result(), requested_by="admin-1") is True

    table, record = client.inserted[0]
    assert table == "audit_logs"
    assert record["event_type"] == "route_optimization"
    assert record["user_id"] == "admin-1"
    assert record["metadata"]["destination_count"] == 2
    assert record["metadata"]["route_count"] == 1
    assert record["metadata"]["infeasible_count"] == 1
    assert record["metadata"]["algorithm"] == "Nearest Neighbor"


def test_audit_failures_do_not_propagate(monkeypatch):
    client = FakeSupabase(error=RuntimeError("insert failed"))
    monkeypatch.setattr(audit, "get_supabase_client", lambda: client)

    assert audit.record_optimization_run(_result()) is False


def test_audit_skipped_without_database(monkeypatch):
    monkeypatch.setattr(audit, "get_supabase_client", lambda: None)
    assert audit.record_optimization_run(_result()) is False
