from typing import Optional

import pytest

from fieldroute.models.domain import Location, TimeWindow

START = (47.25, -122.44)

# roughly one kilometre of latitude
KM_LAT = 1 / 111.195


def make_location(
    lid: str,
    lat: float,
    lon: float,
    *,
    priority: str = "medium",
    service: Optional[int] = 30,
    window: Optional[tuple[str, str]] = None,
) -> Location:
    return Location(
        id=lid,
        latitude=lat,
        longitude=lon,
        address=f"{lid} Main St",
        priority=priority,
        estimated_service_time=service,
        time_window=TimeWindow(start=window[0], end=window[1]) if window else None,
    )


def start_location() -> Location:
    return make_location("START", *START, service=0)


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table = table

    def _record(self, *call):
        self.client.calls.append((self.table, *call))
        return self

    def select(self, columns):
        return self._record("select", columns)

    def eq(self, column, value):
        return self._record("eq", column, value)

    def order(self, column):
        return self._record("order", column)

    def insert(self, record):
        self.client.inserted.append((self.table, record))
        return self._record("insert")

    def execute(self):
        if self.client.error:
            raise self.client.error
        return FakeResponse(self.client.rows)


class FakeSupabase:
    """Chainable stand-in for the supabase query builder."""

    def __init__(self, rows=None, error: Exception | None = None):
        self.rows = rows or []
        self.error = error
        self.calls: list[tuple] = []
        self.inserted: list[tuple[str, dict]] = []

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()
