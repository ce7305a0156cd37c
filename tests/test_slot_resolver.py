from datetime import date

import httpx
import pytest
from fastapi.testclient import TestClient

from app.client import ApiClient, SessionContext, SlotResolver
from app.client.errors import DateOutOfRange, ServiceUnavailable
from conftest import book, days_from_today, register


class RecordingApi:
    """Stands in for ApiClient; records calls and replays a canned result."""

    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    def get(self, path, params=None):
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.mark.parametrize("days", [-1, 31])
def test_out_of_range_dates_never_hit_the_server(days: int):
    api = RecordingApi()
    with pytest.raises(DateOutOfRange):
        SlotResolver(api).get_available_slots(days_from_today(days))
    assert api.calls == []


def test_sunday_returns_no_slots_whatever_the_server_says():
    api = RecordingApi(result={"available_slots": [{"time": "18:00"}, {"time": "19:00"}]})
    lookup = SlotResolver(api).get_available_slots(date(2025, 4, 13))
    assert lookup.slots == []
    assert not lookup.service_unavailable
    assert api.calls == []


def test_server_failure_yields_service_unavailable():
    api = RecordingApi(error=ServiceUnavailable("down", status_code=503))
    lookup = SlotResolver(api).get_available_slots(date(2025, 4, 10))
    assert lookup.slots == []
    assert lookup.service_unavailable is True
    assert lookup.message == "Booking service is currently unavailable"


def test_unknown_slots_from_server_are_dropped():
    api = RecordingApi(result={"available_slots": [{"time": "18:00"}, {"time": "21:00"}, "junk"]})
    lookup = SlotResolver(api).get_available_slots(date(2025, 4, 10))
    assert [slot.time for slot in lookup.slots] == ["18:00"]
    assert lookup.find("21:00") is None


@pytest.mark.parametrize("days", [0, 30])
def test_resolver_against_live_server(client_base: TestClient, days: int):
    lookup = SlotResolver(ApiClient(client_base)).get_available_slots(days_from_today(days))
    assert lookup.has_open_slots
    assert len(lookup.slots) == 6


def test_resolver_excludes_booked_slot(client_base: TestClient):
    token, _ = register(client_base)
    book(client_base, token, time_slot="19:00")
    lookup = SlotResolver(ApiClient(client_base)).get_available_slots(date(2025, 4, 10))
    assert lookup.find("19:00") is None
    assert lookup.find("18:00") is not None


def test_transport_failure_is_classified():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://booking.local")
    api = ApiClient(http, SessionContext())
    with pytest.raises(ServiceUnavailable):
        api.get("/appointments/available-slots/2025-04-10")

    lookup = SlotResolver(api).get_available_slots(date(2025, 4, 10))
    assert lookup.service_unavailable is True
