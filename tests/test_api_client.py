import asyncio
from datetime import date

import pytest
import requests

from daily_registry.data.api_client import ApiClient, ApiError
from daily_registry.models import AttendancePayload, AttendanceStatus
from daily_registry.stores import RemoteAttendanceStore, RemoteRosterProvider


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b"x") -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = content if payload is not None else b""

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, *responses) -> None:
        self.headers = {}
        self.calls = []
        self._responses = list(responses)

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        pass


def test_client_sends_token_and_drops_empty_params():
    session = FakeSession(FakeResponse(payload=[]))
    client = ApiClient("https://example.test/api//", token="abc", timeout=3, session=session)

    assert client.get("attendance", params={"course": "Hairdressing", "date": None}) == []

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "https://example.test/api/attendance")
    assert kwargs["params"] == {"course": "Hairdressing"}
    assert kwargs["timeout"] == 3
    assert session.headers["Authorization"] == "Bearer abc"


def test_client_wraps_http_and_transport_errors():
    session = FakeSession(FakeResponse(status_code=500, payload={"error": "boom"}), requests.ConnectionError("down"))
    client = ApiClient("https://example.test/api", session=session)

    with pytest.raises(ApiError) as excinfo:
        client.get("students")
    assert excinfo.value.status_code == 500

    with pytest.raises(ApiError):
        client.get("students")


def test_remote_roster_normalises_course_field():
    session = FakeSession(
        FakeResponse(payload=[{"_id": "a1", "name": "Amina", "course": ["Hairdressing", " hairdressing "]}])
    )
    provider = RemoteRosterProvider(ApiClient("https://example.test/api", session=session))

    students = asyncio.run(provider.get_all())

    assert students[0].id == "a1"
    assert students[0].courses == ("Hairdressing",)


def test_remote_attendance_update_targets_record_url():
    record = {"id": 42, "student_id": "7", "course": "Hairdressing", "date": "2025-03-01", "status": "Late"}
    session = FakeSession(FakeResponse(payload=record))
    store = RemoteAttendanceStore(ApiClient("https://example.test/api", session=session))
    payload = AttendancePayload("7", "Hairdressing", date(2025, 3, 1), AttendanceStatus.LATE)

    updated = asyncio.run(store.update(42, payload))

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("PUT", "https://example.test/api/attendance/42")
    assert kwargs["json"]["status"] == "Late"
    assert updated.status is AttendanceStatus.LATE


def test_remote_malformed_rows_become_store_errors():
    session = FakeSession(FakeResponse(payload=[{"id": 1, "course": "Hairdressing"}]))
    store = RemoteAttendanceStore(ApiClient("https://example.test/api", session=session))

    with pytest.raises(ApiError):
        asyncio.run(store.get_all(course="Hairdressing"))
