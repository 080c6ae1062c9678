from __future__ import annotations

from datetime import date

import pytest

from fakes import FakeRemotePeer, InMemoryCursors, InMemorySettings, InMemoryWorkRecords
from worktimer.container import assemble
from worktimer.events import RemoteChangeDetected
from worktimer.main import create_app


@pytest.fixture
def container():
    c = assemble(
        records_repo=InMemoryWorkRecords(),
        cursors_repo=InMemoryCursors(),
        settings_repo=InMemorySettings(),
        remote_peer=FakeRemotePeer(),
        remote_timeout=5,
    )
    yield c
    c.sync_engine.shutdown()


@pytest.fixture
def client(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


def _create(client, **overrides):
    payload = {
        "date": "2026-03-02",
        "type": "work",
        "start_time": "2026-03-02T09:00:00",
        "end_time": "2026-03-02T17:30:00",
        "break_seconds": 1800,
    }
    payload.update(overrides)
    return client.post("/api/records", json=payload)


def test_create_and_fetch_record(client):
    res = _create(client, note="standup")

    assert res.status_code == 201
    body = res.get_json()
    assert body["total_hours"] == 8.0
    assert body["overtime_seconds"] == 0
    assert body["dirty"] is True

    fetched = client.get(f"/api/records/{body['id']}").get_json()
    assert fetched["note"] == "standup"


def test_invalid_record_is_400(client):
    res = _create(client, end_time="2026-03-02T08:00:00")

    assert res.status_code == 400
    assert res.get_json()["success"] is False


def test_unknown_record_is_404(client):
    assert client.get("/api/records/nope").status_code == 404


def test_list_and_delete(client):
    rid = _create(client).get_json()["id"]

    listed = client.get("/api/records?start=2026-03-01&end=2026-03-31").get_json()
    assert [r["id"] for r in listed["records"]] == [rid]

    assert client.delete(f"/api/records/{rid}").status_code == 200
    listed = client.get("/api/records?start=2026-03-01&end=2026-03-31").get_json()
    assert listed["records"] == []


def test_policy_update_recomputes_records(client):
    rid = _create(client).get_json()["id"]

    res = client.put("/api/policy", json={"standard_daily_hours": 7})

    assert res.status_code == 200
    assert res.get_json()["standard_daily_hours"] == 7.0
    assert client.get(f"/api/records/{rid}").get_json()["overtime_seconds"] == 3600


def test_sync_round_trip(client, container):
    _create(client)

    res = client.post("/api/sync")

    body = res.get_json()
    assert body["report"]["pushed"] == 1
    assert body["status"]["state"] == "AVAILABLE"
    assert client.get("/api/sync/status").get_json()["progress"] == 1.0


def test_month_report(client):
    _create(client, bonus_amount=12.5)

    body = client.get("/api/reports/month?year=2026&month=3").get_json()

    assert body["total_hours"] == 8.0
    assert body["total_bonus"] == 12.5


def test_bad_month_is_400(client):
    assert client.get("/api/reports/month?year=2026&month=13").status_code == 400


def test_excel_export_download(client):
    _create(client)

    res = client.get("/api/reports/export?year=2026")

    assert res.status_code == 200
    assert res.headers["Content-Disposition"].startswith("attachment")


def test_timer_endpoints(client):
    assert client.post("/api/timer/start").status_code == 201
    assert client.post("/api/timer/pause").get_json()["timer"]["state"] == "PAUSED"
    assert client.post("/api/timer/start").status_code == 400


def test_repeated_syncs_leave_no_undrained_events(container):
    for day in range(1, 26):
        container.local_store.create(day=date(2026, 3, day))

    for _ in range(20):
        assert container.sync_engine.trigger_sync().ok

    assert container.events.drain() == []
    assert not hasattr(container, "status_updates")


def test_policy_update_with_queued_remote_change(client, container):
    rid = _create(client).get_json()["id"]
    container.events.publish(RemoteChangeDetected("all-changes"))

    res = client.put("/api/policy", json={"standard_daily_hours": 7})

    assert res.status_code == 200
    assert client.get(f"/api/records/{rid}").get_json()["overtime_seconds"] == 3600
    assert container.events.drain() == []
