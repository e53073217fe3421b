import json
from datetime import datetime

import pytest
import requests
import schedule

import config
import server
from menu_store import MenuStore
from notifier import ReminderNotifier
from test_menu_store import FakeResp, FakeSession

MENU = {
    "meta": {"weekStart": "2024-12-02", "lastUpdated": "2024-12-01"},
    "menu": {
        "Monday": {"Breakfast": "Poha", "Lunch": "Rajma Chawal", "Snacks": "Samosa", "Dinner": "Veg Biryani"},
        "Thursday": {"Breakfast": "Upma", "Lunch": "Chole", "Dinner": "Dal Makhani"},
        "Friday": {"Breakfast": "Paratha", "Lunch": "Pulao"},
    },
}

# Thursday 2024-12-05, 23:00 local
LATE_THURSDAY = datetime(2024, 12, 5, 23, 0, tzinfo=config.LOCAL_TZ)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(monkeypatch, tmp_path, session):
    store = MenuStore(url="https://example.test/menu.json", cache_path=str(tmp_path / "menu_cache.json"), session=session)
    monkeypatch.setattr(server, "store", store)
    monkeypatch.setattr(server, "notifier", ReminderNotifier(scheduler=schedule.Scheduler(), deliver=lambda record: None))
    monkeypatch.setattr(config, "now", lambda: LATE_THURSDAY)
    return server.app.test_client()


def sync(client, session):
    session.responses.append(FakeResp(json.dumps(MENU)))
    return client.get('/api/refresh')


def test_now_before_first_sync_is_pending(client):
    response = client.get('/api/now')

    assert response.status_code == 503
    assert response.get_json()["status"] == "sync_pending"
    assert response.get_json()["sync_state"] == "no_data"


def test_refresh_then_now(client, session):
    assert sync(client, session).get_json()["status"] == "success"

    data = client.get('/api/now').get_json()

    assert data["current_weekday"] == "Friday"
    assert data["current_meal"] == "Breakfast"
    assert data["current_food"] == "Paratha"
    assert data["next_meal"] == "Lunch"
    assert data["display_date"] == "2024-12-06"
    assert data["sync_state"] == "ready"


def test_now_at_specific_time(client, session):
    sync(client, session)

    data = client.get('/api/now?at=2024-12-02T12:30').get_json()
    assert data["current_meal"] == "Lunch"
    assert data["next_meal"] == "Snacks"
    assert data["next_weekday"] == "Monday"

    assert client.get('/api/now?at=lunchtime').status_code == 400


@pytest.mark.parametrize("at", [
    "2024-12-02T12:30%2B05:30",
    "2024-12-02T12:30+05:30",
    "2024-12-02T07:00Z",
    "2024-12-02T07:00:00+00:00",
])
def test_now_at_with_offsets(client, session, at):
    sync(client, session)

    response = client.get(f'/api/now?at={at}')

    assert response.status_code == 200
    assert response.get_json()["current_weekday"] == "Monday"
    assert response.get_json()["current_meal"] == "Lunch"


def test_failed_refresh_reports_offline(client, session):
    session.responses.append(requests.ConnectionError("no route to host"))

    response = client.get('/api/refresh')

    assert response.status_code == 502
    assert response.get_json()["current_meal"] == "OFFLINE"
    assert response.get_json()["current_food"] == "Connection Error"
    assert client.get('/api/status').get_json()["sync_state"] == "no_data"


def test_stale_menu_is_still_served(client, session):
    sync(client, session)
    session.responses.append(requests.Timeout("slow"))
    client.get('/api/refresh')

    data = client.get('/api/now').get_json()
    assert data["current_food"] == "Paratha"
    assert data["sync_state"] == "stale"


def test_menu_week_view(client, session):
    assert client.get('/api/menu').status_code == 503
    sync(client, session)

    data = client.get('/api/menu').get_json()

    assert data["week_start"] == "2024-12-02"
    assert data["last_updated"] == "2024-12-01"
    assert data["hours"]["Lunch"] == "11:00 AM - 3:00 PM"
    assert [day["weekday"] for day in data["days"]] == ["Monday", "Thursday", "Friday"]
    thursday = {m["meal"]: m["food"] for m in data["days"][1]["meals"]}
    assert thursday["Snacks"] == "Not listed"


def test_reminders_endpoint(client, session):
    sync(client, session)

    recurring = client.get('/api/reminders?mode=recurring').get_json()
    assert recurring["mode"] == "recurring"
    assert len(recurring["reminders"]) == 9

    absolute = client.get('/api/reminders?mode=absolute&days=7').get_json()
    fire_times = [r["fire_at"] for r in absolute["reminders"]]
    # Thursday's meals are over; Friday breakfast is next
    assert absolute["reminders"][0]["title"] == "Breakfast Time"
    assert absolute["reminders"][0]["body"] == "Paratha"
    assert fire_times == sorted(fire_times)
    assert len(fire_times) == 2 + 4

    assert client.get('/api/reminders?mode=hourly').status_code == 400
    assert client.get('/api/reminders?days=-3').status_code == 400
    assert client.get('/api/reminders?mode=absolute&days=3000000').status_code == 400


def test_refresh_installs_reminders(client, session):
    data = sync(client, session).get_json()

    assert data["reminders"] == len(server.notifier.installed)
    assert server.notifier.jobs()


def test_ask(client, session):
    assert client.get('/api/ask').get_json()["value"] == "No Menu Found"
    sync(client, session)

    data = client.get('/api/ask').get_json()
    assert data == {"value": "Paratha", "dialog": "For Breakfast on Friday, it is Paratha."}


def test_next_refresh(client):
    data = client.get('/api/next-refresh').get_json()
    assert data["next_refresh"] == "2024-12-06T07:00:00+05:30"


def test_status(client, session):
    sync(client, session)
    data = client.get('/api/status').get_json()

    assert data["status"] == "running"
    assert data["sync_state"] == "ready"
    assert data["last_error"] is None
