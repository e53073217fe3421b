import json

import pytest
import requests

from meal_periods import MealSlot
from menu_store import MenuDecodeError, MenuFetchError, MenuStore, SyncState

MENU = {
    "meta": {"weekStart": "2024-12-02"},
    "menu": {"Monday": {"Breakfast": "Poha", "Lunch": "Rajma Chawal"}},
}


class FakeResp:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)


class FakeSession:
    """Stands in for requests.Session, replaying queued responses"""

    def __init__(self, *responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_store(tmp_path, *responses):
    session = FakeSession(*responses)
    store = MenuStore(url="https://example.test/menu.json", cache_path=str(tmp_path / "menu_cache.json"), session=session)
    return store, session


def test_starts_with_no_data(tmp_path):
    store, _ = make_store(tmp_path)
    assert store.state == SyncState.NO_DATA
    assert store.document is None
    assert store.load_cache() is False


def test_refresh_decodes_and_caches(tmp_path):
    store, session = make_store(tmp_path, FakeResp(json.dumps(MENU)))

    document = store.refresh()

    assert store.state == SyncState.READY
    assert store.document is document
    assert document.food_for("Monday", MealSlot.LUNCH) == "Rajma Chawal"
    assert store.last_synced is not None
    assert json.loads((tmp_path / "menu_cache.json").read_text()) == MENU

    url, params, timeout = session.calls[0]
    assert url == "https://example.test/menu.json"
    assert "t" in params
    assert timeout == store.timeout
    assert session.headers["Accept"].startswith("application/json")


def test_cache_survives_restart(tmp_path):
    store, _ = make_store(tmp_path, FakeResp(json.dumps(MENU)))
    store.refresh()

    restarted, _ = make_store(tmp_path)
    assert restarted.load_cache() is True
    assert restarted.state == SyncState.READY
    assert restarted.document == store.document


def test_unreadable_cache_is_ignored(tmp_path):
    (tmp_path / "menu_cache.json").write_text("{not json")
    store, _ = make_store(tmp_path)

    assert store.load_cache() is False
    assert store.state == SyncState.NO_DATA


def test_failed_first_fetch_stays_without_data(tmp_path):
    store, _ = make_store(tmp_path, requests.ConnectionError("offline"))

    with pytest.raises(MenuFetchError):
        store.refresh()

    assert store.state == SyncState.NO_DATA
    assert store.document is None
    assert "offline" in store.last_error


def test_failed_refresh_keeps_previous_menu_as_stale(tmp_path):
    store, _ = make_store(
        tmp_path,
        FakeResp(json.dumps(MENU)),
        FakeResp("Service Unavailable", status_code=503),
    )
    document = store.refresh()

    with pytest.raises(MenuFetchError):
        store.refresh()

    assert store.state == SyncState.STALE
    assert store.document is document


def test_bad_payload_is_a_decode_error_and_not_cached(tmp_path):
    store, _ = make_store(tmp_path, FakeResp("<html>rate limited</html>"), FakeResp(json.dumps({"meta": {}})))

    with pytest.raises(MenuDecodeError):
        store.refresh()
    with pytest.raises(MenuDecodeError):
        store.refresh()

    assert store.state == SyncState.NO_DATA
    assert not (tmp_path / "menu_cache.json").exists()


def test_recovers_after_stale(tmp_path):
    updated = dict(MENU, menu={"Tuesday": {"Dinner": "Aloo Gobi"}})
    store, _ = make_store(
        tmp_path,
        FakeResp(json.dumps(MENU)),
        requests.Timeout("slow"),
        FakeResp(json.dumps(updated)),
    )
    store.refresh()
    with pytest.raises(MenuFetchError):
        store.refresh()

    store.refresh()

    assert store.state == SyncState.READY
    assert store.last_error is None
    assert store.document.days() == ["Tuesday"]
