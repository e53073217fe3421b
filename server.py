#!/usr/bin/env python3
"""
Flask server for the What's In menu, with integrated background scheduler
"""

import re
import threading
from datetime import datetime

import schedule
from flask import Flask, jsonify, request
from flask_cors import CORS

import config
import scheduler
from meal_periods import MEAL_ORDER, get_boundaries, get_meal_period_time_range
from menu_resolver import (
    SYNC_PENDING,
    next_refresh_time,
    resolve,
    spoken_summary,
    week_view,
)
from menu_store import MenuStore, MenuStoreError
from notifier import ReminderNotifier
from reminder_planner import DEFAULT_HORIZON_DAYS, PlanMode, plan

app = Flask(__name__)
CORS(app)

BOUNDARIES = get_boundaries(config.BOUNDARIES)

# '2024-12-02T12:30 05:30' is what '...T12:30+05:30' looks like after query decoding
_UNENCODED_OFFSET = re.compile(r'(T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?) (\d{2}:\d{2})$')

store = MenuStore()
notifier = ReminderNotifier(scheduler=schedule.Scheduler())


def _sync_pending_response():
    state = store.state
    return jsonify({
        "status": SYNC_PENDING,
        "sync_state": state.value,
        "message": "Menu not synced yet",
    }), 503


def _request_time():
    """
    Local time to resolve for: ?at=<ISO datetime> or now

    Accepts a trailing 'Z', and an unencoded '+HH:MM' offset (which arrives
    with the '+' decoded to a space).
    """
    at = request.args.get('at')
    if not at:
        return config.now()
    at = _UNENCODED_OFFSET.sub(r'\1+\2', at.strip())
    if at.endswith('Z'):
        at = at[:-1] + '+00:00'
    moment = datetime.fromisoformat(at)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=config.LOCAL_TZ)
    return moment.astimezone(config.LOCAL_TZ)


@app.route('/api/now', methods=['GET'])
def current_meal():
    """
    Current and next meal

    Query params:
    - at: ISO datetime to resolve for (optional, defaults to now). Naive values are
      menu-local; 'Z' and '+HH:MM' offsets are accepted, encoded or not.

    Response:
    {
        "current_weekday": "Friday",
        "current_meal": "Breakfast",
        "current_food": "Poha, Tea",
        "next_weekday": "Friday",
        "next_meal": "Lunch",
        "next_food": "Rajma Chawal",
        "display_date": "2024-12-06",
        "display_date_label": "Dec 06",
        "sync_state": "ready"
    }
    """
    state, document = store.snapshot()
    if document is None:
        return _sync_pending_response()

    try:
        moment = _request_time()
    except ValueError:
        return jsonify({"error": "Invalid 'at' datetime"}), 400

    result = resolve(moment, document, BOUNDARIES).to_dict()
    result["sync_state"] = state.value
    return jsonify(result)


@app.route('/api/menu', methods=['GET'])
def full_menu():
    """Whole week, listed days only, Monday first"""
    state, document = store.snapshot()
    if document is None:
        return _sync_pending_response()

    return jsonify({
        "week_start": document.week_start.isoformat() if document.week_start else None,
        "last_updated": document.last_updated.isoformat() if document.last_updated else None,
        "hours": {meal.value: get_meal_period_time_range(meal, BOUNDARIES) for meal in MEAL_ORDER},
        "days": [
            {
                "weekday": day,
                "meals": [{"meal": meal.value, "food": food} for meal, food in meals],
            }
            for day, meals in week_view(document)
        ],
        "sync_state": state.value,
    })


@app.route('/api/reminders', methods=['GET'])
def reminders():
    """
    Planned reminders for the current menu

    Query params:
    - mode: "absolute" or "recurring" (default from config)
    - days: horizon in days for absolute mode (default 7)
    """
    document = store.document
    if document is None:
        return _sync_pending_response()

    try:
        mode = PlanMode(request.args.get('mode', config.REMINDER_MODE))
        days = int(request.args.get('days', DEFAULT_HORIZON_DAYS))
        records = plan(document, BOUNDARIES, config.now(), days, mode)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "mode": mode.value,
        "reminders": [record.to_dict() for record in records],
    })


@app.route('/api/ask', methods=['GET'])
def ask():
    """Voice assistant answer for 'what's to eat?'"""
    document = store.document
    if document is None:
        return jsonify({
            "value": "No Menu Found",
            "dialog": "I don't have the menu data yet. Please open the What's In app to sync.",
        })

    state = resolve(config.now(), document, BOUNDARIES)
    return jsonify({"value": state.current_food, "dialog": spoken_summary(state)})


@app.route('/api/next-refresh', methods=['GET'])
def next_refresh():
    """When widgets should next re-resolve"""
    return jsonify({"next_refresh": next_refresh_time(config.now(), BOUNDARIES).isoformat()})


@app.route('/api/refresh', methods=['GET'])
def refresh_menu():
    """Manually trigger a menu update"""
    try:
        document = store.refresh()
    except MenuStoreError as e:
        return jsonify({
            "status": "error",
            "current_meal": "OFFLINE",
            "current_food": "Connection Error",
            "message": str(e),
        }), 502

    count = scheduler.replan_reminders(document, notifier, boundaries=BOUNDARIES)
    return jsonify({"status": "success", "message": "Menu updated", "reminders": count})


@app.route('/api/status', methods=['GET'])
def status():
    """Health check endpoint"""
    return jsonify({
        "status": "running",
        "timestamp": config.now().isoformat(),
        "sync_state": store.state.value,
        "last_synced": store.last_synced.isoformat() if store.last_synced else None,
        "last_error": store.last_error,
    })


def run_scheduler():
    """Run scheduler in background thread"""
    print("🚀 Scheduler thread starting...")
    scheduler.run_forever(scheduler.start(store, notifier, boundaries=BOUNDARIES))


if __name__ == '__main__':
    scheduler_thread = threading.Thread(target=run_scheduler, daemon=True)
    scheduler_thread.start()
    app.run(host='0.0.0.0', port=config.PORT)
