#!/usr/bin/env python3
"""
Scheduler that keeps the menu and the meal reminders fresh
Refreshes the menu on start and daily at REFRESH_AT, then replans reminders
"""

import time
from datetime import datetime

import schedule

import config
from meal_periods import get_boundaries
from menu_store import MenuStore, MenuStoreError
from notifier import ReminderNotifier
from reminder_planner import PlanMode, plan

REFRESH_TAG = 'menu-refresh'


def replan_reminders(document, notifier, boundaries=None, mode=None, horizon_days=None):
    """Plan reminders for `document` and swap them in for the installed set"""
    boundaries = boundaries or get_boundaries(config.BOUNDARIES)
    mode = PlanMode(mode or config.REMINDER_MODE)
    if horizon_days is None:
        horizon_days = config.REMINDER_HORIZON_DAYS

    records = plan(document, boundaries, config.now(), horizon_days, mode)
    return notifier.replace_all(records)


def update_menu(store, notifier, **plan_options):
    """
    Refresh the menu and replan reminders

    Returns:
        True if a fresh menu was installed
    """
    print(f"\n{'='*60}")
    print(f"🕐 Menu update at {datetime.now().strftime('%I:%M %p')}")
    print(f"{'='*60}\n")

    try:
        document = store.refresh()
    except MenuStoreError as e:
        print(f"⚠️ Keeping previous menu ({store.state.value}): {e}")
        return False

    replan_reminders(document, notifier, **plan_options)

    print(f"\n{'='*60}")
    print(f"🎉 Update complete at {datetime.now().strftime('%I:%M %p')}")
    print(f"{'='*60}\n")
    return True


def start(store, notifier, refresh_at=None, **plan_options):
    """
    Bring the store up and register the daily refresh

    The cached menu is used straight away so reminders exist even when the
    first download fails.
    """
    scheduler = notifier.scheduler
    refresh_at = refresh_at or config.REFRESH_AT

    if store.load_cache():
        replan_reminders(store.document, notifier, **plan_options)

    update_menu(store, notifier, **plan_options)

    scheduler.clear(REFRESH_TAG)
    scheduler.every().day.at(refresh_at, config.TIMEZONE_NAME).do(update_menu, store, notifier, **plan_options).tag(REFRESH_TAG)
    print(f"⏰ Menu refresh scheduled at {refresh_at} daily\n")
    return scheduler


def run_forever(scheduler):
    """Block, running due jobs once a minute"""
    while True:
        scheduler.run_pending()
        time.sleep(60)


if __name__ == "__main__":
    print("🚀 Scheduler starting...")
    menu_store = MenuStore()
    reminder_notifier = ReminderNotifier(scheduler=schedule.Scheduler())
    try:
        run_forever(start(menu_store, reminder_notifier))
    except KeyboardInterrupt:
        print("\n\n👋 Scheduler stopped. Goodbye!")
