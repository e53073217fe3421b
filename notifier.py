"""
notifier.py - Install planned meal reminders as schedule jobs

A new plan always replaces the old one. Every installed reminder is
cleared before the new set goes in, under a lock, so a stale reminder from
an older menu never fires and two replacements never interleave.

Reminder clock times are in the configured menu timezone, whatever zone the
host runs in.
"""

import threading
from datetime import timedelta

import schedule

import config

REMINDER_TAG = 'meal-reminder'


def print_delivery(record):
    """Default delivery: log the reminder to the console"""
    print(f"🔔 {record.title}: {record.body}")


def _menu_local(moment):
    """Aware datetime in the menu timezone. Naive values are taken as menu-local."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=config.LOCAL_TZ)
    return moment.astimezone(config.LOCAL_TZ)


def _host_naive(moment):
    # schedule compares against the host's naive local time
    return _menu_local(moment).astimezone().replace(tzinfo=None)


class ReminderNotifier:
    """
    Args:
        scheduler: schedule.Scheduler to install jobs on (shared with the refresh job is fine)
        deliver: callable(ReminderRecord) invoked when a reminder fires
        clock: callable returning the current time, defaults to config.now
    """

    def __init__(self, scheduler=None, deliver=print_delivery, clock=None):
        self.scheduler = scheduler or schedule.Scheduler()
        self.deliver = deliver
        self.clock = clock or (lambda: config.now())
        self._lock = threading.Lock()
        self._installed = []

    @property
    def installed(self):
        with self._lock:
            return list(self._installed)

    def jobs(self):
        return self.scheduler.get_jobs(REMINDER_TAG)

    def clear(self):
        with self._lock:
            self.scheduler.clear(REMINDER_TAG)
            self._installed = []

    def replace_all(self, records):
        """
        Clear every installed reminder, then install `records`

        Returns:
            Number of reminders installed
        """
        with self._lock:
            self.scheduler.clear(REMINDER_TAG)
            self._installed = []

            now = _menu_local(self.clock())
            for record in records:
                if record.fire_at is not None and _menu_local(record.fire_at) <= now:
                    continue
                self._install(record)
                self._installed.append(record)

            count = len(self._installed)

        print(f"⏰ {count} meal reminders scheduled")
        return count

    def _install(self, record):
        day_job = getattr(self.scheduler.every(), record.weekday.lower())
        job = day_job.at(record.clock, config.TIMEZONE_NAME)
        if record.fire_at is not None:
            job = job.until(_host_naive(record.fire_at) + timedelta(minutes=1))
        job.do(self._fire, record).tag(REMINDER_TAG, record.weekday.lower(), record.meal.value.lower())

    def _fire(self, record):
        if record.fire_at is None:
            self.deliver(record)
            return None

        # A dated reminder rides on a weekly job, so wait for its own date
        if _menu_local(self.clock()).date() != _menu_local(record.fire_at).date():
            return None
        self.deliver(record)
        with self._lock:
            if record in self._installed:
                self._installed.remove(record)
        return schedule.CancelJob
