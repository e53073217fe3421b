"""
reminder_planner.py - Build the set of meal reminders for a menu document

Two policies:
- absolute: dated reminders for every listed meal on the dates that fall
  inside the horizon, future ones only
- recurring: one weekly reminder per listed (weekday, meal); the scheduler
  handles repetition
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from meal_periods import WEEKDAYS, MealSlot

# Body used when a listed meal has blank text
CHECK_MENU = "Check Menu"

DEFAULT_HORIZON_DAYS = 7
MAX_HORIZON_DAYS = 366


class PlanMode(str, Enum):
    ABSOLUTE = "absolute"
    RECURRING = "recurring"


@dataclass(frozen=True)
class ReminderRecord:
    weekday: str
    meal: MealSlot
    fire_hour: int
    fire_minute: int
    title: str
    body: str
    fire_at: Optional[datetime] = None

    @property
    def clock(self) -> str:
        return f"{self.fire_hour:02d}:{self.fire_minute:02d}"

    def to_dict(self):
        return {
            "weekday": self.weekday,
            "meal": self.meal.value,
            "time": self.clock,
            "title": self.title,
            "body": self.body,
            "fire_at": self.fire_at.isoformat() if self.fire_at else None,
        }


def _make_record(doc, boundaries, weekday, meal, fire_at=None):
    fire_time = boundaries.reminder_time(meal)
    food = doc.food_for(weekday, meal) or ''
    return ReminderRecord(
        weekday=weekday,
        meal=meal,
        fire_hour=fire_time.hour,
        fire_minute=fire_time.minute,
        title=f"{meal.value} Time",
        body=food if food.strip() else CHECK_MENU,
        fire_at=fire_at,
    )


def plan(doc, boundaries, from_instant=None, horizon_days=DEFAULT_HORIZON_DAYS, mode=PlanMode.ABSOLUTE) -> List[ReminderRecord]:
    """
    Plan reminders for every meal listed in the document

    Args:
        doc: MenuDocument
        boundaries: MealBoundaryTable supplying each slot's reminder time
        from_instant: local datetime the horizon starts at (absolute mode only)
        horizon_days: number of calendar days, starting with from_instant's date
        mode: PlanMode or its string value

    Returns:
        Absolute mode: records ordered by fire_at, all strictly after from_instant.
        Recurring mode: one record per listed (weekday, meal), Monday first.

    Raises:
        ValueError: horizon outside 0..MAX_HORIZON_DAYS, unknown mode, or missing boundary table
        TypeError: absolute mode without a datetime from_instant
    """
    mode = PlanMode(mode)
    if boundaries is None:
        raise ValueError("A boundary table is required")
    if not 0 <= horizon_days <= MAX_HORIZON_DAYS:
        raise ValueError(f"horizon_days must be between 0 and {MAX_HORIZON_DAYS}, got {horizon_days}")

    if mode is PlanMode.RECURRING:
        return [
            _make_record(doc, boundaries, day, meal)
            for day in doc.days()
            for meal in doc.meals_for(day)
        ]

    if not isinstance(from_instant, datetime):
        raise TypeError("Absolute-date planning needs a datetime from_instant")

    records = []
    for offset in range(horizon_days):
        day = from_instant.date() + timedelta(days=offset)
        weekday = WEEKDAYS[day.weekday()]
        for meal in doc.meals_for(weekday):
            fire_at = datetime.combine(day, boundaries.reminder_time(meal), tzinfo=from_instant.tzinfo)
            if fire_at > from_instant:
                records.append(_make_record(doc, boundaries, weekday, meal, fire_at))

    records.sort(key=lambda record: record.fire_at)
    return records
