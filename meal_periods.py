"""
meal_periods.py - Meal slot and boundary table definitions

Meal slots, in serving order:
- Breakfast: start of day until Lunch
- Lunch
- Snacks
- Dinner: until the day-end hour, after which it's tomorrow's Breakfast

Two boundary tables are in use. STANDARD (11/15/18, day ends at 22) drives
the phone, watch, widget and voice surfaces. DESKTOP (9/13/17, day ends at
20) drives the desktop app.
"""

from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Dict, Tuple


class MealSlot(str, Enum):
    """Meal slots. Declaration order is serving order."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    SNACKS = "Snacks"
    DINNER = "Dinner"


MEAL_ORDER = tuple(MealSlot)

# Monday-first, matches datetime.weekday()
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class MealBoundaryTable:
    """
    Start hour of every meal slot plus the hour the day rolls over.

    Args:
        starts: local start hour per slot, in MEAL_ORDER
        day_end: hour at which Dinner ends and tomorrow's Breakfast begins
        reminder_times: (hour, minute) per slot, in MEAL_ORDER
    """

    starts: Tuple[int, int, int, int]
    day_end: int
    reminder_times: Tuple[Tuple[int, int], ...]

    def __post_init__(self):
        if len(self.starts) != len(MEAL_ORDER):
            raise ValueError(f"Expected {len(MEAL_ORDER)} slot start hours, got {len(self.starts)}")
        if len(self.reminder_times) != len(MEAL_ORDER):
            raise ValueError(f"Expected {len(MEAL_ORDER)} reminder times, got {len(self.reminder_times)}")

        for hour in self.starts:
            if not 0 <= hour < 24:
                raise ValueError(f"Slot start hour out of range: {hour}")
        for earlier, later in zip(self.starts, self.starts[1:]):
            if later <= earlier:
                raise ValueError(f"Slot start hours must increase: {self.starts}")
        if not self.starts[-1] < self.day_end <= 24:
            raise ValueError(f"Day end {self.day_end} must fall after Dinner start and at most 24")

        for hour, minute in self.reminder_times:
            if not (0 <= hour < 24 and 0 <= minute < 60):
                raise ValueError(f"Invalid reminder time {hour:02d}:{minute:02d}")

    def start_of(self, meal: MealSlot) -> int:
        return self.starts[MEAL_ORDER.index(meal)]

    def end_of(self, meal: MealSlot) -> int:
        """Hour the slot ends, the next slot's start or day_end for Dinner"""
        idx = MEAL_ORDER.index(meal)
        if idx + 1 < len(MEAL_ORDER):
            return self.starts[idx + 1]
        return self.day_end

    def reminder_time(self, meal: MealSlot) -> time:
        hour, minute = self.reminder_times[MEAL_ORDER.index(meal)]
        return time(hour, minute)


STANDARD = MealBoundaryTable(
    starts=(0, 11, 15, 18),
    day_end=22,
    reminder_times=((7, 0), (11, 0), (15, 0), (18, 0)),
)

DESKTOP = MealBoundaryTable(
    starts=(0, 9, 13, 17),
    day_end=20,
    reminder_times=((9, 0), (13, 0), (17, 0), (20, 0)),
)

BOUNDARY_TABLES: Dict[str, MealBoundaryTable] = {
    'standard': STANDARD,
    'desktop': DESKTOP,
}


def get_boundaries(name):
    """
    Look up a boundary table by name

    Args:
        name: 'standard' or 'desktop' (case-insensitive)

    Returns:
        MealBoundaryTable

    Raises:
        ValueError: unknown table name
    """
    try:
        return BOUNDARY_TABLES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown boundary table '{name}' (expected one of {sorted(BOUNDARY_TABLES)})")


def current_slot(hour, boundaries):
    """
    Determine the meal slot being served at a local hour

    Hours before the Breakfast start count as that day's Breakfast. Hours
    at or after day_end belong to the next day's Breakfast.

    Args:
        hour: local hour of day, 0-23
        boundaries: MealBoundaryTable

    Returns:
        (MealSlot, day_offset) where day_offset is 0 for today or 1 for tomorrow
    """
    if boundaries is None:
        raise ValueError("A boundary table is required")
    if not 0 <= hour < 24:
        raise ValueError(f"Hour out of range: {hour}")

    if hour >= boundaries.day_end:
        return MealSlot.BREAKFAST, 1

    current = MealSlot.BREAKFAST
    for meal in MEAL_ORDER:
        if hour >= boundaries.start_of(meal):
            current = meal
    return current, 0


def weekday_after(weekday, days=1):
    """Weekday name `days` after `weekday`, wrapping Sunday -> Monday"""
    return WEEKDAYS[(WEEKDAYS.index(weekday) + days) % len(WEEKDAYS)]


def next_slot(weekday, meal):
    """
    The slot served after (weekday, meal)

    Returns:
        (weekday, MealSlot). After Dinner this is Breakfast on the following weekday.
    """
    idx = MEAL_ORDER.index(meal)
    if idx + 1 < len(MEAL_ORDER):
        return weekday, MEAL_ORDER[idx + 1]
    return weekday_after(weekday), MEAL_ORDER[0]


def _format_hour(hour):
    return time(hour % 24).strftime('%I:%M %p').lstrip('0')


def get_meal_period_time_range(meal, boundaries):
    """
    Human-readable time range for a meal slot

    Returns:
        str: e.g. '11:00 AM - 3:00 PM'
    """
    return f"{_format_hour(boundaries.start_of(meal))} - {_format_hour(boundaries.end_of(meal))}"
