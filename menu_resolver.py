"""
menu_resolver.py - Work out what is being served now and next

Everything here is pure: same inputs, same output, no shared state.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from meal_periods import (
    MEAL_ORDER,
    WEEKDAYS,
    MealSlot,
    current_slot,
    next_slot,
    weekday_after,
)

# Shown for any day or meal the document doesn't list
NOT_LISTED = "Not listed"

# Returned instead of a state while no menu has been synced yet
SYNC_PENDING = "sync_pending"


@dataclass(frozen=True)
class ResolvedMealState:
    current_weekday: str
    current_meal: MealSlot
    current_food: str
    next_weekday: str
    next_meal: MealSlot
    next_food: str
    display_date: Optional[date]

    @property
    def display_date_label(self) -> str:
        """Short date for cards, e.g. 'Dec 04'"""
        if self.display_date is None:
            return ''
        return self.display_date.strftime('%b %d')

    def to_dict(self):
        return {
            "current_weekday": self.current_weekday,
            "current_meal": self.current_meal.value,
            "current_food": self.current_food,
            "next_weekday": self.next_weekday,
            "next_meal": self.next_meal.value,
            "next_food": self.next_food,
            "display_date": self.display_date.isoformat() if self.display_date else None,
            "display_date_label": self.display_date_label,
        }


def food_or_fallback(doc, weekday, meal):
    food = doc.food_for(weekday, meal)
    return NOT_LISTED if food is None else food


def date_for_weekday(week_start, weekday):
    """
    Calendar date of a weekday within the week starting at week_start

    Args:
        week_start: date of the week's Monday, or None
        weekday: 'Monday'..'Sunday'

    Returns:
        date, or None when week_start is unknown
    """
    if week_start is None:
        return None
    return week_start + timedelta(days=WEEKDAYS.index(weekday))


def resolve(now, doc, boundaries):
    """
    Resolve the current and next meal for a moment in time

    Args:
        now: local datetime
        doc: MenuDocument, or None when nothing has been synced
        boundaries: MealBoundaryTable

    Returns:
        ResolvedMealState, or SYNC_PENDING when doc is None

    Raises:
        TypeError: now is not a datetime
        ValueError: boundaries missing
    """
    if not isinstance(now, datetime):
        raise TypeError(f"now must be a datetime, got {type(now).__name__}")
    if boundaries is None:
        raise ValueError("A boundary table is required")
    if doc is None:
        return SYNC_PENDING

    meal, day_offset = current_slot(now.hour, boundaries)
    weekday = weekday_after(WEEKDAYS[now.weekday()], day_offset)
    following_day, following_meal = next_slot(weekday, meal)

    return ResolvedMealState(
        current_weekday=weekday,
        current_meal=meal,
        current_food=food_or_fallback(doc, weekday, meal),
        next_weekday=following_day,
        next_meal=following_meal,
        next_food=food_or_fallback(doc, following_day, following_meal),
        display_date=date_for_weekday(doc.week_start, weekday),
    )


def week_view(doc) -> List[Tuple[str, List[Tuple[MealSlot, str]]]]:
    """Listed days Monday to Sunday, each with all four meals in serving order"""
    return [
        (day, [(meal, food_or_fallback(doc, day, meal)) for meal in MEAL_ORDER])
        for day in doc.days()
    ]


def next_refresh_time(now, boundaries):
    """
    When a glanceable surface should next re-resolve

    This is the first slot boundary after `now`. Past the last boundary of the
    day it's tomorrow's Breakfast reminder time.
    """
    midnight = datetime.combine(now.date(), time(), tzinfo=now.tzinfo)
    hours = [start for start in boundaries.starts if start > 0] + [boundaries.day_end]
    for hour in hours:
        candidate = midnight + timedelta(hours=hour)
        if candidate > now:
            return candidate
    return datetime.combine(
        now.date() + timedelta(days=1),
        boundaries.reminder_time(MealSlot.BREAKFAST),
        tzinfo=now.tzinfo,
    )


def spoken_summary(state):
    """One-sentence answer for voice assistants"""
    return f"For {state.current_meal.value} on {state.current_weekday}, it is {state.current_food}."
