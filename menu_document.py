"""
menu_document.py - Weekly menu document model and wire decoding

Wire format:
{
    "meta": {"weekStart": "YYYY-MM-DD", "lastUpdated": "YYYY-MM-DD"},
    "menu": {
        "Monday": {"Breakfast": "...", "Lunch": "...", "Snacks": "...", "Dinner": "..."},
        ...
    }
}
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from meal_periods import MEAL_ORDER, WEEKDAYS, MealSlot


def parse_calendar_date(value) -> Optional[date]:
    """Parse a YYYY-MM-DD string, returning None for anything else"""
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), '%Y-%m-%d').date()
    except ValueError:
        return None


@dataclass(frozen=True)
class MenuDocument:
    """
    A decoded weekly menu. Treat as immutable.

    A missing day or meal is absent from `menu`. Empty text is kept as ''
    so it stays distinguishable from absence.
    """

    week_start: Optional[date]
    menu: Mapping[str, Mapping[MealSlot, str]]
    last_updated: Optional[date] = None
    week_start_text: str = field(default='', compare=False)

    def food_for(self, weekday: str, meal: MealSlot) -> Optional[str]:
        """Food text for a slot, or None when the day or meal is absent"""
        day_menu = self.menu.get(weekday)
        if day_menu is None:
            return None
        return day_menu.get(meal)

    def days(self) -> List[str]:
        """Weekdays present in the document, Monday first"""
        return [day for day in WEEKDAYS if day in self.menu]

    def meals_for(self, weekday: str) -> List[MealSlot]:
        """Meal slots present for a weekday, in serving order"""
        day_menu = self.menu.get(weekday, {})
        return [meal for meal in MEAL_ORDER if meal in day_menu]


def parse_menu_document(data: Any) -> MenuDocument:
    """
    Build a MenuDocument from decoded JSON

    Unknown weekday or meal keys and non-string food values are skipped.
    A missing or malformed meta.weekStart leaves week_start as None.

    Raises:
        ValueError: top level is not an object, or `menu` is missing or not an object
    """
    if not isinstance(data, dict):
        raise ValueError(f"Menu document must be a JSON object, got {type(data).__name__}")

    raw_menu = data.get('menu')
    if not isinstance(raw_menu, dict):
        raise ValueError("Menu document has no 'menu' object")

    meta = data.get('meta')
    if not isinstance(meta, dict):
        meta = {}

    menu: Dict[str, Mapping[MealSlot, str]] = {}
    for day_name, raw_day in raw_menu.items():
        if day_name not in WEEKDAYS or not isinstance(raw_day, dict):
            continue
        day_menu = {}
        for meal in MEAL_ORDER:
            food = raw_day.get(meal.value)
            if isinstance(food, str):
                day_menu[meal] = food
        menu[day_name] = MappingProxyType(day_menu)

    week_start_text = meta.get('weekStart')
    return MenuDocument(
        week_start=parse_calendar_date(week_start_text),
        menu=MappingProxyType(menu),
        last_updated=parse_calendar_date(meta.get('lastUpdated')),
        week_start_text=week_start_text if isinstance(week_start_text, str) else '',
    )
