"""
config.py - Runtime settings for the What's In menu service

Every value can be overridden with the environment variable of the same name.
"""

import os
from datetime import datetime
from zoneinfo import ZoneInfo

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

MENU_URL = os.environ.get(
    'MENU_URL',
    "https://gist.githubusercontent.com/the-rebooted-coder/b2d795d38fff48d9aa4e15e65d818262/raw/menu.json"
)
MENU_CACHE_PATH = os.environ.get('MENU_CACHE_PATH', os.path.join(BASE_DIR, 'menu_cache.json'))
FETCH_TIMEOUT = int(os.environ.get('MENU_FETCH_TIMEOUT', '30'))

# Local timezone for all meal calculations
TIMEZONE_NAME = os.environ.get('MENU_TIMEZONE', 'Asia/Kolkata')
LOCAL_TZ = ZoneInfo(TIMEZONE_NAME)

# 'standard' (11/15/18, day ends 22) or 'desktop' (9/13/17, day ends 20)
BOUNDARIES = os.environ.get('MENU_BOUNDARIES', 'standard')

# Daily menu refresh time (HH:MM, local)
REFRESH_AT = os.environ.get('MENU_REFRESH_AT', '03:00')

# 'absolute' schedules dated reminders inside the horizon, 'recurring' schedules weekly ones
REMINDER_MODE = os.environ.get('REMINDER_MODE', 'recurring')
REMINDER_HORIZON_DAYS = int(os.environ.get('REMINDER_HORIZON_DAYS', '7'))

PORT = int(os.environ.get('PORT', '8080'))


def now():
    """Current time in the configured local timezone"""
    return datetime.now(LOCAL_TZ)
