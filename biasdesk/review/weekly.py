"""
Weekly trading calendar.

Lays out the trading week (Monday to Friday) with the preferred
trading days highlighted: Monday, Tuesday and Thursday. Wednesday is
a conditional day, only traded if Monday and Tuesday produced no entries.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

PREFERRED_WEEKDAYS = (0, 1, 3)  # Monday, Tuesday, Thursday
WEDNESDAY = 2
WEDNESDAY_WARNING = "Trade only if no entries on Monday & Tuesday"


@dataclass
class TradingDay:
    """One weekday on the calendar."""
    name: str
    date: date
    is_today: bool
    highlighted: bool
    is_wednesday: bool

    @property
    def warning(self) -> Optional[str]:
        """Reminder shown on Wednesday when it is today."""
        if self.is_today and self.is_wednesday:
            return WEDNESDAY_WARNING
        return None


def week_start(today: date) -> date:
    """
    Monday of the displayed week.

    Sunday shows the week ahead.
    """
    if today.weekday() == 6:
        return today + timedelta(days=1)
    return today - timedelta(days=today.weekday())


def build_week(today: date) -> List[TradingDay]:
    """Monday to Friday of the week containing today."""
    monday = week_start(today)
    days = []

    for offset in range(5):
        day = monday + timedelta(days=offset)
        days.append(TradingDay(
            name=day.strftime("%A"),
            date=day,
            is_today=day == today,
            highlighted=day.weekday() in PREFERRED_WEEKDAYS,
            is_wednesday=day.weekday() == WEDNESDAY,
        ))

    return days


def week_title(today: date) -> str:
    """Heading like "October 2026 (Week 3)"."""
    monday = week_start(today)
    week_of_month = math.ceil(today.day / 7)
    return f"{monday.strftime('%B %Y')} (Week {week_of_month})"
