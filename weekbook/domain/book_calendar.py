"""Book calendar rules - title format, week numbering and weekly windows"""

import math
import re
from datetime import date, datetime, timedelta
from typing import Optional

from weekbook.domain.exceptions import ValidationError
from weekbook.domain.models import BookWindow

BOOK_TITLE_PATTERN = re.compile(r"Week \d+ of [A-Za-z]+ - [A-Za-z]+ - \d{4}", re.ASCII)
BOOK_TITLE_FORMAT_MESSAGE = "Book title must follow format: Week [number] of [Month] - [Month] - [Year]"

MS_PER_DAY = 86_400_000

# Fixed English names; strftime("%B") follows the process locale
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def validate_book_title(title: str) -> str:
    """Reject titles that don't match 'Week {n} of {Month} - {Month} - {Year}'"""
    if not title or not BOOK_TITLE_PATTERN.fullmatch(title):
        raise ValidationError(BOOK_TITLE_FORMAT_MESSAGE)
    return title


def validate_book_window(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date is None:
        raise ValidationError("Start date is required")
    if end_date is None:
        raise ValidationError("End date is required")
    if end_date < start_date:
        raise ValidationError("End date must not be before start date")


def inclusive_duration_days(start_date: date, end_date: date) -> int:
    """Number of calendar days covered by [start_date, end_date]"""
    return (end_date - start_date).days + 1


def recomputed_duration_days(start_date: date, end_date: date) -> int:
    """
    Duration stored after an edit: ceil((end - start) / 1 day).

    Unlike inclusive_duration_days this does not count the start day, so a
    Monday-Sunday book edited in place reports 6.
    """
    elapsed_ms = (end_date - start_date).total_seconds() * 1000
    return math.ceil(elapsed_ms / MS_PER_DAY)


def week_number(day: date) -> int:
    """
    Week-of-year used in generated book titles.

    weekNumber = ceil((daysSinceJan1 + jan1WeekdayIndex + 1) / 7) where the
    weekday index counts from Sunday = 0. This is not ISO-8601 numbering;
    keep the formula as is so generated titles stay stable across releases.
    """
    first_day_of_year = date(day.year, 1, 1)
    past_days = (day - first_day_of_year).total_seconds() * 1000 / MS_PER_DAY
    # date.weekday() counts from Monday = 0
    first_weekday_index = (first_day_of_year.weekday() + 1) % 7
    return math.ceil((past_days + first_weekday_index + 1) / 7)


def book_title_for(start_date: date, end_date: date) -> str:
    return (
        f"Week {week_number(start_date)} of {MONTH_NAMES[start_date.month - 1]}"
        f" - {MONTH_NAMES[end_date.month - 1]} - {start_date.year}"
    )


def next_book_window(last_end_date: date, length_days: int = 7) -> BookWindow:
    """
    Window for the book that follows one ending on last_end_date.

    Starts the day after last_end_date and spans length_days calendar days.
    """
    start_date = last_end_date + timedelta(days=1)
    end_date = start_date + timedelta(days=length_days - 1)
    return BookWindow(
        title=book_title_for(start_date, end_date),
        start_date=start_date,
        end_date=end_date,
        duration_days=length_days,
    )


def is_overdue(end_date: date, now: datetime) -> bool:
    """A book is overdue once its whole end day has passed"""
    return end_date < now.date()


def contains(start_date: date, end_date: date, day: date) -> bool:
    return start_date <= day <= end_date
