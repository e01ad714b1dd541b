# services/dates.py
from datetime import datetime, time, timedelta

from django.utils import timezone


def local_today():
    return timezone.localdate()


def day_bounds(day):
    """[début, fin) d'une journée locale, en datetimes aware."""
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    return start, start + timedelta(days=1)


def week_start(day):
    # semaine du lundi au dimanche
    return day - timedelta(days=day.weekday())


def month_start(day):
    return day.replace(day=1)


def previous_month_start(day):
    first = month_start(day)
    return month_start(first - timedelta(days=1))


def earnings_periods(today=None):
    """
    Fenêtres [start, end) utilisées par le tableau de bord finances :
    today, yesterday, this_week, last_week, this_month, last_month.
    """
    today = today or local_today()
    tomorrow = today + timedelta(days=1)
    this_week = week_start(today)
    this_month = month_start(today)
    return {
        "today": (today, tomorrow),
        "yesterday": (today - timedelta(days=1), today),
        "this_week": (this_week, tomorrow),
        "last_week": (this_week - timedelta(days=7), this_week),
        "this_month": (this_month, tomorrow),
        "last_month": (previous_month_start(today), this_month),
    }


def as_datetime_range(start_day, end_day):
    return day_bounds(start_day)[0], day_bounds(end_day)[0]


def is_past_date(day) -> bool:
    return day < local_today()
