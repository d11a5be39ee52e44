"""Helpers shared by the table wrappers for composing hosted queries."""

from datetime import date, datetime, time
from datetime import timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime


def page_range(page, page_size):
    """Inclusive row range for a 1-based page."""
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    start = (max(page, 1) - 1) * page_size
    return start, start + page_size - 1


def search_filter(columns, term):
    """``or`` filter matching ``term`` case-insensitively in any of ``columns``."""
    # Commas and parentheses delimit PostgREST or-filters
    for char in ",()":
        term = term.replace(char, " ")
    term = term.strip()
    return ",".join(f"{column}.ilike.%{term}%" for column in columns)


def first_row(response):
    return response.data[0] if response.data else None


def parse_timestamp(value):
    """
    Aware datetime for a date/timestamp value as returned by the backend.

    Accepts ISO strings, ``date`` and ``datetime`` objects. Plain dates and
    naive values are taken as UTC. Returns ``None`` for empty or unparseable
    input.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        parsed = parse_datetime(value)
        if parsed is None:
            day = parse_date(value)
            if day is None:
                return None
            parsed = datetime.combine(day, time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


class RangedRows:
    """
    One page of rows fetched with ``range()``, standing in for the whole result.

    ``Paginator`` only needs ``count()`` and slicing. The count is the exact
    total reported by the backend; any slice returns the rows already
    fetched for the requested page.
    """

    def __init__(self, rows, total):
        self.rows = list(rows)
        self.total = total

    def count(self):
        return self.total

    def __len__(self):
        return self.total

    def __getitem__(self, key):
        return self.rows
