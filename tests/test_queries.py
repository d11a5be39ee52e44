from datetime import date, datetime, timezone
from types import SimpleNamespace

from django.core.paginator import Paginator

from community.queries import RangedRows, first_row, page_range, parse_timestamp, search_filter


def test_page_range_is_inclusive_and_one_based():
    assert page_range(1, 10) == (0, 9)
    assert page_range(3, 10) == (20, 29)
    assert page_range("0", 10) == (0, 9)
    assert page_range("abc", 5) == (0, 4)


def test_search_filter_strips_delimiters():
    assert search_filter(("name",), " a,b(c) ") == "name.ilike.%a b c%"


def test_first_row():
    assert first_row(SimpleNamespace(data=[{"id": 1}, {"id": 2}])) == {"id": 1}
    assert first_row(SimpleNamespace(data=[])) is None


def test_parse_timestamp():
    assert parse_timestamp("2024-06-15T12:00:00+01:00").utcoffset().total_seconds() == 3600
    assert parse_timestamp("2024-06-15") == datetime(2024, 6, 15, tzinfo=timezone.utc)
    assert parse_timestamp(date(2024, 6, 15)) == datetime(2024, 6, 15, tzinfo=timezone.utc)
    assert parse_timestamp("") is None
    assert parse_timestamp("soon") is None


def test_ranged_rows_feed_a_paginator():
    rows = [{"id": 21}, {"id": 22}, {"id": 23}]
    page = Paginator(RangedRows(rows, 23), 10).get_page(3)

    assert page.paginator.count == 23
    assert page.paginator.num_pages == 3
    assert list(page.object_list) == rows
    assert page.start_index() == 21
