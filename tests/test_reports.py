from datetime import datetime, timezone
from decimal import Decimal

import pytest

from community import reports

from tests.fakes import FakeClient

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

PAYMENTS = [
    {"amount": 20, "paid_on": "2024-06-10", "member": {"name": "Amina"}},
    {"amount": 15.5, "paid_on": "2024-06-10", "member": {"name": "Bilal"}},
    {"amount": 30, "paid_on": "2024-05-02", "member": {"name": "Amina"}},
    {"amount": 10, "paid_on": "2024-05-20", "member": None},
]

MEMBERS = [
    {"id": "1", "status": "Active"},
    {"id": "2", "status": "Active"},
    {"id": "3", "status": "Suspended"},
    {"id": "4", "status": None},
]


def test_summarize():
    summary = reports.summarize(PAYMENTS, MEMBERS)

    assert summary["total_revenue"] == Decimal("75.5")
    assert summary["average_payment"] == Decimal("18.88")
    assert summary["status_counts"] == {"Active": 2, "Inactive": 0, "Suspended": 1}
    assert summary["total_members"] == 4
    assert summary["top_members"][0] == {"name": "Amina", "amount": Decimal("50")}
    assert {"name": "Unknown", "amount": Decimal("10")} in summary["top_members"]


def test_summarize_without_payments():
    summary = reports.summarize([], [])

    assert summary["total_revenue"] == 0
    assert summary["average_payment"] == Decimal("0.00")
    assert summary["top_members"] == []


def test_monthly_payments_newest_month_first():
    months = reports.monthly_payments(PAYMENTS)

    assert [m["month"] for m in months] == ["June 2024", "May 2024"]
    assert months[0]["total_amount"] == Decimal("35.5")
    assert months[0]["payment_count"] == 2
    assert months[1]["members"][1]["name"] == "Unknown"


def test_payment_trends_by_day():
    client = FakeClient({"payments": PAYMENTS[:2] + [{"amount": 5, "paid_on": "2024-06-12"}]})

    trends = reports.fetch_payment_trends(client, "week", NOW)

    assert trends == [
        {"date": "2024-06-10", "amount": Decimal("35.5")},
        {"date": "2024-06-12", "amount": Decimal("5")},
    ]
    assert client.queries[0].args_of("gte") == [("paid_on", "2024-06-08")]


def test_payment_trends_by_month_for_a_year():
    client = FakeClient({"payments": PAYMENTS})

    trends = reports.fetch_payment_trends(client, "year", NOW)

    assert trends == [
        {"date": "2024-05", "amount": Decimal("40")},
        {"date": "2024-06", "amount": Decimal("35.5")},
    ]


def test_payment_trends_rejects_unknown_range():
    with pytest.raises(ValueError):
        reports.fetch_payment_trends(FakeClient(), "decade", NOW)


def test_report_csv_rows():
    rows = reports.report_csv_rows(reports.summarize(PAYMENTS, MEMBERS))

    assert rows[0] == ["Report Type", "Value"]
    assert ["Total Revenue", "75.50"] in rows
    assert ["Active Members", "2"] in rows
    assert rows[rows.index(["Top Paying Members"]) + 1] == ["Amina", "50.00"]


def test_dashboard_stats():
    client = FakeClient({
        "members": [{"id": "1"}, {"id": "2"}],
        "events": [{"id": 1, "event_date": "2024-06-20T18:00:00+00:00"}],
        "payments": [{"amount": 20, "paid_on": "2024-06-01"}, {"amount": 5, "paid_on": "2024-06-03"}],
    })
    client.counts["members"] = 42

    stats = reports.dashboard_stats(client, NOW)

    assert stats["total_members"] == 42
    assert stats["events_this_month"] == 1
    assert stats["revenue_this_month"] == Decimal("25")
    between = client.queries_for("events")[0]
    assert between.args_of("gte") == [("event_date", "2024-06-01T00:00:00+00:00")]
    assert between.args_of("lte") == [("event_date", "2024-07-01T00:00:00+00:00")]
