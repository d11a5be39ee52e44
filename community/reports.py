"""
Revenue and membership figures for the reports page and the dashboard.

Grouping happens here rather than in the database: the query layer only
filters and orders, so trends and monthly totals are summed in Python over
the rows returned.
"""

import logging
from collections import OrderedDict, defaultdict
from datetime import timedelta
from decimal import Decimal

from .backend import backend_call
from .events import fetch_events_between, fetch_upcoming_events
from .members import STATUSES, count_members, fetch_all_members, fetch_recent_members
from .payments import fetch_payments_since, fetch_recent_payments
from .queries import parse_timestamp

logger = logging.getLogger(__name__)

TIME_RANGES = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}

TOP_MEMBERS = 5
UNKNOWN_MEMBER = "Unknown"


def _amount(payment):
    return Decimal(str(payment.get("amount") or 0))


def fetch_payment_trends(client, time_range, now):
    """
    Payment totals since ``now`` minus ``time_range``.

    ``week`` and ``month`` are summed per day, ``year`` per calendar month.
    Returns ``[{"date": ..., "amount": ...}]`` in chronological order.
    """
    if time_range not in TIME_RANGES:
        raise ValueError(f"Invalid time range: {time_range!r}")

    rows = fetch_payments_since(client, now - TIME_RANGES[time_range])
    trends = defaultdict(Decimal)
    for row in rows:
        paid_on = parse_timestamp(row.get("paid_on"))
        if paid_on is None:
            continue
        if time_range == "year":
            key = paid_on.strftime("%Y-%m")
        else:
            key = paid_on.date().isoformat()
        trends[key] += _amount(row)

    return [{"date": key, "amount": trends[key]} for key in sorted(trends)]


def summarize(payments, members):
    total = sum((_amount(p) for p in payments), Decimal("0"))
    average = total / len(payments) if payments else Decimal("0")

    status_counts = OrderedDict((status, 0) for status in STATUSES)
    for member in members:
        status = member.get("status")
        if status in status_counts:
            status_counts[status] += 1

    per_member = defaultdict(Decimal)
    for payment in payments:
        name = (payment.get("member") or {}).get("name") or UNKNOWN_MEMBER
        per_member[name] += _amount(payment)
    top = sorted(per_member.items(), key=lambda item: item[1], reverse=True)[:TOP_MEMBERS]

    return {
        "total_revenue": total,
        "average_payment": average.quantize(Decimal("0.01")),
        "status_counts": status_counts,
        "total_members": len(members),
        "top_members": [{"name": name, "amount": amount} for name, amount in top],
    }


def monthly_payments(payments):
    """Group payments by calendar month, newest month first."""
    months = {}
    for payment in payments:
        paid_on = parse_timestamp(payment.get("paid_on"))
        if paid_on is None:
            continue
        key = (paid_on.year, paid_on.month)
        month = months.setdefault(
            key,
            {
                "month": paid_on.strftime("%B %Y"),
                "total_amount": Decimal("0"),
                "payment_count": 0,
                "members": [],
            },
        )
        month["total_amount"] += _amount(payment)
        month["payment_count"] += 1
        month["members"].append(
            {
                "name": (payment.get("member") or {}).get("name") or UNKNOWN_MEMBER,
                "amount": _amount(payment),
                "paid_on": payment.get("paid_on"),
            }
        )
    return [months[key] for key in sorted(months, reverse=True)]


def report_csv_rows(summary):
    rows = [
        ["Report Type", "Value"],
        ["Total Revenue", f"{summary['total_revenue']:.2f}"],
        ["Average Payment", f"{summary['average_payment']:.2f}"],
        ["Active Members", str(summary["status_counts"].get("Active", 0))],
        ["Total Members", str(summary["total_members"])],
        [],
        ["Top Paying Members"],
    ]
    rows.extend([m["name"], f"{m['amount']:.2f}"] for m in summary["top_members"])
    return rows


@backend_call
def fetch_report_data(client):
    payments = (
        client.table("payments")
        .select("*, member:members(name)")
        .order("paid_on", desc=True)
        .execute()
        .data
        or []
    )
    members = fetch_all_members(client, columns="id, name, status, join_date", order="join_date")
    return payments, members


def dashboard_stats(client, now):
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if month_start.month == 12:
        next_month = month_start.replace(year=month_start.year + 1, month=1)
    else:
        next_month = month_start.replace(month=month_start.month + 1)

    payments_this_month = fetch_payments_since(client, month_start)
    return {
        "total_members": count_members(client),
        "events_this_month": len(fetch_events_between(client, month_start, next_month)),
        "revenue_this_month": sum(
            (_amount(p) for p in payments_this_month), Decimal("0")
        ),
        "recent_members": fetch_recent_members(client),
        "upcoming_events": fetch_upcoming_events(client, now),
        "recent_payments": fetch_recent_payments(client),
    }
