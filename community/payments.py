import logging
from datetime import timedelta

from .backend import backend_call
from .queries import first_row, page_range, parse_timestamp, search_filter

logger = logging.getLogger(__name__)

TABLE = "payments"
SELECT_WITH_MEMBER = "*, member:members(id, name, avatar, email)"

PAID = "Paid"
PENDING = "Pending"
OVERDUE = "Overdue"
INVALID = "Invalid"

# Payments expiring inside this window are flagged as pending renewal
RENEWAL_WINDOW = timedelta(days=7)


@backend_call
def _member_ids_matching(client, term):
    response = (
        client.table("members")
        .select("id")
        .or_(search_filter(("name", "email"), term))
        .execute()
    )
    return [row["id"] for row in response.data or []]


@backend_call
def fetch_payments(client, search_term="", member_id=None, page=1, page_size=10):
    """
    One page of payments with the paying member joined, newest first.

    Filtering by ``member_id`` wins over ``search_term``. A search matches
    the member's name or email; when no member matches the page is empty.
    """
    ids = None
    if not member_id and search_term:
        ids = _member_ids_matching(client, search_term)
        if not ids:
            return [], 0

    query = client.table(TABLE).select(SELECT_WITH_MEMBER, count="exact")
    if member_id:
        query = query.eq("member_id", member_id)
    elif ids:
        query = query.in_("member_id", ids)

    start, end = page_range(page, page_size)
    response = query.order("paid_on", desc=True).range(start, end).execute()
    return response.data or [], response.count or 0


@backend_call
def fetch_recent_payments(client, limit=5):
    response = (
        client.table(TABLE)
        .select("*, member:members(name)")
        .order("paid_on", desc=True)
        .limit(limit)
        .execute()
    )
    return response.data or []


@backend_call
def fetch_payments_since(client, since, columns="amount, paid_on"):
    response = (
        client.table(TABLE)
        .select(columns)
        .gte("paid_on", since.date().isoformat())
        .execute()
    )
    return response.data or []


@backend_call
def fetch_members_for_payments(client, search="", limit=10):
    query = client.table("members").select("id, name, avatar")
    if search:
        query = query.ilike("name", f"%{search}%")
    return query.order("name").limit(limit).execute().data or []


@backend_call
def create_payment(client, member_id, amount, paid_on):
    response = (
        client.table(TABLE)
        .insert({"member_id": member_id, "amount": amount, "paid_on": paid_on.isoformat()})
        .execute()
    )
    logger.info("Recorded payment of %s for member %s", amount, member_id)
    return first_row(response)


@backend_call
def update_payment(client, payment_id, member_id, amount, paid_on):
    response = (
        client.table(TABLE)
        .update({"member_id": member_id, "amount": amount, "paid_on": paid_on.isoformat()})
        .eq("id", payment_id)
        .execute()
    )
    return first_row(response)


@backend_call
def delete_payment(client, payment_id):
    client.table(TABLE).delete().eq("id", payment_id).execute()
    logger.info("Deleted payment %s", payment_id)


def payment_status(payment, now):
    paid_on = parse_timestamp(payment.get("paid_on"))
    active_until = parse_timestamp(payment.get("active_until"))

    if paid_on is not None and paid_on > now:
        return INVALID
    if active_until is None or active_until < now:
        return OVERDUE
    if active_until - now < RENEWAL_WINDOW:
        return PENDING
    return PAID
