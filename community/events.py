import logging
from datetime import timedelta

from .backend import backend_call
from .queries import first_row, page_range, parse_timestamp, search_filter

logger = logging.getLogger(__name__)

TABLE = "events"

PAST = "Past"
TODAY = "Today"
UPCOMING = "Upcoming"


@backend_call
def fetch_events(client, search_term="", page=1, page_size=10):
    query = client.table(TABLE).select("*", count="exact")
    if search_term:
        query = query.or_(search_filter(("title", "description", "location"), search_term))
    start, end = page_range(page, page_size)
    response = query.order("event_date").range(start, end).execute()
    return response.data or [], response.count or 0


@backend_call
def fetch_upcoming_events(client, now, limit=5):
    response = (
        client.table(TABLE)
        .select("*")
        .gte("event_date", now.isoformat())
        .order("event_date")
        .limit(limit)
        .execute()
    )
    return response.data or []


@backend_call
def fetch_events_between(client, start, end):
    response = (
        client.table(TABLE)
        .select("*")
        .gte("event_date", start.isoformat())
        .lte("event_date", end.isoformat())
        .order("event_date")
        .execute()
    )
    return response.data or []


@backend_call
def fetch_event(client, event_id):
    return client.table(TABLE).select("*").eq("id", event_id).single().execute().data


@backend_call
def create_event(client, data, created_by=None):
    row = dict(data)
    if created_by:
        row["created_by"] = created_by
    response = client.table(TABLE).insert(row).execute()
    logger.info("Created event %r", row.get("title"))
    return first_row(response)


@backend_call
def update_event(client, event_id, data):
    response = client.table(TABLE).update(data).eq("id", event_id).execute()
    return first_row(response)


@backend_call
def delete_event(client, event_id):
    client.table(TABLE).delete().eq("id", event_id).execute()
    logger.info("Deleted event %s", event_id)


def event_status(event, now):
    when = parse_timestamp(event.get("event_date"))
    if when is None or when < now:
        return PAST
    if when - now < timedelta(hours=24):
        return TODAY
    return UPCOMING
