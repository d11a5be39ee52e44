import logging

from .backend import BackendError, backend_call, client_for
from .queries import first_row, page_range, search_filter

logger = logging.getLogger(__name__)

TABLE = "members"
SUMMARY_COLUMNS = "id, name, email, role, avatar"
STATUSES = ("Active", "Inactive", "Suspended")


@backend_call
def fetch_members(client, search_term="", page=1, page_size=10):
    query = client.table(TABLE).select("*", count="exact")
    if search_term:
        query = query.or_(search_filter(("name", "email", "phone"), search_term))
    start, end = page_range(page, page_size)
    response = query.order("created_at", desc=True).range(start, end).execute()
    return response.data or [], response.count or 0


@backend_call
def count_members(client):
    response = client.table(TABLE).select("id", count="exact").limit(1).execute()
    return response.count or 0


@backend_call
def fetch_member(client, member_id):
    response = client.table(TABLE).select("*").eq("id", member_id).single().execute()
    return response.data


@backend_call
def fetch_member_by_email(client, email):
    response = (
        client.table(TABLE).select(SUMMARY_COLUMNS).eq("email", email).single().execute()
    )
    return response.data


@backend_call
def fetch_full_member_by_email(client, email):
    response = client.table(TABLE).select("*").eq("email", email).single().execute()
    return response.data


def find_member_by_email(client, email, full=False):
    """
    Like ``fetch_member_by_email`` but ``None`` when no row matches.

    ``full`` returns every column instead of the summary ones.
    """
    fetch = fetch_full_member_by_email if full else fetch_member_by_email
    try:
        return fetch(client, email)
    except BackendError as exc:
        if exc.is_not_found:
            return None
        raise


@backend_call
def search_members_by_name(client, term, limit=10):
    query = client.table(TABLE).select("id, name, avatar")
    if term:
        query = query.ilike("name", f"%{term}%")
    return query.order("name").limit(limit).execute().data or []


@backend_call
def fetch_recent_members(client, limit=5):
    response = (
        client.table(TABLE)
        .select("id, name, created_at")
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return response.data or []


@backend_call
def fetch_all_members(client, columns="*", order="created_at", desc=True):
    return client.table(TABLE).select(columns).order(order, desc=desc).execute().data or []


@backend_call
def create_member(client, data):
    response = client.table(TABLE).insert(data).execute()
    logger.info("Created member %s", data.get("email"))
    return first_row(response)


@backend_call
def update_member(client, member_id, data):
    response = client.table(TABLE).update(data).eq("id", member_id).execute()
    return first_row(response)


@backend_call
def delete_member(client, member_id):
    client.table(TABLE).delete().eq("id", member_id).execute()
    logger.info("Deleted member %s", member_id)


def member_for_request(request):
    """
    Member row of the signed-in user, looked up by the session's email.

    Every column is loaded since the profile pages edit this row. Cached
    on the request. ``None`` for anonymous requests and for accounts
    that have no member row yet.
    """
    if not hasattr(request, "_member"):
        session = getattr(request, "hosted_session", None)
        member = None
        if session:
            member = find_member_by_email(
                client_for(request), session["user"]["email"], full=True
            )
        request._member = member
    return request._member


def is_admin(member):
    return bool(member) and member.get("role") == "admin"
