from .backend import backend_call

TABLE = "notifications"


@backend_call
def fetch_notifications_by_member_id(client, member_id):
    response = (
        client.table(TABLE)
        .select("*")
        .eq("member_id", member_id)
        .order("created_at", desc=True)
        .execute()
    )
    return response.data or []


@backend_call
def count_unread_notifications(client, member_id):
    response = (
        client.table(TABLE)
        .select("id", count="exact")
        .eq("member_id", member_id)
        .eq("is_read", False)
        .execute()
    )
    return response.count or 0


@backend_call
def mark_notification_as_read(client, notification_id):
    client.table(TABLE).update({"is_read": True}).eq("id", notification_id).execute()
    return True


@backend_call
def mark_all_notifications_as_read(client, member_id):
    (
        client.table(TABLE)
        .update({"is_read": True})
        .eq("member_id", member_id)
        .eq("is_read", False)
        .execute()
    )
    return True
