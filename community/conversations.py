"""
Direct-message inbox view.

Conversations are never stored. They are rebuilt from the full message
history of a member on every inbox load: one row per counterparty holding
the counterparty's profile summary, the most recent message exchanged and
how many of the counterparty's messages the member has not read yet.
"""

from .queries import parse_timestamp


def _sent_at(message):
    return parse_timestamp(message.get("send_at") or message.get("created_at"))


def _is_newer(message, than):
    sent, other = _sent_at(message), _sent_at(than)
    if sent is None:
        return False
    return other is None or sent > other


def _is_unread_for(message, user_id):
    return message.get("receiver_id") == user_id and not message.get("is_read")


def aggregate_conversations(messages, user_id):
    """
    Group ``messages`` (sent or received by ``user_id``) by counterparty.

    Returns a list of dicts with ``user_id``, ``user``, ``last_message`` and
    ``unread_count``, in the order each counterparty first appears. Unread
    messages are counted whether or not they are the latest one.
    """
    conversations = {}

    for message in messages:
        if message.get("sender_id") == user_id:
            other_id = message.get("receiver_id")
            other_user = message.get("receiver")
        else:
            other_id = message.get("sender_id")
            other_user = message.get("sender")

        unread = 1 if _is_unread_for(message, user_id) else 0
        entry = conversations.get(other_id)

        if entry is None:
            conversations[other_id] = {
                "user_id": other_id,
                "user": other_user,
                "last_message": message,
                "unread_count": unread,
            }
            continue

        if _is_newer(message, entry["last_message"]):
            entry["last_message"] = message
        if entry["user"] is None and other_user is not None:
            entry["user"] = other_user
        entry["unread_count"] += unread

    return list(conversations.values())


def total_unread(conversations):
    return sum(c["unread_count"] for c in conversations)
