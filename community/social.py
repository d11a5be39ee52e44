"""
================================================================================
EAST LONDON COMMUNITY - SOCIAL FEED DATA ACCESS
================================================================================

@file        social.py
@description Posts, comments, likes, friendships and direct messages

TABLES
================================================================================
    posts         id, member_id, title, content, image_urls, created_at
    comments      id, post_id, member_id, content, created_at
    likes         id, post_id, member_id, created_at
    friendships   id, member_id, friend_id, created_at
    messages      id, sender_id, receiver_id, content, send_at, is_read,
                  created_at

Joined member summaries are always ``(id, name, avatar)``. Row level
policies on the hosted backend decide what the signed-in member may read or
change; the member id filters below only narrow the request.

FEED TABS
================================================================================
    all       every post
    mine      posts written by the signed-in member
    friends   posts written by the member's friends

================================================================================
"""

import logging

from django.utils import timezone

from .backend import BackendError, backend_call
from .conversations import aggregate_conversations
from .queries import first_row
from .storage import upload_social_image

logger = logging.getLogger(__name__)

MEMBER_SUMMARY = "id, name, avatar"
POST_SELECT = (
    f"*, member:members({MEMBER_SUMMARY}), likes:likes(count), comments:comments(count)"
)
COMMENT_SELECT = f"*, member:members({MEMBER_SUMMARY})"
MESSAGE_SELECT = (
    f"*, sender:members!sender_id({MEMBER_SUMMARY}), "
    f"receiver:members!receiver_id({MEMBER_SUMMARY})"
)
FRIEND_SELECT = (
    f"*, friend:members!friend_id({MEMBER_SUMMARY}), "
    f"member:members!member_id({MEMBER_SUMMARY})"
)

FEED_TABS = ("all", "mine", "friends")


# ============================================================================
# POSTS
# ============================================================================

def _aggregate_count(value):
    if isinstance(value, list):
        return value[0].get("count", 0) if value else 0
    return value or 0


def _post_from_row(row):
    post = dict(row)
    post["likes"] = _aggregate_count(row.get("likes"))
    post["comments"] = _aggregate_count(row.get("comments"))
    post["images"] = row.get("image_urls") or []
    return post


@backend_call
def create_post(client, member_id, title, content, files=()):
    image_urls = [upload_social_image(client, upload, member_id) for upload in files]
    response = (
        client.table("posts")
        .insert(
            {
                "member_id": member_id,
                "title": title,
                "content": content,
                "image_urls": image_urls,
            }
        )
        .execute()
    )
    logger.info("Member %s created a post with %d image(s)", member_id, len(image_urls))
    return first_row(response)


@backend_call
def fetch_posts(client, member_id=None):
    query = client.table("posts").select(POST_SELECT)
    if member_id:
        query = query.eq("member_id", member_id)
    rows = query.order("created_at", desc=True).execute().data or []
    return [_post_from_row(row) for row in rows]


@backend_call
def fetch_post(client, post_id):
    row = client.table("posts").select(POST_SELECT).eq("id", post_id).single().execute().data
    return _post_from_row(row)


@backend_call
def delete_post(client, post_id, member_id):
    client.table("posts").delete().eq("id", post_id).eq("member_id", member_id).execute()
    logger.info("Member %s deleted post %s", member_id, post_id)


def filter_posts(posts, tab, member_id, friend_ids):
    if tab == "mine":
        return [p for p in posts if p.get("member_id") == member_id]
    if tab == "friends":
        friend_ids = set(friend_ids)
        return [p for p in posts if p.get("member_id") in friend_ids]
    return list(posts)


# ============================================================================
# COMMENTS
# ============================================================================

@backend_call
def create_comment(client, post_id, member_id, content):
    response = (
        client.table("comments")
        .insert({"post_id": post_id, "member_id": member_id, "content": content})
        .execute()
    )
    return first_row(response)


@backend_call
def fetch_comments(client, post_id):
    response = (
        client.table("comments")
        .select(COMMENT_SELECT)
        .eq("post_id", post_id)
        .order("created_at")
        .execute()
    )
    return response.data or []


@backend_call
def delete_comment(client, comment_id, member_id):
    client.table("comments").delete().eq("id", comment_id).eq("member_id", member_id).execute()


# ============================================================================
# LIKES
# ============================================================================

@backend_call
def like_post(client, post_id, member_id):
    client.table("likes").insert({"post_id": post_id, "member_id": member_id}).execute()


@backend_call
def unlike_post(client, post_id, member_id):
    client.table("likes").delete().eq("post_id", post_id).eq("member_id", member_id).execute()


@backend_call
def _fetch_like(client, post_id, member_id):
    return (
        client.table("likes")
        .select("id")
        .eq("post_id", post_id)
        .eq("member_id", member_id)
        .single()
        .execute()
        .data
    )


def check_if_liked(client, post_id, member_id):
    try:
        return bool(_fetch_like(client, post_id, member_id))
    except BackendError as exc:
        if exc.is_not_found:
            return False
        raise


def toggle_like(client, post_id, member_id):
    """Like or unlike ``post_id``; returns whether the post is now liked."""
    if check_if_liked(client, post_id, member_id):
        unlike_post(client, post_id, member_id)
        return False
    like_post(client, post_id, member_id)
    return True


# ============================================================================
# FRIENDSHIPS
# ============================================================================

@backend_call
def send_friend_request(client, member_id, friend_id):
    client.table("friendships").insert({"member_id": member_id, "friend_id": friend_id}).execute()
    logger.info("Member %s added friend %s", member_id, friend_id)


@backend_call
def remove_friend(client, member_id, friend_id):
    (
        client.table("friendships")
        .delete()
        .or_(
            f"and(member_id.eq.{member_id},friend_id.eq.{friend_id}),"
            f"and(member_id.eq.{friend_id},friend_id.eq.{member_id})"
        )
        .execute()
    )


@backend_call
def fetch_friends(client, member_id):
    response = (
        client.table("friendships")
        .select(FRIEND_SELECT)
        .or_(f"member_id.eq.{member_id},friend_id.eq.{member_id}")
        .execute()
    )
    return response.data or []


def friend_summaries(friendships, member_id):
    """Profile summary of the other party in each friendship, one per friend."""
    friends, seen = [], set()
    for friendship in friendships:
        if friendship.get("member_id") == member_id:
            other_id, other = friendship.get("friend_id"), friendship.get("friend")
        else:
            other_id, other = friendship.get("member_id"), friendship.get("member")
        if other_id in seen:
            continue
        seen.add(other_id)
        friends.append(dict(other or {}, id=other_id))
    return friends


def friend_ids(friendships, member_id):
    return [friend["id"] for friend in friend_summaries(friendships, member_id)]


# ============================================================================
# MESSAGES
# ============================================================================

@backend_call
def send_message(client, sender_id, receiver_id, content):
    response = (
        client.table("messages")
        .insert(
            {
                "sender_id": sender_id,
                "receiver_id": receiver_id,
                "content": content,
                "is_read": False,
                "send_at": timezone.now().isoformat(),
            }
        )
        .execute()
    )
    return first_row(response)


@backend_call
def fetch_messages(client, user_id, other_user_id):
    """The thread between two members, oldest first."""
    response = (
        client.table("messages")
        .select(MESSAGE_SELECT)
        .or_(
            f"and(sender_id.eq.{user_id},receiver_id.eq.{other_user_id}),"
            f"and(sender_id.eq.{other_user_id},receiver_id.eq.{user_id})"
        )
        .order("send_at")
        .execute()
    )
    return response.data or []


@backend_call
def fetch_conversations(client, user_id):
    response = (
        client.table("messages")
        .select(MESSAGE_SELECT)
        .or_(f"sender_id.eq.{user_id},receiver_id.eq.{user_id}")
        .order("send_at", desc=True)
        .execute()
    )
    return aggregate_conversations(response.data or [], user_id)


@backend_call
def count_unread_messages(client, user_id):
    response = (
        client.table("messages")
        .select("id", count="exact")
        .eq("receiver_id", user_id)
        .eq("is_read", False)
        .execute()
    )
    return response.count or 0


@backend_call
def mark_messages_as_read(client, user_id, other_user_id):
    (
        client.table("messages")
        .update({"is_read": True})
        .eq("receiver_id", user_id)
        .eq("sender_id", other_user_id)
        .eq("is_read", False)
        .execute()
    )
