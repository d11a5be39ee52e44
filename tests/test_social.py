import pytest
from supabase import PostgrestAPIError

from community import social
from community.backend import BackendError

from tests.fakes import FakeClient, fake_upload

POSTS = [
    {"id": 1, "member_id": "me"},
    {"id": 2, "member_id": "friend"},
    {"id": 3, "member_id": "stranger"},
]


def test_filter_posts_by_tab():
    assert [p["id"] for p in social.filter_posts(POSTS, "all", "me", ["friend"])] == [1, 2, 3]
    assert [p["id"] for p in social.filter_posts(POSTS, "mine", "me", ["friend"])] == [1]
    assert [p["id"] for p in social.filter_posts(POSTS, "friends", "me", ["friend"])] == [2]


def test_fetch_posts_flattens_counts():
    client = FakeClient({"posts": [{
        "id": 1,
        "member_id": "me",
        "likes": [{"count": 4}],
        "comments": [{"count": 2}],
        "image_urls": None,
    }]})

    post = social.fetch_posts(client)[0]

    assert post["likes"] == 4
    assert post["comments"] == 2
    assert post["images"] == []
    assert client.queries[0].args_of("select") == [(social.POST_SELECT,)]


def test_create_post_uploads_images_first():
    client = FakeClient()

    post = social.create_post(client, "me", "Eid", "Eid Mubarak!", files=[fake_upload("a.jpg"), fake_upload("b.png")])

    assert len(client.storage.uploads) == 2
    assert len(post["image_urls"]) == 2
    assert all(url.startswith("https://cdn.example.test/") for url in post["image_urls"])


def test_check_if_liked_treats_no_row_as_not_liked():
    client = FakeClient()

    assert social.check_if_liked(client, 1, "me") is False


def test_check_if_liked_propagates_other_errors():
    client = FakeClient()
    client.errors["likes"] = PostgrestAPIError({"message": "boom", "code": "500", "hint": None, "details": None})

    with pytest.raises(BackendError):
        social.check_if_liked(client, 1, "me")


def test_toggle_like_likes_then_unlikes():
    client = FakeClient()
    assert social.toggle_like(client, 1, "me") is True
    assert client.queries_for("likes", action="insert")[0].payload == {"post_id": 1, "member_id": "me"}

    client.rows["likes"] = [{"id": 9, "post_id": 1, "member_id": "me"}]
    assert social.toggle_like(client, 1, "me") is False
    assert len(client.queries_for("likes", action="delete")) == 1


def test_remove_friend_deletes_both_directions():
    client = FakeClient()

    social.remove_friend(client, "me", "friend")

    assert client.queries[0].args_of("or_") == [(
        "and(member_id.eq.me,friend_id.eq.friend),and(member_id.eq.friend,friend_id.eq.me)",
    )]


def test_friend_summaries_picks_the_other_side():
    friendships = [
        {"member_id": "me", "friend_id": "a", "friend": {"name": "Alice"}, "member": {"name": "Me"}},
        {"member_id": "b", "friend_id": "me", "friend": {"name": "Me"}, "member": {"name": "Bob"}},
        {"member_id": "a", "friend_id": "me", "friend": {"name": "Me"}, "member": {"name": "Alice"}},
    ]

    friends = social.friend_summaries(friendships, "me")

    assert friends == [{"name": "Alice", "id": "a"}, {"name": "Bob", "id": "b"}]
    assert social.friend_ids(friendships, "me") == ["a", "b"]


def test_send_message_starts_unread():
    client = FakeClient()

    sent = social.send_message(client, "me", "friend", "Salaam")

    assert sent["is_read"] is False
    assert sent["receiver_id"] == "friend"
    assert sent["send_at"], "Send time is stamped by the app"


def test_fetch_conversations_groups_by_counterparty():
    client = FakeClient({"messages": [
        {"id": 2, "sender_id": "a", "receiver_id": "me", "is_read": False, "send_at": "2024-05-02T10:00:00+00:00"},
        {"id": 1, "sender_id": "me", "receiver_id": "a", "is_read": True, "send_at": "2024-05-01T10:00:00+00:00"},
    ]})

    conversations = social.fetch_conversations(client, "me")

    assert len(conversations) == 1
    assert conversations[0]["last_message"]["id"] == 2
    assert conversations[0]["unread_count"] == 1


def test_mark_messages_as_read_only_touches_incoming_unread():
    client = FakeClient()

    social.mark_messages_as_read(client, "me", "a")

    update = client.queries[0]
    assert update.payload == {"is_read": True}
    assert update.args_of("eq") == [("receiver_id", "me"), ("sender_id", "a"), ("is_read", False)]
