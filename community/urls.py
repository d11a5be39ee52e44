"""
================================================================================
EAST LONDON COMMUNITY - URL CONFIGURATION
================================================================================

@file        urls.py
@description Locale-prefixed page routes of the community app

MODULE PURPOSE
================================================================================
Every pattern here is mounted under "/<locale>/" by eastlondon/urls.py, so
each view receives the locale as its first keyword argument. The bare
"/<locale>" home route lives in the project urls.

URL STRUCTURE OVERVIEW
================================================================================
1. Authentication (login, logout, register, confirm, test)
2. Members (list, detail, create, edit, delete)
3. Payments & Reports (admin only)
4. Events & Gallery
5. Profile (details, avatar, family members)
6. Social Feed (posts, comments, likes, friends)
7. Messages & Notifications

NAMING CONVENTIONS
================================================================================
- Resource actions: <resource>_<action> (e.g. 'member_edit', 'post_delete')
- Members-only routes sit under one of the prefixes listed in
  COMMUNITY_PROTECTED_PATHS (members, member/, payments, reports, events,
  gallery, profile, social, messages, notifications), which the auth gate in
  community.middleware matches. login and register are signed-out only;
  home, confirm, logout and test are open to everyone.

URL PARAMETER TYPES
================================================================================
- <str:member_id>, <str:other_id>, <str:friend_id>: member uuid
- <str:family_member_id>: generated "family_<ms>_<suffix>" id
- <int:post_id>, <int:comment_id>, <int:payment_id>, <int:event_id>,
  <int:notification_id>: table primary keys

URL TESTING EXAMPLES
================================================================================
from django.urls import reverse

reverse('members', kwargs={'locale': 'en'})                   # '/en/members'
reverse('post', kwargs={'locale': 'ps', 'post_id': 3})        # '/ps/social/post/3'

================================================================================
"""

from django.urls import path

from . import views


urlpatterns = [

    # ========================================================================
    # SECTION 1: AUTHENTICATION
    # ========================================================================

    path(
        "",
        views.home,
    ),  # "/en/" alias of the home page

    path(
        "login",
        views.login_view,
        name="login"
    ),

    path(
        "logout",
        views.logout_view,
        name="logout"
    ),

    path(
        "register",
        views.register,
        name="register"
    ),

    path(
        "confirm",
        views.confirm,
        name="confirm"
    ),  # Email confirmation link target

    path(
        "test",
        views.test_page,
        name="test"
    ),  # Locale routing smoke page


    # ========================================================================
    # SECTION 2: MEMBERS
    # ========================================================================

    path(
        "members",
        views.members_list,
        name="members"
    ),

    path(
        "members/new",
        views.member_create,
        name="member_create"
    ),

    path(
        "member/<str:member_id>",
        views.member_detail,
        name="member"
    ),

    path(
        "member/<str:member_id>/edit",
        views.member_edit,
        name="member_edit"
    ),

    path(
        "member/<str:member_id>/delete",
        views.member_delete,
        name="member_delete"
    ),


    # ========================================================================
    # SECTION 3: PAYMENTS & REPORTS
    # ========================================================================

    path(
        "payments",
        views.payments_list,
        name="payments"
    ),  # GET list, POST record a payment

    path(
        "payments/<int:payment_id>/edit",
        views.payment_edit,
        name="payment_edit"
    ),

    path(
        "payments/<int:payment_id>/delete",
        views.payment_delete,
        name="payment_delete"
    ),

    path(
        "reports",
        views.reports_view,
        name="reports"
    ),

    path(
        "reports/csv",
        views.reports_csv,
        name="reports_csv"
    ),


    # ========================================================================
    # SECTION 4: EVENTS & GALLERY
    # ========================================================================

    path(
        "events",
        views.events_list,
        name="events"
    ),  # GET list, POST create (admins)

    path(
        "events/<int:event_id>/edit",
        views.event_edit,
        name="event_edit"
    ),

    path(
        "events/<int:event_id>/delete",
        views.event_delete,
        name="event_delete"
    ),

    path(
        "gallery",
        views.gallery,
        name="gallery"
    ),


    # ========================================================================
    # SECTION 5: PROFILE
    # ========================================================================

    path(
        "profile",
        views.profile_view,
        name="profile"
    ),

    path(
        "profile/avatar",
        views.profile_avatar,
        name="profile_avatar"
    ),

    path(
        "profile/family",
        views.family_add,
        name="family_add"
    ),

    path(
        "profile/family/<str:family_member_id>",
        views.family_edit,
        name="family_edit"
    ),

    path(
        "profile/family/<str:family_member_id>/delete",
        views.family_delete,
        name="family_delete"
    ),


    # ========================================================================
    # SECTION 6: SOCIAL FEED
    # ========================================================================

    path(
        "social",
        views.social_feed,
        name="social"
    ),  # ?tab=all|mine|friends, POST creates a post

    path(
        "social/post/<int:post_id>",
        views.post_detail,
        name="post"
    ),

    path(
        "social/post/<int:post_id>/delete",
        views.post_delete,
        name="post_delete"
    ),

    path(
        "social/post/<int:post_id>/comment",
        views.comment_create,
        name="comment_create"
    ),

    path(
        "social/post/<int:post_id>/comment/<int:comment_id>/delete",
        views.comment_delete,
        name="comment_delete"
    ),

    path(
        "social/post/<int:post_id>/like",
        views.like_toggle,
        name="like_toggle"
    ),  # JSON {"liked": bool}

    path(
        "social/friends",
        views.friends,
        name="friends"
    ),

    path(
        "social/friends/<str:friend_id>/add",
        views.friend_add,
        name="friend_add"
    ),

    path(
        "social/friends/<str:friend_id>/remove",
        views.friend_remove,
        name="friend_remove"
    ),


    # ========================================================================
    # SECTION 7: MESSAGES & NOTIFICATIONS
    # ========================================================================

    path(
        "messages",
        views.messages_inbox,
        name="messages_inbox"
    ),

    path(
        "messages/<str:other_id>",
        views.message_thread,
        name="message_thread"
    ),

    path(
        "notifications",
        views.notifications_view,
        name="notifications"
    ),

    path(
        "notifications/<int:notification_id>/read",
        views.notification_read,
        name="notification_read"
    ),

    path(
        "notifications/read-all",
        views.notifications_read_all,
        name="notifications_read_all"
    ),
]
