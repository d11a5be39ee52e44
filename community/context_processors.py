"""
================================================================================
EAST LONDON COMMUNITY - CONTEXT PROCESSORS
================================================================================

@file        context_processors.py
@description Template-wide locale, translations and unread badges

CONTEXT PROCESSORS DEFINED
================================================================================
1. community()     - Locale, translation dictionary, language switcher link
                     and the signed-in user's summary
2. unread_counts() - Unread message and notification counts for the navbar

These values are available in all templates as:
    {{ locale }}                      "en" or "ps"
    {{ t.nav.members }}               Translated string
    {{ other_locale }}                Locale the switcher links to
    {{ other_locale_path }}           Current page under the other locale
    {{ hosted_user.email }}           Signed-in user, or None
    {{ current_member.name }}         Member row of the signed-in user
    {{ unread_messages_count }}
    {{ unread_notifications_count }}

USAGE IN SETTINGS.PY
================================================================================
TEMPLATES = [
    {
        'OPTIONS': {
            'context_processors': [
                ...
                'community.context_processors.community',
                'community.context_processors.unread_counts',
            ],
        },
    },
]

PERFORMANCE CONSIDERATIONS
================================================================================
unread_counts() issues two count-only requests to the hosted backend on
every signed-in page render. Anonymous requests return zeros without
touching the backend.

================================================================================
"""

import logging

from django.conf import settings

from .backend import BackendError, client_for
from .members import is_admin, member_for_request
from .notifications import count_unread_notifications
from .social import count_unread_messages
from .translations import get_catalog, supported_locales

logger = logging.getLogger(__name__)


# ============================================================================
# CONTEXT PROCESSOR: LOCALE & USER
# ============================================================================

def community(request):
    locale = getattr(request, "locale", settings.LANGUAGE_CODE)
    others = [code for code in supported_locales() if code != locale]
    other_locale = others[0] if others else locale

    path = request.path_info
    prefix = f"/{locale}"
    if path == prefix or path.startswith(prefix + "/"):
        rest = path[len(prefix):]
    else:
        rest = path
    other_locale_path = f"/{other_locale}{rest}"

    session = getattr(request, "hosted_session", None)
    try:
        member = member_for_request(request)
    except BackendError as exc:
        logger.error("Could not load member for %s: %s", request.path_info, exc.message)
        member = None

    return {
        "locale": locale,
        "t": get_catalog().get(locale),
        "other_locale": other_locale,
        "other_locale_path": other_locale_path,
        "hosted_user": session["user"] if session else None,
        "current_member": member,
        "is_admin": is_admin(member),
    }


# ============================================================================
# CONTEXT PROCESSOR: UNREAD COUNTS
# ============================================================================

def unread_counts(request):
    """
    Inject unread message and notification counts into all templates.

    Counts are zero for anonymous visitors, for accounts without a member
    row and when the backend cannot be reached.
    """
    empty = {"unread_messages_count": 0, "unread_notifications_count": 0}

    if not getattr(request, "hosted_session", None):
        return empty

    try:
        member = member_for_request(request)
        if member is None:
            return empty
        client = client_for(request)
        return {
            "unread_messages_count": count_unread_messages(client, member["id"]),
            "unread_notifications_count": count_unread_notifications(client, member["id"]),
        }
    except BackendError as exc:
        logger.error("Could not count unread items: %s", exc.message)
        return empty
