"""
================================================================================
EAST LONDON COMMUNITY - CUSTOM MIDDLEWARE
================================================================================

@file        middleware.py
@description Locale prefix routing, auth gating and display timezone

MODULE PURPOSE
================================================================================
This module provides the custom middleware classes for the community site:

1. LocaleAuthMiddleware
   - Ensures every page URL starts with a supported locale ("/en", "/ps")
   - Redirects members-only pages to the login page without a session
   - Redirects login/register away when a session already exists
   - Adds a short-lived Cache-Control header to pages it lets through

2. TimezoneMiddleware
   - Activates the display timezone (Europe/London by default) so dates
     from the hosted backend render in local time

REQUEST FLOW
================================================================================
    /static/..., /api/..., /favicon.ico      -> untouched
    /members                                 -> 302 /en/members
    /en/members   (no session)               -> 302 /en/login
    /en/login     (session)                  -> 302 /en
    /ps/events    (session)                  -> view, Cache-Control added

SETTINGS
================================================================================
    LANGUAGES                         Supported locales, first segment of URLs
    LANGUAGE_CODE                     Locale injected when none is present
    COMMUNITY_EXEMPT_PREFIXES         Path prefixes skipped entirely
    COMMUNITY_PROTECTED_PATHS         Substrings that require a session
    COMMUNITY_AUTH_ONLY_PATHS         Substrings only for signed-out visitors
    COMMUNITY_CACHE_CONTROL_MAX_AGE   max-age for pages passed through
    DISPLAY_TIME_ZONE                 pytz zone name used for display

DEPENDENCIES
================================================================================
- pytz: Timezone database
- django.contrib.sessions: stores the hosted backend session
- community.auth: session validation and refresh

================================================================================
"""

import logging

import pytz
from django.conf import settings
from django.http import HttpResponseRedirect
from django.utils import timezone
from django.utils.cache import patch_cache_control

from .auth import current_session
from .backend import get_backend
from .translations import supported_locales

logger = logging.getLogger(__name__)


# ============================================================================
# PATH HELPERS
# ============================================================================

def is_exempt_path(path):
    """Static assets, API routes and anything that looks like a file."""
    if "." in path:
        return True
    return any(path.startswith(prefix) for prefix in settings.COMMUNITY_EXEMPT_PREFIXES)


def locale_from_path(path, locales=None):
    """Return the locale prefix of ``path`` or ``None`` when it has none."""
    for locale in locales or supported_locales():
        if path == f"/{locale}" or path.startswith(f"/{locale}/"):
            return locale
    return None


def matches_any(path, fragments):
    return any(fragment in path for fragment in fragments)


# ============================================================================
# LOCALE & AUTH MIDDLEWARE
# ============================================================================

class LocaleAuthMiddleware:
    """
    Enforce a locale prefix on every page and gate members-only routes.

    Flow:
        1. Skip exempt paths (static files, API routes, dotted paths)
        2. Redirect paths without a locale to the default locale
        3. Look up the hosted session stored in the Django session
        4. Protected path without a session -> /<locale>/login
        5. Auth-only path with a session -> /<locale>
        6. Otherwise run the view and mark the response short-lived

    Sets on the request:
        request.locale          Locale taken from the URL
        request.hosted_session  Stored hosted session dict, or None

    Must run after SessionMiddleware.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path_info

        # ====================================================================
        #       EXEMPT PATHS
        # ====================================================================
        if is_exempt_path(path):
            request.locale = settings.LANGUAGE_CODE
            request.hosted_session = None
            return self.get_response(request)

        # ====================================================================
        #       LOCALE PREFIX
        # ====================================================================
        locale = locale_from_path(path)
        if locale is None:
            target = f"/{settings.LANGUAGE_CODE}{path}"
            query = request.META.get("QUERY_STRING")
            if query:
                target = f"{target}?{query}"
            return HttpResponseRedirect(target)

        request.locale = locale

        # ====================================================================
        #       AUTH GATE
        # ====================================================================
        session = current_session(request, get_backend())
        request.hosted_session = session

        if session is None and matches_any(path, settings.COMMUNITY_PROTECTED_PATHS):
            return HttpResponseRedirect(f"/{locale}/login")

        if session is not None and matches_any(path, settings.COMMUNITY_AUTH_ONLY_PATHS):
            return HttpResponseRedirect(f"/{locale}")

        # ====================================================================
        #       PROCESS REQUEST
        # ====================================================================
        response = self.get_response(request)
        patch_cache_control(
            response,
            private=True,
            max_age=settings.COMMUNITY_CACHE_CONTROL_MAX_AGE,
        )
        return response


# ============================================================================
# TIMEZONE MIDDLEWARE
# ============================================================================

class TimezoneMiddleware:
    """
    Activate the display timezone for datetime rendering.

    Dates come back from the hosted backend in UTC; templates show them in
    DISPLAY_TIME_ZONE. An unknown zone name falls back to UTC.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        try:
            self.tz = pytz.timezone(settings.DISPLAY_TIME_ZONE)
        except pytz.UnknownTimeZoneError:
            logger.warning("Unknown DISPLAY_TIME_ZONE %r, using UTC", settings.DISPLAY_TIME_ZONE)
            self.tz = pytz.UTC

    def __call__(self, request):
        timezone.activate(self.tz)
        try:
            return self.get_response(request)
        finally:
            timezone.deactivate()
