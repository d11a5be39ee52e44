"""
Sign-in, sign-up and session bookkeeping against the hosted auth service.

The hosted session (access token, refresh token, expiry and a small user
summary) is kept in the Django session under ``SESSION_KEY``. Nothing here
checks passwords or issues tokens itself.
"""

import logging
import time

from .backend import BackendError, backend_call

logger = logging.getLogger(__name__)

SESSION_KEY = "hosted_session"

# Treat tokens this close to expiry as already expired
EXPIRY_LEEWAY_SECONDS = 10

DUPLICATE_EMAIL_CODES = {"user_already_exists", "email_exists"}
DUPLICATE_EMAIL_MARKERS = (
    "already registered",
    "already been registered",
    "already exists",
)


def session_payload(session, user):
    expires_at = getattr(session, "expires_at", None)
    if not expires_at:
        expires_at = int(time.time()) + int(getattr(session, "expires_in", 0) or 3600)
    metadata = getattr(user, "user_metadata", None) or {}
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": int(expires_at),
        "user": {
            "id": str(user.id),
            "email": user.email,
            "full_name": metadata.get("full_name", ""),
        },
    }


@backend_call
def sign_in(backend, email, password):
    response = backend.client().auth.sign_in_with_password(
        {"email": email, "password": password}
    )
    if response.session is None:
        raise BackendError("Sign-in did not return a session")
    logger.info("Signed in %s", email)
    return session_payload(response.session, response.user)


@backend_call
def sign_up(backend, email, password, full_name, redirect_to=None):
    options = {"data": {"full_name": full_name}}
    if redirect_to:
        options["email_redirect_to"] = redirect_to
    response = backend.client().auth.sign_up(
        {"email": email, "password": password, "options": options}
    )
    user = response.user
    # With email confirmation on, an existing address comes back as a
    # user with no identities instead of an error.
    if user is not None and getattr(user, "identities", None) == []:
        raise BackendError("User already registered", code="user_already_exists")
    logger.info("Registered %s", email)
    return response


@backend_call
def verify_email(backend, token_hash, otp_type):
    return backend.client().auth.verify_otp({"token_hash": token_hash, "type": otp_type})


@backend_call
def refresh(backend, refresh_token):
    response = backend.client().auth.refresh_session(refresh_token)
    if response.session is None:
        raise BackendError("Refresh did not return a session")
    return session_payload(response.session, response.user)


@backend_call
def sign_out(backend, access_token):
    backend.client(access_token).auth.admin.sign_out(access_token)


def is_duplicate_email_error(error):
    """
    Best-effort check that a sign-up failure means the email is taken.

    Newer auth servers send an error code; older ones only say so in the
    message text, which is matched loosely.
    """
    if getattr(error, "code", None) in DUPLICATE_EMAIL_CODES:
        return True
    message = (getattr(error, "message", None) or str(error)).lower()
    return any(marker in message for marker in DUPLICATE_EMAIL_MARKERS)


def store_session(request, payload):
    request.session.cycle_key()
    request.session[SESSION_KEY] = payload


def clear_session(request):
    request.session.flush()


def current_session(request, backend):
    """
    Return the stored hosted session if it is still valid.

    An expired token is refreshed once; if that fails the stored session is
    dropped and ``None`` is returned.
    """
    payload = request.session.get(SESSION_KEY)
    if not payload or not payload.get("access_token"):
        return None

    if payload.get("expires_at", 0) - EXPIRY_LEEWAY_SECONDS > time.time():
        return payload

    refresh_token = payload.get("refresh_token")
    if not refresh_token:
        request.session.pop(SESSION_KEY, None)
        return None

    try:
        payload = refresh(backend, refresh_token)
    except BackendError as exc:
        logger.info("Dropping expired session: %s", exc.message)
        request.session.pop(SESSION_KEY, None)
        return None

    request.session[SESSION_KEY] = payload
    return payload
