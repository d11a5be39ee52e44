"""
Hosted backend access.

Every table, bucket and auth call goes through a Supabase SDK client handed
out by ``HostedBackend``. The handle is created once by
``CommunityConfig.ready()`` and swapped with ``configure_backend()`` (tests
install a fake client factory this way).

SDK failures are re-raised as ``BackendError`` by the ``backend_call``
decorator so views only ever catch one exception type.
"""

import functools
import logging

from django.apps import apps
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from supabase import AuthError, PostgrestAPIError, StorageException, create_client

logger = logging.getLogger(__name__)

SDK_ERRORS = (PostgrestAPIError, AuthError, StorageException)

# PostgREST code for ".single()" matching zero rows
NO_ROWS_CODE = "PGRST116"


class BackendError(Exception):
    """A hosted backend operation was rejected."""

    def __init__(self, message, code=None, status=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    @classmethod
    def wrap(cls, exc):
        if isinstance(exc, StorageException) and exc.args and isinstance(exc.args[0], dict):
            detail = exc.args[0]
            return cls(
                detail.get("message") or detail.get("error") or str(exc),
                code=detail.get("error"),
                status=detail.get("statusCode"),
            )
        message = getattr(exc, "message", None) or str(exc)
        return cls(
            message,
            code=getattr(exc, "code", None),
            status=getattr(exc, "status", None),
        )

    @property
    def is_not_found(self):
        return self.code == NO_ROWS_CODE


def backend_call(func):
    """Translate SDK exceptions raised by ``func`` into ``BackendError``."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SDK_ERRORS as exc:
            error = BackendError.wrap(exc)
            logger.warning("%s failed: %s (code=%s)", func.__name__, error.message, error.code)
            raise error from exc

    return wrapper


class HostedBackend:
    """URL, public key and client factory for the hosted backend."""

    def __init__(self, url, key, client_factory=create_client, client_info=None):
        self.url = url
        self.key = key
        self.client_factory = client_factory
        self.client_info = client_info

    @classmethod
    def from_settings(cls):
        return cls(
            settings.SUPABASE_URL,
            settings.SUPABASE_ANON_KEY,
            client_info=getattr(settings, "SUPABASE_CLIENT_INFO", None),
        )

    @property
    def is_configured(self):
        return bool(self.url and self.key)

    def client(self, access_token=None):
        """
        Build an SDK client, optionally acting as the holder of ``access_token``.

        The Authorization header must be set before the client's postgrest
        and storage sub-clients are first touched; both read it lazily.
        """
        if not self.is_configured:
            raise ImproperlyConfigured(
                "SUPABASE_URL and SUPABASE_ANON_KEY must both be set."
            )
        client = self.client_factory(self.url, self.key)
        if self.client_info:
            client.options.headers["X-Client-Info"] = self.client_info
        if access_token:
            client.options.headers["Authorization"] = f"Bearer {access_token}"
        return client


def get_backend():
    return apps.get_app_config("community").backend


def configure_backend(backend):
    """Install ``backend`` as the process-wide handle and return the previous one."""
    config = apps.get_app_config("community")
    previous = config.backend
    config.backend = backend
    return previous


def client_for(request):
    """Per-request SDK client bound to the signed-in user's token, if any."""
    client = getattr(request, "_hosted_client", None)
    if client is None:
        session = getattr(request, "hosted_session", None) or {}
        client = get_backend().client(session.get("access_token"))
        request._hosted_client = client
    return client
