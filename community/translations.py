import json
import logging
from pathlib import Path

from django.apps import apps
from django.conf import settings

logger = logging.getLogger(__name__)


class TranslationCatalog:
    """
    Per-locale translation dictionaries loaded from ``<directory>/<locale>/common.json``.

    A locale is read from disk the first time it is requested and served from
    memory afterwards. Unknown or unreadable locales fall back to the default
    locale without being cached, so a later fix on disk is picked up.
    """

    def __init__(self, directory, default_locale="en"):
        self.directory = Path(directory)
        self.default_locale = default_locale
        self._cache = {}

    def get(self, locale):
        if locale in self._cache:
            return self._cache[locale]

        path = self.directory / locale / "common.json"
        try:
            with path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Could not load translations for %r: %s", locale, exc)
            if locale != self.default_locale:
                return self.get(self.default_locale)
            return {}

        self._cache[locale] = data
        return data

    def preload(self, locales):
        for locale in locales:
            if locale not in self._cache:
                self.get(locale)

    def is_loaded(self, locale):
        return locale in self._cache

    def translate(self, locale, key, default=None):
        """Look up a dotted ``key``; returns ``default`` (or the key) when missing."""
        value = self.get(locale)
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return key if default is None else default
            value = value[part]
        return value


def supported_locales():
    return [code for code, _name in settings.LANGUAGES]


def get_catalog():
    return apps.get_app_config("community").translations


def translate(locale, key, default=None):
    return get_catalog().translate(locale, key, default)
