from django.apps import AppConfig
from django.conf import settings


class CommunityConfig(AppConfig):
    name = "community"
    verbose_name = "East London Community"

    backend = None
    translations = None

    def ready(self):
        from .backend import HostedBackend
        from .translations import TranslationCatalog

        self.backend = HostedBackend.from_settings()
        self.translations = TranslationCatalog(
            settings.COMMUNITY_LOCALE_DIR,
            default_locale=settings.LANGUAGE_CODE,
        )
