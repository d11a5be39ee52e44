from django.conf import settings


class LocaleConverter:
    """Matches one of the configured language codes as the leading path segment."""

    regex = "|".join(code for code, _name in settings.LANGUAGES)

    def to_python(self, value):
        return value

    def to_url(self, value):
        return value
