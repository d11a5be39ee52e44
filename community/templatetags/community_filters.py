from django import template
from django.utils import timezone

from ..events import event_status as _event_status
from ..payments import payment_status as _payment_status
from ..queries import parse_timestamp
from ..translations import translate as _translate

register = template.Library()


@register.filter
def get_item(dictionary, key):
    """
    Safely get item from dictionary.
    Returns the value if key exists, otherwise returns False.
    """
    if isinstance(dictionary, dict):
        return dictionary.get(str(key), False)
    return False


@register.filter
def translate(key, locale):
    """{{ "nav.members"|translate:locale }}"""
    return _translate(locale or "en", key)


@register.filter
def as_datetime(value):
    return parse_timestamp(value)


@register.filter
def payment_status(payment):
    return _payment_status(payment, timezone.now())


@register.filter
def event_status(event):
    return _event_status(event, timezone.now())


@register.filter
def initials(name):
    parts = (name or "").split()
    return "".join(part[0] for part in parts[:2]).upper() or "?"
