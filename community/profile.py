"""
Member self-service profile: validation, updates, avatar and family members.

Family members are stored as a JSON list on the member row. Each entry gets
a generated ``family_<ms>_<9 chars>`` id so it can be edited or removed
individually.
"""

import json
import logging
import re
from datetime import date

from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone
from django.utils.crypto import get_random_string
from django.utils.dateparse import parse_date

from .backend import backend_call
from .queries import first_row
from .storage import file_extension, remove_file, timestamp_ms, upload_file, validate_image

logger = logging.getLogger(__name__)

TABLE = "members"
AVATAR_FOLDER = "avatars"

UK_PHONE_RE = re.compile(
    r"^(\+44\s?7\d{3}|\(?07\d{3}\)?\s?\d{3}\s?\d{3}|\+44\s?20\s?\d{4}\s?\d{4}"
    r"|020\s?\d{4}\s?\d{4}|\+44\s?1\d{3}\s?\d{6}|01\d{3}\s?\d{6})$"
)
NAME_RE = re.compile(r"^[a-zA-Z\s'-]+$")

MAX_AGE_YEARS = 120
MIN_ADDRESS_LENGTH = 10

# Fields a member may change on their own row; email is never among them
UPDATABLE_FIELDS = (
    "name",
    "phone",
    "date_of_birth",
    "current_address",
    "back_home_address",
    "emergency_contact_number",
    "family_members",
    "avatar",
    "status",
)


# ============================================================================
# VALIDATORS
# ============================================================================

def validate_name(value, min_length=2, max_length=100):
    if len(value) < min_length:
        raise ValidationError(f"Name must be at least {min_length} characters long")
    if len(value) > max_length:
        raise ValidationError(f"Name must be less than {max_length} characters")
    if not NAME_RE.match(value):
        raise ValidationError(
            "Name can only contain letters, spaces, hyphens, and apostrophes"
        )


def validate_uk_phone(value):
    if value and not UK_PHONE_RE.match(re.sub(r"\s", "", value)):
        raise ValidationError(
            "Please enter a valid UK phone number (e.g., +44 20 7946 0958 or 07123 456789)"
        )


def validate_date_of_birth(value, today=None):
    if not value:
        return
    day = value if isinstance(value, date) else parse_date(str(value))
    today = today or timezone.localdate()
    if day is None or day > today or today.year - day.year > MAX_AGE_YEARS:
        raise ValidationError(
            "Please enter a valid date of birth (must be in the past and realistic)"
        )


def validate_address(value):
    if value and len(value) < MIN_ADDRESS_LENGTH:
        raise ValidationError(
            f"Address must be at least {MIN_ADDRESS_LENGTH} characters if provided"
        )


def validate_age(value):
    if value is not None and not 0 <= value <= MAX_AGE_YEARS:
        raise ValidationError(f"Age must be between 0 and {MAX_AGE_YEARS}")


def _collect(errors, field, validator, value):
    try:
        validator(value)
    except ValidationError as exc:
        errors[field] = exc.messages


def validate_profile_update(data):
    """Raise ``ValidationError`` keyed by field for any invalid update value."""
    errors = {}
    if "name" in data:
        _collect(errors, "name", validate_name, data["name"] or "")
    for field in ("phone", "emergency_contact_number"):
        if field in data:
            _collect(errors, field, validate_uk_phone, data[field])
    if "date_of_birth" in data:
        _collect(errors, "date_of_birth", validate_date_of_birth, data["date_of_birth"])
    if "current_address" in data:
        _collect(errors, "current_address", validate_address, data["current_address"])
    if errors:
        raise ValidationError(errors)


def validate_family_member(data):
    errors = {}
    _collect(
        errors,
        "name",
        lambda value: validate_name(value, max_length=50),
        data.get("name") or "",
    )
    relationship = data.get("relationship") or ""
    if not relationship:
        errors["relationship"] = ["Relationship is required"]
    elif len(relationship) > 30:
        errors["relationship"] = ["Relationship must be less than 30 characters"]
    _collect(errors, "phone", validate_uk_phone, data.get("phone"))
    _collect(errors, "age", validate_age, data.get("age"))
    if errors:
        raise ValidationError(errors)


# ============================================================================
# PROFILE DATA
# ============================================================================

def sanitize_profile_data(data):
    return {field: data[field] for field in UPDATABLE_FIELDS if field in data}


def get_changed_fields(original, updated):
    """Fields of ``updated`` whose value differs from ``original`` (email ignored)."""
    changed = {}
    for key, value in updated.items():
        if key == "email":
            continue
        if isinstance(value, (dict, list)):
            if json.dumps(value, sort_keys=True, default=str) != json.dumps(
                original.get(key), sort_keys=True, default=str
            ):
                changed[key] = value
        elif value != original.get(key):
            changed[key] = value
    return changed


@backend_call
def fetch_user_profile(client, email):
    return client.table(TABLE).select("*").eq("email", email).single().execute().data


@backend_call
def update_user_profile(client, member_id, updates):
    updates = dict(updates)
    updates.pop("email", None)
    validate_profile_update(updates)
    response = client.table(TABLE).update(updates).eq("id", member_id).execute()
    logger.info("Updated profile %s (%s)", member_id, ", ".join(sorted(updates)))
    return first_row(response)


# ============================================================================
# AVATAR
# ============================================================================

def upload_profile_avatar(client, upload, user_id):
    validate_image(upload)
    if upload.size > settings.AVATAR_MAX_UPLOAD_SIZE:
        raise ValidationError("Image must be smaller than 5MB", code="file_size")
    path = f"{AVATAR_FOLDER}/{user_id}-{timestamp_ms()}.{file_extension(upload.name)}"
    return upload_file(client, settings.PROFILE_IMAGE_BUCKET, path, upload)


def delete_profile_avatar(client, avatar_url):
    filename = avatar_url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    remove_file(client, settings.PROFILE_IMAGE_BUCKET, f"{AVATAR_FOLDER}/{filename}")


# ============================================================================
# FAMILY MEMBERS
# ============================================================================

def new_family_member_id():
    suffix = get_random_string(9, allowed_chars="abcdefghijklmnopqrstuvwxyz0123456789")
    return f"family_{timestamp_ms()}_{suffix}"


@backend_call
def _family_members(client, member_id):
    row = (
        client.table(TABLE)
        .select("family_members")
        .eq("id", member_id)
        .single()
        .execute()
        .data
    )
    return list((row or {}).get("family_members") or [])


@backend_call
def _save_family_members(client, member_id, family_members):
    response = (
        client.table(TABLE)
        .update({"family_members": family_members})
        .eq("id", member_id)
        .execute()
    )
    return first_row(response)


def add_family_member(client, member_id, family_member):
    validate_family_member(family_member)
    entry = dict(family_member, id=new_family_member_id())
    family = _family_members(client, member_id)
    family.append(entry)
    return _save_family_members(client, member_id, family)


def update_family_member(client, member_id, family_member_id, updates):
    family = _family_members(client, member_id)
    for index, entry in enumerate(family):
        if entry.get("id") == family_member_id:
            merged = dict(entry, **updates)
            validate_family_member(merged)
            family[index] = merged
    return _save_family_members(client, member_id, family)


def delete_family_member(client, member_id, family_member_id):
    family = [
        entry
        for entry in _family_members(client, member_id)
        if entry.get("id") != family_member_id
    ]
    return _save_family_members(client, member_id, family)
