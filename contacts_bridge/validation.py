# contacts_bridge/validation.py
import re

from contacts_bridge.errors import InvalidInputError

MAX_NAME_LENGTH = 200
MAX_PHONE_LENGTH = 30

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_PHONE_CHARS = re.compile(r"^[+\d\-()\s.]+$")


def validate_contact_name(name) -> str:
    """Return the trimmed name, or raise InvalidInputError."""
    if not isinstance(name, str):
        raise InvalidInputError("Contact name must be a string")
    trimmed = name.strip()
    if not trimmed:
        raise InvalidInputError("Contact name cannot be empty")
    if len(trimmed) > MAX_NAME_LENGTH:
        raise InvalidInputError(f"Contact name is too long (maximum {MAX_NAME_LENGTH} characters)")
    if _CONTROL_CHARS.search(trimmed):
        raise InvalidInputError("Contact name contains invalid control characters")
    return trimmed


def validate_phone_number(phone_number) -> str:
    """Return the trimmed phone number, or raise InvalidInputError."""
    if not isinstance(phone_number, str):
        raise InvalidInputError("Phone number must be a string")
    trimmed = phone_number.strip()
    if not trimmed:
        raise InvalidInputError("Phone number cannot be empty")
    if not _PHONE_CHARS.match(trimmed):
        raise InvalidInputError("Phone number contains invalid characters")
    if len(trimmed) > MAX_PHONE_LENGTH:
        raise InvalidInputError(f"Phone number is too long (maximum {MAX_PHONE_LENGTH} characters)")
    return trimmed


def escape_for_logging(value: str) -> str:
    """Escape line breaks and tabs so user input cannot forge log lines."""
    return (
        value.replace("\r\n", "\\r\\n")
        .replace("\r", "\\r")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
