# contacts_bridge/errors.py

ACCESS_DENIED_MESSAGE = (
    "Cannot access Contacts app. Please grant access in "
    "System Settings > Privacy & Security > Contacts."
)


class ContactsError(Exception):
    """Base class for every error raised by the contacts layer."""


class ContactsAccessDeniedError(ContactsError):
    """The Contacts app cannot be reached at all (host permission not granted)."""

    def __init__(self, message: str = ACCESS_DENIED_MESSAGE) -> None:
        super().__init__(message)


class DirectoryServiceError(ContactsError):
    """The scripting bridge failed, timed out, or returned output we could not read."""


class InvalidInputError(ContactsError, ValueError):
    """Caller supplied a name or phone number we refuse to pass to the bridge."""
