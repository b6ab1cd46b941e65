# contacts_bridge/services/directory.py
from abc import ABC, abstractmethod
import logging
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

ContactRecord = Tuple[str, List[str]]

FIELD_SEPARATOR = "|"


class ContactDirectory(ABC):
    """
    The slow collaborator that actually reads the address book.

    Implementations skip individual contacts they cannot read, raise
    ContactsAccessDeniedError from check_access() when the host permission is
    missing, and raise DirectoryServiceError when the bridge itself fails.
    """

    @abstractmethod
    def check_access(self) -> bool:
        ...

    @abstractmethod
    def count_contacts(self) -> int:
        ...

    @abstractmethod
    def enumerate_all_primary(self) -> Dict[str, List[str]]:
        """Fast bulk read; may return {} instead of raising when nothing could be read."""

    @abstractmethod
    def enumerate_all_fallback(self) -> Dict[str, List[str]]:
        """Slower, more tolerant bulk read used only when the primary path yields nothing."""

    @abstractmethod
    def find_phones_by_name(self, name: str) -> List[str]:
        """Phones of the first contact whose name contains `name` (case-insensitive) and has phones."""

    @abstractmethod
    def scan_all_for_phone_match(self, normalized_forms: Sequence[str]) -> Optional[ContactRecord]:
        """First contact owning a number equal to one of `normalized_forms` after normalization."""


def parse_delimited_contacts(output: str) -> Dict[str, List[str]]:
    """
    Parse `name|phone` lines produced by the fallback enumeration.

    One line per phone number; a contact with several numbers appears on
    several lines. Lines without a separator or with an empty side are
    skipped. The phone is taken after the last separator so names containing
    '|' survive.
    """
    contacts: Dict[str, List[str]] = {}
    skipped = 0
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        name, sep, phone = line.rpartition(FIELD_SEPARATOR)
        name, phone = name.strip(), phone.strip()
        if not sep or not name or not phone:
            skipped += 1
            continue
        contacts.setdefault(name, []).append(phone)
    if skipped:
        logger.debug("Skipped %d malformed contact lines", skipped)
    return contacts
