# contacts_bridge/services/contacts_service.py

import logging
from typing import Any, Dict, List, Optional

from contacts_bridge.errors import ContactsError, DirectoryServiceError
from contacts_bridge.services.contact_cache import CacheConfig, CacheStats, ContactCache
from contacts_bridge.services.directory import ContactDirectory
from contacts_bridge.services.phone import find_name_by_phone, search_forms
from contacts_bridge.validation import escape_for_logging, validate_contact_name, validate_phone_number

logger = logging.getLogger(__name__)

ALL_CONTACTS_KEY = "all_contacts"


class ContactsService:
    """
    Cache-aware queries over the contact directory.

    Decides per query whether to trust the cache, when to go to the
    directory, and how to fold single-contact discoveries back into the
    cached bulk snapshot.
    """

    def __init__(self, cache: ContactCache, directory: ContactDirectory, cache_key: str = ALL_CONTACTS_KEY) -> None:
        self.cache = cache
        self.directory = directory
        self.cache_key = cache_key

    def get_all_contacts(self) -> Dict[str, List[str]]:
        """
        Read-through: cached snapshot if present, else full enumeration.

        The primary enumeration runs first; the fallback runs when the primary
        fails or comes back empty. Only a non-empty result is cached.
        Returns {} when both paths find nothing.
        """
        cached = self.cache.get(self.cache_key)
        if cached is not None:
            return cached

        self.directory.check_access()

        try:
            contacts = self.directory.enumerate_all_primary()
        except DirectoryServiceError as ex:
            logger.warning("Primary contact enumeration failed, trying fallback: %s", ex)
            contacts = {}

        if not contacts:
            logger.info("Primary enumeration returned no contacts, running fallback enumeration")
            contacts = self.directory.enumerate_all_fallback()

        if contacts:
            self.cache.set(contacts, self.cache_key)
        logger.info("Enumerated %d contacts with phone numbers", len(contacts))
        return contacts

    def find_contact_by_name(self, name: str) -> List[str]:
        """
        Phones of the contact matching `name`.

        Asks the directory directly for this one name rather than paying for a
        full enumeration; only when that finds nothing does it fall back to a
        fuzzy match over the (possibly cached) bulk snapshot.
        """
        sanitized = validate_contact_name(name)
        logger.debug("find_contact_by_name: %s", escape_for_logging(sanitized))

        self.directory.check_access()

        try:
            phones = self.directory.find_phones_by_name(sanitized)
        except DirectoryServiceError as ex:
            logger.warning("Direct name lookup failed, trying fuzzy search: %s", ex)
            phones = []

        if phones:
            return phones
        return self._find_by_name_fuzzy(sanitized)

    def _find_by_name_fuzzy(self, name: str) -> List[str]:
        # First match in snapshot iteration order wins.
        try:
            contacts = self.get_all_contacts()
        except DirectoryServiceError:
            logger.exception("Fuzzy name search failed")
            return []
        needle = name.lower()
        match = next((n for n in contacts if needle in n.lower()), None)
        logger.debug("Fuzzy search result: %s", escape_for_logging(match) if match else "none")
        return contacts[match] if match is not None else []

    def find_contact_by_phone(self, phone_number: str) -> Optional[str]:
        """
        Name of the contact owning `phone_number`, or None.

        Looks only at the cached snapshot first; a cache miss never triggers a
        bulk enumeration here. Failing that, the directory scans every contact
        and a hit is merged into the cached snapshot so later lookups stay in
        memory.
        """
        sanitized = validate_phone_number(phone_number)
        logger.debug("find_contact_by_phone: %s", escape_for_logging(sanitized))

        cached = self.cache.get(self.cache_key)
        if cached is not None:
            name = find_name_by_phone(cached, sanitized)
            if name is not None:
                return name

        forms = search_forms(sanitized)
        if not forms:
            return None

        self.directory.check_access()
        record = self.directory.scan_all_for_phone_match(forms)
        if record is None:
            return None

        name, phones = record
        self.cache.merge(name, phones, self.cache_key)
        return name

    def check_access_status(self) -> Dict[str, Any]:
        """Probe the directory without raising; used by the health endpoint."""
        try:
            count = self.directory.count_contacts()
        except ContactsError as ex:
            return {
                "success": False,
                "message": (
                    f"Cannot access Contacts app. Error: {ex}. Please check "
                    "System Settings > Privacy & Security > Contacts and ensure this application has permission."
                ),
            }
        if count > 0:
            return {"success": True, "message": f"Successfully accessed {count} contacts.", "contact_count": count}
        return {"success": False, "message": "No contacts found. Your address book might be empty.", "contact_count": 0}

    # ---------- cache management ----------

    def get_cache_statistics(self) -> CacheStats:
        return self.cache.get_stats()

    def get_cache_config(self) -> CacheConfig:
        return self.cache.get_config()

    def invalidate_cache(self, key: Optional[str] = None) -> None:
        self.cache.invalidate(key)

    def update_cache_config(self, **changes) -> CacheConfig:
        return self.cache.update_config(**changes)
