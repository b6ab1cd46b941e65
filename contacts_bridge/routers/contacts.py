# contacts_bridge/routers/contacts.py

import logging
from fastapi import APIRouter, Depends, HTTPException, Query

from contacts_bridge.dependencies import get_contacts_service, http_error_for
from contacts_bridge.errors import ContactsError
from contacts_bridge.schemas.contacts import ContactByPhone, ContactPhones, ContactsList
from contacts_bridge.services.contacts_service import ContactsService

logger = logging.getLogger(__name__)

# Use a fixed prefix so routes live under /contacts
router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.get("", response_model=ContactsList)
def list_contacts(service: ContactsService = Depends(get_contacts_service)):
    """
    GET /contacts
    Every contact that has at least one phone number.

    Status codes:
      - 200: Found (possibly an empty mapping when the address book has no phones)
      - 403: Contacts permission not granted
      - 502: scripting bridge failure

    Served from the cache when a fresh snapshot exists.
    """
    try:
        contacts = service.get_all_contacts()
    except ContactsError as ex:
        raise http_error_for(ex)
    return {"count": len(contacts), "contacts": contacts}


@router.get("/search", response_model=ContactPhones)
def search_by_name(
    name: str = Query(..., min_length=1, max_length=200),
    service: ContactsService = Depends(get_contacts_service),
):
    """
    GET /contacts/search?name=...
    Phone numbers of the first contact whose name contains `name`.
    404 when nothing matches.
    """
    try:
        phones = service.find_contact_by_name(name)
    except ContactsError as ex:
        raise http_error_for(ex)
    if not phones:
        raise HTTPException(status_code=404, detail=f'No contact found for "{name.strip()}"')
    return {"query": name.strip(), "phones": phones}


@router.get("/lookup", response_model=ContactByPhone)
def lookup_by_phone(
    phone: str = Query(..., min_length=1, max_length=30),
    service: ContactsService = Depends(get_contacts_service),
):
    """
    GET /contacts/lookup?phone=...
    Name of the contact owning `phone` ("+1" prefixes and formatting ignored).
    Cache first; a directory hit is written back into the cache.
    """
    try:
        name = service.find_contact_by_phone(phone)
    except ContactsError as ex:
        raise http_error_for(ex)
    if name is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"phone": phone, "name": name}
