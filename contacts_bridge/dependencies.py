# contacts_bridge/dependencies.py
from fastapi import HTTPException, Request

from contacts_bridge.errors import ContactsAccessDeniedError, ContactsError, InvalidInputError
from contacts_bridge.services.contacts_service import ContactsService


# Dependency to get the contacts service built by the application lifespan
def get_contacts_service(request: Request) -> ContactsService:
    service = getattr(request.app.state, "contacts_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Contacts service not initialized")
    return service


def http_error_for(ex: ContactsError) -> HTTPException:
    """
    Map the contacts error taxonomy onto status codes:
      - 400: rejected input
      - 403: Contacts permission not granted (message says what to grant)
      - 502: scripting bridge failed
    """
    if isinstance(ex, InvalidInputError):
        return HTTPException(status_code=400, detail=str(ex))
    if isinstance(ex, ContactsAccessDeniedError):
        return HTTPException(status_code=403, detail=str(ex))
    return HTTPException(status_code=502, detail=f"Error accessing contacts: {ex}")
