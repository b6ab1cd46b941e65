# contacts_bridge/routers/tools.py

import json
import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.concurrency import run_in_threadpool
from jsonschema import Draft7Validator

from contacts_bridge.dependencies import get_contacts_service, http_error_for
from contacts_bridge.errors import ContactsError
from contacts_bridge.services.contacts_service import ContactsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])

# Load and prepare schema once at import time
schema_path = Path(__file__).resolve().parents[1] / "schemas" / "contacts_tool_schema.json"
with schema_path.open("r", encoding="utf-8") as f:
    contacts_tool_schema = json.load(f)

json_validator = Draft7Validator(contacts_tool_schema)


@router.post("/contacts")
async def invoke_contacts_tool(request: Request, service: ContactsService = Depends(get_contacts_service)):
    """
    POST /tools/contacts
    Entry point for a tool-invocation dispatcher. The body carries the tool
    arguments: {} lists every contact, {"name": ...} returns that contact's
    phones, {"phone": ...} resolves a number to a name.

    Status codes:
      - 200: {"result": ...}; an empty result is not an error
      - 400: invalid JSON or JSON schema violations (validationErrors list)
      - 403: Contacts permission not granted
      - 502: scripting bridge failure
    """
    try:
        payload = await request.json()
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid JSON format")

    validation_errors = sorted(json_validator.iter_errors(payload), key=lambda e: list(e.path))
    if validation_errors:
        return JSONResponse(
            status_code=400,
            content={"validationErrors": [e.message for e in validation_errors]},
        )

    # The directory calls block on a subprocess; keep them off the event loop.
    try:
        if "name" in payload:
            phones = await run_in_threadpool(service.find_contact_by_name, payload["name"])
            return {"tool": "contacts", "arguments": payload, "result": {"phones": phones}}
        if "phone" in payload:
            name = await run_in_threadpool(service.find_contact_by_phone, payload["phone"])
            return {"tool": "contacts", "arguments": payload, "result": {"name": name}}
        contacts = await run_in_threadpool(service.get_all_contacts)
        return {"tool": "contacts", "arguments": payload, "result": {"count": len(contacts), "contacts": contacts}}
    except ContactsError as ex:
        logger.warning("contacts tool failed: %s", ex)
        raise http_error_for(ex)
