# contacts_bridge/main.py

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI

from contacts_bridge.config import LOG_LEVEL
from contacts_bridge.dependencies import get_contacts_service
from contacts_bridge.routers import cache, contacts, tools
from contacts_bridge.services.cache_factory import build_contact_cache
from contacts_bridge.services.contacts_service import ContactsService
from contacts_bridge.services.osascript import OsascriptContactDirectory

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: build the cache, arm its sweeper, wire the query layer
    contact_cache = build_contact_cache()
    contact_cache.start()
    app.state.contacts_service = ContactsService(contact_cache, OsascriptContactDirectory())
    logger.info("Contacts service ready (cache config: %s)", contact_cache.get_config().to_dict())
    try:
        yield
    finally:
        # Shutdown: stop the sweeper and drop cached contacts
        contact_cache.destroy()
        app.state.contacts_service = None


app = FastAPI(title="contacts-bridge", lifespan=lifespan)
app.include_router(contacts.router)
app.include_router(tools.router)
app.include_router(cache.router)


@app.get("/health")
def health_check(service: ContactsService = Depends(get_contacts_service)):
    status = service.check_access_status()
    if status["success"]:
        return {"status": "ok", "contacts": status["message"], "contactCount": status["contact_count"]}
    return {"status": "error", "contacts": status["message"]}
