# contacts_bridge/services/osascript.py
"""
Contacts.app access through the `osascript` scripting bridge.

Scripts are fed on stdin and user input travels as script arguments, so a
name or phone number is never interpolated into script source.
"""
import json
import logging
import subprocess
from typing import Dict, List, Optional, Sequence

from contacts_bridge.config import OSASCRIPT_BIN, OSASCRIPT_TIMEOUT_SECONDS
from contacts_bridge.errors import ContactsAccessDeniedError, DirectoryServiceError
from contacts_bridge.services.directory import ContactDirectory, ContactRecord, parse_delimited_contacts

logger = logging.getLogger(__name__)

COUNT_PEOPLE_SCRIPT = """
tell application "Contacts"
    count every person
end tell
"""

# JXA: JSON object {name: [phones]} of every contact that has phones.
ENUMERATE_JXA = """
function run(argv) {
    var people = Application('Contacts').people();
    var result = {};
    for (var i = 0; i < people.length; i++) {
        try {
            var person = people[i];
            var name = person.name();
            var phones = person.phones().map(function (p) { return p.value(); });
            if (name && phones.length > 0) {
                result[name] = phones;
            }
        } catch (e) {
            // unreadable contact, skip
        }
    }
    return JSON.stringify(result);
}
"""

# AppleScript: one "name|phone" line per phone number.
ENUMERATE_DELIMITED_APPLESCRIPT = """
tell application "Contacts"
    set contactsList to ""
    repeat with aPerson in every person
        try
            set personName to name of aPerson
            repeat with aPhone in phones of aPerson
                set contactsList to contactsList & personName & "|" & (value of aPhone) & linefeed
            end repeat
        on error
            -- unreadable contact, skip
        end try
    end repeat
    return contactsList
end tell
"""

# JXA: phones (JSON list) of the first contact whose name contains argv[0].
FIND_BY_NAME_JXA = """
function run(argv) {
    var needle = (argv[0] || '').toLowerCase();
    var people = Application('Contacts').people();
    for (var i = 0; i < people.length; i++) {
        try {
            var person = people[i];
            var name = person.name();
            if (name && name.toLowerCase().indexOf(needle) !== -1) {
                var phones = person.phones().map(function (p) { return p.value(); });
                if (phones.length > 0) {
                    return JSON.stringify(phones);
                }
            }
        } catch (e) {
            // unreadable contact, skip
        }
    }
    return JSON.stringify([]);
}
"""

# JXA: {name, phones} of the first contact owning a number in argv, or null.
SCAN_BY_PHONE_JXA = """
function run(argv) {
    var forms = {};
    for (var j = 0; j < argv.length; j++) { forms[argv[j]] = true; }
    var people = Application('Contacts').people();
    for (var i = 0; i < people.length; i++) {
        try {
            var person = people[i];
            var phones = person.phones().map(function (p) { return p.value(); });
            for (var k = 0; k < phones.length; k++) {
                if (forms[phones[k].replace(/[^0-9+]/g, '')]) {
                    return JSON.stringify({name: person.name(), phones: phones});
                }
            }
        } catch (e) {
            // unreadable contact, skip
        }
    }
    return JSON.stringify(null);
}
"""


class OsascriptError(DirectoryServiceError):
    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def run_osascript(
    script: str,
    args: Sequence[str] = (),
    language: str = "AppleScript",
    timeout: float = OSASCRIPT_TIMEOUT_SECONDS,
    binary: str = OSASCRIPT_BIN,
) -> str:
    """Run `script` via osascript and return its stripped stdout."""
    cmd = [binary, "-l", language, "-", *args]
    try:
        result = subprocess.run(cmd, input=script, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as ex:
        raise OsascriptError(f"{binary} not found; the Contacts bridge only runs on macOS") from ex
    except subprocess.TimeoutExpired as ex:
        raise OsascriptError(f"{language} script timed out after {timeout}s") from ex
    if result.returncode != 0:
        stderr = result.stderr.strip()
        raise OsascriptError(f"{language} error: {stderr}", returncode=result.returncode, stderr=stderr)
    return result.stdout.strip()


def _load_json(output: str, what: str):
    try:
        return json.loads(output) if output else None
    except ValueError as ex:
        raise DirectoryServiceError(f"Unreadable {what} output from Contacts bridge") from ex


class OsascriptContactDirectory(ContactDirectory):
    """ContactDirectory backed by Contacts.app (JXA primary path, AppleScript fallback)."""

    def __init__(self, timeout: float = OSASCRIPT_TIMEOUT_SECONDS, binary: str = OSASCRIPT_BIN) -> None:
        self.timeout = timeout
        self.binary = binary

    def _run(self, script: str, args: Sequence[str] = (), language: str = "AppleScript") -> str:
        return run_osascript(script, args=args, language=language, timeout=self.timeout, binary=self.binary)

    def count_contacts(self) -> int:
        output = self._run(COUNT_PEOPLE_SCRIPT)
        try:
            return int(output)
        except ValueError as ex:
            raise DirectoryServiceError(f"Unexpected contact count: {output!r}") from ex

    def check_access(self) -> bool:
        try:
            count = self.count_contacts()
        except OsascriptError as ex:
            if ex.returncode is None:
                # bridge missing or hung, not a permission problem
                raise
            logger.warning("Contacts access check failed: %s", ex)
            raise ContactsAccessDeniedError() from ex
        logger.debug("Contacts access check successful. Found %s contacts.", count)
        return True

    def enumerate_all_primary(self) -> Dict[str, List[str]]:
        data = _load_json(self._run(ENUMERATE_JXA, language="JavaScript"), "contacts")
        if not isinstance(data, dict):
            return {}
        return {
            name: [str(p) for p in phones]
            for name, phones in data.items()
            if name and isinstance(phones, list) and phones
        }

    def enumerate_all_fallback(self) -> Dict[str, List[str]]:
        return parse_delimited_contacts(self._run(ENUMERATE_DELIMITED_APPLESCRIPT))

    def find_phones_by_name(self, name: str) -> List[str]:
        data = _load_json(self._run(FIND_BY_NAME_JXA, args=[name], language="JavaScript"), "name search")
        if not isinstance(data, list):
            return []
        return [str(p) for p in data]

    def scan_all_for_phone_match(self, normalized_forms: Sequence[str]) -> Optional[ContactRecord]:
        if not normalized_forms:
            return None
        data = _load_json(
            self._run(SCAN_BY_PHONE_JXA, args=list(normalized_forms), language="JavaScript"), "phone scan"
        )
        if not isinstance(data, dict) or not data.get("name"):
            return None
        return data["name"], [str(p) for p in data.get("phones") or []]
