# contacts_bridge/services/phone.py
"""Phone number normalization and the equivalence used for contact lookup."""
import re
from typing import Dict, Iterable, List, Optional

_NON_PHONE_CHARS = re.compile(r"[^0-9+]")


def normalize_phone(value: str) -> str:
    """Keep only digits and '+'."""
    return _NON_PHONE_CHARS.sub("", value)


def phones_match(a: str, b: str) -> bool:
    """
    True if two normalized numbers are the same number: identical, or one is
    the other with a leading '+' or '+1'. Checked both ways.
    """
    if not a or not b:
        return False
    return a == b or a == f"+{b}" or b == f"+{a}" or a == f"+1{b}" or b == f"+1{a}"


def search_forms(phone_number: str) -> List[str]:
    """Equivalent representations of `phone_number` to compare against stored numbers."""
    normalized = normalize_phone(phone_number)
    if not normalized:
        return []
    if normalized.startswith("+"):
        forms = [normalized, normalized[1:]]
        if normalized.startswith("+1"):
            forms.append(normalized[2:])
    else:
        forms = [normalized, f"+{normalized}", f"+1{normalized}"]
    # dedupe, keep order
    return [f for f in dict.fromkeys(forms) if f.strip("+")]


def matches_any(phones: Iterable[str], normalized_search: str) -> bool:
    return any(phones_match(normalize_phone(p), normalized_search) for p in phones)


def find_name_by_phone(snapshot: Dict[str, List[str]], phone_number: str) -> Optional[str]:
    """First name in snapshot order with a number equivalent to `phone_number`."""
    search = normalize_phone(phone_number)
    if not search:
        return None
    for name, phones in snapshot.items():
        if matches_any(phones, search):
            return name
    return None
