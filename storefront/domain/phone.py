import re
from typing import Optional

HAITI_COUNTRY_CODE = "509"

_NON_DIGITS = re.compile(r"\D")

def format_haiti_phone_number(phone_number: Optional[str]) -> Optional[str]:
    """
    Normalize a destination number to E.164 form for Haiti.

    Heuristic: 8 local digits get the 509 prefix, 11-digit numbers starting
    with 509 or 1 are kept, input already starting with "+" passes through,
    and anything else falls back to the 509 prefix. Numbers that are neither
    8 nor 11 digits are therefore prefixed with 509 even when they were
    written as international numbers, e.g. "+1-555-0100" -> "+50915550100".
    """
    if not phone_number:
        return None
    digits = _NON_DIGITS.sub("", phone_number)

    if digits.startswith(HAITI_COUNTRY_CODE) and len(digits) == 11:
        return f"+{digits}"
    if len(digits) == 8:
        return f"+{HAITI_COUNTRY_CODE}{digits}"
    if digits.startswith("1") and len(digits) == 11:
        return f"+{digits}"

    if phone_number.startswith("+"):
        return phone_number

    return f"+{HAITI_COUNTRY_CODE}{digits}"
