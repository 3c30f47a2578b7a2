"""Resolve short room codes found in timetable exports to street addresses.

Resolution order:

1. empty code -> fallback campus marker
2. exact, case-sensitive table lookup
3. building prefix followed by a room number (``f12``, ``oe3``, ``flu7``, ``poly2``)
4. ``TH`` followed by letters (``THa``, ``thB``) -> the TH building
5. bare room number (``204``) -> the main building

Anything else is left unresolved.
"""

import logging
import re
from types import MappingProxyType
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

FALLBACK_LOCATION_CODE = ""
TH_LOCATION_CODE = "TH"
NUMERIC_LOCATION_CODE = "NMR"

LOCATION_ADDRESSES: Mapping[str, str] = MappingProxyType(
    {
        "NMR": "Minervastrasse 14, 8090 Zürich",
        "fNMR": "Freiestrasse 56, 8032 Zürich",
        "TH": "Minervastrasse 14, 8090 Zürich",
        "Aussen": "Minervastrasse 14, 8090 Zürich",
        "OeNMR": "Therese-Giehse-Strasse 6, 8050 Zürich",
        "FluNMR": "Zürichbergstrasse 196, 8044 Zürich",
        "PolyNMR": "Leonhardstrasse 34, 8092 Zürich",
        FALLBACK_LOCATION_CODE: "BZZ",
    }
)

# Building prefix (lower-cased) -> canonical table key
PREFIX_LOCATION_CODES: Mapping[str, str] = MappingProxyType(
    {
        "f": "fNMR",
        "oe": "OeNMR",
        "flu": "FluNMR",
        "poly": "PolyNMR",
    }
)

PREFIX_PATTERN = re.compile(r"^(f|oe|flu|poly)\d+$", re.IGNORECASE)
TH_PATTERN = re.compile(r"^th[a-z]+$", re.IGNORECASE)
DIGITS_PATTERN = re.compile(r"^\d+$")


def resolve_location(code: str) -> Optional[str]:
    """Map a room/location code to a street address.

    Args:
        code: Location code as found in the LOCATION line

    Returns:
        Street address, or None when the code matches no rule
    """
    trimmed = code.strip()

    if not trimmed:
        return LOCATION_ADDRESSES[FALLBACK_LOCATION_CODE]

    if trimmed in LOCATION_ADDRESSES:
        return LOCATION_ADDRESSES[trimmed]

    prefix_match = PREFIX_PATTERN.match(trimmed)
    if prefix_match:
        key = PREFIX_LOCATION_CODES.get(prefix_match.group(1).lower())
        return LOCATION_ADDRESSES.get(key) if key is not None else None

    if TH_PATTERN.match(trimmed):
        return LOCATION_ADDRESSES[TH_LOCATION_CODE]

    if DIGITS_PATTERN.match(trimmed):
        return LOCATION_ADDRESSES[NUMERIC_LOCATION_CODE]

    logger.debug("Location code %r did not match any rule", trimmed)
    return None
