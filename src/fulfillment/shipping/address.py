"""Best-effort parsing of free-text order addresses.

Orders store shipping and billing addresses as a single comma (or newline)
delimited string. Carrier payloads need structured fields, so this module is
the only place that knows the string layouts we accept::

    street1, street2, city, ST ZIP, country
    street1, city, ST ZIP, country
    street1, city, ST ZIP

Anything else degrades to the whole string in ``street1`` instead of raising.
"""

import re
from dataclasses import dataclass

DEFAULT_COUNTRY = "US"

_SEPARATORS = re.compile(r"[,\n]")


@dataclass(frozen=True)
class Address:
    street1: str = ""
    street2: str | None = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = DEFAULT_COUNTRY

    def to_dict(self) -> dict:
        return {
            "street1": self.street1,
            "street2": self.street2,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }


def _split_state_zip(value: str) -> tuple[str, str]:
    tokens = value.split()
    if not tokens:
        return "", ""
    return tokens[0], " ".join(tokens[1:])


def parse_address(raw: str | None) -> Address:
    parts = [part.strip() for part in _SEPARATORS.split(raw or "")]
    parts = [part for part in parts if part]

    if len(parts) >= 5:
        state, postal_code = _split_state_zip(parts[3])
        return Address(
            street1=parts[0],
            street2=parts[1],
            city=parts[2],
            state=state,
            postal_code=postal_code,
            country=parts[4] or DEFAULT_COUNTRY,
        )
    if len(parts) == 4:
        state, postal_code = _split_state_zip(parts[2])
        return Address(
            street1=parts[0],
            city=parts[1],
            state=state,
            postal_code=postal_code,
            country=parts[3] or DEFAULT_COUNTRY,
        )
    if len(parts) == 3:
        state, postal_code = _split_state_zip(parts[2])
        return Address(street1=parts[0], city=parts[1], state=state, postal_code=postal_code)

    return Address(street1=(raw or "").strip())
