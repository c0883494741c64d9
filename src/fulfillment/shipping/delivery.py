"""Carrier naming and delivery-date estimates for shipped orders."""

from datetime import date, datetime, timedelta

DEFAULT_TRANSIT_DAYS = 5

# Calendar days in transit, keyed by carrier service code
TRANSIT_DAYS = {
    "usps_priority_mail": 3,
    "usps_priority_mail_express": 2,
    "usps_first_class_mail": 5,
    "usps_parcel_select": 7,
    "ups_ground": 5,
    "ups_3_day_select": 3,
    "ups_2nd_day_air": 2,
    "ups_next_day_air": 1,
    "ups_next_day_air_saver": 1,
    "fedex_ground": 5,
    "fedex_express_saver": 3,
    "fedex_2day": 2,
    "fedex_standard_overnight": 1,
    "fedex_priority_overnight": 1,
}

CARRIER_NAMES = {
    "fedex": "FedEx",
    "ups": "UPS",
    "usps": "USPS",
    "stamps_com": "USPS",
    "dhl_express": "DHL Express",
    "ups_walleted": "UPS",
}

_SATURDAY = 5
_SUNDAY = 6


def carrier_display_name(carrier_code: str | None) -> str:
    if not carrier_code:
        return ""
    return CARRIER_NAMES.get(carrier_code.lower(), carrier_code)


def transit_days(service_code: str | None) -> int:
    return TRANSIT_DAYS.get((service_code or "").lower(), DEFAULT_TRANSIT_DAYS)


def estimate_delivery(service_code: str | None, ship_date: date | datetime) -> date:
    """Estimate the delivery date for a shipment.

    Transit days are counted as calendar days from the ship date. For
    services of three days or more, an estimate landing on a weekend is
    moved to the following Monday.
    """
    if isinstance(ship_date, datetime):
        ship_date = ship_date.date()

    days = transit_days(service_code)
    estimated = ship_date + timedelta(days=days)

    if days >= 3:
        if estimated.weekday() == _SATURDAY:
            estimated += timedelta(days=2)
        elif estimated.weekday() == _SUNDAY:
            estimated += timedelta(days=1)

    return estimated
