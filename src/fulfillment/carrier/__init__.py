"""Carrier adapter registry.

``CARRIER_ADAPTER`` picks the implementation: ``fake`` or ``shipstation``,
which reads its credentials from ``ShippingSettings``. When it is unset the
ShipStation adapter is used whenever API credentials are present.
"""

import os

from fulfillment.settings import ShippingSettings

_carrier_instance = None


def get_carrier():
    """Return the configured carrier adapter (singleton)."""
    global _carrier_instance
    if _carrier_instance is None:
        settings = ShippingSettings.from_env()
        adapter = os.environ.get("CARRIER_ADAPTER") or ("shipstation" if settings.carrier_configured else "fake")
        if adapter == "fake":
            from fulfillment.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier()
        elif adapter == "shipstation":
            from fulfillment.carrier.shipstation import ShipStationCarrier

            if not settings.carrier_configured:
                raise ValueError("ShipStation adapter selected but SHIPSTATION_API_KEY/SECRET are not set")
            _carrier_instance = ShipStationCarrier(
                api_key=settings.carrier_api_key,
                api_secret=settings.carrier_api_secret,
                base_url=settings.carrier_base_url,
                timeout=settings.rate_timeout_seconds,
            )
        else:
            raise ValueError(f"Unknown carrier adapter: {adapter}")
    return _carrier_instance


def set_carrier(carrier) -> None:
    global _carrier_instance
    _carrier_instance = carrier


def reset_carrier():
    """Reset the carrier singleton (useful for testing)."""
    global _carrier_instance
    _carrier_instance = None
