"""Carrier port — abstract interface for the shipping platform.

The carrier platform gives us live rate quotes at checkout and the shipment
records a webhook points at. In return it receives paid orders to label, and
it keeps the webhook subscription that notifies us when they ship. Domain code programs against
this port; the adapter is chosen by ``fulfillment.carrier.get_carrier``.
"""

from abc import ABC, abstractmethod


class CarrierError(Exception):
    """Raised when the carrier platform cannot be reached or rejects a call."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CarrierPort(ABC):
    """Abstract interface for carrier adapters."""

    @abstractmethod
    def get_rates(
        self,
        from_postal_code: str,
        to_postal_code: str,
        to_state: str,
        to_country: str = "US",
        to_city: str | None = None,
        weight_lbs: float = 1.0,
        dimensions: dict | None = None,
        residential: bool = True,
    ) -> list[dict]:
        """Ask the carrier platform for quotes on a single parcel.

        Returns:
            list of raw quotes, each with carrierCode, serviceName,
            serviceCode, shipmentCost (dollars), and optionally
            deliveryDays and packageCode

        Raises:
            CarrierError: on transport failure, rate limiting or a non-2xx reply
        """
        ...

    @abstractmethod
    def fetch_shipments(self, resource_url: str) -> list[dict]:
        """Fetch the shipments a webhook notification refers to.

        Returns:
            list of shipment dicts (orderNumber, trackingNumber, carrierCode,
            serviceCode, shipDate, shipmentCost, weight, dimensions, labelData)

        Raises:
            CarrierError: on transport failure, rate limiting or a non-2xx reply
        """
        ...

    @abstractmethod
    def create_order(self, order: dict) -> dict:
        """Create (or update, keyed by ``orderNumber``) an order awaiting shipment.

        Raises:
            CarrierError: on transport failure, rate limiting or a non-2xx reply
        """
        ...

    @abstractmethod
    def list_webhooks(self) -> list[dict]:
        """Return the webhook subscriptions registered on the account."""
        ...

    @abstractmethod
    def register_webhook(self, target_url: str, event: str, friendly_name: str | None = None) -> dict:
        """Subscribe ``target_url`` to a carrier event such as ``SHIP_NOTIFY``."""
        ...

    @abstractmethod
    def delete_webhook(self, webhook_id: str) -> None:
        ...
