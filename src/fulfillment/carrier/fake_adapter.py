"""Fake carrier adapter — deterministic carrier for testing and development.

Returns canned rate quotes, serves shipments registered per resource URL and
keeps pushed orders and webhook subscriptions in memory.
Configurable failure behavior lets tests exercise the fallback paths.
"""

from fulfillment.carrier.port import CarrierError, CarrierPort

DEFAULT_QUOTES = [
    {
        "carrierCode": "stamps_com",
        "serviceName": "USPS Ground Advantage",
        "serviceCode": "usps_ground_advantage",
        "shipmentCost": 6.45,
        "otherCost": 0.0,
        "deliveryDays": 5,
        "packageCode": "package",
    },
    {
        "carrierCode": "stamps_com",
        "serviceName": "USPS Priority Mail",
        "serviceCode": "usps_priority_mail",
        "shipmentCost": 9.85,
        "otherCost": 0.0,
        "deliveryDays": 3,
        "packageCode": "package",
    },
    {
        "carrierCode": "fedex",
        "serviceName": "FedEx Ground",
        "serviceCode": "fedex_ground",
        "shipmentCost": 11.2,
        "otherCost": 0.0,
        "deliveryDays": 5,
        "packageCode": "package",
    },
    {
        "carrierCode": "ups",
        "serviceName": "UPS Ground",
        "serviceCode": "ups_ground",
        "shipmentCost": 10.5,
        "otherCost": 0.0,
        "deliveryDays": 5,
        "packageCode": "package",
    },
]


class FakeCarrier(CarrierPort):
    """Fake carrier that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.quotes: list[dict] = [dict(quote) for quote in DEFAULT_QUOTES]
        self.shipments: dict[str, list[dict]] = {}
        self.rate_requests: list[dict] = []
        self.fetched_urls: list[str] = []
        self.created_orders: list[dict] = []
        self.webhooks: list[dict] = []
        self._next_webhook_id = 0

    def configure(self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"):
        """Configure the fake carrier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def set_quotes(self, quotes: list[dict]) -> None:
        self.quotes = list(quotes)

    def register_shipments(self, resource_url: str, shipments: list[dict]) -> None:
        self.shipments[resource_url] = list(shipments)

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
        self.rate_requests.append(
            {
                "from_postal_code": from_postal_code,
                "to_postal_code": to_postal_code,
                "to_state": to_state,
                "to_country": to_country,
                "weight_lbs": weight_lbs,
                "residential": residential,
            }
        )
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)
        return [dict(quote) for quote in self.quotes]

    def fetch_shipments(self, resource_url: str) -> list[dict]:
        self.fetched_urls.append(resource_url)
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)
        return [dict(shipment) for shipment in self.shipments.get(resource_url, [])]

    def create_order(self, order: dict) -> dict:
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)
        self.created_orders.append(dict(order))
        return {"orderId": len(self.created_orders), "orderNumber": order.get("orderNumber")}

    def list_webhooks(self) -> list[dict]:
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)
        return [dict(webhook) for webhook in self.webhooks]

    def register_webhook(self, target_url: str, event: str, friendly_name: str | None = None) -> dict:
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)
        self._next_webhook_id += 1
        self.webhooks.append(
            {"WebHookID": self._next_webhook_id, "Url": target_url, "HookType": event, "Name": friendly_name}
        )
        return {"id": self._next_webhook_id}

    def delete_webhook(self, webhook_id: str) -> None:
        if not self.should_succeed:
            raise CarrierError(self.failure_reason)
        self.webhooks = [w for w in self.webhooks if str(w["WebHookID"]) != str(webhook_id)]
