"""ShipStation adapter over its REST API.

Authenticates with HTTP basic auth (API key and secret). ShipStation answers
429 when the account is rate limited; that and every other non-2xx reply is
surfaced as ``CarrierError`` so callers can fall back or let the webhook be
redelivered. Paid orders are pushed with ``/orders/createorder``, which upserts
on ``orderNumber``; that number is our order id, which is how shipment
notifications find their way back.
"""

from urllib.parse import urlsplit

import httpx
import structlog

from fulfillment.carrier.port import CarrierError, CarrierPort
from fulfillment.settings import DEFAULT_CARRIER_BASE_URL

logger = structlog.get_logger(__name__)


class ShipStationCarrier(CarrierPort):
    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str = DEFAULT_CARRIER_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=(api_key, api_secret),
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, url: str, **kwargs) -> object:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("ShipStation request failed", method=method, url=url, error=str(exc))
            raise CarrierError(f"ShipStation request failed: {exc}") from exc

        if response.status_code == 429:
            retry_after = response.headers.get("X-Rate-Limit-Reset")
            logger.warning("ShipStation rate limited", url=url, retry_after=retry_after)
            raise CarrierError(f"Rate limited. Retry after: {retry_after}", status_code=429)

        if response.is_error:
            logger.error(
                "ShipStation API error",
                url=url,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise CarrierError(
                f"ShipStation API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise CarrierError("ShipStation returned a non-JSON body") from exc

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
        payload = {
            "carrierCode": None,
            "fromPostalCode": from_postal_code,
            "toState": to_state,
            "toCountry": to_country,
            "toPostalCode": to_postal_code,
            "toCity": to_city or "",
            "weight": {"value": weight_lbs, "units": "pounds"},
            "residential": residential,
        }
        if dimensions:
            payload["dimensions"] = dimensions

        data = self._request("POST", "/shipments/getrates", json=payload)
        if isinstance(data, dict):
            data = data.get("rates") or []
        return list(data or [])

    def fetch_shipments(self, resource_url: str) -> list[dict]:
        # Credentials are only ever sent to the configured ShipStation host
        if urlsplit(resource_url).netloc != urlsplit(self.base_url).netloc:
            raise CarrierError(f"Refusing to fetch resource outside {self.base_url}: {resource_url}")

        data = self._request("GET", resource_url)
        if isinstance(data, dict) and "shipments" in data:
            return list(data["shipments"] or [])
        if isinstance(data, list):
            return data
        return [data] if data else []

    def create_order(self, order: dict) -> dict:
        data = self._request("POST", "/orders/createorder", json=order)
        logger.info("Order synced to ShipStation", order_number=order.get("orderNumber"))
        return data or {}

    def list_webhooks(self) -> list[dict]:
        data = self._request("GET", "/webhooks")
        if isinstance(data, dict):
            data = data.get("webhooks") or []
        return list(data or [])

    def register_webhook(self, target_url: str, event: str, friendly_name: str | None = None) -> dict:
        payload = {"target_url": target_url, "event": event, "store_id": None, "friendly_name": friendly_name}
        return self._request("POST", "/webhooks/subscribe", json=payload) or {}

    def delete_webhook(self, webhook_id: str) -> None:
        self._request("DELETE", f"/webhooks/{webhook_id}")
