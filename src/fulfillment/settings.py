"""Runtime settings that gate fulfillment and shipping behavior.

Settings are read from the environment once per request (see
``fulfillment.api.dependencies.get_settings``) and passed down explicitly,
so domain code never reaches for global configuration on its own.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

DEFAULT_CARRIER_BASE_URL = "https://ssapi.shipstation.com"

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class ShippingSettings:
    webhook_secret: str | None = None
    carrier_api_key: str | None = None
    carrier_api_secret: str | None = None
    carrier_base_url: str = DEFAULT_CARRIER_BASE_URL
    warehouse_postal_code: str = "10001"
    rate_timeout_seconds: float = 10.0
    auto_start_fulfillment: bool = False
    team_chat_channel: str = "#shipping"
    public_base_url: str = "http://localhost:8000"
    admin_user_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def webhook_url(self) -> str:
        """Where the carrier should deliver shipment notifications."""
        return f"{self.public_base_url}/webhooks/shipstation"

    @property
    def carrier_configured(self) -> bool:
        """True when the live carrier API can be called."""
        return bool(self.carrier_api_key and self.carrier_api_secret)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ShippingSettings":
        env = os.environ if environ is None else environ
        admin_ids = frozenset(
            part.strip() for part in env.get("ADMIN_USER_IDS", "").split(",") if part.strip()
        )
        return cls(
            webhook_secret=env.get("SHIPSTATION_WEBHOOK_SECRET") or None,
            carrier_api_key=env.get("SHIPSTATION_API_KEY") or None,
            carrier_api_secret=env.get("SHIPSTATION_API_SECRET") or None,
            carrier_base_url=env.get("SHIPSTATION_BASE_URL", DEFAULT_CARRIER_BASE_URL),
            warehouse_postal_code=env.get("WAREHOUSE_ZIP", "10001"),
            rate_timeout_seconds=float(env.get("SHIPPING_RATE_TIMEOUT", "10")),
            auto_start_fulfillment=_flag(env.get("AUTO_START_FULFILLMENT")),
            team_chat_channel=env.get("TEAM_CHAT_CHANNEL", "#shipping"),
            public_base_url=env.get("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
            admin_user_ids=admin_ids,
        )
