"""FastAPI dependencies shared by the fulfillment routers."""

from fastapi import Depends, Header, HTTPException

from fulfillment.carrier import get_carrier
from fulfillment.carrier.webhook import CarrierWebhookSynchronizer
from fulfillment.settings import ShippingSettings
from fulfillment.shipping.rates import RateEngine


def get_settings() -> ShippingSettings:
    return ShippingSettings.from_env()


def require_admin(
    x_user_id: str | None = Header(default=None),
    settings: ShippingSettings = Depends(get_settings),
) -> str | None:
    """Back-office guard. An empty admin list leaves the API open (development)."""
    if not settings.admin_user_ids:
        return x_user_id
    if not x_user_id or x_user_id not in settings.admin_user_ids:
        raise HTTPException(status_code=403, detail="Admin access required")
    return x_user_id


def get_rate_engine(settings: ShippingSettings = Depends(get_settings)) -> RateEngine:
    provider = get_carrier() if settings.carrier_configured else None
    return RateEngine(provider, settings.warehouse_postal_code)


def get_webhook_synchronizer(settings: ShippingSettings = Depends(get_settings)) -> CarrierWebhookSynchronizer:
    carrier = get_carrier() if settings.carrier_configured else None
    return CarrierWebhookSynchronizer(carrier, settings.webhook_secret)
