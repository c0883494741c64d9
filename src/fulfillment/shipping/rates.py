"""Checkout shipping quotes.

Live quotes come from the carrier platform when it is configured. Any
failure there (transport error, timeout, rate limiting, or simply no usable
USPS/FedEx quote) falls back to a fixed table of calculated rates so that
checkout never blocks on the carrier.
"""

import math
from dataclasses import asdict, dataclass

import structlog
from protean.exceptions import ValidationError

from fulfillment.carrier.port import CarrierPort
from fulfillment.shipping.address import Address
from fulfillment.shipping.weights import DEFAULT_PACKAGE_DIMENSIONS, MINIMUM_WEIGHT_LBS

logger = structlog.get_logger(__name__)

SOURCE_PROVIDER = "provider"
SOURCE_CALCULATED = "calculated"

DEFAULT_PARCEL_WEIGHT_LBS = 2.0

_ACCEPTED_CARRIERS = ("usps", "fedex", "stamps")


@dataclass(frozen=True)
class RateQuote:
    carrier: str
    carrier_code: str
    service: str
    service_code: str
    price_cents: int
    estimated_days: int | None
    package_type: str = "package"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class RateQuoteResult:
    rates: list[RateQuote]
    source: str
    weight_lbs: float


@dataclass(frozen=True)
class FallbackTier:
    carrier: str
    carrier_code: str
    service: str
    service_code: str
    base_cents: int
    per_additional_lb_cents: int
    estimated_days: int

    def quote(self, weight_lbs: float) -> RateQuote:
        extra_pounds = max(math.ceil(weight_lbs - 1), 0)
        return RateQuote(
            carrier=self.carrier,
            carrier_code=self.carrier_code,
            service=self.service,
            service_code=self.service_code,
            price_cents=self.base_cents + extra_pounds * self.per_additional_lb_cents,
            estimated_days=self.estimated_days,
        )


FALLBACK_TIERS = (
    FallbackTier("USPS", "usps", "Ground Advantage", "usps_ground_advantage", 599, 75, 5),
    FallbackTier("USPS", "usps", "Priority Mail", "usps_priority_mail", 899, 125, 3),
    FallbackTier("FedEx", "fedex", "Ground", "fedex_ground", 999, 100, 5),
    FallbackTier("FedEx", "fedex", "Express Saver", "fedex_express_saver", 1599, 200, 3),
)


def _carrier_label(carrier_code: str) -> str:
    code = carrier_code.lower()
    if "usps" in code or "stamps" in code:
        return "USPS"
    if "fedex" in code:
        return "FedEx"
    if "ups" in code:
        return "UPS"
    return carrier_code


def _is_accepted(carrier_code: str | None) -> bool:
    code = (carrier_code or "").lower()
    return any(accepted in code for accepted in _ACCEPTED_CARRIERS)


def _to_quote(raw: dict) -> RateQuote:
    carrier_code = raw.get("carrierCode") or ""
    cost = float(raw.get("shipmentCost") or 0) + float(raw.get("otherCost") or 0)
    return RateQuote(
        carrier=_carrier_label(carrier_code),
        carrier_code=carrier_code,
        service=raw.get("serviceName") or raw.get("serviceCode") or "",
        service_code=raw.get("serviceCode") or "",
        price_cents=round(cost * 100),
        estimated_days=raw.get("deliveryDays") or None,
        package_type=raw.get("packageCode") or "package",
    )


def calculated_rates(weight_lbs: float) -> list[RateQuote]:
    return sorted((tier.quote(weight_lbs) for tier in FALLBACK_TIERS), key=lambda q: q.price_cents)


def billable_weight(weight_lbs: float | None) -> float:
    """Explicit parcel weight, clamped to the minimum, or the default parcel."""
    if weight_lbs is None or weight_lbs <= 0:
        return DEFAULT_PARCEL_WEIGHT_LBS
    return max(float(weight_lbs), MINIMUM_WEIGHT_LBS)


class RateEngine:
    def __init__(self, provider: CarrierPort | None, warehouse_postal_code: str) -> None:
        self.provider = provider
        self.warehouse_postal_code = warehouse_postal_code

    def get_rates(self, address: Address, weight_lbs: float) -> RateQuoteResult:
        errors = {}
        if not address.postal_code:
            errors["postal_code"] = ["Postal code is required"]
        if not address.state:
            errors["state"] = ["State is required"]
        if errors:
            raise ValidationError(errors)

        if self.provider is not None:
            quotes = self._provider_quotes(address, weight_lbs)
            if quotes:
                return RateQuoteResult(rates=quotes, source=SOURCE_PROVIDER, weight_lbs=weight_lbs)

        return RateQuoteResult(
            rates=calculated_rates(weight_lbs),
            source=SOURCE_CALCULATED,
            weight_lbs=weight_lbs,
        )

    def _provider_quotes(self, address: Address, weight_lbs: float) -> list[RateQuote]:
        dimensions = DEFAULT_PACKAGE_DIMENSIONS
        try:
            raw_quotes = self.provider.get_rates(
                from_postal_code=self.warehouse_postal_code,
                to_postal_code=address.postal_code,
                to_state=address.state,
                to_country=address.country or "US",
                to_city=address.city,
                weight_lbs=weight_lbs,
                dimensions={
                    "length": dimensions.length,
                    "width": dimensions.width,
                    "height": dimensions.height,
                    "units": dimensions.units,
                },
                residential=True,
            )
        except Exception as exc:
            logger.warning(
                "Carrier rate lookup failed, using calculated rates",
                postal_code=address.postal_code,
                error=str(exc),
            )
            return []

        quotes = [_to_quote(raw) for raw in raw_quotes if _is_accepted(raw.get("carrierCode"))]
        if not quotes:
            logger.info("Carrier returned no usable quotes", postal_code=address.postal_code)
        return sorted(quotes, key=lambda q: q.price_cents)
