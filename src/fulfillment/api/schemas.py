"""Pydantic API schemas for the fulfillment service.

These are the external API contracts, separate from domain commands. JSON
is camelCase on the wire; snake_case names are accepted on input too.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusResponse(CamelModel):
    status: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemRequest(CamelModel):
    item_kind: Literal["game", "merch"]
    product_id: str
    merch_size: str | None = None
    quantity: int = Field(ge=1)
    unit_price_cents: int = Field(ge=0)


class PlaceOrderRequest(CamelModel):
    order_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    shipping_address: str
    billing_address: str | None = None
    items: list[OrderItemRequest]
    shipping_cents: int = 0
    tax_cents: int = 0


class OrderIdResponse(CamelModel):
    order_id: str


class CancelOrderRequest(CamelModel):
    reason: str | None = None


class OrderItemResponse(CamelModel):
    id: str
    item_kind: str
    product_id: str
    merch_size: str | None = None
    quantity: int
    unit_price_cents: int


class StatusHistoryEntry(CamelModel):
    status: str
    notes: str | None = None
    created_at: datetime


class OrderResponse(CamelModel):
    id: str
    status: str
    customer_name: str
    customer_email: str
    shipping_address: str
    total_cents: int
    shipping_carrier: str | None = None
    shipping_method: str | None = None
    tracking_number: str | None = None
    shipped_at: datetime | None = None
    estimated_delivery_date: date | None = None
    packaging_type_id: str | None = None
    items: list[OrderItemResponse]
    status_history: list[StatusHistoryEntry]


class ShippingLabelResponse(CamelModel):
    id: str
    order_id: str
    carrier: str
    service_code: str | None = None
    tracking_number: str
    label_url: str | None = None
    cost_cents: int | None = None
    is_void: bool
    voided_at: datetime | None = None
    created_at: datetime | None = None


class VoidLabelResponse(CamelModel):
    label_id: str
    order_reverted: bool


# ---------------------------------------------------------------------------
# Fulfillment
# ---------------------------------------------------------------------------
class StartFulfillmentRequest(CamelModel):
    order_id: str
    user_id: str | None = None
    user_name: str | None = None


class FulfillmentIdResponse(CamelModel):
    fulfillment_id: str


class UpdateFulfillmentRequest(CamelModel):
    packaging_type_id: str | None = None
    status: Literal["in_progress", "completed"] | None = None
    notes: str | None = None
    user_name: str | None = None


class ScanRequest(CamelModel):
    code: str
    quantity: int = Field(default=1, ge=1)
    user_id: str | None = None
    user_name: str | None = None


class BoxedItem(CamelModel):
    scan_id: str
    name: str
    quantity: int


class ScanResponse(CamelModel):
    outcome: str
    matched: bool
    message: str
    scan_id: str | None = None
    order_item_id: str | None = None
    item_name: str | None = None
    scanned_quantity: int = 0
    ordered_quantity: int = 0
    is_complete: bool = False
    order_complete: bool = False
    package_id: str | None = None
    box_number: int | None = None
    packaging_sku: str | None = None
    items_boxed: list[BoxedItem] = []


class OpenPackageRequest(CamelModel):
    packaging_type_id: str | None = None
    scan_ids: list[str] = []


class PackageIdResponse(CamelModel):
    package_id: str


class AssignScansRequest(CamelModel):
    scan_ids: list[str] = Field(min_length=1)


class PackagingSummary(CamelModel):
    id: str
    sku: str
    name: str
    upc: str


class ChecklistRow(CamelModel):
    id: str
    item_kind: str
    name: str
    sku: str | None = None
    barcode: str | None = None
    image_url: str | None = None
    size: str | None = None
    ordered_quantity: int
    scanned_quantity: int
    is_complete: bool


class ScanRow(CamelModel):
    scan_id: str
    name: str
    quantity: int


class PackageView(CamelModel):
    id: str
    box_number: int
    packaging_type: PackagingSummary | None = None
    items: list[ScanRow]


class ScanRecord(CamelModel):
    scan_id: str
    code: str
    matched: bool
    quantity: int
    order_item_id: str | None = None
    package_id: str | None = None
    error_message: str | None = None
    scanned_at: datetime


class FulfillmentSummary(CamelModel):
    id: str
    status: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    fulfilled_by_name: str | None = None
    notes: str | None = None
    scans: list[ScanRecord]


class OrderSummary(CamelModel):
    id: str
    customer_name: str
    customer_email: str
    status: str
    shipping_address: str
    created_at: datetime | None = None


class Progress(CamelModel):
    total: int
    scanned: int
    percentage: int
    is_complete: bool


class FulfillmentViewResponse(CamelModel):
    order: OrderSummary
    fulfillment: FulfillmentSummary | None = None
    packaging_type: PackagingSummary | None = None
    checklist: list[ChecklistRow]
    packages: list[PackageView]
    unassigned_scans: list[ScanRow]
    progress: Progress


class UnassignedScansResponse(CamelModel):
    scans: list[ScanRow]


# ---------------------------------------------------------------------------
# Packaging types
# ---------------------------------------------------------------------------
class RegisterPackagingTypeRequest(CamelModel):
    sku: str = Field(min_length=1)
    name: str = Field(min_length=1)
    length: float | None = None
    width: float | None = None
    height: float | None = None
    weight_oz: float | None = None
    cost_cents: int = 0


class PackagingTypeResponse(CamelModel):
    id: str
    sku: str
    name: str
    upc: str
    length: float | None = None
    width: float | None = None
    height: float | None = None
    weight_oz: float | None = None
    cost_cents: int | None = None
    is_active: bool


# ---------------------------------------------------------------------------
# Shipping rates
# ---------------------------------------------------------------------------
class RateAddress(CamelModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str = "US"


class CartItem(CamelModel):
    item_kind: Literal["game", "merch"]
    product_id: str
    size: str | None = None
    quantity: int = Field(default=1, ge=1)


class RateRequest(CamelModel):
    to_address: RateAddress
    cart_items: list[CartItem] | None = None
    weight: float | None = None  # pounds


class RateQuoteResponse(CamelModel):
    carrier: str
    carrier_code: str
    service: str
    service_code: str
    price_cents: int
    estimated_days: int | None = None
    package_type: str


class RatesResponse(CamelModel):
    rates: list[RateQuoteResponse]
    source: str
    weight_lbs: float


# ---------------------------------------------------------------------------
# Carrier webhooks
# ---------------------------------------------------------------------------
class WebhookResponse(CamelModel):
    received: bool
    processed: bool


class CarrierWebhookStatusResponse(CamelModel):
    configured: bool
    webhook_url: str
    webhook_registered: bool = False
    webhooks: list[dict] = []


class CarrierWebhookRegistrationResponse(CamelModel):
    registered: bool
    already_registered: bool
    webhook_url: str


class CarrierWebhookDeletionResponse(CamelModel):
    deleted: int
