"""FastAPI routes for the fulfillment service."""

import json

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from protean.utils.globals import current_domain

from fulfillment.api.dependencies import get_rate_engine, get_settings, get_webhook_synchronizer, require_admin
from fulfillment.api.schemas import (
    AssignScansRequest,
    CancelOrderRequest,
    CarrierWebhookDeletionResponse,
    CarrierWebhookRegistrationResponse,
    CarrierWebhookStatusResponse,
    FulfillmentIdResponse,
    FulfillmentViewResponse,
    OpenPackageRequest,
    OrderIdResponse,
    OrderResponse,
    PackageIdResponse,
    PackagingTypeResponse,
    PlaceOrderRequest,
    RateQuoteResponse,
    RateRequest,
    RatesResponse,
    RegisterPackagingTypeRequest,
    ScanRequest,
    ScanResponse,
    ShippingLabelResponse,
    StartFulfillmentRequest,
    StatusResponse,
    UnassignedScansResponse,
    UpdateFulfillmentRequest,
    VoidLabelResponse,
    WebhookResponse,
)
from fulfillment.carrier import get_carrier
from fulfillment.carrier.port import CarrierError
from fulfillment.carrier.webhook import (
    SHIP_NOTIFY,
    CarrierWebhookSynchronizer,
    ShipmentSyncError,
    WebhookSignatureError,
)
from fulfillment.catalog import get_catalog
from fulfillment.fulfillment.checklist import build_fulfillment_view
from fulfillment.fulfillment.completion import UpdateFulfillment
from fulfillment.fulfillment.packing import AssignScansToPackage, DetachScan, OpenPackage
from fulfillment.fulfillment.scanning import RecordScan
from fulfillment.fulfillment.starting import StartFulfillment, find_fulfillment, get_fulfillment
from fulfillment.order.label import ShippingLabel
from fulfillment.order.lifecycle import CancelOrder, RecordOrderDelivery, RecordOrderPayment
from fulfillment.order.notifications import dispatch_all
from fulfillment.order.order import Order
from fulfillment.order.placement import PlaceOrder
from fulfillment.order.voiding import VoidShippingLabel
from fulfillment.packaging.packaging_type import PackagingType
from fulfillment.packaging.registration import DeactivatePackagingType, RegisterPackagingType
from fulfillment.settings import ShippingSettings
from fulfillment.shipping.address import Address, parse_address
from fulfillment.shipping.rates import RateEngine, RateQuoteResult, billable_weight
from fulfillment.shipping.weights import WeighableItem, resolve_shipment_weight
from fulfillment.utils.logging import bind_order_context

logger = structlog.get_logger(__name__)


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        status=order.status,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        shipping_address=order.shipping_address,
        total_cents=order.total_cents,
        shipping_carrier=order.shipping_carrier,
        shipping_method=order.shipping_method,
        tracking_number=order.tracking_number,
        shipped_at=order.shipped_at,
        estimated_delivery_date=order.estimated_delivery_date,
        packaging_type_id=str(order.packaging_type_id) if order.packaging_type_id else None,
        items=[
            {
                "id": str(item.id),
                "item_kind": item.item_kind,
                "product_id": str(item.product_id),
                "merch_size": item.merch_size,
                "quantity": item.quantity,
                "unit_price_cents": item.unit_price_cents,
            }
            for item in order.items or []
        ],
        status_history=[
            {"status": entry.status, "notes": entry.notes, "created_at": entry.created_at}
            for entry in sorted(order.status_history or [], key=lambda e: e.created_at)
        ],
    )


def _label_response(label: ShippingLabel) -> ShippingLabelResponse:
    return ShippingLabelResponse(
        id=str(label.id),
        order_id=str(label.order_id),
        carrier=label.carrier,
        service_code=label.service_code,
        tracking_number=label.tracking_number,
        label_url=label.label_url or None,
        cost_cents=label.cost_cents,
        is_void=bool(label.is_void),
        voided_at=label.voided_at,
        created_at=label.created_at,
    )


def _packaging_response(packaging: PackagingType) -> PackagingTypeResponse:
    return PackagingTypeResponse(
        id=str(packaging.id),
        sku=packaging.sku,
        name=packaging.name,
        upc=packaging.upc,
        length=packaging.length,
        width=packaging.width,
        height=packaging.height,
        weight_oz=packaging.weight_oz,
        cost_cents=packaging.cost_cents,
        is_active=bool(packaging.is_active),
    )


def _rates_response(result: RateQuoteResult) -> RatesResponse:
    return RatesResponse(
        rates=[RateQuoteResponse(**quote.to_dict()) for quote in result.rates],
        source=result.source,
        weight_lbs=result.weight_lbs,
    )


# ---------------------------------------------------------------------------
# Orders Router
# ---------------------------------------------------------------------------
orders_router = APIRouter(prefix="/orders", tags=["orders"], dependencies=[Depends(require_admin)])


@orders_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    """Hand a checked-out order over to the warehouse."""
    command = PlaceOrder(
        order_id=body.order_id,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        customer_phone=body.customer_phone,
        shipping_address=body.shipping_address,
        billing_address=body.billing_address,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_cents=body.shipping_cents,
        tax_cents=body.tax_cents,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@orders_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return _order_response(order)


@orders_router.post("/{order_id}/payment", response_model=StatusResponse)
def record_payment(order_id: str) -> StatusResponse:
    """Record the payment engine's "paid" signal."""
    current_domain.process(RecordOrderPayment(order_id=order_id), asynchronous=False)
    return StatusResponse(status="paid")


@orders_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    current_domain.process(CancelOrder(order_id=order_id, reason=body.reason), asynchronous=False)
    return StatusResponse(status="cancelled")


@orders_router.post("/{order_id}/deliver", response_model=StatusResponse)
async def record_delivery(order_id: str) -> StatusResponse:
    current_domain.process(RecordOrderDelivery(order_id=order_id), asynchronous=False)
    return StatusResponse(status="delivered")


@orders_router.get("/{order_id}/labels", response_model=list[ShippingLabelResponse])
async def list_labels(order_id: str) -> list[ShippingLabelResponse]:
    current_domain.repository_for(Order).get(order_id)
    labels = current_domain.repository_for(ShippingLabel)._dao.query.filter(order_id=order_id).all().items
    return [_label_response(label) for label in sorted(labels, key=lambda lb: lb.created_at)]


@orders_router.get("/{order_id}/shipping-rates", response_model=RatesResponse)
def quote_order_shipping(order_id: str, engine: RateEngine = Depends(get_rate_engine)) -> RatesResponse:
    """Quote shipping for a placed order from its stored address and items."""
    order = current_domain.repository_for(Order).get(order_id)
    items = [
        WeighableItem(
            kind=item.item_kind,
            product_id=str(item.product_id),
            quantity=item.quantity,
            size=item.merch_size,
        )
        for item in order.items or []
    ]
    weight = resolve_shipment_weight(items, get_catalog())
    return _rates_response(engine.get_rates(parse_address(order.shipping_address), weight.weight_lbs))


# ---------------------------------------------------------------------------
# Labels Router
# ---------------------------------------------------------------------------
labels_router = APIRouter(prefix="/labels", tags=["labels"], dependencies=[Depends(require_admin)])


@labels_router.post("/{label_id}/void", response_model=VoidLabelResponse)
async def void_label(label_id: str) -> VoidLabelResponse:
    """Void a label; the order goes back to processing if it was the active one."""
    reverted = current_domain.process(VoidShippingLabel(label_id=label_id), asynchronous=False)
    return VoidLabelResponse(label_id=label_id, order_reverted=bool(reverted))


# ---------------------------------------------------------------------------
# Fulfillment Router
# ---------------------------------------------------------------------------
fulfillment_router = APIRouter(prefix="/fulfillment", tags=["fulfillment"], dependencies=[Depends(require_admin)])


@fulfillment_router.get("/{order_id}", response_model=FulfillmentViewResponse)
async def get_fulfillment_view(order_id: str) -> FulfillmentViewResponse:
    """Pack station screen: checklist, boxes and progress for one order."""
    order = current_domain.repository_for(Order).get(order_id)
    packaging_types = {
        str(p.id): p for p in current_domain.repository_for(PackagingType)._dao.query.all().items
    }
    view = build_fulfillment_view(order, find_fulfillment(order_id), get_catalog(), packaging_types)
    return FulfillmentViewResponse(**view)


@fulfillment_router.post("", status_code=201, response_model=FulfillmentIdResponse)
async def start_fulfillment(body: StartFulfillmentRequest) -> FulfillmentIdResponse:
    """Start packing a paid order. Calling it again returns the same fulfillment."""
    command = StartFulfillment(order_id=body.order_id, user_id=body.user_id, user_name=body.user_name)
    result = current_domain.process(command, asynchronous=False)
    return FulfillmentIdResponse(fulfillment_id=result)


@fulfillment_router.put("/{order_id}", response_model=StatusResponse)
async def update_fulfillment(order_id: str, body: UpdateFulfillmentRequest) -> StatusResponse:
    command = UpdateFulfillment(
        order_id=order_id,
        packaging_type_id=body.packaging_type_id,
        status=body.status,
        notes=body.notes,
        user_name=body.user_name,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status=get_fulfillment(order_id).status)


@fulfillment_router.post("/{order_id}/scans", response_model=ScanResponse)
async def record_scan(
    order_id: str,
    body: ScanRequest,
    settings: ShippingSettings = Depends(get_settings),
) -> ScanResponse:
    bind_order_context(order_id)
    command = RecordScan(
        order_id=order_id,
        code=body.code,
        quantity=body.quantity,
        start_if_missing=settings.auto_start_fulfillment,
        user_id=body.user_id,
        user_name=body.user_name,
    )
    result = current_domain.process(command, asynchronous=False)
    return ScanResponse(**result.to_dict())


@fulfillment_router.post("/{order_id}/packages", status_code=201, response_model=PackageIdResponse)
async def open_package(order_id: str, body: OpenPackageRequest) -> PackageIdResponse:
    command = OpenPackage(
        order_id=order_id,
        packaging_type_id=body.packaging_type_id,
        scan_ids=json.dumps(body.scan_ids),
    )
    result = current_domain.process(command, asynchronous=False)
    return PackageIdResponse(package_id=result)


@fulfillment_router.put("/{order_id}/packages/{package_id}/scans", response_model=StatusResponse)
async def assign_scans(order_id: str, package_id: str, body: AssignScansRequest) -> StatusResponse:
    command = AssignScansToPackage(
        order_id=order_id,
        package_id=package_id,
        scan_ids=json.dumps(body.scan_ids),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="packed")


@fulfillment_router.delete("/{order_id}/scans/{scan_id}/package", response_model=StatusResponse)
async def detach_scan(order_id: str, scan_id: str) -> StatusResponse:
    current_domain.process(DetachScan(order_id=order_id, scan_id=scan_id), asynchronous=False)
    return StatusResponse(status="unassigned")


@fulfillment_router.get("/{order_id}/unassigned", response_model=UnassignedScansResponse)
async def unassigned_scans(order_id: str) -> UnassignedScansResponse:
    order = current_domain.repository_for(Order).get(order_id)
    view = build_fulfillment_view(order, get_fulfillment(order_id), get_catalog(), {})
    return UnassignedScansResponse(scans=view["unassigned_scans"])


# ---------------------------------------------------------------------------
# Packaging Types Router
# ---------------------------------------------------------------------------
packaging_router = APIRouter(
    prefix="/packaging-types", tags=["packaging-types"], dependencies=[Depends(require_admin)]
)


@packaging_router.post("", status_code=201, response_model=PackagingTypeResponse)
async def register_packaging_type(body: RegisterPackagingTypeRequest) -> PackagingTypeResponse:
    command = RegisterPackagingType(
        sku=body.sku,
        name=body.name,
        length=body.length,
        width=body.width,
        height=body.height,
        weight_oz=body.weight_oz,
        cost_cents=body.cost_cents,
    )
    packaging_id = current_domain.process(command, asynchronous=False)
    packaging = current_domain.repository_for(PackagingType).get(packaging_id)
    return _packaging_response(packaging)


@packaging_router.get("", response_model=list[PackagingTypeResponse])
async def list_packaging_types(include_inactive: bool = False) -> list[PackagingTypeResponse]:
    repo = current_domain.repository_for(PackagingType)
    if include_inactive:
        packaging_types = repo._dao.query.all().items
    else:
        packaging_types = repo._dao.query.filter(is_active=True).all().items
    return [_packaging_response(p) for p in sorted(packaging_types, key=lambda p: p.sku)]


@packaging_router.post("/{packaging_type_id}/deactivate", response_model=StatusResponse)
async def deactivate_packaging_type(packaging_type_id: str) -> StatusResponse:
    current_domain.process(DeactivatePackagingType(packaging_type_id=packaging_type_id), asynchronous=False)
    return StatusResponse(status="inactive")


# ---------------------------------------------------------------------------
# Shipping Rates Router
# ---------------------------------------------------------------------------
shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


@shipping_router.post("/rates", response_model=RatesResponse)
def get_shipping_rates(body: RateRequest, engine: RateEngine = Depends(get_rate_engine)) -> RatesResponse:
    """Quote shipping for a checkout cart or an explicit parcel weight."""
    if body.cart_items:
        items = [
            WeighableItem(kind=item.item_kind, product_id=item.product_id, quantity=item.quantity, size=item.size)
            for item in body.cart_items
        ]
        weight_lbs = resolve_shipment_weight(items, get_catalog()).weight_lbs
    else:
        weight_lbs = billable_weight(body.weight)

    to = body.to_address
    address = Address(
        street1=to.street or "",
        city=to.city or "",
        state=(to.state or "").strip(),
        postal_code=(to.postal_code or "").strip(),
        country=to.country or "US",
    )
    return _rates_response(engine.get_rates(address, weight_lbs))


# ---------------------------------------------------------------------------
# Carrier Webhooks Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/shipstation", response_model=WebhookResponse)
async def shipstation_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_shipstation_signature: str | None = Header(default=None),
    synchronizer: CarrierWebhookSynchronizer = Depends(get_webhook_synchronizer),
    settings: ShippingSettings = Depends(get_settings),
) -> WebhookResponse:
    """Apply shipments the carrier reports; customers are notified after the response."""
    raw_body = await request.body()
    try:
        receipt = await run_in_threadpool(synchronizer.handle, raw_body, x_shipstation_signature)
    except WebhookSignatureError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except ShipmentSyncError as exc:
        # Committed shipments come back as duplicates on redelivery, so notify now
        await dispatch_all(exc.receipt.notices, settings.team_chat_channel)
        raise exc.error from None

    if receipt.notices:
        background_tasks.add_task(dispatch_all, receipt.notices, settings.team_chat_channel)
    return WebhookResponse(received=receipt.received, processed=receipt.processed)


# ---------------------------------------------------------------------------
# Carrier Webhook Subscription Router
# ---------------------------------------------------------------------------
carrier_admin_router = APIRouter(
    prefix="/admin/shipstation", tags=["shipstation"], dependencies=[Depends(require_admin)]
)

SHIP_NOTIFY_WEBHOOK_NAME = "Packline - Shipping Notifications"


def _subscriptions_for(webhooks: list[dict], target_url: str) -> list[dict]:
    # The list endpoint reports ``Url``; subscribe echoes ``target_url``
    return [w for w in webhooks if target_url in (w.get("Url"), w.get("target_url"))]


def _configured_carrier(settings: ShippingSettings):
    if not settings.carrier_configured:
        raise HTTPException(status_code=400, detail="ShipStation not configured")
    return get_carrier()


@carrier_admin_router.get("/webhooks", response_model=CarrierWebhookStatusResponse)
def carrier_webhook_status(settings: ShippingSettings = Depends(get_settings)) -> CarrierWebhookStatusResponse:
    """Whether our shipment webhook is registered at the carrier."""
    if not settings.carrier_configured:
        return CarrierWebhookStatusResponse(configured=False, webhook_url=settings.webhook_url)
    try:
        webhooks = get_carrier().list_webhooks()
    except CarrierError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return CarrierWebhookStatusResponse(
        configured=True,
        webhook_url=settings.webhook_url,
        webhook_registered=bool(_subscriptions_for(webhooks, settings.webhook_url)),
        webhooks=webhooks,
    )


@carrier_admin_router.post("/webhooks", response_model=CarrierWebhookRegistrationResponse)
def register_carrier_webhook(
    settings: ShippingSettings = Depends(get_settings),
) -> CarrierWebhookRegistrationResponse:
    carrier = _configured_carrier(settings)
    try:
        if _subscriptions_for(carrier.list_webhooks(), settings.webhook_url):
            return CarrierWebhookRegistrationResponse(
                registered=True, already_registered=True, webhook_url=settings.webhook_url
            )
        carrier.register_webhook(settings.webhook_url, SHIP_NOTIFY, SHIP_NOTIFY_WEBHOOK_NAME)
    except CarrierError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    logger.info("Carrier webhook registered", webhook_url=settings.webhook_url)
    return CarrierWebhookRegistrationResponse(registered=True, already_registered=False, webhook_url=settings.webhook_url)


@carrier_admin_router.delete("/webhooks", response_model=CarrierWebhookDeletionResponse)
def delete_carrier_webhooks(settings: ShippingSettings = Depends(get_settings)) -> CarrierWebhookDeletionResponse:
    """Remove every subscription pointing at this service."""
    carrier = _configured_carrier(settings)
    try:
        ours = _subscriptions_for(carrier.list_webhooks(), settings.webhook_url)
        for webhook in ours:
            webhook_id = webhook.get("WebHookID") or webhook.get("id")
            if webhook_id:
                carrier.delete_webhook(str(webhook_id))
    except CarrierError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return CarrierWebhookDeletionResponse(deleted=len(ours))
