"""Fulfillment bounded context — Warehouse Packing, Shipping Quotes and Carrier Sync.

Tracks pick/pack progress for paid orders through barcode scans, quotes
shipping costs at checkout, and reconciles order state with the shipping
aggregator once a package actually ships. Uses CQRS because the store is the
source of truth and the carrier only pushes thin notifications.
"""

from protean.domain import Domain

from fulfillment.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

fulfillment = Domain(name="fulfillment")
