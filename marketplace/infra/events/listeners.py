import logging

from infrastructure.events import get_event_bus
from marketplace.commissions.domain.services.commission_service import CommissionService
from marketplace.ordering.domain.services.vendor_order_service import VendorOrderService


logger = logging.getLogger(__name__)


def handle_order_placed(event_data):
    """Handle order.placed event: split the order into vendor orders."""
    try:
        payload = event_data.get("payload", {})
        order_id = payload.get("order_id")
        logger.info(f"[Marketplace Listener] Order placed: {order_id}. Creating vendor orders...")

        service = VendorOrderService()
        result = service.create_vendor_orders(order_id, payload.get("cart_id", ""), payload.get("items", []))

        if not result.ok:
            logger.error(f"Failed to create vendor orders for order {order_id}: {result.error_detail}")
        else:
            logger.info(f"Created {len(result.value)} vendor orders for order {order_id}")

    except Exception as e:
        logger.error(f"Error handling order.placed event: {e}", exc_info=True)


def handle_order_completed(event_data):
    """Handle order.completed event: commissions become collectable."""
    try:
        payload = event_data.get("payload", {})
        order_id = payload.get("order_id")
        logger.info(f"[Marketplace Listener] Order completed: {order_id}")

        service = CommissionService()
        result = service.mark_commission_collected(order_id)

        if not result.ok:
            logger.error(f"Failed to collect commissions for order {order_id}: {result.error_detail}")

    except Exception as e:
        logger.error(f"Error handling order.completed event: {e}", exc_info=True)


def register_marketplace_listeners():
    """Register all marketplace event listeners."""
    event_bus = get_event_bus()
    event_bus.subscribe("order.placed", handle_order_placed)
    event_bus.subscribe("order.completed", handle_order_completed)
    logger.info("Marketplace event listeners registered")
