from unittest.mock import MagicMock, patch

from django.apps import apps
from django.test import TestCase

from infrastructure.events import InMemoryEventBus
from marketplace.domain.events import OrderCompletedEvent, OrderPlacedEvent
from marketplace.infra.events.listeners import (
    handle_order_completed,
    handle_order_placed,
    register_marketplace_listeners,
)
from marketplace.models import CommissionRecord, VendorOrder
from marketplace.tests.factories import VendorFactory, cart_line


class ListenerTests(TestCase):
    def setUp(self):
        self.items = [{"variant_id": "v1", "vendor_id": "vendor_1", "quantity": 1, "unit_price": "10.00"}]

    @patch("marketplace.infra.events.listeners.VendorOrderService")
    def test_handle_order_placed(self, mock_service_class):
        mock_service = mock_service_class.return_value
        mock_service.create_vendor_orders.return_value = MagicMock(ok=True, value=[MagicMock()])

        event_data = {"payload": {"order_id": "order_1", "cart_id": "cart_1", "items": self.items}}

        handle_order_placed(event_data)

        mock_service.create_vendor_orders.assert_called_once_with("order_1", "cart_1", self.items)

    @patch("marketplace.infra.events.listeners.VendorOrderService")
    def test_handle_order_placed_swallows_service_errors(self, mock_service_class):
        mock_service_class.return_value.create_vendor_orders.side_effect = RuntimeError("database down")

        # Listener errors must not reach the publisher
        handle_order_placed({"payload": {"order_id": "order_1", "items": self.items}})

        mock_service_class.return_value.create_vendor_orders.assert_called_once_with("order_1", "", self.items)

    @patch("marketplace.infra.events.listeners.CommissionService")
    def test_handle_order_completed(self, mock_service_class):
        mock_service = mock_service_class.return_value
        mock_service.mark_commission_collected.return_value = MagicMock(ok=True, value=2)

        handle_order_completed({"payload": {"order_id": "order_1"}})

        mock_service.mark_commission_collected.assert_called_once_with("order_1")


class ListenerWiringTests(TestCase):
    def setUp(self):
        self.event_bus = InMemoryEventBus()
        patcher = patch("marketplace.infra.events.listeners.get_event_bus", return_value=self.event_bus)
        patcher.start()
        self.addCleanup(patcher.stop)
        register_marketplace_listeners()

    @patch("marketplace.ordering.domain.services.vendor_order_service.get_event_bus")
    @patch("marketplace.commissions.domain.services.commission_service.get_event_bus")
    def test_order_flow_through_event_bus(self, commission_bus, vendor_order_bus):
        commission_bus.return_value = self.event_bus
        vendor_order_bus.return_value = self.event_bus
        vendor = VendorFactory()

        OrderPlacedEvent(order_id="order_9", cart_id="cart_9", items=[cart_line(vendor, quantity=2)]).publish(
            self.event_bus
        )

        self.assertEqual(VendorOrder.objects.filter(order_id="order_9").count(), 1)
        self.assertEqual(CommissionRecord.objects.get(order_id="order_9").status, "pending")

        OrderCompletedEvent(order_id="order_9").publish(self.event_bus)

        self.assertEqual(CommissionRecord.objects.get(order_id="order_9").status, "collected")
        self.assertEqual(len(self.event_bus.events_of_type("vendor_order.created")), 1)


class AppReadyTests(TestCase):
    @patch("marketplace.infra.observability.tracing.setup_tracing")
    @patch("marketplace.infra.events.listeners.register_marketplace_listeners")
    @patch("infrastructure.events.get_event_bus")
    def test_ready_registers_listeners_and_starts_bus(self, mock_get_bus, mock_register, mock_tracing):
        apps.get_app_config("marketplace").ready()

        mock_register.assert_called_once()
        mock_get_bus.return_value.start_listening.assert_called_once()

    @patch("marketplace.infra.observability.tracing.setup_tracing")
    @patch("marketplace.infra.events.listeners.register_marketplace_listeners")
    @patch("infrastructure.events.get_event_bus")
    def test_ready_survives_bus_failure(self, mock_get_bus, mock_register, mock_tracing):
        mock_get_bus.return_value.start_listening.side_effect = RuntimeError("redis down")

        apps.get_app_config("marketplace").ready()

        mock_register.assert_called_once()
