"""
Location inventory lookups for routing.

Routing asks an InventoryProvider how many units of each variant a set of
locations holds. The default provider reads LocationInventory rows; tests
and callers with their own stock system can pass any object with the same
``get_stock`` method.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable

from django.db.models import F

from marketplace.fulfillment.domain.models import LocationInventory


logger = logging.getLogger(__name__)


class InventoryProvider:
    """Reads stock from LocationInventory."""

    def get_stock(self, location_ids: Iterable[str], variant_ids: Iterable[str]) -> Dict[str, Dict[str, int]]:
        """
        Returns:
            {location_id: {variant_id: quantity}} for the requested pairs;
            pairs without a row are absent (treated as zero stock).
        """
        stock: Dict[str, Dict[str, int]] = defaultdict(dict)
        rows = LocationInventory.objects.filter(
            location_id__in=list(location_ids), variant_id__in=list(variant_ids)
        ).values_list("location_id", "variant_id", "quantity")
        for location_id, variant_id, quantity in rows:
            stock[str(location_id)][variant_id] = quantity
        return stock

    def set_stock(self, location, variant_id: str, quantity: int) -> LocationInventory:
        inventory, _ = LocationInventory.objects.update_or_create(
            location=location, variant_id=variant_id, defaults={"quantity": max(quantity, 0)}
        )
        logger.info(f"Stock for {variant_id} at {location.code} set to {inventory.quantity}")
        return inventory

    def decrement(self, location, variant_id: str, quantity: int) -> bool:
        """Take units out of stock; False when there are not enough."""
        updated = LocationInventory.objects.filter(
            location=location, variant_id=variant_id, quantity__gte=quantity
        ).update(quantity=F("quantity") - quantity)
        if not updated:
            logger.warning(f"Insufficient stock for {variant_id} at {location.code} (requested {quantity})")
        return bool(updated)
