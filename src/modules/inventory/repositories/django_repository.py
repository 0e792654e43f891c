"""Django ORM implementation of the Inventory repository."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.inventory.exceptions import InsufficientStock
from modules.inventory.models import InventoryItem
from modules.inventory.repositories.interfaces import IInventoryRepository

logger = structlog.get_logger(__name__)


class InventoryDjangoRepository(IInventoryRepository):
    """Concrete Inventory repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[InventoryItem]:
        try:
            return InventoryItem.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[InventoryItem]:
        queryset = InventoryItem.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: InventoryItem) -> InventoryItem:
        entity.save()
        logger.info(
            "inventory.saved",
            item_name=entity.item_name,
            quantity=entity.quantity,
        )
        return entity

    def get_by_name(self, item_name: str) -> Optional[InventoryItem]:
        return InventoryItem.objects.filter(item_name=item_name).first()

    def estimated_minutes_for(self, item_names: Iterable[str]) -> Dict[str, int]:
        return dict(
            InventoryItem.objects.filter(item_name__in=set(item_names)).values_list(
                "item_name", "estimated_minutes"
            )
        )

    def get_for_update_by_names(
        self, item_names: Iterable[str]
    ) -> Dict[str, InventoryItem]:
        # Fixed lock order prevents deadlocks between concurrent orders.
        rows = (
            InventoryItem.objects.select_for_update()
            .filter(item_name__in=set(item_names))
            .order_by("item_name")
        )
        return {row.item_name: row for row in rows}

    def reserve(self, item: InventoryItem, quantity: int) -> InventoryItem:
        if item.quantity < quantity:
            raise InsufficientStock(item.item_name, quantity, item.quantity)
        item.quantity -= quantity
        item.save(update_fields=["quantity", "updated_at"])
        logger.info(
            "inventory.reserved",
            item_name=item.item_name,
            quantity=quantity,
            remaining=item.quantity,
        )
        return item

    def restock(self, item: InventoryItem, quantity: int) -> InventoryItem:
        item.quantity += quantity
        item.save(update_fields=["quantity", "updated_at"])
        logger.info(
            "inventory.restocked",
            item_name=item.item_name,
            quantity=quantity,
            new_quantity=item.quantity,
        )
        return item
