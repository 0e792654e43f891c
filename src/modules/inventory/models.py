"""COOP catalog item with its on-hand quantity.

``estimated_minutes`` is the preparation time one line of this item adds
to a wait-time estimate, whatever the quantity ordered.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class InventoryItem(BaseModel):
    item_name = models.CharField(max_length=255, unique=True)
    quantity = models.IntegerField(default=0)
    estimated_minutes = models.PositiveSmallIntegerField(default=5)
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = "inventory_items"
        ordering = ["item_name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name="inventory_items_quantity_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.item_name} ({self.quantity} on hand)"
