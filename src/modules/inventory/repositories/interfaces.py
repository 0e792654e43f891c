"""Inventory repository interface.

Orders reference catalog items by name, so look-ups are by
``item_name``.  Reservation and restock must run on rows already locked
by ``get_for_update_by_names`` inside the caller's transaction.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.inventory.models import InventoryItem


class IInventoryRepository(IRepository["InventoryItem"]):
    @abstractmethod
    def get_by_name(self, item_name: str) -> Optional[InventoryItem]:
        """Retrieve a catalog item by exact name."""

    @abstractmethod
    def estimated_minutes_for(self, item_names: Iterable[str]) -> Dict[str, int]:
        """Preparation minutes of the catalogued names (missing ones omitted)."""

    @abstractmethod
    def get_for_update_by_names(
        self, item_names: Iterable[str]
    ) -> Dict[str, InventoryItem]:
        """Lock the catalogued rows, in name order, and return them by name."""

    @abstractmethod
    def reserve(self, item: InventoryItem, quantity: int) -> InventoryItem:
        """Take ``quantity`` units off a locked row.

        Raises:
            InsufficientStock: fewer than ``quantity`` units on hand.
        """

    @abstractmethod
    def restock(self, item: InventoryItem, quantity: int) -> InventoryItem:
        """Put ``quantity`` units back on a locked row."""
