"""Inventory domain exceptions."""

from __future__ import annotations


class InsufficientStock(Exception):
    """Not enough units on hand to reserve the requested quantity."""

    def __init__(self, item_name: str, requested: int, available: int) -> None:
        self.item_name = item_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"{item_name}: requested {requested}, available {available}."
        )
