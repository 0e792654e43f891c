"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    QueueCounterDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IOrderRepository,
    IQueueCounterRepository,
)

__all__ = [
    "IOrderRepository",
    "IQueueCounterRepository",
    "OrderDjangoRepository",
    "QueueCounterDjangoRepository",
]
