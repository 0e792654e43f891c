"""Domain events primitives shared by the modules.

Events are immutable dataclasses.  They are written to the transactional
outbox as JSON (``to_payload``) and rebuilt by the relay task
(``from_payload``) before being handed to the in-process bus.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Type, TypeVar
from uuid import UUID, uuid4

E = TypeVar("E", bound="DomainEvent")


@dataclass(frozen=True)
class DomainEvent:
    """Base domain event (immutable)."""

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-safe dict of every field."""
        return _normalize_for_json(asdict(self))

    @classmethod
    def from_payload(cls: Type[E], payload: Dict[str, Any]) -> E:
        values = {
            f.name: payload[f.name]
            for f in fields(cls)
            if f.init and f.name in payload
        }
        values["aggregate_id"] = UUID(str(values["aggregate_id"]))
        if "event_id" in values:
            values["event_id"] = UUID(str(values["event_id"]))
        if "occurred_on" in values:
            values["occurred_on"] = datetime.fromisoformat(values["occurred_on"])
        return cls(**values)


class DomainEventMixin:
    """Mixin for aggregate roots that collect domain events in memory."""

    _domain_events: list[DomainEvent]

    def add_domain_event(self, event: DomainEvent) -> None:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        self._domain_events.append(event)

    def clear_domain_events(self) -> None:
        if hasattr(self, "_domain_events"):
            self._domain_events.clear()

    @property
    def domain_events(self) -> list[DomainEvent]:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        return list(self._domain_events)


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
