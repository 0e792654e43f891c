"""Request-scoped context handed to the service layer.

Services never read the session or ``request.user`` directly: views build
a ``RequestContext`` and pass it along, so the actor recorded in the audit
trail is explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from modules.core.middleware import correlation_id_var

SYSTEM_ACTOR = "system"


@dataclass(frozen=True)
class RequestContext:
    actor: str = SYSTEM_ACTOR
    is_staff: bool = False
    correlation_id: str = ""

    @classmethod
    def from_request(cls, request: Any) -> RequestContext:
        user = getattr(request, "user", None)
        if user is None or not getattr(user, "is_authenticated", False):
            return cls(correlation_id=correlation_id_var.get())
        return cls(
            actor=user.get_username(),
            is_staff=bool(user.is_staff),
            correlation_id=correlation_id_var.get(),
        )

    @classmethod
    def system(cls) -> RequestContext:
        return cls(correlation_id=correlation_id_var.get())
