"""
Brotherhood KOS - Pending Confirmations
=======================================

In-memory store for /add and /remove confirmations.

DESIGN:
    Each confirmation gets a random UUID token carried by its buttons.
    take() pops the entry, so whichever of confirm, cancel or timeout
    runs first owns it and the others see None. Entries older than
    CONFIRMATION_TIMEOUT are treated as gone.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from brotherhood_kos.core.constants import CONFIRMATION_TIMEOUT
from brotherhood_kos.core.logger import logger


@dataclass
class PendingAction:
    """A confirmation waiting for its invoker."""
    token: str
    kind: str
    invoker_id: int
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: float = 0.0
    expires_at: float = 0.0


class PendingConfirmations:
    """Token -> PendingAction map with single-release semantics."""

    def __init__(
        self,
        timeout: float = CONFIRMATION_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.timeout = timeout
        self._clock = clock
        self._items: Dict[str, PendingAction] = {}

    def __len__(self) -> int:
        return len(self._items)

    def put(self, kind: str, invoker_id: int, payload: Dict[str, Any]) -> PendingAction:
        """Store a new confirmation and return it with its token."""
        self.sweep()
        now = self._clock()
        action = PendingAction(
            token=uuid.uuid4().hex,
            kind=kind,
            invoker_id=invoker_id,
            payload=payload,
            created_at=now,
            expires_at=now + self.timeout,
        )
        self._items[action.token] = action
        return action

    def get(self, token: str) -> Optional[PendingAction]:
        """Peek without releasing. Expired entries read as None."""
        action = self._items.get(token)
        if action is None or self._clock() >= action.expires_at:
            return None
        return action

    def take(self, token: str) -> Optional[PendingAction]:
        """
        Release a confirmation exactly once.

        Returns:
            The action, or None if it was already taken or has expired.
        """
        action = self._items.pop(token, None)
        if action is None:
            return None
        if self._clock() >= action.expires_at:
            return None
        return action

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were dropped."""
        now = self._clock()
        expired = [token for token, action in self._items.items() if now >= action.expires_at]
        for token in expired:
            del self._items[token]
        if expired:
            logger.debug("Pending Confirmations Swept", [("Expired", str(len(expired)))])
        return len(expired)


_pending: Optional[PendingConfirmations] = None


def get_pending() -> PendingConfirmations:
    """Get the process-wide confirmation store."""
    global _pending
    if _pending is None:
        _pending = PendingConfirmations()
    return _pending


__all__ = ["PendingAction", "PendingConfirmations", "get_pending"]
