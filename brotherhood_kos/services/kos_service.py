"""
Brotherhood KOS - KOS Entry Service
===================================

The one service both transports call to manage the KOS list.

DESIGN:
    Lifecycle of an entry per Roblox user:
        (none) --add--> active --remove/expire--> archived --add--> active

    Each mutation and its history row share one SQLite transaction
    (see EntriesMixin). After the commit the service writes an
    operational log row and dispatches a Telegram notification in the
    background; neither can undo or fail the mutation.

    Key responsibilities:
    - Validate input and map storage outcomes to domain errors
    - Paginated listing with the active/expiring/permanent/archived filters
    - Idempotent expiry sweep
    - Bot enabled flag
"""

import re
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from brotherhood_kos.core.config import get_config
from brotherhood_kos.core.constants import (
    ACTION_EXPIRED,
    ACTION_REMOVED,
    DEFAULT_REMOVE_REASON,
    EXPIRED_REASON,
    EXPIRING_SOON_DAYS,
    LIST_FILTERS,
    MAX_PAGE_SIZE,
    REASON_MAX_LENGTH,
    ROBLOX_ID_PATTERN,
    SECONDS_PER_DAY,
    SYSTEM_ACTOR_ID,
    SYSTEM_ACTOR_NAME,
)
from brotherhood_kos.core.database import (
    Actor,
    DatabaseManager,
    HistoryRecord,
    KosEntryRecord,
    LogRecord,
    get_db,
)
from brotherhood_kos.core.errors import ConflictError, KosError, NotFoundError, ValidationError
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.telegram import (
    EVENT_ADDED,
    EVENT_EXPIRED,
    EVENT_REMOVED,
    TelegramNotifier,
    get_notifier,
)


SYSTEM_ACTOR = Actor(id=SYSTEM_ACTOR_ID, name=SYSTEM_ACTOR_NAME)

_ID_RE = re.compile(ROBLOX_ID_PATTERN)


def _clamp_page(page: int, limit: int, max_limit: int = MAX_PAGE_SIZE) -> Tuple[int, int]:
    page = max(1, int(page or 1))
    limit = min(max(1, int(limit or 1)), max_limit)
    return page, limit


def _expiry_label(is_permanent: bool, expires_at: Optional[float]) -> str:
    if is_permanent:
        return "Permanent"
    if expires_at is None:
        return "No expiry"
    return str(int(expires_at))


# =============================================================================
# KOS Service
# =============================================================================

class KosService:
    """
    Add, remove, list and sweep KOS entries.

    Attributes:
        expiring_soon_days: Width of the "expiring" window.
    """

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        notifier: Optional[TelegramNotifier] = None,
        clock: Callable[[], float] = time.time,
        expiring_soon_days: int = EXPIRING_SOON_DAYS,
    ) -> None:
        self._db = db
        self._notifier = notifier
        self._clock = clock
        self.expiring_soon_days = expiring_soon_days

    @property
    def db(self) -> DatabaseManager:
        return self._db or get_db()

    @property
    def notifier(self) -> TelegramNotifier:
        return self._notifier or get_notifier()

    def _expiring_until(self, now: float) -> float:
        return now + self.expiring_soon_days * SECONDS_PER_DAY

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def validate_roblox_id(roblox_user_id: Any) -> str:
        """
        Normalize and check a Roblox user ID.

        Raises:
            ValidationError: If the ID is not 1-20 digits.
        """
        value = str(roblox_user_id or "").strip()
        if not _ID_RE.match(value):
            raise ValidationError(
                "Roblox user ID must be numeric",
                code="VALIDATION_INVALID_ID",
                details={"roblox_user_id": value[:32]},
            )
        return value

    @staticmethod
    def validate_reason(reason: Optional[str]) -> str:
        """
        Normalize and check a reason.

        Raises:
            ValidationError: If the reason is empty or too long.
        """
        value = (reason or "").strip()
        if not value:
            raise ValidationError("Reason is required")
        if len(value) > REASON_MAX_LENGTH:
            raise ValidationError(f"Reason must be at most {REASON_MAX_LENGTH} characters")
        return value

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(
        self,
        roblox_user_id: str,
        roblox_username: str,
        reason: str,
        actor: Actor,
        expires_at: Optional[float] = None,
        is_permanent: bool = False,
        thumbnail_url: Optional[str] = None,
    ) -> KosEntryRecord:
        """
        Put a Roblox user on the KOS list.

        Args:
            roblox_user_id: Numeric Roblox user ID.
            roblox_username: Roblox username at the time of adding.
            reason: Why the user is KOS.
            actor: Who adds the entry.
            expires_at: Expiry timestamp; None means the entry never expires.
            is_permanent: Mark the entry permanent (expires_at ignored).
            thumbnail_url: Avatar headshot URL, if known.

        Returns:
            The active entry (new, or reactivated with the same id).

        Raises:
            ValidationError: On bad ID, empty reason or past expiry.
            ConflictError: If the user already has an active entry.
        """
        try:
            roblox_user_id = self.validate_roblox_id(roblox_user_id)
            reason = self.validate_reason(reason)
            username = (roblox_username or "").strip() or roblox_user_id
            now = self._clock()

            if is_permanent:
                expires_at = None
            elif expires_at is not None and expires_at <= now:
                raise ValidationError("Expiry must be in the future")

            entry = self.db.insert_kos_entry(
                roblox_user_id=roblox_user_id,
                roblox_username=username,
                reason=reason,
                added_by_id=str(actor.id),
                added_by_name=actor.name,
                expires_at=expires_at,
                is_permanent=is_permanent,
                thumbnail_url=thumbnail_url,
                now=now,
            )
            if entry is None:
                raise ConflictError(
                    "User is already on the KOS list",
                    details={"roblox_user_id": roblox_user_id},
                )
        except KosError as e:
            self.db.add_log("warning", "service", "Failed to add KOS entry", {
                "error": e.message,
                "roblox_user_id": str(roblox_user_id)[:32],
            }, str(actor.id), actor.name)
            raise

        self.db.add_log("info", "service", f"KOS entry added for {entry['roblox_username']}", {
            "roblox_user_id": roblox_user_id,
            "entry_id": entry["id"],
        }, str(actor.id), actor.name)

        logger.tree("KOS Entry Added", [
            ("Roblox", f"{entry['roblox_username']} ({roblox_user_id})"),
            ("Reason", reason[:50]),
            ("By", f"{actor.name} ({actor.id})"),
            ("Expires", _expiry_label(is_permanent, expires_at)),
        ], emoji="🚨")

        self.notifier.dispatch(EVENT_ADDED, entry, actor)
        return entry

    def remove(
        self,
        roblox_user_id: str,
        reason: Optional[str] = DEFAULT_REMOVE_REASON,
        actor: Actor = SYSTEM_ACTOR,
    ) -> KosEntryRecord:
        """
        Archive the active entry of a Roblox user.

        Returns:
            The archived entry.

        Raises:
            ValidationError: On a malformed ID.
            NotFoundError: If the user has no active entry.
        """
        roblox_user_id = self.validate_roblox_id(roblox_user_id)
        reason = (reason or "").strip() or DEFAULT_REMOVE_REASON
        if len(reason) > REASON_MAX_LENGTH:
            raise ValidationError(f"Reason must be at most {REASON_MAX_LENGTH} characters")

        entry = self.db.archive_kos_entry(
            roblox_user_id=roblox_user_id,
            reason=reason,
            archived_by_id=str(actor.id),
            archived_by_name=actor.name,
            action=ACTION_REMOVED,
            now=self._clock(),
        )
        if entry is None:
            raise NotFoundError(
                "User is not on the KOS list",
                code="KOS_ENTRY_NOT_FOUND",
                details={"roblox_user_id": roblox_user_id},
            )

        self.db.add_log("info", "service", f"KOS entry removed for {entry['roblox_username']}", {
            "roblox_user_id": roblox_user_id,
            "reason": reason,
        }, str(actor.id), actor.name)

        logger.tree("KOS Entry Removed", [
            ("Roblox", f"{entry['roblox_username']} ({roblox_user_id})"),
            ("Reason", reason[:50]),
            ("By", f"{actor.name} ({actor.id})"),
        ], emoji="✅")

        self.notifier.dispatch(EVENT_REMOVED, entry, actor)
        return entry

    def archive_expired(self, now: Optional[float] = None) -> int:
        """
        Archive every active, non-permanent entry whose expiry has passed.

        Returns:
            Number of entries archived by this call.
        """
        now = self._clock() if now is None else now
        archived: List[KosEntryRecord] = []

        for candidate in self.db.get_expired_kos_entries(now):
            entry = self.db.archive_kos_entry(
                roblox_user_id=candidate["roblox_user_id"],
                reason=EXPIRED_REASON,
                archived_by_id=SYSTEM_ACTOR.id,
                archived_by_name=SYSTEM_ACTOR.name,
                action=ACTION_EXPIRED,
                now=now,
            )
            # None when a concurrent remove won the race
            if entry is not None:
                archived.append(entry)

        if archived:
            self.db.add_log(
                "info", "system", f"Archived {len(archived)} expired KOS entries",
                {"roblox_user_ids": [e["roblox_user_id"] for e in archived]},
                SYSTEM_ACTOR.id, SYSTEM_ACTOR.name,
            )
            logger.tree("Expired KOS Entries Archived", [
                ("Count", str(len(archived))),
                ("Users", ", ".join(e["roblox_username"] for e in archived[:5])),
            ], emoji="⏰")
            for entry in archived:
                self.notifier.dispatch(EVENT_EXPIRED, entry, SYSTEM_ACTOR)

        return len(archived)

    # =========================================================================
    # Queries
    # =========================================================================

    def find(self, roblox_user_id: str) -> Optional[KosEntryRecord]:
        """Get the active entry of a user, or None."""
        return self.db.get_active_kos_entry(self.validate_roblox_id(roblox_user_id))

    def get(self, roblox_user_id: str) -> Optional[KosEntryRecord]:
        """Get the entry of a user in any status, or None."""
        return self.db.get_kos_entry(self.validate_roblox_id(roblox_user_id))

    def list(
        self,
        filter: str = "active",
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> Tuple[List[KosEntryRecord], int]:
        """
        List entries, newest first.

        Args:
            filter: "active", "expiring", "permanent" or "archived".
            page: 1-based page, clamped to >= 1.
            limit: Page size, clamped to 1..100.
            search: Optional case-insensitive username substring.

        Returns:
            Tuple of (entries on this page, total matching entries).

        Raises:
            ValidationError: On an unknown filter.
        """
        if filter not in LIST_FILTERS:
            raise ValidationError(
                f"Unknown filter '{filter}'",
                code="VALIDATION_INVALID_FILTER",
                details={"allowed": list(LIST_FILTERS)},
            )
        page, limit = _clamp_page(page, limit)
        now = self._clock()
        return self.db.list_kos_entries(
            filter_name=filter,
            now=now,
            expiring_until=self._expiring_until(now),
            limit=limit,
            offset=(page - 1) * limit,
            search=(search or "").strip() or None,
        )

    def stats(self) -> Dict[str, int]:
        """
        Count entries by state.

        Returns:
            Dict with active, permanent, expiring, archived and total.
        """
        now = self._clock()
        counts = self.db.get_kos_counts(now, self._expiring_until(now))
        return {
            "active": counts["active"],
            "permanent": counts["permanent"],
            "expiring": counts["expiring"],
            "archived": counts["archived"],
            "total": counts["active"] + counts["archived"],
        }

    def status(self) -> Dict[str, Any]:
        """Stats plus recent additions and the bot enabled flag."""
        now = self._clock()
        week_ago = now - 7 * SECONDS_PER_DAY
        counts = self.db.get_kos_counts(now, self._expiring_until(now), added_since=week_ago)
        return {
            "active": counts["active"],
            "permanent": counts["permanent"],
            "expiring": counts["expiring"],
            "archived": counts["archived"],
            "total": counts["active"] + counts["archived"],
            "added_last_7_days": counts["recent"],
            "bot_enabled": self.is_enabled(),
        }

    def history(
        self,
        page: int = 1,
        limit: int = 20,
        roblox_user_id: Optional[str] = None,
    ) -> Tuple[List[HistoryRecord], int]:
        """Paginated audit trail, optionally for one user."""
        page, limit = _clamp_page(page, limit)
        if roblox_user_id:
            roblox_user_id = self.validate_roblox_id(roblox_user_id)
        return self.db.get_kos_history(
            limit=limit, offset=(page - 1) * limit, roblox_user_id=roblox_user_id,
        )

    def logs(self, limit: int = 50, category: Optional[str] = None) -> List[LogRecord]:
        """Most recent operational log rows."""
        _, limit = _clamp_page(1, limit, max_limit=500)
        return self.db.get_logs(limit=limit, category=category)

    # =========================================================================
    # Bot Enabled Flag
    # =========================================================================

    def is_enabled(self) -> bool:
        """Check if KOS commands are accepted."""
        return self.db.is_bot_enabled()

    def set_enabled(self, enabled: bool, actor: Actor) -> bool:
        """Enable or disable KOS commands. Returns the new state."""
        self.db.set_bot_enabled(enabled)
        self.db.add_log(
            "info", "bot", f"Bot {'enabled' if enabled else 'disabled'}",
            {"enabled": enabled}, str(actor.id), actor.name,
        )
        return enabled


# =============================================================================
# Global Instance
# =============================================================================

_service: Optional[KosService] = None


def get_kos_service() -> KosService:
    """Get the process-wide KOS service."""
    global _service
    if _service is None:
        _service = KosService(expiring_soon_days=get_config().expiring_soon_days)
    return _service


def reset_kos_service() -> None:
    """Drop the cached service (used when config changes)."""
    global _service
    _service = None


__all__ = ["KosService", "SYSTEM_ACTOR", "get_kos_service", "reset_kos_service"]
