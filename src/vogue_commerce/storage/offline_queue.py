# src/vogue_commerce/storage/offline_queue.py
"""
Offline Command Queue

Actions that could not reach the backend are queued in persistent storage
and replayed later by ``drain``. Each action is processed once per drain;
an action whose processor returns False or raises stays queued for the
next drain, in its original order.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List
from uuid import uuid4

from pydantic import Field, TypeAdapter, ValidationError

from ..core.logger import get_logger
from ..models.base import FrozenRecord
from .adapter import PersistenceAdapter

DEFAULT_QUEUE_KEY = "virtual-vogue-offline-queue"


class OfflineAction(FrozenRecord):
    """One queued command."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    action: str = Field(min_length=1)
    payload: Any = None


_QUEUE_ADAPTER = TypeAdapter(List[OfflineAction])

ActionProcessor = Callable[[OfflineAction], Awaitable[bool]]


@dataclass(frozen=True)
class DrainResult:
    """Outcome of one drain pass."""

    processed: int = 0
    failed: int = 0


class OfflineQueue:
    """
    Persistent FIFO of offline actions.

    Example:
        >>> queue = OfflineQueue(storage)
        >>> queue.enqueue("add_favorite", {"product_id": "p-1"})
        >>> result = await queue.drain(send_to_backend)
        >>> result.processed, result.failed
        (1, 0)
    """

    def __init__(self, storage: PersistenceAdapter, key: str = DEFAULT_QUEUE_KEY):
        self.storage = storage
        self.key = key
        self.logger = get_logger("offline_queue")

    def pending(self) -> List[OfflineAction]:
        """Queued actions, oldest first; unreadable data reads as empty."""
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            return _QUEUE_ADAPTER.validate_json(raw)
        except ValidationError as e:
            self.logger.warning(
                "Discarding unreadable offline queue",
                key=self.key,
                error_count=e.error_count()
            )
            return []

    def _write(self, actions: List[OfflineAction]) -> None:
        self.storage.set_item(self.key, _QUEUE_ADAPTER.dump_json(actions).decode("utf-8"))

    def enqueue(self, action: str, payload: Any = None) -> OfflineAction:
        """Append an action and persist the queue."""
        queued = OfflineAction(action=action, payload=payload)
        actions = self.pending()
        actions.append(queued)
        self._write(actions)
        self.logger.debug("Action queued", action=action, action_id=queued.id, queue_length=len(actions))
        return queued

    async def drain(self, processor: ActionProcessor) -> DrainResult:
        """
        Replay every queued action through ``processor``.

        Args:
            processor: Async callable returning True when the action was applied

        Returns:
            DrainResult with counts of applied and retained actions
        """
        snapshot = self.pending()
        remaining: List[OfflineAction] = []
        processed = 0
        for queued in snapshot:
            try:
                applied = await processor(queued)
            except Exception as e:
                self.logger.warning(
                    "Offline action failed",
                    action=queued.action,
                    action_id=queued.id,
                    exception_type=type(e).__name__,
                    exception_message=str(e)
                )
                applied = False
            if applied:
                processed += 1
            else:
                remaining.append(queued)

        # Actions queued by the processor itself survive the rewrite
        drained_ids = {queued.id for queued in snapshot}
        late = [queued for queued in self.pending() if queued.id not in drained_ids]
        self._write(remaining + late)
        result = DrainResult(processed=processed, failed=len(remaining))
        self.logger.info("Offline queue drained", processed=result.processed, failed=result.failed)
        return result

    def clear(self) -> None:
        self.storage.remove_item(self.key)

    def __len__(self) -> int:
        return len(self.pending())
