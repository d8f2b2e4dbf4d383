"""Wardrobe lifecycle manager: owns the wardrobe and its laundry state."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, List, Optional
from uuid import uuid4

from logic import laundry
from logic.laundry import LAUNDRY_DURATION_MS, SWEEP_INTERVAL_SECONDS, Clock, Wardrobe, now_ms
from memory.persistent_store import PersistentStore, PersistentValue
from models.clothing_item import ClothingAnalysis, ClothingItem
from models.errors import ItemNotFoundError, LifecycleClosedError
from models.records import WARDROBE_CODEC, WARDROBE_KEY
from stylist_app.logging_config import log_event
from tools.scheduler import RecurringTask

LOGGER = logging.getLogger(__name__)


def _new_item_id() -> str:
    return uuid4().hex


class WardrobeLifecycleManager:
    """Applies laundry transitions and persists every resulting wardrobe.

    Each change computes a complete new wardrobe from the current one under a
    single lock and stores it in one write.
    """

    def __init__(
        self,
        store: PersistentStore,
        clock: Clock = now_ms,
        laundry_duration_ms: int = LAUNDRY_DURATION_MS,
        sweep_interval_seconds: float = SWEEP_INTERVAL_SECONDS,
        id_factory: Callable[[], str] = _new_item_id,
    ) -> None:
        self.clock = clock
        self.laundry_duration_ms = int(laundry_duration_ms)
        self.id_factory = id_factory
        self._wardrobe: PersistentValue[Wardrobe] = PersistentValue(store, WARDROBE_KEY, (), WARDROBE_CODEC)
        self._lock = threading.RLock()
        self._closed = False
        self._sweeper = RecurringTask(sweep_interval_seconds, self.sweep, name="laundry-sweep")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def sweeper(self) -> RecurringTask:
        return self._sweeper

    def items(self) -> Wardrobe:
        return self._wardrobe.get()

    def available_items(self) -> Wardrobe:
        return tuple(item for item in self.items() if item.is_available)

    def find_item(self, item_id: str) -> Optional[ClothingItem]:
        for item in self.items():
            if item.id == item_id:
                return item
        return None

    def get_item(self, item_id: str) -> ClothingItem:
        item = self.find_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def _apply(self, event: str, transition: Callable[[Wardrobe], Wardrobe], **fields: object) -> Wardrobe:
        with self._lock:
            if self._closed:
                raise LifecycleClosedError(f"Cannot apply {event}: wardrobe manager is stopped")
            current = self._wardrobe.get()
            updated = transition(current)
            if updated != current:
                self._wardrobe.set(updated)
                log_event(LOGGER, logging.INFO, event, **fields)
            return updated

    def add_item(self, analysis: ClothingAnalysis, image_url: str) -> ClothingItem:
        """Create an available item and place it first in the wardrobe."""

        item = ClothingItem.from_analysis(self.id_factory(), analysis, image_url)
        self._apply("wardrobe_item_added", lambda current: (item,) + current, item_id=item.id, item_type=item.type)
        return item

    def send_to_laundry(self, item_id: str) -> Optional[ClothingItem]:
        now = self.clock()
        self._apply(
            "wardrobe_item_sent_to_laundry",
            lambda current: laundry.send_to_laundry(current, item_id, now, self.laundry_duration_ms),
            item_id=item_id,
        )
        return self.find_item(item_id)

    def mark_clean(self, item_id: str) -> Optional[ClothingItem]:
        self._apply(
            "wardrobe_item_marked_clean",
            lambda current: laundry.mark_clean(current, item_id),
            item_id=item_id,
        )
        return self.find_item(item_id)

    def toggle_laundry(self, item_id: str) -> Optional[ClothingItem]:
        now = self.clock()
        self._apply(
            "wardrobe_item_toggled",
            lambda current: laundry.toggle_laundry(current, item_id, now, self.laundry_duration_ms),
            item_id=item_id,
        )
        return self.find_item(item_id)

    def commit_worn(self, item_ids: Iterable[str]) -> List[ClothingItem]:
        """Send the worn items to laundry; returns the items that changed state."""

        ids = list(dict.fromkeys(item_ids))
        now = self.clock()
        with self._lock:
            before = {item.id: item for item in self.items()}
            after = self._apply(
                "outfit_worn",
                lambda current: laundry.commit_worn(current, ids, now, self.laundry_duration_ms),
                item_ids=ids,
            )
        return [item for item in after if item.id in before and before[item.id] != item]

    def sweep(self) -> int:
        """Return expired laundry to the wardrobe; a no-op once stopped."""

        with self._lock:
            if self._closed:
                return 0
            now = self.clock()
            reverted = laundry.count_expired(self.items(), now)
            if reverted:
                self._apply(
                    "laundry_sweep_reverted",
                    lambda current: laundry.revert_expired(current, now),
                    reverted=reverted,
                )
            return reverted

    def start(self) -> None:
        """Sweep once now, then keep sweeping on the configured interval."""

        self._sweeper.run_now()
        self._sweeper.start()

    def stop(self) -> None:
        with self._lock:
            self._closed = True
        self._sweeper.stop()

    def __enter__(self) -> "WardrobeLifecycleManager":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


__all__ = ["WardrobeLifecycleManager"]
