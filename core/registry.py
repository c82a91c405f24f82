"""
Tag Registry for EPC Explorer.

This module aggregates the scan event stream into one record per tag ID
and exposes a filtered, staleness-ordered view with a selection cursor.

Only the consumer thread (the UI tick) may call ingest(); the map is
never shared with another writer, so no locking is needed.
"""

import logging
from typing import Dict, List, Optional

from .channel import EventChannel
from .clock import Clock, DEFAULT_CLOCK
from .scan_result import INACTIVE_AGE, ScanResult

logger = logging.getLogger(__name__)


class TagRegistry:
    """
    Deduplicated tag inventory.

    Tags are never removed; inactive ones are only hidden from view()
    unless show_inactive is set.
    """

    def __init__(
        self,
        events: EventChannel,
        clock: Optional[Clock] = None,
        inactive_age: float = INACTIVE_AGE
    ):
        """
        Initialize registry.

        Args:
            events: Channel fed by the scan orchestrator
            clock: Clock used for age computations
            inactive_age: Seconds after which a tag is inactive
        """
        self.events = events
        self.clock = clock or DEFAULT_CLOCK
        self.inactive_age = inactive_age

        self.items: Dict[bytes, ScanResult] = {}
        self.selected: Optional[bytes] = None
        self.show_inactive = False

    @property
    def count(self) -> int:
        """Number of tags ever seen."""
        return len(self.items)

    @property
    def selected_item(self) -> Optional[ScanResult]:
        """Selected tag record, visible or not."""
        if self.selected is None:
            return None
        return self.items.get(self.selected)

    def get(self, tag_id: bytes) -> Optional[ScanResult]:
        return self.items.get(tag_id)

    def ingest(self) -> int:
        """
        Merge every queued scan event into the map.

        Returns:
            Number of events ingested
        """
        events = self.events.drain()
        for result in events:
            item = self.items.get(result.tag_id)
            if item is None:
                # The producer may still hold the published object
                self.items[result.tag_id] = result.copy()
                logger.debug("New tag %s", result.tag_id_hex)
            else:
                item.merge(result)

        items = self.view()
        if not items:
            self.selected = None
        elif self.selected is None:
            self.selected = items[0].tag_id

        return len(events)

    def view(self) -> List[ScanResult]:
        """
        Visible tags, freshest first.

        Tags younger than the inactivity threshold share one age bucket
        and are ordered by tag ID; older ones follow by age, then tag ID.
        """
        now = self.clock.now()
        items = [
            item for item in self.items.values()
            if self.show_inactive or item.is_active(now, self.inactive_age)
        ]
        items.sort(key=lambda item: (max(item.age(now), self.inactive_age), item.tag_id))
        return items

    def move_selection(self, reverse: bool = False):
        """
        Move the selection one row down (or up if reverse), wrapping around.

        Does nothing on an empty view.
        """
        items = self.view()
        if not items:
            return

        if self.selected is None:
            self.selected = items[0].tag_id
            return

        index = 0
        for i, item in enumerate(items):
            if item.tag_id == self.selected:
                index = i
                break

        if reverse and index == 0:
            index = len(items) - 1
        elif not reverse and index == len(items) - 1:
            index = 0
        elif reverse:
            index -= 1
        else:
            index += 1

        self.selected = items[index].tag_id

    def toggle_show_inactive(self) -> bool:
        """Flip inactive visibility. Returns the new value."""
        self.show_inactive = not self.show_inactive
        return self.show_inactive

    def close(self):
        """Stop consuming events; the producer will shut down."""
        self.events.close()
