from __future__ import annotations
from typing import Callable, List, Optional
import logging
from .highlights import HASH_PREFIX, Highlight
from .viewer import ScrollTo

logger = logging.getLogger(__name__)


def parse_id_from_hash(fragment: Optional[str]) -> Optional[str]:
    """Return the highlight id of a `#highlight-<id>` fragment, else None."""
    if not fragment or not fragment.startswith(HASH_PREFIX):
        return None
    return fragment[len(HASH_PREFIX):] or None


class FragmentLocation:
    """In-process location bar fragment. Listeners fire on every actual change."""

    def __init__(self, initial: str = ""):
        self._hash = initial
        self._listeners: List[Callable[[], None]] = []

    @property
    def hash(self) -> str:
        return self._hash

    def set_hash(self, value: str):
        if value and not value.startswith("#"):
            value = "#" + value
        if value == self._hash:
            return
        self._hash = value
        for listener in list(self._listeners):
            listener()

    def reset(self):
        self.set_hash("")

    def subscribe(self, listener: Callable[[], None]):
        self._listeners.append(listener)


class HashNavigator:
    """Deep-link bridge between the location fragment and the viewer.

    The viewer hands over its scroll-to function only after it has mounted. Until then the
    slot is empty and resolution does nothing; when the function arrives the current
    fragment is resolved straight away."""

    def __init__(self, lookup: Callable[[Optional[str]], Optional[Highlight]], location: FragmentLocation):
        self._lookup = lookup
        self.location = location
        self._scroll_to: Optional[ScrollTo] = None

    def listen(self):
        self.location.subscribe(self.on_hash_change)

    @property
    def mounted(self) -> bool:
        return self._scroll_to is not None

    def set_scroll_to(self, scroll_to: ScrollTo):
        self._scroll_to = scroll_to
        self.on_hash_change()

    def on_hash_change(self):
        if self._scroll_to is None:
            return
        highlight_id = parse_id_from_hash(self.location.hash)
        highlight = self._lookup(highlight_id)
        if highlight is None:
            if highlight_id:
                logger.debug("No highlight %s in the current document", highlight_id)
            return
        self._scroll_to(highlight)

    def on_user_scroll(self):
        self.location.reset()
