"""Most-recently-used tab ordering."""
from typing import Collection


class MRUHistory:
    """Tab ids, most recent first, no duplicates.

    Never trusted blindly: every read is filtered against the live ids the
    caller passes in.
    """

    def __init__(self):
        self._ids: list[int] = []

    def touch(self, tab_id: int):
        """Move *tab_id* to the head."""
        if tab_id in self._ids:
            self._ids.remove(tab_id)
        self._ids.insert(0, tab_id)

    def remove(self, tab_id: int):
        if tab_id in self._ids:
            self._ids.remove(tab_id)

    def clear(self):
        self._ids.clear()

    def ordered(self, live: Collection[int]) -> list[int]:
        return [tid for tid in self._ids if tid in live]

    def most_recent(self, live: Collection[int]) -> int | None:
        """Most recent live id; an arbitrary live id if history has none."""
        for tid in self._ids:
            if tid in live:
                return tid
        return next(iter(live), None)

    def __len__(self):
        return len(self._ids)

    def __iter__(self):
        return iter(list(self._ids))
