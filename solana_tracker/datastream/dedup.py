from __future__ import annotations
from collections import OrderedDict
from typing import Any, Optional


class DeliveryDeduplicator:
    """
    Remembers delivery ids (the ``tx`` field of transaction payloads) seen during
    the current session and rejects repeats.

    With ``max_entries`` unset the id set grows for the whole session and is only
    emptied by clear(). A positive ``max_entries`` turns it into an LRU that forgets
    the least recently seen ids first.
    """

    def __init__(self, key: str = "tx", max_entries: Optional[int] = None) -> None:
        if max_entries is not None and max_entries < 0:
            raise ValueError("max_entries must be >= 0")
        self.key = key
        self.max_entries = max_entries or None
        self._seen: "OrderedDict[str, None]" = OrderedDict()

    def delivery_id(self, payload: Any) -> Optional[str]:
        if not isinstance(payload, dict):
            return None
        value = payload.get(self.key)
        if value is None or value == "":
            return None
        return str(value)

    def accept(self, payload: Any) -> bool:
        did = self.delivery_id(payload)
        if did is None:
            return True
        if did in self._seen:
            self._seen.move_to_end(did)
            return False
        self._seen[did] = None
        if self.max_entries is not None and len(self._seen) > self.max_entries:
            self._seen.popitem(last=False)
        return True

    def clear(self) -> None:
        self._seen.clear()

    def __len__(self) -> int:
        return len(self._seen)
