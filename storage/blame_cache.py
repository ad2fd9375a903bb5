"""In-memory blame cache.

Maps ``BlameKey`` to ``Attribution`` for the lifetime of the process. Entries
are never refreshed: a cached line keeps its attribution even if the file or
the repository history changes afterwards. Nothing is persisted.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from schemas.blame import Attribution, BlameKey


@dataclass
class BlameCache:
    """Materialized blame cache guarded by a mutex.

    Args:
        max_entries: Optional cap. When exceeded the oldest inserted entry is
            evicted first. ``None`` keeps the cache unbounded.
    """

    max_entries: Optional[int] = None
    entries: Dict[BlameKey, Attribution] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def get(self, key: BlameKey) -> Attribution | None:
        """Return the cached attribution for ``key``, or None."""
        with self._lock:
            return self.entries.get(key)

    def put(self, key: BlameKey, attribution: Attribution) -> None:
        """Insert/replace an attribution, evicting if over capacity."""
        with self._lock:
            self.entries.pop(key, None)
            self.entries[key] = attribution
            if self.max_entries is not None:
                while len(self.entries) > self.max_entries:
                    oldest = next(iter(self.entries))
                    del self.entries[oldest]

    def clear(self) -> int:
        """Drop every entry and return how many were removed."""
        with self._lock:
            n = len(self.entries)
            self.entries.clear()
            return n

    def items(self) -> List[Tuple[BlameKey, Attribution]]:
        """Snapshot of the current entries in insertion order."""
        with self._lock:
            return list(self.entries.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self.entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self.entries

    def __iter__(self) -> Iterator[BlameKey]:
        return iter([k for k, _ in self.items()])
