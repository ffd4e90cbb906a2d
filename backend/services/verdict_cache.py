import logging
import threading
import time
from collections import OrderedDict
from typing import Hashable, Optional

from backend.detection.verdict import Verdict

logger = logging.getLogger("domainguard.cache")


class VerdictCache:
    """
    Bounded LRU + TTL cache of verdicts.

    Entries are (verdict, inserted_at). All access goes through one lock;
    callers never hold it while fetching or scoring.
    """

    def __init__(self, capacity=2000, ttl=3600, clock=time.monotonic):
        self.capacity = capacity
        self.ttl = ttl
        self.clock = clock
        self.lock = threading.Lock()
        self.entries = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: Hashable) -> Optional[Verdict]:
        with self.lock:
            entry = self.entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            verdict, inserted_at = entry
            if not isinstance(verdict, Verdict) or self.clock() - inserted_at > self.ttl:
                # Stale or unusable: drop and let the caller recompute
                del self.entries[key]
                self.misses += 1
                return None

            self.entries.move_to_end(key)
            self.hits += 1
            return verdict

    def put(self, key: Hashable, verdict: Verdict):
        with self.lock:
            self.entries[key] = (verdict, self.clock())
            self.entries.move_to_end(key)
            while len(self.entries) > self.capacity:
                self.entries.popitem(last=False)
                self.evictions += 1

    def clear(self):
        with self.lock:
            count = len(self.entries)
            self.entries.clear()
        logger.info(f"Verdict cache cleared ({count} entries)")
        return count

    def __len__(self):
        with self.lock:
            return len(self.entries)

    def stats(self):
        with self.lock:
            return {
                "size": len(self.entries),
                "capacity": self.capacity,
                "ttl_seconds": self.ttl,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
            }
