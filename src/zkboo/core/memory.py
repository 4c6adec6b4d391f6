"""RAM-only context arena.

Every (repetition, party) pair of a proof run gets its own Context, stored
here and addressed by index. Wires hold a ``ContextHandle`` (arena plus
repetition plus the ordered party indices) instead of sharing the Context
objects themselves, and a repetition's contexts are wiped as soon as the
repetition has been committed or replayed.
"""

import time
import threading
import logging
from typing import Dict, Any, Optional, Tuple, Iterator
from dataclasses import dataclass
from collections import OrderedDict
from contextlib import contextmanager

from .context import Context, LogMode, View
from .errors import InvariantViolation

logger = logging.getLogger(__name__)

ArenaKey = Tuple[int, int]


@dataclass(frozen=True)
class ContextHandle:
    """Non-owning reference to the contexts of one repetition.

    ``parties`` lists the party index behind each share slot of a wire:
    ``(0, 1, 2)`` on the prover side, the two revealed parties on the
    verifier side.
    """

    arena: "ContextArena"
    repetition: int
    parties: Tuple[int, ...]

    def context(self, slot: int) -> Context:
        return self.arena.get(self.repetition, self.parties[slot])

    def contexts(self):
        return [self.context(slot) for slot in range(len(self.parties))]


class ContextArena:
    """Thread-safe store of Contexts indexed by ``(repetition, party)``.

    Different repetitions may be evaluated on different threads; the lock only
    guards the index itself; each Context is used by one thread at a time.
    """

    def __init__(self, name: str = "arena"):
        self.name = name
        self._contexts: Dict[ArenaKey, Context] = OrderedDict()
        self._lock = threading.RLock()
        self._created_at = time.time()
        self._allocated = 0
        self._released = 0

    def allocate(self, repetition: int, party: int, view: View,
                 mode: LogMode = LogMode.RECORDED) -> Context:
        """Create the Context for one (repetition, party).

        Raises:
            InvariantViolation: If the slot is already taken
        """
        key = (repetition, party)
        with self._lock:
            if key in self._contexts:
                raise InvariantViolation(
                    f"context {key} already allocated in {self.name}"
                )
            ctx = Context(view, mode)
            self._contexts[key] = ctx
            self._allocated += 1
        logger.debug(f"{self.name}: allocated context {key} ({mode.value})")
        return ctx

    def get(self, repetition: int, party: int) -> Context:
        with self._lock:
            ctx = self._contexts.get((repetition, party))
        if ctx is None:
            raise InvariantViolation(
                f"no context for repetition {repetition}, party {party} in {self.name}"
            )
        return ctx

    def handle(self, repetition: int, parties: Tuple[int, ...]) -> ContextHandle:
        for party in parties:
            self.get(repetition, party)
        return ContextHandle(self, repetition, tuple(parties))

    def contexts(self, repetition: int) -> Iterator[Tuple[int, Context]]:
        with self._lock:
            items = [(party, ctx) for (rep, party), ctx in self._contexts.items()
                     if rep == repetition]
        return iter(items)

    def release(self, repetition: int, wipe: bool = True) -> int:
        """Drop every context of a repetition.

        Args:
            repetition: Repetition index
            wipe: Clear the views' input shares and logs as well. Leave False
                when the views are still needed (e.g. for the response).

        Returns:
            int: Number of contexts released
        """
        with self._lock:
            keys = [key for key in self._contexts if key[0] == repetition]
            for key in keys:
                ctx = self._contexts.pop(key)
                if wipe:
                    ctx.view.wipe()
            self._released += len(keys)
        if keys:
            logger.debug(f"{self.name}: released {len(keys)} contexts of repetition {repetition}")
        return len(keys)

    def clear(self) -> None:
        """Clear all contexts from the arena."""
        with self._lock:
            for ctx in self._contexts.values():
                ctx.view.wipe()
            self._released += len(self._contexts)
            self._contexts.clear()
        logger.debug(f"{self.name}: cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)

    def __contains__(self, key: ArenaKey) -> bool:
        with self._lock:
            return key in self._contexts

    def get_stats(self) -> Dict[str, Any]:
        """Get arena statistics.

        Returns:
            Dict[str, Any]: Live and historical context counts
        """
        with self._lock:
            return {
                "name": self.name,
                "live_contexts": len(self._contexts),
                "allocated": self._allocated,
                "released": self._released,
                "log_entries": sum(len(c.view.out_data) for c in self._contexts.values()),
                "age_seconds": time.time() - self._created_at,
            }


@contextmanager
def memory_guard(operation: str, arena: Optional[ContextArena] = None):
    """Context manager for memory-safe operations.

    Args:
        operation: Name of operation for logging
        arena: Arena to clear if the operation runs out of memory

    Yields:
        None
    """
    try:
        yield
    except MemoryError:
        logger.error(f"Memory error during {operation}, clearing contexts")
        if arena is not None:
            arena.clear()
        raise
    except Exception as e:
        logger.debug(f"Error during {operation}: {e}")
        raise


__all__ = [
    "ContextHandle",
    "ContextArena",
    "memory_guard",
]
