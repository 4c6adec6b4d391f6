"""Views and per-party evaluation contexts."""

import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import List

from .errors import ConsistencyViolation
from .randomness import RandomnessPool, commit

logger = logging.getLogger(__name__)


class LogMode(Enum):
    """How a context treats its view log during replay."""

    RECORDED = "recorded"
    TO_DERIVE = "to_derive"


@dataclass
class View:
    """One party's seed, input shares and non-linear gate outputs."""

    seed: bytes
    in_data: List[int] = field(default_factory=list)
    out_data: List[int] = field(default_factory=list)

    def commit(self) -> bytes:
        return commit(self.seed, self.out_data)

    def copy(self, with_log: bool = True) -> "View":
        return View(
            seed=self.seed,
            in_data=list(self.in_data),
            out_data=list(self.out_data) if with_log else [],
        )

    def wipe(self) -> None:
        self.in_data.clear()
        self.out_data.clear()


class Context:
    """A view plus the replay state of one party in one repetition.

    Exclusively owned by a single circuit pass. The prover only appends to the
    log; the verifier walks it with a cursor, checking RECORDED entries and
    appending TO_DERIVE ones.
    """

    def __init__(self, view: View, mode: LogMode = LogMode.RECORDED):
        self.view = view
        self.mode = mode
        self.pool = RandomnessPool(view.seed)
        self.cursor = 0

    def next_random(self) -> int:
        return self.pool.next()

    # Prover path

    def record(self, word: int) -> None:
        self.view.out_data.append(word)

    # Verifier path

    def replay(self) -> int:
        """Read the recorded entry under the cursor and advance."""
        if self.cursor >= len(self.view.out_data):
            raise ConsistencyViolation(
                f"view log exhausted after {self.cursor} entries"
            )
        word = self.view.out_data[self.cursor]
        self.cursor += 1
        return word

    def settle(self, word: int) -> None:
        """Check ``word`` against the log, or append it when deriving."""
        if self.mode is LogMode.TO_DERIVE:
            self.derive(word)
            return
        recorded = self.replay()
        if recorded != word:
            raise ConsistencyViolation(
                f"gate output mismatch at log entry {self.cursor - 1}: "
                f"recomputed {word:#010x}, committed {recorded:#010x}"
            )

    def derive(self, word: int) -> None:
        self.view.out_data.append(word)
        self.cursor += 1

    @property
    def exhausted(self) -> bool:
        return self.cursor == len(self.view.out_data)

    def __repr__(self) -> str:
        return (f"Context(mode={self.mode.value}, cursor={self.cursor}, "
                f"log={len(self.view.out_data)}, drawn={self.pool.drawn})")


__all__ = ["LogMode", "View", "Context"]
