"""Checker configuration."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class CheckerConfig:
    """Satisfiability checker parameters.

    Attributes:
        max_failures: Cap on the number of failures returned (None for no cap).
            Failures are sorted before truncation, so the cap keeps the first
            ones in report order.
        workers: Threads used for gate, lookup and permutation checks.
            1 runs everything sequentially in the calling thread.
    """
    max_failures: Optional[int] = 100
    workers: int = 1

    def __post_init__(self):
        if self.max_failures is not None and self.max_failures < 1:
            raise ValueError(f"max_failures must be >= 1 or None, got {self.max_failures}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
