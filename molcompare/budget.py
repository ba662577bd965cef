"""
Search budgets.

A SearchBudget is an immutable value object describing how much work a
search may do: a wall-clock timeout, a maximum number of expanded search
nodes, or both. Each search starts its own BudgetClock from it, so one
budget can be shared by any number of concurrent queries.

Example:
    >>> clock = SearchBudget(max_nodes=2).start()
    >>> clock.tick(), clock.tick(), clock.tick()
    (True, True, False)
    >>> clock.exhausted
    True
"""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SearchBudget:
    """Limits for one bounded search.

    Attributes:
        timeout: Wall-clock limit in seconds, or None for no deadline.
        max_nodes: Maximum number of expanded search nodes, or None.
    """

    timeout: float | None = None
    max_nodes: int | None = None

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout < 0:
            raise ValueError(f"timeout must be non-negative, got {self.timeout}")
        if self.max_nodes is not None and self.max_nodes < 0:
            raise ValueError(f"max_nodes must be non-negative, got {self.max_nodes}")

    @classmethod
    def unlimited(cls) -> "SearchBudget":
        return cls()

    @property
    def is_unlimited(self) -> bool:
        return self.timeout is None and self.max_nodes is None

    def start(self) -> "BudgetClock":
        """Start counting against this budget."""
        return BudgetClock(self)


class BudgetClock:
    """Per-search countdown of a SearchBudget.

    ``tick`` is called once per expanded node and returns False as soon as
    the budget is spent; the clock then stays exhausted.
    """

    __slots__ = ("budget", "expanded", "exhausted", "_started", "_deadline", "_max_nodes")

    def __init__(self, budget: SearchBudget) -> None:
        self.budget = budget
        self.expanded = 0
        self.exhausted = False
        self._started = time.monotonic()
        self._deadline = None if budget.timeout is None else self._started + budget.timeout
        self._max_nodes = budget.max_nodes

    def tick(self) -> bool:
        """Account for one expanded node.

        Returns:
            True if the search may expand this node, False if the budget
            is exhausted.
        """
        if self.exhausted:
            return False
        if self._max_nodes is not None and self.expanded >= self._max_nodes:
            self.exhausted = True
            return False
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.exhausted = True
            return False
        self.expanded += 1
        return True

    @property
    def elapsed(self) -> float:
        """Seconds since the clock started."""
        return time.monotonic() - self._started
