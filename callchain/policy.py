"""Traversal policy shared by graph construction and the chain queries."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FanOutPolicy(str, Enum):
    """How a call to an interface method expands to its implementations."""

    ALL = "all"  # every known implementation (sound over-approximation)
    FIRST_ONLY = "first-only"  # first discovered implementation only


class CycleScope(str, Enum):
    """Where "already visited" is tracked during chain and tree traversal."""

    PATH_LOCAL = "path-local"  # per branch; a node may reappear in sibling branches
    GLOBAL = "global"  # whole traversal; a node is expanded at most once


class OutputFormat(str, Enum):
    TEXT = "text"  # ordered caller chains, textual report
    TREE = "tree"  # descendant tree from entry points


DEFAULT_MAX_VISITS = 100_000


@dataclass(frozen=True)
class TraversalPolicy:
    """Explicit configuration for graph building and traversal."""

    fan_out: FanOutPolicy = FanOutPolicy.ALL
    cycle_scope: CycleScope = CycleScope.PATH_LOCAL
    output_format: OutputFormat = OutputFormat.TEXT
    dispatch_edges: bool = True
    max_visits: Optional[int] = DEFAULT_MAX_VISITS
    entry_methods: tuple[str, ...] = ("main",)

    @property
    def path_local(self) -> bool:
        return self.cycle_scope == CycleScope.PATH_LOCAL

    def budget_exceeded(self, visits: int) -> bool:
        return self.max_visits is not None and visits > self.max_visits
