"""Call graph construction."""

import logging
from collections import defaultdict
from typing import Callable, Iterable, Optional

from ..models import CallEdge, MethodSignature
from ..policy import FanOutPolicy
from .implementations import ImplementationMap

logger = logging.getLogger(__name__)

_EMPTY: frozenset[MethodSignature] = frozenset()


class CallGraph:
    """Forward (caller -> callees) and reverse (callee -> callers) adjacency.

    Both maps are maintained together by ``add_edge`` so that
    ``callee in forward[caller]`` holds exactly when
    ``caller in reverse[callee]``.
    """

    def __init__(self):
        self.forward: dict[MethodSignature, set[MethodSignature]] = defaultdict(set)
        self.reverse: dict[MethodSignature, set[MethodSignature]] = defaultdict(set)

    def add_edge(self, caller: MethodSignature, callee: MethodSignature):
        """Insert caller -> callee; inserting twice is a no-op."""
        self.forward[caller].add(callee)
        self.reverse[callee].add(caller)

    def callees(self, signature: MethodSignature) -> frozenset[MethodSignature]:
        callees = self.forward.get(signature)
        return frozenset(callees) if callees else _EMPTY

    def callers(self, signature: MethodSignature) -> frozenset[MethodSignature]:
        callers = self.reverse.get(signature)
        return frozenset(callers) if callers else _EMPTY

    def nodes(self) -> set[MethodSignature]:
        return set(self.forward) | set(self.reverse)

    def edges(self) -> set[tuple[MethodSignature, MethodSignature]]:
        return {(caller, callee) for caller, callees in self.forward.items() for callee in callees}

    @property
    def edge_count(self) -> int:
        return sum(len(callees) for callees in self.forward.values())

    def roots(self) -> list[MethodSignature]:
        """Nodes with no callers, sorted."""
        return sorted(n for n in self.nodes() if not self.reverse.get(n))

    def entry_points(
        self, predicate: Optional[Callable[[MethodSignature], bool]] = None
    ) -> list[MethodSignature]:
        """Roots plus any node matching ``predicate``, sorted."""
        entries = set(self.roots())
        if predicate is not None:
            entries.update(n for n in self.nodes() if predicate(n))
        return sorted(entries)

    def __contains__(self, signature: MethodSignature) -> bool:
        return signature in self.forward or signature in self.reverse

    def __len__(self) -> int:
        return len(self.nodes())


def build_call_graph(
    edges: Iterable[CallEdge],
    implementations: ImplementationMap,
    scope: str = "",
    fan_out: FanOutPolicy = FanOutPolicy.ALL,
    dispatch_edges: bool = True,
) -> CallGraph:
    """Assemble the call graph from resolved edges.

    Each edge whose caller is in scope contributes the direct edge plus one
    edge per implementation of the callee (fan-out). With ``FIRST_ONLY``
    only the first discovered implementation is linked, which loses callers
    reached through the other implementations.

    With ``dispatch_edges`` the interface method is also linked to each
    implementation it fans out to, so it shows up as a caller of that
    implementation in backward traversals.

    Signatures outside ``scope`` are dropped. Edge order does not matter.
    """
    graph = CallGraph()

    for edge in edges:
        caller, callee = edge.caller, edge.callee
        if not caller.in_scope(scope):
            continue

        if callee.in_scope(scope):
            graph.add_edge(caller, callee)

        impls = implementations.get(callee)
        if fan_out == FanOutPolicy.FIRST_ONLY:
            impls = impls[:1]

        for impl in impls:
            if not impl.in_scope(scope):
                continue
            graph.add_edge(caller, impl)
            if dispatch_edges and callee.in_scope(scope):
                graph.add_edge(callee, impl)

    logger.debug(f"Call graph: {len(graph)} nodes, {graph.edge_count} edges")
    return graph
