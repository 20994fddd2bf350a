"""Analysis index: the immutable per-request context."""

import logging
from typing import Optional

from ..analyzer.base import AnalysisSnapshot
from ..models import MethodRecord, MethodSignature
from ..policy import TraversalPolicy
from .builder import CallGraph, build_call_graph
from .implementations import ImplementationMap, build_implementation_map

logger = logging.getLogger(__name__)


class AnalysisIndex:
    """Snapshot, implementation map and call graph for one analysis request.

    Built once from a snapshot and a policy, then only read. Queries and
    the report assembler receive it by reference instead of consulting
    global lookup tables.
    """

    def __init__(self, snapshot: AnalysisSnapshot, policy: Optional[TraversalPolicy] = None):
        """Initialize the index.

        Args:
            snapshot: Source analyzer output.
            policy: Traversal policy; controls fan-out and dispatch edges.
        """
        self.snapshot = snapshot
        self.policy = policy or TraversalPolicy()
        self.scope = snapshot.scope
        self._build()

    def _build(self):
        self.implementations: ImplementationMap = build_implementation_map(
            self.snapshot.types, scope=self.scope
        )
        self.graph: CallGraph = build_call_graph(
            self.snapshot.edges,
            self.implementations,
            scope=self.scope,
            fan_out=self.policy.fan_out,
            dispatch_edges=self.policy.dispatch_edges,
        )
        logger.info(
            f"Indexed {len(self.snapshot.records)} methods, "
            f"{len(self.implementations)} interface methods, "
            f"{self.graph.edge_count} call edges"
        )

    @property
    def records(self) -> dict[MethodSignature, MethodRecord]:
        return self.snapshot.records

    def get_record(self, signature: MethodSignature) -> Optional[MethodRecord]:
        return self.snapshot.records.get(signature)

    def is_entry_method(self, signature: MethodSignature) -> bool:
        """Whether the signature matches a designated program-start method."""
        return signature.name in self.policy.entry_methods

    def entry_points(self) -> list[MethodSignature]:
        """Graph roots plus designated program-start methods, sorted."""
        return self.graph.entry_points(self.is_entry_method)

    def find_method_by_line(self, class_name: str, line: int) -> Optional[MethodRecord]:
        """Find the method declared in ``class_name`` whose range contains ``line``.

        The innermost declaration wins when ranges nest. Nested classes match
        either by qualified name or by ``package.SimpleName``.
        """
        candidates = [
            r for r in self.snapshot.records.values()
            if _owner_matches(r.signature, class_name) and r.contains_line(line)
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda r: (r.end_line - r.start_line, r.start_line))


def _owner_matches(signature: MethodSignature, class_name: str) -> bool:
    if signature.owner == class_name:
        return True
    simple = signature.type_name.rsplit(".", 1)[-1]
    short_owner = f"{signature.package}.{simple}" if signature.package else simple
    return short_owner == class_name
