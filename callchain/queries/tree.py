"""Descendant call tree from entry points down to a target."""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from ..models import CallTreeNode, CallTreeResult, MethodSignature
from .base import Query

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    node: MethodSignature
    on_path: frozenset[MethodSignature]
    callees: Iterator[MethodSignature]
    children: list[CallTreeNode] = field(default_factory=list)


class CallTreeQuery(Query[CallTreeResult]):
    """Build the pruned forward tree of paths from entry points to the target.

    A node is kept only if it is the target or has a kept child; the target
    is always a leaf. Entry points are graph roots plus methods whose name is
    a configured program-start name. If none of them reaches the target,
    every graph node is tried in sorted order and the first one that does is
    used instead.
    """

    def execute(self, target: MethodSignature) -> CallTreeResult:
        result = CallTreeResult(target=target)
        self._exhausted = False
        if target not in self.graph:
            return result

        visited: set[MethodSignature] = set()
        entries = self.index.entry_points()

        for entry in entries:
            subtree = self._reach(entry, target, visited)
            if subtree is not None:
                result.root.children.append(subtree)
                result.entry_points.append(entry)
            if self._exhausted:
                result.truncated = True
                return result

        if result.root.children:
            return result

        tried = set(entries)
        for candidate in sorted(self.graph.nodes()):
            if candidate == target or candidate in tried:
                continue
            subtree = self._reach(candidate, target, set())
            if self._exhausted:
                result.truncated = True
                return result
            if subtree is not None:
                logger.info(f"No entry point reaches {target}; using {candidate} instead")
                result.root.children.append(subtree)
                result.entry_points.append(candidate)
                result.fallback_used = True
                break

        return result

    def _reach(
        self,
        entry: MethodSignature,
        target: MethodSignature,
        visited: set[MethodSignature],
    ) -> Optional[CallTreeNode]:
        """Post-order DFS from ``entry``; returns the pruned subtree or None."""
        if entry == target:
            return CallTreeNode(signature=target)

        path_local = self.policy.path_local
        if not path_local:
            if entry in visited:
                return None
            visited.add(entry)

        stack = [_Frame(entry, frozenset((entry,)), iter(sorted(self.graph.callees(entry))))]
        kept: Optional[CallTreeNode] = None

        while stack:
            frame = stack[-1]
            callee = next(
                (
                    c for c in frame.callees
                    if c not in frame.on_path and (path_local or c not in visited)
                ),
                None,
            )

            if callee is None:
                stack.pop()
                node = (
                    CallTreeNode(signature=frame.node, children=frame.children)
                    if frame.children
                    else None
                )
                if stack:
                    if node is not None:
                        stack[-1].children.append(node)
                else:
                    kept = node
                continue

            if not self._tick():
                self._exhausted = True
                return None

            if callee == target:
                frame.children.append(CallTreeNode(signature=target))
                continue

            if not path_local:
                visited.add(callee)
            stack.append(
                _Frame(callee, frame.on_path | {callee}, iter(sorted(self.graph.callees(callee))))
            )

        return kept
