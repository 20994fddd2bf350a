"""Ordered caller chain enumeration."""

from dataclasses import dataclass
from typing import Iterator

from ..models import ChainPath, ChainsResult, MethodSignature
from .base import Query


@dataclass
class _Frame:
    node: MethodSignature
    path: tuple[MethodSignature, ...]
    on_path: frozenset[MethodSignature]
    callers: Iterator[MethodSignature]


class CallerChainsQuery(Query[ChainsResult]):
    """Enumerate every backward path from the target to a terminal ancestor.

    A path ends where the current method has no callers, or where all of its
    callers are already on the path (the path closed a cycle).

    With a path-local cycle scope each frame owns its path set, so a method
    may appear in several sibling chains. With a global scope one visited
    set is shared by the whole traversal and a method is expanded at most
    once, which suppresses later sibling chains through it.
    """

    def execute(self, target: MethodSignature) -> ChainsResult:
        result = ChainsResult(target=target)
        if target not in self.graph:
            return result

        path_local = self.policy.path_local
        visited: set[MethodSignature] = {target}

        root = self._open(target, (target,), frozenset((target,)), result)
        stack: list[_Frame] = [root] if root else []

        while stack:
            frame = stack[-1]
            caller = next(
                (
                    c for c in frame.callers
                    if c not in frame.on_path and (path_local or c not in visited)
                ),
                None,
            )
            if caller is None:
                stack.pop()
                continue

            if not self._tick():
                result.truncated = True
                break
            if not path_local:
                visited.add(caller)

            child = self._open(
                caller, frame.path + (caller,), frame.on_path | {caller}, result
            )
            if child:
                stack.append(child)

        return result

    def _open(
        self,
        node: MethodSignature,
        path: tuple[MethodSignature, ...],
        on_path: frozenset[MethodSignature],
        result: ChainsResult,
    ):
        """Emit the chain if ``node`` terminates it, else return a frame to expand."""
        callers = sorted(self.graph.callers(node))
        if all(c in on_path for c in callers):
            result.chains.append(ChainPath(path))
            return None
        return _Frame(node=node, path=path, on_path=on_path, callers=iter(callers))
