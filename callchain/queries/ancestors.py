"""Transitive ancestor set query."""

from collections import deque

from ..models import AncestorsResult, MethodSignature
from .base import Query


class AncestorsQuery(Query[AncestorsResult]):
    """Collect every signature from which the target is reachable.

    Backward BFS with one permanent visited set, so each node is reported
    once. The target itself is not pre-seeded: it only appears in the result
    when it can reach itself.
    """

    def execute(self, target: MethodSignature) -> AncestorsResult:
        result = AncestorsResult(target=target)
        if target not in self.graph:
            return result

        visited: set[MethodSignature] = set()
        queue: deque[MethodSignature] = deque([target])

        while queue:
            current = queue.popleft()
            for caller in sorted(self.graph.callers(current)):
                if caller in visited:
                    continue
                if not self._tick():
                    result.truncated = True
                    return result
                visited.add(caller)
                result.ancestors.append(caller)
                queue.append(caller)

        return result
