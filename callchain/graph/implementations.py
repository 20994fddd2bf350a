"""Interface method -> concrete implementation mapping."""

import logging
from collections import deque
from typing import Mapping

from ..models import MethodSignature, TypeDecl

logger = logging.getLogger(__name__)


class ImplementationMap:
    """Maps an interface method signature to its concrete implementations.

    Implementations keep discovery order and never repeat, so "first only"
    fan-out is well defined.
    """

    def __init__(self):
        self._impls: dict[MethodSignature, list[MethodSignature]] = {}

    def add(self, abstract: MethodSignature, concrete: MethodSignature):
        impls = self._impls.setdefault(abstract, [])
        if concrete not in impls:
            impls.append(concrete)

    def get(self, abstract: MethodSignature) -> tuple[MethodSignature, ...]:
        return tuple(self._impls.get(abstract, ()))

    def interfaces_of(self, concrete: MethodSignature) -> list[MethodSignature]:
        """Interface methods that ``concrete`` implements."""
        return [a for a, impls in self._impls.items() if concrete in impls]

    def __contains__(self, abstract: MethodSignature) -> bool:
        return abstract in self._impls

    def __len__(self) -> int:
        return len(self._impls)


def _interface_closure(decl: TypeDecl, types: Mapping[str, TypeDecl]) -> list[TypeDecl]:
    """Interfaces ``decl`` implements, directly or through extended interfaces.

    Unresolvable interface names are skipped per occurrence.
    """
    result: list[TypeDecl] = []
    seen: set[str] = set()
    queue = deque(decl.interfaces)

    while queue:
        name = queue.popleft()
        if name in seen:
            continue
        seen.add(name)

        iface = types.get(name)
        if iface is None:
            logger.debug(f"Skipping unresolved interface {name} of {decl.name}")
            continue
        if not iface.is_interface:
            continue

        result.append(iface)
        queue.extend(iface.interfaces)

    return result


def build_implementation_map(
    types: Mapping[str, TypeDecl], scope: str = ""
) -> ImplementationMap:
    """Build the interface-to-implementation map from declared types.

    For every method of every non-interface type in scope, each implemented
    interface is scanned for a declared method with the same name and
    pairwise-equal parameter types. Only declared ``implements``
    relationships are used; there is no use-site narrowing.

    Args:
        types: Qualified type name -> declaration.
        scope: Qualified-name prefix of the types that participate.

    Returns:
        ImplementationMap in discovery order (types sorted by name).
    """
    impl_map = ImplementationMap()

    for name in sorted(types):
        decl = types[name]
        if decl.is_interface or not decl.interfaces:
            continue
        if scope and not decl.name.startswith(scope):
            continue

        interfaces = _interface_closure(decl, types)
        for method in decl.methods:
            for iface in interfaces:
                for candidate in iface.methods:
                    if candidate.matches(method):
                        impl_map.add(candidate, method)
                        break

    logger.debug(f"Implementation map: {len(impl_map)} interface methods")
    return impl_map
