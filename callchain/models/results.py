"""Query result types."""

from dataclasses import dataclass, field
from typing import Iterator, Optional

from .record import MethodRecord
from .signature import MethodSignature


@dataclass
class LocateResult:
    """Result of locating a method declaration by class and line."""

    class_name: str
    line: int
    record: Optional[MethodRecord] = None

    @property
    def found(self) -> bool:
        return self.record is not None

    @property
    def signature(self) -> Optional[MethodSignature]:
        return self.record.signature if self.record else None


@dataclass
class AncestorsResult:
    """All signatures that can reach the target."""

    target: MethodSignature
    ancestors: list[MethodSignature] = field(default_factory=list)
    truncated: bool = False

    def __contains__(self, signature: MethodSignature) -> bool:
        return signature in self.ancestors


@dataclass(frozen=True)
class ChainPath:
    """One ordered caller chain.

    ``methods`` starts at the target and ends at the terminal ancestor.
    """

    methods: tuple[MethodSignature, ...]

    @property
    def target(self) -> MethodSignature:
        return self.methods[0]

    @property
    def terminal(self) -> MethodSignature:
        return self.methods[-1]

    @property
    def top_down(self) -> tuple[MethodSignature, ...]:
        """Furthest ancestor first, target last."""
        return tuple(reversed(self.methods))

    def __len__(self) -> int:
        return len(self.methods)

    def __iter__(self) -> Iterator[MethodSignature]:
        return iter(self.methods)


@dataclass
class ChainsResult:
    """All complete caller chains for a target."""

    target: MethodSignature
    chains: list[ChainPath] = field(default_factory=list)
    truncated: bool = False


@dataclass
class CallTreeNode:
    """Descendant tree node; ``signature`` is None for the synthetic root."""

    signature: Optional[MethodSignature]
    children: list["CallTreeNode"] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.signature is None

    def walk(self) -> Iterator["CallTreeNode"]:
        """Yield this node and all descendants, pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass
class CallTreeResult:
    """Pruned descendant tree from entry points down to the target."""

    target: MethodSignature
    root: CallTreeNode = field(default_factory=lambda: CallTreeNode(signature=None))
    entry_points: list[MethodSignature] = field(default_factory=list)
    fallback_used: bool = False
    truncated: bool = False

    @property
    def tree_root(self) -> CallTreeNode:
        """The single entry node when there is exactly one, else the synthetic root."""
        if len(self.root.children) == 1:
            return self.root.children[0]
        return self.root

    def signatures(self) -> list[MethodSignature]:
        """Unique signatures in the tree, first-seen order."""
        seen: dict[MethodSignature, None] = {}
        for node in self.root.walk():
            if node.signature is not None:
                seen.setdefault(node.signature, None)
        return list(seen)
