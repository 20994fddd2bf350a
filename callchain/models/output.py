"""Report models assembled from query results.

The output model is the canonical intermediate representation between
internal query results and rendered output. Every signature is annotated
with its declaration metadata from the index; signatures without a record
(external or unresolved methods) get an explicit unavailable marker
instead of failing.

Usage:
    output = ChainsOutput.from_result(result, index)
    json_output = json.dumps(output.to_dict(), indent=2)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .results import AncestorsResult, CallTreeNode, CallTreeResult, ChainsResult
from .signature import MethodSignature, method_name_of

if TYPE_CHECKING:
    from ..graph import AnalysisIndex

UNKNOWN_FILE = "unknown"
UNAVAILABLE_BODY = "// Method body not available (external or unresolved)"
ABSTRACT_BODY = "// Abstract method or interface method - no body"


@dataclass
class AnnotatedMethod:
    """A signature together with what is known about its declaration."""

    signature: MethodSignature
    file: str = UNKNOWN_FILE
    line: int = 0
    source: Optional[str] = None
    body: str = UNAVAILABLE_BODY
    comments: str = ""

    @property
    def available(self) -> bool:
        return self.source is not None

    @property
    def name(self) -> str:
        return self.signature.name

    @classmethod
    def from_signature(cls, signature: MethodSignature, index: AnalysisIndex) -> AnnotatedMethod:
        record = index.get_record(signature)
        if record is None:
            return cls(signature=signature)
        return cls(
            signature=signature,
            file=record.file,
            line=record.start_line,
            source=record.source,
            body=record.body if record.body is not None else ABSTRACT_BODY,
            comments=record.comments,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "signature": self.signature.qualified,
            "file": self.file,
            "line": self.line,
            "body": self.body,
            "comments": self.comments,
        }

    def to_method_entry(self) -> dict:
        """Entry of the tree report's ``methods`` array."""
        return {
            "name": self.name,
            "signature": self.signature.qualified,
            "body": self.body,
            "comments": self.comments,
        }


class _Annotator:
    """Caches annotations so a signature is looked up once per report."""

    def __init__(self, index: AnalysisIndex):
        self.index = index
        self._cache: dict[MethodSignature, AnnotatedMethod] = {}

    def __call__(self, signature: MethodSignature) -> AnnotatedMethod:
        annotated = self._cache.get(signature)
        if annotated is None:
            annotated = AnnotatedMethod.from_signature(signature, self.index)
            self._cache[signature] = annotated
        return annotated


@dataclass
class AncestorsOutput:
    """Transitive ancestor report."""

    target: AnnotatedMethod
    ancestors: list[AnnotatedMethod] = field(default_factory=list)
    truncated: bool = False

    @classmethod
    def from_result(cls, result: AncestorsResult, index: AnalysisIndex) -> AncestorsOutput:
        annotate = _Annotator(index)
        return cls(
            target=annotate(result.target),
            ancestors=[annotate(sig) for sig in result.ancestors],
            truncated=result.truncated,
        )

    def to_dict(self) -> dict:
        d: dict = {
            "target": self.target.to_dict(),
            "ancestors": [a.to_dict() for a in self.ancestors],
        }
        if self.truncated:
            d["truncated"] = True
        return d


@dataclass
class ChainsOutput:
    """Caller chain report; each chain is ordered furthest ancestor first."""

    target: AnnotatedMethod
    chains: list[list[AnnotatedMethod]] = field(default_factory=list)
    truncated: bool = False

    @classmethod
    def from_result(cls, result: ChainsResult, index: AnalysisIndex) -> ChainsOutput:
        annotate = _Annotator(index)
        return cls(
            target=annotate(result.target),
            chains=[[annotate(sig) for sig in chain.top_down] for chain in result.chains],
            truncated=result.truncated,
        )

    def to_dict(self) -> dict:
        d: dict = {
            "target": self.target.to_dict(),
            "chains": [[m.to_dict() for m in chain] for chain in self.chains],
        }
        if self.truncated:
            d["truncated"] = True
        return d


@dataclass
class TreeOutputNode:
    """One node of the tree report; the synthetic root has no signature."""

    method: str
    file: str
    line: int
    signature: Optional[MethodSignature] = None
    children: list[TreeOutputNode] = field(default_factory=list)

    def to_dict(self) -> dict:
        # Iterative so deep trees don't hit the recursion limit
        root: dict = {}
        stack: list[tuple[TreeOutputNode, dict]] = [(self, root)]
        while stack:
            node, out = stack.pop()
            out.update(method=node.method, file=node.file, line=node.line, children=[])
            for child in node.children:
                child_out: dict = {}
                out["children"].append(child_out)
                stack.append((child, child_out))
        return root


@dataclass
class TreeOutput:
    """Descendant tree report plus the distinct methods it mentions."""

    target: AnnotatedMethod
    dag_tree: TreeOutputNode
    methods: list[AnnotatedMethod] = field(default_factory=list)
    entry_points: list[MethodSignature] = field(default_factory=list)
    fallback_used: bool = False
    truncated: bool = False

    @classmethod
    def from_result(cls, result: CallTreeResult, index: AnalysisIndex) -> TreeOutput:
        annotate = _Annotator(index)

        def convert(node: CallTreeNode) -> TreeOutputNode:
            if node.signature is None:
                return TreeOutputNode(method=method_name_of(None), file=UNKNOWN_FILE, line=0)
            annotated = annotate(node.signature)
            return TreeOutputNode(
                method=annotated.name,
                file=annotated.file,
                line=annotated.line,
                signature=node.signature,
            )

        source_root = result.tree_root
        out_root = convert(source_root)
        stack = [(source_root, out_root)]
        while stack:
            node, out = stack.pop()
            for child in node.children:
                child_out = convert(child)
                out.children.append(child_out)
                stack.append((child, child_out))

        return cls(
            target=annotate(result.target),
            dag_tree=out_root,
            methods=[annotate(sig) for sig in result.signatures()],
            entry_points=list(result.entry_points),
            fallback_used=result.fallback_used,
            truncated=result.truncated,
        )

    def to_dict(self) -> dict:
        d: dict = {
            "dag_tree": self.dag_tree.to_dict(),
            "methods": [m.to_method_entry() for m in self.methods],
        }
        if self.fallback_used:
            d["fallback_used"] = True
        if self.truncated:
            d["truncated"] = True
        return d
