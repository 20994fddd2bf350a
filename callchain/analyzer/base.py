"""Source analyzer contract."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from ..models import CallEdge, MethodRecord, MethodSignature, TypeDecl


@dataclass(frozen=True)
class AnalysisSnapshot:
    """Immutable output of a source analyzer.

    The call graph built from a snapshot under-approximates the program
    wherever the analyzer could not resolve a call: such calls simply have
    no edge here.
    """

    root: str
    scope: str
    records: dict[MethodSignature, MethodRecord] = field(default_factory=dict)
    edges: list[CallEdge] = field(default_factory=list)
    types: dict[str, TypeDecl] = field(default_factory=dict)
    files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)


class SourceAnalyzer(Protocol):
    """Turns a source tree into an AnalysisSnapshot.

    Implementations skip calls they cannot resolve and files they cannot
    read or parse (logging them), and raise NoSourceFilesError when the
    root holds no source files at all.
    """

    scope: str

    def analyze(self, root: Path) -> AnalysisSnapshot:
        ...
