"""Graph module: implementation mapping, call graph and analysis index."""

from .builder import CallGraph, build_call_graph
from .implementations import ImplementationMap, build_implementation_map
from .index import AnalysisIndex
from .loader import dump_snapshot, load_snapshot

__all__ = [
    "CallGraph",
    "build_call_graph",
    "ImplementationMap",
    "build_implementation_map",
    "AnalysisIndex",
    "dump_snapshot",
    "load_snapshot",
]
