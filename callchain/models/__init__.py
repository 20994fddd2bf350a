"""Data models for callchain."""

from .signature import MethodSignature
from .record import MethodRecord, TypeDecl
from .edge import CallEdge
from .results import (
    LocateResult,
    AncestorsResult,
    ChainPath,
    ChainsResult,
    CallTreeNode,
    CallTreeResult,
)

__all__ = [
    "MethodSignature",
    "MethodRecord",
    "TypeDecl",
    "CallEdge",
    "LocateResult",
    "AncestorsResult",
    "ChainPath",
    "ChainsResult",
    "CallTreeNode",
    "CallTreeResult",
]
