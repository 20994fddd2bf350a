"""Declaration metadata models."""

from dataclasses import dataclass, field
from typing import Optional

from .signature import MethodSignature


@dataclass(frozen=True)
class MethodRecord:
    """Declaration metadata for one method, keyed by its signature."""

    signature: MethodSignature
    file: str
    start_line: int  # 1-based
    end_line: int  # 1-based, inclusive
    source: str = ""
    body: Optional[str] = None  # None for abstract/interface methods
    comments: str = ""
    return_type: Optional[str] = None
    resolved: bool = True  # every parameter type resolved to a known type

    @property
    def location_str(self) -> str:
        """Return file:line string."""
        return f"{self.file}:{self.start_line}"

    def contains_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


@dataclass(frozen=True)
class TypeDecl:
    """A declared class, interface, enum or record."""

    name: str  # qualified
    kind: str  # "class", "interface", "enum", "record"
    file: str
    superclass: Optional[str] = None
    # Implemented interfaces; for interfaces, the extended ones
    interfaces: tuple[str, ...] = ()
    methods: tuple[MethodSignature, ...] = field(default_factory=tuple)
    is_abstract: bool = False

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"
