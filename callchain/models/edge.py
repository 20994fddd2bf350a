"""Call edge model."""

from dataclasses import dataclass, field
from typing import Optional

from .signature import MethodSignature


@dataclass(frozen=True)
class CallEdge:
    """A resolved call from one method body to another."""

    caller: MethodSignature
    callee: MethodSignature
    line: Optional[int] = field(default=None, compare=False)  # 1-based call site
