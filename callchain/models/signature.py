"""Method signature model."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, order=True)
class MethodSignature:
    """Canonical identity of a method.

    The sole key of every graph, map and result in the package. Parameter
    types are stored fully qualified where the analyzer could resolve them
    (e.g. ``java.lang.String``), primitives as-is, generics erased.
    """

    package: str
    type_name: str  # dotted path inside the package: "Outer.Inner"
    name: str
    parameters: tuple[str, ...] = ()

    @property
    def owner(self) -> str:
        """Qualified name of the enclosing type."""
        if self.package:
            return f"{self.package}.{self.type_name}"
        return self.type_name

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def qualified(self) -> str:
        """Return ``package.Type.name(p1, p2)``."""
        return f"{self.owner}.{self.name}({', '.join(self.parameters)})"

    @property
    def short(self) -> str:
        """Return ``Type.name(p1, p2)`` with simple parameter names."""
        params = ", ".join(p.rsplit(".", 1)[-1] for p in self.parameters)
        return f"{self.type_name}.{self.name}({params})"

    def matches(self, other: "MethodSignature") -> bool:
        """Same name, arity and pairwise-equal parameter types (owner ignored)."""
        return self.name == other.name and self.parameters == other.parameters

    def in_scope(self, prefix: str) -> bool:
        """Whether the enclosing type's qualified name starts with ``prefix``."""
        return not prefix or self.owner.startswith(prefix)

    def __str__(self) -> str:
        return self.qualified

    @classmethod
    def parse(cls, text: str) -> "MethodSignature":
        """Parse the ``package.Type.name(p1, p2)`` form.

        Package segments are the leading lowercase-initial segments, the
        rest of the owner is the type path.

        Raises:
            ValueError: If the text has no method name or parenthesis.
        """
        text = text.strip()
        open_idx = text.find("(")
        if open_idx <= 0 or not text.endswith(")"):
            raise ValueError(f"Not a method signature: {text!r}")

        head = text[:open_idx]
        if "." not in head:
            raise ValueError(f"Signature has no enclosing type: {text!r}")
        owner, name = head.rsplit(".", 1)

        segments = owner.split(".")
        split_at = _first_type_segment(segments)
        package = ".".join(segments[:split_at])
        type_name = ".".join(segments[split_at:])

        return cls(
            package=package,
            type_name=type_name,
            name=name,
            parameters=tuple(_split_parameters(text[open_idx + 1:-1])),
        )


def _first_type_segment(segments: list[str]) -> int:
    for i, segment in enumerate(segments):
        if segment[:1].isupper():
            return i
    # No capitalized segment: treat the last one as the type
    return len(segments) - 1


def _split_parameters(params: str) -> list[str]:
    """Split a parameter list on top-level commas."""
    result: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in params:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        if ch == "," and depth == 0:
            result.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tail = "".join(current).strip()
    if tail:
        result.append(tail)
    return result


def method_name_of(signature: Optional[MethodSignature]) -> str:
    """Return the bare method name, or ``ROOT`` for the synthetic tree root."""
    return signature.name if signature is not None else "ROOT"
