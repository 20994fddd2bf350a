"""Plain-text caller chain report."""

from ..models.output import AnnotatedMethod, ChainsOutput

CHAIN_HEADER = "=== Complete Caller Chain ==="
CHAIN_FOOTER = "============================="
SOURCE_UNAVAILABLE = "(source not available)"


def _method_section(method: AnnotatedMethod) -> list[str]:
    lines = ["", f"--- {method.signature.qualified} ---"]
    if method.comments:
        lines.append(method.comments)
    lines.append(method.source if method.available else SOURCE_UNAVAILABLE)
    return lines


def format_chain(chain: list[AnnotatedMethod]) -> str:
    """Render one chain, furthest ancestor first and target last."""
    lines = [CHAIN_HEADER]
    for method in chain:
        lines.extend(_method_section(method))
    lines.append(CHAIN_FOOTER)
    return "\n".join(lines)


def format_chain_report(output: ChainsOutput) -> str:
    """Render every chain of the report, separated by blank lines."""
    return "\n\n".join(format_chain(chain) for chain in output.chains)
