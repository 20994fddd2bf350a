"""Output formatting module."""

from .json_formatter import print_json, to_json
from .text import format_chain, format_chain_report
from .tree import build_rich_tree, print_call_tree
from .console import (
    console,
    print_ancestors,
    print_chains,
    print_tree,
    print_index_summary,
    print_error,
)

__all__ = [
    "print_json",
    "to_json",
    "format_chain",
    "format_chain_report",
    "build_rich_tree",
    "print_call_tree",
    "console",
    "print_ancestors",
    "print_chains",
    "print_tree",
    "print_index_summary",
    "print_error",
]
