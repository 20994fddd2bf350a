"""Rich tree rendering for the descendant call tree."""

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from ..models.output import TreeOutput, TreeOutputNode


def _label(node: TreeOutputNode, target: bool) -> str:
    if node.signature is None:
        return "[bold]ROOT[/bold]"
    text = escape(node.signature.qualified)
    if target:
        text = f"[bold green]{text}[/bold green]"
    return f"{text} [dim]({escape(node.file)}:{node.line})[/dim]"


def build_rich_tree(output: TreeOutput) -> Tree:
    """Convert a TreeOutput into a rich Tree without recursion."""
    target = output.target.signature
    root = Tree(_label(output.dag_tree, output.dag_tree.signature == target))
    stack = [(output.dag_tree, root)]
    while stack:
        node, branch = stack.pop()
        for child in node.children:
            child_branch = branch.add(_label(child, child.signature == target))
            stack.append((child, child_branch))
    return root


def print_call_tree(output: TreeOutput, console: Console):
    """Print the descendant tree.

    Args:
        output: Assembled tree report.
        console: Rich console for output.
    """
    if not output.dag_tree.children and output.dag_tree.signature is None:
        console.print(f"[dim]No entry point reaches {escape(output.target.signature.qualified)}[/dim]")
        return

    console.print(build_rich_tree(output))
    if output.fallback_used:
        console.print("[yellow]No program entry point reaches the target; "
                      "showing the first method that does.[/yellow]")
    if output.truncated:
        console.print("[yellow]Traversal budget exhausted; tree is truncated.[/yellow]")
