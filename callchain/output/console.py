"""Console output formatters using Rich."""

from rich.console import Console
from rich.markup import escape

from ..graph import AnalysisIndex
from ..models.output import AncestorsOutput, ChainsOutput, TreeOutput
from .json_formatter import print_json
from .text import format_chain_report
from .tree import print_call_tree

console = Console()
err_console = Console(stderr=True)


def print_ancestors(output: AncestorsOutput, as_json: bool = False):
    """Print the transitive ancestor set."""
    if as_json:
        print_json(output.to_dict())
        return

    console.print(f"[bold]== ANCESTORS OF ==[/bold] {escape(output.target.signature.qualified)}")
    if not output.ancestors:
        console.print("[dim]None[/dim]")
    for method in output.ancestors:
        console.print(f"  {escape(method.signature.qualified)} [dim]({escape(method.file)}:{method.line})[/dim]")
    if output.truncated:
        console.print("[yellow]Traversal budget exhausted; list is truncated.[/yellow]")


def print_chains(output: ChainsOutput, as_json: bool = False):
    """Print caller chains as the textual chain report."""
    if as_json:
        print_json(output.to_dict())
        return

    if not output.chains:
        console.print("[dim]No caller chains found[/dim]")
        return
    # Method sources contain brackets; print them verbatim
    console.print(format_chain_report(output), markup=False, highlight=False, soft_wrap=True)
    if output.truncated:
        console.print("[yellow]Traversal budget exhausted; chains are truncated.[/yellow]")


def print_tree(output: TreeOutput, as_json: bool = False):
    """Print the descendant call tree."""
    if as_json:
        print_json(output.to_dict())
    else:
        print_call_tree(output, console)


def print_index_summary(index: AnalysisIndex, as_json: bool = False):
    """Print what the analyzer found."""
    snapshot = index.snapshot
    summary = {
        "root": snapshot.root,
        "scope": snapshot.scope,
        "files": len(snapshot.files),
        "skipped_files": list(snapshot.skipped_files),
        "types": len(snapshot.types),
        "methods": len(snapshot.records),
        "call_edges": len(snapshot.edges),
        "interface_methods": len(index.implementations),
        "graph_nodes": len(index.graph),
        "graph_edges": index.graph.edge_count,
    }
    if as_json:
        print_json(summary)
        return

    console.print(f"[bold]Analyzed[/bold] {escape(snapshot.root)}"
                  + (f" [dim](scope {escape(snapshot.scope)})[/dim]" if snapshot.scope else ""))
    console.print(f"  Files:        {summary['files']}")
    console.print(f"  Types:        {summary['types']}")
    console.print(f"  Methods:      {summary['methods']}")
    console.print(f"  Call edges:   {summary['call_edges']}")
    console.print(f"  Graph:        {summary['graph_nodes']} nodes, {summary['graph_edges']} edges")
    for path in snapshot.skipped_files:
        console.print(f"  [yellow]Skipped[/yellow] {escape(path)}")


def print_error(message: str, query: str = "", as_json: bool = False):
    """Report a request failure on the right stream."""
    if as_json:
        print_json({"error": message, "query": query})
    else:
        err_console.print(f"[red]Error:[/red] {escape(message)}")
