"""Main CLI application."""

import dataclasses
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

import msgspec
import typer
from rich.console import Console
from rich.logging import RichHandler

from .analyzer import AnalysisSnapshot, JavaSourceAnalyzer
from .config import AnalysisConfig, load_config
from .errors import CallChainError, InvalidArgumentsError
from .graph import AnalysisIndex, dump_snapshot, load_snapshot
from .models.output import AncestorsOutput, ChainsOutput, TreeOutput
from .output import print_ancestors, print_chains, print_error, print_index_summary, print_tree
from .policy import CycleScope, FanOutPolicy, OutputFormat
from .queries import AncestorsQuery, CallerChainsQuery, CallTreeQuery, LocateQuery

app = typer.Typer(
    name="callchain",
    help="Trace Java method call chains back to their entry points",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

UNEXPECTED_EXIT_CODE = 100


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@contextmanager
def _request(query: str, as_json: bool):
    """Map request failures to their exit codes."""
    try:
        yield
    except typer.Exit:
        raise
    except CallChainError as e:
        print_error(str(e), query, as_json)
        raise typer.Exit(e.exit_code)
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        print_error(f"Unexpected error: {e}", query, as_json)
        raise typer.Exit(UNEXPECTED_EXIT_CODE)


def _parse_line(line: str) -> int:
    try:
        number = int(line)
    except ValueError:
        raise InvalidArgumentsError(f"Line number must be an integer, got {line!r}")
    if number < 1:
        raise InvalidArgumentsError(f"Line number must be positive, got {number}")
    return number


def _resolve_config(
    config_path: Optional[Path],
    scope: Optional[str],
    fan_out: Optional[FanOutPolicy],
    cycle_scope: Optional[CycleScope],
    no_dispatch_edges: bool,
    max_visits: Optional[int],
    entry_methods: Optional[list[str]],
    output_format: Optional[OutputFormat] = None,
) -> AnalysisConfig:
    if config_path is not None and not config_path.exists():
        raise InvalidArgumentsError(f"Config file not found: {config_path}")
    if max_visits is not None and max_visits < 1:
        raise InvalidArgumentsError(f"--max-visits must be positive, got {max_visits}")
    return load_config(config_path).override(
        scope=scope,
        fan_out=fan_out,
        cycle_scope=cycle_scope,
        output_format=output_format,
        dispatch_edges=False if no_dispatch_edges else None,
        max_visits=max_visits,
        entry_methods=tuple(entry_methods) if entry_methods else None,
    )


def _load_snapshot(root: Path, config: AnalysisConfig) -> AnalysisSnapshot:
    """Analyze a source directory, or load a previously written snapshot."""
    if not root.exists():
        raise InvalidArgumentsError(f"Source root not found: {root}")

    if root.is_file():
        if root.suffix != ".json":
            raise InvalidArgumentsError(f"Expected a source directory or snapshot .json file: {root}")
        try:
            snapshot = load_snapshot(root)
        except msgspec.DecodeError as e:
            raise InvalidArgumentsError(f"Invalid snapshot file {root}: {e}") from e
        if config.scope and config.scope != snapshot.scope:
            snapshot = dataclasses.replace(snapshot, scope=config.scope)
        return snapshot

    analyzer = JavaSourceAnalyzer(scope=config.scope, exclude=config.exclude, encoding=config.encoding)
    return analyzer.analyze(root)


# =============================================================================
# Shared options
# =============================================================================

def _config_option():
    return typer.Option(None, "--config", "-c", help="Path to config JSON")


def _fan_out_option():
    return typer.Option(None, "--fan-out", help="Interface call expansion: all or first-only")


def _no_dispatch_option():
    return typer.Option(
        False,
        "--no-dispatch-edges",
        help="Don't link interface methods to their implementations (drops the interface-hop chains)",
    )


def _max_visits_option():
    return typer.Option(None, "--max-visits", help="Node visit budget per traversal")


def _json_option():
    return typer.Option(False, "--json", "-j", help="Output as JSON")


def _verbose_option():
    return typer.Option(False, "--verbose", "-v", help="Show debug logging")


# =============================================================================
# Query Commands
# =============================================================================


@app.command()
def trace(
    class_name: str = typer.Argument(..., metavar="CLASS", help="Fully qualified class name"),
    line: str = typer.Argument(..., help="1-based line inside the target method"),
    root: Path = typer.Argument(..., help="Source directory or snapshot JSON"),
    scope: Optional[str] = typer.Argument(None, help="Package prefix to restrict the analysis"),
    output_format: Optional[OutputFormat] = typer.Option(
        None, "--format", "-f", help="text: caller chains, tree: descendant tree"
    ),
    config_path: Optional[Path] = _config_option(),
    fan_out: Optional[FanOutPolicy] = _fan_out_option(),
    cycle_scope: Optional[CycleScope] = typer.Option(
        None, "--cycle-scope", help="Cycle tracking: path-local or global"
    ),
    no_dispatch_edges: bool = _no_dispatch_option(),
    max_visits: Optional[int] = _max_visits_option(),
    entry_method: Optional[List[str]] = typer.Option(
        None, "--entry-method", help="Program-start method name (repeatable, default: main)"
    ),
    json_output: bool = _json_option(),
    verbose: bool = _verbose_option(),
):
    """Print every caller chain (or the entry-point tree) leading to a method.

    The target is the method in CLASS whose declaration contains LINE.

    A call through an interface links the caller to every implementation
    and, with dispatch edges on, also links the interface method to them.
    Each such call therefore shows up twice: once through the interface
    method and once straight to the implementation. Pass
    --no-dispatch-edges to keep only the direct chains.

    Examples:
        callchain trace com.example.Service 42 src/main/java
        callchain trace com.example.Service 42 src/main/java com.example --format tree --json
    """
    _setup_logging(verbose)
    with _request(f"{class_name}:{line}", json_output):
        config = _resolve_config(
            config_path, scope, fan_out, cycle_scope, no_dispatch_edges,
            max_visits, entry_method, output_format,
        )
        line_number = _parse_line(line)
        index = AnalysisIndex(_load_snapshot(root, config), config.to_policy())
        target = LocateQuery(index).execute(class_name, line_number).signature

        if config.output_format == OutputFormat.TREE:
            result = CallTreeQuery(index).execute(target)
            print_tree(TreeOutput.from_result(result, index), as_json=json_output)
        else:
            result = CallerChainsQuery(index).execute(target)
            print_chains(ChainsOutput.from_result(result, index), as_json=json_output)


@app.command()
def ancestors(
    class_name: str = typer.Argument(..., metavar="CLASS", help="Fully qualified class name"),
    line: str = typer.Argument(..., help="1-based line inside the target method"),
    root: Path = typer.Argument(..., help="Source directory or snapshot JSON"),
    scope: Optional[str] = typer.Argument(None, help="Package prefix to restrict the analysis"),
    config_path: Optional[Path] = _config_option(),
    fan_out: Optional[FanOutPolicy] = _fan_out_option(),
    no_dispatch_edges: bool = _no_dispatch_option(),
    max_visits: Optional[int] = _max_visits_option(),
    json_output: bool = _json_option(),
    verbose: bool = _verbose_option(),
):
    """List every method from which the target method can be reached."""
    _setup_logging(verbose)
    with _request(f"{class_name}:{line}", json_output):
        config = _resolve_config(
            config_path, scope, fan_out, None, no_dispatch_edges, max_visits, None,
        )
        line_number = _parse_line(line)
        index = AnalysisIndex(_load_snapshot(root, config), config.to_policy())
        target = LocateQuery(index).execute(class_name, line_number).signature

        result = AncestorsQuery(index).execute(target)
        print_ancestors(AncestorsOutput.from_result(result, index), as_json=json_output)


@app.command("index")
def index_cmd(
    root: Path = typer.Argument(..., help="Source directory"),
    scope: Optional[str] = typer.Argument(None, help="Package prefix to restrict the analysis"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the snapshot JSON here"),
    config_path: Optional[Path] = _config_option(),
    json_output: bool = _json_option(),
    verbose: bool = _verbose_option(),
):
    """Analyze a source tree and summarize (or save) what was found."""
    _setup_logging(verbose)
    with _request(str(root), json_output):
        config = _resolve_config(config_path, scope, None, None, False, None, None)
        if root.is_file():
            raise InvalidArgumentsError(f"Source root must be a directory: {root}")
        index = AnalysisIndex(_load_snapshot(root, config), config.to_policy())
        print_index_summary(index, as_json=json_output)

        if output is not None:
            dump_snapshot(index.snapshot, output)
            if not json_output:
                console.print(f"[green]Snapshot written to {output}[/green]")


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
