"""CLI interface for oagraph using Typer framework."""

import json as jsonlib
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from oagraph import __description__, __version__
from oagraph.config import OagraphConfig, OutputFormat, TargetVersion, load_config, setup_logging
from oagraph.diagnostics import Diagnostic, DiagnosticSeverity
from oagraph.models import SpecVersion, Workspace
from oagraph.output import WriterSettings, render
from oagraph.parser import ReadResult, load_document
from oagraph.services import consolidate as consolidate_components

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="oagraph",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()
err_console = Console(stderr=True)

SEVERITY_COLORS = {
    DiagnosticSeverity.ERROR: "red",
    DiagnosticSeverity.WARNING: "yellow",
    DiagnosticSeverity.INFO: "blue",
}


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"oagraph version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """oagraph - Read, inspect and convert OpenAPI and Swagger documents."""


def _load(
    input_path: Path,
    config_path: Optional[Path],
    with_documents: Optional[List[Path]] = None,
) -> tuple[OagraphConfig, ReadResult]:
    """Load configuration and the input document, exiting on failure.

    The input and every ``--with`` document share one workspace, so external
    references between them resolve. Relative references are resolved
    against ``reader.baseUrl``, or the input file's directory when unset.
    """
    try:
        config = load_config(config_path)
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    setup_logging(config.logging.level)

    for path in [*(with_documents or []), input_path]:
        if not path.exists():
            err_console.print(f"[red]Error:[/red] Input file not found: {path}")
            raise typer.Exit(1)

    workspace = Workspace(base_url=config.reader.base_url or str(input_path.resolve().parent))
    try:
        for path in with_documents or []:
            loaded = load_document(path, config=config, workspace=workspace)
            _report(loaded.diagnostic, f"Read {path.name}")
        result = load_document(input_path, config=config, workspace=workspace)
    except (OSError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Error:[/red] Cannot read {escape(str(e))}")
        raise typer.Exit(1)
    return config, result


def _writer_settings(config: OagraphConfig, inline_local: bool, inline_external: bool) -> WriterSettings:
    settings = WriterSettings.from_config(config.writer)
    if inline_local:
        settings.inline_local_references = True
    if inline_external:
        settings.inline_external_references = True
    return settings


def _emit(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    err_console.print(f"[green]Wrote[/green] {output}")


def _report(diagnostic: Diagnostic, title: str) -> None:
    """Print a one-line summary of a diagnostic to stderr."""
    if not diagnostic.issues:
        return
    counts = diagnostic.get_counts()
    err_console.print(
        f"[dim]{title}: {counts['error']} errors, {counts['warning']} warnings, {counts['info']} info[/dim]"
    )


def _diagnostics_table(diagnostic: Diagnostic) -> Table:
    table = Table()
    table.add_column("Severity", style="white")
    table.add_column("Kind", style="cyan")
    table.add_column("Message", style="white")
    table.add_column("Location", style="dim")

    for issue in diagnostic.issues:
        color = SEVERITY_COLORS[issue.severity]
        table.add_row(
            f"[{color}]{issue.severity.value.upper()}[/{color}]",
            issue.kind.value,
            escape(issue.message),
            issue.pointer or "#/",
        )
    return table


@app.command()
def convert(
    input_path: Annotated[
        Path,
        typer.Argument(help="Path to a JSON or YAML document")
    ],
    to: Annotated[
        Optional[TargetVersion],
        typer.Option("--to", "-t", help="Target dialect: 2.0, 3.0, 3.1 (default: from config)")
    ] = None,
    format: Annotated[
        Optional[OutputFormat],
        typer.Option("--format", "-f", help="Output format: json, yaml (default: from config)")
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file (default: stdout)")
    ] = None,
    inline_local: Annotated[
        bool,
        typer.Option("--inline-local", help="Write local references inline")
    ] = False,
    inline_external: Annotated[
        bool,
        typer.Option("--inline-external", help="Write external references inline")
    ] = False,
    with_documents: Annotated[
        Optional[List[Path]],
        typer.Option("--with", "-w", help="Document that external references point into (repeatable)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .oagraph.json)")
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail when the reader reports errors")
    ] = False,
) -> None:
    """Convert a document to another dialect or format."""
    oagraph_config, result = _load(input_path, config, with_documents)
    _report(result.diagnostic, "Read")

    if strict and result.has_errors:
        for issue in result.diagnostic.errors:
            err_console.print(f"[red]Error:[/red] {escape(str(issue))}")
        raise typer.Exit(1)

    version = SpecVersion(to.value if to is not None else oagraph_config.writer.spec_version)
    format_name = format.value if format is not None else oagraph_config.writer.format
    settings = _writer_settings(oagraph_config, inline_local, inline_external)

    write_diagnostic = Diagnostic(specification_version=version.value)
    text = render(
        result.document,
        version,
        format_name,
        settings,
        indent=oagraph_config.writer.indent,
        diagnostic=write_diagnostic,
    )
    _report(write_diagnostic, "Write")
    logger.info(f"Converted {input_path} to {version.value} {format_name}")
    _emit(text, output)


@app.command()
def inspect(
    input_path: Annotated[
        Path,
        typer.Argument(help="Path to a JSON or YAML document")
    ],
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table, json (default: table)")
    ] = "table",
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .oagraph.json)")
    ] = None,
) -> None:
    """Show reader diagnostics and component counts for a document."""
    valid_formats = ["table", "json"]
    if format not in valid_formats:
        err_console.print(f"[red]Error:[/red] Invalid format '{format}'. Must be one of: {', '.join(valid_formats)}")
        raise typer.Exit(1)

    _, result = _load(input_path, config)
    document = result.document
    diagnostic = result.diagnostic
    components = document.components.counts()

    if format == "json":
        typer.echo(jsonlib.dumps({
            "document": str(input_path),
            "title": document.info.title,
            "paths": len(document.paths),
            "components": components,
            "diagnostic": diagnostic.to_dict(),
        }, indent=2))
        return

    console.print(f"[green]Document:[/green] {input_path}")
    console.print(f"Version: {diagnostic.specification_version or 'unknown'}")
    if document.info.title:
        console.print(f"Title: {document.info.title}")
    console.print(f"Paths: {len(document.paths)}")

    if components:
        console.print("\n[blue]Components:[/blue]")
        component_table = Table()
        component_table.add_column("Section", style="cyan")
        component_table.add_column("Count", style="white", justify="right")
        for section, count in components.items():
            component_table.add_row(section, str(count))
        console.print(component_table)

    if diagnostic.issues:
        console.print("\n[blue]Diagnostics:[/blue]")
        console.print(_diagnostics_table(diagnostic))
    else:
        console.print("\n[green]No issues found![/green]")


@app.command()
def consolidate(
    input_path: Annotated[
        Path,
        typer.Argument(help="Path to a JSON or YAML document")
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file (default: stdout)")
    ] = None,
    to: Annotated[
        Optional[TargetVersion],
        typer.Option("--to", "-t", help="Target dialect: 2.0, 3.0, 3.1 (default: input dialect)")
    ] = None,
    format: Annotated[
        Optional[OutputFormat],
        typer.Option("--format", "-f", help="Output format: json, yaml (default: from config)")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .oagraph.json)")
    ] = None,
    with_documents: Annotated[
        Optional[List[Path]],
        typer.Option("--with", "-w", help="Document that external references point into (repeatable)")
    ] = None,
) -> None:
    """Register every reachable reference target in the component registry."""
    oagraph_config, result = _load(input_path, config, with_documents)
    _report(result.diagnostic, "Read")

    before = len(result.document.components)
    registry = consolidate_components(result.document)
    err_console.print(f"[green]Consolidated[/green] {len(registry) - before} components")

    source_version = result.diagnostic.specification_version or oagraph_config.writer.spec_version
    version = SpecVersion(to.value if to is not None else source_version)
    format_name = format.value if format is not None else oagraph_config.writer.format
    text = render(
        result.document,
        version,
        format_name,
        WriterSettings.from_config(oagraph_config.writer),
        indent=oagraph_config.writer.indent,
    )
    _emit(text, output)


if __name__ == "__main__":
    app()
