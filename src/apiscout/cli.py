from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from apiscout.config import ScannerConfig, load_config
from apiscout.domain.models import RouteRecord
from apiscout.domain.report import ScanReport
from apiscout.errors import ApiScoutError, CloneFailed, InvalidInput
from apiscout.extractors.javascript.declarations import extract_declarations
from apiscout.orchestrator.pipeline import extract_routes, scan_declarations, scan_repository
from apiscout.repo.framework_detector import detect


app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()
err_console = Console(stderr=True)

_EXIT_CODES = {InvalidInput.kind: 2, CloneFailed.kind: 3}

_CONFIG_OPTION = typer.Option(None, "--config", envvar="APISCOUT_CONFIG", help="YAML config file")
_FORMAT_OPTION = typer.Option("table", "--format", help="Output format: table|json|jsonl")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def scan(
    repo_url: str = typer.Argument(..., help="Remote repository URL to clone and scan"),
    format: str = _FORMAT_OPTION,
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Shallow-clone a repository and list its API routes."""
    cfg = _load(config)
    report = ScanReport()
    _emit_routes(scan_repository(repo_url, cfg, report), format, report, label=repo_url)


@app.command()
def routes(
    path: str = typer.Argument(..., help="Path to a local checkout"),
    format: str = _FORMAT_OPTION,
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """List the API routes of a local directory."""
    cfg = _load(config)
    repo_path = _local_dir(path)
    report = ScanReport()
    _emit_routes(extract_routes(repo_path, cfg, report), format, report, label=str(repo_path))


@app.command("detect")
def detect_cmd(
    path: str = typer.Argument(..., help="Path to a local checkout"),
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Print the detected language and framework."""
    cfg = _load(config)
    result = detect(_local_dir(path), cfg)
    console.print(f"Language:  [bold]{result.language}[/bold]")
    console.print(f"Framework: [bold]{result.framework}[/bold]")
    if result.marker:
        console.print(f"Marker:    {result.marker}")


@app.command()
def declarations(
    source: str = typer.Argument(..., help="Local directory or remote repository URL"),
    format: str = typer.Option("table", "--format", help="Output format: table|json"),
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """List models, controllers and types found in a JS/TS codebase."""
    cfg = _load(config)
    report = ScanReport()
    local = Path(source).expanduser()
    try:
        if local.is_dir():
            result = extract_declarations(local.resolve(), config=cfg, report=report)
        else:
            result = scan_declarations(source, cfg, report)
    except ApiScoutError as exc:
        _fail(exc)

    if format.lower() == "json":
        typer.echo(json.dumps(result.to_payload(), indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("KIND", no_wrap=True)
    table.add_column("NAME")
    table.add_column("MEMBERS")
    for m in result.models:
        table.add_row(f"model ({m.type})", m.name, ", ".join(m.fields))
    for c in result.controllers:
        table.add_row("controller", c.name, ", ".join(c.methods))
    for t in result.types:
        table.add_row("type", t.name, ", ".join(t.properties))
    console.print(table)
    _print_footer(report)


def _emit_routes(records: Iterable[RouteRecord], format: str, report: ScanReport, label: str) -> None:
    fmt = format.lower().strip()
    if fmt not in ("table", "json", "jsonl"):
        raise typer.BadParameter("format must be one of: table, json, jsonl")

    try:
        if fmt == "jsonl":
            # one line per route as soon as it is extracted
            for r in records:
                typer.echo(json.dumps(r.to_payload()))
            return

        rows = list(records)
    except ApiScoutError as exc:
        _fail(exc)

    if fmt == "json":
        typer.echo(json.dumps([r.to_payload() for r in rows], indent=2))
        return

    console.print(f"[bold green]apiscout[/bold green] {label}")
    console.print(f"Routes found: [bold]{len(rows)}[/bold]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("FILE:LINE", no_wrap=True)
    for r in rows:
        table.add_row(r.method, r.route_path, f"{r.file_path}:{r.line}")
    console.print(table)
    _print_footer(report)


def _print_footer(report: ScanReport) -> None:
    console.print(f"Files scanned: {report.files_scanned}")
    if report.issue_count:
        console.print(f"[yellow]Skipped: {report.issue_count}[/yellow] (run with --verbose for details)")


def _load(path: Optional[Path]) -> ScannerConfig:
    try:
        return load_config(path)
    except ApiScoutError as exc:
        _fail(exc)


def _local_dir(path: str) -> Path:
    repo_path = Path(path).expanduser().resolve()
    if not repo_path.exists():
        raise typer.BadParameter(f"Path does not exist: {repo_path}")
    if not repo_path.is_dir():
        raise typer.BadParameter(f"Path is not a directory: {repo_path}")
    return repo_path


def _fail(exc: ApiScoutError) -> NoReturn:
    err_console.print(f"[bold red]{exc.kind}[/bold red]: {exc.message}")
    raise typer.Exit(code=_EXIT_CODES.get(exc.kind, 1))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
