# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.cli",
#   "purpose": "Typer command line for exports, candidate inspection and configuration.",
#   "sections": [
#     {
#       "id": "load",
#       "name": "_load",
#       "anchor": "function-load",
#       "kind": "function"
#     },
#     {
#       "id": "exporter",
#       "name": "_exporter",
#       "anchor": "function-exporter",
#       "kind": "function"
#     },
#     {
#       "id": "report",
#       "name": "_report",
#       "anchor": "function-report",
#       "kind": "function"
#     },
#     {
#       "id": "parse-page",
#       "name": "_parse_page",
#       "anchor": "function-parse-page",
#       "kind": "function"
#     },
#     {
#       "id": "pdf",
#       "name": "pdf",
#       "anchor": "function-pdf",
#       "kind": "function"
#     },
#     {
#       "id": "jpg",
#       "name": "jpg",
#       "anchor": "function-jpg",
#       "kind": "function"
#     },
#     {
#       "id": "choose",
#       "name": "choose",
#       "anchor": "function-choose",
#       "kind": "function"
#     },
#     {
#       "id": "print-document",
#       "name": "print_document",
#       "anchor": "function-print-document",
#       "kind": "function"
#     },
#     {
#       "id": "candidates",
#       "name": "candidates",
#       "anchor": "function-candidates",
#       "kind": "function"
#     },
#     {
#       "id": "set-token",
#       "name": "set_token",
#       "anchor": "function-set-token",
#       "kind": "function"
#     },
#     {
#       "id": "validate-config",
#       "name": "validate_config",
#       "anchor": "function-validate-config",
#       "kind": "function"
#     },
#     {
#       "id": "config-schema",
#       "name": "config_schema",
#       "anchor": "function-config-schema",
#       "kind": "function"
#     },
#     {
#       "id": "print-config",
#       "name": "print_config",
#       "anchor": "function-print-config",
#       "kind": "function"
#     },
#     {
#       "id": "main",
#       "name": "main",
#       "anchor": "function-main",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Typer-based CLI for the document export engine."""

import json
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from FormVox.DocumentExport.api.types import ExportResult
from FormVox.DocumentExport.bootstrap import build_exporter
from FormVox.DocumentExport.config import (
    ExportConfig,
    export_config_schema,
    load_config,
    validate_config_file,
)
from FormVox.DocumentExport.interactive import (
    ConsoleNotifier,
    LprPrinter,
    RichPrompter,
    SystemShareSheet,
)
from FormVox.DocumentExport.logging_utils import setup_logging
from FormVox.DocumentExport.orchestrator import DocumentExporter, coerce_form_fill_id
from FormVox.DocumentExport.storage.kvstore import JsonFileKeyValueStore

console = Console()
app = typer.Typer(help="FormVox document export")

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to config file",
    envvar="FVX_CONFIG",
)
VERBOSE_OPTION = typer.Option(False, "-v", "--verbose", help="Verbose")

# ============================================================================
# Setup
# ============================================================================


def _load(config_path: Optional[str], verbose: bool) -> ExportConfig:
    cfg = load_config(path=config_path)
    setup_logging(
        level="DEBUG" if verbose else cfg.logging.level,
        log_dir=cfg.logging.log_dir,
        max_log_size_mb=cfg.logging.max_log_size_mb,
    )
    return cfg


def _exporter(cfg: ExportConfig) -> DocumentExporter:
    prompter = RichPrompter(console)
    return build_exporter(
        cfg,
        prompter=prompter,
        notifier=ConsoleNotifier(console),
        picker=prompter,
        share_target=SystemShareSheet(),
        printer=LprPrinter(),
    )


def _report(result: Optional[ExportResult]) -> None:
    if result is None:
        console.print("[yellow]An export is already running[/yellow]")
        raise typer.Exit(code=1)
    if result.status == "cancelled":
        console.print("[yellow]Cancelled[/yellow]")
        return
    if result.status == "error":
        raise typer.Exit(code=1)
    for saved in result.files:
        console.print(f"[green]✓ {saved.uri}[/green]")


def _parse_page(page: Optional[str]) -> Optional[str]:
    if page is None:
        return None
    value = page.strip().lower()
    if value != "all" and not value.isdigit():
        raise typer.BadParameter("page must be a positive number or 'all'")
    return value


# ============================================================================
# Commands
# ============================================================================


@app.command()
def pdf(
    form_fill_id: int = typer.Argument(..., help="Form fill id"),
    name: str = typer.Option("", "--name", "-n", help="Document name used for the file name"),
    config: Optional[str] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Export a form fill as PDF, then save or share it."""
    cfg = _load(config, verbose)
    _report(_exporter(cfg).export_pdf(form_fill_id, name))


@app.command()
def jpg(
    form_fill_id: int = typer.Argument(..., help="Form fill id"),
    name: str = typer.Option("", "--name", "-n", help="Document name used for the file name"),
    page: Optional[str] = typer.Option(None, "--page", "-p", help="Page number or 'all'"),
    share_pages: bool = typer.Option(
        False, "--share-pages", help="Allow sharing multi-page exports one page at a time"
    ),
    config: Optional[str] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Export a form fill as JPEG page image(s)."""
    page_value = _parse_page(page)
    cfg = _load(config, verbose)
    _report(
        _exporter(cfg).export_jpg(
            form_fill_id, name, page_value, share_pages_individually=share_pages
        )
    )


@app.command()
def choose(
    form_fill_id: int = typer.Argument(..., help="Form fill id"),
    name: str = typer.Option("", "--name", "-n", help="Document name used for the file name"),
    config: Optional[str] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Ask for the format, then export."""
    cfg = _load(config, verbose)
    _report(_exporter(cfg).export_with_choice(form_fill_id, name))


@app.command("print")
def print_document(
    form_fill_id: int = typer.Argument(..., help="Form fill id"),
    name: str = typer.Option("", "--name", "-n", help="Document name used for the file name"),
    config: Optional[str] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Download the PDF and send it to the printer."""
    cfg = _load(config, verbose)
    _report(_exporter(cfg).print_document(form_fill_id, name))


@app.command()
def candidates(
    form_fill_id: int = typer.Argument(..., help="Form fill id"),
    config: Optional[str] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the export route prefixes tried for a form fill, in order."""
    try:
        cfg = _load(config, verbose)
        exporter = _exporter(cfg)
        paths = exporter.resolve_candidates(coerce_form_fill_id(form_fill_id))
    except Exception as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"Export routes for form fill {form_fill_id}")
    table.add_column("Order", style="cyan")
    table.add_column("Prefix", style="green")
    table.add_column("URL", style="magenta")
    for index, prefix in enumerate(paths, start=1):
        table.add_row(str(index), prefix, f"{prefix}/{form_fill_id}/export")
    console.print(table)


@app.command("set-token")
def set_token(
    token: str = typer.Argument(..., help="Bearer token of the signed-in session"),
    config: Optional[str] = CONFIG_OPTION,
) -> None:
    """Store the session token used by export downloads."""
    try:
        cfg = load_config(path=config)
        JsonFileKeyValueStore(cfg.storage.state_path).set(cfg.api.token_key, token.strip())
        console.print("[green]✓ Token stored[/green]")
    except Exception as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def validate_config(
    config: str = typer.Argument(..., help="Path to config file"),
) -> None:
    """Validate a config file."""
    try:
        validate_config_file(config)
        console.print("[green]✓ Config valid[/green]")
    except Exception as e:
        console.print(f"[red]✗ Invalid: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def config_schema() -> None:
    """Print the JSON schema of the configuration."""
    typer.echo(json.dumps(export_config_schema(), indent=2))


@app.command()
def print_config(
    config: Optional[str] = CONFIG_OPTION,
    raw: bool = typer.Option(False, "--raw", help="Raw JSON"),
) -> None:
    """Print merged effective config."""
    try:
        cfg = load_config(path=config)
    except Exception as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        raise typer.Exit(code=1)

    data = json.dumps(cfg.model_dump(mode="json"), indent=2)
    if raw:
        typer.echo(data)
    else:
        console.print(
            Panel(
                data,
                title=f"DocumentExport Config ({cfg.config_hash()[:8]})",
                expand=False,
            )
        )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
