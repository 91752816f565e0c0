#!/usr/bin/env python3
"""
PDF Rendering CLI

Renders JSON document descriptors to PDF using the rendering context.

Commands:
    render - Resolve a descriptor template against variables and render it
    input  - Render a request payload (bare descriptor or pdf_template/pdfVars envelope)

Examples:\n

    render_pdf.py render invoice.json --vars invoice_vars.json -o invoice.pdf

    render_pdf.py render invoice.json --strict                  # Fail on the first anomaly

    cat request.json | render_pdf.py input - > out.pdf          # Envelope from stdin
"""

import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from docforge.contexts.rendering import generate_pdf_from_content, generate_pdf_from_input
from docforge.contexts.rendering.logger import (
    _log_error,
    _log_info,
    _log_success,
    setup_rendering_logger,
)
from docforge.contexts.templating import DescriptorError
from docforge.utils.diagnostics import Diagnostics, StrictModeError

load_dotenv()
LOGS_PATH = Path(os.getenv("DOCFORGE_LOGS_PATH", "outs/logs"))

STDIO = "-"


def read_source(source: str) -> str:
    """Read text from a file path, or from stdin when source is "-"."""
    if source == STDIO:
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def write_output(pdf_bytes: bytes, output: str) -> None:
    if output == STDIO:
        sys.stdout.buffer.write(pdf_bytes)
        sys.stdout.buffer.flush()
    else:
        Path(output).write_bytes(pdf_bytes)


def start_logging() -> Path:
    log_dir = LOGS_PATH / f"render_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    return setup_rendering_logger(log_dir)


def report_issues(diagnostics: Diagnostics) -> None:
    if diagnostics.is_clean:
        return
    typer.secho(f"{len(diagnostics.issues)} issue(s):", fg=typer.colors.YELLOW, err=True)
    for message in diagnostics.messages[:10]:
        typer.echo(f"  - {message}", err=True)
    if len(diagnostics.issues) > 10:
        typer.echo(f"  ... and {len(diagnostics.issues) - 10} more", err=True)


app = typer.Typer(
    help="Render JSON document descriptors to PDF",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("render")
def render_command(
    template: Annotated[
        str,
        typer.Argument(help='Descriptor template file ("-" for stdin)'),
    ],
    variables_file: Annotated[
        Optional[Path],
        typer.Option("--vars", help="JSON file with the template variables"),
    ] = None,
    output: Annotated[
        str,
        typer.Option("--output", "-o", help='Output PDF path ("-" for stdout)'),
    ] = STDIO,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail on the first resolution or layout issue"),
    ] = False,
):
    """
    Resolve a descriptor template and render it to PDF.

    Examples:\n

        $ render_pdf.py render invoice.json --vars vars.json -o invoice.pdf

        $ render_pdf.py render - < invoice.json > invoice.pdf
    """
    log_file = start_logging()
    _log_info(f"Rendering {template}")
    diagnostics = Diagnostics(strict=strict)

    try:
        variables = {}
        if variables_file is not None:
            variables = json.loads(variables_file.read_text(encoding="utf-8"))
        pdf_bytes = generate_pdf_from_content(read_source(template), variables, diagnostics)
    except (OSError, ValueError, StrictModeError) as e:
        _log_error(str(e))
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        typer.echo(f"  Log: {log_file}", err=True)
        raise typer.Exit(code=1)

    write_output(pdf_bytes, output)
    _log_success(f"Rendered {len(pdf_bytes)} bytes to {output}")
    report_issues(diagnostics)
    typer.secho(f"✓ Rendered {len(pdf_bytes)} bytes", fg=typer.colors.GREEN, bold=True, err=True)
    typer.echo(f"  Log: {log_file}", err=True)


@app.command("input")
def input_command(
    payload: Annotated[
        str,
        typer.Argument(help='Request payload file ("-" for stdin)'),
    ] = STDIO,
    output: Annotated[
        str,
        typer.Option("--output", "-o", help='Output PDF path ("-" for stdout)'),
    ] = STDIO,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail on the first resolution or layout issue"),
    ] = False,
):
    """
    Render a request payload.

    The payload is either a bare descriptor or an envelope of the form
    {"pdf_template": {...}, "pdfVars": {...}}.

    Examples:\n

        $ render_pdf.py input request.json -o out.pdf

        $ cat request.json | render_pdf.py input > out.pdf
    """
    log_file = start_logging()
    _log_info(f"Rendering {payload}")
    diagnostics = Diagnostics(strict=strict)

    try:
        pdf_bytes = generate_pdf_from_input(read_source(payload), diagnostics)
    except (OSError, DescriptorError, StrictModeError) as e:
        _log_error(str(e))
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        typer.echo(f"  Log: {log_file}", err=True)
        raise typer.Exit(code=1)

    write_output(pdf_bytes, output)
    _log_success(f"Rendered {len(pdf_bytes)} bytes to {output}")
    report_issues(diagnostics)
    typer.secho(f"✓ Rendered {len(pdf_bytes)} bytes", fg=typer.colors.GREEN, bold=True, err=True)
    typer.echo(f"  Log: {log_file}", err=True)


if __name__ == "__main__":
    app()
