"""Typer CLI: run the MCP server or audit a page from the terminal."""
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import orjson
import typer
import yaml
from dotenv import load_dotenv
from mcp.shared.exceptions import McpError
from pydantic import ValidationError

from . import server, tools
from .config import Settings, load_settings

load_dotenv()

app = typer.Typer(add_completion=False)


def _settings(config: Optional[str]) -> Settings:
    try:
        settings = load_settings(config)
    except (OSError, yaml.YAMLError, ValueError, ValidationError) as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(2)
    # stdout belongs to the MCP transport; logs go to stderr
    logging.basicConfig(
        level=settings.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return settings


def _call(name: str, arguments: dict, settings: Settings):
    try:
        return asyncio.run(tools.call_tool(name, arguments, settings=settings))
    except McpError as e:
        typer.echo(e.error.message, err=True)
        raise typer.Exit(2)


def _emit(result, out: Optional[str]) -> None:
    text = result.content[0].text
    if result.isError:
        typer.echo(text, err=True)
        raise typer.Exit(1)
    if out:
        Path(out).write_text(text, encoding="utf-8")
        typer.echo(f"Wrote {out}")
    else:
        typer.echo(text)


@app.command()
def serve(
    config: Optional[str] = typer.Option(None, help="Settings YAML file"),
):
    """Run the MCP server on stdio."""
    settings = _settings(config)
    asyncio.run(server.serve(settings))


@app.command()
def audit(
    url: str,
    include_html: bool = typer.Option(False, "--include-html", help="Include HTML snippets for each node."),
    tag: List[str] = typer.Option([], "--tag", help="Restrict rules to this axe tag (repeatable), e.g. wcag2aa."),
    out: Optional[str] = typer.Option(None, help="Write the JSON report to this file."),
    config: Optional[str] = typer.Option(None, help="Settings YAML file"),
):
    """Audit a page and print the detailed JSON report."""
    settings = _settings(config)
    arguments = {"url": url, "includeHtml": include_html}
    if tag:
        arguments["tags"] = list(tag)
    result = _call(tools.AUDIT_WEBPAGE, arguments, settings)
    _emit(result, out)


@app.command()
def summary(
    url: str,
    out: Optional[str] = typer.Option(None, help="Write the JSON summary to this file."),
    config: Optional[str] = typer.Option(None, help="Settings YAML file"),
):
    """Audit a page and print the severity summary."""
    settings = _settings(config)
    result = _call(tools.GET_SUMMARY, {"url": url}, settings)
    _emit(result, out)


@app.command()
def report(
    report_json: str,
    out: Optional[str] = typer.Option(None, help="Output HTML path (default: next to the JSON file)."),
):
    """Render a saved audit report as HTML."""
    from .report import render_report
    src = Path(report_json)
    dest = Path(out) if out else src.with_suffix(".html")
    try:
        render_report(src, dest)
    except (OSError, orjson.JSONDecodeError, ValidationError) as e:
        typer.echo(f"Invalid report {src}: {e}", err=True)
        raise typer.Exit(2)
    typer.echo(f"Report written: {dest}")


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
