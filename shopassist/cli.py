"""shopassist CLI -- run moderation locally and serve the API."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from shopassist import __version__

console = Console()


def _load(config: str | None):
    from shopassist.config import load_settings
    from shopassist.log import configure_logging

    settings = load_settings(config)
    configure_logging(settings.log_level)
    return settings


@click.group()
@click.version_option(version=__version__)
def main():
    """shopassist -- product assistant and review moderation.

    Moderate review comments from the terminal, inspect the block-list,
    or start the HTTP API.
    """


# ── Moderate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("comment")
@click.option("--config", "-c", default=None, help="YAML settings file")
def moderate(comment: str, config: str | None):
    """Run the moderation pipeline on COMMENT and print the verdict."""
    import anthropic

    from shopassist.context import ServiceContext
    from shopassist.errors import ModerationError

    settings = _load(config)
    ctx = ServiceContext.from_settings(settings)

    console.print(f"\n[bold blue]shopassist[/] — Moderating: {comment}\n")

    try:
        state = asyncio.run(ctx.pipeline.run(comment))
    except ModerationError as exc:
        console.print(f"[red]Moderation failed:[/] {exc}")
        raise SystemExit(1)
    except anthropic.APIError as exc:
        console.print(f"[red]Classifier call failed:[/] {exc}")
        raise SystemExit(1)

    verdict = state.final_result
    if verdict.passed:
        body = "[green]PASS[/]"
    else:
        body = f"[red]BLOCKED[/]\n{verdict.reason}"
    console.print(Panel(body, title="Verdict"))

    console.print(f"  Stages: {' -> '.join(state.trace)}")
    if state.triage_label is not None:
        console.print(f"  Triage: {state.triage_label.value}")
    if state.research_query:
        console.print(f"  Research query: {state.research_query}")


# ── Block-list ───────────────────────────────────────────────────────


@main.command()
@click.option("--config", "-c", default=None, help="YAML settings file")
def blocklist(config: str | None):
    """Print the active block-list terms."""
    from shopassist.moderation.blocklist import BlockList

    settings = _load(config)
    terms = BlockList(settings.extra_blocklist_terms).terms

    table = Table(title=f"Block-list ({len(terms)} terms)")
    table.add_column("#", style="dim", width=4)
    table.add_column("Term", style="cyan")
    for i, term in enumerate(terms, start=1):
        table.add_row(str(i), term)
    console.print(table)


# ── Serve ────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="0.0.0.0", help="Bind address")
@click.option("--port", default=4444, type=int, help="Port")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool):
    """Start the HTTP API."""
    import uvicorn

    console.print(f"\n[bold blue]shopassist[/] — API on http://{host}:{port}\n")
    uvicorn.run("web.backend.app.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
