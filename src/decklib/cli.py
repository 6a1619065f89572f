"""Command line interface for DeckLib."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from decklib.config import LibraryConfig
from decklib.errors import BuildError
from decklib.index.builder import LibraryBuilder
from decklib.utils.files import LocalFileSystem
from decklib.web.access import generate_access_code, write_access_code


console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="DeckLib - static presentation library builder")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s", stream=sys.stdout)


@app.command()
def build(
    presentations: Path = typer.Option(
        LibraryConfig().presentations_dir, "--presentations", help="Folder with source presentations"
    ),
    docs: Path = typer.Option(LibraryConfig().docs_dir, "--docs", help="Output folder for the site"),
    title: str = typer.Option(LibraryConfig().site_title, "--title", help="Landing page title"),
    author: str = typer.Option(
        LibraryConfig().default_author, "--author", help="Author used when a document names none"
    ),
    access_code: Optional[List[str]] = typer.Option(
        None, "--access-code", help="Code that unlocks the page (repeatable)"
    ),
    generate_code: bool = typer.Option(
        False, "--generate-access-code", help="Add a random 4-digit access code"
    ),
    access_hours: int = typer.Option(
        LibraryConfig().access_window_hours, "--access-hours", help="Hours an entered code stays valid"
    ),
    no_render: bool = typer.Option(
        False, "--no-render", help="Use placeholders instead of browser screenshots"
    ),
    skip_unreadable: bool = typer.Option(
        False, "--skip-unreadable", help="Skip unreadable documents instead of aborting"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Build the presentation library into the docs folder."""
    _setup_logging(verbose)
    fs = LocalFileSystem()

    codes = list(access_code or [])
    generated = generate_access_code() if generate_code else None
    if generated is not None:
        codes.append(generated)

    try:
        config = LibraryConfig(
            presentations_dir=presentations,
            docs_dir=docs,
            site_title=title,
            default_author=author,
            access_codes=tuple(codes),
            access_window_hours=access_hours,
            render_thumbnails=not no_render,
            skip_unreadable=skip_unreadable,
        ).resolve_paths(Path.cwd())
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    console.print(f"Building [bold]{config.site_title}[/bold] into [bold]{config.docs_dir}[/bold]...")
    try:
        stats = LibraryBuilder(config, fs=fs).build()
        if generated is not None:
            write_access_code(fs, config.access_code_path, generated)
    except (BuildError, OSError) as exc:
        err_console.print(f"[red]Build failed:[/red] {exc}")
        raise typer.Exit(code=1)

    console.print(
        f"Documents: {stats.documents}, categories: {stats.categories}, "
        f"archives unpacked: {stats.archives}, skipped: {stats.skipped}, "
        f"unpublished: {stats.pruned}"
    )
    console.print(
        f"Thumbnails rendered: {stats.rendered}, custom: {stats.overrides}, "
        f"placeholders: {stats.placeholders}"
    )
    if generated is not None:
        console.print(f"Access code [bold]{generated}[/bold] written to {config.access_code_path}")
    console.print(f"[green]Build complete.[/green] Open {config.docs_dir / 'index.html'}")
