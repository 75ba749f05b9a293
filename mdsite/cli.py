"""Command-line interface for mdsite.

This module defines the CLI commands using the Click framework. Options given
on the command line override values from ``mdsite.yaml``.

Commands:
- build: Render every page, the sitemap and the feed.
- preview: Print the rendered index page.
- serve: Run the development server with live reload.
- new: Create a new markdown document interactively.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from typing import Any

import click
import questionary
import yaml

from . import __version__
from .config import ConfigError, load_config
from .content import BuildError


@click.group()
@click.version_option(version=__version__, prog_name="mdsite")
@click.option("-v", "--verbose", is_flag=True, help="Log progress information")
def cli(verbose: bool):
    """mdsite static page generator."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _report_failure(exc: Exception, project_root: Path) -> None:
    """Print a styled failure message and exit with status 1."""
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    if isinstance(exc, BuildError):
        try:
            location = exc.source_path.relative_to(project_root)
        except ValueError:
            location = exc.source_path
        click.echo(click.style(f"  File: {location}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
    elif isinstance(exc, ConfigError):
        click.echo(click.style(f"  Option: {exc.field}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
    raise SystemExit(1)


def _load(overrides: dict[str, Any] | None = None):
    project_root = Path.cwd()
    try:
        return project_root, load_config(project_root, overrides)
    except ConfigError as exc:
        _report_failure(exc, project_root)


@cli.command()
@click.option("--input", "input_dir", type=click.Path(file_okay=False), help="Markdown source directory")
@click.option("--output", "output_dir", type=click.Path(file_okay=False), help="Output directory")
@click.option("--template", type=click.Path(dir_okay=False), help="Page template")
@click.option("--words-per-minute", type=int, help="Enable reading time estimation")
@click.option("--no-feed", is_flag=True, help="Do not write feed.xml")
@click.option("--no-sitemap", is_flag=True, help="Do not write sitemap.xml")
def build(
    input_dir: str | None,
    output_dir: str | None,
    template: str | None,
    words_per_minute: int | None,
    no_feed: bool,
    no_sitemap: bool,
):
    """Render all markdown files into the output directory."""
    from .build import render_site

    project_root, config = _load(
        {
            "input": input_dir,
            "output": output_dir,
            "html_template": template,
            "words_per_minute": words_per_minute,
            "do_not_render_feed": no_feed or None,
            "do_not_render_sitemap": no_sitemap or None,
        }
    )
    try:
        result = render_site(config)
    except (BuildError, ConfigError) as exc:
        _report_failure(exc, project_root)
    click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")


@cli.command()
@click.option("--url", default="/", show_default=True, help="Requested URL path")
def preview(url: str):
    """Print the rendered index page."""
    from .build import render_preview

    project_root, config = _load()
    try:
        template = config.html_template.read_text(encoding="utf-8")
    except OSError as exc:
        _report_failure(
            ConfigError("html_template", f"cannot read template {config.html_template}: {exc}"),
            project_root,
        )
    try:
        html = render_preview(template, url, config)
    except (BuildError, ConfigError) as exc:
        _report_failure(exc, project_root)
    click.echo(html)


@cli.command()
@click.option("--port", type=int, required=False, help="Port to run the dev server")
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server",
)
def serve(port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    from .server import DevServer

    project_root, config = _load()
    server = DevServer(config, http_port=port, ws_port=ws_port)
    try:
        server.start()
    except (BuildError, ConfigError) as exc:
        _report_failure(exc, project_root)


@cli.command()
def new():
    """Create a new markdown file interactively."""
    project_root, config = _load()
    markdown_dir = config.markdown_dir
    if not markdown_dir.exists():
        raise click.ClickException(
            f"No markdown directory found at {markdown_dir}. Create it first."
        )

    folder = questionary.select(
        "Select folder:",
        choices=_get_content_folders(markdown_dir),
        style=_questionary_style(),
    ).ask()
    if folder is None:
        raise click.Abort()

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    name = questionary.text(
        "Filename (without .md extension):",
        default=_slugify(title),
        validate=lambda x: len(x.strip()) > 0 or "Filename cannot be empty",
        style=_questionary_style(),
    ).ask()
    if name is None:
        raise click.Abort()

    draft = questionary.confirm(
        "Mark as draft?", default=True, style=_questionary_style()
    ).ask()
    if draft is None:
        raise click.Abort()

    target_dir = markdown_dir if folder == ". (root)" else markdown_dir / folder
    target_path = target_dir / f"{name.strip()}.md"
    if target_path.exists():
        raise click.ClickException(f"File already exists: {target_path}")

    target_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(_new_document(title, date.today(), draft), encoding="utf-8")
    try:
        rel_path = target_path.relative_to(project_root)
    except ValueError:
        rel_path = target_path
    click.echo(f"Created {rel_path}")


def _new_document(title: str, created: date, draft: bool) -> str:
    """Return the initial text of a new document."""
    frontmatter: dict[str, Any] = {"title": title, "created": created}
    if draft:
        frontmatter["draft"] = True
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n\n# {title}\n"


def _get_content_folders(markdown_dir: Path) -> list[str]:
    """List sub-folders of the markdown directory, root option first."""
    folders = sorted(
        path.relative_to(markdown_dir).as_posix()
        for path in markdown_dir.rglob("*")
        if path.is_dir()
    )
    folders.insert(0, ". (root)")
    return folders


def _slugify(title: str) -> str:
    """Convert a title to a filename slug."""
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", title).strip("-").lower()
    return slug or "untitled"


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
