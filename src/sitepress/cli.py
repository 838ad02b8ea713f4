"""CLI interface for sitepress."""

import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from sitepress.client import PublishClient
from sitepress.config import SiteConfig, load_config, merge_cli_overrides
from sitepress.content.frontmatter import DATE_FORMAT, parse_date
from sitepress.content.models import ContentRecord, ParentRef
from sitepress.detector import attempt_auto_detect
from sitepress.errors import CommandError, SitePressError
from sitepress.settings import SETTINGS_FILENAME, JsonSettingsStore

app = typer.Typer(
    name="sitepress",
    help="Publish posts and pages to a local static site project.",
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to a .sitepress.toml or settings .json file.",
    ),
]
SiteOption = Annotated[
    Optional[Path],
    typer.Option(
        "--site",
        "-s",
        help="Local site directory (overrides the config file).",
        file_okay=False,
        resolve_path=True,
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from sitepress import __version__

        console.print(f"sitepress {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """sitepress - publish to a static site generator project."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(config_path: Optional[Path], site: Optional[Path]) -> SiteConfig:
    try:
        config = load_config(config_path)
    except SitePressError as exc:
        _fail(exc)
    return merge_cli_overrides(config, local_site_path=str(site) if site else None)


def _fail(exc: SitePressError) -> NoReturn:
    console.print(f"[red]Error:[/red] {exc.title}: {exc.detail}")
    if isinstance(exc, CommandError):
        for label, output in (("stdout", exc.stdout), ("stderr", exc.stderr)):
            if output:
                console.print(f"[bold]{label}:[/bold]")
                console.print(output, markup=False, highlight=False)
    raise typer.Exit(1)


def _read_body(body_file: Optional[Path]) -> Optional[str]:
    if body_file is None:
        return None
    return body_file.read_text(encoding="utf-8")


@app.command()
def detect(
    directory: Annotated[
        Path,
        typer.Argument(
            help="Site directory to inspect.",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path("."),
    save: Annotated[
        Optional[Path],
        typer.Option("--save", help=f"Write the detected settings to a JSON file (e.g. {SETTINGS_FILENAME})."),
    ] = None,
) -> None:
    """Detect the site generator and layout of a directory."""
    config = SiteConfig(local_site_path=str(directory))
    if not attempt_auto_detect(config):
        console.print(f"[yellow]No supported site generator found in {directory}.[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Detected configuration")
    table.add_column("Setting")
    table.add_column("Value")
    for name, value in config.model_dump(exclude={"front_matter_keys"}).items():
        table.add_row(name, str(value))
    console.print(table)

    if save is not None:
        config.save_to_settings(JsonSettingsStore(save))
        console.print(f"[green]Saved settings to {save}[/green]")


@app.command()
def validate(config_path: ConfigOption = None, site: SiteOption = None) -> None:
    """Check that the configured site paths and commands are usable."""
    try:
        _load(config_path, site).validator.validate_all()
    except SitePressError as exc:
        _fail(exc)
    console.print("[green]Configuration is valid.[/green]")


@app.command()
def posts(
    config_path: ConfigOption = None,
    site: SiteOption = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum posts to list.")] = 20,
) -> None:
    """List recent posts and drafts, newest first."""
    client = PublishClient(_load(config_path, site))
    records = client.get_recent_posts(limit)
    if not records:
        console.print("[yellow]No posts found.[/yellow]")
        return

    table = Table()
    table.add_column("Date")
    table.add_column("Title")
    table.add_column("Slug")
    table.add_column("ID", style="dim")
    for record in records:
        published = record.effective_date
        table.add_row(
            published.strftime(DATE_FORMAT) if published else "",
            record.title,
            record.slug,
            record.id,
        )
    console.print(table)


@app.command()
def pages(config_path: ConfigOption = None, site: SiteOption = None) -> None:
    """List pages with their parents."""
    client = PublishClient(_load(config_path, site))
    infos = client.get_page_list()
    if not infos:
        console.print("[yellow]No pages found.[/yellow]")
        return

    titles = {info.id: info.title for info in infos}
    table = Table()
    table.add_column("Title")
    table.add_column("Parent")
    table.add_column("ID", style="dim")
    for info in infos:
        table.add_row(info.title, titles.get(info.parent_id, info.parent_id), info.id)
    console.print(table)


@app.command()
def new(
    title: Annotated[str, typer.Argument(help="Title of the new post or page.")],
    config_path: ConfigOption = None,
    site: SiteOption = None,
    body_file: Annotated[
        Optional[Path],
        typer.Option("--body", "-b", help="File holding the HTML body.", exists=True, dir_okay=False),
    ] = None,
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", "-t", help="Tag (repeatable)."),
    ] = None,
    slug: Annotated[str, typer.Option("--slug", help="Preferred slug.")] = "",
    date: Annotated[
        Optional[str],
        typer.Option("--date", help="Publish date, YYYY-MM-DD HH:MM:SS (UTC)."),
    ] = None,
    page: Annotated[bool, typer.Option("--page", help="Create a page instead of a post.")] = False,
    parent: Annotated[str, typer.Option("--parent", help="Parent page ID.")] = "",
    draft: Annotated[bool, typer.Option("--draft", help="Save as a draft.")] = False,
) -> None:
    """Create a post or page, then build and publish the site."""
    record = ContentRecord(
        title=title,
        contents=_read_body(body_file) or "",
        categories=tags or [],
        slug=slug,
        is_page=page,
        page_parent=ParentRef(id=parent),
    )
    if date:
        published = parse_date(date)
        if published is None:
            console.print(f"[red]Error:[/red] Invalid date: {date}")
            raise typer.Exit(1)
        record.date_published = published

    client = PublishClient(_load(config_path, site))
    try:
        if page:
            item_id = client.new_page(record, publish=not draft)
        else:
            item_id = client.new_post(record, publish=not draft)
    except SitePressError as exc:
        _fail(exc)

    console.print(f"[green]Created {'page' if page else 'post'}[/green] {item_id}")


@app.command()
def edit(
    item_id: Annotated[str, typer.Argument(help="ID of the post or page.")],
    config_path: ConfigOption = None,
    site: SiteOption = None,
    title: Annotated[Optional[str], typer.Option("--title", help="New title.")] = None,
    body_file: Annotated[
        Optional[Path],
        typer.Option("--body", "-b", help="File holding the new HTML body.", exists=True, dir_okay=False),
    ] = None,
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", "-t", help="Replace tags (repeatable)."),
    ] = None,
    slug: Annotated[Optional[str], typer.Option("--slug", help="New slug (renames the file).")] = None,
    page: Annotated[bool, typer.Option("--page", help="The ID refers to a page.")] = False,
    draft: Annotated[bool, typer.Option("--draft", help="Save as a draft.")] = False,
) -> None:
    """Update a post or page, then build and publish the site."""
    client = PublishClient(_load(config_path, site))
    try:
        record = client.get_page(item_id) if page else client.get_post(item_id)

        if title is not None:
            record.title = title
        body = _read_body(body_file)
        if body is not None:
            record.contents = body
        if tags is not None:
            record.categories = tags
        if slug is not None:
            record.slug = slug

        if page:
            client.edit_page(record, publish=not draft)
        else:
            client.edit_post(record, publish=not draft)
    except SitePressError as exc:
        _fail(exc)

    console.print(f"[green]Updated[/green] {item_id}")


@app.command()
def delete(
    item_id: Annotated[str, typer.Argument(help="ID of the post or page.")],
    config_path: ConfigOption = None,
    site: SiteOption = None,
    page: Annotated[bool, typer.Option("--page", help="The ID refers to a page.")] = False,
) -> None:
    """Delete a post or page, then build and publish the site."""
    client = PublishClient(_load(config_path, site))
    try:
        if page:
            client.delete_page(item_id)
        else:
            client.delete_post(item_id)
    except SitePressError as exc:
        _fail(exc)

    console.print(f"[green]Deleted[/green] {item_id}")


@app.command()
def image(
    path: Annotated[
        Path,
        typer.Argument(help="Image file to copy into the site.", exists=True, dir_okay=False),
    ],
    config_path: ConfigOption = None,
    site: SiteOption = None,
) -> None:
    """Copy an image into the site's images folder and print its URL."""
    client = PublishClient(_load(config_path, site))
    try:
        url = client.post_image(path)
    except SitePressError as exc:
        _fail(exc)

    console.print(url)


if __name__ == "__main__":
    app()
