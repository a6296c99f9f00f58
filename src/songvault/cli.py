"""Typer CLI for songvault: inspect projects, archives and preferences."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from result import Err

from songvault.config import Config
from songvault.models.archive import format_byte_count

app = typer.Typer(
    name="songvault",
    help="Songvault: project archive and preference store for songwriting projects.",
    no_args_is_help=True,
)

RootOption = Annotated[
    Path | None,
    typer.Option("--root", help="Documents root holding lyrics, archives and the store"),
]


def _config(root: Path | None) -> Config:
    return Config(documents_root=root or Path.home() / ".songvault")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output")] = False,
) -> None:
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def projects(root: RootOption = None) -> None:
    """List projects in display order."""
    asyncio.run(_do_projects(_config(root)))


@app.command()
def archive(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    root: RootOption = None,
) -> None:
    """List a project's archive entries, newest first."""
    asyncio.run(_do_archive(_config(root), project_id))


@app.command()
def prune(
    days: Annotated[int, typer.Option("--days", min=0, help="Remove entries older than this")],
    keep_files: Annotated[
        bool, typer.Option("--keep-files", help="Forget entries but keep their files")
    ] = False,
    root: RootOption = None,
) -> None:
    """Apply age-based retention to every project's archive."""
    asyncio.run(_do_prune(_config(root), days, not keep_files))


@app.command()
def cleanup(root: RootOption = None) -> None:
    """Drop entries with missing files and delete unreferenced archive files."""
    asyncio.run(_do_cleanup(_config(root)))


@app.command()
def export(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    root: RootOption = None,
) -> None:
    """Export a project as a zip file in the documents root."""
    asyncio.run(_do_export(_config(root), project_id))


@app.command()
def preferences(
    title: Annotated[str | None, typer.Option("--title", help="Set the home title")] = None,
    root: RootOption = None,
) -> None:
    """Show preferences, optionally updating the home title."""
    asyncio.run(_do_preferences(_config(root), title))


async def _do_projects(config: Config) -> None:
    from songvault.services.container import ServiceContainer

    container = await ServiceContainer.create(config)
    try:
        for project in await container.repository.load():
            size = format_byte_count(project.archive.total_archive_size)
            typer.echo(
                f"{project.id}  {project.title}  files={len(project.files)}  "
                f"archived={len(project.archive.entries)} ({size})"
            )
    finally:
        await container.close()


async def _do_archive(config: Config, project_id: str) -> None:
    from songvault.services.container import ServiceContainer

    container = await ServiceContainer.create(config)
    try:
        result = await container.project_service.get_project(project_id)
        if isinstance(result, Err):
            typer.echo(result.err_value, err=True)
            raise typer.Exit(code=1)
        project = result.ok_value
        for entry in project.archive.entries:
            marker = "" if entry.file_exists else "  [missing]"
            typer.echo(f"{entry.entry_type.display_name:8} {entry.label}  {entry.file_path}{marker}")
        typer.echo(f"Total: {project.archive.formatted_archive_size}")
    finally:
        await container.close()


async def _do_prune(config: Config, days: int, delete_files: bool) -> None:
    from songvault.services.container import ServiceContainer

    container = await ServiceContainer.create(config)
    try:
        service = container.project_service
        loaded = await container.repository.load()
        removed = sum(
            len(service.prune_archive(project, days, delete_files=delete_files)) for project in loaded
        )
        await container.repository.save(loaded)
        typer.echo(f"Removed {removed} archive entries older than {days} days")
    finally:
        await container.close()


async def _do_cleanup(config: Config) -> None:
    from songvault.services.container import ServiceContainer

    container = await ServiceContainer.create(config)
    try:
        loaded = await container.repository.load()
        purged = removed = 0
        for project in loaded:
            p, r = container.project_service.tidy_archive(project)
            purged += p
            removed += r
        await container.repository.save(loaded)
        typer.echo(f"Purged {purged} missing entries, removed {removed} orphaned files")
    finally:
        await container.close()


async def _do_export(config: Config, project_id: str) -> None:
    from songvault.services.container import ServiceContainer

    container = await ServiceContainer.create(config)
    try:
        found = await container.project_service.get_project(project_id)
        if isinstance(found, Err):
            typer.echo(found.err_value, err=True)
            raise typer.Exit(code=1)
        exported = await container.export_service.export_project(found.ok_value)
        if isinstance(exported, Err):
            typer.echo(exported.err_value, err=True)
            raise typer.Exit(code=1)
        typer.echo(f"Exported to {exported.ok_value}")
    finally:
        await container.close()


async def _do_preferences(config: Config, title: str | None) -> None:
    from songvault.services.container import ServiceContainer

    container = await ServiceContainer.create(config)
    try:
        record = await container.preferences.load()
        if title is not None:
            record = record.with_title(title)
            await container.preferences.save(record)
        typer.echo(f"Home title: {record.home_title}")
        typer.echo(f"Gradient mode: {record.gradient_mode.display_name}")
        typer.echo(f"Selected projects: {len(record.selected_project_ids)}")
        typer.echo(f"Project order: {', '.join(record.project_order) or '(none)'}")
    finally:
        await container.close()
