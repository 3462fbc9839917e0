"""
smbshare CLI.

Usage:
    smbshare --server nas.local --share media ls movies
    smbshare get movies/intro.mkv ./intro.mkv
    smbshare put ./report.pdf docs/report.pdf
"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Callable, TypeVar

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from smbshare.client import SMBShareClient
from smbshare.config import get_settings
from smbshare.exceptions import SMBShareError
from smbshare.logging import setup_logging
from smbshare.models.connection import Credential
from smbshare.models.files import AttributeRecord

T = TypeVar("T")

console = Console()
err_console = Console(stderr=True)


def _open_client(ctx: click.Context) -> SMBShareClient:
    """Build a client from global options and connect its share."""
    opts = ctx.obj or {}
    server, share = opts.get("server"), opts.get("share")
    if not server or not share:
        err_console.print(
            "[red]Error:[/red] Set --server/--share or SMBSHARE_SERVER/SMBSHARE_SHARE"
        )
        raise SystemExit(1)

    credential = Credential.from_user_string(
        opts.get("user"), opts.get("password"), default_user=get_settings().default_user
    )
    client = SMBShareClient(server, credential)
    try:
        client.connect_share(share).result()
    except SMBShareError as e:
        client.close()
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    return client


def _run(ctx: click.Context, action: Callable[[SMBShareClient], T]) -> T:
    """Run ``action`` against a connected client, mapping SDK errors to exit 1."""
    client = _open_client(ctx)
    try:
        return action(client)
    except SMBShareError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    finally:
        client.close()


def _transfer_progress() -> Progress:
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=err_console,
        transient=True,
    )


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


@click.group()
@click.option("--server", envvar="SMBSHARE_SERVER", help="SMB server host name")
@click.option("--share", envvar="SMBSHARE_SHARE", help="Share name")
@click.option("--user", "-u", envvar="SMBSHARE_USER", help="User name (DOMAIN\\user)")
@click.option("--password", envvar="SMBSHARE_PASSWORD", help="Password")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.version_option(package_name="smbshare")
@click.pass_context
def main(
    ctx: click.Context,
    server: str | None,
    share: str | None,
    user: str | None,
    password: str | None,
    verbose: bool,
) -> None:
    """smbshare SMB share command-line client."""
    ctx.ensure_object(dict)
    ctx.obj.update(server=server, share=share, user=user, password=password)
    if verbose:
        setup_logging("DEBUG")


# =============================================================================
# Listing
# =============================================================================


@main.command("ls")
@click.argument("path", default="")
@click.pass_context
def ls(ctx: click.Context, path: str) -> None:
    """List a directory."""
    entries: list[AttributeRecord] = _run(ctx, lambda c: c.list_directory(path).result())

    table = Table(show_header=True, header_style="bold")
    table.add_column("Type", width=4)
    table.add_column("Size", justify="right", width=10)
    table.add_column("Modified", width=19)
    table.add_column("Name")

    for entry in sorted(entries, key=lambda e: (not e.is_directory, e.name.lower())):
        kind = "[cyan]dir[/cyan]" if entry.is_directory else "file"
        size = "" if entry.is_directory else _format_size(entry.size)
        modified = entry.modified_at.strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(kind, size, modified, entry.name)

    console.print(table)


@main.command("stat")
@click.argument("path")
@click.pass_context
def stat(ctx: click.Context, path: str) -> None:
    """Show attributes of a file or directory."""
    record: AttributeRecord = _run(ctx, lambda c: c.attributes_of_item(path).result())
    console.print(f"[dim]Name:[/dim]     {record.name}")
    console.print(f"[dim]Kind:[/dim]     {record.kind.value}")
    console.print(f"[dim]Size:[/dim]     {record.size:,} bytes")
    console.print(f"[dim]Modified:[/dim] {record.modified_at.isoformat()}")
    console.print(f"[dim]Created:[/dim]  {record.created_at.isoformat()}")


# =============================================================================
# Transfers
# =============================================================================


@main.command("cat")
@click.argument("path")
@click.pass_context
def cat(ctx: click.Context, path: str) -> None:
    """Write a remote file to stdout."""
    out = click.get_binary_stream("stdout")

    def on_chunk(offset: int, total: int, chunk: bytes) -> bool:
        out.write(chunk)
        return True

    _run(ctx, lambda c: c.stream_file(path, on_chunk).result())
    out.flush()


@main.command("get")
@click.argument("remote_path")
@click.argument("local_path", required=False)
@click.pass_context
def get(ctx: click.Context, remote_path: str, local_path: str | None) -> None:
    """Download a remote file."""
    name = posixpath.basename(remote_path.replace("\\", "/"))
    if not name:
        err_console.print(f"[red]Error:[/red] {remote_path} names a directory, not a file")
        raise SystemExit(1)
    target = local_path or name

    with _transfer_progress() as progress:
        task = progress.add_task(f"get {remote_path}", total=None)

        def on_progress(done: int, total: int) -> bool:
            progress.update(task, completed=done, total=total)
            return True

        result = _run(ctx, lambda c: c.download_item(remote_path, target, on_progress).result())

    console.print(f"[green]✓[/green] {remote_path} → {target} ({result.bytes_transferred:,} bytes)")


@main.command("put")
@click.argument("local_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("remote_path", required=False)
@click.pass_context
def put(ctx: click.Context, local_path: Path, remote_path: str | None) -> None:
    """Upload a local file."""
    target = remote_path or local_path.name
    total = local_path.stat().st_size

    with _transfer_progress() as progress:
        task = progress.add_task(f"put {local_path.name}", total=total)

        def on_progress(done: int) -> bool:
            progress.update(task, completed=done)
            return True

        result = _run(ctx, lambda c: c.upload_item(local_path, target, on_progress).result())

    console.print(f"[green]✓[/green] {local_path} → {target} ({result.bytes_transferred:,} bytes)")


@main.command("cp")
@click.argument("source")
@click.argument("destination")
@click.pass_context
def cp(ctx: click.Context, source: str, destination: str) -> None:
    """Copy a remote file (through this machine)."""
    with _transfer_progress() as progress:
        task = progress.add_task(f"cp {source}", total=None)

        def on_progress(done: int, total: int) -> bool:
            progress.update(task, completed=done, total=total)
            return True

        result = _run(ctx, lambda c: c.copy_item(source, destination, on_progress).result())

    console.print(f"[green]✓[/green] {source} → {destination} ({result.bytes_transferred:,} bytes)")


# =============================================================================
# CRUD
# =============================================================================


@main.command("mv")
@click.argument("source")
@click.argument("destination")
@click.pass_context
def mv(ctx: click.Context, source: str, destination: str) -> None:
    """Move or rename a remote item."""
    _run(ctx, lambda c: c.move_item(source, destination).result())
    console.print(f"[green]✓[/green] {source} → {destination}")


@main.command("mkdir")
@click.argument("path")
@click.pass_context
def mkdir(ctx: click.Context, path: str) -> None:
    """Create a remote directory."""
    _run(ctx, lambda c: c.create_directory(path).result())
    console.print(f"[green]✓[/green] created {path}")


@main.command("rmdir")
@click.argument("path")
@click.pass_context
def rmdir(ctx: click.Context, path: str) -> None:
    """Remove an empty remote directory."""
    _run(ctx, lambda c: c.remove_directory(path).result())
    console.print(f"[green]✓[/green] removed {path}")


@main.command("rm")
@click.argument("path")
@click.pass_context
def rm(ctx: click.Context, path: str) -> None:
    """Remove a remote file."""
    _run(ctx, lambda c: c.remove_file(path).result())
    console.print(f"[green]✓[/green] removed {path}")


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    main()
