"""AssetSync command line interface."""

import sys
import time
from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from assetsync import __version__
from assetsync.infrastructure.error_handler import AssetSyncError, FetchError
from assetsync.models import FetchTarget, SyncConfig

from .api import AssetSyncClient


console = Console()
POLL_INTERVAL = 0.1


def credential_options(func):
    """Shared --token/--username/--password/--private options."""

    func = click.option(
        "--private/--public", "is_private", default=False,
        help="Whether the repository requires credentials."
    )(func)
    func = click.option(
        "--password", envvar="ASSETSYNC_PASSWORD", default=None,
        help="Password for basic auth."
    )(func)
    func = click.option(
        "--username", envvar="ASSETSYNC_USERNAME", default=None,
        help="Username for basic auth."
    )(func)
    func = click.option(
        "--token", envvar="ASSETSYNC_TOKEN", default=None,
        help="Personal access token (preferred over username/password)."
    )(func)
    func = click.option(
        "--branch", default="main", show_default=True,
        help="Branch used for raw file downloads."
    )(func)
    func = click.option(
        "--host", default="github.com", show_default=True,
        help="Host used when REPO is given as owner/repo."
    )(func)
    return func


def _client(ctx, repo, host, branch, is_private, token, username, password) -> AssetSyncClient:
    config = SyncConfig(
        host=host,
        branch=branch,
        tool_executable=ctx.obj.get("git_executable", "git"),
        log_file=ctx.obj.get("log_file")
    )
    client = AssetSyncClient(
        token=token,
        username=username,
        password=password,
        config=config,
        verbose=ctx.obj.get("verbose", False)
    )
    try:
        client.source = client.parse_source(repo, is_private=is_private)
    except ValueError as e:
        client.close()
        raise click.BadParameter(str(e), param_hint="REPO")
    return client


def _tool_client(ctx) -> AssetSyncClient:
    config = SyncConfig(tool_executable=ctx.obj.get("git_executable", "git"))
    return AssetSyncClient(config=config, verbose=ctx.obj.get("verbose", False))


@click.group()
@click.version_option(__version__, prog_name="AssetSync")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option(
    "--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Also write logs to this file."
)
@click.option(
    "--git-executable", envvar="ASSETSYNC_GIT", default="git", show_default=True,
    help="Version-control executable to run."
)
@click.pass_context
def main(ctx, verbose, log_file, git_executable):
    """Pull a remote asset bundle into a local project layout."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["log_file"] = log_file
    ctx.obj["git_executable"] = git_executable


@main.command()
@click.argument("repo")
@click.argument("destination", type=click.Path(file_okay=False, path_type=Path))
@credential_options
@click.option("--no-progress", is_flag=True, help="Disable the progress bar.")
@click.pass_context
def sync(ctx, repo, destination, host, branch, token, username, password, is_private,
         no_progress):
    """Clone REPO and relocate its asset folders into DESTINATION."""
    with _client(ctx, repo, host, branch, is_private, token, username, password) as client:
        future = client.start(None, None, destination)

        if no_progress:
            result = future.result()
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                TextColumn("{task.percentage:>3.0f}%"),
                TimeElapsedColumn(),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task("Starting...", total=1.0)
                while not future.done():
                    state = client.get_state()
                    progress.update(
                        task, completed=state.progress,
                        description=state.status_message or state.phase.value
                    )
                    time.sleep(POLL_INTERVAL)
                result = future.result()

    state = result.state
    for warning in state.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")

    if not result.is_successful:
        console.print(f"[red]Sync failed:[/red] {state.error}")
        sys.exit(1)

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()
    if state.relocation is not None:
        for category in state.relocation.categories:
            table.add_row(
                f"{category.category}:",
                f"{category.files_copied} files" if category.found else "skipped"
            )
    table.add_row("Duration:", f"{result.duration_seconds:.1f}s")
    console.print(table)
    console.print("[green]Download and installation complete![/green]")


@main.command()
@click.argument("repo")
@click.argument("remote_file")
@click.argument("dest_path", type=click.Path(dir_okay=False, path_type=Path))
@credential_options
@click.option("--label", default="", help="Human readable asset name for logs.")
@click.pass_context
def fetch(ctx, repo, remote_file, dest_path, host, branch, token, username, password,
          is_private, label):
    """Download a single REMOTE_FILE of REPO to DEST_PATH."""
    target = FetchTarget(remote_file, dest_path, label)
    with _client(ctx, repo, host, branch, is_private, token, username, password) as client:
        try:
            path = client.fetch_single_file(target)
        except FetchError as e:
            console.print(f"[red]Failed to download {target.display_label}:[/red] {e.message}")
            sys.exit(1)
        except AssetSyncError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)
    console.print(f"[green]{target.display_label} downloaded to {path}[/green]")


@main.command()
@click.argument("working_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def update(ctx, working_dir):
    """Run git pull inside an existing WORKING_DIR checkout."""
    with _tool_client(ctx) as client:
        try:
            client.update(working_dir, on_status=lambda line: console.print(f"[dim]→[/dim] {line}"))
        except AssetSyncError as e:
            console.print(f"[red]Repository update failed:[/red] {e}")
            sys.exit(1)
    console.print("[green]Repository updated successfully![/green]")


@main.command()
@click.pass_context
def detect(ctx):
    """Report whether git is available."""
    with _tool_client(ctx) as client:
        path = client.detect_tool()
    if path is None:
        console.print("[red]Git not found on system PATH[/red]")
        sys.exit(1)
    console.print(f"Git found at: {path}")


if __name__ == "__main__":
    main()
