"""Cairn CLI - Command-line interface for Cairn repositories."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cairn import __version__
from cairn.commit import load_commit
from cairn.config import GlobalConfig
from cairn.errors import CairnError, ConfigError
from cairn.repository import Repository
from cairn.select import select_files
from cairn.tree import EntryKind, iter_tree, read_tree
from cairn.util import format_size, setup_logging

app = typer.Typer(
    name="cairn",
    help="Content-addressed version control storage",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)
console = Console()


def _abspath(path: Path) -> Path:
    """Interpret a user-supplied path relative to the working directory."""
    return path if path.is_absolute() else Path.cwd() / path


def _open_repo(path: Optional[Path]) -> Repository:
    try:
        return Repository.find(_abspath(path) if path else Path.cwd())
    except CairnError as e:
        _fail(e)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(1)


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-error output"),
) -> None:
    """Cairn - Content-addressed version control storage."""
    setup_logging(verbose=verbose, quiet=quiet)


@app.command()
def version() -> None:
    """Show Cairn version."""
    console.print(f"Cairn version {__version__}")


@app.command()
def init(
    path: Optional[Path] = typer.Argument(None, help="Repository root directory"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Name of the initial branch"),
) -> None:
    """Create an empty repository."""
    root = _abspath(path) if path else Path.cwd()
    root.mkdir(parents=True, exist_ok=True)
    
    try:
        repo = Repository.init(root, default_branch=branch)
    except CairnError as e:
        _fail(e)
    
    console.print(f"[green]✓[/green] Initialized empty Cairn repository in {repo.repo_dir}")


@app.command()
def config(
    key: str = typer.Argument(..., help="Configuration key, e.g. user.name"),
    value: Optional[str] = typer.Argument(None, help="New value; omit to print the current one"),
    global_: bool = typer.Option(False, "--global", help="Use the per-machine configuration"),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Repository path"),
) -> None:
    """Get or set configuration values."""
    try:
        if global_:
            global_config = GlobalConfig.load()
            attrs = {"user.name": "user_name", "user.email": "user_email"}
            if key not in attrs:
                raise ConfigError(f"Unknown global configuration key: {key}")
            if value is None:
                console.print(getattr(global_config, attrs[key]) or "")
                return
            setattr(global_config, attrs[key], value)
            global_config.save()
        else:
            repo_config = _open_repo(path).config
            if value is None:
                console.print(repo_config.get_value(key) or "")
                return
            repo_config.set_value(key, value)
            repo_config.save()
    except CairnError as e:
        _fail(e)
    
    console.print(f"[green]✓[/green] Set {key}")


@app.command()
def add(
    files: list[Path] = typer.Argument(..., help="Files or directories to stage"),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Repository path"),
) -> None:
    """Stage file contents for the next commit."""
    repo = _open_repo(path)
    
    try:
        selected = select_files(
            repo.root,
            [_abspath(f) for f in files],
            repo.config.ignore_patterns,
        )
        index = repo.load_index()
        for rel_path in selected:
            entry = index.stage(rel_path)
            console.print(f"  [green]+[/green] {escape(entry.path)}")
    except CairnError as e:
        _fail(e)
    
    console.print(f"[green]✓[/green] Staged {len(selected)} file(s)")


@app.command()
def rm(
    files: list[Path] = typer.Argument(..., help="Paths to unstage"),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Repository path"),
) -> None:
    """Remove paths from the index (the files themselves are kept)."""
    repo = _open_repo(path)
    
    try:
        index = repo.load_index()
        for f in files:
            if index.unstage(_abspath(f)):
                console.print(f"  [yellow]-[/yellow] {escape(str(f))}")
            else:
                console.print(f"  [dim]{escape(str(f))} was not staged[/dim]")
    except CairnError as e:
        _fail(e)


@app.command(name="write-tree")
def write_tree(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Repository path"),
) -> None:
    """Write the staged snapshot as tree objects and print the root id."""
    repo = _open_repo(path)
    
    try:
        tree_id = repo.write_tree()
    except CairnError as e:
        _fail(e)
    
    console.print(tree_id)


@app.command()
def commit(
    message: str = typer.Option(..., "--message", "-m", help="Commit message"),
    author: Optional[str] = typer.Option(None, "--author", help="Override the author line"),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Repository path"),
) -> None:
    """Record the staged snapshot."""
    repo = _open_repo(path)
    
    try:
        new_commit = repo.commit(message, author=author)
    except CairnError as e:
        _fail(e)
    
    branch = repo.refs.current_branch() or "detached HEAD"
    console.print("[green]✓[/green] " + escape(f"[{branch} {new_commit.object_id[:7]}] {new_commit.summary}"))


@app.command()
def log(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Show at most this many commits"),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Repository path"),
) -> None:
    """Show commit history from HEAD."""
    repo = _open_repo(path)
    
    try:
        commits = repo.log(limit=limit)
    except CairnError as e:
        _fail(e)
    
    if not commits:
        branch = repo.refs.current_branch() or "HEAD"
        console.print(f"[yellow]Branch '{branch}' does not have any commits yet[/yellow]")
        return
    
    for entry in commits:
        when = datetime.fromtimestamp(entry.timestamp, tz=timezone.utc)
        console.print(f"[yellow]commit {entry.object_id}[/yellow]")
        console.print(f"Author: {entry.author}", markup=False)
        console.print(f"Date:   {when.isoformat()}")
        console.print()
        for line in entry.message.splitlines():
            console.print(f"    {line}", markup=False)
        console.print()


@app.command(name="cat-file")
def cat_file(
    object_id: str = typer.Argument(..., help="Object id"),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Repository path"),
) -> None:
    """Print the raw content of an object."""
    repo = _open_repo(path)
    
    try:
        data = repo.store.read(object_id)
    except CairnError as e:
        _fail(e)
    
    typer.echo(data, nl=False)


@app.command(name="ls-tree")
def ls_tree(
    tree_id: Optional[str] = typer.Argument(None, help="Tree id (defaults to the HEAD commit's tree)"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Recurse into subtrees"),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Repository path"),
) -> None:
    """List the entries of a tree."""
    repo = _open_repo(path)
    
    try:
        if tree_id is None:
            head = repo.refs.resolve_head()
            if head is None:
                console.print("[yellow]No commits yet[/yellow]")
                return
            tree_id = load_commit(repo.store, head).tree_id
        
        if recursive:
            rows = list(iter_tree(repo.store, tree_id))
        else:
            rows = [(entry.name, entry) for entry in read_tree(repo.store, tree_id).entries]
        
        table = Table(title=f"Tree {tree_id[:7]}")
        table.add_column("Mode", style="dim")
        table.add_column("Kind")
        table.add_column("Object", style="cyan", no_wrap=True)
        table.add_column("Size", justify="right")
        table.add_column("Path")
        
        for name, entry in rows:
            size = ""
            if entry.kind is EntryKind.BLOB and repo.store.exists(entry.object_id):
                size = format_size(repo.store.object_path(entry.object_id).stat().st_size)
            table.add_row(entry.mode, entry.kind.value, entry.object_id, size, name)
    except CairnError as e:
        _fail(e)
    
    console.print(table)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
