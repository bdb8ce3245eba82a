# -----------------------------------------------------------------------------
# GIT INFRASTRUCTURE - Source Checkout
# -----------------------------------------------------------------------------
# Responsibility: Fetch the Happy sources when none are present on the host.
# Uses the git CLI through CommandRunner for lean, direct execution.
# -----------------------------------------------------------------------------

import shutil
from pathlib import Path

from rich.console import Console

from src.infra.shell import CommandRunner, ShellError

console = Console()

# Cloning a large monorepo over a slow link
CLONE_TIMEOUT_SECONDS = 600


class GitError(Exception):
    """Raised when a Git operation fails."""

    pass


def clone_repository(runner: CommandRunner, url: str, dest: Path) -> Path:
    """
    Clone a repository into dest, replacing whatever is there.

    Args:
        runner: Command runner
        url: Repository clone URL
        dest: Target directory (removed first if it exists)

    Returns:
        The checkout path

    Raises:
        GitError: If the old directory cannot be removed or the clone fails
    """
    dest = Path(dest)

    if dest.exists():
        console.print(f"[yellow][GIT] Removing stale checkout: {dest}[/yellow]")
        try:
            shutil.rmtree(dest)
        except OSError as e:
            raise GitError(f"Cannot remove {dest}: {e}")

    console.print(f"[cyan][GIT] Cloning {url} -> {dest}[/cyan]")
    try:
        runner.run(["git", "clone", url, str(dest)], timeout=CLONE_TIMEOUT_SECONDS)
    except ShellError as e:
        raise GitError(f"git clone failed: {e}")

    console.print(f"[green][GIT] Clone complete: {dest}[/green]")
    return dest
