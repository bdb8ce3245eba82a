# -----------------------------------------------------------------------------
# SOURCE LOCATOR - WHERE TO BUILD HAPPY FROM
# -----------------------------------------------------------------------------
# Search order:
#   1. explicit source_dir (config/CLI)
#   2. the working directory, if it holds both Dockerfile and package.json
#   3. each candidate directory holding a Dockerfile (/root/happy, /etc/happy)
#   4. otherwise clone the repository into clone_dir
# -----------------------------------------------------------------------------

from pathlib import Path

from rich.console import Console

from src.infra.git_client import GitError, clone_repository
from src.infra.shell import CommandRunner

console = Console()


class SourceError(Exception):
    """Raised when no buildable Happy source directory can be produced."""

    pass


def locate_source(
    cwd: Path, candidates: list[Path], source_dir: Path | None = None
) -> Path | None:
    """
    Find an existing Happy checkout.

    Returns:
        The first matching directory, or None
    """
    if source_dir is not None:
        source_dir = Path(source_dir)
        return source_dir if source_dir.is_dir() else None

    cwd = Path(cwd)
    if (cwd / "Dockerfile").is_file() and (cwd / "package.json").is_file():
        return cwd

    for candidate in candidates:
        if (Path(candidate) / "Dockerfile").is_file():
            return Path(candidate)

    return None


def fetch_source(runner: CommandRunner, repo_url: str, clone_dir: Path) -> Path:
    """
    Clone Happy into clone_dir.

    Raises:
        SourceError: If the clone fails.
    """
    try:
        return clone_repository(runner, repo_url, clone_dir)
    except GitError as e:
        raise SourceError(str(e))


def require_dockerfile(source_dir: Path) -> Path:
    """
    Raises:
        SourceError: If source_dir has no Dockerfile.
    """
    if not (Path(source_dir) / "Dockerfile").is_file():
        raise SourceError(f"No Dockerfile in Happy source directory: {source_dir}")
    return Path(source_dir)
