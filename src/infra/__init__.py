# -----------------------------------------------------------------------------
# INFRASTRUCTURE LAYER
# -----------------------------------------------------------------------------
# Contains low-level infrastructure wrappers:
# - CommandRunner: subprocess execution for apt/systemctl/gpg/ss/ping
# - DockerProvider: Docker SDK wrapper with auto-start capability
# - clone_repository: git checkout of the Happy sources
# - network probes: domain IP, public IP, port listener, HTTPS reachability
# -----------------------------------------------------------------------------

from .docker_client import DockerProvider, DockerProviderError
from .git_client import GitError, clone_repository
from .shell import CommandRunner, ShellError

__all__ = [
    "CommandRunner", "ShellError",
    "DockerProvider", "DockerProviderError",
    "GitError", "clone_repository",
]
