# -----------------------------------------------------------------------------
# DOCKER PROVIDER
# -----------------------------------------------------------------------------
# Responsibility: A robust wrapper around the Docker SDK with connection
# validation, image builds and container replacement.
#
# This is part of the Infrastructure layer - the Deployer uses it to build and
# run Happy without touching SDK details.
# -----------------------------------------------------------------------------

import subprocess
import time

import docker
from docker import DockerClient
from docker.errors import APIError, BuildError, DockerException, NotFound
from docker.models.containers import Container
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

console = Console()

# Freshly installed engines take a few seconds to open the socket
WAKE_TIMEOUT_SECONDS = 60


class DockerProviderError(Exception):
    """Raised when Docker is unavailable or an image/container operation fails."""

    pass


class DockerProvider:
    """
    Docker SDK wrapper with auto-start capability.

    The engine is usually installed a few steps earlier by get.docker.com,
    so the first connection may race the systemd unit. If the ping fails the
    provider starts the service and waits for it.
    """

    def __init__(self, auto_start: bool = True) -> None:
        """
        Initialize the Docker provider.

        Args:
            auto_start: If True, run `systemctl start docker` when the engine is down.
        """
        self._client: DockerClient | None = None
        self._auto_start = auto_start

        self._connect()

    def _start_docker(self) -> DockerClient | None:
        """
        Start the Docker service and wait for the engine to answer.

        Returns:
            DockerClient if the engine comes up, None otherwise.
        """
        console.print("[yellow][DOCKER] Engine not responding. Starting docker.service...[/yellow]")

        try:
            subprocess.run(["systemctl", "start", "docker"], check=False, timeout=60)
        except (OSError, subprocess.SubprocessError) as e:
            console.print(f"[red][DOCKER] systemctl start docker failed: {escape(str(e))}[/red]")
            return None

        with console.status(
            f"[yellow]Waiting for Docker Engine (up to {WAKE_TIMEOUT_SECONDS}s)...[/yellow]",
            spinner="clock",
        ):
            for _ in range(WAKE_TIMEOUT_SECONDS):
                try:
                    client = docker.from_env()
                    client.ping()
                    console.print("[green][DOCKER] Engine Online.[/green]")
                    return client
                except DockerException:
                    time.sleep(1)

        console.print("[red][DOCKER] Start timeout - Docker did not respond[/red]")
        return None

    def _connect(self) -> None:
        """
        Establish connection to Docker daemon.

        Raises:
            DockerProviderError: If connection fails and auto-start is disabled or fails.
        """
        try:
            self._client = docker.from_env()
            self._client.ping()
            console.print("[green][DOCKER] Connected to Docker Engine[/green]")
        except DockerException:
            self._client = None
            if self._auto_start:
                self._client = self._start_docker()

            if self._client is None:
                console.print(
                    Panel(
                        "[bold red]Docker Engine Unavailable[/bold red]\n\n"
                        "1. Check the install log above for get.docker.com errors\n"
                        "2. Run: systemctl status docker\n"
                        "3. Re-run the installer",
                        title="SYSTEM HALT",
                        border_style="red",
                    )
                )
                raise DockerProviderError("Docker Engine is not available")

    def get_client(self) -> DockerClient:
        """
        Get the Docker client, verifying connection is still active.

        Raises:
            DockerProviderError: If Docker connection is lost.
        """
        if self._client is None:
            raise DockerProviderError("Docker client not initialized")

        try:
            self._client.ping()
            return self._client
        except DockerException as e:
            console.print(f"[red][DOCKER] Connection lost: {escape(str(e))}[/red]")
            raise DockerProviderError(f"Docker connection lost: {e}")

    def build_image(self, path: str, tag: str) -> None:
        """
        Build an image from a directory containing a Dockerfile.

        Build output is streamed to the console as it arrives.

        Raises:
            DockerProviderError: If the build fails.
        """
        client = self.get_client()
        console.print(f"[cyan][DOCKER] Building {tag} from {path}...[/cyan]")

        try:
            for chunk in client.api.build(path=path, tag=tag, rm=True, decode=True):
                if "error" in chunk:
                    raise DockerProviderError(f"Image build failed: {chunk['error'].strip()}")
                line = chunk.get("stream", "").rstrip()
                if line:
                    console.print(line, style="dim", markup=False, highlight=False)
        except (APIError, BuildError) as e:
            raise DockerProviderError(f"Image build failed: {e}")
        except DockerException as e:
            raise DockerProviderError(f"Docker error during build: {e}")

        console.print(f"[green][DOCKER] Image ready: {tag}[/green]")

    def replace_container(
        self,
        image: str,
        name: str,
        host_ip: str,
        host_port: int,
        container_port: int,
    ) -> Container:
        """
        Remove any container called `name` and start a fresh one.

        The container restarts unless stopped and publishes container_port
        only on host_ip:host_port, so it is reachable through Caddy alone.

        Returns:
            The running Container.

        Raises:
            DockerProviderError: If the container cannot be started.
        """
        client = self.get_client()

        try:
            client.containers.get(name).remove(force=True)
            console.print(f"[yellow][DOCKER] Removed existing container: {name}[/yellow]")
        except NotFound:
            pass
        except APIError as e:
            raise DockerProviderError(f"Could not remove existing container {name}: {e}")

        try:
            container = client.containers.run(
                image,
                name=name,
                detach=True,
                restart_policy={"Name": "unless-stopped"},
                ports={f"{container_port}/tcp": (host_ip, host_port)},
            )
        except DockerException as e:
            raise DockerProviderError(f"Container start failed: {e}")

        console.print(
            f"[green][DOCKER] Container {name} running (ID: {container.short_id}) "
            f"on {host_ip}:{host_port}[/green]"
        )
        return container
