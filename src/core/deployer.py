# Copyright 2026 Pramod Kumar Voola
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# -----------------------------------------------------------------------------
# THE DEPLOYER - LOCAL CONTAINER DEPLOYMENT
# -----------------------------------------------------------------------------
# Responsibility: Build the Happy image, run it behind Caddy, and check that
# https://<domain> answers.
#
# The container publishes its port on loopback only; Caddy is the single
# public entry point.
# -----------------------------------------------------------------------------

import time
from pathlib import Path
from typing import Callable

from docker.models.containers import Container
from rich.console import Console

from src.domain.models import InstallConfig
from src.infra.docker_client import DockerProvider, DockerProviderError
from src.infra.network import probe_https

console = Console()

# Caddy may still be finishing its ACME order when the container comes up
VERIFY_RETRIES = 3
VERIFY_DELAY_SECONDS = 5


class DeploymentError(Exception):
    """Raised when the image cannot be built or the container cannot start."""

    pass


class Deployer:
    """
    Docker deployment handler for Happy.

    The DockerProvider is created on first use: the engine is normally
    installed by an earlier step of the same run.
    """

    def __init__(
        self,
        config: InstallConfig,
        provider_factory: Callable[[], DockerProvider] = DockerProvider,
    ) -> None:
        self._config = config
        self._provider_factory = provider_factory
        self._provider: DockerProvider | None = None

    def _docker(self) -> DockerProvider:
        if self._provider is None:
            try:
                self._provider = self._provider_factory()
            except DockerProviderError as e:
                raise DeploymentError(str(e))
        return self._provider

    def build(self, source_dir: Path) -> str:
        """
        Build the Happy image from source_dir.

        Returns:
            The image tag

        Raises:
            DeploymentError: If Docker is unavailable or the build fails
        """
        console.print(f"[cyan][DEPLOYER] Building {self._config.image_tag} from {source_dir}[/cyan]")
        try:
            self._docker().build_image(str(source_dir), self._config.image_tag)
        except DockerProviderError as e:
            raise DeploymentError(str(e))
        return self._config.image_tag

    def start(self) -> Container:
        """
        Replace the Happy container with one running the fresh image.

        Raises:
            DeploymentError: If the container cannot be started
        """
        cfg = self._config
        try:
            return self._docker().replace_container(
                image=cfg.image_tag,
                name=cfg.container_name,
                host_ip=cfg.upstream_host,
                host_port=cfg.upstream_port,
                container_port=cfg.container_port,
            )
        except DockerProviderError as e:
            raise DeploymentError(str(e))

    def verify(
        self, url: str, retries: int = VERIFY_RETRIES, delay: float = VERIFY_DELAY_SECONDS
    ) -> bool:
        """
        Check that the public URL answers over HTTPS.

        Args:
            url: https://<domain>
            retries: Number of attempts
            delay: Seconds between attempts

        Returns:
            True if any attempt got an HTTP response
        """
        console.print(f"[cyan][DEPLOYER] Verifying access at {url}...[/cyan]")

        for attempt in range(retries):
            if attempt > 0:
                time.sleep(delay)
            if probe_https(url):
                console.print(f"[green][DEPLOYER] {url} is responding[/green]")
                return True
            console.print(
                f"[yellow][DEPLOYER] No response (attempt {attempt + 1}/{retries})[/yellow]"
            )

        return False
