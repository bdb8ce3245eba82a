# -----------------------------------------------------------------------------
# PACKAGE INSTALLER - APT, DOCKER & CADDY
# -----------------------------------------------------------------------------
# Responsibility: Put the host tooling in place.
# - Base packages from apt
# - Docker Engine via the get.docker.com convenience script
# - Caddy from the Cloudsmith stable repository
#
# Each chain stops at the first failing command and raises
# PackageInstallError; the Installer records FAIL and keeps going.
# -----------------------------------------------------------------------------

from pathlib import Path

import requests
from rich.console import Console

from src.infra.shell import CommandRunner, ShellError

console = Console()

BASE_PACKAGES = ["curl", "wget", "ca-certificates", "gnupg", "lsb-release", "git"]
KEYRING_PACKAGES = ["debian-keyring", "debian-archive-keyring", "apt-transport-https"]

DOCKER_SCRIPT_URL = "https://get.docker.com"

CADDY_GPG_URL = "https://dl.cloudsmith.io/public/caddy/stable/gpg.key"
CADDY_SOURCES_URL = "https://dl.cloudsmith.io/public/caddy/stable/debian.deb.txt"
CADDY_KEYRING = Path("/usr/share/keyrings/caddy-stable-archive-keyring.gpg")
CADDY_SOURCES_LIST = Path("/etc/apt/sources.list.d/caddy-stable.list")

DOWNLOAD_TIMEOUT_SECONDS = 60

# No debconf dialogs during unattended installs
APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class PackageInstallError(Exception):
    """Raised when an apt/Docker/Caddy installation command fails."""

    pass


def download(url: str) -> bytes:
    """
    Fetch a URL (like `curl -fsSL`).

    Raises:
        PackageInstallError: On network errors or non-2xx responses.
    """
    console.print(f"[cyan][APT] Downloading {url}[/cyan]")
    try:
        response = requests.get(url, timeout=DOWNLOAD_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.RequestException as e:
        raise PackageInstallError(f"Download failed for {url}: {e}")
    return response.content


class PackageInstaller:
    """Runs the apt/Docker/Caddy installation chains."""

    def __init__(
        self,
        runner: CommandRunner,
        caddy_keyring: Path = CADDY_KEYRING,
        caddy_sources_list: Path = CADDY_SOURCES_LIST,
    ) -> None:
        self._runner = runner
        self._caddy_keyring = Path(caddy_keyring)
        self._caddy_sources_list = Path(caddy_sources_list)

    def _run(self, cmd: list[str], input: str | bytes | None = None) -> None:
        try:
            self._runner.run(cmd, input=input, env=APT_ENV)
        except ShellError as e:
            raise PackageInstallError(str(e))

    def apt_update(self) -> None:
        self._run(["apt", "update"])

    def apt_install(self, packages: list[str]) -> None:
        console.print(f"[cyan][APT] Installing: {' '.join(packages)}[/cyan]")
        self._run(["apt", "install", "-y", *packages])

    def install_docker(self) -> None:
        """Run the Docker convenience script (curl -fsSL https://get.docker.com | sh)."""
        script = download(DOCKER_SCRIPT_URL)
        console.print("[cyan][APT] Running Docker install script...[/cyan]")
        self._run(["sh"], input=script)

    def install_base(self) -> None:
        """
        Step 3: base packages, Docker Engine and the apt keyring helpers.

        Raises:
            PackageInstallError: At the first failing command.
        """
        self.apt_update()
        self.apt_install(BASE_PACKAGES)
        self.install_docker()
        self.apt_install(KEYRING_PACKAGES)
        console.print("[green][APT] Base dependencies installed[/green]")

    def install_caddy(self) -> None:
        """
        Step 4: add the Caddy stable repository and install caddy.

        Raises:
            PackageInstallError: At the first failing command.
        """
        gpg_key = download(CADDY_GPG_URL)
        try:
            self._caddy_keyring.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PackageInstallError(f"Cannot create {self._caddy_keyring.parent}: {e}")
        self._run(["gpg", "--batch", "--yes", "--dearmor", "-o", str(self._caddy_keyring)], input=gpg_key)

        sources = download(CADDY_SOURCES_URL)
        try:
            self._caddy_sources_list.parent.mkdir(parents=True, exist_ok=True)
            self._caddy_sources_list.write_bytes(sources)
        except OSError as e:
            raise PackageInstallError(f"Cannot write {self._caddy_sources_list}: {e}")
        console.print(f"[cyan][APT] Wrote {self._caddy_sources_list}[/cyan]")

        self.apt_update()
        self.apt_install(["caddy"])
        console.print("[green][APT] Caddy installed[/green]")
