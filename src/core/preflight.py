# -----------------------------------------------------------------------------
# PREFLIGHT - SYSTEM & DOMAIN CHECKS
# -----------------------------------------------------------------------------
# Responsibility: Refuse to touch the host unless it looks like the right one.
# - Must run as root (apt, systemctl, /etc writes)
# - Ubuntu major version below the minimum needs operator confirmation
# - The domain must resolve; an IP different from this server's public IP
#   needs operator confirmation
# -----------------------------------------------------------------------------

import os

from rich.console import Console

from src.core.prompter import Prompter
from src.core.reporter import StepReporter
from src.infra.network import fetch_public_ip, resolve_domain_ip
from src.infra.shell import CommandRunner, ShellError

console = Console()


class PreflightError(Exception):
    """Raised when the host cannot be checked at all."""

    pass


class InstallAborted(Exception):
    """Raised when a fatal step fails or the operator declines to continue."""

    pass


def require_root() -> None:
    """
    Raises:
        PreflightError: If not running with euid 0.
    """
    if os.geteuid() != 0:
        raise PreflightError("The installer must run as root (try: sudo happy-install)")


def detect_ubuntu_major(runner: CommandRunner) -> int:
    """
    Read the release major number from lsb_release.

    Raises:
        PreflightError: If lsb_release is missing or its output is not a version.
    """
    if not runner.which("lsb_release"):
        raise PreflightError("Cannot detect system version")

    try:
        result = runner.run(["lsb_release", "-rs"])
    except ShellError as e:
        raise PreflightError(f"Cannot detect system version: {e}")

    release = result.stdout.strip()
    try:
        return int(release.split(".")[0])
    except ValueError:
        raise PreflightError(f"Unrecognised release string: {release!r}")


def check_system(
    runner: CommandRunner, reporter: StepReporter, prompter: Prompter, min_major: int
) -> int:
    """
    Step 1: verify the OS release.

    Returns:
        Detected Ubuntu major version

    Raises:
        InstallAborted: If the version cannot be read or the operator declines.
    """
    reporter.info("Checking system version...")
    try:
        major = detect_ubuntu_major(runner)
    except PreflightError as e:
        reporter.fail("Cannot detect system version", str(e))
        raise InstallAborted(str(e))

    if major < min_major:
        reporter.warn(f"Detected Ubuntu {major}, Ubuntu {min_major} or newer is recommended")
        if not prompter.confirm("Continue the installation?"):
            raise InstallAborted(f"Operator declined to install on Ubuntu {major}")

    reporter.ok("System version check passed")
    return major


def check_domain(
    runner: CommandRunner,
    reporter: StepReporter,
    prompter: Prompter,
    domain: str,
    public_ip_url: str,
) -> tuple[str, str | None]:
    """
    Step 2: make sure the domain points at this server.

    Returns:
        (domain_ip, server_ip); server_ip is None if the lookup failed

    Raises:
        InstallAborted: If the domain does not resolve or the operator declines.
    """
    reporter.info(f"Pinging domain {domain} ...")
    domain_ip = resolve_domain_ip(runner, domain)
    if not domain_ip:
        reporter.fail("Domain cannot be pinged")
        raise InstallAborted(f"{domain} does not resolve")

    server_ip = fetch_public_ip(public_ip_url)
    console.print(f"Domain resolves to: {domain_ip}")
    console.print(f"Server public IP:   {server_ip or 'unknown'}")

    if domain_ip != server_ip:
        reporter.warn("Domain IP differs from this server's IP, you may be installing on the wrong server")
        if not prompter.confirm("Continue?"):
            raise InstallAborted(f"{domain} points at {domain_ip}, not {server_ip}")

    reporter.ok("Domain resolution check complete")
    return domain_ip, server_ip
