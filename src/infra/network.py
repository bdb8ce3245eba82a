# -----------------------------------------------------------------------------
# NETWORK PROBES
# -----------------------------------------------------------------------------
# Responsibility: Answer the installer's reachability questions.
# - Which IP does the domain resolve to? (ping)
# - What is this server's public IP? (ipify)
# - Is anything listening on 443? (ss)
# - Does https://<domain> answer at all? (HEAD, certificate not verified)
# -----------------------------------------------------------------------------

import re

import requests
import urllib3
from rich.console import Console
from rich.markup import escape

from src.infra.shell import CommandRunner, ShellError

console = Console()

# "PING api.example.com (203.0.113.7) 56(84) bytes of data."
PING_ADDRESS_PATTERN = re.compile(r"\(([0-9a-fA-F:.]+)\)")

HTTP_TIMEOUT_SECONDS = 10


def resolve_domain_ip(runner: CommandRunner, domain: str) -> str | None:
    """
    Resolve a domain the same way an operator would check it: with ping.

    Args:
        runner: Command runner
        domain: Domain to resolve

    Returns:
        The address ping reported, or None if the domain does not resolve
    """
    # ping exits 1 when ICMP is blocked but still prints the resolved address
    try:
        result = runner.run(["ping", "-c", "1", domain], check=False, timeout=15)
    except ShellError as e:
        console.print(f"[yellow][NETWORK] ping {domain} failed: {escape(str(e))}[/yellow]")
        return None

    for line in result.stdout.splitlines():
        match = PING_ADDRESS_PATTERN.search(line)
        if match:
            return match.group(1)
    return None


def fetch_public_ip(url: str) -> str | None:
    """Ask an external echo service for this server's public IP."""
    try:
        response = requests.get(url, timeout=HTTP_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.RequestException as e:
        console.print(f"[yellow][NETWORK] Public IP lookup failed: {escape(str(e))}[/yellow]")
        return None
    return response.text.strip() or None


def is_port_listening(runner: CommandRunner, port: int) -> bool:
    """
    Check for a TCP listener on the given port.

    Parses `ss -lnt`; the local address column ends with ":<port>".
    """
    try:
        result = runner.run(["ss", "-lnt"], check=False)
    except ShellError as e:
        console.print(f"[yellow][NETWORK] ss unavailable: {escape(str(e))}[/yellow]")
        return False

    suffix = f":{port}"
    for line in result.stdout.splitlines()[1:]:
        columns = line.split()
        if len(columns) >= 4 and columns[3].endswith(suffix):
            return True
    return False


def probe_https(url: str) -> bool:
    """
    Send a HEAD request without certificate verification.

    Any HTTP response counts as success; only connection and TLS handshake
    errors count as failure.
    """
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    try:
        response = requests.head(url, timeout=HTTP_TIMEOUT_SECONDS, verify=False)
    except requests.RequestException as e:
        console.print(f"[yellow][NETWORK] HEAD {url} failed: {escape(str(e))}[/yellow]")
        return False

    console.print(f"[cyan][NETWORK] HEAD {url} -> {response.status_code}[/cyan]")
    return True
