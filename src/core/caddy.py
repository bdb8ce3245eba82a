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
# CADDY CONFIGURATOR - REVERSE PROXY & TLS
# -----------------------------------------------------------------------------
# Responsibility: Render and install the Caddyfile for the chosen TLS mode.
#
# Modes:
# - Let's Encrypt: a bare site block; Caddy obtains and renews the cert
# - Cloudflare Origin: explicit tls files, gzip, and forwarded headers so
#   Happy sees the real client behind Cloudflare's proxy
#
# Certificate material is written to disk and never printed.
# -----------------------------------------------------------------------------

import os
import re
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from src.domain.models import CertMode
from src.infra.network import is_port_listening
from src.infra.shell import CommandRunner, ShellError

console = Console()

LETSENCRYPT_TEMPLATE = """\
{domain} {{
    reverse_proxy {upstream}
}}
"""

CLOUDFLARE_TEMPLATE = """\
{domain} {{
    tls {pem} {key}

    encode gzip

    reverse_proxy {upstream} {{
        header_up Host {{host}}
        header_up X-Real-IP {{remote_host}}
        header_up X-Forwarded-For {{remote_host}}
        header_up X-Forwarded-Proto https
    }}
}}
"""

# Accepted PEM block labels per file kind
PEM_LABELS = {
    "certificate": ("CERTIFICATE",),
    "private key": ("PRIVATE KEY", "RSA PRIVATE KEY", "EC PRIVATE KEY"),
}

PEM_BLOCK_PATTERN = re.compile(r"-----BEGIN ([A-Z ]+)-----.+?-----END \1-----", re.DOTALL)


class CaddyError(Exception):
    """Raised when the Caddyfile or certificates cannot be installed."""

    pass


def render_caddyfile(
    domain: str,
    mode: CertMode,
    upstream: str,
    pem: Path | None = None,
    key: Path | None = None,
) -> str:
    """
    Build the Caddyfile text for a site.

    Args:
        domain: Site address
        mode: TLS strategy
        upstream: host:port Caddy proxies to
        pem: Certificate path (Cloudflare mode only)
        key: Private key path (Cloudflare mode only)

    Raises:
        CaddyError: If Cloudflare mode is missing its certificate paths.
    """
    if mode == CertMode.LETSENCRYPT:
        return LETSENCRYPT_TEMPLATE.format(domain=domain, upstream=upstream)

    if pem is None or key is None:
        raise CaddyError("Cloudflare mode needs both a certificate and a key path")
    return CLOUDFLARE_TEMPLATE.format(domain=domain, upstream=upstream, pem=pem, key=key)


def validate_pem(text: str, kind: str) -> str:
    """
    Check that pasted text holds a PEM block of the expected kind.

    Args:
        text: Pasted PEM content
        kind: "certificate" or "private key"

    Returns:
        The text, stripped and newline-terminated

    Raises:
        CaddyError: If no matching PEM block is present.
    """
    labels = PEM_LABELS[kind]
    for match in PEM_BLOCK_PATTERN.finditer(text or ""):
        if match.group(1) in labels:
            return text.strip() + "\n"
    raise CaddyError(f"Pasted {kind} is not a PEM {labels[0]} block")


def store_origin_certificate(
    cert_dir: Path, domain: str, pem_text: str, key_text: str
) -> tuple[Path, Path]:
    """
    Write the Cloudflare Origin certificate and key for a domain.

    The key is created with mode 0600.

    Returns:
        (pem_path, key_path)

    Raises:
        CaddyError: If either block is invalid or the files cannot be written.
    """
    pem_text = validate_pem(pem_text, "certificate")
    key_text = validate_pem(key_text, "private key")

    cert_dir = Path(cert_dir)
    pem_path = cert_dir / f"{domain}.pem"
    key_path = cert_dir / f"{domain}.key"

    try:
        cert_dir.mkdir(parents=True, exist_ok=True)
        pem_path.write_text(pem_text)
        pem_path.chmod(0o644)
        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(key_text)
        key_path.chmod(0o600)
    except OSError as e:
        raise CaddyError(f"Cannot write origin certificate files: {e}")

    console.print(f"[cyan][CADDY] Origin certificate stored: {pem_path}, {key_path}[/cyan]")
    return pem_path, key_path


class CaddyConfigurator:
    """Writes the Caddyfile and reloads the service."""

    def __init__(self, runner: CommandRunner, caddyfile_path: Path) -> None:
        self._runner = runner
        self._caddyfile_path = Path(caddyfile_path)

    def write(self, content: str) -> Path:
        try:
            self._caddyfile_path.parent.mkdir(parents=True, exist_ok=True)
            self._caddyfile_path.write_text(content)
        except OSError as e:
            raise CaddyError(f"Cannot write {self._caddyfile_path}: {e}")
        console.print(f"[cyan][CADDY] Wrote {self._caddyfile_path}[/cyan]")
        return self._caddyfile_path

    def reload(self) -> None:
        """
        Reload caddy, falling back to a restart.

        Raises:
            CaddyError: If both reload and restart fail.
        """
        try:
            self._runner.run(["systemctl", "reload", "caddy"])
            console.print("[green][CADDY] Reloaded[/green]")
            return
        except ShellError as e:
            console.print(f"[yellow][CADDY] Reload failed, restarting: {escape(str(e))}[/yellow]")

        try:
            self._runner.run(["systemctl", "restart", "caddy"])
        except ShellError as e:
            raise CaddyError(f"Caddy restart failed: {e}")
        console.print("[green][CADDY] Restarted[/green]")

    def apply(self, content: str) -> Path:
        """Write the Caddyfile and make caddy pick it up."""
        path = self.write(content)
        self.reload()
        return path


def tls_listener_up(runner: CommandRunner, port: int = 443) -> bool:
    """Step 6: is Caddy accepting connections on the TLS port?"""
    return is_port_listening(runner, port)
