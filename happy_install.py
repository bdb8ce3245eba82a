#!/usr/bin/env python3
"""
Happy self-hosted installer.

Provisions Docker, Caddy and TLS on an Ubuntu server and runs Happy behind
https://<domain>. Run as root:

  sudo happy-install
  sudo happy-install --domain api.example.com --cert 1 --yes
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from src.core.installer import EXIT_ABORTED, Installer
from src.core.settings import ConfigError, build_config

# --- CONFIGURATION ---
SYSTEM_NAME = "HAPPY INSTALLER"
VERSION = "1.0"
console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="happy-install",
        description="Deploy Happy behind Caddy with Let's Encrypt or a Cloudflare Origin certificate.",
    )
    parser.add_argument("--domain", help="Domain already resolved to this server")
    parser.add_argument(
        "--cert",
        dest="cert_mode",
        choices=["1", "2", "letsencrypt", "cloudflare"],
        help="Certificate mode: 1/letsencrypt or 2/cloudflare",
    )
    parser.add_argument("--origin-cert", dest="origin_cert_file", type=Path,
                        help="Cloudflare Origin PEM file (skips pasting)")
    parser.add_argument("--origin-key", dest="origin_key_file", type=Path,
                        help="Cloudflare Origin private key file (skips pasting)")
    parser.add_argument("-y", "--yes", dest="assume_yes", action="store_true", default=None,
                        help="Continue past version/IP warnings without asking")
    parser.add_argument("--source-dir", type=Path, help="Build Happy from this directory")
    parser.add_argument("--repo-url", help="Repository cloned when no source is found")
    parser.add_argument("--upstream-port", type=int, help="Loopback port Caddy proxies to")
    parser.add_argument("--image-tag", help="Tag for the built image")
    parser.add_argument("--container-name", help="Name of the Happy container")
    parser.add_argument("--record-dir", type=Path, help="Where install records are written")
    parser.add_argument("--config", dest="config_path", type=Path, help="YAML config file")
    parser.add_argument("--skip-root-check", action="store_true",
                        help="Do not require root (for containers that fake it)")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv(Path.cwd() / ".env")

    args = build_parser().parse_args(argv)
    cli_values = vars(args)
    config_path = cli_values.pop("config_path")
    if cli_values.pop("skip_root_check"):
        cli_values["require_root"] = False

    try:
        config = build_config(cli_values, config_path)
    except ConfigError as e:
        console.print(Panel(f"[bold red]{escape(str(e))}[/bold red]", title="CONFIG ERROR", border_style="red"))
        return EXIT_ABORTED

    console.rule(f"[bold cyan]{SYSTEM_NAME} v{VERSION}[/bold cyan]")
    outcome = Installer(config).run()
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
