# -----------------------------------------------------------------------------
# SETTINGS - LAYERED INSTALL CONFIGURATION
# -----------------------------------------------------------------------------
# Responsibility: Build the InstallConfig from, lowest to highest priority:
#   1. model defaults
#   2. YAML file (--config or HAPPY_CONFIG)
#   3. HAPPY_* environment variables (a .env file is loaded by the CLI)
#   4. command-line flags
# -----------------------------------------------------------------------------

import os
from pathlib import Path

import yaml
from pydantic import ValidationError
from rich.console import Console

from src.domain.models import InstallConfig

console = Console()

# Environment variable -> InstallConfig field
ENV_FIELDS = {
    "HAPPY_DOMAIN": "domain",
    "HAPPY_CERT_MODE": "cert_mode",
    "HAPPY_ORIGIN_CERT": "origin_cert_file",
    "HAPPY_ORIGIN_KEY": "origin_key_file",
    "HAPPY_ASSUME_YES": "assume_yes",
    "HAPPY_SOURCE_DIR": "source_dir",
    "HAPPY_REPO_URL": "repo_url",
    "HAPPY_UPSTREAM_PORT": "upstream_port",
    "HAPPY_IMAGE_TAG": "image_tag",
    "HAPPY_CONTAINER_NAME": "container_name",
    "HAPPY_RECORD_DIR": "record_dir",
}


class ConfigError(Exception):
    """Raised when the configuration file or values are invalid."""

    pass


def load_yaml_config(path: Path) -> dict:
    """
    Read a YAML config file into a dict of InstallConfig fields.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    console.print(f"[cyan][CONFIG] Loaded {len(data)} settings from {path}[/cyan]")
    return data


def env_overrides(environ: dict | None = None) -> dict:
    """Collect InstallConfig fields set through HAPPY_* variables."""
    environ = os.environ if environ is None else environ
    values = {}
    for var, field in ENV_FIELDS.items():
        raw = environ.get(var)
        if raw is None or raw.strip() == "":
            continue
        values[field] = raw.strip()
    return values


def build_config(
    cli_values: dict | None = None,
    config_path: Path | None = None,
    environ: dict | None = None,
) -> InstallConfig:
    """
    Merge every configuration layer into a validated InstallConfig.

    Args:
        cli_values: Flags given on the command line (None values are ignored)
        config_path: Optional YAML file; falls back to HAPPY_CONFIG
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: If any layer is unreadable or the merged values are invalid.
    """
    environ = os.environ if environ is None else environ
    merged: dict = {}

    config_path = config_path or environ.get("HAPPY_CONFIG") or None
    if config_path:
        merged.update(load_yaml_config(Path(config_path)))

    merged.update(env_overrides(environ))
    merged.update({k: v for k, v in (cli_values or {}).items() if v is not None})

    try:
        return InstallConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")
