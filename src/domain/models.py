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
# DOMAIN MODELS - INSTALL PLAN
# -----------------------------------------------------------------------------
# These Pydantic models describe one run of the installer: where Happy is
# served from, how TLS is obtained, and what each step reported.
#
# The CLI and config file produce an InstallConfig; the Installer consumes it
# without re-checking values. Invalid domains or ports are rejected here.
# -----------------------------------------------------------------------------

import re
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# RFC 1123 hostname, at least one dot (a bare label cannot get a public cert)
DOMAIN_PATTERN = re.compile(
    r"^(?=.{1,253}$)(?!-)[a-z0-9-]{1,63}(?<!-)(\.(?!-)[a-z0-9-]{1,63}(?<!-))+$"
)


class CertMode(str, Enum):
    """
    How the public TLS certificate is obtained.

    LETSENCRYPT lets Caddy request and renew certificates on its own.
    CLOUDFLARE uses an Origin Certificate pasted by the operator (orange-cloud
    proxied domains).
    """

    LETSENCRYPT = "letsencrypt"
    CLOUDFLARE = "cloudflare"

    @classmethod
    def from_choice(cls, choice: str) -> "CertMode":
        """
        Map a menu answer ("1"/"2") or a mode name to a CertMode.

        Raises:
            ValueError: If the choice matches neither form.
        """
        value = (choice or "").strip().lower()
        menu = {"1": cls.LETSENCRYPT, "2": cls.CLOUDFLARE}
        if value in menu:
            return menu[value]
        return cls(value)


class StepState(str, Enum):
    """Outcome of a recorded installer step."""

    OK = "OK"
    FAIL = "FAIL"


class StepRecord(BaseModel):
    """A single line of the install summary."""

    label: str
    state: StepState
    detail: str | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class InstallConfig(BaseModel):
    """
    Everything the Installer needs to provision one server.

    domain and cert_mode may be left empty; the Installer prompts for them.
    Defaults match a stock Ubuntu host running Happy behind Caddy.
    """

    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True, extra="forbid")

    domain: str | None = Field(None, description="Domain already pointing at this server")
    cert_mode: CertMode | None = Field(None, description="TLS strategy")
    origin_cert_file: Path | None = Field(
        None, description="Cloudflare Origin PEM to use instead of pasting it"
    )
    origin_key_file: Path | None = Field(
        None, description="Cloudflare Origin private key to use instead of pasting it"
    )
    assume_yes: bool = Field(False, description="Answer yes to every warning confirmation")
    require_root: bool = True

    min_ubuntu_major: int = Field(24, ge=1)

    upstream_host: str = "127.0.0.1"
    upstream_port: int = Field(3000, ge=1, le=65535)
    container_port: int = Field(80, ge=1, le=65535)
    image_tag: str = Field("happy:local", min_length=1)
    container_name: str = Field("happy", pattern=r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")

    repo_url: str = "https://github.com/slopus/happy.git"
    clone_dir: Path = Path("/root/happy")
    source_candidates: list[Path] = Field(
        default_factory=lambda: [Path("/root/happy"), Path("/etc/happy")]
    )
    source_dir: Path | None = None

    caddyfile_path: Path = Path("/etc/caddy/Caddyfile")
    cert_dir: Path = Path("/etc/ssl/cloudflare")
    public_ip_url: str = "https://api.ipify.org"
    record_dir: Path | None = Path("/var/log/happy-install")

    @field_validator("domain")
    @classmethod
    def _check_domain(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        value = value.lower().rstrip(".")
        if not DOMAIN_PATTERN.match(value):
            raise ValueError(f"'{value}' is not a valid domain name")
        return value

    @field_validator("cert_mode", mode="before")
    @classmethod
    def _parse_cert_mode(cls, value):
        if value is None or isinstance(value, CertMode):
            return value
        if value == "":
            return None
        return CertMode.from_choice(str(value))

    @model_validator(mode="after")
    def _check_origin_pair(self) -> "InstallConfig":
        if (self.origin_cert_file is None) != (self.origin_key_file is None):
            raise ValueError("origin_cert_file and origin_key_file must be given together")
        return self

    @property
    def upstream(self) -> str:
        """Address Caddy proxies to (the published container port)."""
        return f"{self.upstream_host}:{self.upstream_port}"

    @property
    def https_url(self) -> str:
        return f"https://{self.domain}"

    def snapshot(self) -> dict:
        """JSON-safe view of the config for the install record."""
        return self.model_dump(mode="json")
