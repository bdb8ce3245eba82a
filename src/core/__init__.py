# -----------------------------------------------------------------------------
# CORE LAYER
# -----------------------------------------------------------------------------
# The install steps for a self-hosted Happy server:
# - Preflight: system version and domain checks
# - PackageInstaller: apt, Docker Engine, Caddy
# - CaddyConfigurator: Caddyfile + TLS (Let's Encrypt or Cloudflare Origin)
# - Source locator: existing checkout or fresh clone
# - Deployer: image build, container run, HTTPS check
# - Installer: the orchestrator
# -----------------------------------------------------------------------------

from .caddy import CaddyConfigurator, CaddyError, render_caddyfile
from .deployer import Deployer, DeploymentError
from .installer import Installer, InstallOutcome
from .packages import PackageInstaller, PackageInstallError
from .preflight import InstallAborted, PreflightError
from .reporter import StepReporter
from .settings import ConfigError, build_config
from .source import SourceError, locate_source

__all__ = [
    "CaddyConfigurator", "CaddyError", "render_caddyfile",
    "Deployer", "DeploymentError",
    "Installer", "InstallOutcome",
    "PackageInstaller", "PackageInstallError",
    "InstallAborted", "PreflightError",
    "StepReporter",
    "ConfigError", "build_config",
    "SourceError", "locate_source",
]
