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
# THE INSTALLER - ORCHESTRATOR
# -----------------------------------------------------------------------------
# Responsibility: Run the ten install steps in order and report each one.
# Connects: Preflight -> Packages -> Caddy/TLS -> Source -> Deployer
#
#   1. system version          6. port 443 listener
#   2. domain resolution       7. Happy source directory
#   3. base packages + Docker  8. image build
#   4. Caddy                   9. container start
#   5. TLS + Caddyfile        10. HTTPS verification
#
# Fatal steps raise InstallAborted and stop the run. Steps 3, 4, 6, 9 and 10
# record FAIL and the run continues. The summary and install record are
# produced either way.
# -----------------------------------------------------------------------------

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from src.core.caddy import (
    CaddyConfigurator,
    CaddyError,
    render_caddyfile,
    store_origin_certificate,
    tls_listener_up,
)
from src.core.deployer import Deployer, DeploymentError
from src.core.packages import PackageInstaller, PackageInstallError
from src.core.preflight import (
    InstallAborted,
    PreflightError,
    check_domain,
    check_system,
    require_root,
)
from src.core.prompter import Prompter
from src.core.reporter import StepReporter
from src.core.source import SourceError, fetch_source, locate_source, require_dockerfile
from src.domain.models import CertMode, InstallConfig
from src.infra.shell import CommandRunner

console = Console()

TLS_PORT = 443

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_FAILED_STEPS = 2


@dataclass
class InstallOutcome:
    """Result of one installer run."""

    completed: bool
    failed_steps: list[str] = field(default_factory=list)
    abort_reason: str | None = None
    record_path: Path | None = None

    @property
    def exit_code(self) -> int:
        if not self.completed:
            return EXIT_ABORTED
        if self.failed_steps:
            return EXIT_FAILED_STEPS
        return EXIT_OK

    @property
    def label(self) -> str:
        if not self.completed:
            return "aborted"
        return "completed_with_failures" if self.failed_steps else "completed"


class Installer:
    """
    Provisions Happy behind Caddy on this host.

    Collaborators are injectable so the step logic can be exercised without
    touching the system.
    """

    def __init__(
        self,
        config: InstallConfig,
        runner: CommandRunner | None = None,
        prompter: Prompter | None = None,
        reporter: StepReporter | None = None,
        packages: PackageInstaller | None = None,
        caddy: CaddyConfigurator | None = None,
        deployer: Deployer | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or CommandRunner()
        self.prompter = prompter or Prompter(assume_yes=config.assume_yes)
        self.reporter = reporter or StepReporter()
        self.packages = packages or PackageInstaller(self.runner)
        self.caddy = caddy or CaddyConfigurator(self.runner, config.caddyfile_path)
        self.deployer = deployer or Deployer(config)
        self.cwd = Path(cwd) if cwd else Path.cwd()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def check_privileges(self) -> None:
        if not self.config.require_root:
            return
        try:
            require_root()
        except PreflightError as e:
            self.reporter.fail("Root privileges required", str(e))
            raise InstallAborted(str(e))

    def check_system(self) -> None:
        check_system(self.runner, self.reporter, self.prompter, self.config.min_ubuntu_major)

    def check_domain(self) -> None:
        if not self.config.domain:
            answer = self.prompter.ask(
                "Enter the domain already resolved to this server (e.g. api.example57.com)"
            )
            try:
                self.config.domain = answer
            except ValidationError:
                self.reporter.fail("Invalid domain", f"'{answer}' is not a valid domain name")
                raise InstallAborted(f"Invalid domain: {answer!r}")
            if not self.config.domain:
                self.reporter.fail("Invalid domain", "No domain entered")
                raise InstallAborted("No domain entered")

        check_domain(
            self.runner, self.reporter, self.prompter, self.config.domain, self.config.public_ip_url
        )

    def install_base(self) -> None:
        self.reporter.info("Installing base components...")
        try:
            self.packages.install_base()
            self.reporter.ok("Docker and base dependencies installed")
        except PackageInstallError as e:
            self.reporter.fail("Base dependency installation failed", str(e))

    def install_caddy(self) -> None:
        self.reporter.info("Installing Caddy...")
        try:
            self.packages.install_caddy()
            self.reporter.ok("Caddy installed")
        except PackageInstallError as e:
            self.reporter.fail("Caddy installation failed", str(e))

        try:
            Path(self.config.cert_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.reporter.warn(f"Cannot create {self.config.cert_dir}: {e}")

    def _resolve_cert_mode(self) -> CertMode:
        if self.config.cert_mode is not None:
            return self.config.cert_mode
        try:
            mode = self.prompter.choose_cert_mode()
        except ValueError:
            self.reporter.fail("Invalid certificate choice")
            raise InstallAborted("Invalid certificate choice")
        self.config.cert_mode = mode
        return mode

    def _read_origin_material(self) -> tuple[str, str]:
        cfg = self.config
        if cfg.origin_cert_file is not None:
            try:
                return Path(cfg.origin_cert_file).read_text(), Path(cfg.origin_key_file).read_text()
            except OSError as e:
                raise CaddyError(f"Cannot read origin certificate files: {e}")

        pem_text = self.prompter.read_block("Cloudflare Origin PEM")
        key_text = self.prompter.read_block("Cloudflare Origin KEY")
        return pem_text, key_text

    def configure_tls(self) -> None:
        """Step 5: choose the certificate mode, write the Caddyfile, reload caddy."""
        cfg = self.config
        mode = self._resolve_cert_mode()

        if mode == CertMode.LETSENCRYPT:
            label = "Caddy + Let's Encrypt configured"
            try:
                self.caddy.apply(render_caddyfile(cfg.domain, mode, cfg.upstream))
            except CaddyError as e:
                self.reporter.fail("Caddy + Let's Encrypt configuration failed", str(e))
                raise InstallAborted(str(e))
        else:
            label = "Cloudflare certificate configured"
            try:
                pem_text, key_text = self._read_origin_material()
                pem, key = store_origin_certificate(cfg.cert_dir, cfg.domain, pem_text, key_text)
                self.caddy.apply(render_caddyfile(cfg.domain, mode, cfg.upstream, pem, key))
            except CaddyError as e:
                self.reporter.fail("Cloudflare certificate configuration failed", str(e))
                raise InstallAborted(str(e))

        self.reporter.ok(label)

    def check_tls_listener(self) -> None:
        if tls_listener_up(self.runner, TLS_PORT):
            self.reporter.ok(f"Port {TLS_PORT} listening")
        else:
            self.reporter.fail(f"Port {TLS_PORT} not listening")

    def resolve_source(self) -> Path:
        """Step 7: find (or clone) the directory Happy is built from."""
        cfg = self.config
        self.reporter.info("Locating Happy source directory...")

        source_dir = locate_source(self.cwd, cfg.source_candidates, cfg.source_dir)
        if source_dir is None:
            self.reporter.warn(f"Happy source not found, cloning into {cfg.clone_dir}")
            try:
                source_dir = fetch_source(self.runner, cfg.repo_url, cfg.clone_dir)
            except SourceError as e:
                self.reporter.fail("Failed to fetch Happy source", str(e))
                raise InstallAborted(str(e))
            self.reporter.ok("Happy source fetched")
        else:
            self.reporter.ok(f"Found Happy source: {source_dir}")

        try:
            return require_dockerfile(source_dir)
        except SourceError as e:
            self.reporter.fail(f"Happy source directory has no Dockerfile: {source_dir}")
            raise InstallAborted(str(e))

    def build_image(self, source_dir: Path) -> None:
        self.reporter.info(f"Building Happy image (path: {source_dir})...")
        try:
            self.deployer.build(source_dir)
        except DeploymentError as e:
            self.reporter.fail(
                "Happy image build failed (consider a server with more memory)", str(e)
            )
            raise InstallAborted(str(e))
        self.reporter.ok("Happy image built")

    def start_container(self) -> None:
        try:
            self.deployer.start()
            self.reporter.ok("Happy container started")
        except DeploymentError as e:
            self.reporter.fail("Happy container failed to start", str(e))

    def verify_access(self) -> None:
        self.reporter.info("Verifying access...")
        if self.deployer.verify(self.config.https_url):
            self.reporter.ok("HTTPS access succeeded")
        else:
            self.reporter.fail("HTTPS access failed")

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def run(self) -> InstallOutcome:
        """
        Execute every step, then print the summary and save the record.

        Returns:
            InstallOutcome describing how far the run got
        """
        outcome = InstallOutcome(completed=False)

        try:
            self.check_privileges()
            self.check_system()
            self.check_domain()
            self.install_base()
            self.install_caddy()
            self.configure_tls()
            self.check_tls_listener()
            source_dir = self.resolve_source()
            self.build_image(source_dir)
            self.start_container()
            self.verify_access()
            outcome.completed = True
        except InstallAborted as e:
            outcome.abort_reason = str(e)
            console.print(f"[bold red][INSTALLER] Aborted: {escape(str(e))}[/bold red]")

        outcome.failed_steps = self.reporter.failed_steps()
        self.reporter.render_summary()
        if outcome.completed:
            self.reporter.render_success(self.config.https_url)

        if self.config.record_dir:
            try:
                outcome.record_path = self.reporter.save(
                    self.config.record_dir, outcome.label, self.config.snapshot()
                )
            except OSError as e:
                self.reporter.warn(f"Could not save install record: {e}")

        return outcome
