"""
Tests for Pydantic domain models.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.domain.models import CertMode, InstallConfig, StepRecord, StepState


class TestCertMode:
    """Tests for CertMode enum."""

    def test_values(self):
        assert CertMode.LETSENCRYPT.value == "letsencrypt"
        assert CertMode.CLOUDFLARE.value == "cloudflare"

    def test_menu_choices(self):
        """Menu answers 1 and 2 map to the two modes."""
        assert CertMode.from_choice("1") == CertMode.LETSENCRYPT
        assert CertMode.from_choice(" 2 ") == CertMode.CLOUDFLARE

    def test_names_case_insensitive(self):
        assert CertMode.from_choice("Cloudflare") == CertMode.CLOUDFLARE
        assert CertMode.from_choice("LETSENCRYPT") == CertMode.LETSENCRYPT

    @pytest.mark.parametrize("choice", ["3", "", "0", "acme", None])
    def test_invalid_choice(self, choice):
        with pytest.raises(ValueError):
            CertMode.from_choice(choice)


class TestStepRecord:
    """Tests for StepRecord model."""

    def test_timestamp_defaults(self):
        record = StepRecord(label="Caddy installed", state=StepState.OK)
        assert record.timestamp
        assert record.detail is None


class TestInstallConfig:
    """Tests for InstallConfig model."""

    def test_defaults(self):
        """Defaults match the stock deployment layout."""
        config = InstallConfig()
        assert config.domain is None
        assert config.cert_mode is None
        assert config.upstream == "127.0.0.1:3000"
        assert config.container_port == 80
        assert config.image_tag == "happy:local"
        assert config.container_name == "happy"
        assert config.repo_url == "https://github.com/slopus/happy.git"
        assert config.source_candidates == [Path("/root/happy"), Path("/etc/happy")]
        assert config.caddyfile_path == Path("/etc/caddy/Caddyfile")
        assert config.cert_dir == Path("/etc/ssl/cloudflare")
        assert config.min_ubuntu_major == 24

    def test_domain_normalised(self):
        config = InstallConfig(domain="  API.Example57.com. ")
        assert config.domain == "api.example57.com"
        assert config.https_url == "https://api.example57.com"

    @pytest.mark.parametrize("domain", ["localhost", "bad_domain.com", "-a.example.com", "a..b", "http://x.com"])
    def test_invalid_domain_rejected(self, domain):
        with pytest.raises(ValidationError):
            InstallConfig(domain=domain)

    def test_empty_domain_is_none(self):
        assert InstallConfig(domain="").domain is None

    def test_domain_assignment_validated(self):
        """Prompted domains go through the same validation."""
        config = InstallConfig()
        config.domain = "happy.example.org"
        assert config.domain == "happy.example.org"
        with pytest.raises(ValidationError):
            config.domain = "not a domain"

    def test_cert_mode_from_menu_number(self):
        assert InstallConfig(cert_mode="2").cert_mode == CertMode.CLOUDFLARE
        assert InstallConfig(cert_mode="letsencrypt").cert_mode == CertMode.LETSENCRYPT

    def test_cert_mode_invalid(self):
        with pytest.raises(ValidationError):
            InstallConfig(cert_mode="9")

    def test_port_range(self):
        with pytest.raises(ValidationError):
            InstallConfig(upstream_port=70000)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            InstallConfig(domian="typo.example.com")

    def test_origin_files_given_together(self, tmp_path):
        config = InstallConfig(origin_cert_file=tmp_path / "o.pem", origin_key_file=tmp_path / "o.key")
        assert config.origin_key_file == tmp_path / "o.key"

    def test_origin_cert_without_key_rejected(self, tmp_path):
        """A lone --origin-cert must not fall back to pasting both blocks."""
        with pytest.raises(ValidationError, match="given together"):
            InstallConfig(cert_mode="cloudflare", origin_cert_file=tmp_path / "o.pem")
        with pytest.raises(ValidationError):
            InstallConfig(origin_key_file=tmp_path / "o.key")

    def test_snapshot_is_json_safe(self):
        config = InstallConfig(domain="api.example.com", cert_mode="1")
        snapshot = config.snapshot()
        assert snapshot["domain"] == "api.example.com"
        assert snapshot["cert_mode"] == "letsencrypt"
        assert snapshot["caddyfile_path"] == "/etc/caddy/Caddyfile"
