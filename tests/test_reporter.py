"""
Tests for the step reporter.
"""

import json

from src.domain.models import StepState


class TestStepReporter:
    """Tests for ok/fail/warn bookkeeping."""

    def test_ok_and_fail_recorded(self, reporter, quiet_console):
        reporter.ok("Caddy installed")
        reporter.fail("Port 443 not listening")

        assert [r.label for r in reporter.records] == ["Caddy installed", "Port 443 not listening"]
        assert reporter.records[0].state == StepState.OK
        assert reporter.records[1].state == StepState.FAIL

        output = quiet_console.file.getvalue()
        assert "✔ Caddy installed" in output
        assert "✘ Port 443 not listening" in output

    def test_warn_not_recorded(self, reporter, quiet_console):
        reporter.warn("Domain IP differs")
        assert reporter.records == []
        assert "! Domain IP differs" in quiet_console.file.getvalue()

    def test_same_label_keeps_position(self, reporter):
        """A re-recorded label updates state but keeps first-seen order."""
        reporter.fail("HTTPS access")
        reporter.ok("Caddy installed")
        reporter.ok("HTTPS access")

        assert [r.label for r in reporter.records] == ["HTTPS access", "Caddy installed"]
        assert reporter.records[0].state == StepState.OK
        assert not reporter.has_failures()

    def test_failed_steps(self, reporter):
        reporter.ok("System version check passed")
        reporter.fail("Caddy installation failed", "apt exited with 100")
        assert reporter.has_failures()
        assert reporter.failed_steps() == ["Caddy installation failed"]

    def test_fail_detail_with_brackets(self, reporter, quiet_console):
        """Details containing markup-like text are printed literally."""
        reporter.fail("Base dependency installation failed", "[/red] [Errno 2] boom")
        assert "[Errno 2] boom" in quiet_console.file.getvalue()

    def test_labels_with_brackets(self, reporter, quiet_console):
        reporter.ok("Found Happy source: /srv/[/red]happy")
        reporter.warn("Could not save install record: [Errno 13] Permission denied")
        reporter.render_summary()

        output = quiet_console.file.getvalue()
        assert output.count("/srv/[/red]happy") == 2
        assert "[Errno 13] Permission denied" in output

    def test_summary_lists_all_steps(self, reporter, quiet_console):
        reporter.ok("Happy image built")
        reporter.fail("HTTPS access failed")
        reporter.render_summary()

        output = quiet_console.file.getvalue()
        assert "Install Results" in output
        assert output.count("Happy image built") == 2
        assert output.count("HTTPS access failed") == 2

    def test_success_banner(self, reporter, quiet_console):
        reporter.render_success("https://api.example.com")
        assert "https://api.example.com" in quiet_console.file.getvalue()


class TestInstallRecord:
    """Tests for install_record.json."""

    def test_save_writes_json(self, reporter, tmp_path):
        reporter.ok("System version check passed")
        reporter.fail("HTTPS access failed")

        path = reporter.save(tmp_path, "completed_with_failures", {"domain": "api.example.com"})

        assert path.name == "install_record.json"
        assert path.parent.parent == tmp_path
        data = json.loads(path.read_text())
        assert data["outcome"] == "completed_with_failures"
        assert data["config"] == {"domain": "api.example.com"}
        assert [s["state"] for s in data["steps"]] == ["OK", "FAIL"]
