# =============================================================================
# GIT CLIENT TESTS
# =============================================================================
# Tests for the Git infrastructure client.
# =============================================================================

import pytest

from src.infra.git_client import GitError, clone_repository
from src.infra.shell import ShellError


class TestCloneRepository:
    """Test clone_repository."""

    def test_clones_into_dest(self, mock_runner, tmp_path):
        dest = tmp_path / "happy"
        result = clone_repository(mock_runner, "https://github.com/slopus/happy.git", dest)

        assert result == dest
        mock_runner.run.assert_called_once()
        assert mock_runner.run.call_args.args[0] == [
            "git", "clone", "https://github.com/slopus/happy.git", str(dest)
        ]

    def test_removes_existing_checkout(self, mock_runner, tmp_path):
        """A stale directory is deleted before cloning."""
        dest = tmp_path / "happy"
        dest.mkdir()
        (dest / "stale.txt").write_text("old")

        clone_repository(mock_runner, "https://github.com/slopus/happy.git", dest)
        assert not (dest / "stale.txt").exists()

    def test_clone_failure(self, mock_runner, tmp_path):
        mock_runner.run.side_effect = ShellError("fatal: could not resolve host", returncode=128)
        with pytest.raises(GitError) as exc_info:
            clone_repository(mock_runner, "https://github.com/slopus/happy.git", tmp_path / "happy")
        assert "could not resolve host" in str(exc_info.value)


class TestGitError:
    """Test GitError exception."""

    def test_git_error_message(self):
        error = GitError("git clone failed: permission denied")
        assert "clone failed" in str(error)
