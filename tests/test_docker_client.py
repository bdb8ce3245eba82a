# =============================================================================
# DOCKER CLIENT TESTS
# =============================================================================
# Tests for the Docker infrastructure client.
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest
from docker.errors import APIError, DockerException, NotFound

from src.infra.docker_client import DockerProvider, DockerProviderError


class TestDockerProviderConnect:
    """Test connection and auto-start."""

    @patch("src.infra.docker_client.docker.from_env")
    def test_connects(self, mock_from_env, mock_docker_client):
        mock_from_env.return_value = mock_docker_client
        provider = DockerProvider()
        assert provider.get_client() is mock_docker_client

    @patch("src.infra.docker_client.docker.from_env", side_effect=DockerException("no socket"))
    def test_unavailable_without_auto_start(self, mock_from_env):
        with pytest.raises(DockerProviderError):
            DockerProvider(auto_start=False)

    @patch("src.infra.docker_client.time.sleep")
    @patch("src.infra.docker_client.subprocess.run")
    @patch("src.infra.docker_client.docker.from_env")
    def test_auto_start_recovers(self, mock_from_env, mock_run, mock_sleep, mock_docker_client):
        """systemctl start docker is issued and the next ping succeeds."""
        mock_from_env.side_effect = [DockerException("down"), mock_docker_client]

        provider = DockerProvider()

        assert provider.get_client() is mock_docker_client
        assert mock_run.call_args.args[0] == ["systemctl", "start", "docker"]

    @patch("src.infra.docker_client.WAKE_TIMEOUT_SECONDS", 2)
    @patch("src.infra.docker_client.time.sleep")
    @patch("src.infra.docker_client.subprocess.run")
    @patch("src.infra.docker_client.docker.from_env", side_effect=DockerException("down"))
    def test_auto_start_times_out(self, mock_from_env, mock_run, mock_sleep):
        with pytest.raises(DockerProviderError):
            DockerProvider()


class TestBuildImage:
    """Test image builds."""

    @patch("src.infra.docker_client.docker.from_env")
    def test_build_streams_output(self, mock_from_env, mock_docker_client):
        mock_from_env.return_value = mock_docker_client
        DockerProvider().build_image("/root/happy", "happy:local")

        mock_docker_client.api.build.assert_called_once_with(
            path="/root/happy", tag="happy:local", rm=True, decode=True
        )

    @patch("src.infra.docker_client.docker.from_env")
    def test_build_error_chunk(self, mock_from_env, mock_docker_client):
        mock_docker_client.api.build.return_value = iter(
            [{"stream": "Step 1/3"}, {"error": "npm ERR! JavaScript heap out of memory"}]
        )
        mock_from_env.return_value = mock_docker_client

        with pytest.raises(DockerProviderError) as exc_info:
            DockerProvider().build_image("/root/happy", "happy:local")
        assert "heap out of memory" in str(exc_info.value)

    @patch("src.infra.docker_client.docker.from_env")
    def test_connection_lost_before_build(self, mock_from_env, mock_docker_client):
        mock_docker_client.ping.side_effect = [True, DockerException("[/red] socket closed")]
        mock_from_env.return_value = mock_docker_client
        provider = DockerProvider()

        with pytest.raises(DockerProviderError) as exc_info:
            provider.build_image("/root/happy", "happy:local")
        assert "socket closed" in str(exc_info.value)
        mock_docker_client.api.build.assert_not_called()

    @patch("src.infra.docker_client.docker.from_env")
    def test_build_api_error(self, mock_from_env, mock_docker_client):
        mock_docker_client.api.build.side_effect = APIError("daemon exploded")
        mock_from_env.return_value = mock_docker_client

        with pytest.raises(DockerProviderError):
            DockerProvider().build_image("/root/happy", "happy:local")


class TestReplaceContainer:
    """Test container replacement."""

    @patch("src.infra.docker_client.docker.from_env")
    def test_removes_existing_and_runs(self, mock_from_env, mock_docker_client):
        existing = MagicMock()
        mock_docker_client.containers.get.return_value = existing
        mock_from_env.return_value = mock_docker_client

        container = DockerProvider().replace_container("happy:local", "happy", "127.0.0.1", 3000, 80)

        existing.remove.assert_called_once_with(force=True)
        mock_docker_client.containers.run.assert_called_once_with(
            "happy:local",
            name="happy",
            detach=True,
            restart_policy={"Name": "unless-stopped"},
            ports={"80/tcp": ("127.0.0.1", 3000)},
        )
        assert container.short_id == "abc123"

    @patch("src.infra.docker_client.docker.from_env")
    def test_missing_existing_is_fine(self, mock_from_env, mock_docker_client):
        mock_docker_client.containers.get.side_effect = NotFound("no such container")
        mock_from_env.return_value = mock_docker_client

        DockerProvider().replace_container("happy:local", "happy", "127.0.0.1", 3000, 80)
        mock_docker_client.containers.run.assert_called_once()

    @patch("src.infra.docker_client.docker.from_env")
    def test_run_failure(self, mock_from_env, mock_docker_client):
        mock_docker_client.containers.get.side_effect = NotFound("no such container")
        mock_docker_client.containers.run.side_effect = APIError("port is already allocated")
        mock_from_env.return_value = mock_docker_client

        with pytest.raises(DockerProviderError) as exc_info:
            DockerProvider().replace_container("happy:local", "happy", "127.0.0.1", 3000, 80)
        assert "already allocated" in str(exc_info.value)
