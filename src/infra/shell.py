# -----------------------------------------------------------------------------
# SHELL INFRASTRUCTURE - Privileged Command Execution
# -----------------------------------------------------------------------------
# Responsibility: Run system tools (apt, systemctl, gpg, ping, ss, lsb_release)
# through subprocess with timeouts and readable failures.
#
# Every installer step that touches the host goes through CommandRunner so
# tests can replace it with a mock.
# -----------------------------------------------------------------------------

import os
import shutil
import subprocess

from rich.console import Console

console = Console()

# apt and the Docker convenience script can take a while on small VPSes
DEFAULT_TIMEOUT_SECONDS = 900


class ShellError(Exception):
    """Raised when a command cannot be run or exits non-zero."""

    def __init__(self, message: str, returncode: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class CommandRunner:
    """
    Thin subprocess wrapper for host commands.

    Output is captured and returned; on failure the tail of stderr/stdout is
    attached to the ShellError so the step log can show why.
    """

    def __init__(self, timeout: int = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout = timeout

    def run(
        self,
        cmd: list[str],
        input: str | bytes | None = None,
        check: bool = True,
        timeout: int | None = None,
        env: dict | None = None,
    ) -> subprocess.CompletedProcess:
        """
        Run a command and capture its output.

        Args:
            cmd: Command parts (e.g., ["apt", "update"])
            input: Data fed to stdin. Bytes switch the call to binary mode.
            check: Raise on non-zero exit
            timeout: Seconds before the command is killed
            env: Extra environment variables for this command

        Returns:
            CompletedProcess result

        Raises:
            ShellError: If the command is missing, times out, or fails and check=True
        """
        text = not isinstance(input, bytes)
        console.print(f"[dim][SHELL] $ {' '.join(cmd)}[/dim]")

        try:
            result = subprocess.run(
                cmd,
                input=input,
                capture_output=True,
                text=text,
                timeout=timeout or self._timeout,
                env={**os.environ, **env} if env else None,
            )
        except FileNotFoundError:
            raise ShellError(f"Command not found: {cmd[0]}")
        except subprocess.TimeoutExpired:
            raise ShellError(f"Command timed out: {' '.join(cmd)}")
        except subprocess.SubprocessError as e:
            raise ShellError(f"Subprocess error running {cmd[0]}: {e}")

        if check and result.returncode != 0:
            output = _as_text(result.stderr) or _as_text(result.stdout) or "Unknown error"
            raise ShellError(
                f"{' '.join(cmd)} exited with {result.returncode}: {output.strip()[-500:]}",
                returncode=result.returncode,
                output=output,
            )

        return result

    def which(self, name: str) -> bool:
        """Check whether an executable is available on PATH."""
        return shutil.which(name) is not None


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
