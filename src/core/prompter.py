# -----------------------------------------------------------------------------
# PROMPTER - OPERATOR INTERACTION
# -----------------------------------------------------------------------------
# Responsibility: Every question the installer asks goes through here.
# Warnings need an explicit "y"; anything else stops the install.
# With assume_yes the warnings are accepted without asking (unattended runs).
# -----------------------------------------------------------------------------

import sys

from rich.console import Console
from rich.prompt import Prompt

from src.domain.models import CertMode

console = Console()


class Prompter:
    """Reads operator answers from the terminal."""

    def __init__(self, assume_yes: bool = False, out: Console | None = None, stdin=None) -> None:
        self._assume_yes = assume_yes
        self._console = out or console
        self._stdin = stdin

    def confirm(self, question: str) -> bool:
        """
        Ask a yes/no question that defaults to No.

        Only "y" or "Y" continues.
        """
        if self._assume_yes:
            self._console.print(f"{question} (y/N): y [dim](--yes)[/dim]")
            return True
        answer = Prompt.ask(f"{question} (y/N)", default="", show_default=False, console=self._console)
        return answer.strip() in ("y", "Y")

    def ask(self, question: str) -> str:
        return Prompt.ask(question, console=self._console).strip()

    def choose_cert_mode(self) -> CertMode:
        """
        Show the certificate menu and return the chosen mode.

        Raises:
            ValueError: If the answer is not one of the menu entries.
        """
        self._console.print()
        self._console.print("Choose how to obtain the certificate:")
        self._console.print("1) Let's Encrypt (automatic issue & renewal)")
        self._console.print("2) Cloudflare Origin Cert (orange cloud, paste manually)")
        answer = Prompt.ask("Enter your choice [1/2]", console=self._console)
        return CertMode.from_choice(answer)

    def read_block(self, label: str) -> str:
        """Read pasted multi-line text until EOF (Ctrl+D)."""
        self._console.print(f"[bold cyan]▶[/bold cyan] Paste the {label} (finish with Ctrl+D)")
        stream = self._stdin or sys.stdin
        return stream.read()
