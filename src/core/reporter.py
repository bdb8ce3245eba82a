# -----------------------------------------------------------------------------
# STEP REPORTER - STATUS LINES, SUMMARY & INSTALL RECORD
# -----------------------------------------------------------------------------
# Responsibility: The operator-facing log of the install.
# - ok/fail print a ✔/✘ line and record the step
# - warn prints a yellow "!" line and records nothing
# - render_summary prints every recorded step in first-seen order
# - save writes install_record.json, pass or fail
# -----------------------------------------------------------------------------

import json
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from src.domain.models import StepRecord, StepState

console = Console()

OK_MARK = "[green]✔[/green]"
FAIL_MARK = "[red]✘[/red]"


class StepReporter:
    """
    Collects step outcomes and prints them as they happen.

    Recording a label twice keeps the latest state in the original position,
    so a retried step shows once in the summary.
    """

    def __init__(self, out: Console | None = None) -> None:
        self._console = out or console
        self._records: dict[str, StepRecord] = {}
        self.started_at = datetime.now(timezone.utc)

    @property
    def records(self) -> list[StepRecord]:
        return list(self._records.values())

    def info(self, message: str) -> None:
        self._console.print(f"[bold cyan]▶[/bold cyan] {escape(message)}")

    def ok(self, label: str, detail: str | None = None) -> None:
        self._console.print(f"{OK_MARK} {escape(label)}")
        self._record(label, StepState.OK, detail)

    def fail(self, label: str, detail: str | None = None) -> None:
        self._console.print(f"{FAIL_MARK} {escape(label)}")
        if detail:
            self._console.print(f"  [dim]{escape(detail)}[/dim]", highlight=False)
        self._record(label, StepState.FAIL, detail)

    def warn(self, message: str) -> None:
        self._console.print(f"[yellow]! {escape(message)}[/yellow]")

    def _record(self, label: str, state: StepState, detail: str | None) -> None:
        if label in self._records:
            record = self._records[label]
            record.state = state
            record.detail = detail
        else:
            self._records[label] = StepRecord(label=label, state=state, detail=detail)

    def has_failures(self) -> bool:
        return any(r.state == StepState.FAIL for r in self._records.values())

    def failed_steps(self) -> list[str]:
        return [r.label for r in self._records.values() if r.state == StepState.FAIL]

    def render_summary(self) -> None:
        """Print the install result table."""
        table = Table(title="Install Summary", show_header=False, box=None)
        table.add_column("state", width=2)
        table.add_column("step")
        for record in self._records.values():
            mark = OK_MARK if record.state == StepState.OK else FAIL_MARK
            table.add_row(mark, escape(record.label))

        self._console.print()
        self._console.rule("[bold]Install Results[/bold]")
        self._console.print(table)

    def render_success(self, url: str) -> None:
        """Print the closing banner with the address to open."""
        self._console.print()
        self._console.print(
            Panel(
                f"[bold green]Server deployment finished![/bold green]\n\n"
                f"👉 Open in your browser: [bold]{url}[/bold]\n"
                f"👉 The Happy web app should load",
                border_style="green",
            )
        )

    def save(self, record_dir: Path, outcome: str, config_snapshot: dict) -> Path:
        """
        Write install_record.json into a timestamped folder.

        Args:
            record_dir: Parent directory for install records
            outcome: "completed", "completed_with_failures" or "aborted"
            config_snapshot: JSON-safe config (no certificate contents)

        Returns:
            Path of the written record
        """
        folder = Path(record_dir) / self.started_at.strftime("%Y%m%dT%H%M%SZ")
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / "install_record.json"

        report = {
            "started_at": self.started_at.isoformat(),
            "finished_at": datetime.now(timezone.utc).isoformat(),
            "outcome": outcome,
            "config": config_snapshot,
            "steps": [r.model_dump(mode="json") for r in self._records.values()],
        }
        with open(path, "w") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)

        self._console.print(f"[dim][RECORD] Install record saved: {path}[/dim]")
        return path
