"""Terminal rendering for the merge CLI."""

from collections.abc import Sequence

from rich.console import Console
from rich.status import Status
from rich.table import Table

from renovate_merger.types.checks import ChecksStatus
from renovate_merger.types.pulls import PullRequest
from renovate_merger.types.results import MergeOutcome, OrchestratorResult

console = Console()
err_console = Console(stderr=True)


class ConsoleReporter:
    """Renders batch progress with a spinner, one line per finished PR."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or console
        self._status: Status | None = None
        self._current: PullRequest | None = None
        self._position = ""

    def start_pr(self, pr: PullRequest, position: str) -> None:
        self._current = pr
        self._position = position
        text = f"[blue]{position} Processing #{pr.number}: {pr.title}[/blue]"
        if self._status is None:
            self._status = self.console.status(text)
            self._status.start()
        else:
            self._status.update(text)

    def update(self, message: str) -> None:
        if self._status is not None and self._current is not None:
            self._status.update(f"[blue]{self._position} #{self._current.number}: {message}[/blue]")

    def _finish(self, line: str) -> None:
        self.stop()
        self.console.print(line)
        self._current = None

    def complete_pr(self, pr: PullRequest, dry_run: bool) -> None:
        if dry_run:
            self._finish(f"[cyan]✔ #{pr.number}: [DRY-RUN] Would be merged[/cyan]")
        else:
            self._finish(f"[green]✔ #{pr.number}: Merged successfully[/green]")

    def skip_pr(self, pr: PullRequest, reason: str) -> None:
        self._finish(f"[yellow]⚠ #{pr.number}: Skipped - {reason}[/yellow]")

    def fail_pr(self, pr: PullRequest, reason: str) -> None:
        self._finish(f"[red]✖ #{pr.number}: Failed - {reason}[/red]")

    def defer_pr(self, pr: PullRequest, reason: str) -> None:
        self._finish(f"[cyan]ℹ #{pr.number}: Deferred - {reason} (will retry)[/cyan]")

    def stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


def format_checks_status(status: ChecksStatus | None) -> str:
    """Short coloured CI summary, e.g. "3/4 pending"."""
    if status is None:
        return "[dim]unknown[/dim]"
    if status.state == "success":
        return f"[green]{status.completed}/{status.total} passed[/green]"
    if status.state in ("failure", "error"):
        return f"[red]{status.completed}/{status.total} failed[/red]"
    return f"[yellow]{status.completed}/{status.total} pending[/yellow]"


def render_pr_table(
    prs: Sequence[PullRequest],
    checks: dict[int, ChecksStatus | None] | None = None,
) -> Table:
    table = Table(title="Renovate PRs")
    table.add_column("#", justify="right", style="bold")
    table.add_column("Title")
    table.add_column("CI")
    table.add_column("Branch", style="dim")

    for pr in prs:
        title = pr.title + (" [yellow](draft)[/yellow]" if pr.draft else "")
        table.add_row(
            str(pr.number),
            title,
            format_checks_status((checks or {}).get(pr.number)),
            pr.head_ref,
        )
    return table


def render_summary(result: OrchestratorResult) -> Table:
    title = "Summary (DRY-RUN)" if result.dry_run else "Summary"
    if result.interrupted:
        title += " - interrupted"
    table = Table(title=title)
    table.add_column("#", justify="right", style="bold")
    table.add_column("Title")
    table.add_column("Outcome")
    table.add_column("Reason")

    labels = {
        MergeOutcome.MERGED: "[cyan]would merge[/cyan]" if result.dry_run else "[green]merged[/green]",
        MergeOutcome.SKIPPED: "[yellow]skipped[/yellow]",
        MergeOutcome.FAILED: "[red]failed[/red]",
    }
    for r in result.results:
        outcome = labels[r.status] + (" (retried)" if r.retried else "")
        table.add_row(str(r.pr_number), r.title, outcome, r.reason or "")
    return table


def print_summary(result: OrchestratorResult, output: Console | None = None) -> None:
    out = output or console
    out.print()
    out.print(render_summary(result))
    merged_label = "Would merge" if result.dry_run else "Merged"
    out.print(
        f"{merged_label}: [green]{result.merged}[/green]  "
        f"Skipped: [yellow]{result.skipped}[/yellow]  "
        f"Failed: [red]{result.failed}[/red]"
    )
