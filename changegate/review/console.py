"""
Console review surface for ChangeGate.

Shows the diff of a verified change in the terminal and asks the human
for a decision.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.markup import escape
from rich.syntax import Syntax

from changegate.policy.diff_guard import format_patch_stats
from changegate.review.gate import ReviewRequest
from changegate.state import ReviewState


class ConsoleReviewChannel:
    """Publishes review requests to a rich console."""

    def __init__(self, console: Optional[Console] = None, max_diff_lines: int = 400):
        self.console = console or Console()
        self.max_diff_lines = max_diff_lines
        self.published: list[ReviewRequest] = []

    def publish(self, request: ReviewRequest) -> None:
        self.published.append(request)

        summary = format_patch_stats(request.stats) if request.stats else "no statistics"
        header = f"[bold]Change:[/bold] {escape(request.change_id)}\n[bold]Diff:[/bold] {escape(summary)}"
        if request.description:
            header += f"\n[bold]Description:[/bold] {escape(request.description)}"

        self.console.print(Panel.fit(header, title="Review Required", border_style="yellow"))

        if not request.diff.strip():
            self.console.print("[yellow]⚠ The change has an empty diff[/yellow]")
            return

        lines = request.diff.splitlines()
        shown = "\n".join(lines[: self.max_diff_lines])
        self.console.print(Syntax(shown, "diff", word_wrap=True))

        if len(lines) > self.max_diff_lines:
            self.console.print(
                f"[dim]... {len(lines) - self.max_diff_lines} more lines not shown[/dim]"
            )

    def prompt_decision(self) -> tuple[ReviewState, Optional[str]]:
        """
        Ask the reviewer to approve or reject.

        There is no default answer; the reviewer has to type one.

        Returns:
            Tuple of (APPROVED or REJECTED, optional comment)
        """
        answer = Prompt.ask(
            "[bold]Approve this change?[/bold]",
            choices=["approve", "reject"],
            console=self.console,
        )
        comment = Prompt.ask("Comment (optional)", default="", console=self.console)

        state = ReviewState.APPROVED if answer == "approve" else ReviewState.REJECTED
        return state, comment or None
