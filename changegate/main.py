"""
ChangeGate CLI Entry Point.

Usage:
    changegate run --repo /path/to/repo --cmd "pytest -q"
    changegate run --repo . --sandbox
    changegate lint-message .git/COMMIT_EDITMSG
    changegate stats
"""

import argparse
import signal
import sys
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text
from rich.markup import escape

from changegate import __version__
from changegate.config import Settings
from changegate.engine import WorkflowEngine
from changegate.errors import ChangeGateError, CommitFailed
from changegate.git.committer import GitCommitter, capture_change
from changegate.metrics import MetricsLogger, log_run
from changegate.policy.commit_guard import parse_and_validate
from changegate.review.console import ConsoleReviewChannel
from changegate.sandbox.docker_runner import DockerRunner, is_docker_available
from changegate.sandbox.runner import CommandRunner
from changegate.state import CommitMessage, ReviewState, WorkflowState

console = Console()

# Lines of failing output shown after a failed verification
OUTPUT_TAIL_LINES = 40


def print_banner():
    """Print the ChangeGate banner."""
    console.print(
        Panel.fit(
            f"[bold]ChangeGate v{__version__}[/bold]\n"
            "verify → review → commit on request",
            border_style="blue",
        )
    )


def _tail(output: str, lines: int = OUTPUT_TAIL_LINES) -> str:
    return "\n".join(output.splitlines()[-lines:])


# ============================================================================
# run
# ============================================================================

def _verify_loop(engine: WorkflowEngine, repo_path: str) -> None:
    """Verify until green or until the actor abandons the change."""
    while engine.state is WorkflowState.EDITING:
        previous = signal.signal(signal.SIGINT, lambda signum, frame: engine.cancel())
        try:
            result = engine.verify()
        finally:
            signal.signal(signal.SIGINT, previous)

        if result is None:
            console.print("[yellow]Verification cancelled. Back to editing.[/yellow]")
        elif result.passed:
            return
        else:
            console.print(Panel(
                Text(_tail(result.output) or "(no output)"),
                title=f"Verification failed (attempt {result.attempt}, exit {result.exit_code})",
                border_style="red",
            ))

        choice = Prompt.ask(
            "Fix the change, then",
            choices=["rerun", "abandon"],
            default="rerun",
            console=console,
        )
        if choice == "abandon":
            engine.abandon()
            return

        engine.submit(capture_change(repo_path, engine.change_id))


def _review(engine: WorkflowEngine, channel: ConsoleReviewChannel) -> None:
    decision, comment = channel.prompt_decision()
    if decision is ReviewState.APPROVED:
        engine.approve(comment)
    else:
        engine.reject(comment)


def _commit_loop(engine: WorkflowEngine) -> None:
    """Only commit when the human explicitly asks for it."""
    if not Confirm.ask("Request a commit now?", default=False, console=console):
        return

    while engine.state is WorkflowState.AWAITING_COMMIT_REQUEST:
        commit_type = Prompt.ask(
            "Type", choices=list(engine.policy.allowed_types), console=console
        )
        subject = Prompt.ask("Subject", console=console)
        body = Prompt.ask("Body (optional)", default="", console=console)

        outcome = engine.request_commit(CommitMessage(commit_type, subject, body or None))
        if outcome.committed:
            return

        console.print("[red]Commit message rejected:[/red]")
        for kind, text in zip(outcome.violations, outcome.violation_messages):
            console.print(f"  [red]✗[/red] {kind.value}: {escape(text)}")

        if not Confirm.ask("Try another message?", default=True, console=console):
            return


def _print_outcome(engine: WorkflowEngine, duration: float) -> None:
    attempts = len(engine.verifications)

    if engine.state is WorkflowState.DONE:
        console.print(Panel.fit(
            f"[bold green]✅ Change committed[/bold green]\n\n"
            f"[bold]Commit:[/bold] {engine.commit_ref}\n"
            f"[bold]Verification attempts:[/bold] {attempts}\n"
            f"[bold]Duration:[/bold] {duration:.1f}s",
            title="Done",
            border_style="green",
        ))
    elif engine.state is WorkflowState.AWAITING_COMMIT_REQUEST:
        console.print(Panel.fit(
            f"[bold green]✅ Change verified and approved[/bold green]\n\n"
            f"Not committed. Run again and request a commit when ready.\n"
            f"[bold]Verification attempts:[/bold] {attempts}",
            title="Approved",
            border_style="green",
        ))
    else:
        reason = {
            WorkflowState.REJECTED: f"Rejected in review: {escape(engine.review_comment or 'no comment')}",
            WorkflowState.ABANDONED: "Abandoned during the verify/fix loop",
        }.get(engine.state, f"Stopped in state {engine.state.name}")

        console.print(Panel.fit(
            f"[bold red]❌ Change not committed[/bold red]\n\n"
            f"[bold]Reason:[/bold] {reason}\n"
            f"[bold]Verification attempts:[/bold] {attempts}",
            title="Stopped",
            border_style="red",
        ))


def cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    repo_path = Path(args.repo).resolve()
    if not repo_path.exists():
        console.print(f"[red]Error: Repository path does not exist: {repo_path}[/red]")
        return 1

    if not (repo_path / ".git").exists():
        console.print(f"[red]Error: Not a git repository: {repo_path}[/red]")
        return 1

    command = args.cmd or settings.verify_command
    verbose = not args.quiet

    if args.sandbox:
        if not is_docker_available():
            console.print("[red]Error: Docker is not running or not installed[/red]")
            return 1
        runner = DockerRunner(
            str(repo_path),
            command,
            image=args.image or settings.sandbox_image,
            verbose=verbose,
        )
    else:
        runner = CommandRunner(
            command,
            cwd=str(repo_path),
            timeout=settings.verify_timeout,
            verbose=verbose,
        )

    channel = ConsoleReviewChannel(console)
    engine = WorkflowEngine(
        runner=runner,
        committer=GitCommitter(str(repo_path), verbose=verbose),
        review_channel=channel,
        policy=settings.build_policy(),
        verbose=verbose,
    )

    console.print(Panel.fit(
        f"[bold]Repository:[/bold] {repo_path}\n"
        f"[bold]Verification:[/bold] {escape(command)}\n"
        f"[bold]Sandbox:[/bold] {'docker' if args.sandbox else 'host'}",
        title="Configuration",
    ))

    start_time = time.time()
    exit_code = 0

    try:
        engine.submit(capture_change(str(repo_path), args.change_id))
        _verify_loop(engine, str(repo_path))

        if engine.state is WorkflowState.AWAITING_REVIEW:
            _review(engine, channel)

        if engine.state is WorkflowState.AWAITING_COMMIT_REQUEST:
            _commit_loop(engine)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        exit_code = 130

    except CommitFailed as e:
        console.print(f"\n[red]{e}[/red]")
        exit_code = 1

    except ChangeGateError as e:
        console.print(f"\n[red]Error: {e}[/red]")
        exit_code = 1

    duration = time.time() - start_time
    log_run(engine, duration_seconds=duration, path=settings.metrics_path)

    _print_outcome(engine, duration)

    if exit_code:
        return exit_code
    return 0 if engine.state in (WorkflowState.DONE, WorkflowState.AWAITING_COMMIT_REQUEST) else 1


# ============================================================================
# lint-message
# ============================================================================

def cmd_lint_message(args: argparse.Namespace, settings: Settings) -> int:
    if args.file == "-":
        text = sys.stdin.read()
    else:
        path = Path(args.file)
        if not path.exists():
            console.print(f"[red]Error: File does not exist: {path}[/red]")
            return 1
        text = path.read_text(encoding="utf-8")

    msg, result = parse_and_validate(text, settings.build_policy())

    if result.ok:
        if not args.quiet:
            console.print(f"[green]✓ {escape(msg.render_header())}[/green]")
        return 0

    console.print(f"[red]Commit message rejected: {escape(repr(msg.render_header()))}[/red]")
    for kind, text in zip(result.violations, result.messages):
        console.print(f"  [red]✗[/red] {kind.value}: {escape(text)}")
    return 1


# ============================================================================
# stats
# ============================================================================

def cmd_stats(args: argparse.Namespace, settings: Settings) -> int:
    summary = MetricsLogger(settings.metrics_path).summary()

    table = Table(title="ChangeGate runs")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    for key, value in summary.items():
        shown = f"{value:.2f}" if isinstance(value, float) else str(value)
        table.add_row(key.replace("_", " "), shown)

    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="changegate",
        description="ChangeGate - verify, review, then commit on request",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  changegate run --repo . --cmd "pytest -q"
  changegate run --repo ~/myproject --sandbox
  changegate lint-message .git/COMMIT_EDITMSG
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ChangeGate {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Gate the working tree changes of a repository")
    run.add_argument("--repo", required=True, help="Path to the repository")
    run.add_argument("--cmd", default=None, help="Verification command (default: CHANGEGATE_VERIFY_CMD or pytest -q)")
    run.add_argument("--sandbox", action="store_true", help="Run verification in a Docker container")
    run.add_argument("--image", default=None, help="Docker image for --sandbox")
    run.add_argument("--change-id", default=None, help="Identifier for this change")
    run.add_argument("--quiet", action="store_true", help="Reduce output verbosity")

    lint = sub.add_parser("lint-message", help="Validate a commit message file (use - for stdin)")
    lint.add_argument("file", help="Commit message file, or - for stdin")
    lint.add_argument("--quiet", action="store_true", help="Only print violations")

    sub.add_parser("stats", help="Summarise the run journal")

    return parser


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
        settings.build_policy()
    except (ValueError, OSError) as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(2)

    if args.command == "run":
        if not args.quiet:
            print_banner()
        sys.exit(cmd_run(args, settings))
    elif args.command == "lint-message":
        sys.exit(cmd_lint_message(args, settings))
    else:
        sys.exit(cmd_stats(args, settings))


if __name__ == "__main__":
    main()
