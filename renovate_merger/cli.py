"""Command line interface: ``gh-renovate-merge``."""

import asyncio
import logging
import os
from typing import List, Optional

import typer

from renovate_merger import __version__
from renovate_merger.client import GitHubClient
from renovate_merger.config import add_recent_repo, get_recent_repos
from renovate_merger.exceptions import ErrorCode, MergerError, validation_error
from renovate_merger.logging import configure_logging, get_logger, truncate_token
from renovate_merger.orchestrator import orchestrate_merge
from renovate_merger.renovate.detector import filter_renovate_prs
from renovate_merger.repo_url import RepoInfo, parse_repo_url
from renovate_merger.types.checks import ChecksStatus
from renovate_merger.types.pulls import MergeMethod, PullRequest
from renovate_merger.ui import ConsoleReporter, console, err_console, print_summary, render_pr_table

logger = get_logger("cli")

EXIT_INTERRUPTED = 130

app = typer.Typer(
    help="Approve, rebase and merge Renovate pull requests one after another.",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"gh-renovate-merge {__version__}")
        raise typer.Exit()


def _resolve_repo(repo: Optional[str]) -> RepoInfo:
    if repo:
        return parse_repo_url(repo)
    recent = get_recent_repos()
    if not recent:
        raise validation_error(
            ErrorCode.INVALID_REPO_URL,
            "No repository given and no recently used repository found. "
            "Pass one as owner/repo or a GitHub URL.",
        )
    console.print(f"Using most recent repository [bold]{recent[0]}[/bold]")
    return parse_repo_url(recent[0])


def _remember_repo(info: RepoInfo) -> None:
    try:
        add_recent_repo(info.full_name)
    except OSError as e:
        logger.warning("Could not save recent repository: %s", e)


def _select_prs(open_prs: List[PullRequest], numbers: List[int]) -> List[PullRequest]:
    if not numbers:
        return filter_renovate_prs(open_prs)

    by_number = {pr.number: pr for pr in open_prs}
    selected = []
    for number in numbers:
        if number in by_number:
            selected.append(by_number[number])
        else:
            console.print(f"[yellow]#{number} is not an open PR, ignoring it[/yellow]")
    return selected


async def _fetch_checks(
    client: GitHubClient, info: RepoInfo, prs: List[PullRequest]
) -> dict[int, Optional[ChecksStatus]]:
    checks: dict[int, Optional[ChecksStatus]] = {}
    for pr in prs:
        try:
            checks[pr.number] = await client.checks.get_status(info.owner, info.repo, pr.head_sha)
        except MergerError as e:
            logger.debug("Could not fetch checks for #%d: %s", pr.number, e)
            checks[pr.number] = None
    return checks


def _ask_continue(pr_number: int, reason: str) -> bool:
    return typer.confirm(f"#{pr_number} was not merged ({reason}). Continue with the next PR?", default=True)


async def _run(
    repo: Optional[str],
    pr_numbers: List[int],
    dry_run: bool,
    merge_method: MergeMethod,
    check_timeout: float,
    rebase_timeout: float,
    stop_on_error: bool,
    yes: bool,
    token: Optional[str],
) -> int:
    if token:
        logger.debug("Using token from --token: %s", truncate_token(token))
        client = GitHubClient(
            token=token,
            base_url=os.environ.get("GITHUB_API_URL", GitHubClient.DEFAULT_BASE_URL),
        )
    else:
        client = GitHubClient.from_env()

    async with client:
        login = await client.users.validate_token()
        console.print(f"Authenticated as [bold]{login}[/bold]")

        info = _resolve_repo(repo)
        _remember_repo(info)

        open_prs = await client.pulls.list_open(info.owner, info.repo)
        prs = _select_prs(open_prs, pr_numbers)
        if not prs:
            console.print("No Renovate PRs to process.")
            return 0

        checks = await _fetch_checks(client, info, prs)
        console.print(render_pr_table(prs, checks))

        if dry_run:
            console.print("[cyan]Dry run: no changes will be made.[/cyan]")
        elif not yes and not typer.confirm(f"Merge {len(prs)} PR(s) into {info.full_name}?"):
            console.print("Aborted.")
            return 0

        reporter = ConsoleReporter()
        try:
            result = await orchestrate_merge(
                client,
                info.owner,
                info.repo,
                prs,
                options={
                    "check_timeout": check_timeout,
                    "rebase_timeout": rebase_timeout,
                    "merge_method": merge_method,
                    "continue_on_error": not stop_on_error,
                    "dry_run": dry_run,
                },
                on_ask_continue=None if yes else _ask_continue,
                reporter=reporter,
            )
        finally:
            reporter.stop()

        print_summary(result)
        if result.interrupted:
            return EXIT_INTERRUPTED
        return 1 if result.failed else 0


@app.command()
def main(
    repo: Optional[str] = typer.Argument(
        None, help="Repository as owner/repo or a GitHub URL (default: most recently used)"
    ),
    pr: Optional[List[int]] = typer.Option(
        None, "--pr", help="PR number to process; repeat to process several in order"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Show what would happen without changing anything"),
    merge_method: MergeMethod = typer.Option(MergeMethod.SQUASH, "--merge-method", help="How to merge each PR"),
    check_timeout: float = typer.Option(600.0, "--check-timeout", help="Seconds to wait for CI on one commit"),
    rebase_timeout: float = typer.Option(300.0, "--rebase-timeout", help="Seconds to wait for a Renovate rebase"),
    stop_on_error: bool = typer.Option(False, "--stop-on-error", help="Stop at the first PR that is not merged"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token (default: GITHUB_TOKEN or GH_TOKEN)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    """Merge Renovate PRs of REPO one at a time, rebasing them as needed."""
    configure_logging(logging.DEBUG if verbose else logging.ERROR)

    try:
        exit_code = asyncio.run(
            _run(
                repo,
                list(pr or []),
                dry_run,
                merge_method,
                check_timeout,
                rebase_timeout,
                stop_on_error,
                yes,
                token,
            )
        )
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted[/yellow]")
        raise typer.Exit(EXIT_INTERRUPTED)
    except MergerError as e:
        err_console.print(f"[red]Error:[/red] {e.user_message}")
        raise typer.Exit(1)

    raise typer.Exit(exit_code)
