"""CLI entry point for monochange."""

from __future__ import annotations

from pathlib import Path

import click

from monochange.errors import MonochangeError
from monochange.models import Severity
from monochange.pipeline import DEFAULT_TIMEOUT, run_change, run_verify

BUMP_TYPES = [s.value for s in Severity]


@click.group()
@click.version_option(package_name="monochange")
def cli() -> None:
    """Record and verify per-project change descriptions in a uv workspace."""


@cli.command()
@click.option(
    "-v",
    "--verify",
    is_flag=True,
    help="Verify that every changed project has a change file, without writing any.",
)
@click.option(
    "--no-fetch",
    is_flag=True,
    help='Skip fetching the target branch before running "git diff" to detect changes.',
)
@click.option(
    "-b",
    "--target-branch",
    metavar="BRANCH",
    help="Branch to compare against. Defaults to the remote's default branch.",
)
@click.option(
    "--overwrite",
    is_flag=True,
    help="Overwrite existing change files without prompting (or failing in --bulk mode).",
)
@click.option(
    "--email",
    metavar="EMAIL",
    help="Email address to put in change files. Detected from git or prompted for if omitted.",
)
@click.option(
    "--bulk",
    is_flag=True,
    help="Apply the same --message and --bump-type to every changed project.",
)
@click.option("--message", metavar="MESSAGE", help="Change description for --bulk.")
@click.option(
    "--bump-type",
    type=click.Choice(BUMP_TYPES, case_sensitive=False),
    help="Bump type for --bulk.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Seconds allowed for change detection (fetch and diff together).",
)
def change(
    verify: bool,
    no_fetch: bool,
    target_branch: str | None,
    overwrite: bool,
    email: str | None,
    bulk: bool,
    message: str | None,
    bump_type: str | None,
    timeout: float,
) -> None:
    """Record how each changed project's version should be bumped.

    Asks a series of questions and writes a <branch>_<timestamp>.json
    change file per project, which the release step later consumes.
    """
    root = Path.cwd()

    if not (root / ".git").exists():
        raise click.ClickException("Not a git repository. Run from the repo root.")

    try:
        if verify:
            conflicting = [
                name
                for name, value in (
                    ("--bulk", bulk),
                    ("--message", message),
                    ("--bump-type", bump_type),
                    ("--overwrite", overwrite),
                    ("--email", email),
                )
                if value
            ]
            if conflicting:
                raise click.UsageError(
                    f"{', '.join(conflicting)} cannot be provided with --verify"
                )
            result = run_verify(
                root, target_branch=target_branch, fetch=not no_fetch, timeout=timeout
            )
            result.raise_for_errors()
            return

        written = run_change(
            root,
            target_branch=target_branch,
            fetch=not no_fetch,
            timeout=timeout,
            bulk=bulk,
            message=message,
            bump_type=bump_type,
            email=email,
            overwrite=overwrite,
        )
    except MonochangeError as exc:
        raise click.ClickException(str(exc)) from exc

    if written:
        click.echo(f"\n✓ Wrote {len(written)} change file(s)")
