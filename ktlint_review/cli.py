"""CLI entry point: command definitions using Click.

Commands:
    init      Generate a template config file
    lint      Run ktlint on the changed files and collect review comments
    issues    Export the ktlint issues on the changed files as JSON
"""

import functools
import json
import logging
import sys
from typing import Any

import click

from ktlint_review import __version__


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _load_config(ctx: click.Context, overrides: dict[str, Any]):
    """Load config, apply command-line overrides and return it. Exits on error."""
    from ktlint_review.config import ConfigError, load

    obj = ctx.obj
    try:
        config = load(obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    for name, value in overrides.items():
        if value is not None:
            setattr(config.ktlint, name, value)

    if obj["verbose"]:
        click.echo(f"[verbose] Platform: {config.platform.service}", err=True)

    return config


def _emit_json(data: Any, ctx: click.Context) -> None:
    """Write JSON to stdout or to the file specified by --output."""
    obj = ctx.obj
    indent = 2 if obj["pretty"] else None
    text = json.dumps(data, indent=indent, ensure_ascii=False)

    output_path: str | None = obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _rule_filter(excluded_rules: tuple[str, ...]):
    """Build the issue predicate for --exclude-rule, or None."""
    if not excluded_rules:
        return None
    excluded = set(excluded_rules)
    return lambda issue: issue.rule not in excluded


def _changed_files(files: tuple[str, ...], base: str, head: str) -> list[str]:
    from ktlint_review.changes import GitChangeSet

    if files:
        return list(files)
    change_set = GitChangeSet(base=base, head=head)
    return change_set.added_files() + change_set.modified_files()


def _handle_errors(func):
    """Decorator that catches configuration, git and client exceptions and exits cleanly."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from ktlint_review.changes import ChangeSetError
        from ktlint_review.client import (
            AuthenticationError,
            NetworkError,
            NotFoundError,
            ReviewClientError,
        )
        from ktlint_review.config import ConfigError

        try:
            return func(*args, **kwargs)
        except ConfigError as exc:
            click.echo(f"Configuration error: {exc}", err=True)
            sys.exit(1)
        except ChangeSetError as exc:
            click.echo(f"Git error: {exc}", err=True)
            sys.exit(1)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except NotFoundError as exc:
            click.echo(f"Not found: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except ReviewClientError as exc:
            click.echo(f"Review platform error: {exc}", err=True)
            sys.exit(1)

    return wrapper


def _source_options(func):
    """Options shared by every command that reads ktlint results."""
    options = [
        click.option("--file", "-f", "files", multiple=True,
                     help="Changed file to consider (repeatable). Defaults to the git diff."),
        click.option("--exclude-rule", "excluded_rules", multiple=True,
                     help="Drop issues reported by this ktlint rule (repeatable)."),
        click.option("--report-file", default=None,
                     help="Read this ktlint JSON report instead of running ktlint."),
        click.option("--report-files-pattern", default=None,
                     help="Read every ktlint JSON report matching this glob."),
        click.option("--filtering/--no-filtering", default=None,
                     help="Run ktlint on the changed files only, or on **/*.kt."),
        click.option("--base", default="origin/main", show_default=True,
                     help="Base revision of the review for the git diff."),
        click.option("--head", default="HEAD", show_default=True,
                     help="Head revision of the review for the git diff."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default="ktlint-review.yaml", show_default=True,
              help="Path to the configuration file.")
@click.option("--output", "output_path", default=None,
              help="Write JSON output to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="ktlint-review")
@click.pass_context
def cli(ctx: click.Context, config_path: str, output_path: str | None,
        pretty: bool, verbose: bool) -> None:
    """ktlint review helper: comment on ktlint issues in changed Kotlin files."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="ktlint-review.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template ktlint-review.yaml file."""
    from ktlint_review.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your platform, token and ktlint report settings.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# lint
# ---------------------------------------------------------------------------

@cli.command("lint")
@_source_options
@click.option("--inline", "inline_mode", is_flag=True, default=False,
              help="Comment on each offending line instead of one summary comment.")
@click.option("--limit", type=int, default=None,
              help="Maximum number of comments (overrides ktlint.limit).")
@click.option("--publish", is_flag=True, default=False,
              help="Post the comments to the review platform.")
@click.pass_context
@_handle_errors
def lint_command(ctx: click.Context, files: tuple[str, ...], excluded_rules: tuple[str, ...],
                 report_file: str | None, report_files_pattern: str | None,
                 filtering: bool | None, base: str, head: str, inline_mode: bool,
                 limit: int | None, publish: bool) -> None:
    """Run ktlint (or read its reports) and collect comments for the review."""
    from ktlint_review.changes import GitChangeSet
    from ktlint_review.client import ReviewClient
    from ktlint_review.config import validate_for_publishing
    from ktlint_review.dispatch import StatusReport
    from ktlint_review.links import Platform
    from ktlint_review.plugin import KtlintPlugin

    config = _load_config(ctx, {
        "report_file": report_file,
        "report_files_pattern": report_files_pattern,
        "filtering": filtering,
        "limit": limit,
    })
    if publish:
        validate_for_publishing(config)

    status_report = StatusReport()
    plugin = KtlintPlugin(
        config.platform, config.ktlint, status_report, GitChangeSet(base=base, head=head)
    )
    plugin.lint(
        files=list(files) if files else None,
        inline_mode=inline_mode,
        filter_block=_rule_filter(excluded_rules),
    )

    if ctx.obj["verbose"]:
        click.echo(f"[verbose] Collected {len(status_report.errors)} comment(s)", err=True)

    if publish and status_report.errors:
        platform = config.platform
        client = ReviewClient(
            Platform.parse(platform.service),
            api_url=platform.api_url,
            token=platform.token,
            repository=platform.repository,
            pull_request=platform.pull_request,
            head_sha=platform.head_sha,
            base_sha=platform.base_sha,
        )
        posted = client.publish(status_report)
        click.echo(f"Posted {posted} comment(s) to {platform.service}", err=True)

    _emit_json(status_report.to_dict(), ctx)


# ---------------------------------------------------------------------------
# issues
# ---------------------------------------------------------------------------

@cli.command("issues")
@_source_options
@click.pass_context
@_handle_errors
def issues_command(ctx: click.Context, files: tuple[str, ...], excluded_rules: tuple[str, ...],
                   report_file: str | None, report_files_pattern: str | None,
                   filtering: bool | None, base: str, head: str) -> None:
    """Export the ktlint issues on the changed Kotlin files as JSON."""
    import os

    from ktlint_review.reports.issues import build_report, normalize, select_issues, target_files
    from ktlint_review.reports.sources import LintError, obtain_reports

    config = _load_config(ctx, {
        "report_file": report_file,
        "report_files_pattern": report_files_pattern,
        "filtering": filtering,
    })
    targets = target_files(_changed_files(files, base, head))

    if ctx.obj["verbose"]:
        click.echo(f"[verbose] Checking {len(targets)} Kotlin file(s)", err=True)

    try:
        documents = obtain_reports(targets, config.ktlint)
    except LintError as exc:
        click.echo(f"ktlint error: {exc}", err=True)
        sys.exit(1)

    issues = select_issues(normalize(documents), _rule_filter(excluded_rules))
    _emit_json(build_report(issues, targets, os.getcwd()), ctx)
