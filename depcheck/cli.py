"""CLI entry point: depcheck.

Usage:
    depcheck                                   # check the current directory
    depcheck path/to/project --json
    depcheck . --ignore-matches 'eslint-*,@types/*' --skip-missing
    depcheck . --parsers vue:javascript --timeout 30
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from depcheck.checker import depcheck
from depcheck.core.logging import setup_logging
from depcheck.exceptions import DepcheckError
from depcheck.models import Report
from depcheck.options import Options

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_ERROR = 2


def _split(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(v.strip() for v in value.split(",") if v.strip())


def _parse_parsers(value: str | None) -> dict[str, str]:
    """Parse ``ext:dialect,ext:dialect`` into a mapping."""
    mapping: dict[str, str] = {}
    for item in _split(value):
        if ":" not in item:
            raise click.BadParameter(
                f"expected 'ext:dialect', got '{item}'", param_hint="--parsers"
            )
        ext, dialect = item.split(":", 1)
        mapping[ext.strip()] = dialect.strip()
    return mapping


def _print_report(report: Report) -> None:
    if not report.has_issues:
        click.echo("No depcheck issue")
        return

    if report.unused_dependencies:
        click.echo("Unused dependencies")
        for name in report.unused_dependencies:
            click.echo(f"* {name}")

    if report.unused_dev_dependencies:
        click.echo("Unused devDependencies")
        for name in report.unused_dev_dependencies:
            click.echo(f"* {name}")

    if report.missing_dependencies:
        click.echo("Missing dependencies")
        for name, files in sorted(report.missing_dependencies.items()):
            click.echo(f"* {name}: {', '.join(files)}")


def _print_diagnostics(report: Report) -> None:
    for warning in report.warnings:
        click.echo(f"warning: {warning.message}", err=True)
    if report.incomplete:
        click.echo(
            f"warning: analysis incomplete ({report.cancel_reason}), results are partial",
            err=True,
        )


@click.command()
@click.argument("directory", default=".", type=click.Path(file_okay=False))
@click.option(
    "--ignore-bin-package",
    is_flag=True,
    help="Ignore the packages containing bin entry",
)
@click.option(
    "--skip-missing",
    is_flag=True,
    help="Skip calculation of missing dependencies",
)
@click.option(
    "--read-depcheckignore",
    is_flag=True,
    help="Also honor .depcheckignore files, like .gitignore",
)
@click.option(
    "--ignore-path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to a file with patterns describing files to ignore",
)
@click.option(
    "--ignore-patterns",
    default=None,
    help="Comma separated patterns describing files or directories to ignore",
)
@click.option(
    "--ignore-matches",
    default=None,
    help="Comma separated package name patterns to ignore",
)
@click.option(
    "--parsers",
    default=None,
    help="Comma separated ext:dialect pairs, e.g. 'vue:javascript'",
)
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Worker threads")
@click.option("--timeout", type=float, default=None, help="Give up after N seconds")
@click.option("--json", "as_json", is_flag=True, help="Output the report as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(
    directory: str,
    ignore_bin_package: bool,
    skip_missing: bool,
    read_depcheckignore: bool,
    ignore_path: str | None,
    ignore_patterns: str | None,
    ignore_matches: str | None,
    parsers: str | None,
    workers: int | None,
    timeout: float | None,
    as_json: bool,
    verbose: bool,
) -> None:
    """Check a project for missing and unused dependencies."""
    setup_logging("DEBUG" if verbose else None)

    parser_overrides = _parse_parsers(parsers)

    try:
        root = Path(directory)
        base = Options.load(root) if root.is_dir() else Options()
        options = base.merged(
            ignore_bin_package=ignore_bin_package or None,
            skip_missing=skip_missing or None,
            read_depcheckignore=read_depcheckignore or None,
            ignore_path=ignore_path,
            ignore_patterns=base.ignore_patterns + _split(ignore_patterns) or None,
            ignore_matches=base.ignore_matches + _split(ignore_matches) or None,
            parsers={**base.parsers, **parser_overrides} or None,
            workers=workers,
        )
        report = depcheck(root, options, timeout=timeout)
    except DepcheckError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_ERROR)

    if as_json:
        click.echo(report.to_json())
    else:
        _print_report(report)
    _print_diagnostics(report)

    sys.exit(EXIT_ISSUES if report.has_issues else EXIT_OK)


if __name__ == "__main__":
    main()
