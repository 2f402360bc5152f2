"""Cross-reference resolved usages against the declared dependencies."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from fnmatch import fnmatchcase
from pathlib import Path

import structlog

from depcheck.manifest import InstalledPackages, Manifest, workspace_package_names
from depcheck.models import Report
from depcheck.options import Options

log = structlog.get_logger("depcheck.reconciler")


def _matcher(patterns: Iterable[str]) -> Callable[[str], bool]:
    compiled = tuple(patterns)
    return lambda name: any(fnmatchcase(name, p) for p in compiled)


def reconcile(
    usages: Mapping[str, Iterable[str]],
    manifest: Manifest,
    options: Options | None = None,
    root: Path | None = None,
    installed: InstalledPackages | None = None,
) -> Report:
    """Build the categorized report from package name -> referencing files.

    *root* enables the checks that look at installed modules and workspace
    members; without it those checks are skipped. *installed* lets a caller
    share the installed-manifest cache of its own run.
    """
    options = options or Options()
    if installed is None and root is not None:
        installed = InstalledPackages(root)
    used = {name: sorted(set(files)) for name, files in usages.items() if files}

    is_ignored = _matcher(options.ignore_matches)

    def is_bin(name: str) -> bool:
        if not options.ignore_bin_package or installed is None:
            return False
        return installed.has_bin(name)

    def satisfied(name: str) -> bool:
        return is_ignored(name) or is_bin(name)

    # Missing: used, declared nowhere
    missing: dict[str, list[str]] = {}
    if not options.skip_missing:
        workspace_names = workspace_package_names(root, manifest) if root is not None else set()
        for name, files in used.items():
            if manifest.is_any_dependency(name) or name in workspace_names:
                continue
            if satisfied(name):
                continue
            missing[name] = files

    # Using: every declared name with at least one usage
    using = {name: files for name, files in used.items() if manifest.is_any_dependency(name)}

    # A name declared in both sets is satisfied by any usage
    unused = sorted(
        name
        for name in manifest.dependencies
        if name not in used and not satisfied(name)
    )
    unused_dev = sorted(
        name
        for name in manifest.dev_dependencies
        if name not in used and not satisfied(name)
    )
    # optional/peer/bundled dependencies are never reported unused

    log.debug(
        "reconciler.done",
        used=len(used),
        missing=len(missing),
        unused=len(unused),
        unused_dev=len(unused_dev),
    )

    return Report(
        missing_dependencies=missing,
        unused_dependencies=unused,
        unused_dev_dependencies=unused_dev,
        using_dependencies=using,
    )
