"""Run a dependency check over a project directory."""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Iterable, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path

import structlog

from depcheck.exceptions import NotFoundError, ParseError
from depcheck.manifest import InstalledPackages, load_manifest
from depcheck.models import FileAnalysis, FileParseWarning, Report, SourceFile
from depcheck.options import Options
from depcheck.parsers.registry import get_extractor
from depcheck.reconciler import reconcile
from depcheck.resolver import UsageResolver
from depcheck.scanner import scan

log = structlog.get_logger("depcheck.checker")

# Below this many files the pool costs more than it saves
SERIAL_THRESHOLD = 16


def default_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


def analyze_file(source: SourceFile) -> FileAnalysis:
    """Extract the import references of one file; never raises for bad input."""
    try:
        content = source.read()
    except (OSError, UnicodeDecodeError) as e:
        log.warning("checker.read_failed", file=source.relative_path, error=str(e))
        return FileAnalysis(
            file=source.relative_path,
            warning=FileParseWarning(source.relative_path, f"cannot read file: {e}"),
        )

    try:
        references = get_extractor(source.dialect).extract(source, content)
    except ParseError as e:
        log.warning("checker.parse_failed", file=source.relative_path, line=e.line)
        return FileAnalysis(
            file=source.relative_path,
            warning=FileParseWarning(source.relative_path, str(e)),
        )

    log.debug("checker.file_analyzed", file=source.relative_path, references=len(references))
    return FileAnalysis(file=source.relative_path, references=tuple(references))


class _Deadline:
    """Combined cancellation signal: caller event and/or timeout."""

    def __init__(self, cancel_event: threading.Event | None, timeout: float | None) -> None:
        self.cancel_event = cancel_event
        self.expires_at = time.monotonic() + timeout if timeout is not None else None
        self.reason: str | None = None

    def remaining(self) -> float | None:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    def triggered(self) -> bool:
        if self.reason is not None:
            return True
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.reason = "cancelled"
        elif self.expires_at is not None and time.monotonic() >= self.expires_at:
            self.reason = "timeout"
        return self.reason is not None


def _run_serial(files: Iterable[SourceFile], deadline: _Deadline) -> Iterator[FileAnalysis]:
    for source in files:
        if deadline.triggered():
            return
        yield analyze_file(source)


def _run_pool(
    files: list[SourceFile], workers: int, deadline: _Deadline
) -> Iterator[FileAnalysis]:
    """Fan out over a bounded window of in-flight files, yield as they finish.

    On cancellation the pool is shut down without waiting, so files still
    being parsed finish in the background and their results are dropped.
    """
    window = workers * 2
    pending: set[Future[FileAnalysis]] = set()
    queue = iter(files)
    exhausted = False

    pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="depcheck")
    try:
        while True:
            while not exhausted and len(pending) < window:
                if deadline.triggered():
                    exhausted = True
                    break
                source = next(queue, None)
                if source is None:
                    exhausted = True
                    break
                pending.add(pool.submit(analyze_file, source))

            if not pending:
                return

            # Poll so a caller-side cancel_event is noticed promptly
            remaining = deadline.remaining()
            poll = 0.1 if remaining is None else min(0.1, remaining)
            done, pending = wait(pending, timeout=poll, return_when=FIRST_COMPLETED)
            for future in done:
                yield future.result()

            if deadline.triggered():
                # Keep whatever already finished; drop the rest
                for future in pending:
                    if future.done() and not future.cancelled():
                        yield future.result()
                return
    finally:
        cancelled = deadline.reason is not None
        pool.shutdown(wait=not cancelled, cancel_futures=cancelled)


def depcheck(
    project_path: Path | str,
    options: Options | None = None,
    *,
    cancel_event: threading.Event | None = None,
    timeout: float | None = None,
) -> Report:
    """Check a project directory for missing and unused dependencies.

    Raises NotFoundError, ManifestError or ConfigError before any analysis
    starts. Unparseable files only add warnings. When *cancel_event* is set
    or *timeout* seconds elapse, the report covers the files analyzed so far
    and is marked ``incomplete``.
    """
    root = Path(project_path)
    if not root.is_dir():
        raise NotFoundError(str(project_path))
    root = root.resolve()

    if options is None:
        options = Options.load(root)
    manifest = load_manifest(root)
    files = list(scan(root, options))

    workers = options.workers or default_workers()
    deadline = _Deadline(cancel_event, timeout)
    log.info("checker.start", root=str(root), files=len(files), workers=workers)

    if len(files) < SERIAL_THRESHOLD or workers == 1:
        results = list(_run_serial(files, deadline))
    else:
        results = list(_run_pool(files, workers, deadline))

    # Join point: merge immutable per-file results in a single thread
    installed = InstalledPackages(root)
    resolver = UsageResolver(root, manifest, options, installed)
    usages: dict[str, set[str]] = {}
    warnings: list[FileParseWarning] = []
    for analysis in sorted(results, key=lambda a: a.file):
        if analysis.warning is not None:
            warnings.append(analysis.warning)
        for reference in analysis.references:
            for name in resolver.packages_for(reference):
                usages.setdefault(name, set()).add(analysis.file)

    report = reconcile(usages, manifest, options, root, installed)
    report.warnings = warnings
    if deadline.triggered() and len(results) < len(files):
        report.incomplete = True
        report.cancel_reason = deadline.reason
        log.warning(
            "checker.incomplete",
            reason=deadline.reason,
            analyzed=len(results),
            total=len(files),
        )

    log.info(
        "checker.done",
        analyzed=len(results),
        warnings=len(warnings),
        missing=len(report.missing_dependencies),
        unused=len(report.unused_dependencies),
        unused_dev=len(report.unused_dev_dependencies),
    )
    return report
