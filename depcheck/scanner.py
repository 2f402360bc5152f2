"""Source scanner — walk a project and select analyzable source files."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pathspec
import structlog

from depcheck.exceptions import ConfigError, NotFoundError
from depcheck.manifest import MANIFEST_FILENAME
from depcheck.models import SourceFile
from depcheck.options import Options

log = structlog.get_logger("depcheck.scanner")

GITIGNORE_FILENAME = ".gitignore"
DEPCHECKIGNORE_FILENAME = ".depcheckignore"
_NODE_SHEBANG_MARKERS = ("node", "nodejs")


def _read_pattern_file(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read ignore file {path}: {e}") from e


def ignore_filenames(options: Options) -> tuple[str, ...]:
    """Per-directory ignore files honored during the walk."""
    if options.read_depcheckignore:
        return (GITIGNORE_FILENAME, DEPCHECKIGNORE_FILENAME)
    return (GITIGNORE_FILENAME,)


def _directory_patterns(directory: Path, filenames: tuple[str, ...]) -> list[str]:
    lines: list[str] = []
    for filename in filenames:
        path = directory / filename
        if path.is_file():
            lines.extend(_read_pattern_file(path))
    return lines


def build_ignore_spec(root: Path, options: Options) -> pathspec.PathSpec:
    """Root-level rules: defaults, user patterns, ignore file, root ignore files."""
    lines = list(options.all_ignore_patterns)
    if options.ignore_path is not None:
        lines.extend(_read_pattern_file(options.ignore_path))
    lines.extend(_directory_patterns(root, ignore_filenames(options)))
    return pathspec.GitIgnoreSpec.from_lines(lines)


def is_ignored(rel_path: str, specs: dict[str, pathspec.PathSpec]) -> bool:
    """Match *rel_path* against the ignore specs of its ancestor directories.

    *specs* maps a directory prefix ("" for the root) to the patterns declared
    there; each spec sees the path relative to its own directory. The deepest
    spec with a matching pattern decides, so a nested ``!pattern`` can
    re-include what a parent excluded. Directory paths end with "/".
    """
    parts = rel_path.rstrip("/").split("/")
    for depth in range(len(parts) - 1, -1, -1):
        prefix = "/".join(parts[:depth])
        spec = specs.get(prefix)
        if spec is None:
            continue
        result = spec.check_file(rel_path[len(prefix) + 1 :] if prefix else rel_path)
        if result.include is not None:
            return result.include
    return False


def sniff_dialect(path: Path) -> str | None:
    """Detect extensionless node scripts by their shebang line."""
    try:
        with path.open("rb") as fh:
            first = fh.readline(256)
    except OSError:
        return None
    if not first.startswith(b"#!"):
        return None
    words = first[2:].decode("utf-8", errors="replace").replace("/", " ").split()
    if any(word in _NODE_SHEBANG_MARKERS for word in words):
        return "javascript"
    return None


class SourceScan:
    """Lazy, restartable sequence of source files under a project root.

    Every iteration walks the tree again; files are yielded sorted by their
    relative POSIX path so reports are reproducible.
    """

    def __init__(self, root: Path, options: Options) -> None:
        self.root = root
        self.options = options
        self._root_spec = build_ignore_spec(root, options)
        self._ignore_files = ignore_filenames(options)
        self._dialects = options.dialect_map()

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(sorted(self._walk(), key=lambda f: f.relative_path))

    def _walk(self) -> Iterator[SourceFile]:
        specs: dict[str, pathspec.PathSpec] = {"": self._root_spec}
        visited: set[str] = set()
        for dirpath, dirnames, filenames in os.walk(self.root, followlinks=True):
            current = Path(dirpath)
            real = os.path.realpath(dirpath)
            if real in visited:
                log.debug("scanner.symlink_cycle_skipped", path=dirpath)
                dirnames[:] = []
                continue
            visited.add(real)

            rel_dir = current.relative_to(self.root).as_posix()
            key = "" if rel_dir == "." else rel_dir
            prefix = key + "/" if key else ""
            if key:
                lines = _directory_patterns(current, self._ignore_files)
                if lines:
                    specs[key] = pathspec.GitIgnoreSpec.from_lines(lines)
                    log.debug("scanner.nested_ignore_loaded", path=key, patterns=len(lines))

            # Prune before descending; sort so traversal order is stable
            dirnames[:] = sorted(
                d for d in dirnames if self._keep_directory(current / d, prefix + d, specs)
            )

            for name in sorted(filenames):
                if name.startswith("."):
                    continue
                rel_path = prefix + name
                if is_ignored(rel_path, specs):
                    continue
                path = current / name
                dialect = self._detect(path)
                if dialect is None:
                    continue
                yield SourceFile(path=path, relative_path=rel_path, dialect=dialect)

    def _keep_directory(
        self, path: Path, rel_path: str, specs: dict[str, pathspec.PathSpec]
    ) -> bool:
        if path.name.startswith("."):
            return False
        if is_ignored(rel_path + "/", specs):
            return False
        if (path / MANIFEST_FILENAME).is_file():
            # Nested modules (workspace members) are separate projects
            log.debug("scanner.nested_module_skipped", path=rel_path)
            return False
        return True

    def _detect(self, path: Path) -> str | None:
        suffix = path.suffix.lower()
        if suffix:
            return self._dialects.get(suffix)
        return sniff_dialect(path)


def scan(root: Path | str, options: Options | None = None) -> SourceScan:
    """Return the analyzable source files under *root*.

    Raises NotFoundError when *root* is not an existing directory.
    """
    root = Path(root)
    if not root.is_dir():
        raise NotFoundError(str(root))
    return SourceScan(root.resolve(), options or Options())
