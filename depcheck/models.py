"""Data models shared by the scanner, extractors, resolver and reconciler."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class ImportKind(Enum):
    """Syntactic form of an import reference."""

    STATIC = "static"  # import / export ... from / import x = require()
    REQUIRE = "require"  # require(), require.resolve()
    DYNAMIC = "dynamic"  # import()
    TYPE = "type"  # import type / export type ... from


@dataclass(frozen=True)
class SourceFile:
    """A source file selected by the scanner, tagged with its dialect."""

    path: Path
    relative_path: str  # POSIX, relative to the project root
    dialect: str

    def read(self) -> str:
        return self.path.read_text(encoding="utf-8")


@dataclass(frozen=True)
class ImportReference:
    """One raw import specifier found in a source file."""

    file: str
    specifier: str
    kind: ImportKind
    dialect: str
    line: int = 0


@dataclass(frozen=True)
class FileParseWarning:
    """A file that could not be read or parsed; it contributes no usages."""

    file: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"file": self.file, "message": self.message}


@dataclass(frozen=True)
class FileAnalysis:
    """Per-file extraction result returned by a worker."""

    file: str
    references: tuple[ImportReference, ...] = ()
    warning: FileParseWarning | None = None


@dataclass
class Report:
    """Final categorized result of a dependency check.

    The four categories are what downstream consumers snapshot; ``warnings``
    and ``incomplete`` are diagnostics and are kept out of :meth:`to_dict`.
    """

    missing_dependencies: dict[str, list[str]] = field(default_factory=dict)
    unused_dependencies: list[str] = field(default_factory=list)
    unused_dev_dependencies: list[str] = field(default_factory=list)
    using_dependencies: dict[str, list[str]] = field(default_factory=dict)
    warnings: list[FileParseWarning] = field(default_factory=list)
    incomplete: bool = False
    cancel_reason: str | None = None  # "cancelled" | "timeout"

    @property
    def has_issues(self) -> bool:
        return bool(
            self.missing_dependencies
            or self.unused_dependencies
            or self.unused_dev_dependencies
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "missingDependencies": {
                name: sorted(files) for name, files in sorted(self.missing_dependencies.items())
            },
            "unusedDependencies": sorted(self.unused_dependencies),
            "unusedDevDependencies": sorted(self.unused_dev_dependencies),
            "usingDependencies": {
                name: sorted(files) for name, files in sorted(self.using_dependencies.items())
            },
        }

    def diagnostics(self) -> dict[str, Any]:
        return {
            "warnings": [w.to_dict() for w in self.warnings],
            "incomplete": self.incomplete,
            "cancelReason": self.cancel_reason,
        }

    def to_json(self, indent: int | None = 2, include_diagnostics: bool = False) -> str:
        data = self.to_dict()
        if include_diagnostics:
            data.update(self.diagnostics())
        return json.dumps(data, indent=indent, sort_keys=True)
