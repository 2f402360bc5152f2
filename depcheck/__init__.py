"""depcheck: find missing and unused dependencies of JavaScript/TypeScript projects."""

__version__ = "0.1.0"

from depcheck.checker import depcheck
from depcheck.exceptions import (
    ConfigError,
    DepcheckError,
    ManifestError,
    NotFoundError,
    ParseError,
)
from depcheck.manifest import Manifest, load_manifest
from depcheck.models import (
    FileParseWarning,
    ImportKind,
    ImportReference,
    Report,
    SourceFile,
)
from depcheck.options import DEFAULT_IGNORE_PATTERNS, Options
from depcheck.reconciler import reconcile
from depcheck.resolver import IGNORED, LOCAL, resolve
from depcheck.scanner import scan

__all__ = [
    "DEFAULT_IGNORE_PATTERNS",
    "IGNORED",
    "LOCAL",
    "ConfigError",
    "DepcheckError",
    "FileParseWarning",
    "ImportKind",
    "ImportReference",
    "Manifest",
    "ManifestError",
    "NotFoundError",
    "Options",
    "ParseError",
    "Report",
    "SourceFile",
    "depcheck",
    "load_manifest",
    "reconcile",
    "resolve",
    "scan",
]
