"""Checker options and project-level configuration loading.

Configuration sources, later ones winning:
    1. the ``depcheck`` key of the project's package.json
    2. ``.depcheckrc.toml`` at the project root
    3. explicit overrides (CLI flags, library callers)
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import structlog

from depcheck.exceptions import ConfigError
from depcheck.manifest import MANIFEST_FILENAME, read_package_json
from depcheck.parsers.registry import EXTRACTOR_REGISTRY, default_dialect_map

log = structlog.get_logger("depcheck.options")

CONFIG_FILENAME = ".depcheckrc.toml"

# Baseline exclusions, always applied before user patterns
DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    ".git",
    ".svn",
    ".hg",
    ".idea",
    "node_modules",
    "dist",
    "build",
    "bower_components",
    # Images
    "*.png",
    "*.gif",
    "*.jpg",
    "*.jpeg",
    "*.svg",
    # Fonts
    "*.woff",
    "*.woff2",
    "*.eot",
    "*.ttf",
    # Archives
    "*.zip",
    "*.gz",
    # Videos
    "*.mp4",
)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _normalize_key(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower().replace("-", "_")


def normalize_extension(ext: str) -> str:
    """Normalize ``vue``, ``.vue`` and ``*.vue`` to ``.vue``."""
    ext = ext.strip().lower()
    if ext.startswith("*"):
        ext = ext[1:]
    if not ext.startswith("."):
        ext = "." + ext
    return ext


def _as_str_list(name: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split(",") if v.strip())
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ConfigError(f"'{name}' must be a list of strings or a comma separated string")


@dataclass
class Options:
    """Options recognized by :func:`depcheck.checker.depcheck`."""

    ignore_patterns: tuple[str, ...] = ()  # additive to DEFAULT_IGNORE_PATTERNS
    ignore_matches: tuple[str, ...] = ()
    skip_missing: bool = False
    ignore_bin_package: bool = False
    ignore_path: Path | None = None
    read_depcheckignore: bool = False  # honor .depcheckignore files like .gitignore
    parsers: dict[str, str] = field(default_factory=dict)  # extension -> dialect
    workers: int | None = None

    def __post_init__(self) -> None:
        self.ignore_patterns = tuple(self.ignore_patterns)
        self.ignore_matches = tuple(self.ignore_matches)
        if self.ignore_path is not None:
            self.ignore_path = Path(self.ignore_path)
        normalized: dict[str, str] = {}
        for ext, dialect in self.parsers.items():
            if dialect not in EXTRACTOR_REGISTRY:
                raise ConfigError(
                    f"Unknown dialect '{dialect}' for '{ext}' "
                    f"(known: {', '.join(sorted(EXTRACTOR_REGISTRY))})"
                )
            normalized[normalize_extension(ext)] = dialect
        self.parsers = normalized
        if self.workers is not None and self.workers < 1:
            raise ConfigError("'workers' must be a positive integer")

    @property
    def all_ignore_patterns(self) -> tuple[str, ...]:
        return DEFAULT_IGNORE_PATTERNS + self.ignore_patterns

    def dialect_map(self) -> dict[str, str]:
        """Built-in extension -> dialect mapping with user overrides applied."""
        mapping = default_dialect_map()
        mapping.update(self.parsers)
        return mapping

    def merged(self, **overrides: Any) -> Options:
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    # ── construction from config data ────────────────────────────────────

    @classmethod
    def from_mapping(cls, data: dict[str, Any], base_dir: Path | None = None) -> Options:
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for raw_key, value in data.items():
            key = _normalize_key(raw_key)
            if key not in known:
                log.warning("options.unknown_key", key=raw_key)
                continue
            if key in ("ignore_patterns", "ignore_matches"):
                kwargs[key] = _as_str_list(raw_key, value)
            elif key in ("skip_missing", "ignore_bin_package", "read_depcheckignore"):
                if not isinstance(value, bool):
                    raise ConfigError(f"'{raw_key}' must be a boolean")
                kwargs[key] = value
            elif key == "ignore_path":
                if not isinstance(value, str):
                    raise ConfigError(f"'{raw_key}' must be a path string")
                path = Path(value)
                if base_dir is not None and not path.is_absolute():
                    path = base_dir / path
                kwargs[key] = path
            elif key == "parsers":
                if not isinstance(value, dict) or not all(
                    isinstance(v, str) for v in value.values()
                ):
                    raise ConfigError(f"'{raw_key}' must map extensions to dialect names")
                kwargs[key] = dict(value)
            elif key == "workers":
                if not isinstance(value, int) or isinstance(value, bool):
                    raise ConfigError(f"'{raw_key}' must be an integer")
                kwargs[key] = value
        return cls(**kwargs)

    @classmethod
    def load(cls, root: Path) -> Options:
        """Load options from the project's package.json and .depcheckrc.toml."""
        data: dict[str, Any] = {}

        manifest_path = root / MANIFEST_FILENAME
        if manifest_path.is_file():
            section = read_package_json(manifest_path).get("depcheck", {})
            if not isinstance(section, dict):
                raise ConfigError(f"'depcheck' key in {manifest_path} must be an object")
            data.update(section)

        config_path = root / CONFIG_FILENAME
        if config_path.is_file():
            try:
                data.update(tomllib.loads(config_path.read_text(encoding="utf-8")))
            except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
                raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
            log.debug("options.config_file_loaded", path=str(config_path))

        return cls.from_mapping(data, base_dir=root)
