"""Manifest loader — package.json of the project and of installed modules."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from depcheck.exceptions import ManifestError

log = structlog.get_logger("depcheck.manifest")

MANIFEST_FILENAME = "package.json"

_DEP_SECTIONS = {
    "dependencies": "dependencies",
    "devDependencies": "dev_dependencies",
    "optionalDependencies": "optional_dependencies",
    "peerDependencies": "peer_dependencies",
}


@dataclass(frozen=True)
class Manifest:
    """Declared dependency sets of one package.json."""

    name: str = ""
    version: str = ""
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    optional_dependencies: dict[str, str] = field(default_factory=dict)
    peer_dependencies: dict[str, str] = field(default_factory=dict)
    bundled_dependencies: frozenset[str] = frozenset()
    bin: dict[str, str] | None = None
    workspaces: tuple[str, ...] = ()

    def is_dependency(self, name: str) -> bool:
        return name in self.dependencies

    def is_dev_dependency(self, name: str) -> bool:
        return name in self.dev_dependencies

    def is_runtime_or_dev(self, name: str) -> bool:
        return self.is_dependency(name) or self.is_dev_dependency(name)

    def is_any_dependency(self, name: str) -> bool:
        return (
            name in self.dependencies
            or name in self.dev_dependencies
            or name in self.optional_dependencies
            or name in self.peer_dependencies
            or name in self.bundled_dependencies
        )

    @property
    def declared_names(self) -> set[str]:
        return (
            set(self.dependencies)
            | set(self.dev_dependencies)
            | set(self.optional_dependencies)
            | set(self.peer_dependencies)
            | set(self.bundled_dependencies)
        )


def read_package_json(path: Path) -> dict[str, Any]:
    """Read and decode a package.json, raising ManifestError when malformed."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestError(str(path), str(e)) from e
    except OSError as e:
        raise ManifestError(str(path), e.strerror or str(e)) from e
    if not isinstance(data, dict):
        raise ManifestError(str(path), "top-level value must be an object")
    return data


def _dep_mapping(path: Path, key: str, value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestError(str(path), f"'{key}' must be an object")
    # Version constraints may be non-strings in hand-written manifests
    return {str(name): str(constraint) for name, constraint in value.items()}


def _bundled(path: Path, data: dict[str, Any]) -> frozenset[str]:
    value = data.get("bundledDependencies", data.get("bundleDependencies"))
    if value is None or isinstance(value, bool):
        # "bundleDependencies": true bundles everything already declared
        return frozenset()
    if isinstance(value, dict):
        return frozenset(str(k) for k in value)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return frozenset(value)
    raise ManifestError(str(path), "'bundledDependencies' must be a list of names")


def _bin(name: str, value: Any) -> dict[str, str] | None:
    if isinstance(value, str):
        return {name: value}
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items()}
    return None


def _workspaces(value: Any) -> tuple[str, ...]:
    if isinstance(value, dict):
        value = value.get("packages", [])
    if isinstance(value, list):
        return tuple(v for v in value if isinstance(v, str))
    return ()


def parse_manifest(path: Path, data: dict[str, Any]) -> Manifest:
    """Build a :class:`Manifest` from decoded package.json data."""
    sections = {
        attr: _dep_mapping(path, key, data.get(key)) for key, attr in _DEP_SECTIONS.items()
    }
    name = data.get("name") if isinstance(data.get("name"), str) else ""
    version = data.get("version") if isinstance(data.get("version"), str) else ""
    return Manifest(
        name=name,
        version=version,
        bundled_dependencies=_bundled(path, data),
        bin=_bin(name, data.get("bin")),
        workspaces=_workspaces(data.get("workspaces")),
        **sections,
    )


def load_manifest(root: Path) -> Manifest:
    """Load the project's package.json.

    A missing manifest is treated as an empty one so that every imported
    package is reported missing; a malformed one raises ManifestError.
    """
    path = root / MANIFEST_FILENAME
    if not path.is_file():
        log.warning("manifest.not_found", path=str(path))
        return Manifest()
    manifest = parse_manifest(path, read_package_json(path))
    log.debug(
        "manifest.loaded",
        path=str(path),
        dependencies=len(manifest.dependencies),
        dev_dependencies=len(manifest.dev_dependencies),
        optional_dependencies=len(manifest.optional_dependencies),
    )
    return manifest


def load_installed(root: Path, name: str) -> Manifest | None:
    """Manifest of ``node_modules/<name>`` under *root*, or None if not installed."""
    path = root / "node_modules" / name / MANIFEST_FILENAME
    if not path.is_file():
        return None
    try:
        return parse_manifest(path, read_package_json(path))
    except ManifestError as e:
        log.debug("manifest.installed_unreadable", path=str(path), error=e.reason)
        return None


class InstalledPackages:
    """Installed package manifests of one project, cached for a single run.

    Create a fresh instance per check so changes to ``node_modules`` between
    runs are picked up.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._manifests: dict[str, Manifest | None] = {}

    def get(self, name: str) -> Manifest | None:
        if name not in self._manifests:
            self._manifests[name] = load_installed(self.root, name)
        return self._manifests[name]

    def has_bin(self, name: str) -> bool:
        installed = self.get(name)
        return installed is not None and installed.bin is not None


def workspace_package_names(root: Path, manifest: Manifest) -> set[str]:
    """Names of the workspace members declared by *manifest*."""
    names: set[str] = set()
    for pattern in manifest.workspaces:
        if not pattern.strip() or Path(pattern).is_absolute():
            log.warning("manifest.workspace_pattern_skipped", pattern=pattern)
            continue
        try:
            members = sorted(root.glob(pattern))
        except (ValueError, NotImplementedError) as e:
            log.warning("manifest.workspace_pattern_skipped", pattern=pattern, error=str(e))
            continue
        for member in members:
            path = member / MANIFEST_FILENAME
            if not path.is_file():
                continue
            try:
                member_name = read_package_json(path).get("name")
            except ManifestError as e:
                log.warning("manifest.workspace_unreadable", path=str(path), error=e.reason)
                continue
            if isinstance(member_name, str) and member_name:
                names.add(member_name)
    return names
