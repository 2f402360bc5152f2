"""Specifier resolution: map raw import specifiers to package names."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from depcheck.manifest import InstalledPackages, Manifest
from depcheck.models import ImportKind, ImportReference
from depcheck.options import Options
from depcheck.parsers.typescript import TYPESCRIPT_DIALECTS


class Unresolved(Enum):
    """Specifiers that do not name an installable package."""

    LOCAL = "local"  # relative, absolute or "#" internal path, excluded from the report
    IGNORED = "ignored"  # built-in, protocol-qualified or malformed


LOCAL = Unresolved.LOCAL
IGNORED = Unresolved.IGNORED

CORE_MODULES = frozenset(
    {
        "assert",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "domain",
        "events",
        "fs",
        "http",
        "http2",
        "https",
        "inspector",
        "module",
        "net",
        "os",
        "path",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "repl",
        "stream",
        "string_decoder",
        "sys",
        "timers",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)

_SCOPED_RE = re.compile(r"^(@[^/]+)/+([^/]+)/?")
_BASE_RE = re.compile(r"^([^/]+)/?")
# node:fs, https://cdn..., bun:test
_PROTOCOL_RE = re.compile(r"^[a-z][a-z0-9+.-]*:")
_ORG_RE = re.compile(r"^@(.*?)/(.*)$")


def is_core_module(name: str) -> bool:
    return name in CORE_MODULES


def is_local(specifier: str) -> bool:
    # "#name" is a package-internal import map entry
    return specifier in (".", "..") or specifier.startswith(("./", "../", "/", "#"))


def extract_package_name(specifier: str) -> str | None:
    """Package name of a bare specifier, dropping any sub-path.

    ``tape/foo/bar`` -> ``tape``; ``@user/home/foo.js`` -> ``@user/home``;
    ``@user`` -> None.
    """
    if specifier.startswith("@"):
        m = _SCOPED_RE.match(specifier)
        if m is None:
            return None
        return f"{m.group(1)}/{m.group(2)}"
    m = _BASE_RE.match(specifier)
    return m.group(1) if m else None


def resolve(specifier: str) -> str | Unresolved:
    """Resolve a raw specifier to a package name, LOCAL or IGNORED."""
    if is_local(specifier):
        return LOCAL
    if not specifier or _PROTOCOL_RE.match(specifier):
        return IGNORED
    name = extract_package_name(specifier)
    if name is None or is_core_module(name):
        return IGNORED
    return name


def types_package_name(name: str) -> str:
    """DefinitelyTyped package providing types for *name*."""
    if is_core_module(name):
        return "@types/node"
    m = _ORG_RE.match(name)
    if m:
        return f"@types/{m.group(1)}__{m.group(2)}"
    return f"@types/{name}"


class UsageResolver:
    """Expand import references into the package names they put to use.

    Besides plain resolution this accounts for DefinitelyTyped packages in
    TypeScript sources and for the peer/optional dependencies of installed
    packages that the project itself declares.
    """

    def __init__(
        self,
        root: Path,
        manifest: Manifest,
        options: Options,
        installed: InstalledPackages | None = None,
    ) -> None:
        self.root = root
        self.manifest = manifest
        self.options = options
        self.installed = installed or InstalledPackages(root)

    def packages_for(self, reference: ImportReference) -> list[str]:
        names = self._direct_names(reference)
        if self.options.ignore_bin_package:
            names = [n for n in names if not self.installed.has_bin(n)]

        expanded: list[str] = []
        for name in names:
            expanded.append(name)
            expanded.extend(self._installed_companions(name))
        # Preserve first-seen order, drop duplicates
        return list(dict.fromkeys(expanded))

    def _direct_names(self, reference: ImportReference) -> list[str]:
        specifier = reference.specifier
        if is_local(specifier):
            return []

        resolved = resolve(specifier)
        typescript = reference.dialect in TYPESCRIPT_DIALECTS

        if resolved is IGNORED:
            # A built-in import in TypeScript still uses @types/node
            base = extract_package_name(specifier) if specifier else None
            if typescript and base is not None and is_core_module(base):
                return self._declared_types(base)
            return []
        if resolved is LOCAL:
            return []

        if not typescript:
            return [resolved]

        types = self._declared_types(resolved)
        if reference.kind is ImportKind.TYPE:
            # Type-only usage counts only against a declared @types package
            return types
        return [resolved, *types]

    def _declared_types(self, name: str) -> list[str]:
        types = types_package_name(name)
        return [types] if self.manifest.is_runtime_or_dev(types) else []

    def _installed_companions(self, name: str) -> list[str]:
        installed = self.installed.get(name)
        if installed is None:
            return []
        companions = [*installed.peer_dependencies, *installed.optional_dependencies]
        return [c for c in companions if self.manifest.is_runtime_or_dev(c)]
