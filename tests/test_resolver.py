"""Tests for the specifier resolver and usage expansion."""

from __future__ import annotations

import pytest

from depcheck.manifest import Manifest
from depcheck.models import ImportKind, ImportReference
from depcheck.options import Options
from depcheck.resolver import (
    IGNORED,
    LOCAL,
    UsageResolver,
    extract_package_name,
    is_core_module,
    resolve,
    types_package_name,
)


def _ref(specifier: str, dialect: str = "javascript", kind=ImportKind.STATIC) -> ImportReference:
    return ImportReference(file="index.js", specifier=specifier, kind=kind, dialect=dialect)


# ── extract_package_name ─────────────────────────────────────────────────


class TestExtractPackageName:
    @pytest.mark.parametrize(
        "specifier, expected",
        [
            ("tape", "tape"),
            ("tape/", "tape"),
            ("tape/index.js", "tape"),
            ("tape/foo/bar/index.js", "tape"),
            ("tape/foo/bar/", "tape"),
            ("tape///foo/bar", "tape"),
            ("@user/home", "@user/home"),
            ("@user/home/", "@user/home"),
            ("@user/home/foo.js", "@user/home"),
            ("@user//foobar", "@user/foobar"),
        ],
    )
    def test_package_names(self, specifier, expected):
        assert extract_package_name(specifier) == expected

    @pytest.mark.parametrize("specifier", ["", "@user", "@user/", "@user//"])
    def test_malformed(self, specifier):
        assert extract_package_name(specifier) is None


# ── resolve ──────────────────────────────────────────────────────────────


class TestResolve:
    def test_scoped_deep_path(self):
        assert resolve("@scope/name/sub/path") == "@scope/name"

    def test_unscoped_sub_path(self):
        assert resolve("pkg/lib/util") == "pkg"

    @pytest.mark.parametrize(
        "specifier", ["./x", "../x", ".", "..", "/abs/path", "./", "#internal/util", "#config"]
    )
    def test_local_paths(self, specifier):
        assert resolve(specifier) is LOCAL

    @pytest.mark.parametrize("specifier", ["fs", "path", "fs/promises", "worker_threads"])
    def test_builtins_ignored(self, specifier):
        assert resolve(specifier) is IGNORED

    @pytest.mark.parametrize("specifier", ["node:fs", "https://cdn.example.com/x.js", "bun:test"])
    def test_protocol_ignored(self, specifier):
        assert resolve(specifier) is IGNORED

    @pytest.mark.parametrize("specifier", ["", "@scope", "@scope/"])
    def test_malformed_ignored(self, specifier):
        assert resolve(specifier) is IGNORED

    def test_core_module_lookup(self):
        assert is_core_module("crypto")
        assert not is_core_module("lodash")


# ── types_package_name ───────────────────────────────────────────────────


class TestTypesPackageName:
    def test_plain(self):
        assert types_package_name("react") == "@types/react"

    def test_scoped(self):
        assert types_package_name("@org/org-pkg") == "@types/org__org-pkg"

    def test_core_module(self):
        assert types_package_name("fs") == "@types/node"


# ── UsageResolver ────────────────────────────────────────────────────────


class TestUsageResolver:
    def _resolver(self, tmp_path, manifest: Manifest, **options) -> UsageResolver:
        return UsageResolver(tmp_path, manifest, Options(**options))

    def test_javascript_plain_name(self, tmp_path):
        resolver = self._resolver(tmp_path, Manifest(dependencies={"@types/react": "*"}))
        assert resolver.packages_for(_ref("react/jsx-runtime")) == ["react"]

    def test_local_and_builtin_contribute_nothing(self, tmp_path):
        resolver = self._resolver(tmp_path, Manifest())
        assert resolver.packages_for(_ref("./local")) == []
        assert resolver.packages_for(_ref("fs")) == []
        assert resolver.packages_for(_ref("#internal/util")) == []

    def test_typescript_adds_declared_types(self, tmp_path):
        manifest = Manifest(dependencies={"react": "*"}, dev_dependencies={"@types/react": "*"})
        resolver = self._resolver(tmp_path, manifest)
        assert resolver.packages_for(_ref("react", "tsx")) == ["react", "@types/react"]

    def test_typescript_undeclared_types_not_added(self, tmp_path):
        resolver = self._resolver(tmp_path, Manifest(dependencies={"react": "*"}))
        assert resolver.packages_for(_ref("react", "typescript")) == ["react"]

    def test_typescript_scoped_types(self, tmp_path):
        manifest = Manifest(dev_dependencies={"@types/org__org-pkg": "*"})
        resolver = self._resolver(tmp_path, manifest)
        assert resolver.packages_for(_ref("@org/org-pkg/sub", "typescript")) == [
            "@org/org-pkg",
            "@types/org__org-pkg",
        ]

    def test_typescript_builtin_uses_types_node(self, tmp_path):
        resolver = self._resolver(tmp_path, Manifest(dev_dependencies={"@types/node": "*"}))
        assert resolver.packages_for(_ref("fs", "typescript")) == ["@types/node"]
        assert resolver.packages_for(_ref("fs", "javascript")) == []

    def test_type_only_import_prefers_types_package(self, tmp_path):
        manifest = Manifest(dev_dependencies={"@types/typeless-module": "*"})
        resolver = self._resolver(tmp_path, manifest)
        ref = _ref("typeless-module", "typescript", ImportKind.TYPE)
        assert resolver.packages_for(ref) == ["@types/typeless-module"]

    def test_type_only_import_without_types_package(self, tmp_path):
        resolver = self._resolver(tmp_path, Manifest(dependencies={"typed-lib": "*"}))
        ref = _ref("typed-lib", "typescript", ImportKind.TYPE)
        assert resolver.packages_for(ref) == []

    def test_installed_peer_and_optional_companions(self, tmp_path, installed):
        installed(
            tmp_path,
            "host",
            {
                "peerDependencies": {"peer": "*", "not-declared": "*"},
                "optionalDependencies": {"optional": "*"},
            },
        )
        manifest = Manifest(dependencies={"host": "*", "peer": "*"}, dev_dependencies={"optional": "*"})
        resolver = self._resolver(tmp_path, manifest)
        assert resolver.packages_for(_ref("host")) == ["host", "peer", "optional"]

    def test_ignore_bin_package_drops_bin_modules(self, tmp_path, installed):
        installed(tmp_path, "cli-tool", {"bin": {"cli-tool": "bin/cli.js"}})
        manifest = Manifest(dependencies={"cli-tool": "*"})
        assert self._resolver(tmp_path, manifest).packages_for(_ref("cli-tool")) == ["cli-tool"]
        resolver = self._resolver(tmp_path, manifest, ignore_bin_package=True)
        assert resolver.packages_for(_ref("cli-tool")) == []
