"""Tests for the tree-sitter import extractors and the extractor registry."""

from pathlib import Path

import pytest

from depcheck.exceptions import ParseError
from depcheck.models import ImportKind, SourceFile
from depcheck.parsers.registry import (
    EXTRACTOR_REGISTRY,
    ImportExtractor,
    default_dialect_map,
    get_extractor,
)


def _extract(content: str, dialect: str = "javascript", name: str = "index.js"):
    source = SourceFile(path=Path(name), relative_path=name, dialect=dialect)
    return get_extractor(dialect).extract(source, content)


def _specifiers(content: str, dialect: str = "javascript") -> list[str]:
    return [ref.specifier for ref in _extract(content, dialect)]


# ── Registry ─────────────────────────────────────────────────────────────


class TestRegistry:
    def test_builtin_dialects_registered(self):
        assert {"javascript", "typescript", "tsx"} <= set(EXTRACTOR_REGISTRY)

    def test_extractors_satisfy_protocol(self):
        for extractor in EXTRACTOR_REGISTRY.values():
            assert isinstance(extractor, ImportExtractor)

    def test_default_dialect_map(self):
        mapping = default_dialect_map()
        assert mapping[".js"] == "javascript"
        assert mapping[".jsx"] == "javascript"
        assert mapping[".mjs"] == "javascript"
        assert mapping[".cjs"] == "javascript"
        assert mapping[".ts"] == "typescript"
        assert mapping[".tsx"] == "tsx"

    def test_unknown_dialect(self):
        with pytest.raises(KeyError, match="coffeescript"):
            get_extractor("coffeescript")


# ── JavaScript ───────────────────────────────────────────────────────────


class TestJavaScript:
    def test_es_imports(self):
        code = """
import React from 'react';
import { a, b } from "lodash/fp";
import * as ns from 'namespace-pkg';
import 'side-effect';
"""
        assert _specifiers(code) == ["react", "lodash/fp", "namespace-pkg", "side-effect"]

    def test_reexports(self):
        code = """
export * from 'star-pkg';
export { x } from 'named-pkg';
export const local = 1;
"""
        assert _specifiers(code) == ["star-pkg", "named-pkg"]

    def test_require_calls(self):
        refs = _extract("const a = require('a');\nconst p = require.resolve('b/package.json');\n")
        assert [(r.specifier, r.kind) for r in refs] == [
            ("a", ImportKind.REQUIRE),
            ("b/package.json", ImportKind.REQUIRE),
        ]

    def test_dynamic_import(self):
        refs = _extract("async function f() { await import('lazy-pkg'); }")
        assert [(r.specifier, r.kind) for r in refs] == [("lazy-pkg", ImportKind.DYNAMIC)]

    def test_dynamic_import_with_magic_comment(self):
        code = "import(/* webpackChunkName: \"chunk\" */ 'chunked-pkg');"
        assert _specifiers(code) == ["chunked-pkg"]

    def test_template_literal_without_substitution(self):
        assert _specifiers("require(`tpl-pkg`);") == ["tpl-pkg"]

    def test_computed_specifiers_skipped(self):
        code = """
const name = 'x';
require(name);
require(`pkg-${name}`);
import(name);
require('a' + 'b');
"""
        assert _specifiers(code) == []

    def test_other_calls_ignored(self):
        assert _specifiers("load('not-a-package'); obj.require('nope');") == []

    def test_jsx(self):
        code = "import React from 'react';\nexport const App = () => <div className=\"a\" />;\n"
        assert _specifiers(code) == ["react"]

    def test_nested_require(self):
        code = "function f() { if (x) { return require('deep'); } }"
        assert _specifiers(code) == ["deep"]

    def test_source_order_and_location(self):
        refs = _extract("\nimport a from 'a';\n\nconst b = require('b');\n", name="src/x.js")
        assert [(r.specifier, r.line, r.file) for r in refs] == [
            ("a", 2, "src/x.js"),
            ("b", 4, "src/x.js"),
        ]

    def test_empty_file(self):
        assert _extract("") == []
        assert _extract("   \n\n") == []

    def test_syntax_error(self):
        with pytest.raises(ParseError) as exc_info:
            _extract("import from from from;\nconst = ;\n", name="broken.js")
        assert exc_info.value.file == "broken.js"
        assert str(exc_info.value).startswith("broken.js:")


# ── TypeScript ───────────────────────────────────────────────────────────


class TestTypeScript:
    def test_value_imports(self):
        refs = _extract("import { x } from 'ts-pkg';\nexport { y } from 'other';\n", "typescript")
        assert [(r.specifier, r.kind) for r in refs] == [
            ("ts-pkg", ImportKind.STATIC),
            ("other", ImportKind.STATIC),
        ]

    def test_type_only_imports(self):
        code = "import type { T } from 'types-only';\nexport type { U } from 'types-too';\n"
        refs = _extract(code, "typescript")
        assert [(r.specifier, r.kind) for r in refs] == [
            ("types-only", ImportKind.TYPE),
            ("types-too", ImportKind.TYPE),
        ]

    def test_inline_type_specifier_is_value_import(self):
        refs = _extract("import { type T, value } from 'mixed';\n", "typescript")
        assert [(r.specifier, r.kind) for r in refs] == [("mixed", ImportKind.STATIC)]

    def test_import_equals_require(self):
        refs = _extract("import fs2 = require('legacy-pkg');\n", "typescript")
        assert [r.specifier for r in refs] == ["legacy-pkg"]

    def test_dialect_carried_on_reference(self):
        refs = _extract("import x from 'a';\n", "typescript")
        assert refs[0].dialect == "typescript"

    def test_tsx(self):
        code = "import React from 'react';\nconst el = <Comp prop={1} />;\nexport default el;\n"
        assert _specifiers(code, "tsx") == ["react"]

    def test_typescript_syntax_rejected_by_javascript(self):
        with pytest.raises(ParseError):
            _extract("let x: number = 1;\ninterface A { b: string }\n", "javascript")
