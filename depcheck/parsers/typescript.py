"""TypeScript and TSX import extractors using tree-sitter."""

from __future__ import annotations

import tree_sitter
from tree_sitter_typescript import language_tsx, language_typescript

from depcheck.parsers.javascript import TreeSitterExtractor
from depcheck.parsers.registry import register_extractor

# Dialects whose imports may be satisfied by DefinitelyTyped (@types/*) packages
TYPESCRIPT_DIALECTS = frozenset({"typescript", "tsx"})


class TypeScriptExtractor(TreeSitterExtractor):
    dialect = "typescript"
    extensions = [".ts", ".mts", ".cts"]

    def __init__(self) -> None:
        super().__init__(tree_sitter.Language(language_typescript()))


class TsxExtractor(TreeSitterExtractor):
    dialect = "tsx"
    extensions = [".tsx"]

    def __init__(self) -> None:
        super().__init__(tree_sitter.Language(language_tsx()))


register_extractor(TypeScriptExtractor())
register_extractor(TsxExtractor())
