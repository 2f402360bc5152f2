"""JavaScript (ES modules + CommonJS + JSX) import extractor using tree-sitter."""

from __future__ import annotations

import tree_sitter
from tree_sitter_javascript import language as js_language

from depcheck.exceptions import ParseError
from depcheck.models import ImportKind, ImportReference, SourceFile
from depcheck.parsers.registry import register_extractor


def _literal_value(node: tree_sitter.Node | None) -> str | None:
    """Value of a constant string node, None for anything computed."""
    if node is None:
        return None
    if node.type == "string":
        return node.text.decode("utf-8")[1:-1]
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        return node.text.decode("utf-8")[1:-1]
    return None


def _has_keyword(node: tree_sitter.Node, keyword: str) -> bool:
    return any(not child.is_named and child.type == keyword for child in node.children)


def _first_of_type(node: tree_sitter.Node, node_type: str) -> tree_sitter.Node | None:
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


def _first_error(root: tree_sitter.Node) -> tree_sitter.Node | None:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


class TreeSitterExtractor:
    """Shared tree walk for the ECMAScript family of dialects.

    Subclasses only choose the grammar; the node shapes for imports,
    re-exports and calls are the same across the JavaScript and TypeScript
    grammars.
    """

    dialect: str = ""
    extensions: list[str] = []

    def __init__(self, language: tree_sitter.Language) -> None:
        self.language = language

    def extract(self, source: SourceFile, content: str) -> list[ImportReference]:
        if not content.strip():
            return []

        parser = tree_sitter.Parser(self.language)
        tree = parser.parse(content.encode("utf-8"))
        root = tree.root_node

        if root.has_error:
            bad = _first_error(root)
            line = bad.start_point[0] + 1 if bad is not None else None
            raise ParseError(source.relative_path, f"invalid {self.dialect} syntax", line)

        references: list[ImportReference] = []
        stack = [root]
        while stack:
            node = stack.pop()
            found = self._match(node)
            if found is not None:
                specifier, kind = found
                references.append(
                    ImportReference(
                        file=source.relative_path,
                        specifier=specifier,
                        kind=kind,
                        dialect=source.dialect,
                        line=node.start_point[0] + 1,
                    )
                )
            stack.extend(reversed(node.named_children))
        return references

    def _match(self, node: tree_sitter.Node) -> tuple[str, ImportKind] | None:
        node_type = node.type

        if node_type in ("import_statement", "export_statement"):
            # export without "from" has no source field
            specifier = _literal_value(node.child_by_field_name("source"))
            if specifier is None:
                return None
            kind = ImportKind.TYPE if _has_keyword(node, "type") else ImportKind.STATIC
            return specifier, kind

        if node_type == "import_require_clause":
            source = node.child_by_field_name("source") or _first_of_type(node, "string")
            specifier = _literal_value(source)
            return (specifier, ImportKind.STATIC) if specifier is not None else None

        if node_type == "call_expression":
            kind = self._call_kind(node.child_by_field_name("function"))
            if kind is None:
                return None
            arguments = node.child_by_field_name("arguments")
            if arguments is None or arguments.type != "arguments":
                return None
            # Skip webpack magic comments: import(/* webpackChunkName: "x" */ 'pkg')
            args = [a for a in arguments.named_children if a.type != "comment"]
            specifier = _literal_value(args[0]) if args else None
            return (specifier, kind) if specifier is not None else None

        return None

    @staticmethod
    def _call_kind(function: tree_sitter.Node | None) -> ImportKind | None:
        if function is None:
            return None
        if function.type == "import":
            return ImportKind.DYNAMIC
        if function.type == "identifier" and function.text == b"require":
            return ImportKind.REQUIRE
        if function.type == "member_expression":
            obj = function.child_by_field_name("object")
            prop = function.child_by_field_name("property")
            if (
                obj is not None
                and prop is not None
                and obj.type == "identifier"
                and obj.text == b"require"
                and prop.text == b"resolve"
            ):
                return ImportKind.REQUIRE
        return None


class JavaScriptExtractor(TreeSitterExtractor):
    dialect = "javascript"
    extensions = [".js", ".jsx", ".mjs", ".cjs"]

    def __init__(self) -> None:
        super().__init__(tree_sitter.Language(js_language()))


register_extractor(JavaScriptExtractor())
