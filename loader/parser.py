"""Static extraction of module dependencies from JavaScript source."""

import codecs
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

import tree_sitter
from tree_sitter_javascript import language as js_language

from .errors import ParseError


logger = logging.getLogger(__name__)

_local = threading.local()


@dataclass
class ExtractResult:
    """Dependencies found in one source text."""
    dependencies: Dict[str, Optional[str]] = field(default_factory=dict)
    variable: bool = False
    module: bool = False


class DependencyExtractor:
    """Finds require/import specifiers in JavaScript using Tree-sitter."""

    def __init__(self):
        self.language = tree_sitter.Language(js_language())
        self.parser = tree_sitter.Parser(self.language)

    def extract(self, source: str, is_module: bool = False) -> ExtractResult:
        """
        Extract the dependencies of a source text.

        Args:
            source: JavaScript source text.
            is_module: Whether the text is known to be an ES module.

        Returns:
            ExtractResult with literal specifiers and the variable flag.

        Raises:
            ParseError: If the source contains a syntax error.
        """
        tree = self.parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            raise self._syntax_error(root)

        result = ExtractResult(module=is_module)
        for node in _walk(root):
            if node.type == "call_expression":
                self._visit_call(node, result)
            elif node.type in ("import_statement", "export_statement"):
                source_node = node.child_by_field_name("source")
                if source_node is not None:
                    specifier = _literal_value(source_node)
                    if specifier:
                        result.dependencies.setdefault(specifier, None)
        logger.debug(f"Extracted {len(result.dependencies)} dependencies (variable={result.variable})")
        return result

    def _visit_call(self, node, result: ExtractResult) -> None:
        callee = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if callee is None or arguments is None:
            return
        is_import = callee.type == "import"
        is_require = callee.type == "identifier" and _text(callee) == "require"
        is_require_resolve = (
            callee.type == "member_expression"
            and _text(callee.child_by_field_name("object")) == "require"
            and _text(callee.child_by_field_name("property")) == "resolve"
        )
        if not (is_import or is_require or is_require_resolve):
            return

        args = [child for child in arguments.named_children if child.type != "comment"]
        if not args:
            return
        specifier = _literal_value(args[0])
        if specifier is None:
            if is_import or is_require:
                result.variable = True
            return
        if specifier:
            result.dependencies.setdefault(specifier, None)

    def _syntax_error(self, root) -> ParseError:
        for node in _walk(root):
            if node.type == "ERROR" or node.is_missing:
                row, column = node.start_point[0], node.start_point[1]
                if node.is_missing:
                    message = f"Missing {node.type}"
                else:
                    message = f"Unexpected token {_text(node)[:40]!r}"
                return ParseError(message, line=row + 1, column=column)
        return ParseError("Invalid syntax")


def _walk(root) -> Iterator:
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _text(node) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _literal_value(node) -> Optional[str]:
    """
    Get the value of a string literal node.

    Returns:
        The string value, or None when the node is not a literal
        (identifiers, concatenations, templates with substitutions).
    """
    if node.type == "string":
        parts = []
        for child in node.children:
            if child.type == "escape_sequence":
                parts.append(_unescape(_text(child)))
            elif child.type == "string_fragment":
                parts.append(_text(child))
        return "".join(parts)
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.children):
            return None
        return _text(node)[1:-1]
    if node.type == "parenthesized_expression" and node.named_child_count == 1:
        return _literal_value(node.named_children[0])
    return None


def _unescape(sequence: str) -> str:
    try:
        return codecs.decode(sequence, "unicode_escape")
    except UnicodeDecodeError:
        return sequence


def _extractor() -> DependencyExtractor:
    # Tree-sitter parsers are not safe to share between threads
    extractor = getattr(_local, "extractor", None)
    if extractor is None:
        extractor = _local.extractor = DependencyExtractor()
    return extractor


def gather_dependencies(source: str, is_module: bool = False) -> ExtractResult:
    """Extract dependencies from source text with a per-thread extractor."""
    return _extractor().extract(source, is_module)
