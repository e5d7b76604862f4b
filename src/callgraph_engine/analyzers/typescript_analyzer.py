# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""TypeScript analyzer using tree-sitter AST traversal.

The file is parsed with the tree-sitter TypeScript grammar (TSX grammar for
`.tsx` files) and walked once. Node types we care about map to NodeKind
values and are dispatched through a table of handlers:

- type aliases, interfaces (with their method signatures) and enums
- class methods, with `static` and `private` modifiers
- function declarations and arrow/function-expression variable bindings,
  including arrows wrapped in useCallback/useMemo/useEffect
- import declarations (with usage tracking) and export declarations

Calls are collected from each function body while walking and filtered once
the file's own definitions are known.

Fallback:
When the file exceeds the AST size or line ceiling, tree-sitter reports a
syntax error, or the walk fails unexpectedly, the regex ScriptScanner is used
instead and a warning is recorded. Its result is labelled `typescript-regex`.
"""

import logging
import time
from dataclasses import replace
from enum import Enum
from typing import AbstractSet, Callable, Dict, Iterator, List, Optional

import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Node, Parser

from callgraph_engine.analyzers.base import (
    Analyzer,
    AnalyzerKind,
    code_slice,
    combine_defined_methods,
)
from callgraph_engine.analyzers.import_usage import (
    ImportDeclaration,
    ImportSpecifier,
    SpecifierKind,
    build_import_methods,
)
from callgraph_engine.analyzers.javascript_analyzer import (
    COMPONENT_ANNOTATION,
    HOOK_NAME,
    ScriptScanner,
)
from callgraph_engine.cache import AnalysisCache
from callgraph_engine.keywords import is_valid_javascript_call
from callgraph_engine.models import (
    AnalysisError,
    AnalysisResult,
    ErrorSeverity,
    ErrorType,
    Method,
    MethodCall,
    MethodType,
    ParsedFile,
)
from callgraph_engine.parameters import parse_parameters

logger = logging.getLogger(__name__)

AST_ENGINE = "typescript-ast"
REGEX_ENGINE = "typescript-regex"

DEFAULT_MAX_AST_SIZE_BYTES = 1024 * 1024
DEFAULT_MAX_FILE_LINES = 50000

# Hook calls whose inline function argument is reported under the binding name
HOOK_WRAPPERS = frozenset({"useCallback", "useMemo", "useEffect"})

FUNCTION_VALUE_TYPES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
JSX_NODE_TYPES = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})


class NodeKind(Enum):
    """tree-sitter node types handled by the TypeScript walk."""

    IMPORT = "import_statement"
    EXPORT = "export_statement"
    TYPE_ALIAS = "type_alias_declaration"
    INTERFACE = "interface_declaration"
    ENUM = "enum_declaration"
    CLASS = "class_declaration"
    ABSTRACT_CLASS = "abstract_class_declaration"
    FUNCTION = "function_declaration"
    GENERATOR_FUNCTION = "generator_function_declaration"
    LEXICAL_DECLARATION = "lexical_declaration"
    VARIABLE_DECLARATION = "variable_declaration"


_NODE_KINDS: Dict[str, NodeKind] = {kind.value: kind for kind in NodeKind}


def node_text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def start_line(node: Node) -> int:
    return node.start_point[0] + 1


def end_line(node: Node) -> int:
    return node.end_point[0] + 1


def iter_descendants(node: Node) -> Iterator[Node]:
    """Pre-order traversal of node and everything below it (no recursion)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def first_error_line(root: Node) -> Optional[int]:
    """Line of the first ERROR or MISSING node in the tree."""
    for node in iter_descendants(root):
        if node.type == "ERROR" or node.is_missing:
            return start_line(node)
    return None


def unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


class _FileWalk:
    """State for one AST walk over a single file."""

    def __init__(self, file: ParsedFile) -> None:
        self.file = file
        self.lines = file.lines
        self.methods: List[Method] = []
        self.handlers: Dict[NodeKind, Callable[[Node], None]] = {
            NodeKind.IMPORT: self._on_import,
            NodeKind.EXPORT: self._on_export,
            NodeKind.TYPE_ALIAS: self._on_type_alias,
            NodeKind.INTERFACE: self._on_interface,
            NodeKind.ENUM: self._on_enum,
            NodeKind.CLASS: self._on_class,
            NodeKind.ABSTRACT_CLASS: self._on_class,
            NodeKind.FUNCTION: self._on_function,
            NodeKind.GENERATOR_FUNCTION: self._on_function,
            NodeKind.LEXICAL_DECLARATION: self._on_variable_declaration,
            NodeKind.VARIABLE_DECLARATION: self._on_variable_declaration,
        }

    def run(self, root: Node) -> List[Method]:
        for node in iter_descendants(root):
            kind = _NODE_KINDS.get(node.type)
            if kind is not None:
                self.handlers[kind](node)
        return self.methods

    # Helpers

    def _method(self, name: str, kind: str, node: Node, **fields) -> Method:
        first, last = start_line(node), end_line(node)
        return Method(
            name=name,
            type=kind,
            start_line=first,
            end_line=last,
            file_path=self.file.path,
            code=code_slice(self.lines, first, last),
            **fields,
        )

    def _calls(self, body: Optional[Node]) -> List[MethodCall]:
        """Every call expression under body, unfiltered."""
        if body is None:
            return []
        calls: List[MethodCall] = []
        for node in iter_descendants(body):
            if node.type != "call_expression":
                continue
            callee = node.child_by_field_name("function")
            if callee is None:
                continue
            if callee.type == "identifier":
                name_node = callee
            elif callee.type == "member_expression":
                name_node = callee.child_by_field_name("property")
            else:
                continue
            if name_node is None:
                continue
            row, column = name_node.start_point
            calls.append(
                MethodCall(
                    method_name=node_text(name_node),
                    line=row + 1,
                    column=column,
                    context=self.lines[row].strip() if row < len(self.lines) else None,
                )
            )
        return calls

    def _parameters(self, function_node: Node):
        params = function_node.child_by_field_name("parameters")
        if params is None:
            params = function_node.child_by_field_name("parameter")
        return parse_parameters(node_text(params), "typescript")

    @staticmethod
    def _classify(name: str, body: Optional[Node], annotation: Optional[str] = None) -> str:
        if HOOK_NAME.match(name):
            return MethodType.CUSTOM_HOOK
        if name[:1].isupper():
            if annotation and COMPONENT_ANNOTATION.search(annotation):
                return MethodType.COMPONENT
            if body is not None and any(
                n.type in JSX_NODE_TYPES for n in iter_descendants(body)
            ):
                return MethodType.COMPONENT
        return MethodType.FUNCTION

    # Type definitions

    def _on_type_alias(self, node: Node) -> None:
        name = node_text(node.child_by_field_name("name"))
        if name:
            self.methods.append(self._method(name, MethodType.TYPE_ALIAS, node))

    def _on_interface(self, node: Node) -> None:
        name = node_text(node.child_by_field_name("name"))
        if not name:
            return
        self.methods.append(self._method(name, MethodType.INTERFACE, node))

        body = node.child_by_field_name("body")
        if body is None:
            return
        for member in body.named_children:
            if member.type != "method_signature":
                continue
            member_name = member.child_by_field_name("name")
            if member_name is None or member_name.type != "property_identifier":
                continue
            self.methods.append(
                self._method(
                    node_text(member_name),
                    MethodType.INTERFACE_METHOD,
                    member,
                    parameters=self._parameters(member),
                )
            )

    def _on_enum(self, node: Node) -> None:
        name = node_text(node.child_by_field_name("name"))
        if name:
            self.methods.append(self._method(name, MethodType.ENUM, node))

    # Classes and functions

    def _on_class(self, node: Node) -> None:
        if node.child_by_field_name("name") is None:
            return
        body = node.child_by_field_name("body")
        if body is None:
            return
        for member in body.named_children:
            if member.type != "method_definition":
                continue
            name_node = member.child_by_field_name("name")
            if name_node is None or name_node.type not in (
                "property_identifier",
                "private_property_identifier",
            ):
                continue
            is_static = any(child.type == "static" for child in member.children)
            is_private = name_node.type == "private_property_identifier" or any(
                child.type == "accessibility_modifier" and node_text(child) == "private"
                for child in member.children
            )
            self.methods.append(
                self._method(
                    node_text(name_node),
                    MethodType.CLASS_METHOD if is_static else MethodType.METHOD,
                    member,
                    calls=self._calls(member.child_by_field_name("body")),
                    is_private=is_private,
                    parameters=self._parameters(member),
                )
            )

    def _on_function(self, node: Node) -> None:
        name = node_text(node.child_by_field_name("name"))
        if not name:
            return
        body = node.child_by_field_name("body")
        self.methods.append(
            self._method(
                name,
                self._classify(name, body),
                node,
                calls=self._calls(body),
                parameters=self._parameters(node),
            )
        )

    def _on_variable_declaration(self, node: Node) -> None:
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name_node is None or name_node.type != "identifier" or value is None:
                continue

            function_node = self._bound_function(value)
            if function_node is None:
                continue

            name = node_text(name_node)
            annotation = node_text(declarator.child_by_field_name("type")) or None
            body = function_node.child_by_field_name("body")
            # Hook-wrapped arrows span the argument, plain bindings the declarator
            span = function_node if value.type == "call_expression" else declarator
            self.methods.append(
                self._method(
                    name,
                    self._classify(name, body, annotation),
                    span,
                    calls=self._calls(body),
                    parameters=self._parameters(function_node),
                )
            )

    @staticmethod
    def _bound_function(value: Node) -> Optional[Node]:
        """The function a declarator binds: the value itself or a hook's first argument."""
        if value.type in FUNCTION_VALUE_TYPES:
            return value
        if value.type != "call_expression":
            return None
        callee = value.child_by_field_name("function")
        if callee is None or node_text(callee) not in HOOK_WRAPPERS:
            return None
        arguments = value.child_by_field_name("arguments")
        if arguments is None or not arguments.named_children:
            return None
        first = arguments.named_children[0]
        return first if first.type in FUNCTION_VALUE_TYPES else None

    # Imports and exports

    def _on_import(self, node: Node) -> None:
        source = unquote(node_text(node.child_by_field_name("source")))
        if not source:
            return
        specifiers: List[ImportSpecifier] = []
        for clause in node.named_children:
            if clause.type == "import_clause":
                specifiers.extend(self._import_specifiers(clause))
        declaration = ImportDeclaration(
            source=source,
            start_line=start_line(node),
            end_line=end_line(node),
            specifiers=specifiers,
        )
        self.methods.extend(build_import_methods(self.file, declaration))

    @staticmethod
    def _import_specifiers(clause: Node) -> List[ImportSpecifier]:
        specifiers: List[ImportSpecifier] = []
        for child in clause.named_children:
            if child.type == "identifier":
                specifiers.append(
                    ImportSpecifier("default", node_text(child), SpecifierKind.DEFAULT)
                )
            elif child.type == "namespace_import":
                local = next((n for n in child.named_children if n.type == "identifier"), None)
                if local is not None:
                    specifiers.append(ImportSpecifier("*", node_text(local), SpecifierKind.NAMESPACE))
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    imported = node_text(spec.child_by_field_name("name"))
                    alias = node_text(spec.child_by_field_name("alias"))
                    if imported:
                        specifiers.append(
                            ImportSpecifier(imported, alias or imported, SpecifierKind.NAMED)
                        )
        return specifiers

    def _on_export(self, node: Node) -> None:
        if any(child.type == "default" for child in node.children):
            self.methods.append(self._method("[Default Export]", MethodType.EXPORT, node))
            return

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            name = node_text(declaration.child_by_field_name("name"))
            if not name:
                name = ", ".join(
                    node_text(d.child_by_field_name("name"))
                    for d in declaration.named_children
                    if d.type == "variable_declarator"
                )
            label = f"[Export: {name}]" if name else "[Export Declaration]"
            self.methods.append(self._method(label, MethodType.EXPORT, node))
            return

        elements: List[str] = []
        for clause in node.named_children:
            if clause.type != "export_clause":
                continue
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                local = node_text(spec.child_by_field_name("name"))
                alias = node_text(spec.child_by_field_name("alias"))
                elements.append(f"{local} as {alias}" if alias and alias != local else local)

        if elements:
            source = unquote(node_text(node.child_by_field_name("source")))
            suffix = f" from '{source}'" if source else ""
            label = f"[Export: {{{', '.join(elements)}}}{suffix}]"
        else:
            label = "[Export: re-export]"
        self.methods.append(self._method(label, MethodType.EXPORT, node))


class TypeScriptAnalyzer(Analyzer):
    """tree-sitter analyzer for TypeScript and TSX with a regex fallback.

    Args:
        max_ast_size_bytes: Files larger than this skip the AST path.
        max_file_lines: Files with more lines than this skip the AST path.
        max_function_lines: Function length bound used by the regex fallback.
        cache: Optional AnalysisCache consulted for AST results.
    """

    kind = AnalyzerKind.TYPESCRIPT
    description = "TypeScript method analyzer (tree-sitter AST, regex fallback)"
    languages = frozenset({"typescript", "ts", "tsx"})
    engine = AST_ENGINE

    def __init__(
        self,
        max_ast_size_bytes: int = DEFAULT_MAX_AST_SIZE_BYTES,
        max_file_lines: int = DEFAULT_MAX_FILE_LINES,
        max_function_lines: int = 50,
        cache: Optional[AnalysisCache] = None,
    ) -> None:
        self.max_ast_size_bytes = max_ast_size_bytes
        self.max_file_lines = max_file_lines
        self.cache = cache
        self.fallback = ScriptScanner(typescript=True, max_function_lines=max_function_lines)
        self._parsers: Dict[str, Parser] = {}

    def _parser(self, tsx: bool) -> Parser:
        grammar = "tsx" if tsx else "typescript"
        parser = self._parsers.get(grammar)
        if parser is None:
            raw = tstypescript.language_tsx() if tsx else tstypescript.language_typescript()
            parser = Parser()
            parser.language = Language(raw)
            self._parsers[grammar] = parser
        return parser

    @staticmethod
    def is_tsx(file: ParsedFile) -> bool:
        return file.language.lower() == "tsx" or file.path.lower().endswith(".tsx")

    def analyze(
        self, file: ParsedFile, defined_methods: Optional[AbstractSet[str]] = None
    ) -> AnalysisResult:
        key = None
        if self.cache is not None:
            key = self.cache.make_key(file.path, file.content, defined_methods, file.language)
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        started = time.perf_counter()
        errors: List[AnalysisError] = []

        methods = self._analyze_ast(file, defined_methods, errors)
        if methods is None:
            methods = self.fallback.scan(file, defined_methods, errors)
            logger.debug(f"TypeScript regex fallback for {file.path}: {len(methods)} methods")
            return self._build_result(file, methods, errors, started, engine=REGEX_ENGINE)

        logger.debug(f"TypeScript AST analysis of {file.path}: {len(methods)} methods")
        result = self._build_result(file, methods, errors, started, engine=AST_ENGINE)
        if self.cache is not None and key is not None:
            self.cache.put(key, result)
        return result

    def _analyze_ast(
        self,
        file: ParsedFile,
        defined_methods: Optional[AbstractSet[str]],
        errors: List[AnalysisError],
    ) -> Optional[List[Method]]:
        """Run the AST path; None means the caller must fall back to regex."""
        size = len(file.content.encode("utf-8"))
        line_count = len(file.lines)
        if size > self.max_ast_size_bytes or line_count > self.max_file_lines:
            logger.warning(
                f"⚠️ {file.path} exceeds AST limits ({size} bytes, {line_count} lines), "
                f"using regex analysis"
            )
            errors.append(
                AnalysisError(
                    message=(
                        f"File too large for AST analysis ({size} bytes, {line_count} lines); "
                        f"used regex fallback"
                    ),
                    type=ErrorType.VALIDATION,
                    severity=ErrorSeverity.WARNING,
                )
            )
            return None

        try:
            tree = self._parser(self.is_tsx(file)).parse(file.content.encode("utf-8"))
            root = tree.root_node
            if root.has_error:
                line = first_error_line(root)
                logger.warning(
                    f"⚠️ Syntax error in {file.path} at line {line}, using regex analysis"
                )
                errors.append(
                    AnalysisError(
                        message=f"Syntax error at line {line}; used regex fallback",
                        type=ErrorType.SYNTAX,
                        severity=ErrorSeverity.WARNING,
                        line=line,
                    )
                )
                return None

            methods = _FileWalk(file).run(root)
        except Exception as e:
            logger.warning(f"⚠️ AST analysis failed for {file.path}: {e}", exc_info=True)
            errors.append(
                AnalysisError(
                    message=f"AST analysis failed: {e}; used regex fallback",
                    type=ErrorType.RUNTIME,
                    severity=ErrorSeverity.WARNING,
                )
            )
            return None

        local_names = {m.name for m in methods if m.is_definition}
        combined = combine_defined_methods(local_names, defined_methods)
        methods = [
            replace(
                method,
                calls=[c for c in method.calls if is_valid_javascript_call(c.method_name, combined)],
            )
            if method.calls and method.is_definition
            else method
            for method in methods
        ]
        methods.sort(key=lambda m: m.start_line)
        return methods
