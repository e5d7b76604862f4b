# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Regex-based JavaScript analyzer.

ScriptScanner implements the line-oriented scan shared by the JavaScript
analyzer and the TypeScript analyzer's regex fallback:
1. Clean lines (comments removed, string contents blanked, ${...} kept)
2. Recognise definitions: function declarations, arrow/function-expression
   bindings (including hook-wrapped forms), class methods with access
   modifiers, object-literal methods and shorthand class methods
3. Find each function's end by brace-depth counting over cleaned lines
4. Extract `.name(`, `?.name(` and bare `name(` calls filtered against the
   defined-method set
5. Parse import declarations and link imported names to their usages

With typescript=True the scanner additionally recognises type aliases,
interfaces and enums.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import AbstractSet, List, Optional, Tuple

from callgraph_engine.analyzers.base import (
    Analyzer,
    AnalyzerKind,
    code_slice,
    combine_defined_methods,
    extraction_warning,
)
from callgraph_engine.analyzers.import_usage import build_import_methods, parse_import_statement
from callgraph_engine.keywords import (
    is_javascript_builtin,
    is_javascript_keyword,
    is_valid_javascript_call,
)
from callgraph_engine.models import (
    AnalysisError,
    AnalysisResult,
    Method,
    MethodCall,
    MethodType,
    ParsedFile,
)
from callgraph_engine.parameters import parse_parameters

logger = logging.getLogger(__name__)

FUNCTION_DECLARATION = re.compile(
    r"^(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*(\w+)\s*(?:<[^>]*>)?\s*\(([^)]*)\)"
)
ARROW_BINDING = re.compile(
    r"^(?:export\s+)?(?:const|let|var)\s+(\w+)(?:\s*:\s*([^=]+?))?\s*=\s*(?:async\s+)?"
    r"(?:(?:useCallback|useMemo)\s*\(\s*)?(?:async\s+)?(?:<[^>]*>\s*)?"
    r"(?:\(([^)]*)\)|(\w+))\s*(?::\s*[^=]+?)?\s*=>"
)
FUNCTION_EXPRESSION_BINDING = re.compile(
    r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?function\s*\*?\s*\w*\s*\(([^)]*)\)"
)
CLASS_MEMBER = re.compile(
    r"^(public|private|protected|static)\s+((?:(?:static|async|readonly|override)\s+)*)"
    r"(\w+)\s*(?:<[^>]*>)?\s*\(([^)]*)\)"
)
OBJECT_METHOD = re.compile(r"^(\w+)\s*:\s*(?:async\s+)?function\s*\*?\s*\(([^)]*)\)")
SHORTHAND_METHOD = re.compile(r"^(?:async\s+)?(\w+)\s*\(([^()]*)\)\s*(?::\s*[^{]+)?\{")

TYPE_ALIAS = re.compile(r"^(?:export\s+)?(?:declare\s+)?type\s+(\w+)(?:\s*<[^>]*>)?\s*=")
INTERFACE = re.compile(r"^(?:export\s+)?(?:declare\s+)?interface\s+(\w+)")
ENUM = re.compile(r"^(?:export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+(\w+)")
IMPORT_START = re.compile(r"^\s*import[\s{*'\"]")
IMPORT_COMPLETE = re.compile(r"from\s*['\"][^'\"]+['\"]|^\s*import\s+['\"]")
MAX_IMPORT_LINES = 50

DOT_CALL = re.compile(r"[\w)\]]\s*\??\.\s*(\w+)\s*\(")
BARE_CALL = re.compile(r"(?<![\w.$])(\w+)\s*\(")
PRECEDED_BY_FUNCTION = re.compile(r"\bfunction\s*\*?\s*$")

HOOK_NAME = re.compile(r"^use[A-Z]")
JSX_HINT = re.compile(
    r"return\s*\(?\s*<[A-Za-z>]|<[A-Z]\w*[\s/>]|<>|"
    r"<(?:div|span|section|main|header|footer|article|nav|ul|li|p|a|button|form|input|h[1-6])\b|"
    r"className=|React\.createElement"
)
COMPONENT_ANNOTATION = re.compile(r"\b(?:React\.)?(?:FC|FunctionComponent|VFC)\b")

CONTROL_LINE = re.compile(r"^(?:if|else|for|while|do|switch|case|try|catch|finally|with|return)\b")


def classify_function(name: str, code: str, annotation: Optional[str] = None) -> str:
    """Classify a function definition as custom_hook, component or plain function."""
    if HOOK_NAME.match(name):
        return MethodType.CUSTOM_HOOK
    if name[:1].isupper() and (
        (annotation and COMPONENT_ANNOTATION.search(annotation)) or JSX_HINT.search(code)
    ):
        return MethodType.COMPONENT
    return MethodType.FUNCTION


def clean_script_lines(lines: List[str]) -> List[str]:
    """Strip comments and blank string contents across a whole file.

    Block comments and template literals may span lines. Template ${...}
    expressions are kept so calls inside them stay visible. Column positions
    are preserved.
    """
    cleaned: List[str] = []
    in_block_comment = False
    in_template = False
    for line in lines:
        out: List[str] = []
        i = 0
        length = len(line)
        quote = ""
        while i < length:
            char = line[i]
            if in_block_comment:
                if line.startswith("*/", i):
                    in_block_comment = False
                    out.append("  ")
                    i += 2
                else:
                    out.append(" ")
                    i += 1
                continue
            if in_template:
                if char == "\\":
                    out.append("  "[: min(2, length - i)])
                    i += 2
                elif char == "`":
                    in_template = False
                    out.append(char)
                    i += 1
                elif line.startswith("${", i):
                    end = _matching_brace(line, i + 1)
                    out.append(line[i:end])
                    i = end
                else:
                    out.append(" ")
                    i += 1
                continue
            if quote:
                if char == "\\":
                    out.append("  "[: min(2, length - i)])
                    i += 2
                    continue
                if char == quote:
                    quote = ""
                    out.append(char)
                else:
                    out.append(" ")
                i += 1
                continue
            if line.startswith("//", i):
                break
            if line.startswith("/*", i):
                in_block_comment = True
                out.append("  ")
                i += 2
                continue
            if char in ("'", '"'):
                quote = char
            elif char == "`":
                in_template = True
            out.append(char)
            i += 1
        cleaned.append("".join(out))
    return cleaned


def _matching_brace(line: str, open_index: int) -> int:
    """Index just past the brace closing the one at open_index (or end of line)."""
    depth = 0
    for i in range(open_index, len(line)):
        if line[i] == "{":
            depth += 1
        elif line[i] == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return len(line)


def find_block_end(cleaned: List[str], start_index: int, column: int, max_lines: int) -> int:
    """Find the 0-based line closing the first brace block opened at/after (start_index, column).

    Returns start_index when the start line continues with something other than
    a block (an expression body or a `;`), and the max_lines bound when the
    block never closes.
    """
    depth = 0
    opened = False
    limit = min(len(cleaned) - 1, start_index + max_lines)
    for index in range(start_index, limit + 1):
        text = cleaned[index][column:] if index == start_index else cleaned[index]
        for char in text:
            if char == "{":
                depth += 1
                opened = True
            elif char == "}":
                depth -= 1
                if opened and depth <= 0:
                    return index
        if index == start_index and not opened and text.strip():
            return start_index
    return limit


def find_expression_end(cleaned: List[str], start_index: int, column: int, max_lines: int) -> int:
    """End line of a parenthesised arrow body such as `=> (` ... `)`."""
    depth = 0
    limit = min(len(cleaned) - 1, start_index + max_lines)
    for index in range(start_index, limit + 1):
        text = cleaned[index][column:] if index == start_index else cleaned[index]
        for char in text:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth <= 0:
                    return index
    return limit


def find_script_calls(
    cleaned: str, line_number: int, defined: AbstractSet[str], context: Optional[str] = None
) -> List[MethodCall]:
    """Find `.name(`, `?.name(` and bare `name(` calls on one cleaned line."""
    found = {}
    for match in DOT_CALL.finditer(cleaned):
        found.setdefault(match.start(1), match.group(1))
    for match in BARE_CALL.finditer(cleaned):
        column = match.start(1)
        if column in found or PRECEDED_BY_FUNCTION.search(cleaned, 0, column):
            continue
        found[column] = match.group(1)

    return [
        MethodCall(method_name=name, line=line_number, column=column, context=context)
        for column, name in sorted(found.items())
        if not name[0].isdigit() and is_valid_javascript_call(name, defined)
    ]


@dataclass
class _Definition:
    """A definition header found during the scan, before calls are attached."""

    name: str
    kind: str  # MethodType value; FUNCTION is refined by classify_function
    index: int  # 0-based line of the header
    body_column: int  # column where the body (or its opening brace) starts
    params: str
    is_private: bool = False
    annotation: Optional[str] = None  # variable type annotation, e.g. React.FC<Props>
    expression_body: bool = False  # arrow function without a block body


class ScriptScanner:
    """Line-oriented regex scanner for JavaScript and TypeScript sources.

    Args:
        typescript: Also recognise type aliases, interfaces and enums, and parse
            parameters with TypeScript annotations.
        max_function_lines: Bound on a function's length when its braces never close.
    """

    def __init__(self, typescript: bool = False, max_function_lines: int = 50) -> None:
        self.typescript = typescript
        self.max_function_lines = max_function_lines
        self._param_language = "typescript" if typescript else "javascript"

    def scan(
        self,
        file: ParsedFile,
        defined_methods: Optional[AbstractSet[str]],
        errors: List[AnalysisError],
    ) -> List[Method]:
        lines = file.lines
        cleaned = clean_script_lines(lines)

        definitions, type_methods = self._find_definitions(file, lines, cleaned)
        local_names = {d.name for d in definitions}
        combined = combine_defined_methods(local_names, defined_methods)

        methods: List[Method] = []
        for definition in definitions:
            try:
                methods.append(self._build_method(file, lines, cleaned, definition, combined))
            except Exception as e:
                logger.warning(
                    f"⚠️ Skipping '{definition.name}' in {file.path} "
                    f"at line {definition.index + 1}: {e}"
                )
                errors.append(
                    extraction_warning(
                        f"Failed to extract {definition.name}: {e}", definition.index + 1
                    )
                )

        methods.extend(type_methods)
        methods.extend(self._import_methods(file, lines, cleaned, errors))
        methods.sort(key=lambda m: m.start_line)
        return methods

    def _find_definitions(
        self, file: ParsedFile, lines: List[str], cleaned: List[str]
    ) -> Tuple[List[_Definition], List[Method]]:
        definitions: List[_Definition] = []
        type_methods: List[Method] = []

        for index, raw in enumerate(lines):
            if not cleaned[index].strip():
                continue
            stripped = raw.strip()
            indent = len(raw) - len(raw.lstrip())
            if CONTROL_LINE.match(stripped):
                continue

            if self.typescript:
                type_method = self._match_type_definition(file, lines, cleaned, index, stripped)
                if type_method is not None:
                    type_methods.append(type_method)
                    continue

            definition = self._match_definition(stripped, index, indent)
            if definition is not None:
                definitions.append(definition)

        return definitions, type_methods

    def _match_definition(self, stripped: str, index: int, indent: int) -> Optional[_Definition]:
        match = FUNCTION_DECLARATION.match(stripped)
        if match:
            return _Definition(
                match.group(1), MethodType.FUNCTION, index, indent + match.end(), match.group(2)
            )

        match = FUNCTION_EXPRESSION_BINDING.match(stripped)
        if match:
            return _Definition(
                match.group(1), MethodType.FUNCTION, index, indent + match.end(), match.group(2)
            )

        match = ARROW_BINDING.match(stripped)
        if match:
            params = match.group(3) if match.group(3) is not None else (match.group(4) or "")
            rest = stripped[match.end() :].lstrip()
            return _Definition(
                match.group(1),
                MethodType.FUNCTION,
                index,
                indent + match.end(),
                params,
                annotation=match.group(2),
                expression_body=not rest.startswith("{"),
            )

        match = CLASS_MEMBER.match(stripped)
        if match:
            modifiers = {match.group(1)} | set(match.group(2).split())
            name = match.group(3)
            if is_javascript_keyword(name) and name != "constructor":
                return None
            kind = MethodType.CLASS_METHOD if "static" in modifiers else MethodType.METHOD
            return _Definition(
                name,
                kind,
                index,
                indent + match.end(),
                match.group(4),
                is_private="private" in modifiers,
            )

        match = OBJECT_METHOD.match(stripped)
        if match:
            return _Definition(
                match.group(1), MethodType.METHOD, index, indent + match.end(), match.group(2)
            )

        match = SHORTHAND_METHOD.match(stripped)
        if match:
            name = match.group(1)
            if is_javascript_keyword(name) or is_javascript_builtin(name):
                return None
            return _Definition(
                name, MethodType.METHOD, index, indent + match.end() - 1, match.group(2)
            )

        return None

    def _match_type_definition(
        self, file: ParsedFile, lines: List[str], cleaned: List[str], index: int, stripped: str
    ) -> Optional[Method]:
        for pattern, kind in (
            (TYPE_ALIAS, MethodType.TYPE_ALIAS),
            (INTERFACE, MethodType.INTERFACE),
            (ENUM, MethodType.ENUM),
        ):
            match = pattern.match(stripped)
            if not match:
                continue
            indent = len(lines[index]) - len(lines[index].lstrip())
            end_index = find_block_end(cleaned, index, indent + match.end(), self.max_function_lines)
            return Method(
                name=match.group(1),
                type=kind,
                start_line=index + 1,
                end_line=end_index + 1,
                file_path=file.path,
                code=code_slice(lines, index + 1, end_index + 1),
            )
        return None

    def _build_method(
        self,
        file: ParsedFile,
        lines: List[str],
        cleaned: List[str],
        definition: _Definition,
        defined: AbstractSet[str],
    ) -> Method:
        start = definition.index
        column = definition.body_column
        if definition.expression_body:
            rest = cleaned[start][column:].lstrip()
            if rest.startswith("("):
                end = find_expression_end(cleaned, start, column, self.max_function_lines)
            else:
                end = start
        else:
            end = find_block_end(cleaned, start, column, self.max_function_lines)

        calls: List[MethodCall] = []
        for index in range(start, end + 1):
            text = cleaned[index]
            if index == start:
                text = " " * column + text[column:]
            calls.extend(find_script_calls(text, index + 1, defined, context=lines[index].strip()))

        code = code_slice(lines, start + 1, end + 1)
        kind = definition.kind
        if kind == MethodType.FUNCTION:
            kind = classify_function(definition.name, code, definition.annotation)

        return Method(
            name=definition.name,
            type=kind,
            start_line=start + 1,
            end_line=end + 1,
            file_path=file.path,
            code=code,
            calls=calls,
            is_private=definition.is_private,
            parameters=parse_parameters(definition.params, self._param_language),
        )

    def _import_methods(
        self, file: ParsedFile, lines: List[str], cleaned: List[str], errors: List[AnalysisError]
    ) -> List[Method]:
        methods: List[Method] = []
        index = 0
        while index < len(lines):
            if not IMPORT_START.match(cleaned[index]):
                index += 1
                continue
            end = index
            while (
                end < len(lines) - 1
                and end - index < MAX_IMPORT_LINES
                and not IMPORT_COMPLETE.search(lines[end])
                and ";" not in lines[end]
            ):
                end += 1
            text = "\n".join(lines[index : end + 1])
            declaration = parse_import_statement(text, index + 1, end + 1)
            if declaration is None:
                errors.append(extraction_warning("Unrecognised import statement", index + 1))
            else:
                methods.extend(build_import_methods(file, declaration))
            index = end + 1
        return methods


class JavaScriptAnalyzer(Analyzer):
    """Regex analyzer for JavaScript (and JSX) files."""

    kind = AnalyzerKind.JAVASCRIPT
    description = "JavaScript method analyzer (regex definitions, brace-counted ends)"
    languages = frozenset({"javascript", "js", "jsx", "mjs", "cjs"})
    engine = "javascript-regex"

    def __init__(self, max_function_lines: int = 50) -> None:
        self.scanner = ScriptScanner(typescript=False, max_function_lines=max_function_lines)

    def analyze(
        self, file: ParsedFile, defined_methods: Optional[AbstractSet[str]] = None
    ) -> AnalysisResult:
        started = time.perf_counter()
        errors: List[AnalysisError] = []
        methods = self.scanner.scan(file, defined_methods, errors)
        logger.debug(f"JavaScript analysis of {file.path}: {len(methods)} methods")
        return self._build_result(file, methods, errors, started)
