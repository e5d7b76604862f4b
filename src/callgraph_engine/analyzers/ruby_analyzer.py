# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Ruby method analyzer.

Line-oriented analysis of Ruby source:
1. Clean each line (comments and string contents removed, interpolations kept)
2. Split lines into statements on ';' so one-line class/def bodies are handled
3. Detect `def name` / `def self.name` and track private/public section markers
4. Find each method's end by depth counting
5. Extract call sites from each method body, filtered against the defined set

Error Recovery:
- A def that cannot be converted is skipped with an extraction warning;
  definitions already found are kept.
"""

import logging
import re
import time
from typing import AbstractSet, List, Optional, Set, Tuple

from callgraph_engine.analyzers.base import (
    Analyzer,
    AnalyzerKind,
    code_slice,
    combine_defined_methods,
    extraction_warning,
)
from callgraph_engine.analyzers.ruby_calls import (
    METHOD_DEFINITION,
    VISIBILITY_MARKER,
    blank_definition_header,
    clean_ruby_line,
    find_ruby_calls,
    find_ruby_method_end,
    split_statements,
)
from callgraph_engine.exclusion import MethodExclusionPolicy
from callgraph_engine.keywords import is_valid_ruby_call
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

Statement = Tuple[int, str]

INLINE_PRIVATE = re.compile(r"^private\s+def\s")


class RubyAnalyzer(Analyzer):
    """Regex and depth-counting analyzer for Ruby files.

    Args:
        exclusion_policy: Policy used to set Method.is_excluded. Defaults to
            MethodExclusionPolicy() with the Rails controller rule.
        max_method_lines: Hard bound on the length of a single method.
    """

    kind = AnalyzerKind.RUBY
    description = "Ruby method analyzer (def detection, depth-counted ends)"
    languages = frozenset({"ruby", "rb"})
    engine = "ruby-regex"

    def __init__(
        self,
        exclusion_policy: Optional[MethodExclusionPolicy] = None,
        max_method_lines: int = 100,
    ) -> None:
        self.exclusion_policy = exclusion_policy or MethodExclusionPolicy()
        self.max_method_lines = max_method_lines

    def analyze(
        self, file: ParsedFile, defined_methods: Optional[AbstractSet[str]] = None
    ) -> AnalysisResult:
        started = time.perf_counter()
        errors: List[AnalysisError] = []
        methods = self._analyze_methods(file, defined_methods, errors)
        return self._build_result(file, methods, errors, started)

    def _statements(self, lines: List[str]) -> Tuple[List[Statement], Set[int]]:
        """Flatten the file into (line_index, statement) pairs.

        `private def foo` is normalised to `def foo`; the positions of such
        inline-private definitions are returned alongside.
        """
        statements: List[Statement] = []
        inline_private: Set[int] = set()
        for index, line in enumerate(lines):
            for _, statement in split_statements(clean_ruby_line(line)):
                if INLINE_PRIVATE.match(statement):
                    inline_private.add(len(statements))
                    statement = statement[len("private") :].lstrip()
                statements.append((index, statement))
        return statements, inline_private

    def _analyze_methods(
        self,
        file: ParsedFile,
        defined_methods: Optional[AbstractSet[str]],
        errors: List[AnalysisError],
    ) -> List[Method]:
        lines = file.lines
        statements, inline_private = self._statements(lines)
        local_names = {
            m.group(2) for m in (METHOD_DEFINITION.match(s) for _, s in statements) if m
        }
        combined = combine_defined_methods(local_names, defined_methods)

        methods: List[Method] = []
        is_private = False
        for position, (line_index, statement) in enumerate(statements):
            marker = VISIBILITY_MARKER.match(statement)
            if marker:
                is_private = marker.group(1) == "private"
                continue
            if statement.startswith(("class ", "module ")):
                is_private = False
                continue

            match = METHOD_DEFINITION.match(statement)
            if not match:
                continue

            try:
                method = self._build_method(
                    file,
                    lines,
                    statements,
                    position,
                    match,
                    is_private or position in inline_private,
                    combined,
                )
            except Exception as e:
                logger.warning(
                    f"⚠️ Skipping Ruby method '{match.group(2)}' in {file.path} "
                    f"at line {line_index + 1}: {e}"
                )
                errors.append(
                    extraction_warning(
                        f"Failed to extract Ruby method {match.group(2)}: {e}", line_index + 1
                    )
                )
                continue
            methods.append(method)

        logger.debug(f"Ruby analysis of {file.path}: {len(methods)} methods")
        return methods

    def _build_method(
        self,
        file: ParsedFile,
        lines: List[str],
        statements: List[Statement],
        position: int,
        match,
        is_private: bool,
        defined: AbstractSet[str],
    ) -> Method:
        self_prefix, name, params = match.group(1), match.group(2), match.group(3)
        start_index = statements[position][0]
        end_index = find_ruby_method_end(statements, position, self.max_method_lines)

        calls = self._extract_calls(lines, start_index, end_index, defined)
        return Method(
            name=name,
            type=MethodType.CLASS_METHOD if self_prefix else MethodType.METHOD,
            start_line=start_index + 1,
            end_line=end_index + 1,
            file_path=file.path,
            code=code_slice(lines, start_index + 1, end_index + 1),
            calls=calls,
            is_private=is_private,
            parameters=parse_parameters(params or "", "ruby"),
            is_excluded=self.exclusion_policy.is_excluded_method(name, file.path),
        )

    def _extract_calls(
        self, lines: List[str], start_index: int, end_index: int, defined: AbstractSet[str]
    ) -> List[MethodCall]:
        calls: List[MethodCall] = []

        def accept(name: str) -> bool:
            return is_valid_ruby_call(name, defined)

        for index in range(start_index, end_index + 1):
            cleaned = clean_ruby_line(lines[index])
            if index == start_index:
                cleaned = _blank_definition_headers(cleaned)
            calls.extend(find_ruby_calls(cleaned, index + 1, accept, context=lines[index].strip()))
        return calls


def _blank_definition_headers(cleaned: str) -> str:
    """Blank every def header on a method's first line; headers are not call sites."""
    for column, statement in reversed(split_statements(cleaned)):
        header = statement[len("private") :].lstrip() if INLINE_PRIVATE.match(statement) else statement
        if METHOD_DEFINITION.match(header):
            offset = column + (len(statement) - len(header))
            cleaned = cleaned[:offset] + blank_definition_header(cleaned[offset:])
    return cleaned
