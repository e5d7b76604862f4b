# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""ERB template analyzer.

Ruby code inside `<% %>` / `<%= %>` tags is scanned line by line with the
same call patterns as the Ruby analyzer. Templates rarely define methods, so
acceptance is driven by allow-lists: Rails standard and CRUD names, view
helpers (t, l, link_to, render, ...) and names defined elsewhere in the batch.

Output per file:
- one `erb_call` Method per called name, spanning its first to last use
- one synthetic `[ERB File: template]` Method carrying every call, when any exist
"""

import logging
import re
import time
from typing import AbstractSet, Dict, List, Optional

from callgraph_engine.analyzers.base import Analyzer, AnalyzerKind, extraction_warning
from callgraph_engine.analyzers.ruby_calls import clean_ruby_line, find_ruby_calls
from callgraph_engine.keywords import (
    is_erb_helper_method,
    is_rails_standard_method,
    is_ruby_builtin,
    is_ruby_crud_method,
    is_ruby_keyword,
)
from callgraph_engine.models import (
    AnalysisError,
    AnalysisResult,
    Method,
    MethodCall,
    MethodType,
    ParsedFile,
)

logger = logging.getLogger(__name__)

ERB_TAG = re.compile(r"<%(?!#)[=-]?\s*(.*?)\s*-?%>")
IDENTIFIER = re.compile(r"^[A-Za-z_]\w*[?!]?$")
ERB_SUFFIX = re.compile(r"\.erb$")
FORMAT_SUFFIX = re.compile(r"\.(html|xml|json|js|turbo_stream)$")


def is_valid_erb_call(name: str, defined_methods: Optional[AbstractSet[str]] = None) -> bool:
    """Decide whether a name found inside an ERB tag is a real call.

    Keywords never are; builtins only when they double as view helpers.
    Single letters are accepted only when allow-listed (`t`, `l`, `h`, `j`).
    """
    if not IDENTIFIER.match(name):
        return False
    if is_ruby_keyword(name):
        return False
    if is_ruby_builtin(name) and not is_erb_helper_method(name):
        return False

    allow_listed = (
        is_rails_standard_method(name) or is_ruby_crud_method(name) or is_erb_helper_method(name)
    )
    if len(name) == 1:
        return allow_listed
    return allow_listed or (defined_methods is not None and name in defined_methods)


def template_name(file: ParsedFile) -> str:
    """Template name without the .erb extension and its format suffix.

    `index.html.erb` becomes `index`; `_row.turbo_stream.erb` becomes `_row`.
    """
    file_name = file.file_name or file.path.replace("\\", "/").split("/")[-1]
    name = FORMAT_SUFFIX.sub("", ERB_SUFFIX.sub("", file_name))
    return name or "erb_file"


class ErbAnalyzer(Analyzer):
    """Allow-list driven analyzer for ERB templates."""

    kind = AnalyzerKind.ERB
    description = "ERB template analyzer (Rails helpers and defined methods)"
    languages = frozenset({"erb", "html.erb"})
    engine = "erb-regex"

    def analyze(
        self, file: ParsedFile, defined_methods: Optional[AbstractSet[str]] = None
    ) -> AnalysisResult:
        started = time.perf_counter()
        errors: List[AnalysisError] = []
        lines = file.lines

        calls: List[MethodCall] = []
        for index, line in enumerate(lines):
            try:
                calls.extend(self._line_calls(line, index + 1, defined_methods))
            except Exception as e:
                logger.warning(f"⚠️ Skipping ERB line {index + 1} in {file.path}: {e}")
                errors.append(extraction_warning(f"Failed to scan ERB line: {e}", index + 1))

        methods = self._build_methods(file, calls)
        logger.debug(f"ERB analysis of {file.path}: {len(calls)} calls")
        return self._build_result(file, methods, errors, started)

    @staticmethod
    def _line_calls(
        line: str, line_number: int, defined_methods: Optional[AbstractSet[str]]
    ) -> List[MethodCall]:
        def accept(name: str) -> bool:
            return is_valid_erb_call(name, defined_methods)

        found: List[MethodCall] = []
        seen = set()
        for tag in ERB_TAG.finditer(line):
            code = tag.group(1)
            if not code.strip():
                continue
            # Keep the tag's offset so columns refer to the template line
            cleaned = " " * tag.start(1) + clean_ruby_line(code)
            for call in find_ruby_calls(cleaned, line_number, accept, context=line.strip()):
                if call.method_name in seen:
                    continue
                seen.add(call.method_name)
                found.append(call)
        return found

    @staticmethod
    def _build_methods(file: ParsedFile, calls: List[MethodCall]) -> List[Method]:
        if not calls:
            return []

        by_name: Dict[str, List[MethodCall]] = {}
        for call in calls:
            by_name.setdefault(call.method_name, []).append(call)

        methods: List[Method] = []
        for name, uses in by_name.items():
            contexts: List[str] = []
            for use in uses:
                if use.context and use.context not in contexts:
                    contexts.append(use.context)
            methods.append(
                Method(
                    name=name,
                    type=MethodType.ERB_CALL,
                    start_line=min(u.line for u in uses),
                    end_line=max(u.line for u in uses),
                    file_path=file.path,
                    code="\n".join(contexts),
                )
            )

        file_name = template_name(file)
        methods.append(
            Method(
                name=f"[ERB File: {file_name}]",
                type=MethodType.ERB_CALL,
                start_line=1,
                end_line=len(file.lines),
                file_path=file.path,
                code=file.content,
                calls=sorted(calls, key=lambda c: (c.line, c.column or 0)),
            )
        )
        return methods
