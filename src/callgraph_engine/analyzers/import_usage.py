# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""ES module import handling shared by the JavaScript and TypeScript analyzers.

For every import declaration two kinds of Method are produced:
- One `import` Method whose calls point forward to each usage line of the
  imported names.
- One `import_usage` pseudo-Method per usage whose import_source (and single
  back-pointing call) anchor on the import statement's own line.

The reverse anchor is always the import's line, never the usage's line, so
navigation from a usage lands on the import statement.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from callgraph_engine.models import Method, MethodCall, MethodType, ParsedFile, Parameter


class SpecifierKind:
    DEFAULT = "default"  # import React from 'react'
    NAMED = "named"  # import { useState } from 'react'
    NAMESPACE = "namespace"  # import * as utils from './utils'


@dataclass
class ImportSpecifier:
    imported: str  # name exported by the source module ("default" / "*" for those kinds)
    local: str  # binding name inside this file
    kind: str  # SpecifierKind value

    def label(self) -> str:
        if self.kind == SpecifierKind.DEFAULT:
            return f"default as {self.local}"
        if self.kind == SpecifierKind.NAMESPACE:
            return f"* as {self.local}"
        if self.imported != self.local:
            return f"{self.imported} as {self.local}"
        return self.local


@dataclass
class ImportDeclaration:
    """A parsed import statement spanning start_line..end_line (1-based)."""

    source: str
    start_line: int
    end_line: int
    specifiers: List[ImportSpecifier] = field(default_factory=list)

    @property
    def local_names(self) -> List[str]:
        return [s.local for s in self.specifiers]

    @property
    def method_name(self) -> str:
        if not self.specifiers:
            return f"[Import: {self.source}]"
        labels = ", ".join(s.label() for s in self.specifiers)
        return f"[Import: {{{labels}}} from '{self.source}']"


_IMPORT_FROM = re.compile(r"^\s*import\s+(?:type\s+)?(.+?)\s+from\s+['\"]([^'\"]+)['\"]", re.DOTALL)
_IMPORT_SIDE_EFFECT = re.compile(r"^\s*import\s+['\"]([^'\"]+)['\"]")
_NAMED_BLOCK = re.compile(r"\{([^}]*)\}")
_NAMESPACE = re.compile(r"\*\s*as\s+(\w+)")
_DEFAULT = re.compile(r"^\s*(\w+)\s*(?:,|$)")
_NAMED_ITEM = re.compile(r"^(?:type\s+)?(\w+)(?:\s+as\s+(\w+))?$")


def parse_import_clause(clause: str) -> List[ImportSpecifier]:
    """Parse the text between `import` and `from` into specifiers, in source order."""
    specifiers: List[ImportSpecifier] = []

    default = _DEFAULT.match(clause)
    if default and not clause.lstrip().startswith(("{", "*")):
        specifiers.append(ImportSpecifier("default", default.group(1), SpecifierKind.DEFAULT))

    namespace = _NAMESPACE.search(clause)
    if namespace:
        specifiers.append(ImportSpecifier("*", namespace.group(1), SpecifierKind.NAMESPACE))

    named = _NAMED_BLOCK.search(clause)
    if named:
        for item in named.group(1).split(","):
            match = _NAMED_ITEM.match(item.strip())
            if not match:
                continue
            imported, alias = match.group(1), match.group(2)
            specifiers.append(ImportSpecifier(imported, alias or imported, SpecifierKind.NAMED))

    return specifiers


def parse_import_statement(text: str, start_line: int, end_line: int) -> Optional[ImportDeclaration]:
    """Parse import statement text (possibly spanning several lines) with regexes."""
    match = _IMPORT_FROM.match(text)
    if match:
        return ImportDeclaration(
            source=match.group(2),
            start_line=start_line,
            end_line=end_line,
            specifiers=parse_import_clause(match.group(1)),
        )
    side_effect = _IMPORT_SIDE_EFFECT.match(text)
    if side_effect:
        return ImportDeclaration(source=side_effect.group(1), start_line=start_line, end_line=end_line)
    return None


def _usage_patterns(name: str) -> List["re.Pattern[str]"]:
    n = re.escape(name)
    return [
        re.compile(rf"\b{n}\s*\("),  # call: name(...)
        re.compile(rf"<\s*{n}(?:\s|>|/)"),  # JSX tag: <Name ...>
        re.compile(rf"\b{n}\.\w+"),  # property access: name.member
        re.compile(rf"=\s*{n}\b"),  # assignment RHS: x = name
        re.compile(rf":\s*{n}\b"),  # type annotation: x: Name
        re.compile(rf"[\[{{,]\s*{n}\s*[\]}},]"),  # array/object/destructure: [name] {name}
        re.compile(rf"\.\.\.\s*{n}\b"),  # spread: ...name
        re.compile(rf"\(\s*{n}\s*[,)]"),  # argument: fn(name)
    ]


def _is_comment_line(stripped: str) -> bool:
    return (
        stripped.startswith("//")
        or stripped.startswith("/*")
        or stripped.startswith("*")
        or stripped.endswith("*/")
    )


def _strip_inline_comments(line: str) -> str:
    index = line.find("//")
    if index != -1:
        line = line[:index]
    return re.sub(r"/\*.*?\*/", "", line)


def find_import_usages(lines: List[str], declaration: ImportDeclaration) -> List[MethodCall]:
    """Scan the file for usages of each imported local name.

    The import statement itself, comment lines and other import lines are
    skipped. At most one usage per (name, line) is reported.
    """
    usages: List[MethodCall] = []
    seen = set()
    for name in declaration.local_names:
        patterns = _usage_patterns(name)
        for index, line in enumerate(lines):
            line_number = index + 1
            if declaration.start_line <= line_number <= declaration.end_line:
                continue
            stripped = line.strip()
            if not stripped or _is_comment_line(stripped):
                continue
            cleaned = _strip_inline_comments(line)
            if cleaned.strip().startswith("import ") and "from" in cleaned:
                continue
            if (name, line_number) in seen:
                continue
            if any(p.search(cleaned) for p in patterns):
                seen.add((name, line_number))
                usages.append(MethodCall(method_name=name, line=line_number, context=stripped))
    return usages


def build_import_methods(file: ParsedFile, declaration: ImportDeclaration) -> List[Method]:
    """Build the import Method followed by one import_usage Method per usage."""
    lines = file.lines
    usages = find_import_usages(lines, declaration)
    import_line = declaration.start_line
    import_name = declaration.method_name
    import_code = "\n".join(lines[import_line - 1 : declaration.end_line])

    import_method = Method(
        name=import_name,
        type=MethodType.IMPORT,
        start_line=import_line,
        end_line=declaration.end_line,
        file_path=file.path,
        code=import_code,
        calls=usages,
        parameters=[Parameter(name=n) for n in declaration.local_names],
    )

    usage_methods = [
        Method(
            name=f"{usage.method_name} (imported)",
            type=MethodType.IMPORT_USAGE,
            start_line=usage.line,
            end_line=usage.line,
            file_path=file.path,
            code=usage.context or "",
            calls=[
                MethodCall(
                    method_name=import_name,
                    line=import_line,
                    context=lines[import_line - 1].strip(),
                )
            ],
            import_source=str(import_line),
        )
        for usage in usages
    ]
    return [import_method] + usage_methods
