# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Ruby lexical helpers shared by the Ruby and ERB analyzers.

- clean_ruby_line: strips comments and string contents, keeping #{...} interpolations
- split_statements: splits a cleaned line on top-level semicolons
- find_ruby_calls: applies the interpolation, dot and bare call patterns to one line
- find_ruby_method_end: depth-counting block end detection for a def
"""

import re
from typing import Callable, List, Optional, Tuple

from callgraph_engine.models import MethodCall

METHOD_DEFINITION = re.compile(r"^def\s+(self\.)?(\w+[?!=]?)\s*(\([^)]*\))?")

# Calls inside "#{...}": the first identifier of the interpolated expression
INTERPOLATION_CALL = re.compile(r"#\{\s*(\w+[?!]?)(?=\s*[(}\s.])")
# receiver.name / receiver&.name
DOT_CALL = re.compile(r"(?:\.|&\.)(\w+[?!]?)(?=\s*\(|\s|$|,|\)|\.|;|\}|\])")
# Bare identifiers in call position; not preceded by ., :, @, $ or another identifier char
BARE_CALL = re.compile(r"(?<![\w.:@$&?!])(\w+[?!]?)(?=[\s;(),}\]]|$|&&|\|\|)")

ASSIGNMENT_TARGET = re.compile(r"\s*(?:\|\||&&|[-+*/%])?=(?![=~>])")

BLOCK_OPENER = re.compile(r"^(?:class|module|begin|if|unless|case|while|until|for)\b")
ASSIGNED_BLOCK_OPENER = re.compile(r"=\s*(?:if|unless|case|begin)\b")
DO_BLOCK = re.compile(r"\bdo\b\s*(?:\|[^|]*\|)?\s*$")
LOOP_KEYWORD = re.compile(r"^(?:while|until|for)\b")
END_TOKEN = re.compile(r"(?<![\w.:@$])end(?![\w?!:])")

VISIBILITY_MARKER = re.compile(r"^(private|protected|public)$")
ENDLESS_DEFINITION = re.compile(r"^def\s+(?:self\.)?\w+[?!]?\s*(?:\([^)]*\))?\s*=(?!=)")


def clean_ruby_line(line: str) -> str:
    """Strip a comment and string contents from one Ruby line.

    Single-quoted and backtick strings keep their quotes but lose their
    content. Double-quoted strings keep only their #{...} interpolations, so
    calls made inside interpolations remain visible. Column positions of the
    remaining code are preserved (removed text is replaced with spaces).
    """
    out: List[str] = []
    i = 0
    length = len(line)
    while i < length:
        char = line[i]
        if char == "#" and not line.startswith("#{", i):
            break
        if char in ("'", "`"):
            end = _string_end(line, i + 1, char)
            out.append(char + " " * (end - i - 1) + (char if end < length else ""))
            i = end + 1
            continue
        if char == '"':
            i = _copy_double_quoted(line, i, out)
            continue
        out.append(char)
        i += 1
    return "".join(out)


def _string_end(line: str, start: int, quote: str) -> int:
    i = start
    while i < len(line):
        if line[i] == "\\":
            i += 2
            continue
        if line[i] == quote:
            return i
        i += 1
    return len(line)


def _copy_double_quoted(line: str, start: int, out: List[str]) -> int:
    """Copy a double-quoted string, blanking text but keeping interpolations.

    Returns the index just past the closing quote.
    """
    out.append('"')
    i = start + 1
    length = len(line)
    while i < length:
        char = line[i]
        if char == "\\":
            out.append("  "[: min(2, length - i)])
            i += 2
            continue
        if char == '"':
            out.append('"')
            return i + 1
        if line.startswith("#{", i):
            depth = 0
            while i < length:
                c = line[i]
                out.append(c)
                if c == "{":
                    depth += 1
                elif c == "}":
                    depth -= 1
                    if depth == 0:
                        i += 1
                        break
                i += 1
            continue
        out.append(" ")
        i += 1
    return i


def split_statements(cleaned: str) -> List[Tuple[int, str]]:
    """Split a cleaned line on ';' and return (column, stripped statement) pairs."""
    statements: List[Tuple[int, str]] = []
    column = 0
    for part in cleaned.split(";"):
        stripped = part.strip()
        if stripped:
            statements.append((column + len(part) - len(part.lstrip()), stripped))
        column += len(part) + 1
    return statements


def is_assignment_target(text: str, name_end: int) -> bool:
    """Whether the identifier ending at name_end is the target of an assignment."""
    return bool(ASSIGNMENT_TARGET.match(text, name_end))


def find_ruby_calls(
    cleaned: str,
    line_number: int,
    accept: Callable[[str], bool],
    context: Optional[str] = None,
) -> List[MethodCall]:
    """Find call sites on one cleaned Ruby line.

    Interpolation, dot and bare patterns are applied independently; a name at
    a given column is reported once. Assignment targets are never calls.

    Args:
        cleaned: Output of clean_ruby_line (or an ERB tag body after cleaning).
        line_number: 1-based line number to stamp on each call.
        accept: Predicate deciding whether a candidate name is a real call.
        context: Source line stored on each MethodCall.
    """
    found = {}
    for pattern in (INTERPOLATION_CALL, DOT_CALL, BARE_CALL):
        for match in pattern.finditer(cleaned):
            name = match.group(1)
            column = match.start(1)
            if column in found or name[0].isdigit():
                continue
            if is_assignment_target(cleaned, match.end(1)):
                continue
            if not accept(name):
                continue
            found[column] = name

    return [
        MethodCall(method_name=name, line=line_number, column=column, context=context)
        for column, name in sorted(found.items())
    ]


def blank_definition_header(cleaned: str) -> str:
    """Replace a leading `def name(params)` header with spaces so it is not scanned for calls."""
    stripped = cleaned.lstrip()
    match = METHOD_DEFINITION.match(stripped)
    if not match:
        return cleaned
    offset = len(cleaned) - len(stripped)
    end = offset + match.end()
    return cleaned[:offset] + " " * (end - offset) + cleaned[end:]


def _depth_change(statement: str) -> int:
    opens = 0
    if BLOCK_OPENER.match(statement) or ASSIGNED_BLOCK_OPENER.search(statement):
        opens += 1
    if DO_BLOCK.search(statement) and not LOOP_KEYWORD.match(statement):
        opens += 1
    return opens - len(END_TOKEN.findall(statement))


def find_ruby_method_end(
    statements: List[Tuple[int, str]], start_index: int, max_lines: int = 100
) -> int:
    """Find the 0-based line on which the def at statements[start_index] ends.

    Args:
        statements: Flattened (line_index, statement) stream of the file.
        start_index: Index of the def statement within the stream.
        max_lines: Hard bound on method length, in lines.

    Depth counting: block openers increment, `end` decrements. A new `def`
    seen before depth returns to zero terminates the current method on the
    line before that def.
    """
    start_line, header = statements[start_index]
    if ENDLESS_DEFINITION.match(header):
        return start_line

    limit = start_line + max_lines
    depth = 1
    last_line = start_line
    for line_index, statement in statements[start_index + 1 :]:
        if line_index > limit:
            return limit
        if METHOD_DEFINITION.match(statement):
            return max(start_line, line_index - 1)
        depth += _depth_change(statement)
        last_line = line_index
        if depth <= 0:
            return line_index
    return last_line
