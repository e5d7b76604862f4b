# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Parameter list parsing for Ruby, JavaScript and TypeScript signatures."""

import re
from typing import List

from .models import Parameter, ParameterKind

_OPENERS = "([{"
_CLOSERS = ")]}"
_QUOTES = "\"'`"

_DEFAULT_PATTERN = re.compile(r"^([^=]+?)=(.+)$")
_TS_TYPED_PATTERN = re.compile(r"^([^:=]+?):\s*([^=]+?)(?:\s*=\s*(.+))?$")


def split_parameters(param_string: str, generics: bool = False) -> List[str]:
    """Split a parameter list on top-level commas.

    Commas nested in brackets, braces, parentheses or string literals do not
    split. With generics=True, angle brackets also nest (TypeScript).
    """
    params: List[str] = []
    current: List[str] = []
    depth = 0
    quote = ""
    prev = ""

    openers = _OPENERS + ("<" if generics else "")
    closers = _CLOSERS + (">" if generics else "")

    for char in param_string:
        if quote:
            if char == quote and prev != "\\":
                quote = ""
        elif char in _QUOTES:
            quote = char
        elif char in openers:
            depth += 1
        elif char in closers:
            # "=>" inside a default value is not a closing bracket
            if not (char == ">" and prev == "="):
                depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            params.append("".join(current).strip())
            current = []
            prev = char
            continue

        current.append(char)
        prev = char

    tail = "".join(current).strip()
    if tail:
        params.append(tail)
    return [p for p in params if p]


def _strip_parens(param_string: str) -> str:
    cleaned = param_string.strip()
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = cleaned[1:-1]
    return cleaned.strip()


def parse_ruby_parameter(param: str) -> Parameter:
    """Parse one Ruby parameter: name:, name: default, a = 1, *args, **opts, &block."""
    keyword = re.match(r"^(\w+):\s*(.*)$", param)
    if keyword:
        default = keyword.group(2).strip() or None
        return Parameter(name=keyword.group(1), default_value=default, kind=ParameterKind.KEYWORD)

    if param.startswith("&"):
        return Parameter(name=param[1:], kind=ParameterKind.BLOCK)

    if param.startswith("*"):
        return Parameter(name=param.lstrip("*"), kind=ParameterKind.SPLAT)

    default = _DEFAULT_PATTERN.match(param)
    if default:
        return Parameter(name=default.group(1).strip(), default_value=default.group(2).strip())

    return Parameter(name=param)


def parse_javascript_parameter(param: str) -> Parameter:
    """Parse one JavaScript parameter: a, a = 1, ...rest."""
    if param.startswith("..."):
        return Parameter(name=param[3:].strip(), kind=ParameterKind.REST)

    default = _DEFAULT_PATTERN.match(param)
    if default:
        return Parameter(name=default.group(1).strip(), default_value=default.group(2).strip())

    return Parameter(name=param)


def parse_typescript_parameter(param: str) -> Parameter:
    """Parse one TypeScript parameter: a: T, a?: T, a: T = v, a = v, ...rest: T[]."""
    kind = ParameterKind.NORMAL
    if param.startswith("..."):
        kind = ParameterKind.REST
        param = param[3:].strip()

    typed = _TS_TYPED_PATTERN.match(param)
    if typed:
        default = typed.group(3).strip() if typed.group(3) else None
        return Parameter(
            name=typed.group(1).strip().rstrip("?"),
            type=typed.group(2).strip(),
            default_value=default,
            kind=kind,
        )

    default = _DEFAULT_PATTERN.match(param)
    if default:
        return Parameter(
            name=default.group(1).strip().rstrip("?"),
            default_value=default.group(2).strip(),
            kind=kind,
        )

    return Parameter(name=param.rstrip("?"), kind=kind)


def parse_parameters(param_string: str, language: str) -> List[Parameter]:
    """Parse a full parameter list, with or without its surrounding parentheses.

    Args:
        param_string: e.g. "(a, b = 1, *rest)" or "a: string, b?: number"
        language: "ruby", "javascript" or "typescript"; anything else keeps raw names

    Returns:
        Parameters in declaration order
    """
    if not param_string or not param_string.strip():
        return []

    cleaned = _strip_parens(param_string)
    if not cleaned:
        return []

    if language == "ruby":
        return [parse_ruby_parameter(p) for p in split_parameters(cleaned)]
    if language == "javascript":
        return [parse_javascript_parameter(p) for p in split_parameters(cleaned)]
    if language == "typescript":
        return [parse_typescript_parameter(p) for p in split_parameters(cleaned, generics=True)]
    return [Parameter(name=p) for p in split_parameters(cleaned)]
