# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Reserved words, builtins and framework allow-lists per language.

These tables drive the variable-vs-call disambiguation: a bare identifier is
only reported as a call when it is a known definition or an allow-listed
framework method, and never when it is a keyword or builtin.
"""

from typing import Iterable, Optional

RUBY_KEYWORDS = frozenset(
    {
        "if", "else", "elsif", "unless", "case", "when", "while", "until", "for",
        "break", "next", "redo", "retry", "return",
        "def", "class", "module", "alias", "undef",
        "begin", "rescue", "ensure", "raise", "yield", "super",
        "self", "nil", "true", "false",
        "private", "protected", "public",
        "do", "end", "in", "then", "and", "or", "not",
        "__LINE__", "__FILE__", "__ENCODING__",
    }
)  # fmt: skip

RUBY_BUILTINS = frozenset(
    {
        # Kernel I/O
        "puts", "print", "p", "gets", "getc", "putc", "printf", "sprintf",
        # Loading
        "require", "require_relative", "load", "autoload",
        # Module composition
        "include", "extend", "prepend",
        # Introspection
        "defined?", "respond_to?", "kind_of?", "instance_of?", "is_a?",
        "local_variables", "instance_variables", "class_variables", "global_variables",
        # Evaluation
        "eval", "instance_eval", "class_eval", "module_eval",
        # Processes
        "system", "exec", "spawn", "fork", "exit", "exit!", "abort",
        # Conversions and common object methods
        "length", "size", "empty?", "nil?",
        "to_s", "to_i", "to_f", "to_a", "to_h", "to_sym",
    }
)  # fmt: skip

RUBY_CRUD_METHODS = frozenset(
    {
        "find", "find_by", "where", "select",
        "create", "update", "delete", "destroy",
        "save", "save!", "reload", "exists?",
        "count", "first", "last", "all",
    }
)  # fmt: skip

# Rails helpers and controller methods that are called without a local definition
RAILS_STANDARD_METHODS = frozenset(
    {
        # Controller
        "render", "redirect_to", "redirect_back", "head", "params", "session", "cookies",
        "flash", "respond_to", "before_action", "after_action", "around_action",
        "skip_before_action", "helper_method", "authorize", "current_user",
        "send_data", "send_file", "request", "response",
        # Devise
        "authenticate_user!", "user_signed_in?",
        # Model
        "validates", "has_many", "has_one", "belongs_to", "scope",
        "find_or_create_by", "update!", "create!", "destroy!", "find_each", "pluck",
        "build", "valid?", "invalid?", "errors",
        # Query interface
        "includes", "joins", "left_joins", "order", "group", "having", "limit", "offset",
        "distinct", "sum", "maximum", "minimum", "average",
        # Ransack
        "ransack", "ransackable_attributes", "ransackable_associations",
        # View helpers
        "link_to", "button_to", "form_with", "form_for", "content_tag", "image_tag",
        "url_for", "stylesheet_link_tag", "javascript_include_tag", "csrf_meta_tags",
        "capture", "safe_join", "strip_tags", "distance_of_time_in_words",
    }
)  # fmt: skip

# Builtins that are still meaningful inside templates
ERB_HELPER_METHODS = frozenset(
    {
        "t", "translate", "l", "localize",
        "h", "html_escape", "j", "escape_javascript", "raw", "html_safe",
        "pluralize", "singularize", "humanize", "titleize",
        "time_ago_in_words", "number_to_currency", "truncate", "simple_format",
        "link_to", "render", "helper_method", "content_for",
    }
)  # fmt: skip

JAVASCRIPT_KEYWORDS = frozenset(
    {
        "if", "else", "switch", "case", "default", "while", "for", "do",
        "break", "continue", "return",
        "function", "class", "constructor", "static", "get", "set", "async", "await",
        "var", "let", "const",
        "try", "catch", "finally", "throw",
        "new", "this", "super", "typeof", "instanceof", "in", "of", "delete", "void",
        "true", "false", "null", "undefined",
        "import", "export", "from", "as",
        "with", "debugger", "enum", "implements", "interface", "package",
        "private", "protected", "public", "yield", "extends",
        # TypeScript
        "type", "namespace", "module", "declare", "abstract", "readonly",
    }
)  # fmt: skip

JAVASCRIPT_BUILTINS = frozenset(
    {
        # Console
        "log", "info", "warn", "error", "debug", "trace", "assert", "dir", "table",
        # Globals
        "parseInt", "parseFloat", "isNaN", "isFinite", "encodeURI", "encodeURIComponent",
        "decodeURI", "decodeURIComponent", "escape", "unescape", "eval",
        # JSON
        "parse", "stringify",
        # Timers
        "setTimeout", "setInterval", "clearTimeout", "clearInterval",
        "setImmediate", "clearImmediate",
        # Array
        "push", "pop", "shift", "unshift", "slice", "splice", "concat", "join", "reverse",
        "sort", "indexOf", "lastIndexOf", "forEach", "map", "filter", "reduce",
        "reduceRight", "some", "every", "find", "findIndex", "includes", "flat", "flatMap",
        # String
        "charAt", "charCodeAt", "substring", "substr", "toLowerCase", "toUpperCase",
        "trim", "trimStart", "trimEnd", "split", "replace", "match", "search",
        "startsWith", "endsWith", "repeat", "padStart", "padEnd",
        # Object
        "hasOwnProperty", "isPrototypeOf", "propertyIsEnumerable", "toString", "valueOf",
        "keys", "values", "entries", "assign", "create", "defineProperty", "freeze", "seal",
        # Math
        "abs", "ceil", "floor", "round", "max", "min", "pow", "sqrt", "random",
        "sin", "cos", "tan",
        # Date
        "getTime", "getDate", "getDay", "getMonth", "getFullYear", "getHours",
        "getMinutes", "getSeconds", "setDate", "setMonth", "setFullYear", "setHours",
        "setMinutes", "setSeconds", "toISOString",
        # Promise
        "then", "resolve", "reject", "all", "race", "allSettled",
        # DOM
        "addEventListener", "removeEventListener", "getElementById", "querySelector",
        "querySelectorAll", "createElement", "appendChild", "removeChild",
        "setAttribute", "getAttribute", "removeAttribute",
    }
)  # fmt: skip

JAVASCRIPT_FRAMEWORK_METHODS = frozenset(
    {
        # React hooks
        "useState", "useEffect", "useContext", "useReducer", "useCallback", "useMemo",
        "useRef", "useLayoutEffect", "useImperativeHandle", "useDebugValue",
        # React class components
        "render", "setState", "forceUpdate", "componentDidMount", "componentDidUpdate",
        "componentWillUnmount", "shouldComponentUpdate", "getSnapshotBeforeUpdate",
        # Jest
        "describe", "it", "test", "expect", "beforeEach", "afterEach", "beforeAll",
        "afterAll", "mock", "spyOn", "mockReturnValue", "mockImplementation",
        # Express / HTTP clients
        "post", "put", "patch", "use", "listen", "send", "json", "status",
        "redirect", "cookie", "clearCookie", "request",
        # Lodash
        "isEmpty", "isArray", "isObject", "isString", "isNumber", "isFunction",
        "isUndefined", "cloneDeep", "merge", "pick", "omit", "groupBy", "sortBy",
        "uniq", "flatten",
        # Node / ORM
        "require", "findOne", "findAll", "findById", "where", "fetch",
    }
)  # fmt: skip

JAVASCRIPT_CONTROL_WORDS = frozenset(
    {"if", "else", "while", "for", "switch", "case", "try", "catch", "finally", "with"}
)


def is_ruby_keyword(word: str) -> bool:
    return word in RUBY_KEYWORDS


def is_ruby_builtin(word: str) -> bool:
    return word in RUBY_BUILTINS


def is_ruby_crud_method(word: str) -> bool:
    return word in RUBY_CRUD_METHODS


def is_rails_standard_method(word: str) -> bool:
    return word in RAILS_STANDARD_METHODS


def is_erb_helper_method(word: str) -> bool:
    return word in ERB_HELPER_METHODS


def is_javascript_keyword(word: str) -> bool:
    return word in JAVASCRIPT_KEYWORDS or word in JAVASCRIPT_CONTROL_WORDS


def is_javascript_builtin(word: str) -> bool:
    return word in JAVASCRIPT_BUILTINS


def is_javascript_framework_method(word: str) -> bool:
    return word in JAVASCRIPT_FRAMEWORK_METHODS


def is_valid_ruby_call(name: str, defined_methods: Iterable[str]) -> bool:
    """Decide whether a Ruby identifier in call position is a real call.

    Accepted when it is a known definition or a Rails CRUD/standard method,
    and is neither a keyword nor a Ruby builtin.
    """
    if is_ruby_keyword(name) or is_ruby_builtin(name):
        return False
    return name in defined_methods or is_ruby_crud_method(name) or is_rails_standard_method(name)


def is_valid_javascript_call(name: str, defined_methods: Optional[Iterable[str]] = None) -> bool:
    """Decide whether a JavaScript/TypeScript identifier followed by '(' is a real call."""
    if is_javascript_keyword(name) or is_javascript_builtin(name):
        return False
    if defined_methods is not None and name in defined_methods:
        return True
    return is_javascript_framework_method(name)
