# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for the call graph engine.

This module defines the data structures shared by every analyzer, the engine
and the dependency extractor:
- ParsedFile: One source file handed in by the upstream splitter
- Method: A named callable unit (or pseudo-unit such as an import) extracted from source
- MethodCall: One call site inside a Method body
- Parameter: One formal parameter of a Method
- Dependency: An aggregated caller -> callee edge with a call count

Analysis results:
- AnalysisError / AnalysisMetadata / AnalysisResult: Structured analyzer output
- LanguageStats / AnalysisStatistics: Aggregate counters across a batch

Caching:
- CacheEntry / CacheStatistics: Entries and counters of the AST result cache

All models serialize to JSON-compatible dicts via to_dict().
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class MethodType:
    """Kinds of extracted methods.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    FUNCTION = "function"  # def foo / function foo() / const foo = () =>
    METHOD = "method"  # instance method inside a class
    CLASS_METHOD = "class_method"  # def self.foo / static foo()
    INTERFACE = "interface"  # interface Foo { ... }
    INTERFACE_METHOD = "interface_method"  # method signature inside an interface
    TYPE_ALIAS = "type_alias"  # type Foo = ...
    ENUM = "enum"  # enum Color { ... }
    COMPONENT = "component"  # capitalised function returning JSX
    CUSTOM_HOOK = "custom_hook"  # function useSomething()
    IMPORT = "import"  # import { a } from './a'
    IMPORT_USAGE = "import_usage"  # one usage line of an imported name
    EXPORT = "export"  # export { a } / export default
    ERB_CALL = "erb_call"  # call made from an ERB template

    # Kinds that count as real definitions when building the defined-method set
    DEFINITION_KINDS = frozenset({FUNCTION, METHOD, CLASS_METHOD, COMPONENT, CUSTOM_HOOK})

    # Kinds that are never offered as callees during name resolution
    NON_RESOLVABLE_KINDS = frozenset({IMPORT, IMPORT_USAGE, EXPORT, ERB_CALL})


class ErrorType:
    """Analysis error taxonomy."""

    SYNTAX = "syntax"  # AST parse failure
    EXTRACTION = "extraction"  # a construct could not be converted to a Method
    VALIDATION = "validation"  # unsupported language, oversized input
    RUNTIME = "runtime"  # unexpected analyzer exception


class ErrorSeverity:
    """Severity attached to an AnalysisError."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DependencyType:
    """Whether both ends of a Dependency live in the same file."""

    INTERNAL = "internal"
    EXTERNAL = "external"


class ParameterKind:
    """Shape of a formal parameter."""

    NORMAL = "normal"
    KEYWORD = "keyword"  # Ruby name: / name: default
    SPLAT = "splat"  # Ruby *args / **opts
    BLOCK = "block"  # Ruby &block
    REST = "rest"  # JS/TS ...args


@dataclass(frozen=True)
class ParsedFile:
    """A single source file produced by the upstream splitter.

    Immutable: analyzers read it but never modify it.
    """

    path: str
    language: str  # language tag, e.g. "ruby", "tsx", "erb"
    content: str
    directory: str = ""
    file_name: str = ""
    total_lines: int = 0

    @classmethod
    def from_content(cls, path: str, language: str, content: str) -> "ParsedFile":
        """Build a ParsedFile, deriving directory, file name and line count from path/content."""
        return cls(
            path=path,
            language=language,
            content=content,
            directory=os.path.dirname(path),
            file_name=os.path.basename(path),
            total_lines=len(content.split("\n")) if content else 0,
        )

    @property
    def lines(self) -> List[str]:
        """Source split into lines (index 0 is line 1)."""
        return self.content.split("\n")


@dataclass
class Parameter:
    """A formal parameter of a Method."""

    name: str
    type: Optional[str] = None  # TypeScript annotation, if any
    default_value: Optional[str] = None
    kind: str = ParameterKind.NORMAL  # ParameterKind value

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {"name": self.name, "kind": self.kind}
        if self.type is not None:
            result["type"] = self.type
        if self.default_value is not None:
            result["default_value"] = self.default_value
        return result


@dataclass
class MethodCall:
    """One occurrence of a name being invoked inside a Method body."""

    method_name: str
    line: int  # 1-based line of the call site
    column: Optional[int] = None
    context: Optional[str] = None  # trimmed source line
    file_path: Optional[str] = None  # resolved callee file, when known

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {"method_name": self.method_name, "line": self.line}
        if self.column is not None:
            result["column"] = self.column
        if self.context is not None:
            result["context"] = self.context
        if self.file_path is not None:
            result["file_path"] = self.file_path
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MethodCall":
        """Deserialize from JSON-compatible dict."""
        return cls(
            method_name=data["method_name"],
            line=data["line"],
            column=data.get("column"),
            context=data.get("context"),
            file_path=data.get("file_path"),
        )


@dataclass
class Method:
    """A named callable unit extracted from a source file.

    Created once per analysis pass. Nothing downstream mutates it; derived
    variants are built with dataclasses.replace().
    """

    name: str
    type: str  # MethodType value
    start_line: int  # 1-based, inclusive
    end_line: int  # 1-based, inclusive
    file_path: str
    code: str = ""
    calls: List[MethodCall] = field(default_factory=list)
    is_private: bool = False
    parameters: List[Parameter] = field(default_factory=list)
    is_excluded: Optional[bool] = None
    # For import_usage entries: line number of the originating import statement
    import_source: Optional[str] = None

    @property
    def is_definition(self) -> bool:
        """Whether this method counts towards the defined-method set."""
        return self.type in MethodType.DEFINITION_KINDS

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "file_path": self.file_path,
            "code": self.code,
            "calls": [call.to_dict() for call in self.calls],
            "is_private": self.is_private,
            "parameters": [param.to_dict() for param in self.parameters],
        }
        if self.is_excluded is not None:
            result["is_excluded"] = self.is_excluded
        if self.import_source is not None:
            result["import_source"] = self.import_source
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Method":
        """Deserialize from JSON-compatible dict."""
        return cls(
            name=data["name"],
            type=data["type"],
            start_line=data["start_line"],
            end_line=data["end_line"],
            file_path=data["file_path"],
            code=data.get("code", ""),
            calls=[MethodCall.from_dict(c) for c in data.get("calls", [])],
            is_private=data.get("is_private", False),
            parameters=[
                Parameter(
                    name=p["name"],
                    type=p.get("type"),
                    default_value=p.get("default_value"),
                    kind=p.get("kind", ParameterKind.NORMAL),
                )
                for p in data.get("parameters", [])
            ],
            is_excluded=data.get("is_excluded"),
            import_source=data.get("import_source"),
        )


@dataclass
class DependencyEndpoint:
    """One end of a Dependency edge."""

    method_name: str
    file_path: str
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {"method_name": self.method_name, "file_path": self.file_path}
        if self.line is not None:
            result["line"] = self.line
        return result


@dataclass
class Dependency:
    """An aggregated caller -> callee edge.

    Derived only. count is the number of call sites collapsed into this edge.
    """

    from_: DependencyEndpoint
    to: DependencyEndpoint
    count: int
    type: str  # DependencyType value

    @property
    def key(self) -> str:
        """Merge key identifying the (caller, callee) pair."""
        return (
            f"{self.from_.method_name}@{self.from_.file_path}"
            f"->{self.to.method_name}@{self.to.file_path}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "from": self.from_.to_dict(),
            "to": self.to.to_dict(),
            "count": self.count,
            "type": self.type,
        }


@dataclass
class AnalysisError:
    """A structured analyzer failure or warning."""

    message: str
    type: str  # ErrorType value
    severity: str = ErrorSeverity.ERROR  # ErrorSeverity value
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {
            "message": self.message,
            "type": self.type,
            "severity": self.severity,
        }
        if self.line is not None:
            result["line"] = self.line
        return result


@dataclass
class AnalysisMetadata:
    """Timing and provenance of one analyzer run."""

    processing_time: float = 0.0  # milliseconds
    lines_processed: int = 0
    engine: Optional[str] = None  # e.g. "ruby-regex", "typescript-ast"
    additional_info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {
            "processing_time": self.processing_time,
            "lines_processed": self.lines_processed,
        }
        if self.engine is not None:
            result["engine"] = self.engine
        if self.additional_info:
            result["additional_info"] = dict(self.additional_info)
        return result


@dataclass
class AnalysisResult:
    """Output of one analyzer run: recovered methods plus any errors."""

    methods: List[Method] = field(default_factory=list)
    errors: List[AnalysisError] = field(default_factory=list)
    metadata: AnalysisMetadata = field(default_factory=AnalysisMetadata)

    @property
    def has_errors(self) -> bool:
        return any(e.severity == ErrorSeverity.ERROR for e in self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "methods": [m.to_dict() for m in self.methods],
            "errors": [e.to_dict() for e in self.errors],
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class LanguageStats:
    """Per-language counters inside AnalysisStatistics."""

    file_count: int = 0
    method_count: int = 0
    error_count: int = 0
    total_processing_time: float = 0.0
    total_lines_processed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "file_count": self.file_count,
            "method_count": self.method_count,
            "error_count": self.error_count,
            "total_processing_time": self.total_processing_time,
            "total_lines_processed": self.total_lines_processed,
        }


@dataclass
class AnalysisStatistics:
    """Aggregate counters across a batch of analyzed files."""

    total_files: int = 0
    total_methods: int = 0
    total_errors: int = 0
    total_processing_time: float = 0.0
    total_lines_processed: int = 0
    average_processing_time: float = 0.0
    language_stats: Dict[str, LanguageStats] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "total_files": self.total_files,
            "total_methods": self.total_methods,
            "total_errors": self.total_errors,
            "total_processing_time": self.total_processing_time,
            "total_lines_processed": self.total_lines_processed,
            "average_processing_time": self.average_processing_time,
            "language_stats": {
                lang: stats.to_dict() for lang, stats in self.language_stats.items()
            },
        }


@dataclass
class CacheEntry:
    """A cached analysis result with its bookkeeping."""

    result: AnalysisResult
    created_at: float  # clock time when stored; drives TTL expiry
    last_accessed: float
    access_count: int = 0


@dataclass
class CacheStatistics:
    """Performance counters for AnalysisCache."""

    hits: int = 0
    misses: int = 0
    evictions_lru: int = 0
    evictions_expired: int = 0
    evictions_access_limit: int = 0
    current_entry_count: int = 0
    peak_entry_count: int = 0

    @property
    def hit_rate(self) -> float:
        """Hit rate as percentage (0.0-100.0), or 0.0 if no lookups."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100.0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions_lru": self.evictions_lru,
            "evictions_expired": self.evictions_expired,
            "evictions_access_limit": self.evictions_access_limit,
            "current_entry_count": self.current_entry_count,
            "peak_entry_count": self.peak_entry_count,
            "hit_rate": self.hit_rate,
        }
