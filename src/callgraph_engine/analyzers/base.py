# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Base interface for per-language method analyzers.

The analyzer set is closed: every analyzer is one AnalyzerKind variant
(Ruby, JavaScript, TypeScript, ERB). The AnalyzerRegistry builds its
language -> analyzer lookup table from the `languages` each analyzer declares.

Contract:
- supports(language) tells whether the analyzer handles a language tag
- analyze(file, defined_methods) returns an AnalysisResult with the recovered
  methods, any errors and timing metadata

Analyzers SHOULD NOT raise. Constructs that cannot be converted are skipped and
reported as extraction warnings; the registry converts anything that still
escapes into a runtime error result.
"""

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import AbstractSet, FrozenSet, Iterable, List, Optional

from callgraph_engine.models import (
    AnalysisError,
    AnalysisMetadata,
    AnalysisResult,
    ErrorSeverity,
    ErrorType,
    Method,
    ParsedFile,
)


class AnalyzerKind(Enum):
    """The closed set of analyzer variants."""

    RUBY = "ruby"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    ERB = "erb"


class Analyzer(ABC):
    """Abstract base class for language analyzers."""

    kind: AnalyzerKind
    version: str = "1.0.0"
    description: str = ""
    # Language tags this analyzer answers for in the registry lookup table
    languages: FrozenSet[str] = frozenset()
    # Default label stamped into AnalysisMetadata.engine
    engine: str = ""

    @property
    def name(self) -> str:
        return self.kind.value

    def supports(self, language: str) -> bool:
        return language.lower() in self.languages

    @abstractmethod
    def analyze(
        self, file: ParsedFile, defined_methods: Optional[AbstractSet[str]] = None
    ) -> AnalysisResult:
        """Extract methods and call sites from a file.

        Args:
            file: Source file to analyze.
            defined_methods: Names known to be real definitions across the batch.
                None during the first (definition collection) pass.

        Returns:
            AnalysisResult. Partial methods are kept when part of the file fails.
        """
        pass

    def _build_result(
        self,
        file: ParsedFile,
        methods: List[Method],
        errors: List[AnalysisError],
        started: float,
        engine: Optional[str] = None,
        **additional_info: object,
    ) -> AnalysisResult:
        """Assemble an AnalysisResult with timing measured from `started` (perf_counter)."""
        metadata = AnalysisMetadata(
            processing_time=(time.perf_counter() - started) * 1000,
            lines_processed=file.total_lines or len(file.lines),
            engine=engine or self.engine,
            additional_info=dict(additional_info),
        )
        return AnalysisResult(methods=methods, errors=errors, metadata=metadata)


def combine_defined_methods(
    local_names: Iterable[str], defined_methods: Optional[AbstractSet[str]]
) -> FrozenSet[str]:
    """Union of a file's own definitions and the externally supplied set."""
    combined = set(local_names)
    if defined_methods:
        combined.update(defined_methods)
    return frozenset(combined)


def extraction_warning(message: str, line: Optional[int] = None) -> AnalysisError:
    """Build the warning recorded when one construct is skipped."""
    return AnalysisError(
        message=message,
        type=ErrorType.EXTRACTION,
        severity=ErrorSeverity.WARNING,
        line=line,
    )


def code_slice(lines: List[str], start_line: int, end_line: int) -> str:
    """Join the 1-based inclusive line range [start_line, end_line]."""
    return "\n".join(lines[start_line - 1 : end_line])
