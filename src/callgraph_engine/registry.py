# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Registry for per-language analyzers.

The registry owns the language -> analyzer lookup table and is the single
boundary where analyzer failures are turned into data: analyze() never
raises for a bad file or an unsupported language.

Thread Safety:
- NOT thread-safe: register all analyzers during initialization
"""

import logging
import time
from dataclasses import replace
from typing import AbstractSet, Dict, List, Optional

from callgraph_engine.analyzers.base import Analyzer
from callgraph_engine.models import (
    AnalysisError,
    AnalysisMetadata,
    AnalysisResult,
    ErrorSeverity,
    ErrorType,
    ParsedFile,
)

logger = logging.getLogger(__name__)


class AnalyzerRegistry:
    """Registry of language analyzers with table-driven dispatch.

    Lookup goes through the table built from each analyzer's declared
    `languages` first, then falls back to the first analyzer whose
    supports() accepts the tag.
    """

    def __init__(self, analyzers: Optional[List[Analyzer]] = None) -> None:
        self._analyzers: List[Analyzer] = []
        self._by_language: Dict[str, Analyzer] = {}
        for analyzer in analyzers or []:
            self.register(analyzer)

    def register(self, analyzer: Analyzer) -> None:
        """Register an analyzer.

        Raises:
            TypeError: If analyzer is not an Analyzer instance.
            ValueError: If an analyzer with the same name is already registered.
        """
        if not isinstance(analyzer, Analyzer):
            raise TypeError(f"Analyzer must be an Analyzer instance, got {type(analyzer)}")
        if any(a.name == analyzer.name for a in self._analyzers):
            raise ValueError(f"Analyzer '{analyzer.name}' is already registered")

        self._analyzers.append(analyzer)
        for language in analyzer.languages:
            self._by_language.setdefault(language.lower(), analyzer)

        logger.debug(
            f"Registered analyzer '{analyzer.name}' for {sorted(analyzer.languages)}"
        )

    def unregister(self, name: str) -> bool:
        """Remove an analyzer by name.

        Returns:
            True if an analyzer was removed.
        """
        remaining = [a for a in self._analyzers if a.name != name]
        if len(remaining) == len(self._analyzers):
            return False
        self._analyzers = []
        self._by_language = {}
        for analyzer in remaining:
            self.register(analyzer)
        logger.debug(f"Unregistered analyzer '{name}'")
        return True

    def get_analyzer(self, language: str) -> Optional[Analyzer]:
        key = language.lower()
        analyzer = self._by_language.get(key)
        if analyzer is not None:
            return analyzer
        for candidate in self._analyzers:
            if candidate.supports(key):
                return candidate
        return None

    def supported_languages(self) -> List[str]:
        return sorted(self._by_language)

    def get_analyzer_info(self) -> List[Dict[str, object]]:
        return [
            {
                "name": a.name,
                "version": a.version,
                "description": a.description,
                "languages": sorted(a.languages),
            }
            for a in self._analyzers
        ]

    def count(self) -> int:
        return len(self._analyzers)

    def analyze(
        self, file: ParsedFile, defined_methods: Optional[AbstractSet[str]] = None
    ) -> AnalysisResult:
        """Analyze one file with the analyzer registered for its language.

        Never raises: unsupported languages yield a validation error and any
        analyzer exception yields a runtime error with no methods.
        """
        analyzer = self.get_analyzer(file.language)
        if analyzer is None:
            logger.warning(f"⚠️ Unsupported language '{file.language}' for {file.path}")
            return AnalysisResult(
                methods=[],
                errors=[
                    AnalysisError(
                        message=f"Unsupported language: {file.language}",
                        type=ErrorType.VALIDATION,
                        severity=ErrorSeverity.ERROR,
                    )
                ],
                metadata=AnalysisMetadata(lines_processed=file.total_lines),
            )

        started = time.perf_counter()
        try:
            result = analyzer.analyze(file, defined_methods)
        except Exception as e:
            elapsed = (time.perf_counter() - started) * 1000
            logger.error(f"Analyzer {analyzer.name} failed on {file.path}: {e}", exc_info=True)
            return AnalysisResult(
                methods=[],
                errors=[
                    AnalysisError(
                        message=f"Analyzer {analyzer.name} failed: {e}",
                        type=ErrorType.RUNTIME,
                        severity=ErrorSeverity.ERROR,
                    )
                ],
                metadata=AnalysisMetadata(
                    processing_time=elapsed,
                    lines_processed=file.total_lines,
                    engine=analyzer.engine,
                ),
            )

        if not result.metadata.engine:
            # Results may be shared through the cache; never mutate them in place
            result = replace(result, metadata=replace(result.metadata, engine=analyzer.engine))
        return result
