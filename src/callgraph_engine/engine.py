# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Two-pass method analysis over a batch of files.

Pass 1 (extract_definitions) runs every file's analyzer without outside
knowledge and collects the names of real definitions. Pass 2 re-analyzes
every file with that set, so whether a name counts as a call never depends
on the order the files were given in.

Usage:
    engine = MethodAnalysisEngine.from_config(Config())
    methods = engine.analyze_files(files)
    dependencies = DependencyExtractor().extract(methods)
"""

import logging
import time
from typing import AbstractSet, Dict, FrozenSet, Iterable, List, Optional, Tuple

from callgraph_engine.analyzers import create_default_analyzers
from callgraph_engine.cache import DEFAULT_CLEANUP_INTERVAL_SECONDS, AnalysisCache
from callgraph_engine.config import Config
from callgraph_engine.exclusion import MethodExclusionPolicy
from callgraph_engine.models import (
    AnalysisResult,
    AnalysisStatistics,
    LanguageStats,
    Method,
    ParsedFile,
)
from callgraph_engine.registry import AnalyzerRegistry

logger = logging.getLogger(__name__)


class MethodAnalysisEngine:
    """Runs the registered analyzers over files and aggregates the results.

    Args:
        registry: Analyzer registry. Defaults to one analyzer per language,
            wired to `cache` and `exclusion_policy`.
        cache: Optional AST result cache shared with the TypeScript analyzer.
        exclusion_policy: Policy used by the default Ruby analyzer.
        statistics_logger: Optional logger receiving one record per batch.
        cleanup_interval_seconds: Interval used by start_cache_cleanup().
    """

    def __init__(
        self,
        registry: Optional[AnalyzerRegistry] = None,
        cache: Optional[AnalysisCache] = None,
        exclusion_policy: Optional[MethodExclusionPolicy] = None,
        statistics_logger: Optional[logging.Logger] = None,
        cleanup_interval_seconds: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
    ) -> None:
        self._cache = cache
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self.exclusion_policy = exclusion_policy or MethodExclusionPolicy()
        if registry is None:
            registry = AnalyzerRegistry(
                create_default_analyzers(exclusion_policy=self.exclusion_policy, cache=cache)
            )
        self.registry = registry
        self.statistics_logger = statistics_logger

    @classmethod
    def from_config(
        cls, config: Config, statistics_logger: Optional[logging.Logger] = None
    ) -> "MethodAnalysisEngine":
        """Build an engine wired from configuration values."""
        cache = None
        if config.cache_enabled:
            cache = AnalysisCache(
                max_entries=config.cache_max_entries,
                ttl_seconds=config.cache_ttl_minutes * 60,
                max_access_count=config.cache_max_access_count,
            )
        policy = MethodExclusionPolicy().without_frameworks(config.excluded_frameworks)
        analyzers = create_default_analyzers(
            exclusion_policy=policy,
            cache=cache,
            ruby_method_max_lines=config.ruby_method_max_lines,
            javascript_function_max_lines=config.javascript_function_max_lines,
            max_ast_size_bytes=config.max_ast_size_bytes,
            max_file_lines=config.max_file_lines,
        )
        return cls(
            registry=AnalyzerRegistry(analyzers),
            cache=cache,
            exclusion_policy=policy,
            statistics_logger=statistics_logger,
            cleanup_interval_seconds=config.cache_cleanup_interval_minutes * 60,
        )

    # Single file

    def analyze_file_with_details(
        self, file: ParsedFile, defined_methods: Optional[AbstractSet[str]] = None
    ) -> AnalysisResult:
        """Analyze one file and return methods, errors and metadata."""
        result = self.registry.analyze(file, defined_methods)
        logger.debug(
            f"Analyzed {file.path} ({file.language}): {len(result.methods)} methods, "
            f"{len(result.errors)} errors, engine={result.metadata.engine}"
        )
        return result

    def analyze_file(
        self, file: ParsedFile, defined_methods: Optional[AbstractSet[str]] = None
    ) -> List[Method]:
        return self.analyze_file_with_details(file, defined_methods).methods

    # Batch

    def extract_definitions(self, files: Iterable[ParsedFile]) -> FrozenSet[str]:
        """Pass 1: names of every function, method, component and hook in the batch."""
        names = set()
        for file in files:
            result = self.registry.analyze(file)
            names.update(m.name for m in result.methods if m.is_definition)
        logger.debug(f"Collected {len(names)} defined method names")
        return frozenset(names)

    def analyze_files(
        self, files: Iterable[ParsedFile], defined_methods: Optional[AbstractSet[str]] = None
    ) -> List[Method]:
        """Analyze a batch of files, running pass 1 first when no definitions are given.

        Returns:
            Flattened list of methods from every file, in file order.
        """
        files = list(files)
        results = self._run_batch(files, defined_methods)
        methods = [m for _, result in results for m in result.methods]
        statistics = self._statistics(results)
        logger.info(
            f"Analyzed {statistics.total_files} files: {statistics.total_methods} methods, "
            f"{statistics.total_errors} errors in {statistics.total_processing_time:.1f}ms"
        )
        self._log_statistics(statistics)
        return methods

    def get_analysis_statistics(
        self, files: Iterable[ParsedFile], defined_methods: Optional[AbstractSet[str]] = None
    ) -> AnalysisStatistics:
        """Analyze a batch and summarise counts and timings per language."""
        results = self._run_batch(list(files), defined_methods)
        statistics = self._statistics(results)
        self._log_statistics(statistics)
        return statistics

    def _run_batch(
        self, files: List[ParsedFile], defined_methods: Optional[AbstractSet[str]]
    ) -> List[Tuple[ParsedFile, AnalysisResult]]:
        started = time.perf_counter()
        if defined_methods is None:
            defined_methods = self.extract_definitions(files)
        results = [(file, self.analyze_file_with_details(file, defined_methods)) for file in files]
        logger.debug(
            f"Batch of {len(files)} files finished in "
            f"{(time.perf_counter() - started) * 1000:.1f}ms"
        )
        return results

    @staticmethod
    def _statistics(results: List[Tuple[ParsedFile, AnalysisResult]]) -> AnalysisStatistics:
        statistics = AnalysisStatistics()
        per_language: Dict[str, LanguageStats] = {}
        for file, result in results:
            stats = per_language.setdefault(file.language, LanguageStats())
            stats.file_count += 1
            stats.method_count += len(result.methods)
            stats.error_count += len(result.errors)
            stats.total_processing_time += result.metadata.processing_time
            stats.total_lines_processed += result.metadata.lines_processed

            statistics.total_files += 1
            statistics.total_methods += len(result.methods)
            statistics.total_errors += len(result.errors)
            statistics.total_processing_time += result.metadata.processing_time
            statistics.total_lines_processed += result.metadata.lines_processed

        if statistics.total_files:
            statistics.average_processing_time = (
                statistics.total_processing_time / statistics.total_files
            )
        statistics.language_stats = per_language
        return statistics

    def _log_statistics(self, statistics: AnalysisStatistics) -> None:
        if self.statistics_logger is None:
            return
        self.statistics_logger.info(
            "analysis_statistics", extra={"extra_fields": statistics.to_dict()}
        )

    # Introspection

    def get_analyzer_info(self) -> List[Dict[str, object]]:
        return self.registry.get_analyzer_info()

    @property
    def cache(self) -> Optional[AnalysisCache]:
        return self._cache

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    def start_cache_cleanup(self) -> bool:
        """Start periodic eviction of expired cache entries.

        The timer is never started implicitly; hosts call this once they are
        ready and stop_cache_cleanup() on shutdown.

        Returns:
            False when caching is disabled.
        """
        if self._cache is None:
            return False
        self._cache.start_cleanup_timer(self.cleanup_interval_seconds)
        return True

    def stop_cache_cleanup(self) -> None:
        if self._cache is not None:
            self._cache.stop_cleanup_timer()
