# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Method analysis and dependency graph engine for Ruby, JavaScript, TypeScript and ERB."""

from .cache import AnalysisCache
from .config import Config, ConfigurationError
from .dependency_extractor import DependencyExtractor, extract_dependencies
from .engine import MethodAnalysisEngine
from .exclusion import ExclusionRule, MethodExclusionPolicy
from .models import (
    AnalysisError,
    AnalysisResult,
    AnalysisStatistics,
    Dependency,
    Method,
    MethodCall,
    MethodType,
    ParsedFile,
)
from .registry import AnalyzerRegistry

__version__ = "0.1.0"

__all__ = [
    "AnalysisCache",
    "Config",
    "ConfigurationError",
    "DependencyExtractor",
    "extract_dependencies",
    "MethodAnalysisEngine",
    "ExclusionRule",
    "MethodExclusionPolicy",
    "AnalysisError",
    "AnalysisResult",
    "AnalysisStatistics",
    "Dependency",
    "Method",
    "MethodCall",
    "MethodType",
    "ParsedFile",
    "AnalyzerRegistry",
]
