# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Language analyzers for method and call extraction.

Components:
- RubyAnalyzer: def detection with depth-counted method ends
- JavaScriptAnalyzer: regex definitions with brace-counted ends
- TypeScriptAnalyzer: tree-sitter AST walk with a regex fallback
- ErbAnalyzer: allow-list driven call detection inside ERB tags
"""

from typing import List, Optional

from callgraph_engine.analyzers.base import Analyzer, AnalyzerKind
from callgraph_engine.analyzers.erb_analyzer import ErbAnalyzer
from callgraph_engine.analyzers.javascript_analyzer import JavaScriptAnalyzer
from callgraph_engine.analyzers.ruby_analyzer import RubyAnalyzer
from callgraph_engine.analyzers.typescript_analyzer import TypeScriptAnalyzer
from callgraph_engine.cache import AnalysisCache
from callgraph_engine.exclusion import MethodExclusionPolicy


def create_default_analyzers(
    exclusion_policy: Optional[MethodExclusionPolicy] = None,
    cache: Optional[AnalysisCache] = None,
    ruby_method_max_lines: int = 100,
    javascript_function_max_lines: int = 50,
    max_ast_size_bytes: int = 1024 * 1024,
    max_file_lines: int = 50000,
) -> List[Analyzer]:
    """One analyzer per AnalyzerKind, in registration order."""
    return [
        RubyAnalyzer(exclusion_policy=exclusion_policy, max_method_lines=ruby_method_max_lines),
        JavaScriptAnalyzer(max_function_lines=javascript_function_max_lines),
        TypeScriptAnalyzer(
            max_ast_size_bytes=max_ast_size_bytes,
            max_file_lines=max_file_lines,
            max_function_lines=javascript_function_max_lines,
            cache=cache,
        ),
        ErbAnalyzer(),
    ]


__all__ = [
    "Analyzer",
    "AnalyzerKind",
    "ErbAnalyzer",
    "JavaScriptAnalyzer",
    "RubyAnalyzer",
    "TypeScriptAnalyzer",
    "create_default_analyzers",
]
