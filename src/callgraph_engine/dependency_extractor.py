# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Resolve call sites to definitions and aggregate them into graph edges.

The extractor consumes the flattened Method list of a whole batch and builds
one Dependency per (caller, callee) pair.

Name resolution:
- Callees are looked up by name, preferring the caller's own file, then the
  first match in scan order. Duplicate names across files are resolved to the
  first one seen.
- Import bookkeeping methods (import, import_usage, export, erb_call) are
  never name-resolution targets; import edges are linked by line instead.

Line anchors:
- from.line is the first call site seen, except for import and import_usage
  callers whose from.line is always the import statement's line
- to.line is the callee's start line
"""

import logging
from typing import Dict, List, Optional

from callgraph_engine.exclusion import MethodExclusionPolicy
from callgraph_engine.models import (
    Dependency,
    DependencyEndpoint,
    DependencyType,
    Method,
    MethodCall,
    MethodType,
)

logger = logging.getLogger(__name__)


class DependencyExtractor:
    """Builds aggregated caller -> callee edges from analyzed methods.

    Args:
        exclusion_policy: Policy deciding which callees are offered as
            jump-to-definition targets. Defaults to MethodExclusionPolicy().
    """

    def __init__(self, exclusion_policy: Optional[MethodExclusionPolicy] = None) -> None:
        self.exclusion_policy = exclusion_policy or MethodExclusionPolicy()

    def extract(self, methods: List[Method]) -> List[Dependency]:
        """Resolve every call on every method and merge repeated pairs.

        Returns:
            Dependencies in first-seen order.
        """
        if not methods:
            return []

        by_name = self._name_map(methods)
        merged: Dict[str, Dependency] = {}
        unresolved = 0

        for method in methods:
            for call in method.calls:
                target = self._resolve(method, call, by_name, methods)
                if target is None:
                    unresolved += 1
                    continue

                dependency = self._edge(method, call, target)
                existing = merged.get(dependency.key)
                if existing is None:
                    merged[dependency.key] = dependency
                else:
                    existing.count += 1

        logger.debug(
            f"Extracted {len(merged)} dependencies from {len(methods)} methods "
            f"({unresolved} unresolved calls skipped)"
        )
        return list(merged.values())

    def jump_targets(self, dependencies: List[Dependency]) -> List[Dependency]:
        """Dependencies whose callee may be offered as a jump-to-definition target."""
        return [
            d
            for d in dependencies
            if self.exclusion_policy.is_jump_target_method(d.to.method_name, d.to.file_path)
        ]

    @staticmethod
    def _name_map(methods: List[Method]) -> Dict[str, List[Method]]:
        by_name: Dict[str, List[Method]] = {}
        for method in methods:
            if method.type in MethodType.NON_RESOLVABLE_KINDS:
                continue
            by_name.setdefault(method.name, []).append(method)
        return by_name

    @staticmethod
    def _resolve(
        caller: Method,
        call: MethodCall,
        by_name: Dict[str, List[Method]],
        methods: List[Method],
    ) -> Optional[Method]:
        if caller.type == MethodType.IMPORT:
            usage_name = f"{call.method_name} (imported)"
            return next(
                (
                    m
                    for m in methods
                    if m.type == MethodType.IMPORT_USAGE
                    and m.file_path == caller.file_path
                    and m.start_line == call.line
                    and m.name == usage_name
                ),
                None,
            )

        if caller.type == MethodType.IMPORT_USAGE:
            if caller.import_source is None or not caller.import_source.isdigit():
                return None
            import_line = int(caller.import_source)
            return next(
                (
                    m
                    for m in methods
                    if m.type == MethodType.IMPORT
                    and m.file_path == caller.file_path
                    and m.start_line == import_line
                ),
                None,
            )

        candidates = by_name.get(call.method_name)
        if not candidates:
            return None
        for candidate in candidates:
            if candidate.file_path == caller.file_path:
                return candidate
        return candidates[0]

    @staticmethod
    def _edge(caller: Method, call: MethodCall, target: Method) -> Dependency:
        if caller.type == MethodType.IMPORT:
            from_line = caller.start_line
        elif caller.type == MethodType.IMPORT_USAGE and caller.import_source:
            from_line = int(caller.import_source)
        else:
            from_line = call.line

        return Dependency(
            from_=DependencyEndpoint(caller.name, caller.file_path, from_line),
            to=DependencyEndpoint(target.name, target.file_path, target.start_line),
            count=1,
            type=(
                DependencyType.INTERNAL
                if caller.file_path == target.file_path
                else DependencyType.EXTERNAL
            ),
        )


def extract_dependencies(methods: List[Method]) -> List[Dependency]:
    """Extract dependencies with the default exclusion policy."""
    return DependencyExtractor().extract(methods)
