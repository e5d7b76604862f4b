# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for DependencyExtractor resolution, line anchors and aggregation."""

from dataclasses import replace

from callgraph_engine.dependency_extractor import DependencyExtractor, extract_dependencies
from callgraph_engine.models import DependencyType, Method, MethodCall, MethodType


def method(name, file_path, start, end=None, calls=(), kind=MethodType.METHOD, **kwargs):
    return Method(
        name=name,
        type=kind,
        start_line=start,
        end_line=end or start,
        file_path=file_path,
        calls=[MethodCall(n, line) for n, line in calls],
        **kwargs,
    )


class TestResolution:
    """Tests for callee lookup."""

    def test_internal_edge(self):
        methods = [
            method("run", "a.rb", 1, calls=[("validate", 1)]),
            method("validate", "a.rb", 2),
        ]

        deps = extract_dependencies(methods)

        assert len(deps) == 1
        dep = deps[0]
        assert (dep.from_.method_name, dep.from_.file_path, dep.from_.line) == ("run", "a.rb", 1)
        assert (dep.to.method_name, dep.to.file_path, dep.to.line) == ("validate", "a.rb", 2)
        assert dep.type == DependencyType.INTERNAL
        assert dep.count == 1

    def test_external_edge(self):
        methods = [
            method("run", "a.rb", 1, 3, calls=[("validate", 2)]),
            method("validate", "b.rb", 10),
        ]

        dep = extract_dependencies(methods)[0]

        assert dep.type == DependencyType.EXTERNAL
        assert dep.to.line == 10

    def test_same_file_candidate_preferred(self):
        methods = [
            method("save", "a.rb", 1),
            method("save", "b.rb", 5),
            method("commit", "b.rb", 8, calls=[("save", 9)]),
            method("other", "c.rb", 1, calls=[("save", 2)]),
        ]

        deps = extract_dependencies(methods)
        targets = {d.from_.method_name: d.to.file_path for d in deps}

        assert targets == {"commit": "b.rb", "other": "a.rb"}

    def test_unresolved_calls_are_skipped(self):
        methods = [method("run", "a.rb", 1, calls=[("missing", 2)])]

        assert extract_dependencies(methods) == []

    def test_bookkeeping_methods_are_not_targets(self):
        methods = [
            method("link_to", "index.html.erb", 1, kind=MethodType.ERB_CALL),
            method("[Export: helper]", "a.ts", 1, kind=MethodType.EXPORT),
            method("show", "a.rb", 1, calls=[("link_to", 2), ("[Export: helper]", 3)]),
        ]

        assert extract_dependencies(methods) == []

    def test_empty_input(self):
        assert extract_dependencies([]) == []


class TestAggregation:
    """Tests for merging repeated caller/callee pairs."""

    def test_repeated_calls_merge_with_count(self):
        methods = [
            method("run", "a.rb", 1, 5, calls=[("validate", 2), ("validate", 4)]),
            method("validate", "a.rb", 7),
        ]

        deps = extract_dependencies(methods)

        assert len(deps) == 1
        assert deps[0].count == 2
        assert deps[0].from_.line == 2

    def test_distinct_pairs_keep_first_seen_order(self):
        methods = [
            method("a", "x.rb", 1, calls=[("c", 1)]),
            method("b", "x.rb", 2, calls=[("c", 2)]),
            method("c", "x.rb", 3),
        ]

        deps = extract_dependencies(methods)

        assert [d.key for d in deps] == ["a@x.rb->c@x.rb", "b@x.rb->c@x.rb"]


class TestImportEdges:
    """Tests for import / import_usage linking."""

    IMPORT_NAME = "[Import: {useState} from 'react']"

    def methods(self):
        return [
            method(
                self.IMPORT_NAME,
                "App.tsx",
                1,
                calls=[("useState", 5)],
                kind=MethodType.IMPORT,
            ),
            method(
                "useState (imported)",
                "App.tsx",
                5,
                calls=[(self.IMPORT_NAME, 1)],
                kind=MethodType.IMPORT_USAGE,
                import_source="1",
            ),
        ]

    def test_forward_edge_anchors_on_import_line(self):
        deps = extract_dependencies(self.methods())
        forward = next(d for d in deps if d.from_.method_name == self.IMPORT_NAME)

        assert forward.from_.line == 1
        assert forward.to.method_name == "useState (imported)"
        assert forward.to.line == 5
        assert forward.type == DependencyType.INTERNAL

    def test_reverse_edge_anchors_on_import_line(self):
        deps = extract_dependencies(self.methods())
        reverse = next(d for d in deps if d.from_.method_name == "useState (imported)")

        assert reverse.from_.line == 1
        assert reverse.to.method_name == self.IMPORT_NAME
        assert reverse.to.line == 1

    def test_usage_in_other_file_is_not_linked(self):
        methods = self.methods()
        methods[1] = replace(methods[1], file_path="Other.tsx")

        deps = extract_dependencies(methods)

        assert deps == []

    def test_non_numeric_import_source_is_ignored(self):
        methods = self.methods()
        methods[1] = replace(methods[1], import_source="react")

        deps = extract_dependencies(methods)

        assert [d.from_.method_name for d in deps] == [self.IMPORT_NAME]


class TestJumpTargets:
    """Tests for exclusion-aware jump targets."""

    def test_controller_actions_are_not_jump_targets(self):
        methods = [
            method("index", "app/controllers/users_controller.rb", 2),
            method("load", "app/controllers/users_controller.rb", 6),
            method("spec", "spec/users_spec.rb", 1, calls=[("index", 2), ("load", 3)]),
        ]
        extractor = DependencyExtractor()

        deps = extractor.extract(methods)
        targets = extractor.jump_targets(deps)

        assert len(deps) == 2
        assert [d.to.method_name for d in targets] == ["load"]
