# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for RubyAnalyzer.

Covers method detection, depth-counted method ends, private tracking and
call filtering against the defined-method set.
"""

import textwrap

from callgraph_engine.analyzers.ruby_analyzer import RubyAnalyzer
from callgraph_engine.exclusion import MethodExclusionPolicy
from callgraph_engine.models import MethodType, ParameterKind, ParsedFile


def analyze(source: str, path: str = "app/models/user.rb", defined=None, **kwargs):
    file = ParsedFile.from_content(path, "ruby", textwrap.dedent(source).lstrip("\n"))
    return RubyAnalyzer(**kwargs).analyze(file, defined)


def by_name(result):
    return {m.name: m for m in result.methods}


class TestMethodDetection:
    """Tests for def detection and method boundaries."""

    def test_instance_and_class_methods(self):
        result = analyze(
            """
            class User
              def self.build(attrs = {})
                new(attrs)
              end

              def full_name
                first_name
              end
            end
            """
        )
        methods = by_name(result)

        assert methods["build"].type == MethodType.CLASS_METHOD
        assert methods["build"].start_line == 2
        assert methods["build"].end_line == 4
        assert methods["build"].parameters[0].name == "attrs"
        assert methods["build"].parameters[0].default_value == "{}"
        assert methods["full_name"].type == MethodType.METHOD
        assert methods["full_name"].end_line == 8

    def test_predicate_and_bang_names(self):
        result = analyze(
            """
            def valid?
              true
            end

            def save!
              valid?
            end
            """
        )
        methods = by_name(result)

        assert set(methods) == {"valid?", "save!"}
        assert [c.method_name for c in methods["save!"].calls] == ["valid?"]

    def test_nested_blocks_close_on_outer_end(self):
        result = analyze(
            """
            def process(items)
              items.each do |item|
                if item.ready?
                  save(item)
                end
              end
            end

            def other
            end
            """
        )
        methods = by_name(result)

        assert methods["process"].start_line == 1
        assert methods["process"].end_line == 7
        assert methods["other"].start_line == 9

    def test_one_line_definitions(self):
        result = analyze(
            """
            def run; validate; end
            def validate; true; end
            """
        )
        methods = by_name(result)

        assert methods["run"].start_line == methods["run"].end_line == 1
        assert [(c.method_name, c.line) for c in methods["run"].calls] == [("validate", 1)]
        assert methods["validate"].calls == []

    def test_new_def_ends_unterminated_method(self):
        result = analyze(
            """
            def broken
              if ready
                go
            def next_one
            end
            """
        )
        methods = by_name(result)

        assert methods["broken"].end_line == 3
        assert methods["next_one"].start_line == 4

    def test_max_method_lines_bound(self):
        body = "\n".join(["def endless"] + [f"  step_{i}" for i in range(20)])
        result = analyze(body, max_method_lines=5)

        assert by_name(result)["endless"].end_line == 6

    def test_keyword_parameters(self):
        result = analyze(
            """
            def search(query, limit: 10, **opts, &block)
            end
            """
        )
        params = by_name(result)["search"].parameters

        assert [p.name for p in params] == ["query", "limit", "opts", "block"]
        assert params[1].kind == ParameterKind.KEYWORD
        assert params[3].kind == ParameterKind.BLOCK


class TestVisibility:
    """Tests for private/public section tracking."""

    def test_private_section(self):
        result = analyze(
            """
            class C
              def a
              end

              private

              def b
              end
            end
            """
        )
        methods = by_name(result)

        assert methods["a"].is_private is False
        assert methods["b"].is_private is True

    def test_public_and_protected_reset_visibility(self):
        result = analyze(
            """
            class C
              private
              def a
              end
              protected
              def b
              end
              private
              def c
              end
              public
              def d
              end
            end
            """
        )
        methods = by_name(result)

        assert methods["a"].is_private is True
        assert methods["b"].is_private is False
        assert methods["c"].is_private is True
        assert methods["d"].is_private is False

    def test_new_class_resets_visibility(self):
        result = analyze(
            """
            class A
              private
              def hidden
              end
            end

            class B
              def shown
              end
            end
            """
        )
        methods = by_name(result)

        assert methods["hidden"].is_private is True
        assert methods["shown"].is_private is False

    def test_inline_private_def(self):
        result = analyze(
            """
            class C
              private def helper
              end

              def visible
                helper
              end
            end
            """
        )
        methods = by_name(result)

        assert methods["helper"].is_private is True
        assert methods["visible"].is_private is False
        assert [c.method_name for c in methods["visible"].calls] == ["helper"]


class TestCallExtraction:
    """Tests for call-site extraction and filtering."""

    def test_only_defined_names_are_calls(self):
        result = analyze(
            """
            def foo
            end

            def bar
              foo
              baz
            end
            """
        )
        calls = by_name(result)["bar"].calls

        assert [(c.method_name, c.line) for c in calls] == [("foo", 5)]

    def test_external_definitions_are_accepted(self):
        result = analyze(
            """
            def notify
              send_mail(user)
            end
            """,
            defined=frozenset({"send_mail"}),
        )

        assert [c.method_name for c in by_name(result)["notify"].calls] == ["send_mail"]

    def test_rails_methods_without_definition(self):
        result = analyze(
            """
            def update
              redirect_to root_path
            end
            """
        )

        assert [c.method_name for c in by_name(result)["update"].calls] == ["redirect_to"]

    def test_query_and_devise_methods_without_definition(self):
        result = analyze(
            """
            def recent
              authenticate_user!
              User.order(created_at: :desc).limit(5)
            end
            """
        )
        calls = by_name(result)["recent"].calls

        assert [(c.method_name, c.line) for c in calls] == [
            ("authenticate_user!", 2),
            ("order", 3),
            ("limit", 3),
        ]

    def test_keywords_builtins_and_comments_ignored(self):
        result = analyze(
            """
            def report
              puts "done"
              # summarize
              return nil
            end

            def summarize
            end
            """
        )

        assert by_name(result)["report"].calls == []

    def test_interpolation_calls(self):
        result = analyze(
            """
            def greeting
              "Hello #{full_name}"
            end

            def full_name
            end
            """
        )

        assert [c.method_name for c in by_name(result)["greeting"].calls] == ["full_name"]

    def test_assignment_target_is_not_a_call(self):
        result = analyze(
            """
            def total
            end

            def checkout
              total = compute_total
            end

            def compute_total
            end
            """
        )

        assert [c.method_name for c in by_name(result)["checkout"].calls] == ["compute_total"]

    def test_strings_are_not_scanned(self):
        result = analyze(
            """
            def label
              'call helper here'
            end

            def helper
            end
            """
        )

        assert by_name(result)["label"].calls == []


class TestExclusionAndMetadata:
    """Tests for exclusion flags and result metadata."""

    def test_controller_actions_marked_excluded(self):
        result = analyze(
            """
            class UsersController < ApplicationController
              def index
              end

              def set_user
              end
            end
            """,
            path="app/controllers/users_controller.rb",
        )
        methods = by_name(result)

        assert methods["index"].is_excluded is True
        assert methods["set_user"].is_excluded is False

    def test_injected_policy(self):
        result = analyze(
            """
            def index
            end
            """,
            path="app/controllers/users_controller.rb",
            exclusion_policy=MethodExclusionPolicy(rules=[]),
        )

        assert by_name(result)["index"].is_excluded is False

    def test_metadata(self):
        result = analyze(
            """
            def a
            end
            """
        )

        assert result.metadata.engine == "ruby-regex"
        assert result.metadata.lines_processed == 3
        assert result.errors == []
