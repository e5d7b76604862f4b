# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for the method exclusion policy and call allow-lists."""

import re

import pytest

from callgraph_engine.exclusion import (
    RAILS_CONTROLLER_ACTIONS_RULE,
    ExclusionRule,
    MethodExclusionPolicy,
)
from callgraph_engine.keywords import is_valid_javascript_call, is_valid_ruby_call


class TestDefaultPolicy:
    """Tests for the default Rails controller rule."""

    def test_controller_actions_are_excluded(self):
        policy = MethodExclusionPolicy()

        assert policy.is_excluded_method("index", "app/controllers/users_controller.rb")
        assert not policy.is_clickable_method("show", "app/controllers/users_controller.rb")
        assert not policy.is_jump_target_method("create", "app/controllers/users_controller.rb")

    def test_other_methods_and_files_are_kept(self):
        policy = MethodExclusionPolicy()

        assert not policy.is_excluded_method("set_user", "app/controllers/users_controller.rb")
        assert not policy.is_excluded_method("index", "app/models/user.rb")
        assert policy.is_jump_target_method("index", "app/models/user.rb")

    def test_applied_rule_is_reported(self):
        policy = MethodExclusionPolicy()

        rule = policy.get_applied_rule("destroy", "posts_controller.rb")

        assert rule is RAILS_CONTROLLER_ACTIONS_RULE
        assert policy.get_applied_rule("destroy", "post.rb") is None


class TestInjectedRules:
    """Tests for custom rule tables."""

    def test_empty_rule_table_excludes_nothing(self):
        policy = MethodExclusionPolicy(rules=[])

        assert not policy.is_excluded_method("index", "users_controller.rb")
        assert policy.get_all_rules() == []

    def test_add_rule(self):
        policy = MethodExclusionPolicy(rules=[])
        policy.add_rule(
            ExclusionRule(
                framework="react",
                file_pattern=re.compile(r"\.tsx$"),
                predicate=lambda name: name == "render",
                description="Class component render",
            )
        )

        assert policy.is_excluded_method("render", "App.tsx")
        assert not policy.is_excluded_method("render", "app.rb")

    def test_add_rule_rejects_other_types(self):
        with pytest.raises(TypeError):
            MethodExclusionPolicy().add_rule("rails")  # type: ignore[arg-type]

    def test_without_frameworks(self):
        policy = MethodExclusionPolicy().without_frameworks(["rails"])

        assert not policy.is_excluded_method("index", "users_controller.rb")
        # The base policy is untouched
        assert MethodExclusionPolicy().is_excluded_method("index", "users_controller.rb")


class TestCallAllowLists:
    """Tests for the variable-vs-call decision tables."""

    def test_ruby_defined_and_rails_names(self):
        defined = {"validate"}

        assert is_valid_ruby_call("validate", defined)
        assert is_valid_ruby_call("redirect_to", defined)
        assert is_valid_ruby_call("find_by", defined)
        assert not is_valid_ruby_call("baz", defined)

    def test_ruby_keywords_and_builtins_rejected(self):
        defined = {"puts", "end"}

        assert not is_valid_ruby_call("puts", defined)
        assert not is_valid_ruby_call("end", defined)

    def test_javascript_rules(self):
        defined = {"loadUser"}

        assert is_valid_javascript_call("loadUser", defined)
        assert is_valid_javascript_call("useState", defined)
        assert not is_valid_javascript_call("map", {"map"})
        assert not is_valid_javascript_call("if", defined)
        assert not is_valid_javascript_call("unknownThing", defined)
