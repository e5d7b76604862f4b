# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for ErbAnalyzer and the ERB call acceptance rules."""

from callgraph_engine.analyzers.erb_analyzer import ErbAnalyzer, is_valid_erb_call, template_name
from callgraph_engine.models import MethodType, ParsedFile

TEMPLATE_LINES = [
    '<h1><%= t("users.title") %></h1>',
    "<% @users.each do |user| %>",
    "  <%= link_to user.name, user_path(user) %>",
    "  <%= x %>",
    "<% end %>",
    "<%= helper_method %>",
    '<%# t("ignored") %>',
]


def analyze(lines=None, defined=None, path="app/views/users/index.html.erb"):
    content = "\n".join(TEMPLATE_LINES if lines is None else lines)
    return ErbAnalyzer().analyze(ParsedFile.from_content(path, "erb", content), defined)


class TestCallAcceptance:
    """Tests for is_valid_erb_call."""

    def test_helpers_and_rails_methods(self):
        assert is_valid_erb_call("t")
        assert is_valid_erb_call("link_to")
        assert is_valid_erb_call("render")
        assert is_valid_erb_call("find_by")

    def test_single_letters_need_allow_list(self):
        assert not is_valid_erb_call("x")
        assert not is_valid_erb_call("x", {"x"})
        assert is_valid_erb_call("h")

    def test_keywords_and_plain_builtins_rejected(self):
        assert not is_valid_erb_call("end")
        assert not is_valid_erb_call("puts", {"puts"})

    def test_defined_methods_accepted(self):
        assert not is_valid_erb_call("user_path")
        assert is_valid_erb_call("user_path", {"user_path"})


class TestErbAnalyzer:
    """Tests for per-template output."""

    def test_one_method_per_called_name(self):
        result = analyze()
        names = [m.name for m in result.methods]

        assert names == ["t", "link_to", "helper_method", "[ERB File: index]"]
        assert all(m.type == MethodType.ERB_CALL for m in result.methods)
        assert result.metadata.engine == "erb-regex"

    def test_file_method_carries_all_calls(self):
        result = analyze()
        file_method = result.methods[-1]

        assert file_method.start_line == 1
        assert file_method.end_line == len(TEMPLATE_LINES)
        assert [(c.method_name, c.line) for c in file_method.calls] == [
            ("t", 1),
            ("link_to", 3),
            ("helper_method", 6),
        ]

    def test_per_name_methods_span_first_to_last_use(self):
        lines = [
            '<%= t("a") %>',
            "<p>text</p>",
            '<%= t("b") %>',
        ]
        result = analyze(lines)
        t_method = result.methods[0]

        assert (t_method.start_line, t_method.end_line) == (1, 3)
        assert t_method.calls == []
        assert t_method.code == '<%= t("a") %>\n<%= t("b") %>'

    def test_columns_refer_to_template_line(self):
        result = analyze(['<h1><%= t("users.title") %></h1>'])

        assert result.methods[-1].calls[0].column == 8

    def test_defined_methods_extend_acceptance(self):
        result = analyze(defined=frozenset({"user_path"}))
        names = [c.method_name for c in result.methods[-1].calls]

        assert names == ["t", "link_to", "user_path", "helper_method"]

    def test_same_name_twice_on_one_line(self):
        result = analyze(['<%= t("a") %> and <%= t("b") %>'])

        assert len(result.methods[-1].calls) == 1

    def test_file_method_is_named_after_the_template(self):
        result = analyze(path="app/views/users/_row.turbo_stream.erb")

        assert result.methods[-1].name == "[ERB File: _row]"

    def test_template_name_strips_one_format_suffix(self):
        def name_of(path):
            return template_name(ParsedFile.from_content(path, "erb", ""))

        assert name_of("app/views/users/index.html.erb") == "index"
        assert name_of("show.json.erb") == "show"
        assert name_of("mailer.text.erb") == "mailer.text"
        assert name_of("report.html.html.erb") == "report.html"
        assert name_of("plain.erb") == "plain"

    def test_template_without_calls(self):
        result = analyze(["<p>static</p>", "<% if true %>", "<% end %>"])

        assert result.methods == []
        assert result.errors == []
