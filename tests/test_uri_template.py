"""Tests for URI templates."""

import pytest

from mcp_annotations.uri_template import UriTemplate


class TestUriTemplate:
    """Tests for matching and extraction."""

    def test_is_template(self):
        assert UriTemplate.is_template("user://{name}")
        assert not UriTemplate.is_template("config://app")
        assert not UriTemplate.is_template("")

    def test_variable_names_in_order(self):
        template = UriTemplate("repo://{owner}/{repo}/issues/{number}")
        assert template.variable_names == ["owner", "repo", "number"]

    def test_extract_single_variable(self):
        assert UriTemplate("user://{name}").extract("user://alice") == {"name": "alice"}

    def test_extract_multiple_variables(self):
        template = UriTemplate("repo://{owner}/{repo}")
        assert template.extract("repo://octo/hello") == {"owner": "octo", "repo": "hello"}

    def test_variable_does_not_cross_segments(self):
        """A variable matches exactly one path segment."""
        template = UriTemplate("user://{name}")
        assert not template.matches("user://alice/profile")
        assert template.extract("user://alice/profile") == {}

    def test_literal_parts_are_escaped(self):
        template = UriTemplate("file://docs/{name}.md")
        assert template.matches("file://docs/readme.md")
        assert not template.matches("file://docs/readmeXmd")

    def test_repeated_variable_must_agree(self):
        template = UriTemplate("mirror://{name}/{name}")
        assert template.extract("mirror://a/a") == {"name": "a"}
        assert not template.matches("mirror://a/b")

    def test_expand(self):
        template = UriTemplate("repo://{owner}/{repo}")
        assert template.expand({"owner": "octo", "repo": "hello"}) == "repo://octo/hello"

    def test_expand_missing_value_raises(self):
        with pytest.raises(KeyError):
            UriTemplate("user://{name}").expand({})

    def test_equality(self):
        assert UriTemplate("user://{name}") == UriTemplate("user://{name}")
        assert len({UriTemplate("a://{x}"), UriTemplate("a://{x}")}) == 1
