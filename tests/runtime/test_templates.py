"""Тесты реестра подшаблонов."""

import logging

import pytest

from stencil.errors import ParseDepthError, ParseError
from stencil.runtime.templates import TemplateRegistry
from stencil.syntax.nodes import Template, TextNode
from stencil.syntax.parser import parse_template


class TestTemplateRegistry:

    def test_register_source(self):
        registry = TemplateRegistry()

        template = registry.register("greeting", "Hi {{ name }}")

        assert isinstance(template, Template)
        assert template.name == "greeting"
        assert registry.get("greeting") is template
        assert "greeting" in registry
        assert len(registry) == 1

    def test_register_compiled(self):
        registry = TemplateRegistry()
        compiled = parse_template("static", name="other")

        assert registry.register("s", compiled) is compiled
        assert registry.get("s").nodes == (TextNode("static"),)

    def test_missing(self):
        assert TemplateRegistry().get("nope") is None

    def test_names_sorted(self):
        registry = TemplateRegistry()
        registry.register("b", "")
        registry.register("a", "")

        assert registry.names() == ["a", "b"]

    def test_syntax_errors_at_registration(self):
        with pytest.raises(ParseError, match="Unclosed 'for' block"):
            TemplateRegistry().register("bad", "{{ for x in xs }}")

    def test_depth_limit_applies(self):
        registry = TemplateRegistry(max_depth=1)

        with pytest.raises(ParseDepthError):
            registry.register("deep", "{{if a}}{{if b}}{{endif}}{{endif}}")

    def test_replace_logs_debug(self, caplog):
        registry = TemplateRegistry()
        registry.register("t", "one")

        with caplog.at_level(logging.DEBUG, logger="stencil.runtime.templates"):
            registry.register("t", "two")

        assert "Template 't' replaces existing template" in caplog.text
        assert registry.get("t").nodes == (TextNode("two"),)
