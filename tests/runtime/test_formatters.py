"""Тесты встроенных форматтеров и реестра форматтеров."""

import logging

import pytest

from stencil.errors import FormatError
from stencil.runtime.formatters import (
    DEFAULT_FORMATTER, FormatterRegistry, create_default_registry, to_text,
)
from stencil.runtime.values import Absent, Scalar, to_value


@pytest.fixture
def registry():
    return create_default_registry()


def apply(registry, name, data, *args):
    return registry.get(name)(to_value(data), *args)


class TestToText:

    def test_scalars(self):
        assert to_text(Scalar("abc")) == "abc"
        assert to_text(Scalar(42)) == "42"
        assert to_text(Scalar(1.5)) == "1.5"

    def test_booleans(self):
        assert to_text(Scalar(True)) == "true"
        assert to_text(Scalar(False)) == "false"

    def test_absent(self):
        assert to_text(Absent) == ""

    def test_composites_fail(self):
        with pytest.raises(FormatError, match="Cannot format sequence as text"):
            to_text(to_value([1]))
        with pytest.raises(FormatError, match="Cannot format structure as text"):
            to_text(to_value({"a": 1}))


class TestBuiltinFormatters:

    def test_html_escapes(self, registry):
        assert apply(registry, "html", "<b>Tom & \"Jerry\"</b>") == '&lt;b&gt;Tom &amp; "Jerry"&lt;/b&gt;'

    def test_html_attr_escapes_quotes(self, registry):
        assert apply(registry, "html-attr", "a\"b'c") == "a&quot;b&#x27;c"

    def test_raw_and_str(self, registry):
        assert apply(registry, "raw", "<b>") == "<b>"
        assert apply(registry, "str", 7) == "7"

    def test_json(self, registry):
        assert apply(registry, "json", {"a": [1, "я", None]}) == '{"a": [1, "я", null]}'

    def test_url_param(self, registry):
        assert apply(registry, "url-param", "a b&c=d") == "a+b%26c%3Dd"

    def test_case_and_trim(self, registry):
        assert apply(registry, "upper", "abc") == "ABC"
        assert apply(registry, "lower", "ABC") == "abc"
        assert apply(registry, "trim", "  x  ") == "x"

    def test_length(self, registry):
        assert apply(registry, "length", [1, 2, 3]) == "3"
        assert apply(registry, "length", {"a": 1}) == "1"
        assert apply(registry, "length", "abcd") == "4"
        assert apply(registry, "length", None) == "0"

    def test_fallback(self, registry):
        assert apply(registry, "fallback", None, "n/a") == "n/a"
        assert apply(registry, "fallback", "", "n/a") == "n/a"
        assert apply(registry, "fallback", False, "n/a") == "n/a"
        assert apply(registry, "fallback", 0, "n/a") == "0"
        assert apply(registry, "fallback", "value", "n/a") == "value"

    def test_join(self, registry):
        assert apply(registry, "join", ["a", "b", "c"]) == "a, b, c"
        assert apply(registry, "join", [1, 2], "-") == "1-2"

    def test_join_requires_sequence(self, registry):
        with pytest.raises(FormatError, match="join expects a sequence, got scalar"):
            apply(registry, "join", "abc")

    def test_pluralize(self, registry):
        assert apply(registry, "pluralize", 1, "item", "items") == "item"
        assert apply(registry, "pluralize", 3, "item", "items") == "items"
        assert apply(registry, "pluralize", 0) == "s"
        assert apply(registry, "pluralize", ["x"], "", "s") == ""

    def test_pluralize_requires_number(self, registry):
        with pytest.raises(FormatError, match="pluralize expects a number"):
            apply(registry, "pluralize", "many")


class TestFormatterRegistry:

    def test_default_escapes_html(self):
        registry = create_default_registry("html")

        assert apply(registry, DEFAULT_FORMATTER, "<i>") == "&lt;i&gt;"

    def test_default_without_escaping(self):
        registry = create_default_registry("none")

        assert apply(registry, DEFAULT_FORMATTER, "<i>") == "<i>"

    def test_unknown_autoescape_mode(self):
        with pytest.raises(ValueError, match="Unknown autoescape mode 'xml'"):
            create_default_registry("xml")

    def test_builtin_names(self, registry):
        names = registry.names()

        assert names == sorted(names)
        for name in ("default", "html", "raw", "json", "url-param", "fallback", "join", "pluralize"):
            assert name in registry

    def test_register_and_get(self):
        registry = FormatterRegistry()
        registry.register("shout", lambda value: value.to_python().upper() + "!")

        assert "shout" in registry
        assert registry.get("shout")(Scalar("hi")) == "HI!"
        assert registry.get("missing") is None

    def test_register_not_callable(self):
        with pytest.raises(TypeError, match="Formatter 'x' must be callable"):
            FormatterRegistry().register("x", "not a function")

    def test_overwrite_logs_warning(self, caplog):
        registry = FormatterRegistry()
        registry.register("x", lambda value: "1")

        with caplog.at_level(logging.WARNING, logger="stencil.runtime.formatters"):
            registry.register("x", lambda value: "2")

        assert "Formatter 'x' overwrites existing formatter" in caplog.text
        assert registry.get("x")(Absent) == "2"

    def test_copy_is_independent(self, registry):
        copy = registry.copy()
        copy.register("extra", lambda value: "")

        assert "extra" in copy
        assert "extra" not in registry
