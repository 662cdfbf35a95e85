"""
Реестр форматтеров.

Форматтер: именованная чистая функция, превращающая значение в текст
в момент подстановки: func(value, *args) -> str. Реестр передается
рендереру явно и во время рендеринга только читается.
"""

from __future__ import annotations

import html
import json
import logging
from typing import Callable, Dict, List, Optional
from urllib.parse import quote_plus

from .values import Value, ValueKind
from ..errors import FormatError

logger = logging.getLogger(__name__)

Formatter = Callable[..., str]

# Зарезервированное имя форматтера по умолчанию
DEFAULT_FORMATTER = "default"

AUTOESCAPE_MODES = ("html", "none")


def to_text(value: Value) -> str:
    """
    Базовое текстовое представление значения.

    Булевы значения выводятся как true/false, Absent как пустая строка.

    Raises:
        FormatError: Для Sequence и Structure
    """
    kind = value.get_kind()

    if kind == ValueKind.ABSENT:
        return ""
    if kind == ValueKind.SCALAR:
        data = value.to_python()
        if isinstance(data, bool):
            return "true" if data else "false"
        return str(data)
    raise FormatError(f"Cannot format {kind.value} as text")


# ---- Встроенные форматтеры ----

def format_str(value: Value) -> str:
    return to_text(value)


def format_html(value: Value) -> str:
    return html.escape(to_text(value), quote=False)


def format_html_attr(value: Value) -> str:
    return html.escape(to_text(value), quote=True)


def format_json(value: Value) -> str:
    return json.dumps(value.to_python(), ensure_ascii=False)


def format_url_param(value: Value) -> str:
    return quote_plus(to_text(value))


def format_upper(value: Value) -> str:
    return to_text(value).upper()


def format_lower(value: Value) -> str:
    return to_text(value).lower()


def format_trim(value: Value) -> str:
    return to_text(value).strip()


def format_length(value: Value) -> str:
    kind = value.get_kind()
    if kind in (ValueKind.SEQUENCE, ValueKind.STRUCTURE):
        return str(len(value))
    if kind == ValueKind.ABSENT:
        return "0"
    return str(len(to_text(value)))


def format_fallback(value: Value, fallback: str = "") -> str:
    """Подставляет fallback для ложных значений и пустой строки."""
    if not value.is_truthy() or to_text(value) == "":
        return str(fallback)
    return to_text(value)


def format_join(value: Value, separator: str = ", ") -> str:
    if value.get_kind() != ValueKind.SEQUENCE:
        raise FormatError(f"join expects a sequence, got {value.get_kind().value}")
    return str(separator).join(to_text(item) for item in value)


def format_pluralize(value: Value, singular: str = "", plural: str = "s") -> str:
    """Выбирает singular или plural по числу (или длине последовательности)."""
    kind = value.get_kind()
    if kind == ValueKind.SEQUENCE:
        count = len(value)
    else:
        data = value.to_python()
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            raise FormatError(f"pluralize expects a number, got {kind.value}")
        count = data
    return str(singular) if count == 1 else str(plural)


_BUILTIN_FORMATTERS: Dict[str, Formatter] = {
    "str": format_str,
    "raw": format_str,
    "html": format_html,
    "html-attr": format_html_attr,
    "json": format_json,
    "url-param": format_url_param,
    "upper": format_upper,
    "lower": format_lower,
    "trim": format_trim,
    "length": format_length,
    "fallback": format_fallback,
    "join": format_join,
    "pluralize": format_pluralize,
}


class FormatterRegistry:
    """
    Отображение имен форматтеров в функции.

    Повторная регистрация имени перезаписывает предыдущую функцию.
    """

    def __init__(self, formatters: Optional[Dict[str, Formatter]] = None):
        self._formatters: Dict[str, Formatter] = dict(formatters or {})

    def register(self, name: str, func: Formatter) -> None:
        """
        Регистрирует форматтер.

        Args:
            name: Имя, по которому форматтер вызывается из шаблона
            func: Функция func(value, *args) -> str
        """
        if not callable(func):
            raise TypeError(f"Formatter '{name}' must be callable")
        if name in self._formatters:
            logger.warning(f"Formatter '{name}' overwrites existing formatter")
        self._formatters[name] = func

    def get(self, name: str) -> Optional[Formatter]:
        """Возвращает форматтер или None, если имя не зарегистрировано."""
        return self._formatters.get(name)

    def names(self) -> List[str]:
        return sorted(self._formatters)

    def copy(self) -> FormatterRegistry:
        return FormatterRegistry(self._formatters)

    def __contains__(self, name: str) -> bool:
        return name in self._formatters


def create_default_registry(autoescape: str = "html") -> FormatterRegistry:
    """
    Создает реестр со встроенными форматтерами.

    Args:
        autoescape: "html": форматтер по умолчанию экранирует HTML,
                    "none": выводит текст как есть

    Raises:
        ValueError: При неизвестном режиме экранирования
    """
    if autoescape not in AUTOESCAPE_MODES:
        raise ValueError(
            f"Unknown autoescape mode '{autoescape}'. "
            f"Available modes: {', '.join(AUTOESCAPE_MODES)}"
        )

    registry = FormatterRegistry(_BUILTIN_FORMATTERS)
    registry.register(DEFAULT_FORMATTER, format_html if autoescape == "html" else format_str)
    return registry


__all__ = [
    "Formatter",
    "DEFAULT_FORMATTER",
    "FormatterRegistry",
    "create_default_registry",
    "to_text",
]
