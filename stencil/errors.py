"""
Иерархия ошибок шаблонизатора.

Ошибки, которые может исправить автор шаблона или встраивающее
приложение (битый шаблон, отсутствующие данные, неизвестный форматтер,
некорректная конфигурация), наследуются от StencilError и несут
структурированные атрибуты, а не только сообщение.

Ошибки программирования от StencilError не наследуются.
"""

from __future__ import annotations

import enum
from typing import Optional

from .syntax.tokens import SourcePosition


class StencilError(Exception):
    """
    Базовый класс пользовательских ошибок stencil.
    """
    pass


class LexError(StencilError):
    """Ошибка лексического анализа."""

    def __init__(self, position: SourcePosition, reason: str):
        super().__init__(f"{reason} at {position.line}:{position.column}")
        self.position = position
        self.reason = reason


class ParseError(StencilError):
    """Ошибка синтаксического анализа."""

    def __init__(self, position: SourcePosition, expected: str, found: str, message: str = ""):
        text = message or f"Expected {expected}, found {found}"
        super().__init__(f"{text} at {position.line}:{position.column}")
        self.position = position
        self.expected = expected
        self.found = found
        self.message = text


class ParseDepthError(ParseError):
    """Превышена допустимая глубина вложенности блоков."""
    pass


class FormatError(StencilError):
    """Ошибка, которую может выбросить функция-форматтер."""
    pass


class ConfigError(StencilError):
    """Некорректный файл конфигурации."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class RenderErrorKind(enum.Enum):
    """Виды ошибок рендеринга."""
    PATH_NOT_FOUND = "path_not_found"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN_FORMATTER = "unknown_formatter"
    UNKNOWN_TEMPLATE = "unknown_template"
    DEPTH_EXCEEDED = "depth_exceeded"
    FORMAT_FAILED = "format_failed"


class RenderError(StencilError):
    """
    Ошибка рендеринга скомпилированного шаблона.

    Attributes:
        kind: Вид ошибки
        position: Позиция узла, на котором произошла ошибка
        detail: Человекочитаемое пояснение
        template_name: Имя шаблона, в котором находится узел
        partial_output: Текст, собранный до момента ошибки (заполняется рендерером)
    """

    kind: RenderErrorKind = RenderErrorKind.PATH_NOT_FOUND

    def __init__(self, detail: str, position: SourcePosition, template_name: str = ""):
        where = f"{template_name}:" if template_name else ""
        super().__init__(f"{detail} at {where}{position.line}:{position.column}")
        self.detail = detail
        self.position = position
        self.template_name = template_name
        self.partial_output: Optional[str] = None


class PathNotFoundError(RenderError):
    kind = RenderErrorKind.PATH_NOT_FOUND


class TypeMismatchError(RenderError):
    kind = RenderErrorKind.TYPE_MISMATCH


class UnknownFormatterError(RenderError):
    kind = RenderErrorKind.UNKNOWN_FORMATTER

    def __init__(self, formatter_name: str, position: SourcePosition, template_name: str = ""):
        super().__init__(f"Unknown formatter '{formatter_name}'", position, template_name)
        self.formatter_name = formatter_name


class UnknownTemplateError(RenderError):
    kind = RenderErrorKind.UNKNOWN_TEMPLATE

    def __init__(self, template_ref: str, position: SourcePosition, template_name: str = ""):
        super().__init__(f"Unknown template '{template_ref}'", position, template_name)
        self.template_ref = template_ref


class DepthExceededError(RenderError):
    kind = RenderErrorKind.DEPTH_EXCEEDED


class FormatFailedError(RenderError):
    kind = RenderErrorKind.FORMAT_FAILED


__all__ = [
    "StencilError",
    "LexError",
    "ParseError",
    "ParseDepthError",
    "FormatError",
    "ConfigError",
    "RenderErrorKind",
    "RenderError",
    "PathNotFoundError",
    "TypeMismatchError",
    "UnknownFormatterError",
    "UnknownTemplateError",
    "DepthExceededError",
    "FormatFailedError",
]
