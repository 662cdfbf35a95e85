"""
stencil: небольшой шаблонизатор.

Компилирует текст с директивами {{ ... }} в неизменяемое дерево и
рендерит его для переданных данных.
"""

from __future__ import annotations

from .config import EngineConfig, load_config
from .engine import TemplateEngine, compile, render
from .errors import (
    StencilError, LexError, ParseError, ParseDepthError, FormatError, ConfigError,
    RenderError, RenderErrorKind, PathNotFoundError, TypeMismatchError,
    UnknownFormatterError, UnknownTemplateError, DepthExceededError, FormatFailedError,
)
from .runtime.formatters import FormatterRegistry, create_default_registry
from .runtime.templates import TemplateRegistry
from .runtime.values import Absent, Scalar, Sequence, Structure, Value, ValueKind, to_value
from .syntax.nodes import Template

__version__ = "0.1.0"

__all__ = [
    "compile",
    "render",
    "TemplateEngine",
    "EngineConfig",
    "load_config",
    "Template",
    "TemplateRegistry",
    "FormatterRegistry",
    "create_default_registry",
    "Value",
    "ValueKind",
    "Scalar",
    "Sequence",
    "Structure",
    "Absent",
    "to_value",
    "StencilError",
    "LexError",
    "ParseError",
    "ParseDepthError",
    "FormatError",
    "ConfigError",
    "RenderError",
    "RenderErrorKind",
    "PathNotFoundError",
    "TypeMismatchError",
    "UnknownFormatterError",
    "UnknownTemplateError",
    "DepthExceededError",
    "FormatFailedError",
]
