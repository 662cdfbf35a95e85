"""
Движок шаблонизации.

Публичный API, объединяющий компилятор, реестры и рендерер
в удобный интерфейс.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .config import EngineConfig, load_config
from .runtime.formatters import Formatter, FormatterRegistry, create_default_registry
from .runtime.renderer import TemplateRenderer
from .runtime.templates import TemplateRegistry
from .syntax.nodes import Template
from .syntax.parser import parse_template

logger = logging.getLogger(__name__)


def compile(source: str, name: str = "<string>", *, config: Optional[EngineConfig] = None) -> Template:
    """
    Компилирует текст шаблона.

    Raises:
        LexError: При ошибке лексического анализа
        ParseError: При ошибке синтаксического анализа
    """
    cfg = config or EngineConfig()
    return parse_template(source, name=name, max_depth=cfg.max_depth)


def render(
        template: Template,
        root: Any,
        formatters: Optional[FormatterRegistry] = None,
        templates: Optional[TemplateRegistry] = None,
        *,
        config: Optional[EngineConfig] = None,
) -> str:
    """
    Рендерит скомпилированный шаблон.

    Raises:
        RenderError: При ошибке рендеринга
    """
    return TemplateRenderer(formatters, templates, config).render(template, root)


class TemplateEngine:
    """
    Движок с собственными реестрами форматтеров и подшаблонов.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.formatters = create_default_registry(self.config.autoescape)
        self.templates = TemplateRegistry(max_depth=self.config.max_depth)
        self.renderer = TemplateRenderer(self.formatters, self.templates, self.config)

        # Кэш компиляции строк: (имя, текст) -> шаблон
        self._compile_cache: Dict[Tuple[str, str], Template] = {}

        for name, source in self.config.templates.items():
            self.add_template(name, source)
        if self.config.templates:
            logger.debug(f"Registered {len(self.config.templates)} templates from config")

    @classmethod
    def from_config_file(cls, path: Path) -> TemplateEngine:
        """Создает движок по YAML-конфигурации, включая ее подшаблоны."""
        return cls(load_config(path))

    def compile(self, source: str, name: str = "<string>") -> Template:
        """Компилирует шаблон с кэшированием по имени и тексту."""
        key = (name, source)
        if key not in self._compile_cache:
            self._compile_cache[key] = compile(source, name, config=self.config)
        return self._compile_cache[key]

    def add_template(self, name: str, source: Union[Template, str]) -> Template:
        """Регистрирует подшаблон для {{ call name }}."""
        if isinstance(source, str):
            source = self.compile(source, name)
        return self.templates.register(name, source)

    def register_formatter(self, name: str, func: Formatter) -> None:
        self.formatters.register(name, func)

    def render(self, template: Union[Template, str], root: Any) -> str:
        """
        Рендерит шаблон.

        Args:
            template: Скомпилированный шаблон или имя зарегистрированного подшаблона
            root: Value или обычные данные Python

        Raises:
            KeyError: Если шаблон с таким именем не зарегистрирован
            RenderError: При ошибке рендеринга
        """
        if isinstance(template, str):
            registered = self.templates.get(template)
            if registered is None:
                raise KeyError(f"Template '{template}' is not registered")
            template = registered
        return self.renderer.render(template, root)

    def render_string(self, source: str, root: Any, name: str = "<string>") -> str:
        """Компилирует (с кэшем) и рендерит шаблон из текста."""
        return self.renderer.render(self.compile(source, name), root)


__all__ = ["compile", "render", "TemplateEngine"]
