"""
Реестр подшаблонов для директивы {{ call }}.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from ..syntax.nodes import Template
from ..syntax.parser import DEFAULT_MAX_DEPTH, parse_template

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """
    Именованные скомпилированные шаблоны, доступные для {{ call name }}.

    Исходный текст компилируется при регистрации, поэтому синтаксические
    ошибки подшаблона обнаруживаются сразу, а не во время рендеринга.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth
        self._templates: Dict[str, Template] = {}

    def register(self, name: str, template: Union[Template, str]) -> Template:
        """
        Регистрирует подшаблон.

        Args:
            name: Имя для {{ call name }}
            template: Скомпилированный шаблон или его исходный текст

        Returns:
            Зарегистрированный скомпилированный шаблон

        Raises:
            LexError, ParseError: Если исходный текст не компилируется
        """
        if isinstance(template, str):
            template = parse_template(template, name=name, max_depth=self.max_depth)
        if name in self._templates:
            logger.debug(f"Template '{name}' replaces existing template")
        self._templates[name] = template
        return template

    def get(self, name: str) -> Optional[Template]:
        return self._templates.get(name)

    def names(self) -> List[str]:
        return sorted(self._templates)

    def __contains__(self, name: str) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)


__all__ = ["TemplateRegistry"]
