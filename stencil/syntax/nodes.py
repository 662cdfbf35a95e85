"""
AST-узлы шаблона.

Определяет иерархию неизменяемых классов узлов для представления
структуры скомпилированного шаблона. Тела блоков хранятся кортежами,
поэтому два результата компиляции одного текста равны структурно.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .tokens import SourcePosition

CURRENT_VALUE = "@"


@dataclass(frozen=True)
class Path:
    """
    Путь к значению: a.b.0.c или @.a.b

    Первый сегмент сначала ищется среди связанных переменных,
    затем как поле текущего значения. Путь с is_current=True
    всегда начинается от текущего значения.
    """
    segments: Tuple[str, ...]
    is_current: bool = False

    @property
    def root_name(self) -> Optional[str]:
        """Имя, которое ищется в стеке переменных, или None."""
        if self.is_current or not self.segments:
            return None
        return self.segments[0]

    def __str__(self) -> str:
        parts = ([CURRENT_VALUE] if self.is_current else []) + list(self.segments)
        return ".".join(parts)


# Аргумент форматтера: строковый или целочисленный литерал
Literal = Union[str, int]


@dataclass(frozen=True)
class FormatterCall:
    """Вызов форматтера: | name arg1 arg2"""
    name: str
    args: Tuple[Literal, ...] = ()


@dataclass(frozen=True)
class TemplateNode:
    """Базовый класс для всех узлов AST шаблона."""
    position: SourcePosition = field(default=SourcePosition(0, 1, 1), compare=False, kw_only=True)


@dataclass(frozen=True)
class TextNode(TemplateNode):
    """
    Обычный текстовый контент в шаблоне.

    Выводится в результат как есть.
    """
    text: str


@dataclass(frozen=True)
class CommentNode(TemplateNode):
    """Комментарий {{# ... }}. Ничего не выводит."""
    text: str


@dataclass(frozen=True)
class ValueNode(TemplateNode):
    """Подстановка значения: {{ path | formatter }}"""
    path: Path
    formatter: Optional[FormatterCall] = None


@dataclass(frozen=True)
class IfNode(TemplateNode):
    """
    Условный блок {{ if path }} ... {{ else }} ... {{ endif }}

    Цепочка {{ else if other }} представлена вложенным IfNode,
    который является единственным элементом else_body.
    """
    condition: Path
    body: Tuple[TemplateNode, ...]
    else_body: Optional[Tuple[TemplateNode, ...]] = None


@dataclass(frozen=True)
class ForNode(TemplateNode):
    """Цикл {{ for item, i in path }} ... {{ endfor }}"""
    var: str
    source: Path
    body: Tuple[TemplateNode, ...]
    index_var: Optional[str] = None


@dataclass(frozen=True)
class WithNode(TemplateNode):
    """Связывание {{ with path as name }} ... {{ endwith }}"""
    name: str
    source: Path
    body: Tuple[TemplateNode, ...]


@dataclass(frozen=True)
class CallNode(TemplateNode):
    """Вызов подшаблона {{ call name with path, key=path }}"""
    template_name: str
    root: Optional[Path] = None
    args: Tuple[Tuple[str, Path], ...] = ()


@dataclass(frozen=True)
class Template:
    """
    Скомпилированный шаблон.

    Неизменяем и может рендериться многократно, в том числе параллельно.
    """
    nodes: Tuple[TemplateNode, ...]
    name: str = field(default="<string>", compare=False)

    def __iter__(self):
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)


__all__ = [
    "CURRENT_VALUE",
    "Path",
    "Literal",
    "FormatterCall",
    "TemplateNode",
    "TextNode",
    "CommentNode",
    "ValueNode",
    "IfNode",
    "ForNode",
    "WithNode",
    "CallNode",
    "Template",
]
