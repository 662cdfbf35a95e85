"""
Контекст рендеринга.

Хранит стек областей видимости (связанных имен), текущее значение
для несвязанных путей и счетчик глубины, общий для вложенных вызовов
подшаблонов. Создается заново на каждый вызов render() и не
разделяется между потоками.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .values import Value


@dataclass
class DepthCounter:
    """Счетчик глубины рендеринга, общий для контекста и его подшаблонов."""
    limit: int
    current: int = 0


class RenderContext:
    """
    Контекст рендеринга с лексическими областями видимости.

    Области добавляются при входе в {{ for }} (на каждую итерацию)
    и {{ with }} и снимаются при выходе из блока строго в порядке LIFO.
    """

    def __init__(self, current: Value, max_depth: int, depth: Optional[DepthCounter] = None):
        """
        Args:
            current: Текущее значение (корень рендеринга или корень вызова подшаблона)
            max_depth: Предел глубины, если счетчик не передан
            depth: Счетчик глубины вызывающего контекста
        """
        self.current = current
        self.scopes: List[Dict[str, Value]] = []
        self.depth = depth if depth is not None else DepthCounter(limit=max_depth)

    def lookup(self, name: str) -> Optional[Value]:
        """Ищет имя от внутренней области к внешней. Первое совпадение выигрывает."""
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        return None

    def push_scope(self, bindings: Dict[str, Value]) -> None:
        self.scopes.append(dict(bindings))

    def pop_scope(self) -> None:
        if not self.scopes:
            raise RuntimeError("No scope to exit (scope stack is empty)")
        self.scopes.pop()

    @contextmanager
    def scope(self, bindings: Dict[str, Value]) -> Iterator[None]:
        """Область видимости на время выполнения блока."""
        self.push_scope(bindings)
        try:
            yield
        finally:
            self.pop_scope()

    def child(self, current: Value, bindings: Dict[str, Value]) -> RenderContext:
        """
        Создает свежий контекст для подшаблона.

        Внешние привязки не видны, счетчик глубины общий.
        """
        ctx = RenderContext(current, self.depth.limit, depth=self.depth)
        if bindings:
            ctx.push_scope(bindings)
        return ctx

    def enter(self) -> bool:
        """
        Увеличивает глубину.

        Returns:
            False, если предел глубины превышен (глубина при этом не меняется)
        """
        if self.depth.current >= self.depth.limit:
            return False
        self.depth.current += 1
        return True

    def leave(self) -> None:
        self.depth.current -= 1


__all__ = ["RenderContext", "DepthCounter"]
