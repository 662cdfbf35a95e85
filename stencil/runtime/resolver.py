"""
Разрешение путей.

Путь разрешается строго слева направо и останавливается на первом
сегменте, который невозможно применить.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .context import RenderContext
from .values import Value, ValueKind
from ..syntax.nodes import Path


class PathResolutionError(Exception):
    """
    Путь не разрешается в текущем контексте.

    Рендерер превращает эту ошибку в PathNotFoundError с позицией узла.
    """

    def __init__(self, path: Path, segment: str, resolved: str, reason: str):
        super().__init__(reason)
        self.path = path
        self.segment = segment
        self.resolved = resolved
        self.reason = reason


def resolve_path(path: Path, ctx: RenderContext) -> Value:
    """
    Разрешает путь в значение.

    Первый сегмент ищется в стеке областей видимости; если имя не связано
    (или путь начинается с @), сегменты применяются к текущему значению.

    Raises:
        PathResolutionError: Если какой-либо сегмент не разрешается
    """
    value, remaining, resolved = _start(path, ctx)

    for segment in remaining:
        value = _step(path, value, segment, resolved)
        resolved = f"{resolved}.{segment}" if resolved else segment

    return value


def _start(path: Path, ctx: RenderContext) -> Tuple[Value, Tuple[str, ...], str]:
    """Определяет начальное значение и оставшиеся сегменты."""
    name = path.root_name
    if name is not None:
        bound = ctx.lookup(name)
        if bound is not None:
            return bound, path.segments[1:], name
    return ctx.current, path.segments, "@"


def _step(path: Path, value: Value, segment: str, resolved: str) -> Value:
    """Применяет один сегмент к значению."""
    kind = value.get_kind()

    if kind == ValueKind.STRUCTURE:
        child: Optional[Value] = value.get(segment)
        if child is None:
            raise PathResolutionError(path, segment, resolved, f"field '{segment}' not found")
        return child

    if kind == ValueKind.SEQUENCE:
        if not segment.isdigit():
            raise PathResolutionError(
                path, segment, resolved, f"'{segment}' is not a valid sequence index"
            )
        child = value.get(int(segment))
        if child is None:
            raise PathResolutionError(
                path, segment, resolved, f"index {segment} out of range (length {len(value)})"
            )
        return child

    if kind == ValueKind.SCALAR:
        raise PathResolutionError(path, segment, resolved, f"cannot access '{segment}' on a scalar")

    if kind == ValueKind.ABSENT:
        raise PathResolutionError(path, segment, resolved, f"cannot access '{segment}' on an absent value")

    raise TypeError(f"Unknown value kind: {kind}")


__all__ = ["resolve_path", "PathResolutionError"]
