"""
Рендерер скомпилированных шаблонов.

Обходит AST в глубину и дописывает результат в общий буфер.
Подстановки разрешают пути через резолвер и превращают значения
в текст через реестр форматтеров; вызовы подшаблонов берут шаблоны
из внешнего реестра.
"""

from __future__ import annotations

import inspect
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .context import RenderContext
from .formatters import Formatter, FormatterRegistry, create_default_registry
from .resolver import PathResolutionError, resolve_path
from .templates import TemplateRegistry
from .values import Absent, Scalar, Value, ValueKind, to_value
from ..config import EngineConfig
from ..errors import (
    RenderError, PathNotFoundError, TypeMismatchError, UnknownFormatterError,
    UnknownTemplateError, DepthExceededError, FormatFailedError, FormatError,
)
from ..syntax.nodes import (
    Literal, Path, Template, TemplateNode, TextNode, CommentNode, ValueNode,
    IfNode, ForNode, WithNode, CallNode,
)

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """
    Основной рендерер шаблонов.

    Не хранит состояния между вызовами render(): контекст создается
    заново на каждый вызов, поэтому один рендерер и один шаблон можно
    использовать из нескольких потоков, если реестры не меняются.
    """

    def __init__(
            self,
            formatters: Optional[FormatterRegistry] = None,
            templates: Optional[TemplateRegistry] = None,
            config: Optional[EngineConfig] = None,
    ):
        """
        Args:
            formatters: Реестр форматтеров (по умолчанию встроенный)
            templates: Реестр подшаблонов для {{ call }}
            config: Настройки движка
        """
        self.config = config or EngineConfig()
        self.formatters = formatters or create_default_registry(self.config.autoescape)
        self.templates = templates

    def render(self, template: Template, root: Any) -> str:
        """
        Рендерит шаблон для корневого значения.

        Args:
            template: Скомпилированный шаблон
            root: Value или обычные данные Python (см. to_value)

        Returns:
            Отрендеренный текст

        Raises:
            RenderError: При ошибке рендеринга; partial_output содержит
                         текст, собранный до ошибки
        """
        ctx = RenderContext(to_value(root), self.config.max_depth)
        out: List[str] = []

        try:
            self._render_nodes(template.nodes, ctx, out, template.name)
        except RenderError as e:
            e.partial_output = "".join(out)
            raise

        logger.debug(f"Rendered template '{template.name}' -> {len(out)} chunks")
        return "".join(out)

    # ======= Внутренние методы =======

    def _render_nodes(self, nodes: Tuple[TemplateNode, ...], ctx: RenderContext,
                      out: List[str], name: str) -> None:
        for node in nodes:
            self._render_node(node, ctx, out, name)

    def _render_node(self, node: TemplateNode, ctx: RenderContext, out: List[str], name: str) -> None:
        """Рендерит один узел AST."""
        if isinstance(node, TextNode):
            out.append(node.text)
        elif isinstance(node, ValueNode):
            out.append(self._render_value(node, ctx, name))
        elif isinstance(node, IfNode):
            self._render_if(node, ctx, out, name)
        elif isinstance(node, ForNode):
            self._render_for(node, ctx, out, name)
        elif isinstance(node, WithNode):
            self._render_with(node, ctx, out, name)
        elif isinstance(node, CallNode):
            self._render_call(node, ctx, out, name)
        elif isinstance(node, CommentNode):
            pass
        else:
            raise TypeError(f"Unknown node type: {type(node).__name__}")

    def _render_value(self, node: ValueNode, ctx: RenderContext, name: str) -> str:
        """Разрешает путь и применяет явный форматтер или форматтер по умолчанию."""
        value = self._resolve(node.path, ctx, node, name)

        if node.formatter is not None:
            formatter_name, args = node.formatter.name, node.formatter.args
        else:
            formatter_name, args = self.config.default_formatter, ()

        func = self.formatters.get(formatter_name)
        if func is None:
            raise UnknownFormatterError(formatter_name, node.position, name)

        self._check_arguments(func, value, args, formatter_name, node, name)
        try:
            text = func(value, *args)
        except FormatError as e:
            raise FormatFailedError(
                f"Formatter '{formatter_name}' failed for '{node.path}': {e}", node.position, name
            ) from e

        if not isinstance(text, str):
            raise FormatFailedError(
                f"Formatter '{formatter_name}' returned {type(text).__name__}, expected str",
                node.position, name
            )
        return text

    def _render_if(self, node: IfNode, ctx: RenderContext, out: List[str], name: str) -> None:
        """
        Рендерит условие вместе с цепочкой else if.

        Цепочка обходится циклом и учитывается в глубине один раз.
        """
        with self._block(node, ctx, name):
            branch = self._select_branch(node, ctx, name)
            if branch:
                self._render_nodes(branch, ctx, out, name)

    def _select_branch(self, node: IfNode, ctx: RenderContext,
                       name: str) -> Optional[Tuple[TemplateNode, ...]]:
        while True:
            condition = self._resolve_condition(node.condition, ctx, node, name)
            if condition.is_truthy():
                return node.body
            chained = node.else_body
            if chained is not None and len(chained) == 1 and isinstance(chained[0], IfNode):
                node = chained[0]
                continue
            return chained

    def _render_for(self, node: ForNode, ctx: RenderContext, out: List[str], name: str) -> None:
        with self._block(node, ctx, name):
            source = self._resolve(node.source, ctx, node, name)
            if source.get_kind() != ValueKind.SEQUENCE:
                raise TypeMismatchError(
                    f"Cannot iterate over '{node.source}': expected sequence, "
                    f"got {source.get_kind().value}",
                    node.position, name
                )

            for index, item in enumerate(source):
                bindings: Dict[str, Value] = {node.var: item}
                if node.index_var:
                    bindings[node.index_var] = Scalar(index)
                with ctx.scope(bindings):
                    self._render_nodes(node.body, ctx, out, name)

    def _render_with(self, node: WithNode, ctx: RenderContext, out: List[str], name: str) -> None:
        with self._block(node, ctx, name):
            value = self._resolve(node.source, ctx, node, name)
            with ctx.scope({node.name: value}):
                self._render_nodes(node.body, ctx, out, name)

    def _render_call(self, node: CallNode, ctx: RenderContext, out: List[str], name: str) -> None:
        """
        Рендерит подшаблон в свежем контексте.

        Текущим значением подшаблона становится значение пути из with
        (или текущее значение вызывающего), именованные аргументы
        связываются в нижней области видимости.
        """
        with self._block(node, ctx, name):
            template = self.templates.get(node.template_name) if self.templates is not None else None
            if template is None:
                raise UnknownTemplateError(node.template_name, node.position, name)

            root = self._resolve(node.root, ctx, node, name) if node.root is not None else ctx.current
            args = {key: self._resolve(path, ctx, node, name) for key, path in node.args}

            self._render_nodes(template.nodes, ctx.child(root, args), out, template.name)

    # ======= Вспомогательные методы =======

    @staticmethod
    def _check_arguments(func: Formatter, value: Value, args: Tuple[Literal, ...],
                         formatter_name: str, node: ValueNode, name: str) -> None:
        """Проверяет, что форматтер принимает переданные шаблоном аргументы."""
        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            # У некоторых встроенных вызываемых объектов нет сигнатуры
            return
        try:
            signature.bind(value, *args)
        except TypeError as e:
            raise FormatFailedError(
                f"Formatter '{formatter_name}' does not accept {len(args)} argument(s): {e}",
                node.position, name
            ) from e

    @contextmanager
    def _block(self, node: TemplateNode, ctx: RenderContext, name: str) -> Iterator[None]:
        """Учитывает глубину рендеринга для блоков и вызовов."""
        if not ctx.enter():
            raise DepthExceededError(
                f"Render depth exceeds maximum of {ctx.depth.limit}", node.position, name
            )
        try:
            yield
        finally:
            ctx.leave()

    def _resolve(self, path: Path, ctx: RenderContext, node: TemplateNode, name: str) -> Value:
        try:
            return resolve_path(path, ctx)
        except PathResolutionError as e:
            raise PathNotFoundError(
                f"Path '{path}' not found: {e.reason}", node.position, name
            ) from e

    def _resolve_condition(self, path: Path, ctx: RenderContext, node: TemplateNode, name: str) -> Value:
        """В нестрогом режиме неразрешимый путь условия считается Absent."""
        if self.config.strict_conditions:
            return self._resolve(path, ctx, node, name)
        try:
            return resolve_path(path, ctx)
        except PathResolutionError:
            return Absent


__all__ = ["TemplateRenderer"]
