"""
Парсер шаблонов.

Преобразует последовательность токенов в AST методом рекурсивного спуска.
Блочные директивы (if/for/with) разбираются рекурсивно до своего
закрывающего ключевого слова, поэтому вложенный {{ if }}...{{ endif }}
никогда не закрывает внешний блок.

Грамматика содержимого директивы:
directive := "if" path
           | "else" ["if" path]
           | "endif" | "endfor" | "endwith"
           | "for" IDENT ["," IDENT] "in" path
           | "with" path "as" IDENT
           | "call" name ["with" path] ("," IDENT "=" path)*
           | path ["|" IDENT literal*]
path      := ("@" | IDENT) ("." (IDENT | INTEGER))*
name      := STRING | IDENT ("." IDENT)*
literal   := STRING | INTEGER
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Tuple

from .lexer import TemplateLexer
from .nodes import (
    Path, FormatterCall, Literal, TemplateNode, TextNode, CommentNode, ValueNode,
    IfNode, ForNode, WithNode, CallNode, Template,
)
from .tokens import KEYWORDS, SourcePosition, Token, TokenType
from ..errors import ParseError, ParseDepthError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

_KEYWORD_TYPES = frozenset(KEYWORDS.values())

# Ключевые слова, которые закрывают блок и не могут начинать директиву
_CLOSING_KEYWORDS = frozenset({
    TokenType.ELSE, TokenType.ENDIF, TokenType.ENDFOR, TokenType.ENDWITH,
})

# Ключевые слова, закрывающие каждый вид блока
_BLOCK_CLOSERS = {
    "if": frozenset({TokenType.ELSE, TokenType.ENDIF}),
    "for": frozenset({TokenType.ENDFOR}),
    "with": frozenset({TokenType.ENDWITH}),
}


class TemplateParser:
    """
    Рекурсивный парсер для шаблонов.

    Принимает любую последовательность токенов (в том числе ленивый
    генератор лексера) и читает ее с заглядыванием вперед на два токена.
    """

    def __init__(self, tokens: Iterable[Token], name: str = "<string>",
                 max_depth: int = DEFAULT_MAX_DEPTH):
        self.name = name
        self.max_depth = max_depth
        self._tokens: Iterator[Token] = iter(tokens)
        self._buffer: List[Token] = []
        self._last_position = SourcePosition(0, 1, 1)
        # Открытые блоки: (токен {{, ключевое слово, закрывающее слово)
        self._blocks: List[Tuple[Token, str, str]] = []
        # Установлен после -}}: следующий текст обрезается слева
        self._trim_next_text = False

    def parse(self) -> Template:
        """
        Парсит всю последовательность токенов в шаблон.

        Raises:
            ParseError: При ошибке синтаксического анализа
            LexError: При ошибке лексического анализа (из ленивого лексера)
        """
        nodes, _ = self._parse_nodes(closers=frozenset(), expected="text or directive")
        return Template(nodes=tuple(nodes), name=self.name)

    def _parse_nodes(self, closers: frozenset, expected: str) -> Tuple[List[TemplateNode], Optional[Token]]:
        """
        Парсит узлы до директивы с одним из закрывающих ключевых слов.

        Returns:
            Список узлов и токен найденного закрывающего ключевого слова
            (уже потребленный вместе с {{) или None, если достигнут конец
        """
        nodes: List[TemplateNode] = []

        while True:
            current = self._current()

            if current.type == TokenType.EOF:
                return nodes, None

            if current.type == TokenType.TEXT:
                node = self._parse_text()
                if node:
                    nodes.append(node)
                continue

            if current.type != TokenType.OPEN:
                raise ParseError(current.position, expected, current.describe())

            keyword = self._peek(1)
            if keyword.type in closers:
                self._consume_open()
                return nodes, self._advance()

            if keyword.type in _CLOSING_KEYWORDS:
                if self._closes_enclosing_block(keyword):
                    # Внешний блок закрывается раньше внутреннего
                    opener, block_keyword, closer = self._blocks[-1]
                    raise self._unclosed(opener, block_keyword, closer, keyword.describe())
                raise ParseError(
                    keyword.position, expected, keyword.describe(),
                    f"Unexpected '{keyword.value}', expected {expected}"
                )

            nodes.append(self._parse_directive())

    def _parse_text(self) -> Optional[TextNode]:
        """Парсит текстовый узел с учетом маркеров обрезки соседних директив."""
        token = self._advance()
        text = token.value

        if self._trim_next_text:
            text = text.lstrip()
            self._trim_next_text = False

        following = self._current()
        if following.type == TokenType.OPEN and following.trims:
            text = text.rstrip()

        if not text:
            return None
        return TextNode(text, position=token.position)

    def _parse_directive(self) -> TemplateNode:
        """Парсит директиву, начинающуюся с текущего {{."""
        opener = self._consume_open()
        first = self._current()

        if first.type == TokenType.COMMENT:
            self._advance()
            self._expect_close()
            return CommentNode(first.value, position=opener.position)
        if first.type == TokenType.IF:
            return self._parse_if(opener)
        if first.type == TokenType.FOR:
            return self._parse_for(opener)
        if first.type == TokenType.WITH:
            return self._parse_with(opener)
        if first.type == TokenType.CALL:
            return self._parse_call(opener)
        if first.type == TokenType.CLOSE:
            raise ParseError(first.position, "directive", first.describe(), "Empty directive")
        return self._parse_value(opener)

    # ---- Блоки ----

    def _parse_if(self, opener: Token) -> IfNode:
        """
        Парсит {{ if path }} вместе с телом, else-ветками и {{ endif }}.

        Цепочка else if разбирается циклом как один блок: она не увеличивает
        глубину вложенности и превращается во вложенные IfNode, которые
        разделяют общий {{ endif }}. Ошибка незакрытого блока указывает
        на исходный {{ if }}.
        """
        self._advance()
        condition = self._parse_path()
        self._expect_close()

        branches: List[Tuple[SourcePosition, Path, Tuple[TemplateNode, ...]]] = []
        branch_position = opener.position
        else_body: Optional[Tuple[TemplateNode, ...]] = None

        with self._nested(opener, "if", "endif"):
            while True:
                body, terminator = self._parse_nodes(
                    frozenset({TokenType.ELSE, TokenType.ENDIF}), expected="'endif'"
                )
                if terminator is None:
                    raise self._unclosed(opener, "if", "endif")
                branches.append((branch_position, condition, tuple(body)))

                if terminator.type == TokenType.ENDIF:
                    break

                if self._current().type == TokenType.IF:
                    self._advance()
                    condition = self._parse_path()
                    self._expect_close()
                    branch_position = terminator.position
                    continue

                self._expect_close()
                else_nodes, terminator = self._parse_nodes(
                    frozenset({TokenType.ENDIF}), expected="'endif'"
                )
                if terminator is None:
                    raise self._unclosed(opener, "if", "endif")
                else_body = tuple(else_nodes)
                break

            self._expect_close()

        node: Optional[IfNode] = None
        for position, branch_condition, body in reversed(branches):
            node = IfNode(branch_condition, body, else_body, position=position)
            else_body = (node,)
        return node

    def _parse_for(self, opener: Token) -> ForNode:
        """Парсит {{ for var [, index] in path }} ... {{ endfor }}."""
        self._advance()
        var = self._expect(TokenType.IDENTIFIER, "loop variable name").value

        index_var = None
        if self._match(TokenType.COMMA):
            index_var = self._expect(TokenType.IDENTIFIER, "index variable name").value

        self._expect(TokenType.IN, "'in'")
        source = self._parse_path()
        self._expect_close()

        with self._nested(opener, "for", "endfor"):
            body, terminator = self._parse_nodes(frozenset({TokenType.ENDFOR}), expected="'endfor'")
            if terminator is None:
                raise self._unclosed(opener, "for", "endfor")
            self._expect_close()

        return ForNode(var, source, tuple(body), index_var, position=opener.position)

    def _parse_with(self, opener: Token) -> WithNode:
        """Парсит {{ with path as name }} ... {{ endwith }}."""
        self._advance()
        source = self._parse_path()
        self._expect(TokenType.AS, "'as'")
        name = self._expect(TokenType.IDENTIFIER, "binding name").value
        self._expect_close()

        with self._nested(opener, "with", "endwith"):
            body, terminator = self._parse_nodes(frozenset({TokenType.ENDWITH}), expected="'endwith'")
            if terminator is None:
                raise self._unclosed(opener, "with", "endwith")
            self._expect_close()

        return WithNode(name, source, tuple(body), position=opener.position)

    def _parse_call(self, opener: Token) -> CallNode:
        """Парсит {{ call name [with path] [, key=path]* }}. Блок не имеет закрывающей директивы."""
        self._advance()
        template_name = self._parse_template_name()

        root = None
        if self._match(TokenType.WITH):
            root = self._parse_path()

        args: List[Tuple[str, Path]] = []
        seen = set()
        while self._match(TokenType.COMMA):
            key = self._expect(TokenType.IDENTIFIER, "argument name")
            if key.value in seen:
                raise ParseError(
                    key.position, "argument name", key.describe(),
                    f"Duplicate argument '{key.value}'"
                )
            seen.add(key.value)
            self._expect(TokenType.EQUALS, "'='")
            args.append((key.value, self._parse_path()))

        self._expect_close()
        return CallNode(template_name, root, tuple(args), position=opener.position)

    def _parse_value(self, opener: Token) -> ValueNode:
        """Парсит подстановку {{ path [| formatter args...] }}."""
        path = self._parse_path()

        formatter = None
        if self._match(TokenType.PIPE):
            name = self._expect(TokenType.IDENTIFIER, "formatter name").value
            args: List[Literal] = []
            while self._current().type in (TokenType.STRING, TokenType.INTEGER):
                literal = self._advance()
                args.append(int(literal.value) if literal.type == TokenType.INTEGER else literal.value)
            formatter = FormatterCall(name, tuple(args))

        self._expect_close()
        return ValueNode(path, formatter, position=opener.position)

    # ---- Пути и имена ----

    def _parse_path(self) -> Path:
        """Парсит путь: @, @.a.b, a или a.b.0.c"""
        current = self._current()

        if current.type == TokenType.AT:
            self._advance()
            segments: List[str] = []
            is_current = True
        elif current.type == TokenType.IDENTIFIER:
            self._advance()
            segments = [current.value]
            is_current = False
        elif current.type in _KEYWORD_TYPES:
            raise ParseError(
                current.position, "path", current.describe(),
                f"Reserved keyword '{current.value}' cannot be used as a path"
            )
        else:
            raise ParseError(current.position, "path", current.describe())

        while self._match(TokenType.DOT):
            segment = self._current()
            if segment.type not in (TokenType.IDENTIFIER, TokenType.INTEGER):
                raise ParseError(segment.position, "field name or index", segment.describe())
            self._advance()
            segments.append(segment.value)

        return Path(tuple(segments), is_current)

    def _parse_template_name(self) -> str:
        """Парсит имя подшаблона: строковый литерал или идентификаторы через точку."""
        if self._current().type == TokenType.STRING:
            return self._advance().value

        parts = [self._expect(TokenType.IDENTIFIER, "template name").value]
        while self._match(TokenType.DOT):
            parts.append(self._expect(TokenType.IDENTIFIER, "template name").value)
        return ".".join(parts)

    # ---- Вспомогательные методы ----

    @contextmanager
    def _nested(self, opener: Token, keyword: str, closer: str):
        """Учитывает открытый блок и глубину вложенности."""
        if len(self._blocks) >= self.max_depth:
            raise ParseDepthError(
                opener.position, f"at most {self.max_depth} nested blocks", "deeper nesting",
                f"Block nesting exceeds maximum depth of {self.max_depth}"
            )
        self._blocks.append((opener, keyword, closer))
        try:
            yield
        finally:
            self._blocks.pop()

    def _closes_enclosing_block(self, keyword: Token) -> bool:
        """Проверяет, закрывает ли ключевое слово один из внешних блоков."""
        return any(
            keyword.type in _BLOCK_CLOSERS[block_keyword]
            for _, block_keyword, _ in self._blocks[:-1]
        )

    @staticmethod
    def _unclosed(opener: Token, keyword: str, closer: str, found: str = "end of input") -> ParseError:
        return ParseError(
            opener.position, f"'{closer}'", found,
            f"Unclosed '{keyword}' block, expected '{closer}' before {found}"
        )

    def _consume_open(self) -> Token:
        token = self._expect(TokenType.OPEN, "'{{'")
        self._trim_next_text = False
        return token

    def _expect_close(self) -> Token:
        token = self._expect(TokenType.CLOSE, "'}}'")
        self._trim_next_text = token.trims
        return token

    def _expect(self, expected_type: TokenType, expected: str) -> Token:
        """
        Потребляет токен ожидаемого типа.

        Raises:
            ParseError: Если токен не соответствует ожидаемому типу
        """
        current = self._current()
        if current.type != expected_type:
            raise ParseError(current.position, expected, current.describe())
        return self._advance()

    def _match(self, token_type: TokenType) -> bool:
        """Проверяет и потребляет токен указанного типа."""
        if self._current().type == token_type:
            self._advance()
            return True
        return False

    def _current(self) -> Token:
        return self._peek(0)

    def _peek(self, offset: int) -> Token:
        """Заглядывает вперед, подтягивая токены из итератора по мере надобности."""
        while len(self._buffer) <= offset:
            token = next(self._tokens, None)
            if token is None:
                token = Token(TokenType.EOF, "", self._last_position)
            self._last_position = token.position
            self._buffer.append(token)
        return self._buffer[offset]

    def _advance(self) -> Token:
        """Продвигается к следующему токену и возвращает текущий."""
        current = self._current()
        if current.type != TokenType.EOF:
            self._buffer.pop(0)
        return current


def parse_template(text: str, name: str = "<string>", max_depth: int = DEFAULT_MAX_DEPTH) -> Template:
    """
    Удобная функция для компиляции шаблона из текста.

    Args:
        text: Исходный текст шаблона
        name: Имя шаблона для диагностики
        max_depth: Максимальная глубина вложенности блоков

    Returns:
        Скомпилированный шаблон

    Raises:
        LexError: При ошибке лексического анализа
        ParseError: При ошибке синтаксического анализа
    """
    lexer = TemplateLexer(text)
    template = TemplateParser(lexer.iter_tokens(), name=name, max_depth=max_depth).parse()
    logger.debug(f"Compiled template '{name}' -> {len(template)} nodes")
    return template


__all__ = ["TemplateParser", "parse_template", "DEFAULT_MAX_DEPTH"]
