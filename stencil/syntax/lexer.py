"""
Лексический анализатор шаблонов.

Разбивает исходный текст шаблона на последовательность токенов для
последующего синтаксического анализа. Токены выдаются лениво, за один
проход по тексту.
"""

from __future__ import annotations

import re
from typing import Iterator, List

from .tokens import KEYWORDS, SourcePosition, Token, TokenType
from ..errors import LexError

OPEN_MARKER = "{{"
CLOSE_MARKER = "}}"
TRIM_MARK = "-"

_STRING_ESCAPES = {
    'n': '\n',
    't': '\t',
    '\\': '\\',
    '"': '"',
    "'": "'",
}


class TemplateLexer:
    """
    Лексический анализатор шаблонов.

    Учитывает два контекста:
    - обычный текст (выдается как есть одним токеном TEXT)
    - содержимое директивы {{ ... }} (ключевые слова, пути, литералы)
    """

    # Регулярные выражения для токенов внутри директивы
    _PATTERNS = {
        TokenType.IDENTIFIER: re.compile(r'[A-Za-z_][A-Za-z0-9_]*(?:-[A-Za-z0-9_]+)*'),
        TokenType.INTEGER: re.compile(r'[0-9]+'),
    }
    _WHITESPACE = re.compile(r'\s+')

    _SYMBOLS = {
        '.': TokenType.DOT,
        '|': TokenType.PIPE,
        ',': TokenType.COMMA,
        '=': TokenType.EQUALS,
        '@': TokenType.AT,
    }

    def __init__(self, text: str):
        self.text = text
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = len(text)

    def tokenize(self) -> List[Token]:
        """
        Токенизирует весь исходный текст и возвращает список токенов.

        Последним элементом всегда идет EOF.
        """
        return list(self.iter_tokens())

    def iter_tokens(self) -> Iterator[Token]:
        """
        Лениво выдает токены шаблона, заканчивая токеном EOF.

        Raises:
            LexError: При незакрытой директиве или недопустимом символе
        """
        while self.position < self.length:
            if self.text.startswith(OPEN_MARKER, self.position):
                yield from self._lex_directive()
            else:
                yield self._lex_text()

        yield Token(TokenType.EOF, "", self._mark())

    def _lex_text(self) -> Token:
        """Читает текст до следующего {{ или до конца."""
        start = self._mark()
        end = self.text.find(OPEN_MARKER, self.position)
        if end < 0:
            end = self.length
        value = self.text[self.position:end]
        self._advance(len(value))
        return Token(TokenType.TEXT, value, start)

    def _lex_directive(self) -> Iterator[Token]:
        """Токенизирует одну директиву {{ ... }} целиком."""
        opener = self._mark()
        value = OPEN_MARKER
        if self.text.startswith(TRIM_MARK, self.position + len(OPEN_MARKER)):
            value += TRIM_MARK
        self._advance(len(value))
        yield Token(TokenType.OPEN, value, opener)

        self._skip_whitespace()
        if self.text.startswith('#', self.position):
            yield from self._lex_comment(opener)
            return

        while True:
            self._skip_whitespace()
            if self.position >= self.length:
                raise LexError(opener, "Unterminated directive, expected '}}'")

            start = self._mark()

            # Закрывающий разделитель проверяется первым
            for closer in (TRIM_MARK + CLOSE_MARKER, CLOSE_MARKER):
                if self.text.startswith(closer, self.position):
                    self._advance(len(closer))
                    yield Token(TokenType.CLOSE, closer, start)
                    return

            yield self._lex_directive_token(start)

    def _lex_directive_token(self, start: SourcePosition) -> Token:
        """Читает один токен внутри директивы."""
        char = self.text[self.position]

        symbol = self._SYMBOLS.get(char)
        if symbol:
            self._advance(1)
            return Token(symbol, char, start)

        if char in '"\'':
            return self._lex_string(start)

        match = self._PATTERNS[TokenType.INTEGER].match(self.text, self.position)
        if match:
            value = match.group(0)
            self._advance(len(value))
            return Token(TokenType.INTEGER, value, start)

        match = self._PATTERNS[TokenType.IDENTIFIER].match(self.text, self.position)
        if match:
            value = match.group(0)
            self._advance(len(value))
            # Ключевые слова имеют приоритет над идентификаторами
            return Token(KEYWORDS.get(value, TokenType.IDENTIFIER), value, start)

        raise LexError(start, f"Unexpected character in directive: {char!r}")

    def _lex_string(self, start: SourcePosition) -> Token:
        """Читает строковый литерал в одинарных или двойных кавычках."""
        quote = self.text[self.position]
        self._advance(1)
        parts: List[str] = []

        while self.position < self.length:
            char = self.text[self.position]
            if char == quote:
                self._advance(1)
                return Token(TokenType.STRING, ''.join(parts), start)
            if char == '\\' and self.position + 1 < self.length:
                escaped = self.text[self.position + 1]
                parts.append(_STRING_ESCAPES.get(escaped, '\\' + escaped))
                self._advance(2)
                continue
            parts.append(char)
            self._advance(1)

        raise LexError(start, "Unterminated string literal")

    def _lex_comment(self, opener: SourcePosition) -> Iterator[Token]:
        """Читает комментарий {{# ... }} одним токеном COMMENT."""
        start = self._mark()
        end = self.text.find(CLOSE_MARKER, self.position)
        if end < 0:
            raise LexError(opener, "Unterminated comment, expected '}}'")

        closer = CLOSE_MARKER
        body_end = end
        if end > self.position and self.text[end - 1] == TRIM_MARK:
            closer = TRIM_MARK + CLOSE_MARKER
            body_end = end - 1

        body = self.text[self.position + 1:body_end]
        self._advance(body_end - self.position)
        yield Token(TokenType.COMMENT, body.strip(), start)

        close_start = self._mark()
        self._advance(len(closer))
        yield Token(TokenType.CLOSE, closer, close_start)

    def _skip_whitespace(self) -> None:
        match = self._WHITESPACE.match(self.text, self.position)
        if match:
            self._advance(len(match.group(0)))

    def _mark(self) -> SourcePosition:
        return SourcePosition(self.position, self.line, self.column)

    def _advance(self, count: int) -> None:
        """
        Перемещает позицию на указанное количество символов,
        обновляя номера строк и колонок.
        """
        for _ in range(count):
            if self.position < self.length:
                if self.text[self.position] == '\n':
                    self.line += 1
                    self.column = 1
                else:
                    self.column += 1
                self.position += 1


def tokenize_template(text: str) -> Iterator[Token]:
    """
    Удобная функция для ленивой токенизации шаблона.

    Args:
        text: Исходный текст шаблона

    Returns:
        Итератор токенов, заканчивающийся EOF

    Raises:
        LexError: При ошибке лексического анализа (во время итерации)
    """
    return TemplateLexer(text).iter_tokens()


__all__ = ["TemplateLexer", "tokenize_template", "OPEN_MARKER", "CLOSE_MARKER"]
