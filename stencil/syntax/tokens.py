"""
Лексические типы.

Определяет типы токенов шаблона и позиционную информацию,
которую несут токены, узлы AST и ошибки.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass(frozen=True)
class SourcePosition:
    """Позиция в исходном тексте шаблона."""
    offset: int          # Смещение от начала текста (с 0)
    line: int            # Номер строки (начиная с 1)
    column: int          # Номер колонки (начиная с 1)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class TokenType(enum.Enum):
    """Типы токенов в шаблоне."""

    # Текстовый контент
    TEXT = "TEXT"

    # Разделители директив
    OPEN = "OPEN"                # {{ или {{-
    CLOSE = "CLOSE"              # }} или -}}
    COMMENT = "COMMENT"          # тело директивы {{# ... }}

    # Ключевые слова
    IF = "IF"
    ELSE = "ELSE"
    ENDIF = "ENDIF"
    FOR = "FOR"
    IN = "IN"
    ENDFOR = "ENDFOR"
    WITH = "WITH"
    AS = "AS"
    ENDWITH = "ENDWITH"
    CALL = "CALL"

    # Идентификаторы и литералы
    IDENTIFIER = "IDENTIFIER"
    INTEGER = "INTEGER"
    STRING = "STRING"

    # Символы
    DOT = "DOT"                  # .
    PIPE = "PIPE"                # |
    COMMA = "COMMA"              # ,
    EQUALS = "EQUALS"            # =
    AT = "AT"                    # @

    EOF = "EOF"


# Ключевые слова директив
KEYWORDS = {
    'if': TokenType.IF,
    'else': TokenType.ELSE,
    'endif': TokenType.ENDIF,
    'for': TokenType.FOR,
    'in': TokenType.IN,
    'endfor': TokenType.ENDFOR,
    'with': TokenType.WITH,
    'as': TokenType.AS,
    'endwith': TokenType.ENDWITH,
    'call': TokenType.CALL,
}


@dataclass(frozen=True)
class Token:
    """
    Токен с позиционной информацией для точной диагностики ошибок.
    """
    type: TokenType
    value: str
    position: SourcePosition

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def column(self) -> int:
        return self.position.column

    @property
    def trims(self) -> bool:
        """True для разделителей с маркером обрезки пробелов ({{- и -}})."""
        return '-' in self.value and self.type in (TokenType.OPEN, TokenType.CLOSE)

    def describe(self) -> str:
        """Описание токена для сообщений об ошибках."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.TEXT:
            return "text"
        return f"'{self.value}'"

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


__all__ = ["SourcePosition", "TokenType", "KEYWORDS", "Token"]
