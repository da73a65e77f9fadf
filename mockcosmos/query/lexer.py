"""
Cosmos DB SQL Lexical Analyzer.

This module provides a character-driven lexer for tokenizing the Cosmos DB SQL
subset with position tracking and descriptive error messages.

Supports:
- Keywords (SELECT, FROM, WHERE, ORDER BY, LIMIT, TOP, AS, AND, OR, NOT, ...)
- String literals in single or double quotes with backslash escapes
- Integer and floating-point literals, with optional sign and exponent
- true / false / null literals
- Query parameters (@name)
- Comparison operators (=, !=, <>, >, >=, <, <=) and punctuation

Example:
    >>> lexer = SqlLexer("SELECT * FROM c WHERE c.age > 21")
    >>> tokens = lexer.tokenize()
    >>> [t.type.name for t in tokens][:4]
    ['SELECT', 'STAR', 'FROM', 'IDENTIFIER']

Author: MockCosmos Team
Version: 1.0.0
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional, List

from .exceptions import LexerError


class TokenType(Enum):
    """SQL token types for lexical analysis."""

    # Literals
    STRING = auto()      # 'hello', "it\'s"
    INTEGER = auto()     # 123, -456
    FLOAT = auto()       # 123.45, 1.23e10
    BOOLEAN = auto()     # true, false
    NULL = auto()        # null
    PARAMETER = auto()   # @minAge

    # Identifiers
    IDENTIFIER = auto()  # c, name, address

    # Clause keywords
    SELECT = auto()
    TOP = auto()
    FROM = auto()
    AS = auto()
    WHERE = auto()
    ORDER = auto()
    BY = auto()
    ASC = auto()
    DESC = auto()
    LIMIT = auto()

    # Logical operators
    AND = auto()
    OR = auto()
    NOT = auto()

    # Comparison operators
    EQ = auto()          # =
    NE = auto()          # != or <>
    GT = auto()          # >
    GE = auto()          # >=
    LT = auto()          # <
    LE = auto()          # <=

    # Punctuation
    LPAREN = auto()      # (
    RPAREN = auto()      # )
    COMMA = auto()       # ,
    DOT = auto()         # .
    STAR = auto()        # *

    # Special
    EOF = auto()

    def __str__(self) -> str:
        return self.name

    def is_keyword(self) -> bool:
        """Check if token type is a reserved word."""
        return self in _KEYWORD_TYPES


@dataclass(frozen=True)
class Position:
    """
    Source position in query text.

    Tracks line, column, and absolute offset for precise error reporting.
    """
    line: int       # 1-indexed line number
    column: int     # 1-indexed column number
    offset: int     # 0-indexed absolute character position

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"

    def __repr__(self) -> str:
        return f"Position(line={self.line}, column={self.column}, offset={self.offset})"


@dataclass(frozen=True)
class Token:
    """
    Lexical token with type, value, and position information.

    ``text`` is the raw source text of the token, which keeps the original
    casing of keywords used as property names (``c.Order``).
    """
    type: TokenType     # Token type (STRING, INTEGER, etc.)
    value: Any          # Token value (parsed)
    position: Position  # Source position
    text: str           # Raw source text

    def __str__(self) -> str:
        if self.type == TokenType.EOF:
            return f"EOF at {self.position}"
        return f"{self.type.name}({self.value!r}) at {self.position}"

    def __repr__(self) -> str:
        return f"Token(type={self.type}, value={self.value!r}, position={self.position})"


class SqlLexer:
    """
    Cosmos DB SQL lexical analyzer.

    Transforms query text into a stream of typed tokens ending with EOF.
    Keywords are recognised case-insensitively; identifiers keep their case.

    Thread Safety:
        SqlLexer instances are NOT thread-safe. Create separate instances
        for concurrent tokenization.
    """

    KEYWORDS = {
        'select': TokenType.SELECT,
        'top': TokenType.TOP,
        'from': TokenType.FROM,
        'as': TokenType.AS,
        'where': TokenType.WHERE,
        'order': TokenType.ORDER,
        'by': TokenType.BY,
        'asc': TokenType.ASC,
        'desc': TokenType.DESC,
        'limit': TokenType.LIMIT,
        'and': TokenType.AND,
        'or': TokenType.OR,
        'not': TokenType.NOT,
        'true': TokenType.BOOLEAN,
        'false': TokenType.BOOLEAN,
        'null': TokenType.NULL,
    }

    ESCAPES = {
        "'": "'",
        '"': '"',
        '\\': '\\',
        '/': '/',
        'n': '\n',
        'r': '\r',
        't': '\t',
        'b': '\b',
        'f': '\f',
    }

    def __init__(self, input_str: str):
        """
        Initialize lexer with query text.

        Args:
            input_str: SQL query text to tokenize
        """
        self.input = input_str
        self.pos = 0
        self.line = 1
        self.column = 1

    def _current_position(self) -> Position:
        return Position(self.line, self.column, self.pos)

    def _peek(self, offset: int = 0) -> Optional[str]:
        pos = self.pos + offset
        if pos < len(self.input):
            return self.input[pos]
        return None

    def _advance(self) -> Optional[str]:
        if self.pos >= len(self.input):
            return None

        char = self.input[self.pos]
        self.pos += 1

        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1

        return char

    def _skip_whitespace(self) -> None:
        char = self._peek()
        while char is not None and char.isspace():
            self._advance()
            char = self._peek()

    def _token(self, token_type: TokenType, value: Any, start_pos: Position) -> Token:
        return Token(token_type, value, start_pos, self.input[start_pos.offset:self.pos])

    def _read_string(self) -> Token:
        """
        Read a quoted string literal.

        The closing quote must match the opening one. Backslash escapes are
        translated; an unknown escape keeps the escaped character.

        Raises:
            LexerError: If string is not closed
        """
        start_pos = self._current_position()
        quote = self._advance()

        chars = []
        while True:
            char = self._peek()

            if char is None:
                raise LexerError(
                    "Unterminated string literal",
                    start_pos,
                    token=self.input[start_pos.offset:],
                    suggestion=f"Add closing quote ({quote})"
                )

            if char == '\\':
                self._advance()
                escaped = self._peek()
                if escaped is None:
                    continue
                chars.append(self.ESCAPES.get(escaped, escaped))
                self._advance()
            elif char == quote:
                self._advance()
                break
            else:
                chars.append(char)
                self._advance()

        return self._token(TokenType.STRING, ''.join(chars), start_pos)

    def _read_number(self) -> Token:
        """
        Read number literal (integer or floating-point).

        A decimal point or exponent makes the literal a float.

        Raises:
            LexerError: If number format is invalid
        """
        start_pos = self._current_position()

        chars = []
        has_dot = False
        has_exp = False

        if self._peek() in ('+', '-'):
            chars.append(self._advance())

        while True:
            char = self._peek()

            if char is None:
                break

            if char.isdigit():
                chars.append(self._advance())
            elif char == '.' and not has_dot and not has_exp:
                has_dot = True
                chars.append(self._advance())
            elif char in 'eE' and not has_exp and any(c.isdigit() for c in chars):
                has_exp = True
                chars.append(self._advance())
                if self._peek() in ('+', '-'):
                    chars.append(self._advance())
            else:
                break

        value_str = ''.join(chars)

        try:
            if has_dot or has_exp:
                return self._token(TokenType.FLOAT, float(value_str), start_pos)
            return self._token(TokenType.INTEGER, int(value_str), start_pos)
        except ValueError:
            raise LexerError(
                f"Invalid number format: {value_str}",
                start_pos,
                token=value_str,
                suggestion="Check for malformed exponent or decimal point"
            )

    def _read_word(self) -> str:
        chars = []
        while True:
            char = self._peek()
            if char is None or not (char.isalnum() or char in '_$'):
                break
            chars.append(self._advance())
        return ''.join(chars)

    def _read_identifier(self) -> Token:
        """Read identifier, keyword, or reserved literal."""
        start_pos = self._current_position()
        value = self._read_word()

        lower_value = value.lower()
        token_type = self.KEYWORDS.get(lower_value)
        if token_type == TokenType.BOOLEAN:
            return self._token(token_type, lower_value == 'true', start_pos)
        if token_type == TokenType.NULL:
            return self._token(token_type, None, start_pos)
        if token_type is not None:
            return self._token(token_type, value, start_pos)

        return self._token(TokenType.IDENTIFIER, value, start_pos)

    def _read_parameter(self) -> Token:
        """Read query parameter reference: @name."""
        start_pos = self._current_position()
        self._advance()  # Skip @
        name = self._read_word()
        if not name:
            raise LexerError(
                "Expected parameter name after '@'",
                start_pos,
                token='@',
                suggestion="Use format: @paramName"
            )
        return self._token(TokenType.PARAMETER, '@' + name, start_pos)

    def _read_operator(self) -> Token:
        """Read comparison operator."""
        start_pos = self._current_position()
        char = self._advance()
        next_char = self._peek()

        if char == '=':
            return self._token(TokenType.EQ, '=', start_pos)
        if char == '!':
            if next_char == '=':
                self._advance()
                return self._token(TokenType.NE, '!=', start_pos)
            raise LexerError(
                "Unexpected character: '!'",
                start_pos,
                token='!',
                suggestion="Use '!=' for inequality or NOT for negation"
            )
        if char == '<':
            if next_char == '=':
                self._advance()
                return self._token(TokenType.LE, '<=', start_pos)
            if next_char == '>':
                self._advance()
                return self._token(TokenType.NE, '<>', start_pos)
            return self._token(TokenType.LT, '<', start_pos)
        # char == '>'
        if next_char == '=':
            self._advance()
            return self._token(TokenType.GE, '>=', start_pos)
        return self._token(TokenType.GT, '>', start_pos)

    def _starts_number(self, char: str) -> bool:
        if char.isdigit():
            return True
        next_char = self._peek(1)
        if char in '+-':
            return next_char is not None and next_char.isdigit()
        return False

    PUNCTUATION = {
        '(': TokenType.LPAREN,
        ')': TokenType.RPAREN,
        ',': TokenType.COMMA,
        '.': TokenType.DOT,
        '*': TokenType.STAR,
    }

    def tokenize(self) -> List[Token]:
        """
        Tokenize query text into list of tokens.

        Returns:
            List of tokens (excludes whitespace, includes EOF)

        Raises:
            LexerError: If invalid syntax is encountered
        """
        tokens = []

        while self.pos < len(self.input):
            char = self._peek()

            if char.isspace():
                self._skip_whitespace()
                continue

            if char in ('"', "'"):
                tokens.append(self._read_string())
            elif self._starts_number(char):
                tokens.append(self._read_number())
            elif char.isalpha() or char in '_$':
                tokens.append(self._read_identifier())
            elif char == '@':
                tokens.append(self._read_parameter())
            elif char in '=!<>':
                tokens.append(self._read_operator())
            elif char in self.PUNCTUATION:
                start_pos = self._current_position()
                self._advance()
                tokens.append(self._token(self.PUNCTUATION[char], char, start_pos))
            else:
                raise LexerError(
                    f"Unexpected character: {char!r}",
                    self._current_position(),
                    token=char
                )

        tokens.append(Token(TokenType.EOF, None, self._current_position(), ''))
        return tokens

    def __repr__(self) -> str:
        return f"SqlLexer(input={self.input!r}, pos={self.pos}, line={self.line}, column={self.column})"


_KEYWORD_TYPES = frozenset(
    token_type for token_type in SqlLexer.KEYWORDS.values()
    if token_type not in (TokenType.BOOLEAN, TokenType.NULL)
)
