"""
Unit tests for the SQL lexer.

Covers:
- Literal types (strings, numbers, booleans, null)
- Keywords, identifiers and parameters
- Operators and punctuation
- Position tracking
- Error cases
"""

import pytest

from mockcosmos.query.exceptions import LexerError
from mockcosmos.query.lexer import Position, SqlLexer, TokenType


def token_types(text):
    return [t.type for t in SqlLexer(text).tokenize()]


class TestLiteralTokenization:
    """Tests for literal value tokenization."""

    def test_single_quoted_string(self):
        """Test single-quoted string literal."""
        tokens = SqlLexer("'hello'").tokenize()

        assert len(tokens) == 2  # STRING + EOF
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "hello"

    def test_double_quoted_string(self):
        """Test double-quoted string literal."""
        tokens = SqlLexer('"hello world"').tokenize()

        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "hello world"

    def test_escaped_quote(self):
        """Test backslash-escaped quote inside a string."""
        tokens = SqlLexer(r"'it\'s'").tokenize()

        assert tokens[0].value == "it's"

    def test_escape_sequences(self):
        """Test common escape sequences."""
        tokens = SqlLexer(r"'a\nb\tc\\d\/e'").tokenize()

        assert tokens[0].value == "a\nb\tc\\d/e"

    def test_other_quote_needs_no_escape(self):
        """Test that a double quote inside a single-quoted string is literal."""
        tokens = SqlLexer("'say \"hi\"'").tokenize()

        assert tokens[0].value == 'say "hi"'

    def test_empty_string(self):
        """Test empty string literal."""
        tokens = SqlLexer("''").tokenize()

        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == ""

    def test_integer(self):
        """Test integer literal."""
        tokens = SqlLexer("123").tokenize()

        assert tokens[0].type == TokenType.INTEGER
        assert tokens[0].value == 123
        assert isinstance(tokens[0].value, int)

    def test_negative_integer(self):
        """Test negative integer literal."""
        tokens = SqlLexer("-456").tokenize()

        assert tokens[0].type == TokenType.INTEGER
        assert tokens[0].value == -456

    def test_float(self):
        """Test float literal."""
        tokens = SqlLexer("12.5").tokenize()

        assert tokens[0].type == TokenType.FLOAT
        assert tokens[0].value == 12.5

    def test_exponent_makes_float(self):
        """Test exponent notation produces a float."""
        tokens = SqlLexer("1e3").tokenize()

        assert tokens[0].type == TokenType.FLOAT
        assert tokens[0].value == 1000.0

    def test_booleans(self):
        """Test true and false literals, case-insensitive."""
        tokens = SqlLexer("true FALSE").tokenize()

        assert tokens[0].type == TokenType.BOOLEAN
        assert tokens[0].value is True
        assert tokens[1].type == TokenType.BOOLEAN
        assert tokens[1].value is False

    def test_null(self):
        """Test null literal."""
        tokens = SqlLexer("null").tokenize()

        assert tokens[0].type == TokenType.NULL
        assert tokens[0].value is None


class TestKeywordsAndIdentifiers:
    """Tests for keywords, identifiers and parameters."""

    def test_keywords_case_insensitive(self):
        """Test keywords are recognised regardless of case."""
        assert token_types("select FROM Where") == [
            TokenType.SELECT, TokenType.FROM, TokenType.WHERE, TokenType.EOF
        ]

    def test_keyword_keeps_raw_text(self):
        """Test keyword tokens keep their original spelling."""
        tokens = SqlLexer("Order").tokenize()

        assert tokens[0].type == TokenType.ORDER
        assert tokens[0].text == "Order"

    def test_identifier_keeps_case(self):
        """Test identifiers are case-preserving."""
        tokens = SqlLexer("FirstName").tokenize()

        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "FirstName"

    def test_identifier_with_underscore_and_digits(self):
        """Test identifiers may contain underscores and digits."""
        tokens = SqlLexer("_ts2").tokenize()

        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "_ts2"

    def test_parameter(self):
        """Test query parameter reference."""
        tokens = SqlLexer("@minAge").tokenize()

        assert tokens[0].type == TokenType.PARAMETER
        assert tokens[0].value == "@minAge"

    def test_is_keyword(self):
        """Test keyword classification excludes literals."""
        assert TokenType.SELECT.is_keyword()
        assert TokenType.ORDER.is_keyword()
        assert not TokenType.BOOLEAN.is_keyword()
        assert not TokenType.IDENTIFIER.is_keyword()


class TestOperatorTokenization:
    """Tests for operators and punctuation."""

    @pytest.mark.parametrize("text,expected", [
        ("=", TokenType.EQ),
        ("!=", TokenType.NE),
        ("<>", TokenType.NE),
        (">", TokenType.GT),
        (">=", TokenType.GE),
        ("<", TokenType.LT),
        ("<=", TokenType.LE),
    ])
    def test_comparison_operators(self, text, expected):
        """Test each comparison operator."""
        assert token_types(text) == [expected, TokenType.EOF]

    def test_punctuation(self):
        """Test punctuation tokens."""
        assert token_types("( ) , . *") == [
            TokenType.LPAREN, TokenType.RPAREN, TokenType.COMMA,
            TokenType.DOT, TokenType.STAR, TokenType.EOF
        ]

    def test_operators_without_spaces(self):
        """Test operators adjacent to operands."""
        tokens = SqlLexer("c.age>=21").tokenize()

        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER, TokenType.DOT, TokenType.IDENTIFIER,
            TokenType.GE, TokenType.INTEGER, TokenType.EOF
        ]
        assert tokens[4].value == 21

    def test_full_query(self):
        """Test a complete query."""
        types = token_types("SELECT * FROM c WHERE c.name = 'Bob' ORDER BY c.age DESC LIMIT 5")

        assert types[:4] == [TokenType.SELECT, TokenType.STAR, TokenType.FROM, TokenType.IDENTIFIER]
        assert TokenType.ORDER in types
        assert TokenType.DESC in types
        assert types[-3:] == [TokenType.LIMIT, TokenType.INTEGER, TokenType.EOF]


class TestPositionTracking:
    """Tests for token positions."""

    def test_columns(self):
        """Test column and offset of tokens on one line."""
        tokens = SqlLexer("SELECT *").tokenize()

        assert tokens[0].position == Position(1, 1, 0)
        assert tokens[1].position == Position(1, 8, 7)

    def test_multiline(self):
        """Test line tracking across newlines."""
        tokens = SqlLexer("SELECT *\nFROM c").tokenize()

        assert tokens[2].type == TokenType.FROM
        assert tokens[2].position.line == 2
        assert tokens[2].position.column == 1

    def test_position_str(self):
        """Test human-readable position."""
        assert str(Position(3, 7, 20)) == "line 3, column 7"


class TestLexerErrors:
    """Tests for lexer error cases."""

    def test_unterminated_string(self):
        """Test unterminated string raises with suggestion."""
        with pytest.raises(LexerError) as exc_info:
            SqlLexer("SELECT * FROM c WHERE c.name = 'Bob").tokenize()

        error = exc_info.value
        assert "Unterminated string" in error.message
        assert error.position.column == 32
        assert error.suggestion is not None

    def test_unexpected_character(self):
        """Test unknown character raises."""
        with pytest.raises(LexerError) as exc_info:
            SqlLexer("c.a # 1").tokenize()

        assert exc_info.value.token == "#"

    def test_lone_bang(self):
        """Test '!' without '=' raises."""
        with pytest.raises(LexerError):
            SqlLexer("c.a ! 1").tokenize()

    def test_empty_parameter_name(self):
        """Test '@' without a name raises."""
        with pytest.raises(LexerError):
            SqlLexer("c.a = @").tokenize()

    def test_error_code(self):
        """Test lexer errors carry the BadRequest code."""
        with pytest.raises(LexerError) as exc_info:
            SqlLexer("'open").tokenize()

        assert exc_info.value.to_dict()['code'] == "BadRequest"
