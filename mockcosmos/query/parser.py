"""
Cosmos DB SQL Parser with Abstract Syntax Tree.

This module provides a recursive descent parser that transforms query text
into an immutable ``ParsedQuery``: projection, source, WHERE expression tree,
ORDER BY keys and row limit.

Features:
- Recursive descent parsing with proper operator precedence
- Immutable AST nodes (frozen dataclasses) with visitor pattern support
- Source alias stripping (``c.address.city`` -> ``('address', 'city')``)
- Query parameters (``@name``) bound at parse time
- Function name and arity validation against a FunctionRegistry
- Error messages with position, offending token and suggestions

Grammar (EBNF):
    query        = "SELECT" [ "TOP" int ] projection "FROM" ident [ [ "AS" ] ident ]
                   [ "WHERE" or_expression ]
                   [ "ORDER" "BY" order_item { "," order_item } ]
                   [ "LIMIT" int ]
    projection   = "*" | select_item { "," select_item }
    select_item  = path [ "AS" ident ]
    order_item   = path [ "ASC" | "DESC" ]
    or_expression  = and_expression { "OR" and_expression }
    and_expression = unary_expression { "AND" unary_expression }
    unary_expression = "NOT" unary_expression | comparison
    comparison   = operand [ comp_op operand ]
    operand      = literal | parameter | path | function_call | "(" or_expression ")"
    path         = ident { "." ident }

Example:
    >>> query = parse_query("SELECT c.name FROM c WHERE c.age > 21 ORDER BY c.name")
    >>> query.where
    BinaryOpNode(operator=<BinaryOperator.GREATER_THAN: '>'>, ...)

Author: MockCosmos Team
Version: 1.0.0
"""

from __future__ import annotations

import copy
import difflib
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .diagnostics import QueryObserver
from .exceptions import ParseError
from .functions import FunctionRegistry, default_registry
from .lexer import Position, SqlLexer, Token, TokenType
from .types import is_number

logger = logging.getLogger(__name__)

WILDCARD = "*"

# Aliases stripped from paths when the query declares none of its own
CONVENTIONAL_ALIASES = ("c", "r")


class NodeType(Enum):
    """AST node types for type checking and validation."""
    CONSTANT = "constant"
    PROPERTY = "property"
    UNARY_OP = "unary_op"
    BINARY_OP = "binary_op"
    FUNCTION_CALL = "function_call"

    def __str__(self) -> str:
        return self.value


class UnaryOperator(Enum):
    """Unary operators."""
    NOT = "NOT"

    def __str__(self) -> str:
        return self.value


class BinaryOperator(Enum):
    """Binary comparison and logical operators."""
    EQUAL = "="
    NOT_EQUAL = "!="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    AND = "AND"
    OR = "OR"

    def is_logical(self) -> bool:
        return self in (BinaryOperator.AND, BinaryOperator.OR)

    def is_ordering(self) -> bool:
        """Check if operator requires ordinal operands (>, >=, <, <=)."""
        return self in (
            BinaryOperator.GREATER_THAN,
            BinaryOperator.GREATER_THAN_OR_EQUAL,
            BinaryOperator.LESS_THAN,
            BinaryOperator.LESS_THAN_OR_EQUAL,
        )

    def __str__(self) -> str:
        return self.value


class SortDirection(Enum):
    """ORDER BY direction."""
    ASCENDING = "ASC"
    DESCENDING = "DESC"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ASTNode(ABC):
    """
    Base class for all AST nodes.

    All AST nodes are immutable (frozen=True) for thread-safety and caching.
    Positions are informational and excluded from equality, so trees built
    by hand compare equal to parsed ones.
    """
    node_type: ClassVar[NodeType]

    @abstractmethod
    def accept(self, visitor: 'ASTVisitor') -> Any:
        """
        Accept visitor for traversal (visitor pattern).

        Args:
            visitor: AST visitor implementing visit methods

        Returns:
            Result from visitor
        """


@dataclass(frozen=True)
class ConstantNode(ASTNode):
    """
    Literal value node (string, number, boolean, null) or bound parameter.

    Attributes:
        value: The literal value
    """
    node_type: ClassVar[NodeType] = NodeType.CONSTANT

    value: Any
    position: Optional[Position] = field(default=None, compare=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_constant(self)

    def __str__(self) -> str:
        return f"Constant({self.value!r})"


@dataclass(frozen=True)
class PropertyNode(ASTNode):
    """
    Property access node (c.address.city).

    Attributes:
        path: Path as written in the query, alias included
        segments: Path segments with the source alias stripped
    """
    node_type: ClassVar[NodeType] = NodeType.PROPERTY

    path: str
    segments: Tuple[str, ...]
    position: Optional[Position] = field(default=None, compare=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_property(self)

    def __str__(self) -> str:
        return f"Property({self.path})"


@dataclass(frozen=True)
class UnaryOpNode(ASTNode):
    """
    Unary operation node (NOT).

    Attributes:
        operator: Unary operator
        operand: Child expression
    """
    node_type: ClassVar[NodeType] = NodeType.UNARY_OP

    operator: UnaryOperator
    operand: ASTNode
    position: Optional[Position] = field(default=None, compare=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_unary_op(self)

    def __str__(self) -> str:
        return f"UnaryOp({self.operator} {self.operand})"


@dataclass(frozen=True)
class BinaryOpNode(ASTNode):
    """
    Binary operation node (AND, OR, =, >, ...).

    Attributes:
        operator: Binary operator
        left: Left child expression
        right: Right child expression
    """
    node_type: ClassVar[NodeType] = NodeType.BINARY_OP

    operator: BinaryOperator
    left: ASTNode
    right: ASTNode
    position: Optional[Position] = field(default=None, compare=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_binary_op(self)

    def __str__(self) -> str:
        return f"BinaryOp({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class FunctionCallNode(ASTNode):
    """
    Function call node (CONTAINS, STARTSWITH, ...).

    Attributes:
        name: Upper-case function name
        arguments: Tuple of argument expressions (immutable)
    """
    node_type: ClassVar[NodeType] = NodeType.FUNCTION_CALL

    name: str
    arguments: Tuple[ASTNode, ...]
    position: Optional[Position] = field(default=None, compare=False)

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_function_call(self)

    def __str__(self) -> str:
        args_str = ", ".join(str(arg) for arg in self.arguments)
        return f"FunctionCall({self.name}({args_str}))"


class ASTVisitor(ABC):
    """
    Abstract base class for AST visitors.

    Implement this interface to traverse and process AST nodes.
    """

    @abstractmethod
    def visit_constant(self, node: ConstantNode) -> Any:
        """Visit constant node."""

    @abstractmethod
    def visit_property(self, node: PropertyNode) -> Any:
        """Visit property access node."""

    @abstractmethod
    def visit_unary_op(self, node: UnaryOpNode) -> Any:
        """Visit unary operation node."""

    @abstractmethod
    def visit_binary_op(self, node: BinaryOpNode) -> Any:
        """Visit binary operation node."""

    @abstractmethod
    def visit_function_call(self, node: FunctionCallNode) -> Any:
        """Visit function call node."""


@dataclass(frozen=True)
class ProjectionItem:
    """
    One SELECT item.

    Attributes:
        path: Path as written in the query
        segments: Alias-stripped path segments; empty selects the whole document
        alias: Output name given with AS, if any
    """
    path: str
    segments: Tuple[str, ...]
    alias: Optional[str] = None

    @property
    def output_segments(self) -> Tuple[str, ...]:
        """Where the value is written in the projected document."""
        if self.alias is not None:
            return (self.alias,)
        return self.segments


@dataclass(frozen=True)
class OrderByItem:
    """One ORDER BY key."""
    path: str
    segments: Tuple[str, ...]
    direction: SortDirection = SortDirection.ASCENDING


Projection = Union[str, Tuple[ProjectionItem, ...]]


@dataclass(frozen=True)
class ParsedQuery:
    """
    Structured representation of a SELECT statement.

    Attributes:
        text: Original query text
        projection: WILDCARD or a tuple of ProjectionItem
        from_name: Container reference after FROM
        from_alias: Alias declared after the container reference, if any
        where: Root of the WHERE expression tree, or None
        order_by: ORDER BY keys, most significant first
        limit: Maximum number of results (from TOP or LIMIT), or None
    """
    text: str
    projection: Projection = WILDCARD
    from_name: str = "c"
    from_alias: Optional[str] = None
    where: Optional[ASTNode] = None
    order_by: Tuple[OrderByItem, ...] = ()
    limit: Optional[int] = None

    @property
    def source(self) -> str:
        """Effective source alias (the declared alias, else the container reference)."""
        return self.from_alias or self.from_name

    @property
    def is_wildcard(self) -> bool:
        return self.projection == WILDCARD

    def to_dict(self) -> Dict[str, Any]:
        """Render the query structure for diagnostics."""
        if self.is_wildcard:
            projection: Any = WILDCARD
        else:
            projection = [
                {'path': item.path, 'segments': list(item.segments), 'alias': item.alias}
                for item in self.projection
            ]
        return {
            'text': self.text,
            'projection': projection,
            'from_name': self.from_name,
            'from_alias': self.from_alias,
            'where': str(self.where) if self.where is not None else None,
            'order_by': [
                {'path': item.path, 'segments': list(item.segments), 'direction': str(item.direction)}
                for item in self.order_by
            ],
            'limit': self.limit,
        }


Parameters = Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None]


def normalize_parameters(parameters: Parameters) -> Dict[str, Any]:
    """
    Normalize query parameters to a ``{"@name": value}`` mapping.

    Accepts either a mapping (``{"@age": 21}`` or ``{"age": 21}``) or the
    Cosmos DB list form ``[{"name": "@age", "value": 21}]``.
    """
    if not parameters:
        return {}

    if isinstance(parameters, Mapping):
        items = parameters.items()
    else:
        try:
            items = [(entry['name'], entry['value']) for entry in parameters]
        except (KeyError, TypeError) as e:
            raise ValueError(
                "Query parameters must be a mapping or a list of {'name', 'value'} objects"
            ) from e

    normalized = {}
    for name, value in items:
        key = name if name.startswith('@') else f"@{name}"
        normalized[key] = value
    return normalized


class SqlQueryParser:
    """
    Cosmos DB SQL recursive descent parser.

    Operator Precedence (highest to lowest):
        1. Unary: NOT
        2. Comparison: =, !=, <>, >, >=, <, <=
        3. Logical AND
        4. Logical OR

    Example:
        >>> parser = SqlQueryParser()
        >>> query = parser.parse("SELECT * FROM c WHERE c.age >= @min", {"@min": 18})
        >>> query.where.right.value
        18

    Thread Safety:
        parse() keeps per-call state on the instance. Create separate parsers
        for concurrent parsing.
    """

    COMPARISON_OPS = {
        TokenType.EQ: BinaryOperator.EQUAL,
        TokenType.NE: BinaryOperator.NOT_EQUAL,
        TokenType.GT: BinaryOperator.GREATER_THAN,
        TokenType.GE: BinaryOperator.GREATER_THAN_OR_EQUAL,
        TokenType.LT: BinaryOperator.LESS_THAN,
        TokenType.LE: BinaryOperator.LESS_THAN_OR_EQUAL,
    }

    LITERAL_TYPES = (
        TokenType.STRING,
        TokenType.INTEGER,
        TokenType.FLOAT,
        TokenType.BOOLEAN,
        TokenType.NULL,
    )

    def __init__(
        self,
        function_registry: Optional[FunctionRegistry] = None,
        observer: Optional[QueryObserver] = None
    ):
        """
        Initialize parser.

        Args:
            function_registry: Functions callable from queries (built-ins if None)
            observer: Receives parse start/end/error notifications
        """
        self.function_registry = function_registry or default_registry()
        self.observer = observer or QueryObserver()
        self._reset([], {})

    def _reset(self, tokens: List[Token], parameters: Dict[str, Any]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.parameters = parameters
        self.aliases: Tuple[str, ...] = ()

    # ==================== Token Helpers ====================

    def _current(self) -> Token:
        """Get current token without consuming."""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]

    def _previous(self) -> Token:
        if self.pos > 0:
            return self.tokens[self.pos - 1]
        return self.tokens[0]

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _match(self, *token_types: TokenType) -> bool:
        """Check if current token matches any of the given types and advance if so."""
        for token_type in token_types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _consume(self, token_type: TokenType, message: str, suggestion: Optional[str] = None) -> Token:
        """
        Consume token of expected type or raise error.

        Raises:
            ParseError: If token type doesn't match
        """
        if self._check(token_type):
            return self._advance()
        raise self._error(message, suggestion=suggestion)

    def _error(self, message: str, token: Optional[Token] = None, suggestion: Optional[str] = None) -> ParseError:
        token = token or self._current()
        found = "end of query" if token.type == TokenType.EOF else repr(token.text)
        return ParseError(
            f"{message}, found {found}",
            token.position,
            token=token.text or None,
            suggestion=suggestion
        )

    # ==================== Entry Point ====================

    def parse(self, text: str, parameters: Parameters = None) -> ParsedQuery:
        """
        Parse query text into a ParsedQuery.

        Args:
            text: SQL query text
            parameters: Values for ``@name`` references

        Returns:
            Parsed query

        Raises:
            ParseError: If the text is not a valid query
        """
        self.observer.on_parse_start(text)
        start = time.perf_counter()

        try:
            if text is None or not text.strip():
                raise ParseError("Query text is empty", Position(1, 1, 0))
            self._reset(SqlLexer(text).tokenize(), normalize_parameters(parameters))
            query = self._parse_query(text)
        except ParseError as e:
            logger.debug("Failed to parse query %r: %s", text, e.message)
            self.observer.on_parse_error(text, e)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.debug("Parsed query %r in %.3f ms", text, duration_ms)
        self.observer.on_parse_end(query, duration_ms)
        return query

    def dump_debug_info(self, text: str, parameters: Parameters = None) -> str:
        """
        Render the token stream and parsed structure of a query as text.

        Never raises on malformed queries; the error is included instead.
        """
        lines = [f"Query: {text}", "Tokens:"]
        try:
            for token in SqlLexer(text).tokenize():
                lines.append(f"  {token}")
        except ParseError as e:
            lines.append(f"  <lexer error: {e}>")

        try:
            query = self.parse(text, parameters)
        except ParseError as e:
            lines.append(f"Parse error: {e}")
            return "\n".join(lines)

        lines.append("Parsed:")
        lines.extend(
            f"  {line}" for line in json.dumps(query.to_dict(), indent=2, default=str).splitlines()
        )
        return "\n".join(lines)

    # ==================== Clauses ====================

    def _parse_query(self, text: str) -> ParsedQuery:
        self._consume(TokenType.SELECT, "Expected SELECT", suggestion="Queries start with: SELECT * FROM c")

        top = None
        if self._match(TokenType.TOP):
            top = self._parse_row_count("TOP")

        raw_projection = self._parse_projection()

        self._consume(TokenType.FROM, "Expected FROM after the projection")
        from_name = self._consume(TokenType.IDENTIFIER, "Expected a container reference after FROM").value

        from_alias = None
        if self._match(TokenType.AS):
            from_alias = self._consume(TokenType.IDENTIFIER, "Expected an alias after AS").value
        elif self._check(TokenType.IDENTIFIER):
            from_alias = self._advance().value

        if from_alias is not None:
            self.aliases = (from_alias,)
        else:
            self.aliases = (from_name,) + CONVENTIONAL_ALIASES

        projection = self._build_projection(raw_projection)

        where = None
        if self._match(TokenType.WHERE):
            where = self._parse_or_expression()

        order_by: Tuple[OrderByItem, ...] = ()
        if self._match(TokenType.ORDER):
            self._consume(TokenType.BY, "Expected BY after ORDER")
            order_by = self._parse_order_by()

        limit = top
        if self._check(TokenType.LIMIT):
            limit_token = self._advance()
            if top is not None:
                raise ParseError(
                    "TOP and LIMIT cannot be used in the same query",
                    limit_token.position,
                    token=limit_token.text,
                    suggestion="Remove either the TOP or the LIMIT clause"
                )
            limit = self._parse_row_count("LIMIT")

        if not self._is_at_end():
            raise self._error(
                "Unexpected token",
                suggestion="Check for missing operators, commas or parentheses"
            )

        return ParsedQuery(
            text=text,
            projection=projection,
            from_name=from_name,
            from_alias=from_alias,
            where=where,
            order_by=order_by,
            limit=limit,
        )

    def _parse_row_count(self, clause: str) -> int:
        """Parse the non-negative integer following TOP or LIMIT."""
        token = self._current()
        if self._match(TokenType.INTEGER):
            value = token.value
        elif self._match(TokenType.PARAMETER):
            value = self._parameter_value(token)
        else:
            raise self._error(f"Expected an integer after {clause}")

        if not is_number(value) or isinstance(value, float) or value < 0:
            raise ParseError(
                f"{clause} requires a non-negative integer, got {value!r}",
                token.position,
                token=token.text
            )
        return value

    def _parse_projection(self) -> Union[str, List[Tuple[Tuple[str, ...], Token, Optional[str]]]]:
        # Paths are kept raw until FROM declares the alias to strip
        if self._match(TokenType.STAR):
            return WILDCARD

        items = []
        while True:
            raw_path, start = self._parse_raw_path("Expected '*' or a property path in SELECT")
            alias = None
            if self._match(TokenType.AS):
                alias = self._consume(TokenType.IDENTIFIER, "Expected an output name after AS").value
            items.append((raw_path, start, alias))
            if not self._match(TokenType.COMMA):
                break
        return items

    def _build_projection(self, raw_projection) -> Projection:
        if raw_projection == WILDCARD:
            return WILDCARD

        items = []
        for raw_path, start, alias in raw_projection:
            segments = self._strip_alias(raw_path)
            if not segments and alias is None:
                if len(raw_projection) == 1:
                    return WILDCARD
                raise ParseError(
                    "Selecting the whole document cannot be combined with other items",
                    start.position,
                    token=start.text,
                    suggestion="Use AS to name the document or select it on its own"
                )
            items.append(ProjectionItem(".".join(raw_path), segments, alias))
        return tuple(items)

    def _parse_order_by(self) -> Tuple[OrderByItem, ...]:
        items = []
        while True:
            raw_path, _ = self._parse_raw_path("Expected a property path in ORDER BY")
            direction = SortDirection.ASCENDING
            if self._match(TokenType.DESC):
                direction = SortDirection.DESCENDING
            else:
                self._match(TokenType.ASC)
            items.append(OrderByItem(".".join(raw_path), self._strip_alias(raw_path), direction))
            if not self._match(TokenType.COMMA):
                break
        return tuple(items)

    # ==================== Paths ====================

    def _parse_raw_path(self, message: str) -> Tuple[Tuple[str, ...], Token]:
        start = self._consume(TokenType.IDENTIFIER, message)
        segments = [start.value]
        while self._match(TokenType.DOT):
            segment = self._current()
            if not self._is_name(segment):
                raise self._error("Expected a property name after '.'")
            self._advance()
            segments.append(segment.text)
        return tuple(segments), start

    @staticmethod
    def _is_name(token: Token) -> bool:
        # Reserved words are valid property names after a dot (c.order, c.value)
        return (
            token.type == TokenType.IDENTIFIER
            or token.type.is_keyword()
            or token.type in (TokenType.BOOLEAN, TokenType.NULL)
        )

    def _strip_alias(self, raw_path: Tuple[str, ...]) -> Tuple[str, ...]:
        if raw_path[0] in self.aliases:
            return raw_path[1:]
        return raw_path

    def _make_property(self, raw_path: Tuple[str, ...], start: Token) -> PropertyNode:
        return PropertyNode(".".join(raw_path), self._strip_alias(raw_path), start.position)

    # ==================== Expressions ====================

    def _parse_or_expression(self) -> ASTNode:
        """
        Parse OR expression (lowest precedence).

        Grammar: or_expression = and_expression { "OR" and_expression }
        """
        left = self._parse_and_expression()

        while self._match(TokenType.OR):
            op_token = self._previous()
            right = self._parse_and_expression()
            left = BinaryOpNode(BinaryOperator.OR, left, right, op_token.position)

        return left

    def _parse_and_expression(self) -> ASTNode:
        """
        Parse AND expression.

        Grammar: and_expression = unary_expression { "AND" unary_expression }
        """
        left = self._parse_unary_expression()

        while self._match(TokenType.AND):
            op_token = self._previous()
            right = self._parse_unary_expression()
            left = BinaryOpNode(BinaryOperator.AND, left, right, op_token.position)

        return left

    def _parse_unary_expression(self) -> ASTNode:
        """
        Parse unary expression (NOT).

        Grammar: unary_expression = "NOT" unary_expression | comparison
        """
        if self._match(TokenType.NOT):
            op_token = self._previous()
            operand = self._parse_unary_expression()
            return UnaryOpNode(UnaryOperator.NOT, operand, op_token.position)

        return self._parse_comparison()

    def _parse_comparison(self) -> ASTNode:
        """
        Parse comparison expression.

        Grammar: comparison = operand [ comp_op operand ]
        """
        left = self._parse_operand()

        operator = self.COMPARISON_OPS.get(self._current().type)
        if operator is None:
            return left

        op_token = self._advance()
        right = self._parse_operand()
        return BinaryOpNode(operator, left, right, op_token.position)

    def _parse_operand(self) -> ASTNode:
        token = self._current()

        if token.type in self.LITERAL_TYPES:
            self._advance()
            return ConstantNode(token.value, token.position)

        if token.type == TokenType.PARAMETER:
            self._advance()
            return ConstantNode(self._parameter_value(token), token.position)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_or_expression()
            self._consume(TokenType.RPAREN, "Expected closing parenthesis ')'")
            return expr

        if token.type == TokenType.IDENTIFIER:
            if self.pos + 1 < len(self.tokens) and self.tokens[self.pos + 1].type == TokenType.LPAREN:
                return self._parse_function_call()
            raw_path, start = self._parse_raw_path("Expected a property path")
            return self._make_property(raw_path, start)

        raise self._error(
            "Expected a value, property path or function call",
            suggestion="Check for a missing operand or misplaced keyword"
        )

    def _parameter_value(self, token: Token) -> Any:
        if token.value not in self.parameters:
            known = ", ".join(sorted(self.parameters)) or "none"
            raise ParseError(
                f"Unknown query parameter: {token.value}",
                token.position,
                token=token.text,
                suggestion=f"Supply a value for {token.value} (known parameters: {known})"
            )
        return copy.deepcopy(self.parameters[token.value])

    def _parse_function_call(self) -> FunctionCallNode:
        """
        Parse function call.

        Grammar: function_call = ident "(" [ or_expression { "," or_expression } ] ")"
        """
        name_token = self._advance()
        name = name_token.value.upper()

        signature = self.function_registry.get_signature(name)
        if signature is None:
            raise ParseError(
                f"Unknown function: {name_token.value}",
                name_token.position,
                token=name_token.text,
                suggestion=self._suggest_function(name)
            )

        self._consume(TokenType.LPAREN, f"Expected '(' after function name '{name}'")

        arguments = []
        if not self._check(TokenType.RPAREN):
            arguments.append(self._parse_or_expression())
            while self._match(TokenType.COMMA):
                arguments.append(self._parse_or_expression())

        self._consume(TokenType.RPAREN, f"Expected ')' to close {name}(")

        if len(arguments) != signature.arity:
            raise ParseError(
                f"Function {name} expects {signature.arity} argument(s), got {len(arguments)}",
                name_token.position,
                token=name_token.text
            )

        return FunctionCallNode(name, tuple(arguments), name_token.position)

    def _suggest_function(self, name: str) -> Optional[str]:
        known = self.function_registry.list_functions()
        matches = difflib.get_close_matches(name, known, n=1, cutoff=0.6)
        if matches:
            return f"Did you mean '{matches[0]}'?"
        return f"Available functions: {', '.join(known)}"


def parse_query(
    text: str,
    parameters: Parameters = None,
    observer: Optional[QueryObserver] = None
) -> ParsedQuery:
    """
    Parse query text with the built-in function registry.

    Args:
        text: SQL query text
        parameters: Values for ``@name`` references
        observer: Optional parse observer

    Returns:
        Parsed query

    Raises:
        ParseError: If the text is not a valid query
    """
    return SqlQueryParser(observer=observer).parse(text, parameters)
