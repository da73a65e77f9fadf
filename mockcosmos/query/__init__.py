"""
Cosmos DB SQL query engine.

Parses the Cosmos DB SQL subset, evaluates expressions against JSON
documents and runs the Filter -> Order -> Limit -> Project pipeline with
continuation-token pagination.

Author: MockCosmos Team
Version: 1.0.0
"""

from .types import UNDEFINED, ValueKind, kind_of, resolve_path, set_path
from .exceptions import (
    QueryError,
    ParseError,
    LexerError,
    EvaluationError,
    UnsupportedComparisonError,
    InvalidOperandError,
    UnknownFunctionError,
    UnsupportedOperatorError,
    InvalidContinuationTokenError,
)
from .lexer import Position, SqlLexer, Token, TokenType
from .parser import (
    WILDCARD,
    ASTNode,
    ASTVisitor,
    BinaryOperator,
    BinaryOpNode,
    ConstantNode,
    FunctionCallNode,
    OrderByItem,
    ParsedQuery,
    ProjectionItem,
    PropertyNode,
    SortDirection,
    SqlQueryParser,
    UnaryOperator,
    UnaryOpNode,
    parse_query,
)
from .functions import FunctionLibrary, FunctionRegistry, FunctionSignature
from .evaluator import ExpressionEvaluator
from .executor import PipelineStage, QueryExecutor
from .pagination import Page, QueryPager
from .diagnostics import (
    CompositeQueryObserver,
    LoggingQueryObserver,
    MetricsQueryObserver,
    QueryMetrics,
    QueryObserver,
)

__all__ = [
    # Document model
    "UNDEFINED",
    "ValueKind",
    "kind_of",
    "resolve_path",
    "set_path",
    # Errors
    "QueryError",
    "ParseError",
    "LexerError",
    "EvaluationError",
    "UnsupportedComparisonError",
    "InvalidOperandError",
    "UnknownFunctionError",
    "UnsupportedOperatorError",
    "InvalidContinuationTokenError",
    # Lexer
    "Position",
    "SqlLexer",
    "Token",
    "TokenType",
    # Parser & AST
    "WILDCARD",
    "ASTNode",
    "ASTVisitor",
    "BinaryOperator",
    "BinaryOpNode",
    "ConstantNode",
    "FunctionCallNode",
    "OrderByItem",
    "ParsedQuery",
    "ProjectionItem",
    "PropertyNode",
    "SortDirection",
    "SqlQueryParser",
    "UnaryOperator",
    "UnaryOpNode",
    "parse_query",
    # Functions
    "FunctionLibrary",
    "FunctionRegistry",
    "FunctionSignature",
    # Execution
    "ExpressionEvaluator",
    "PipelineStage",
    "QueryExecutor",
    "Page",
    "QueryPager",
    # Diagnostics
    "CompositeQueryObserver",
    "LoggingQueryObserver",
    "MetricsQueryObserver",
    "QueryMetrics",
    "QueryObserver",
]
