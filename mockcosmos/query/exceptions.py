"""
Cosmos DB SQL Query Exceptions.

Error hierarchy for parsing and evaluating SQL queries, with error codes
matching Cosmos DB REST responses and position information for syntax errors.

Hierarchy:
    QueryError
    ├── ParseError
    │   └── LexerError
    ├── EvaluationError
    │   ├── UnsupportedComparisonError
    │   ├── InvalidOperandError
    │   ├── UnknownFunctionError
    │   └── UnsupportedOperatorError
    └── InvalidContinuationTokenError

Author: MockCosmos Team
Version: 1.0.0
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .lexer import Position


class QueryError(Exception):
    """
    Base class for all query errors.

    Attributes:
        message: Human-readable error message
        error_code: Cosmos DB error code
        position: Position in query text where error occurred
        suggestion: Suggestion for fixing the error
    """

    def __init__(
        self,
        message: str,
        error_code: str = "BadRequest",
        position: Optional['Position'] = None,
        suggestion: Optional[str] = None
    ):
        self.message = message
        self.error_code = error_code
        self.position = position
        self.suggestion = suggestion
        super().__init__(self._format())

    def _format(self) -> str:
        text = self.message
        if self.position is not None:
            text = f"{text} (at {self.position})"
        if self.suggestion:
            text += f"\n  Suggestion: {self.suggestion}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary format.

        Returns dictionary compatible with a Cosmos DB error response body.
        """
        result: Dict[str, Any] = {
            'code': self.error_code,
            'message': self.message,
        }

        if self.position is not None:
            result['position'] = {
                'line': self.position.line,
                'column': self.position.column,
                'offset': self.position.offset,
            }

        if self.suggestion:
            result['suggestion'] = self.suggestion

        return result


class ParseError(QueryError):
    """
    Malformed query text.

    Raised for unexpected tokens, unknown functions, wrong function arity,
    unknown parameters and invalid LIMIT/TOP values.

    Attributes:
        token: Text of the offending token, if any
    """

    def __init__(
        self,
        message: str,
        position: Optional['Position'] = None,
        token: Optional[str] = None,
        suggestion: Optional[str] = None
    ):
        self.token = token
        super().__init__(message, "BadRequest", position, suggestion)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        if self.token is not None:
            result['token'] = self.token
        return result


class LexerError(ParseError):
    """Invalid character sequence, such as an unterminated string literal."""


class EvaluationError(QueryError):
    """
    Runtime failure while evaluating an expression against a document.

    Attributes:
        node: AST node being evaluated when the error occurred
    """

    def __init__(self, message: str, node: Any = None):
        self.node = node
        position = getattr(node, 'position', None)
        super().__init__(message, "BadRequest", position)


class UnsupportedComparisonError(EvaluationError):
    """Ordering comparison between operands of incompatible kinds."""

    def __init__(self, operator: Any, left_kind: Any, right_kind: Any, node: Any = None):
        self.operator = operator
        self.left_kind = left_kind
        self.right_kind = right_kind
        super().__init__(
            f"Operator '{operator}' is not supported between {left_kind} and {right_kind}",
            node
        )


class InvalidOperandError(EvaluationError):
    """Operand of the wrong kind for a unary operator."""

    def __init__(self, operator: Any, operand_kind: Any, node: Any = None):
        self.operator = operator
        self.operand_kind = operand_kind
        super().__init__(
            f"Operator '{operator}' requires a boolean operand, got {operand_kind}",
            node
        )


class UnknownFunctionError(EvaluationError):
    """Function name not present in the evaluator's function registry."""

    def __init__(self, function_name: str, node: Any = None):
        self.function_name = function_name
        super().__init__(f"Unknown function: {function_name}", node)


class UnsupportedOperatorError(EvaluationError):
    """Operator outside the set the evaluator handles."""

    def __init__(self, operator: Any, node: Any = None):
        self.operator = operator
        super().__init__(f"Unsupported operator: {operator}", node)


class InvalidContinuationTokenError(QueryError):
    """Continuation token minted for a different query or page size."""

    def __init__(self, message: str):
        super().__init__(message, "BadRequest")
