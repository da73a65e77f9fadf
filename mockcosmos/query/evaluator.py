"""
Cosmos DB SQL Expression Evaluator.

This module evaluates WHERE expression trees against JSON documents using the
visitor pattern, following Cosmos DB comparison semantics.

Features:
- Visitor-based AST traversal
- Short-circuit AND/OR with three-valued logic (True, False, UNDEFINED)
- Missing properties evaluate to UNDEFINED and never raise
- Case-insensitive string equality and ordering
- Numeric widening (int vs float) for comparisons
- Ordering across incompatible kinds raises UnsupportedComparisonError

Example:
    >>> from mockcosmos.query.parser import parse_query
    >>> query = parse_query("SELECT * FROM c WHERE c.Name = 'alice'")
    >>> ExpressionEvaluator().evaluate_predicate({'Name': 'Alice'}, query.where)
    True

Author: MockCosmos Team
Version: 1.0.0
"""

from typing import Any, Dict, Optional

from .diagnostics import QueryObserver
from .exceptions import (
    EvaluationError,
    InvalidOperandError,
    UnknownFunctionError,
    UnsupportedComparisonError,
    UnsupportedOperatorError,
)
from .functions import FunctionRegistry, default_registry
from .parser import (
    ASTNode,
    ASTVisitor,
    BinaryOperator,
    BinaryOpNode,
    ConstantNode,
    FunctionCallNode,
    PropertyNode,
    UnaryOperator,
    UnaryOpNode,
)
from .types import UNDEFINED, ValueKind, is_number, kind_of, resolve_path


def truth_value(value: Any) -> Any:
    """
    Reduce a value to predicate truthiness.

    Returns:
        True, False, or UNDEFINED. Booleans are themselves, UNDEFINED stays
        UNDEFINED, null is False and any other defined value is True.
    """
    if value is True or value is False or value is UNDEFINED:
        return value
    if value is None:
        return False
    return True


def _widen(value: Any, other: Any) -> Any:
    # ints stay exact unless compared against a float
    if isinstance(other, float) and not isinstance(value, float):
        return float(value)
    return value


def values_equal(left: Any, right: Any) -> bool:
    """
    Cosmos DB equality between two defined values.

    Strings compare case-insensitively, numbers after widening, null equals
    null, arrays and objects by exact JSON deep equality. Values of different
    kinds are never equal.
    """
    left_kind = kind_of(left)
    if left_kind != kind_of(right):
        return False
    if left_kind == ValueKind.STRING:
        return left.lower() == right.lower()
    if left_kind == ValueKind.NUMBER:
        return _widen(left, right) == _widen(right, left)
    if left_kind in (ValueKind.ARRAY, ValueKind.OBJECT):
        return _deep_equal(left, right)
    return left == right


def _deep_equal(left: Any, right: Any) -> bool:
    # bool must not equal 1, unlike Python's ==
    left_kind = kind_of(left)
    if left_kind != kind_of(right):
        return False
    if left_kind == ValueKind.ARRAY:
        return len(left) == len(right) and all(
            _deep_equal(a, b) for a, b in zip(left, right)
        )
    if left_kind == ValueKind.OBJECT:
        return left.keys() == right.keys() and all(
            _deep_equal(left[key], right[key]) for key in left
        )
    if left_kind == ValueKind.NUMBER:
        return _widen(left, right) == _widen(right, left)
    return left == right


def compare_ordinal(left: Any, right: Any) -> Optional[int]:
    """
    Three-way comparison for number/number and string/string pairs.

    Returns:
        -1, 0 or 1, or None when the pair is not ordinally comparable
    """
    if is_number(left) and is_number(right):
        a, b = _widen(left, right), _widen(right, left)
    elif isinstance(left, str) and isinstance(right, str):
        a, b = left.lower(), right.lower()
    else:
        return None
    return (a > b) - (a < b)


class DocumentEvaluator(ASTVisitor):
    """
    AST visitor that evaluates an expression against one document.

    Implements three-valued logic for missing properties:
    - True: condition satisfied
    - False: condition not satisfied
    - UNDEFINED: condition cannot be determined (missing operand)

    Thread Safety:
        DocumentEvaluator instances are bound to a single document. Create
        one per evaluation.
    """

    def __init__(
        self,
        document: Dict[str, Any],
        function_registry: FunctionRegistry,
        observer: QueryObserver
    ):
        self.document = document
        self.function_registry = function_registry
        self.observer = observer

    def visit_constant(self, node: ConstantNode) -> Any:
        return node.value

    def visit_property(self, node: PropertyNode) -> Any:
        """
        Visit property access node.

        Returns:
            Property value, or UNDEFINED if the path does not exist
        """
        return resolve_path(self.document, node.segments)

    def visit_unary_op(self, node: UnaryOpNode) -> Any:
        """
        Visit unary operation node.

        Raises:
            InvalidOperandError: If NOT is applied to a non-boolean value
            UnsupportedOperatorError: If operator is not NOT
        """
        if node.operator != UnaryOperator.NOT:
            raise UnsupportedOperatorError(node.operator, node)

        operand = node.operand.accept(self)

        if operand is UNDEFINED:
            return UNDEFINED
        if not isinstance(operand, bool):
            raise InvalidOperandError(node.operator, kind_of(operand), node)
        return not operand

    def visit_binary_op(self, node: BinaryOpNode) -> Any:
        """
        Visit binary operation node.

        Raises:
            UnsupportedComparisonError: If an ordering operator gets incompatible kinds
            UnsupportedOperatorError: If operator is not handled
        """
        operator = node.operator

        if operator.is_logical():
            if operator == BinaryOperator.AND:
                return self._eval_and(node)
            return self._eval_or(node)

        left = node.left.accept(self)
        right = node.right.accept(self)

        if left is UNDEFINED or right is UNDEFINED:
            result = UNDEFINED
        elif operator == BinaryOperator.EQUAL:
            result = values_equal(left, right)
        elif operator == BinaryOperator.NOT_EQUAL:
            result = not values_equal(left, right)
        elif operator.is_ordering():
            result = self._compare_ordering(node, left, right)
        else:
            raise UnsupportedOperatorError(operator, node)

        self.observer.on_comparison(operator, left, right, result)
        return result

    def _compare_ordering(self, node: BinaryOpNode, left: Any, right: Any) -> bool:
        order = compare_ordinal(left, right)
        if order is None:
            raise UnsupportedComparisonError(node.operator, kind_of(left), kind_of(right), node)

        operator = node.operator
        if operator == BinaryOperator.GREATER_THAN:
            return order > 0
        if operator == BinaryOperator.GREATER_THAN_OR_EQUAL:
            return order >= 0
        if operator == BinaryOperator.LESS_THAN:
            return order < 0
        return order <= 0

    def _eval_and(self, node: BinaryOpNode) -> Any:
        """
        Evaluate AND with short-circuit and three-valued logic.

        Truth table:
            False AND * = False
            True AND True = True
            True AND Undefined = Undefined
            Undefined AND False = False
            Undefined AND True = Undefined
        """
        left = truth_value(node.left.accept(self))
        if left is False:
            return False

        right = truth_value(node.right.accept(self))
        if right is False:
            return False

        if left is True and right is True:
            return True
        return UNDEFINED

    def _eval_or(self, node: BinaryOpNode) -> Any:
        """
        Evaluate OR with short-circuit and three-valued logic.

        Truth table:
            True OR * = True
            False OR False = False
            False OR Undefined = Undefined
            Undefined OR True = True
            Undefined OR False = Undefined
        """
        left = truth_value(node.left.accept(self))
        if left is True:
            return True

        right = truth_value(node.right.accept(self))
        if right is True:
            return True

        if left is False and right is False:
            return False
        return UNDEFINED

    def visit_function_call(self, node: FunctionCallNode) -> Any:
        """
        Visit function call node.

        Raises:
            UnknownFunctionError: If function is not registered
        """
        entry = self.function_registry.lookup(node.name)
        if entry is None:
            raise UnknownFunctionError(node.name, node)

        func, signature = entry
        if len(node.arguments) != signature.arity:
            raise EvaluationError(
                f"Function {node.name} expects {signature.arity} argument(s), "
                f"got {len(node.arguments)}",
                node
            )

        args = [arg.accept(self) for arg in node.arguments]
        return func(*args)


class ExpressionEvaluator:
    """
    Evaluates expression trees against documents.

    Example:
        >>> evaluator = ExpressionEvaluator()
        >>> evaluator.evaluate_value({'a': {'b': 1}}, PropertyNode('c.a.b', ('a', 'b')))
        1
    """

    def __init__(
        self,
        observer: Optional[QueryObserver] = None,
        function_registry: Optional[FunctionRegistry] = None
    ):
        """
        Initialize expression evaluator.

        Args:
            observer: Receives a notification after every comparison
            function_registry: Functions callable from expressions (built-ins if None)
        """
        self.observer = observer or QueryObserver()
        self.function_registry = function_registry or default_registry()

    def evaluate_value(self, document: Dict[str, Any], expr: ASTNode) -> Any:
        """
        Evaluate an expression to a value.

        Returns:
            Value of the expression, possibly UNDEFINED
        """
        return expr.accept(DocumentEvaluator(document, self.function_registry, self.observer))

    def evaluate_predicate(self, document: Dict[str, Any], expr: Optional[ASTNode]) -> bool:
        """
        Evaluate an expression as a filter condition.

        Args:
            document: Document to test
            expr: Filter expression (None matches every document)

        Returns:
            True only if the expression is definitely true for the document
        """
        if expr is None:
            return True
        return truth_value(self.evaluate_value(document, expr)) is True
