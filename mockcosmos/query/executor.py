"""
Cosmos DB SQL Query Execution Pipeline.

Runs a ParsedQuery over an in-memory collection in four strictly ordered
stages, each completing before the next begins:

    Filter -> Order -> Limit -> Project

Sort order across value kinds follows Cosmos DB:

    undefined < null < false < true < numbers < strings < arrays < objects

Missing ORDER BY keys always sort first, in both directions; DESC reverses
the order among defined values only. The sort is stable.

Example:
    >>> executor = QueryExecutor()
    >>> docs = [{'id': '1', 'age': 30}, {'id': '2', 'age': 42}]
    >>> executor.execute(parse_query("SELECT * FROM c ORDER BY c.age DESC"), docs)
    [{'id': '2', 'age': 42}, {'id': '1', 'age': 30}]

Author: MockCosmos Team
Version: 1.0.0
"""

import copy
import functools
import logging
import time
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .diagnostics import QueryObserver
from .evaluator import ExpressionEvaluator, compare_ordinal
from .exceptions import InvalidOperandError, UnsupportedComparisonError
from .parser import OrderByItem, ParsedQuery, SortDirection
from .types import UNDEFINED, ValueKind, kind_of, resolve_path, set_path

logger = logging.getLogger(__name__)

# Per-document errors that lenient mode turns into "no match"
DOCUMENT_LEVEL_ERRORS = (UnsupportedComparisonError, InvalidOperandError)


class PipelineStage(Enum):
    """Execution pipeline stages, in execution order."""
    FILTER = "filter"
    ORDER = "order"
    LIMIT = "limit"
    PROJECT = "project"

    def __str__(self) -> str:
        return self.value


def compare_sort_values(left: Any, right: Any) -> int:
    """
    Three-way comparison of two ORDER BY key values in ascending order.

    Values of different kinds compare by kind rank. Booleans order
    false < true, numbers numerically, strings case-insensitively; arrays and
    objects tie with others of their kind.
    """
    left_kind = kind_of(left)
    right_kind = kind_of(right)

    if left_kind != right_kind:
        return (left_kind.value > right_kind.value) - (left_kind.value < right_kind.value)
    if left_kind == ValueKind.BOOLEAN:
        return (left > right) - (left < right)

    order = compare_ordinal(left, right)
    return order if order is not None else 0


class QueryExecutor:
    """
    Executes parsed queries against document collections.

    Documents are never mutated. Wildcard projections return the input
    documents themselves; explicit projections build new documents from
    deep-copied values.

    Error policy:
        UnsupportedComparisonError and InvalidOperandError raised while
        filtering exclude only the offending document, unless strict_mode is
        set, in which case they propagate. All other errors propagate.
    """

    def __init__(
        self,
        evaluator: Optional[ExpressionEvaluator] = None,
        observer: Optional[QueryObserver] = None,
        strict_mode: bool = False
    ):
        """
        Initialize executor.

        Args:
            evaluator: Expression evaluator (created with the observer if None)
            observer: Receives predicate and stage notifications
            strict_mode: Propagate per-document evaluation errors
        """
        self.observer = observer or QueryObserver()
        self.evaluator = evaluator or ExpressionEvaluator(observer=self.observer)
        self.strict_mode = strict_mode

    def execute(self, query: ParsedQuery, documents: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Run a query over a collection.

        Args:
            query: Parsed query
            documents: Collection to scan (materialised once)

        Returns:
            Result documents in output order

        Raises:
            EvaluationError: For query-level failures, or per-document
                failures in strict mode
        """
        start = time.perf_counter()
        documents = list(documents)

        filtered = self._filter(query, documents)
        self.observer.on_stage(PipelineStage.FILTER, len(documents), len(filtered))

        ordered = self._order(query.order_by, filtered)
        self.observer.on_stage(PipelineStage.ORDER, len(filtered), len(ordered))

        limited = ordered if query.limit is None else ordered[:query.limit]
        self.observer.on_stage(PipelineStage.LIMIT, len(ordered), len(limited))

        projected = self._project(query, limited)
        self.observer.on_stage(PipelineStage.PROJECT, len(limited), len(projected))

        logger.debug(
            "Executed %r over %d documents: %d results in %.3f ms",
            query.text,
            len(documents),
            len(projected),
            (time.perf_counter() - start) * 1000,
        )
        return projected

    # ==================== Filter ====================

    def _filter(self, query: ParsedQuery, documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if query.where is None:
            return list(documents)

        matched = []
        for document in documents:
            try:
                is_match = self.evaluator.evaluate_predicate(document, query.where)
            except DOCUMENT_LEVEL_ERRORS as e:
                self.observer.on_predicate(document, False, e)
                if self.strict_mode:
                    raise
                logger.debug("Excluding document %r: %s", document.get('id'), e.message)
                continue

            self.observer.on_predicate(document, is_match, None)
            if is_match:
                matched.append(document)
        return matched

    # ==================== Order ====================

    def _order(self, order_by: Iterable[OrderByItem], documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        order_by = tuple(order_by)
        if not order_by:
            return documents

        def compare(left: Dict[str, Any], right: Dict[str, Any]) -> int:
            for item in order_by:
                result = self._compare_key(
                    resolve_path(left, item.segments),
                    resolve_path(right, item.segments),
                    item.direction
                )
                if result != 0:
                    return result
            return 0

        # sorted() is stable, so full ties keep filtered order
        return sorted(documents, key=functools.cmp_to_key(compare))

    @staticmethod
    def _compare_key(left: Any, right: Any, direction: SortDirection) -> int:
        if left is UNDEFINED or right is UNDEFINED:
            # Missing keys lead in both directions
            return (right is UNDEFINED) - (left is UNDEFINED)

        result = compare_sort_values(left, right)
        if direction == SortDirection.DESCENDING:
            return -result
        return result

    # ==================== Project ====================

    def _project(self, query: ParsedQuery, documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if query.is_wildcard:
            return documents
        return [self._project_document(query, document) for document in documents]

    @staticmethod
    def _project_document(query: ParsedQuery, document: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if 'id' in document:
            result['id'] = document['id']

        for item in query.projection:
            value = resolve_path(document, item.segments)
            if value is UNDEFINED:
                continue
            set_path(result, item.output_segments, copy.deepcopy(value))
        return result
