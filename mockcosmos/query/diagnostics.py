"""
Query Diagnostics: observers, structured logging and Prometheus metrics.

The parser, evaluator, executor and pager report progress to a single
``QueryObserver``. The base class ignores every notification, so components
constructed without an observer pay nothing for diagnostics.

Observers:
- QueryObserver: no-op base class
- LoggingQueryObserver: structured log records with ``extra`` fields
- MetricsQueryObserver: Prometheus counters and histograms
- CompositeQueryObserver: fans notifications out to several observers

Example:
    >>> observer = CompositeQueryObserver(LoggingQueryObserver(), MetricsQueryObserver())
    >>> executor = QueryExecutor(observer=observer)

Author: MockCosmos Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class QueryObserver:
    """
    Receives notifications from query processing.

    Every hook is a no-op; subclasses override the ones they need. Hooks must
    not raise, and must not mutate the objects they are handed.
    """

    def on_parse_start(self, text: str) -> None:
        """Called before query text is parsed."""

    def on_parse_end(self, query: Any, duration_ms: float) -> None:
        """Called with the ParsedQuery after a successful parse."""

    def on_parse_error(self, text: str, error: Exception) -> None:
        """Called when parsing fails, before the error propagates."""

    def on_comparison(self, operator: Any, left: Any, right: Any, result: Any) -> None:
        """Called after every comparison operator is evaluated."""

    def on_predicate(self, document: Dict[str, Any], matched: bool, error: Optional[Exception]) -> None:
        """Called after the WHERE clause is evaluated for a document."""

    def on_stage(self, stage: Any, input_count: int, output_count: int) -> None:
        """Called after each pipeline stage completes."""

    def on_page(self, offset: int, returned: int, has_more: bool) -> None:
        """Called after a page of results is produced."""


class CompositeQueryObserver(QueryObserver):
    """Forwards every notification to each wrapped observer in order."""

    def __init__(self, *observers: QueryObserver):
        self.observers = [observer for observer in observers if observer is not None]

    def on_parse_start(self, text: str) -> None:
        for observer in self.observers:
            observer.on_parse_start(text)

    def on_parse_end(self, query: Any, duration_ms: float) -> None:
        for observer in self.observers:
            observer.on_parse_end(query, duration_ms)

    def on_parse_error(self, text: str, error: Exception) -> None:
        for observer in self.observers:
            observer.on_parse_error(text, error)

    def on_comparison(self, operator: Any, left: Any, right: Any, result: Any) -> None:
        for observer in self.observers:
            observer.on_comparison(operator, left, right, result)

    def on_predicate(self, document: Dict[str, Any], matched: bool, error: Optional[Exception]) -> None:
        for observer in self.observers:
            observer.on_predicate(document, matched, error)

    def on_stage(self, stage: Any, input_count: int, output_count: int) -> None:
        for observer in self.observers:
            observer.on_stage(stage, input_count, output_count)

    def on_page(self, offset: int, returned: int, has_more: bool) -> None:
        for observer in self.observers:
            observer.on_page(offset, returned, has_more)


class LoggingQueryObserver(QueryObserver):
    """
    Structured logger for query processing.

    Parse and page events are logged at INFO, per-document and per-comparison
    events at DEBUG, errors at WARNING. Every record carries an ``event``
    field for JSON log consumers.

    Example:
        >>> observer = LoggingQueryObserver()
        >>> parse_query("SELECT * FROM c", observer=observer)
    """

    def __init__(self, logger_name: str = "mockcosmos.query"):
        """
        Initialize query logger.

        Args:
            logger_name: Logger name for Python logging
        """
        self.logger = logging.getLogger(logger_name)

    def on_parse_start(self, text: str) -> None:
        self.logger.debug(
            "Parsing query",
            extra={'event': 'parse_start', 'query_text': text}
        )

    def on_parse_end(self, query: Any, duration_ms: float) -> None:
        self.logger.info(
            f"Query parsed in {duration_ms:.2f}ms",
            extra={
                'event': 'parse_end',
                'query_text': query.text,
                'duration_ms': duration_ms,
                'query': query.to_dict(),
            }
        )

    def on_parse_error(self, text: str, error: Exception) -> None:
        error_dict = error.to_dict() if hasattr(error, 'to_dict') else {}
        self.logger.warning(
            f"Query parse failed: {error}",
            extra={
                'event': 'parse_error',
                'query_text': text,
                'error_type': type(error).__name__,
                'error_details': error_dict,
            }
        )

    def on_comparison(self, operator: Any, left: Any, right: Any, result: Any) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                f"Compared {left!r} {operator} {right!r} -> {result!r}",
                extra={'event': 'comparison', 'operator': str(operator)}
            )

    def on_predicate(self, document: Dict[str, Any], matched: bool, error: Optional[Exception]) -> None:
        doc_id = document.get('id') if isinstance(document, dict) else None
        if error is not None:
            self.logger.warning(
                f"Document {doc_id!r} excluded: {error}",
                extra={
                    'event': 'predicate_error',
                    'document_id': doc_id,
                    'error_type': type(error).__name__,
                }
            )
            return
        self.logger.debug(
            f"Document {doc_id!r} {'matched' if matched else 'did not match'}",
            extra={'event': 'predicate', 'document_id': doc_id, 'matched': matched}
        )

    def on_stage(self, stage: Any, input_count: int, output_count: int) -> None:
        self.logger.debug(
            f"Stage {stage}: {input_count} -> {output_count} documents",
            extra={
                'event': 'stage',
                'stage': str(stage),
                'input_count': input_count,
                'output_count': output_count,
            }
        )

    def on_page(self, offset: int, returned: int, has_more: bool) -> None:
        self.logger.info(
            f"Page served: {returned} documents from offset {offset}",
            extra={
                'event': 'page',
                'offset': offset,
                'returned': returned,
                'has_more': has_more,
            }
        )


class QueryMetrics:
    """
    Prometheus metrics for query processing.

    Tracks parse volume and latency, per-document predicate outcomes,
    evaluation errors, stage output sizes and pages served.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None, namespace: str = "mockcosmos"):
        """
        Initialize metrics collectors.

        Args:
            registry: Prometheus registry (uses default if None)
            namespace: Prefix for metric names
        """
        self.registry = registry
        self.namespace = namespace
        target = registry if registry is not None else REGISTRY

        self.queries_parsed_total = Counter(
            f'{namespace}_queries_parsed_total',
            'Total queries parsed successfully',
            registry=target
        )

        self.parse_errors_total = Counter(
            f'{namespace}_parse_errors_total',
            'Total queries rejected by the parser',
            ['error_type'],
            registry=target
        )

        self.parse_duration_seconds = Histogram(
            f'{namespace}_parse_duration_seconds',
            'Query parse duration in seconds',
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1),
            registry=target
        )

        self.documents_evaluated_total = Counter(
            f'{namespace}_documents_evaluated_total',
            'Documents tested against a WHERE clause',
            ['matched'],
            registry=target
        )

        self.evaluation_errors_total = Counter(
            f'{namespace}_evaluation_errors_total',
            'Documents excluded because evaluation raised',
            ['error_type'],
            registry=target
        )

        self.stage_documents = Histogram(
            f'{namespace}_stage_documents',
            'Documents produced by each pipeline stage',
            ['stage'],
            buckets=(0, 1, 10, 100, 1000, 10000),
            registry=target
        )

        self.pages_served_total = Counter(
            f'{namespace}_pages_served_total',
            'Total result pages served',
            registry=target
        )

        self._collectors = (
            self.queries_parsed_total,
            self.parse_errors_total,
            self.parse_duration_seconds,
            self.documents_evaluated_total,
            self.evaluation_errors_total,
            self.stage_documents,
            self.pages_served_total,
        )

    def unregister(self) -> None:
        """Remove this instance's collectors from their registry."""
        target = self.registry if self.registry is not None else REGISTRY
        for collector in self._collectors:
            target.unregister(collector)

    def generate_metrics(self) -> bytes:
        """
        Generate Prometheus metrics output.

        Returns:
            Metrics in Prometheus text format
        """
        registry = self.registry if self.registry is not None else REGISTRY
        return generate_latest(registry)

    def get_content_type(self) -> str:
        return CONTENT_TYPE_LATEST


class MetricsQueryObserver(QueryObserver):
    """Records query processing notifications as Prometheus metrics."""

    def __init__(self, metrics: Optional[QueryMetrics] = None):
        """
        Args:
            metrics: Metrics to update (global instance if None)
        """
        self.metrics = metrics or get_metrics()

    def on_parse_end(self, query: Any, duration_ms: float) -> None:
        self.metrics.queries_parsed_total.inc()
        self.metrics.parse_duration_seconds.observe(duration_ms / 1000)

    def on_parse_error(self, text: str, error: Exception) -> None:
        self.metrics.parse_errors_total.labels(error_type=type(error).__name__).inc()

    def on_predicate(self, document: Dict[str, Any], matched: bool, error: Optional[Exception]) -> None:
        self.metrics.documents_evaluated_total.labels(matched=str(matched).lower()).inc()
        if error is not None:
            self.metrics.evaluation_errors_total.labels(error_type=type(error).__name__).inc()

    def on_stage(self, stage: Any, input_count: int, output_count: int) -> None:
        self.metrics.stage_documents.labels(stage=str(stage)).observe(output_count)

    def on_page(self, offset: int, returned: int, has_more: bool) -> None:
        self.metrics.pages_served_total.inc()


# Global metrics instances, one per namespace
_metrics: Dict[str, QueryMetrics] = {}


def get_metrics(namespace: str = "mockcosmos") -> QueryMetrics:
    """
    Get global metrics instance for a namespace (singleton).

    Returns:
        QueryMetrics registered on the default Prometheus registry
    """
    if namespace not in _metrics:
        _metrics[namespace] = QueryMetrics(namespace=namespace)
    return _metrics[namespace]


def reset_metrics() -> None:
    """Reset global metrics instances (for testing)."""
    for metrics in _metrics.values():
        metrics.unregister()
    _metrics.clear()
