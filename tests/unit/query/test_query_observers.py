"""
Unit tests for query observers and metrics.
"""

import logging

import pytest
from prometheus_client import CollectorRegistry

from mockcosmos.query.diagnostics import (
    CompositeQueryObserver,
    LoggingQueryObserver,
    MetricsQueryObserver,
    QueryMetrics,
    QueryObserver,
    get_metrics,
    reset_metrics,
)
from mockcosmos.query.exceptions import ParseError
from mockcosmos.query.executor import PipelineStage, QueryExecutor
from mockcosmos.query.pagination import QueryPager
from mockcosmos.query.parser import parse_query


@pytest.fixture
def registry():
    """Isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return QueryMetrics(registry=registry, namespace="test")


def sample(registry, name, labels=None):
    return registry.get_sample_value(name, labels or {})


class TestCompositeObserver:
    """Tests for CompositeQueryObserver."""

    def test_fans_out(self):
        """Test every wrapped observer receives notifications."""
        calls = []

        class Recorder(QueryObserver):
            def __init__(self, tag):
                self.tag = tag

            def on_stage(self, stage, input_count, output_count):
                calls.append((self.tag, str(stage)))

        composite = CompositeQueryObserver(Recorder("a"), None, Recorder("b"))
        composite.on_stage(PipelineStage.FILTER, 1, 1)

        assert calls == [("a", "filter"), ("b", "filter")]
        assert len(composite.observers) == 2

    def test_base_observer_is_silent(self):
        """Test the base observer accepts every hook."""
        observer = QueryObserver()

        observer.on_parse_start("x")
        observer.on_comparison(None, 1, 2, False)
        observer.on_page(0, 0, False)


class TestLoggingObserver:
    """Tests for LoggingQueryObserver."""

    def test_parse_end_logged_with_extra(self, caplog):
        """Test successful parses are logged at INFO with structured fields."""
        caplog.set_level(logging.INFO, logger="mockcosmos.query")

        parse_query("SELECT * FROM c", observer=LoggingQueryObserver())

        record = next(r for r in caplog.records if getattr(r, 'event', None) == 'parse_end')
        assert record.levelno == logging.INFO
        assert record.query_text == "SELECT * FROM c"
        assert record.query['projection'] == "*"

    def test_parse_error_logged_as_warning(self, caplog):
        """Test parse failures are logged at WARNING."""
        caplog.set_level(logging.INFO, logger="mockcosmos.query")

        with pytest.raises(ParseError):
            parse_query("SELECT", observer=LoggingQueryObserver())

        record = next(r for r in caplog.records if getattr(r, 'event', None) == 'parse_error')
        assert record.levelno == logging.WARNING
        assert record.error_type == "ParseError"
        assert record.error_details['code'] == "BadRequest"

    def test_predicate_error_logged_as_warning(self, caplog):
        """Test excluded documents are logged with their id."""
        caplog.set_level(logging.DEBUG, logger="mockcosmos.query")
        executor = QueryExecutor(observer=LoggingQueryObserver())

        executor.execute(parse_query("SELECT * FROM c WHERE c.a > 1"), [{'id': 'x', 'a': 'text'}])

        record = next(r for r in caplog.records if getattr(r, 'event', None) == 'predicate_error')
        assert record.levelno == logging.WARNING
        assert record.document_id == 'x'
        assert record.error_type == "UnsupportedComparisonError"

    def test_stage_and_comparison_debug(self, caplog):
        """Test per-stage and per-comparison records at DEBUG."""
        caplog.set_level(logging.DEBUG, logger="mockcosmos.query")
        executor = QueryExecutor(observer=LoggingQueryObserver())

        executor.execute(parse_query("SELECT * FROM c WHERE c.a = 1"), [{'id': '1', 'a': 1}])

        events = [getattr(r, 'event', None) for r in caplog.records]
        assert events.count('stage') == 4
        assert 'comparison' in events
        assert 'predicate' in events

    def test_page_logged(self, caplog):
        """Test served pages are logged at INFO."""
        caplog.set_level(logging.INFO, logger="mockcosmos.query")

        QueryPager(observer=LoggingQueryObserver()).page("SELECT * FROM c", [{'id': '1'}], 5)

        record = next(r for r in caplog.records if getattr(r, 'event', None) == 'page')
        assert record.returned == 1
        assert record.has_more is False


class TestQueryMetrics:
    """Tests for Prometheus query metrics."""

    def test_parse_metrics(self, registry, metrics):
        """Test parse counters and latency histogram."""
        observer = MetricsQueryObserver(metrics)

        parse_query("SELECT * FROM c", observer=observer)
        with pytest.raises(ParseError):
            parse_query("SELECT", observer=observer)

        assert sample(registry, "test_queries_parsed_total") == 1.0
        assert sample(registry, "test_parse_errors_total", {'error_type': 'ParseError'}) == 1.0
        assert sample(registry, "test_parse_duration_seconds_count") == 1.0

    def test_predicate_metrics(self, registry, metrics):
        """Test documents evaluated by outcome and evaluation errors."""
        executor = QueryExecutor(observer=MetricsQueryObserver(metrics))
        docs = [{'id': '1', 'a': 5}, {'id': '2', 'a': 0}, {'id': '3', 'a': 'x'}]

        executor.execute(parse_query("SELECT * FROM c WHERE c.a > 1"), docs)

        assert sample(registry, "test_documents_evaluated_total", {'matched': 'true'}) == 1.0
        assert sample(registry, "test_documents_evaluated_total", {'matched': 'false'}) == 2.0
        assert sample(
            registry, "test_evaluation_errors_total", {'error_type': 'UnsupportedComparisonError'}
        ) == 1.0

    def test_stage_and_page_metrics(self, registry, metrics):
        """Test stage histogram and page counter."""
        pager = QueryPager(observer=MetricsQueryObserver(metrics))

        pager.page("SELECT * FROM c", [{'id': '1'}, {'id': '2'}], 1)

        assert sample(registry, "test_stage_documents_count", {'stage': 'filter'}) == 1.0
        assert sample(registry, "test_stage_documents_sum", {'stage': 'project'}) == 2.0
        assert sample(registry, "test_pages_served_total") == 1.0

    def test_generate_metrics(self, metrics):
        """Test Prometheus text exposition."""
        metrics.queries_parsed_total.inc()

        output = metrics.generate_metrics()

        assert b"test_queries_parsed_total 1.0" in output
        assert "text/plain" in metrics.get_content_type()

    def test_unregister(self, registry, metrics):
        """Test collectors can be removed and recreated."""
        metrics.unregister()

        QueryMetrics(registry=registry, namespace="test")


class TestGlobalMetrics:
    """Tests for the global metrics singletons."""

    def test_singleton_per_namespace(self):
        """Test the same namespace returns the same instance."""
        reset_metrics()
        try:
            first = get_metrics("singleton_test")

            assert get_metrics("singleton_test") is first
            assert get_metrics("singleton_other") is not first
        finally:
            reset_metrics()

    def test_reset_allows_recreation(self):
        """Test reset unregisters so the namespace can be reused."""
        get_metrics("reset_test")
        reset_metrics()

        metrics = get_metrics("reset_test")
        try:
            assert metrics.namespace == "reset_test"
        finally:
            reset_metrics()
