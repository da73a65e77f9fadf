"""
Unit tests for the query execution pipeline.

Covers:
- Filter, order, limit and project stages and their ordering
- Cross-kind sort order and missing sort keys
- Projection shapes
- Lenient and strict error handling
"""

import copy

import pytest

from mockcosmos.query.diagnostics import QueryObserver
from mockcosmos.query.exceptions import InvalidOperandError, UnsupportedComparisonError
from mockcosmos.query.executor import PipelineStage, QueryExecutor, compare_sort_values
from mockcosmos.query.parser import parse_query
from mockcosmos.query.types import UNDEFINED


@pytest.fixture
def people():
    """Small collection of person documents."""
    return [
        {'id': '1', 'name': 'Alice', 'age': 30, 'address': {'city': 'Oslo', 'zip': '0150'}},
        {'id': '2', 'name': 'bob', 'age': 42, 'address': {'city': 'Bergen'}},
        {'id': '3', 'name': 'Carol', 'age': 25},
        {'id': '4', 'name': 'Dave', 'age': 42},
    ]


def run(text, documents, **kwargs):
    return QueryExecutor(**kwargs).execute(parse_query(text), documents)


def ids(results):
    return [doc['id'] for doc in results]


class TestFilterStage:
    """Tests for WHERE filtering."""

    def test_no_where_returns_all(self, people):
        """Test a query without WHERE returns every document in order."""
        assert ids(run("SELECT * FROM c", people)) == ['1', '2', '3', '4']

    def test_filter_keeps_input_order(self, people):
        """Test filtered documents keep collection order."""
        assert ids(run("SELECT * FROM c WHERE c.age > 26", people)) == ['1', '2', '4']

    def test_wildcard_returns_documents_unchanged(self, people):
        """Test SELECT * returns documents equal to the input."""
        results = run("SELECT * FROM c WHERE c.id = '3'", people)

        assert results == [people[2]]

    def test_empty_collection(self):
        """Test an empty collection yields no results."""
        assert run("SELECT * FROM c WHERE c.age > 1", []) == []

    def test_accepts_any_iterable(self, people):
        """Test documents may be supplied by a generator."""
        assert ids(run("SELECT * FROM c", (doc for doc in people))) == ['1', '2', '3', '4']


class TestOrderStage:
    """Tests for ORDER BY."""

    def test_ascending(self, people):
        """Test ascending numeric order."""
        assert ids(run("SELECT * FROM c ORDER BY c.age", people)) == ['3', '1', '2', '4']

    def test_descending_is_stable(self, people):
        """Test ties keep filtered order in descending sorts."""
        assert ids(run("SELECT * FROM c ORDER BY c.age DESC", people)) == ['2', '4', '1', '3']

    def test_string_order_case_insensitive(self, people):
        """Test strings sort ignoring case."""
        assert ids(run("SELECT * FROM c ORDER BY c.name", people)) == ['1', '2', '3', '4']

    def test_multiple_keys(self):
        """Test secondary keys break ties."""
        docs = [
            {'id': '1', 'name': 'B', 'age': 30},
            {'id': '2', 'name': 'A', 'age': 40},
            {'id': '3', 'name': 'A', 'age': 30},
        ]

        results = run("SELECT * FROM c ORDER BY c.age DESC, c.name ASC", docs)

        assert ids(results) == ['2', '3', '1']

    def test_missing_keys_first_ascending(self):
        """Test documents without the key sort first ascending."""
        docs = [{'id': '1', 'age': 5}, {'id': '2'}, {'id': '3', 'age': 1}]

        assert ids(run("SELECT * FROM c ORDER BY c.age", docs)) == ['2', '3', '1']

    def test_missing_keys_first_descending(self):
        """Test documents without the key also sort first descending."""
        docs = [{'id': '1', 'age': 5}, {'id': '2'}, {'id': '3', 'age': 1}]

        assert ids(run("SELECT * FROM c ORDER BY c.age DESC", docs)) == ['2', '1', '3']

    def test_mixed_kinds(self):
        """Test cross-kind sort order."""
        docs = [
            {'id': 'obj', 'v': {'a': 1}},
            {'id': 'str', 'v': 'x'},
            {'id': 'arr', 'v': [1]},
            {'id': 'num', 'v': 3},
            {'id': 'true', 'v': True},
            {'id': 'false', 'v': False},
            {'id': 'null', 'v': None},
        ]

        results = run("SELECT * FROM c ORDER BY c.v", docs)

        assert ids(results) == ['null', 'false', 'true', 'num', 'str', 'arr', 'obj']

    def test_large_integers_sort_exactly(self):
        """Test ORDER BY distinguishes integers beyond float precision."""
        docs = [{'id': 'big', 'n': 2 ** 53 + 1}, {'id': 'small', 'n': 2 ** 53}]

        assert ids(run("SELECT * FROM c ORDER BY c.n", docs)) == ['small', 'big']
        assert compare_sort_values(2 ** 53 + 1, 2 ** 53) == 1

    def test_compare_sort_values(self):
        """Test the three-way sort comparison."""
        assert compare_sort_values(None, False) == -1
        assert compare_sort_values(10, 9.5) == 1
        assert compare_sort_values("a", "A") == 0
        assert compare_sort_values([1], [0]) == 0
        assert compare_sort_values(UNDEFINED, None) == -1


class TestLimitStage:
    """Tests for LIMIT and TOP."""

    def test_limit_after_order(self, people):
        """Test LIMIT applies after sorting."""
        assert ids(run("SELECT * FROM c ORDER BY c.age DESC LIMIT 2", people)) == ['2', '4']

    def test_top(self, people):
        """Test TOP limits results."""
        assert ids(run("SELECT TOP 1 * FROM c ORDER BY c.age", people)) == ['3']

    def test_limit_zero(self, people):
        """Test LIMIT 0 returns nothing."""
        assert run("SELECT * FROM c LIMIT 0", people) == []

    def test_limit_larger_than_results(self, people):
        """Test a generous limit returns all matches."""
        assert len(run("SELECT * FROM c LIMIT 100", people)) == 4


class TestProjectStage:
    """Tests for SELECT projections."""

    def test_id_always_included(self, people):
        """Test projected documents carry the id first."""
        results = run("SELECT c.name FROM c WHERE c.age > 21 ORDER BY c.name", people)

        assert results[0] == {'id': '1', 'name': 'Alice'}
        assert list(results[0]) == ['id', 'name']

    def test_nested_path_keeps_structure(self, people):
        """Test nested paths are rebuilt as nested objects."""
        results = run("SELECT c.address.city FROM c WHERE c.id = '1'", people)

        assert results == [{'id': '1', 'address': {'city': 'Oslo'}}]

    def test_nested_paths_merge(self, people):
        """Test two paths under the same parent share an object."""
        results = run("SELECT c.address.city, c.address.zip FROM c WHERE c.id = '1'", people)

        assert results == [{'id': '1', 'address': {'city': 'Oslo', 'zip': '0150'}}]

    def test_missing_property_omitted(self, people):
        """Test missing projected properties are left out."""
        results = run("SELECT c.address.city FROM c WHERE c.id = '3'", people)

        assert results == [{'id': '3'}]

    def test_alias(self, people):
        """Test AS renames the output property."""
        results = run("SELECT c.address.city AS town FROM c WHERE c.id = '2'", people)

        assert results == [{'id': '2', 'town': 'Bergen'}]

    def test_document_without_id(self):
        """Test projection of a document without id."""
        assert run("SELECT c.a FROM c", [{'a': 1}]) == [{'a': 1}]

    def test_projection_is_a_copy(self, people):
        """Test projected values do not alias stored documents."""
        original = copy.deepcopy(people)

        results = run("SELECT c.address FROM c WHERE c.id = '1'", people)
        results[0]['address']['city'] = 'Changed'

        assert people == original

    def test_order_by_unprojected_field(self, people):
        """Test ordering by a field that is not projected."""
        results = run("SELECT c.name FROM c ORDER BY c.age DESC LIMIT 1", people)

        assert results == [{'id': '2', 'name': 'bob'}]


class TestErrorHandling:
    """Tests for lenient and strict evaluation errors."""

    @pytest.fixture
    def mixed(self):
        return [
            {'id': '1', 'age': 30},
            {'id': '2', 'age': 'thirty'},
            {'id': '3', 'age': 50},
        ]

    def test_lenient_excludes_failing_document(self, mixed):
        """Test a per-document comparison error only excludes that document."""
        assert ids(run("SELECT * FROM c WHERE c.age > 40", mixed)) == ['3']

    def test_strict_propagates(self, mixed):
        """Test strict mode raises the first evaluation error."""
        with pytest.raises(UnsupportedComparisonError):
            run("SELECT * FROM c WHERE c.age > 40", mixed, strict_mode=True)

    def test_lenient_invalid_operand(self):
        """Test NOT of a non-boolean excludes the document leniently."""
        docs = [{'id': '1', 'flag': False}, {'id': '2', 'flag': 'no'}]

        assert ids(run("SELECT * FROM c WHERE NOT c.flag", docs)) == ['1']

        with pytest.raises(InvalidOperandError):
            run("SELECT * FROM c WHERE NOT c.flag", docs, strict_mode=True)

    def test_documents_not_mutated(self, people):
        """Test execution leaves the collection untouched."""
        original = copy.deepcopy(people)

        run("SELECT c.name FROM c WHERE c.age > 1 ORDER BY c.name DESC LIMIT 2", people)

        assert people == original


class RecordingObserver(QueryObserver):
    """Observer capturing stage and predicate events."""

    def __init__(self):
        self.stages = []
        self.predicates = []

    def on_stage(self, stage, input_count, output_count):
        self.stages.append((stage, input_count, output_count))

    def on_predicate(self, document, matched, error):
        self.predicates.append((document['id'], matched, type(error).__name__ if error else None))


class TestPipelineObserver:
    """Tests for pipeline notifications."""

    def test_stage_sequence(self, people):
        """Test stages run in order with their counts."""
        observer = RecordingObserver()

        run("SELECT c.name FROM c WHERE c.age > 26 LIMIT 2", people, observer=observer)

        assert observer.stages == [
            (PipelineStage.FILTER, 4, 3),
            (PipelineStage.ORDER, 3, 3),
            (PipelineStage.LIMIT, 3, 2),
            (PipelineStage.PROJECT, 2, 2),
        ]

    def test_predicate_events(self):
        """Test each document's predicate outcome is reported."""
        observer = RecordingObserver()
        docs = [{'id': '1', 'age': 30}, {'id': '2', 'age': 'x'}, {'id': '3', 'age': 1}]

        run("SELECT * FROM c WHERE c.age > 10", docs, observer=observer)

        assert observer.predicates == [
            ('1', True, None),
            ('2', False, 'UnsupportedComparisonError'),
            ('3', False, None),
        ]
