"""Unit tests for chunked iteration."""

import pytest

from querykit.common.exceptions import ErrorCode, QueryKitError
from querykit.query_builder import QueryBuilder


@pytest.fixture
def qb(executor, settings):
    return QueryBuilder(executor, settings).table("users")


class Collector:

    def __init__(self, stop_after=None):
        self.pages = []
        self.stop_after = stop_after

    def __call__(self, rows):
        self.pages.append(list(rows))
        if self.stop_after is not None and len(self.pages) >= self.stop_after:
            return False
        return True


class TestChunk:

    def test_pages_until_empty(self, qb, executor):
        executor.query.side_effect = [[{"id": 1}, {"id": 2}], [{"id": 3}, {"id": 4}], [{"id": 5}], []]
        collector = Collector()

        qb.chunk(2, collector)

        assert len(collector.pages) == 3
        assert [c.args for c in executor.query.call_args_list] == [
            ("SELECT * FROM users LIMIT 2", []),
            ("SELECT * FROM users LIMIT 2 OFFSET 2", []),
            ("SELECT * FROM users LIMIT 2 OFFSET 4", []),
            ("SELECT * FROM users LIMIT 2 OFFSET 6", []),
        ]

    @pytest.mark.parametrize("total, size", [(0, 3), (4, 2), (5, 2), (7, 10)])
    def test_callback_count_is_ceil_of_total_over_size(self, qb, executor, total, size):
        rows = [{"id": i} for i in range(1, total + 1)]
        pages = [rows[i:i + size] for i in range(0, total, size)]
        executor.query.side_effect = pages + [[]]
        collector = Collector()

        qb.chunk(size, collector)

        assert len(collector.pages) == -(-total // size)
        assert sum(len(p) for p in collector.pages) == total

    def test_callback_false_stops(self, qb, executor):
        executor.query.side_effect = [[{"id": 1}], [{"id": 2}]]
        collector = Collector(stop_after=1)

        qb.chunk(1, collector)

        assert collector.pages == [[{"id": 1}]]
        assert executor.query.call_count == 1

    def test_callback_returning_none_continues(self, qb, executor):
        executor.query.side_effect = [[{"id": 1}], []]
        seen = []

        qb.chunk(1, seen.append)

        assert seen == [[{"id": 1}]]

    @pytest.mark.parametrize("size", [0, -1])
    def test_size_must_be_positive(self, qb, executor, size):
        with pytest.raises(QueryKitError) as exc_info:
            qb.chunk(size, Collector())
        assert exc_info.value.error_code == ErrorCode.PRECONDITION_ERROR
        assert exc_info.value.message == "chunk size must be positive"
        executor.query.assert_not_called()

    def test_execution_error_aborts(self, qb, executor):
        executor.query.side_effect = [[{"id": 1}], RuntimeError("timeout")]
        collector = Collector()

        with pytest.raises(RuntimeError):
            qb.chunk(1, collector)
        assert len(collector.pages) == 1

    def test_parent_is_not_mutated(self, qb, executor):
        executor.query.side_effect = [[{"id": 1}], []]
        qb.where("active", "=", True).limit(3)

        qb.chunk(1, Collector())

        assert qb.limit_count == 3
        assert qb.offset_count == 0
        assert qb.to_sql() == ("SELECT * FROM users WHERE active = ? LIMIT 3", [True])

    def test_keeps_filters_and_soft_delete(self, qb, executor):
        executor.query.side_effect = [[]]
        qb.with_soft_deletes().where("active", "=", True).order_by("name")

        qb.chunk(10, Collector())

        executor.query.assert_called_once_with(
            "SELECT * FROM users WHERE deleted_at IS NULL AND active = ? ORDER BY name ASC LIMIT 10", [True]
        )

    def test_invalid_builder_fails_before_callback(self, qb, executor):
        qb.where("id", "~", 1)
        collector = Collector()
        with pytest.raises(QueryKitError):
            qb.chunk(5, collector)
        assert collector.pages == []
        executor.query.assert_not_called()


class TestChunkById:

    def test_advances_from_last_row(self, qb, executor):
        executor.query.side_effect = [[{"id": 1}, {"id": 2}], [{"id": 3}], []]
        collector = Collector()

        qb.where("active", "=", True).chunk_by_id(2, "id", collector)

        assert len(collector.pages) == 2
        assert [c.args for c in executor.query.call_args_list] == [
            ("SELECT * FROM users WHERE active = ? AND id > ? ORDER BY id ASC LIMIT 2", [True, 0]),
            ("SELECT * FROM users WHERE active = ? AND id > ? ORDER BY id ASC LIMIT 2", [True, 2]),
            ("SELECT * FROM users WHERE active = ? AND id > ? ORDER BY id ASC LIMIT 2", [True, 3]),
        ]

    def test_qualified_column_reads_unqualified_key(self, qb, executor):
        executor.query.side_effect = [[{"id": 10}], []]

        qb.chunk_by_id(1, "users.id", Collector())

        assert executor.query.call_args_list[1].args == (
            "SELECT * FROM users WHERE users.id > ? ORDER BY users.id ASC LIMIT 1", [10]
        )

    def test_ignores_parent_ordering_and_offset(self, qb, executor):
        executor.query.side_effect = [[]]
        qb.order_by("name", "DESC").offset(20)

        qb.chunk_by_id(5, "id", Collector())

        executor.query.assert_called_once_with("SELECT * FROM users WHERE id > ? ORDER BY id ASC LIMIT 5", [0])
        assert qb.wheres == []

    def test_callback_false_stops(self, qb, executor):
        executor.query.side_effect = [[{"id": 1}], [{"id": 2}]]
        qb.chunk_by_id(1, "id", Collector(stop_after=1))
        assert executor.query.call_count == 1

    def test_rows_without_key_column(self, qb, executor):
        executor.query.side_effect = [[{"name": "Ann"}]]
        with pytest.raises(QueryKitError) as exc_info:
            qb.select("name").chunk_by_id(1, "id", Collector())
        assert exc_info.value.error_code == ErrorCode.PRECONDITION_ERROR

    @pytest.mark.parametrize("size, column", [(0, "id"), (-5, "id"), (10, "id; DROP")])
    def test_preconditions(self, qb, executor, size, column):
        with pytest.raises(QueryKitError) as exc_info:
            qb.chunk_by_id(size, column, Collector())
        assert exc_info.value.error_code == ErrorCode.PRECONDITION_ERROR
        executor.query.assert_not_called()

    def test_or_condition_that_repeats_rows_raises(self, qb, executor):
        repeated = [{"id": 1}, {"id": 2}]
        executor.query.side_effect = [repeated, repeated, repeated]
        collector = Collector()

        with pytest.raises(QueryKitError) as exc_info:
            qb.where("a", "=", 1).or_where("b", "=", 1).chunk_by_id(2, "id", collector)

        assert exc_info.value.error_code == ErrorCode.PRECONDITION_ERROR
        assert collector.pages == [repeated]
        assert executor.query.call_count == 2
        assert executor.query.call_args_list[1].args == (
            "SELECT * FROM users WHERE a = ? OR b = ? AND id > ? ORDER BY id ASC LIMIT 2", [1, 1, 2]
        )

    def test_or_condition_that_advances_keeps_paging(self, qb, executor):
        executor.query.side_effect = [[{"id": 1}, {"id": 2}], [{"id": 4}], []]
        collector = Collector()

        qb.where("a", "=", 1).or_where("b", "=", 1).chunk_by_id(2, "id", collector)

        assert collector.pages == [[{"id": 1}, {"id": 2}], [{"id": 4}]]

    def test_soft_delete_filter_comes_first(self, qb, executor):
        executor.query.side_effect = [[{"id": 3}], []]
        collector = Collector()

        qb.with_soft_deletes().chunk_by_id(1, "id", collector)

        assert collector.pages == [[{"id": 3}]]
        assert [c.args for c in executor.query.call_args_list] == [
            ("SELECT * FROM users WHERE deleted_at IS NULL AND id > ? ORDER BY id ASC LIMIT 1", [0]),
            ("SELECT * FROM users WHERE deleted_at IS NULL AND id > ? ORDER BY id ASC LIMIT 1", [3]),
        ]
