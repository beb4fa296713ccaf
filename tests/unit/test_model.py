"""Unit tests for the model layer and built-in scopes."""

import pytest

from querykit.common.exceptions import ErrorCode, QueryKitError
from querykit.models import Model
from querykit.query_builder import QueryBuilder, active, draft, oldest, published, recent


@pytest.fixture
def users(executor, settings):
    return Model("users", executor=executor, settings=settings)


@pytest.fixture
def soft_users(executor, settings):
    return Model("users", soft_delete=True, executor=executor, settings=settings)


class TestModelQuery:

    def test_defaults(self, users):
        assert users.table == "users"
        assert users.primary_key == "id"
        assert users.has_soft_delete is False

    def test_fluent_configuration(self, executor, settings):
        model = Model("accounts", executor=executor, settings=settings).with_primary_key("uuid").with_soft_delete()
        assert model.primary_key == "uuid"
        assert model.has_soft_delete is True

    def test_query_without_soft_delete(self, users):
        assert users.query().where("age", ">", 18).to_sql() == ("SELECT * FROM users WHERE age > ?", [18])

    def test_soft_delete_filter_always_present(self, soft_users):
        sql, params = soft_users.query().where("age", ">", 18).or_where("vip", "=", True).to_sql()
        assert sql == "SELECT * FROM users WHERE deleted_at IS NULL AND age > ? OR vip = ?"
        assert params == [18, True]

    def test_with_trashed(self, soft_users):
        assert soft_users.query().with_trashed().to_sql() == ("SELECT * FROM users", [])

    def test_only_trashed(self, soft_users):
        sql, _ = soft_users.query().only_trashed().to_sql()
        assert sql == "SELECT * FROM users WHERE deleted_at IS NOT NULL"

    def test_invalid_table_surfaces_on_query(self, executor, settings):
        model = Model("users; DROP TABLE users", executor=executor, settings=settings)
        with pytest.raises(QueryKitError) as exc_info:
            model.query().to_sql()
        assert exc_info.value.error_code == ErrorCode.INVALID_IDENTIFIER


class TestModelShortcuts:

    def test_find(self, soft_users, executor):
        executor.query_one.return_value = {"id": 7}

        assert soft_users.find(7) == {"id": 7}
        executor.query_one.assert_called_once_with(
            "SELECT * FROM users WHERE deleted_at IS NULL AND id = ? LIMIT 1", [7]
        )

    def test_find_uses_primary_key(self, users, executor):
        users.with_primary_key("user_id").find(3)
        executor.query_one.assert_called_once_with("SELECT * FROM users WHERE user_id = ? LIMIT 1", [3])

    def test_all(self, users, executor):
        executor.query.return_value = [{"id": 1}]
        assert users.all() == [{"id": 1}]
        executor.query.assert_called_once_with("SELECT * FROM users", [])

    def test_create(self, soft_users, executor):
        soft_users.create({"name": "Ann"})
        executor.execute.assert_called_once_with("INSERT INTO users (name) VALUES (?)", ["Ann"])

    def test_update_uses_plain_builder(self, soft_users, executor):
        soft_users.update(1, {"name": "Bo"})
        executor.execute.assert_called_once_with("UPDATE users SET name = ? WHERE id = ?", ["Bo", 1])

    def test_delete(self, soft_users, executor):
        soft_users.delete(1)
        executor.execute.assert_called_once_with("DELETE FROM users WHERE id = ?", [1])

    def test_has_many(self, users, executor):
        posts = users.has_many("posts", "user_id", 5)
        assert posts.executor is executor
        assert posts.to_sql() == ("SELECT * FROM posts WHERE user_id = ?", [5])

    def test_belongs_to(self, executor, settings):
        posts = Model("posts", executor=executor, settings=settings)
        assert posts.belongs_to("users", 9).to_sql() == ("SELECT * FROM users WHERE id = ?", [9])


class TestScopes:

    @pytest.fixture
    def qb(self, settings):
        return QueryBuilder(settings=settings).table("posts")

    def test_active(self, qb):
        assert qb.scope(active).to_sql() == ("SELECT * FROM posts WHERE active = ?", [True])

    def test_published_and_recent(self, qb):
        sql, params = qb.scope(published, recent).to_sql()
        assert sql == "SELECT * FROM posts WHERE published = ? AND published_at IS NOT NULL ORDER BY created_at DESC"
        assert params == [True]

    def test_draft_and_oldest(self, qb):
        sql, params = qb.scope(draft, oldest).to_sql()
        assert sql == "SELECT * FROM posts WHERE published = ? ORDER BY created_at ASC"
        assert params == [False]

    def test_scopes_fold_left_to_right(self, qb):
        sql, _ = qb.scope(lambda b: b.order_by("a"), lambda b: b.order_by("b", "DESC")).to_sql()
        assert sql == "SELECT * FROM posts ORDER BY a ASC, b DESC"

    def test_scope_result_feeds_next_scope(self, qb, settings):
        replacement = QueryBuilder(settings=settings).table("archive")
        sql, params = qb.scope(lambda b: replacement, active).to_sql()
        assert sql == "SELECT * FROM archive WHERE active = ?"
        assert params == [True]
        assert qb.wheres == []

    def test_no_scopes_is_identity(self, qb):
        assert qb.scope() is qb

    def test_scopes_on_model_query(self, executor, settings):
        sql, _ = Model("posts", soft_delete=True, executor=executor, settings=settings).query().scope(active).to_sql()
        assert sql == "SELECT * FROM posts WHERE deleted_at IS NULL AND active = ?"
