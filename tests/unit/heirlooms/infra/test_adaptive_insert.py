import pytest
from psycopg.errors import UndefinedColumn, UniqueViolation

from heirlooms.infra.adaptive_insert import build_insert, fetch_columns, insert_adaptive, missing_column

ROW = {"slug": "s", "data": {"title": "T"}, "title": "T", "owner_id": "u1", "collection_id": "c1"}
OPTIONAL = ("collection_id", "title", "summary")


def _undefined(column):
    return UndefinedColumn(f'column "{column}" of relation "artifacts" does not exist')


def test_missing_column_parsing():
    assert missing_column(_undefined("collection_id")) == "collection_id"
    assert missing_column(UndefinedColumn('column artifacts.collection_id does not exist')) is None
    assert missing_column(UndefinedColumn('column "artifacts.collection_id" does not exist')) == "collection_id"


def test_first_attempt_succeeds(fake_db):
    factory, conn, cur = fake_db
    cur.fetchone.return_value = {"id": "a1", "slug": "s", "collection_id": "c1"}

    out = insert_adaptive(factory, "artifacts", ROW, OPTIONAL, ("id", "slug", "collection_id"))

    assert out == {"id": "a1", "slug": "s", "collection_id": "c1"}
    params = cur.execute.call_args.args[1]
    assert params[1] == '{"title": "T"}'
    conn.commit.assert_called_once()


def test_named_column_is_dropped_and_retried(fake_db):
    factory, conn, cur = fake_db
    cur.execute.side_effect = [_undefined("collection_id"), None]
    cur.fetchone.return_value = {"id": "a1", "slug": "s"}

    out = insert_adaptive(factory, "artifacts", ROW, OPTIONAL, ("id", "slug", "collection_id"))

    assert out == {"id": "a1", "slug": "s"}
    retry_query = cur.execute.call_args_list[1].args[0]
    assert "Identifier('collection_id')" not in repr(retry_query)
    assert len(cur.execute.call_args_list[1].args[1]) == len(ROW) - 1


def test_unnamed_column_drops_next_optional(fake_db):
    factory, conn, cur = fake_db
    cur.execute.side_effect = [UndefinedColumn("column does not exist"), None]
    cur.fetchone.return_value = {"id": "a1", "slug": "s"}

    insert_adaptive(factory, "artifacts", ROW, OPTIONAL, ("id", "slug"))

    assert "c1" not in cur.execute.call_args_list[1].args[1]


def test_required_column_error_is_raised(fake_db):
    factory, conn, cur = fake_db
    cur.execute.side_effect = _undefined("owner_id")
    with pytest.raises(UndefinedColumn):
        insert_adaptive(factory, "artifacts", ROW, OPTIONAL, ("id",))
    assert cur.execute.call_count == 1


def test_attempts_are_bounded(fake_db):
    factory, conn, cur = fake_db
    cur.execute.side_effect = [_undefined("collection_id"), _undefined("title"), _undefined("summary")]
    row = dict(ROW, summary="S")
    with pytest.raises(UndefinedColumn):
        insert_adaptive(factory, "artifacts", row, OPTIONAL, ("id",), max_attempts=2)
    assert cur.execute.call_count == 2


def test_other_errors_are_not_retried(fake_db):
    factory, conn, cur = fake_db
    cur.execute.side_effect = UniqueViolation("duplicate key")
    with pytest.raises(UniqueViolation):
        insert_adaptive(factory, "artifacts", ROW, OPTIONAL, ("id",))
    assert cur.execute.call_count == 1


def test_known_columns_drop_before_first_attempt(fake_db):
    factory, conn, cur = fake_db
    cur.fetchone.return_value = {"id": "a1"}

    insert_adaptive(factory, "artifacts", ROW, OPTIONAL, ("id", "collection_id"),
                    known_columns={"id", "slug", "data", "title", "owner_id"})

    assert cur.execute.call_count == 1
    query, params = cur.execute.call_args.args
    assert "c1" not in params
    assert "Identifier('collection_id')" not in repr(query)


def test_fetch_columns(fake_db):
    factory, conn, cur = fake_db
    cur.fetchall.return_value = [("id",), ("slug",)]
    assert fetch_columns(factory, "artifacts") == {"id", "slug"}
    assert cur.execute.call_args.args[1] == ("artifacts",)
    assert "table_schema = current_schema()" in cur.execute.call_args.args[0]


def test_build_insert_without_returning():
    query = build_insert("collections", ["title"], [])
    assert "RETURNING" not in repr(query)
