import uuid
from unittest.mock import MagicMock

import pytest
from psycopg.errors import UndefinedColumn

from heirlooms.infra.artifact_db import ArtifactRepository
from heirlooms.models.artifact import ArtifactDraft
from heirlooms.services.artifact_writer import ArtifactWriteError, ArtifactWriter

COLLECTION_ID = "0b5c3f0e-8d2a-4c4e-9a61-2f1f5a7d9c11"
OWNER_ID = "7d1c2a9e-3f4b-4a5c-8d6e-1f2a3b4c5d6e"


def _draft(collection_id=COLLECTION_ID):
    return ArtifactDraft(
        slug="grandpa-s-watch",
        title="Grandpa's watch",
        summary="Generated from notes.",
        owner_id=OWNER_ID,
        collection_id=collection_id,
        collection_ref=collection_id,
    )


def test_write_with_collection_column_present():
    repo = MagicMock()
    repo.insert_artifact.return_value = {"id": "a1", "slug": "grandpa-s-watch", "collection_id": COLLECTION_ID}

    result = ArtifactWriter(repo).write(_draft())

    assert (result.id, result.slug, result.collection_id, result.warning) == (
        "a1", "grandpa-s-watch", COLLECTION_ID, None)
    repo.set_collection_id.assert_not_called()
    row = repo.insert_artifact.call_args.args[0]
    assert row["collection_id"] == COLLECTION_ID
    assert row["data"]["collection_id"] == COLLECTION_ID


def test_null_collection_is_patched():
    repo = MagicMock()
    repo.insert_artifact.return_value = {"id": "a1", "slug": "s", "collection_id": None}
    repo.set_collection_id.return_value = COLLECTION_ID

    result = ArtifactWriter(repo).write(_draft())

    repo.set_collection_id.assert_called_once_with("a1", COLLECTION_ID)
    assert result.collection_id == COLLECTION_ID
    assert result.warning is None


def test_failed_patch_is_a_warning_not_an_error():
    repo = MagicMock()
    repo.insert_artifact.return_value = {"id": "a1", "slug": "s"}
    repo.set_collection_id.side_effect = UndefinedColumn('column "collection_id" of relation "artifacts" does not exist')

    result = ArtifactWriter(repo).write(_draft())

    assert result.id == "a1"
    assert result.collection_id is None
    assert result.warning.startswith("inserted but failed to patch collection_id")


def test_uncategorized_artifact_needs_no_patch():
    repo = MagicMock()
    repo.insert_artifact.return_value = {"id": "a1", "slug": "s"}

    result = ArtifactWriter(repo).write(_draft(collection_id=None))

    repo.set_collection_id.assert_not_called()
    assert "collection_id" not in repo.insert_artifact.call_args.args[0]
    assert result.warning is None


def test_insert_failure_is_fatal():
    repo = MagicMock()
    repo.insert_artifact.side_effect = RuntimeError("permission denied for table artifacts")
    with pytest.raises(ArtifactWriteError):
        ArtifactWriter(repo).write(_draft())


def test_undefined_column_retry_then_patch(fake_db):
    """Insert loses collection_id on the first try, succeeds without it, then gets patched."""
    factory, conn, cur = fake_db
    artifact_id = uuid.uuid4()
    cur.execute.side_effect = [
        UndefinedColumn('column "collection_id" of relation "artifacts" does not exist'),
        None,
        None,
    ]
    cur.fetchone.side_effect = [
        {"id": artifact_id, "slug": "grandpa-s-watch"},
        (uuid.UUID(COLLECTION_ID),),
    ]
    repo = ArtifactRepository(conn_factory=factory)
    repo._columns = set()  # capability check returned nothing

    result = ArtifactWriter(repo).write(_draft())

    assert result.id == str(artifact_id)
    assert result.collection_id == COLLECTION_ID
    assert result.warning is None
    first_params = cur.execute.call_args_list[0].args[1]
    second_params = cur.execute.call_args_list[1].args[1]
    assert COLLECTION_ID in first_params
    assert COLLECTION_ID not in second_params
    assert cur.execute.call_args_list[2].args[1] == (COLLECTION_ID, str(artifact_id))
