"""
Unit tests for the local photo store
"""
import io

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from utils.storage import BlobStorage


def _upload(data=b"\xff\xd8\xff\xe0jpeg-bytes", content_type="image/jpeg", filename="cam.jpg"):
    return UploadFile(file=io.BytesIO(data), filename=filename,
                      headers=Headers({"content-type": content_type}))


@pytest.fixture
def store(tmp_path):
    return BlobStorage(tmp_path / "blobs")


def test_save_returns_public_path(store):
    url = store.save(_upload())

    assert url.startswith("/uploads/") and url.endswith(".jpg")
    assert store.path_for(url).read_bytes().startswith(b"\xff\xd8")


def test_save_rejects_other_types(store):
    with pytest.raises(HTTPException) as exc:
        store.save(_upload(content_type="application/pdf"))
    assert exc.value.detail == "Invalid file type"


def test_path_for_stays_inside_root(store):
    assert store.path_for("/uploads/../../etc/passwd") == store.root / "passwd"
    assert store.path_for("/uploads/.trash") is None
    assert store.path_for("https://elsewhere.example/a.png") is None
    assert store.path_for("") is None


def test_stage_then_purge(store):
    url = store.save(_upload())

    staged = store.stage_delete(url)
    assert not store.exists(url)
    assert staged.exists()

    store.purge(staged)
    assert not staged.exists()


def test_stage_then_restore(store):
    url = store.save(_upload())

    staged = store.stage_delete(url)
    store.restore(staged, url)

    assert store.exists(url)
    assert not staged.exists()


def test_stage_missing_blob(store):
    assert store.stage_delete("/uploads/nothing.png") is None
    assert store.delete("/uploads/nothing.png") is False
