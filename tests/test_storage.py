# tests/test_storage.py
import shutil
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from image_server.core.errors import BlobStoreError
from image_server.storage import BLOB_PREFIX, BlobStore, derive_extension


@pytest.mark.parametrize(
    "filename,expected",
    [
        ("cat.jpg", ".jpg"),
        ("archive.tar.gz", ".gz"),
        ("noext", ""),
        ("", ""),
        ("photos.d/raw", ""),
        (".hidden", ".hidden"),
        ("C:\\pics\\a.PNG", ".PNG"),
        ("trailing.", "."),
    ],
)
def test_derive_extension(filename, expected):
    assert derive_extension(filename) == expected


def test_create_never_reuses_a_name(tmp_path):
    store = BlobStore(tmp_path / "blobs")
    paths = set()
    for _ in range(50):
        handle, path = store.create(".jpg")
        store.close(handle)
        paths.add(path)

    assert len(paths) == 50
    names = [p.name for p in (tmp_path / "blobs").iterdir()]
    assert len(names) == 50
    assert all(n.startswith(BLOB_PREFIX) and n.endswith(".jpg") for n in names)


def test_write_and_close(tmp_path):
    store = BlobStore(tmp_path)
    handle, path = store.create(".png")
    store.write(handle, b"\x89PNG")
    store.write(handle, b"rest")
    store.close(handle)

    with open(path, "rb") as fh:
        assert fh.read() == b"\x89PNGrest"


def test_create_failure_raises_blob_store_error(tmp_path):
    root = tmp_path / "gone"
    store = BlobStore(root)
    shutil.rmtree(root)

    with pytest.raises(BlobStoreError) as exc_info:
        store.create(".jpg")
    assert exc_info.value.status_code == 500


def test_remove_is_quiet_for_missing_blobs(tmp_path):
    store = BlobStore(tmp_path)
    handle, path = store.create()
    store.close(handle)

    store.remove(path)
    store.remove(path)
    assert list(tmp_path.iterdir()) == []


def test_concurrent_creates_never_collide(tmp_path):
    store = BlobStore(tmp_path)
    start = threading.Barrier(8)

    def create_many(_):
        start.wait()
        paths = []
        for _ in range(25):
            handle, path = store.create(".png")
            store.write(handle, path.encode())
            store.close(handle)
            paths.append(path)
        return paths

    with ThreadPoolExecutor(max_workers=8) as pool:
        paths = [p for batch in pool.map(create_many, range(8)) for p in batch]

    assert len(paths) == len(set(paths)) == 200
    assert len(list(tmp_path.iterdir())) == 200
    for path in paths:
        with open(path, "rb") as fh:
            assert fh.read() == path.encode()
