"""Tests for the file store behind the /files/ routes."""

import asyncio

import pytest

from minihttpd.core.storage import (
    FileMissingError,
    FileStore,
    PathOutsideRootError,
    StorageFaultError,
)


@pytest.fixture
def store(tmp_path):
    return FileStore(tmp_path)


def test_read_existing_file(store, tmp_path):
    (tmp_path / "foo").write_bytes(b"Hello, World!")
    assert store.read("foo") == b"Hello, World!"


def test_read_missing_file(store):
    with pytest.raises(FileMissingError):
        store.read("absent")


def test_read_below_a_regular_file_is_missing(store, tmp_path):
    (tmp_path / "foo").write_bytes(b"x")
    with pytest.raises(FileMissingError):
        store.read("foo/bar")


def test_read_directory_is_a_fault_not_missing(store, tmp_path):
    (tmp_path / "subdir").mkdir()
    with pytest.raises(StorageFaultError):
        store.read("subdir")


def test_write_creates_and_truncates(store, tmp_path):
    store.write("foo", b"first version, quite long")
    store.write("foo", b"second")
    assert (tmp_path / "foo").read_bytes() == b"second"


def test_write_binary_exactly(store, tmp_path):
    data = bytes(range(256)) * 4
    store.write("blob.bin", data)
    assert (tmp_path / "blob.bin").read_bytes() == data


def test_write_into_missing_directory_is_a_fault(store):
    with pytest.raises(StorageFaultError):
        store.write("no/such/dir/file", b"data")


def test_traversal_is_refused_before_touching_disk(store, tmp_path):
    outside = tmp_path.parent / "minihttpd-outside"
    with pytest.raises(PathOutsideRootError):
        store.write("../minihttpd-outside", b"nope")
    assert not outside.exists()
    with pytest.raises(PathOutsideRootError):
        store.read("../../etc/passwd")


def test_no_root_configured():
    store = FileStore(None)
    assert store.root is None
    with pytest.raises(FileMissingError):
        store.read("foo")
    with pytest.raises(FileMissingError):
        store.write("foo", b"x")


def test_error_status_codes():
    assert FileMissingError.status_code == 404
    assert StorageFaultError.status_code == 500
    assert PathOutsideRootError.status_code == 403


@pytest.mark.asyncio
async def test_async_round_trip(store):
    await store.write_async("foo", b"async data")
    assert await store.read_async("foo") == b"async data"
    with pytest.raises(FileMissingError):
        await store.read_async("missing")


@pytest.mark.asyncio
async def test_async_calls_do_not_block_each_other(store):
    names = [f"file-{i}" for i in range(10)]
    await asyncio.gather(*(store.write_async(name, name.encode()) for name in names))
    contents = await asyncio.gather(*(store.read_async(name) for name in names))
    assert contents == [name.encode() for name in names]
