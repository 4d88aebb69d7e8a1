"""Unit tests for s3cache.cache.retriever.

Tests download → decompress → sniff → restore, and error unification.
"""

import gzip
import io
import tarfile
from pathlib import Path

import pytest

from s3cache.cache.retriever import Retriever
from s3cache.core.exceptions import (
    ArchiveFormatError,
    CacheEntryNotFoundError,
    ObjectStoreError,
    TransferError,
)
from tests.fakes.fake_object_store import FakeObjectStore


BUCKET = "ci-cache"


def _tar_gz(entries: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz", format=tarfile.PAX_FORMAT) as tar:
        for name, content in entries.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


@pytest.fixture
def temp_dir(tmp_path: Path) -> str:
    path = tmp_path / "tmp"
    path.mkdir()
    return str(path)


class TestFetch:
    """Tests for Retriever.fetch."""

    @pytest.mark.asyncio
    async def test_plain_file_restored(self, tmp_path: Path, temp_dir: str) -> None:
        store = FakeObjectStore(chunk_size=7)
        store.put(BUCKET, "v1:out/app.bin", gzip.compress(b"binary" * 100))
        destination = tmp_path / "out" / "app.bin"

        written = await Retriever(store, temp_dir=temp_dir).fetch(
            BUCKET, "v1:out/app.bin", destination
        )

        assert written == [destination]
        assert destination.read_bytes() == b"binary" * 100

    @pytest.mark.asyncio
    async def test_archive_unpacked_into_parent(self, tmp_path: Path, temp_dir: str) -> None:
        store = FakeObjectStore()
        store.put(BUCKET, "v1:dist", _tar_gz({"dist/a.txt": b"hi", "dist/sub/b.txt": b"lo"}))
        destination = tmp_path / "dist"

        await Retriever(store, temp_dir=temp_dir).fetch(BUCKET, "v1:dist", destination)

        assert (destination / "a.txt").read_text() == "hi"
        assert (destination / "sub" / "b.txt").read_text() == "lo"

    @pytest.mark.asyncio
    async def test_temp_files_removed(self, tmp_path: Path, temp_dir: str) -> None:
        store = FakeObjectStore()
        store.put(BUCKET, "k", gzip.compress(b"x"))

        await Retriever(store, temp_dir=temp_dir).fetch(BUCKET, "k", tmp_path / "x")

        assert list(Path(temp_dir).iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_object(self, tmp_path: Path, temp_dir: str) -> None:
        retriever = Retriever(FakeObjectStore(), temp_dir=temp_dir)

        with pytest.raises(CacheEntryNotFoundError) as exc_info:
            await retriever.fetch(BUCKET, "v9:dist", tmp_path / "dist")

        assert exc_info.value.storage_key == "v9:dist"
        assert not (tmp_path / "dist").exists()

    @pytest.mark.asyncio
    async def test_storage_error_is_transfer_error(self, tmp_path: Path, temp_dir: str) -> None:
        store = FakeObjectStore(error_on={"get_object": ObjectStoreError("503", "get_object")})
        store.put(BUCKET, "k", gzip.compress(b"x"))

        with pytest.raises(TransferError) as exc_info:
            await Retriever(store, temp_dir=temp_dir).fetch(BUCKET, "k", tmp_path / "x")

        assert not isinstance(exc_info.value, CacheEntryNotFoundError)

    @pytest.mark.asyncio
    async def test_corrupt_object(self, tmp_path: Path, temp_dir: str) -> None:
        store = FakeObjectStore()
        store.put(BUCKET, "k", b"not gzip at all")

        with pytest.raises(ArchiveFormatError) as exc_info:
            await Retriever(store, temp_dir=temp_dir).fetch(BUCKET, "k", tmp_path / "x")

        assert exc_info.value.storage_key == "k"
        assert isinstance(exc_info.value, TransferError)
        assert list(Path(temp_dir).iterdir()) == []


class TestProbe:
    """Tests for existence probes (lookup-only)."""

    @pytest.mark.asyncio
    async def test_exists(self) -> None:
        store = FakeObjectStore()
        store.put(BUCKET, "k", b"data")

        assert await Retriever(store).exists(BUCKET, "k") is True
        assert store.calls("get_object") == []

    @pytest.mark.asyncio
    async def test_not_exists(self) -> None:
        assert await Retriever(FakeObjectStore()).exists(BUCKET, "k") is False

    @pytest.mark.asyncio
    async def test_probe_returns_metadata(self) -> None:
        store = FakeObjectStore()
        store.put(BUCKET, "k", b"data")

        info = await Retriever(store).probe(BUCKET, "k")

        assert info.size_bytes == 4

    @pytest.mark.asyncio
    async def test_probe_failure(self) -> None:
        store = FakeObjectStore(error_on={"head_object": ObjectStoreError("403", "head_object")})

        with pytest.raises(TransferError):
            await Retriever(store).probe(BUCKET, "k")
