"""Tests for the virtual filesystem runtime."""

import concurrent.futures
import errno
import pathlib
import threading
import time

import pytest

from assetfs import codec
from assetfs.blob import BlobState, LazyBlob
from assetfs.builder import ManifestBuilder, bundle
from assetfs.config import BundleConfig
from assetfs.errors import CodecError, DecompressionError
from assetfs.manifest import AssetDirectory, AssetFile, Manifest
from assetfs.runtime import (
    DirectoryView,
    EmbeddedFileSystem,
    LocalFileSystem,
    open_directory,
    open_filesystem,
    read_bytes,
    read_text,
)


@pytest.fixture
def manifest(assets: pathlib.Path) -> Manifest:
    (assets / "empty").mkdir()
    (assets / "c.txt").write_text("see")
    return bundle(BundleConfig(files=["assets"], prefix="assets", mod_time=1000))


def _broken_manifest() -> Manifest:
    broken = AssetFile(
        key="/broken.bin",
        base_name="broken.bin",
        local="broken.bin",
        size=4,
        mod_time=0,
        payload="\nnot-a-gzip-stream\n",
    )
    return ManifestBuilder().build([broken], [])


class TestEmbeddedFileSystem:
    """Tests for serving from embedded payloads."""

    def test_read_bytes(self, manifest: Manifest) -> None:
        fs = EmbeddedFileSystem(manifest)
        assert fs.read_bytes("/a.txt") == b"hello"
        assert fs.read_text("/sub/b.txt") == "world"

    def test_name_is_canonicalized(self, manifest: Manifest) -> None:
        fs = EmbeddedFileSystem(manifest)
        assert fs.read_bytes("sub/b.txt") == b"world"
        assert fs.read_bytes("/sub/../a.txt") == b"hello"

    def test_missing_key(self, manifest: Manifest) -> None:
        with pytest.raises(FileNotFoundError) as info:
            EmbeddedFileSystem(manifest).open("/nope.txt")
        assert info.value.errno == errno.ENOENT

    def test_handle_read_and_seek(self, manifest: Manifest) -> None:
        with EmbeddedFileSystem(manifest).open("/a.txt") as f:
            assert f.read(2) == b"he"
            assert f.read() == b"llo"
            f.seek(1)
            assert f.read(3) == b"ell"

    def test_closed_handle(self, manifest: Manifest) -> None:
        with EmbeddedFileSystem(manifest).open("/a.txt") as f:
            pass
        assert f.closed
        with pytest.raises(ValueError):
            f.read()
        with pytest.raises(ValueError):
            f.stat()

    def test_stat_does_not_decompress(self, manifest: Manifest) -> None:
        info = EmbeddedFileSystem(manifest).stat("/sub/b.txt")
        assert info.name == "b.txt"
        assert info.size == 5
        assert info.mod_time == 1000
        assert info.modified.year == 1970
        assert not info.is_dir
        assert manifest.blob("/sub/b.txt").state is BlobState.UNINITIALIZED

    def test_open_is_lazy(self, manifest: Manifest) -> None:
        with EmbeddedFileSystem(manifest).open("/a.txt") as f:
            assert manifest.blob("/a.txt").state is BlobState.UNINITIALIZED
            f.read()
        assert manifest.blob("/a.txt").state is BlobState.READY

    def test_read_directory_content(self, manifest: Manifest) -> None:
        with pytest.raises(IsADirectoryError):
            EmbeddedFileSystem(manifest).read_bytes("/sub")

    def test_blobs_shared_across_filesystems(self, manifest: Manifest) -> None:
        EmbeddedFileSystem(manifest).read_bytes("/a.txt")
        assert manifest.blob("/a.txt").state is BlobState.READY
        assert EmbeddedFileSystem(manifest).read_bytes("/a.txt") == b"hello"


class TestReaddir:
    """Tests for directory listing on embedded directories."""

    def test_all_children(self, manifest: Manifest) -> None:
        fs = EmbeddedFileSystem(manifest)
        names = [i.name for i in fs.readdir("/", 0)]
        assert names == ["a.txt", "c.txt", "empty", "sub"]
        assert [i.name for i in fs.readdir("/", -1)] == names

    def test_child_info(self, manifest: Manifest) -> None:
        infos = {i.name: i for i in EmbeddedFileSystem(manifest).readdir("/")}
        assert infos["sub"].is_dir
        assert infos["a.txt"].size == 5
        assert infos["a.txt"].mod_time == 1000

    def test_count_limits_and_advances(self, manifest: Manifest) -> None:
        with EmbeddedFileSystem(manifest).open("/") as d:
            first = d.readdir(3)
            assert [i.name for i in first] == ["a.txt", "c.txt", "empty"]
            assert [i.name for i in d.readdir(3)] == ["sub"]
            with pytest.raises(EOFError):
                d.readdir(1)
            assert d.readdir(0) == []

    def test_empty_directory(self, manifest: Manifest) -> None:
        fs = EmbeddedFileSystem(manifest)
        assert fs.readdir("/empty", 0) == []
        with pytest.raises(EOFError):
            fs.readdir("/empty", 1)

    def test_file_is_not_a_directory(self, manifest: Manifest) -> None:
        with pytest.raises(NotADirectoryError):
            EmbeddedFileSystem(manifest).readdir("/a.txt")

    def test_directory_stat(self, manifest: Manifest) -> None:
        info = EmbeddedFileSystem(manifest).stat("/sub")
        assert info.is_dir
        assert info.name == "sub"


class TestLocalFileSystem:
    """Tests for the disk-backed variant."""

    def test_reads_from_disk(self, manifest: Manifest, assets: pathlib.Path) -> None:
        fs = LocalFileSystem(manifest)
        assert fs.read_bytes("/a.txt") == b"hello"
        (assets / "a.txt").write_text("edited")
        assert fs.read_bytes("/a.txt") == b"edited"
        assert EmbeddedFileSystem(manifest).read_bytes("/a.txt") == b"hello"

    def test_root(self, manifest: Manifest, assets: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(assets / "sub")
        fs = LocalFileSystem(manifest, root=assets.parent)
        assert fs.read_bytes("/sub/b.txt") == b"world"

    def test_missing_key(self, manifest: Manifest) -> None:
        with pytest.raises(FileNotFoundError):
            LocalFileSystem(manifest).open("/nope.txt")

    def test_missing_on_disk(self, manifest: Manifest, assets: pathlib.Path) -> None:
        (assets / "c.txt").unlink()
        with pytest.raises(FileNotFoundError):
            LocalFileSystem(manifest).open("/c.txt")

    def test_stat_and_readdir(self, manifest: Manifest, assets: pathlib.Path) -> None:
        fs = LocalFileSystem(manifest)
        assert fs.stat("/a.txt").size == 5
        assert fs.stat("/sub").is_dir
        assert [i.name for i in fs.readdir("/sub")] == ["b.txt"]
        with pytest.raises(NotADirectoryError):
            fs.readdir("/a.txt")
        with pytest.raises(EOFError):
            fs.readdir("/empty", 1)

    def test_handle_released(self, manifest: Manifest) -> None:
        with LocalFileSystem(manifest).open("/a.txt") as f:
            assert f.read() == b"hello"
        assert f.closed
        with pytest.raises(ValueError):
            f.read()


class TestDirectoryView:
    """Tests for prefix-scoped filesystems."""

    def test_embedded(self, manifest: Manifest) -> None:
        view = open_directory(manifest, "/sub")
        assert isinstance(view, DirectoryView)
        assert view.read_bytes("/b.txt") == b"world"
        with view.open("/b.txt") as f:
            assert f.read() == b"world"
        assert view.stat("/b.txt").size == 5

    def test_local(self, manifest: Manifest) -> None:
        assert open_directory(manifest, "/sub", use_local=True).read_bytes("/b.txt") == b"world"

    def test_missing(self, manifest: Manifest) -> None:
        with pytest.raises(FileNotFoundError):
            open_directory(manifest, "/sub").open("/a.txt")


class TestConvenience:
    """Tests for module-level helpers."""

    def test_open_filesystem_variants(self, manifest: Manifest) -> None:
        assert isinstance(open_filesystem(manifest), EmbeddedFileSystem)
        assert isinstance(open_filesystem(manifest, use_local=True), LocalFileSystem)

    def test_read_helpers(self, manifest: Manifest) -> None:
        assert read_bytes(manifest, "/a.txt") == b"hello"
        assert read_bytes(manifest, "/a.txt", use_local=True) == b"hello"
        assert read_text(manifest, "/sub/b.txt") == "world"

    def test_uncompressed_manifest(self, assets: pathlib.Path) -> None:
        manifest = bundle(BundleConfig(files=["assets"], prefix="assets", no_compression=True))
        assert read_bytes(manifest, "/sub/b.txt") == b"world"


class TestLazyBlob:
    """Exactly-once decoding and outcome caching."""

    def test_concurrent_first_access_decodes_once(self) -> None:
        calls = 0
        lock = threading.Lock()

        def slow_decode(payload: str, compressed: bool) -> bytes:
            nonlocal calls
            with lock:
                calls += 1
            time.sleep(0.05)
            return codec.decode(payload, compressed)

        data = b"shared asset" * 100
        blob = LazyBlob("/shared", codec.encode(data), True, decoder=slow_decode)
        barrier = threading.Barrier(16)

        def reader() -> bytes:
            barrier.wait()
            return blob.get()

        with concurrent.futures.ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: reader(), range(16)))

        assert calls == 1
        assert all(r == data for r in results)
        assert blob.state is BlobState.READY

    def test_concurrent_embedded_reads(self, manifest: Manifest) -> None:
        fs = EmbeddedFileSystem(manifest)
        with concurrent.futures.ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: fs.read_bytes("/sub/b.txt"), range(32)))
        assert set(results) == {b"world"}

    def test_failure_is_cached(self) -> None:
        calls = 0

        def flaky_decode(payload: str, compressed: bool) -> bytes:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise CodecError("corrupt")
            return b"late success"

        blob = LazyBlob("/flaky", "\n", True, decoder=flaky_decode)
        for _ in range(3):
            with pytest.raises(DecompressionError, match="corrupt"):
                blob.get()
        assert calls == 1
        assert blob.state is BlobState.FAILED

    def test_interrupted_decode_is_retried(self) -> None:
        calls = 0

        def interrupted_decode(payload: str, compressed: bool) -> bytes:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise KeyboardInterrupt
            return codec.decode(payload, compressed)

        blob = LazyBlob("/slow", codec.encode(b"payload"), True, decoder=interrupted_decode)
        with pytest.raises(KeyboardInterrupt):
            blob.get()
        assert blob.state is BlobState.UNINITIALIZED
        assert blob.get() == b"payload"
        assert blob.state is BlobState.READY
        assert calls == 2

    def test_concurrent_failure_seen_by_all(self) -> None:
        blob = LazyBlob("/bad", "\n!!!\n", True)
        barrier = threading.Barrier(8)

        def reader() -> str:
            barrier.wait()
            try:
                blob.get()
            except DecompressionError as exc:
                return type(exc.cause).__name__
            return "success"

        with concurrent.futures.ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = set(pool.map(lambda _: reader(), range(8)))
        assert outcomes == {"CodecError"}

    def test_corrupt_manifest_entry(self) -> None:
        fs = EmbeddedFileSystem(_broken_manifest())
        for _ in range(2):
            with pytest.raises(DecompressionError):
                fs.read_bytes("/broken.bin")
        with fs.open("/broken.bin") as f:
            assert f.stat().size == 4
            with pytest.raises(DecompressionError):
                f.read()

    def test_directory_entries_have_no_blob(self, manifest: Manifest) -> None:
        assert isinstance(manifest.get("/sub"), AssetDirectory)
        with pytest.raises(KeyError):
            manifest.blob("/sub")
