import ctypes

import pytest

from hashdetect import DetectionIOError
from hashdetect import native
from hashdetect.engine import NativeException, ResourceManager
from hashdetect.status import StatusCode


def test_exception_struct_starts_not_set():
    exc = NativeException.cleared()
    assert exc.status == StatusCode.NOT_SET
    assert exc.file is None
    assert exc.func is None


def test_resource_manager_is_zeroed():
    assert not ResourceManager().active


def test_config_struct_layout_is_consistent():
    cfg = native.ConfigHash()
    for name in native.COLLECTION_FIELDS:
        assert getattr(cfg, name).concurrency == 0
    # nested base config is reachable the way overrides write it
    cfg.b.b.usesUpperPrefixedHeaders = True
    cfg.b.updateMatchedUserAgent = True
    copy = native.ConfigHash.from_buffer_copy(cfg)
    assert copy.b.b.usesUpperPrefixedHeaders
    assert copy.b.updateMatchedUserAgent
    assert ctypes.sizeof(native.CollectionConfig) >= 10


def test_explicit_library_path_must_exist(tmp_path):
    with pytest.raises(DetectionIOError):
        native.find_library(str(tmp_path / "libnothing.so"))


def test_env_library_path_must_exist(monkeypatch, tmp_path):
    monkeypatch.setenv(native.LIBRARY_ENV, str(tmp_path / "libnothing.so"))
    with pytest.raises(DetectionIOError):
        native.find_library()


def test_env_library_path_is_used(monkeypatch, tmp_path):
    lib = tmp_path / "libfiftyone-hash-c.so"
    lib.write_bytes(b"\x7fELF")
    monkeypatch.setenv(native.LIBRARY_ENV, str(lib))
    assert native.find_library() == lib


def test_not_found_anywhere(monkeypatch):
    monkeypatch.delenv(native.LIBRARY_ENV, raising=False)
    monkeypatch.setattr(native, "DEFAULT_LIBRARY_PATHS", {})
    monkeypatch.setattr(native.ctypes.util, "find_library", lambda name: None)
    with pytest.raises(DetectionIOError):
        native.find_library()


def test_unloadable_library(monkeypatch, tmp_path):
    lib = tmp_path / "libfiftyone-hash-c.so"
    lib.write_bytes(b"not a shared object")
    with pytest.raises(DetectionIOError) as ei:
        native.NativeEngine(library_path=str(lib))
    assert isinstance(ei.value.cause, OSError)


@pytest.mark.skipif(ctypes.sizeof(ctypes.c_void_p) != 8, reason="layout pinned for 64-bit targets")
def test_config_layout_matches_engine_headers():
    assert ctypes.sizeof(native.ConfigBase) == 24
    assert native.ConfigBase.tempDirs.offset == 8
    assert native.ConfigBase.tempDirCount.offset == 16

    dd = native.ConfigDeviceDetection
    assert ctypes.sizeof(dd) == 48
    assert dd.updateMatchedUserAgent.offset == 24
    assert dd.maxMatchedUserAgentLength.offset == 32
    assert dd.maxMatchedUserAgentLength.size == ctypes.sizeof(ctypes.c_size_t)
    assert dd.allowUnmatched.offset == 40
    assert dd.processSpecialEvidence.offset == 41

    assert ctypes.sizeof(native.CollectionConfig) == 12
    assert native.CollectionConfig.concurrency.offset == 8

    cfg = native.ConfigHash
    assert ctypes.sizeof(cfg) == 168
    offsets = [getattr(cfg, name).offset for name in native.COLLECTION_FIELDS]
    assert offsets == [48 + 12 * i for i in range(len(native.COLLECTION_FIELDS))]
    assert cfg.difference.offset == 156
    assert cfg.drift.offset == 160
    assert cfg.usePerformanceGraph.offset == 164
    assert cfg.traceRoute.offset == 166


def test_incomplete_engine_fails_at_construction():
    from hashdetect.engine import Engine

    class PartialEngine(Engine):
        def new_manager(self):
            return ResourceManager()

    with pytest.raises(TypeError):
        PartialEngine()
