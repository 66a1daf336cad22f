import gc
import os

import pytest

from hashdetect import (
    CStringKind,
    Custom,
    DetectionIOError,
    EncodingError,
    EngineConfig,
    EngineExceptionError,
    EngineStatusError,
    EvidenceName,
    FilesystemPreconditionError,
    Manager,
    ManagerConfig,
    NativeCallError,
    Operation,
    PerformanceProfile,
    PreconditionError,
    PropertyName,
    ReadFileError,
    StatusCode,
)

from tests.utils_engine import MOBILE_SAFARI_UA, FakeEngine


def test_load_passes_canonical_path_and_allow_list(engine, config, data_file):
    with Manager(config, engine=engine):
        assert engine.loaded_path == str(data_file.resolve()).encode("utf-8")
        assert engine.loaded_properties == b"BrowserName,DeviceType,PlatformName,PlatformVersion,IsMobile"
        assert engine.loaded_config is config.engine
        assert engine.live()["managers"] == 1
    assert engine.live()["managers"] == 0


def test_no_allow_list_means_all_properties(engine, data_file):
    with Manager(ManagerConfig(data_file), engine=engine):
        assert engine.loaded_properties is None
    with Manager(ManagerConfig(data_file, property_names=()), engine=engine):
        assert engine.loaded_properties is None


def test_relative_path_is_canonicalized(engine, data_file, monkeypatch):
    monkeypatch.chdir(data_file.parent)
    with Manager(ManagerConfig("data.hash"), engine=engine):
        assert engine.loaded_path == str(data_file.resolve()).encode("utf-8")


def test_engine_config_reaches_engine(engine, data_file):
    ec = EngineConfig(profile=PerformanceProfile.LOW_MEMORY, concurrency=4)
    with Manager(ManagerConfig(data_file, engine=ec), engine=engine):
        assert engine.loaded_config.profile is PerformanceProfile.LOW_MEMORY
        assert engine.loaded_config.concurrency == 4


def test_missing_data_file(engine, tmp_path):
    with pytest.raises(FilesystemPreconditionError) as ei:
        Manager(ManagerConfig(tmp_path / "missing.hash"), engine=engine)
    assert ei.value.kind is ReadFileError.NOT_EXISTS
    assert engine.calls == []


def test_directory_is_not_a_data_file(engine, tmp_path):
    with pytest.raises(FilesystemPreconditionError) as ei:
        Manager(ManagerConfig(tmp_path), engine=engine)
    assert ei.value.kind is ReadFileError.IS_NOT_FILE
    assert engine.calls == []


def test_canonicalize_failure_is_io_error(engine, data_file, monkeypatch):
    def broken_resolve(self, strict=False):
        raise PermissionError("denied")

    monkeypatch.setattr(type(data_file), "resolve", broken_resolve)
    with pytest.raises(DetectionIOError) as ei:
        Manager(ManagerConfig(data_file), engine=engine)
    assert isinstance(ei.value.cause, PermissionError)
    assert engine.calls == []


def test_property_name_with_nul_fails_before_load(engine, data_file):
    cfg = ManagerConfig(data_file, property_names=(Custom("Bad\x00Name"),))
    with pytest.raises(EncodingError):
        Manager(cfg, engine=engine)
    assert engine.calls == []


@pytest.mark.parametrize(
    "status",
    [StatusCode.CORRUPT_DATA, StatusCode.INCORRECT_VERSION, StatusCode.INSUFFICIENT_MEMORY, 77],
)
def test_non_success_status_aborts_construction(data_file, status):
    engine = FakeEngine(load_status=status)
    with pytest.raises(EngineStatusError) as ei:
        Manager(ManagerConfig(data_file), engine=engine)
    err = ei.value
    assert not isinstance(err, EngineExceptionError)
    assert err.operation is Operation.INIT_MANAGER
    assert err.code == int(status)
    # partially loaded dataset is released
    assert engine.live()["managers"] == 0


def test_engine_exception_during_load(data_file):
    engine = FakeEngine(
        load_exception=StatusCode.FILE_PERMISSION_DENIED,
        messages={StatusCode.FILE_PERMISSION_DENIED: "could not open data.hash"},
    )
    with pytest.raises(EngineExceptionError) as ei:
        Manager(ManagerConfig(data_file), engine=engine)
    assert ei.value.code == StatusCode.FILE_PERMISSION_DENIED
    assert ei.value.description == "File permission denied"
    assert ei.value.message == "could not open data.hash"
    assert engine.live()["managers"] == 0


def test_detect_empty_evidence_never_reaches_engine(engine, config):
    with Manager(config, engine=engine) as manager:
        before = list(engine.calls)
        with pytest.raises(PreconditionError) as ei:
            manager.detect([])
        assert ei.value.operation is Operation.CREATE_EVIDENCE
        assert engine.calls == before


def test_detect_applies_every_pair(engine, config):
    evidence = [
        EvidenceName.UserAgent.with_value(MOBILE_SAFARI_UA),
        EvidenceName.SecChUa.with_value('"Safari";v="15"'),
        (Custom("x-extra"), "1"),
    ]
    with Manager(config, engine=engine) as manager:
        with manager.detect(evidence) as result:
            applied = engine.results[result._handle]["evidence"]
            assert [k for _, k, _ in applied] == [b"user-agent", b"sec-ch-ua", b"x-extra"]


def test_detect_nul_in_evidence_releases_collection(engine, config):
    with Manager(config, engine=engine) as manager:
        with pytest.raises(EncodingError):
            manager.detect([(EvidenceName.UserAgent, "ok"), (EvidenceName.SecChUa, "bad\x00")])
        assert engine.live()["evidence"] == 0
        assert "results_create" not in engine.calls
        # manager still usable
        with manager.detect([(EvidenceName.UserAgent, MOBILE_SAFARI_UA)]) as result:
            assert result.get_value_as_string(PropertyName.IsMobile) == "True"


def test_detect_evidence_create_null(config):
    engine = FakeEngine(fail_evidence_create=True)
    with Manager(config, engine=engine) as manager:
        with pytest.raises(NativeCallError):
            manager.detect([(EvidenceName.UserAgent, "x")])


def test_close_refuses_while_results_open(engine, config):
    manager = Manager(config, engine=engine)
    result = manager.detect([(EvidenceName.UserAgent, MOBILE_SAFARI_UA)])
    assert manager.open_results() == 1
    with pytest.raises(PreconditionError) as ei:
        manager.close()
    assert ei.value.operation is Operation.RELEASE_MANAGER
    assert not manager.closed
    result.close()
    manager.close()
    manager.close()
    assert manager.closed
    assert engine.calls.count("manager_free") == 1
    assert engine.total_live() == 0


def test_detect_after_close(engine, config):
    manager = Manager(config, engine=engine)
    manager.close()
    with pytest.raises(PreconditionError):
        manager.detect([(EvidenceName.UserAgent, "x")])


def test_manager_reused_across_requests(engine, config):
    with Manager(config, engine=engine) as manager:
        for _ in range(5):
            with manager.detect([(EvidenceName.UserAgent, MOBILE_SAFARI_UA)]) as result:
                assert result.get_value_as_string(PropertyName.BrowserName) == "Mobile Safari"
        assert engine.live() == {"managers": 1, "evidence": 0, "results": 0}


def test_default_engine_is_native(monkeypatch, config):
    from hashdetect import native

    monkeypatch.setenv(native.LIBRARY_ENV, os.path.join(str(config.data_file_path.parent), "nope.so"))
    with pytest.raises(DetectionIOError):
        Manager(config)


def test_caller_exception_survives_open_result(engine, config):
    with pytest.raises(ValueError, match="caller failure"):
        with Manager(config, engine=engine) as manager:
            result = manager.detect([(EvidenceName.UserAgent, MOBILE_SAFARI_UA)])
            raise ValueError("caller failure")
    assert not manager.closed
    result.close()
    del result, manager
    gc.collect()
    assert engine.total_live() == 0


def test_caller_exception_without_open_results_still_releases(engine, config):
    with pytest.raises(ValueError):
        with Manager(config, engine=engine) as manager:
            raise ValueError("caller failure")
    assert manager.closed
    assert engine.live()["managers"] == 0


@pytest.mark.parametrize("name", [Custom("A,B"), Custom("IsMobile,"), Custom(",")])
def test_property_name_with_comma_fails_before_load(engine, data_file, name):
    cfg = ManagerConfig(data_file, property_names=(PropertyName.IsMobile, name))
    with pytest.raises(EncodingError) as ei:
        Manager(cfg, engine=engine)
    assert ei.value.kind is CStringKind.PROPERTY_NAME
    assert engine.calls == []
