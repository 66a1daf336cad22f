import gc

import pytest

from hashdetect import Custom, EncodingError, EvidenceName, NativeCallError, PreconditionError
from hashdetect.engine import EVIDENCE_PREFIX_HTTP_HEADER_STRING
from hashdetect.errors import CStringKind
from hashdetect.evidence import Evidence

from tests.utils_engine import DoubleFree, FakeEngine


def test_add_encodes_and_registers_pairs(engine):
    ev = Evidence.create(engine, 2)
    ev.add(EvidenceName.UserAgent, "Mozilla/5.0")
    ev.add(Custom("x-custom"), "1")
    items = engine.evidence[ev.handle]["items"]
    assert items == [
        (EVIDENCE_PREFIX_HTTP_HEADER_STRING, b"user-agent", b"Mozilla/5.0"),
        (EVIDENCE_PREFIX_HTTP_HEADER_STRING, b"x-custom", b"1"),
    ]
    assert len(ev) == 2
    assert list(ev) == [("user-agent", "Mozilla/5.0"), ("x-custom", "1")]
    ev.close()


def test_non_ascii_values_are_utf8(engine):
    with Evidence.create(engine, 1) as ev:
        ev.add(EvidenceName.UserAgent, "Mözilla")
        assert engine.evidence[ev.handle]["items"][0][2] == "Mözilla".encode("utf-8")


def test_capacity_is_fixed(engine):
    with Evidence.create(engine, 1) as ev:
        ev.add(EvidenceName.UserAgent, "a")
        with pytest.raises(NativeCallError):
            ev.add(EvidenceName.SecChUa, "b")
        assert len(ev) == 1


@pytest.mark.parametrize(
    "key,value,kind",
    [
        ("user\x00-agent", "v", CStringKind.EVIDENCE_KEY),
        ("user-agent", "Mozilla\x00/5.0", CStringKind.EVIDENCE_VALUE),
        (Custom("a\x00b"), "v", CStringKind.EVIDENCE_KEY),
    ],
)
def test_embedded_nul_fails_before_native_call(engine, key, value, kind):
    with Evidence.create(engine, 1) as ev:
        with pytest.raises(EncodingError) as ei:
            ev.add(key, value)
        assert ei.value.kind is kind
        assert "evidence_add_string" not in engine.calls
        assert len(ev) == 0


def test_create_null_handle():
    engine = FakeEngine(fail_evidence_create=True)
    with pytest.raises(NativeCallError) as ei:
        Evidence.create(engine, 3)
    assert isinstance(ei.value, PreconditionError)


def test_create_rejects_zero_capacity(engine):
    with pytest.raises(PreconditionError):
        Evidence.create(engine, 0)
    assert "evidence_create" not in engine.calls


def test_close_is_exactly_once(engine):
    ev = Evidence.create(engine, 1)
    ev.add(EvidenceName.UserAgent, "a")
    ev.close()
    ev.close()
    assert ev.closed
    assert engine.calls.count("evidence_free") == 1
    assert engine.live()["evidence"] == 0


def test_native_free_happens_before_arena_is_dropped(engine):
    ev = Evidence.create(engine, 1)
    ev.add(EvidenceName.UserAgent, "a")
    seen = []
    original = engine.evidence_free

    def checking_free(handle):
        # the arena still holds the buffers while the native array is freed
        seen.append(len(ev))
        original(handle)

    engine.evidence_free = checking_free
    ev.close()
    assert seen == [1]
    assert len(ev) == 0


def test_garbage_collection_releases_handle(engine):
    ev = Evidence.create(engine, 1)
    ev.add(EvidenceName.UserAgent, "a")
    del ev
    gc.collect()
    assert engine.live()["evidence"] == 0


def test_handle_after_close_is_refused(engine):
    ev = Evidence.create(engine, 1)
    ev.close()
    with pytest.raises(PreconditionError):
        ev.add(EvidenceName.UserAgent, "a")


def test_fake_flags_double_free(engine):
    handle = engine.evidence_create(1)
    engine.evidence_free(handle)
    with pytest.raises(DoubleFree):
        engine.evidence_free(handle)
