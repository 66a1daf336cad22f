"""Evidence collection: encoded header key/value pairs handed to the engine.

The engine's evidence array stores pointers into the encoded key/value
buffers without copying them, so the buffers live in an arena owned by the
`Evidence` wrapper. On release the native array is freed first and the arena
dropped afterwards; the arena is never freed piecemeal.
"""
from __future__ import annotations

import logging
import typing as t
import weakref

from .encoding import build_cstring
from .engine import EVIDENCE_PREFIX_HTTP_HEADER_STRING, Engine
from .errors import CStringKind, NativeCallError, Operation, PreconditionError
from .identifiers import EvidenceIdentifier, token_of

log = logging.getLogger("hashdetect.evidence")

EvidencePair = t.Tuple[EvidenceIdentifier, str]


def _release(engine: Engine, handle, arena: list) -> None:
    # native array first: it points into the arena
    engine.evidence_free(handle)
    arena.clear()


class Evidence:
    """Fixed-capacity native evidence array plus the buffers it points into."""

    def __init__(self, engine: Engine, handle, capacity: int):
        self._engine = engine
        self._handle = handle
        self._capacity = capacity
        self._arena: list[tuple[bytes, bytes]] = []
        self._finalizer = weakref.finalize(self, _release, engine, handle, self._arena)

    @classmethod
    def create(cls, engine: Engine, capacity: int) -> "Evidence":
        if capacity < 1:
            raise PreconditionError(Operation.CREATE_EVIDENCE, "capacity must be at least 1")
        handle = engine.evidence_create(capacity)
        if not handle:
            raise NativeCallError(Operation.CREATE_EVIDENCE, "Failed to create evidence object: got null")
        return cls(engine, handle, capacity)

    @property
    def handle(self):
        if not self._finalizer.alive:
            raise PreconditionError(Operation.ADD_EVIDENCE, "evidence has been released")
        return self._handle

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def add(self, key: EvidenceIdentifier, value: str) -> None:
        key_token = token_of(key)
        key_bytes = build_cstring(CStringKind.EVIDENCE_KEY, key_token)
        val_bytes = build_cstring(CStringKind.EVIDENCE_VALUE, value)

        added = self._engine.evidence_add_string(
            self.handle,
            EVIDENCE_PREFIX_HTTP_HEADER_STRING,
            key_bytes,
            val_bytes,
        )
        log.debug("evidence %s (%d byte value)", key_token, len(val_bytes))
        if not added:
            raise NativeCallError(Operation.ADD_EVIDENCE, f"Failed add evidence key={key_token}: got null")

        self._arena.append((key_bytes, val_bytes))

    def extend(self, pairs: t.Iterable[EvidencePair]) -> None:
        for key, value in pairs:
            self.add(key, value)

    def close(self) -> None:
        """Free the native array; later calls are no-ops."""
        self._finalizer()

    def __enter__(self) -> "Evidence":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._arena)

    def __iter__(self) -> t.Iterator[tuple[str, str]]:
        for k, v in self._arena:
            yield k.decode("utf-8"), v.decode("utf-8")

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{len(self)}/{self._capacity}"
        return f"<Evidence {state}>"
