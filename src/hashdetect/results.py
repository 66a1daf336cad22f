"""Result view over one native match result.

Two read modes:
- `get_value` returns the engine's rendering, with only the empty string
  read as "no value";
- `get_value_as_string` also reads the engine's not-applicable sentinels
  ("Unknown", "N/A") as "no value".

Values are read into a fixed buffer. A value that does not fit raises
`BufferTooSmallError` carrying the size the engine asked for; it is never
truncated. Pass a larger `buffer_size` to read it.
"""
from __future__ import annotations

import ctypes
import logging
import typing as t
import weakref

from .encoding import build_cstring, decode_cbuffer, new_exception, verify_exception
from .engine import Engine
from .errors import (
    BufferTooSmallError,
    CStringKind,
    NativeCallError,
    Operation,
    PreconditionError,
)
from .identifiers import PropertyIdentifier, token_of

if t.TYPE_CHECKING:
    from .config import EngineConfig
    from .evidence import Evidence
    from .manager import Manager

log = logging.getLogger("hashdetect.results")

SENTINEL_VALUES = frozenset({"Unknown", "N/A"})


class ResultView:
    def __init__(self, engine: Engine, handle, owner: "Manager", config: "EngineConfig"):
        self._engine = engine
        self._handle = handle
        # keeps the manager (and its dataset) alive for as long as this view
        self._owner = owner
        self._buffer_size = config.value_buffer_size
        self._separator = build_cstring(CStringKind.HASH_RESULT_SEPARATOR, config.value_separator)
        self._finalizer = weakref.finalize(self, engine.results_free, handle)

    @classmethod
    def create(cls, owner: "Manager", evidence: "Evidence") -> "ResultView":
        """Allocate a native result and apply `evidence` to it.

        The manager's native resource is only borrowed for this call. On any
        failure the native result is freed before the error propagates.
        """
        engine = owner.engine
        config = owner.config.engine
        handle = engine.results_create(owner.resource, config.results_capacity, config.overrides_capacity)
        if not handle:
            raise NativeCallError(Operation.CREATE_RESULTS, "Failed to create result object: got null")
        try:
            view = cls(engine, handle, owner, config)
        except BaseException:
            engine.results_free(handle)
            raise
        try:
            exception = new_exception()
            engine.results_from_evidence(handle, evidence.handle, exception)
            verify_exception(engine, exception, Operation.APPLY_EVIDENCE)
        except BaseException:
            view.close()
            raise
        return view

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def _read(self, property_name: PropertyIdentifier, buffer_size: t.Optional[int]) -> t.Optional[str]:
        if self.closed:
            raise PreconditionError(Operation.READ_PROPERTY, "result view has been released")
        token = token_of(property_name)
        name_bytes = build_cstring(CStringKind.PROPERTY_NAME, token)
        size = self._buffer_size if buffer_size is None else int(buffer_size)
        if size < 1:
            raise PreconditionError(Operation.READ_PROPERTY, "buffer_size must be at least 1")

        buf = ctypes.create_string_buffer(size)
        exception = new_exception()
        required = self._engine.results_get_values_string(
            self._handle,
            name_bytes,
            buf,
            size,
            self._separator,
            exception,
        )
        verify_exception(self._engine, exception, Operation.READ_PROPERTY)

        log.debug("read %s: %d byte(s) required, buffer %d", token, required, size)
        if required > size:
            raise BufferTooSmallError(token, required, size)
        value = decode_cbuffer(buf)
        if value is None:
            # filled to the last byte with no terminator
            raise BufferTooSmallError(token, max(required, size + 1), size)
        return value

    def get_value(self, property_name: PropertyIdentifier, buffer_size: t.Optional[int] = None) -> t.Optional[str]:
        """Read a property; only an empty rendering counts as no value."""
        value = self._read(property_name, buffer_size)
        return value or None

    def get_value_as_string(
        self, property_name: PropertyIdentifier, buffer_size: t.Optional[int] = None
    ) -> t.Optional[str]:
        """Read a property, also treating "Unknown" and "N/A" as no value."""
        value = self._read(property_name, buffer_size)
        if not value or value in SENTINEL_VALUES:
            return None
        return value

    def get_values(
        self, property_names: t.Iterable[PropertyIdentifier], filtered: bool = True
    ) -> dict[str, t.Optional[str]]:
        read = self.get_value_as_string if filtered else self.get_value
        return {token_of(p): read(p) for p in property_names}

    def close(self) -> None:
        """Free the native result; later calls are no-ops."""
        self._finalizer()

    def __enter__(self) -> "ResultView":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
