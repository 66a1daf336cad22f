"""Boundary with the native detection engine.

`Engine` lists every call the wrapper layer makes. `native.NativeEngine`
implements it over the shared library with ctypes; anything else that
honours the same contract (null handles as None, the exception
out-parameter, required-length return from value reads) can stand in.

Handles are opaque: the wrapper only checks them for null and passes them
back to the engine.
"""
from __future__ import annotations

import ctypes
import typing as t
from abc import ABC, abstractmethod

from .status import StatusCode

if t.TYPE_CHECKING:
    from .config import EngineConfig

# fiftyoneDegreesEvidencePrefix
EVIDENCE_PREFIX_HTTP_HEADER_STRING = 1 << 0
EVIDENCE_PREFIX_HTTP_HEADER_IP_ADDRESSES = 1 << 1
EVIDENCE_PREFIX_SERVER = 1 << 2
EVIDENCE_PREFIX_QUERY = 1 << 3
EVIDENCE_PREFIX_COOKIE = 1 << 4


class NativeException(ctypes.Structure):
    """fiftyoneDegreesException: where an engine failure was raised and its status."""

    _fields_ = [
        ("file", ctypes.c_char_p),
        ("func", ctypes.c_char_p),
        ("line", ctypes.c_int),
        ("status", ctypes.c_int),
    ]

    @classmethod
    def cleared(cls) -> "NativeException":
        exc = cls()
        exc.status = StatusCode.NOT_SET
        return exc


class ResourceManager(ctypes.Structure):
    """fiftyoneDegreesResourceManager; zeroed until the dataset is loaded into it."""

    _fields_ = [("active", ctypes.c_void_p)]


class Engine(ABC):
    """Calls the wrapper layer needs from the engine."""

    name = "engine"

    # dataset / manager
    @abstractmethod
    def new_manager(self) -> t.Any:
        raise NotImplementedError

    @abstractmethod
    def init_manager_from_file(
        self,
        manager: t.Any,
        config: "EngineConfig",
        properties: t.Optional[bytes],
        file_name: bytes,
        exception: NativeException,
    ) -> int:
        raise NotImplementedError

    @abstractmethod
    def manager_free(self, manager: t.Any) -> None:
        raise NotImplementedError

    # evidence
    @abstractmethod
    def evidence_create(self, capacity: int) -> t.Any:
        raise NotImplementedError

    @abstractmethod
    def evidence_add_string(self, evidence: t.Any, prefix: int, key: bytes, value: bytes) -> t.Any:
        raise NotImplementedError

    @abstractmethod
    def evidence_free(self, evidence: t.Any) -> None:
        raise NotImplementedError

    # results
    @abstractmethod
    def results_create(self, manager: t.Any, capacity: int, overrides: int) -> t.Any:
        raise NotImplementedError

    @abstractmethod
    def results_from_evidence(self, results: t.Any, evidence: t.Any, exception: NativeException) -> None:
        raise NotImplementedError

    @abstractmethod
    def results_get_values_string(
        self,
        results: t.Any,
        property_name: bytes,
        buffer: ctypes.Array,
        buffer_len: int,
        separator: bytes,
        exception: NativeException,
    ) -> int:
        raise NotImplementedError

    @abstractmethod
    def results_free(self, results: t.Any) -> None:
        raise NotImplementedError

    # exceptions
    @abstractmethod
    def exception_message(self, exception: NativeException) -> t.Optional[str]:
        raise NotImplementedError
