"""ctypes binding of the engine boundary over the hash engine shared library.

The library is looked up, in order, at:
- the path passed to `NativeEngine(library_path=...)`
- $HASHDETECT_LIBRARY
- the platform default install paths below
- `ctypes.util.find_library("fiftyone-hash-c")`

Only the structures the wrapper touches are mirrored here. They follow the
4.4.x device-detection-cxx headers (`common-cxx/config.h`,
`config-dd.h`, `hash/hash.h`); re-check them against the headers before
building against another engine release. `ConfigHash` is used to copy a
preset and apply the overrides from `EngineConfig`; the engine copies the
config while loading, so the Python-side copy only has to live for the
duration of that call.
"""
from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import platform
import typing as t
from pathlib import Path

from .engine import Engine, NativeException, ResourceManager
from .errors import DetectionIOError, EngineStatusError, Operation
from .status import StatusCode

if t.TYPE_CHECKING:
    from .config import EngineConfig

log = logging.getLogger("hashdetect.native")

LIBRARY_ENV = "HASHDETECT_LIBRARY"
LIBRARY_NAME = "fiftyone-hash-c"

DEFAULT_LIBRARY_PATHS = {
    "Linux": [
        "/usr/local/lib/libfiftyone-hash-c.so",
        "/usr/lib/libfiftyone-hash-c.so",
        "./lib51degrees/build/lib/libfiftyone-hash-c.so",
    ],
    "Darwin": [
        "/usr/local/lib/libfiftyone-hash-c.dylib",
        "/opt/homebrew/lib/libfiftyone-hash-c.dylib",
        "./lib51degrees/build/lib/libfiftyone-hash-c.dylib",
    ],
    "Windows": [
        ".\\lib51degrees\\build\\lib\\fiftyone-hash-c.dll",
    ],
}


class ConfigBase(ctypes.Structure):
    _fields_ = [
        ("allInMemory", ctypes.c_bool),
        ("usesUpperPrefixedHeaders", ctypes.c_bool),
        ("freeData", ctypes.c_bool),
        ("useTempFile", ctypes.c_bool),
        ("reuseTempFile", ctypes.c_bool),
        ("tempDirs", ctypes.POINTER(ctypes.c_char_p)),
        ("tempDirCount", ctypes.c_int),
    ]


class ConfigDeviceDetection(ctypes.Structure):
    _fields_ = [
        ("b", ConfigBase),
        ("updateMatchedUserAgent", ctypes.c_bool),
        ("maxMatchedUserAgentLength", ctypes.c_size_t),
        ("allowUnmatched", ctypes.c_bool),
        ("processSpecialEvidence", ctypes.c_bool),
    ]


class CollectionConfig(ctypes.Structure):
    _fields_ = [
        ("loaded", ctypes.c_uint32),
        ("capacity", ctypes.c_uint32),
        ("concurrency", ctypes.c_uint16),
    ]


COLLECTION_FIELDS = (
    "strings",
    "components",
    "maps",
    "properties",
    "values",
    "profiles",
    "rootNodes",
    "nodes",
    "profileOffsets",
)


class ConfigHash(ctypes.Structure):
    _fields_ = (
        [("b", ConfigDeviceDetection)]
        + [(name, CollectionConfig) for name in COLLECTION_FIELDS]
        + [
            ("difference", ctypes.c_int32),
            ("drift", ctypes.c_int32),
            ("usePerformanceGraph", ctypes.c_bool),
            ("usePredictiveGraph", ctypes.c_bool),
            ("traceRoute", ctypes.c_bool),
        ]
    )


class PropertiesRequired(ctypes.Structure):
    _fields_ = [
        ("array", ctypes.POINTER(ctypes.c_char_p)),
        ("count", ctypes.c_int),
        ("string", ctypes.c_char_p),
        ("existing", ctypes.c_void_p),
    ]


def find_library(explicit_path: t.Optional[str] = None) -> Path:
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise DetectionIOError(f"engine library not found: {explicit_path}")

    env_path = os.environ.get(LIBRARY_ENV)
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path
        raise DetectionIOError(f"engine library from ${LIBRARY_ENV} not found: {env_path}")

    for path_str in DEFAULT_LIBRARY_PATHS.get(platform.system(), []):
        path = Path(path_str)
        if path.exists():
            return path

    found = ctypes.util.find_library(LIBRARY_NAME)
    if found:
        return Path(found)

    raise DetectionIOError(f"engine library {LIBRARY_NAME} not found; set ${LIBRARY_ENV}")


class NativeEngine(Engine):
    """Engine implementation calling straight into the shared library."""

    name = "native"

    def __init__(self, library_path: t.Optional[str] = None):
        self.library_path = find_library(library_path)
        try:
            self._lib = ctypes.CDLL(str(self.library_path))
        except OSError as e:
            raise DetectionIOError(f"failed to load engine library {self.library_path}", e)
        self._declare()
        self._free = self._lookup_free()
        log.debug("loaded engine library %s", self.library_path)

    def _declare(self) -> None:
        lib = self._lib

        # StatusCode fiftyoneDegreesHashInitManagerFromFile(manager, config, properties, fileName, exception)
        lib.fiftyoneDegreesHashInitManagerFromFile.argtypes = [
            ctypes.POINTER(ResourceManager),
            ctypes.POINTER(ConfigHash),
            ctypes.POINTER(PropertiesRequired),
            ctypes.c_char_p,
            ctypes.POINTER(NativeException),
        ]
        lib.fiftyoneDegreesHashInitManagerFromFile.restype = ctypes.c_int

        lib.fiftyoneDegreesResourceManagerFree.argtypes = [ctypes.POINTER(ResourceManager)]
        lib.fiftyoneDegreesResourceManagerFree.restype = None

        lib.fiftyoneDegreesEvidenceCreate.argtypes = [ctypes.c_uint32]
        lib.fiftyoneDegreesEvidenceCreate.restype = ctypes.c_void_p

        # the engine keeps the key/value pointers; callers own the memory
        lib.fiftyoneDegreesEvidenceAddString.argtypes = [
            ctypes.c_void_p,
            ctypes.c_int,
            ctypes.c_char_p,
            ctypes.c_char_p,
        ]
        lib.fiftyoneDegreesEvidenceAddString.restype = ctypes.c_void_p

        lib.fiftyoneDegreesEvidenceFree.argtypes = [ctypes.c_void_p]
        lib.fiftyoneDegreesEvidenceFree.restype = None

        lib.fiftyoneDegreesResultsHashCreate.argtypes = [
            ctypes.POINTER(ResourceManager),
            ctypes.c_uint32,  # user-agent capacity
            ctypes.c_uint32,  # overrides capacity
        ]
        lib.fiftyoneDegreesResultsHashCreate.restype = ctypes.c_void_p

        lib.fiftyoneDegreesResultsHashFromEvidence.argtypes = [
            ctypes.c_void_p,
            ctypes.c_void_p,
            ctypes.POINTER(NativeException),
        ]
        lib.fiftyoneDegreesResultsHashFromEvidence.restype = None

        lib.fiftyoneDegreesResultsHashGetValuesString.argtypes = [
            ctypes.c_void_p,
            ctypes.c_char_p,
            ctypes.c_char_p,  # output buffer
            ctypes.c_size_t,
            ctypes.c_char_p,
            ctypes.POINTER(NativeException),
        ]
        lib.fiftyoneDegreesResultsHashGetValuesString.restype = ctypes.c_size_t

        lib.fiftyoneDegreesResultsHashFree.argtypes = [ctypes.c_void_p]
        lib.fiftyoneDegreesResultsHashFree.restype = None

        # message is allocated by the engine; keep the raw pointer so it can be freed
        lib.fiftyoneDegreesExceptionGetMessage.argtypes = [ctypes.POINTER(NativeException)]
        lib.fiftyoneDegreesExceptionGetMessage.restype = ctypes.c_void_p

    def _lookup_free(self):
        # fiftyoneDegreesFree is an exported function pointer, not a function
        try:
            fn = ctypes.CFUNCTYPE(None, ctypes.c_void_p).in_dll(self._lib, "fiftyoneDegreesFree")
        except ValueError:
            log.debug("fiftyoneDegreesFree not exported; exception messages will not be freed")
            return None
        return fn if fn else None

    def _materialize_config(self, config: "EngineConfig") -> ConfigHash:
        try:
            preset = ConfigHash.in_dll(self._lib, config.profile.symbol)
        except ValueError:
            raise EngineStatusError(Operation.INIT_MANAGER, StatusCode.INVALID_CONFIG)
        native = ConfigHash.from_buffer_copy(preset)
        if config.concurrency is not None:
            for name in COLLECTION_FIELDS:
                getattr(native, name).concurrency = config.concurrency
        if config.uses_upper_prefixed_headers is not None:
            native.b.b.usesUpperPrefixedHeaders = config.uses_upper_prefixed_headers
        if config.update_matched_user_agent is not None:
            native.b.updateMatchedUserAgent = config.update_matched_user_agent
        return native

    def new_manager(self) -> ResourceManager:
        return ResourceManager()

    def init_manager_from_file(self, manager, config, properties, file_name, exception) -> int:
        native_config = self._materialize_config(config)
        required = None
        if properties is not None:
            required = PropertiesRequired(array=None, count=0, string=properties, existing=None)
        return self._lib.fiftyoneDegreesHashInitManagerFromFile(
            ctypes.byref(manager),
            ctypes.byref(native_config),
            ctypes.byref(required) if required is not None else None,
            file_name,
            ctypes.byref(exception),
        )

    def manager_free(self, manager) -> None:
        if not manager.active:
            # load failed before the engine attached a dataset
            return
        self._lib.fiftyoneDegreesResourceManagerFree(ctypes.byref(manager))

    def evidence_create(self, capacity: int):
        return self._lib.fiftyoneDegreesEvidenceCreate(capacity)

    def evidence_add_string(self, evidence, prefix, key, value):
        return self._lib.fiftyoneDegreesEvidenceAddString(evidence, prefix, key, value)

    def evidence_free(self, evidence) -> None:
        self._lib.fiftyoneDegreesEvidenceFree(evidence)

    def results_create(self, manager, capacity, overrides):
        return self._lib.fiftyoneDegreesResultsHashCreate(ctypes.byref(manager), capacity, overrides)

    def results_from_evidence(self, results, evidence, exception) -> None:
        self._lib.fiftyoneDegreesResultsHashFromEvidence(results, evidence, ctypes.byref(exception))

    def results_get_values_string(self, results, property_name, buffer, buffer_len, separator, exception) -> int:
        return self._lib.fiftyoneDegreesResultsHashGetValuesString(
            results,
            property_name,
            buffer,
            buffer_len,
            separator,
            ctypes.byref(exception),
        )

    def results_free(self, results) -> None:
        self._lib.fiftyoneDegreesResultsHashFree(results)

    def exception_message(self, exception) -> t.Optional[str]:
        ptr = self._lib.fiftyoneDegreesExceptionGetMessage(ctypes.byref(exception))
        if not ptr:
            return None
        try:
            return ctypes.string_at(ptr).decode("utf-8", errors="replace")
        finally:
            if self._free is not None:
                self._free(ptr)
