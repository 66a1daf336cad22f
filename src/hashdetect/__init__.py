"""hashdetect: safe resource and marshalling layer over the 51Degrees hash engine."""
from __future__ import annotations

__version__ = "0.1.0"

from .config import EngineConfig, ManagerConfig, PerformanceProfile
from .errors import (
    BufferTooSmallError,
    CStringKind,
    DetectionError,
    DetectionIOError,
    EncodingError,
    EngineError,
    EngineExceptionError,
    EngineStatusError,
    FilesystemPreconditionError,
    NativeCallError,
    Operation,
    PreconditionError,
    ReadFileError,
)
from .evidence import Evidence
from .identifiers import Custom, EvidenceName, PropertyName, token_of
from .manager import Manager
from .results import ResultView
from .status import StatusCode, describe_status

__all__ = [
    "__version__",
    "BufferTooSmallError",
    "CStringKind",
    "Custom",
    "DetectionError",
    "DetectionIOError",
    "EncodingError",
    "EngineConfig",
    "EngineError",
    "EngineExceptionError",
    "EngineStatusError",
    "Evidence",
    "EvidenceName",
    "FilesystemPreconditionError",
    "Manager",
    "ManagerConfig",
    "NativeCallError",
    "Operation",
    "PerformanceProfile",
    "PreconditionError",
    "PropertyName",
    "ReadFileError",
    "ResultView",
    "StatusCode",
    "describe_status",
    "token_of",
]
