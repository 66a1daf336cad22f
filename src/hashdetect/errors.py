"""Error taxonomy for the detection layer.

Every failure reaches the caller as one of the exceptions below. None of them
are retried here; engine codes and messages are carried through unchanged.
"""
from __future__ import annotations

import enum
import typing as t

from .status import describe_status


class Operation(enum.Enum):
    READ_DATA_FILE = "read data file"
    INIT_MANAGER = "initialize manager"
    CREATE_EVIDENCE = "create evidence"
    ADD_EVIDENCE = "add evidence"
    CREATE_RESULTS = "create results"
    APPLY_EVIDENCE = "apply evidence"
    READ_PROPERTY = "read property"
    RELEASE_MANAGER = "release manager"

    def __str__(self) -> str:
        return self.value


class CStringKind(enum.Enum):
    FILE_PATH = "file path"
    EVIDENCE_KEY = "evidence key"
    EVIDENCE_VALUE = "evidence value"
    PROPERTY_NAME = "property name"
    HASH_RESULT_SEPARATOR = "hash result separator"

    def __str__(self) -> str:
        return self.value


class ReadFileError(enum.Enum):
    NOT_EXISTS = "file does not exist"
    IS_NOT_FILE = "is not a file"

    def __str__(self) -> str:
        return self.value


class DetectionError(Exception):
    """Base class for every error raised by hashdetect."""


class EncodingError(DetectionError):
    """A string could not be turned into a null-terminated byte string."""

    def __init__(self, kind: CStringKind):
        self.kind = kind
        super().__init__(f"CString creation error for: {kind}")


class EngineError(DetectionError):
    """Failure reported by, or while talking to, the native engine."""


class EngineStatusError(EngineError):
    """The engine returned a non-success status code."""

    def __init__(self, operation: Operation, code: int, description: t.Optional[str] = None):
        self.operation = operation
        self.code = int(code)
        self.description = description if description is not None else describe_status(code)
        super().__init__(self._render())

    def _render(self) -> str:
        return (
            f"engine error for operation: {self.operation}, "
            f"status code: {self.code}, description: {self.description}"
        )


class EngineExceptionError(EngineStatusError):
    """The engine raised an exception carrying a status code and a message."""

    def __init__(
        self,
        operation: Operation,
        code: int,
        description: t.Optional[str] = None,
        message: t.Optional[str] = None,
    ):
        self.message = message
        super().__init__(operation, code, description)

    def _render(self) -> str:
        base = super()._render()
        if self.message:
            return f"{base}, message: {self.message}"
        return base


class BufferTooSmallError(EngineError):
    """A property value did not fit the read buffer. Values are never truncated."""

    def __init__(self, property_name: str, required: int, actual: int):
        self.property_name = property_name
        self.required = int(required)
        self.actual = int(actual)
        super().__init__(
            f"Buffer too small for property: {property_name}, "
            f"expected: {self.required}, actual: {self.actual}"
        )


class PreconditionError(DetectionError):
    """A caller-checkable precondition was violated."""

    def __init__(self, operation: Operation, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"precondition failed for operation {operation}: {detail}")


class NativeCallError(PreconditionError):
    """The engine handed back a null handle (allocation failed or capacity exceeded)."""


class FilesystemPreconditionError(DetectionError):
    def __init__(self, kind: ReadFileError, path: t.Optional[str] = None):
        self.kind = kind
        self.path = path
        self.operation = Operation.READ_DATA_FILE
        where = f" ({path})" if path else ""
        super().__init__(f"cannot {Operation.READ_DATA_FILE}: {kind}{where}")


class DetectionIOError(DetectionError):
    """Host I/O failed (path canonicalization, library loading)."""

    def __init__(self, context: str, cause: t.Optional[BaseException] = None):
        self.context = context
        self.cause = cause
        super().__init__(f"IO error: {context}, cause: {cause!r}")
