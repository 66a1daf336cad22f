"""Encoding and validation helpers shared by the evidence, result and manager code."""
from __future__ import annotations

import ctypes
import typing as t
from pathlib import Path

from .engine import NativeException
from .errors import (
    CStringKind,
    DetectionIOError,
    EncodingError,
    EngineExceptionError,
    FilesystemPreconditionError,
    Operation,
    ReadFileError,
)
from .status import describe_status, is_ok


def build_cstring(kind: CStringKind, value: str) -> bytes:
    """Encode `value` as UTF-8 for a `const char *` argument.

    The engine reads up to the first NUL, so an embedded NUL would silently
    cut the string short; refuse it instead.
    """
    if not isinstance(value, str):
        raise EncodingError(kind)
    if "\x00" in value:
        raise EncodingError(kind)
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError:
        # lone surrogates
        raise EncodingError(kind)


def build_property_list(tokens: t.Sequence[str]) -> bytes:
    """Join property tokens into the comma-separated list the engine splits.

    A token containing a comma would be split into two requests.
    """
    for token in tokens:
        if not isinstance(token, str) or "," in token:
            raise EncodingError(CStringKind.PROPERTY_NAME)
    return build_cstring(CStringKind.PROPERTY_NAME, ",".join(tokens))


def decode_cbuffer(buf: ctypes.Array) -> t.Optional[str]:
    """Decode a char buffer up to its first NUL.

    Returns None when the buffer holds no terminator at all, i.e. the engine
    filled it completely and the value may be cut off.
    """
    raw = buf.raw
    end = raw.find(b"\x00")
    if end < 0:
        return None
    return raw[:end].decode("utf-8", errors="replace")


def new_exception() -> NativeException:
    """Fresh exception out-parameter; NOT_SET means nothing was raised."""
    return NativeException.cleared()


def verify_exception(engine, exception: t.Optional[NativeException], operation: Operation) -> None:
    """Raise EngineExceptionError if the engine raised into `exception`."""
    if exception is None:
        return
    status = int(exception.status)
    if is_ok(status):
        return
    raise EngineExceptionError(
        operation,
        status,
        describe_status(status),
        engine.exception_message(exception),
    )


def verify_data_file_path(path: Path) -> None:
    if not path.exists():
        raise FilesystemPreconditionError(ReadFileError.NOT_EXISTS, str(path))
    if not path.is_file():
        raise FilesystemPreconditionError(ReadFileError.IS_NOT_FILE, str(path))


def canonical_path_cstring(path: Path) -> bytes:
    try:
        resolved = path.resolve(strict=True)
    except OSError as e:
        raise DetectionIOError("Failed to canonicalize data file path", e)
    return build_cstring(CStringKind.FILE_PATH, str(resolved))
