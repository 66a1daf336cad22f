"""Engine status vocabulary.

The engine reports failures as integer status codes. Every known code has a
fixed description; codes this module does not know about describe as
"Unknown error" instead of failing the lookup.
"""
from __future__ import annotations

import enum
import typing as t


class StatusCode(enum.IntEnum):
    SUCCESS = 0
    INSUFFICIENT_MEMORY = 1
    CORRUPT_DATA = 2
    INCORRECT_VERSION = 3
    FILE_NOT_FOUND = 4
    FILE_BUSY = 5
    FILE_FAILURE = 6
    NOT_SET = 7
    POINTER_OUT_OF_BOUNDS = 8
    NULL_POINTER = 9
    TOO_MANY_OPEN_FILES = 10
    REQ_PROP_NOT_PRESENT = 11
    PROFILE_EMPTY = 12
    COLLECTION_FAILURE = 13
    FILE_COPY_ERROR = 14
    FILE_EXISTS_ERROR = 15
    FILE_WRITE_ERROR = 16
    FILE_READ_ERROR = 17
    FILE_PERMISSION_DENIED = 18
    FILE_PATH_TOO_LONG = 19
    FILE_END_OF_DOCUMENT = 20
    FILE_END_OF_DOCUMENTS = 21
    FILE_END_OF_FILE = 22
    ENCODING_ERROR = 23
    INVALID_COLLECTION_CONFIG = 24
    INVALID_CONFIG = 25
    INSUFFICIENT_HANDLES = 26
    COLLECTION_INDEX_OUT_OF_RANGE = 27
    COLLECTION_OFFSET_OUT_OF_RANGE = 28
    COLLECTION_FILE_SEEK_FAIL = 29
    COLLECTION_FILE_READ_FAIL = 30
    INCORRECT_IP_ADDRESS_FORMAT = 31
    TEMP_FILE_ERROR = 32


UNKNOWN_STATUS_DESCRIPTION = "Unknown error"

_DESCRIPTIONS: dict[StatusCode, str] = {
    StatusCode.SUCCESS: "Success",
    StatusCode.INSUFFICIENT_MEMORY: "Lack of memory",
    StatusCode.CORRUPT_DATA: "Corrupt data",
    StatusCode.INCORRECT_VERSION: "Incorrect version",
    StatusCode.FILE_NOT_FOUND: "File not found",
    StatusCode.FILE_BUSY: "File busy",
    StatusCode.FILE_FAILURE: "File failure",
    StatusCode.NOT_SET: "Not set (should never be returned)",
    StatusCode.POINTER_OUT_OF_BOUNDS: "Pointer out of bounds",
    StatusCode.NULL_POINTER: "Null pointer",
    StatusCode.TOO_MANY_OPEN_FILES: "Too many open files",
    StatusCode.REQ_PROP_NOT_PRESENT: "Required property not present",
    StatusCode.PROFILE_EMPTY: "Profile is empty",
    StatusCode.COLLECTION_FAILURE: "Collection failure",
    StatusCode.FILE_COPY_ERROR: "File copy error",
    StatusCode.FILE_EXISTS_ERROR: "File exists error",
    StatusCode.FILE_WRITE_ERROR: "File write error",
    StatusCode.FILE_READ_ERROR: "File read error",
    StatusCode.FILE_PERMISSION_DENIED: "File permission denied",
    StatusCode.FILE_PATH_TOO_LONG: "File path too long",
    StatusCode.FILE_END_OF_DOCUMENT: "File end of document",
    StatusCode.FILE_END_OF_DOCUMENTS: "File end of documents",
    StatusCode.FILE_END_OF_FILE: "File end of file",
    StatusCode.ENCODING_ERROR: "Encoding error",
    StatusCode.INVALID_COLLECTION_CONFIG: "Invalid collection config",
    StatusCode.INVALID_CONFIG: "Invalid config",
    StatusCode.INSUFFICIENT_HANDLES: "Insufficient handles",
    StatusCode.COLLECTION_INDEX_OUT_OF_RANGE: "Collection index out of range",
    StatusCode.COLLECTION_OFFSET_OUT_OF_RANGE: "Collection offset out of range",
    StatusCode.COLLECTION_FILE_SEEK_FAIL: "Collection file seek fail",
    StatusCode.COLLECTION_FILE_READ_FAIL: "Collection file read fail",
    StatusCode.INCORRECT_IP_ADDRESS_FORMAT: "Incorrect IP address format",
    StatusCode.TEMP_FILE_ERROR: "Temp file error",
}


def coerce_status(code: int) -> t.Optional[StatusCode]:
    """Return the StatusCode member for `code`, or None for unknown codes."""
    try:
        return StatusCode(int(code))
    except ValueError:
        return None


def describe_status(code: int) -> str:
    status = coerce_status(code)
    if status is None:
        return UNKNOWN_STATUS_DESCRIPTION
    return _DESCRIPTIONS[status]


def is_ok(code: int) -> bool:
    # NOT_SET is what the engine leaves in an exception nothing was raised into
    return int(code) in (StatusCode.SUCCESS, StatusCode.NOT_SET)
