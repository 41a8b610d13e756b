"""Byte codecs for stored measurement vectors.

Strings are written as a sequence of records, each a 4-byte big-endian
unsigned length followed by that many UTF-8 bytes. Numeric representations are
packed big-endian with a fixed width per element.
"""

from __future__ import annotations

import struct
from typing import Any, Sequence

import numpy as np

from exprcheck.core.types import PrimitiveType
from exprcheck.errors import DecodingError

_LENGTH = struct.Struct(">I")

_NUMERIC_DTYPES: dict[PrimitiveType, np.dtype] = {
    PrimitiveType.DOUBLE: np.dtype(">f8"),
    PrimitiveType.FLOAT: np.dtype(">f4"),
    PrimitiveType.INT: np.dtype(">i4"),
    PrimitiveType.LONG: np.dtype(">i8"),
    PrimitiveType.BOOLEAN: np.dtype("u1"),
    PrimitiveType.CHAR: np.dtype(">u2"),
}


def strings_to_bytes(values: Sequence[str]) -> bytes:
    parts: list[bytes] = []
    for s in values:
        raw = str(s).encode("utf-8")
        parts.append(_LENGTH.pack(len(raw)))
        parts.append(raw)
    return b"".join(parts)


def bytes_to_strings(data: bytes) -> list[str]:
    """Decode a length-prefixed string payload.

    Raises:
        DecodingError: the payload is truncated or not valid UTF-8.
    """
    out: list[str] = []
    view = memoryview(bytes(data))
    pos = 0
    end = len(view)
    while pos < end:
        if end - pos < _LENGTH.size:
            raise DecodingError(
                f"Truncated length header at byte {pos} ({end - pos} bytes left)."
            )
        (n,) = _LENGTH.unpack_from(view, pos)
        pos += _LENGTH.size
        if end - pos < n:
            raise DecodingError(
                f"Element {len(out)} declares {n} bytes but only {end - pos} remain."
            )
        try:
            out.append(bytes(view[pos : pos + n]).decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise DecodingError(f"Element {len(out)} is not valid UTF-8: {exc}") from exc
        pos += n
    return out


def element_width(representation: PrimitiveType) -> int:
    if representation not in _NUMERIC_DTYPES:
        raise ValueError(f"{representation.value} has no fixed element width.")
    return _NUMERIC_DTYPES[representation].itemsize


def array_to_bytes(values: Sequence[Any], representation: PrimitiveType) -> bytes:
    if representation.is_textual:
        return strings_to_bytes(values)
    if representation is PrimitiveType.CHAR:
        arr = np.array([ord(str(c)) for c in values], dtype=_NUMERIC_DTYPES[representation])
    else:
        arr = np.asarray(values).astype(_NUMERIC_DTYPES[representation])
    return arr.tobytes()


def bytes_to_array(data: bytes, representation: PrimitiveType) -> list[Any]:
    """Decode a payload into Python values according to its representation."""
    if representation.is_textual:
        return bytes_to_strings(data)
    width = element_width(representation)
    if len(data) % width != 0:
        raise DecodingError(
            f"{representation.value} payload of {len(data)} bytes is not a multiple of {width}."
        )
    arr = np.frombuffer(data, dtype=_NUMERIC_DTYPES[representation])
    if representation is PrimitiveType.BOOLEAN:
        return [bool(x) for x in arr]
    if representation is PrimitiveType.CHAR:
        return [chr(int(x)) for x in arr]
    return arr.tolist()
