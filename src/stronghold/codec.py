"""Binary save-file codec.

A standalone save file is laid out as::

    offset 0..4   : b"St" + major + minor   (HEADER_V1 = b"St\\x00\\x01")
    offset 4..EOF : zlib stream of the msgpack encoding of the value

The value itself is lowered to primitives by a pydantic ``TypeAdapter``
built for its type, so loading validates back into the requested type
rather than trusting whatever shape was stored.
"""
from __future__ import annotations

import logging
import zlib
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

import msgpack
from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError, PydanticUserError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .errors import CorruptSaveError, SchemaMismatchError, SerializationError
from .storage import Storage

logger = logging.getLogger(__name__)

FORMAT_ID = b"St"
VERSION_MAJOR = 0
VERSION_MINOR = 1
HEADER_V1 = FORMAT_ID + bytes([VERSION_MAJOR, VERSION_MINOR])
HEADER_SIZE = len(HEADER_V1)

# Saves are infrequent; size matters more than CPU time.
COMPRESSION_LEVEL = 9


@dataclass(frozen=True)
class Info:
    """Byte counts reported by a save. Never persisted."""

    uncompressed_byte_count: int
    compressed_byte_count: int


@lru_cache(maxsize=256)
def _cached_adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


def adapter_for(type_: Any) -> TypeAdapter:
    """Return a TypeAdapter for ``type_``, memoized when the type is hashable."""
    try:
        return _cached_adapter(type_)
    except TypeError:
        return TypeAdapter(type_)


def encode(value: Any, type_: Any = None) -> bytes:
    """Serialize ``value`` to msgpack bytes using the schema of ``type_`` (default: its own type)."""
    target = type(value) if type_ is None else type_
    try:
        primitives = adapter_for(target).dump_python(value)
        return msgpack.packb(primitives, use_bin_type=True, default=to_jsonable_python)
    except (
        PydanticSchemaGenerationError,
        PydanticUserError,
        PydanticSerializationError,
        TypeError,
        ValueError,
        OverflowError,
    ) as exc:
        raise SerializationError(f"Cannot serialize value of type {target!r}: {exc}") from exc


def _hashable_key(key: Any) -> Any:
    # msgpack has no tuple type; tuple keys come back as lists
    if isinstance(key, list):
        return tuple(_hashable_key(item) for item in key)
    return key


def _build_map(pairs: list) -> dict:
    return {_hashable_key(key): value for key, value in pairs}


def decode(data: bytes, type_: Any = Any) -> Any:
    """Deserialize msgpack bytes into ``type_``."""
    try:
        primitives = msgpack.unpackb(data, raw=False, strict_map_key=False, object_pairs_hook=_build_map)
    except (ValueError, TypeError) as exc:
        raise CorruptSaveError(f"Serialized payload is malformed: {exc}") from exc
    try:
        adapter = adapter_for(type_)
    except (PydanticSchemaGenerationError, PydanticUserError, TypeError) as exc:
        raise SchemaMismatchError(f"Cannot load into {type_!r}: {exc}") from exc
    try:
        return adapter.validate_python(primitives)
    except ValidationError as exc:
        raise SchemaMismatchError(
            f"Stored value does not match {type_!r} ({exc.error_count()} error(s))"
        ) from exc


def check_header(data: bytes, expected: bytes = HEADER_V1) -> None:
    """Raise CorruptSaveError unless ``data`` starts with ``expected``."""
    size = len(expected)
    found = bytes(data[:size])
    if found == expected:
        return
    if len(found) == size and found[:2] == expected[:2]:
        raise CorruptSaveError(
            f"Incompatible save format version {found[2]}.{found[3]} "
            f"(expected {expected[2]}.{expected[3]})"
        )
    raise CorruptSaveError(f"Unrecognized header {found!r}")


def compress(data: bytes) -> bytes:
    return zlib.compress(data, COMPRESSION_LEVEL)


def decompress(data: bytes) -> bytes:
    """Inflate a complete zlib stream; truncation or trailing bytes are corruption."""
    inflater = zlib.decompressobj()
    try:
        out = inflater.decompress(data)
        out += inflater.flush()
    except zlib.error as exc:
        raise CorruptSaveError(f"Compressed payload is damaged: {exc}") from exc
    if not inflater.eof:
        raise CorruptSaveError("Compressed payload is truncated")
    if inflater.unused_data:
        raise CorruptSaveError(f"{len(inflater.unused_data)} unexpected byte(s) after compressed payload")
    return out


class Codec:
    """Serialize/compress/frame a value into a Storage and back.

    ``header`` is written in front of the payload and checked on load when
    set; ``compress`` toggles the zlib stage.
    """

    def __init__(self, header: Optional[bytes] = HEADER_V1, compress: bool = True) -> None:
        self.header = header
        self.compress = compress

    def __repr__(self) -> str:
        return f"Codec(header={self.header!r}, compress={self.compress})"

    def dumps(self, value: Any, type_: Any = None) -> tuple[bytes, int]:
        """Return ``(blob, uncompressed_byte_count)`` for ``value``."""
        serialized = encode(value, type_)
        payload = compress(serialized) if self.compress else serialized
        return (self.header or b"") + payload, len(serialized)

    def loads(self, blob: bytes, type_: Any = Any) -> Any:
        data = blob
        if self.header is not None:
            check_header(data, self.header)
            data = data[len(self.header):]
        if self.compress:
            data = decompress(data)
        return decode(data, type_)

    def save(self, storage: Storage, value: Any, type_: Any = None) -> Info:
        blob, raw_size = self.dumps(value, type_)
        storage.write_bytes(blob)
        info = Info(uncompressed_byte_count=raw_size, compressed_byte_count=len(blob))
        logger.debug(
            "Saved %r: %d bytes serialized, %d bytes written",
            storage,
            info.uncompressed_byte_count,
            info.compressed_byte_count,
        )
        return info

    def load(self, storage: Storage, type_: Any = Any) -> Any:
        blob = storage.read_bytes()
        value = self.loads(blob, type_)
        logger.debug("Loaded %r (%d bytes)", storage, len(blob))
        return value


# Standalone files: header + zlib. Archive entries: bare serializer output,
# since the zip container deflates entries itself.
STANDALONE = Codec(HEADER_V1, compress=True)
ARCHIVE = Codec(None, compress=False)
