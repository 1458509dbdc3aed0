from __future__ import annotations

import zlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import msgpack
import pytest
from pydantic import BaseModel

from stronghold.codec import (
    ARCHIVE,
    COMPRESSION_LEVEL,
    HEADER_V1,
    STANDALONE,
    Codec,
    check_header,
    decode,
    decompress,
    encode,
)
from stronghold.errors import (
    CorruptSaveError,
    SaveNotFound,
    SchemaMismatchError,
    SerializationError,
)
from stronghold.storage import MemoryStorage


@dataclass
class Data:
    x: int
    y: int
    text: str


class Color(Enum):
    RED = "red"
    BLUE = "blue"


@dataclass
class Inventory:
    owner: str
    items: List[str] = field(default_factory=list)
    counts: Dict[int, int] = field(default_factory=dict)
    position: Tuple[float, float] = (0.0, 0.0)
    color: Color = Color.RED
    blob: bytes = b""
    note: Optional[str] = None


class Profile(BaseModel):
    name: str
    level: int
    created: datetime


@dataclass
class Grid:
    tiles: Dict[Tuple[int, int], str]


class Opaque:
    pass


def test_header_constant():
    assert HEADER_V1 == b"St\x00\x01"
    assert len(HEADER_V1) == 4


def test_standalone_layout_and_sizes():
    storage = MemoryStorage()
    value = Data(x=0, y=0, text="Hello, world!")
    info = STANDALONE.save(storage, value)

    blob = storage.data
    assert blob[:4] == HEADER_V1
    serialized = encode(value)
    assert zlib.decompress(blob[4:]) == serialized
    assert blob[4:] == zlib.compress(serialized, COMPRESSION_LEVEL)
    assert info.uncompressed_byte_count == len(serialized)
    assert info.compressed_byte_count == len(zlib.compress(serialized, COMPRESSION_LEVEL)) + 4
    assert info.compressed_byte_count == len(blob)


def test_roundtrip_dataclass():
    storage = MemoryStorage()
    value = Data(x=3, y=-7, text="Hello, world!")
    STANDALONE.save(storage, value)
    assert STANDALONE.load(storage, Data) == value


def test_roundtrip_rich_types():
    storage = MemoryStorage()
    value = Inventory(
        owner="ana",
        items=["sword", "shield"],
        counts={1: 5, 2: 7},
        position=(1.5, -2.25),
        color=Color.BLUE,
        blob=bytes(range(256)),
    )
    STANDALONE.save(storage, value)
    assert STANDALONE.load(storage, Inventory) == value


def test_roundtrip_pydantic_model():
    storage = MemoryStorage()
    value = Profile(name="ana", level=4, created=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
    STANDALONE.save(storage, value)
    assert STANDALONE.load(storage, Profile) == value


def test_untyped_load_returns_primitives():
    storage = MemoryStorage()
    STANDALONE.save(storage, {"a": [1, 2, 3], "b": None})
    assert STANDALONE.load(storage) == {"a": [1, 2, 3], "b": None}


def test_missing_storage_is_not_found():
    with pytest.raises(SaveNotFound):
        STANDALONE.load(MemoryStorage(), Data)


def test_foreign_header_is_corrupt():
    storage = MemoryStorage(b"PK\x03\x04 this is not a save file")
    with pytest.raises(CorruptSaveError, match="Unrecognized header"):
        STANDALONE.load(storage, Data)


def test_short_file_is_corrupt():
    with pytest.raises(CorruptSaveError):
        STANDALONE.load(MemoryStorage(b"St"), Data)


def test_other_version_is_incompatible():
    storage = MemoryStorage()
    STANDALONE.save(storage, Data(1, 2, "x"))
    storage.data = b"St\x01\x00" + storage.data[4:]
    with pytest.raises(CorruptSaveError, match="Incompatible save format version 1.0"):
        STANDALONE.load(storage, Data)


def test_truncated_payload_is_corrupt():
    storage = MemoryStorage()
    STANDALONE.save(storage, Data(1, 2, "a fairly long string " * 20))
    storage.data = storage.data[: len(storage.data) // 2]
    with pytest.raises(CorruptSaveError):
        STANDALONE.load(storage, Data)


def test_garbage_payload_is_corrupt():
    storage = MemoryStorage(HEADER_V1 + b"\x00\x01\x02garbage")
    with pytest.raises(CorruptSaveError):
        STANDALONE.load(storage, Data)


def test_trailing_bytes_are_corrupt():
    storage = MemoryStorage()
    STANDALONE.save(storage, Data(1, 2, "x"))
    storage.data += b"extra"
    with pytest.raises(CorruptSaveError):
        STANDALONE.load(storage, Data)


def test_corrupt_byte_offset_five():
    storage = MemoryStorage()
    STANDALONE.save(storage, Data(x=0, y=0, text="Hello, world!"))
    damaged = bytearray(storage.data)
    damaged[5] ^= 0xFF
    storage.data = bytes(damaged)
    with pytest.raises(CorruptSaveError):
        STANDALONE.load(storage, Data)


def test_schema_mismatch_is_distinct():
    storage = MemoryStorage()
    STANDALONE.save(storage, {"name": "not a Data"})
    with pytest.raises(SchemaMismatchError):
        STANDALONE.load(storage, Data)


def test_wrong_scalar_type_is_schema_mismatch():
    storage = MemoryStorage()
    STANDALONE.save(storage, ["a", "b"])
    with pytest.raises(SchemaMismatchError):
        STANDALONE.load(storage, List[int])


def test_unserializable_value_raises_serialization_error():
    class Opaque:
        pass

    storage = MemoryStorage()
    with pytest.raises(SerializationError):
        STANDALONE.save(storage, Opaque())
    # Nothing was written
    assert storage.data is None


def test_archive_codec_is_bare_serializer_output():
    storage = MemoryStorage()
    value = Data(1, 2, "x")
    info = ARCHIVE.save(storage, value)
    assert storage.data == encode(value)
    assert info.uncompressed_byte_count == info.compressed_byte_count == len(storage.data)
    assert ARCHIVE.load(storage, Data) == value


def test_encode_is_msgpack():
    assert msgpack.unpackb(encode(Data(1, 2, "x")), raw=False) == {"x": 1, "y": 2, "text": "x"}


def test_encode_with_explicit_type():
    data = encode([1, 2], List[Any])
    assert decode(data, Tuple[int, int]) == (1, 2)


def test_check_header_accepts_custom_header():
    check_header(b"Zz\x02\x00rest", b"Zz\x02\x00")
    with pytest.raises(CorruptSaveError):
        check_header(b"Zz\x02\x01rest", b"Zz\x02\x00")


def test_decompress_rejects_non_zlib():
    with pytest.raises(CorruptSaveError):
        decompress(b"definitely not zlib")


def test_custom_codec_without_compression_keeps_header():
    codec = Codec(HEADER_V1, compress=False)
    storage = MemoryStorage()
    codec.save(storage, {"k": 1})
    assert storage.data[:4] == HEADER_V1
    assert codec.load(storage) == {"k": 1}


def test_tuple_keys_roundtrip():
    storage = MemoryStorage()
    grid = Grid(tiles={(0, 0): "wall", (1, 2): "floor"})
    STANDALONE.save(storage, grid)
    assert STANDALONE.load(storage, Grid) == grid


def test_untyped_load_restores_tuple_keys():
    storage = MemoryStorage()
    STANDALONE.save(storage, {(0, (1, 2)): "nested", (3, 4): "flat"}, Dict[Any, str])
    assert STANDALONE.load(storage) == {(0, (1, 2)): "nested", (3, 4): "flat"}


def test_load_into_type_without_schema_is_mismatch():
    storage = MemoryStorage()
    STANDALONE.save(storage, {"k": 1})
    with pytest.raises(SchemaMismatchError):
        STANDALONE.load(storage, Opaque)
    with pytest.raises(SchemaMismatchError):
        decode(encode({"k": 1}), Opaque)


@pytest.mark.parametrize("payload", [b"\xc1", b"\x92\x01", b"\x01\x02"])
def test_malformed_msgpack_inside_valid_zlib_is_corrupt(payload):
    # Reserved type byte, truncated array, and trailing data
    storage = MemoryStorage(HEADER_V1 + zlib.compress(payload))
    with pytest.raises(CorruptSaveError):
        STANDALONE.load(storage, Data)
    with pytest.raises(CorruptSaveError):
        STANDALONE.load(storage)


def test_malformed_archive_payload_is_corrupt():
    with pytest.raises(CorruptSaveError):
        ARCHIVE.load(MemoryStorage(b"\xc1"), Data)
