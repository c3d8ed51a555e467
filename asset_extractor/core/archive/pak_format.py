# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Binary layout of ``.pak`` containers: footer, index and entry records.

All integers are little-endian. Layout::

    [entry 0: inline record + payload] ... [index] [footer (221 bytes)]
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field

from Crypto.Cipher import AES

from ...config.constants import AssetExtractorConstants
from ..exceptions import ContainerFormatError

FLAG_ENCRYPTED = 0x01

_FOOTER = struct.Struct("<16sBIiqq20s")
_RECORD_HEAD = struct.Struct("<qqqI20s")
_BLOCK = struct.Struct("<qq")


def align(size: int, alignment: int = AssetExtractorConstants.AES_BLOCK_SIZE) -> int:
    """Round ``size`` up to a multiple of ``alignment``."""
    return (size + alignment - 1) // alignment * alignment


def decrypt(data: bytes, key: bytes) -> bytes:
    """AES-ECB decrypt ``data``; the length must be block aligned."""
    if len(data) % AssetExtractorConstants.AES_BLOCK_SIZE:
        raise ContainerFormatError(f"Encrypted data is not block aligned ({len(data)} bytes)")
    return AES.new(key, AES.MODE_ECB).decrypt(data)


def encrypt(data: bytes, key: bytes) -> bytes:
    """Zero-pad ``data`` to the block size and AES-ECB encrypt it."""
    padded = data + bytes(align(len(data)) - len(data))
    return AES.new(key, AES.MODE_ECB).encrypt(padded)


def sha1(data: bytes) -> bytes:
    return hashlib.sha1(data).digest()


class Reader:
    """Cursor over a byte buffer."""

    def __init__(self, buffer: bytes, cursor: int = 0):
        self._buffer = buffer
        self._cursor = cursor

    @property
    def cursor(self) -> int:
        return self._cursor

    def unpack(self, fmt: str | struct.Struct):
        s = fmt if isinstance(fmt, struct.Struct) else struct.Struct(fmt)
        try:
            values = s.unpack_from(self._buffer, self._cursor)
        except struct.error as e:
            raise ContainerFormatError(f"Truncated data at offset {self._cursor}: {e}")
        self._cursor += s.size
        return values

    def u1(self) -> int:
        return self.unpack("<B")[0]

    def u4(self) -> int:
        return self.unpack("<I")[0]

    def i4(self) -> int:
        return self.unpack("<i")[0]

    def i8(self) -> int:
        return self.unpack("<q")[0]

    def string(self) -> str:
        """Read an FString (negative length means UTF-16-LE characters)."""
        length = self.i4()
        if length == 0:
            return ""
        if length > 0:
            raw = self.unpack(f"{length}s")[0]
            return raw.rstrip(b"\x00").decode("utf-8")
        raw = self.unpack(f"{-length * 2}s")[0]
        return raw.decode("utf-16-le").rstrip("\x00")


def pack_string(value: str) -> bytes:
    """Encode an FString; non-ASCII text is stored as UTF-16-LE."""
    if not value:
        return struct.pack("<i", 0)
    if value.isascii():
        raw = value.encode("ascii") + b"\x00"
        return struct.pack("<i", len(raw)) + raw
    raw = (value + "\x00").encode("utf-16-le")
    return struct.pack("<i", -(len(raw) // 2)) + raw


@dataclass
class PakFooter:
    """Trailer at the end of every container."""

    encryption_guid: bytes
    encrypted_index: bool
    version: int
    index_offset: int
    index_size: int
    index_hash: bytes
    compression_methods: list[str] = field(default_factory=list)
    magic: int = AssetExtractorConstants.PAK_MAGIC

    @classmethod
    def parse(cls, data: bytes) -> PakFooter:
        """
        Parse the footer from the last bytes of a container.

        Raises:
            ContainerFormatError: On short data or a bad magic number
        """
        size = AssetExtractorConstants.PAK_FOOTER_SIZE
        if len(data) < size:
            raise ContainerFormatError(f"File too small for footer ({len(data)} bytes)")

        raw = data[-size:]
        guid, enc, magic, version, index_offset, index_size, index_hash = _FOOTER.unpack_from(raw, 0)
        if magic != AssetExtractorConstants.PAK_MAGIC:
            raise ContainerFormatError(f"Bad magic 0x{magic:08X}")

        name_len = AssetExtractorConstants.PAK_COMPRESSION_NAME_LEN
        methods = []
        for i in range(AssetExtractorConstants.PAK_COMPRESSION_SLOTS):
            start = _FOOTER.size + i * name_len
            name = raw[start : start + name_len].split(b"\x00", 1)[0].decode("ascii", errors="replace")
            if name:
                methods.append(name)

        return cls(
            encryption_guid=guid,
            encrypted_index=bool(enc),
            version=version,
            index_offset=index_offset,
            index_size=index_size,
            index_hash=index_hash,
            compression_methods=methods,
            magic=magic,
        )

    def pack(self) -> bytes:
        head = _FOOTER.pack(
            self.encryption_guid,
            1 if self.encrypted_index else 0,
            self.magic,
            self.version,
            self.index_offset,
            self.index_size,
            self.index_hash,
        )
        name_len = AssetExtractorConstants.PAK_COMPRESSION_NAME_LEN
        names = b"".join(
            m.encode("ascii")[:name_len].ljust(name_len, b"\x00") for m in self.compression_methods
        )
        slots = AssetExtractorConstants.PAK_COMPRESSION_SLOTS * name_len
        return head + names.ljust(slots, b"\x00")

    def compression_method_name(self, index: int) -> str | None:
        """Method name for a 1-based record method index; None for index 0."""
        if index == 0:
            return None
        if index > len(self.compression_methods):
            raise ContainerFormatError(f"Compression method index {index} not declared in footer")
        return self.compression_methods[index - 1]


@dataclass
class PakEntryRecord:
    """Location, size and encoding of one entry's payload."""

    offset: int
    compressed_size: int
    uncompressed_size: int
    compression_method: int = 0
    content_hash: bytes = bytes(20)
    blocks: list[tuple[int, int]] = field(default_factory=list)
    flags: int = 0
    block_size: int = 0

    @property
    def encrypted(self) -> bool:
        return bool(self.flags & FLAG_ENCRYPTED)

    @property
    def compressed(self) -> bool:
        return self.compression_method != 0

    @classmethod
    def read(cls, reader: Reader) -> PakEntryRecord:
        offset, csize, usize, method, content_hash = reader.unpack(_RECORD_HEAD)
        blocks = []
        if method != 0:
            count = reader.u4()
            blocks = [reader.unpack(_BLOCK) for _ in range(count)]
        flags = reader.u1()
        block_size = reader.u4()
        return cls(offset, csize, usize, method, content_hash, blocks, flags, block_size)

    def pack(self, offset: int | None = None) -> bytes:
        out = _RECORD_HEAD.pack(
            self.offset if offset is None else offset,
            self.compressed_size,
            self.uncompressed_size,
            self.compression_method,
            self.content_hash,
        )
        if self.compressed:
            out += struct.pack("<I", len(self.blocks))
            out += b"".join(_BLOCK.pack(start, end) for start, end in self.blocks)
        return out + struct.pack("<BI", self.flags, self.block_size)

    @property
    def inline_size(self) -> int:
        """Size of the record copy stored in front of the payload."""
        size = _RECORD_HEAD.size + 5
        if self.compressed:
            size += 4 + _BLOCK.size * len(self.blocks)
        return size


@dataclass
class PakIndex:
    """Mount point plus path-ordered entry records."""

    mount_point: str
    records: dict[str, PakEntryRecord] = field(default_factory=dict)

    @classmethod
    def parse(cls, data: bytes) -> PakIndex:
        """
        Parse a plaintext index.

        Raises:
            ContainerFormatError: On truncated or malformed index data
        """
        reader = Reader(data)
        try:
            mount_point = reader.string()
            count = reader.i4()
            if count < 0:
                raise ContainerFormatError(f"Negative entry count {count}")
            records = {}
            for _ in range(count):
                path = reader.string()
                records[path] = PakEntryRecord.read(reader)
        except UnicodeDecodeError as e:
            raise ContainerFormatError(f"Undecodable string in index: {e}")
        return cls(mount_point, records)

    def pack(self) -> bytes:
        out = pack_string(self.mount_point) + struct.pack("<i", len(self.records))
        for path, record in self.records.items():
            out += pack_string(path) + record.pack()
        return out
