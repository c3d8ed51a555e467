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
Decompression methods by name.

Zlib, Gzip, Zstd and LZ4 are always available. Oodle needs the native
library provided by the decoder bootstrap.
"""

from __future__ import annotations

import ctypes
import gzip
import logging
import zlib
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import lz4.block
import zstandard

from .exceptions import CodecError

if TYPE_CHECKING:
    from .bootstrap import DecoderSet

logger = logging.getLogger(__name__)

Decompressor = Callable[[bytes, int], bytes]


def _zlib(data: bytes, size: int) -> bytes:
    return zlib.decompress(data)


def _gzip(data: bytes, size: int) -> bytes:
    return gzip.decompress(data)


def _zstd(data: bytes, size: int) -> bytes:
    return zstandard.ZstdDecompressor().decompress(data, max_output_size=size)


def _lz4(data: bytes, size: int) -> bytes:
    return lz4.block.decompress(data, uncompressed_size=size)


class OodleLibrary:
    """ctypes wrapper around the native Oodle decompressor."""

    def __init__(self, library_path: Path):
        try:
            self._lib = ctypes.CDLL(str(library_path))
            fn = self._lib.OodleLZ_Decompress
        except (OSError, AttributeError) as e:
            raise CodecError(f"Cannot load Oodle library {library_path}: {e}")

        fn.restype = ctypes.c_int64
        fn.argtypes = [
            ctypes.c_char_p,  # compBuf
            ctypes.c_int64,  # compBufSize
            ctypes.c_char_p,  # rawBuf
            ctypes.c_int64,  # rawLen
            ctypes.c_int,  # fuzzSafe
            ctypes.c_int,  # checkCRC
            ctypes.c_int,  # verbosity
            ctypes.c_void_p,  # decBufBase
            ctypes.c_int64,  # decBufSize
            ctypes.c_void_p,  # fpCallback
            ctypes.c_void_p,  # callbackUserData
            ctypes.c_void_p,  # decoderMemory
            ctypes.c_int64,  # decoderMemorySize
            ctypes.c_int,  # threadPhase
        ]
        self._decompress = fn

    def decompress(self, data: bytes, size: int) -> bytes:
        out = ctypes.create_string_buffer(size)
        written = self._decompress(data, len(data), out, size, 1, 0, 0, None, 0, None, None, None, 0, 3)
        if written != size:
            raise CodecError(f"Oodle produced {written} bytes, expected {size}")
        return out.raw


class CodecRegistry:
    """Maps compression method names (case-insensitive) to decompressors."""

    def __init__(self):
        self._decompressors: dict[str, Decompressor] = {}
        self.register("Zlib", _zlib)
        self.register("Gzip", _gzip)
        self.register("Zstd", _zstd)
        self.register("LZ4", _lz4)

    @classmethod
    def from_decoders(cls, decoders: DecoderSet | None) -> CodecRegistry:
        """
        Build a registry including native decoders from the bootstrap.

        Args:
            decoders: Result of DecoderBootstrap.ensure(), or None

        Returns:
            CodecRegistry
        """
        registry = cls()
        if decoders is None:
            return registry

        oodle_path = decoders.get("oodle")
        if oodle_path is not None:
            try:
                registry.register("Oodle", OodleLibrary(oodle_path).decompress)
                logger.info("Oodle decoder loaded from %s", oodle_path)
            except CodecError as e:
                logger.warning("%s", e)
        return registry

    def register(self, name: str, decompressor: Decompressor) -> None:
        self._decompressors[name.lower()] = decompressor

    def is_available(self, name: str) -> bool:
        return name.lower() in self._decompressors

    @property
    def methods(self) -> list[str]:
        return sorted(self._decompressors)

    def decompress(self, method: str, data: bytes, uncompressed_size: int) -> bytes:
        """
        Decompress ``data`` with ``method``.

        Raises:
            CodecError: If the method is unknown or unavailable, decompression
                fails, or the output length is not ``uncompressed_size``
        """
        decompressor = self._decompressors.get(method.lower())
        if decompressor is None:
            raise CodecError(f"Compression method not available: {method}")

        try:
            out = decompressor(data, uncompressed_size)
        except CodecError:
            raise
        except Exception as e:
            raise CodecError(f"{method} decompression failed: {e}")

        if len(out) != uncompressed_size:
            raise CodecError(f"{method} produced {len(out)} bytes, expected {uncompressed_size}")
        return out
