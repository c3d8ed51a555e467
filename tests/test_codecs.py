# Copyright 2026 Cisco Systems, Inc. and its affiliates
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
Tests for the codec registry.
"""

import zlib

import lz4.block
import pytest
import zstandard

from asset_extractor.core.bootstrap import DecoderSet
from asset_extractor.core.codecs import CodecRegistry
from asset_extractor.core.exceptions import CodecError

DATA = b"abcdefgh" * 64


class TestCodecRegistry:
    def test_builtin_methods(self):
        assert CodecRegistry().methods == ["gzip", "lz4", "zlib", "zstd"]

    @pytest.mark.parametrize(
        "method,compressed",
        [
            ("Zlib", zlib.compress(DATA)),
            ("zstd", zstandard.ZstdCompressor().compress(DATA)),
            ("LZ4", lz4.block.compress(DATA, store_size=False)),
        ],
    )
    def test_decompress(self, method, compressed):
        assert CodecRegistry().decompress(method, compressed, len(DATA)) == DATA

    def test_unknown_method(self):
        with pytest.raises(CodecError, match="not available"):
            CodecRegistry().decompress("Oodle", b"", 0)

    def test_corrupt_data(self):
        with pytest.raises(CodecError, match="Zlib decompression failed"):
            CodecRegistry().decompress("Zlib", b"not zlib", 10)

    def test_length_mismatch(self):
        with pytest.raises(CodecError, match="expected"):
            CodecRegistry().decompress("Zlib", zlib.compress(DATA), len(DATA) + 1)

    def test_custom_registration(self):
        registry = CodecRegistry()
        registry.register("Reverse", lambda data, size: data[::-1])
        assert registry.is_available("reverse")
        assert registry.decompress("REVERSE", b"cba", 3) == b"abc"


class TestFromDecoders:
    def test_none_gives_builtins(self):
        assert not CodecRegistry.from_decoders(None).is_available("Oodle")

    def test_unloadable_library_is_skipped(self, tmp_path, caplog):
        bogus = tmp_path / "liboo2corelinux64.so.9"
        bogus.write_bytes(b"not a shared object")

        registry = CodecRegistry.from_decoders(DecoderSet({"oodle": bogus}))

        assert not registry.is_available("Oodle")
        assert "Cannot load Oodle library" in caplog.text
