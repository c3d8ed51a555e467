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
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest before running tests.
All fixtures defined here are available to every test module without
explicit imports.
"""

from __future__ import annotations

import gzip
import os
import zlib
from collections.abc import Iterable
from pathlib import Path

import lz4.block
import pytest
import zstandard

from asset_extractor.config.config import Config
from asset_extractor.config.constants import AssetExtractorConstants
from asset_extractor.core.archive.pak_format import (
    FLAG_ENCRYPTED,
    PakEntryRecord,
    PakFooter,
    PakIndex,
    align,
    encrypt,
    sha1,
)
from asset_extractor.core.exceptions import EntryReadError
from asset_extractor.core.models import CatalogEntry, ContainerId, DecryptionKey
from asset_extractor.core.runtime import ArchiveRuntime

# ---------------------------------------------------------------------------
# Keys and identities used across tests
# ---------------------------------------------------------------------------

KEY_A = bytes(range(16))
KEY_B = bytes(range(16, 32))
KEY_C = bytes(range(32, 48))
KEY_256 = bytes(range(32))

GUID_1 = bytes([1] * 16)
GUID_2 = bytes([2] * 16)


def hex_key(raw: bytes) -> str:
    """``0x``-prefixed upper-case hex form of a raw key."""
    return "0x" + raw.hex().upper()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep ASSET_EXTRACTOR_* variables from the host out of tests."""

    for name in list(os.environ):
        if name.startswith("ASSET_EXTRACTOR_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ASSET_EXTRACTOR_DECODER_DIR", str(tmp_path / "decoders"))


# ---------------------------------------------------------------------------
# In-memory runtime
# ---------------------------------------------------------------------------


class FakeRuntime(ArchiveRuntime):
    """ArchiveRuntime backed by dictionaries.

    ``containers`` maps a container id to ``(key, files)`` where ``key`` is
    the raw key bytes that unlock it (None for an open container) and
    ``files`` maps logical paths to content. Every call is recorded in
    ``calls`` and every submission in ``submissions``.
    """

    def __init__(
        self,
        containers: dict[ContainerId, tuple[bytes | None, dict[str, bytes]]],
        key_size: int = 16,
        fail_paths: Iterable[str] = (),
    ):
        super().__init__(key_size)
        self.containers = containers
        self.fail_paths = set(fail_paths)
        self.calls: list[str] = []
        self.submissions: list[tuple[ContainerId, DecryptionKey]] = []
        self.root: str | Path | None = None
        self._pending: dict[ContainerId, list[DecryptionKey]] = {}
        self._unlocked: set[ContainerId] = set()
        self._mounted: set[ContainerId] = set()

    def initialize(self, root):
        self.calls.append("initialize")
        self.root = root
        self._unlocked = {cid for cid, (key, _) in self.containers.items() if key is None}
        self._mounted = set(self._unlocked)

    def _validate(self):
        for cid, keys in self._pending.items():
            expected = self.containers.get(cid, (None, {}))[0]
            if any(k.value == expected for k in keys):
                self._unlocked.add(cid)
        self._pending.clear()

    def list_unresolved_containers(self):
        self.calls.append("list_unresolved")
        self._validate()
        return [cid for cid in self.containers if cid not in self._unlocked]

    def submit_key(self, container_id, key):
        self.calls.append("submit")
        self.submissions.append((container_id, key))
        self._pending.setdefault(container_id, []).append(key)

    def mount(self):
        self.calls.append("mount")
        self._validate()
        self._mounted = set(self._unlocked)

    def entries(self):
        result = []
        for cid, (_, files) in self.containers.items():
            if cid not in self._mounted:
                continue
            for path, content in files.items():
                result.append(CatalogEntry(path=path, reader=self._reader(path, content), size=len(content)))
        return result

    def _reader(self, path: str, content: bytes):
        def read() -> bytes:
            if path in self.fail_paths:
                raise EntryReadError(f"cannot read {path}")
            return content

        return read


@pytest.fixture
def fake_runtime():
    """Factory fixture for :class:`FakeRuntime`.

    Usage::

        runtime = fake_runtime({
            ContainerId.GLOBAL: (None, {"Game/a.txt": b"a"}),
            ContainerId(GUID_1): (KEY_A, {"Game/b.txt": b"b"}),
        })
    """

    def _make(containers, key_size: int = 16, fail_paths: Iterable[str] = ()) -> FakeRuntime:
        return FakeRuntime(containers, key_size=key_size, fail_paths=fail_paths)

    return _make


# ---------------------------------------------------------------------------
# Real .pak builder
# ---------------------------------------------------------------------------

_COMPRESSORS = {
    "Zlib": zlib.compress,
    "Gzip": gzip.compress,
    "Zstd": lambda data: zstandard.ZstdCompressor().compress(data),
    "LZ4": lambda data: lz4.block.compress(data, store_size=False),
}


def build_pak(
    files: dict[str, bytes],
    key: bytes | None = None,
    guid: bytes = bytes(16),
    encrypt_index: bool | None = None,
    encrypt_entries: bool = False,
    compression: str | None = None,
    mount_point: str = "../../../",
    block_size: int = 64,
    hash_content: bool = True,
) -> bytes:
    """Serialize a complete ``.pak`` container."""
    if encrypt_index is None:
        encrypt_index = key is not None
    if (encrypt_index or encrypt_entries) and key is None:
        raise ValueError("encryption requested without a key")

    body = bytearray()
    index = PakIndex(mount_point)

    for path, content in files.items():
        record = PakEntryRecord(
            offset=len(body),
            compressed_size=len(content),
            uncompressed_size=len(content),
            compression_method=1 if compression else 0,
            content_hash=sha1(content) if hash_content else bytes(20),
            flags=FLAG_ENCRYPTED if encrypt_entries else 0,
            block_size=block_size if compression else 0,
        )

        if compression:
            chunks = [content[i : i + block_size] for i in range(0, len(content), block_size)]
            compressed = [_COMPRESSORS[compression](chunk) for chunk in chunks]
            record.blocks = [(0, 0)] * len(compressed)
            pos = record.inline_size
            blocks = []
            payload = bytearray()
            for comp in compressed:
                stored = encrypt(comp, key) if encrypt_entries else comp
                blocks.append((pos, pos + len(comp)))
                payload += stored
                pos += len(stored)
            record.blocks = blocks
            record.compressed_size = sum(len(c) for c in compressed)
            # Entry hashes cover the stored (compressed) bytes
            if hash_content:
                record.content_hash = sha1(b"".join(compressed))
        else:
            payload = encrypt(content, key) if encrypt_entries else content

        body += record.pack(offset=0) + payload
        index.records[path] = record

    plain = index.pack()
    if encrypt_index:
        plain += bytes(align(len(plain)) - len(plain))
        stored_index = encrypt(plain, key)
    else:
        stored_index = plain

    footer = PakFooter(
        encryption_guid=guid,
        encrypted_index=encrypt_index,
        version=AssetExtractorConstants.PAK_VERSION,
        index_offset=len(body),
        index_size=len(stored_index),
        index_hash=sha1(plain),
        compression_methods=[compression] if compression else [],
    )
    return bytes(body) + stored_index + footer.pack()


@pytest.fixture
def paks_dir(tmp_path: Path) -> Path:
    """Empty archive root directory."""
    root = tmp_path / "Paks"
    root.mkdir()
    return root


@pytest.fixture
def make_pak(paks_dir: Path):
    """Factory fixture that writes a ``.pak`` file into :func:`paks_dir`.

    Usage::

        make_pak("pakchunk0.pak", {"Game/a.txt": b"hello"}, key=KEY_A)

    Keyword arguments are passed through to :func:`build_pak`.
    """

    def _make(name: str, files: dict[str, bytes], **kwargs) -> Path:
        path = paks_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_pak(files, **kwargs))
        return path

    return _make


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config(tmp_path: Path):
    """Factory fixture for :class:`Config` with an isolated decoder directory."""

    def _make(**overrides) -> Config:
        overrides.setdefault("decoder_dir", tmp_path / "decoders")
        return Config(**overrides)

    return _make
