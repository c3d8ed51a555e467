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
Archive runtime for directories of ``.pak`` containers.

Containers are matched to keys by their encryption GUID. Submitted keys are
only recorded; they are checked against the container's index hash the next
time container state is queried or at mount.

Entry hashes cover the stored payload: decrypted, but still compressed.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path

from ...config.constants import AssetExtractorConstants
from ..codecs import CodecRegistry
from ..exceptions import (
    ArchiveLoadError,
    AssetExtractorError,
    ContainerFormatError,
    ContainerMountError,
    EntryReadError,
)
from ..models import CatalogEntry, ContainerId, DecryptionKey
from ..runtime import ArchiveRuntime
from .pak_format import PakEntryRecord, PakFooter, PakIndex, align, decrypt, sha1

logger = logging.getLogger(__name__)

_EMPTY_HASH = bytes(20)


@dataclass
class _Container:
    path: Path
    footer: PakFooter
    container_id: ContainerId
    index: PakIndex | None = None
    key: DecryptionKey | None = None
    mounted: bool = False
    candidates: dict[bytes, DecryptionKey] = field(default_factory=dict)

    @property
    def has_encrypted_entries(self) -> bool:
        return self.index is not None and any(r.encrypted for r in self.index.records.values())

    @property
    def needs_key(self) -> bool:
        return self.footer.encrypted_index or self.has_encrypted_entries

    @property
    def resolved(self) -> bool:
        return self.key is not None or not self.needs_key


def logical_path(mount_point: str, entry_path: str) -> str:
    """Join mount point and entry path, dropping leading ``../`` segments."""
    mount = mount_point.replace("\\", "/")
    while mount.startswith("../"):
        mount = mount[3:]
    joined = posixpath.join(mount, entry_path.replace("\\", "/"))
    return joined.lstrip("/")


class PakRuntime(ArchiveRuntime):
    """ArchiveRuntime over UE-style ``.pak`` files."""

    def __init__(
        self,
        key_size: int = AssetExtractorConstants.DEFAULT_KEY_SIZE,
        codecs: CodecRegistry | None = None,
    ):
        """
        Initialize runtime.

        Args:
            key_size: Key width in bytes (16 or 32)
            codecs: Decompressor registry. If None, built-in codecs only.
        """
        super().__init__(key_size)
        self.codecs = codecs or CodecRegistry()
        self._containers: list[_Container] = []
        self._catalogue: dict[str, CatalogEntry] = {}

    @property
    def containers(self) -> list[Path]:
        """Paths of every container discovered by initialize()."""
        return [c.path for c in self._containers]

    def initialize(self, root: str | Path) -> None:
        root = Path(root)
        if not root.exists():
            raise ArchiveLoadError(f"Archive root does not exist: {root}")
        if not root.is_dir():
            raise ArchiveLoadError(f"Archive root is not a directory: {root}")

        self._containers.clear()
        self._catalogue.clear()

        try:
            files = sorted(p for p in root.rglob(f"*{AssetExtractorConstants.PAK_EXTENSION}") if p.is_file())
        except OSError as e:
            raise ArchiveLoadError(f"Cannot scan archive root {root}: {e}")

        for path in files:
            try:
                footer = self._read_footer(path)
            except (OSError, ContainerFormatError) as e:
                logger.warning("Skipping unreadable container %s: %s", path.name, e)
                continue

            container = _Container(path=path, footer=footer, container_id=ContainerId(footer.encryption_guid))
            self._containers.append(container)

            if not footer.encrypted_index:
                try:
                    container.index = PakIndex.parse(self._read_index(container, None))
                except (OSError, ContainerFormatError) as e:
                    logger.warning("Skipping container with unreadable index %s: %s", path.name, e)
                    self._containers.remove(container)
                    continue
                if not container.needs_key:
                    self._open(container)

        logger.debug("Discovered %d containers under %s", len(self._containers), root)

    def list_unresolved_containers(self) -> list[ContainerId]:
        self._validate_pending()
        seen: dict[ContainerId, None] = {}
        for container in self._containers:
            if not container.resolved:
                seen.setdefault(container.container_id)
        return list(seen)

    def submit_key(self, container_id: ContainerId, key: DecryptionKey) -> None:
        if key.size != self.key_size:
            logger.debug("Ignoring %d-byte key for %d-byte runtime", key.size, self.key_size)
            return
        for container in self._containers:
            if container.container_id == container_id and container.key is None:
                container.candidates.setdefault(key.value, key)

    def mount(self) -> None:
        self._validate_pending()
        for container in self._containers:
            if container.resolved and not container.mounted:
                self._open(container)

    def entries(self) -> list[CatalogEntry]:
        return list(self._catalogue.values())

    def _validate_pending(self) -> None:
        for container in self._containers:
            if container.resolved or not container.candidates:
                continue
            for candidate in container.candidates.values():
                if self._key_matches(container, candidate):
                    container.key = candidate
                    logger.debug("Key %s unlocks %s", candidate.fingerprint, container.path.name)
                    break
            container.candidates.clear()

    def _key_matches(self, container: _Container, key: DecryptionKey) -> bool:
        try:
            if container.footer.encrypted_index:
                data = self._read_index(container, key)
                return sha1(data) == container.footer.index_hash

            probe = self._probe_record(container)
            if probe is None:
                return True
            chunks = self._read_stored(container, probe, key)
            return sha1(b"".join(chunks)) == probe.content_hash
        except (OSError, AssetExtractorError):
            return False

    @staticmethod
    def _probe_record(container: _Container) -> PakEntryRecord | None:
        """Smallest encrypted entry with a content hash."""
        candidates = [
            r for r in container.index.records.values() if r.encrypted and r.content_hash != _EMPTY_HASH
        ]
        return min(candidates, key=lambda r: r.compressed_size, default=None)

    def _open(self, container: _Container) -> None:
        if container.index is None:
            try:
                data = self._read_index(container, container.key)
                container.index = PakIndex.parse(data)
            except (OSError, ContainerFormatError) as e:
                raise ContainerMountError(f"Cannot mount {container.path.name}: {e}")

        for entry_path, record in container.index.records.items():
            path = logical_path(container.index.mount_point, entry_path)
            # Later containers override same-path entries from earlier ones
            self._catalogue[path.lower()] = CatalogEntry(
                path=path,
                reader=self._make_reader(container, record, path),
                size=record.uncompressed_size,
                container=container.path.name,
            )
        container.mounted = True
        logger.debug("Mounted %s (%d entries)", container.path.name, len(container.index.records))

    def _make_reader(self, container: _Container, record: PakEntryRecord, path: str):
        def read() -> bytes:
            return self._read_entry(container, record, path)

        return read

    @staticmethod
    def _read_footer(path: Path) -> PakFooter:
        size = AssetExtractorConstants.PAK_FOOTER_SIZE
        with open(path, "rb") as fh:
            fh.seek(0, 2)
            length = fh.tell()
            if length < size:
                raise ContainerFormatError(f"File too small for footer ({length} bytes)")
            fh.seek(length - size)
            return PakFooter.parse(fh.read(size))

    @staticmethod
    def _read_index(container: _Container, key: DecryptionKey | None) -> bytes:
        footer = container.footer
        with open(container.path, "rb") as fh:
            fh.seek(footer.index_offset)
            data = fh.read(footer.index_size)
        if len(data) != footer.index_size:
            raise ContainerFormatError("Index extends past end of file")
        if footer.encrypted_index:
            if key is None:
                raise ContainerFormatError("Index is encrypted and no key is available")
            data = decrypt(data, key.value)
        return data

    def _read_stored(
        self, container: _Container, record: PakEntryRecord, key: DecryptionKey | None
    ) -> list[bytes]:
        """Stored payload chunks: decrypted and unpadded, still compressed."""
        if record.encrypted and key is None:
            raise EntryReadError("container is locked (no matching key)")

        if record.compressed:
            spans = [(record.offset + start, end - start) for start, end in record.blocks]
        else:
            spans = [(record.offset + record.inline_size, record.compressed_size)]

        chunks = []
        with open(container.path, "rb") as fh:
            for position, length in spans:
                stored = align(length) if record.encrypted else length
                fh.seek(position)
                chunk = fh.read(stored)
                if len(chunk) != stored:
                    raise EntryReadError("payload extends past end of file")
                if record.encrypted:
                    chunk = decrypt(chunk, key.value)[:length]
                chunks.append(chunk)
        return chunks

    def _decode(self, container: _Container, record: PakEntryRecord, chunks: list[bytes]) -> bytes:
        if not record.compressed:
            return b"".join(chunks)

        method = container.footer.compression_method_name(record.compression_method)
        remaining = record.uncompressed_size
        out = bytearray()
        for block in chunks:
            expected = min(record.block_size or remaining, remaining)
            out += self.codecs.decompress(method, block, expected)
            remaining -= expected
        return bytes(out)

    def _read_entry(self, container: _Container, record: PakEntryRecord, path: str) -> bytes:
        try:
            chunks = self._read_stored(container, record, container.key)
            if record.content_hash != _EMPTY_HASH and sha1(b"".join(chunks)) != record.content_hash:
                raise EntryReadError(f"content hash mismatch for {path}")
            data = self._decode(container, record, chunks)
        except EntryReadError:
            raise
        except (OSError, AssetExtractorError) as e:
            raise EntryReadError(f"cannot read {path}: {e}")

        if len(data) != record.uncompressed_size:
            raise EntryReadError(f"size mismatch for {path}: got {len(data)}, expected {record.uncompressed_size}")
        return data
