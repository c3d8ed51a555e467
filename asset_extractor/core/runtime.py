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
Archive runtime interface consumed by the extraction pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from ..config.constants import AssetExtractorConstants
from .models import CatalogEntry, ContainerId, DecryptionKey


class ArchiveRuntime(ABC):
    """Abstract base class for archive runtimes.

    A runtime parses the packaged containers under a root directory, keeps
    the catalogue of entries, tracks which containers are still locked and
    performs the decrypt-and-decompress read of an entry's bytes.
    """

    GLOBAL_CONTAINER: ClassVar[ContainerId] = ContainerId.GLOBAL

    def __init__(self, key_size: int = AssetExtractorConstants.DEFAULT_KEY_SIZE):
        """
        Initialize runtime.

        Args:
            key_size: Width in bytes of the keys this runtime accepts
        """
        self._key_size = key_size

    @property
    def key_size(self) -> int:
        """Required key width in bytes."""
        return self._key_size

    @abstractmethod
    def initialize(self, root: str | Path) -> None:
        """
        Discover and register containers under ``root``.

        Raises:
            ArchiveLoadError: If the root is missing or unreadable
        """
        pass

    @abstractmethod
    def list_unresolved_containers(self) -> list[ContainerId]:
        """Snapshot of containers not yet opened, by identity."""
        pass

    @abstractmethod
    def submit_key(self, container_id: ContainerId, key: DecryptionKey) -> None:
        """Register a candidate key for a container; validation is deferred."""
        pass

    @abstractmethod
    def mount(self) -> None:
        """
        Validate submitted keys and open every container they unlock.

        Raises:
            ContainerMountError: On unrecoverable structural failure
        """
        pass

    @abstractmethod
    def entries(self) -> list[CatalogEntry]:
        """Catalogued entries of every mounted container."""
        pass

    @property
    def file_count(self) -> int:
        """Number of catalogued entries."""
        return len(self.entries())
