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
Data models for keys, containers, catalogue entries and extraction outcomes.
"""

from __future__ import annotations

import string
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from ..config.constants import AssetExtractorConstants
from .exceptions import KeyFormatError

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class DecryptionKey:
    """A fixed-width decryption key."""

    value: bytes

    @classmethod
    def from_hex(cls, text: str, key_size: int = AssetExtractorConstants.DEFAULT_KEY_SIZE) -> DecryptionKey:
        """
        Parse a ``0x``-prefixed hex string of exactly ``key_size`` bytes.

        Args:
            text: Hex key, e.g. ``0x00112233...``
            key_size: Required key width in bytes

        Returns:
            Parsed DecryptionKey

        Raises:
            KeyFormatError: If the prefix, length or digits are wrong
        """
        if text[:2].lower() != AssetExtractorConstants.HEX_PREFIX:
            raise KeyFormatError(f"missing {AssetExtractorConstants.HEX_PREFIX} prefix")

        digits = text[2:]
        if len(digits) != key_size * 2:
            raise KeyFormatError(f"expected {key_size * 2} hex digits, got {len(digits)}")
        if not set(digits) <= _HEX_DIGITS:
            raise KeyFormatError("invalid hex digits")

        return cls(bytes.fromhex(digits))

    @property
    def size(self) -> int:
        return len(self.value)

    def __str__(self) -> str:
        return AssetExtractorConstants.HEX_PREFIX + self.value.hex().upper()

    def __repr__(self) -> str:
        # Never print full key material in reprs that end up in logs
        return f"DecryptionKey({self.fingerprint})"

    @property
    def fingerprint(self) -> str:
        """Short, non-secret identifier for diagnostics."""
        hexed = self.value.hex().upper()
        return f"{hexed[:4]}...{hexed[-4:]}"


@dataclass(frozen=True)
class ContainerId:
    """Opaque 128-bit container identity (GUID-like)."""

    value: bytes

    GLOBAL: ClassVar[ContainerId]

    def __post_init__(self):
        if len(self.value) != AssetExtractorConstants.CONTAINER_ID_SIZE:
            raise ValueError(
                f"ContainerId must be {AssetExtractorConstants.CONTAINER_ID_SIZE} bytes, got {len(self.value)}"
            )

    @classmethod
    def from_hex(cls, text: str) -> ContainerId:
        """Parse a 32-digit hex identity; dashes and braces are ignored."""
        cleaned = text.strip().strip("{}").replace("-", "")
        if cleaned[:2].lower() == AssetExtractorConstants.HEX_PREFIX:
            cleaned = cleaned[2:]
        return cls(bytes.fromhex(cleaned))

    @property
    def is_global(self) -> bool:
        return not any(self.value)

    def __str__(self) -> str:
        return self.value.hex().upper()


ContainerId.GLOBAL = ContainerId(bytes(AssetExtractorConstants.CONTAINER_ID_SIZE))


@dataclass
class CatalogEntry:
    """A catalogued entry: logical path plus a lazy content accessor."""

    path: str
    reader: Callable[[], bytes] = field(repr=False)
    size: int | None = None
    container: str | None = None

    def read_content(self) -> bytes:
        """Read the entry's decrypted, decompressed bytes."""
        return self.reader()


class RunMode(str, Enum):
    """Whether a run writes entries or only reports their names."""

    EXTRACT = "extract"
    LIST = "list"


class OutcomeStatus(str, Enum):
    """Per-entry result of a run."""

    EXTRACTED = "extracted"
    LISTED = "listed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ExtractionOutcome:
    """Result of processing a single catalogue entry."""

    path: str
    status: OutcomeStatus
    reason: str | None = None
    output_path: Path | None = None
    bytes_written: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status in (OutcomeStatus.EXTRACTED, OutcomeStatus.LISTED)

    def to_dict(self) -> dict[str, Any]:
        """Convert outcome to dictionary."""
        return {
            "path": self.path,
            "status": self.status.value,
            "reason": self.reason,
            "output_path": str(self.output_path) if self.output_path else None,
            "bytes_written": self.bytes_written,
        }


@dataclass
class ResolutionReport:
    """What the container key resolver did, and what stayed locked."""

    runtime: Any = field(repr=False, default=None)
    keys_submitted: int = 0
    submissions: int = 0
    unresolved_snapshot: list[ContainerId] = field(default_factory=list)
    unresolved_after_mount: list[ContainerId] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "keys_submitted": self.keys_submitted,
            "submissions": self.submissions,
            "unresolved_before_mount": [str(c) for c in self.unresolved_snapshot],
            "unresolved_after_mount": [str(c) for c in self.unresolved_after_mount],
        }


@dataclass
class RunSummary:
    """Aggregated counters and outcomes from one pipeline run."""

    mode: RunMode
    outcomes: list[ExtractionOutcome] = field(default_factory=list)
    total_scanned: int = 0
    succeeded_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    keys_parsed: int = 0
    resolution: ResolutionReport | None = None
    duration_seconds: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    def add_outcome(self, outcome: ExtractionOutcome) -> None:
        """Add an outcome and update counters."""
        self.outcomes.append(outcome)
        self.total_scanned += 1

        if outcome.succeeded:
            self.succeeded_count += 1
        elif outcome.status == OutcomeStatus.SKIPPED:
            self.skipped_count += 1
        elif outcome.status == OutcomeStatus.FAILED:
            self.failed_count += 1

    def get_outcomes_by_status(self, status: OutcomeStatus) -> list[ExtractionOutcome]:
        """Get all outcomes with a specific status."""
        return [o for o in self.outcomes if o.status == status]

    @property
    def has_failures(self) -> bool:
        return self.failed_count > 0

    def to_dict(self, include_skipped: bool = False) -> dict[str, Any]:
        """Convert summary to dictionary."""
        outcomes = self.outcomes if include_skipped else [o for o in self.outcomes if o.status != OutcomeStatus.SKIPPED]
        return {
            "summary": {
                "mode": self.mode.value,
                "keys_parsed": self.keys_parsed,
                "total_scanned": self.total_scanned,
                "succeeded": self.succeeded_count,
                "skipped": self.skipped_count,
                "failed": self.failed_count,
                "duration_seconds": self.duration_seconds,
                "timestamp": self.timestamp.isoformat(),
            },
            "resolution": self.resolution.to_dict() if self.resolution else None,
            "outcomes": [o.to_dict() for o in outcomes],
        }
