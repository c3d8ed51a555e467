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
Extraction executor: lists or writes one catalogue entry at a time.

Every failure while creating directories, reading content or writing the
file is converted into a FAILED outcome for that entry alone.
"""

import contextlib
import logging
import os
import re
import tempfile
from pathlib import Path

from .exceptions import UnsafePathError
from .models import CatalogEntry, ExtractionOutcome, OutcomeStatus, RunMode

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\\/]+")
_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def safe_output_path(output_root: str | Path, logical_path: str) -> Path:
    """
    Map a logical archive path to a file path under ``output_root``.

    Args:
        output_root: Extraction root directory
        logical_path: Forward-slash virtual path from the catalogue

    Returns:
        Path inside ``output_root``

    Raises:
        UnsafePathError: If the path is absolute, empty, contains a parent
            segment or would resolve outside the root
    """
    if "\x00" in logical_path:
        raise UnsafePathError(f"NUL byte in path: {logical_path!r}")
    if logical_path.startswith(("/", "\\")) or _DRIVE_PREFIX.match(logical_path):
        raise UnsafePathError(f"Absolute path not allowed: {logical_path!r}")

    segments = [s for s in _SEPARATORS.split(logical_path) if s and s != "."]
    if not segments:
        raise UnsafePathError(f"Empty path: {logical_path!r}")
    if ".." in segments:
        raise UnsafePathError(f"Parent directory segment in path: {logical_path!r}")

    root = Path(output_root)
    target = root.joinpath(*segments)

    # Catches symlinked directories already present in the output tree
    if not target.resolve().is_relative_to(root.resolve()):
        raise UnsafePathError(f"Path escapes output root: {logical_path!r}")

    return target


def write_atomic(path: Path, data: bytes) -> None:
    """Write ``data`` to a temp file beside ``path`` and rename it into place."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


class ExtractionExecutor:
    """Processes catalogue entries in list or extract mode."""

    def __init__(self, atomic_writes: bool = True):
        """
        Initialize executor.

        Args:
            atomic_writes: Write through a temp file and rename. When False,
                the target is opened and overwritten directly.
        """
        self.atomic_writes = atomic_writes
        self.success_count = 0
        self._claimed_paths: dict[str, str] = {}

    def reset(self) -> None:
        """Clear counters and claimed output paths before a new run."""
        self.success_count = 0
        self._claimed_paths.clear()

    def process(self, entry: CatalogEntry, output_root: str | Path | None, mode: RunMode) -> ExtractionOutcome:
        """
        List or extract a single entry.

        Args:
            entry: Catalogue entry
            output_root: Extraction root (ignored in list mode)
            mode: RunMode.LIST or RunMode.EXTRACT

        Returns:
            ExtractionOutcome for this entry; never raises for entry-level errors
        """
        if mode == RunMode.LIST:
            self.success_count += 1
            logger.debug("[List] %s", entry.path)
            return ExtractionOutcome(path=entry.path, status=OutcomeStatus.LISTED)

        try:
            if output_root is None:
                raise ValueError("output root is required in extract mode")

            target = safe_output_path(output_root, entry.path)
            claim_key = os.path.normcase(str(target.resolve()))
            previous = self._claimed_paths.get(claim_key)
            if previous is not None:
                raise UnsafePathError(f"Output path already written by {previous!r} in this run")

            target.parent.mkdir(parents=True, exist_ok=True)
            data = bytes(entry.read_content())

            if self.atomic_writes:
                write_atomic(target, data)
            else:
                target.write_bytes(data)

            self._claimed_paths[claim_key] = entry.path
        except Exception as e:
            logger.warning("[Fail] %s: %s", entry.path, e)
            return ExtractionOutcome(path=entry.path, status=OutcomeStatus.FAILED, reason=str(e) or type(e).__name__)

        self.success_count += 1
        logger.info("[Export] %s", entry.path)
        return ExtractionOutcome(
            path=entry.path,
            status=OutcomeStatus.EXTRACTED,
            output_path=target,
            bytes_written=len(data),
        )
