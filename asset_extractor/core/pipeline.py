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
Pipeline driver: keys -> containers -> catalogue -> per-entry outcomes -> summary.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from .exceptions import InvalidInputError
from .executor import ExtractionExecutor
from .filters import is_deny_listed, is_eligible
from .keys import normalize_keys
from .models import ExtractionOutcome, OutcomeStatus, RunMode, RunSummary
from .resolver import resolve_containers
from .runtime import ArchiveRuntime

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Linear run stages; a run never moves backwards."""

    START = "start"
    KEYS_NORMALIZED = "keys_normalized"
    CONTAINERS_RESOLVED = "containers_resolved"
    CATALOGUED = "catalogued"
    PROCESSING = "processing"
    SUMMARIZED = "summarized"
    TERMINAL = "terminal"


class ExtractionPipeline:
    """Runs one key-resolution and extraction pass over an archive."""

    def __init__(self, runtime: ArchiveRuntime, executor: ExtractionExecutor | None = None):
        """
        Initialize pipeline.

        Args:
            runtime: Archive runtime, not yet initialized. Native decoders
                must already be set up on it.
            executor: Entry executor. If None, uses a default atomic-write executor.
        """
        self.runtime = runtime
        self.executor = executor or ExtractionExecutor()
        self.stage = PipelineStage.START

    def _advance(self, stage: PipelineStage) -> None:
        logger.debug("Pipeline stage: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def run(
        self,
        raw_keys: str | None,
        archive_root: str | Path,
        output_root: str | Path | None = None,
        name_filter: str | None = "",
        on_outcome: Callable[[ExtractionOutcome], None] | None = None,
    ) -> RunSummary:
        """
        Run the full pipeline.

        Args:
            raw_keys: Loosely formatted key string; may be empty
            archive_root: Directory holding the packaged containers
            output_root: Extraction root, or None for list mode
            name_filter: Case-insensitive substring filter; empty for all
            on_outcome: Called once per entry with its outcome, in catalogue order

        Returns:
            RunSummary with counters and per-entry outcomes

        Raises:
            InvalidInputError: If the archive root is empty
            ArchiveLoadError: If the runtime cannot open the archive root
            ContainerMountError: If mounting fails
        """
        start_time = time.time()
        self.stage = PipelineStage.START

        if archive_root is None or not str(archive_root).strip():
            raise InvalidInputError("Archive root cannot be empty")
        if output_root is not None and not str(output_root).strip():
            raise InvalidInputError("Output directory cannot be empty")

        mode = RunMode.LIST if output_root is None else RunMode.EXTRACT
        name_filter = name_filter or ""

        logger.info("Loading archive runtime for: %s", archive_root)
        keys = normalize_keys(raw_keys, self.runtime.key_size)
        self._advance(PipelineStage.KEYS_NORMALIZED)

        self.runtime.initialize(archive_root)
        logger.info("Initial files found: %d", self.runtime.file_count)

        resolution = resolve_containers(keys, self.runtime)
        self._advance(PipelineStage.CONTAINERS_RESOLVED)

        catalogue = self.runtime.entries()
        logger.info("Files after mount: %d", len(catalogue))
        self._advance(PipelineStage.CATALOGUED)

        summary = RunSummary(mode=mode, keys_parsed=len(keys), resolution=resolution)
        self.executor.reset()

        self._advance(PipelineStage.PROCESSING)
        for entry in catalogue:
            if is_eligible(entry, name_filter):
                outcome = self.executor.process(entry, output_root, mode)
            else:
                logger.debug("[Skip] %s", entry.path)
                reason = "deny-listed extension" if is_deny_listed(entry.path) else "filtered"
                outcome = ExtractionOutcome(path=entry.path, status=OutcomeStatus.SKIPPED, reason=reason)

            summary.add_outcome(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

        summary.duration_seconds = time.time() - start_time
        self._advance(PipelineStage.SUMMARIZED)

        verb = "Listed" if mode == RunMode.LIST else "Extracted"
        logger.info(
            "[Done] %s %d files (%d scanned, %d skipped, %d failed).",
            verb,
            summary.succeeded_count,
            summary.total_scanned,
            summary.skipped_count,
            summary.failed_count,
        )
        self._advance(PipelineStage.TERMINAL)
        return summary
