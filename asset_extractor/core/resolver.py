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
Container key resolver.

There is no mapping from key to container, so every key is submitted to
every container that is still locked after the global key pass. Submission
is cheap registration; the runtime validates keys when it mounts.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .models import ContainerId, DecryptionKey, ResolutionReport
from .runtime import ArchiveRuntime

logger = logging.getLogger(__name__)


def resolve_containers(keys: Sequence[DecryptionKey], runtime: ArchiveRuntime) -> ResolutionReport:
    """
    Submit every key to the global container, then to every unresolved
    container, then mount once.

    Args:
        keys: Normalized keys, in parse order
        runtime: Initialized archive runtime

    Returns:
        ResolutionReport carrying the mounted runtime

    Raises:
        ContainerMountError: If the runtime cannot mount
    """
    report = ResolutionReport(runtime=runtime, keys_submitted=len(keys))

    for key in keys:
        runtime.submit_key(ContainerId.GLOBAL, key)
        report.submissions += 1

    # Taken after the global pass so containers it unlocked are not retried
    report.unresolved_snapshot = list(runtime.list_unresolved_containers())
    logger.info("Unloaded container count: %d", len(report.unresolved_snapshot))

    if report.unresolved_snapshot and keys:
        logger.info("Brute-forcing %d keys on %d unloaded containers...", len(keys), len(report.unresolved_snapshot))

    for container_id in report.unresolved_snapshot:
        for key in keys:
            runtime.submit_key(container_id, key)
            report.submissions += 1

    runtime.mount()

    report.unresolved_after_mount = list(runtime.list_unresolved_containers())
    if report.unresolved_after_mount:
        logger.info(
            "%d containers remain locked (no matching key): %s",
            len(report.unresolved_after_mount),
            ", ".join(str(c) for c in report.unresolved_after_mount),
        )

    return report
