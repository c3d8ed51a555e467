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
Entry eligibility filter.
"""

from ..config.constants import AssetExtractorConstants
from .models import CatalogEntry


def is_deny_listed(path: str) -> bool:
    """Check whether ``path`` ends with a raw/intermediate asset extension."""
    return path.lower().endswith(AssetExtractorConstants.DENY_LISTED_EXTENSIONS)


def is_eligible(entry: CatalogEntry | str, name_filter: str | None = "") -> bool:
    """
    Decide whether an entry should be processed.

    Deny-listed extensions are rejected regardless of the filter. An empty
    filter accepts everything else; otherwise the filter must occur in the
    path, ignoring case.

    Args:
        entry: Catalogue entry, or its logical path
        name_filter: Case-insensitive substring, or empty for all

    Returns:
        True if the entry should be listed or extracted
    """
    path = entry if isinstance(entry, str) else entry.path
    if is_deny_listed(path):
        return False
    if not name_filter:
        return True
    return name_filter.lower() in path.lower()
