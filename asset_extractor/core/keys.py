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
Key normalizer: turns a loosely formatted key string into validated keys.
"""

import logging
import re

from ..config.constants import AssetExtractorConstants
from .exceptions import KeyFormatError
from .models import DecryptionKey

logger = logging.getLogger(__name__)

_SPLIT_PATTERN = re.compile(r"[,;\s]+")


def split_key_fragments(raw: str) -> list[str]:
    """Split a raw key string into trimmed, unquoted, non-empty fragments."""
    quotes = AssetExtractorConstants.QUOTE_CHARS
    stripped = raw.strip().strip(quotes)
    fragments = []
    for part in _SPLIT_PATTERN.split(stripped):
        part = part.strip().strip(quotes).strip()
        if part:
            fragments.append(part)
    return fragments


def normalize_keys(raw: str | None, key_size: int = AssetExtractorConstants.DEFAULT_KEY_SIZE) -> list[DecryptionKey]:
    """
    Parse every key in ``raw``, dropping malformed fragments individually.

    Fragments may be separated by commas, semicolons or whitespace, may be
    quoted, and may omit the ``0x`` prefix. Never raises for bad input.

    Args:
        raw: User-supplied key string
        key_size: Required key width in bytes

    Returns:
        Parsed keys in input order with duplicates removed
    """
    if not raw:
        logger.info("Parsed 0 keys.")
        return []

    logger.debug("Raw keys: %s", raw)

    keys: dict[DecryptionKey, None] = {}
    prefix = AssetExtractorConstants.HEX_PREFIX
    for fragment in split_key_fragments(raw):
        candidate = fragment if fragment[:2].lower() == prefix else prefix + fragment
        try:
            keys.setdefault(DecryptionKey.from_hex(candidate, key_size), None)
        except KeyFormatError as e:
            logger.warning("Rejected key fragment %r: %s", fragment, e)

    logger.info("Parsed %d keys.", len(keys))
    return list(keys)
