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

"""Asset Extractor exceptions.

This module defines custom exceptions for extraction runs.
All exceptions inherit from AssetExtractorError for easy catching.

Fatal errors (``InvalidInputError``, ``ArchiveLoadError``,
``ContainerMountError``) abort a run before any entry is processed.
Per-entry errors (``EntryReadError``, ``UnsafePathError``, ``CodecError``)
are recorded on the entry's outcome and the run continues.

Example:
    >>> from asset_extractor.core.pipeline import ExtractionPipeline
    >>> from asset_extractor.core.exceptions import ArchiveLoadError
    >>>
    >>> try:
    ...     summary = pipeline.run(keys, "path/to/Paks", "out")
    ... except ArchiveLoadError as e:
    ...     print(f"Cannot open archive: {e}")
"""


class AssetExtractorError(Exception):
    """Base exception for all Asset Extractor errors."""

    pass


class InvalidInputError(AssetExtractorError):
    """Raised when a structurally required argument is missing or empty."""

    pass


class KeyFormatError(AssetExtractorError):
    """Raised when a single key fragment is not a valid fixed-width hex key.

    The key normalizer catches this per fragment, so one bad key never
    rejects the whole key string.
    """

    pass


class ArchiveLoadError(AssetExtractorError):
    """Raised when the archive root cannot be read.

    This can indicate:
    - Missing archive directory
    - Path is not a directory
    - File system permission errors
    """

    pass


class ContainerFormatError(AssetExtractorError):
    """Raised when a container file's footer or index is malformed."""

    pass


class ContainerMountError(AssetExtractorError):
    """Raised when the archive runtime cannot finish mounting containers."""

    pass


class EntryReadError(AssetExtractorError):
    """Raised when an entry's content cannot be read.

    This typically indicates:
    - Container still locked (no matching key)
    - Corrupted or truncated payload
    - Content hash mismatch after decryption
    """

    pass


class UnsafePathError(AssetExtractorError):
    """Raised when a logical path would resolve outside the output root."""

    pass


class CodecError(AssetExtractorError):
    """Raised when a compression method is unknown, unavailable, or fails."""

    pass


class DecoderBootstrapError(AssetExtractorError):
    """Raised when a native decoder library cannot be fetched or verified."""

    pass
