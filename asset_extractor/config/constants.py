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
Constants for Asset Extractor.
"""

from pathlib import Path

try:
    from .._version import __version__ as PACKAGE_VERSION
except Exception:  # pragma: no cover
    PACKAGE_VERSION = "0.0.0-dev"


class AssetExtractorConstants:
    """Constants used throughout the extractor."""

    VERSION = PACKAGE_VERSION

    # Project paths
    PACKAGE_ROOT = Path(__file__).parent.parent

    # Keys
    HEX_PREFIX = "0x"
    DEFAULT_KEY_SIZE = 16  # bytes (128-bit)
    SUPPORTED_KEY_SIZES = (16, 32)
    QUOTE_CHARS = "\"'`"

    # Un-cooked asset fragments that have no standalone meaning once extracted
    DENY_LISTED_EXTENSIONS = (".uasset", ".uexp", ".ubulk")

    # Container identities are 128-bit; all-zero is the global container
    CONTAINER_ID_SIZE = 16

    # Pak container layout
    PAK_EXTENSION = ".pak"
    PAK_MAGIC = 0x5A6F12E1
    PAK_VERSION = 8
    PAK_FOOTER_SIZE = 221
    PAK_COMPRESSION_SLOTS = 5
    PAK_COMPRESSION_NAME_LEN = 32
    AES_BLOCK_SIZE = 16

    # Decoder bootstrap
    DEFAULT_DECODER_DIR = Path.home() / ".asset_extractor" / "decoders"
    DEFAULT_DOWNLOAD_TIMEOUT = 60.0
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    # Logging
    DEFAULT_LOG_LEVEL = "INFO"
    DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def get_default_decoder_path(cls) -> Path:
        """Get path to the default native decoder cache directory."""
        return cls.DEFAULT_DECODER_DIR
