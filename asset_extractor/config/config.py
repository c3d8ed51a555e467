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
Configuration class for Asset Extractor.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml
from dotenv import load_dotenv

from ..core.exceptions import InvalidInputError
from .constants import AssetExtractorConstants


@dataclass
class Config:
    """
    Configuration for Asset Extractor.

    Explicit values win; fields left at their defaults are filled from
    ``ASSET_EXTRACTOR_*`` environment variables.
    """

    # Key handling
    key_size: int = AssetExtractorConstants.DEFAULT_KEY_SIZE

    # Decoder bootstrap
    decoder_dir: Path | None = None
    oodle_url: str | None = None
    oodle_sha256: str | None = None
    download_timeout: float = AssetExtractorConstants.DEFAULT_DOWNLOAD_TIMEOUT

    # Logging
    log_level: str = AssetExtractorConstants.DEFAULT_LOG_LEVEL
    log_file: str | None = None

    def __post_init__(self):
        """Load configuration from environment variables if not provided."""

        if self.key_size == AssetExtractorConstants.DEFAULT_KEY_SIZE:
            if env_size := os.getenv("ASSET_EXTRACTOR_KEY_SIZE"):
                try:
                    self.key_size = int(env_size)
                except ValueError:
                    raise InvalidInputError(f"ASSET_EXTRACTOR_KEY_SIZE must be an integer, got {env_size!r}")

        if self.decoder_dir is None:
            env_dir = os.getenv("ASSET_EXTRACTOR_DECODER_DIR")
            self.decoder_dir = Path(env_dir) if env_dir else AssetExtractorConstants.get_default_decoder_path()
        elif not isinstance(self.decoder_dir, Path):
            self.decoder_dir = Path(self.decoder_dir)

        if self.oodle_url is None:
            self.oodle_url = os.getenv("ASSET_EXTRACTOR_OODLE_URL")

        if self.oodle_sha256 is None:
            self.oodle_sha256 = os.getenv("ASSET_EXTRACTOR_OODLE_SHA256")

        if self.download_timeout == AssetExtractorConstants.DEFAULT_DOWNLOAD_TIMEOUT:
            if env_timeout := os.getenv("ASSET_EXTRACTOR_DOWNLOAD_TIMEOUT"):
                try:
                    self.download_timeout = float(env_timeout)
                except ValueError:
                    raise InvalidInputError(
                        f"ASSET_EXTRACTOR_DOWNLOAD_TIMEOUT must be a number, got {env_timeout!r}"
                    )

        if self.log_level == AssetExtractorConstants.DEFAULT_LOG_LEVEL:
            if env_level := os.getenv("ASSET_EXTRACTOR_LOG_LEVEL"):
                self.log_level = env_level.upper()

        if self.log_file is None:
            self.log_file = os.getenv("ASSET_EXTRACTOR_LOG_FILE")

        if self.key_size not in AssetExtractorConstants.SUPPORTED_KEY_SIZES:
            raise InvalidInputError(
                f"key_size must be one of {AssetExtractorConstants.SUPPORTED_KEY_SIZES}, got {self.key_size}"
            )

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create configuration from environment variables.

        Returns:
            Config instance with values from environment
        """
        return cls()

    @classmethod
    def from_file(cls, config_file: Path) -> "Config":
        """
        Load configuration from .env file.

        Args:
            config_file: Path to .env file

        Returns:
            Config instance
        """
        if config_file.exists():
            load_dotenv(config_file, override=True)

        return cls.from_env()

    @classmethod
    def from_yaml(cls, config_file: str | Path) -> "Config":
        """
        Load configuration from a YAML mapping of field names to values.

        Args:
            config_file: Path to YAML file

        Returns:
            Config instance

        Raises:
            InvalidInputError: If the file is not a mapping or names unknown fields
        """
        path = Path(config_file)
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}

        if not isinstance(raw, dict):
            raise InvalidInputError(f"Config file {path} must contain a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise InvalidInputError(f"Unknown config keys in {path}: {', '.join(unknown)}")

        return cls(**raw)

    @classmethod
    def load(cls, config_file: str | Path | None = None) -> "Config":
        """Load from a YAML or .env file by extension, or from the environment."""
        if config_file is None:
            return cls.from_env()
        path = Path(config_file)
        if path.suffix.lower() in (".yaml", ".yml"):
            return cls.from_yaml(path)
        return cls.from_file(path)
