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
One-time bootstrap of native decoder libraries.

Each decoder asset is downloaded into the decoder cache directory when it
is missing and a download URL is configured. This runs once, before the
extraction pipeline is constructed.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import logging
import os
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from ..config.config import Config
from ..config.constants import AssetExtractorConstants
from .exceptions import DecoderBootstrapError

logger = logging.getLogger(__name__)


def oodle_library_name(platform: str | None = None) -> str:
    """File name of the Oodle library for ``platform`` (defaults to this one)."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        return "oo2core_9_win64.dll"
    if platform == "darwin":
        return "liboo2coremac64.dylib"
    return "liboo2corelinux64.so.9"


@dataclass(frozen=True)
class DecoderAsset:
    """A native decoder library that can be fetched on demand."""

    name: str
    filename: str
    url: str | None = None
    sha256: str | None = None


@dataclass
class DecoderSet:
    """Native decoder libraries available on disk after bootstrap."""

    libraries: dict[str, Path] = field(default_factory=dict)

    def get(self, name: str) -> Path | None:
        return self.libraries.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.libraries


class DecoderBootstrap:
    """Fetches missing decoder assets into the decoder cache directory."""

    def __init__(
        self,
        config: Config | None = None,
        assets: list[DecoderAsset] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize bootstrap.

        Args:
            config: Extractor configuration. If None, loads from environment.
            assets: Assets to ensure. If None, derived from ``config``.
            transport: Optional httpx transport (used to stub the network)
        """
        self.config = config or Config.from_env()
        self.decoder_dir = Path(self.config.decoder_dir)
        self.assets = assets if assets is not None else self.default_assets(self.config)
        self._transport = transport

    @staticmethod
    def default_assets(config: Config) -> list[DecoderAsset]:
        return [
            DecoderAsset(
                name="oodle",
                filename=oodle_library_name(),
                url=config.oodle_url,
                sha256=config.oodle_sha256,
            )
        ]

    def available(self) -> DecoderSet:
        """Decoder libraries already present in the cache directory."""
        decoders = DecoderSet()
        for asset in self.assets:
            target = self.decoder_dir / asset.filename
            if target.is_file():
                decoders.libraries[asset.name] = target
        return decoders

    async def ensure(self) -> DecoderSet:
        """
        Make every configured asset available locally.

        Assets already on disk are used as-is. Missing assets without a URL
        are reported and left out of the result.

        Returns:
            DecoderSet of library paths present after bootstrap

        Raises:
            DecoderBootstrapError: If a download or checksum verification fails
        """
        decoders = self.available()
        missing: list[DecoderAsset] = []

        for asset in self.assets:
            target = self.decoder_dir / asset.filename
            if asset.name in decoders:
                continue
            if asset.url:
                missing.append(asset)
            else:
                logger.info("Decoder '%s' not found at %s and no download URL configured", asset.name, target)

        if not missing:
            return decoders

        try:
            self.decoder_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DecoderBootstrapError(f"Cannot create decoder directory {self.decoder_dir}: {e}")

        async with httpx.AsyncClient(
            timeout=self.config.download_timeout, follow_redirects=True, transport=self._transport
        ) as client:
            # Every download settles before the client closes
            results = await asyncio.gather(
                *(self._download(client, asset) for asset in missing), return_exceptions=True
            )

        errors = [r for r in results if isinstance(r, BaseException)]
        for error in errors[1:]:
            logger.warning("Decoder download also failed: %s", error)
        if errors:
            raise errors[0]

        for asset, path in zip(missing, results):
            decoders.libraries[asset.name] = path
        return decoders

    async def _download(self, client: httpx.AsyncClient, asset: DecoderAsset) -> Path:
        target = self.decoder_dir / asset.filename
        logger.info("Downloading decoder '%s' from %s", asset.name, asset.url)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{asset.filename}.", suffix=".part", dir=self.decoder_dir)
        digest = hashlib.sha256()
        try:
            with os.fdopen(fd, "wb") as fh:
                async with client.stream("GET", asset.url) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes(AssetExtractorConstants.DOWNLOAD_CHUNK_SIZE):
                        fh.write(chunk)
                        digest.update(chunk)

            if asset.sha256 and digest.hexdigest().lower() != asset.sha256.lower():
                raise DecoderBootstrapError(
                    f"Checksum mismatch for decoder '{asset.name}': expected {asset.sha256}, got {digest.hexdigest()}"
                )
            os.replace(tmp_name, target)
        except httpx.HTTPError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise DecoderBootstrapError(f"Failed to download decoder '{asset.name}': {e}")
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise

        logger.info("Decoder '%s' saved to %s", asset.name, target)
        return target


def run_bootstrap(config: Config | None = None, transport: httpx.AsyncBaseTransport | None = None) -> DecoderSet:
    """Run the decoder bootstrap to completion from synchronous code."""
    return asyncio.run(DecoderBootstrap(config, transport=transport).ensure())
