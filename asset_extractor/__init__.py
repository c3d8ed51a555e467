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
Asset Extractor - key resolution and extraction for encrypted multi-container archives.
"""

try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0+unknown"


def __getattr__(name: str):
    """Lazy-load public API symbols on first access.

    Keeps ``python -m asset_extractor.cli.cli`` from importing the crypto and
    compression stacks before argument parsing.
    """
    _lazy_map = {
        "Config": (".config.config", "Config"),
        "AssetExtractorConstants": (".config.constants", "AssetExtractorConstants"),
        "normalize_keys": (".core.keys", "normalize_keys"),
        "resolve_containers": (".core.resolver", "resolve_containers"),
        "is_eligible": (".core.filters", "is_eligible"),
        "ExtractionExecutor": (".core.executor", "ExtractionExecutor"),
        "ExtractionPipeline": (".core.pipeline", "ExtractionPipeline"),
        "ArchiveRuntime": (".core.runtime", "ArchiveRuntime"),
        "PakRuntime": (".core.archive.pak_runtime", "PakRuntime"),
        "CodecRegistry": (".core.codecs", "CodecRegistry"),
        "DecoderBootstrap": (".core.bootstrap", "DecoderBootstrap"),
        "CatalogEntry": (".core.models", "CatalogEntry"),
        "ContainerId": (".core.models", "ContainerId"),
        "DecryptionKey": (".core.models", "DecryptionKey"),
        "ExtractionOutcome": (".core.models", "ExtractionOutcome"),
        "OutcomeStatus": (".core.models", "OutcomeStatus"),
        "RunMode": (".core.models", "RunMode"),
        "RunSummary": (".core.models", "RunSummary"),
    }
    if name in _lazy_map:
        module_path, attr = _lazy_map[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        # Cache on the module so __getattr__ is only called once per symbol
        globals()[name] = val
        return val
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ExtractionPipeline",
    "ExtractionExecutor",
    "normalize_keys",
    "resolve_containers",
    "is_eligible",
    "ArchiveRuntime",
    "PakRuntime",
    "CodecRegistry",
    "DecoderBootstrap",
    "CatalogEntry",
    "ContainerId",
    "DecryptionKey",
    "ExtractionOutcome",
    "OutcomeStatus",
    "RunMode",
    "RunSummary",
    "Config",
    "AssetExtractorConstants",
]
