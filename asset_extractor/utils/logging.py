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
Application-wide logging setup.
"""

import logging
import sys
from typing import TextIO

from ..config.constants import AssetExtractorConstants

_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(
    level: str = AssetExtractorConstants.DEFAULT_LOG_LEVEL,
    format_string: str | None = None,
    filename: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure the root logger.

    Can be called more than once; each call replaces the previous handlers.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Case-insensitive.
        format_string: Custom format string for log messages.
                      If None, uses a default format with timestamp and level.
        filename: Path to log file. If None, logs to ``stream``.
        stream: Console stream; defaults to stdout.
    """
    if format_string is None:
        format_string = AssetExtractorConstants.DEFAULT_LOG_FORMAT

    handlers: list[logging.Handler] = []
    if filename:
        handlers.append(logging.FileHandler(filename, encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler(stream or sys.stdout))

    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(level=numeric_level, format=format_string, handlers=handlers, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
