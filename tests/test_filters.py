# Copyright 2026 Cisco Systems, Inc. and its affiliates
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
Tests for the entry eligibility filter.
"""

import pytest

from asset_extractor.core.filters import is_deny_listed, is_eligible
from asset_extractor.core.models import CatalogEntry


@pytest.mark.parametrize(
    "path",
    [
        "Game/Maps/Level.uasset",
        "Game/Maps/Level.uexp",
        "Game/Textures/Big.ubulk",
        "Game/Maps/LEVEL.UASSET",
    ],
)
def test_deny_listed_never_eligible(path):
    assert is_deny_listed(path)
    assert not is_eligible(path)
    assert not is_eligible(path, "level")


def test_empty_filter_accepts_everything_else():
    assert is_eligible("Game/Audio/theme.wem")
    assert is_eligible("Game/Audio/theme.wem", None)


def test_filter_is_case_insensitive():
    assert is_eligible("Game/Audio/Theme.WEM", "theme.wem")
    assert is_eligible("game/audio/theme.wem", "AUDIO")


def test_filter_requires_containment():
    assert not is_eligible("Game/Audio/theme.wem", "textures")


def test_deny_list_is_suffix_only():
    assert is_eligible("Game/uasset_notes.txt")


def test_accepts_catalog_entry():
    entry = CatalogEntry(path="Game/Config/DefaultGame.ini", reader=lambda: b"")
    assert is_eligible(entry, "config")
