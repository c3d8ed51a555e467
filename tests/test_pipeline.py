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
Tests for the pipeline driver.
"""

import logging

import pytest

from asset_extractor.core.exceptions import ArchiveLoadError, InvalidInputError
from asset_extractor.core.models import ContainerId, OutcomeStatus, RunMode
from asset_extractor.core.pipeline import ExtractionPipeline, PipelineStage

from conftest import GUID_1, KEY_A, KEY_B, hex_key

C1 = ContainerId(GUID_1)


@pytest.fixture
def two_container_runtime(fake_runtime):
    """One open global container plus one container locked by KEY_B."""
    return fake_runtime(
        {
            ContainerId.GLOBAL: (
                None,
                {
                    "Game/Config/DefaultGame.ini": b"[/Script]",
                    "Game/Maps/Level.uasset": b"uasset",
                    "Game/Maps/Level.uexp": b"uexp",
                },
            ),
            C1: (KEY_B, {"Game/Audio/Theme.wem": b"RIFF", "Game/Audio/Click.wem": b"RIFF2"}),
        }
    )


class TestExtractionPipeline:
    def test_end_to_end_extract(self, two_container_runtime, tmp_path):
        out = tmp_path / "out"
        pipeline = ExtractionPipeline(two_container_runtime)

        summary = pipeline.run(f"{hex_key(KEY_A)},{hex_key(KEY_B)}", "Paks", out)

        assert summary.mode == RunMode.EXTRACT
        assert summary.keys_parsed == 2
        assert summary.total_scanned == 5
        assert summary.succeeded_count == 3
        assert summary.skipped_count == 2
        assert summary.failed_count == 0
        assert (out / "Game" / "Audio" / "Theme.wem").read_bytes() == b"RIFF"
        assert (out / "Game" / "Config" / "DefaultGame.ini").read_bytes() == b"[/Script]"
        assert not (out / "Game" / "Maps").exists()
        assert pipeline.stage == PipelineStage.TERMINAL

    def test_list_mode_writes_nothing(self, two_container_runtime, tmp_path):
        summary = ExtractionPipeline(two_container_runtime).run(hex_key(KEY_B), "Paks")

        assert summary.mode == RunMode.LIST
        assert {o.path for o in summary.get_outcomes_by_status(OutcomeStatus.LISTED)} == {
            "Game/Config/DefaultGame.ini",
            "Game/Audio/Theme.wem",
            "Game/Audio/Click.wem",
        }
        assert list(tmp_path.iterdir()) == []

    def test_filter_applies_in_both_modes(self, two_container_runtime, tmp_path):
        listed = ExtractionPipeline(two_container_runtime).run(hex_key(KEY_B), "Paks", None, "THEME")
        assert [o.path for o in listed.outcomes if o.succeeded] == ["Game/Audio/Theme.wem"]

        extracted = ExtractionPipeline(two_container_runtime).run(hex_key(KEY_B), "Paks", tmp_path, "theme")
        assert [o.path for o in extracted.outcomes if o.succeeded] == ["Game/Audio/Theme.wem"]

    def test_skip_reasons(self, two_container_runtime):
        summary = ExtractionPipeline(two_container_runtime).run(hex_key(KEY_B), "Paks", None, "audio")
        reasons = {o.path: o.reason for o in summary.get_outcomes_by_status(OutcomeStatus.SKIPPED)}

        assert reasons["Game/Maps/Level.uasset"] == "deny-listed extension"
        assert reasons["Game/Config/DefaultGame.ini"] == "filtered"

    def test_locked_container_entries_absent_without_key(self, two_container_runtime):
        summary = ExtractionPipeline(two_container_runtime).run(hex_key(KEY_A), "Paks")

        paths = [o.path for o in summary.outcomes]
        assert "Game/Audio/Theme.wem" not in paths
        assert summary.resolution.unresolved_after_mount == [C1]

    def test_one_failing_read_among_many(self, fake_runtime, tmp_path):
        files = {f"Game/f{i}.bin": bytes([i]) * 8 for i in range(5)}
        runtime = fake_runtime({ContainerId.GLOBAL: (None, files)}, fail_paths=["Game/f2.bin"])

        summary = ExtractionPipeline(runtime).run("", "Paks", tmp_path)

        assert summary.failed_count == 1
        assert summary.succeeded_count == 4
        assert [o.path for o in summary.get_outcomes_by_status(OutcomeStatus.FAILED)] == ["Game/f2.bin"]

    def test_on_outcome_called_in_catalogue_order(self, two_container_runtime):
        seen = []
        summary = ExtractionPipeline(two_container_runtime).run(hex_key(KEY_B), "Paks", on_outcome=seen.append)

        assert seen == summary.outcomes
        assert len(seen) == 5

    def test_empty_keys_still_processes_open_containers(self, two_container_runtime):
        summary = ExtractionPipeline(two_container_runtime).run("", "Paks")
        assert summary.keys_parsed == 0
        assert summary.succeeded_count == 1

    @pytest.mark.parametrize("root", ["", "   ", None])
    def test_empty_archive_root_rejected(self, two_container_runtime, root):
        with pytest.raises(InvalidInputError):
            ExtractionPipeline(two_container_runtime).run(hex_key(KEY_A), root)
        assert two_container_runtime.calls == []

    def test_empty_output_root_rejected(self, two_container_runtime):
        with pytest.raises(InvalidInputError):
            ExtractionPipeline(two_container_runtime).run(hex_key(KEY_A), "Paks", " ")

    def test_runtime_load_failure_is_fatal(self, two_container_runtime, tmp_path):
        def broken_initialize(root):
            raise ArchiveLoadError("missing")

        two_container_runtime.initialize = broken_initialize
        pipeline = ExtractionPipeline(two_container_runtime)

        with pytest.raises(ArchiveLoadError):
            pipeline.run(hex_key(KEY_A), "Paks", tmp_path)
        assert pipeline.stage == PipelineStage.KEYS_NORMALIZED
        assert list(tmp_path.iterdir()) == []

    def test_logs_counts(self, two_container_runtime, caplog):
        with caplog.at_level(logging.INFO):
            ExtractionPipeline(two_container_runtime).run(hex_key(KEY_B), "Paks")

        assert "Initial files found: 3" in caplog.text
        assert "Unloaded container count: 1" in caplog.text
        assert "Files after mount: 5" in caplog.text
        assert "[Done] Listed 3 files" in caplog.text
