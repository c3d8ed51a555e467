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

"""Command-line interface for the Asset Extractor."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable

from ..config.config import Config
from ..core.archive.pak_runtime import PakRuntime
from ..core.bootstrap import DecoderBootstrap, DecoderSet, run_bootstrap
from ..core.codecs import CodecRegistry
from ..core.exceptions import AssetExtractorError, DecoderBootstrapError
from ..core.keys import normalize_keys
from ..core.models import ExtractionOutcome, OutcomeStatus, RunSummary
from ..core.pipeline import ExtractionPipeline
from ..core.resolver import resolve_containers
from ..utils.logging import configure_logging

logger = logging.getLogger("asset_extractor.cli")

USAGE = "asset-extractor extract <ArchiveRoot> <Keys> (<OutputDir> [Filter] | --list [Filter])"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _make_status_printer(args: argparse.Namespace) -> Callable[[str], None]:
    """Return a printer that sends to stderr when JSON output is active."""
    is_json = getattr(args, "format", "summary") == "json"

    def _print(msg: str) -> None:
        print(msg, file=sys.stderr if is_json else sys.stdout)

    return _print


def _load_config(args: argparse.Namespace) -> Config:
    """Build the run configuration from ``--config`` plus flag overrides."""
    config = Config.load(args.config) if getattr(args, "config", None) else Config.from_env()

    if getattr(args, "key_size", None):
        config.key_size = args.key_size
    if getattr(args, "verbose", False):
        config.log_level = "DEBUG"
    if getattr(args, "log_file", None):
        config.log_file = args.log_file
    return config


def _setup_logging(args: argparse.Namespace, config: Config) -> None:
    is_json = getattr(args, "format", "summary") == "json"
    configure_logging(config.log_level, filename=config.log_file, stream=sys.stderr if is_json else sys.stdout)


def _bootstrap_decoders(args: argparse.Namespace, config: Config) -> DecoderSet:
    """Fetch native decoders once; failures only cost the codecs they provide."""
    if getattr(args, "skip_bootstrap", False):
        return DecoderBootstrap(config).available()
    try:
        return run_bootstrap(config)
    except DecoderBootstrapError as e:
        logger.warning("Decoder bootstrap failed, continuing without it: %s", e)
        return DecoderBootstrap(config).available()


def _build_runtime(args: argparse.Namespace, config: Config) -> PakRuntime:
    decoders = _bootstrap_decoders(args, config)
    return PakRuntime(key_size=config.key_size, codecs=CodecRegistry.from_decoders(decoders))


def _generate_summary(summary: RunSummary) -> str:
    """Plain-text run summary."""
    lines = [
        "=" * 60,
        f"Mode: {summary.mode.value}",
        f"Keys parsed: {summary.keys_parsed}",
        f"Entries scanned: {summary.total_scanned}",
        f"Succeeded: {summary.succeeded_count}",
        f"Skipped: {summary.skipped_count}",
        f"Failed: {summary.failed_count}",
        f"Duration: {summary.duration_seconds:.2f}s",
    ]

    if summary.resolution and summary.resolution.unresolved_after_mount:
        lines.append(f"Locked containers: {len(summary.resolution.unresolved_after_mount)}")

    failed = summary.get_outcomes_by_status(OutcomeStatus.FAILED)
    if failed:
        lines.append("")
        lines.append("Failed entries:")
        lines.extend(f"  {o.path}: {o.reason}" for o in failed)

    lines.append("=" * 60)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def extract_command(args: argparse.Namespace) -> int:
    """Handle the ``extract`` command (extract or list)."""
    rest = list(args.rest)
    if args.list is not None:
        # A filter may follow --list or sit where the output directory would
        if len(rest) > 1 or (rest and args.list):
            print(f"Error: Too many arguments for --list\nUsage: {USAGE}", file=sys.stderr)
            return 1
        output_root = None
        name_filter = args.list or (rest[0] if rest else "")
    else:
        if not rest or len(rest) > 2:
            print(f"Error: Output directory is required\nUsage: {USAGE}", file=sys.stderr)
            return 1
        output_root = rest[0]
        name_filter = rest[1] if len(rest) > 1 else ""

    if not args.archive_root.strip() or (output_root is not None and not output_root.strip()):
        print(f"Error: Arguments cannot be empty\nUsage: {USAGE}", file=sys.stderr)
        return 1

    try:
        config = _load_config(args)
        _setup_logging(args, config)
        runtime = _build_runtime(args, config)

        status = _make_status_printer(args)
        if output_root is not None:
            status(f"Extracting {args.archive_root} -> {output_root}")

        def _on_outcome(outcome: ExtractionOutcome) -> None:
            if outcome.status == OutcomeStatus.LISTED:
                status(outcome.path)

        summary = ExtractionPipeline(runtime).run(
            args.keys, args.archive_root, output_root, name_filter, on_outcome=_on_outcome
        )
    except (AssetExtractorError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(json.dumps(summary.to_dict(include_skipped=args.verbose), indent=2))
    else:
        print(_generate_summary(summary))

    if args.fail_on_errors and summary.has_failures:
        return 1
    return 0


def containers_command(args: argparse.Namespace) -> int:
    """Handle the ``containers`` command: resolve keys and report locked containers."""
    if not args.archive_root.strip():
        print("Error: Archive root cannot be empty", file=sys.stderr)
        return 1

    try:
        config = _load_config(args)
        _setup_logging(args, config)
        runtime = _build_runtime(args, config)

        keys = normalize_keys(args.keys, runtime.key_size)
        runtime.initialize(args.archive_root)
        report = resolve_containers(keys, runtime)
    except (AssetExtractorError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        data = report.to_dict()
        data["containers"] = [str(p) for p in runtime.containers]
        data["entries"] = runtime.file_count
        print(json.dumps(data, indent=2))
        return 0

    print(f"Containers: {len(runtime.containers)}")
    print(f"Entries after mount: {runtime.file_count}")
    if report.unresolved_after_mount:
        print(f"Locked containers: {len(report.unresolved_after_mount)}")
        for container_id in report.unresolved_after_mount:
            print(f"  {container_id}")
    else:
        print("All containers unlocked.")
    return 0


def bootstrap_command(args: argparse.Namespace) -> int:
    """Handle the ``bootstrap`` command: fetch native decoders only."""
    try:
        config = _load_config(args)
        _setup_logging(args, config)
        decoders = run_bootstrap(config)
    except (AssetExtractorError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not decoders.libraries:
        print(f"No decoders available in {config.decoder_dir}")
    for name, path in sorted(decoders.libraries.items()):
        print(f"[OK] {name}: {path}")
    return 0


# ---------------------------------------------------------------------------
# Shared argparse helpers
# ---------------------------------------------------------------------------


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", metavar="PATH", help="Configuration file (.env or YAML)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging; include skipped entries in JSON")
    parser.add_argument("--log-file", metavar="PATH", help="Write log output to a file")


def _add_run_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=["summary", "json"],
        default="summary",
        help="Output format (default: summary)",
    )
    parser.add_argument("--key-size", type=int, choices=[16, 32], help="Key width in bytes (default: 16)")
    parser.add_argument("--skip-bootstrap", action="store_true", help="Do not download missing native decoders")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Asset Extractor - key resolution and extraction for encrypted game archives",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  asset-extractor extract /game/Content/Paks 0x1234...ABCD ./out
  asset-extractor extract /game/Content/Paks "0xKEY1,0xKEY2" ./out textures
  asset-extractor extract /game/Content/Paks 0xKEY --list .wav
  asset-extractor containers /game/Content/Paks "0xKEY1;0xKEY2"
  asset-extractor bootstrap
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -- extract -----------------------------------------------------------
    ex_p = subparsers.add_parser("extract", help="Extract (or list) archive entries")
    ex_p.add_argument("archive_root", help="Directory containing the archive containers")
    ex_p.add_argument("keys", help="Decryption keys separated by ',' or ';'")
    ex_p.add_argument("rest", nargs="*", metavar="OUTPUT [FILTER]", help="Output directory, then optional filter")
    ex_p.add_argument(
        "--list",
        nargs="?",
        const="",
        default=None,
        metavar="FILTER",
        help="List matching entries instead of extracting",
    )
    ex_p.add_argument("--fail-on-errors", action="store_true", help="Exit with error if any entry failed")
    _add_run_flags(ex_p)
    _add_common_flags(ex_p)

    # -- containers --------------------------------------------------------
    ct_p = subparsers.add_parser("containers", help="Resolve keys and report locked containers")
    ct_p.add_argument("archive_root", help="Directory containing the archive containers")
    ct_p.add_argument("keys", help="Decryption keys separated by ',' or ';'")
    _add_run_flags(ct_p)
    _add_common_flags(ct_p)

    # -- bootstrap ---------------------------------------------------------
    bs_p = subparsers.add_parser("bootstrap", help="Download missing native decoder libraries")
    _add_common_flags(bs_p)

    # -- dispatch ----------------------------------------------------------
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    dispatch = {
        "extract": extract_command,
        "containers": containers_command,
        "bootstrap": bootstrap_command,
    }
    handler = dispatch.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
