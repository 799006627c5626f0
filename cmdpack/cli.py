# Copyright 2025 Roger Cibrian
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

"""Command-line interface for cmdpack.

This module provides the main CLI entry point for the cmdpack tool, offering
commands for descriptor validation, planning, and the packaging stages.

Commands:

    validate: Validate descriptor syntax and options
    plan: Show the resolved convention and the assemble plan
    assemble: Build the exploded package
    package: Assemble and archive the package
    install: Assemble, archive, and install the package locally
    clean-install: Remove the locally installed package

Example:
    Build the archive:
        ```bash
        $ cmdpack package package.yaml
        ```

    Install with verbose output:
        ```bash
        $ cmdpack install package.yaml --verbose
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration, resolution, or packaging failure)

Note:
    The CLI uses argparse for command parsing. Each command has its own
    handler function (cmd_<command>). Verbose mode shows full tracebacks on
    errors for debugging.
"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import sys
from typing import Any

from cmdpack.build.planner import CopyConfiguration, CopyResource, MakeDirectory
from cmdpack.core import plan_package, run_stage
from cmdpack.exceptions import CmdPackError
from cmdpack.logging import get_logger, set_global_logger
from cmdpack.validation import validate_descriptor


def _configure_logger(args: argparse.Namespace) -> None:
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)


def _report_error(err: Exception, args: argparse.Namespace) -> int:
    print(f"Error: {err}")
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()
    return 1


def _print_rows(title: str, rows: list[tuple[str, Any]]) -> None:
    print("=" * 70)
    print(title)
    print("=" * 70)
    for label, value in rows:
        print(f"{label + ':':<17}{value}")
    print("=" * 70)


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'cmdpack validate' command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for a valid descriptor, 1 for invalid).
    """
    _configure_logger(args)
    descriptor = Path(args.descriptor).resolve()

    print(f"Validating descriptor: {descriptor}")
    print()

    result = validate_descriptor(descriptor)

    _print_rows(
        "VALIDATION RESULTS",
        [("Descriptor", result.descriptor_path), ("Status", result.status.upper())],
    )

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    if result.status == "valid":
        print("[SUCCESS] Descriptor is valid!")
        return 0
    print(f"[FAILED] Descriptor validation failed with {len(result.errors)} error(s).")
    return 1


def cmd_plan(args: argparse.Namespace) -> int:
    """Handler for 'cmdpack plan' command.

    Prints the derived convention and every assemble operation in order.
    """
    _configure_logger(args)
    descriptor = Path(args.descriptor).resolve()

    try:
        resolved, operations = plan_package(descriptor)
    except CmdPackError as err:
        return _report_error(err, args)

    _print_rows(
        "PACKAGE CONVENTION",
        [
            ("Package Name", resolved.package_name),
            ("Staging Dir", resolved.assemble_package_file),
            ("Package File", resolved.package_file),
            ("Install Dir", resolved.install_dir),
            ("Install File", resolved.install_file),
            ("Compression", resolved.compression.name.lower()),
            ("Include Root", resolved.include_root),
            ("Depends On", ", ".join(resolved.depends_on) or "(none)"),
        ],
    )
    print()
    print(f"Operations ({len(operations)}):")
    for idx, op in enumerate(operations, start=1):
        if isinstance(op, CopyConfiguration):
            label = "artifacts" if op.artifacts else "files"
            detail = f"{op.configuration} ({len(op.files)} {label}) -> {op.destination}"
        elif isinstance(op, CopyResource):
            tokens = " [tokens]" if op.replace_tokens else ""
            detail = f"{op.source} -> {op.destination}{tokens}"
        elif isinstance(op, MakeDirectory):
            detail = str(op.path)
        else:
            detail = repr(op)
        print(f"  {idx:>2}. {op.kind}: {detail}")
    return 0


def cmd_stage(args: argparse.Namespace) -> int:
    """Handler for the stage commands (assemble, package, install, clean-install).

    Runs the stage after its dependencies and prints one result block per
    stage that ran.
    """
    _configure_logger(args)
    descriptor = Path(args.descriptor).resolve()

    if not descriptor.exists():
        print(f"Error: Descriptor not found: {descriptor}")
        return 1

    try:
        results = run_stage(args.command, descriptor)
    except CmdPackError as err:
        return _report_error(err, args)

    for name, result in results.items():
        if name == "assemble":
            rows = [
                ("Package Name", result.package_name),
                ("Staging Dir", result.staging_dir),
                ("Operations", result.operations),
                ("Files Copied", result.files_copied),
            ]
        elif name == "package":
            rows = [
                ("Package Path", result.package_path),
                ("Compression", result.compression),
                ("Include Root", result.include_root),
            ]
        elif name == "install":
            rows = [
                ("Install Dir", result.install_dir),
                ("Extracted To", result.extracted_to),
            ]
        else:
            rows = [
                ("Deleted", result.install_file),
                ("Existed", result.existed),
            ]
        rows.append(("Status", result.status))
        _print_rows(f"{name.upper()} RESULTS", rows)
        print()

    print(f"[SUCCESS] {args.command} completed successfully!")
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "descriptor",
        nargs="?",
        default="package.yaml",
        help="Path to the package descriptor (default: package.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def _package_version() -> str:
    try:
        return version("cmdpack")
    except PackageNotFoundError:
        from cmdpack import __version__

        return __version__


def main() -> None:
    """Main entry point for the cmdpack CLI.

    This function is registered as the 'cmdpack' console script in pyproject.toml.
    """
    parser = argparse.ArgumentParser(
        prog="cmdpack",
        description="cmdpack - assemble, archive, and install command-line packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"cmdpack {_package_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate descriptor syntax and options (no filesystem changes)",
    )
    _add_common_arguments(parser_validate)
    parser_validate.set_defaults(func=cmd_validate)

    parser_plan = subparsers.add_parser(
        "plan",
        help="Show the resolved convention and the assemble plan",
    )
    _add_common_arguments(parser_plan)
    parser_plan.set_defaults(func=cmd_plan)

    stage_help = {
        "assemble": "Assemble the package (exploded) into the staging directory",
        "package": "Create the package archive",
        "install": "Install the package (locally)",
        "clean-install": "Clean the installed package",
    }
    for stage, help_text in stage_help.items():
        parser_stage = subparsers.add_parser(stage, help=help_text)
        _add_common_arguments(parser_stage)
        parser_stage.set_defaults(func=cmd_stage)

    args = parser.parse_args()

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
