"""Main CLI entry point for the timeline-tree command-line tool.

Builds timeline trees from exported element files, one tree per file, and
checks built trees against their structural invariants.
"""

import argparse
import json
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from timeline_tree import __version__
from timeline_tree.api import ElementLoadError, build_file
from timeline_tree.shared import ConfigError, TimelineConfig, configure_logging, get_logger
from timeline_tree.tree import InvalidElementTypeError, TreeValidator

ELEMENT_FILE_SUFFIXES = {".json", ".csv", ".tsv"}

PRESETS = {
    "lenient": TimelineConfig.lenient,
    "strict": TimelineConfig.strict,
}


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self):
        self.timeline_config = TimelineConfig()
        self.max_workers = None  # Use system default
        self.output_format = "json"

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        A missing file leaves the defaults in place; a file that exists but
        cannot be understood raises ConfigError.
        """
        config = cls()
        if not config_path.exists():
            return config

        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must hold a JSON object")

        preset = data.get("preset")
        if preset is not None:
            if preset not in PRESETS:
                raise ConfigError(
                    f"Unknown preset {preset!r}; expected one of {', '.join(PRESETS)}"
                )
            config.timeline_config = PRESETS[preset]()
        if "timeline" in data:
            config.timeline_config = TimelineConfig.from_dict(data["timeline"])

        config.max_workers = data.get("max_workers", config.max_workers)
        config.output_format = data.get("output_format", config.output_format)
        return config


class ProgressTracker:
    """Progress tracking for long-running batches."""

    def __init__(self, total: int, description: str = "Processing"):
        self.total = total
        self.completed = 0
        self.description = description
        self.last_update = 0.0

    def update(self, increment: int = 1):
        """Update progress and display if needed."""
        self.completed += increment
        current_time = time.time()

        # Update every second or on completion
        if current_time - self.last_update >= 1.0 or self.completed >= self.total:
            self._display_progress()
            self.last_update = current_time

    def _display_progress(self):
        if self.total == 0:
            return

        percentage = (self.completed / self.total) * 100
        progress_bar = "=" * int(percentage // 2)
        progress_bar += " " * (50 - len(progress_bar))

        print(f"\r{self.description}: [{progress_bar}] "
              f"{percentage:.1f}% ({self.completed}/{self.total})",
              end="", file=sys.stderr)

        if self.completed >= self.total:
            print(file=sys.stderr)


def process_file(
    file_path: Path,
    config: TimelineConfig,
    include_tree: bool = True,
) -> Dict[str, Any]:
    """Build one element file and describe the outcome as a plain dict.

    Module-level so worker processes can run it.
    """
    try:
        result = build_file(file_path, config)
    except (ElementLoadError, InvalidElementTypeError) as e:
        return {
            "file": str(file_path),
            "success": False,
            "error": str(e),
            "error_type": type(e).__name__,
        }

    summary: Dict[str, Any] = {
        "file": str(file_path),
        "success": result.success,
        "group_count": result.tree.group_count,
        "unit_count": result.tree.unit_count,
        "record_count": result.tree.record_count,
        "processing_time_ms": result.processing_time_ms,
        "diagnostics": [diag.to_dict() for diag in result.diagnostics],
    }
    if result.validation_result is not None:
        summary["validation"] = result.validation_result.to_dict()
    if include_tree:
        summary["tree"] = result.tree.to_dict()
        summary["outline"] = result.tree.outline()
    return summary


class TimelineProcessor:
    """Core processing logic for CLI operations."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path, include_tree: bool = True) -> Dict[str, Any]:
        """Process a single element file and return results."""
        result = process_file(file_path, self.config.timeline_config, include_tree)
        if not result["success"]:
            self.logger.bind(file=str(file_path)).warning(
                "Failed to build timeline",
                extra={"error": result.get("error"), "error_type": result.get("error_type")}
            )
        return result

    def find_element_files(self, path: Path, recursive: bool = True) -> Iterator[Path]:
        """Find element files in path."""
        if path.is_file():
            if path.suffix.lower() in ELEMENT_FILE_SUFFIXES:
                yield path
        elif path.is_dir():
            candidates = path.rglob("*") if recursive else path.glob("*")
            for candidate in sorted(candidates):
                if candidate.is_file() and candidate.suffix.lower() in ELEMENT_FILE_SUFFIXES:
                    yield candidate

    def batch_process(
        self,
        paths: List[Path],
        recursive: bool = True,
        include_tree: bool = True,
        show_progress: bool = True,
    ) -> List[Dict[str, Any]]:
        """Process element files, in parallel when there are several.

        Results come back in input order regardless of completion order.
        """
        all_files: List[Path] = []
        for path in paths:
            all_files.extend(self.find_element_files(path, recursive))

        if not all_files:
            return []

        progress = ProgressTracker(len(all_files), "Building timelines") if show_progress else None
        results: List[Optional[Dict[str, Any]]] = [None] * len(all_files)

        if len(all_files) == 1 or self.config.max_workers == 1:
            for position, file_path in enumerate(all_files):
                results[position] = self.process_single_file(file_path, include_tree)
                if progress:
                    progress.update()
        else:
            with ProcessPoolExecutor(max_workers=self.config.max_workers) as executor:
                future_to_position = {
                    executor.submit(
                        process_file, file_path, self.config.timeline_config, include_tree
                    ): position
                    for position, file_path in enumerate(all_files)
                }
                for future in as_completed(future_to_position):
                    results[future_to_position[future]] = future.result()
                    if progress:
                        progress.update()

        return [result for result in results if result is not None]


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="timeline-tree",
        description="Build nested timeline trees from flat, typed element lists"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Build command
    build_parser = subparsers.add_parser("build", help="Build timeline trees")
    build_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Element files (.json, .csv, .tsv) or directories"
    )
    build_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively process directories"
    )
    build_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default=None,
        help="Output format (default: json)"
    )
    build_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    build_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    build_parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Configuration preset"
    )
    build_parser.add_argument(
        "--validate",
        action="store_true",
        help="Check every built tree against its structural invariants"
    )
    build_parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Number of parallel workers"
    )

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate", help="Build and check timeline trees"
    )
    validate_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Element files to validate"
    )
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject spreadsheet type aliases such as group-flag"
    )
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format build results for output."""
    if format_type == "text":
        if not results:
            return "No results to display."

        lines = []
        successful = sum(1 for r in results if r.get("success", False))
        lines.append(f"Built {len(results)} files, {successful} successful")
        lines.append("-" * 60)

        for result in results:
            status = "✓" if result.get("success", False) else "✗"
            lines.append(f"{status} {result['file']}")
            if "error" in result:
                lines.append(f"   Error: {result['error']}")
            else:
                lines.append(
                    f"   Groups: {result['group_count']}, Units: {result['unit_count']}, "
                    f"Records: {result['record_count']}, "
                    f"Time: {result['processing_time_ms']:.1f}ms"
                )
                outline = result.get("outline")
                if outline:
                    lines.extend(f"   {line}" for line in outline.splitlines())
            lines.append("")

        return "\n".join(lines)

    return json.dumps(results, indent=2, ensure_ascii=False, default=str)


def cmd_build(args: argparse.Namespace) -> int:
    """Handle build command."""
    config = CLIConfig()
    if args.config:
        config = CLIConfig.from_file(args.config)

    if args.preset:
        config.timeline_config = PRESETS[args.preset]()
    if args.validate:
        config.timeline_config = config.timeline_config.override(
            builder__validate_output=True
        )
    if args.workers:
        config.max_workers = args.workers

    output_format = args.format or config.output_format

    processor = TimelineProcessor(config)
    try:
        results = processor.batch_process(
            args.paths, args.recursive, show_progress=not args.quiet
        )
    except KeyboardInterrupt:
        print("\nProcessing interrupted by user", file=sys.stderr)
        return 1

    formatted_output = format_results(results, output_format)

    if args.output:
        try:
            args.output.write_text(formatted_output, encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(formatted_output)

    if not results:
        print("No element files found", file=sys.stderr)
        return 1

    successful = sum(1 for r in results if r.get("success", False))
    return 0 if successful == len(results) else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    timeline_config = TimelineConfig.strict() if args.strict else TimelineConfig.lenient()
    validator = TreeValidator()

    results = []
    for path in args.paths:
        if not path.exists():
            results.append({"file": str(path), "valid": False, "error": "File not found"})
            continue

        try:
            result = build_file(path, timeline_config)
        except (ElementLoadError, InvalidElementTypeError) as e:
            results.append({"file": str(path), "valid": False, "error": str(e)})
            continue

        validation = result.validation_result or validator.validate(result.tree)
        entry: Dict[str, Any] = {
            "file": str(path),
            "valid": validation.success,
            "groups": result.tree.group_count,
            "records": result.tree.record_count,
        }
        if not validation.success:
            entry["error_details"] = [issue.message for issue in validation.issues[:5]]
        results.append(entry)

    if args.format == "json":
        print(json.dumps(results, indent=2, ensure_ascii=False))
    else:
        valid_count = sum(1 for r in results if r.get("valid", False))
        print(f"Validated {len(results)} files, {valid_count} valid")
        print("-" * 50)

        for result in results:
            status = "✓" if result.get("valid", False) else "✗"
            print(f"{status} {result['file']}")
            if "error" in result:
                print(f"   Error: {result['error']}")
            for error in result.get("error_details", [])[:3]:
                print(f"   Error: {error}")

    valid_count = sum(1 for r in results if r.get("valid", False))
    return 0 if valid_count == len(results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")

    try:
        if args.command == "build":
            return cmd_build(args)
        if args.command == "validate":
            return cmd_validate(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
