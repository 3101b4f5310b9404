"""Command-line entry point for the schema linter."""

from __future__ import annotations

import argparse
import json
import logging
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence

from .checker import ProtoChecker
from .compiler import ProtoCompiler
from .config import DEFAULT_CONFIG_NAME, LinterConfig, dump_config, load_config
from .decoder import decode_options, iter_message_options
from .errors import OptionDecodeError, ProtolinterError
from .log import configure_logging
from .resolver import ImportResolver
from .result import OperationResult, build_suppression_config, has_errors
from .schema import ProtoFile, iter_elements
from .utils import extract_files_from_mimir, extract_files_from_patterns, write_text_file

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protolinter",
        description="Lint Protocol Buffer files against naming and API documentation conventions.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Check schema files and report violations.")
    _add_common_arguments(check)
    check.add_argument(
        "--config",
        default=DEFAULT_CONFIG_NAME,
        help=f"Path to the YAML configuration (defaults to {DEFAULT_CONFIG_NAME}).",
    )
    check.add_argument(
        "--mimir",
        action="store_true",
        help="Treat the first pattern as a mimir file listing proto_paths.",
    )
    check.add_argument(
        "--generate-config",
        action="store_true",
        help="Print a configuration that excludes every currently failing element.",
    )
    check.add_argument(
        "--print-all-descriptors",
        action="store_true",
        help="With --generate-config, exclude every visited element, not only failing ones.",
    )
    check.add_argument(
        "--report",
        dest="report_path",
        default=None,
        help="Also write a structured JSON report (e.g., artifacts/protolinter.json).",
    )
    check.add_argument(
        "--out",
        "--output",
        dest="output_path",
        default=None,
        help="Write the generated configuration to this path instead of stdout.",
    )

    listing = subparsers.add_parser("list", help="List full names of all schema elements.")
    _add_common_arguments(listing)

    inspect = subparsers.add_parser("inspect", help="Print decoded structured options.")
    _add_common_arguments(inspect)
    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("patterns", nargs="+", help="Glob patterns of .proto files.")
    parser.add_argument(
        "--github-url",
        default="",
        help="Mirror replacing github.com for dependency downloads (URL, file:// URL or directory).",
    )
    parser.add_argument(
        "--include",
        "-I",
        dest="include_paths",
        action="append",
        default=[],
        help="Additional import directory (repeatable).",
    )
    parser.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=None,
        help="Number of files compiled in parallel.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")


def locate_files(patterns: Sequence[str], mimir: bool = False) -> List[str]:
    if mimir:
        files = extract_files_from_mimir(patterns[0])
    else:
        files = extract_files_from_patterns(patterns)
    if not files:
        raise ProtolinterError("List of files is empty")
    return files


def compile_files(compiler: ProtoCompiler, paths: Sequence[str], max_workers: Optional[int] = None) -> List[ProtoFile]:
    if max_workers == 1 or len(paths) <= 1:
        return compiler.compile_all(paths)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(compiler.compile, paths))


def report_check_results(results: Sequence[OperationResult], logger: logging.Logger) -> None:
    for result in results:
        if not result.messages and not result.errors:
            continue
        logger.info("Checking file %s:", result.path)
        for message in result.messages:
            logger.info(message)
        for error in result.errors:
            logger.error(error)


def write_report(results: Sequence[OperationResult], report_path: str) -> None:
    payload = {
        "files": [result.to_dict() for result in results],
        "passed": not has_errors(results),
    }
    write_text_file(Path(report_path), json.dumps(payload, indent=2))


def run_check(args: argparse.Namespace, compiler: ProtoCompiler, config: LinterConfig, logger: logging.Logger) -> int:
    files = locate_files(args.patterns, mimir=args.mimir)
    proto_files = compile_files(compiler, files, args.jobs)
    checker = ProtoChecker(config, logger=logger)
    results = checker.check_files(proto_files, max_workers=args.jobs)

    if args.generate_config:
        payload = dump_config(build_suppression_config(results, config))
        if args.output_path:
            write_text_file(Path(args.output_path), payload)
            logger.info("Configuration written to %s", args.output_path)
        else:
            print(payload, end="")
        return EXIT_OK

    report_check_results(results, logger)
    if args.report_path:
        write_report(results, args.report_path)
        logger.info("Report written to %s", args.report_path)
    return EXIT_VIOLATIONS if has_errors(results) else EXIT_OK


def run_list(args: argparse.Namespace, compiler: ProtoCompiler, logger: logging.Logger) -> int:
    files = locate_files(args.patterns)
    checker = ProtoChecker(logger=logger)
    for proto_file in compile_files(compiler, files, args.jobs):
        logger.info("Listing protobuf elements names from file %s:", proto_file.path)
        for line in checker.list_full_names(proto_file):
            logger.info(line)
    return EXIT_OK


def run_inspect(args: argparse.Namespace, compiler: ProtoCompiler, logger: logging.Logger) -> int:
    files = locate_files(args.patterns)
    for proto_file in compile_files(compiler, files, args.jobs):
        logger.info("Options of file %s:", proto_file.path)
        for element in iter_elements(proto_file):
            for option_name, value in iter_message_options(element.options):
                try:
                    decoded = decode_options(value, logger, proto_file.json_names)
                except OptionDecodeError as error:
                    logger.info(
                        "Failed to parse option %s of %s %s: %s",
                        option_name,
                        element.kind.noun,
                        element.full_name,
                        error,
                    )
                    continue
                logger.info("%s %s [%s]", element.kind.value, element.full_name, option_name)
                for key, text in decoded.items_flat():
                    logger.info("  %s=%s", key, text)
    return EXIT_OK


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = configure_logging(verbose=args.verbose)

    try:
        config = LinterConfig()
        if args.command == "check":
            config = load_config(
                args.config,
                github_url=args.github_url,
                print_all_descriptors=args.print_all_descriptors,
            )
            logger = configure_logging(verbose=args.verbose or config.verbose_mode)

        with tempfile.TemporaryDirectory(prefix="protolinter-cache-") as cache_dir:
            resolver = ImportResolver(
                Path(cache_dir),
                github_url=args.github_url or config.github_url,
                module_name=config.module_name,
                logger=logger,
            )
            compiler = ProtoCompiler(resolver, include_paths=args.include_paths, logger=logger)
            if args.command == "check":
                return run_check(args, compiler, config, logger)
            if args.command == "list":
                return run_list(args, compiler, logger)
            return run_inspect(args, compiler, logger)
    except ProtolinterError as error:
        logger.error("%s", error)
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
