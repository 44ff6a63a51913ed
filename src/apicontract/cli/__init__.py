"""
apicontract CLI - command-line interface for contract validation.

Commands:
- apicontract check: Validate a contract document against expectation suites
- apicontract info: Show version, configuration and a document overview

Exit codes for ``check``: 0 all assertions passed, 1 assertion failures,
2 the document or a suite could not be loaded.
"""

import argparse
import sys
from pathlib import Path

from apicontract.config import ValidatorConfig, load_config
from apicontract.errors import ContractLoadError
from apicontract.observability.logger import configure_logging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_LOAD_ERROR = 2


def _configure(args: argparse.Namespace, config: ValidatorConfig) -> None:
    level = args.log_level.upper() if args.log_level else config.log_level
    configure_logging(level, json_output=args.json_logs or config.json_logging)


def cmd_check(args: argparse.Namespace, config: ValidatorConfig) -> int:
    """Run contract validation and print the report."""
    from apicontract.validator import validate_contract

    document_path = args.document or config.document_path
    suite_paths = args.suite or ([config.suite_path] if config.suite_path.exists() else [])
    check_invariants = config.check_invariants and not args.no_invariants

    try:
        report = validate_contract(document_path, suite_paths, check_invariants=check_invariants)
    except ContractLoadError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    if args.format == "json":
        print(report.to_json())
    else:
        print(report.render_text(verbose=args.verbose))

    if args.summary_file:
        Path(args.summary_file).write_text(report.render_markdown(), encoding="utf-8")

    return EXIT_OK if report.passed else EXIT_FAILED


def cmd_info(args: argparse.Namespace, config: ValidatorConfig) -> int:
    """Show version, configuration and a document overview."""
    from apicontract import __version__
    from apicontract.document.loader import load_contract_document

    document_path = args.document or config.document_path

    print("=" * 60)
    print("apicontract - API contract validator")
    print("=" * 60)
    print(f"Version:     {__version__}")
    print(f"Document:    {document_path}")
    print(f"Suites:      {config.suite_path}")
    print(f"Invariants:  {'on' if config.check_invariants else 'off'}")
    print()

    try:
        document = load_contract_document(document_path)
    except ContractLoadError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    print(f"OpenAPI:     {document.openapi or 'unknown'}")
    print(f"Hash:        {document.document_hash}")
    print(f"Paths:       {len(document.paths)}")
    print(f"Schemas:     {len(document.schemas)}")
    if args.verbose:
        print()
        for index, key in enumerate(document.path_keys()):
            methods = ", ".join(method.upper() for method in document.paths[key].operations())
            print(f"  {index:3d}  {key}  [{methods}]")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apicontract",
        description="Validate an OpenAPI contract document against declarative expectations",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: APICONTRACT_LOG_LEVEL or warning)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser("check", help="Validate a contract document")
    check_parser.add_argument(
        "-d",
        "--document",
        type=Path,
        help="Contract document (default: APICONTRACT_DOCUMENT or index.yaml)",
    )
    check_parser.add_argument(
        "-s",
        "--suite",
        type=Path,
        action="append",
        help="Expectation suite file or directory, repeatable "
        "(default: APICONTRACT_SUITE or contracts/)",
    )
    check_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Report format (default: text)",
    )
    check_parser.add_argument(
        "--summary-file",
        help="Optional path to write GitHub step summary markdown",
    )
    check_parser.add_argument(
        "--no-invariants",
        action="store_true",
        help="Skip document-wide invariants (references, status codes, required)",
    )
    check_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="List passing assertions too",
    )

    info_parser = subparsers.add_parser("info", help="Show configuration and document overview")
    info_parser.add_argument(
        "-d",
        "--document",
        type=Path,
        help="Contract document (default: APICONTRACT_DOCUMENT or index.yaml)",
    )
    info_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="List paths in document order",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config()
    _configure(args, config)

    if args.command == "check":
        return cmd_check(args, config)
    elif args.command == "info":
        return cmd_info(args, config)
    else:
        parser.print_help()
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
