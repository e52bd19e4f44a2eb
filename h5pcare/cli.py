"""CLI entrypoints for h5pcare commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import OUTPUT_FORMATS, CaretakerConfig
from .errors import CaretakerError
from .inputs import load_package_facts
from .logging import configure_logging
from .orchestrator import Caretaker, resolve_config
from .rendering import MarkdownRenderer, render_json
from .reports import available_reports


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_bundle_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "bundle",
        help="Path to a JSON facts bundle describing an unpacked H5P package.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to .h5pcare.yml or its directory (defaults to the bundle's directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="h5pcare",
        description="Report accessibility, license, efficiency and reuse issues of H5P content.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records, tagged with the analyzed package, to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Run all enabled reports over a package and print the result.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_bundle_options(analyze_parser)
    analyze_parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (defaults to the configured format, json).",
    )
    analyze_parser.add_argument(
        "--locale",
        default=None,
        help="Locale of the report texts, e.g. 'de'.",
    )
    analyze_parser.add_argument(
        "--include-raw",
        action="store_true",
        help="Attach the raw input facts to the JSON report.",
    )
    analyze_parser.add_argument(
        "--reports",
        default=None,
        help=(
            "Comma-separated reports to run instead of the configured ones "
            f"(available: {', '.join(available_reports())})."
        ),
    )

    tree_parser = subparsers.add_parser(
        "tree",
        help="Print the reconstructed content tree as JSON.",
    )
    _add_verbose_option(tree_parser, suppress_default=True)
    _add_bundle_options(tree_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for h5pcare commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
        return

    bundle = Path(args.bundle).expanduser()
    config = _resolve_config(args.config, bundle)
    if getattr(args, "locale", None):
        config.locale = args.locale
    if getattr(args, "reports", None):
        config.reports.enabled = _parse_report_names(parser, args.reports)

    caretaker = Caretaker(config=config)

    if args.command == "analyze":
        output_format = args.format or config.output.format
        try:
            report = caretaker.analyze_file(
                bundle,
                include_raw=True if args.include_raw else None,
            )
        except CaretakerError as exc:
            parser.exit(1, f"h5pcare analyze failed: {exc}\n")
        if output_format == "markdown":
            sys.stdout.write(MarkdownRenderer().render(report, caretaker.catalog))
        else:
            sys.stdout.write(render_json(report))
    elif args.command == "tree":
        try:
            tree = caretaker.build_tree(load_package_facts(bundle))
        except CaretakerError as exc:
            parser.exit(1, f"h5pcare tree failed: {exc}\n")
        sys.stdout.write(json.dumps(tree.to_view(), indent=2, ensure_ascii=False) + "\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _resolve_config(config_arg: str | None, bundle: Path) -> CaretakerConfig:
    location = Path(config_arg).expanduser() if config_arg else bundle.parent
    return resolve_config(location)


def _parse_report_names(parser: argparse.ArgumentParser, value: str) -> list[str]:
    names = [name.strip() for name in value.split(",") if name.strip()]
    known = available_reports()
    unknown = [name for name in names if name.lower() not in known]
    if unknown:
        parser.error(f"unknown report(s): {', '.join(unknown)}")
    return names


if __name__ == "__main__":  # pragma: no cover
    main()
