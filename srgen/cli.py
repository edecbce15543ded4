"""CLI entrypoint for srgen."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import CONFIG_FILENAME, load_config
from .errors import GeneratorBugError, SrgenError
from .generator import Generator
from .logging import configure_logging

EXIT_INPUT_ERROR = 1
EXIT_INTERNAL_ERROR = 3


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srgen",
        description="Generate the service registry from tagged Protocol classes.",
    )
    parser.add_argument(
        "files",
        nargs="+",
        metavar="FILE",
        help="Python modules to scan; all must belong to the same package.",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help=(
            "Write the generated output to the named file, instead of the default "
            "name 'services.py' next to the first input."
        ),
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help=f"Path to a config file (defaults to {CONFIG_FILENAME} next to the first input).",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log debug details, such as skipped members, for troubleshooting.",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=False,
        help="Only report warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write a debug log to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for srgen."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
        log_file=Path(args.log_file) if args.log_file else None,
    )

    if args.config and not Path(args.config).exists():
        parser.exit(EXIT_INPUT_ERROR, f"srgen: config file not found: {args.config}\n")

    try:
        config_path = Path(args.config) if args.config else Path(args.files[0]).parent
        config = load_config(config_path)
        result = Generator(config).generate(args.files, args.output)
    except GeneratorBugError as exc:
        parser.exit(
            EXIT_INTERNAL_ERROR,
            f"srgen: internal error, please report it: {exc}\n",
        )
    except SrgenError as exc:
        parser.exit(EXIT_INPUT_ERROR, f"srgen: failed to generate: {exc}\n")
    if not args.quiet:
        print(f"srgen: wrote {_relativize(result.path)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
