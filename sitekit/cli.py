"""CLI entrypoints for sitekit commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .builder import Builder
from .buildfs import clean_build_dir
from .errors import SiteKitError
from .logging import configure_logging
from .project import Project


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


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitekit",
        description="Compose component-based projects into static multi-locale sites.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Build every page of the project for every locale.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_path_argument(build_parser)
    build_parser.add_argument(
        "--build-number",
        type=int,
        default=0,
        help="Suffix generated file names with a zero-padded build number.",
    )
    build_parser.add_argument(
        "--clean",
        action="store_true",
        help="Remove the build directory before building.",
    )
    build_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a debug log of the build to this file.",
    )

    pages_parser = subparsers.add_parser(
        "pages",
        help="List the pages discovered in the project.",
    )
    _add_verbose_option(pages_parser, suppress_default=True)
    _add_path_argument(pages_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for sitekit commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=getattr(args, "log_file", None))

    try:
        project = Project.load(args.path)
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except SiteKitError as exc:
        parser.exit(1, f"sitekit {args.command} failed: {exc}\n")

    if args.command == "pages":
        for page in project.pages:
            print(page)
    elif args.command == "build":
        try:
            if args.clean:
                clean_build_dir(project.build_dir)
            result = Builder(project, build_number=args.build_number).build()
        except SiteKitError as exc:
            parser.exit(1, f"sitekit build failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Built {len(result.pages)} page(s) into {_relativize(project.build_dir)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
