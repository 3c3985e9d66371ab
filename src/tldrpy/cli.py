"""CLI entry and startup wiring."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from pathlib import Path

from . import __version__
from .config import Config, load_config, render_default_config, resolve_config_path
from .constants import APP_NAME
from .errors import EXIT_INVALID_ARGUMENTS, EXIT_OK, TldrError
from .logging_utils import setup_logging
from .models import Segment
from .page_service import PageService
from .presenters import render_error
from .writer import ColorPolicy, use_color, write_segments


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.config_path:
        print(resolve_config_path(args.config))
        return EXIT_OK
    if args.gen_config:
        print(render_default_config())
        return EXIT_OK

    setup_logging(args.log_file)

    try:
        config = _apply_output_overrides(load_config(resolve_config_path(args.config)), args)
        service = PageService(config, notify=_build_notifier(quiet=args.quiet))
        emit = _build_emitter(ColorPolicy(args.color))
        return _run(args, parser, service, emit)
    except TldrError as exc:
        print(render_error(str(exc)), file=sys.stderr)
        return exc.exit_code


def _run(
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
    service: PageService,
    emit: Callable[[list[Segment]], None],
) -> int:
    if args.clean_cache:
        service.clean()
        return EXIT_OK
    if args.update:
        service.update(args.language)
        return EXIT_OK
    if args.info:
        _print_lines(service.info_lines())
        return EXIT_OK
    if args.list_platforms:
        _print_lines(service.list_platforms(offline=args.offline))
        return EXIT_OK
    if args.list_languages:
        _print_lines(service.list_languages(offline=args.offline))
        return EXIT_OK
    if args.list or args.list_all:
        _print_lines(
            service.list_pages(
                platform=args.platform,
                list_all=args.list_all,
                offline=args.offline,
            )
        )
        return EXIT_OK
    if args.render is not None:
        emit(service.render_file(args.render))
        return EXIT_OK

    if not args.page:
        parser.print_usage(sys.stderr)
        print(render_error("page not specified"), file=sys.stderr)
        return EXIT_INVALID_ARGUMENTS

    service.show_page(
        args.page,
        emit,
        platform=args.platform,
        languages=args.language,
        offline=args.offline,
    )
    return EXIT_OK


def _apply_output_overrides(config: Config, args: argparse.Namespace) -> Config:
    changes: dict[str, object] = {}
    if args.compact is not None:
        changes["compact"] = args.compact
    if args.raw is not None:
        changes["raw_markdown"] = args.raw
    if not changes:
        return config
    return config.with_output(**changes)


def _build_notifier(*, quiet: bool) -> Callable[[str], None]:
    def notify(line: str) -> None:
        if not quiet:
            print(line, file=sys.stderr)

    return notify


def _build_emitter(policy: ColorPolicy) -> Callable[[list[Segment]], None]:
    def emit(segments: list[Segment]) -> None:
        write_segments(segments, sys.stdout, color=use_color(policy, sys.stdout))

    return emit


def _print_lines(lines: list[str]) -> None:
    for line in lines:
        print(line)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tldr",
        description="Show simplified, community-driven man pages from the tldr-pages project.",
    )
    parser.add_argument("page", nargs="*", help="The tldr page to show.")

    operations = parser.add_mutually_exclusive_group()
    operations.add_argument("-u", "--update", action="store_true", help="Update the cache.")
    operations.add_argument(
        "-l", "--list", action="store_true", help="List all pages in the current platform."
    )
    operations.add_argument("-a", "--list-all", action="store_true", help="List all pages.")
    operations.add_argument(
        "--list-platforms", action="store_true", help="List available platforms."
    )
    operations.add_argument(
        "--list-languages", action="store_true", help="List installed languages."
    )
    operations.add_argument(
        "-i",
        "--info",
        action="store_true",
        help="Show cache information (installed languages and the number of pages).",
    )
    operations.add_argument(
        "-r",
        "--render",
        type=Path,
        metavar="FILE",
        help="Render the specified markdown file.",
    )
    operations.add_argument("--clean-cache", action="store_true", help="Clean the cache.")
    operations.add_argument(
        "--gen-config", action="store_true", help="Print the default config."
    )
    operations.add_argument(
        "--config-path", action="store_true", help="Print the config file path."
    )

    parser.add_argument("-p", "--platform", help="Specify the platform to use.")
    parser.add_argument(
        "-L",
        "--language",
        action="append",
        metavar="LANGUAGE",
        help="Specify a language to use (repeatable).",
    )
    parser.add_argument(
        "-o",
        "--offline",
        action="store_true",
        help="Do not update the cache, even if it is stale.",
    )
    parser.add_argument(
        "-c",
        "--compact",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Strip empty lines from output.",
    )
    parser.add_argument(
        "-R",
        "--raw",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Print pages in raw markdown instead of rendering them.",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress status messages."
    )
    parser.add_argument(
        "--color",
        choices=[policy.value for policy in ColorPolicy],
        default=ColorPolicy.AUTO.value,
        help="Specify when to enable color.",
    )
    parser.add_argument("--config", type=Path, metavar="FILE", help="Alternative config file.")
    parser.add_argument("--log-file", metavar="FILE", help="Write structured logs to FILE.")
    parser.add_argument(
        "-v", "--version", action="version", version=f"{APP_NAME} {__version__}"
    )
    return parser
