"""
Command-line interface for cargo_3ds.

Usage:
    cargo 3ds build [cargo build args...]
    cargo 3ds link [cargo build args...]

cargo runs ``cargo-3ds 3ds <verb> ...`` for ``cargo 3ds <verb> ...``, so the
leading ``3ds`` token is skipped.
"""

import argparse
import sys
from typing import Optional

from cargo_3ds import __version__
from cargo_3ds.core.builder import Builder
from cargo_3ds.core.command import CommandRunner, SubprocessCommandRunner
from cargo_3ds.core.project import get_metadata
from cargo_3ds.core.uploader import Uploader
from cargo_3ds.core.version import check_rust_version, version_meta
from cargo_3ds.errors import Cargo3DSError, ValidationError

SUBCOMMAND = "3ds"

# verb -> whether to upload after building
VERBS = {
    "build": False,
    "link": True,
}


class DriverArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors as ValidationError (exit 1)."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ValidationError(message, hint='Try with "build" or "link"')


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = DriverArgumentParser(
        prog="cargo 3ds",
        description="Build Rust homebrew applications for the Nintendo 3DS",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  build   Build the project and pack it into a .3dsx
  link    Build, then upload the .3dsx to a 3DS with 3dslink

Any arguments after the command are passed to `cargo build`.

Examples:
  cargo 3ds build
  cargo 3ds build --release --features audio
  cargo 3ds link --release
""",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"cargo-3ds {__version__}",
    )
    parser.add_argument(
        "command",
        nargs="?",
        metavar="{build,link}",
        help="What to do with the project",
    )

    return parser


def _strip_subcommand(argv: Optional[list[str]]) -> list[str]:
    if argv is None:
        argv = sys.argv[1:]
    if argv and argv[0] == SUBCOMMAND:
        return argv[1:]
    return list(argv)


def _split_verb(
    parser: argparse.ArgumentParser, argv: list[str]
) -> tuple[Optional[str], list[str]]:
    """
    Split argv into the verb and the arguments forwarded to cargo.

    Everything after the verb is forwarded verbatim, including ``--``. The
    parser only sees argv when it starts with an option (``-h``, ``-V``).
    """
    if argv and not argv[0].startswith("-"):
        return argv[0], argv[1:]
    return parser.parse_args(argv).command, []


def _parse_verb(command: Optional[str]) -> bool:
    """Return whether the verb asks for an upload after the build."""
    if command is None:
        raise ValidationError('No command specified, try with "build" or "link"')
    if command not in VERBS:
        raise ValidationError(f'Invalid command "{command}", try with "build" or "link"')
    return VERBS[command]


def _make_runner() -> CommandRunner:
    return SubprocessCommandRunner()


def _report(error: Cargo3DSError) -> None:
    print(error)
    if error.hint:
        print(error.hint)


def cmd_build(cargo_args: list[str], must_link: bool) -> int:
    """Handle the build and link commands."""
    runner = _make_runner()

    check_rust_version(version_meta(runner))

    config = get_metadata(runner)
    result = Builder(runner, config, cargo_args).build()

    if must_link:
        Uploader(runner, result.artifacts).upload()

    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()

    try:
        command, cargo_args = _split_verb(parser, _strip_subcommand(argv))
        must_link = _parse_verb(command)
        return cmd_build(cargo_args, must_link)
    except Cargo3DSError as e:
        _report(e)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
