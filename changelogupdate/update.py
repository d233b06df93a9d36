"""Regenerate the release notes in CHANGELOG files after tags are cut."""

import argparse
import sys
import textwrap

from .config import UpdateConfig, ENV_PREFIX
from .logging import setup_logging
from .workflow import ChangelogUpdater


DOCUMENTATION = textwrap.dedent(f"""\
    For each tag, find the `# <tag>` section of CHANGELOG-<major>.<minor>.md,
    regenerate the notes under its `Changes since <previous tag>` heading with
    the release notes generator, and splice them into the file. Major
    milestone tags (vX.Y.0) and tags missing from their CHANGELOG are skipped.

    Afterwards the table of contents is regenerated and the result is committed
    to a new `update-<first tag>` branch, which can optionally be pushed to
    your fork.

    Settings can be overridden with the environment variables
    {ENV_PREFIX}REPO_DIR, {ENV_PREFIX}CHANGELOG_DIR,
    {ENV_PREFIX}PRIMARY_BRANCH, {ENV_PREFIX}REMOTE, {ENV_PREFIX}UPSTREAM,
    {ENV_PREFIX}RELNOTES, {ENV_PREFIX}TOC, and {ENV_PREFIX}LOG_DIR.
    """)


class UsageAction(argparse.Action):
    """Print the short usage and exit."""

    # pylint: disable=too-few-public-methods

    def __init__(self, option_strings, dest, **kwargs):
        super().__init__(
            option_strings, dest, nargs=0, default=argparse.SUPPRESS, **kwargs
        )

    def __call__(self, parser, namespace, values, option_string=None):
        parser.print_usage()
        parser.exit()


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="changelog-update",
        description=__doc__,
        epilog=DOCUMENTATION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "-h", "--help", "-man", action="help", help="show the documentation and exit"
    )
    parser.add_argument(
        "-?", "--usage", action=UsageAction, help="show the short usage and exit"
    )
    parser.add_argument("tags", nargs="+", metavar="tag", help="release tag (vX.Y.Z)")

    return parser


def main(argv=None) -> int:
    """Main entrypoint, returning an exit code."""
    args = build_parser().parse_args(argv)

    config = UpdateConfig.from_environment()
    setup_logging(config.log_file)

    return ChangelogUpdater(config).run(args.tags)


def entrypoint():
    """Console script entrypoint."""
    sys.exit(main())


if __name__ == "__main__":
    entrypoint()
