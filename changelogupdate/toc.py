"""Regenerate the table of contents of a CHANGELOG file."""

import logging
import subprocess

from pathlib import Path

from .config import UpdateConfig
from .utils import UpdateError


class TocError(UpdateError):
    """Exception indicating that the TOC generator failed."""


def regenerate_toc(config: UpdateConfig, changelog_file: Path):
    """Rewrite the table of contents of the file in place."""
    args = [*config.toc_command, str(changelog_file)]
    logging.getLogger(__name__).debug("Running %s", args)

    try:
        subprocess.run(args, cwd=config.repo_dir, check=True)
    except (subprocess.CalledProcessError, OSError) as err:
        raise TocError(f"Unable to update the TOC of {changelog_file.name}") from err
