"""Fetch release notes from the external generator."""

import logging
import subprocess
import tempfile

from pathlib import Path

from .config import UpdateConfig
from .utils import UpdateError


class ReleaseNotesError(UpdateError):
    """Exception indicating that the release notes generator failed."""


def fetch_release_notes(config: UpdateConfig, previous_tag: str, tag: str) -> str:
    """Return the markdown release notes for `previous_tag..tag`."""
    logger = logging.getLogger(__name__)

    with tempfile.TemporaryDirectory(prefix="changelog-update-") as tmpdir:
        markdown_file = Path(tmpdir, "release-notes.md")

        args = [
            *config.relnotes_command,
            "--quiet",
            "--htmlize-md",
            f"--markdown-file={markdown_file}",
            f"{previous_tag}..{tag}",
        ]
        logger.debug("Running %s", args)

        try:
            subprocess.run(args, cwd=config.repo_dir, check=True)
        except (subprocess.CalledProcessError, OSError) as err:
            raise ReleaseNotesError(
                f"Unable to fetch release notes for {previous_tag}..{tag}"
            ) from err

        if not markdown_file.is_file():
            raise ReleaseNotesError(
                f"{config.relnotes_command[0]} did not write {markdown_file.name}"
            )

        try:
            return markdown_file.read_text(encoding="utf-8")
        except UnicodeDecodeError as err:
            raise ReleaseNotesError(
                f"Release notes for {previous_tag}..{tag} are not valid UTF-8"
            ) from err
