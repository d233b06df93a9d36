"""Configuration for a changelog update run."""

import os
import shlex
import tempfile

from dataclasses import dataclass, field
from pathlib import Path

from .tags import ReleaseTag


ENV_PREFIX = "CHANGELOG_UPDATE_"


@dataclass
class UpdateConfig:
    """Settings shared by every step of the update."""

    # pylint: disable=too-many-instance-attributes

    repo_dir: Path = field(default_factory=Path.cwd)

    # Directory holding the CHANGELOG-X.Y.md files, relative to repo_dir
    changelog_dir: Path = Path(".")

    primary_branch: str = "master"

    # The user's fork
    remote: str = "origin"

    # The canonical repository, which must never be pushed to directly
    upstream_repo: str = "kubernetes/kubernetes"

    relnotes_command: list[str] = field(default_factory=lambda: ["relnotes"])
    toc_command: list[str] = field(default_factory=lambda: ["mdtoc", "--inplace"])

    log_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))

    @classmethod
    def from_environment(cls):
        """Create an UpdateConfig, allowing environment overrides."""
        kwargs = {}

        for suffix, attribute, converter in (
            ("REPO_DIR", "repo_dir", Path),
            ("CHANGELOG_DIR", "changelog_dir", Path),
            ("PRIMARY_BRANCH", "primary_branch", str),
            ("REMOTE", "remote", str),
            ("UPSTREAM", "upstream_repo", str),
            ("RELNOTES", "relnotes_command", shlex.split),
            ("TOC", "toc_command", shlex.split),
            ("LOG_DIR", "log_dir", Path),
        ):
            try:
                value = os.environ[ENV_PREFIX + suffix]
            except KeyError:
                continue

            kwargs[attribute] = converter(value)

        return cls(**kwargs)

    @property
    def log_file(self) -> Path:
        """The path of the (rotated) log file."""
        return self.log_dir / "changelog-update.log"

    def changelog_path(self, release: ReleaseTag) -> Path:
        """Return the path of the CHANGELOG file for this release."""
        return self.repo_dir / self.changelog_dir / release.changelog_name
