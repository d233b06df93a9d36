"""Classify release tags and map them to CHANGELOG files."""

import enum

from dataclasses import dataclass, field

import semver

from .utils import UpdateError, tag_to_semver


class TagError(UpdateError):
    """Exception indicating that a tag matches no known release pattern."""


class TagKind(enum.Enum):
    """The kinds of tags that can be handed to the updater."""

    MAJOR_MILESTONE = "major-milestone"
    RELEASE = "release"


@dataclass
class ReleaseTag:
    """A tag along with its parsed semantic version."""

    tag: str
    version: semver.version.Version

    kind: TagKind = field(init=False)

    def __post_init__(self):
        # Only exact `vX.Y.0` tags are milestones; `vX.Y.0-beta.1` is not
        if (
            self.version.patch == 0
            and not self.version.prerelease
            and not self.version.build
        ):
            self.kind = TagKind.MAJOR_MILESTONE
        else:
            self.kind = TagKind.RELEASE

    @property
    def major(self) -> int:
        """The major version component."""
        return self.version.major

    @property
    def minor(self) -> int:
        """The minor version component."""
        return self.version.minor

    @property
    def changelog_name(self) -> str:
        """The name of the CHANGELOG file documenting this release."""
        return f"CHANGELOG-{self.major}.{self.minor}.md"


def classify_tag(tag: str) -> ReleaseTag:
    """
    Parse and classify a tag.

    Raises TagError if the tag is not a `v`-prefixed semantic version.
    """
    try:
        version = tag_to_semver(tag)
    except ValueError as err:
        raise TagError(f"Unable to set CHANGELOG file for tag `{tag}`") from err

    return ReleaseTag(tag, version)
