"Regenerate the release notes in CHANGELOG files."

from .changelog import Changelog, ChangelogError, ChangelogSection
from .config import UpdateConfig
from .tags import ReleaseTag, TagKind, classify_tag
from .utils import UpdateError
from .workflow import ChangelogUpdater

__all__ = [
    "Changelog",
    "ChangelogError",
    "ChangelogSection",
    "ChangelogUpdater",
    "ReleaseTag",
    "TagKind",
    "UpdateConfig",
    "UpdateError",
    "classify_tag",
]
