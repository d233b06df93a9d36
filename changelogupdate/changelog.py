"""Classes to handle parsing and splicing CHANGELOG-X.Y.md files."""

import itertools
import logging
import re

from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional

from markdown_it import MarkdownIt

from .utils import UpdateError, tag_to_semver


class ChangelogError(UpdateError):
    """Indicate a fundamental problem with the CHANGELOG structure."""


class MissingPreviousTagError(ChangelogError):
    """Indicate that a release section has no `Changes since` heading."""


@dataclass
class Heading:
    """A top-level markdown heading and the lines it spans."""

    start: int
    end: int
    level: int
    content: str


def split_lines(text: str) -> list[str]:
    """Split text on newlines, keeping the line endings."""
    lines = [line + "\n" for line in text.split("\n")]

    # The final element never had a newline
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()

    return lines


def parse_headings(text: str) -> list[Heading]:
    """Return all of the top-level headings in the markdown text."""
    headings = []

    for token, inline in itertools.pairwise(MarkdownIt("commonmark").parse(text)):
        # Skip headings nested within blockquotes or lists
        if token.type != "heading_open" or token.level != 0 or not token.map:
            continue

        headings.append(
            Heading(
                start=token.map[0],
                end=token.map[1],
                level=int(token.tag[1:]),
                content=inline.content,
            )
        )

    return headings


def normalize_fragment(fragment: str, previous_tag: str) -> list[str]:
    """
    Prepare freshly generated release notes for splicing.

    The fragment's own `Changes since` heading is dropped (the CHANGELOG
    already has one), trailing blank lines are stripped, and exactly two blank
    lines are appended.
    """
    lines = split_lines(fragment)

    # Remove headings in reverse so earlier line numbers stay valid
    for heading in reversed(parse_headings(fragment)):
        match = Changelog.since_re.match(heading.content)
        if match and match["previous_tag"] == previous_tag:
            del lines[heading.start : heading.end]

    while lines and not lines[-1].strip():
        lines.pop()

    if lines and not lines[-1].endswith("\n"):
        lines[-1] += "\n"

    return lines + ["\n", "\n"]


@dataclass
class ChangelogSection:
    """A single release section within a CHANGELOG file."""

    tag: str

    # The `# vX.Y.Z` heading
    heading: list[str]

    # Anything between the release heading and the `Changes since` heading
    # (documentation links, download tables, etc.)
    preamble: list[str] = field(default_factory=list)

    since_heading: list[str] = field(default_factory=list)
    previous_tag: Optional[str] = None

    # Everything after the `Changes since` heading up to the next release
    body: list[str] = field(default_factory=list)

    @property
    def heading_line(self) -> str:
        """The release heading without line endings."""
        return "".join(self.heading).rstrip("\r\n")

    def lines(self) -> list[str]:
        """Return all of the lines of this section."""
        return self.heading + self.preamble + self.since_heading + self.body

    def get_previous_tag(self) -> str:
        """
        Return the tag named in the `Changes since` heading.

        Raises MissingPreviousTagError if there is no such heading.
        """
        if self.previous_tag is None:
            raise MissingPreviousTagError(
                f"No `Changes since` heading found under `{self.heading_line}`"
            )

        try:
            if tag_to_semver(self.previous_tag) >= tag_to_semver(self.tag):
                logging.getLogger(__name__).warning(
                    "Previous tag %s is not older than %s", self.previous_tag, self.tag
                )
        except ValueError as err:
            logging.getLogger(__name__).debug(err)

        return self.previous_tag

    def splice(self, fragment: str) -> bool:
        """
        Replace the body of the `Changes since` section with the fragment.

        Returns True if the body changed.
        """
        previous_tag = self.get_previous_tag()

        new_body = normalize_fragment(fragment, previous_tag)
        changed = new_body != self.body
        self.body = new_body

        self.assert_single_since_heading()
        return changed

    def assert_single_since_heading(self):
        """Confirm that exactly one `Changes since` heading remains."""
        count = 0
        for heading in parse_headings("".join(self.lines())):
            match = Changelog.since_re.match(heading.content)
            if match and match["previous_tag"] == self.previous_tag:
                count += 1

        if count != 1:
            raise ChangelogError(
                f"Expected one `Changes since {self.previous_tag}` heading under "
                f"`{self.heading_line}`, found {count}"
            )


class Changelog:
    """Class to help manage CHANGELOG-X.Y.md files."""

    # Regex to match H1 release headings
    # Will match:
    #   v1.4.2
    #   v1.5.0-beta.1
    # Will not match:
    #   Release notes
    release_re: ClassVar = re.compile(r"^v\d")

    # Regex to match the heading introducing the list of changes
    # Will match:
    #   Changelog since v1.4.1
    #   Changes since `v1.4.1`
    since_re: ClassVar = re.compile(
        r"^Change(?:s|log) since\s+`?(?P<previous_tag>[^`\s]+)`?$"
    )

    def __init__(self, text: str):
        lines = split_lines(text)
        headings = parse_headings(text)

        releases = [
            heading
            for heading in headings
            if heading.level == 1 and self.release_re.match(heading.content)
        ]

        boundaries = [heading.start for heading in releases] + [len(lines)]

        self.header = lines[: boundaries[0]]
        self.sections: list[ChangelogSection] = []

        for release, stop in zip(releases, boundaries[1:]):
            section = ChangelogSection(
                tag=release.content, heading=lines[release.start : release.end]
            )

            since = next(
                (
                    heading
                    for heading in headings
                    if release.end <= heading.start < stop
                    and self.since_re.match(heading.content)
                ),
                None,
            )

            if since is None:
                section.preamble = lines[release.end : stop]
            else:
                section.preamble = lines[release.end : since.start]
                section.since_heading = lines[since.start : since.end]
                section.previous_tag = self.since_re.match(since.content)[
                    "previous_tag"
                ]
                section.body = lines[since.end : stop]

            self.sections.append(section)

        logging.getLogger(__name__).debug(
            "Parsed %d release sections", len(self.sections)
        )

    @classmethod
    def from_file(cls, changelog_file: Path) -> "Changelog":
        """Parse a Changelog from a file."""
        try:
            text = changelog_file.read_text(encoding="utf-8")
        except UnicodeDecodeError as err:
            raise ChangelogError(f"{changelog_file.name} is not valid UTF-8") from err

        return cls(text)

    def find_section(self, tag: str) -> Optional[ChangelogSection]:
        """Return the section headed by exactly `# <tag>`, if any."""
        matches = [
            section for section in self.sections if section.heading_line == f"# {tag}"
        ]

        if len(matches) > 1:
            logging.getLogger(__name__).warning(
                "Found %d sections for %s, using the first", len(matches), tag
            )

        return matches[0] if matches else None

    def render(self) -> str:
        """Render the CHANGELOG back to markdown."""
        return "".join(
            itertools.chain(
                self.header,
                itertools.chain.from_iterable(
                    section.lines() for section in self.sections
                ),
            )
        )
