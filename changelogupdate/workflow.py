"""Drive the git workflow around updating CHANGELOG files."""

import sys

from pathlib import Path
from typing import Callable, Optional

from .changelog import Changelog
from .config import UpdateConfig
from .logging import LoggingMixin, NOTICE, log_step
from .relnotes import fetch_release_notes
from .tags import TagKind, classify_tag
from .toc import regenerate_toc
from .utils import (
    GitError,
    UpdateError,
    ask_yes_no,
    branch_exists,
    checkout,
    commit_files,
    delete_branch,
    encode_branch_name,
    has_changes,
    is_upstream_url,
    push_branch,
    remote_url,
    restore_files,
    working_tree_is_clean,
)


class PreconditionError(UpdateError):
    """Exception indicating that the repository is not ready for an update."""


def show_cursor():
    """Make sure the terminal cursor is visible."""
    if sys.stdout.isatty():
        sys.stdout.write("\033[?25h")
        sys.stdout.flush()


class ChangelogUpdater(LoggingMixin):
    """Regenerate the release notes of one or more tags on a work branch."""

    def __init__(
        self,
        config: UpdateConfig,
        confirm: Callable[[str, bool], bool] = ask_yes_no,
    ):
        super().__init__()

        self.config = config
        self.confirm = confirm

        self.branch: Optional[str] = None
        self.branch_created = False
        self.committed = False

        # Insertion-ordered set of modified CHANGELOG files
        self.updated_files: dict[Path, None] = {}
        self.processed_tags: list[str] = []

        self.logger.debug("Configuration: %s", self.config)

    def _git_paths(self) -> list[Path]:
        """Return the updated files relative to the repository root."""
        return [path.relative_to(self.config.repo_dir) for path in self.updated_files]

    def preflight(self):
        """Confirm that the remote is a fork and the working tree is clean."""
        url = remote_url(self.config.repo_dir, self.config.remote)
        if is_upstream_url(url, self.config.upstream_repo):
            raise PreconditionError(
                f"Remote `{self.config.remote}` ({url}) is the upstream "
                f"{self.config.upstream_repo} repository - use your personal fork"
            )

        if not working_tree_is_clean(self.config.repo_dir):
            raise PreconditionError("The working tree has uncommitted changes")

    def setup_branch(self, first_tag: str):
        """Create a fresh work branch off of the primary branch."""
        branch = encode_branch_name(first_tag)

        checkout(self.config.repo_dir, self.config.primary_branch)

        if branch_exists(self.config.repo_dir, branch):
            if not self.confirm(f"Branch {branch} already exists. Delete it?", False):
                raise PreconditionError(f"Branch {branch} already exists")

            delete_branch(self.config.repo_dir, branch)
            self.logger.info("Deleted existing branch %s", branch)

        checkout(self.config.repo_dir, branch, create=True)
        self.branch = branch
        self.branch_created = True

    def process_tag(self, tag: str) -> bool:
        """
        Regenerate the `Changes since` section for a single tag.

        Returns True if the CHANGELOG file was modified. Major milestones and
        tags that are not found are skipped, all other problems raise.
        """
        release = classify_tag(tag)

        if release.kind is TagKind.MAJOR_MILESTONE:
            self.logger.info("Skipping Major milestone release %s...", tag)
            return False

        changelog_file = self.config.changelog_path(release)
        if not changelog_file.is_file():
            self.logger.warning(
                "%s does not exist. Skipping %s...", changelog_file.name, tag
            )
            return False

        changelog = Changelog.from_file(changelog_file)

        section = changelog.find_section(tag)
        if section is None:
            self.logger.warning(
                "%s not found in %s. Skipping...", tag, changelog_file.name
            )
            return False

        previous_tag = section.get_previous_tag()

        with log_step(self.logger, f"Fetching release notes for {previous_tag}..{tag}"):
            fragment = fetch_release_notes(self.config, previous_tag, tag)

        with log_step(self.logger, f"Updating {changelog_file.name} for {tag}"):
            changed = section.splice(fragment)
            changelog_file.write_text(changelog.render(), encoding="utf-8")

        self.updated_files[changelog_file] = None
        self.processed_tags.append(tag)

        if not changed:
            self.logger.info("Release notes for %s were already up to date", tag)

        return changed

    def finalize(self) -> bool:
        """
        Regenerate the TOCs and commit all of the changes.

        Returns False if there was nothing to commit.
        """
        for changelog_file in self.updated_files:
            with log_step(self.logger, f"Updating the TOC of {changelog_file.name}"):
                regenerate_toc(self.config, changelog_file)

        if not has_changes(self.config.repo_dir, self._git_paths()):
            self.logger.log(NOTICE, "No changes to commit")
            return False

        message = f"Update CHANGELOG for {', '.join(self.processed_tags)}"

        with log_step(self.logger, "Committing changes"):
            commit_files(self.config.repo_dir, self._git_paths(), message)

        self.committed = True
        return True

    def push(self):
        """Push the work branch to the user's fork, if they agree."""
        if not self.confirm(
            f"Push {self.branch} to {self.config.remote}?", False
        ):
            self.logger.info(
                "Not pushing. To push later, run: git push %s %s",
                self.config.remote,
                self.branch,
            )
            return

        with log_step(self.logger, f"Pushing {self.branch} to {self.config.remote}"):
            push_branch(self.config.repo_dir, self.config.remote, self.branch)

    def cleanup(self):
        """Restore the terminal and offer to remove an unused work branch."""
        show_cursor()

        if not self.branch_created or self.committed:
            return

        try:
            if not branch_exists(self.config.repo_dir, self.branch):
                return

            # Only default to deletion if nothing would be lost
            if not self.confirm(
                f"Delete branch {self.branch}?", not self.updated_files
            ):
                self.logger.info("Leaving branch %s in place", self.branch)
                return

            restore_files(self.config.repo_dir, self._git_paths())
            checkout(self.config.repo_dir, self.config.primary_branch)
            delete_branch(self.config.repo_dir, self.branch)
            self.logger.info("Deleted branch %s", self.branch)

        except GitError as err:
            self.logger.error("Unable to clean up branch %s: %s", self.branch, err)

    def run(self, tags: list[str]) -> int:
        """Update the CHANGELOGs for all of the tags and return an exit code."""
        # Remove duplicates but maintain order
        tags = list(dict.fromkeys(tags))
        if not tags:
            raise ValueError("At least one tag is required")

        try:
            with log_step(self.logger, "Checking repository state"):
                self.preflight()

            with log_step(self.logger, f"Creating branch {encode_branch_name(tags[0])}"):
                self.setup_branch(tags[0])

            for tag in tags:
                self.process_tag(tag)

            if self.finalize():
                self.push()

        except UpdateError as err:
            self.logger.debug("Aborting", exc_info=True)
            self.logger.error("%s", err)
            return 1

        finally:
            self.cleanup()

        return 0
