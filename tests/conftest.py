"""Local plugin to parametrize tests from a JSON file."""

import json
import shutil

from collections import namedtuple
from pathlib import Path

import pytest

from changelogupdate.utils import git


RESOURCE_PATH = Path(__file__).resolve().parent.joinpath("resources")

ChangelogSplice = namedtuple(
    "ChangelogSplice", ("original", "tag", "previous_tag", "fragment", "expected")
)

# Named stash keys for storing the ChangelogSplice objects between hook calls
changelog_splices_key = pytest.StashKey[list[ChangelogSplice]]()


def pytest_configure(config: pytest.Config) -> None:
    """
    Configure plugin by loading the splice data.
    """
    splices_file = RESOURCE_PATH / "splices.json"
    with splices_file.open(mode="r", encoding="utf-8") as infile:
        splice_groups = json.load(infile)

    config.stash[changelog_splices_key] = [
        ChangelogSplice(
            RESOURCE_PATH / group["original"],
            group["tag"],
            group["previous_tag"],
            RESOURCE_PATH / group["fragment"],
            RESOURCE_PATH / group["expected"],
        )
        for group in splice_groups
    ]


def pytest_generate_tests(metafunc: pytest.Metafunc):
    """
    Inject parameters for the 'changelog_splice' fixture.
    """
    if "changelog_splice" in metafunc.fixturenames:
        metafunc.parametrize(
            "changelog_splice",
            metafunc.config.stash[changelog_splices_key],
            ids=lambda splice: splice.tag,
        )


@pytest.fixture(name="resources")
def resource_path() -> Path:
    """Return the directory of test resources."""
    return RESOURCE_PATH


@pytest.fixture(name="git_repo")
def real_git_repo(tmp_path, resources) -> Path:
    """A real git repository on `master` with a committed CHANGELOG."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "repo"
    repo.mkdir()

    git(repo, "init", "--quiet")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/master")

    # Isolate the repository from any global configuration
    git(repo, "config", "user.name", "Release Bot")
    git(repo, "config", "user.email", "release-bot@example.com")
    git(repo, "config", "commit.gpgsign", "false")
    git(repo, "config", "core.hooksPath", str(repo / ".git" / "hooks"))

    git(repo, "remote", "add", "origin", "git@github.com:alice/kubernetes.git")

    shutil.copy(resources / "CHANGELOG-1.4.md", repo)
    git(repo, "add", "CHANGELOG-1.4.md")
    git(repo, "commit", "--quiet", "--message", "Add CHANGELOG-1.4.md")

    return repo
