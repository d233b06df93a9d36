"""Tests for the utility functions."""

import subprocess

from pathlib import Path
from unittest.mock import patch

import pytest

from changelogupdate.utils import (
    GitError,
    ask_yes_no,
    branch_exists,
    checkout,
    commit_files,
    delete_branch,
    encode_branch_name,
    git,
    has_changes,
    is_upstream_url,
    remote_url,
    restore_files,
    working_tree_is_clean,
)


def test_branch_name():
    """Test that work branches are named after the first tag."""
    assert encode_branch_name("v1.4.2") == "update-v1.4.2"


@pytest.mark.parametrize(
    "url,is_upstream",
    [
        ("git@github.com:kubernetes/kubernetes.git", True),
        ("https://github.com/kubernetes/kubernetes", True),
        ("https://github.com/kubernetes/kubernetes.git", True),
        ("https://github.com/Kubernetes/Kubernetes/", True),
        ("git@github.com:alice/kubernetes.git", False),
        ("https://github.com/notkubernetes/kubernetes", False),
        ("https://github.com/kubernetes/kubernetes-sigs.git", False),
    ],
)
def test_upstream_urls(url, is_upstream):
    """Test detection of the canonical upstream remote."""
    assert is_upstream_url(url, "kubernetes/kubernetes") == is_upstream


@pytest.mark.parametrize(
    "answers,default,expected",
    [
        (["y"], False, True),
        (["YES"], False, True),
        (["n"], True, False),
        ([""], True, True),
        ([""], False, False),
        (["maybe", "nope", "no"], True, False),
        (EOFError(), True, True),
        (EOFError(), False, False),
    ],
)
def test_ask_yes_no(answers, default, expected):
    """Test interactive prompts, including invalid input and EOF."""
    with patch("builtins.input", side_effect=answers):
        assert ask_yes_no("Continue?", default) is expected


def test_git_failure():
    """Test that failing git commands raise GitError."""
    error = subprocess.CalledProcessError(
        128, ["git", "checkout", "nope"], stderr=b"error: pathspec 'nope'"
    )

    with patch("subprocess.check_output", side_effect=error):
        with pytest.raises(GitError, match="pathspec 'nope'"):
            git(Path(), "checkout", "nope")


def test_git_output():
    """Test that git output is decoded and stripped."""
    with patch("subprocess.check_output", return_value=b" origin\n") as mock_run:
        assert git(Path("/repo"), "remote") == "origin"

    mock_run.assert_called_once_with(
        ["git", "remote"], cwd=Path("/repo"), stderr=subprocess.PIPE
    )


def test_remote_url(git_repo):
    """Test reading the URL of a remote."""
    assert remote_url(git_repo, "origin") == "git@github.com:alice/kubernetes.git"

    with pytest.raises(GitError):
        remote_url(git_repo, "upstream")


def test_working_tree_is_clean(git_repo):
    """Only modifications to tracked files make the tree dirty."""
    assert working_tree_is_clean(git_repo)

    (git_repo / "notes.txt").write_text("untracked\n", encoding="utf-8")
    assert working_tree_is_clean(git_repo)

    with (git_repo / "CHANGELOG-1.4.md").open(mode="a", encoding="utf-8") as outfile:
        outfile.write("* Extra\n")
    assert not working_tree_is_clean(git_repo)


def test_branches(git_repo):
    """Test creating, detecting, and deleting branches."""
    assert branch_exists(git_repo, "master")
    assert not branch_exists(git_repo, "update-v1.4.2")

    checkout(git_repo, "update-v1.4.2", create=True)
    assert branch_exists(git_repo, "update-v1.4.2")
    assert git(git_repo, "rev-parse", "--abbrev-ref", "HEAD") == "update-v1.4.2"

    with pytest.raises(GitError):
        checkout(git_repo, "update-v1.4.2", create=True)

    checkout(git_repo, "master")
    delete_branch(git_repo, "update-v1.4.2")
    assert not branch_exists(git_repo, "update-v1.4.2")


def test_commit_files(git_repo):
    """Test detecting and committing changes to specific files."""
    changelog = Path("CHANGELOG-1.4.md")

    assert not has_changes(git_repo, [])
    assert not has_changes(git_repo, [changelog])

    with (git_repo / changelog).open(mode="a", encoding="utf-8") as outfile:
        outfile.write("* Extra\n")
    assert has_changes(git_repo, [changelog])

    commit_files(git_repo, [changelog], "Update CHANGELOG for v1.4.2")

    assert not has_changes(git_repo, [changelog])
    assert git(git_repo, "log", "-1", "--format=%s") == "Update CHANGELOG for v1.4.2"


@pytest.mark.parametrize("staged", [True, False])
def test_restore_files(git_repo, staged):
    """Both staged and unstaged changes are discarded."""
    changelog = Path("CHANGELOG-1.4.md")
    original_text = (git_repo / changelog).read_text(encoding="utf-8")

    (git_repo / changelog).write_text("# v9.9.9\n", encoding="utf-8")
    if staged:
        git(git_repo, "add", str(changelog))

    restore_files(git_repo, [changelog])

    assert git(git_repo, "status", "--porcelain") == ""
    assert (git_repo / changelog).read_text(encoding="utf-8") == original_text
