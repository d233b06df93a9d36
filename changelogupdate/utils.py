"""Utility functions."""

import argparse
import logging
import re
import subprocess

from pathlib import Path
from typing import Iterable

import semver


class UpdateError(Exception):
    """Base exception for all conditions that abort a changelog update."""


class GitError(UpdateError):
    """Exception indicating that a git command failed."""


BRANCH_PREFIX = "update-"


def encode_branch_name(tag: str) -> str:
    """Encode this tag into a work branch name."""
    return BRANCH_PREFIX + tag


def tag_to_semver(tag: str) -> semver.version.Version:
    """
    Return the Version associated with this git tag.

    Raises ValueError for invalid tags.
    """
    if not tag.startswith("v"):
        raise ValueError(f"Tag `{tag}` doesn't start with a `v`")

    return semver.Version.parse(tag[1:])


def git(repo_dir: Path, *args: str) -> str:
    """Run a git command and return the stripped output."""
    logging.getLogger(__name__).debug("Running `git %s`", " ".join(args))

    try:
        return (
            subprocess.check_output(
                ["git", *args], cwd=repo_dir, stderr=subprocess.PIPE
            )
            .decode("utf-8")
            .strip()
        )
    except subprocess.CalledProcessError as err:
        stderr = err.stderr.decode("utf-8", errors="replace").strip()
        raise GitError(f"`git {' '.join(args)}` failed: {stderr}") from err
    except FileNotFoundError as err:
        raise GitError("git is not installed") from err


def remote_url(repo_dir: Path, remote: str) -> str:
    """Return the URL of the named remote."""
    return git(repo_dir, "remote", "get-url", remote)


def is_upstream_url(url: str, owner_repo: str) -> bool:
    """Return True if the URL points at the given `owner/repo`."""
    pattern = rf"[/:]{re.escape(owner_repo)}(?:\.git)?/?$"
    return re.search(pattern, url, flags=re.IGNORECASE) is not None


def working_tree_is_clean(repo_dir: Path) -> bool:
    """Return True if there are no modifications to tracked files."""
    return not git(repo_dir, "status", "--porcelain", "--untracked-files=no")


def branch_exists(repo_dir: Path, branch: str) -> bool:
    """Return True if the local branch exists, False otherwise."""
    branch_ref_proc = subprocess.run(
        ["git", "rev-parse", "--verify", "--quiet", f"refs/heads/{branch}"],
        cwd=repo_dir,
        capture_output=True,
        check=False,
    )

    return branch_ref_proc.returncode == 0


def checkout(repo_dir: Path, branch: str, create: bool = False):
    """Switch to (and optionally create) a branch."""
    if create:
        git(repo_dir, "checkout", "-b", branch)
    else:
        git(repo_dir, "checkout", branch)


def delete_branch(repo_dir: Path, branch: str):
    """Forcibly delete a local branch."""
    git(repo_dir, "branch", "-D", branch)


def restore_files(repo_dir: Path, files: Iterable[Path]):
    """Discard any uncommitted (staged or unstaged) changes to the given files."""
    files = [str(item) for item in files]
    if files:
        git(repo_dir, "checkout", "HEAD", "--", *files)


def has_changes(repo_dir: Path, files: Iterable[Path]) -> bool:
    """Return True if any of the given files differ from HEAD."""
    files = [str(item) for item in files]
    if not files:
        return False

    return bool(git(repo_dir, "status", "--porcelain", "--", *files))


def commit_files(repo_dir: Path, files: Iterable[Path], message: str):
    """Stage and commit the given files."""
    files = [str(item) for item in files]
    git(repo_dir, "add", "--", *files)
    git(repo_dir, "commit", "--message", message, "--", *files)


def push_branch(repo_dir: Path, remote: str, branch: str):
    """Push the branch to the remote."""
    git(repo_dir, "push", remote, branch)


def str_to_bool(value: str) -> bool:
    """Convert a string to a boolean (case-insensitive)."""
    truthy_values = {"true", "t", "yes", "y", "1"}
    falsey_values = {"false", "f", "no", "n", "0"}

    # Normalize input to lowercase
    value = value.lower()

    if value in truthy_values:
        return True

    if value in falsey_values:
        return False

    raise argparse.ArgumentTypeError(f"Invalid boolean value: '{value}'")


def ask_yes_no(question: str, default: bool = False) -> bool:
    """Interactively ask a yes/no question, returning the default on EOF."""
    choices = "Y/n" if default else "y/N"

    while True:
        try:
            answer = input(f"{question} [{choices}] ").strip()
        except EOFError:
            print()
            return default

        if not answer:
            return default

        try:
            return str_to_bool(answer)
        except argparse.ArgumentTypeError:
            print(f"Please answer yes or no (got `{answer}`)")
