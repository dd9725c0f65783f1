"""Shared fixtures."""

import shutil

import pytest

from .gitutil import git


@pytest.fixture
def git_repo(tmp_path):
    """An initialised, empty git repository."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    return repo
