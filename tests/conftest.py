"""
Shared fixtures: throwaway working trees pushing to a local bare repository.

The bare repository lives at ``<server>/octo/demo.git`` so that the file URL
of ``<server>`` plays the role of GITHUB_SERVER_URL.
"""

import os
import sys
from pathlib import Path

import pytest
from git import Actor, GitCommandError, Repo

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from push_back.core.config import Config, ActionInputs, RunnerEnvironment
from push_back.core.masking import get_secret_registry
from push_back.git.repository import GitRepository

REPOSITORY = "octo/demo"
TOKEN = "ghs_pushBackTestToken0123456789"
SEED_AUTHOR = Actor("Seed Author", "seed@example.com")


def commit_file(repo: Repo, name: str, content: str, message: str) -> str:
    """Write *name* and commit it with a fixed identity. Returns the new SHA."""
    path = Path(repo.working_tree_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    commit = repo.index.commit(message, author=SEED_AUTHOR, committer=SEED_AUTHOR)
    return commit.hexsha


def remote_branch_sha(bare: Repo, branch: str = "main"):
    """Tip of *branch* in the bare repository, or None."""
    try:
        return bare.git.rev_parse("--verify", "-q", f"refs/heads/{branch}")
    except GitCommandError:
        return None


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """Keep user/system git config and runner variables out of every test."""
    home = tmp_path_factory.mktemp("home")
    global_config = home / ".gitconfig"
    global_config.write_text("")

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for name in list(os.environ):
        if name.startswith(("GIT_AUTHOR_", "GIT_COMMITTER_", "INPUT_", "GITHUB_", "PUSH_BACK_")):
            monkeypatch.delenv(name, raising=False)
    for name in ("ACTIONS_STEP_DEBUG", "RUNNER_DEBUG", "EMAIL"):
        monkeypatch.delenv(name, raising=False)

    get_secret_registry().clear()
    yield
    get_secret_registry().clear()


@pytest.fixture
def server(tmp_path):
    """Directory standing in for the git server, and its URL."""
    root = tmp_path / "server"
    root.mkdir()
    return root


@pytest.fixture
def server_url(server):
    return server.as_uri()


@pytest.fixture
def bare(server):
    """Bare repository that receives the pushes, seeded with one commit on main."""
    bare_repo = Repo.init(server / "octo" / "demo.git", bare=True, mkdir=True)
    bare_repo.git.symbolic_ref("HEAD", "refs/heads/main")
    return bare_repo


@pytest.fixture
def work(tmp_path, bare):
    """Working tree on branch main, in sync with the bare repository."""
    repo = Repo.init(tmp_path / "work", mkdir=True)
    repo.git.symbolic_ref("HEAD", "refs/heads/main")
    commit_file(repo, "README.md", "# demo\n", "Initial commit")
    repo.create_remote("origin", bare.git_dir)
    repo.git.push("origin", "HEAD:refs/heads/main")
    return repo


@pytest.fixture
def repository(work):
    return GitRepository(work.working_tree_dir, network_timeout=60)


@pytest.fixture
def make_config(work, server_url):
    """Build a validated-looking Config for the working tree."""

    def _make(**inputs):
        values = {"github_token": TOKEN, "message": "Push back changes"}
        values.update(inputs)
        return Config(
            inputs=ActionInputs(**values),
            environment=RunnerEnvironment(
                repository=REPOSITORY,
                server_url=server_url,
                actor="octocat",
                workspace=work.working_tree_dir,
            ),
        )

    return _make
