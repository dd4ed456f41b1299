"""Pytest fixtures for fn-templates tests."""
import subprocess
from pathlib import Path
from typing import Dict

import pytest

from fn_templates.repository.reference import RepositoryReference
from fn_templates.repository.retrieval import RetrievedTree

SHA = "abc123def456abc123def456abc123def456abc1"


def _git(repo_path: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def write_bundle(root: Path, name: str, handler: str = "def handle(req):\n    return req\n") -> Path:
    """Create a minimal template bundle directory."""
    bundle = root / name
    (bundle / "function").mkdir(parents=True, exist_ok=True)
    (bundle / "template.yml").write_text(f"language: {name}\n")
    (bundle / "function" / "handler.py").write_text(handler)
    return bundle


def read_tree(root: Path, skip=("meta.json",)) -> Dict[str, bytes]:
    """Map relative file paths under root to their contents."""
    return {
        str(path.relative_to(root)): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file() and path.name not in skip
    }


@pytest.fixture
def template_repo_fixture(tmp_path: Path) -> Dict[str, any]:
    """Create a git repository holding template bundles.

    Layout:
        - first commit (tagged v0.1): template/python, template/node
        - second commit on the default branch: python handler changed
        - branch dev: adds template/ruby

    Returns dict with:
        - path: Path to repo
        - first_sha: SHA of the v0.1 commit
        - head_sha: SHA of the default branch
        - dev_sha: SHA of dev branch
    """
    repo_path = tmp_path / "template_repo"
    repo_path.mkdir()

    _git(repo_path, "init")
    _git(repo_path, "config", "user.email", "test@example.com")
    _git(repo_path, "config", "user.name", "Test User")
    _git(repo_path, "config", "commit.gpgsign", "false")

    templates = repo_path / "template"
    write_bundle(templates, "python")
    write_bundle(templates, "node", handler="module.exports = (req) => req\n")
    _git(repo_path, "add", "template")
    _git(repo_path, "commit", "-m", "Initial templates")
    first_sha = _git(repo_path, "rev-parse", "HEAD")
    _git(repo_path, "tag", "v0.1")

    write_bundle(templates, "python", handler="def handle(req):\n    return 'v2'\n")
    _git(repo_path, "commit", "-am", "Update python handler")
    head_sha = _git(repo_path, "rev-parse", "HEAD")

    _git(repo_path, "checkout", "-b", "dev")
    write_bundle(templates, "ruby", handler="def handle(req) = req\n")
    _git(repo_path, "add", "template")
    _git(repo_path, "commit", "-m", "Add ruby on dev")
    dev_sha = _git(repo_path, "rev-parse", "HEAD")

    # Back to the default branch so plain clones see head_sha
    _git(repo_path, "checkout", "-")

    return {
        "path": repo_path,
        "first_sha": first_sha,
        "head_sha": head_sha,
        "dev_sha": dev_sha,
    }


@pytest.fixture
def retrieved_tree(tmp_path: Path) -> RetrievedTree:
    """A retrieved tree on disk holding python and node bundles, no git needed."""
    tree_path = tmp_path / "tree"
    write_bundle(tree_path / "template", "python")
    write_bundle(tree_path / "template", "node", handler="module.exports = (req) => req\n")
    return RetrievedTree(
        path=tree_path,
        reference=RepositoryReference(location="https://example.com/templates.git"),
        digest=SHA,
    )


@pytest.fixture
def stack_yaml() -> str:
    return """version: 1.0
provider:
  name: openfaas
  gateway: http://127.0.0.1:8080
functions:
  docker-fn:
    lang: dockerfile
    handler: ./dockerfile
  ruby-fn:
    lang: ruby
    handler: ./ruby
    image: ttl.sh/alexellis/ruby:latest
  perl-fn:
    lang: perl
    handler: ./perl
    image: ttl.sh/alexellis/perl:latest

configuration:
  templates:
   - name: dockerfile
     source: https://github.com/openfaas/templates
   - name: ruby
     source: https://github.com/openfaas/classic-templates
   - name: perl
"""
