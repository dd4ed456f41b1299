"""Tests for the git retrieval client."""
import tempfile
from pathlib import Path

import pytest

from fn_templates.core.errors import RefNotFoundError, RetrievalError
from fn_templates.repository import resolve_reference, retrieve
from fn_templates.repository.reference import RefKind, RepositoryReference
from fn_templates.repository.retrieval import TEMP_PREFIX, clone_command


@pytest.fixture
def temp_root(tmp_path, monkeypatch) -> Path:
    """Point tempfile at a directory the test can inspect."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


def _leftovers(temp_root: Path):
    return [p for p in temp_root.iterdir() if p.name.startswith(TEMP_PREFIX)]


class TestCloneCommand:
    def test_default_clone_is_shallow(self, tmp_path):
        reference = RepositoryReference(location="https://example.com/t.git")

        args = clone_command(reference, tmp_path / "dest")

        assert args == ["clone", "--depth=1", "https://example.com/t.git", str(tmp_path / "dest")]

    def test_branch_clone_is_shallow_with_branch(self, tmp_path):
        reference = RepositoryReference(
            location="https://example.com/t.git", ref="v1", kind=RefKind.BRANCH_OR_TAG
        )

        args = clone_command(reference, tmp_path / "dest")

        assert "--depth=1" in args
        assert args[args.index("--branch") + 1] == "v1"

    def test_commit_clone_has_full_history(self, tmp_path):
        reference = RepositoryReference(
            location="https://example.com/t.git", ref="sha-abcdef1", kind=RefKind.COMMIT
        )

        args = clone_command(reference, tmp_path / "dest")

        assert not any(arg.startswith("--depth") for arg in args)
        assert "--branch" not in args


def test_default_clone_checks_out_default_branch(template_repo_fixture, temp_root):
    reference = resolve_reference(str(template_repo_fixture["path"]))

    with retrieve(reference) as tree:
        assert tree.digest == template_repo_fixture["head_sha"]
        assert (tree.path / "template" / "python" / "template.yml").exists()
        assert not (tree.path / "template" / "ruby").exists()
        workdir = tree.path.parent

    assert not workdir.exists()
    assert _leftovers(temp_root) == []


def test_tag_clone(template_repo_fixture, temp_root):
    reference = resolve_reference(f"{template_repo_fixture['path']}#v0.1")

    with retrieve(reference) as tree:
        assert tree.digest == template_repo_fixture["first_sha"]
        handler = tree.path / "template" / "python" / "function" / "handler.py"
        assert "v2" not in handler.read_text()


def test_branch_clone(template_repo_fixture, temp_root):
    reference = resolve_reference(f"{template_repo_fixture['path']}#dev")

    with retrieve(reference) as tree:
        assert tree.digest == template_repo_fixture["dev_sha"]
        assert (tree.path / "template" / "ruby").is_dir()


def test_commit_clone_checks_out_digest(template_repo_fixture, temp_root):
    short = template_repo_fixture["first_sha"][:10]
    reference = resolve_reference(f"{template_repo_fixture['path']}#sha-{short}")

    with retrieve(reference) as tree:
        assert tree.digest == template_repo_fixture["first_sha"]


def test_unknown_commit_raises_ref_not_found_and_cleans_up(template_repo_fixture, temp_root):
    reference = resolve_reference(f"{template_repo_fixture['path']}#sha-deadbeefdeadbeef")

    with pytest.raises(RefNotFoundError):
        with retrieve(reference):
            pass

    assert _leftovers(temp_root) == []


def test_unknown_branch_raises_retrieval_error_and_cleans_up(template_repo_fixture, temp_root):
    reference = resolve_reference(f"{template_repo_fixture['path']}#no-such-branch")

    with pytest.raises(RetrievalError) as excinfo:
        with retrieve(reference):
            pass

    assert "no-such-branch" in str(excinfo.value)
    assert _leftovers(temp_root) == []


def test_missing_git_binary_raises_retrieval_error(tmp_path, temp_root, monkeypatch):
    monkeypatch.setenv("PATH", str(tmp_path / "empty-bin"))
    reference = RepositoryReference(location="https://example.com/templates.git")

    with pytest.raises(RetrievalError):
        with retrieve(reference):
            pass

    assert _leftovers(temp_root) == []


def test_cleanup_when_caller_raises(template_repo_fixture, temp_root):
    reference = resolve_reference(str(template_repo_fixture["path"]))

    with pytest.raises(KeyError):
        with retrieve(reference):
            raise KeyError("boom")

    assert _leftovers(temp_root) == []


def test_debug_keeps_clone_directory(template_repo_fixture, temp_root, caplog):
    reference = resolve_reference(str(template_repo_fixture["path"]))

    with caplog.at_level("DEBUG", logger="fn_templates"):
        with retrieve(reference, debug=True) as tree:
            workdir = tree.path.parent

    assert workdir.exists()
    assert str(workdir) in caplog.text
    assert "[git] log:" in caplog.text
