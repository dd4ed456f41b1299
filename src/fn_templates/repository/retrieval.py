"""Retrieval client: materialize a repository reference with git."""
import logging
import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from fn_templates.core.errors import RefNotFoundError, RetrievalError
from fn_templates.repository.reference import RefKind, RepositoryReference

logger = logging.getLogger(__name__)

TEMP_PREFIX = "fn-templates-"


@dataclass(frozen=True)
class RetrievedTree:
    """A checked-out repository living in a private temporary directory."""

    path: Path
    reference: RepositoryReference
    digest: str


def _run_git(args: List[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
    """Run git without prompting for credentials.

    Raises:
        RetrievalError: If the git binary cannot be executed
    """
    env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
    try:
        return subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            env=env,
        )
    except OSError as e:
        raise RetrievalError(f"Unable to run git: {e}")


def _output(result: subprocess.CompletedProcess) -> str:
    return f"{result.stdout.strip()} {result.stderr.strip()}".strip()


def clone_command(reference: RepositoryReference, dest: Path) -> List[str]:
    """Build the clone arguments for a reference.

    Commit refs need the full history, a shallow clone cannot reliably
    reach an arbitrary historical commit.
    """
    if reference.kind is RefKind.NONE:
        return ["clone", "--depth=1", reference.location, str(dest)]
    if reference.kind is RefKind.BRANCH_OR_TAG:
        return ["clone", "--depth=1", "--branch", reference.ref, reference.location, str(dest)]
    if reference.kind is RefKind.COMMIT:
        return ["clone", reference.location, str(dest)]
    raise ValueError(f"Unknown ref kind: {reference.kind}")


def resolve_digest(path: Path) -> str:
    """Return the full commit digest of HEAD in a checkout."""
    result = _run_git(["-C", str(path), "rev-parse", "HEAD"])
    if result.returncode != 0:
        raise RetrievalError(f"Failed to get commit SHA: {_output(result)}")
    return result.stdout.strip()


def _checkout(path: Path, digest: str) -> None:
    logger.info(f"Checking out {digest}")
    result = _run_git(["-C", str(path), "checkout", "--quiet", digest])
    if result.returncode != 0:
        raise RefNotFoundError(
            f"error checking out ref {digest}: {_output(result)}"
        )


def _log_head(path: Path) -> None:
    result = _run_git(["-C", str(path), "log", "-1", "--oneline"])
    if result.returncode != 0:
        raise RetrievalError(
            f"error from git log: exit code {result.returncode}: {_output(result)}"
        )
    logger.debug(f"[git] log: {result.stdout.strip()}")


@contextmanager
def retrieve(reference: RepositoryReference, debug: bool = False) -> Iterator[RetrievedTree]:
    """Clone a reference into a temporary directory for the scope of a `with` block.

    The directory is removed on every exit path, including validation and
    git failures, unless `debug` is set; in that case it is kept and its
    path logged.

    Raises:
        RetrievalError: If git is unavailable or the clone fails
        RefNotFoundError: If a commit ref is not present in the history
    """
    workdir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    if debug:
        logger.info(f"Temp files in {workdir}")

    try:
        dest = workdir / "repo"
        ref_msg = f" [{reference.ref}]" if reference.ref else ""
        logger.info(f"Fetching templates from {reference.location}{ref_msg}")

        result = _run_git(clone_command(reference, dest))
        if result.returncode != 0:
            raise RetrievalError(
                f"error invoking git clone for {reference.location}: {_output(result)}"
            )

        if reference.kind is RefKind.COMMIT:
            _checkout(dest, reference.digest)

        if debug:
            _log_head(dest)

        digest = resolve_digest(dest)
        yield RetrievedTree(path=dest, reference=reference, digest=digest)
    finally:
        if debug:
            logger.info(f"Keeping {workdir} for inspection")
        else:
            shutil.rmtree(workdir, ignore_errors=True)
