"""Repository reference parsing: `location[#ref]` to a typed reference."""
import logging
import re
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fn_templates.core.errors import (
    InvalidReferenceError,
    InvalidSourceError,
    RetrievalError,
)

logger = logging.getLogger(__name__)

COMMIT_PREFIX = "sha-"

REF_FORMAT_DOCS = "https://git-scm.com/docs/git-check-ref-format"

_COMMIT_DIGEST = re.compile(r"^[0-9a-fA-F]{7,40}$")

_GIT_REMOTE = re.compile(
    r"^((git|ssh|https?)|(git@[\w.]+))(:(//)?)([\w.@:/\-~]+)(\.git)?(/)?$"
)


class RefKind(str, Enum):
    """How a reference pins the repository."""

    NONE = "none"
    BRANCH_OR_TAG = "branch_or_tag"
    COMMIT = "commit"


@dataclass(frozen=True)
class RepositoryReference:
    """A repository location plus an optional, already validated ref."""

    location: str
    ref: Optional[str] = None
    kind: RefKind = RefKind.NONE

    @property
    def digest(self) -> Optional[str]:
        """Commit digest for COMMIT refs, without the `sha-` marker."""
        if self.kind is RefKind.COMMIT:
            return self.ref[len(COMMIT_PREFIX):]
        return None

    @property
    def bundle_suffix(self) -> str:
        """Suffix appended to bundle names written from a pinned ref.

        The ref is percent-encoded so that distinct refs never map to the
        same directory name, e.g. `feature/x` and `feature-x`.
        """
        if self.kind is RefKind.NONE:
            return ""
        return "@" + quote(self.ref, safe="")

    def __str__(self) -> str:
        if self.ref:
            return f"{self.location}#{self.ref}"
        return self.location


def is_git_remote(location: str) -> bool:
    """Check whether a string looks like a remote git repository address."""
    return bool(_GIT_REMOTE.match(location))


def is_local_path(location: str) -> bool:
    return bool(location) and Path(location).exists()


def check_ref_name(ref: str) -> None:
    """Validate a branch or tag name with `git check-ref-format`.

    Raises:
        InvalidReferenceError: If git rejects the name
        RetrievalError: If git cannot be executed
    """
    try:
        result = subprocess.run(
            ["git", "check-ref-format", "--allow-onelevel", ref],
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise RetrievalError(f"Unable to run git check-ref-format: {e}")

    if result.returncode != 0:
        diagnostic = (result.stdout + " " + result.stderr).strip()
        detail = f": {diagnostic}" if diagnostic else ""
        raise InvalidReferenceError(
            f"Invalid tag or branch name '{ref}'{detail}. "
            f"See {REF_FORMAT_DOCS} for the rules git enforces on reference names."
        )


def classify_ref(ref: Optional[str]) -> RefKind:
    """Classify and validate a ref string.

    Raises:
        InvalidReferenceError: If the ref is malformed
    """
    if not ref:
        return RefKind.NONE

    if ref.startswith(COMMIT_PREFIX):
        digest = ref[len(COMMIT_PREFIX):]
        if not _COMMIT_DIGEST.match(digest):
            raise InvalidReferenceError(
                f"Invalid SHA format: '{digest}' - must be 7-40 hex characters"
            )
        return RefKind.COMMIT

    check_ref_name(ref)
    return RefKind.BRANCH_OR_TAG


def resolve_reference(repository: str, ref: Optional[str] = None) -> RepositoryReference:
    """Resolve a repository string into a validated reference.

    An existing local path is taken verbatim. Anything else is split at the
    first `#` into location and ref; an embedded ref takes precedence over
    the `ref` argument. Commit refs are written `sha-<digest>`.

    Examples:
        https://github.com/org/templates.git            -> NONE
        https://github.com/org/templates.git#v1.2.0     -> BRANCH_OR_TAG
        https://github.com/org/templates.git#sha-1a2b3c4 -> COMMIT

    Raises:
        InvalidSourceError: If the location is neither local nor a git remote
        InvalidReferenceError: If the ref is malformed
    """
    location = repository.strip()
    embedded = None

    if not is_local_path(location) and "#" in location:
        location, embedded = location.split("#", 1)

    if not is_local_path(location) and not is_git_remote(location):
        raise InvalidSourceError(
            f"the repository URL must be a valid git repo uri: '{repository}'"
        )

    ref = embedded or ref or None
    kind = classify_ref(ref)

    reference = RepositoryReference(location=location, ref=ref, kind=kind)
    logger.debug(f"Resolved {repository} -> {reference.location} ({kind.value})")
    return reference
