"""Bundle reconciler: install retrieved template bundles into the local cache."""
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from fn_templates.bundles.provenance import record_provenance
from fn_templates.core.errors import PersistFailedError
from fn_templates.repository.retrieval import RetrievedTree

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation, by cache bundle name."""

    written: List[str] = field(default_factory=list)
    protected: List[str] = field(default_factory=list)
    unattributed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    sha: Optional[str] = None

    @property
    def all_protected(self) -> bool:
        """True when bundles were found but every one of them was skipped."""
        return not self.written and not self.failed and bool(self.protected)

    @property
    def all_failed(self) -> bool:
        """True when every bundle found could not be copied into the cache."""
        return not self.written and not self.protected and bool(self.failed)


def list_bundles(directory: Path) -> List[str]:
    """Names of the immediate, non-hidden subdirectories of `directory`."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(
        entry.name
        for entry in directory.iterdir()
        if entry.is_dir() and not entry.name.startswith(".")
    )


def select_candidates(names: List[str], bundle_filter: Optional[str]) -> List[str]:
    """Apply a requested bundle name to the candidates of a retrieved tree.

    A repository holding a single bundle is used as-is whatever its name.
    """
    if not bundle_filter or len(names) <= 1:
        return list(names)
    return [name for name in names if name == bundle_filter]


def install_bundle(
    src: Path,
    cache_dir: Path,
    dest_name: str,
    overwrite: bool = True,
) -> Optional[Path]:
    """Copy a bundle into the cache, replacing any existing one wholesale.

    The copy is staged in a hidden directory inside the cache and renamed
    into place, so a failed copy never leaves a half-written bundle. With
    `overwrite` off, a bundle that appeared at the destination while the
    copy was staged is left alone and None is returned.

    Raises:
        PersistFailedError: If the copy or the swap fails
    """
    dest = cache_dir / dest_name
    try:
        staging = Path(tempfile.mkdtemp(prefix=f".{dest_name}.", dir=str(cache_dir)))
    except OSError as e:
        raise PersistFailedError(f"Unable to stage {dest_name} in {cache_dir}: {e}")

    staged = staging / "bundle"
    previous = staging / "previous"
    try:
        shutil.copytree(src, staged, symlinks=True)
        if dest.exists():
            if not overwrite:
                return None
            os.replace(dest, previous)
        os.replace(staged, dest)
    except OSError as e:
        if previous.exists() and not dest.exists():
            os.replace(previous, dest)
        raise PersistFailedError(f"Unable to write template {dest_name}: {e}")
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    return dest


def reconcile(
    tree: RetrievedTree,
    cache_dir: Path,
    overwrite: bool = False,
    template_root: str = "template",
    bundle_filter: Optional[str] = None,
) -> ReconcileResult:
    """Install the bundles of a retrieved tree into the cache.

    Each bundle directory under `<tree>/<template_root>/` is written as
    `<name>[@<ref>]` unless that name already exists in the cache and
    `overwrite` is off, in which case it is reported as protected. A
    missing or empty template root yields an empty result.

    Failures are bundle-local. A bundle that cannot be copied is listed in
    `failed` and the next one is processed; a bundle whose provenance
    cannot be written stays in place and is listed in `unattributed`.

    Raises:
        PersistFailedError: If the cache directory cannot be created
    """
    cache_dir = Path(cache_dir)
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistFailedError(f"error creating template directory: {cache_dir} - {e}")

    reference = tree.reference
    source_root = tree.path / template_root
    if not source_root.is_dir():
        logger.warning(f"No {template_root}/ directory found in {reference}")

    candidates = select_candidates(list_bundles(source_root), bundle_filter)
    existing = set(list_bundles(cache_dir))
    result = ReconcileResult(sha=tree.digest)

    for name in candidates:
        dest_name = name + reference.bundle_suffix

        if not overwrite and dest_name in existing:
            logger.warning(f"Template {dest_name} already exists, skipping")
            result.protected.append(dest_name)
            continue

        try:
            dest = install_bundle(source_root / name, cache_dir, dest_name, overwrite=overwrite)
        except PersistFailedError as e:
            logger.error(str(e))
            result.failed.append(dest_name)
            continue

        if dest is None:
            logger.warning(f"Template {dest_name} appeared while copying, skipping")
            result.protected.append(dest_name)
            continue

        result.written.append(dest_name)

        try:
            record_provenance(dest, reference.location, reference.ref, tree.digest)
        except PersistFailedError as e:
            logger.warning(f"Template {dest_name} written without provenance: {e}")
            result.unattributed.append(dest_name)

    return result
