"""Synchronize the template cache with a repository reference."""
import logging
from typing import Optional

from fn_templates.bundles.reconciler import ReconcileResult, reconcile
from fn_templates.core.config import SyncOptions
from fn_templates.core.errors import AllProtectedError, PersistFailedError
from fn_templates.repository.reference import resolve_reference
from fn_templates.repository.retrieval import retrieve

logger = logging.getLogger(__name__)


def sync_repository(
    repository: str,
    options: SyncOptions,
    ref: Optional[str] = None,
    bundle_filter: Optional[str] = None,
) -> ReconcileResult:
    """Fetch a template repository and install its bundles into the cache.

    Args:
        repository: Git URL or local path, optionally suffixed with `#<ref>`
        options: Cache location and overwrite/debug policy
        ref: Branch, tag or `sha-<digest>` used when `repository` has none
        bundle_filter: Only install the bundle with this name

    Returns:
        ReconcileResult listing written, protected and failed bundle names

    Raises:
        InvalidReferenceError, InvalidSourceError: Before anything is fetched
        RetrievalError, RefNotFoundError: After the clone is cleaned up
        PersistFailedError: If every bundle found failed to copy
        AllProtectedError: If options.require_write and nothing was written
    """
    reference = resolve_reference(repository, ref)

    with retrieve(reference, debug=options.debug) as tree:
        result = reconcile(
            tree,
            options.cache_dir,
            overwrite=options.overwrite,
            template_root=options.template_root,
            bundle_filter=bundle_filter,
        )

    if result.protected:
        logger.warning(
            f"Unable to overwrite {len(result.protected)} template(s): "
            f"{', '.join(result.protected)}"
        )
    if result.all_failed:
        raise PersistFailedError(
            f"Unable to write any template from {reference}: {', '.join(result.failed)}"
        )
    if result.all_protected and options.require_write:
        raise AllProtectedError(result.protected)

    logger.info(
        f"Wrote {len(result.written)} template(s), "
        f"{len(result.protected)} protected, "
        f"{len(result.failed)} failed, from {reference}"
    )
    return result
