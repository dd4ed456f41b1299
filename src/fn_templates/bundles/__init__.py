"""Template bundles: reconciliation into the cache and provenance records."""
from fn_templates.bundles.provenance import (
    META_FILENAME,
    TemplateMeta,
    load_provenance,
    record_provenance,
)
from fn_templates.bundles.reconciler import ReconcileResult, list_bundles, reconcile

__all__ = [
    "META_FILENAME",
    "ReconcileResult",
    "TemplateMeta",
    "list_bundles",
    "load_provenance",
    "reconcile",
    "record_provenance",
]
