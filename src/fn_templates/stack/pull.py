"""Pull the templates a stack is missing, from its sources or the store."""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

from fn_templates.bundles.reconciler import ReconcileResult
from fn_templates.core.config import SyncOptions
from fn_templates.core.errors import TemplateSourceMissingError, TemplateSyncError
from fn_templates.stack.config import TemplateSource
from fn_templates.sync import sync_repository

logger = logging.getLogger(__name__)

STORE_ORIGIN = "store"


class TemplateStoreClient(Protocol):
    """Anything that can install a template by name, such as `TemplateStore`."""

    def pull(self, name: str, options: SyncOptions) -> ReconcileResult: ...


@dataclass
class PullOutcome:
    """Result of pulling one template name."""

    name: str
    origin: str
    status: str
    result: Optional[ReconcileResult] = None
    error: Optional[TemplateSyncError] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


def find_source(name: str, sources: Iterable[TemplateSource]) -> Optional[TemplateSource]:
    """Find the template source whose name matches exactly."""
    for source in sources:
        if source.name == name:
            return source
    return None


def pull_stack_templates(
    missing: Iterable[str],
    sources: List[TemplateSource],
    options: SyncOptions,
    store: TemplateStoreClient,
) -> List[PullOutcome]:
    """Pull every missing template and report one outcome per name.

    A template with a declared source is fetched from that repository,
    keeping only the bundle of the same name. Anything else goes to
    `store.pull(name, options)`. A failing name is recorded and the batch
    carries on. A name whose bundles were all protected is not a failure,
    a source holding no bundle of that name is.
    """
    outcomes: List[PullOutcome] = []

    for name in missing:
        source = find_source(name, sources)
        origin = source.source if source and source.source else STORE_ORIGIN

        try:
            if origin == STORE_ORIGIN:
                logger.info(f"Pulling template: {name} from store")
                result = store.pull(name, options)
            else:
                logger.info(f"Pulling template: {name} from {origin}")
                result = sync_repository(origin, options, bundle_filter=name)
            if not result.written and not result.protected:
                raise TemplateSourceMissingError(f"template {name} not found in {origin}")
        except TemplateSyncError as e:
            logger.error(f"Unable to pull template {name}: {e}")
            outcomes.append(PullOutcome(name=name, origin=origin, status="failed", error=e))
            continue

        status = "protected" if result.all_protected else "written"
        outcomes.append(PullOutcome(name=name, origin=origin, status=status, result=result))

    return outcomes
