"""Central template store: resolve a template name to its repository."""
import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from fn_templates.bundles.reconciler import ReconcileResult
from fn_templates.core.config import DEFAULT_STORE_URL, SyncOptions
from fn_templates.core.errors import RetrievalError, TemplateSourceMissingError
from fn_templates.sync import sync_repository

logger = logging.getLogger(__name__)


class StoreTemplate(BaseModel):
    """One entry of the store index."""

    model_config = ConfigDict(extra="ignore")

    template: str
    repo: str
    description: str = ""
    platform: str = ""
    source: str = ""


class TemplateStore:
    """Client for a JSON template index served over HTTP."""

    def __init__(
        self,
        url: str = DEFAULT_STORE_URL,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client
        self._templates: Optional[List[StoreTemplate]] = None

    def list_templates(self) -> List[StoreTemplate]:
        """Download the store index, once per instance.

        Raises:
            RetrievalError: On HTTP errors or a malformed index
        """
        if self._templates is not None:
            return self._templates

        logger.debug(f"Fetching template store index from {self.url}")
        try:
            if self._client is not None:
                response = self._client.get(self.url, timeout=self.timeout)
            else:
                response = httpx.get(self.url, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise RetrievalError(f"error fetching template store {self.url}: {e}")
        except ValueError as e:
            raise RetrievalError(f"template store {self.url} returned invalid JSON: {e}")

        if not isinstance(data, list):
            raise RetrievalError(f"template store {self.url} must return a JSON list")

        try:
            self._templates = [StoreTemplate.model_validate(item) for item in data]
        except ValidationError as e:
            raise RetrievalError(f"invalid entry in template store {self.url}: {e}")
        return self._templates

    def find(self, name: str) -> Optional[StoreTemplate]:
        for entry in self.list_templates():
            if entry.template == name:
                return entry
        return None

    def pull(self, name: str, options: SyncOptions) -> ReconcileResult:
        """Install the named template from the repository the store lists for it.

        Raises:
            TemplateSourceMissingError: If the store has no such template
        """
        entry = self.find(name)
        if entry is None:
            raise TemplateSourceMissingError(
                f"template {name} has no source configured and was not found in the store"
            )

        logger.info(f"Store resolved {name} -> {entry.repo}")
        return sync_repository(entry.repo, options, bundle_filter=name)
