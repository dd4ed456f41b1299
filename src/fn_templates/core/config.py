"""Runtime options shared by the synchronization operations."""
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TEMPLATE_REPOSITORY = "https://github.com/openfaas/templates.git"
DEFAULT_STORE_URL = "https://raw.githubusercontent.com/openfaas/store/master/templates.json"
DEFAULT_CACHE_DIR = Path("template")

TEMPLATE_URL_ENV = "FN_TEMPLATES_URL"
STORE_URL_ENV = "FN_TEMPLATES_STORE_URL"


class SyncOptions(BaseModel):
    """Options for one synchronization run.

    Built once by the caller (usually the CLI) and passed down explicitly;
    nothing in the core reads flags from module-level state.
    """

    model_config = ConfigDict(frozen=True)

    cache_dir: Path = Field(default=DEFAULT_CACHE_DIR, description="Local template cache")
    overwrite: bool = Field(default=False, description="Replace bundles that already exist")
    debug: bool = Field(default=False, description="Keep the clone directory for inspection")
    require_write: bool = Field(
        default=False,
        description="Treat 'every bundle protected, nothing written' as a failure",
    )
    template_root: str = Field(
        default="template",
        description="Directory inside a template repository holding the bundles",
    )


def get_template_url(
    cli_url: Optional[str],
    env_url: Optional[str],
    default_url: str = DEFAULT_TEMPLATE_REPOSITORY,
) -> str:
    """Pick the template repository: CLI argument, then environment, then default."""
    if cli_url:
        return cli_url
    if env_url:
        return env_url
    return default_url
