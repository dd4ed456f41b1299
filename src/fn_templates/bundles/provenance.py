"""Provenance records (meta.json) written next to every fetched bundle."""
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fn_templates.core.errors import PersistFailedError

logger = logging.getLogger(__name__)

META_FILENAME = "meta.json"


class TemplateMeta(BaseModel):
    """Where and when a template bundle was fetched.

    Empty `ref_name` and `sha` values are normalized to None and left out
    of the serialized record.
    """

    repository: str = Field(..., description="Source repository URL or path")
    ref_name: Optional[str] = Field(default=None, description="Requested branch/tag/sha- ref")
    sha: Optional[str] = Field(default=None, description="Resolved commit SHA")
    written_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="RFC 3339 timestamp of the write",
    )

    @field_validator("ref_name", "sha", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator("sha")
    @classmethod
    def validate_commit_sha(cls, v: Optional[str]) -> Optional[str]:
        """Ensure sha looks like a valid git SHA."""
        if v is None:
            return v
        if len(v) < 7 or len(v) > 40:
            raise ValueError(
                f"sha must be 7-40 hex characters; got '{v}' (len={len(v)})"
            )
        if not all(c in "0123456789abcdef" for c in v.lower()):
            raise ValueError(f"sha must be hexadecimal; got '{v}'")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "repository": "https://github.com/openfaas/templates.git",
                "ref_name": "v1.2.0",
                "sha": "abc123def456abc123def456abc123def456abc1",
                "written_at": "2026-02-27T10:30:00Z",
            }
        }
    )

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


def record_provenance(
    bundle_dir: Path,
    repository: str,
    ref_name: Optional[str],
    sha: Optional[str],
) -> TemplateMeta:
    """Write meta.json into bundle_dir, atomically replacing any prior record.

    Raises:
        PersistFailedError: If the record cannot be built or written
    """
    bundle_dir = Path(bundle_dir)
    try:
        meta = TemplateMeta(repository=repository, ref_name=ref_name, sha=sha)
    except ValidationError as e:
        raise PersistFailedError(f"Invalid provenance for {bundle_dir.name}: {e}")

    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".meta-", suffix=".json", dir=str(bundle_dir))
        with os.fdopen(fd, "w") as f:
            f.write(meta.to_json())
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, bundle_dir / META_FILENAME)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistFailedError(f"error writing template meta for {bundle_dir.name}: {e}")

    logger.debug(f"Wrote {bundle_dir / META_FILENAME}")
    return meta


def load_provenance(bundle_dir: Path) -> TemplateMeta:
    """Load meta.json from a bundle directory."""
    path = Path(bundle_dir) / META_FILENAME
    return TemplateMeta.model_validate_json(path.read_text())
