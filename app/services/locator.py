"""
Locator resolution.
Turns a stored asset record into the concrete address of its bytes.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

from app.core.exceptions import NotRetrievableException
from app.models.asset import AssetRecord, StorageKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedLocator:
    """Where an asset's bytes live."""

    kind: StorageKind
    path: str
    bucket: str | None = None


def key_from_url(public_url: str | None, bucket: str | None = None) -> str | None:
    """
    Derive an object key from a public URL.

    Strips scheme, host and the leading slash. For path-style URLs
    (``{endpoint}/{bucket}/{key}``) the bucket segment is stripped too.
    """
    if not public_url:
        return None

    parsed = urlparse(public_url)
    key = unquote(parsed.path).lstrip("/")
    if bucket and key.startswith(f"{bucket}/") and not parsed.netloc.startswith(f"{bucket}."):
        key = key[len(bucket) + 1:]
    return key or None


def resolve_locator(
    record: AssetRecord,
    local_root: str | Path,
    default_bucket: str | None = None,
) -> ResolvedLocator:
    """
    Resolve a record to a locator.

    Remote records prefer the stored key and fall back to the public URL.
    Local records resolve their relative path under ``local_root``.

    Raises:
        NotRetrievableException: If no usable locator can be derived
    """
    if record.storage_kind == StorageKind.REMOTE:
        bucket = record.bucket or default_bucket
        key = record.storage_key or key_from_url(record.public_url, bucket)
        if not key:
            raise NotRetrievableException(record.id, "no storage key or parseable URL")
        return ResolvedLocator(kind=StorageKind.REMOTE, path=key, bucket=bucket)

    if not record.file_path:
        raise NotRetrievableException(record.id, "no local file path")

    root = Path(local_root).resolve()
    full_path = (root / record.file_path).resolve()
    if not full_path.is_relative_to(root):
        logger.warning(f"Record {record.id} points outside the upload root: {record.file_path}")
        raise NotRetrievableException(record.id, "local path escapes the upload root")

    return ResolvedLocator(
        kind=StorageKind.LOCAL,
        path=full_path.relative_to(root).as_posix(),
    )
