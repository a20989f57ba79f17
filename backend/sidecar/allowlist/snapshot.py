"""Durable allow-list snapshot used as the offline fallback.

File layout::

    {"users": [{"uuid": "<identifier>", "expiryDate": "<ISO-8601>"}, ...]}

``expiryDate`` is omitted for permanent entries. The whole document is
rewritten on every save.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from shared.storage import StateFileError, read_json_document, write_json_document
from sidecar.allowlist.identity import AllowedIdentity
from sidecar.errors import LoadError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = structlog.get_logger()


class AllowlistSnapshot:
    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[AllowedIdentity]:
        """Read all well-formed entries from the snapshot.

        A missing file is an empty snapshot. Individual records that fail
        validation are logged and skipped. An unreadable file, or one
        without a ``users`` array, raises LoadError.
        """
        try:
            data = read_json_document(self._path)
        except StateFileError as e:
            raise LoadError(f"Error loading allowlist cache from {self._path}: {e.__cause__}") from e

        if data is None:
            logger.info("no allowlist cache file found", path=str(self._path))
            return []

        users = data.get("users") if isinstance(data, dict) else None
        if not isinstance(users, list):
            raise LoadError(f"Allowlist cache {self._path} has no 'users' array")

        entries: list[AllowedIdentity] = []
        for record in users:
            try:
                entries.append(AllowedIdentity.model_validate(record))
            except ValidationError:
                logger.warning("skipping malformed entry in allowlist cache", record=record)
        return entries

    def save(self, entries: Iterable[AllowedIdentity]) -> None:
        """Replace the snapshot with ``entries``."""
        users = [entry.model_dump(mode="json", by_alias=True, exclude_none=True) for entry in entries]
        write_json_document(self._path, {"users": users})
