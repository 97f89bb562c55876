from __future__ import annotations

import json
from typing import List, Sequence

from ..domain.models import Report
from ..errors import StorageError
from ..logging import get_logger
from .kv import KeyValueStorage


LOG = get_logger("storage-reports")


def storage_key(username: str) -> str:
    return f"drishtifi_reports_{username}"


class ReportStore:
    """Per-user ordered report lists, each persisted as one JSON record."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def get_reports_for_user(self, username: str) -> List[Report]:
        """Return the stored reports for username, or [] when none can be read.

        Read and parse failures are logged and degrade to an empty list.
        """
        if not username:
            return []
        try:
            raw = self.storage.get_item(storage_key(username))
            if not raw:
                return []
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError("stored reports must be a list")
            return [Report.from_dict(item) for item in data]
        except (StorageError, ValueError, TypeError, KeyError) as exc:
            LOG.error("Failed to load reports for %r: %s", username, exc)
            return []

    def save_reports_for_user(self, username: str, reports: Sequence[Report]) -> None:
        """Persist the full list for username, replacing whatever was stored.

        Callers compute the complete list (usually previous + one new report).
        """
        if not username:
            return
        try:
            payload = json.dumps([r.to_dict() for r in reports], ensure_ascii=False)
            self.storage.set_item(storage_key(username), payload)
            LOG.debug("Saved %d report(s) for %r", len(reports), username)
        except StorageError as exc:
            LOG.error("Failed to save reports for %r: %s", username, exc)
