"""
Repository: in-memory access to the mock data set.

This file contains only data access code. It loads the mock document once
(via `db.load_mock_data`) and answers lookups against it. Keep business
rules out of this module; validation lives in `service_health`.

Important notes:
- `load()` returns copies of the four lists, so callers can sort or slice
  without touching repository state. The individual dicts are shared and
  must be treated as read-only.
- Writes (`insert_consent`, `update_consent`) mutate process memory only.
  Nothing is persisted back to the mock file.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

from db import load_mock_data
from models import HealthData

logger = logging.getLogger(__name__)


class DataProvider(Protocol):
    """Read-only source of the four entity collections."""

    def load(self) -> HealthData:
        ...


class MockDataRepo:
    """Data access only. No business logic here.

    Responsibilities:
    - Hold the mock collections in memory
    - Look entities up by id / foreign key
    - Serialise consent writes with a lock (sync routes run in a thread pool)
    """

    def __init__(self, path: Optional[str] = None, data: Optional[HealthData] = None):
        self._lock = threading.Lock()
        self._data = data if data is not None else load_mock_data(path)
        logger.info(
            "Loaded mock data: %d patients, %d records, %d consents, %d transactions",
            len(self._data.patients),
            len(self._data.records),
            len(self._data.consents),
            len(self._data.transactions),
        )

    def load(self) -> HealthData:
        """Return a snapshot of all four collections."""

        with self._lock:
            # already validated at load time
            return HealthData.model_construct(
                patients=list(self._data.patients),
                records=list(self._data.records),
                consents=list(self._data.consents),
                transactions=list(self._data.transactions),
            )

    def fetch_patient(self, patient_id: str) -> Optional[Dict[str, Any]]:
        return _find_by_id(self._data.patients, patient_id)

    def fetch_records_for_patient(self, patient_id: str) -> List[Dict[str, Any]]:
        return [r for r in self._data.records if r.get("patientId") == patient_id]

    def fetch_consent(self, consent_id: str) -> Optional[Dict[str, Any]]:
        return _find_by_id(self._data.consents, consent_id)

    def insert_consent(self, consent: Dict[str, Any]) -> Dict[str, Any]:
        """Append a consent and return it."""

        with self._lock:
            self._data.consents.append(consent)
        return consent

    def update_consent(self, consent_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply `changes` to the stored consent. Returns None if unknown.

        The stored dict is replaced rather than mutated so snapshots handed
        out by `load()` keep the values they were taken with.
        """

        with self._lock:
            for i, c in enumerate(self._data.consents):
                if c.get("id") == consent_id:
                    updated = {**c, **changes}
                    self._data.consents[i] = updated
                    return updated
        return None


def _find_by_id(items: List[Dict[str, Any]], item_id: str) -> Optional[Dict[str, Any]]:
    return next((i for i in items if i.get("id") == item_id), None)
