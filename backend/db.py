"""
Mock data loading helper.

This module centralizes how the backing data is obtained. Right now we
read a single JSON document (`settings.mock_data_path`) with four
top-level arrays: `patients`, `records`, `consents`, `transactions`.

Why this exists:
- Single place to swap the data source (a real database, a remote API).
- Keeps repository code focused on lookups and in-memory bookkeeping.

Usage:
    from db import load_mock_data
    data = load_mock_data()
    print(len(data.patients))

Missing arrays are treated as empty. A missing file raises
`FileNotFoundError`; a document that is not a JSON object of arrays
raises `ValueError`.
"""

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from models import HealthData
from settings import settings


def load_mock_data(path: Optional[str] = None) -> HealthData:
    """Read and validate the mock data file.

    `path` defaults to `settings.mock_data_path` so tests can point the
    loader at a temporary file.
    """

    source = Path(path or settings.mock_data_path)
    with source.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Mock data is not valid JSON ({source}): {e}") from e

    if not isinstance(raw, dict):
        raise ValueError(f"Mock data must be a JSON object, got {type(raw).__name__}")

    try:
        return HealthData(**{k: raw.get(k) or [] for k in HealthData.model_fields})
    except ValidationError as e:
        raise ValueError(f"Mock data has an unexpected shape ({source}): {e}") from e
