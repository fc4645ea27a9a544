"""
Centralized runtime configuration for the backend.

This module uses `python-dotenv` to read a local `.env` file during
development and exposes a Pydantic `Settings` model named `settings`.

Environment variables used:
- `MOCK_DATA_PATH` — JSON file holding patients, records, consents and
  transactions. Loaded once by `repo_data.MockDataRepo`.
- `HOST` / `PORT` — bind address when running `python main.py`.
- `CORS_ORIGINS` — comma separated list of allowed origins (`*` for any).
- `LOG_LEVEL` — root logging level.
- `DEFAULT_PAGE_LIMIT` / `MAX_PAGE_LIMIT` — patient list paging.
- `DEFAULT_TRANSACTION_LIMIT` / `MAX_TRANSACTION_LIMIT` — transaction list cap.

Example `.env`:
MOCK_DATA_PATH=/srv/consent-ledger/mock_data.json
PORT=5000
CORS_ORIGINS=http://localhost:3000

"""

from pathlib import Path
from typing import List
import os

from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()

DEFAULT_MOCK_DATA = Path(__file__).resolve().parent / "data" / "mock_data.json"


class Settings(BaseModel):
    """Typed settings container.

    All downstream code should import `settings` from this module. Use
    these attributes (not os.getenv) so tests can monkeypatch `settings`.
    """

    mock_data_path: str = os.getenv("MOCK_DATA_PATH", str(DEFAULT_MOCK_DATA))
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5000"))
    cors_origins: List[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
    ]
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    default_page_limit: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
    max_page_limit: int = int(os.getenv("MAX_PAGE_LIMIT", "100"))
    default_transaction_limit: int = int(os.getenv("DEFAULT_TRANSACTION_LIMIT", "20"))
    max_transaction_limit: int = int(os.getenv("MAX_TRANSACTION_LIMIT", "500"))


settings = Settings()
