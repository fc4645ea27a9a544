"""
Pydantic models used across the backend.

Request bodies are validated at the FastAPI route boundary and reused in
the service layer. The stats models are the response shapes of the
`/health/stats*` routes; they serialise with the camelCase keys the
front end expects (`model_dump(by_alias=True)`).

Guidelines:
- Mock entities (patients, records, consents, transactions) stay plain
    dicts. The mock file is heterogeneous and the API echoes it as-is.
- Keep models minimal and stable.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional, Tuple
from datetime import datetime


EventKind = Literal["patient", "record", "consent", "transaction"]


class HealthData(BaseModel):
    """The four collections served by a data provider."""

    patients: List[Dict[str, Any]] = Field(default_factory=list)
    records: List[Dict[str, Any]] = Field(default_factory=list)
    consents: List[Dict[str, Any]] = Field(default_factory=list)
    transactions: List[Dict[str, Any]] = Field(default_factory=list)


class Event(BaseModel):
    """A timestamped occurrence derived from one entity.

    `status` is only set for consent events and holds the consent status
    as it was when the event was extracted.
    """

    timestamp: datetime
    kind: EventKind
    status: Optional[str] = None


class Counters(BaseModel):
    """The six platform counters, shared by current stats and snapshots."""

    model_config = ConfigDict(populate_by_name=True)

    total_patients: int = Field(0, alias="totalPatients")
    total_records: int = Field(0, alias="totalRecords")
    total_consents: int = Field(0, alias="totalConsents")
    active_consents: int = Field(0, alias="activeConsents")
    pending_consents: int = Field(0, alias="pendingConsents")
    total_transactions: int = Field(0, alias="totalTransactions")

    def counter_values(self) -> Tuple[int, int, int, int, int, int]:
        """Counter values in a fixed order, used for plateau comparison."""
        return (
            self.total_patients,
            self.total_records,
            self.total_consents,
            self.active_consents,
            self.pending_consents,
            self.total_transactions,
        )


class Snapshot(Counters):
    """Cumulative counters right after one event.

    `timestamp` is the event instant as an ISO-8601 UTC string
    (e.g. `2024-01-15T10:30:00.000Z`).
    """

    timestamp: str


class StatsHistory(BaseModel):
    history: List[Snapshot] = Field(default_factory=list)


class ConsentIn(BaseModel):
    """Body of `POST /consents`. Service enforces required fields."""

    model_config = ConfigDict(populate_by_name=True)

    patient_id: str = Field("", alias="patientId")
    purpose: str = ""
    wallet_address: Optional[str] = Field(None, alias="walletAddress")
    signature: Optional[str] = None


class ConsentUpdate(BaseModel):
    """Body of `PATCH /consents/{id}`. Only the status may change."""

    status: str


class SignatureIn(BaseModel):
    message: str = ""
    signature: str = ""
    address: str = ""
