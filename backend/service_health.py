"""
Service / facade layer for patients, records, consents and transactions.

This module implements business rules before any repository interaction.
All write paths go through this service so validation stays in one place.

Key responsibilities:
- clamp paging and list limits to configured maxima
- validate consent creation and status transitions
- stamp server-side fields (`id`, `status`, `createdAt`, `updatedAt`)
- stub wallet signature verification (no chain access)

Errors:
- `ValueError` for invalid input
- `LookupError` for unknown ids
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models import ConsentIn, ConsentUpdate, SignatureIn
from repo_data import MockDataRepo
from service_stats import format_instant
from settings import settings

logger = logging.getLogger(__name__)


CONSENT_STATUSES = {"active", "pending", "revoked"}

PATIENT_SEARCH_FIELDS = ("name", "id", "email")


class HealthService:
    """Business rules + validation for the CRUD surface.

    Example usage:
        repo = MockDataRepo()
        svc = HealthService(repo)
        svc.create_consent(ConsentIn(patientId="patient-001", purpose="Research"))
    """

    def __init__(self, repo: MockDataRepo):
        self.repo = repo

    # patients / records

    def list_patients(self, page: int = 1, limit: Optional[int] = None, search: str = "") -> Dict[str, Any]:
        """Search and page through patients.

        `search` is a case-insensitive substring match against name, id and
        email. Pages are 1-based; a page past the end returns no patients.
        """

        page = max(1, page)
        limit = limit if limit is not None else settings.default_page_limit
        limit = max(1, min(limit, settings.max_page_limit))

        patients = self.repo.load().patients
        term = (search or "").strip().lower()
        if term:
            patients = [p for p in patients if _matches(p, term)]

        total = len(patients)
        start = (page - 1) * limit
        return {
            "patients": patients[start:start + limit],
            "pagination": {
                "currentPage": page,
                "totalPages": math.ceil(total / limit),
                "total": total,
                "limit": limit,
            },
        }

    def get_patient(self, patient_id: str) -> Dict[str, Any]:
        patient = self.repo.fetch_patient(patient_id)
        if patient is None:
            raise LookupError(f"Patient not found: {patient_id}")
        return patient

    def get_patient_records(self, patient_id: str) -> List[Dict[str, Any]]:
        self.get_patient(patient_id)
        return self.repo.fetch_records_for_patient(patient_id)

    def list_records(self) -> List[Dict[str, Any]]:
        return self.repo.load().records

    # consents

    def list_consents(self, patient_id: Optional[str] = None, status: Optional[str] = None) -> List[Dict[str, Any]]:
        consents = self.repo.load().consents
        if patient_id:
            consents = [c for c in consents if c.get("patientId") == patient_id]
        if status:
            consents = [c for c in consents if c.get("status") == status]
        return consents

    def get_consent(self, consent_id: str) -> Dict[str, Any]:
        consent = self.repo.fetch_consent(consent_id)
        if consent is None:
            raise LookupError(f"Consent not found: {consent_id}")
        return consent

    def create_consent(self, body: ConsentIn) -> Dict[str, Any]:
        """Validate and store a new pending consent.

        Raises:
        - `ValueError` if `patientId` or `purpose` is blank
        - `LookupError` if the patient does not exist
        """

        patient_id = body.patient_id.strip()
        purpose = body.purpose.strip()
        if not patient_id or not purpose:
            raise ValueError("patientId and purpose are required")

        self.get_patient(patient_id)

        consent = {
            "id": f"consent-{uuid.uuid4().hex[:8]}",
            "patientId": patient_id,
            "purpose": purpose,
            "status": "pending",
            "walletAddress": body.wallet_address,
            "signature": body.signature,
            "createdAt": _now_iso(),
        }
        self.repo.insert_consent(consent)
        logger.info("Created consent %s for patient %s", consent["id"], patient_id)
        return consent

    def update_consent(self, consent_id: str, body: ConsentUpdate) -> Dict[str, Any]:
        if body.status not in CONSENT_STATUSES:
            raise ValueError(
                f"Invalid status: {body.status} (expected one of {', '.join(sorted(CONSENT_STATUSES))})"
            )

        updated = self.repo.update_consent(
            consent_id, {"status": body.status, "updatedAt": _now_iso()}
        )
        if updated is None:
            raise LookupError(f"Consent not found: {consent_id}")
        logger.info("Consent %s set to %s", consent_id, body.status)
        return updated

    # transactions / signatures

    def list_transactions(self, wallet_address: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Transactions touching `wallet_address` (substring, either side), capped at `limit`."""

        limit = limit if limit is not None else settings.default_transaction_limit
        limit = max(1, min(limit, settings.max_transaction_limit))

        transactions = self.repo.load().transactions
        if wallet_address:
            needle = wallet_address.lower()
            transactions = [
                t for t in transactions
                if needle in str(t.get("from", "")).lower() or needle in str(t.get("to", "")).lower()
            ]
        return transactions[:limit]

    def verify_signature(self, body: SignatureIn) -> Dict[str, Any]:
        # Stub: a real implementation would recover the signer from the
        # signature and compare it to `address`.
        if not body.message or not body.signature or not body.address:
            raise ValueError("Missing required fields")

        return {
            "valid": bool(body.signature),
            "address": body.address,
            "message": "Signature verified successfully",
        }


def _matches(patient: Dict[str, Any], term: str) -> bool:
    return any(term in str(patient.get(f) or "").lower() for f in PATIENT_SEARCH_FIELDS)


def _now_iso() -> str:
    return format_instant(datetime.now(timezone.utc))
