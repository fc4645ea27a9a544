import logging
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from models import ConsentIn, ConsentUpdate, Counters, SignatureIn, StatsHistory
from repo_data import MockDataRepo
from service_health import HealthService
from service_stats import StatsService, parse_instant
from settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Consent Ledger Backend")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Instantiate the repo + services here so the routes remain thin. Tests
# swap them through `app.dependency_overrides`.
repo = MockDataRepo()
svc = HealthService(repo)
stats = StatsService(repo)


def get_health_service() -> HealthService:
    return svc


def get_stats_service() -> StatsService:
    return stats


router = APIRouter(prefix="/api")


@router.get("/health")
def health():
    return {"status": "ok", "message": "Backend API is running"}


@router.get("/health/stats", response_model=Counters)
def current_stats(service: StatsService = Depends(get_stats_service)):
    try:
        return service.get_current_stats()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Stats failed: {e}")


@router.get("/health/stats/history", response_model=StatsHistory)
def stats_history(
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
    service: StatsService = Depends(get_stats_service),
):
    for name, value in (("fromDate", from_date), ("toDate", to_date)):
        if value and parse_instant(value) is None:
            raise HTTPException(status_code=400, detail=f"Invalid {name}: {value}")
    try:
        return service.get_history(from_date, to_date)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Stats history failed: {e}")


@router.get("/patients")
def list_patients(
    page: int = 1,
    limit: Optional[int] = None,
    search: str = "",
    service: HealthService = Depends(get_health_service),
):
    try:
        return service.list_patients(page, limit, search)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Patient list failed: {e}")


@router.get("/patients/{patient_id}")
def get_patient(patient_id: str, service: HealthService = Depends(get_health_service)):
    try:
        return service.get_patient(patient_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Patient lookup failed: {e}")


@router.get("/patients/{patient_id}/records")
def get_patient_records(patient_id: str, service: HealthService = Depends(get_health_service)):
    try:
        return service.get_patient_records(patient_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Record lookup failed: {e}")


@router.get("/records")
def list_records(service: HealthService = Depends(get_health_service)):
    try:
        return {"records": service.list_records()}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Record list failed: {e}")


@router.get("/consents")
def list_consents(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    status: Optional[str] = None,
    service: HealthService = Depends(get_health_service),
):
    try:
        return {"consents": service.list_consents(patient_id, status)}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Consent list failed: {e}")


@router.get("/consents/{consent_id}")
def get_consent(consent_id: str, service: HealthService = Depends(get_health_service)):
    try:
        return service.get_consent(consent_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Consent lookup failed: {e}")


@router.post("/consents", status_code=201)
def create_consent(body: ConsentIn, service: HealthService = Depends(get_health_service)):
    try:
        return service.create_consent(body)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Consent create failed: {e}")


@router.patch("/consents/{consent_id}")
def update_consent(consent_id: str, body: ConsentUpdate, service: HealthService = Depends(get_health_service)):
    try:
        return service.update_consent(consent_id, body)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Consent update failed: {e}")


@router.get("/transactions")
def list_transactions(
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    limit: Optional[int] = None,
    service: HealthService = Depends(get_health_service),
):
    try:
        return {"transactions": service.list_transactions(wallet_address, limit)}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Transaction list failed: {e}")


@router.post("/verify-signature")
def verify_signature(body: SignatureIn, service: HealthService = Depends(get_health_service)):
    try:
        return service.verify_signature(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Signature check failed: {e}")


app.include_router(router)


if __name__ == "__main__":
    logger.info("API endpoints available at http://%s:%s/api", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)
