# fleetdesk/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + hosted auth/storage reachability.
"""

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from fleetdesk.database import get_db
from fleetdesk.config import settings
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Hosted auth service reachability
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "auth_service": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    try:
        resp = requests.get(
            f"{settings.auth_url}/health",
            headers={"apikey": settings.SUPABASE_ANON_KEY},
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
        result["auth_service"] = "ok" if resp.status_code == 200 else f"http_{resp.status_code}"
        if resp.status_code != 200:
            result["status"] = "degraded"
    except requests.exceptions.Timeout:
        result["auth_service"] = "timeout"
        result["status"] = "degraded"
    except requests.exceptions.ConnectionError:
        result["auth_service"] = "unreachable"
        result["status"] = "degraded"

    return result
