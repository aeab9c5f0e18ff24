"""Health check endpoint with database connectivity check."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import VERSION, settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Session = Depends(get_db)) -> HealthResponse:
    """Service status, version and whether the database answers. Requires no token."""
    return HealthResponse(
        status="ok",
        version=VERSION,
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
    )
