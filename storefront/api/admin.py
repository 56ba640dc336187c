from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from storefront.application.metrics import MetricsService
from storefront.application.schemas import Caller, MetricsSummary
from storefront.domain.errors import PermissionDenied, Unauthenticated
from storefront.infrastructure.db import get_db
from .deps import get_caller

router = APIRouter(prefix="/admin", tags=["admin"])

def require_admin(caller: Optional[Caller] = Depends(get_caller)) -> Caller:
    if caller is None:
        raise Unauthenticated("Must be authenticated")
    if not caller.is_admin:
        raise PermissionDenied("Admin only")
    return caller

@router.get("/metrics", response_model=MetricsSummary)
def metrics_summary(db: Session = Depends(get_db), _: Caller = Depends(require_admin)):
    return MetricsService(db).summary()
