from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from storefront.application.notifications import NotificationService
from storefront.application.schemas import Caller, SendWhatsAppRequest, SendWhatsAppResponse
from storefront.infrastructure.db import get_db
from .deps import caller_id, get_caller, get_messaging_gateway

router = APIRouter(prefix="/notifications", tags=["notifications"])

@router.post("/whatsapp", response_model=SendWhatsAppResponse)
def send_whatsapp(
    payload: SendWhatsAppRequest,
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_caller),
    gateway=Depends(get_messaging_gateway),
):
    return NotificationService(db, gateway).send_whatsapp(caller_id(caller), payload)
