from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from storefront.application.orders import OrderService
from storefront.application.payments import PaymentLinkService
from storefront.application.schemas import (
    Caller,
    CheckoutLinkRequest,
    PaymentLinkResponse,
    VendorSubscriptionRequest,
)
from storefront.domain.errors import Unauthenticated
from storefront.infrastructure.db import get_db
from .deps import caller_id, get_app_url, get_caller, get_checkout_gateway

router = APIRouter(prefix="/payments", tags=["payments"])

@router.post("/checkout-link", response_model=PaymentLinkResponse, status_code=201)
def create_checkout_link(
    payload: CheckoutLinkRequest,
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_caller),
    gateway=Depends(get_checkout_gateway),
    app_url: str = Depends(get_app_url),
):
    url = PaymentLinkService(gateway, app_url).create_order_checkout_link(
        OrderService(db), caller_id(caller), payload.order_id, payload.currency
    )
    return PaymentLinkResponse(url=url)

@router.post("/vendor-subscription", response_model=PaymentLinkResponse, status_code=201)
def create_vendor_subscription(
    payload: VendorSubscriptionRequest,
    caller: Optional[Caller] = Depends(get_caller),
    gateway=Depends(get_checkout_gateway),
    app_url: str = Depends(get_app_url),
):
    # The subscribing vendor is always the caller
    if caller is None:
        raise Unauthenticated("Must be authenticated")
    url = PaymentLinkService(gateway, app_url).create_vendor_subscription_link(
        caller.uid, payload.email, payload.price_id
    )
    return PaymentLinkResponse(url=url)
