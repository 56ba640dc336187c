from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from storefront.application.commission import calculate_order_commission
from storefront.application.orders import OrderService
from storefront.application.schemas import (
    Caller,
    CartValidation,
    CommissionBreakdown,
    CreateOrderRequest,
    CreateOrderResponse,
    OrderRead,
    ValidateCartRequest,
)
from storefront.infrastructure.db import get_db
from .deps import caller_id, get_caller

router = APIRouter(prefix="/orders", tags=["orders"])

@router.post("/", response_model=CreateOrderResponse, status_code=201)
def create_order(
    payload: CreateOrderRequest,
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_caller),
):
    """Create an order priced from the catalog."""
    return OrderService(db).create_order(caller_id(caller), payload)

@router.post("/validate-cart", response_model=CartValidation)
def validate_cart(
    payload: ValidateCartRequest,
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_caller),
):
    return OrderService(db).validate_cart(caller_id(caller), payload.items)

@router.get("/", response_model=list[OrderRead])
def list_orders(db: Session = Depends(get_db), caller: Optional[Caller] = Depends(get_caller)):
    return OrderService(db).list_orders(caller_id(caller))

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: str, db: Session = Depends(get_db), caller: Optional[Caller] = Depends(get_caller)):
    return OrderService(db).get_order(caller_id(caller), order_id)

@router.get("/{order_id}/commission", response_model=CommissionBreakdown)
def get_order_commission(
    order_id: str,
    affiliate_id: Optional[str] = Query(None, max_length=128),
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_caller),
):
    order = OrderService(db).get_order(caller_id(caller), order_id)
    return calculate_order_commission(order, affiliate_id)
