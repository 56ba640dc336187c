from fastapi import APIRouter
from storefront.application.commission import COMMISSION_RATES, quote
from storefront.application.schemas import CommissionQuote, CommissionQuoteRequest

router = APIRouter(prefix="/commissions", tags=["commissions"])

@router.get("/rates")
def list_rates() -> dict[str, float]:
    return dict(COMMISSION_RATES)

@router.post("/quote", response_model=CommissionQuote)
def quote_commission(payload: CommissionQuoteRequest):
    return quote(payload.amount, payload.category)
