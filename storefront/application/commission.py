"""Commission rates and calculations.

Everything here is pure: crediting balances or payouts happens elsewhere.
"""

import math
from types import MappingProxyType
from typing import Optional
from storefront.domain.errors import InvalidArgument
from storefront.domain.models import Order
from .schemas import CommissionBreakdown, CommissionLine, CommissionQuote

DEFAULT_RATE_KEY = "default"

COMMISSION_RATES = MappingProxyType({
    "electronics": 0.03,
    "fashion": 0.08,
    "beauty": 0.10,
    "digital": 0.15,
    "courses": 0.20,
    "services": 0.10,
    "real_estate": 0.02,
    "vehicles": 0.02,
    "food": 0.05,
    DEFAULT_RATE_KEY: 0.05,
})

def _category_key(category: Optional[str]) -> Optional[str]:
    if not category:
        return None
    return category.strip().lower().replace("-", "_").replace(" ", "_")

def commission_rate(category: Optional[str]) -> float:
    """Rate for ``category``, falling back to the default rate."""
    key = _category_key(category)
    if key is None or key not in COMMISSION_RATES:
        return COMMISSION_RATES[DEFAULT_RATE_KEY]
    return COMMISSION_RATES[key]

def calculate_commission(amount: float, category: Optional[str] = None) -> float:
    if not math.isfinite(amount) or amount < 0:
        raise InvalidArgument("Amount must be a finite, non-negative number")
    return amount * commission_rate(category)

def quote(amount: float, category: Optional[str] = None) -> CommissionQuote:
    return CommissionQuote(
        amount=amount,
        category=category,
        rate=commission_rate(category),
        commission=calculate_commission(amount, category),
    )

def calculate_order_commission(order: Order, affiliate_id: Optional[str] = None) -> CommissionBreakdown:
    """
    Commission for every line of ``order`` using the line's category snapshot.

    Earnings go to ``affiliate_id`` when the sale was referred, otherwise to
    the order's vendor.
    """
    lines = []
    for item in order.items:
        rate = commission_rate(item.category)
        lines.append(CommissionLine(
            product_id=item.product_id,
            category=item.category,
            amount=item.line_total,
            rate=rate,
            commission=item.line_total * rate,
        ))
    total_commission = sum(line.commission for line in lines)
    return CommissionBreakdown(
        order_id=order.id,
        beneficiary_id=affiliate_id or order.vendor_id,
        beneficiary_type="affiliate" if affiliate_id else "vendor",
        order_total=order.total_price,
        commission=total_commission,
        vendor_earnings=order.total_price - total_commission,
        lines=lines,
    )
