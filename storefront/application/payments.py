from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Protocol
import math
from shared.core import get_logger
from storefront.domain.errors import FailedPrecondition, GatewayError, Internal, InvalidArgument
from .orders import OrderService

logger = get_logger(__name__)

DEFAULT_ITEMS_DESCRIPTION = "Achat Boutique Union Digitale"
CLOSED_PAYMENT_STATUSES = {"paid"}
CLOSED_ORDER_STATUSES = {"cancelled"}

class CheckoutGateway(Protocol):
    def create_checkout_session(self, **params) -> str: ...

def to_minor_units(amount: float) -> int:
    """Convert a major-unit amount to integer cents, rounding half up (50.005 -> 5001)."""
    try:
        value = Decimal(str(amount)) * 100
    except InvalidOperation as e:
        raise InvalidArgument("Amount must be a number") from e
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

class PaymentLinkService:
    """Hosted checkout links for one-time orders and vendor subscriptions."""

    def __init__(self, gateway: Optional[CheckoutGateway], app_url: str):
        self.gateway = gateway
        self.app_url = app_url.rstrip("/")

    def _create_session(self, kind: str, params: dict) -> str:
        if self.gateway is None:
            raise FailedPrecondition("Payment service not configured on server")
        try:
            return self.gateway.create_checkout_session(**params)
        except GatewayError as e:
            logger.error(
                f"Checkout session creation failed: {e.message}",
                extra={'extra_fields': {'kind': kind, 'provider_code': e.code,
                                        'metadata': params.get("metadata")}}
            )
            raise Internal(f"Payment provider error: {e.message}") from e

    def create_payment_link(
        self,
        amount: float,
        currency: str,
        order_id: str,
        items_description: Optional[str] = None,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> str:
        if not isinstance(amount, (int, float)) or not math.isfinite(amount) or amount <= 0:
            raise InvalidArgument("Amount must be a positive number")
        if not currency or not order_id:
            raise InvalidArgument("currency and order_id are required")

        params = {
            "payment_method_types": ["card"],
            "line_items": [{
                "price_data": {
                    "currency": currency.lower(),
                    "product_data": {
                        "name": f"Union Digitale #{order_id}",
                        "description": items_description or DEFAULT_ITEMS_DESCRIPTION,
                    },
                    "unit_amount": to_minor_units(amount),
                },
                "quantity": 1,
            }],
            "mode": "payment",
            "success_url": success_url
            or f"{self.app_url}/order-confirmation/{order_id}?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": cancel_url or f"{self.app_url}/checkout?canceled=true",
            "metadata": {"orderId": order_id, "type": "order"},
        }
        url = self._create_session("order", params)
        logger.info(f"Payment link created for order {order_id}: {amount} {currency}")
        return url

    def create_vendor_subscription_link(self, vendor_id: str, email: str, price_id: str) -> str:
        if not vendor_id or not email or not price_id:
            raise InvalidArgument("vendor_id, email and price_id are required")
        params = {
            "mode": "subscription",
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "customer_email": email,
            "metadata": {"vendorId": vendor_id, "type": "vendor_subscription"},
            "success_url": f"{self.app_url}/admin/subscription?success=true&session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.app_url}/admin/subscription?canceled=true",
        }
        url = self._create_session("vendor_subscription", params)
        logger.info(f"Subscription link created for vendor {vendor_id}")
        return url

    def create_order_checkout_link(
        self,
        orders: OrderService,
        caller_id: Optional[str],
        order_id: str,
        currency: str = "usd",
    ) -> str:
        """Payment link for one of the caller's open orders, priced from the stored total."""
        order = orders.get_order(caller_id, order_id)
        if order.payment_status in CLOSED_PAYMENT_STATUSES:
            raise FailedPrecondition("Order already paid")
        if order.status in CLOSED_ORDER_STATUSES:
            raise FailedPrecondition("Order is cancelled")
        if not order.total_price or order.total_price <= 0:
            raise FailedPrecondition("Order has nothing to pay")
        description = ", ".join(
            f"{item.quantity} x {item.product_name or item.product_id}" for item in order.items
        )
        return self.create_payment_link(order.total_price, currency, order.id, description or None)
