from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from typing import Callable, Optional
import math
from shared.core import get_logger
from storefront.domain.errors import (
    FailedPrecondition,
    InvalidArgument,
    Internal,
    NotFound,
    PermissionDenied,
    Unauthenticated,
)
from storefront.domain.models import Order, OrderItem, Product, utcnow
from .schemas import (
    CartIssue,
    CartItem,
    CartValidation,
    CreateOrderRequest,
    CreateOrderResponse,
    OrderLine,
)

logger = get_logger(__name__)

MAX_CART_ITEMS = 50
MAX_QUANTITY = 999

def normalize_quantity(quantity) -> int:
    """Default a missing quantity to 1 and enforce the 1..999 range."""
    if quantity is None:
        return 1
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise InvalidArgument("Quantity must be a number")
    if not math.isfinite(quantity):
        raise InvalidArgument("Quantity must be a finite number")
    if quantity <= 0 or quantity > MAX_QUANTITY:
        raise InvalidArgument(f"Invalid quantity (must be 1-{MAX_QUANTITY})")
    if quantity != int(quantity):
        raise InvalidArgument("Quantity must be a whole number")
    return int(quantity)

def _valid_price(price) -> bool:
    return (
        isinstance(price, (int, float))
        and not isinstance(price, bool)
        and math.isfinite(price)
        and price >= 0
    )

class OrderService:
    """
    Server-side order creation.

    Prices always come from the catalog; a ``price`` field sent by the client
    is ignored. The catalog read and the order write are separate statements,
    so a price change between the two is not guarded against.
    """

    def __init__(self, db: Session, clock: Callable = utcnow):
        self.db = db
        self.clock = clock

    def _require_caller(self, caller_id: Optional[str]) -> str:
        if not caller_id:
            raise Unauthenticated("Must be authenticated to create an order")
        return caller_id

    def _load_products(self, product_ids: list[str]) -> dict[str, Product]:
        """Resolve every referenced product in a single read."""
        unique_ids = list(dict.fromkeys(product_ids))
        rows = self.db.scalars(select(Product).where(Product.id.in_(unique_ids))).all()
        return {product.id: product for product in rows}

    def create_order(self, caller_id: Optional[str], request: CreateOrderRequest) -> CreateOrderResponse:
        user_id = self._require_caller(caller_id)
        items = request.items
        if not items:
            raise InvalidArgument("Order must contain at least one item")
        if len(items) > MAX_CART_ITEMS:
            raise InvalidArgument(f"Order cannot contain more than {MAX_CART_ITEMS} items")

        quantities = [normalize_quantity(item.quantity) for item in items]
        products = self._load_products([item.product_id for item in items])

        lines: list[OrderItem] = []
        vendor_ids: set = set()
        has_physical = False
        for position, (item, quantity) in enumerate(zip(items, quantities)):
            product = products.get(item.product_id)
            if product is None:
                raise NotFound(f"Product {item.product_id} not found")
            if not product.is_active:
                raise FailedPrecondition(f"Product {product.name or product.id} is not available")
            if not _valid_price(product.price):
                raise FailedPrecondition(f"Product {product.id} has an invalid price")
            if product.product_type == "physical" and product.stock is not None and product.stock < quantity:
                raise FailedPrecondition(f"Insufficient stock for {product.name or product.id}")

            unit_price = float(product.price)
            vendor_ids.add(product.vendor_id)
            has_physical = has_physical or product.product_type == "physical"
            lines.append(OrderItem(
                position=position,
                product_id=product.id,
                variant_id=item.variant_id,
                quantity=quantity,
                unit_price=unit_price,
                line_total=unit_price * quantity,
                product_name=product.name,
                category=product.category,
                vendor_id=product.vendor_id,
            ))

        if len(vendor_ids) != 1 or None in vendor_ids:
            raise FailedPrecondition("Multi-vendor orders are not supported")

        total_price = sum(line.line_total for line in lines)
        details = request.customer_details
        order = Order(
            user_id=user_id,
            vendor_id=next(iter(vendor_ids)),
            total_price=total_price,
            status="pending",
            payment_status="pending",
            order_type="mixed" if has_physical else "digital",
            customer_name=details.name if details else None,
            customer_email=details.email if details else None,
            customer_phone=details.phone if details else None,
            created_at=self.clock(),
            items=lines,
        )

        try:
            self.db.add(order)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Order creation failed",
                exc_info=True,
                extra={'extra_fields': {'user_id': user_id, 'lines': len(lines), 'error': str(e)}}
            )
            raise Internal("Failed to create order") from e

        logger.info(
            f"Order created: {order.id}",
            extra={'extra_fields': {
                'order_id': order.id,
                'vendor_id': order.vendor_id,
                'total_price': total_price,
                'lines': len(lines),
            }}
        )
        return CreateOrderResponse(
            order_id=order.id,
            total_price=total_price,
            items=[
                OrderLine(
                    product_id=line.product_id,
                    name=line.product_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    line_total=line.line_total,
                )
                for line in lines
            ],
        )

    def validate_cart(self, caller_id: Optional[str], items: list[CartItem]) -> CartValidation:
        """Report cart problems without writing anything."""
        self._require_caller(caller_id)
        if not items:
            raise InvalidArgument("Cart is empty")

        products = self._load_products([item.product_id for item in items])
        issues = []
        for item in items:
            product = products.get(item.product_id)
            if product is None:
                issues.append(CartIssue(
                    product_id=item.product_id,
                    issue="not_found",
                    message="Product no longer available",
                ))
                continue
            if not product.is_active:
                issues.append(CartIssue(
                    product_id=item.product_id,
                    issue="inactive",
                    message="Product is no longer available",
                ))
            quantity = item.quantity if item.quantity is not None else 1
            if product.product_type == "physical" and product.stock is not None and product.stock < quantity:
                issues.append(CartIssue(
                    product_id=item.product_id,
                    issue="insufficient_stock",
                    message=f"Only {product.stock} available",
                    available_stock=product.stock,
                ))
        return CartValidation(valid=not issues, issues=issues)

    def get_order(self, caller_id: Optional[str], order_id: str) -> Order:
        user_id = self._require_caller(caller_id)
        order = self.db.scalars(
            select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        ).first()
        if order is None:
            raise NotFound("Order not found")
        if order.user_id != user_id:
            raise PermissionDenied("Order does not belong to you")
        return order

    def list_orders(self, caller_id: Optional[str]) -> list[Order]:
        user_id = self._require_caller(caller_id)
        return list(self.db.scalars(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
        ).all())
