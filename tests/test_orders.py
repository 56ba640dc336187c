import math

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from storefront.application.orders import OrderService, normalize_quantity
from storefront.application.schemas import CartItem, CreateOrderRequest
from storefront.domain.errors import (
    FailedPrecondition,
    Internal,
    InvalidArgument,
    NotFound,
    PermissionDenied,
    Unauthenticated,
)
from storefront.domain.models import Order, OrderItem

def cart(*items, **kwargs) -> CreateOrderRequest:
    return CreateOrderRequest(items=[CartItem(**item) for item in items], **kwargs)

def order_count(db_session) -> int:
    return db_session.scalar(select(func.count(Order.id)))

def test_total_uses_catalog_prices_not_client_prices(db_session, make_product, clock):
    make_product("p1", price=10.0)
    make_product("p2", price=5.5)

    result = OrderService(db_session, clock).create_order("user-1", cart(
        {"productId": "p1", "quantity": 2, "price": 0.01},
        {"productId": "p2", "quantity": 3, "price": 0},
    ))

    assert result.total_price == pytest.approx(2 * 10.0 + 3 * 5.5)
    assert [line.unit_price for line in result.items] == [10.0, 5.5]
    order = db_session.get(Order, result.order_id)
    assert order.total_price == pytest.approx(36.5)
    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.vendor_id == "vendor-1"
    assert order.user_id == "user-1"
    assert order.created_at == clock.now
    assert [item.line_total for item in order.items] == [20.0, 16.5]

def test_missing_quantity_defaults_to_one(db_session, make_product):
    make_product("p1", price=12.0)

    result = OrderService(db_session).create_order("user-1", cart({"product_id": "p1"}))

    assert result.items[0].quantity == 1
    assert result.total_price == 12.0

def test_customer_details_and_variant_are_stored(db_session, make_product):
    make_product("p1", product_type="physical", stock=3)
    request = cart(
        {"productId": "p1", "variantId": "size-m"},
        customerDetails={"name": "Marie", "email": "marie@example.ht", "phone": "37001234"},
    )

    result = OrderService(db_session).create_order("user-1", request)

    order = db_session.get(Order, result.order_id)
    assert order.customer_name == "Marie"
    assert order.customer_phone == "37001234"
    assert order.order_type == "mixed"
    assert order.items[0].variant_id == "size-m"

def test_unauthenticated_caller_is_rejected(db_session, make_product):
    make_product("p1")
    with pytest.raises(Unauthenticated):
        OrderService(db_session).create_order(None, cart({"productId": "p1"}))

def test_empty_cart_is_rejected(db_session):
    with pytest.raises(InvalidArgument):
        OrderService(db_session).create_order("user-1", CreateOrderRequest(items=[]))

def test_cart_size_is_capped(db_session, make_product):
    make_product("p1")
    items = [{"productId": "p1"}] * 51
    with pytest.raises(InvalidArgument):
        OrderService(db_session).create_order("user-1", cart(*items))

def test_unknown_product_fails_without_writing(db_session, make_product):
    make_product("p1")

    with pytest.raises(NotFound) as excinfo:
        OrderService(db_session).create_order("user-1", cart({"productId": "p1"}, {"productId": "ghost"}))

    assert "ghost" in excinfo.value.message
    assert order_count(db_session) == 0

def test_multi_vendor_cart_fails_without_writing(db_session, make_product):
    make_product("p1", vendor_id="vendor-1")
    make_product("p2", vendor_id="vendor-2")

    with pytest.raises(FailedPrecondition) as excinfo:
        OrderService(db_session).create_order("user-1", cart({"productId": "p1"}, {"productId": "p2"}))

    assert "Multi-vendor" in excinfo.value.message
    assert order_count(db_session) == 0

def test_inactive_product_fails(db_session, make_product):
    make_product("p1", is_active=False)
    with pytest.raises(FailedPrecondition):
        OrderService(db_session).create_order("user-1", cart({"productId": "p1"}))
    assert order_count(db_session) == 0

@pytest.mark.parametrize("price", [None, -1.0])
def test_invalid_catalog_price_fails(db_session, make_product, price):
    make_product("p1", price=price)
    with pytest.raises(FailedPrecondition):
        OrderService(db_session).create_order("user-1", cart({"productId": "p1"}))

@pytest.mark.parametrize("quantity", [0, -1, 1000, math.nan, math.inf, 2.5])
def test_invalid_quantities_fail(db_session, make_product, quantity):
    make_product("p1")
    with pytest.raises(InvalidArgument):
        OrderService(db_session).create_order("user-1", cart({"productId": "p1", "quantity": quantity}))
    assert order_count(db_session) == 0

def test_quantity_bounds():
    assert normalize_quantity(None) == 1
    assert normalize_quantity(1) == 1
    assert normalize_quantity(999) == 999
    assert normalize_quantity(3.0) == 3

def test_persistence_failure_surfaces_as_internal(db_session, make_product, monkeypatch):
    make_product("p1")

    def broken_commit():
        raise OperationalError("INSERT INTO orders", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", broken_commit)
    with pytest.raises(Internal):
        OrderService(db_session).create_order("user-1", cart({"productId": "p1"}))

    monkeypatch.undo()
    assert order_count(db_session) == 0
    assert db_session.scalar(select(func.count(OrderItem.id))) == 0

def test_validate_cart_reports_issues(db_session, make_product):
    make_product("p1")
    make_product("p2", is_active=False)
    make_product("p3", product_type="physical", stock=1)

    result = OrderService(db_session).validate_cart("user-1", [
        CartItem(productId="p1"),
        CartItem(productId="p2"),
        CartItem(productId="p3", quantity=4),
        CartItem(productId="missing"),
    ])

    assert not result.valid
    assert [(issue.product_id, issue.issue) for issue in result.issues] == [
        ("p2", "inactive"),
        ("p3", "insufficient_stock"),
        ("missing", "not_found"),
    ]
    assert result.issues[1].available_stock == 1
    assert order_count(db_session) == 0

def test_validate_cart_accepts_good_cart(db_session, make_product):
    make_product("p1")
    assert OrderService(db_session).validate_cart("user-1", [CartItem(productId="p1")]).valid

def test_get_order_is_owner_only(db_session, make_product):
    make_product("p1")
    service = OrderService(db_session)
    order_id = service.create_order("user-1", cart({"productId": "p1"})).order_id

    assert service.get_order("user-1", order_id).id == order_id
    with pytest.raises(PermissionDenied):
        service.get_order("user-2", order_id)
    with pytest.raises(NotFound):
        service.get_order("user-1", "does-not-exist")

def test_list_orders_newest_first(db_session, make_product, clock):
    make_product("p1")
    service = OrderService(db_session, clock)
    first = service.create_order("user-1", cart({"productId": "p1"})).order_id
    clock.advance(30)
    second = service.create_order("user-1", cart({"productId": "p1"})).order_id
    service.create_order("user-2", cart({"productId": "p1"}))

    assert [order.id for order in service.list_orders("user-1")] == [second, first]

def test_insufficient_stock_fails_without_writing(db_session, make_product):
    make_product("p1", product_type="physical", stock=1)
    service = OrderService(db_session)

    assert not service.validate_cart("user-1", [CartItem(productId="p1", quantity=5)]).valid
    with pytest.raises(FailedPrecondition) as excinfo:
        service.create_order("user-1", cart({"productId": "p1", "quantity": 5}))

    assert "Insufficient stock" in excinfo.value.message
    assert order_count(db_session) == 0

def test_stock_only_limits_physical_products(db_session, make_product):
    make_product("p1", product_type="digital", stock=0)
    make_product("p2", product_type="physical", stock=None)

    result = OrderService(db_session).create_order("user-1", cart(
        {"productId": "p1", "quantity": 2},
        {"productId": "p2", "quantity": 3},
    ))

    assert [line.quantity for line in result.items] == [2, 3]
