from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

class Caller(BaseModel):
    uid: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

class _Payload(BaseModel):
    # Accept the web client's camelCase keys as well as snake_case
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

class CartItem(_Payload):
    product_id: str = Field(alias="productId", min_length=1)
    # Validated by OrderService so that 0, negatives and NaN map to invalid-argument
    quantity: Optional[float] = None
    variant_id: Optional[str] = Field(default=None, alias="variantId")
    # Client-submitted price, accepted and ignored
    price: Optional[float] = None

class CustomerDetails(_Payload):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

class CreateOrderRequest(_Payload):
    items: list[CartItem] = []
    customer_details: Optional[CustomerDetails] = Field(default=None, alias="customerDetails")

class ValidateCartRequest(_Payload):
    items: list[CartItem] = []

class OrderLine(BaseModel):
    product_id: str
    name: Optional[str] = None
    unit_price: float
    quantity: int
    line_total: float

class CreateOrderResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    order_id: str = Field(alias="orderId")
    total_price: float = Field(alias="totalPrice")
    items: list[OrderLine]

class CartIssue(BaseModel):
    product_id: str
    issue: str  # "not_found", "inactive", "insufficient_stock"
    message: str
    available_stock: Optional[int] = None

class CartValidation(BaseModel):
    valid: bool
    issues: list[CartIssue]

class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    product_id: str
    variant_id: Optional[str] = None
    quantity: int
    unit_price: float
    line_total: float
    product_name: Optional[str] = None
    category: Optional[str] = None

class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    user_id: str
    vendor_id: str
    total_price: float
    status: str
    payment_status: str
    order_type: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    created_at: datetime
    items: list[OrderItemRead]

class CommissionQuoteRequest(BaseModel):
    amount: float
    category: Optional[str] = None

class CommissionQuote(BaseModel):
    amount: float
    category: Optional[str] = None
    rate: float
    commission: float

class CommissionLine(BaseModel):
    product_id: str
    category: Optional[str] = None
    amount: float
    rate: float
    commission: float

class CommissionBreakdown(BaseModel):
    order_id: str
    beneficiary_id: str
    beneficiary_type: str  # "affiliate" or "vendor"
    order_total: float
    commission: float
    vendor_earnings: float
    lines: list[CommissionLine]

class WhatsAppMessageData(BaseModel):
    model_config = ConfigDict(extra="allow")
    message: Optional[str] = None

class SendWhatsAppRequest(BaseModel):
    # Bounded by the notifications audit columns
    to: Optional[str] = Field(default=None, max_length=32)
    template: Optional[str] = Field(default=None, max_length=100)
    data: Optional[WhatsAppMessageData] = None

class SendWhatsAppResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    success: bool
    status: str
    provider_reference: Optional[str] = None
    # Field name the web client reads
    twilio_sid: Optional[str] = Field(default=None, alias="twilioSid")
    message: str

class CheckoutLinkRequest(_Payload):
    order_id: str = Field(alias="orderId", min_length=1)
    currency: str = "usd"

class VendorSubscriptionRequest(_Payload):
    email: str
    price_id: str = Field(alias="priceId", min_length=1)

class PaymentLinkResponse(BaseModel):
    url: str

class MetricsSummary(BaseModel):
    orders_total: int
    orders_by_status: dict[str, int]
    orders_pending_payment: int
    paid_revenue: float
    notifications_sent: int
    notifications_failed: int
    generated_at: datetime
