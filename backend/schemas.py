from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional

# Each record class => one collection, lowercased name


class Product(BaseModel):
    name: str
    description: str = ""
    category: str = ""
    icon: str = ""
    price: float = Field(ge=0, allow_inf_nan=False)
    image: str = ""
    message: str = ""


class ProductOut(Product):
    id: str


class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class CartLine(CartItem):
    product: ProductOut


class Customer(BaseModel):
    name: str = ""
    email: str = ""


class OrderItem(BaseModel):
    """Product snapshot taken at checkout."""

    product_id: str
    name: str
    price: float
    quantity: int = Field(ge=1)


class Order(BaseModel):
    items: list[OrderItem]
    total: float = Field(ge=0)
    customer: Customer
    status: str = "pending"
    payment_method: Optional[str] = None
    payment_intent_id: Optional[str] = None
    paypal_order_id: Optional[str] = None


class OrderOut(Order):
    id: str
    created_at: Optional[datetime] = None


class StoreConfig(BaseModel):
    stripe_secret_key: str = ""
    stripe_publishable_key: str = ""
    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    gmail_user: str = ""
    gmail_pass: str = ""


class ConfigUpdate(BaseModel):
    stripe_secret_key: Optional[str] = None
    stripe_publishable_key: Optional[str] = None
    paypal_client_id: Optional[str] = None
    paypal_client_secret: Optional[str] = None
    gmail_user: Optional[str] = None
    gmail_pass: Optional[str] = None


# Request bodies

class CartProductIn(BaseModel):
    product_id: str


class AmountIn(BaseModel):
    total: float = Field(gt=0)


class PayPalCaptureIn(BaseModel):
    order_id: str


class StripeConfirmIn(BaseModel):
    payment_intent_id: str


class FinalizeOrderIn(BaseModel):
    name: str = ""
    email: str = ""
    payment_method: Optional[str] = None
    payment_intent_id: Optional[str] = None
    paypal_order_id: Optional[str] = None

    @field_validator("name", "email")
    @classmethod
    def single_line(cls, value: str) -> str:
        # Both end up in mail headers
        if "\r" in value or "\n" in value:
            raise ValueError("must not contain line breaks")
        return value.strip()


class LoginIn(BaseModel):
    password: str


class ChangePasswordIn(BaseModel):
    current: str
    new_password: str


class OrderStatusIn(BaseModel):
    status: str = Field(min_length=1)


# Responses

class SuccessOut(BaseModel):
    success: bool = True


class LoginOut(SuccessOut):
    first_time: bool = False


class FinalizeOrderOut(SuccessOut):
    order_id: str


class PayPalConfigOut(BaseModel):
    client_id: str


class StripeConfigOut(BaseModel):
    publishable_key: str


class PayPalOrderOut(BaseModel):
    id: str


class StripeIntentOut(BaseModel):
    client_secret: str
    id: Optional[str] = None


class CaptureOut(SuccessOut):
    status: str = ""
