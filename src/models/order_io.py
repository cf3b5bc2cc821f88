"""
Typed Pydantic models for the order target.

The pipeline works on plain document trees; once a run is valid, the
service layer converts ``finalOutput`` into these models so callers get a
typed value instead of a dict.
"""
from __future__ import annotations

from datetime import date
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

PaymentMethod = Literal["CREDIT_CARD", "DEBIT_CARD", "PAYPAL", "BANK_TRANSFER", "CRYPTOCURRENCY"]


class OrderItem(BaseModel):
    """A single order line."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_id: str = Field(..., alias="productId", min_length=1)
    product_name: str = Field(..., alias="productName", min_length=1)
    quantity: int = Field(..., ge=1, le=1000)
    unit_price: float = Field(..., alias="unitPrice", ge=0.01)


class ShippingAddress(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=2, max_length=2)
    zip_code: str = Field(..., alias="zipCode", pattern=r"^\d{5}(-\d{4})?$")
    country: str = Field(..., min_length=2, max_length=2)


class OrderRequest(BaseModel):
    """
    Order produced by the LLM after validation and recovery.

    Field aliases keep the camel-case wire names the model is prompted with.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    order_id: str = Field(..., alias="orderId")
    customer_email: str = Field(..., alias="customerEmail")
    order_date: date = Field(..., alias="orderDate")
    items: List[OrderItem] = Field(..., min_length=1, max_length=50)
    total_amount: float = Field(..., alias="totalAmount", ge=0.01, le=999999.99)
    shipping_address: ShippingAddress = Field(..., alias="shippingAddress")
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
