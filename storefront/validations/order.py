# storefront/validations/order.py
from typing import Literal, Optional, get_args

from pydantic import EmailStr, Field, StrictInt, field_validator
from pydantic_core import PydanticCustomError

from .base import BaseSchema, check_uuid

PaymentMethod = Literal['ldc']
OrderStatus = Literal['pending', 'paid', 'completed', 'cancelled', 'refunded', 'expired']

PAYMENT_METHODS = get_args(PaymentMethod)
ORDER_STATUSES = get_args(OrderStatus)
DEFAULT_PAYMENT_METHOD = 'ldc'

MIN_ORDER_QUANTITY = 1
MAX_ORDER_QUANTITY = 100


class CreateOrderSchema(BaseSchema):
    product_id: str
    quantity: StrictInt = Field(ge=MIN_ORDER_QUANTITY, le=MAX_ORDER_QUANTITY)
    payment_method: PaymentMethod = DEFAULT_PAYMENT_METHOD
    email: Optional[EmailStr] = None
    query_password: Optional[str] = Field(default=None, min_length=6, max_length=32)

    @field_validator('product_id', mode='before')
    @classmethod
    def product_id_is_uuid(cls, value):
        return check_uuid(value, 'invalid product id')


class CheckoutSchema(CreateOrderSchema):
    """What the storefront submits: contact email and query password are required."""
    email: EmailStr
    query_password: str = Field(min_length=6, max_length=32)
    confirm_password: Optional[str] = None

    @field_validator('confirm_password')
    @classmethod
    def passwords_match(cls, value, info):
        if value is not None and value != info.data.get('query_password'):
            raise PydanticCustomError('password_mismatch', 'passwords do not match')
        return value


class UpdateOrderStatusSchema(BaseSchema):
    order_id: str
    status: OrderStatus
    admin_remark: Optional[str] = Field(default=None, max_length=500)

    @field_validator('order_id', mode='before')
    @classmethod
    def order_id_is_uuid(cls, value):
        return check_uuid(value, 'invalid order id')


class OrderQuerySchema(BaseSchema):
    order_no: str = Field(min_length=1, max_length=64)
    query_password: str = Field(min_length=1)
