# storefront/validations/__init__.py
from pydantic import Field

from .base import BaseSchema, ParseResult, safe_parse
from .announcement import AnnouncementSchema, UpdateAnnouncementSchema, parse_local_datetime
from .category import CategorySchema, UpdateCategorySchema
from .order import (
    DEFAULT_PAYMENT_METHOD,
    ORDER_STATUSES,
    PAYMENT_METHODS,
    CheckoutSchema,
    CreateOrderSchema,
    OrderQuerySchema,
    UpdateOrderStatusSchema,
)
from .product import CreateProductSchema, ProductSchema, UpdateProductSchema


class LoginSchema(BaseSchema):
    password: str = Field(min_length=1)


__all__ = [
    'AnnouncementSchema',
    'CategorySchema',
    'CheckoutSchema',
    'CreateOrderSchema',
    'CreateProductSchema',
    'DEFAULT_PAYMENT_METHOD',
    'LoginSchema',
    'ORDER_STATUSES',
    'OrderQuerySchema',
    'PAYMENT_METHODS',
    'ParseResult',
    'ProductSchema',
    'UpdateAnnouncementSchema',
    'UpdateCategorySchema',
    'UpdateOrderStatusSchema',
    'UpdateProductSchema',
    'parse_local_datetime',
    'safe_parse',
]
