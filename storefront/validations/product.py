# storefront/validations/product.py
from typing import ClassVar, Optional

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from .base import BaseSchema, check_slug, check_url, check_uuid


class _ProductRules(BaseSchema):
    """Per-field rules shared by the full and the partial product schema."""

    @field_validator('slug', check_fields=False)
    @classmethod
    def slug_pattern(cls, value):
        return check_slug(value)

    @field_validator('cover_image', check_fields=False)
    @classmethod
    def cover_image_url(cls, value):
        if value is None or value == '':
            return value
        return check_url(value, 'invalid image url')

    @field_validator('category_id', check_fields=False)
    @classmethod
    def category_id_is_uuid(cls, value):
        if value is None:
            return value
        return check_uuid(value, 'invalid category id')

    @field_validator('max_quantity', check_fields=False)
    @classmethod
    def max_not_below_min(cls, value, info):
        minimum = info.data.get('min_quantity')
        if value is not None and minimum is not None and value < minimum:
            raise PydanticCustomError(
                'quantity_range', 'max quantity cannot be less than min quantity')
        return value


class ProductSchema(_ProductRules):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = None
    price: float = Field(ge=0)
    min_quantity: int = Field(ge=1)
    max_quantity: int = Field(ge=1)
    stock: int = Field(default=0, ge=0)
    category_id: Optional[str] = None
    cover_image: Optional[str] = None
    is_active: bool = True
    is_featured: bool = False
    sort_order: int = 0


CreateProductSchema = ProductSchema


class UpdateProductSchema(_ProductRules):
    # Omitted fields are left alone; an explicit null is only accepted where
    # the full schema accepts one.
    partial: ClassVar[bool] = True

    name: str = Field(default=None, min_length=1, max_length=100)
    slug: str = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    content: Optional[str] = None
    price: float = Field(default=None, ge=0)
    min_quantity: int = Field(default=None, ge=1)
    max_quantity: int = Field(default=None, ge=1)
    stock: int = Field(default=None, ge=0)
    category_id: Optional[str] = None
    cover_image: Optional[str] = None
    is_active: bool = None
    is_featured: bool = None
    sort_order: int = None
