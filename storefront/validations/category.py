# storefront/validations/category.py
from typing import ClassVar, Optional

from pydantic import Field, field_validator

from .base import BaseSchema, check_slug


class CategorySchema(BaseSchema):
    name: str = Field(min_length=1, max_length=50)
    slug: str = Field(min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    is_active: bool = True
    sort_order: int = 0

    @field_validator('slug')
    @classmethod
    def slug_pattern(cls, value):
        return check_slug(value)


class UpdateCategorySchema(CategorySchema):
    partial: ClassVar[bool] = True

    name: str = Field(default=None, min_length=1, max_length=50)
    slug: str = Field(default=None, min_length=1, max_length=50)
    is_active: bool = None
    sort_order: int = None
