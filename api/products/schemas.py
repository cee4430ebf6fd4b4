"""
Pydantic schemas for product payloads.

Both models run in strict mode: "5" is not a stock count and `true` is not a
price. Validation messages are produced in `validation.py`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Column bounds: stock is int4, price is numeric(10,2).
MAX_STOCK = 2_147_483_647
PRICE_LIMIT = 10**8

_STRICT = ConfigDict(strict=True, extra="forbid", str_strip_whitespace=True)


class ProductCreate(BaseModel):
    model_config = _STRICT

    name: str = Field(..., min_length=1, max_length=255)
    mark: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    price: float = Field(..., ge=0, lt=PRICE_LIMIT, allow_inf_nan=False)
    stock: int = Field(..., ge=0, le=MAX_STOCK)
    image_url: str | None = Field(default=None, max_length=2048)


class ProductUpdate(BaseModel):
    """
    Partial update: only fields present in the payload are validated and written.
    """

    model_config = _STRICT

    name: str | None = Field(default=None, min_length=1, max_length=255)
    mark: str | None = Field(default=None, min_length=1, max_length=255)
    category: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    price: float | None = Field(default=None, ge=0, lt=PRICE_LIMIT, allow_inf_nan=False)
    stock: int | None = Field(default=None, ge=0, le=MAX_STOCK)
    image_url: str | None = Field(default=None, max_length=2048)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


# Columns that may never be set to NULL through an update.
NON_NULLABLE_FIELDS = ("name", "mark", "category", "price", "stock")
