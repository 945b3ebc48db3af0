from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date

from pricebook.config.settings import settings


class PriceRow(BaseModel):
    """pricehist row as embedded in a product select."""
    effdate: date
    unitprice: Optional[float] = None


class ProductRow(BaseModel):
    """product row as returned by Supabase, with its embedded price points."""
    prodcode: str
    description: Optional[str] = None
    unit: Optional[str] = None
    deleted: bool = False
    pricehist: List[PriceRow] = []

    @field_validator("description", "unit", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("deleted", mode="before")
    @classmethod
    def null_is_not_deleted(cls, value):
        return bool(value) if value is not None else False

    @field_validator("pricehist", mode="before")
    @classmethod
    def null_is_empty(cls, value):
        return value or []


def latest_price_point(points: List[PriceRow]) -> Optional[PriceRow]:
    """Priced point with the greatest effective date; on equal dates the row the backend returned last wins."""
    latest = None
    for point in points:
        if point.unitprice is None:
            continue
        if latest is None or point.effdate >= latest.effdate:
            latest = point
    return latest


def format_price(price: Optional[float]) -> str:
    if price is None:
        return "N/A"
    return f"{settings.currency_symbol}{price:,.2f}"


class ProductWithPrice(BaseModel):
    code: str
    description: str = ""
    unit: str = ""
    deleted: bool = False
    current_price: Optional[float] = None
    current_price_date: Optional[date] = None
    current_price_display: str = "N/A"

    @classmethod
    def from_row(cls, row: ProductRow) -> "ProductWithPrice":
        latest = latest_price_point(row.pricehist)
        current_price = latest.unitprice if latest else None
        return cls(
            code=row.prodcode,
            description=row.description or "",
            unit=row.unit or "",
            deleted=row.deleted,
            current_price=current_price,
            current_price_date=latest.effdate if latest else None,
            current_price_display=format_price(current_price),
        )

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over code, description and unit"""
        query = query.strip().lower()
        if not query:
            return True
        return (
            query in self.code.lower()
            or query in self.description.lower()
            or query in self.unit.lower()
        )


# Codes appear as a path segment in /products/{code}, so "/" and whitespace are excluded.
PRODUCT_CODE_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9._-]*$"
# Fixed routes under /products that would shadow a product with the same code
RESERVED_PRODUCT_CODES = {"summary", "versions"}


class ProductCreate(BaseModel):
    code: str = Field(min_length=1, max_length=32, pattern=PRODUCT_CODE_PATTERN)
    description: str = Field(min_length=1)
    unit: str = ""
    initial_price: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)

    @field_validator("code", "description", "unit", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("code")
    @classmethod
    def not_reserved(cls, value: str) -> str:
        if value.lower() in RESERVED_PRODUCT_CODES:
            raise ValueError(f"'{value}' is reserved")
        return value


class ProductUpdate(BaseModel):
    """Editable fields. The product code is immutable, so it is rejected here."""
    description: Optional[str] = None
    unit: Optional[str] = None

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def require_a_change(self):
        if self.description is not None:
            self.description = self.description.strip()
            if not self.description:
                raise ValueError("description cannot be blank")
        if self.unit is not None:
            self.unit = self.unit.strip()
        if self.description is None and self.unit is None:
            raise ValueError("Provide description and/or unit")
        return self


class PriceChange(BaseModel):
    code: str
    description: str
    previous_price: float
    latest_price: float
    change: float
    percent_change: float


class CatalogSummary(BaseModel):
    total_products: int
    priced_products: int
    average_price: Optional[float] = None
    average_price_display: str = "N/A"
    recent_changes: List[PriceChange]
