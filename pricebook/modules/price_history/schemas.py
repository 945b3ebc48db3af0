from pydantic import BaseModel, Field
from typing import Optional
from datetime import date


class PricePoint(BaseModel):
    product_code: str
    effective_date: date
    unit_price: Optional[float] = None

    @classmethod
    def from_row(cls, row: dict) -> "PricePoint":
        return cls(
            product_code=row["prodcode"],
            effective_date=row["effdate"],
            unit_price=row.get("unitprice"),
        )


class PricePointCreate(BaseModel):
    unit_price: float = Field(gt=0, allow_inf_nan=False)
    effective_date: date


class PricePointUpdate(BaseModel):
    unit_price: float = Field(gt=0, allow_inf_nan=False)
    effective_date: Optional[date] = None  # move the point to another date
