# catalog_api/core.py
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import Select, func, or_, select

from .database import products
from .errors import ValidationFailed

# Request payloads and the list filter. Everything here is checked before the
# service touches storage.

REQUIRED_FIELDS = ("name", "slug", "price", "category")
# signed BIGINT, the widest id any backend hands out
MAX_ROW_ID = 2**63 - 1
MAX_STOCK = 2**31 - 1
# keeps (page - 1) * limit inside a 64-bit OFFSET
MAX_PAGE = 10**9
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_price(raw: str) -> float:
    try:
        price = float(raw)
    except (TypeError, ValueError):
        raise ValidationFailed("price must be a number")
    if not math.isfinite(price):
        raise ValidationFailed("price must be a number")
    return price


def parse_stock(raw: Optional[str]) -> int:
    # "12abc" -> 12, "3.7" -> 3, anything else -> 0
    if raw is None:
        return 0
    m = _LEADING_INT.match(raw)
    if not m:
        return 0
    stock = int(m.group(1))
    if abs(stock) > MAX_STOCK:
        raise ValidationFailed("stock is out of range")
    return stock


class ProductForm(BaseModel):
    """
    Create/update body, whether it came in as a form or as JSON.
    Values stay as submitted text until `create_values` / `update_values`
    turn them into column values.
    """

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    category: Optional[str] = None
    stock: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise ValueError("must be a string or a number")

    def missing_fields(self) -> List[str]:
        return [f for f in REQUIRED_FIELDS if not getattr(self, f)]

    def create_values(self) -> Dict[str, Any]:
        if self.missing_fields():
            raise ValidationFailed(
                "Missing required fields: " + ", ".join(REQUIRED_FIELDS)
            )
        return {
            "name": self.name,
            "slug": self.slug,
            "description": self.description or None,
            "price": parse_price(self.price),
            "category": self.category,
            "stock": parse_stock(self.stock),
        }

    def update_values(self) -> Dict[str, Any]:
        """Only the fields that were sent; empty strings count as not sent."""
        values: Dict[str, Any] = {}
        for field in ("name", "slug", "category"):
            if getattr(self, field):
                values[field] = getattr(self, field)
        if self.price:
            values["price"] = parse_price(self.price)
        if self.stock:
            values["stock"] = parse_stock(self.stock)
        # an explicit empty description clears it
        if self.description is not None:
            values["description"] = self.description or None
        return values


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class ProductFilter:
    """Predicate shared by the page query and its count query."""

    category: Optional[str] = None
    search: Optional[str] = None

    def clauses(self) -> list:
        out = []
        if self.category:
            out.append(products.c.category == self.category)
        if self.search:
            term = f"%{_escape_like(self.search)}%"
            out.append(
                or_(
                    products.c.name.like(term, escape="\\"),
                    products.c.description.like(term, escape="\\"),
                )
            )
        return out

    def page_query(self, limit: int, offset: int) -> Select:
        return (
            select(products)
            .where(*self.clauses())
            .order_by(products.c.createdAt.desc(), products.c.id.desc())
            .limit(limit)
            .offset(offset)
        )

    def count_query(self) -> Select:
        return select(func.count().label("total")).select_from(products).where(*self.clauses())


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10

    @classmethod
    def clamped(cls, page: int, limit: int, max_limit: int) -> "PageRequest":
        return cls(page=min(max(page, 1), MAX_PAGE), limit=max(min(limit, max_limit), 1))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)
