# catalog_api/models.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Product(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    price: float
    category: str
    stock: int = 0
    imageUrl: Optional[str] = None
    createdAt: datetime


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class ProductPage(BaseModel):
    data: List[Product]
    pagination: Pagination


class DeleteResult(BaseModel):
    message: str
    id: int
