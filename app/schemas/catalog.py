"""
app/schemas/catalog.py

Request bodies for products, categories and cities.
"""

from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.base import CamelModel


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    packets: Optional[int] = Field(default=None, ge=1)
    image_url: str = Field(..., min_length=1, alias="imageURL")
    stock: int = Field(default=100, ge=0)
    featured: bool = False
    product_links: List[str] = Field(default_factory=list)
    additional_images: List[str] = Field(default_factory=list)


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    packets: Optional[int] = Field(default=None, ge=1)
    image_url: Optional[str] = Field(default=None, alias="imageURL")
    stock: Optional[int] = Field(default=None, ge=0)
    featured: Optional[bool] = None
    product_links: Optional[List[str]] = None
    additional_images: Optional[List[str]] = None


class StockUpdate(CamelModel):
    quantity_sold: Optional[int] = None


class BulkDeleteRequest(CamelModel):
    product_ids: List[str] = Field(default_factory=list)


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    icon: str = ""
    color: str = "#3B82F6"
    sort_order: int = 0


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    description: Optional[str] = Field(default=None, max_length=200)
    icon: Optional[str] = None
    color: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryOrder(CamelModel):
    id: str
    sort_order: int


class CategoryReorderRequest(CamelModel):
    category_orders: List[CategoryOrder]


class CityCreate(CamelModel):
    name: Optional[str] = None


class CityUpdate(CamelModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v:
            raise ValueError("City name cannot be empty")
        return v
