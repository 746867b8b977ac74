"""
models.py — Data Models for the Storefront

This module defines the records the storefront persists (products, reviews,
orders) and the request/response payloads of the HTTP API. It uses Pydantic
models to ensure type safety and automatic validation of incoming data.

Field names are camelCase to match the JSON documents on disk and the
payloads the browser UI sends.

Models:
    - Product / CatalogEntry: A catalog record, optionally with its average rating.
    - ProductCreate / ProductUpdate / RestockRequest: Catalog mutations.
    - CheckoutItem / CheckoutRequest / Order / CheckoutResult: Purchases.
    - ReviewCreate / Review: Customer reviews.
    - SentimentTally / Analytics / DashboardData: Aggregated views.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidInput


class Product(BaseModel):
    """
    A catalog record. The ledger is the only writer of `stock` and `sales`.

    Attributes:
        id (int): Positive id assigned by the ledger, never reused.
        stock (int): Units on hand, never below zero after a checkout.
        sales (int): Cumulative units sold. Only increases.

    Fields a stored record carries beyond these (e.g. a legacy `reviews`
    list) are kept, so rewriting the catalog never drops them.
    """
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    category: str
    price: float
    stock: int
    sales: int = 0
    description: str = ""
    image: str = ""


class CatalogEntry(Product):
    avgRating: float = 0


class ProductCreate(BaseModel):
    """
    Payload for adding a product. `name`, `price`, `category` and `stock` are required.
    """
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    stock: int = Field(..., ge=0)
    description: Optional[str] = None
    image: Optional[str] = None


class ProductUpdate(BaseModel):
    """Partial update. Only the supplied fields are overwritten."""
    stock: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)


class RestockEntry(BaseModel):
    id: int
    stock: int = Field(..., ge=0)


class RestockRequest(BaseModel):
    updates: List[RestockEntry]


class CheckoutItem(BaseModel):
    """
    A single line of a checkout.

    The unit price is the one the client saw at purchase time; it is not
    re-validated against the catalog. Additional fields the client sends
    (e.g. the product name) are kept in the order record.
    """
    model_config = ConfigDict(extra="allow")

    id: int
    quantity: int = Field(..., gt=0)  # gt=0 means "greater than 0"
    price: float = Field(..., ge=0)


class CheckoutRequest(BaseModel):
    customer: Dict[str, Any]
    items: List[CheckoutItem] = Field(..., min_length=1)


class Order(BaseModel):
    id: str
    customer: Dict[str, Any]
    items: List[CheckoutItem]
    totalAmount: float
    timestamp: str


class CheckoutResult(BaseModel):
    success: bool = True
    orderId: str
    message: str = "Order processed successfully"
    totalItems: int


class ReviewCreate(BaseModel):
    productId: int
    rating: int = Field(..., ge=1, le=5)
    comment: str

    @field_validator("comment")
    @classmethod
    def comment_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("comment must not be empty")
        return value


class Review(BaseModel):
    id: str
    productId: int
    rating: int
    comment: str
    timestamp: str


class SentimentTally(BaseModel):
    positive: int = 0
    negative: int = 0
    neutral: int = 0


class Analytics(BaseModel):
    totalProducts: int
    totalOrders: int
    totalRevenue: float
    totalSales: int
    averageRating: float
    lowStockItems: int
    sentiment: SentimentTally


class DashboardData(BaseModel):
    products: List[CatalogEntry]
    reviews: List[Review]


class Acknowledgement(BaseModel):
    success: bool = True
    message: str


class HealthStatus(BaseModel):
    status: str
    timestamp: str


def describe_validation_error(error: ValidationError) -> str:
    """Builds a short client-facing message from a pydantic ValidationError."""
    details = error.errors()
    if any(d["type"] == "missing" for d in details):
        return "Missing required fields"
    first = details[0]
    field = ".".join(str(part) for part in first["loc"]) or "body"
    return f"Invalid value for {field}: {first['msg']}"


def parse(model, data):
    """
    Validates `data` against a Pydantic model.

    Args:
        model (type[BaseModel]): The target model class.
        data: An instance of the model (returned unchanged) or a mapping.

    Returns:
        BaseModel: The validated model instance.

    Raises:
        InvalidInput: If required fields are missing or values are malformed.
    """
    if isinstance(data, model):
        return data
    if data is None:
        raise InvalidInput("Missing required fields")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInput(describe_validation_error(e)) from e
