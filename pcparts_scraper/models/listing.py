# models/listing.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    # naive UTC, the form MongoDB hands datetimes back in
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PriceCandidate(BaseModel):
    """A price node considered by the product-page cascade."""

    price: float
    text: str = ""
    strategy: str
    score: int = 0
    selector: Optional[str] = None


class PriceResult(BaseModel):
    """
    Outcome of scraping one product page for its price.

    `current_price` is always `sale_price or base_price`; `is_on_sale` is only
    set when a strikethrough price above the found price was present.
    """

    title: Optional[str] = None
    base_price: Optional[float] = None
    sale_price: Optional[float] = None
    current_price: Optional[float] = None
    is_on_sale: bool = False
    is_available: bool = True
    unavailability_reason: Optional[str] = None
    image_url: Optional[str] = None
    success: bool = False
    price_source: Optional[str] = None
    detection_method: Optional[str] = None
    candidates: List[PriceCandidate] = Field(default_factory=list)
    error: Optional[str] = None
    scraped_at: datetime = Field(default_factory=utcnow)


class RawListing(BaseModel):
    """Scraped fields before normalization; prices may still be text."""

    title: Optional[str] = None
    base_price: Optional[Any] = None
    sale_price: Optional[Any] = None
    price_text: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    source: Optional[str] = None
    is_available: bool = True
    price_source: Optional[str] = None
    detection_method: Optional[str] = None


class ProductListing(BaseModel):
    """
    One PC-part listing as it is stored in a category collection.
    Documents are loose on purpose; only the price invariant is enforced.
    """

    name: str
    title: Optional[str] = None
    manufacturer: Optional[str] = None
    partner: Optional[str] = None
    category: str

    base_price: Optional[float] = Field(default=None, alias="basePrice")
    sale_price: Optional[float] = Field(default=None, alias="salePrice")
    current_price: Optional[float] = Field(default=None, alias="currentPrice")
    is_on_sale: bool = False
    is_available: bool = True

    source_url: Optional[str] = Field(default=None, alias="sourceUrl")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    source: Optional[str] = None
    search_term: Optional[str] = None

    specs: Dict[str, Any] = Field(default_factory=dict)
    price_source: Optional[str] = None
    detection_method: Optional[str] = None
    unique_id: Optional[str] = None

    scraped_at: datetime = Field(default_factory=utcnow)

    class Config:
        populate_by_name = True  # accept both basePrice and base_price

    def to_document(self) -> Dict[str, Any]:
        """Field-name dict ready for MongoDB, without unset optional noise."""
        doc = self.model_dump(exclude_none=True)
        # keep explicit nulls for prices so a later update can clear them
        for key in ("base_price", "sale_price", "current_price"):
            doc.setdefault(key, None)
        return doc


class UpsertStats(BaseModel):
    new: int = 0
    duplicate: int = 0
    updated: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.new + self.duplicate + self.updated + self.failed

    def merge(self, other: "UpsertStats") -> "UpsertStats":
        return UpsertStats(
            new=self.new + other.new,
            duplicate=self.duplicate + other.duplicate,
            updated=self.updated + other.updated,
            failed=self.failed + other.failed,
        )

    def summary(self) -> Dict[str, int]:
        return {**self.model_dump(), "total": self.total}
