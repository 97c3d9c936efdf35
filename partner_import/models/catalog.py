"""Catalog entities owned by the storage collaborator.

Ids are assigned by the storage on first save; a ``None`` id means the entity
has not been persisted yet.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class RegionRef:
    """Taxonomy term of a sales region."""
    id: int
    iso_code: str
    name: str = ""


@dataclass
class StockLocation:
    """Named physical inventory point."""
    unique_id: str
    name: str
    id: Optional[int] = None


@dataclass
class Store:
    """Catalog scope of one partner in one region."""
    unique_id: str
    name: str
    store_type: str = "online"
    currency: str = "RUB"
    timezone: str = "Europe/Moscow"
    address: Dict[str, str] = field(default_factory=dict)
    region_id: Optional[int] = None
    partner_id: Optional[str] = None
    stock_location_ids: List[int] = field(default_factory=list)
    allocation_location_id: Optional[int] = None
    id: Optional[int] = None


@dataclass
class AttributeValue:
    """Value of a product attribute such as size."""
    attribute: str
    name: str
    id: Optional[int] = None


@dataclass
class CatalogVariation:
    """Purchasable SKU of a store-scoped product."""
    sku: str
    price: float = 0.0
    currency: str = "RUB"
    published: bool = False
    size_id: Optional[int] = None
    related_variation_id: Optional[int] = None
    product_id: Optional[int] = None
    id: Optional[int] = None


@dataclass
class CatalogProduct:
    """Store-scoped product linked to an internal product definition."""
    title: str
    store_id: int
    related_product_id: int
    published: bool = False
    variation_ids: List[int] = field(default_factory=list)
    id: Optional[int] = None


@dataclass
class OrderItem:
    """Line item of a cart order."""
    id: int
    product_id: Optional[int]  # product of the purchased variation
    unit_price: float = 0.0
    kit_id: Optional[int] = None


@dataclass
class Order:
    """Draft cart order of a store."""
    id: int
    store_id: int
    items: List[OrderItem] = field(default_factory=list)
    state: str = "draft"
    cart: bool = True
