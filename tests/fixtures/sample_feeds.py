"""Deterministic partner feeds for tests."""

from typing import Any, Dict, List

from partner_import.mock_servers import build_sample_feed


def stock_row(
    stock_id: str = "Warehouse 1",
    city: str = "Moscow",
    address: str = "Tverskaya 1",
    available: Any = 5,
    price: Any = "199.90",
    active: int = 1,
    pickup: int = 0,
) -> Dict[str, Any]:
    """One <stock> block; pass None to leave a field out."""
    row = {
        "stock_id": stock_id,
        "city": city,
        "address": address,
        "available": available,
        "active": active,
        "pickup": pickup,
        "price": price,
    }
    return {name: value for name, value in row.items() if value is not None}


def feed_product(sku: str, title: str, regions: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
    """One <product> block with stock rows per region code."""
    return {
        "id": sku,
        "title": title,
        "regions": [{"code": code, "stocks": rows} for code, rows in regions.items()],
    }


def sample_feed() -> bytes:
    """
    Two products in RU-77.

    SKU-1 and SKU-3 are two sizes of product 11, SKU-2 is product 12.
    """
    return build_sample_feed([
        feed_product("SKU-1", "Sneakers 42", {"RU-77": [stock_row(available=5)]}),
        feed_product("SKU-3", "Sneakers 43", {"RU-77": [stock_row(available=2)]}),
        feed_product("SKU-2", "Boots", {"RU-77": [stock_row(available=3, price="2499,00")]}),
    ])


def merged_region_feed() -> bytes:
    """Moscow city and oblast rows for the same warehouse."""
    return build_sample_feed([
        feed_product("SKU-1", "Sneakers 42", {
            "RU-MOW": [stock_row(available=3, price="150")],
            "RU-MOS": [stock_row(available=5, price="199.90")],
        }),
    ])
