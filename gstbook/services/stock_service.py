from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Literal, Optional

from gstbook.models.item import LineItem
from gstbook.models.product import Product

log = logging.getLogger(__name__)

SALE = -1
PURCHASE = +1

StockStatus = Literal["In Stock", "Low Stock", "Out of Stock"]


def _key(text: str) -> str:
    return (text or "").casefold()


def find_tracked_product(products: Iterable[Product], description: str) -> Optional[Product]:
    """First stock-tracked product whose name equals `description`, ignoring case."""
    wanted = _key(description)
    for p in products:
        if p.track_stock and _key(p.name) == wanted:
            return p
    return None


def stock_deltas(products: List[Product], items: Iterable[LineItem], direction: int) -> Dict[str, float]:
    """product id -> signed quantity change. Several lines hitting one product add up."""
    out: Dict[str, float] = {}
    for item in items:
        if math.isnan(item.quantity):
            continue  # unset quantity moves nothing
        p = find_tracked_product(products, item.description)
        if p is None:
            continue
        out[p.id] = out.get(p.id, 0) + direction * item.quantity
    return out


def apply_deltas(products: List[Product], deltas: Dict[str, float]) -> List[Product]:
    """New product list with the deltas applied; the input list is left alone."""
    out: List[Product] = []
    for p in products:
        if p.id in deltas:
            p = p.model_copy(update={"stock": p.stock + deltas[p.id]})
            if p.stock < 0:
                log.info("Stock of %r is now negative (%s)", p.name, p.stock)
        out.append(p)
    return out


def apply_stock_delta(products: List[Product], items: Iterable[LineItem], direction: int) -> List[Product]:
    """
    Decrement (direction=-1, invoices) or increment (direction=+1, purchases)
    stock of tracked products matched by name. No floor: stock may go negative.
    """
    if direction not in (SALE, PURCHASE):
        raise ValueError(f"direction must be +1 or -1, got {direction!r}")
    return apply_deltas(products, stock_deltas(products, items, direction))


def stock_status(product: Product) -> StockStatus:
    if product.stock <= 0:
        return "Out of Stock"
    if product.stock <= product.low_stock_threshold:
        return "Low Stock"
    return "In Stock"
