from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from gstbook.models.product import Product
from gstbook.services.stock_service import stock_status
from gstbook.storage.repo import JsonRepository, load_models

log = logging.getLogger(__name__)


class CatalogService:
    """
    Products and services offered for sale.
    - Name lookups ignore case (stock adjustment matches on the name)
    - `replace_products` writes back a whole stock snapshot after invoicing
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.repo = JsonRepository(path, entity_name="product", key="id")

    # ---------- helpers ---------- #

    @staticmethod
    def _normalize(payload: Dict[str, Any]) -> Dict[str, Any]:
        payload["name"] = (payload.get("name") or "").strip()
        if not payload["name"]:
            raise ValueError("A product needs a name")
        return payload

    # ---------- products ---------- #

    def list_products(self) -> List[Product]:
        return load_models(self.repo, Product)

    def get_product(self, product_id: str) -> Optional[Product]:
        row = self.repo.get_by_id(product_id)
        return Product.model_validate(row) if row else None

    def add_product(self, p: Product) -> Product:
        payload = self._normalize(p.model_dump(mode="json"))
        dupes = [x for x in self.list_products() if x.name.casefold() == payload["name"].casefold()]
        if dupes:
            # stock would only ever move on the first of them
            log.warning("Product name %r already used by %s", payload["name"], dupes[0].id)
        return Product.model_validate(self.repo.add(payload))

    def update_product(self, p: Product) -> Product:
        payload = self._normalize(p.model_dump(mode="json"))
        return Product.model_validate(self.repo.update(payload))

    def delete_product(self, product_id: str) -> bool:
        return self.repo.delete(product_id)

    def replace_products(self, products: Iterable[Product]) -> None:
        self.repo.upsert_many(products)

    # ---------- lookups ---------- #

    def search_products(self, query: str, limit: int = 5) -> List[Product]:
        """Name contains `query`, ignoring case. Empty query finds nothing."""
        q = (query or "").strip().casefold()
        if not q:
            return []
        return [p for p in self.list_products() if q in p.name.casefold()][:limit]

    def low_stock(self) -> List[Product]:
        return [p for p in self.list_products() if p.track_stock and stock_status(p) != "In Stock"]
