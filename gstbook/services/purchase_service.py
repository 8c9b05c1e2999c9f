from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Union

from gstbook.models.purchase import PurchaseRecord
from gstbook.storage.repo import JsonRepository, load_models


class PurchaseService:
    """Bills and expenses, newest first."""

    def __init__(self, path: Union[str, Path]):
        self.repo = JsonRepository(path, entity_name="purchase", key="id")

    def list_purchases(self) -> List[PurchaseRecord]:
        return load_models(self.repo, PurchaseRecord)

    def get_by_id(self, purchase_id: str) -> Optional[PurchaseRecord]:
        d = self.repo.get_by_id(purchase_id)
        return PurchaseRecord.model_validate(d) if d else None

    def add_purchase(self, p: PurchaseRecord) -> PurchaseRecord:
        self.repo.prepend_many([p])
        return p

    def update_purchase(self, p: PurchaseRecord) -> PurchaseRecord:
        self.repo.update(p)
        return p
