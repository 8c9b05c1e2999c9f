from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Union

from gstbook.models.quote import QuotationRecord
from gstbook.storage.repo import JsonRepository, load_models


class QuotationService:
    def __init__(self, path: Union[str, Path]):
        self.repo = JsonRepository(path, entity_name="quotation", key="id")

    def list_quotations(self) -> List[QuotationRecord]:
        return load_models(self.repo, QuotationRecord)

    def get_by_id(self, quote_id: str) -> Optional[QuotationRecord]:
        d = self.repo.get_by_id(quote_id)
        return QuotationRecord.model_validate(d) if d else None

    def add_quotation(self, q: QuotationRecord) -> QuotationRecord:
        self.repo.prepend_many([q])
        return q
