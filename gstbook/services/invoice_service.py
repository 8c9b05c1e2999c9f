# gstbook/services/invoice_service.py
from __future__ import annotations
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from gstbook.models.common import PaymentStatus
from gstbook.models.invoice import InvoiceRecord
from gstbook.storage.repo import JsonRepository, load_models

log = logging.getLogger(__name__)


class InvoiceService:
    """Invoice history, newest first. Records are never deleted."""

    def __init__(self, path: Union[str, Path]):
        self.repo = JsonRepository(path, entity_name="invoice", key="id")

    # ----------- list/get -----------
    def list_invoices(self) -> List[InvoiceRecord]:
        return load_models(self.repo, InvoiceRecord)

    def get_by_id(self, invoice_id: str) -> Optional[InvoiceRecord]:
        d = self.repo.get_by_id(invoice_id)
        return InvoiceRecord.model_validate(d) if d else None

    def get_by_number(self, number: str) -> Optional[InvoiceRecord]:
        d = self.repo.find_one(lambda x: x.get("invoice_number") == number)
        return InvoiceRecord.model_validate(d) if d else None

    # ----------- write -----------
    def prepend(self, invoices: Iterable[InvoiceRecord]) -> None:
        self.repo.prepend_many(invoices)

    def update_invoice(self, inv: InvoiceRecord) -> InvoiceRecord:
        self.repo.update(inv)
        return inv

    def set_status(self, invoice_id: str, status: PaymentStatus, when: Optional[datetime] = None) -> InvoiceRecord:
        """PAID stamps the payment date, UNPAID clears it."""
        inv = self.get_by_id(invoice_id)
        if inv is None:
            raise ValueError(f"invoice {invoice_id} not found")
        inv.status = status
        inv.payment_date = (when or datetime.now()) if status == "PAID" else None
        self.repo.update(inv)
        log.info("Invoice %s marked %s", inv.invoice_number, status)
        return inv
